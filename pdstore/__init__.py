"""A persistent data store with a BST index, a linked repository and record links."""

__version__ = "0.1.0"
__all__ = ["bst", "repository", "book", "author", "demo", "tester"]