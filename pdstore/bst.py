"""Unbalanced binary search tree keyed by integers."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


class DuplicateKeyError(ValueError):
    """Raised when a key already present in the tree is added again."""

    def __init__(self, key: int) -> None:
        super().__init__(f"duplicate key {key}")
        self.key = key


@dataclass
class BSTNode:
    """A tree node holding a key, its payload and two children."""

    key: int
    data: Any = None
    left: BSTNode | None = None
    right: BSTNode | None = None


class BST:
    """Binary search tree mapping integer keys to arbitrary data."""

    def __init__(self) -> None:
        self.root: BSTNode | None = None
        self._size = 0

    def add(self, key: int, data: Any) -> BSTNode:
        """Insert a new node; raise DuplicateKeyError if the key exists."""
        node = BSTNode(key, data)
        if self.root is None:
            self.root = node
            self._size = 1
            return node
        parent = self.root
        while True:
            if key == parent.key:
                raise DuplicateKeyError(key)
            if key < parent.key:
                if parent.left is None:
                    parent.left = node
                    break
                parent = parent.left
            else:
                if parent.right is None:
                    parent.right = node
                    break
                parent = parent.right
        self._size += 1
        return node

    def search(self, key: int) -> BSTNode | None:
        """Return the node with the given key, or None if it is absent."""
        node = self.root
        while node is not None:
            if key == node.key:
                return node
            node = node.left if key < node.key else node.right
        return None

    def preorder(self) -> Iterator[BSTNode]:
        """Yield nodes in pre-order: node, left subtree, right subtree."""
        stack = [self.root] if self.root is not None else []
        while stack:
            node = stack.pop()
            yield node
            if node.right is not None:
                stack.append(node.right)
            if node.left is not None:
                stack.append(node.left)

    def format_keys(self) -> str:
        """Return the keys in pre-order, separated by single spaces."""
        return " ".join(str(node.key) for node in self.preorder())

    def clear(self) -> None:
        """Drop every node from the tree."""
        self.root = None
        self._size = 0

    def __contains__(self, key: object) -> bool:
        return isinstance(key, int) and self.search(key) is not None

    def __len__(self) -> int:
        return self._size