"""Interactive demo of parent (book) and child (author) linked records."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable

from pdstore.author import Author, add_author, search_author
from pdstore.book import Book, add_book
from pdstore.repository import PDSError, Repository, create_repository

MENU = "\nLINKED DATA DEMO\n\n0. Exit\n1. Add linked data\n2. Get linked data\n\nEnter option: "

Reader = Callable[[], str]
Writer = Callable[[str], object]


def setup_data(repo_name, linked_repo_name) -> Repository:
    """Create a fresh repository holding ten books and ten authors."""
    create_repository(repo_name, linked_repo_name)
    repository = Repository(repo_name, linked_repo_name, Book.SIZE, Author.SIZE)
    for number in range(1, 11):
        add_book(repository, Book(number, f"Book {number}", str(number)))
        add_author(repository, Author(number, f"Author {number}", f"author{number}@example.com"))
    return repository


def _read_ints(read: Reader, count: int) -> list[int]:
    tokens: list[str] = []
    while len(tokens) < count:
        tokens.extend(read().split())
    return [int(token) for token in tokens[:count]]


def _link(repository: Repository, read: Reader, write: Writer) -> None:
    write("Enter parent key and child key for linking: ")
    try:
        parent_key, child_key = _read_ints(read, 2)
        repository.link(parent_key, child_key)
    except (PDSError, ValueError):
        write("Linking failed\n")


def _show_linked(repository: Repository, read: Reader, write: Writer) -> None:
    write("Enter parent key: ")
    try:
        (parent_key,) = _read_ints(read, 1)
        child_keys = repository.get_linked_keys(parent_key)
    except (PDSError, ValueError):
        write("Fetching linked records failed\n")
        return
    write(f"\nLinked records for parent key {parent_key}:\n")
    for child_key in child_keys:
        try:
            author, _ = search_author(repository, child_key)
        except PDSError:
            continue
        write(f"\nAuthor ID: {author.author_id}\n")
        write(f"Author Name: {author.name}\n")
        write(f"Author Email: {author.email}\n")


def process_option(repository: Repository, option: int, read: Reader, write: Writer) -> bool:
    """Carry out one menu option; return False when the option is exit.

    ``read`` returns the next input line and raises EOFError at the end;
    ``write`` receives output text.
    """
    if option == 0:
        return False
    if option == 1:
        _link(repository, read, write)
    elif option == 2:
        _show_linked(repository, read, write)
    else:
        write("Invalid option\n")
    return True


def _stdin_line() -> str:
    line = sys.stdin.readline()
    if not line:
        raise EOFError
    return line


def main(argv=None) -> int:
    """Run the interactive menu on standard input and output."""
    parser = argparse.ArgumentParser(description="Linked data demo")
    parser.add_argument("repo_name", nargs="?", default="books")
    parser.add_argument("linked_repo_name", nargs="?", default="authors")
    args = parser.parse_args(argv)

    def write(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    repository = setup_data(args.repo_name, args.linked_repo_name)
    try:
        while True:
            write(MENU)
            try:
                line = _stdin_line()
            except EOFError:
                break
            try:
                option = int(line.split()[0])
            except (IndexError, ValueError):
                option = -1
            try:
                if not process_option(repository, option, _stdin_line, write):
                    break
            except EOFError:
                break
    finally:
        try:
            repository.close()
        except PDSError:
            write("Closing failed\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())