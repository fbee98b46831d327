"""Book records stored in the indexed part of a repository."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from typing import ClassVar

from pdstore.repository import PDSError, Repository

_NAME_LEN = 30
_LAYOUT = struct.Struct(f"<i{_NAME_LEN}s{_NAME_LEN}s")


def _encode(value: str, field: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) >= _NAME_LEN:
        raise ValueError(f"{field} must be shorter than {_NAME_LEN} bytes")
    return raw


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass
class Book:
    """A book with an id, a name and an ISBN."""

    book_id: int
    name: str
    isbn: str

    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        """Return the fixed-size record bytes for this book."""
        return _LAYOUT.pack(self.book_id, _encode(self.name, "name"), _encode(self.isbn, "isbn"))

    @classmethod
    def unpack(cls, data: bytes) -> Book:
        """Build a book from record bytes."""
        book_id, name, isbn = _LAYOUT.unpack_from(data)
        return cls(book_id, _decode(name), _decode(isbn))


def format_book(book: Book) -> str:
    """Return the book as a single CSV line without spaces around fields."""
    return f"{book.book_id},{book.name},{book.isbn}"


def add_book(repository: Repository, book: Book) -> None:
    """Store the book under its id."""
    repository.put(book.book_id, book.pack())


def search_book(repository: Repository, book_id: int) -> Book:
    """Look the book up through the index."""
    return Book.unpack(repository.get(book_id))


def match_book_isbn(rec: bytes | Book, key: str) -> bool:
    """Return True if the record's ISBN equals ``key``."""
    if rec is None or key is None:
        raise ValueError("record and key are required")
    book = rec if isinstance(rec, Book) else Book.unpack(rec)
    return book.isbn == key


def search_book_by_isbn(repository: Repository, isbn: str) -> tuple[Book, int]:
    """Scan for a book by ISBN; return it with the number of records read."""
    rec, io_count = repository.get_by_non_ndx_key(isbn, match_book_isbn)
    return Book.unpack(rec), io_count


def delete_book(repository: Repository, book_id: int) -> None:
    """Mark the book as deleted."""
    repository.delete(book_id)


def store_books(repository: Repository, book_data_file) -> list[Book]:
    """Load books from a file of ``id name isbn`` lines, printing each one.

    Books that cannot be added are reported on stderr. Returns the books
    that were stored.
    """
    stored = []
    with open(book_data_file, encoding="utf-8") as fp:
        for line in fp:
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 3:
                raise ValueError(f"malformed book line: {line.rstrip()!r}")
            book = Book(int(fields[0]), fields[1], fields[2])
            print(format_book(book))
            try:
                add_book(repository, book)
            except PDSError as exc:
                print(f"Unable to add book with key {book.book_id}. Error {exc.code}", file=sys.stderr)
            else:
                stored.append(book)
    return stored