"""Author records stored in the linked (unindexed) part of a repository."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from typing import ClassVar

from pdstore.repository import PDSError, Repository

_FIELD_LEN = 30
_LAYOUT = struct.Struct(f"<i{_FIELD_LEN}s{_FIELD_LEN}s")


def _encode(value: str, field: str) -> bytes:
    raw = value.encode("utf-8")
    if len(raw) >= _FIELD_LEN:
        raise ValueError(f"{field} must be shorter than {_FIELD_LEN} bytes")
    return raw


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass
class Author:
    """An author with an id, a name and an e-mail address."""

    author_id: int
    name: str
    email: str

    SIZE: ClassVar[int] = _LAYOUT.size

    def pack(self) -> bytes:
        """Return the fixed-size record bytes for this author."""
        return _LAYOUT.pack(self.author_id, _encode(self.name, "name"), _encode(self.email, "email"))

    @classmethod
    def unpack(cls, data: bytes) -> Author:
        """Build an author from record bytes."""
        author_id, name, email = _LAYOUT.unpack_from(data)
        return cls(author_id, _decode(name), _decode(email))


def format_author(author: Author) -> str:
    """Return the author as a single CSV line without spaces around fields."""
    return f"{author.author_id},{author.name},{author.email}"


def add_author(repository: Repository, author: Author) -> None:
    """Append the author to the linked data file."""
    repository.put_linked(author.author_id, author.pack())


def search_author(repository: Repository, author_id: int) -> tuple[Author, int]:
    """Find an author by linear search; return it with the number of reads."""
    rec, io_count = repository.get_linked(author_id)
    return Author.unpack(rec), io_count


def delete_author(repository: Repository, author_id: int) -> None:
    """Mark the indexed record stored under ``author_id`` as deleted."""
    repository.delete(author_id)


def store_authors(repository: Repository, author_data_file) -> list[Author]:
    """Load authors from a file of ``id name email`` lines, printing each one.

    Authors that cannot be added are reported on stderr. Returns the
    authors that were stored.
    """
    stored = []
    with open(author_data_file, encoding="utf-8") as fp:
        for line in fp:
            fields = line.split()
            if not fields:
                continue
            if len(fields) < 3:
                raise ValueError(f"malformed author line: {line.rstrip()!r}")
            author = Author(int(fields[0]), fields[1], fields[2])
            print(format_author(author))
            try:
                add_author(repository, author)
            except PDSError as exc:
                print(f"Unable to add author with key {author.author_id}. Error {exc.code}", file=sys.stderr)
            else:
                stored.append(author)
    return stored