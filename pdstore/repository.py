"""Persistent record store with a BST index and an optional linked store.

A repository named ``name`` keeps its records in ``name.dat`` and its index
in ``name.ndx``. When a linked repository is given, child records live in
``<linked>.dat`` with no index, and parent/child links are kept in
``name_link.dat``.

On-disk layouts (little-endian 32-bit integers):

* data file: ``key, record bytes, is_deleted`` per record
* index file: ``count`` followed by ``key, offset, is_deleted`` per entry,
  written in pre-order of the index tree
* linked data file: ``key, record bytes`` per record
* link file: ``parent_key, child_key`` per link
"""

from __future__ import annotations

import os
import struct
from collections.abc import Callable, Iterator
from contextlib import ExitStack, suppress
from dataclasses import dataclass
from typing import Any, BinaryIO

from pdstore.bst import BST, DuplicateKeyError

_INT = struct.Struct("<i")
_NDX_ENTRY = struct.Struct("<iii")
_LINK = struct.Struct("<ii")

_NO_LINKED_REPO = "NULL"

Matcher = Callable[[bytes, Any], bool]


class PDSError(Exception):
    """Base class for repository errors; ``code`` is the numeric status."""

    code = 0


class PDSFileError(PDSError):
    """A repository file could not be created, opened, read or written."""

    code = 1


class AddFailedError(PDSError):
    """A record with the same key is already stored."""

    code = 2


class RecordNotFoundError(PDSError):
    """No live record matches the requested key."""

    code = 3


class RepoNotOpenError(PDSError):
    """The repository is closed."""

    code = 14


class DeleteFailedError(PDSError):
    """The record to delete is missing or already deleted."""

    code = 15


class LinkExistsError(PDSError):
    """The parent and child records are already linked."""

    code = 16


@dataclass
class IndexEntry:
    """Location of a record in the data file."""

    key: int
    offset: int
    is_deleted: bool = False


def _has_linked(linked_repo_name: str | os.PathLike[str] | None) -> bool:
    return linked_repo_name is not None and os.fspath(linked_repo_name) != _NO_LINKED_REPO


def _paths(repo_name, linked_repo_name):
    base = os.fspath(repo_name)
    data = base + ".dat"
    ndx = base + ".ndx"
    if _has_linked(linked_repo_name):
        return data, ndx, os.fspath(linked_repo_name) + ".dat", base + "_link.dat"
    return data, ndx, None, None


def _open(path: str, mode: str) -> BinaryIO:
    try:
        return open(path, mode)  # noqa: SIM115 - lifetime managed by Repository
    except OSError as exc:
        raise PDSFileError(f"cannot open {path}: {exc}") from exc


def create_repository(repo_name, linked_repo_name) -> None:
    """Create empty data and index files, plus linked and link files if asked.

    ``linked_repo_name`` may be None or the string "NULL" for no linked store.
    """
    data_path, ndx_path, linked_path, link_path = _paths(repo_name, linked_repo_name)
    try:
        with open(data_path, "wb"), open(ndx_path, "wb") as ndx:
            ndx.write(_INT.pack(0))
        if linked_path is not None:
            with open(linked_path, "wb"), open(link_path, "wb"):
                pass
    except OSError as exc:
        raise PDSFileError(f"cannot create repository {repo_name}: {exc}") from exc


def _fit(rec: bytes, size: int) -> bytes:
    data = bytes(rec)
    if len(data) > size:
        raise ValueError(f"record of {len(data)} bytes exceeds record size {size}")
    return data.ljust(size, b"\0")


class Repository:
    """An open repository; opening happens on construction."""

    def __init__(self, repo_name, linked_repo_name, rec_size: int, linked_rec_size: int) -> None:
        if rec_size <= 0:
            raise ValueError("rec_size must be positive")
        data_path, ndx_path, linked_path, link_path = _paths(repo_name, linked_repo_name)
        self.name = os.fspath(repo_name)
        self.rec_size = rec_size
        self.linked_rec_size = linked_rec_size
        self.index = BST()

        with ExitStack() as stack:
            data_fp = stack.enter_context(_open(data_path, "r+b"))
            ndx_fp = stack.enter_context(_open(ndx_path, "rb"))
            linked_fp = link_fp = None
            if linked_path is not None:
                linked_fp = stack.enter_context(_open(linked_path, "r+b"))
                link_fp = stack.enter_context(_open(link_path, "r+b"))
            self.rec_count = self._load_index(ndx_fp)
            ndx_fp.close()
            stack.pop_all()

        self._data_fp: BinaryIO | None = data_fp
        self._linked_fp: BinaryIO | None = linked_fp
        self._link_fp: BinaryIO | None = link_fp
        self._ndx_path = ndx_path
        self._open = True

    def _load_index(self, ndx_fp: BinaryIO) -> int:
        header = ndx_fp.read(_INT.size)
        if len(header) != _INT.size:
            raise PDSFileError(f"index file of {self.name} is truncated")
        (count,) = _INT.unpack(header)
        for _ in range(count):
            raw = ndx_fp.read(_NDX_ENTRY.size)
            if len(raw) != _NDX_ENTRY.size:
                raise PDSFileError(f"index file of {self.name} is truncated")
            key, offset, is_deleted = _NDX_ENTRY.unpack(raw)
            with suppress(DuplicateKeyError):
                self.index.add(key, IndexEntry(key, offset, bool(is_deleted)))
        return count

    def is_open(self) -> bool:
        """Return True while the repository is open."""
        return self._open

    def _require_open(self) -> None:
        if not self._open:
            raise RepoNotOpenError(f"repository {self.name} is not open")

    def _linked_file(self) -> BinaryIO:
        if self._linked_fp is None:
            raise PDSFileError(f"repository {self.name} has no linked data file")
        return self._linked_fp

    def _links_file(self) -> BinaryIO:
        if self._link_fp is None:
            raise PDSFileError(f"repository {self.name} has no link file")
        return self._link_fp

    def put(self, key: int, rec: bytes) -> None:
        """Store a record; a deleted record with the same key is overwritten."""
        self._require_open()
        data = _fit(rec, self.rec_size)
        fp = self._data_fp
        node = self.index.search(key)
        if node is not None:
            entry: IndexEntry = node.data
            if not entry.is_deleted:
                raise AddFailedError(f"key {key} already exists")
            entry.is_deleted = False
            fp.seek(entry.offset + _INT.size)
            fp.write(data)
            fp.write(_INT.pack(0))
            return

        fp.seek(0, os.SEEK_END)
        entry = IndexEntry(key, fp.tell(), False)
        self.index.add(key, entry)
        self.rec_count += 1
        fp.write(_INT.pack(key))
        fp.write(data)
        fp.write(_INT.pack(0))

    def put_linked(self, key: int, rec: bytes) -> None:
        """Append a child record to the linked data file."""
        self._require_open()
        fp = self._linked_file()
        data = _fit(rec, self.linked_rec_size)
        fp.seek(0, os.SEEK_END)
        fp.write(_INT.pack(key))
        fp.write(data)

    def get(self, key: int) -> bytes:
        """Return the live record stored under ``key``."""
        self._require_open()
        node = self.index.search(key)
        if node is None or node.data.is_deleted:
            raise RecordNotFoundError(f"key {key} not found")
        fp = self._data_fp
        fp.seek(node.data.offset + _INT.size)
        return fp.read(self.rec_size)

    def _scan_data(self) -> Iterator[tuple[bytes, bool]]:
        fp = self._data_fp
        fp.seek(0)
        size = _INT.size + self.rec_size + _INT.size
        while True:
            raw = fp.read(size)
            if len(raw) < size:
                return
            rec = raw[_INT.size:_INT.size + self.rec_size]
            (is_deleted,) = _INT.unpack(raw[-_INT.size:])
            yield rec, bool(is_deleted)

    def get_by_non_ndx_key(self, non_ndx_key: Any, matcher: Matcher) -> tuple[bytes, int]:
        """Scan the data file for the first record ``matcher`` accepts.

        ``matcher(record_bytes, non_ndx_key)`` returns True on a match.
        Returns the record and the number of records read. A match on a
        deleted record counts as not found.
        """
        self._require_open()
        for io_count, (rec, is_deleted) in enumerate(self._scan_data(), start=1):
            if matcher(rec, non_ndx_key):
                if is_deleted:
                    raise RecordNotFoundError(f"record for {non_ndx_key!r} is deleted")
                return rec, io_count
        raise RecordNotFoundError(f"no record matches {non_ndx_key!r}")

    def get_linked(self, key: int) -> tuple[bytes, int]:
        """Linear search of the linked data file; returns record and reads made."""
        self._require_open()
        fp = self._linked_file()
        fp.seek(0)
        size = _INT.size + self.linked_rec_size
        io_count = 0
        while True:
            raw = fp.read(size)
            if len(raw) < size:
                raise RecordNotFoundError(f"linked key {key} not found")
            io_count += 1
            (key_read,) = _INT.unpack(raw[:_INT.size])
            if key_read == key:
                return raw[_INT.size:], io_count

    def delete(self, key: int) -> None:
        """Mark the record under ``key`` as deleted, in the index and on disk."""
        self._require_open()
        node = self.index.search(key)
        if node is None or node.data.is_deleted:
            raise DeleteFailedError(f"cannot delete key {key}")
        entry: IndexEntry = node.data
        entry.is_deleted = True
        fp = self._data_fp
        fp.seek(entry.offset + _INT.size + self.rec_size)
        fp.write(_INT.pack(1))

    def _iter_links(self) -> Iterator[tuple[int, int]]:
        fp = self._links_file()
        fp.seek(0)
        while len(raw := fp.read(_LINK.size)) == _LINK.size:
            yield _LINK.unpack(raw)

    def link(self, parent_key: int, child_key: int) -> None:
        """Record a link between an existing parent and an existing child."""
        self._require_open()
        self.get(parent_key)
        self.get_linked(child_key)
        if (parent_key, child_key) in self._iter_links():
            raise LinkExistsError(f"{parent_key} is already linked to {child_key}")
        fp = self._links_file()
        fp.seek(0, os.SEEK_END)
        fp.write(_LINK.pack(parent_key, child_key))

    def get_linked_keys(self, parent_key: int) -> list[int]:
        """Return the child keys linked to an existing parent, in link order."""
        self._require_open()
        self.get(parent_key)
        return [child for parent, child in self._iter_links() if parent == parent_key]

    def close(self) -> None:
        """Write the index in pre-order and close every file."""
        self._require_open()
        try:
            with open(self._ndx_path, "wb") as ndx:
                ndx.write(_INT.pack(self.rec_count))
                for node in self.index.preorder():
                    entry: IndexEntry = node.data
                    ndx.write(_NDX_ENTRY.pack(node.key, entry.offset, int(entry.is_deleted)))
        except OSError as exc:
            raise PDSFileError(f"cannot save index of {self.name}: {exc}") from exc

        errors = []
        for fp in (self._data_fp, self._linked_fp, self._link_fp):
            if fp is None:
                continue
            try:
                fp.close()
            except OSError as exc:
                errors.append(exc)
        if errors:
            raise PDSFileError(f"cannot close files of {self.name}: {errors[0]}")

        self.index.clear()
        self._data_fp = self._linked_fp = self._link_fp = None
        self._open = False

    def __enter__(self) -> Repository:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._open:
            self.close()