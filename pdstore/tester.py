"""Script-driven checks of a book/author repository.

Each line of a test-case file names a command, its arguments and the
expected outcome, for example ``STORE 12 0`` or ``LINK 1 10 16``.
"""

from __future__ import annotations

import os
import re
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from pdstore.author import Author, add_author, search_author
from pdstore.book import Book, add_book, delete_book, search_book, search_book_by_isbn
from pdstore.repository import (
    LinkExistsError,
    PDSError,
    RecordNotFoundError,
    RepoNotOpenError,
    Repository,
    create_repository,
)

_SUCCESS = 0
_FAILURE = 1
_MISSING = -1
_ISBN_PREFIX_LEN = len("ISBN-of-")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")

Outcome = tuple[bool, str]


@dataclass
class CaseResult:
    """Result of one test case; ``passed`` is None for unknown commands."""

    line: str
    passed: bool | None
    info: str = ""


def _expect(token: str) -> int:
    return _SUCCESS if token == "0" else _FAILURE


def _flag(code: int) -> int:
    return _SUCCESS if code == _SUCCESS else _FAILURE


def _attempt(action: Callable[[], Any]) -> tuple[Any, int]:
    try:
        return action(), _SUCCESS
    except PDSError as exc:
        return None, exc.code


class TestCaseRunner:
    """Runs test-case lines against one repository at a time."""

    __test__ = False

    def __init__(self) -> None:
        self.repository: Repository | None = None
        self._handlers: dict[str, Callable[[list[str]], Outcome | None]] = {
            "CREATE": self._create,
            "OPEN": self._open,
            "STORE": self._store,
            "STORE_LINKED": self._store_linked,
            "NDX_SEARCH": self._ndx_search,
            "SEARCH_LINKED": self._search_linked,
            "SEARCH_LINKED_BY_PARENT": self._search_linked_by_parent,
            "LINK": self._link,
            "NON_NDX_SEARCH": self._non_ndx_search,
            "NDX_DELETE": self._ndx_delete,
            "CLOSE": self._close,
        }

    def _repo(self) -> Repository:
        if self.repository is None:
            raise RepoNotOpenError("no repository has been opened")
        return self.repository

    def process_line(self, line: str) -> CaseResult | None:
        """Run one test case; return None when nothing is to be reported."""
        tokens = line.split()
        if not tokens:
            return None
        command, params = tokens[0], tokens[1:]
        handler = self._handlers.get(command)
        if handler is None:
            return CaseResult(line, None)
        try:
            outcome = handler(params)
        except (ValueError, IndexError) as exc:
            return CaseResult(line, False, f"malformed test case: {exc}")
        if outcome is None:
            return None
        passed, info = outcome
        return CaseResult(line, passed, info)

    def _create(self, params: list[str]) -> Outcome:
        expected = _expect(params[2])
        _, code = _attempt(lambda: create_repository(params[0], params[1]))
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"pds_create returned status {status}"

    def _open(self, params: list[str]) -> Outcome:
        expected = _expect(params[2])
        repo, code = _attempt(
            lambda: Repository(params[0], params[1], Book.SIZE, Author.SIZE)
        )
        if repo is not None:
            self.repository = repo
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"pds_open returned status {status}"

    def _store(self, params: list[str]) -> Outcome:
        expected = _expect(params[1])
        book_id = int(params[0])
        book = Book(book_id, f"Name-of-{book_id}", f"ISBN-of-{book_id}")
        _, code = _attempt(lambda: add_book(self._repo(), book))
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"add_book returned status {status}"

    def _store_linked(self, params: list[str]) -> Outcome:
        expected = _expect(params[1])
        author_id = int(params[0])
        author = Author(author_id, f"Author-of-{author_id}", f"Email-of-{author_id}")
        _, code = _attempt(lambda: add_author(self._repo(), author))
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"add_author returned status {status}"

    def _ndx_search(self, params: list[str]) -> Outcome:
        expected = _expect(params[1])
        book_id = int(params[0])
        book, code = _attempt(lambda: search_book(self._repo(), book_id))
        status = _flag(code)
        if status != expected:
            return False, f"search key: {book_id}; Got status {status}"
        if expected == _SUCCESS:
            want = Book(book_id, f"Name-of-{book_id}", f"ISBN-of-{book_id}")
            if book != want:
                return False, (
                    f"Book data not matching... Expected:{{{want.book_id},{want.name},{want.isbn}}} "
                    f"Got:{{{book.book_id},{book.name},{book.isbn}}}"
                )
        return True, ""

    def _search_linked(self, params: list[str]) -> Outcome:
        expected = _FAILURE if params[1] == "-1" else _SUCCESS
        author_id = int(params[0])
        expected_io = int(params[1])
        found, code = _attempt(lambda: search_author(self._repo(), author_id))
        if code != _SUCCESS:
            return False, f"search key: {author_id}; Got status {code}"
        author, io_count = found
        if io_count != expected_io:
            return False, (
                f"Num I/O not matching for author {author_id}... "
                f"Expected:{expected_io} Got:{io_count}"
            )
        if expected == _SUCCESS:
            want = Author(author_id, f"Author-of-{author_id}", f"Email-of-{author_id}")
            if author != want:
                return False, (
                    f"Author data not matching... Expected:{{{want.author_id},{want.name},{want.email}}} "
                    f"Got:{{{author.author_id},{author.name},{author.email}}}"
                )
        return True, ""

    def _linked_keys(self, parent_key: int) -> tuple[list[int] | None, int]:
        try:
            return self._repo().get_linked_keys(parent_key), _SUCCESS
        except RecordNotFoundError:
            return None, _MISSING
        except PDSError as exc:
            return None, exc.code

    def _search_linked_by_parent(self, params: list[str]) -> Outcome | None:
        parent_key = int(params[0])
        expected_size = int(params[1])
        if expected_size <= 0:
            return None
        expected_keys = [int(token) for token in params[2:2 + expected_size]]
        if len(expected_keys) != expected_size:
            raise ValueError(f"expected {expected_size} linked keys")
        keys, status = self._linked_keys(parent_key)
        if status != _SUCCESS:
            return False, (
                f"Fetching linked records failed for parent key {parent_key}. "
                f"Expected status {_SUCCESS}, Got status {status}"
            )
        if len(keys) != expected_size:
            return False, (
                f"Fetching linked records failed for parent key {parent_key}. "
                f"Expected size {expected_size}, Got size {len(keys)}"
            )
        for key in expected_keys:
            if key not in keys:
                return False, f"Expected key {key} not found in linked keys"
        for key in keys:
            if key not in expected_keys:
                return False, f"Linked key {key} not found in expected keys"
        return True, ""

    def _link(self, params: list[str]) -> Outcome:
        parent_key = int(params[0])
        child_key = int(params[1])
        expected = int(params[2])
        try:
            self._repo().link(parent_key, child_key)
            status = _SUCCESS
        except (LinkExistsError, RepoNotOpenError) as exc:
            status = exc.code
        except PDSError:
            status = _MISSING
        if status == expected:
            return True, ""
        return False, (
            f"Parent key: {parent_key}, Child key: {child_key} could not be linked. "
            f"Expected status : {expected}, Got status : {status}"
        )

    def _non_ndx_search(self, params: list[str]) -> Outcome:
        isbn = params[0]
        expected = _FAILURE if params[1] == "-1" else _SUCCESS
        expected_io = int(params[1])
        found, code = _attempt(lambda: search_book_by_isbn(self._repo(), isbn))
        status = _flag(code)
        if status != expected:
            return False, f"search key: {isbn}; Got status {status}"
        if expected == _SUCCESS:
            book, io_count = found
            match = _LEADING_INT.match(isbn[_ISBN_PREFIX_LEN:])
            book_id = int(match.group(1)) if match else _MISSING
            want = Book(book_id, f"Name-of-{book_id}", f"ISBN-of-{book_id}")
            if book != want:
                return False, (
                    f"Book data not matching... Expected:{{{want.book_id},{want.name},{want.isbn}}} "
                    f"Got:{{{book.book_id},{book.name},{book.isbn}}}"
                )
            if io_count != expected_io:
                return False, (
                    f"Num I/O not matching for book {book_id}... "
                    f"Expected:{expected_io} Got:{io_count}"
                )
        return True, ""

    def _ndx_delete(self, params: list[str]) -> Outcome:
        expected = _expect(params[1])
        book_id = int(params[0])
        _, code = _attempt(lambda: delete_book(self._repo(), book_id))
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"delete key: {book_id}; Got status {status}"

    def _close(self, params: list[str]) -> Outcome:
        expected = _expect(params[0])
        _, code = _attempt(lambda: self._repo().close())
        status = _flag(code)
        if status == expected:
            return True, ""
        return False, f"pds_close returned status {status}"

    def run(self, lines: Iterable[str], write: Callable[[str], object]) -> list[CaseResult]:
        """Run every non-blank line, writing a numbered report for each."""
        results = []
        number = 0
        for line in lines:
            if not line.strip():
                continue
            number += 1
            write(f"Test case:{number}\n")
            result = self.process_line(line)
            if result is None:
                continue
            write(f"Test case: {line}")
            if result.passed is not None:
                verdict = "PASS" if result.passed else "FAIL"
                write(f"Status: {verdict} - {result.info}\n\n")
            results.append(result)
        return results


def main(argv=None) -> int:
    """Run the test cases in the file named on the command line."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 1:
        prog = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "pdstore-tester"
        print(f"Usage: {prog} testcasefile", file=sys.stderr)
        return 1

    def write(text: str) -> None:
        sys.stdout.write(text)
        sys.stdout.flush()

    runner = TestCaseRunner()
    try:
        with open(args[0], encoding="utf-8") as fp:
            runner.run(fp, write)
    except OSError as exc:
        print(f"cannot read {args[0]}: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())