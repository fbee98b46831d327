import pytest

from pdstore.author import Author
from pdstore.book import (
    Book,
    add_book,
    delete_book,
    format_book,
    match_book_isbn,
    search_book,
    search_book_by_isbn,
    store_books,
)
from pdstore.repository import (
    AddFailedError,
    DeleteFailedError,
    RecordNotFoundError,
    Repository,
    create_repository,
)


@pytest.fixture
def repo(tmp_path):
    base = tmp_path / "books"
    linked = tmp_path / "authors"
    create_repository(base, linked)
    with Repository(base, linked, Book.SIZE, Author.SIZE) as repository:
        yield repository


def make_book(book_id):
    return Book(book_id, f"Name-of-{book_id}", f"ISBN-of-{book_id}")


def test_pack_unpack_round_trip():
    book = make_book(7)
    assert Book.unpack(book.pack()) == book


def test_pack_size_matches_record_size():
    assert len(make_book(1).pack()) == Book.SIZE == 64


def test_pack_rejects_long_name():
    with pytest.raises(ValueError):
        Book(1, "x" * 30, "isbn").pack()


def test_format_book():
    assert format_book(make_book(3)) == "3,Name-of-3,ISBN-of-3"


def test_add_and_search(repo):
    for book_id in (10, 5, 20):
        add_book(repo, make_book(book_id))
    assert search_book(repo, 5) == make_book(5)
    assert search_book(repo, 20) == make_book(20)


def test_add_duplicate_fails(repo):
    add_book(repo, make_book(1))
    with pytest.raises(AddFailedError):
        add_book(repo, make_book(1))


def test_search_missing(repo):
    with pytest.raises(RecordNotFoundError):
        search_book(repo, 99)


def test_search_by_isbn_counts_reads(repo):
    for book_id in (1, 2, 3):
        add_book(repo, make_book(book_id))
    book, io_count = search_book_by_isbn(repo, "ISBN-of-3")
    assert book == make_book(3)
    assert io_count == 3


def test_search_by_isbn_missing(repo):
    add_book(repo, make_book(1))
    with pytest.raises(RecordNotFoundError):
        search_book_by_isbn(repo, "ISBN-of-2")


def test_delete_then_search(repo):
    add_book(repo, make_book(4))
    delete_book(repo, 4)
    with pytest.raises(RecordNotFoundError):
        search_book(repo, 4)
    with pytest.raises(RecordNotFoundError):
        search_book_by_isbn(repo, "ISBN-of-4")
    with pytest.raises(DeleteFailedError):
        delete_book(repo, 4)


def test_readd_after_delete(repo):
    add_book(repo, make_book(4))
    delete_book(repo, 4)
    replacement = Book(4, "Other", "ISBN-other")
    add_book(repo, replacement)
    assert search_book(repo, 4) == replacement


def test_match_book_isbn():
    rec = make_book(2).pack()
    assert match_book_isbn(rec, "ISBN-of-2") is True
    assert match_book_isbn(rec, "ISBN-of-3") is False
    assert match_book_isbn(make_book(2), "ISBN-of-2") is True


def test_match_book_isbn_requires_values():
    with pytest.raises(ValueError):
        match_book_isbn(None, "ISBN-of-2")


def test_store_books(repo, tmp_path, capsys):
    data = tmp_path / "books.txt"
    data.write_text("1 Name-of-1 ISBN-of-1\n\n2 Name-of-2 ISBN-of-2\n1 Again ISBN-x\n")
    stored = store_books(repo, data)
    assert stored == [make_book(1), make_book(2)]
    captured = capsys.readouterr()
    assert captured.out.splitlines() == [
        "1,Name-of-1,ISBN-of-1",
        "2,Name-of-2,ISBN-of-2",
        "1,Again,ISBN-x",
    ]
    assert "Unable to add book with key 1" in captured.err
    assert search_book(repo, 1) == make_book(1)