# pdstore

A small persistent data store. Fixed-size records are kept in a data file
and found by key through a binary search tree index, which is written to an
index file when the repository is closed. A repository may also have a
linked repository of child records, kept without an index, and a link file
that joins parent keys to child keys.

It needs nothing outside the Python standard library (Python 3.10 or later).

## Files on disk

For a repository named `books` with a linked repository named `authors`:

- `books.dat` holds the main records: the key, the record bytes, then a deleted flag
- `books.ndx` holds the record count and the index entries (key, offset,
  deleted flag), written in pre-order of the index tree
- `authors.dat` holds the linked records: the key, then the record bytes
- `books_link.dat` holds pairs of parent and child keys

All integers are little-endian 32-bit. Pass `None` or the string `"NULL"` as
the linked name to create or open a repository with no linked repository.

## Using the library

```python
from pdstore.repository import Repository, create_repository
from pdstore.book import Book, add_book, search_book, search_book_by_isbn, delete_book
from pdstore.author import Author, add_author, search_author

create_repository("books", "authors")
with Repository("books", "authors", Book.SIZE, Author.SIZE) as repo:
    add_book(repo, Book(1, "Name-of-1", "ISBN-of-1"))
    add_author(repo, Author(7, "Author-of-7", "author7@example.com"))
    repo.link(1, 7)

    book = search_book(repo, 1)                                  # through the index
    book, io_count = search_book_by_isbn(repo, "ISBN-of-1")      # linear scan
    author, io_count = search_author(repo, 7)                    # linear scan
    child_keys = repo.get_linked_keys(1)                         # [7]
    delete_book(repo, 1)
```

`Repository` opens the files when it is constructed; `close()` (or leaving
the `with` block) saves the index and closes every file. The lower-level
methods work on raw bytes: `put`, `get`, `delete`, `get_by_non_ndx_key`,
`put_linked`, `get_linked`, `link` and `get_linked_keys`. Records shorter
than the record size are padded with zero bytes; longer ones raise
`ValueError`.

`put` on the key of a deleted record overwrites it in place. A match on a
deleted record in `get_by_non_ndx_key` counts as not found.

Errors are subclasses of `pdstore.repository.PDSError`, each with a numeric
`code`: `PDSFileError`, `AddFailedError` for a key that is already stored,
`RecordNotFoundError` for a missing or deleted record, `DeleteFailedError`,
`LinkExistsError` when a link is added twice, and `RepoNotOpenError` once the
repository is closed.

`Book` and `Author` have `pack()` and `unpack()` for their 64-byte records
(an id and two text fields of under 30 bytes each). `format_book` and
`format_author` give a `id,name,field` line. `store_books` and
`store_authors` load records from a file of whitespace-separated
`id name field` lines, printing each one and reporting those that cannot be
added on standard error.

The index tree is available on its own as `pdstore.bst.BST`, with `add`,
`search`, `preorder`, `format_keys`, `clear`, `in` and `len()`; `add` raises
`DuplicateKeyError` when a key is added twice.

## Commands

Run the interactive linked-data demo. It creates a fresh repository (by
default `books` with linked repository `authors`, in the current directory,
overwriting any files of those names) holding ten books and ten authors,
then lets you link them and list the authors linked to a book:

```
pdstore-demo [repo_name] [linked_repo_name]
```

Run a file of test cases against a repository:

```
pdstore-tester testcases.in
```

Each non-blank line is one case:

- `CREATE <repo> <linked> <0|1>` and `OPEN <repo> <linked> <0|1>`
- `STORE <id> <0|1>` stores book `Name-of-<id>` / `ISBN-of-<id>`
- `STORE_LINKED <id> <0|1>` stores author `Author-of-<id>` / `Email-of-<id>`
- `NDX_SEARCH <id> <0|1>` and `NDX_DELETE <id> <0|1>`
- `NON_NDX_SEARCH <isbn> <reads|-1>` and `SEARCH_LINKED <id> <reads>`
- `LINK <parent> <child> <status>` where status is `0`, `16` (already
  linked), `14` (not open) or `-1` (a record is missing)
- `SEARCH_LINKED_BY_PARENT <parent> <count> <key>...`
- `CLOSE <0|1>`

The last field is the expected outcome: `0` for success, anything else for
failure, or the expected number of records read. Each case is reported as
`Status: PASS` or `Status: FAIL` with the reason. Unknown commands are echoed
without a status.

## Limits

- The index is saved only on `close()`; a process that ends without closing
  leaves the index file as it was when the repository was opened.
- Deleting a book marks only its main record deleted; its links and any
  linked records stay in place. `delete_author` marks the indexed record
  with that id deleted, not the author in the linked repository.
- Linked records have no index and cannot be deleted; lookups scan the file.
- There is no locking: one process should use a repository at a time.