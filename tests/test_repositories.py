from datetime import datetime, timezone

import pytest

from bookdash.errors import DuplicateEntryError, EntityInUseError
from bookdash.repositories import (
    AuthorRepository,
    BookRepository,
    GenreRepository,
    ReadingGoalRepository,
    ReadingListRepository,
    ReviewRepository,
    RoleClaimRepository,
    RoleRepository,
    UserRepository,
)
from bookdash.repositories.book_repo import parse_sort
from bookdash.security import hash_password

NEXT_YEAR = datetime.now(timezone.utc).year + 1


@pytest.fixture
def reader(db_file):
    return UserRepository().create("reader", "reader@example.com", hash_password("Passw0rd!"))


@pytest.fixture
def catalog(author, genre):
    books = BookRepository()
    other_genre = GenreRepository().create("Fantasy")
    return [
        books.create("The Left Hand of Darkness", author.author_id, genre.genre_id, 1969),
        books.create("A Wizard of Earthsea", author.author_id, other_genre.genre_id, 1968),
        books.create("The Lathe of Heaven", author.author_id, genre.genre_id, 1971),
    ]


def test_parse_sort():
    assert parse_sort("title:asc") == "b.title COLLATE NOCASE ASC"
    assert parse_sort("publishYear:desc") == "b.publish_year DESC"
    assert parse_sort("BOOKID") == "b.book_id ASC"
    assert parse_sort("isbn:asc") is None
    assert parse_sort(None) is None


def test_book_get_includes_author_and_genre_names(book):
    stored = BookRepository().get_by_id(book.book_id)
    assert stored.title == "The Dispossessed"
    assert stored.author_name == "Ursula K. Le Guin"
    assert stored.genre_name == "Science Fiction"


def test_paged_search_and_sort(catalog):
    repo = BookRepository()
    items, total = repo.get_paged(1, 2, sort="publishYear:asc")
    assert total == 3
    assert [b.publish_year for b in items] == [1968, 1969]

    items, total = repo.get_paged(1, 10, search="fantasy")
    assert total == 1
    assert items[0].title == "A Wizard of Earthsea"


def test_paged_ignores_unknown_sort(catalog):
    items, _ = BookRepository().get_paged(1, 10, sort="isbn:desc")
    assert [b.book_id for b in items] == sorted(b.book_id for b in catalog)


def test_discover_filters_by_genre_and_rating(catalog, reader):
    reviews = ReviewRepository()
    reviews.create(reader.id, catalog[0].book_id, 5)
    reviews.create(reader.id, catalog[1].book_id, 2)

    repo = BookRepository()
    items, total = repo.discover(1, 10, sort="rating")
    assert total == 3
    assert items[0].book_id == catalog[0].book_id
    assert items[0].average_rating == 5
    assert items[0].review_count == 1

    items, total = repo.discover(1, 10, min_rating=3)
    assert total == 1
    assert items[0].book_id == catalog[0].book_id

    items, total = repo.discover(1, 10, genre_ids=[catalog[1].genre_id])
    assert [b.book_id for b in items] == [catalog[1].book_id]


def test_delete_author_with_books_raises(book, author):
    with pytest.raises(EntityInUseError):
        AuthorRepository().delete(author.author_id)


def test_delete_genre_with_books_raises(book, genre):
    with pytest.raises(EntityInUseError):
        GenreRepository().delete(genre.genre_id)


def test_upsert_rating_creates_then_updates(book, reader):
    reviews = ReviewRepository()
    first = reviews.upsert_rating(reader.id, book.book_id, 3)
    second = reviews.upsert_rating(reader.id, book.book_id, 5)
    assert first.review_id == second.review_id
    assert reviews.find_for_user_and_book(reader.id, book.book_id).rating == 5


def test_reading_list_rejects_duplicate_book(book, reader):
    repo = ReadingListRepository()
    entry = repo.create(reader.id, book.book_id, "Reading")
    assert entry.book.title == "The Dispossessed"
    with pytest.raises(DuplicateEntryError):
        repo.create(reader.id, book.book_id, "Completed")


def test_reading_goal_unique_index_maps_to_duplicate(book, reader):
    repo = ReadingGoalRepository()
    goal = repo.create(reader.id, book.book_id, NEXT_YEAR, 50, 10)
    assert goal.book.book_id == book.book_id
    with pytest.raises(DuplicateEntryError):
        repo.create(reader.id, book.book_id, NEXT_YEAR, 80, 0)
    assert repo.exists_for_user_year_book(reader.id, NEXT_YEAR, book.book_id)
    assert not repo.exists_for_user_year_book(reader.id, NEXT_YEAR, book.book_id, exclude_id=goal.id)


def test_user_lookup_is_case_insensitive(reader):
    users = UserRepository()
    assert users.get_by_username("READER").id == reader.id
    assert users.find_by_login("Reader@Example.com").id == reader.id
    with pytest.raises(DuplicateEntryError):
        users.create("Reader", "another@example.com", "hash")


def test_role_resolution_and_membership(reader):
    roles = RoleRepository()
    editor = roles.create("Editor")
    assert editor.normalized_name == "EDITOR"
    assert roles.resolve(editor.id).id == editor.id
    assert roles.resolve("Editor").id == editor.id
    assert roles.resolve("editor").id == editor.id
    with pytest.raises(DuplicateEntryError):
        roles.create("EDITOR")

    users = UserRepository()
    users.add_to_role(reader.id, editor.id)
    assert users.get_roles(reader.id) == ["Editor"]
    assert roles.is_in_use(editor.id)

    viewer = roles.create("Viewer")
    users.set_single_role(reader.id, viewer.id)
    assert users.get_by_id(reader.id).roles == ["Viewer"]


def test_role_claims_are_ordered(db_file):
    role = RoleRepository().create("Librarian")
    claims = RoleClaimRepository()
    claims.create(role.id, "permission", "books.write")
    claims.create(role.id, "permission", "books.read")
    claims.create(role.id, "department", "archive")
    assert [(c.claim_type, c.claim_value) for c in claims.get_by_role(role.id)] == [
        ("department", "archive"),
        ("permission", "books.read"),
        ("permission", "books.write"),
    ]
