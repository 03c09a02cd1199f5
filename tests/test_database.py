import sqlite3

import pytest

from bookdash import database


def test_create_tables_is_idempotent(db_file):
    database.create_tables()
    database.create_tables()

    conn = database.get_db_connection()
    try:
        tables = {r["name"] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}
    finally:
        conn.close()

    for table in ("authors", "genres", "books", "users", "roles", "user_roles", "role_claims",
                  "reviews", "comments", "reading_lists", "reading_goals"):
        assert table in tables


def test_reading_goal_unique_index_exists(db_file):
    conn = database.get_db_connection()
    try:
        row = conn.execute(
            "SELECT sql FROM sqlite_master WHERE type = 'index' AND name = ?",
            (database.READING_GOAL_UNIQUE_INDEX,),
        ).fetchone()
    finally:
        conn.close()
    assert row is not None
    assert "UNIQUE" in row["sql"].upper()


def test_foreign_keys_are_enforced(db_file):
    conn = database.get_db_connection()
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute("INSERT INTO books (title, author_id, genre_id) VALUES ('Orphan', 999, 999)")
    finally:
        conn.close()


def test_rating_check_constraint(book):
    conn = database.get_db_connection()
    try:
        with pytest.raises(sqlite3.IntegrityError):
            conn.execute(
                "INSERT INTO reviews (book_id, rating, created_at) VALUES (?, 6, '2024-01-01T00:00:00+00:00')",
                (book.book_id,),
            )
    finally:
        conn.close()
