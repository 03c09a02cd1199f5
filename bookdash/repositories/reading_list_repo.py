"""
repositories/reading_list_repo.py
-----------------------------
Data access layer for reading list entries. Each entry embeds its book.
"""

import logging
import sqlite3
from typing import List, Optional

from bookdash.database import get_db_connection
from bookdash.errors import DuplicateEntryError
from bookdash.models import Book, ReadingListEntry, utc_now_iso

logger = logging.getLogger(__name__)

_SELECT_ENTRY = """
    SELECT rl.reading_list_id, rl.user_id, rl.book_id AS entry_book_id, rl.status, rl.added_at,
           b.book_id, b.title, b.author_id, b.genre_id, b.publish_year, b.description, b.image_url,
           a.name AS author_name, g.genre_name AS genre_name
    FROM reading_lists rl
    LEFT JOIN books b ON b.book_id = rl.book_id
    LEFT JOIN authors a ON a.author_id = b.author_id
    LEFT JOIN genres g ON g.genre_id = b.genre_id
"""


def _entry_from_row(row: sqlite3.Row) -> ReadingListEntry:
    return ReadingListEntry(
        reading_list_id=row["reading_list_id"],
        user_id=row["user_id"],
        book_id=row["entry_book_id"],
        status=row["status"],
        added_at=row["added_at"],
        book=Book.from_row(row) if row["book_id"] is not None else None,
    )


class ReadingListRepository:
    """Repository for CRUD operations on the reading_lists table."""

    def get_all(self) -> List[ReadingListEntry]:
        conn = get_db_connection()
        try:
            rows = conn.execute(_SELECT_ENTRY + " ORDER BY rl.reading_list_id").fetchall()
            return [_entry_from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, reading_list_id: int) -> Optional[ReadingListEntry]:
        conn = get_db_connection()
        try:
            row = conn.execute(_SELECT_ENTRY + " WHERE rl.reading_list_id = ?", (reading_list_id,)).fetchone()
            return _entry_from_row(row) if row else None
        finally:
            conn.close()

    def get_by_user(self, user_id: str) -> List[ReadingListEntry]:
        conn = get_db_connection()
        try:
            rows = conn.execute(
                _SELECT_ENTRY + " WHERE rl.user_id = ? ORDER BY rl.added_at DESC, rl.reading_list_id DESC",
                (user_id,),
            ).fetchall()
            return [_entry_from_row(r) for r in rows]
        finally:
            conn.close()

    def exists_for_user_and_book(
        self, user_id: Optional[str], book_id: int, exclude_id: Optional[int] = None
    ) -> bool:
        sql = "SELECT 1 FROM reading_lists WHERE user_id IS ? AND book_id = ?"
        params: list = [user_id, book_id]
        if exclude_id is not None:
            sql += " AND reading_list_id != ?"
            params.append(exclude_id)
        conn = get_db_connection()
        try:
            return conn.execute(sql + " LIMIT 1", params).fetchone() is not None
        finally:
            conn.close()

    def create(self, user_id: Optional[str], book_id: int, status: str) -> ReadingListEntry:
        if self.exists_for_user_and_book(user_id, book_id):
            raise DuplicateEntryError(f"Book {book_id} is already in the reading list.")
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO reading_lists (user_id, book_id, status, added_at) VALUES (?, ?, ?, ?)",
                (user_id, book_id, status, utc_now_iso()),
            )
            conn.commit()
            entry_id = cursor.lastrowid
            logger.info(f"Added book {book_id} to reading list of user {user_id} ({status})")
        finally:
            conn.close()
        return self.get_by_id(entry_id)

    def update(self, reading_list_id: int, book_id: int, status: str) -> Optional[ReadingListEntry]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE reading_lists SET book_id = ?, status = ? WHERE reading_list_id = ?",
                (book_id, status, reading_list_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated reading list entry {reading_list_id} to {status}")
        finally:
            conn.close()
        return self.get_by_id(reading_list_id)

    def delete(self, reading_list_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM reading_lists WHERE reading_list_id = ?", (reading_list_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted reading list entry {reading_list_id}")
            return deleted
        finally:
            conn.close()
