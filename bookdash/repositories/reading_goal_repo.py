"""
repositories/reading_goal_repo.py
-----------------------------
Data access layer for yearly reading goals.

A user holds at most one goal per (year, book); the unique index on
reading_goals enforces it and violations surface as DuplicateEntryError.
"""

import logging
import sqlite3
from typing import List, Optional

from bookdash.database import READING_GOAL_UNIQUE_INDEX, get_db_connection
from bookdash.errors import DuplicateEntryError
from bookdash.models import Book, ReadingGoal, utc_now_iso

logger = logging.getLogger(__name__)

_SELECT_GOAL = """
    SELECT rg.id, rg.user_id, rg.book_id AS goal_book_id, rg.year, rg.goal_percentage, rg.progress,
           rg.created_at,
           b.book_id, b.title, b.author_id, b.genre_id, b.publish_year, b.description, b.image_url,
           a.name AS author_name, g.genre_name AS genre_name
    FROM reading_goals rg
    LEFT JOIN books b ON b.book_id = rg.book_id
    LEFT JOIN authors a ON a.author_id = b.author_id
    LEFT JOIN genres g ON g.genre_id = b.genre_id
"""


def _goal_from_row(row: sqlite3.Row) -> ReadingGoal:
    return ReadingGoal(
        id=row["id"],
        user_id=row["user_id"],
        book_id=row["goal_book_id"],
        year=row["year"],
        goal_percentage=row["goal_percentage"],
        progress=row["progress"],
        created_at=row["created_at"],
        book=Book.from_row(row) if row["book_id"] is not None else None,
    )


def is_duplicate_goal_error(error: sqlite3.IntegrityError) -> bool:
    message = str(error)
    return READING_GOAL_UNIQUE_INDEX in message or "UNIQUE" in message.upper()


class ReadingGoalRepository:
    """Repository for CRUD operations on the reading_goals table."""

    def get_all(self) -> List[ReadingGoal]:
        conn = get_db_connection()
        try:
            rows = conn.execute(_SELECT_GOAL + " ORDER BY rg.id").fetchall()
            return [_goal_from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, goal_id: int) -> Optional[ReadingGoal]:
        conn = get_db_connection()
        try:
            row = conn.execute(_SELECT_GOAL + " WHERE rg.id = ?", (goal_id,)).fetchone()
            return _goal_from_row(row) if row else None
        finally:
            conn.close()

    def get_by_user(self, user_id: str) -> List[ReadingGoal]:
        conn = get_db_connection()
        try:
            rows = conn.execute(
                _SELECT_GOAL + " WHERE rg.user_id = ? ORDER BY rg.year, rg.id", (user_id,)
            ).fetchall()
            return [_goal_from_row(r) for r in rows]
        finally:
            conn.close()

    def get_for_user_and_book(self, user_id: str, book_id: int) -> Optional[ReadingGoal]:
        conn = get_db_connection()
        try:
            row = conn.execute(
                _SELECT_GOAL + " WHERE rg.user_id = ? AND rg.book_id = ? ORDER BY rg.year, rg.id LIMIT 1",
                (user_id, book_id),
            ).fetchone()
            return _goal_from_row(row) if row else None
        finally:
            conn.close()

    def exists_for_user_year_book(
        self, user_id: Optional[str], year: int, book_id: int, exclude_id: Optional[int] = None
    ) -> bool:
        sql = "SELECT 1 FROM reading_goals WHERE user_id IS ? AND year = ? AND book_id = ?"
        params: list = [user_id, year, book_id]
        if exclude_id is not None:
            sql += " AND id != ?"
            params.append(exclude_id)
        conn = get_db_connection()
        try:
            return conn.execute(sql + " LIMIT 1", params).fetchone() is not None
        finally:
            conn.close()

    def create(
        self, user_id: Optional[str], book_id: int, year: int, goal_percentage: int, progress: int
    ) -> ReadingGoal:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO reading_goals (user_id, book_id, year, goal_percentage, progress, created_at) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (user_id, book_id, year, goal_percentage, progress, utc_now_iso()),
            )
            conn.commit()
            goal_id = cursor.lastrowid
            logger.info(f"Created goal {goal_id} for user {user_id}, book {book_id}, year {year}")
        except sqlite3.IntegrityError as e:
            if is_duplicate_goal_error(e):
                raise DuplicateEntryError("You already have a goal for this book in this year.") from e
            logger.error(f"Failed to create goal for user {user_id}, book {book_id}: {e}")
            raise
        finally:
            conn.close()
        return self.get_by_id(goal_id)

    def update(
        self, goal_id: int, user_id: Optional[str], year: int, goal_percentage: int, progress: int
    ) -> Optional[ReadingGoal]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE reading_goals SET user_id = ?, year = ?, goal_percentage = ?, progress = ? WHERE id = ?",
                (user_id, year, goal_percentage, progress, goal_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated goal {goal_id}")
        except sqlite3.IntegrityError as e:
            if is_duplicate_goal_error(e):
                raise DuplicateEntryError("You already have a goal for this book in this year.") from e
            logger.error(f"Failed to update goal {goal_id}: {e}")
            raise
        finally:
            conn.close()
        return self.get_by_id(goal_id)

    def delete(self, goal_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM reading_goals WHERE id = ?", (goal_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted goal {goal_id}")
            return deleted
        finally:
            conn.close()
