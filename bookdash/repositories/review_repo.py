"""
repositories/review_repo.py
-----------------------------
Data access layer for book reviews and ratings.
"""

import logging
from typing import List, Optional

from bookdash.database import get_db_connection
from bookdash.models import Review, utc_now_iso

logger = logging.getLogger(__name__)

_SELECT_REVIEW = """
    SELECT r.review_id, r.user_id, r.book_id, r.rating, r.review_text, r.created_at,
           u.username AS user_name, b.title AS book_title
    FROM reviews r
    LEFT JOIN users u ON u.id = r.user_id
    LEFT JOIN books b ON b.book_id = r.book_id
"""


class ReviewRepository:
    """Repository for CRUD operations on the reviews table."""

    def get_all(self) -> List[Review]:
        conn = get_db_connection()
        try:
            rows = conn.execute(_SELECT_REVIEW + " ORDER BY r.created_at DESC, r.review_id DESC").fetchall()
            return [Review.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, review_id: int) -> Optional[Review]:
        conn = get_db_connection()
        try:
            row = conn.execute(_SELECT_REVIEW + " WHERE r.review_id = ?", (review_id,)).fetchone()
            return Review.from_row(row) if row else None
        finally:
            conn.close()

    def get_by_book(self, book_id: int) -> List[Review]:
        conn = get_db_connection()
        try:
            rows = conn.execute(
                _SELECT_REVIEW + " WHERE r.book_id = ? ORDER BY r.created_at DESC, r.review_id DESC",
                (book_id,),
            ).fetchall()
            return [Review.from_row(r) for r in rows]
        finally:
            conn.close()

    def exists_for_book(self, book_id: int) -> bool:
        conn = get_db_connection()
        try:
            return conn.execute("SELECT 1 FROM reviews WHERE book_id = ? LIMIT 1", (book_id,)).fetchone() is not None
        finally:
            conn.close()

    def find_for_user_and_book(self, user_id: str, book_id: int) -> Optional[Review]:
        """Latest review the user left on the book, if any."""
        conn = get_db_connection()
        try:
            row = conn.execute(
                _SELECT_REVIEW + " WHERE r.user_id = ? AND r.book_id = ? ORDER BY r.review_id DESC LIMIT 1",
                (user_id, book_id),
            ).fetchone()
            return Review.from_row(row) if row else None
        finally:
            conn.close()

    def create(self, user_id: Optional[str], book_id: int, rating: int, review_text: Optional[str] = None) -> Review:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO reviews (user_id, book_id, rating, review_text, created_at) VALUES (?, ?, ?, ?, ?)",
                (user_id, book_id, rating, review_text, utc_now_iso()),
            )
            conn.commit()
            review_id = cursor.lastrowid
            logger.info(f"Created review {review_id} for book {book_id} by user {user_id}")
        finally:
            conn.close()
        return self.get_by_id(review_id)

    def update(self, review_id: int, rating: int, review_text: Optional[str] = None) -> Optional[Review]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE reviews SET rating = ?, review_text = ? WHERE review_id = ?",
                (rating, review_text, review_id),
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated review {review_id}")
        finally:
            conn.close()
        return self.get_by_id(review_id)

    def upsert_rating(self, user_id: str, book_id: int, rating: int) -> Review:
        """Set the user's rating on a book, creating a review when they have none."""
        existing = self.find_for_user_and_book(user_id, book_id)
        if existing is None:
            return self.create(user_id, book_id, rating)
        conn = get_db_connection()
        try:
            conn.execute("UPDATE reviews SET rating = ? WHERE review_id = ?", (rating, existing.review_id))
            conn.commit()
            logger.info(f"Updated rating of review {existing.review_id} to {rating}")
        finally:
            conn.close()
        return self.get_by_id(existing.review_id)

    def delete(self, review_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM reviews WHERE review_id = ?", (review_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted review {review_id}")
            return deleted
        finally:
            conn.close()
