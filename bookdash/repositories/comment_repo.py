"""
repositories/comment_repo.py
-----------------------------
Data access layer for comments left on reviews.
"""

import logging
from typing import List, Optional

from bookdash.database import get_db_connection
from bookdash.models import Comment, utc_now_iso

logger = logging.getLogger(__name__)

_SELECT_COMMENT = """
    SELECT c.comment_id, c.review_id, c.user_id, c.comment_text, c.created_at,
           u.username AS user_name, r.book_id AS book_id, b.title AS book_title
    FROM comments c
    LEFT JOIN users u ON u.id = c.user_id
    LEFT JOIN reviews r ON r.review_id = c.review_id
    LEFT JOIN books b ON b.book_id = r.book_id
"""


class CommentRepository:
    """Repository for CRUD operations on the comments table."""

    def get_all(self) -> List[Comment]:
        conn = get_db_connection()
        try:
            rows = conn.execute(_SELECT_COMMENT + " ORDER BY c.created_at DESC, c.comment_id DESC").fetchall()
            return [Comment.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, comment_id: int) -> Optional[Comment]:
        conn = get_db_connection()
        try:
            row = conn.execute(_SELECT_COMMENT + " WHERE c.comment_id = ?", (comment_id,)).fetchone()
            return Comment.from_row(row) if row else None
        finally:
            conn.close()

    def get_by_user(self, user_id: str) -> List[Comment]:
        """All comments written by one user, newest first."""
        conn = get_db_connection()
        try:
            rows = conn.execute(
                _SELECT_COMMENT + " WHERE c.user_id = ? ORDER BY c.created_at DESC, c.comment_id DESC",
                (user_id,),
            ).fetchall()
            return [Comment.from_row(r) for r in rows]
        finally:
            conn.close()

    def create(self, review_id: int, user_id: Optional[str], comment_text: str) -> Comment:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO comments (review_id, user_id, comment_text, created_at) VALUES (?, ?, ?, ?)",
                (review_id, user_id, comment_text, utc_now_iso()),
            )
            conn.commit()
            comment_id = cursor.lastrowid
            logger.info(f"Created comment {comment_id} on review {review_id}")
        finally:
            conn.close()
        return self.get_by_id(comment_id)

    def update(self, comment_id: int, comment_text: str) -> Optional[Comment]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE comments SET comment_text = ? WHERE comment_id = ?", (comment_text, comment_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated comment {comment_id}")
        finally:
            conn.close()
        return self.get_by_id(comment_id)

    def delete(self, comment_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM comments WHERE comment_id = ?", (comment_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted comment {comment_id}")
            return deleted
        finally:
            conn.close()
