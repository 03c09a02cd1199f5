"""
repositories/author_repo.py
-----------------------------
Data access layer for authors.
"""

import logging
import sqlite3
from typing import List, Optional

from bookdash.database import get_db_connection
from bookdash.errors import EntityInUseError
from bookdash.models import Author

logger = logging.getLogger(__name__)


class AuthorRepository:
    """Repository for CRUD operations on the authors table."""

    def get_all(self) -> List[Author]:
        conn = get_db_connection()
        try:
            rows = conn.execute("SELECT author_id, name, bio FROM authors ORDER BY name").fetchall()
            return [Author.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, author_id: int) -> Optional[Author]:
        conn = get_db_connection()
        try:
            row = conn.execute(
                "SELECT author_id, name, bio FROM authors WHERE author_id = ?", (author_id,)
            ).fetchone()
            return Author.from_row(row) if row else None
        finally:
            conn.close()

    def exists(self, author_id: int) -> bool:
        return self.get_by_id(author_id) is not None

    def create(self, name: str, bio: Optional[str] = None) -> Author:
        conn = get_db_connection()
        try:
            cursor = conn.execute("INSERT INTO authors (name, bio) VALUES (?, ?)", (name.strip(), bio))
            conn.commit()
            logger.info(f"Created author {cursor.lastrowid} ({name})")
            return Author(author_id=cursor.lastrowid, name=name.strip(), bio=bio)
        finally:
            conn.close()

    def update(self, author_id: int, name: str, bio: Optional[str] = None) -> Optional[Author]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE authors SET name = ?, bio = ? WHERE author_id = ?", (name.strip(), bio, author_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated author {author_id}")
            return Author(author_id=author_id, name=name.strip(), bio=bio)
        finally:
            conn.close()

    def is_in_use(self, author_id: int) -> bool:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT 1 FROM books WHERE author_id = ? LIMIT 1", (author_id,)).fetchone()
            return row is not None
        finally:
            conn.close()

    def delete(self, author_id: int) -> bool:
        """Delete an author. Raises EntityInUseError while books still reference it."""
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM authors WHERE author_id = ?", (author_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted author {author_id}")
            return deleted
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to delete author {author_id}: {e}")
            raise EntityInUseError(f"Author {author_id} is referenced by existing books.") from e
        finally:
            conn.close()
