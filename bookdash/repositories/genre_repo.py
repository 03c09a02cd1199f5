"""
repositories/genre_repo.py
-----------------------------
Data access layer for genres.
"""

import logging
import sqlite3
from typing import List, Optional

from bookdash.database import get_db_connection
from bookdash.errors import EntityInUseError
from bookdash.models import Genre

logger = logging.getLogger(__name__)


class GenreRepository:
    """Repository for CRUD operations on the genres table."""

    def get_all(self) -> List[Genre]:
        conn = get_db_connection()
        try:
            rows = conn.execute("SELECT genre_id, genre_name FROM genres ORDER BY genre_name").fetchall()
            return [Genre.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, genre_id: int) -> Optional[Genre]:
        conn = get_db_connection()
        try:
            row = conn.execute(
                "SELECT genre_id, genre_name FROM genres WHERE genre_id = ?", (genre_id,)
            ).fetchone()
            return Genre.from_row(row) if row else None
        finally:
            conn.close()

    def exists(self, genre_id: int) -> bool:
        return self.get_by_id(genre_id) is not None

    def create(self, genre_name: str) -> Genre:
        conn = get_db_connection()
        try:
            cursor = conn.execute("INSERT INTO genres (genre_name) VALUES (?)", (genre_name.strip(),))
            conn.commit()
            logger.info(f"Created genre {cursor.lastrowid} ({genre_name})")
            return Genre(genre_id=cursor.lastrowid, genre_name=genre_name.strip())
        finally:
            conn.close()

    def update(self, genre_id: int, genre_name: str) -> Optional[Genre]:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "UPDATE genres SET genre_name = ? WHERE genre_id = ?", (genre_name.strip(), genre_id)
            )
            conn.commit()
            if cursor.rowcount == 0:
                return None
            logger.info(f"Updated genre {genre_id}")
            return Genre(genre_id=genre_id, genre_name=genre_name.strip())
        finally:
            conn.close()

    def is_in_use(self, genre_id: int) -> bool:
        conn = get_db_connection()
        try:
            row = conn.execute("SELECT 1 FROM books WHERE genre_id = ? LIMIT 1", (genre_id,)).fetchone()
            return row is not None
        finally:
            conn.close()

    def delete(self, genre_id: int) -> bool:
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM genres WHERE genre_id = ?", (genre_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted genre {genre_id}")
            return deleted
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to delete genre {genre_id}: {e}")
            raise EntityInUseError(f"Genre {genre_id} is referenced by existing books.") from e
        finally:
            conn.close()
