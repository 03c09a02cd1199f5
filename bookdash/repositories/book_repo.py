"""
repositories/book_repo.py
-----------------------------
Data access layer for books, including the paged and discover listings.
"""

import logging
import sqlite3
from typing import Iterable, List, Optional, Tuple

from bookdash.database import get_db_connection
from bookdash.errors import EntityInUseError
from bookdash.models import Book

logger = logging.getLogger(__name__)

_SELECT_BOOK = """
    SELECT b.book_id, b.title, b.author_id, b.genre_id, b.publish_year, b.description, b.image_url,
           a.name AS author_name, g.genre_name AS genre_name
    FROM books b
    LEFT JOIN authors a ON a.author_id = b.author_id
    LEFT JOIN genres g ON g.genre_id = b.genre_id
"""

_SELECT_DISCOVER = """
    SELECT b.book_id, b.title, b.author_id, b.genre_id, b.publish_year, b.description, b.image_url,
           a.name AS author_name, g.genre_name AS genre_name,
           COALESCE(AVG(r.rating), 0) AS average_rating,
           COUNT(r.review_id) AS review_count
    FROM books b
    LEFT JOIN authors a ON a.author_id = b.author_id
    LEFT JOIN genres g ON g.genre_id = b.genre_id
    LEFT JOIN reviews r ON r.book_id = b.book_id
"""

# Whitelisted ORDER BY columns for the paged listing.
SORT_COLUMNS = {
    "title": "b.title COLLATE NOCASE",
    "publishyear": "b.publish_year",
    "bookid": "b.book_id",
}

DISCOVER_ORDER = {
    "trending": "review_count DESC, average_rating DESC, b.book_id DESC",
    "rating": "average_rating DESC, review_count DESC, b.book_id DESC",
    "newest": "b.publish_year IS NULL, b.publish_year DESC, b.book_id DESC",
    "title": "b.title COLLATE NOCASE ASC",
}


def parse_sort(sort: Optional[str]) -> Optional[str]:
    """Translate ``field:direction`` into an ORDER BY clause, or None when the field is unknown."""
    if not sort:
        return None
    field, _, direction = sort.partition(":")
    column = SORT_COLUMNS.get(field.strip().lower())
    if column is None:
        return None
    direction = "DESC" if direction.strip().lower() == "desc" else "ASC"
    return f"{column} {direction}"


class BookRepository:
    """Repository for CRUD operations on the books table."""

    def get_all(self) -> List[Book]:
        conn = get_db_connection()
        try:
            rows = conn.execute(_SELECT_BOOK + " ORDER BY b.book_id").fetchall()
            return [Book.from_row(r) for r in rows]
        finally:
            conn.close()

    def get_by_id(self, book_id: int) -> Optional[Book]:
        conn = get_db_connection()
        try:
            row = conn.execute(_SELECT_BOOK + " WHERE b.book_id = ?", (book_id,)).fetchone()
            return Book.from_row(row) if row else None
        finally:
            conn.close()

    def exists(self, book_id: int) -> bool:
        conn = get_db_connection()
        try:
            return conn.execute("SELECT 1 FROM books WHERE book_id = ?", (book_id,)).fetchone() is not None
        finally:
            conn.close()

    def create(
        self,
        title: str,
        author_id: int,
        genre_id: int,
        publish_year: Optional[int] = None,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Book:
        conn = get_db_connection()
        try:
            cursor = conn.execute(
                "INSERT INTO books (title, author_id, genre_id, publish_year, description, image_url) "
                "VALUES (?, ?, ?, ?, ?, ?)",
                (title.strip(), author_id, genre_id, publish_year, description, image_url),
            )
            conn.commit()
            book_id = cursor.lastrowid
            logger.info(f"Created book {book_id} ({title})")
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to create book '{title}': {e}")
            raise ValueError("Author or genre does not exist.") from e
        finally:
            conn.close()
        return self.get_by_id(book_id)

    def update(self, book: Book) -> Book:
        conn = get_db_connection()
        try:
            conn.execute(
                "UPDATE books SET title = ?, author_id = ?, genre_id = ?, publish_year = ?, "
                "description = ?, image_url = ? WHERE book_id = ?",
                (
                    book.title.strip(),
                    book.author_id,
                    book.genre_id,
                    book.publish_year,
                    book.description,
                    book.image_url,
                    book.book_id,
                ),
            )
            conn.commit()
            logger.info(f"Updated book {book.book_id}")
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to update book {book.book_id}: {e}")
            raise ValueError("Author or genre does not exist.") from e
        finally:
            conn.close()
        return self.get_by_id(book.book_id)

    def delete(self, book_id: int) -> bool:
        """Delete a book. Raises EntityInUseError while other rows reference it."""
        conn = get_db_connection()
        try:
            cursor = conn.execute("DELETE FROM books WHERE book_id = ?", (book_id,))
            conn.commit()
            deleted = cursor.rowcount > 0
            if deleted:
                logger.info(f"Deleted book {book_id}")
            return deleted
        except sqlite3.IntegrityError as e:
            logger.error(f"Failed to delete book {book_id}: {e}")
            raise EntityInUseError(f"Book {book_id} is referenced by other records.") from e
        finally:
            conn.close()

    def get_paged(
        self, page: int, page_size: int, search: Optional[str] = None, sort: Optional[str] = None
    ) -> Tuple[List[Book], int]:
        """Return one page of books and the total number of matches.

        ``search`` matches the title, description, author name or genre name
        case-insensitively. ``sort`` is ``field:direction`` where field is one
        of title, publishYear or bookId; anything else falls back to book id.
        """
        where, params = self._search_clause(search)
        order_by = parse_sort(sort) or "b.book_id ASC"
        offset = (page - 1) * page_size
        conn = get_db_connection()
        try:
            total = conn.execute(
                "SELECT COUNT(*) FROM books b "
                "LEFT JOIN authors a ON a.author_id = b.author_id "
                "LEFT JOIN genres g ON g.genre_id = b.genre_id" + where,
                params,
            ).fetchone()[0]
            rows = conn.execute(
                _SELECT_BOOK + where + f" ORDER BY {order_by} LIMIT ? OFFSET ?",
                (*params, page_size, offset),
            ).fetchall()
            return [Book.from_row(r) for r in rows], total
        finally:
            conn.close()

    def discover(
        self,
        page: int,
        page_size: int,
        query: Optional[str] = None,
        genre_ids: Optional[Iterable[int]] = None,
        min_rating: float = 0,
        sort: str = "trending",
    ) -> Tuple[List[Book], int]:
        """Return one page of books with their rating statistics."""
        where, params = self._search_clause(query)
        genre_ids = list(genre_ids or [])
        if genre_ids:
            placeholders = ", ".join("?" for _ in genre_ids)
            where += (" AND" if where else " WHERE") + f" b.genre_id IN ({placeholders})"
            params = [*params, *genre_ids]

        having = ""
        having_params: list = []
        if min_rating and min_rating > 0:
            having = " HAVING COALESCE(AVG(r.rating), 0) >= ?"
            having_params.append(min_rating)

        order_by = DISCOVER_ORDER.get((sort or "trending").lower(), DISCOVER_ORDER["trending"])
        grouped = _SELECT_DISCOVER + where + " GROUP BY b.book_id" + having
        offset = (page - 1) * page_size

        conn = get_db_connection()
        try:
            total = conn.execute(
                f"SELECT COUNT(*) FROM ({grouped})", (*params, *having_params)
            ).fetchone()[0]
            rows = conn.execute(
                grouped + f" ORDER BY {order_by} LIMIT ? OFFSET ?",
                (*params, *having_params, page_size, offset),
            ).fetchall()
            return [Book.from_row(r) for r in rows], total
        finally:
            conn.close()

    @staticmethod
    def _search_clause(search: Optional[str]) -> Tuple[str, list]:
        if not search or not search.strip():
            return "", []
        term = f"%{search.strip().lower()}%"
        clause = (
            " WHERE (LOWER(b.title) LIKE ? OR LOWER(COALESCE(b.description, '')) LIKE ?"
            " OR LOWER(COALESCE(a.name, '')) LIKE ? OR LOWER(COALESCE(g.genre_name, '')) LIKE ?)"
        )
        return clause, [term, term, term, term]
