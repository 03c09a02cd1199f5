import logging
import os
import sqlite3

from bookdash.config import settings

logger = logging.getLogger(__name__)

# Default database file.
# Tests (and callers) may point the module at another file by assigning
# database.DATABASE_FILE before the first connection is opened.
DATABASE_FILE = settings.database_file

# Name of the unique index guarding (user, year, book) reading goals.
READING_GOAL_UNIQUE_INDEX = "ix_reading_goals_user_year_book"


def get_db_connection() -> sqlite3.Connection:
    """Opens a connection to the SQLite database with foreign keys enforced."""
    directory = os.path.dirname(os.path.abspath(DATABASE_FILE))
    if directory and not os.path.isdir(directory):
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(DATABASE_FILE)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def create_tables() -> None:
    """Creates the required tables and indexes when they do not exist yet."""
    conn = get_db_connection()
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS authors (
            author_id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            bio TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS genres (
            genre_id INTEGER PRIMARY KEY AUTOINCREMENT,
            genre_name TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS books (
            book_id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            author_id INTEGER NOT NULL,
            genre_id INTEGER NOT NULL,
            publish_year INTEGER,
            description TEXT,
            image_url TEXT,
            FOREIGN KEY (author_id) REFERENCES authors(author_id) ON DELETE RESTRICT,
            FOREIGN KEY (genre_id) REFERENCES genres(genre_id) ON DELETE RESTRICT
        )
    """)

    # Identity tables
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            username TEXT NOT NULL UNIQUE COLLATE NOCASE,
            email TEXT UNIQUE COLLATE NOCASE,
            full_name TEXT,
            password_hash TEXT NOT NULL,
            created_at TEXT NOT NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS roles (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            normalized_name TEXT NOT NULL UNIQUE,
            concurrency_stamp TEXT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS user_roles (
            user_id TEXT NOT NULL,
            role_id TEXT NOT NULL,
            PRIMARY KEY (user_id, role_id),
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (role_id) REFERENCES roles(id) ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS role_claims (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_id TEXT NOT NULL,
            claim_type TEXT NOT NULL,
            claim_value TEXT NOT NULL,
            FOREIGN KEY (role_id) REFERENCES roles(id) ON DELETE CASCADE
        )
    """)

    # Reader activity tables
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS reviews (
            review_id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT,
            book_id INTEGER NOT NULL,
            rating INTEGER NOT NULL CHECK(rating >= 1 AND rating <= 5),
            review_text TEXT,
            created_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL,
            FOREIGN KEY (book_id) REFERENCES books(book_id) ON DELETE CASCADE
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS comments (
            comment_id INTEGER PRIMARY KEY AUTOINCREMENT,
            review_id INTEGER NOT NULL,
            user_id TEXT,
            comment_text TEXT NOT NULL,
            created_at TEXT NOT NULL,
            FOREIGN KEY (review_id) REFERENCES reviews(review_id) ON DELETE CASCADE,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE SET NULL
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS reading_lists (
            reading_list_id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT,
            book_id INTEGER NOT NULL,
            status TEXT NOT NULL DEFAULT 'NotStarted',
            added_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (book_id) REFERENCES books(book_id) ON DELETE RESTRICT
        )
    """)

    cursor.execute("""
        CREATE TABLE IF NOT EXISTS reading_goals (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id TEXT,
            book_id INTEGER NOT NULL,
            year INTEGER NOT NULL,
            goal_percentage INTEGER NOT NULL,
            progress INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL,
            FOREIGN KEY (user_id) REFERENCES users(id) ON DELETE CASCADE,
            FOREIGN KEY (book_id) REFERENCES books(book_id) ON DELETE RESTRICT
        )
    """)

    # Lookup indexes
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_author_id ON books(author_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_genre_id ON books(genre_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_books_title ON books(title)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_reviews_book_id ON reviews(book_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_reviews_user_book ON reviews(user_id, book_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_comments_review_id ON comments(review_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_comments_user_id ON comments(user_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_reading_lists_user_book ON reading_lists(user_id, book_id)")
    cursor.execute("CREATE INDEX IF NOT EXISTS idx_role_claims_role_id ON role_claims(role_id)")
    cursor.execute(
        f"CREATE UNIQUE INDEX IF NOT EXISTS {READING_GOAL_UNIQUE_INDEX} "
        "ON reading_goals(user_id, year, book_id)"
    )

    conn.commit()
    conn.close()


def initialize_database() -> None:
    """Initializes the database, creating tables when needed."""
    create_tables()
    logger.info(f"Database ready at {DATABASE_FILE}")
