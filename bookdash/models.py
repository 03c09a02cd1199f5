from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

READING_STATUSES = ("NotStarted", "Reading", "Completed")


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def current_year() -> int:
    return datetime.now(timezone.utc).year


@dataclass
class Author:
    """An author of one or more books."""

    author_id: int
    name: str
    bio: Optional[str] = None

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Author":
        return Author(author_id=row["author_id"], name=row["name"], bio=row["bio"])


@dataclass
class Genre:
    genre_id: int
    genre_name: str

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Genre":
        return Genre(genre_id=row["genre_id"], genre_name=row["genre_name"])


@dataclass
class Book:
    """A book in the catalog, joined with its author and genre names."""

    book_id: int
    title: str
    author_id: int
    genre_id: int
    publish_year: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    author_name: Optional[str] = None
    genre_name: Optional[str] = None
    average_rating: Optional[float] = None
    review_count: Optional[int] = None

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Book":
        keys = row.keys()
        return Book(
            book_id=row["book_id"],
            title=row["title"],
            author_id=row["author_id"],
            genre_id=row["genre_id"],
            publish_year=row["publish_year"],
            description=row["description"],
            image_url=row["image_url"],
            author_name=row["author_name"] if "author_name" in keys else None,
            genre_name=row["genre_name"] if "genre_name" in keys else None,
            average_rating=row["average_rating"] if "average_rating" in keys else None,
            review_count=row["review_count"] if "review_count" in keys else None,
        )


@dataclass
class Review:
    review_id: int
    book_id: int
    rating: int
    user_id: Optional[str] = None
    review_text: Optional[str] = None
    created_at: Optional[str] = None
    user_name: Optional[str] = None
    book_title: Optional[str] = None

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Review":
        keys = row.keys()
        return Review(
            review_id=row["review_id"],
            book_id=row["book_id"],
            rating=row["rating"],
            user_id=row["user_id"],
            review_text=row["review_text"],
            created_at=row["created_at"],
            user_name=row["user_name"] if "user_name" in keys else None,
            book_title=row["book_title"] if "book_title" in keys else None,
        )


@dataclass
class Comment:
    comment_id: int
    review_id: int
    comment_text: str
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    user_name: Optional[str] = None
    # Filled for the "my comments" view
    book_id: Optional[int] = None
    book_title: Optional[str] = None

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Comment":
        keys = row.keys()
        return Comment(
            comment_id=row["comment_id"],
            review_id=row["review_id"],
            comment_text=row["comment_text"],
            user_id=row["user_id"],
            created_at=row["created_at"],
            user_name=row["user_name"] if "user_name" in keys else None,
            book_id=row["book_id"] if "book_id" in keys else None,
            book_title=row["book_title"] if "book_title" in keys else None,
        )


@dataclass
class ReadingListEntry:
    reading_list_id: int
    book_id: int
    status: str
    user_id: Optional[str] = None
    added_at: Optional[str] = None
    book: Optional[Book] = None


@dataclass
class ReadingGoal:
    id: int
    book_id: int
    year: int
    goal_percentage: int
    progress: int
    user_id: Optional[str] = None
    created_at: Optional[str] = None
    book: Optional[Book] = None


@dataclass
class User:
    id: str
    username: str
    password_hash: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    created_at: Optional[str] = None
    roles: List[str] = field(default_factory=list)

    @staticmethod
    def from_row(row: sqlite3.Row) -> "User":
        return User(
            id=row["id"],
            username=row["username"],
            password_hash=row["password_hash"],
            email=row["email"],
            full_name=row["full_name"],
            created_at=row["created_at"],
        )


@dataclass
class Role:
    id: str
    name: str
    normalized_name: str
    concurrency_stamp: Optional[str] = None

    @staticmethod
    def from_row(row: sqlite3.Row) -> "Role":
        return Role(
            id=row["id"],
            name=row["name"],
            normalized_name=row["normalized_name"],
            concurrency_stamp=row["concurrency_stamp"],
        )


@dataclass
class RoleClaim:
    id: int
    role_id: str
    claim_type: str
    claim_value: str

    @staticmethod
    def from_row(row: sqlite3.Row) -> "RoleClaim":
        return RoleClaim(
            id=row["id"],
            role_id=row["role_id"],
            claim_type=row["claim_type"],
            claim_value=row["claim_value"],
        )
