"""Data access layer: one repository class per table."""

from bookdash.repositories.author_repo import AuthorRepository
from bookdash.repositories.book_repo import BookRepository
from bookdash.repositories.comment_repo import CommentRepository
from bookdash.repositories.genre_repo import GenreRepository
from bookdash.repositories.identity_repo import RoleClaimRepository, RoleRepository, UserRepository
from bookdash.repositories.reading_goal_repo import ReadingGoalRepository
from bookdash.repositories.reading_list_repo import ReadingListRepository
from bookdash.repositories.review_repo import ReviewRepository

__all__ = [
    "AuthorRepository",
    "BookRepository",
    "CommentRepository",
    "GenreRepository",
    "ReadingGoalRepository",
    "ReadingListRepository",
    "ReviewRepository",
    "RoleClaimRepository",
    "RoleRepository",
    "UserRepository",
]
