"""Conversions from stored models to the DTOs the routers return."""

import math
from typing import Annotated, Optional

from fastapi import Path, Request

from bookdash.models import Book, Comment, ReadingGoal, ReadingListEntry, Review
from bookdash.schemas import (
    SQLITE_MAX_INT,
    SQLITE_MIN_INT,
    BookDiscoverRead,
    BookRead,
    CommentRead,
    PagedResult,
    ReadingGoalRead,
    ReadingListRead,
    ReviewRead,
)
from bookdash.services.image_service import build_public_image_url

MAX_PAGE_SIZE = 100
# Largest page whose row offset still fits an SQLite integer.
MAX_PAGE = SQLITE_MAX_INT // MAX_PAGE_SIZE

IdPath = Annotated[int, Path(ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT)]


def book_read(book: Optional[Book], request: Request) -> Optional[BookRead]:
    if book is None:
        return None
    return BookRead(
        book_id=book.book_id,
        title=book.title,
        author_id=book.author_id,
        genre_id=book.genre_id,
        publish_year=book.publish_year,
        description=book.description,
        image_url=build_public_image_url(book.image_url, str(request.base_url)),
        author_name=book.author_name,
        genre_name=book.genre_name,
    )


def book_discover_read(book: Book, request: Request) -> BookDiscoverRead:
    base = book_read(book, request)
    return BookDiscoverRead(
        **base.model_dump(),
        average_rating=round(float(book.average_rating or 0), 2),
        review_count=int(book.review_count or 0),
    )


def review_read(review: Review) -> ReviewRead:
    return ReviewRead(
        review_id=review.review_id,
        user_id=review.user_id,
        user_name=review.user_name,
        book_id=review.book_id,
        rating=review.rating,
        review_text=review.review_text,
        created_at=review.created_at,
    )


def comment_read(comment: Comment) -> CommentRead:
    return CommentRead(
        comment_id=comment.comment_id,
        review_id=comment.review_id,
        user_id=comment.user_id,
        user_name=comment.user_name,
        book_id=comment.book_id,
        book_title=comment.book_title,
        comment_text=comment.comment_text,
        created_at=comment.created_at,
    )


def reading_list_read(entry: ReadingListEntry, request: Request) -> ReadingListRead:
    return ReadingListRead(
        reading_list_id=entry.reading_list_id,
        user_id=entry.user_id,
        book_id=entry.book_id,
        status=entry.status,
        added_at=entry.added_at,
        book=book_read(entry.book, request),
    )


def reading_goal_read(goal: ReadingGoal, request: Request) -> ReadingGoalRead:
    return ReadingGoalRead(
        id=goal.id,
        user_id=goal.user_id,
        book_id=goal.book_id,
        year=goal.year,
        goal_percentage=goal.goal_percentage,
        progress=goal.progress,
        created_at=goal.created_at,
        book=book_read(goal.book, request),
    )


def clamp_paging(page: int, page_size: int):
    page = max(page, 1)
    page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
    return page, page_size


def paged(items: list, total: int, page: int, page_size: int) -> PagedResult:
    return PagedResult(
        items=items,
        total_items=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if page_size else 0,
    )
