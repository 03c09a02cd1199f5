import logging
from typing import List

from fastapi import APIRouter, Depends, Query

from bookdash.errors import bad_request, forbidden, not_found
from bookdash.repositories import BookRepository, ReviewRepository
from bookdash.routers.common import IdPath, review_read
from bookdash.schemas import (
    SQLITE_MAX_INT,
    SQLITE_MIN_INT,
    ApiResponse,
    DeletedRead,
    RateBook,
    ReviewCreate,
    ReviewRead,
    ReviewUpdate,
    UserRating,
    ok,
)
from bookdash.security import CurrentUser, get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Review", tags=["Review"])

review_repo = ReviewRepository()
book_repo = BookRepository()

MIN_RATING = 1
MAX_RATING = 5


def _check_rating(rating: int) -> None:
    if rating < MIN_RATING or rating > MAX_RATING:
        raise bad_request(f"Rating must be between {MIN_RATING} and {MAX_RATING}.", "INVALID_RATING")


def _check_book(book_id: int) -> None:
    if not book_repo.exists(book_id):
        raise not_found("Book not found.", "BOOK_NOT_FOUND")


def _get_owned_review(review_id: int, user: CurrentUser):
    review = review_repo.get_by_id(review_id)
    if review is None:
        raise not_found("Review not found.", "REVIEW_NOT_FOUND")
    if review.user_id != user.user_id and not user.is_superadmin:
        logger.warning(f"User {user.username} tried to modify review {review_id} owned by {review.user_id}")
        raise forbidden("You can only modify your own reviews.")
    return review


@router.get("", response_model=ApiResponse[List[ReviewRead]])
def list_reviews():
    return ok([review_read(r) for r in review_repo.get_all()], "Reviews retrieved successfully.")


@router.get("/book/{book_id}", response_model=ApiResponse[List[ReviewRead]])
def list_reviews_for_book(book_id: IdPath):
    _check_book(book_id)
    return ok([review_read(r) for r in review_repo.get_by_book(book_id)])


@router.get("/user-rating", response_model=ApiResponse[UserRating])
def get_user_rating(
    book_id: int = Query(..., alias="bookId", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    user: CurrentUser = Depends(get_current_user),
):
    review = review_repo.find_for_user_and_book(user.user_id, book_id)
    return ok(UserRating(book_id=book_id, rating=review.rating if review else 0))


@router.post("/rate", response_model=ApiResponse[ReviewRead])
def rate_book(payload: RateBook, user: CurrentUser = Depends(get_current_user)):
    _check_rating(payload.rating)
    _check_book(payload.book_id)
    review = review_repo.upsert_rating(user.user_id, payload.book_id, payload.rating)
    return ok(review_read(review), "Rating saved successfully.")


@router.get("/{review_id}", response_model=ApiResponse[ReviewRead])
def get_review(review_id: IdPath):
    review = review_repo.get_by_id(review_id)
    if review is None:
        raise not_found("Review not found.", "REVIEW_NOT_FOUND")
    return ok(review_read(review))


@router.post("", status_code=201, response_model=ApiResponse[ReviewRead])
def create_review(
    payload: ReviewCreate, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User"))
):
    _check_rating(payload.rating)
    _check_book(payload.book_id)
    review = review_repo.create(user.user_id, payload.book_id, payload.rating, payload.review_text)
    return ok(review_read(review), "Review created successfully.")


@router.put("/{review_id}", response_model=ApiResponse[ReviewRead])
def update_review(
    review_id: IdPath,
    payload: ReviewUpdate,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    _get_owned_review(review_id, user)
    _check_rating(payload.rating)
    review = review_repo.update(review_id, payload.rating, payload.review_text)
    return ok(review_read(review), "Review updated successfully.")


@router.delete("/{review_id}", response_model=ApiResponse[DeletedRead])
def delete_review(review_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin", "User"))):
    _get_owned_review(review_id, user)
    review_repo.delete(review_id)
    return ok(DeletedRead(id=review_id), "Review deleted successfully.")
