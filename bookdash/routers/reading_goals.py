"""Yearly reading goals.

A goal targets one book for a future year: ``goalPercentage`` is how much
of the book the reader means to finish (1-100) and ``progress`` how much
is done so far (0-100, never above the goal). A reader holds at most one
goal per book and year.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Request

from bookdash.errors import DuplicateEntryError, bad_request, conflict, forbidden, not_found
from bookdash.models import current_year
from bookdash.repositories import BookRepository, ReadingGoalRepository
from bookdash.routers.common import IdPath, reading_goal_read
from bookdash.schemas import ApiResponse, DeletedRead, ReadingGoalIn, ReadingGoalRead, ok
from bookdash.security import CurrentUser, get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ReadingGoal", tags=["ReadingGoal"])

goal_repo = ReadingGoalRepository()
book_repo = BookRepository()

DUPLICATE_MESSAGE = "You already have a goal for this book in this year."


def validate_goal_inputs(year: int, goal_percentage: int, progress: int) -> Optional[str]:
    """Return the first rule the inputs break, or None."""
    if year <= current_year():
        return "Goal year must be in the future."
    if goal_percentage < 1 or goal_percentage > 100:
        return "Goal percentage must be between 1% and 100%."
    if progress < 0 or progress > 100:
        return "Progress must be between 0% and 100%."
    if progress > goal_percentage:
        return "Progress cannot exceed the goal percentage."
    return None


def _create_goal(payload: ReadingGoalIn, user: CurrentUser, request: Request):
    if payload.book_id <= 0:
        raise bad_request("Please select a book for this goal.", "BOOK_REQUIRED")

    error = validate_goal_inputs(payload.year, payload.goal_percentage, payload.progress)
    if error:
        raise bad_request(error, "INVALID_GOAL")

    book = book_repo.get_by_id(payload.book_id)
    if book is None:
        raise bad_request("Book not found.", "BOOK_NOT_FOUND")

    if goal_repo.exists_for_user_year_book(user.user_id, payload.year, payload.book_id):
        raise conflict(DUPLICATE_MESSAGE, "GOAL_EXISTS")

    try:
        goal = goal_repo.create(
            user.user_id, payload.book_id, payload.year, payload.goal_percentage, payload.progress
        )
    except DuplicateEntryError as e:
        raise conflict(DUPLICATE_MESSAGE, "GOAL_EXISTS") from e

    return book, reading_goal_read(goal, request)


@router.post("/from-book", response_model=ApiResponse[ReadingGoalRead])
def create_goal_from_book(
    payload: ReadingGoalIn, request: Request, user: CurrentUser = Depends(get_current_user)
):
    book, goal = _create_goal(payload, user, request)
    return ok(goal, f"Goal created for '{book.title}'.")


@router.get("/user", response_model=ApiResponse[List[ReadingGoalRead]])
def list_my_goals(request: Request, user: CurrentUser = Depends(get_current_user)):
    goals = goal_repo.get_by_user(user.user_id)
    return ok([reading_goal_read(g, request) for g in goals], "User goals retrieved successfully")


@router.get("/user/{book_id}", response_model=ApiResponse[ReadingGoalRead])
def get_my_goal_for_book(book_id: IdPath, request: Request, user: CurrentUser = Depends(get_current_user)):
    goal = goal_repo.get_for_user_and_book(user.user_id, book_id)
    if goal is None:
        return ok(None, "No goal found for this book")
    return ok(reading_goal_read(goal, request), "Goal retrieved successfully")


@router.get("", response_model=ApiResponse[List[ReadingGoalRead]])
def list_goals(request: Request):
    return ok([reading_goal_read(g, request) for g in goal_repo.get_all()], "Goals loaded successfully.")


@router.get("/{goal_id}", response_model=ApiResponse[ReadingGoalRead])
def get_goal(goal_id: IdPath, request: Request):
    goal = goal_repo.get_by_id(goal_id)
    if goal is None:
        raise not_found("Goal not found.", "GOAL_NOT_FOUND")
    return ok(reading_goal_read(goal, request), "Goal loaded successfully.")


@router.post("", status_code=201, response_model=ApiResponse[ReadingGoalRead])
def create_goal(
    payload: ReadingGoalIn,
    request: Request,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    _, goal = _create_goal(payload, user, request)
    return ok(goal, "Goal created successfully.")


@router.put("/{goal_id}", response_model=ApiResponse[ReadingGoalRead])
def update_goal(
    goal_id: IdPath,
    payload: ReadingGoalIn,
    request: Request,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    existing = goal_repo.get_by_id(goal_id)
    if existing is None:
        raise not_found("Goal not found.", "GOAL_NOT_FOUND")
    if existing.user_id != user.user_id and not user.is_superadmin:
        raise forbidden("You can only modify your own goals.")

    error = validate_goal_inputs(payload.year, payload.goal_percentage, payload.progress)
    if error:
        raise bad_request(error, "INVALID_GOAL")

    # The book of a goal never changes on update.
    if goal_repo.exists_for_user_year_book(existing.user_id, payload.year, existing.book_id, exclude_id=goal_id):
        raise conflict(DUPLICATE_MESSAGE, "GOAL_EXISTS")

    try:
        goal = goal_repo.update(goal_id, existing.user_id, payload.year, payload.goal_percentage, payload.progress)
    except DuplicateEntryError as e:
        raise conflict(DUPLICATE_MESSAGE, "GOAL_EXISTS") from e
    return ok(reading_goal_read(goal, request), "Goal updated successfully.")


@router.delete("/{goal_id}", response_model=ApiResponse[DeletedRead])
def delete_goal(goal_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin", "User"))):
    goal = goal_repo.get_by_id(goal_id)
    if goal is None:
        raise not_found("Goal not found.", "GOAL_NOT_FOUND")
    if goal.user_id != user.user_id and not user.is_superadmin:
        raise forbidden("You can only delete your own goals.")
    goal_repo.delete(goal_id)
    return ok(DeletedRead(id=goal_id), "Goal deleted successfully.")
