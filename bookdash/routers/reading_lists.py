import logging
from typing import List

from fastapi import APIRouter, Depends, Request

from bookdash.errors import DuplicateEntryError, bad_request, forbidden, not_found
from bookdash.models import READING_STATUSES
from bookdash.repositories import BookRepository, ReadingListRepository
from bookdash.routers.common import IdPath, reading_list_read
from bookdash.schemas import ApiResponse, DeletedRead, ReadingListIn, ReadingListRead, ok
from bookdash.security import CurrentUser, get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ReadingList", tags=["ReadingList"])

reading_list_repo = ReadingListRepository()
book_repo = BookRepository()

DUPLICATE_MESSAGE = "This book is already in your reading list."


def _check_status(status: str) -> None:
    if status not in READING_STATUSES:
        raise bad_request(
            f"Invalid status. Allowed values: {', '.join(READING_STATUSES)}.", "INVALID_STATUS"
        )


def _check_book(book_id: int) -> None:
    if not book_repo.exists(book_id):
        raise not_found("Book not found.", "BOOK_NOT_FOUND")


def _get_owned_entry(reading_list_id: int, user: CurrentUser):
    entry = reading_list_repo.get_by_id(reading_list_id)
    if entry is None:
        raise not_found("Reading list entry not found.", "READING_LIST_NOT_FOUND")
    if entry.user_id != user.user_id and not user.is_superadmin:
        raise forbidden("You can only modify your own reading list.")
    return entry


@router.get("", response_model=ApiResponse[List[ReadingListRead]])
def list_entries(request: Request):
    entries = reading_list_repo.get_all()
    return ok([reading_list_read(e, request) for e in entries], "Reading list retrieved successfully.")


@router.get("/user", response_model=ApiResponse[List[ReadingListRead]])
def list_my_entries(request: Request, user: CurrentUser = Depends(get_current_user)):
    entries = reading_list_repo.get_by_user(user.user_id)
    return ok([reading_list_read(e, request) for e in entries], "Reading list retrieved successfully.")


@router.get("/{reading_list_id}", response_model=ApiResponse[ReadingListRead])
def get_entry(reading_list_id: IdPath, request: Request):
    entry = reading_list_repo.get_by_id(reading_list_id)
    if entry is None:
        raise not_found("Reading list entry not found.", "READING_LIST_NOT_FOUND")
    return ok(reading_list_read(entry, request))


@router.post("", status_code=201, response_model=ApiResponse[ReadingListRead])
def create_entry(
    payload: ReadingListIn,
    request: Request,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    _check_status(payload.status)
    _check_book(payload.book_id)
    try:
        entry = reading_list_repo.create(user.user_id, payload.book_id, payload.status)
    except DuplicateEntryError as e:
        raise bad_request(DUPLICATE_MESSAGE, "BOOK_ALREADY_EXISTS") from e
    return ok(reading_list_read(entry, request), "Book added to reading list.")


@router.put("/{reading_list_id}", response_model=ApiResponse[ReadingListRead])
def update_entry(
    reading_list_id: IdPath,
    payload: ReadingListIn,
    request: Request,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    entry = _get_owned_entry(reading_list_id, user)
    _check_status(payload.status)
    _check_book(payload.book_id)
    if reading_list_repo.exists_for_user_and_book(entry.user_id, payload.book_id, exclude_id=reading_list_id):
        raise bad_request(DUPLICATE_MESSAGE, "BOOK_ALREADY_EXISTS")
    updated = reading_list_repo.update(reading_list_id, payload.book_id, payload.status)
    return ok(reading_list_read(updated, request), "Reading list updated successfully.")


@router.delete("/{reading_list_id}", response_model=ApiResponse[DeletedRead])
def delete_entry(reading_list_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin", "User"))):
    _get_owned_entry(reading_list_id, user)
    reading_list_repo.delete(reading_list_id)
    return ok(DeletedRead(id=reading_list_id), "Book removed from reading list.")
