import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile

from bookdash.errors import EntityInUseError, bad_request, not_found
from bookdash.models import current_year
from bookdash.repositories import AuthorRepository, BookRepository, GenreRepository, ReviewRepository
from bookdash.routers.common import MAX_PAGE, IdPath, book_discover_read, book_read, clamp_paging, paged
from bookdash.schemas import (
    SQLITE_MAX_INT,
    SQLITE_MIN_INT,
    ApiResponse,
    BookDiscoverRead,
    BookRead,
    DeletedRead,
    PagedResult,
    ok,
)
from bookdash.security import CurrentUser, require_roles
from bookdash.services.image_service import ImageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Books", tags=["Books"])

book_repo = BookRepository()
author_repo = AuthorRepository()
genre_repo = GenreRepository()
review_repo = ReviewRepository()


def get_image_service() -> ImageService:
    return ImageService()


def is_publish_year_in_future(publish_year: Optional[int]) -> bool:
    return publish_year is not None and publish_year > current_year()


def parse_genre_ids(genres: Optional[str]) -> List[int]:
    """Parse a comma separated id list such as ``"1,2"``, skipping anything that is not a storable id."""
    ids = []
    for token in (genres or "").split(","):
        token = token.strip()
        if token.isdecimal() and int(token) <= SQLITE_MAX_INT:
            ids.append(int(token))
    return ids


def _validate_book_form(author_id: int, genre_id: int, publish_year: Optional[int]) -> None:
    if is_publish_year_in_future(publish_year):
        raise bad_request("Publish year must be in the past.", "INVALID_PUBLISH_YEAR")
    if not author_repo.exists(author_id):
        raise bad_request("Selected author does not exist.", "AUTHOR_NOT_FOUND")
    if not genre_repo.exists(genre_id):
        raise bad_request("Selected genre does not exist.", "GENRE_NOT_FOUND")


@router.get("", response_model=ApiResponse[List[BookRead]])
def list_books(request: Request):
    books = book_repo.get_all()
    return ok([book_read(b, request) for b in books], "Books retrieved successfully.")


@router.get("/paged", response_model=ApiResponse[PagedResult[BookRead]])
def list_books_paged(
    request: Request,
    page: int = Query(1, le=MAX_PAGE),
    page_size: int = Query(10, alias="pageSize"),
    search: Optional[str] = Query(None),
    sort: Optional[str] = Query(None),
):
    page, page_size = clamp_paging(page, page_size)
    books, total = book_repo.get_paged(page, page_size, search, sort)
    return ok(paged([book_read(b, request) for b in books], total, page, page_size))


@router.get("/discover", response_model=ApiResponse[PagedResult[BookDiscoverRead]])
def discover_books(
    request: Request,
    page: int = Query(1, le=MAX_PAGE),
    page_size: int = Query(20, alias="pageSize"),
    query: Optional[str] = Query(None),
    genres: Optional[str] = Query(None),
    min_rating: float = Query(0, alias="minRating"),
    sort: str = Query("trending"),
):
    page, page_size = clamp_paging(page, page_size)
    books, total = book_repo.discover(page, page_size, query, parse_genre_ids(genres), min_rating, sort)
    return ok(paged([book_discover_read(b, request) for b in books], total, page, page_size))


@router.get("/{book_id}", response_model=ApiResponse[BookRead])
def get_book(book_id: IdPath, request: Request):
    book = book_repo.get_by_id(book_id)
    if book is None:
        raise not_found("Book not found.", "BOOK_NOT_FOUND")
    return ok(book_read(book, request))


@router.post("", status_code=201, response_model=ApiResponse[BookRead])
async def create_book(
    request: Request,
    title: str = Form(...),
    author_id: int = Form(..., alias="authorId", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    genre_id: int = Form(..., alias="genreId", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    publish_year: Optional[int] = Form(None, alias="publishYear", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin")),
    images: ImageService = Depends(get_image_service),
):
    if not title.strip():
        raise bad_request("Title is required.", "TITLE_REQUIRED")
    _validate_book_form(author_id, genre_id, publish_year)

    image_url = None
    if image is not None and image.filename:
        try:
            image_url = await images.upload(image, "books")
        except ValueError as e:
            raise bad_request(str(e), "INVALID_IMAGE") from e

    try:
        book = book_repo.create(title, author_id, genre_id, publish_year, description, image_url)
    except ValueError as e:
        images.delete(image_url)
        raise bad_request(str(e), "INVALID_REFERENCE") from e
    except Exception:
        images.delete(image_url)
        raise
    logger.info(f"User {user.username} created book {book.book_id}")
    return ok(book_read(book, request), "Book created successfully.")


@router.put("/{book_id}", response_model=ApiResponse[BookRead])
async def update_book(
    book_id: IdPath,
    request: Request,
    title: str = Form(...),
    author_id: int = Form(..., alias="authorId", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    genre_id: int = Form(..., alias="genreId", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    publish_year: Optional[int] = Form(None, alias="publishYear", ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT),
    description: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin")),
    images: ImageService = Depends(get_image_service),
):
    book = book_repo.get_by_id(book_id)
    if book is None:
        raise not_found("Book not found.", "BOOK_NOT_FOUND")
    if not title.strip():
        raise bad_request("Title is required.", "TITLE_REQUIRED")
    _validate_book_form(author_id, genre_id, publish_year)

    previous_image = book.image_url
    new_image = None
    if image is not None and image.filename:
        try:
            new_image = await images.upload(image, "books")
        except ValueError as e:
            raise bad_request(str(e), "INVALID_IMAGE") from e
        book.image_url = new_image

    book.title = title
    book.author_id = author_id
    book.genre_id = genre_id
    book.publish_year = publish_year
    book.description = description
    try:
        updated = book_repo.update(book)
    except ValueError as e:
        images.delete(new_image)
        raise bad_request(str(e), "INVALID_REFERENCE") from e
    except Exception:
        images.delete(new_image)
        raise

    # The old cover goes only once the row points at the new one.
    if new_image:
        images.delete(previous_image)
    logger.info(f"User {user.username} updated book {book_id}")
    return ok(book_read(updated, request), "Book updated successfully.")


@router.delete("/{book_id}", response_model=ApiResponse[DeletedRead])
def delete_book(
    book_id: IdPath,
    user: CurrentUser = Depends(require_roles("SuperAdmin")),
    images: ImageService = Depends(get_image_service),
):
    book = book_repo.get_by_id(book_id)
    if book is None:
        raise not_found("Book not found.", "BOOK_NOT_FOUND")
    if review_repo.exists_for_book(book_id):
        raise bad_request("You cannot delete this book because it already has reviews.", "BOOK_HAS_REVIEWS")

    try:
        book_repo.delete(book_id)
    except EntityInUseError as e:
        raise bad_request(
            "Unable to delete this book because it is referenced by other records.", "BOOK_IN_USE"
        ) from e

    images.delete(book.image_url)
    logger.info(f"User {user.username} deleted book {book_id}")
    return ok(DeletedRead(id=book_id), "Book deleted successfully.")
