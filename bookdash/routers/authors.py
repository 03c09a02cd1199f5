import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import EntityInUseError, bad_request, not_found
from bookdash.repositories import AuthorRepository
from bookdash.routers.common import IdPath
from bookdash.schemas import ApiResponse, AuthorIn, AuthorRead, DeletedRead, ok
from bookdash.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Author", tags=["Author"])

author_repo = AuthorRepository()

IN_USE_MESSAGE = "You cannot delete this author because they are used in one or more books."


def _read(author) -> AuthorRead:
    return AuthorRead(author_id=author.author_id, name=author.name, bio=author.bio)


@router.get("", response_model=ApiResponse[List[AuthorRead]])
def list_authors():
    return ok([_read(a) for a in author_repo.get_all()], "Authors retrieved successfully.")


@router.get("/{author_id}", response_model=ApiResponse[AuthorRead])
def get_author(author_id: IdPath):
    author = author_repo.get_by_id(author_id)
    if author is None:
        raise not_found("Author not found.", "AUTHOR_NOT_FOUND")
    return ok(_read(author))


@router.post("", status_code=201, response_model=ApiResponse[AuthorRead])
def create_author(payload: AuthorIn, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin"))):
    if not payload.name.strip():
        raise bad_request("Author name is required.", "NAME_REQUIRED")
    author = author_repo.create(payload.name, payload.bio)
    logger.info(f"User {user.username} created author {author.author_id}")
    return ok(_read(author), "Author created successfully.")


@router.put("/{author_id}", response_model=ApiResponse[AuthorRead])
def update_author(
    author_id: IdPath, payload: AuthorIn, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin"))
):
    if author_repo.get_by_id(author_id) is None:
        raise not_found("Author not found.", "AUTHOR_NOT_FOUND")
    if not payload.name.strip():
        raise bad_request("Author name is required.", "NAME_REQUIRED")
    author = author_repo.update(author_id, payload.name, payload.bio)
    logger.info(f"User {user.username} updated author {author_id}")
    return ok(_read(author), "Author updated successfully.")


@router.delete("/{author_id}", response_model=ApiResponse[DeletedRead])
def delete_author(author_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin"))):
    if author_repo.get_by_id(author_id) is None:
        raise not_found("Author not found.", "AUTHOR_NOT_FOUND")
    if author_repo.is_in_use(author_id):
        raise bad_request(IN_USE_MESSAGE, "AUTHOR_IN_USE")
    try:
        author_repo.delete(author_id)
    except EntityInUseError as e:
        raise bad_request(IN_USE_MESSAGE, "AUTHOR_IN_USE") from e
    logger.info(f"User {user.username} deleted author {author_id}")
    return ok(DeletedRead(id=author_id), "Author deleted successfully.")
