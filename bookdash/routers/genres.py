import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import EntityInUseError, bad_request, not_found
from bookdash.repositories import GenreRepository
from bookdash.routers.common import IdPath
from bookdash.schemas import ApiResponse, DeletedRead, GenreIn, GenreRead, ok
from bookdash.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Genre", tags=["Genre"])

genre_repo = GenreRepository()

IN_USE_MESSAGE = "You cannot delete this genre because it is used by one or more books."


def _read(genre) -> GenreRead:
    return GenreRead(genre_id=genre.genre_id, genre_name=genre.genre_name)


@router.get("", response_model=ApiResponse[List[GenreRead]])
def list_genres():
    return ok([_read(g) for g in genre_repo.get_all()], "Genres retrieved successfully.")


@router.get("/{genre_id}", response_model=ApiResponse[GenreRead])
def get_genre(genre_id: IdPath):
    genre = genre_repo.get_by_id(genre_id)
    if genre is None:
        raise not_found("Genre not found.", "GENRE_NOT_FOUND")
    return ok(_read(genre))


@router.post("", status_code=201, response_model=ApiResponse[GenreRead])
def create_genre(payload: GenreIn, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin"))):
    if not payload.genre_name.strip():
        raise bad_request("Genre name is required.", "NAME_REQUIRED")
    genre = genre_repo.create(payload.genre_name)
    logger.info(f"User {user.username} created genre {genre.genre_id}")
    return ok(_read(genre), "Genre created successfully.")


@router.put("/{genre_id}", response_model=ApiResponse[GenreRead])
def update_genre(
    genre_id: IdPath, payload: GenreIn, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin"))
):
    if genre_repo.get_by_id(genre_id) is None:
        raise not_found("Genre not found.", "GENRE_NOT_FOUND")
    if not payload.genre_name.strip():
        raise bad_request("Genre name is required.", "NAME_REQUIRED")
    genre = genre_repo.update(genre_id, payload.genre_name)
    logger.info(f"User {user.username} updated genre {genre_id}")
    return ok(_read(genre), "Genre updated successfully.")


@router.delete("/{genre_id}", response_model=ApiResponse[DeletedRead])
def delete_genre(genre_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin"))):
    if genre_repo.get_by_id(genre_id) is None:
        raise not_found("Genre not found.", "GENRE_NOT_FOUND")
    if genre_repo.is_in_use(genre_id):
        raise bad_request(IN_USE_MESSAGE, "GENRE_IN_USE")
    try:
        genre_repo.delete(genre_id)
    except EntityInUseError as e:
        raise bad_request(IN_USE_MESSAGE, "GENRE_IN_USE") from e
    logger.info(f"User {user.username} deleted genre {genre_id}")
    return ok(DeletedRead(id=genre_id), "Genre deleted successfully.")
