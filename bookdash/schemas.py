"""Request and response models exchanged over the REST API.

All models serialize with camelCase keys (``bookId``, ``publishYear``,
``errorCode`` ...) and accept either camelCase or snake_case on input.
"""

from typing import Annotated, Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")

# sqlite3 binds Python ints as signed 64-bit INTEGER values.
SQLITE_MIN_INT = -(2**63)
SQLITE_MAX_INT = 2**63 - 1

DbInt = Annotated[int, Field(ge=SQLITE_MIN_INT, le=SQLITE_MAX_INT)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiResponse(CamelModel, Generic[T]):
    """The envelope every endpoint answers with."""

    success: bool = True
    message: Optional[str] = None
    error_code: Optional[str] = None
    data: Optional[T] = None


def ok(data: Any = None, message: Optional[str] = None) -> dict:
    return {"success": True, "message": message, "error_code": None, "data": data}


# --- Catalog ---

class AuthorIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=200)
    bio: Optional[str] = None


class AuthorRead(CamelModel):
    author_id: int
    name: str
    bio: Optional[str] = None


class GenreIn(CamelModel):
    genre_name: str = Field(..., min_length=1, max_length=100)


class GenreRead(CamelModel):
    genre_id: int
    genre_name: str


class BookRead(CamelModel):
    book_id: int
    title: str
    author_id: Optional[int] = None
    genre_id: Optional[int] = None
    publish_year: Optional[int] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    author_name: Optional[str] = None
    genre_name: Optional[str] = None


class BookDiscoverRead(BookRead):
    average_rating: float = 0.0
    review_count: int = 0


class PagedResult(CamelModel, Generic[T]):
    items: List[T] = Field(default_factory=list)
    total_items: int = 0
    page: int = 1
    page_size: int = 10
    total_pages: int = 0


class DeletedRead(CamelModel):
    id: Any


# --- Reviews & comments ---

class ReviewCreate(CamelModel):
    book_id: DbInt
    rating: DbInt
    review_text: Optional[str] = None


class ReviewUpdate(CamelModel):
    rating: DbInt
    review_text: Optional[str] = None


class ReviewRead(CamelModel):
    review_id: int
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    book_id: int
    rating: int
    review_text: Optional[str] = None
    created_at: Optional[str] = None


class RateBook(CamelModel):
    book_id: DbInt
    rating: DbInt


class UserRating(CamelModel):
    book_id: int
    rating: int = 0


class CommentCreate(CamelModel):
    review_id: DbInt
    comment_text: str = Field(..., min_length=1)


class CommentUpdate(CamelModel):
    comment_text: str = Field(..., min_length=1)


class CommentRead(CamelModel):
    comment_id: int
    review_id: int
    user_id: Optional[str] = None
    user_name: Optional[str] = None
    book_id: Optional[int] = None
    book_title: Optional[str] = None
    comment_text: str
    created_at: Optional[str] = None


# --- Reading lists & goals ---

class ReadingListIn(CamelModel):
    book_id: DbInt
    status: str = "NotStarted"


class ReadingListRead(CamelModel):
    reading_list_id: int
    user_id: Optional[str] = None
    book_id: int
    status: str
    added_at: Optional[str] = None
    book: Optional[BookRead] = None


class ReadingGoalIn(CamelModel):
    book_id: DbInt = 0
    year: DbInt
    goal_percentage: DbInt
    progress: DbInt = 0


class ReadingGoalRead(CamelModel):
    id: int
    user_id: Optional[str] = None
    book_id: int
    year: int
    goal_percentage: int
    progress: int
    created_at: Optional[str] = None
    book: Optional[BookRead] = None


# --- Account & identity ---

class RegisterIn(CamelModel):
    username: str = Field(..., min_length=1, max_length=256)
    password: str
    email: EmailStr


class LoginIn(CamelModel):
    username: str
    password: str


class TokenRead(CamelModel):
    token: str
    expiration: str
    username: str
    roles: List[str] = Field(default_factory=list)


class MeRead(CamelModel):
    user_id: str
    user_name: str
    email: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


class RoleIn(CamelModel):
    name: str


class RoleRead(CamelModel):
    id: str
    name: str
    normalized_name: str


class UserWithRoles(CamelModel):
    user_id: str
    user_name: str
    email: Optional[str] = None
    roles: List[str] = Field(default_factory=list)


class AssignRoleIn(CamelModel):
    user_id: str
    role_id_or_name: str


class SetRoleIn(CamelModel):
    user_id: str
    role_name: str


class RoleClaimIn(CamelModel):
    role_id: str
    claim_type: str = Field(..., min_length=1)
    claim_value: str = Field(..., min_length=1)


class RoleClaimRead(CamelModel):
    id: int
    role_id: str
    claim_type: str
    claim_value: str


class HealthRead(BaseModel):
    status: str
    timestamp: str
    db: bool
