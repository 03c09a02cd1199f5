"""One APIRouter per REST resource, mounted under /api by bookdash.api."""

from bookdash.routers import (
    account,
    authors,
    books,
    comments,
    genres,
    reading_goals,
    reading_lists,
    reviews,
    role_claims,
    roles,
    user_roles,
)

ALL_ROUTERS = [
    account.router,
    books.router,
    authors.router,
    genres.router,
    reviews.router,
    comments.router,
    reading_lists.router,
    reading_goals.router,
    roles.router,
    user_roles.router,
    role_claims.router,
]
