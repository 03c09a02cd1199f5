"""HTTP client layer for the BookDash API (auth state, token storage, services)."""

from bookdash.client.auth_state import AuthStateProvider, Claim, ClaimsPrincipal, parse_claims_from_jwt
from bookdash.client.services import (
    AuthorService,
    AuthService,
    BookService,
    CommentService,
    DashboardService,
    GenreService,
    ReadingGoalService,
    ReadingListService,
    ReviewService,
    ServiceResult,
    create_http_client,
)
from bookdash.client.token_store import TokenStore

__all__ = [
    "AuthService",
    "AuthStateProvider",
    "AuthorService",
    "BookService",
    "Claim",
    "ClaimsPrincipal",
    "CommentService",
    "DashboardService",
    "GenreService",
    "ReadingGoalService",
    "ReadingListService",
    "ReviewService",
    "ServiceResult",
    "TokenStore",
    "create_http_client",
    "parse_claims_from_jwt",
]
