"""Typed wrappers around the BookDash REST endpoints.

Every call returns a ``ServiceResult`` instead of raising: HTTP 401 sets
``is_unauthorized``, other error statuses and transport failures set
``success=False`` with the server (or transport) message. Responses may
use the standard envelope or be a bare JSON payload.
"""

import logging
import mimetypes
import os
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

import httpx

from bookdash.client.auth_state import AuthStateProvider, ClaimsPrincipal
from bookdash.client.token_store import TokenStore
from bookdash.config import settings

logger = logging.getLogger(__name__)


def create_http_client(base_url: Optional[str] = None, timeout: Optional[float] = None) -> httpx.Client:
    limits = httpx.Limits(max_keepalive_connections=10, max_connections=20, keepalive_expiry=30.0)
    return httpx.Client(
        base_url=base_url or settings.api_base_url,
        timeout=httpx.Timeout(timeout or settings.client_timeout, connect=5.0),
        limits=limits,
        follow_redirects=True,
    )


@dataclass
class ServiceResult:
    success: bool
    is_unauthorized: bool = False
    message: Optional[str] = None
    data: Any = None
    code: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def failure(cls, message: str, code: Optional[str] = None, status_code: Optional[int] = None) -> "ServiceResult":
        return cls(success=False, message=message, code=code, status_code=status_code)


def _is_envelope(body: Any) -> bool:
    return isinstance(body, dict) and "success" in body and ("data" in body or "message" in body)


def _read_result(response: httpx.Response) -> ServiceResult:
    try:
        body = response.json() if response.content else None
    except ValueError:
        body = None

    if _is_envelope(body):
        message, data, code = body.get("message"), body.get("data"), body.get("errorCode")
        success = bool(body.get("success")) and response.is_success
    else:
        data = body
        message = body.get("message") if isinstance(body, dict) else None
        code = None
        success = response.is_success
        if not success and message is None:
            message = response.text or response.reason_phrase

    return ServiceResult(
        success=success,
        is_unauthorized=response.status_code == 401,
        message=message,
        data=data,
        code=code,
        status_code=response.status_code,
    )


class BaseService:
    def __init__(self, http: httpx.Client) -> None:
        self.http = http

    def _request(self, method: str, url: str, **kwargs) -> ServiceResult:
        try:
            response = self.http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {url} failed: {e}")
            return ServiceResult.failure(f"Could not reach the server: {e}", "transport_error")
        result = _read_result(response)
        if not result.success:
            logger.debug(f"{method} {url} -> {response.status_code}: {result.message}")
        return result

    def _get(self, url: str, **kwargs) -> ServiceResult:
        return self._request("GET", url, **kwargs)

    def _post(self, url: str, **kwargs) -> ServiceResult:
        return self._request("POST", url, **kwargs)

    def _put(self, url: str, **kwargs) -> ServiceResult:
        return self._request("PUT", url, **kwargs)

    def _delete(self, url: str) -> ServiceResult:
        return self._request("DELETE", url)

    @staticmethod
    def _empty_on_unauthorized(result: ServiceResult, empty: Any) -> ServiceResult:
        """User-scoped reads degrade to an empty answer when the session is missing or expired."""
        if result.is_unauthorized:
            return ServiceResult(success=True, is_unauthorized=True, message=result.message, data=empty, status_code=401)
        return result


class AuthService(BaseService):
    def __init__(self, http: httpx.Client, store: TokenStore, auth_state: Optional[AuthStateProvider] = None) -> None:
        super().__init__(http)
        self.store = store
        self.auth_state = auth_state or AuthStateProvider(store, http)

    def login(self, username: str, password: str) -> ServiceResult:
        result = self._post("/api/Account/login", json={"username": username, "password": password})
        if result.success and isinstance(result.data, dict) and result.data.get("token"):
            token = result.data["token"]
            self.store.set_token(token)
            self.auth_state.notify_user_authentication(token)
            logger.info(f"Logged in as {result.data.get('username')}")
        return result

    def register(self, username: str, email: str, password: str) -> ServiceResult:
        return self._post(
            "/api/Account/register", json={"username": username, "email": email, "password": password}
        )

    def logout(self) -> None:
        self.store.clear_token()
        self.auth_state.notify_user_logout()

    def current_user(self) -> ClaimsPrincipal:
        return self.auth_state.get_principal()

    def me(self) -> ServiceResult:
        return self._get("/api/Account/me")


class BookService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/Books")

    def get(self, book_id: int) -> ServiceResult:
        return self._get(f"/api/Books/{book_id}")

    def get_paged(
        self, page: int = 1, page_size: int = 10, search: Optional[str] = None, sort: Optional[str] = None
    ) -> ServiceResult:
        params: Dict[str, Any] = {"page": page, "pageSize": page_size}
        if search:
            params["search"] = search
        if sort:
            params["sort"] = sort
        return self._get("/api/Books/paged", params=params)

    def discover(
        self,
        page: int = 1,
        page_size: int = 20,
        query: Optional[str] = None,
        genres: Optional[Iterable[int]] = None,
        min_rating: float = 0,
        sort: str = "trending",
    ) -> ServiceResult:
        params: Dict[str, Any] = {"page": page, "pageSize": page_size, "sort": sort}
        if query and query.strip():
            params["query"] = query
        if min_rating > 0:
            params["minRating"] = min_rating
        genres = list(genres or [])
        if genres:
            params["genres"] = ",".join(str(g) for g in genres)
        return self._get("/api/Books/discover", params=params)

    def create(self, title: str, author_id: int, genre_id: int, publish_year: Optional[int] = None,
               description: Optional[str] = None, image_path: Optional[str] = None) -> ServiceResult:
        return self._send_form("POST", "/api/Books", title, author_id, genre_id, publish_year, description, image_path)

    def update(self, book_id: int, title: str, author_id: int, genre_id: int, publish_year: Optional[int] = None,
               description: Optional[str] = None, image_path: Optional[str] = None) -> ServiceResult:
        return self._send_form(
            "PUT", f"/api/Books/{book_id}", title, author_id, genre_id, publish_year, description, image_path
        )

    def delete(self, book_id: int) -> ServiceResult:
        return self._delete(f"/api/Books/{book_id}")

    def _send_form(self, method, url, title, author_id, genre_id, publish_year, description, image_path):
        form = {"title": title, "authorId": str(author_id), "genreId": str(genre_id)}
        if publish_year is not None:
            form["publishYear"] = str(publish_year)
        if description:
            form["description"] = description
        if not image_path:
            return self._request(method, url, data=form)

        mime = mimetypes.guess_type(image_path)[0] or "application/octet-stream"
        try:
            with open(image_path, "rb") as f:
                content = f.read()
        except OSError as e:
            return ServiceResult.failure(f"Could not read image: {e}", "image_unreadable")
        files = {"image": (os.path.basename(image_path), content, mime)}
        return self._request(method, url, data=form, files=files)


class AuthorService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/Author")

    def get(self, author_id: int) -> ServiceResult:
        return self._get(f"/api/Author/{author_id}")

    def create(self, name: str, bio: Optional[str] = None) -> ServiceResult:
        return self._post("/api/Author", json={"name": name, "bio": bio})

    def update(self, author_id: int, name: str, bio: Optional[str] = None) -> ServiceResult:
        return self._put(f"/api/Author/{author_id}", json={"name": name, "bio": bio})

    def delete(self, author_id: int) -> ServiceResult:
        return self._delete(f"/api/Author/{author_id}")


class GenreService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/Genre")

    def get(self, genre_id: int) -> ServiceResult:
        return self._get(f"/api/Genre/{genre_id}")

    def create(self, genre_name: str) -> ServiceResult:
        return self._post("/api/Genre", json={"genreName": genre_name})

    def update(self, genre_id: int, genre_name: str) -> ServiceResult:
        return self._put(f"/api/Genre/{genre_id}", json={"genreName": genre_name})

    def delete(self, genre_id: int) -> ServiceResult:
        return self._delete(f"/api/Genre/{genre_id}")


class ReviewService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/Review")

    def get_by_book(self, book_id: int) -> ServiceResult:
        return self._get(f"/api/Review/book/{book_id}")

    def create(self, book_id: int, rating: int, review_text: Optional[str] = None) -> ServiceResult:
        return self._post("/api/Review", json={"bookId": book_id, "rating": rating, "reviewText": review_text})

    def update(self, review_id: int, rating: int, review_text: Optional[str] = None) -> ServiceResult:
        return self._put(f"/api/Review/{review_id}", json={"rating": rating, "reviewText": review_text})

    def delete(self, review_id: int) -> ServiceResult:
        return self._delete(f"/api/Review/{review_id}")

    def get_user_rating(self, book_id: int) -> ServiceResult:
        result = self._get("/api/Review/user-rating", params={"bookId": book_id})
        return self._empty_on_unauthorized(result, {"bookId": book_id, "rating": 0})

    def rate_book(self, book_id: int, rating: int) -> ServiceResult:
        return self._post("/api/Review/rate", json={"bookId": book_id, "rating": rating})


class CommentService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/Comment")

    def get_user_comments(self) -> ServiceResult:
        return self._empty_on_unauthorized(self._get("/api/Comment/user"), [])

    def create(self, review_id: int, comment_text: str) -> ServiceResult:
        return self._post("/api/Comment", json={"reviewId": review_id, "commentText": comment_text})

    def update(self, comment_id: int, comment_text: str) -> ServiceResult:
        return self._put(f"/api/Comment/{comment_id}", json={"commentText": comment_text})

    def delete(self, comment_id: int) -> ServiceResult:
        return self._delete(f"/api/Comment/{comment_id}")


class ReadingListService(BaseService):
    def get_all(self) -> ServiceResult:
        return self._get("/api/ReadingList")

    def get_user_list(self) -> ServiceResult:
        return self._empty_on_unauthorized(self._get("/api/ReadingList/user"), [])

    def add(self, book_id: int, status: str = "NotStarted") -> ServiceResult:
        return self._post("/api/ReadingList", json={"bookId": book_id, "status": status})

    def update_status(self, reading_list_id: int, book_id: int, status: str) -> ServiceResult:
        return self._put(f"/api/ReadingList/{reading_list_id}", json={"bookId": book_id, "status": status})

    def remove(self, reading_list_id: int) -> ServiceResult:
        return self._delete(f"/api/ReadingList/{reading_list_id}")


class ReadingGoalService(BaseService):
    def get_user_goals(self) -> ServiceResult:
        return self._empty_on_unauthorized(self._get("/api/ReadingGoal/user"), [])

    def get_goal_for_book(self, book_id: int) -> ServiceResult:
        return self._empty_on_unauthorized(self._get(f"/api/ReadingGoal/user/{book_id}"), None)

    def create_from_book(self, book_id: int, year: int, goal_percentage: int, progress: int = 0) -> ServiceResult:
        return self._post("/api/ReadingGoal/from-book", json=self._body(book_id, year, goal_percentage, progress))

    def create(self, book_id: int, year: int, goal_percentage: int, progress: int = 0) -> ServiceResult:
        return self._post("/api/ReadingGoal", json=self._body(book_id, year, goal_percentage, progress))

    def update(self, goal_id: int, book_id: int, year: int, goal_percentage: int, progress: int) -> ServiceResult:
        return self._put(f"/api/ReadingGoal/{goal_id}", json=self._body(book_id, year, goal_percentage, progress))

    def delete(self, goal_id: int) -> ServiceResult:
        return self._delete(f"/api/ReadingGoal/{goal_id}")

    @staticmethod
    def _body(book_id: int, year: int, goal_percentage: int, progress: int) -> Dict[str, int]:
        return {"bookId": book_id, "year": year, "goalPercentage": goal_percentage, "progress": progress}


class DashboardService(BaseService):
    """Aggregates catalog counts for the dashboard view."""

    ENDPOINTS = {
        "books": "/api/Books",
        "authors": "/api/Author",
        "genres": "/api/Genre",
        "reviews": "/api/Review",
    }

    def get_counts(self) -> ServiceResult:
        counts: Dict[str, int] = {}
        for name, url in self.ENDPOINTS.items():
            result = self._get(url)
            if not result.success:
                return result
            counts[name] = len(result.data or [])
        return ServiceResult(success=True, data=counts)

    def get_recent_books(self, limit: int = 5) -> ServiceResult:
        result = self._get("/api/Books/paged", params={"page": 1, "pageSize": limit, "sort": "bookId:desc"})
        if result.success and isinstance(result.data, dict):
            result.data = result.data.get("items", [])
        return result


def items_of(result: ServiceResult) -> List[Any]:
    """The list carried by a result, whether bare or paged."""
    data = result.data
    if isinstance(data, dict) and "items" in data:
        return data["items"] or []
    return data if isinstance(data, list) else []
