import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import bad_request, forbidden, not_found
from bookdash.repositories import CommentRepository, ReviewRepository
from bookdash.routers.common import IdPath, comment_read
from bookdash.schemas import ApiResponse, CommentCreate, CommentRead, CommentUpdate, DeletedRead, ok
from bookdash.security import CurrentUser, get_current_user, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Comment", tags=["Comment"])

comment_repo = CommentRepository()
review_repo = ReviewRepository()


def _get_owned_comment(comment_id: int, user: CurrentUser):
    comment = comment_repo.get_by_id(comment_id)
    if comment is None:
        raise not_found("Comment not found.", "COMMENT_NOT_FOUND")
    if comment.user_id != user.user_id and not user.is_superadmin:
        logger.warning(f"User {user.username} tried to modify comment {comment_id} owned by {comment.user_id}")
        raise forbidden("You can only modify your own comments.")
    return comment


def _comment_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise bad_request("Comment text is required.", "COMMENT_TEXT_REQUIRED")
    return text


@router.get("", response_model=ApiResponse[List[CommentRead]])
def list_comments():
    return ok([comment_read(c) for c in comment_repo.get_all()], "Comments retrieved successfully.")


@router.get("/user", response_model=ApiResponse[List[CommentRead]])
def list_my_comments(user: CurrentUser = Depends(get_current_user)):
    comments = comment_repo.get_by_user(user.user_id)
    return ok([comment_read(c) for c in comments], "User comments retrieved successfully.")


@router.get("/{comment_id}", response_model=ApiResponse[CommentRead])
def get_comment(comment_id: IdPath):
    comment = comment_repo.get_by_id(comment_id)
    if comment is None:
        raise not_found("Comment not found.", "COMMENT_NOT_FOUND")
    return ok(comment_read(comment))


@router.post("", status_code=201, response_model=ApiResponse[CommentRead])
def create_comment(
    payload: CommentCreate, user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User"))
):
    text = _comment_text(payload.comment_text)
    if review_repo.get_by_id(payload.review_id) is None:
        raise not_found("Review not found.", "REVIEW_NOT_FOUND")
    comment = comment_repo.create(payload.review_id, user.user_id, text)
    return ok(comment_read(comment), "Comment created successfully.")


@router.put("/{comment_id}", response_model=ApiResponse[CommentRead])
def update_comment(
    comment_id: IdPath,
    payload: CommentUpdate,
    user: CurrentUser = Depends(require_roles("SuperAdmin", "Admin", "User")),
):
    _get_owned_comment(comment_id, user)
    comment = comment_repo.update(comment_id, _comment_text(payload.comment_text))
    return ok(comment_read(comment), "Comment updated successfully.")


@router.delete("/{comment_id}", response_model=ApiResponse[DeletedRead])
def delete_comment(comment_id: IdPath, user: CurrentUser = Depends(require_roles("SuperAdmin", "User"))):
    _get_owned_comment(comment_id, user)
    comment_repo.delete(comment_id)
    return ok(DeletedRead(id=comment_id), "Comment deleted successfully.")
