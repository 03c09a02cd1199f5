import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import bad_request, not_found
from bookdash.models import Role, User
from bookdash.repositories import RoleRepository, UserRepository
from bookdash.schemas import ApiResponse, AssignRoleIn, SetRoleIn, UserWithRoles, ok
from bookdash.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/UserRoles", tags=["UserRoles"])

user_repo = UserRepository()
role_repo = RoleRepository()
superadmin_only = require_roles("SuperAdmin")


def user_with_roles(user: User) -> UserWithRoles:
    return UserWithRoles(user_id=user.id, user_name=user.username, email=user.email, roles=user.roles)


def _get_user(user_id: str) -> User:
    user = user_repo.get_by_id(user_id)
    if user is None:
        raise not_found("User not found.", "USER_NOT_FOUND")
    return user


def _resolve_role(role_id_or_name: str) -> Role:
    role = role_repo.resolve(role_id_or_name)
    if role is None:
        raise not_found("Role not found.", "ROLE_NOT_FOUND")
    return role


@router.get("/users-with-roles", response_model=ApiResponse[List[UserWithRoles]])
def list_users_with_roles(user: CurrentUser = Depends(superadmin_only)):
    return ok([user_with_roles(u) for u in user_repo.get_all()], "Users retrieved successfully.")


@router.get("/{user_id}", response_model=ApiResponse[UserWithRoles])
def get_user_roles(user_id: str, user: CurrentUser = Depends(superadmin_only)):
    return ok(user_with_roles(_get_user(user_id)))


@router.post("/assign", response_model=ApiResponse[UserWithRoles])
def assign_role(payload: AssignRoleIn, user: CurrentUser = Depends(superadmin_only)):
    target = _get_user(payload.user_id)
    role = _resolve_role(payload.role_id_or_name)
    if user_repo.is_in_role(target.id, role.id):
        raise bad_request(f"User is already in role '{role.name}'.", "ALREADY_IN_ROLE")
    user_repo.add_to_role(target.id, role.id)
    logger.info(f"User {user.username} assigned role {role.name} to {target.username}")
    return ok(user_with_roles(_get_user(target.id)), f"Role '{role.name}' assigned.")


@router.post("/remove", response_model=ApiResponse[UserWithRoles])
def remove_role(payload: AssignRoleIn, user: CurrentUser = Depends(superadmin_only)):
    target = _get_user(payload.user_id)
    role = _resolve_role(payload.role_id_or_name)
    if not user_repo.is_in_role(target.id, role.id):
        raise bad_request(f"User is not in role '{role.name}'.", "NOT_IN_ROLE")
    user_repo.remove_from_role(target.id, role.id)
    logger.info(f"User {user.username} removed role {role.name} from {target.username}")
    return ok(user_with_roles(_get_user(target.id)), f"Role '{role.name}' removed.")


@router.post("/set-role", response_model=ApiResponse[UserWithRoles])
def set_role(payload: SetRoleIn, user: CurrentUser = Depends(superadmin_only)):
    target = _get_user(payload.user_id)
    role = _resolve_role(payload.role_name)
    user_repo.set_single_role(target.id, role.id)
    logger.info(f"User {user.username} set role of {target.username} to {role.name}")
    return ok(user_with_roles(_get_user(target.id)), f"Role set to '{role.name}'.")
