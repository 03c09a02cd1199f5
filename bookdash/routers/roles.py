import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import DuplicateEntryError, bad_request, conflict, not_found
from bookdash.models import Role
from bookdash.repositories import RoleRepository
from bookdash.schemas import ApiResponse, DeletedRead, RoleIn, RoleRead, ok
from bookdash.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Roles", tags=["Roles"])

role_repo = RoleRepository()
superadmin_only = require_roles("SuperAdmin")

MIN_ROLE_NAME = 2
MAX_ROLE_NAME = 256


def role_read(role: Role) -> RoleRead:
    return RoleRead(id=role.id, name=role.name, normalized_name=role.normalized_name)


def _check_name(name: str) -> str:
    name = (name or "").strip()
    if len(name) < MIN_ROLE_NAME or len(name) > MAX_ROLE_NAME:
        raise bad_request(
            f"Role name must be between {MIN_ROLE_NAME} and {MAX_ROLE_NAME} characters.", "INVALID_ROLE_NAME"
        )
    return name


def _get_role(role_id: str) -> Role:
    role = role_repo.get_by_id(role_id)
    if role is None:
        raise not_found("Role not found.", "ROLE_NOT_FOUND")
    return role


@router.get("", response_model=ApiResponse[List[RoleRead]])
def list_roles(user: CurrentUser = Depends(superadmin_only)):
    logger.info(f"User {user.username} ({user.roles}) listed roles")
    return ok([role_read(r) for r in role_repo.get_all()], "Roles retrieved successfully.")


@router.get("/{role_id}", response_model=ApiResponse[RoleRead])
def get_role(role_id: str, user: CurrentUser = Depends(superadmin_only)):
    return ok(role_read(_get_role(role_id)))


@router.post("", status_code=201, response_model=ApiResponse[RoleRead])
def create_role(payload: RoleIn, user: CurrentUser = Depends(superadmin_only)):
    name = _check_name(payload.name)
    if role_repo.get_by_name(name) is not None:
        raise conflict(f"Role '{name}' already exists.", "ROLE_EXISTS")
    try:
        role = role_repo.create(name)
    except DuplicateEntryError as e:
        raise conflict(f"Role '{name}' already exists.", "ROLE_EXISTS") from e
    logger.info(f"User {user.username} created role {role.name}")
    return ok(role_read(role), "Role created successfully.")


@router.put("/{role_id}", response_model=ApiResponse[RoleRead])
def update_role(role_id: str, payload: RoleIn, user: CurrentUser = Depends(superadmin_only)):
    _get_role(role_id)
    name = _check_name(payload.name)
    clash = role_repo.get_by_name(name)
    if clash is not None and clash.id != role_id:
        raise conflict(f"Role '{name}' already exists.", "ROLE_EXISTS")
    try:
        role = role_repo.update(role_id, name)
    except DuplicateEntryError as e:
        raise conflict(f"Role '{name}' already exists.", "ROLE_EXISTS") from e
    logger.info(f"User {user.username} renamed role {role_id} to {name}")
    return ok(role_read(role), "Role updated successfully.")


@router.delete("/{role_id}", response_model=ApiResponse[DeletedRead])
def delete_role(role_id: str, user: CurrentUser = Depends(superadmin_only)):
    role = _get_role(role_id)
    if role_repo.is_in_use(role_id):
        raise bad_request(f"Role '{role.name}' is assigned to users and cannot be deleted.", "ROLE_IN_USE")
    role_repo.delete(role_id)
    logger.info(f"User {user.username} deleted role {role.name}")
    return ok(DeletedRead(id=role_id), "Role deleted successfully.")
