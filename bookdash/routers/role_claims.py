import logging
from typing import List

from fastapi import APIRouter, Depends

from bookdash.errors import not_found
from bookdash.models import RoleClaim
from bookdash.repositories import RoleClaimRepository, RoleRepository
from bookdash.routers.common import IdPath
from bookdash.schemas import ApiResponse, DeletedRead, RoleClaimIn, RoleClaimRead, ok
from bookdash.security import CurrentUser, require_roles

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/RoleClaims", tags=["RoleClaims"])

claim_repo = RoleClaimRepository()
role_repo = RoleRepository()
superadmin_only = require_roles("SuperAdmin")


def claim_read(claim: RoleClaim) -> RoleClaimRead:
    return RoleClaimRead(
        id=claim.id, role_id=claim.role_id, claim_type=claim.claim_type, claim_value=claim.claim_value
    )


@router.get("/by-role/{role_id}", response_model=ApiResponse[List[RoleClaimRead]])
def list_claims_for_role(role_id: str, user: CurrentUser = Depends(superadmin_only)):
    if role_repo.get_by_id(role_id) is None:
        raise not_found("Role not found.", "ROLE_NOT_FOUND")
    return ok([claim_read(c) for c in claim_repo.get_by_role(role_id)])


@router.post("", status_code=201, response_model=ApiResponse[RoleClaimRead])
def create_claim(payload: RoleClaimIn, user: CurrentUser = Depends(superadmin_only)):
    if role_repo.get_by_id(payload.role_id) is None:
        raise not_found("Role not found.", "ROLE_NOT_FOUND")
    claim = claim_repo.create(payload.role_id, payload.claim_type, payload.claim_value)
    logger.info(f"User {user.username} added claim {claim.claim_type} to role {claim.role_id}")
    return ok(claim_read(claim), "Role claim created successfully.")


@router.delete("/{claim_id}", response_model=ApiResponse[DeletedRead])
def delete_claim(claim_id: IdPath, user: CurrentUser = Depends(superadmin_only)):
    if not claim_repo.delete(claim_id):
        raise not_found("Role claim not found.", "ROLE_CLAIM_NOT_FOUND")
    logger.info(f"User {user.username} deleted role claim {claim_id}")
    return ok(DeletedRead(id=claim_id), "Role claim deleted successfully.")
