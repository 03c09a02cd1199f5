import logging

from fastapi import APIRouter, Depends

from bookdash.config import settings
from bookdash.errors import ApiError, DuplicateEntryError, bad_request, not_found
from bookdash.repositories import RoleRepository, UserRepository
from bookdash.schemas import ApiResponse, LoginIn, MeRead, RegisterIn, TokenRead, ok
from bookdash.security import (
    CurrentUser,
    create_access_token,
    get_current_user,
    hash_password,
    validate_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/Account", tags=["Account"])

user_repo = UserRepository()
role_repo = RoleRepository()


@router.post("/register", response_model=ApiResponse[None])
def register(payload: RegisterIn):
    if user_repo.get_by_username(payload.username):
        raise bad_request("Username is already taken.", "username_exists")
    if user_repo.get_by_email(payload.email):
        raise bad_request("Email is already registered.", "email_exists")

    errors = validate_password(payload.password)
    if errors:
        raise bad_request("Registration failed.", "identity_error", errors)

    try:
        user = user_repo.create(payload.username, payload.email, hash_password(payload.password))
    except DuplicateEntryError as e:
        raise bad_request("Username or email is already registered.", "identity_error") from e

    role = role_repo.get_by_name(settings.registration_role)
    if role is not None:
        user_repo.add_to_role(user.id, role.id)
    else:
        logger.warning(f"Role {settings.registration_role} missing; {user.username} registered without a role")

    logger.info(f"Registered user {user.username}")
    return ok(None, "Registration successful.")


@router.post("/login", response_model=ApiResponse[TokenRead])
def login(payload: LoginIn):
    user = user_repo.find_by_login(payload.username)
    if user is None or not verify_password(user.password_hash, payload.password):
        logger.warning(f"Failed login attempt for {payload.username}")
        raise ApiError(401, "Invalid username or password.", "invalid_credentials")

    roles = user_repo.get_roles(user.id)
    token, expires = create_access_token(user, roles)
    logger.info(f"User {user.username} logged in with roles {roles}")
    return ok(
        TokenRead(token=token, expiration=expires.isoformat(), username=user.username, roles=roles),
        "Login successful.",
    )


@router.get("/me", response_model=ApiResponse[MeRead])
def me(current: CurrentUser = Depends(get_current_user)):
    user = user_repo.get_by_id(current.user_id)
    if user is None:
        raise not_found("User not found.", "USER_NOT_FOUND")
    return ok(MeRead(user_id=user.id, user_name=user.username, email=user.email, roles=user.roles))
