"""Authentication and authorization helpers.

Passwords are hashed with werkzeug, access tokens are HS256 JWTs signed
with PyJWT, and routers protect endpoints through the ``get_current_user``
and ``require_roles`` dependencies.
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from werkzeug.security import check_password_hash, generate_password_hash

from bookdash.config import settings
from bookdash.errors import forbidden, unauthorized
from bookdash.models import User

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

MIN_PASSWORD_LENGTH = 6


# --- Passwords ---

def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password_hash: str, password: str) -> bool:
    return check_password_hash(password_hash, password)


def validate_password(password: str) -> List[str]:
    """Return the list of password policy violations (empty when the password is acceptable)."""
    errors = []
    if len(password or "") < MIN_PASSWORD_LENGTH:
        errors.append(f"Passwords must be at least {MIN_PASSWORD_LENGTH} characters.")
    if not re.search(r"\d", password or ""):
        errors.append("Passwords must have at least one digit ('0'-'9').")
    if not re.search(r"[a-z]", password or ""):
        errors.append("Passwords must have at least one lowercase ('a'-'z').")
    if not re.search(r"[A-Z]", password or ""):
        errors.append("Passwords must have at least one uppercase ('A'-'Z').")
    if not re.search(r"[^a-zA-Z0-9]", password or ""):
        errors.append("Passwords must have at least one non alphanumeric character.")
    return errors


# --- Tokens ---

def create_access_token(user: User, roles: List[str]) -> Tuple[str, datetime]:
    """Sign a token for ``user`` carrying its roles. Returns the token and its expiry."""
    now = datetime.now(timezone.utc)
    expires = now + timedelta(minutes=settings.jwt_expiration_minutes)
    payload: Dict[str, Any] = {
        "sub": user.id,
        "nameid": user.id,
        "unique_name": user.username,
        "jti": str(uuid.uuid4()),
        "role": list(roles),
        "iat": int(now.timestamp()),
        "exp": int(expires.timestamp()),
    }
    if user.email:
        payload["email"] = user.email
    if settings.jwt_issuer:
        payload["iss"] = settings.jwt_issuer
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    return token, expires


def decode_access_token(token: str) -> Dict[str, Any]:
    """Validate signature, lifetime, issuer and audience. Raises jwt.InvalidTokenError."""
    return jwt.decode(
        token,
        settings.jwt_secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience or None,
        issuer=settings.jwt_issuer or None,
        leeway=0,
        options={"require": ["exp", "sub"]},
    )


# --- Request principal ---

@dataclass
class CurrentUser:
    user_id: str
    username: str
    roles: List[str] = field(default_factory=list)

    def has_role(self, *roles: str) -> bool:
        wanted = {r.lower() for r in roles}
        return any(r.lower() in wanted for r in self.roles)

    @property
    def is_superadmin(self) -> bool:
        return self.has_role(settings.superadmin_role)


def _principal_from_claims(claims: Dict[str, Any]) -> CurrentUser:
    roles = claims.get("role") or []
    if isinstance(roles, str):
        roles = [roles]
    return CurrentUser(
        user_id=claims.get("nameid") or claims["sub"],
        username=claims.get("unique_name") or "",
        roles=[r for r in roles if r],
    )


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
) -> Optional[CurrentUser]:
    """The caller when a valid bearer token is supplied, otherwise None."""
    if credentials is None or not credentials.credentials:
        return None
    try:
        claims = decode_access_token(credentials.credentials)
    except jwt.InvalidTokenError as e:
        logger.warning(f"Rejected bearer token: {e}")
        return None
    return _principal_from_claims(claims)


def get_current_user(user: Optional[CurrentUser] = Depends(get_optional_user)) -> CurrentUser:
    if user is None:
        raise unauthorized()
    return user


def require_roles(*roles: str):
    """Dependency factory: the caller must hold at least one of ``roles`` (case-insensitive)."""

    def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if not user.has_role(*roles):
            logger.warning(f"User {user.username} with roles {user.roles} denied; requires one of {list(roles)}")
            raise forbidden()
        return user

    return dependency
