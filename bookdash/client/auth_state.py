"""Client-side authentication state derived from the stored JWT.

The payload is decoded without verifying the signature: the server is the
authority on validity, the client only needs the user's name, id and roles
to decide what to show.
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

import httpx

from bookdash.client.token_store import TokenStore

logger = logging.getLogger(__name__)

# Normalized claim types
ROLE = "role"
NAME_IDENTIFIER = "nameidentifier"
NAME = "name"
EMAIL = "email"
GIVEN_NAME = "givenname"
SURNAME = "surname"

CLAIM_TYPE_MAP = {
    "role": ROLE,
    "roles": ROLE,
    "sub": NAME_IDENTIFIER,
    "nameid": NAME_IDENTIFIER,
    "name": NAME,
    "unique_name": NAME,
    "email": EMAIL,
    "given_name": GIVEN_NAME,
    "family_name": SURNAME,
}


@dataclass(frozen=True)
class Claim:
    type: str
    value: str


def map_claim_type(claim_type: str) -> str:
    return CLAIM_TYPE_MAP.get(claim_type.lower(), claim_type)


def parse_base64_without_padding(value: str) -> bytes:
    """Decode base64url text whose trailing ``=`` padding was stripped."""
    value = value.strip()
    remainder = len(value) % 4
    if remainder == 1:
        raise ValueError("Invalid base64 length")
    if remainder:
        value += "=" * (4 - remainder)
    return base64.urlsafe_b64decode(value)


def _claim_value(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def parse_claims_from_jwt(token: str) -> List[Claim]:
    """Turn the payload of ``token`` into a flat list of claims.

    Array values expand into one claim per item and empty values are
    skipped. A malformed token yields an empty list.
    """
    parts = (token or "").split(".")
    if len(parts) < 2:
        return []
    try:
        payload = json.loads(parse_base64_without_padding(parts[1]))
    except (ValueError, binascii.Error) as e:
        logger.debug(f"Could not decode token payload: {e}")
        return []
    if not isinstance(payload, dict):
        return []

    claims = []
    for key, value in payload.items():
        claim_type = map_claim_type(key)
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is None:
                continue
            text = _claim_value(item)
            if text.strip():
                claims.append(Claim(claim_type, text))
    return claims


class ClaimsPrincipal:
    def __init__(self, claims: Optional[List[Claim]] = None) -> None:
        self.claims = list(claims or [])

    @property
    def is_authenticated(self) -> bool:
        return bool(self.claims)

    def find_first(self, claim_type: str) -> Optional[str]:
        for claim in self.claims:
            if claim.type == claim_type:
                return claim.value
        return None

    @property
    def name(self) -> Optional[str]:
        return self.find_first(NAME)

    @property
    def user_id(self) -> Optional[str]:
        return self.find_first(NAME_IDENTIFIER)

    @property
    def email(self) -> Optional[str]:
        return self.find_first(EMAIL)

    @property
    def roles(self) -> List[str]:
        return [c.value for c in self.claims if c.type == ROLE]

    def is_in_role(self, role: str) -> bool:
        return any(r.lower() == role.lower() for r in self.roles)


Listener = Callable[[ClaimsPrincipal], None]


class AuthStateProvider:
    """Builds the current principal from the stored token and tells listeners when it changes."""

    def __init__(self, store: TokenStore, http: Optional[httpx.Client] = None) -> None:
        self.store = store
        self.http = http
        self._listeners: List[Listener] = []

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def get_principal(self) -> ClaimsPrincipal:
        self._set_bearer(None)
        token = self.store.get_token()
        if not token:
            return ClaimsPrincipal()

        clean = str(token).strip('"')
        claims = parse_claims_from_jwt(clean)
        if not claims:
            logger.warning("Stored token could not be parsed; clearing it")
            self.store.clear_token()
            return ClaimsPrincipal()

        self._set_bearer(clean)
        return ClaimsPrincipal(claims)

    def notify_user_authentication(self, token: str) -> ClaimsPrincipal:
        clean = token.strip('"')
        self._set_bearer(clean)
        principal = ClaimsPrincipal(parse_claims_from_jwt(clean))
        self._notify(principal)
        return principal

    def notify_user_logout(self) -> None:
        self._set_bearer(None)
        self._notify(ClaimsPrincipal())

    def _notify(self, principal: ClaimsPrincipal) -> None:
        for listener in list(self._listeners):
            listener(principal)

    def _set_bearer(self, token: Optional[str]) -> None:
        if self.http is None:
            return
        if token:
            self.http.headers["Authorization"] = f"Bearer {token}"
        else:
            self.http.headers.pop("Authorization", None)
