"""
Token Value Objects

AuthTokens: persistable token pair
AuthSession: live session state owned by TokenAuthManager
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import jwt

from ..exceptions import AuthError

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode JWT claims without verifying the signature

    The server is the only party able to verify, the client only needs 'exp'.

    Raises:
        AuthError: If the token is not a JWT or has no expiry
    """
    if token.lower().startswith("bearer "):
        token = token[7:]
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise AuthError(f"Invalid token: {e}") from e
    if "exp" not in claims:
        raise AuthError("Invalid token: missing 'exp' claim")
    return claims


def token_expires_at(token: str) -> datetime:
    return datetime.fromtimestamp(decode_token(token)["exp"], tz=timezone.utc)


@dataclass(frozen=True)
class AuthTokens:
    """
    Value Object for the persistable token pair

    token may be None when only a refresh token was stored.
    """
    refresh_token: str
    token: Optional[str] = None

    def __post_init__(self):
        if not self.refresh_token:
            raise ValueError("refresh_token cannot be empty")

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"token": self.token, "refresh_token": self.refresh_token}


@dataclass
class AuthSession:
    """
    Live session data

    Invariant: is_authenticated iff a refresh token exists and is unexpired.
    """
    access_token: Optional[str] = None
    access_expires_at: datetime = EPOCH
    refresh_token: Optional[str] = None
    refresh_expires_at: datetime = EPOCH

    @property
    def is_authenticated(self) -> bool:
        return bool(self.refresh_token) and self.refresh_expires_at > utcnow()

    def has_valid_access_token(self) -> bool:
        return bool(self.access_token) and self.access_expires_at > utcnow()

    def is_refresh_expired(self) -> bool:
        return self.refresh_expires_at <= utcnow()

    def is_empty(self) -> bool:
        return not self.access_token and not self.refresh_token
