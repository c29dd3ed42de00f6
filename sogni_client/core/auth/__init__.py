"""
Auth Package

Session managers consulted by RestClient before each call and by
SocketClient before each connect.
"""
from .base import AuthManagerBase
from .cookie_auth import CookieAuthManager
from .token_auth import TokenAuthManager
from .tokens import AuthSession, AuthTokens, decode_token, token_expires_at


def create_auth_manager(auth_type: str, base_url: str) -> AuthManagerBase:
    """Select the auth manager for 'token' or 'cookies' mode"""
    if auth_type == "token":
        return TokenAuthManager(base_url)
    if auth_type == "cookies":
        return CookieAuthManager()
    raise ValueError(f"Unknown auth type: {auth_type}")


__all__ = [
    "AuthManagerBase",
    "CookieAuthManager",
    "TokenAuthManager",
    "AuthSession",
    "AuthTokens",
    "decode_token",
    "token_expires_at",
    "create_auth_manager",
]
