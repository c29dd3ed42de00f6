"""
Token Auth Manager

Owns the access/refresh token pair and renews the access token on demand.
At most one renewal request is in flight: concurrent callers share the
same task and all get its result or its error.

Events:
- updated(bool): authenticate() succeeded (True) or clear() ran (False)
- renewed(str): a renewal produced a fresh access token
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urljoin

from curl_cffi.requests import AsyncSession

from ..exceptions import ApiError, AuthError
from .base import AuthManagerBase
from .tokens import AuthSession, AuthTokens, token_expires_at, utcnow

logger = logging.getLogger(__name__)

REFRESH_PATH = "/v1/account/refresh-token"


class TokenAuthManager(AuthManagerBase):
    """Auth manager for JWT access + refresh token sessions"""

    def __init__(self, base_url: str, session_factory=AsyncSession, timeout: int = 30):
        super().__init__()
        self.base_url = base_url
        self.timeout = timeout
        self._session_factory = session_factory
        self._session = AuthSession()
        self._renew_task: Optional[asyncio.Task] = None
        self._renew_refresh_token: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self._session.is_authenticated

    @property
    def session(self) -> AuthSession:
        return self._session

    @property
    def token(self) -> Optional[str]:
        """Access token if it is still valid"""
        if self._session.has_valid_access_token():
            return self._session.access_token
        return None

    @property
    def refresh_token(self) -> Optional[str]:
        return self._session.refresh_token

    async def authenticate(self, data: Union[AuthTokens, Dict[str, Any]]) -> None:
        tokens = self._coerce_tokens(data)

        # A live access token is adopted as is
        if tokens.token:
            try:
                expires_at = token_expires_at(tokens.token)
            except AuthError as e:
                logger.warning(f"[AUTH] Ignoring undecodable access token: {e}")
                expires_at = None
            if expires_at is not None and expires_at > utcnow():
                self._update_tokens(tokens.token, tokens.refresh_token)
                logger.info("[AUTH] Authenticated with stored access token")
                self.emit("updated", True)
                return

        # Otherwise start from the refresh token and renew once
        try:
            refresh_expires_at = token_expires_at(tokens.refresh_token)
        except AuthError:
            self.clear()
            raise
        if refresh_expires_at <= utcnow():
            self.clear()
            raise AuthError("Refresh token expired")

        self._session = AuthSession(
            refresh_token=tokens.refresh_token,
            refresh_expires_at=refresh_expires_at
        )
        await self._renew_token_safe()
        logger.info("[AUTH] Authenticated with refresh token")
        self.emit("updated", True)

    async def authenticate_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        token = await self.get_token()
        if not token:
            # Anonymous request
            return dict(request)
        headers = dict(request.get("headers") or {})
        headers["Authorization"] = token
        return {**request, "headers": headers}

    async def get_token(self) -> Optional[str]:
        if self._session.has_valid_access_token():
            return self._session.access_token
        if not self._session.refresh_token:
            return None
        return await self._renew_token_safe()

    def get_cookies(self) -> Dict[str, str]:
        token = self.token
        return {"authorization": token} if token else {}

    async def backup(self) -> Optional[AuthTokens]:
        if self._session.access_token and self._session.refresh_token:
            return AuthTokens(
                token=self._session.access_token,
                refresh_token=self._session.refresh_token
            )
        return None

    def clear(self) -> None:
        # Prevent duplicate events
        if self._session.is_empty():
            return
        self._session = AuthSession()
        logger.info("[AUTH] Session cleared")
        self.emit("updated", False)

    async def _renew_token_safe(self) -> str:
        """Join the in-flight renewal for the current refresh token or start a new one"""
        refresh_token = self._session.refresh_token
        task = self._renew_task
        if task is None or task.done() or self._renew_refresh_token != refresh_token:
            task = asyncio.ensure_future(self._renew_token(refresh_token))
            self._renew_task = task
            self._renew_refresh_token = refresh_token
        # shield: a cancelled caller must not cancel the shared renewal
        return await asyncio.shield(task)

    async def _renew_token(self, refresh_token: Optional[str]) -> str:
        try:
            return await self._do_renew_token(refresh_token)
        finally:
            if self._renew_task is asyncio.current_task():
                self._renew_task = None
                self._renew_refresh_token = None

    async def _do_renew_token(self, refresh_token: Optional[str]) -> str:
        if self._session.refresh_token != refresh_token:
            raise AuthError("Session changed while renewing token")
        if not refresh_token or self._session.is_refresh_expired():
            self.clear()
            raise AuthError("Refresh token expired")

        logger.info("[AUTH] Renewing access token...")
        try:
            status_code, payload = await self._request_renewal(refresh_token)
        except Exception as e:
            self.clear()
            logger.error(f"[ERROR] [AUTH] Token renewal request failed: {e}")
            raise AuthError(f"Token renewal failed: {e}") from e

        if self._session.refresh_token != refresh_token:
            raise AuthError("Session changed while renewing token")

        if not isinstance(payload, dict):
            self.clear()
            raise AuthError("Failed to parse token renewal response")

        if status_code >= 400 or payload.get("status") == "error":
            self.clear()
            error = ApiError(status_code, payload)
            logger.error(f"[ERROR] [AUTH] Token renewal rejected ({status_code}): {error}")
            raise AuthError(f"Token renewal rejected: {error}") from error

        data = payload.get("data") or {}
        token = data.get("token")
        new_refresh_token = data.get("refreshToken") or refresh_token
        if not token:
            self.clear()
            raise AuthError("Token renewal response has no token")

        self._update_tokens(token, new_refresh_token)
        logger.info("[OK] [AUTH] Access token renewed")
        self.emit("renewed", token)
        return token

    async def _request_renewal(self, refresh_token: str) -> Tuple[int, Any]:
        """POST the refresh token, returns (status_code, parsed body or None)"""
        url = urljoin(self.base_url, REFRESH_PATH)
        async with self._session_factory() as http:
            response = await http.post(
                url,
                json={"refreshToken": refresh_token},
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
        try:
            payload = response.json()
        except ValueError:
            logger.error(f"[ERROR] [AUTH] Unparseable renewal response: {response.text[:500]}")
            payload = None
        return response.status_code, payload

    def _update_tokens(self, token: str, refresh_token: str):
        self._session = AuthSession(
            access_token=token,
            access_expires_at=token_expires_at(token),
            refresh_token=refresh_token,
            refresh_expires_at=token_expires_at(refresh_token)
        )

    @staticmethod
    def _coerce_tokens(data: Union[AuthTokens, Dict[str, Any]]) -> AuthTokens:
        if isinstance(data, AuthTokens):
            return data
        try:
            return AuthTokens(
                token=data.get("token"),
                refresh_token=data.get("refresh_token") or data.get("refreshToken")
            )
        except ValueError as e:
            raise AuthError(str(e)) from e
