"""
Cookie Auth Manager

Session identified by cookies issued to the client (browser-style login).
The raw token is never exposed, so backup() is not supported.
"""
import logging
from typing import Any, Dict, Optional

from ..exceptions import NotSupportedError
from .base import AuthManagerBase

logger = logging.getLogger(__name__)


class CookieAuthManager(AuthManagerBase):
    """
    There is no way to check a cookie session locally, it is considered
    usable once authenticate() ran and until clear() is called.
    """

    def __init__(self):
        super().__init__()
        self._cookies: Dict[str, str] = {}
        self._is_authenticated = False

    @property
    def is_authenticated(self) -> bool:
        return self._is_authenticated

    async def authenticate(self, data: Optional[Dict[str, str]] = None) -> None:
        if data:
            self._cookies = dict(data)
        self._is_authenticated = True
        logger.info("[AUTH] Cookie session marked as authenticated")
        self.emit("updated", True)

    async def authenticate_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if not self._cookies:
            return dict(request)
        cookies = dict(request.get("cookies") or {})
        cookies.update(self._cookies)
        return {**request, "cookies": cookies}

    async def get_token(self) -> Optional[str]:
        return None

    def get_cookies(self) -> Dict[str, str]:
        return dict(self._cookies)

    async def backup(self) -> Any:
        raise NotSupportedError("Not supported with cookie authentication")

    def clear(self) -> None:
        if not self._is_authenticated and not self._cookies:
            return
        self._is_authenticated = False
        self._cookies = {}
        self.emit("updated", False)
