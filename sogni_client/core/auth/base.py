"""
Auth Manager Abstractions

Abstract interface for session managers

Implements:
- LSP: Token and cookie managers are interchangeable for RestClient/SocketClient
- DIP: Transport code depends on this abstraction, not on a concrete manager

Events:
- updated(bool): session became usable (True) or was cleared (False)
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..event_emitter import EventEmitter


class AuthManagerBase(EventEmitter, ABC):
    """Abstract base class for auth managers"""

    @property
    @abstractmethod
    def is_authenticated(self) -> bool:
        """True while the session can be used for authenticated calls"""
        pass

    @property
    def token(self) -> Optional[str]:
        """Valid access token if the session exposes one"""
        return None

    @abstractmethod
    async def authenticate(self, data: Any) -> None:
        """
        Restore authentication from previously backed up data

        Raises:
            AuthError: If the credentials are expired or rejected
        """
        pass

    @abstractmethod
    async def authenticate_request(self, request: Dict[str, Any]) -> Dict[str, Any]:
        """
        Decorate outbound request kwargs with proof of identity

        Args:
            request: kwargs for the HTTP session ("headers", "cookies", ...)

        Returns:
            New kwargs dict, the input is not mutated
        """
        pass

    @abstractmethod
    async def get_token(self) -> Optional[str]:
        """Current valid access token, renewed if needed, or None"""
        pass

    @abstractmethod
    def get_cookies(self) -> Dict[str, str]:
        """Cookies that identify the session"""
        pass

    @abstractmethod
    async def backup(self) -> Any:
        """
        Get the minimal data needed to restore the session later

        Raises:
            NotSupportedError: If the session never exposes raw credentials
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Wipe session data, emits updated(False) once"""
        pass
