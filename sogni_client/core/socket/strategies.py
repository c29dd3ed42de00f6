"""
Transport Strategies

How the socket proves identity and whether it keeps the link alive,
selected once at construction instead of checked at runtime.

- HeaderTransport: Authorization header on the handshake, periodic ping
- CookieTransport: 'authorization' cookie scoped to the service domain, no ping
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Optional

from ..auth.base import AuthManagerBase

DEFAULT_PING_INTERVAL = 15.0
COOKIE_DOMAIN = ".sogni.ai"


@dataclass
class HandshakeOptions:
    """
    Handshake data for one connection attempt

    Attributes:
        headers: extra HTTP headers for the upgrade request
        cookies: cookies to put in the connection's jar
        cookie_domain: domain the cookies are scoped to
    """
    headers: Dict[str, str] = field(default_factory=dict)
    cookies: Dict[str, str] = field(default_factory=dict)
    cookie_domain: Optional[str] = None


class TransportStrategy(ABC):
    """Abstract base class for socket transport strategies"""

    ping_interval: Optional[float] = None

    @abstractmethod
    async def handshake_options(self, auth: AuthManagerBase) -> HandshakeOptions:
        """
        Build handshake data from the current session

        Raises:
            AuthError: If the access token had to be renewed and renewal failed
        """
        pass


class HeaderTransport(TransportStrategy):
    """Server-side runtime: can set headers and originate pings"""

    def __init__(self, ping_interval: Optional[float] = DEFAULT_PING_INTERVAL):
        self.ping_interval = ping_interval

    async def handshake_options(self, auth: AuthManagerBase) -> HandshakeOptions:
        token = await auth.get_token()
        if not token:
            return HandshakeOptions(cookies=auth.get_cookies(), cookie_domain=COOKIE_DOMAIN)
        return HandshakeOptions(headers={"Authorization": token})


class CookieTransport(TransportStrategy):
    """Browser-like runtime: identity travels in a domain cookie only"""

    def __init__(self, cookie_domain: str = COOKIE_DOMAIN):
        self.cookie_domain = cookie_domain
        self.ping_interval = None

    async def handshake_options(self, auth: AuthManagerBase) -> HandshakeOptions:
        # Renews an expired token before the cookie is read
        await auth.get_token()
        return HandshakeOptions(cookies=auth.get_cookies(), cookie_domain=self.cookie_domain)


def create_transport_strategy(auth_type: str, ping_interval: Optional[float] = DEFAULT_PING_INTERVAL) -> TransportStrategy:
    """Token sessions use headers, cookie sessions use cookies"""
    if auth_type == "token":
        return HeaderTransport(ping_interval=ping_interval)
    if auth_type == "cookies":
        return CookieTransport()
    raise ValueError(f"Unknown auth type: {auth_type}")
