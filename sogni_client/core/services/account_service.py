"""
Account Service - Business logic cho account session management
Implements: Single Responsibility Principle (SRP)

Keeps CurrentAccount in sync with auth and socket events.
"""
from typing import Any, Dict, Optional, Union
import logging

from ..api_client import ApiClient
from ..auth.tokens import AuthTokens
from ..domain.account import CurrentAccount, NetworkStatus
from ..exceptions import AuthError, SogniError
from ..socket import ServerConnectData, ServerDisconnectData

logger = logging.getLogger(__name__)


class AccountService:
    """Service xử lý account business logic"""

    def __init__(
        self,
        client: ApiClient,
        current_account: CurrentAccount
    ):
        self.client = client
        self.current_account = current_account

        client.on("connected", self.handle_server_connected)
        client.on("disconnected", self.handle_server_disconnected)
        client.auth.on("updated", self.handle_auth_updated)
        client.auth.on("renewed", self.handle_token_renewed)

    async def login(self, tokens: Union[AuthTokens, Dict[str, Any], None] = None) -> CurrentAccount:
        """
        Restore a session from backed up tokens (or cookies in cookie mode)

        The socket connects automatically once the session is usable.

        Raises:
            AuthError: If the tokens are expired or rejected
        """
        await self.client.auth.authenticate(tokens)
        return self.current_account

    async def logout(self):
        """Invalidate the session on the server (best effort), then locally"""
        if self.client.is_authenticated:
            try:
                await self.client.rest.post("/v1/account/logout")
            except SogniError as e:
                logger.error(f"[ERROR] Failed to logout: {e}")
        self.client.auth.clear()
        self.current_account._clear()

    async def backup(self) -> Optional[AuthTokens]:
        """
        Tokens to persist and pass to login() later

        Raises:
            NotSupportedError: With cookie authentication
        """
        return await self.client.auth.backup()

    def switch_network(self, network: str):
        """Reconnect the socket to another network ('fast' or 'relaxed')"""
        if not self.client.is_authenticated:
            raise AuthError("Not authenticated")
        self.current_account._update(network_status=NetworkStatus.SWITCHING, network=network)
        self.client.socket.switch_network(network)

    def handle_server_connected(self, data: ServerConnectData):
        self.current_account._update(
            network_status=NetworkStatus.CONNECTED,
            network=data.network
        )

    def handle_server_disconnected(self, data: ServerDisconnectData):
        self.current_account._update(network_status=NetworkStatus.DISCONNECTED, network=None)

    def handle_auth_updated(self, is_authenticated: bool):
        if not is_authenticated:
            self.current_account._clear()
            return
        delta = {"token": self.client.auth.token}
        if self.client.socket_enabled:
            delta["network_status"] = NetworkStatus.CONNECTING
        self.current_account._update(**delta)

    def handle_token_renewed(self, token: str):
        self.current_account._update(token=token)
