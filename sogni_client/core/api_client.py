"""
API Client

Owns the auth manager, the REST client and the socket client, and applies
the socket reconnection policy:
- not recoverable close code: clear the session, emit 'disconnected'
- recoverable: retry after a fixed delay while the attempt budget lasts,
  then emit 'disconnected' and reset the budget

Events:
- connected(ServerConnectData)
- disconnected(ServerDisconnectData): terminal, no reconnect is pending
"""
import asyncio
import logging
from typing import Optional

from .auth.base import AuthManagerBase
from .event_emitter import EventEmitter
from .rest_client import RestClient
from .socket import ServerConnectData, ServerDisconnectData, SocketClient, is_not_recoverable

logger = logging.getLogger(__name__)

WS_RECONNECT_ATTEMPTS = 5
WS_RECONNECT_DELAY = 1.0


class ApiClient(EventEmitter):
    def __init__(
        self,
        app_id: str,
        auth: AuthManagerBase,
        rest: RestClient,
        socket: SocketClient,
        disable_socket: bool = False,
        reconnect_attempts: int = WS_RECONNECT_ATTEMPTS,
        reconnect_delay: float = WS_RECONNECT_DELAY
    ):
        super().__init__()
        self.app_id = app_id
        self._auth = auth
        self._rest = rest
        self._socket = socket
        self._disable_socket = disable_socket
        self._max_reconnect_attempts = reconnect_attempts
        self._reconnect_attempts = reconnect_attempts
        self._reconnect_delay = reconnect_delay
        self._reconnect_handle: Optional[asyncio.TimerHandle] = None

        self._auth.on("updated", self.handle_auth_updated)
        self._socket.on("connected", self.handle_socket_connect)
        self._socket.on("disconnected", self.handle_socket_disconnect)

    @property
    def auth(self) -> AuthManagerBase:
        return self._auth

    @property
    def rest(self) -> RestClient:
        return self._rest

    @property
    def socket(self) -> SocketClient:
        return self._socket

    @property
    def is_authenticated(self) -> bool:
        return self._auth.is_authenticated

    @property
    def socket_enabled(self) -> bool:
        return not self._disable_socket

    @property
    def reconnect_attempts(self) -> int:
        """Remaining reconnect budget"""
        return self._reconnect_attempts

    @property
    def reconnect_pending(self) -> bool:
        return self._reconnect_handle is not None

    def handle_socket_connect(self, data: ServerConnectData):
        self._reconnect_attempts = self._max_reconnect_attempts
        self.emit("connected", data)

    def handle_socket_disconnect(self, data: ServerDisconnectData):
        if is_not_recoverable(data.code):
            logger.error(f"[ERROR] Not recoverable socket error: {data}")
            self._cancel_reconnect()
            self._auth.clear()
            self.emit("disconnected", data)
            return
        if self._reconnect_attempts <= 0:
            logger.warning(f"[WARNING] Socket reconnect attempts exhausted: {data}")
            self._reconnect_attempts = self._max_reconnect_attempts
            self.emit("disconnected", data)
            return
        self._reconnect_attempts -= 1
        logger.info(
            f"[SOCKET] Reconnecting in {self._reconnect_delay}s "
            f"({self._reconnect_attempts} attempts left, close code {data.code})"
        )
        self._schedule_reconnect()

    def handle_auth_updated(self, is_authenticated: bool):
        if not is_authenticated:
            self._cancel_reconnect()
            if self._socket.is_connected:
                self._socket.disconnect()
        elif not self._disable_socket:
            self._cancel_reconnect()
            self._socket.connect()

    def close(self):
        """Stop reconnecting and drop the socket"""
        self._cancel_reconnect()
        self._socket.disconnect()

    def _schedule_reconnect(self):
        self._cancel_reconnect()
        loop = asyncio.get_running_loop()
        self._reconnect_handle = loop.call_later(self._reconnect_delay, self._reconnect)

    def _reconnect(self):
        self._reconnect_handle = None
        self._socket.connect()

    def _cancel_reconnect(self):
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None
