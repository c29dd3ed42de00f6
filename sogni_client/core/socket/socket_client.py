"""
Socket Client

Owns exactly one WebSocket connection at a time, frames and deframes
application messages and emits them as events named by the envelope type.

States: disconnected -> connecting -> connected -> disconnected

Events:
- connected(ServerConnectData)
- disconnected(ServerDisconnectData): the server or the transport closed the
  connection. disconnect() called by the client itself is silent.
- <message type>(payload): one per decoded inbound frame
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from http.cookies import SimpleCookie
from typing import Any, Optional

import aiohttp
from yarl import URL

from ..auth.base import AuthManagerBase
from ..event_emitter import EventEmitter
from ..exceptions import ConnectionFailed, ConnectionTimeout, ProtocolError, SogniError
from .envelope import decode_message, encode_message
from .error_codes import ErrorCode
from .strategies import HandshakeOptions, HeaderTransport, TransportStrategy

logger = logging.getLogger(__name__)

CLIENT_NAME = "Sogni/3.0.22042"
CLIENT_TYPE = "artist"
CONNECT_WAIT_ATTEMPTS = 10
CONNECT_WAIT_INTERVAL = 1.0

_CLOSE_TYPES = (aiohttp.WSMsgType.CLOSE, aiohttp.WSMsgType.CLOSING, aiohttp.WSMsgType.CLOSED)


class SocketState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass
class ServerConnectData:
    network: str


@dataclass
class ServerDisconnectData:
    code: int
    reason: str = ""


class Connection:
    """
    One connection attempt and its resources

    Never reused: a reconnect always builds a new Connection.
    """

    def __init__(self):
        self.state = SocketState.CONNECTING
        self.session: Optional[aiohttp.ClientSession] = None
        self.ws: Optional[aiohttp.ClientWebSocketResponse] = None
        self.task: Optional[asyncio.Task] = None
        self.keepalive: Optional[asyncio.Task] = None

    def disarm_keepalive(self):
        if self.keepalive is not None:
            self.keepalive.cancel()
            self.keepalive = None


class SocketClient(EventEmitter):
    """Persistent channel to the socket server"""

    def __init__(
        self,
        base_url: str,
        auth: AuthManagerBase,
        app_id: str,
        network: str = "fast",
        strategy: Optional[TransportStrategy] = None,
        session_factory=aiohttp.ClientSession,
        connect_wait_attempts: int = CONNECT_WAIT_ATTEMPTS,
        connect_wait_interval: float = CONNECT_WAIT_INTERVAL
    ):
        super().__init__()
        self.base_url = base_url
        self.app_id = app_id
        self._auth = auth
        self._network = network
        self._strategy = strategy or HeaderTransport()
        self._session_factory = session_factory
        self._connect_wait_attempts = connect_wait_attempts
        self._connect_wait_interval = connect_wait_interval
        self._connection: Optional[Connection] = None

    @property
    def network(self) -> str:
        return self._network

    @property
    def is_connected(self) -> bool:
        """True while a connection exists, open or still opening"""
        return self._connection is not None

    @property
    def state(self) -> SocketState:
        if self._connection is None:
            return SocketState.DISCONNECTED
        return self._connection.state

    @property
    def url(self) -> URL:
        return URL(self.base_url).update_query(
            appId=self.app_id,
            clientName=CLIENT_NAME,
            clientType=CLIENT_TYPE,
            forceWorkerId=self._network
        )

    def connect(self):
        """Start a new connection, tearing down the current one first"""
        self.disconnect()
        connection = Connection()
        self._connection = connection
        connection.task = asyncio.get_running_loop().create_task(
            self._run(connection),
            name=f"SocketClient_connection_{id(connection)}"
        )
        logger.info(f"[SOCKET] Connecting to {self.base_url} (network: {self._network})")

    def disconnect(self):
        """Drop the current connection without emitting 'disconnected'"""
        connection = self._connection
        if connection is None:
            return
        self._connection = None
        connection.state = SocketState.DISCONNECTED
        connection.disarm_keepalive()
        if connection.task is not None and connection.task is not asyncio.current_task():
            connection.task.cancel()
        logger.info("[SOCKET] Disconnected by client")

    def switch_network(self, network: str):
        self._network = network
        self.disconnect()
        self.connect()

    async def send(self, message_type: str, data: Any):
        """
        Send one message, waiting for a connection that is still opening

        Raises:
            ConnectionTimeout: If the connection did not open in time
            ConnectionFailed: If there is no connection or it closed instead of opening
        """
        connection = await self._wait_for_connection()
        try:
            await connection.ws.send_str(encode_message(message_type, data))
        except (ConnectionError, aiohttp.ClientError, RuntimeError) as e:
            if self._connection is connection:
                self.disconnect()
            raise ConnectionFailed(f"WebSocket send failed: {e}") from e

    async def _wait_for_connection(self) -> Connection:
        connection = self._connection
        if connection is None:
            raise ConnectionFailed("WebSocket not connected")
        attempts = self._connect_wait_attempts
        while connection.state is SocketState.CONNECTING:
            if attempts <= 0:
                if self._connection is connection:
                    self.disconnect()
                raise ConnectionTimeout("WebSocket connection timeout")
            logger.info("[SOCKET] Waiting for WebSocket connection...")
            attempts -= 1
            await asyncio.sleep(self._connect_wait_interval)
        if connection.state is not SocketState.CONNECTED or connection.ws is None:
            if self._connection is connection:
                self.disconnect()
            raise ConnectionFailed("WebSocket connection failed")
        return connection

    async def _run(self, connection: Connection):
        """Open the connection, then read frames until it closes"""
        code = ErrorCode.ABNORMAL_CLOSURE
        reason = ""
        try:
            try:
                options = await self._strategy.handshake_options(self._auth)
                connection.session = self._session_factory()
                self._apply_cookies(connection.session, options)
                connection.ws = await connection.session.ws_connect(
                    str(self.url),
                    headers=options.headers or None,
                    autoping=True
                )
            except aiohttp.WSServerHandshakeError as e:
                logger.error(f"[ERROR] [SOCKET] Handshake rejected ({e.status}): {e.message}")
                if e.status in (401, 403):
                    code = ErrorCode.AUTH_ERROR
                reason = str(e.message)
                return
            except (SogniError, aiohttp.ClientError, OSError, asyncio.TimeoutError) as e:
                logger.error(f"[ERROR] [SOCKET] Connection failed: {e}")
                reason = str(e)
                return

            if self._connection is not connection:
                return
            connection.state = SocketState.CONNECTED
            self._arm_keepalive(connection)
            logger.info(f"[OK] [SOCKET] Connected (network: {self._network})")
            self.emit("connected", ServerConnectData(network=self._network))

            while self._connection is connection:
                msg = await connection.ws.receive()
                if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
                    self._handle_message(msg.data)
                elif msg.type in _CLOSE_TYPES:
                    if msg.type is aiohttp.WSMsgType.CLOSE:
                        reason = msg.extra or ""
                    break
                elif msg.type is aiohttp.WSMsgType.ERROR:
                    logger.error(f"[ERROR] [SOCKET] WebSocket error: {msg.data}")
                    reason = str(msg.data)
                    break

            if connection.ws.close_code is not None:
                code = connection.ws.close_code
        finally:
            connection.disarm_keepalive()
            await self._release(connection)
            self._handle_close(connection, code, reason)

    def _handle_close(self, connection: Connection, code: int, reason: str):
        # Stale connections were already replaced or dropped by disconnect()
        if self._connection is not connection:
            return
        self._connection = None
        connection.state = SocketState.DISCONNECTED
        logger.info(f"[SOCKET] WebSocket closed (code: {code}, reason: {reason!r})")
        self.emit("disconnected", ServerDisconnectData(code=int(code), reason=str(reason)))

    def _handle_message(self, frame):
        try:
            message_type, payload = decode_message(frame)
        except ProtocolError as e:
            logger.error(f"[ERROR] [SOCKET] Dropping malformed frame: {e}")
            return
        logger.debug(f"[SOCKET] Event {message_type}: {payload}")
        self.emit(message_type, payload)

    def _arm_keepalive(self, connection: Connection):
        interval = self._strategy.ping_interval
        if not interval:
            return
        connection.keepalive = asyncio.get_running_loop().create_task(
            self._keepalive(connection, interval),
            name=f"SocketClient_keepalive_{id(connection)}"
        )

    async def _keepalive(self, connection: Connection, interval: float):
        while connection.state is SocketState.CONNECTED:
            await asyncio.sleep(interval)
            if connection.state is not SocketState.CONNECTED:
                return
            try:
                await connection.ws.ping()
            except (ConnectionError, aiohttp.ClientError, RuntimeError) as e:
                logger.warning(f"[WARNING] [SOCKET] Ping failed: {e}")
                return

    @staticmethod
    def _apply_cookies(session, options: HandshakeOptions):
        if not options.cookies:
            return
        domain = (options.cookie_domain or "").lstrip(".")
        jar = SimpleCookie()
        for name, value in options.cookies.items():
            jar[name] = value
            if domain:
                jar[name]["domain"] = domain
        session.cookie_jar.update_cookies(jar, response_url=URL(f"https://{domain}/") if domain else URL())

    @staticmethod
    async def _release(connection: Connection):
        ws, session = connection.ws, connection.session
        connection.ws = None
        connection.session = None
        try:
            if ws is not None and not ws.closed:
                await ws.close()
        finally:
            if session is not None:
                await session.close()
