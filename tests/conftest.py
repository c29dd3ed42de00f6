"""
Pytest configuration và shared fixtures

Fakes for the network edges: JWTs, the WebSocket, the aiohttp session
and the HTTP response objects returned by curl_cffi.
"""
import asyncio
import json
import time
from collections import namedtuple
from typing import Any, Callable, List, Optional
from unittest.mock import Mock

import aiohttp
import jwt
import pybase64
import pytest

from sogni_client.core.auth.cookie_auth import CookieAuthManager
from sogni_client.core.event_emitter import EventEmitter

FakeMessage = namedtuple("FakeMessage", ["type", "data", "extra"])


def make_token(expires_in: int = 3600, **claims) -> str:
    """Signed JWT with an 'exp' claim relative to now"""
    payload = {"exp": int(time.time()) + expires_in, **claims}
    return jwt.encode(payload, "test-secret", algorithm="HS256")


def make_frame(message_type: str, data: Any = None) -> str:
    envelope = {"type": message_type}
    if data is not None:
        envelope["data"] = pybase64.b64encode(json.dumps(data).encode()).decode()
    return json.dumps(envelope)


async def wait_until(predicate: Callable[[], bool], timeout: float = 1.0):
    """Yield to the loop until predicate() is true"""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.001)


class FakeWebSocket:
    """In-memory stand-in for aiohttp.ClientWebSocketResponse"""

    def __init__(self):
        self.queue: asyncio.Queue = asyncio.Queue()
        self.sent: List[str] = []
        self.pings = 0
        self.closed = False
        self.close_code: Optional[int] = None

    async def receive(self):
        return await self.queue.get()

    async def send_str(self, data: str):
        if self.closed:
            raise ConnectionResetError("socket closed")
        self.sent.append(data)

    async def ping(self):
        self.pings += 1

    async def close(self, code: int = 1000):
        if self.closed:
            return
        self.closed = True
        if self.close_code is None:
            self.close_code = code
        self.queue.put_nowait(FakeMessage(aiohttp.WSMsgType.CLOSED, None, None))

    # Test helpers
    def server_send(self, message_type: str, data: Any = None):
        self.queue.put_nowait(FakeMessage(aiohttp.WSMsgType.TEXT, make_frame(message_type, data), None))

    def server_send_raw(self, frame: str):
        self.queue.put_nowait(FakeMessage(aiohttp.WSMsgType.TEXT, frame, None))

    def server_close(self, code: int, reason: str = ""):
        self.close_code = code
        self.closed = True
        self.queue.put_nowait(FakeMessage(aiohttp.WSMsgType.CLOSE, code, reason))

    def drop(self):
        """Transport lost without a close frame"""
        self.closed = True
        self.queue.put_nowait(FakeMessage(aiohttp.WSMsgType.CLOSED, None, None))


class FakeSession:
    """In-memory stand-in for aiohttp.ClientSession"""

    def __init__(self, factory: "FakeSessionFactory"):
        self.factory = factory
        self.cookie_jar = Mock()
        self.closed = False
        self.connect_calls = []

    async def ws_connect(self, url: str, headers=None, autoping=True):
        self.connect_calls.append({"url": url, "headers": headers})
        if self.factory.gate is not None:
            await self.factory.gate.wait()
        if self.factory.errors:
            raise self.factory.errors.pop(0)
        ws = FakeWebSocket()
        self.factory.websockets.append(ws)
        return ws

    async def close(self):
        self.closed = True


class FakeSessionFactory:
    """
    Callable passed as session_factory

    gate: when set, ws_connect blocks until the event is set
    errors: exceptions raised by the next ws_connect calls, in order
    """

    def __init__(self):
        self.sessions: List[FakeSession] = []
        self.websockets: List[FakeWebSocket] = []
        self.errors: List[Exception] = []
        self.gate: Optional[asyncio.Event] = None

    def __call__(self, *args, **kwargs) -> FakeSession:
        session = FakeSession(self)
        self.sessions.append(session)
        return session

    @property
    def ws(self) -> FakeWebSocket:
        return self.websockets[-1]


class FakeResponse:
    """curl_cffi response stand-in"""

    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


class FakeSocket(EventEmitter):
    """SocketClient stand-in for layers above the transport"""

    def __init__(self):
        super().__init__()
        self.connected = False
        self.connect = Mock(side_effect=self._connect)
        self.disconnect = Mock(side_effect=self._disconnect)
        self.switch_network = Mock()
        self.sent = []
        self.send_error: Optional[Exception] = None

    def _connect(self):
        self.connected = True

    def _disconnect(self):
        self.connected = False

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def send(self, message_type: str, data: Any):
        if self.send_error is not None:
            raise self.send_error
        self.sent.append((message_type, data))


class FakeApiClient(EventEmitter):
    """ApiClient stand-in: auth, socket and rest without the reconnect policy"""

    def __init__(self, auth=None, socket=None, rest=None, socket_enabled: bool = True):
        super().__init__()
        self.auth = auth or CookieAuthManager()
        self.socket = socket or FakeSocket()
        self.rest = rest or Mock()
        self.socket_enabled = socket_enabled

    @property
    def is_authenticated(self) -> bool:
        return self.auth.is_authenticated


@pytest.fixture
def session_factory() -> FakeSessionFactory:
    return FakeSessionFactory()


@pytest.fixture
def fake_socket() -> FakeSocket:
    return FakeSocket()


@pytest.fixture
def token() -> str:
    return make_token(3600, addr="0xabc")


@pytest.fixture
def refresh_token() -> str:
    return make_token(86400)
