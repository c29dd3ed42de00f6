"""
Client Exceptions

Error taxonomy shared by the auth, transport and project layers:
- AuthError: credentials invalid, expired or rejected (session is cleared)
- SocketConnectionError: socket open/timeout failures (socket is disconnected first)
- ProtocolError: malformed inbound frame or payload (logged and dropped)
- DomainError: project/job failure with a stable numeric code
- ApiError: REST call answered with the error envelope
"""
from typing import Any, Dict, Optional


class SogniError(Exception):
    """Base class for all client errors"""
    pass


class AuthError(SogniError):
    """Raised when a credential is invalid, expired or rejected by the server"""
    pass


class NotSupportedError(SogniError):
    """Raised when an operation is not available for the active auth mode"""
    pass


class SocketConnectionError(SogniError):
    """Raised when the socket cannot be used to send a message"""
    pass


class ConnectionTimeout(SocketConnectionError):
    """Raised when the socket stays in 'connecting' state for too long"""
    pass


class ConnectionFailed(SocketConnectionError):
    """Raised when the socket is missing or closed instead of opening"""
    pass


class ProtocolError(SogniError):
    """Raised when an inbound frame or payload cannot be decoded"""
    pass


class ApiError(SogniError):
    """
    REST error envelope

    Attributes:
        status: HTTP status code
        payload: {"status": "error", "message": str, "errorCode": int}
    """

    def __init__(self, status: int, payload: Dict[str, Any]):
        self.status = status
        self.payload = payload
        super().__init__(payload.get("message") or f"API request failed with status {status}")

    @property
    def error_code(self) -> Optional[int]:
        return self.payload.get("errorCode")


class DomainError(SogniError):
    """
    Failure of a Project or Job

    The same instance is stored on the failing entity, passed to its
    'failed' listeners and raised from wait_for_completion().
    """

    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message}

    def __reduce__(self):
        return self.__class__, (self.code, self.message)

    def __repr__(self) -> str:
        return f"DomainError(code={self.code}, message={self.message!r})"
