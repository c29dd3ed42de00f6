"""
Sogni client

Session layer for the Sogni image generation network: token lifecycle,
a resilient socket and observable Project/Job objects.
"""

from .client import SogniClient
from .config import ClientConfig
from .core.auth import AuthTokens
from .core.domain import (
    AvailableModel,
    CurrentAccount,
    Job,
    JobStatus,
    NetworkStatus,
    Project,
    ProjectParams,
    ProjectStatus
)
from .core.exceptions import (
    ApiError,
    AuthError,
    ConnectionFailed,
    ConnectionTimeout,
    DomainError,
    NotSupportedError,
    ProtocolError,
    SocketConnectionError,
    SogniError
)
from .core.services import register_error_reason

__version__ = "0.1.0"

__all__ = [
    "SogniClient",
    "ClientConfig",
    "AuthTokens",
    "AvailableModel",
    "CurrentAccount",
    "Job",
    "JobStatus",
    "NetworkStatus",
    "Project",
    "ProjectParams",
    "ProjectStatus",
    "ApiError",
    "AuthError",
    "ConnectionFailed",
    "ConnectionTimeout",
    "DomainError",
    "NotSupportedError",
    "ProtocolError",
    "SocketConnectionError",
    "SogniError",
    "register_error_reason",
]
