"""
Socket close codes

Codes sent by the server when it closes the socket on purpose.
Any code not listed as an auth problem is recoverable.
"""
from enum import IntEnum


class ErrorCode(IntEnum):
    # Transport dropped without a close frame
    ABNORMAL_CLOSURE = 1006
    # App ID is blocked from connecting
    APP_ID_BLOCKED = 4010
    # New connection from same app-id, server will switch to it
    SWITCH_CONNECTION = 4015
    # Authentication error happened
    AUTH_ERROR = 4021


NOT_RECOVERABLE_CODES = frozenset({
    ErrorCode.APP_ID_BLOCKED,
    ErrorCode.SWITCH_CONNECTION,
    ErrorCode.AUTH_ERROR,
})


def is_not_recoverable(code: int) -> bool:
    """Close codes that must invalidate the session instead of reconnecting"""
    return code in NOT_RECOVERABLE_CODES
