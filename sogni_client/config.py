from pydantic import BaseModel, Field, field_validator
from typing import Literal, Optional


class ClientConfig(BaseModel):
    """
    SogniClient configuration

    app_id must be unique per running client: the server drops older
    connections that use the same id (close code 4015).
    """
    app_id: str
    rest_endpoint: str = "https://api.sogni.ai"
    socket_endpoint: str = "wss://socket.sogni.ai"
    network: Literal["fast", "relaxed"] = "fast"
    auth_type: Literal["token", "cookies"] = "token"
    log_level: str = "WARNING"

    # Socket
    disable_socket: bool = False
    reconnect_attempts: int = Field(default=5, ge=0)
    reconnect_delay: float = Field(default=1.0, ge=0)
    connect_wait_attempts: int = Field(default=10, ge=0)
    connect_wait_interval: float = Field(default=1.0, gt=0)
    ping_interval: Optional[float] = Field(default=15.0, gt=0)

    # Projects
    gc_timeout: float = Field(default=10.0, ge=0)

    # REST
    request_timeout: int = Field(default=30, gt=0)
    impersonate: str = "chrome"

    @field_validator("app_id")
    @classmethod
    def app_id_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("app_id cannot be empty")
        return value

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, value: str) -> str:
        return value.upper()
