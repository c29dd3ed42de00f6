"""
Account Domain Models

Aggregate Root:
- CurrentAccount: what the client knows about the signed-in account,
  kept in sync by AccountService from auth and socket events
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from ..auth.tokens import decode_token, utcnow
from ..exceptions import AuthError
from .entity import DataEntity


class NetworkStatus(str, Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    SWITCHING = "switching"


@dataclass
class AccountData:
    token: Optional[str] = None
    network_status: NetworkStatus = NetworkStatus.DISCONNECTED
    network: Optional[str] = None
    wallet_address: Optional[str] = None
    expires_at: Optional[datetime] = None


class CurrentAccount(DataEntity[AccountData]):
    def __init__(self, data: Optional[AccountData] = None):
        super().__init__(data or AccountData())

    @property
    def token(self) -> Optional[str]:
        return self.data.token

    @property
    def network_status(self) -> NetworkStatus:
        return self.data.network_status

    @property
    def network(self) -> Optional[str]:
        return self.data.network

    @property
    def wallet_address(self) -> Optional[str]:
        return self.data.wallet_address

    @property
    def expires_at(self) -> Optional[datetime]:
        return self.data.expires_at

    @property
    def is_authenticated(self) -> bool:
        return bool(self.data.token) and self.data.expires_at is not None and self.data.expires_at > utcnow()

    def _update(self, **delta) -> List[str]:
        # wallet_address and expires_at are derived from the token claims
        if "token" in delta:
            delta.update(self._token_claims(delta["token"]))
        return super()._update(**delta)

    def _clear(self):
        self._update(
            token=None,
            network_status=NetworkStatus.DISCONNECTED,
            network=None
        )

    @staticmethod
    def _token_claims(token: Optional[str]) -> dict:
        if not token:
            return {"wallet_address": None, "expires_at": None}
        try:
            claims = decode_token(token)
        except AuthError:
            return {"wallet_address": None, "expires_at": None}
        return {
            "wallet_address": claims.get("addr"),
            "expires_at": datetime.fromtimestamp(claims["exp"], tz=timezone.utc)
        }
