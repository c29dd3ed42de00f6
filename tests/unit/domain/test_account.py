"""
Unit tests for CurrentAccount
"""
from conftest import make_token
from sogni_client.core.domain.account import CurrentAccount, NetworkStatus


class TestCurrentAccount:
    """Test token derived fields"""

    def test_anonymous_by_default(self):
        account = CurrentAccount()

        assert not account.is_authenticated
        assert account.network_status is NetworkStatus.DISCONNECTED
        assert account.wallet_address is None

    def test_token_sets_wallet_and_expiry(self):
        account = CurrentAccount()
        updates = []
        account.on("updated", updates.append)

        account._update(token=make_token(3600, addr="0x123"))

        assert account.is_authenticated
        assert account.wallet_address == "0x123"
        assert account.expires_at is not None
        assert sorted(updates[0]) == ["expires_at", "token", "wallet_address"]

    def test_expired_token_not_authenticated(self):
        account = CurrentAccount()
        account._update(token=make_token(-10))
        assert not account.is_authenticated

    def test_undecodable_token_has_no_claims(self):
        account = CurrentAccount()
        account._update(token="not-a-jwt")

        assert account.token == "not-a-jwt"
        assert account.expires_at is None
        assert not account.is_authenticated

    def test_clear(self):
        account = CurrentAccount()
        account._update(token=make_token(3600, addr="0x1"), network_status=NetworkStatus.CONNECTED, network="fast")

        account._clear()

        assert account.token is None
        assert account.wallet_address is None
        assert account.network_status is NetworkStatus.DISCONNECTED
        assert account.network is None

    def test_to_dict(self):
        account = CurrentAccount()
        account._update(network_status=NetworkStatus.CONNECTING)

        assert account.to_dict()["network_status"] == "connecting"
