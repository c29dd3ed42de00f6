"""
Unit tests for TokenAuthManager

Tests:
- authenticate() with live access token / refresh token only / expired refresh token
- single in-flight renewal shared by concurrent callers
- renewal failure clears the session
- clear() idempotence, backup(), request decoration
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from conftest import FakeResponse, make_token, wait_until
from sogni_client.core.auth.token_auth import TokenAuthManager
from sogni_client.core.auth.tokens import AuthTokens
from sogni_client.core.exceptions import AuthError


def renewal_ok(token: str, refresh_token: str = None):
    data = {"token": token}
    if refresh_token:
        data["refreshToken"] = refresh_token
    return 200, {"status": "success", "data": data}


@pytest.fixture
def auth():
    return TokenAuthManager("https://api.test")


@pytest.fixture
def updates(auth):
    events = []
    auth.on("updated", events.append)
    return events


class TestAuthenticate:
    """Test authenticate()"""

    @pytest.mark.asyncio
    async def test_live_access_token_adopted_without_renewal(self, auth, updates, token, refresh_token):
        auth._request_renewal = AsyncMock()

        await auth.authenticate(AuthTokens(token=token, refresh_token=refresh_token))

        assert auth.is_authenticated
        assert auth.token == token
        auth._request_renewal.assert_not_called()
        assert updates == [True]

    @pytest.mark.asyncio
    async def test_refresh_token_only_renews_once(self, auth, updates, refresh_token):
        fresh = make_token(3600)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(fresh))

        await auth.authenticate({"refreshToken": refresh_token})

        auth._request_renewal.assert_awaited_once_with(refresh_token)
        assert auth.token == fresh
        assert updates == [True]

    @pytest.mark.asyncio
    async def test_expired_access_token_falls_back_to_refresh(self, auth, refresh_token):
        fresh = make_token(3600)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(fresh))

        await auth.authenticate(AuthTokens(token=make_token(-10), refresh_token=refresh_token))

        assert auth.token == fresh

    @pytest.mark.asyncio
    async def test_expired_refresh_token_raises(self, auth, updates):
        auth._request_renewal = AsyncMock()

        with pytest.raises(AuthError, match="expired"):
            await auth.authenticate(AuthTokens(refresh_token=make_token(-10)))

        assert not auth.is_authenticated
        auth._request_renewal.assert_not_called()
        assert updates == []

    @pytest.mark.asyncio
    async def test_rejected_refresh_token_raises_and_clears(self, auth, updates, refresh_token):
        auth._request_renewal = AsyncMock(return_value=(401, {
            "status": "error", "message": "Invalid refresh token", "errorCode": 4
        }))

        with pytest.raises(AuthError, match="rejected"):
            await auth.authenticate(AuthTokens(refresh_token=refresh_token))

        assert not auth.is_authenticated
        assert auth.session.is_empty()
        assert updates == [False]

    @pytest.mark.asyncio
    async def test_garbage_refresh_token_raises(self, auth):
        with pytest.raises(AuthError):
            await auth.authenticate({"refresh_token": "not-a-jwt"})
        assert not auth.is_authenticated

    @pytest.mark.asyncio
    async def test_missing_refresh_token_raises(self, auth):
        with pytest.raises(AuthError):
            await auth.authenticate({"token": make_token()})


class TestRenewal:
    """Test single in-flight renewal"""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_renewal(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        fresh = make_token(3600)
        release = asyncio.Event()

        async def slow_renewal(token):
            await release.wait()
            return renewal_ok(fresh)

        auth._request_renewal = AsyncMock(side_effect=slow_renewal)

        first = asyncio.ensure_future(auth.get_token())
        second = asyncio.ensure_future(auth.get_token())
        await asyncio.sleep(0)
        release.set()
        results = await asyncio.gather(first, second)

        assert results == [fresh, fresh]
        assert auth._request_renewal.await_count == 1

    @pytest.mark.asyncio
    async def test_renewal_cache_cleared_after_failure(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        auth._request_renewal = AsyncMock(side_effect=ConnectionError("network down"))

        results = await asyncio.gather(auth.get_token(), auth.get_token(), return_exceptions=True)

        assert all(isinstance(r, AuthError) for r in results)
        assert auth._request_renewal.await_count == 1
        assert auth._renew_task is None
        assert not auth.is_authenticated

    @pytest.mark.asyncio
    async def test_new_session_does_not_join_stale_renewal(self, auth, updates, refresh_token):
        new_refresh_token = make_token(172800)
        fresh = make_token(3600)
        release = asyncio.Event()

        async def renewal(token):
            if token == refresh_token:
                await release.wait()
            return renewal_ok(fresh)

        auth._request_renewal = AsyncMock(side_effect=renewal)

        first = asyncio.ensure_future(auth.authenticate(AuthTokens(refresh_token=refresh_token)))
        await wait_until(lambda: auth._request_renewal.await_count == 1)
        auth.clear()

        await auth.authenticate(AuthTokens(refresh_token=new_refresh_token))
        release.set()
        with pytest.raises(AuthError, match="Session changed"):
            await first

        assert auth._request_renewal.await_count == 2
        assert auth._request_renewal.await_args_list[1].args == (new_refresh_token,)
        assert auth.is_authenticated
        assert auth.refresh_token == new_refresh_token
        assert auth.token == fresh
        assert auth._renew_task is None
        assert updates == [False, True]

    @pytest.mark.asyncio
    async def test_renewal_cache_released_before_callers_resume(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        auth._request_renewal = AsyncMock(return_value=(500, None))

        with pytest.raises(AuthError):
            await auth.get_token()
        assert auth._renew_task is None

        fresh = make_token(3600)
        auth._update_tokens(make_token(-10), refresh_token)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(fresh))

        assert await auth.get_token() == fresh
        auth._request_renewal.assert_awaited_once_with(refresh_token)

    @pytest.mark.asyncio
    async def test_renewal_failure_emits_updated_false_once(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        events = []
        auth.on("updated", events.append)
        auth._request_renewal = AsyncMock(return_value=(500, None))

        with pytest.raises(AuthError):
            await auth.get_token()

        assert events == [False]

    @pytest.mark.asyncio
    async def test_renewal_keeps_refresh_token_when_not_rotated(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        renewed = []
        auth.on("renewed", renewed.append)
        fresh = make_token(3600)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(fresh))

        assert await auth.get_token() == fresh
        assert auth.refresh_token == refresh_token
        assert renewed == [fresh]

    @pytest.mark.asyncio
    async def test_renewal_adopts_rotated_refresh_token(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        rotated = make_token(172800)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(make_token(3600), rotated))

        await auth.get_token()

        assert auth.refresh_token == rotated

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_cancel_shared_renewal(self, auth, refresh_token):
        await self._expired_session(auth, refresh_token)
        fresh = make_token(3600)
        release = asyncio.Event()

        async def slow_renewal(token):
            await release.wait()
            return renewal_ok(fresh)

        auth._request_renewal = AsyncMock(side_effect=slow_renewal)
        first = asyncio.ensure_future(auth.get_token())
        second = asyncio.ensure_future(auth.get_token())
        await asyncio.sleep(0)
        first.cancel()
        release.set()

        assert await second == fresh
        assert first.cancelled()

    @staticmethod
    async def _expired_session(auth, refresh_token):
        auth._update_tokens(make_token(-10), refresh_token)


class TestRequestDecoration:
    """Test authenticate_request()"""

    @pytest.mark.asyncio
    async def test_anonymous_request_undecorated(self, auth):
        request = {"headers": {"Accept": "application/json"}}
        assert await auth.authenticate_request(request) == request

    @pytest.mark.asyncio
    async def test_valid_token_attached(self, auth, token, refresh_token):
        await auth.authenticate(AuthTokens(token=token, refresh_token=refresh_token))

        request = {"headers": {"Accept": "application/json"}, "params": {"a": 1}}
        decorated = await auth.authenticate_request(request)

        assert decorated["headers"]["Authorization"] == token
        assert decorated["params"] == {"a": 1}
        assert "Authorization" not in request["headers"]

    @pytest.mark.asyncio
    async def test_expired_token_renewed_before_attach(self, auth, refresh_token):
        auth._update_tokens(make_token(-10), refresh_token)
        fresh = make_token(3600)
        auth._request_renewal = AsyncMock(return_value=renewal_ok(fresh))

        decorated = await auth.authenticate_request({"headers": {}})

        assert decorated["headers"]["Authorization"] == fresh

    @pytest.mark.asyncio
    async def test_cookies_expose_valid_token(self, auth, token, refresh_token):
        assert auth.get_cookies() == {}
        await auth.authenticate(AuthTokens(token=token, refresh_token=refresh_token))
        assert auth.get_cookies() == {"authorization": token}


class TestClearAndBackup:
    """Test clear() and backup()"""

    @pytest.mark.asyncio
    async def test_clear_emits_once(self, auth, updates, token, refresh_token):
        await auth.authenticate(AuthTokens(token=token, refresh_token=refresh_token))

        auth.clear()
        auth.clear()

        assert updates == [True, False]
        assert not auth.is_authenticated

    def test_clear_on_empty_session_is_silent(self, auth, updates):
        auth.clear()
        assert updates == []

    @pytest.mark.asyncio
    async def test_backup_returns_token_pair(self, auth, token, refresh_token):
        assert await auth.backup() is None

        await auth.authenticate(AuthTokens(token=token, refresh_token=refresh_token))
        backup = await auth.backup()

        assert backup == AuthTokens(token=token, refresh_token=refresh_token)
        assert backup.to_dict() == {"token": token, "refresh_token": refresh_token}


class TestRequestRenewal:
    """Test the HTTP call behind renewal"""

    @pytest.mark.asyncio
    async def test_posts_refresh_token(self, refresh_token):
        http = Mock()
        http.post = AsyncMock(return_value=FakeResponse(200, {"status": "success", "data": {}}))
        factory = Mock()
        factory.return_value.__aenter__ = AsyncMock(return_value=http)
        factory.return_value.__aexit__ = AsyncMock(return_value=False)
        auth = TokenAuthManager("https://api.test", session_factory=factory)

        status, payload = await auth._request_renewal(refresh_token)

        assert status == 200
        assert payload == {"status": "success", "data": {}}
        args, kwargs = http.post.call_args
        assert args[0] == "https://api.test/v1/account/refresh-token"
        assert kwargs["json"] == {"refreshToken": refresh_token}
