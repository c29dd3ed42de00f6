from curl_cffi.requests import AsyncSession
import logging
from typing import Optional, Dict, Any
from urllib.parse import urljoin

from .auth.base import AuthManagerBase
from .exceptions import ApiError

logger = logging.getLogger(__name__)


class RestClient:
    def __init__(self, base_url: str, auth: AuthManagerBase, session_factory=AsyncSession, impersonate: str = "chrome", timeout: int = 30):
        self.base_url = base_url
        self.auth = auth
        self.impersonate = impersonate
        self.timeout = timeout
        self._session_factory = session_factory

        # Base headers, auth headers are added per request
        self.headers = {
            "Accept": "application/json",
            "Accept-Language": "en-US,en;q=0.9",
        }

    def format_url(self, path: str) -> str:
        return urljoin(self.base_url, path)

    async def get(self, path: str, query: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=query or {})

    async def post(self, path: str, body: Optional[Dict[str, Any]] = None) -> Any:
        headers = {"Content-Type": "application/json"}
        return await self._request("POST", path, json=body or {}, headers=headers)

    async def _request(self, method: str, path: str, headers: Optional[Dict[str, str]] = None, **kwargs) -> Any:
        """
        Send one request with the current session attached

        Raises:
            ApiError: On error envelope, HTTP error or unparseable body
            AuthError: If the access token needed renewal and renewal failed
        """
        request = await self.auth.authenticate_request({
            "headers": {**self.headers, **(headers or {})},
            **kwargs
        })
        url = self.format_url(path)

        async with self._session_factory(impersonate=self.impersonate) as session:
            response = await session.request(method, url, timeout=self.timeout, **request)

        return self._process_response(method, url, response)

    @staticmethod
    def _process_response(method: str, url: str, response) -> Any:
        try:
            data = response.json()
        except ValueError:
            logger.error(f"[ERROR] [API] {method} {url} returned unparseable body ({response.status_code}): {response.text[:500]}")
            raise ApiError(response.status_code, {
                "status": "error",
                "message": "Failed to parse response",
                "errorCode": 0
            })

        if response.status_code >= 400 or (isinstance(data, dict) and data.get("status") == "error"):
            payload = data if isinstance(data, dict) else {"status": "error", "message": str(data), "errorCode": 0}
            logger.warning(f"[API] {method} {url} failed ({response.status_code}): {payload.get('message')}")
            raise ApiError(response.status_code, payload)

        return data
