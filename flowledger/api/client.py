"""Async HTTP client for the Flow Ledger REST backend.

Wraps ``httpx.AsyncClient`` with the conventions every endpoint shares:
- bearer token injection from TokenStorage
- JSON body returned directly on 2xx
- backend error envelope ``{"error": {"code", "message"}}`` mapped onto
  the ApiError hierarchy
- stored token cleared when the backend rejects it
"""

import logging
from typing import Any, Dict, Optional

import httpx

from flowledger.core import constants
from flowledger.core.errors import (
    ApiAuthError,
    ApiError,
    ApiNotFoundError,
    ApiServerError,
    ApiTransportError,
)
from flowledger.api.token_storage import MemoryTokenStorage, TokenStorage

logger = logging.getLogger(__name__)


def _parse_error_body(response: httpx.Response) -> tuple:
    """Extract (code, message) from a backend error response."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text[:200] or None

    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return error.get("code"), error.get("message")
        detail = body.get("detail")
        if isinstance(detail, str):
            return None, detail
    return None, None


class ApiClient:
    """
    Client for the Flow Ledger REST API.

    Use as an async context manager so the connection pool is closed:

        async with ApiClient.from_config(config) as client:
            me = await client.get("/users/me")
    """

    def __init__(
        self,
        base_url: str = constants.DEFAULT_API_BASE_URL,
        timeout: float = constants.HTTP_TIMEOUT,
        token_storage: Optional[TokenStorage] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize API client.

        Args:
            base_url: Backend base URL, e.g. http://localhost:8000/api
            timeout: Per-request timeout in seconds
            token_storage: Where the access token lives (in-memory if omitted)
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.token_storage = token_storage or MemoryTokenStorage()
        self._http = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_config(cls, config, token_storage: Optional[TokenStorage] = None, **kwargs) -> "ApiClient":
        """Build a client from an AppConfig."""
        if token_storage is None:
            token_storage = TokenStorage(config.token_path)
        return cls(base_url=config.api.base_url, timeout=config.api.timeout, token_storage=token_storage, **kwargs)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self, headers: Optional[Dict[str, str]], idempotency_key: Optional[str]) -> Dict[str, str]:
        merged = {"Accept": "application/json"}
        token = self.token_storage.get()
        if token:
            merged["Authorization"] = f"Bearer {token}"
        if idempotency_key:
            merged["Idempotency-Key"] = idempotency_key
        if headers:
            merged.update(headers)
        return merged

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        files: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        idempotency_key: Optional[str] = None,
    ) -> Any:
        """
        Send a request and return the decoded JSON body.

        Raises:
            ApiAuthError: 401 (stored token cleared for invalid/expired tokens)
            ApiNotFoundError: 404
            ApiServerError: 5xx
            ApiError: Any other non-2xx status
            ApiTransportError: No response (connection error, timeout)
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}

        try:
            response = await self._http.request(
                method,
                path,
                params=params or None,
                json=json,
                files=files,
                headers=self._headers(headers, idempotency_key),
            )
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e!r}")
            raise ApiTransportError(
                f"Could not reach backend: {e}", method=method, url=f"{self.base_url}{path}"
            ) from e

        logger.debug(f"{method} {path} -> {response.status_code}")

        if response.is_success:
            if not response.content:
                return None
            return response.json()

        self._raise_for_status(response, method, path)

    def _raise_for_status(self, response: httpx.Response, method: str, path: str) -> None:
        status = response.status_code
        code, message = _parse_error_body(response)
        message = message or f"{method} {path} failed with HTTP {status}"
        kwargs = {"status_code": status, "code": code, "method": method, "url": f"{self.base_url}{path}"}

        if status == 401:
            if code in constants.TOKEN_INVALID_CODES:
                logger.info(f"Backend rejected access token ({code}); clearing stored token")
                self.token_storage.clear()
            raise ApiAuthError(message, **kwargs)
        if status == 404:
            raise ApiNotFoundError(message, **kwargs)
        if status >= 500:
            raise ApiServerError(message, **kwargs)
        raise ApiError(message, **kwargs)

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request("GET", path, params=params, **kwargs)

    async def post(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("POST", path, json=json, **kwargs)

    async def put(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("PUT", path, json=json, **kwargs)

    async def patch(self, path: str, json: Any = None, **kwargs) -> Any:
        return await self.request("PATCH", path, json=json, **kwargs)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.request("DELETE", path, **kwargs)
