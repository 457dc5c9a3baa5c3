"""Client HTTP de l'API: bearer token, JSON, retry exponentiel."""

import logging
import asyncio
from typing import Any, Awaitable, Callable, Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Réponse non-2xx du serveur."""

    def __init__(self, message: str, status: int, data: Any = None):
        super().__init__(message)
        self.status = status
        self.data = data

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


def is_retryable(exc: BaseException) -> bool:
    # réseau ou 5xx uniquement; un 4xx ne changera pas en réessayant
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, ApiError) and 500 <= exc.status < 600


class ApiClient:
    def __init__(
        self,
        base_url: str = "",
        max_retries: int = 3,
        retry_delay: float = 1.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.base_url = base_url
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.auth_token: Optional[str] = None
        self._sleep = sleep
        self._http = httpx.AsyncClient(transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    def set_auth_token(self, token: str) -> None:
        self.auth_token = token

    def clear_auth_token(self) -> None:
        self.auth_token = None

    def build_headers(self, extra: Optional[dict] = None) -> dict:
        headers = {"Content-Type": "application/json", **(extra or {})}
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
        return headers

    def build_url(self, endpoint: str) -> str:
        endpoint = endpoint.lstrip("/")
        base = self.base_url.rstrip("/")
        return f"{base}/{endpoint}" if base else f"/{endpoint}"

    @staticmethod
    def _parse(response: httpx.Response) -> Any:
        if "application/json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    async def _send_once(self, method: str, endpoint: str, json_body: Any, headers: Optional[dict]) -> Any:
        response = await self._http.request(
            method,
            self.build_url(endpoint),
            json=json_body,
            headers=self.build_headers(headers),
        )
        data = self._parse(response)
        if response.is_error:
            message = None
            if isinstance(data, dict):
                message = data.get("error") or data.get("message")
            raise ApiError(
                message or f"HTTP {response.status_code}: {response.reason_phrase}",
                status=response.status_code,
                data=data,
            )
        return data

    async def request(self, method: str, endpoint: str, json_body: Any = None,
                      headers: Optional[dict] = None) -> Any:
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self.max_retries + 1),
            wait=wait_exponential(multiplier=self.retry_delay, min=0),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
            sleep=self._sleep,
        )
        result = None
        async for attempt in retrying:
            with attempt:
                result = await self._send_once(method, endpoint, json_body, headers)
        return result

    async def get(self, endpoint: str, **kwargs) -> Any:
        return await self.request("GET", endpoint, **kwargs)

    async def post(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return await self.request("POST", endpoint, json_body=data, **kwargs)

    async def put(self, endpoint: str, data: Any = None, **kwargs) -> Any:
        return await self.request("PUT", endpoint, json_body=data, **kwargs)

    async def delete(self, endpoint: str, **kwargs) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)
