from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from .exceptions import TransportError

logger = logging.getLogger(__name__)

JSON_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json; charset=utf-8",
}


@runtime_checkable
class HttpExecutor(Protocol):
    async def get(self, url: str, headers: dict[str, str]) -> Any: ...

    async def post(self, url: str, body: str, headers: dict[str, str]) -> Any: ...


class HttpxExecutor:
    """Default executor backed by a lazily created ``httpx.AsyncClient``."""

    def __init__(
        self,
        timeout_seconds: float = 10.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self.verify_ssl = verify_ssl
        self.transport = transport
        self._client: httpx.AsyncClient | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def _http(self) -> httpx.AsyncClient:
        loop = asyncio.get_running_loop()
        # an AsyncClient cannot be reused across event loops
        if self._client is None or self._client.is_closed or self._loop is not loop:
            self._loop = loop
            self._client = httpx.AsyncClient(
                timeout=self.timeout_seconds,
                verify=self.verify_ssl,
                transport=self.transport,
            )
        return self._client

    async def get(self, url: str, headers: dict[str, str]) -> Any:
        return await self._send("GET", url, headers=headers)

    async def post(self, url: str, body: str, headers: dict[str, str]) -> Any:
        return await self._send("POST", url, headers=headers, content=body.encode("utf-8"))

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _send(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._http().request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise TransportError(
                code="TRANSPORT_ERROR",
                message=str(exc) or type(exc).__name__,
                details={"type": type(exc).__name__, "method": method},
            ) from exc

        # the {code, data} envelope decides success, not the HTTP status
        if not response.is_success:
            logger.debug("http_error_status", extra={"status_code": response.status_code, "url": url})
        return _decode(response)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except json.JSONDecodeError as exc:
        raise TransportError(
            code="INVALID_RESPONSE",
            message="Response body is not valid JSON",
            details={"content_type": response.headers.get("Content-Type")},
            status_code=response.status_code,
            raw_payload=response.text,
        ) from exc


_default_executor: HttpExecutor | None = None


def default_executor() -> HttpExecutor:
    """Process-wide executor used by connectors without an override.

    Its ``httpx.AsyncClient`` belongs to the event loop that first used it and
    is rebuilt when a different loop calls it. Call ``close_default_executor()``
    before the loop shuts down.
    """
    global _default_executor
    if _default_executor is None:
        _default_executor = HttpxExecutor()
    return _default_executor


def set_default_executor(executor: HttpExecutor | None) -> None:
    global _default_executor
    _default_executor = executor


async def close_default_executor() -> None:
    global _default_executor
    executor, _default_executor = _default_executor, None
    if isinstance(executor, HttpxExecutor):
        await executor.aclose()
