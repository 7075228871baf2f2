"""Async HTTP client with cache classification and tag revalidation.

GET requests are timed and classified; successful mutations invalidate the
tags the caller names. Transport and HTTP failures come back as an
:class:`~cachelens.types.ApiResponse` instead of raising.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from cachelens.config import Config, ConfigStore
from cachelens.detector import analyze_cache_status
from cachelens.duration import parse_revalidate
from cachelens.errors import NotDefinedError
from cachelens.headers import SessionTokenProvider, get_headers
from cachelens.logs import CacheLogger
from cachelens.revalidation import RevalidationDispatcher
from cachelens.tags import TagStore
from cachelens.types import (
    ApiResponse,
    CacheRequestOptions,
    RevalidateFunction,
    RevalidateTags,
    Timing,
)

logger = logging.getLogger(__name__)

# Request directives that must reach upstream caches
_CACHE_REQUEST_HEADERS = {
    "no-store": "no-store",
    "no-cache": "no-cache",
    "reload": "no-cache",
}


def parse_error_response() -> ApiResponse:
    return ApiResponse(data=None, message="Error parsing response", status=500)


def _unwrap(payload: Any) -> tuple[Any, str | None, int | None]:
    """Read message and status from an object body; ``data`` unwraps when present."""
    if not isinstance(payload, dict):
        return payload, None, None

    message = payload.get("message")
    status = payload.get("status")
    return (
        payload["data"] if "data" in payload else payload,
        message if isinstance(message, str) else None,
        status if isinstance(status, int) and not isinstance(status, bool) else None,
    )


class AsyncHttpClient:
    """HTTP verbs bound to one server.

    Args:
        server_url: Base URL. Falls back to ``server_url`` from configuration.
        config: Configuration store shared with the dispatcher and logger.
        session: Provider of the session token for authenticated requests.
        dispatcher: Revalidation dispatcher for mutations. Without one,
            revalidation is unavailable and mutations only log.
        tag_store: Catalog used to expand tag groups on mutations.
        client: Preconfigured httpx client.
    """

    def __init__(
        self,
        server_url: str | None = None,
        *,
        config: ConfigStore | None = None,
        session: SessionTokenProvider | None = None,
        dispatcher: RevalidationDispatcher | None = None,
        tag_store: TagStore | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._server_url = server_url
        self._config = config or ConfigStore()
        self._session = session
        self._dispatcher = dispatcher or RevalidationDispatcher(
            config=self._config, tag_store=tag_store
        )
        self._log = CacheLogger(self._config)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> AsyncHttpClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _resolve_server_url(self, config: Config) -> str:
        server_url = self._server_url or config.server_url
        if not server_url:
            raise NotDefinedError(
                "Server URL is not defined",
                "Make sure you have set server_url in your config file "
                "or pass server_url to the client",
            )
        return server_url.rstrip("/")

    async def get(
        self,
        url: str,
        *,
        auth: bool | None = None,
        headers: Mapping[str, str] | None = None,
        tags: list[str] | None = None,
        cache: str = "no-store",
        revalidate: int | str | bool | None = None,
    ) -> ApiResponse:
        """Fetch ``url`` and log whether the response looked cached."""
        method = "GET"
        config = await self._config.get_async()
        server_url = self._resolve_server_url(config)
        request_headers = await get_headers(
            config, auth=auth, custom_headers=headers, session=self._session
        )
        if cache in _CACHE_REQUEST_HEADERS:
            request_headers.setdefault("Cache-Control", _CACHE_REQUEST_HEADERS[cache])

        if config.debug.empty_tags_warning and not tags:
            logger.warning(
                "[GET] Empty or missing tags array passed to GET request to %s%s",
                server_url,
                url,
            )

        options = CacheRequestOptions(
            tags=list(tags or []),
            revalidate=parse_revalidate(revalidate),
            cache=cache,
        )

        start = time.perf_counter() * 1000
        try:
            response = await self._client.request(
                method, f"{server_url}{url}", headers=request_headers
            )
        except httpx.HTTPError as exc:
            logger.error("[GET] Error fetching data at: %s", url)
            return ApiResponse(
                data=None, message=str(exc) or "Internal server error", status=500
            )
        end = time.perf_counter() * 1000

        try:
            payload = response.json()
        except ValueError:
            logger.error("[GET] Error parsing response at: %s", url)
            return parse_error_response()

        data, message, status = _unwrap(payload)
        if not response.is_success:
            logger.error(
                "[GET] Error fetching data at: %s [%s]", url, response.status_code
            )
            return ApiResponse(
                data=None,
                message=message or response.reason_phrase,
                status=status or response.status_code,
            )

        self._log.request_log(method, url, response.status_code)
        analysis = analyze_cache_status(response, options, Timing(start, end))
        self._log.cache_status(analysis, url, method)

        return ApiResponse(
            data=data,
            message=message or response.reason_phrase or "Ok",
            status=status or response.status_code,
        )

    async def post(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self._mutate("POST", url, body, **options)

    async def put(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self._mutate("PUT", url, body, **options)

    async def patch(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self._mutate("PATCH", url, body, **options)

    async def delete(self, url: str, body: Any = None, **options: Any) -> ApiResponse:
        return await self._mutate("DELETE", url, body, **options)

    async def _mutate(
        self,
        method: str,
        url: str,
        body: Any,
        *,
        auth: bool | None = None,
        headers: Mapping[str, str] | None = None,
        revalidate_tags: RevalidateTags | None = None,
        revalidate_function: RevalidateFunction | None = None,
        profile: str | None = None,
        expand_groups: bool = False,
    ) -> ApiResponse:
        """Send a mutation and revalidate ``revalidate_tags`` on success."""
        config = await self._config.get_async()
        server_url = self._resolve_server_url(config)
        request_headers = await get_headers(
            config, auth=auth, custom_headers=headers, session=self._session
        )

        content: dict[str, Any]
        if body is None:
            content = {}
        elif isinstance(body, (bytes, str)):
            content = {"content": body}
        else:
            content = {"json": body}

        try:
            response = await self._client.request(
                method, f"{server_url}{url}", headers=request_headers, **content
            )
        except httpx.HTTPError as exc:
            logger.error("[%s] Error pushing data at: %s", method, url)
            return ApiResponse(
                data=None, message=str(exc) or "Internal server error", status=500
            )

        if response.content:
            try:
                payload = response.json()
            except ValueError:
                logger.error("[%s] Error parsing response at: %s", method, url)
                return parse_error_response()
        else:
            payload = None

        data, message, status = _unwrap(payload)
        if not response.is_success:
            logger.error(
                "[%s] Error pushing data at: %s [%s]", method, url, response.status_code
            )
            return ApiResponse(
                data=None,
                message=message or response.reason_phrase,
                status=status or response.status_code,
            )

        self._log.request_log(method, url, response.status_code)
        await self._dispatcher.invalidate(
            revalidate_tags,
            url=url,
            method=method,
            revalidate_function=revalidate_function,
            profile=profile,
            expand=expand_groups,
        )

        return ApiResponse(
            data=data,
            message=message or response.reason_phrase,
            status=status or response.status_code,
        )


def create_http_client(server_url: str, **kwargs: Any) -> AsyncHttpClient:
    """Create a client bound to ``server_url``, ignoring the configured one.

    Raises:
        NotDefinedError: If ``server_url`` is empty or not a string.
    """
    if not isinstance(server_url, str) or not server_url.strip():
        raise NotDefinedError(
            "Base URL is required or is not a string",
            "Make sure you pass server_url correctly",
        )
    return AsyncHttpClient(server_url, **kwargs)
