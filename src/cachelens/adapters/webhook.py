"""HTTP webhook invalidation adapter."""

from __future__ import annotations

from typing import Any


class AsyncWebhookInvalidationAdapter:
    """Asks a host application to invalidate tags over HTTP.

    Each call POSTs ``{"tag", "strategy", "profile"}`` to ``endpoint``.
    """

    def __init__(
        self,
        base_url: str,
        *,
        secret: str | None = None,
        endpoint: str = "/api/revalidate",
        timeout: float = 10.0,
    ) -> None:
        import httpx

        headers = {"Content-Type": "application/json"}
        if secret:
            headers["Authorization"] = f"Bearer {secret}"
        self._endpoint = endpoint
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
        )

    async def _request(self, body: dict[str, Any]) -> None:
        """POST one invalidation to the host."""
        response = await self._client.post(self._endpoint, json=body)
        if not response.is_success:
            try:
                error = response.json().get("error", "Revalidation failed")
            except Exception:
                error = f"HTTP {response.status_code}"
            raise RuntimeError(error)

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        await self._request(
            {"tag": tag, "strategy": "revalidate_tag", "profile": profile}
        )

    async def update_tag(self, tag: str) -> None:
        await self._request({"tag": tag, "strategy": "update_tag", "profile": None})

    async def disconnect(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()
