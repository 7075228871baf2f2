"""Redis invalidation adapter."""

from __future__ import annotations

import time
from typing import Any


class AsyncRedisInvalidationAdapter:
    """Publishes tag invalidation times to Redis.

    Readers compare a cached entry's creation time against
    ``<prefix>:tag:<tag>`` to decide whether it is stale.
    """

    def __init__(
        self,
        client: Any,  # redis.asyncio.Redis
        *,
        prefix: str = "cachelens",
    ) -> None:
        self._client = client
        self._prefix = prefix

    def _tag_key(self, tag: str) -> str:
        """Generate full Redis key for tag invalidation times."""
        return f"{self._prefix}:tag:{tag}"

    def _profile_key(self, tag: str) -> str:
        return f"{self._prefix}:profile:{tag}"

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        """Set the invalidation time and the revalidation profile for a tag."""
        now = int(time.time() * 1000)
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.set(self._tag_key(tag), str(now))
            if profile is None:
                pipe.delete(self._profile_key(tag))
            else:
                pipe.set(self._profile_key(tag), profile)
            await pipe.execute()

    async def update_tag(self, tag: str) -> None:
        """Set the invalidation time for a tag."""
        # Tag invalidation times don't expire - they're used for comparison
        await self._client.set(self._tag_key(tag), str(int(time.time() * 1000)))

    async def get_tag_invalidation_time(self, tag: str) -> int | None:
        """Get the invalidation timestamp for a tag."""
        data = await self._client.get(self._tag_key(tag))
        if data is None:
            return None
        return int(data)

    async def get_tag_profile(self, tag: str) -> str | None:
        data = await self._client.get(self._profile_key(tag))
        if data is None:
            return None
        return data.decode("utf-8") if isinstance(data, bytes) else str(data)

    async def disconnect(self) -> None:
        """Close the Redis connection."""
        await self._client.aclose()
