"""In-memory invalidation adapter."""

import asyncio
import time
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class InvalidationRecord:
    """One invalidation call as received by the adapter."""

    tag: str
    strategy: str
    profile: str | None
    timestamp: int  # Unix timestamp ms


class AsyncMemoryInvalidationAdapter:
    """Records invalidation times per tag in process memory."""

    def __init__(self) -> None:
        self._invalidations: dict[str, int] = {}
        self._profiles: dict[str, str | None] = {}
        self.calls: list[InvalidationRecord] = []
        self._lock = asyncio.Lock()

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        """Record a stale-while-revalidate invalidation."""
        await self._record(tag, "revalidate_tag", profile)

    async def update_tag(self, tag: str) -> None:
        """Record an immediate expiration."""
        await self._record(tag, "update_tag", None)

    async def get_tag_invalidation_time(self, tag: str) -> int | None:
        """Get the last invalidation timestamp for a tag."""
        async with self._lock:
            return self._invalidations.get(tag)

    async def get_tag_profile(self, tag: str) -> str | None:
        async with self._lock:
            return self._profiles.get(tag)

    async def clear(self) -> None:
        """Forget all recorded invalidations."""
        async with self._lock:
            self._invalidations.clear()
            self._profiles.clear()
            self.calls.clear()

    async def _record(self, tag: str, strategy: str, profile: str | None) -> None:
        now = int(time.time() * 1000)
        async with self._lock:
            self._invalidations[tag] = now
            self._profiles[tag] = profile
            self.calls.append(InvalidationRecord(tag, strategy, profile, now))
