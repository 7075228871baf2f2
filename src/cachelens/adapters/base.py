"""Invalidation capability protocol."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class InvalidationAdapter(Protocol):
    """On-demand cache invalidation supplied by the host environment."""

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        """Mark a tag stale; the host refreshes it according to ``profile``."""
        ...

    async def update_tag(self, tag: str) -> None:
        """Expire a tag immediately."""
        ...


def is_usable(adapter: object) -> bool:
    """True if both invalidation primitives are callable on ``adapter``."""
    return callable(getattr(adapter, "revalidate_tag", None)) and callable(
        getattr(adapter, "update_tag", None)
    )
