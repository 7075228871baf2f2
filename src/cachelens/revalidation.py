"""Tag revalidation after mutating requests.

The dispatcher checks once whether an invalidation capability exists and
then applies the selected strategy to each requested tag in order. It never
raises: without a capability every call is a no-op.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, get_args

from cachelens.adapters.base import InvalidationAdapter, is_usable
from cachelens.config import ConfigStore
from cachelens.tags import TagStore
from cachelens.types import RevalidateFunction, RevalidateTags

logger = logging.getLogger(__name__)

DEFAULT_REVALIDATE_FUNCTION: RevalidateFunction = "revalidate_tag"
DEFAULT_PROFILE = "max"
NEVER = "never"

Probe = Callable[[], Awaitable[Any]]


class Capability(Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class RevalidationDispatcher:
    """Invalidates cache tags through an injected or probed adapter.

    Args:
        adapter: Invalidation adapter chosen by the host. Checked eagerly.
        probe: Coroutine function resolving an adapter on first use, used
            when no adapter is injected. Any exception it raises marks the
            capability unavailable.
        config: Source of the default strategy and warning flags.
        tag_store: Catalog used when ``invalidate(..., expand=True)``.
    """

    def __init__(
        self,
        adapter: InvalidationAdapter | None = None,
        *,
        probe: Probe | None = None,
        config: ConfigStore | None = None,
        tag_store: TagStore | None = None,
    ) -> None:
        self._config = config or ConfigStore()
        self._tag_store = tag_store
        self._probe = probe
        self._adapter: InvalidationAdapter | None = None
        self._capability = Capability.UNKNOWN
        self._probing: asyncio.Future[Capability] | None = None

        if adapter is not None:
            self._settle(adapter)
        elif probe is None:
            self._capability = Capability.UNAVAILABLE

    @property
    def capability(self) -> Capability:
        return self._capability

    async def is_available(self) -> bool:
        """Probe on first use; the answer is fixed for this dispatcher's lifetime."""
        if self._capability is Capability.UNKNOWN and self._probe is not None:
            if self._probing is None:
                self._probing = asyncio.ensure_future(self._run_probe(self._probe))
            await asyncio.shield(self._probing)
        return self._capability is Capability.AVAILABLE

    async def invalidate(
        self,
        tags: RevalidateTags | str | None,
        *,
        url: str = "",
        method: str = "POST",
        revalidate_function: RevalidateFunction | None = None,
        profile: str | None = None,
        expand: bool = False,
    ) -> None:
        """Invalidate ``tags`` after a mutating request to ``url``.

        Tags are processed one at a time in input order. A single tag name
        may be passed as a plain string. A tag whose invalidation raises is
        logged and the remaining tags still run.
        """
        if tags == NEVER:
            logger.info("[CACHE] Skipping revalidation for %s request on %s", method, url)
            return

        if not await self.is_available():
            return
        adapter = self._adapter
        if adapter is None:
            return

        if not tags:
            if self._config.get().debug.empty_mutation_tags_warning:
                logger.warning(
                    "[%s] Empty or missing tags revalidation array passed to %s request on %s",
                    method,
                    method,
                    url,
                )
            return

        selected = [tags] if isinstance(tags, str) else list(tags)
        if expand:
            selected = self._expand(selected)

        strategy = self._select_strategy(revalidate_function)

        for tag in selected:
            try:
                if strategy == "update_tag":
                    logger.info("[CACHE] Updating tag [%s]", tag)
                    await adapter.update_tag(tag)
                else:
                    effective_profile = profile or DEFAULT_PROFILE
                    logger.info("[CACHE] Revalidating tag [%s]", tag)
                    await adapter.revalidate_tag(tag, effective_profile)
            except Exception:
                logger.exception("[CACHE] Failed to invalidate tag [%s] on %s", tag, url)

    def _select_strategy(
        self, revalidate_function: RevalidateFunction | None
    ) -> RevalidateFunction:
        if revalidate_function is not None:
            if revalidate_function not in get_args(RevalidateFunction):
                logger.warning(
                    "[CACHE] Unknown revalidate function %r, using %s",
                    revalidate_function,
                    DEFAULT_REVALIDATE_FUNCTION,
                )
                return DEFAULT_REVALIDATE_FUNCTION
            return revalidate_function
        configured = self._config.get().default_revalidate_function
        return configured or DEFAULT_REVALIDATE_FUNCTION

    def _expand(self, items: list[str]) -> list[str]:
        """Resolve groups to tags, keeping first-seen order."""
        if self._tag_store is None:
            logger.warning("[CACHE] Tag expansion requested without a tag store")
            return items

        validation = self._tag_store.validate_tags_and_groups(items)
        if validation.invalid:
            logger.warning(
                "[CACHE] Ignoring unknown tags or groups: %s",
                ", ".join(validation.invalid),
            )

        ordered: list[str] = []
        for item in validation.valid:
            members = (
                self._tag_store.get_tags_by_group(item)
                if self._tag_store.has_group(item)
                else [item]
            )
            for tag in members:
                if tag in validation.expanded_tags and tag not in ordered:
                    ordered.append(tag)
        return ordered

    async def _run_probe(self, probe: Probe) -> Capability:
        try:
            adapter = await probe()
        except Exception as exc:
            logger.warning(
                "[CACHE] Cache revalidation is not available (%s). "
                "Cache revalidation will be skipped",
                exc,
            )
            self._capability = Capability.UNAVAILABLE
            return self._capability
        return self._settle(adapter)

    def _settle(self, adapter: Any) -> Capability:
        if is_usable(adapter):
            self._adapter = adapter
            self._capability = Capability.AVAILABLE
            logger.info(
                "[CACHE] Cache revalidation is available. "
                "Cache revalidation will be performed"
            )
        else:
            self._capability = Capability.UNAVAILABLE
            logger.warning(
                "[CACHE] Cache revalidation is not available. "
                "Cache revalidation will be skipped"
            )
        return self._capability
