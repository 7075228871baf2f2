"""Invalidation primitives resolved from a host-provided module."""

from __future__ import annotations

import importlib
import inspect
from collections.abc import Callable
from typing import Any


class ModuleInvalidationAdapter:
    """Wraps a module's ``revalidate_tag`` and ``update_tag`` functions.

    The functions may be plain or async.
    """

    def __init__(
        self,
        revalidate_tag: Callable[..., Any],
        update_tag: Callable[..., Any],
    ) -> None:
        self._revalidate_tag = revalidate_tag
        self._update_tag = update_tag

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        if profile is None:
            result = self._revalidate_tag(tag)
        else:
            result = self._revalidate_tag(tag, profile)
        if inspect.isawaitable(result):
            await result

    async def update_tag(self, tag: str) -> None:
        result = self._update_tag(tag)
        if inspect.isawaitable(result):
            await result


def load_module_adapter(
    module_name: str,
    *,
    revalidate_attr: str = "revalidate_tag",
    update_attr: str = "update_tag",
) -> ModuleInvalidationAdapter:
    """Import ``module_name`` and adapt its invalidation functions.

    Raises:
        ImportError: If the module cannot be imported.
        TypeError: If either function is missing or not callable.
    """
    module = importlib.import_module(module_name)
    revalidate = getattr(module, revalidate_attr, None)
    update = getattr(module, update_attr, None)
    if not callable(revalidate) or not callable(update):
        raise TypeError(
            f"{module_name} must provide callable {revalidate_attr}() and {update_attr}()"
        )
    return ModuleInvalidationAdapter(revalidate, update)


def module_probe(module_name: str, **kwargs: str) -> Callable[[], Any]:
    """Build a dispatcher probe that resolves ``module_name`` on first use."""

    async def probe() -> ModuleInvalidationAdapter:
        return load_module_adapter(module_name, **kwargs)

    return probe
