"""Invalidation adapters for cachelens."""

from contextlib import suppress

from cachelens.adapters.base import InvalidationAdapter, is_usable
from cachelens.adapters.memory import AsyncMemoryInvalidationAdapter, InvalidationRecord
from cachelens.adapters.module import (
    ModuleInvalidationAdapter,
    load_module_adapter,
    module_probe,
)
from cachelens.adapters.noop import NoopInvalidationAdapter

# Optional adapters - only available when dependencies are installed
with suppress(ImportError):
    from cachelens.adapters.redis import AsyncRedisInvalidationAdapter

with suppress(ImportError):
    from cachelens.adapters.webhook import AsyncWebhookInvalidationAdapter

__all__ = [
    "AsyncMemoryInvalidationAdapter",
    "AsyncRedisInvalidationAdapter",
    "AsyncWebhookInvalidationAdapter",
    "InvalidationAdapter",
    "InvalidationRecord",
    "ModuleInvalidationAdapter",
    "NoopInvalidationAdapter",
    "is_usable",
    "load_module_adapter",
    "module_probe",
]
