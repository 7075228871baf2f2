"""cachelens - Cache status detection and tag revalidation for HTTP clients."""

from contextlib import suppress

# Adapters (async only)
from cachelens.adapters import (
    AsyncMemoryInvalidationAdapter,
    InvalidationAdapter,
    NoopInvalidationAdapter,
    load_module_adapter,
    module_probe,
)

# HTTP layer
from cachelens.client import AsyncHttpClient, create_http_client

# Configuration
from cachelens.config import Config, ConfigStore, DebugConfig, LiveConfig, merge_config

# Cache status detection
from cachelens.detector import analyze_cache_status
from cachelens.duration import parse_revalidate
from cachelens.errors import CacheLensError, ConfigError, NotDefinedError
from cachelens.headers import cookie_jar_provider, get_headers, static_token_provider
from cachelens.logs import CacheLogger
from cachelens.revalidation import Capability, RevalidationDispatcher
from cachelens.tags import TagStore, TagValidation

# Core types
from cachelens.types import (
    ApiResponse,
    CacheAnalysis,
    CacheMetadata,
    CacheRequestOptions,
    CacheStatus,
    TagDefinition,
    Timing,
)

# Optional adapter imports - only available when dependencies are installed
with suppress(ImportError):
    from cachelens.adapters import AsyncRedisInvalidationAdapter

with suppress(ImportError):
    from cachelens.adapters import AsyncWebhookInvalidationAdapter

__version__ = "0.1.0"

__all__ = [
    "ApiResponse",
    "AsyncHttpClient",
    "AsyncMemoryInvalidationAdapter",
    "AsyncRedisInvalidationAdapter",
    "AsyncWebhookInvalidationAdapter",
    "CacheAnalysis",
    "CacheLensError",
    "CacheLogger",
    "CacheMetadata",
    "CacheRequestOptions",
    "CacheStatus",
    "Capability",
    "Config",
    "ConfigError",
    "ConfigStore",
    "DebugConfig",
    "InvalidationAdapter",
    "LiveConfig",
    "NoopInvalidationAdapter",
    "NotDefinedError",
    "RevalidationDispatcher",
    "TagDefinition",
    "TagStore",
    "TagValidation",
    "Timing",
    "analyze_cache_status",
    "cookie_jar_provider",
    "create_http_client",
    "get_headers",
    "load_module_adapter",
    "merge_config",
    "module_probe",
    "parse_revalidate",
    "static_token_provider",
]
