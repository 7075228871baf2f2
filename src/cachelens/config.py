"""Process-wide settings with file discovery and single-flight loading.

Configuration is resolved once from the first conventional file found in
the search directory, merged over the built-in defaults, and cached until
:meth:`ConfigStore.reload` is called.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tomllib
from collections.abc import Awaitable, Callable, Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

from cachelens.errors import ConfigError
from cachelens.types import RevalidateFunction

logger = logging.getLogger(__name__)

_APP_NAME = "cachelens"

SEARCH_PLACES: tuple[str, ...] = (
    f"{_APP_NAME}.config.json",
    f"{_APP_NAME}.config.yaml",
    f"{_APP_NAME}.config.yml",
    f"{_APP_NAME}.config.toml",
    f".{_APP_NAME}rc",
    f".{_APP_NAME}rc.json",
    f".{_APP_NAME}rc.yaml",
    f".{_APP_NAME}rc.yml",
    "pyproject.toml",
)


class DebugConfig(BaseModel):
    """Development diagnostics toggles."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    empty_tags_warning: bool = True
    empty_mutation_tags_warning: bool = True
    cache_logging: bool = True
    show_cache_confidence: bool = False
    show_cache_indicators: bool = False
    show_cache_strategy: bool = False


class Config(BaseModel):
    """Effective configuration snapshot.

    Unknown keys are ignored; values of the wrong type fail validation.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    session_cookie_name: str | None = "session"
    default_auth_requests: bool | None = True
    server_url: str | None = None
    token_verb: str | None = "Bearer"
    default_revalidate_function: RevalidateFunction | None = None
    debug: DebugConfig = Field(default_factory=DebugConfig)


def default_config() -> dict[str, Any]:
    """Built-in defaults as a plain mapping."""
    return {
        "session_cookie_name": "session",
        "default_auth_requests": True,
        "server_url": os.environ.get("SERVER_API"),
        "token_verb": "Bearer",
        "default_revalidate_function": None,
        "debug": {
            "empty_tags_warning": True,
            "empty_mutation_tags_warning": True,
            "cache_logging": True,
            "show_cache_confidence": False,
            "show_cache_indicators": False,
            "show_cache_strategy": False,
        },
    }


def merge_config(
    defaults: Mapping[str, Any], discovered: Mapping[str, Any]
) -> dict[str, Any]:
    """Merge discovered settings over defaults.

    Nested mappings merge one level deep with discovered keys winning.
    Anything else (lists, scalars) replaces the default. ``None`` never
    overrides.
    """
    result = dict(defaults)
    for key, value in discovered.items():
        if value is None:
            continue
        default_value = defaults.get(key)
        if isinstance(value, Mapping) and isinstance(default_value, Mapping):
            result[key] = {**default_value, **value}
        else:
            result[key] = value
    return result


def _load_file(path: Path) -> dict[str, Any] | None:
    """Parse one candidate file. None means the file holds no settings for us."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    try:
        if path.name == "pyproject.toml":
            data = tomllib.loads(text).get("tool", {}).get(_APP_NAME)
            if data is None:
                return None
        elif path.suffix == ".toml":
            data = tomllib.loads(text)
        elif path.suffix == ".json":
            data = json.loads(text)
        else:
            # YAML, including extension-less rc files (YAML accepts JSON too)
            data = yaml.safe_load(text)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"Configuration in {path} must be a mapping, got {type(data).__name__}"
        )
    return data


def discover_config(search_dir: str | Path | None = None) -> dict[str, Any]:
    """Find and parse the first configuration file in ``search_dir``.

    Returns an empty mapping when no file is found.

    Raises:
        ConfigError: If a candidate file exists but cannot be parsed.
    """
    base = Path(search_dir) if search_dir is not None else Path.cwd()
    for name in SEARCH_PLACES:
        path = base / name
        if not path.is_file():
            continue
        data = _load_file(path)
        if data is None:
            continue
        logger.debug("Loaded configuration from %s", path)
        return data
    return {}


Loader = Callable[[], Awaitable[Mapping[str, Any]]]


class ConfigStore:
    """Owns the effective configuration.

    Concurrent :meth:`get_async` callers during a load share the same
    in-flight future, so discovery runs at most once at a time.
    """

    def __init__(
        self,
        *,
        search_dir: str | Path | None = None,
        loader: Loader | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self._search_dir = search_dir
        self._loader = loader or self._discover
        self._defaults = dict(defaults) if defaults is not None else default_config()
        self._default_snapshot = Config.model_validate(self._defaults)
        self._config: Config | None = None
        self._pending: asyncio.Future[Config] | None = None

    async def _discover(self) -> Mapping[str, Any]:
        return await asyncio.to_thread(discover_config, self._search_dir)

    def get(self) -> Config:
        """Last loaded configuration, or the defaults. Never blocks.

        On a cold store inside a running event loop this also starts the
        first load in the background.
        """
        if self._config is not None:
            return self._config
        if self._pending is None:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                pass  # No loop: caller gets defaults until get_async() runs
            else:
                self._start_load()
        return self._default_snapshot

    async def get_async(self) -> Config:
        """Configuration after discovery has completed at least once."""
        if self._config is not None:
            return self._config
        pending = self._pending or self._start_load()
        return await asyncio.shield(pending)

    async def reload(self) -> Config:
        """Drop the cached value and run discovery again."""
        self._config = None
        self._pending = None
        return await asyncio.shield(self._start_load())

    def is_loaded(self) -> bool:
        return self._config is not None

    def view(self) -> LiveConfig:
        """Read-only accessor that always reflects the latest snapshot."""
        return LiveConfig(self)

    def _start_load(self) -> asyncio.Future[Config]:
        task = asyncio.ensure_future(self._load())
        self._pending = task
        task.add_done_callback(self._clear_pending)
        return task

    def _clear_pending(self, task: asyncio.Future[Config]) -> None:
        if self._pending is task:
            self._pending = None

    async def _load(self) -> Config:
        me = asyncio.current_task()
        try:
            discovered = await self._loader()
            config = Config.model_validate(merge_config(self._defaults, discovered))
        except Exception as exc:
            logger.warning(
                "Error loading %s configuration: %s. Using default configuration.",
                _APP_NAME,
                exc,
            )
            config = self._default_snapshot

        # A reload started while we were loading owns the cache now
        if self._pending is me:
            self._config = config
        return config


class LiveConfig:
    """Attribute view over a :class:`ConfigStore` that cannot be mutated."""

    __slots__ = ("_store",)

    def __init__(self, store: ConfigStore) -> None:
        object.__setattr__(self, "_store", store)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._store.get(), name)

    def __setattr__(self, name: str, value: Any) -> None:
        logger.warning(
            "Cannot modify configuration.%s directly. "
            "Use ConfigStore.reload() to update configuration.",
            name,
        )

    def __delattr__(self, name: str) -> None:
        logger.warning(
            "Cannot delete configuration.%s. "
            "Use ConfigStore.reload() to update configuration.",
            name,
        )

    def __dir__(self) -> list[str]:
        return list(Config.model_fields)

    def __repr__(self) -> str:
        return f"LiveConfig({self._store.get()!r})"
