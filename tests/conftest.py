"""Shared pytest fixtures."""

import pytest

from cachelens import (
    AsyncMemoryInvalidationAdapter,
    ConfigStore,
    TagDefinition,
    TagStore,
)


@pytest.fixture
def tag_store() -> TagStore:
    """A small catalog with two groups and two standalone tags."""
    return TagStore(
        [
            TagDefinition("products", "All products"),
            TagDefinition("products:list", "Product listing"),
            TagDefinition("products:detail", "Product detail pages"),
            TagDefinition("users:list"),
            TagDefinition("users:profile"),
            TagDefinition("settings"),
            TagDefinition(":orphan"),
        ]
    )


@pytest.fixture
def make_config_store():
    """Build a loaded ConfigStore whose discovery returns ``overrides``."""

    async def make(overrides: dict | None = None) -> ConfigStore:
        async def loader() -> dict:
            return overrides or {}

        store = ConfigStore(loader=loader, defaults=_defaults())
        await store.get_async()
        return store

    return make


@pytest.fixture
async def config_store(make_config_store) -> ConfigStore:
    """A loaded ConfigStore holding the defaults."""
    return await make_config_store()


@pytest.fixture
def memory_adapter() -> AsyncMemoryInvalidationAdapter:
    """Create a fresh AsyncMemoryInvalidationAdapter for each test."""
    return AsyncMemoryInvalidationAdapter()


def _defaults() -> dict:
    from cachelens.config import default_config

    defaults = default_config()
    defaults["server_url"] = None
    return defaults
