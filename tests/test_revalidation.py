"""Tests for the revalidation dispatcher."""

import asyncio
import logging

import pytest

from cachelens import (
    AsyncMemoryInvalidationAdapter,
    Capability,
    NoopInvalidationAdapter,
    RevalidationDispatcher,
    TagStore,
)


class RecordingAdapter:
    """Captures calls to both primitives in order."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
        self.calls.append(("revalidate_tag", tag, profile))

    async def update_tag(self, tag: str) -> None:
        self.calls.append(("update_tag", tag))


class HalfAdapter:
    """Provides only one of the two primitives."""

    revalidate_tag = None

    async def update_tag(self, tag: str) -> None:
        raise AssertionError("should never be called")


@pytest.fixture
def recorder() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def dispatcher(recorder, config_store) -> RevalidationDispatcher:
    return RevalidationDispatcher(recorder, config=config_store)


class TestNever:
    """Tests for the "never" sentinel."""

    async def test_never_skips_everything(self, config_store, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cachelens")
        probe_calls = 0

        async def probe():
            nonlocal probe_calls
            probe_calls += 1
            return RecordingAdapter()

        dispatcher = RevalidationDispatcher(probe=probe, config=config_store)
        await dispatcher.invalidate("never", url="/post")

        assert probe_calls == 0
        assert dispatcher.capability is Capability.UNKNOWN
        assert "[CACHE] Skipping revalidation for POST request on /post" in caplog.messages

    async def test_never_with_adapter(self, dispatcher, recorder) -> None:
        await dispatcher.invalidate("never", url="/post")
        assert recorder.calls == []


class TestCapability:
    """Tests for capability detection."""

    async def test_injected_adapter_is_available(self, dispatcher) -> None:
        assert dispatcher.capability is Capability.AVAILABLE
        assert await dispatcher.is_available()

    async def test_no_adapter_is_unavailable(self, config_store) -> None:
        dispatcher = RevalidationDispatcher(config=config_store)
        assert dispatcher.capability is Capability.UNAVAILABLE
        await dispatcher.invalidate(["a", "b"])

    async def test_unusable_adapter_is_unavailable(self, config_store) -> None:
        dispatcher = RevalidationDispatcher(HalfAdapter(), config=config_store)
        assert dispatcher.capability is Capability.UNAVAILABLE
        await dispatcher.invalidate(["a", "b"])

    async def test_failing_probe_is_unavailable(self, config_store) -> None:
        async def probe():
            raise ImportError("No module named 'host_cache'")

        dispatcher = RevalidationDispatcher(probe=probe, config=config_store)
        await dispatcher.invalidate(["a", "b"])
        assert dispatcher.capability is Capability.UNAVAILABLE

    async def test_probe_returning_unusable_is_unavailable(self, config_store) -> None:
        async def probe():
            return object()

        dispatcher = RevalidationDispatcher(probe=probe, config=config_store)
        assert not await dispatcher.is_available()

    async def test_probe_runs_once(self, config_store, recorder) -> None:
        probe_calls = 0

        async def probe():
            nonlocal probe_calls
            probe_calls += 1
            await asyncio.sleep(0.01)
            return recorder

        dispatcher = RevalidationDispatcher(probe=probe, config=config_store)
        await asyncio.gather(
            dispatcher.invalidate(["a"]),
            dispatcher.invalidate(["b"]),
        )
        await dispatcher.invalidate(["c"])

        assert probe_calls == 1
        assert dispatcher.capability is Capability.AVAILABLE
        assert sorted(call[1] for call in recorder.calls) == ["a", "b", "c"]

    async def test_unavailable_is_memoized(self, config_store) -> None:
        probe_calls = 0

        async def probe():
            nonlocal probe_calls
            probe_calls += 1
            raise RuntimeError("missing")

        dispatcher = RevalidationDispatcher(probe=probe, config=config_store)
        await dispatcher.invalidate(["a"])
        await dispatcher.invalidate(["b"])
        assert probe_calls == 1

    async def test_capability_survives_config_reload(self, dispatcher, config_store) -> None:
        await config_store.reload()
        assert dispatcher.capability is Capability.AVAILABLE

    async def test_dispatchers_are_independent(self, config_store, recorder) -> None:
        first = RevalidationDispatcher(recorder, config=config_store)
        second = RevalidationDispatcher(config=config_store)
        assert first.capability is Capability.AVAILABLE
        assert second.capability is Capability.UNAVAILABLE


class TestEmptyTags:
    """Tests for mutations without tags."""

    @pytest.mark.parametrize("tags", [None, []])
    async def test_warns_when_enabled(self, dispatcher, recorder, caplog, tags) -> None:
        await dispatcher.invalidate(tags, url="/empty")
        assert recorder.calls == []
        assert (
            "[POST] Empty or missing tags revalidation array passed to POST request on /empty"
            in caplog.messages
        )

    async def test_silent_when_disabled(self, make_config_store, recorder, caplog) -> None:
        store = await make_config_store({"debug": {"empty_mutation_tags_warning": False}})
        dispatcher = RevalidationDispatcher(recorder, config=store)
        await dispatcher.invalidate([], url="/empty")
        assert recorder.calls == []
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    async def test_no_warning_when_unavailable(self, config_store, caplog) -> None:
        dispatcher = RevalidationDispatcher(config=config_store)
        await dispatcher.invalidate([], url="/empty")
        assert not any("Empty or missing" in m for m in caplog.messages)


class TestStrategies:
    """Tests for strategy selection and per-tag invocation."""

    async def test_default_strategy(self, dispatcher, recorder, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cachelens")
        await dispatcher.invalidate(["a", "b"], url="/default")

        assert recorder.calls == [
            ("revalidate_tag", "a", "max"),
            ("revalidate_tag", "b", "max"),
        ]
        assert "[CACHE] Revalidating tag [a]" in caplog.messages
        assert "[CACHE] Revalidating tag [b]" in caplog.messages

    async def test_single_string_is_one_tag(self, dispatcher, recorder) -> None:
        await dispatcher.invalidate("posts", url="/posts")
        assert recorder.calls == [("revalidate_tag", "posts", "max")]

    async def test_single_string_with_update_tag(self, dispatcher, recorder) -> None:
        await dispatcher.invalidate("posts", revalidate_function="update_tag")
        assert recorder.calls == [("update_tag", "posts")]

    async def test_explicit_profile(self, dispatcher, recorder) -> None:
        await dispatcher.invalidate(["x"], profile="hours")
        assert recorder.calls == [("revalidate_tag", "x", "hours")]

    async def test_update_tag_strategy(self, dispatcher, recorder, caplog) -> None:
        caplog.set_level(logging.INFO, logger="cachelens")
        await dispatcher.invalidate(
            ["t1", "t2"], url="/update", revalidate_function="update_tag"
        )

        assert recorder.calls == [("update_tag", "t1"), ("update_tag", "t2")]
        assert "[CACHE] Updating tag [t1]" in caplog.messages
        assert "[CACHE] Updating tag [t2]" in caplog.messages

    async def test_configured_default_strategy(self, make_config_store, recorder) -> None:
        store = await make_config_store({"default_revalidate_function": "update_tag"})
        dispatcher = RevalidationDispatcher(recorder, config=store)
        await dispatcher.invalidate(["c"])
        assert recorder.calls == [("update_tag", "c")]

    async def test_explicit_strategy_beats_config(self, make_config_store, recorder) -> None:
        store = await make_config_store({"default_revalidate_function": "update_tag"})
        dispatcher = RevalidationDispatcher(recorder, config=store)
        await dispatcher.invalidate(["c"], revalidate_function="revalidate_tag")
        assert recorder.calls == [("revalidate_tag", "c", "max")]

    async def test_unknown_strategy_falls_back(self, dispatcher, recorder) -> None:
        await dispatcher.invalidate(["c"], revalidate_function="purge")  # type: ignore[arg-type]
        assert recorder.calls == [("revalidate_tag", "c", "max")]

    async def test_failing_tag_does_not_stop_the_rest(self, config_store, caplog) -> None:
        seen: list[str] = []

        class Flaky(RecordingAdapter):
            async def revalidate_tag(self, tag: str, profile: str | None = None) -> None:
                seen.append(tag)
                if tag == "b":
                    raise RuntimeError("boom")

        dispatcher = RevalidationDispatcher(Flaky(), config=config_store)
        await dispatcher.invalidate(["a", "b", "c"], url="/flaky")

        assert seen == ["a", "b", "c"]
        assert "[CACHE] Failed to invalidate tag [b] on /flaky" in caplog.messages

    async def test_memory_adapter_records_times(self, config_store) -> None:
        adapter = AsyncMemoryInvalidationAdapter()
        dispatcher = RevalidationDispatcher(adapter, config=config_store)
        await dispatcher.invalidate(["a"])
        assert await adapter.get_tag_invalidation_time("a") is not None
        assert await adapter.get_tag_profile("a") == "max"

    async def test_noop_adapter(self, config_store) -> None:
        dispatcher = RevalidationDispatcher(NoopInvalidationAdapter(), config=config_store)
        assert dispatcher.capability is Capability.AVAILABLE
        await dispatcher.invalidate(["a"])


class TestExpansion:
    """Tests for tag group expansion before invalidation."""

    async def test_expand_groups(self, config_store, recorder, tag_store: TagStore) -> None:
        dispatcher = RevalidationDispatcher(
            recorder, config=config_store, tag_store=tag_store
        )
        await dispatcher.invalidate(["users", "settings", "users:list"], expand=True)
        assert [call[1] for call in recorder.calls] == [
            "users:list",
            "users:profile",
            "settings",
        ]

    async def test_unknown_names_are_reported(
        self, config_store, recorder, tag_store: TagStore, caplog
    ) -> None:
        dispatcher = RevalidationDispatcher(
            recorder, config=config_store, tag_store=tag_store
        )
        await dispatcher.invalidate(["settings", "bogus"], expand=True)
        assert [call[1] for call in recorder.calls] == ["settings"]
        assert "[CACHE] Ignoring unknown tags or groups: bogus" in caplog.messages

    async def test_without_expand_tags_pass_through(
        self, config_store, recorder, tag_store: TagStore
    ) -> None:
        dispatcher = RevalidationDispatcher(
            recorder, config=config_store, tag_store=tag_store
        )
        await dispatcher.invalidate(["users", "bogus"])
        assert [call[1] for call in recorder.calls] == ["users", "bogus"]
