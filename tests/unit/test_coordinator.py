"""Reload coordination: generations, failures, coalescing and background polling."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Any

import pytest

from driverconf.coordinator import ReloadCoordinator
from driverconf.errors import ConfigurationError, ProfileNotFoundError, ReloadError
from driverconf.sources import MappingSource, SupplierSource

pytestmark = pytest.mark.unit


class _MutableSource:
    """Supplier over a dict the test edits between reloads."""

    def __init__(self, data: dict[str, Any]) -> None:
        self.data = data
        self.fail: Exception | None = None

    def supply(self) -> dict[str, Any]:
        if self.fail is not None:
            raise self.fail
        return dict(self.data)

    def source(self) -> SupplierSource:
        return SupplierSource(self.supply, name="mutable")


def test_first_read_resolves_generation_one() -> None:
    coordinator = ReloadCoordinator(MappingSource({"a": 1}))

    assert coordinator.generation == 0
    assert coordinator.is_resolved is False
    config = coordinator.current
    assert config.generation == 1
    assert coordinator.current is config
    assert coordinator.is_resolved is True


def test_reload_publishes_a_new_generation_and_keeps_old_snapshots() -> None:
    state = _MutableSource({"a": 1})
    coordinator = ReloadCoordinator(state.source())
    first = coordinator.current

    state.data["a"] = 2
    second = coordinator.reload()

    assert second.generation == 2
    assert coordinator.current is second
    assert first.default_profile.get_int("a") == 1
    assert second.default_profile.get_int("a") == 2


def test_first_resolution_errors_propagate_unwrapped() -> None:
    state = _MutableSource({})
    state.fail = ConfigurationError("boom")
    coordinator = ReloadCoordinator(state.source())

    with pytest.raises(ConfigurationError, match="boom"):
        _ = coordinator.current
    assert coordinator.is_resolved is False

    state.fail = None
    assert coordinator.current.generation == 1


def test_failed_reload_keeps_the_previous_generation() -> None:
    state = _MutableSource({"a": 1})
    coordinator = ReloadCoordinator(state.source())
    before = coordinator.current

    state.fail = ConfigurationError("bad file", hint="fix the file")
    with pytest.raises(ReloadError) as exc:
        coordinator.reload()

    assert isinstance(exc.value.__cause__, ConfigurationError)
    assert exc.value.hint == "fix the file"
    assert exc.value.generation == 1
    assert coordinator.current is before


def test_reload_error_from_resolution_keeps_previous_generation() -> None:
    state = _MutableSource({"a": 1})
    coordinator = ReloadCoordinator(state.source())
    _ = coordinator.current

    state.data = {"profiles.default.a": 2}
    with pytest.raises(ReloadError):
        coordinator.reload()
    assert coordinator.generation == 1


def test_reload_if_changed_consults_the_source() -> None:
    coordinator = ReloadCoordinator(MappingSource({"a": 1}))

    assert coordinator.reload_if_changed() is True
    assert coordinator.generation == 1
    assert coordinator.reload_if_changed() is False
    assert coordinator.generation == 1


def test_derived_profiles_follow_reloads() -> None:
    state = _MutableSource({"a": 1, "profiles.slow.a": 10})
    coordinator = ReloadCoordinator(state.source())
    snapshot = coordinator.current.profile("slow")
    derived = snapshot.with_int("b", 2)

    assert (derived.get_int("a"), derived.get_int("b")) == (10, 2)
    assert derived.parent_generation_seen == 1

    state.data["profiles.slow.a"] = 20
    coordinator.reload()

    assert (derived.get_int("a"), derived.get_int("b")) == (20, 2)
    assert derived.generation == 2
    assert derived.parent_generation_seen == 2
    assert derived.name == "slow"
    assert snapshot.get_int("a") == 10


def test_derived_profile_of_a_removed_profile_fails() -> None:
    state = _MutableSource({"profiles.slow.a": 1})
    coordinator = ReloadCoordinator(state.source())
    derived = coordinator.current.profile("slow").with_int("b", 2)

    state.data = {}
    coordinator.reload()

    with pytest.raises(ProfileNotFoundError):
        derived.get_int("b")


def test_concurrent_reloads_are_coalesced() -> None:
    started = threading.Event()
    release = threading.Event()
    calls = {"n": 0}
    gate = {"on": False}

    def supply() -> dict[str, Any]:
        calls["n"] += 1
        if gate["on"]:
            started.set()
            release.wait(timeout=5)
        return {"n": calls["n"]}

    coordinator = ReloadCoordinator(SupplierSource(supply))
    _ = coordinator.current
    gate["on"] = True

    results: list[Any] = []

    def reload() -> None:
        results.append(coordinator.reload())

    leader = threading.Thread(target=reload)
    leader.start()
    assert started.wait(timeout=5)
    followers = [threading.Thread(target=reload) for _ in range(4)]
    for t in followers:
        t.start()
    time.sleep(0.1)
    release.set()
    for t in [leader, *followers]:
        t.join(timeout=5)

    assert calls["n"] == 2
    assert len(results) == 5
    assert all(r is results[0] for r in results)
    assert coordinator.generation == 2


@pytest.mark.asyncio
async def test_periodic_reload_picks_up_changes() -> None:
    state = _MutableSource({"a": 1})
    coordinator = ReloadCoordinator(state.source())
    task = asyncio.create_task(coordinator.run_periodic(0.01))
    try:
        for _ in range(200):
            if coordinator.generation >= 2:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert coordinator.generation >= 2


@pytest.mark.asyncio
async def test_periodic_reload_reports_errors_and_keeps_polling() -> None:
    errors: list[BaseException] = []
    state = _MutableSource({"a": 1})
    coordinator = ReloadCoordinator(state.source(), on_error=errors.append)
    _ = coordinator.current
    state.fail = ConfigurationError("down")

    task = asyncio.create_task(coordinator.run_periodic(0.01))
    try:
        for _ in range(200):
            if len(errors) >= 2:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert len(errors) >= 2
    assert all(isinstance(e, ReloadError) for e in errors)
    assert coordinator.generation == 1


@pytest.mark.asyncio
async def test_periodic_reload_logs_when_no_observer(caplog) -> None:
    state = _MutableSource({})
    coordinator = ReloadCoordinator(state.source())
    _ = coordinator.current
    state.fail = ConfigurationError("down")

    with caplog.at_level("WARNING", logger="driverconf.coordinator"):
        task = asyncio.create_task(coordinator.run_periodic(0.01))
        try:
            for _ in range(200):
                if any("Background" in r.message for r in caplog.records):
                    break
                await asyncio.sleep(0.01)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

    assert any("Background configuration reload failed" in r.message for r in caplog.records)


@pytest.mark.asyncio
async def test_periodic_reload_rejects_non_positive_interval() -> None:
    coordinator = ReloadCoordinator(MappingSource())
    with pytest.raises(ValueError):
        await coordinator.run_periodic(0)
