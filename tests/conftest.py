"""
Shared pytest fixtures for rtk-core tests.

This module provides:
- Settings isolation (no RTK_* variables or .env files leak into tests)
- A recording handler group and a registry/dispatcher built from it
- A controllable clock for scheduler tests
"""

from __future__ import annotations

import os
import threading
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from rtk.core.settings import clear_settings_cache
from rtk.framework import ActionDispatcher, ActionRegistry, ParamType, action

S = ParamType.STRING


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


# =============================================================================
# Settings Isolation
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Run every test with a clean environment and a temporary job store."""
    for key in list(os.environ):
        if key.startswith("RTK_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RTK_JOBS_DB_PATH", str(tmp_path / "jobs.db"))
    clear_settings_cache()
    yield
    clear_settings_cache()


# =============================================================================
# Actions
# =============================================================================


class Recorder:
    """Handler group whose actions record their calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.release = threading.Event()
        self.entered = threading.Event()
        self._lock = threading.Lock()

    def _record(self, name: str, *args: Any) -> None:
        with self._lock:
            self.calls.append((name, args))

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        with self._lock:
            return [args for called, args in self.calls if called == name]

    def copy_file(self, source: str, target: str) -> bool:
        """Pretend to copy a file."""
        self._record("copyFile", source, target)
        return True

    def ping(self) -> str:
        self._record("ping")
        return "pong"

    def add(self, left: int, right: int) -> int:
        self._record("add", left, right)
        return left + right

    def explode(self) -> None:
        self._record("explode")
        raise RuntimeError("boom")

    def block(self) -> bool:
        """Wait until released."""
        self._record("block")
        self.entered.set()
        self.release.wait(5.0)
        return True

    def descriptors(self):
        return [
            action("copyFile", self.copy_file, S, S),
            action("ping", self.ping, aliases=["p"]),
            action("add", self.add, ParamType.INTEGER, ParamType.INTEGER, aliases=["sum", "plus"]),
            action("explode", self.explode),
            action("block", self.block),
        ]


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def registry(recorder: Recorder) -> ActionRegistry:
    return ActionRegistry(recorder.descriptors())


@pytest.fixture
def dispatcher(registry: ActionRegistry) -> ActionDispatcher:
    return ActionDispatcher(registry)


# =============================================================================
# Time
# =============================================================================


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC))
