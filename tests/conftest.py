"""Shared fixtures for Chat Conquest tests."""

from __future__ import annotations

import random

import pytest

from conquest.logic import GameOrchestrator
from conquest.notifications import NotificationManager


class ManualTimer:
    """Timer double: records what is armed and fires on demand."""

    def __init__(self) -> None:
        self.epoch = 0
        self.label: str | None = None
        self.delay: float | None = None
        self._callback = None

    @property
    def armed(self) -> bool:
        return self._callback is not None

    def arm(self, delay, callback, label):
        self.cancel()
        self.delay = delay
        self.label = label
        self._callback = callback
        return self.epoch

    def cancel(self) -> None:
        self._callback = None
        self.label = None
        self.delay = None
        self.epoch += 1

    def fire(self) -> None:
        callback = self._callback
        assert callback is not None, "no timer armed"
        self._callback = None
        self.label = None
        callback()


class Recorder:
    """Notification listener that keeps every event."""

    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def __call__(self, event, payload) -> None:
        self.events.append((event, payload))

    def named(self, event: str) -> list:
        return [payload for name, payload in self.events if name == event]

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def timer() -> ManualTimer:
    return ManualTimer()


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def game(timer, recorder, clock) -> GameOrchestrator:
    notifier = NotificationManager()
    notifier.subscribe(recorder)
    return GameOrchestrator(
        notifier,
        timer=timer,
        rng=random.Random(1234),
        clock=clock,
        wall_clock=lambda: 1_700_000_000_000,
    )
