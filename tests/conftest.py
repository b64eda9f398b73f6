"""Shared fixtures and fakes for the notifywait tests."""
from __future__ import annotations

import time
from pathlib import Path
from typing import Callable

import pytest

from notifywait.utils.config import WatchConfig
from notifywait.watch.debounce import NS_PER_SECOND, Debouncer
from notifywait.watch.events import RawChangeType, RawEvent
from notifywait.watch.stop_signal import StopSignal


class FakeClock:
    """Manually advanced monotonic clock in integer nanoseconds."""

    def __init__(self, start: int = 1_000 * NS_PER_SECOND) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += round(seconds * NS_PER_SECOND)


class FakeTimer:
    """threading.Timer stand-in that only fires when told to."""

    def __init__(self, interval, function, args=None, kwargs=None) -> None:
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False

    def start(self) -> None:
        self.started = True

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.function(*self.args, **self.kwargs)


class TimerFactory:
    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def __call__(self, interval, function, args=None, kwargs=None) -> FakeTimer:
        timer = FakeTimer(interval, function, args=args, kwargs=kwargs)
        self.timers.append(timer)
        return timer


class FakeObserver:
    """Observer stand-in; tests push events through ``handler``."""

    def __init__(self, fail_on_start: bool = False) -> None:
        self.fail_on_start = fail_on_start
        self.handler = None
        self.path = None
        self.recursive = None
        self.started = False
        self.stopped = False
        self.joined = False
        self.alive = True

    def schedule(self, handler, path, recursive=False) -> None:
        self.handler = handler
        self.path = path
        self.recursive = recursive

    def start(self) -> None:
        if self.fail_on_start:
            raise OSError("inotify watch limit reached")
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def join(self, timeout=None) -> None:
        self.joined = True

    def is_alive(self) -> bool:
        return self.started and not self.stopped and self.alive


class ObserverFactory:
    def __init__(self, **kwargs: object) -> None:
        self.kwargs = kwargs
        self.observers: list[FakeObserver] = []

    def __call__(self) -> FakeObserver:
        observer = FakeObserver(**self.kwargs)
        self.observers.append(observer)
        return observer


def wait_until(predicate: Callable[[], bool], *, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def make_raw(root: Path, name: str, change_type: RawChangeType = RawChangeType.CHANGED,
             old_name: str | None = None) -> RawEvent:
    return RawEvent(change_type=change_type, root=root, name=name, old_name=old_name)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def timers() -> TimerFactory:
    return TimerFactory()


@pytest.fixture()
def stop_signal() -> StopSignal:
    return StopSignal()


@pytest.fixture()
def make_config(tmp_path):
    def factory(**kwargs: object) -> WatchConfig:
        kwargs.setdefault("paths", [tmp_path])
        kwargs.setdefault("watch_stdin", False)
        return WatchConfig(**kwargs)

    return factory


@pytest.fixture()
def reported() -> list[RawEvent]:
    return []


@pytest.fixture()
def make_debouncer(make_config, reported, stop_signal, clock, timers):
    def factory(sink=None, **config_kwargs: object) -> Debouncer:
        config = make_config(**config_kwargs)
        return Debouncer(
            config,
            sink if sink is not None else reported.append,
            stop_signal,
            clock=clock,
            timer_factory=timers,
        )

    return factory
