"""Tests for :mod:`notifywait.watch.watcher`."""
from __future__ import annotations

import io
import os
import threading

import pytest
from watchdog.events import FileCreatedEvent, FileModifiedEvent

from notifywait.watch.watcher import WatchPathError, WatchSession

from conftest import ObserverFactory, wait_until


@pytest.fixture()
def session_factory(make_config, make_debouncer, stop_signal):
    created: list[tuple[WatchSession, threading.Thread]] = []

    def factory(path, observers=None, **config_kwargs: object):
        config_kwargs.setdefault("monitor", True)
        config = make_config(paths=[path], **config_kwargs)
        session = WatchSession(
            path,
            config,
            make_debouncer(**config_kwargs),
            stop_signal,
            err_stream=io.StringIO(),
            observer_factory=observers or ObserverFactory(),
        )
        return session

    def start(session: WatchSession) -> threading.Thread:
        errors: list[BaseException] = []

        def target():
            try:
                session.run()
            except BaseException as e:  # surfaced by the test
                errors.append(e)

        thread = threading.Thread(target=target, daemon=True)
        thread.errors = errors  # type: ignore[attr-defined]
        thread.start()
        created.append((session, thread))
        assert session.started.wait(2.0)
        return thread

    factory.start = start  # type: ignore[attr-defined]
    yield factory

    stop_signal.trip("test teardown")
    for _, thread in created:
        thread.join(timeout=2.0)


def test_missing_path_fails_fast(session_factory, tmp_path):
    observers = ObserverFactory()
    session = session_factory(tmp_path / "missing", observers=observers)

    with pytest.raises(WatchPathError):
        session.run()
    assert observers.observers == []


def test_directory_target_uses_wildcard(session_factory, tmp_path):
    session = session_factory(tmp_path)

    target = session.resolve_target()

    assert target.directory == tmp_path
    assert target.file_filter is None
    assert session.banner(target) == (
        f"===> Monitoring {tmp_path}{os.sep}* for create, modify, delete, move"
    )


def test_file_target_watches_parent_directory(session_factory, tmp_path, reported):
    watched = tmp_path / "a.txt"
    watched.write_text("x")
    observers = ObserverFactory()
    session = session_factory(watched, observers=observers, recursive=True, events=["modify"])

    session_factory.start(session)
    observer = observers.observers[0]
    assert observer.path == str(tmp_path)
    assert observer.recursive is False
    assert session.err_stream.getvalue() == f"===> Monitoring {tmp_path}{os.sep}a.txt for modify\n"

    observer.handler.on_any_event(FileModifiedEvent(str(tmp_path / "other.txt")))
    observer.handler.on_any_event(FileModifiedEvent(str(watched)))

    assert wait_until(lambda: session.debouncer.pending_count() == 1)
    assert session.stats["events_recorded"] == 1


def test_events_flow_into_debouncer(session_factory, tmp_path):
    observers = ObserverFactory()
    session = session_factory(tmp_path, observers=observers, recursive=True)

    session_factory.start(session)
    observer = observers.observers[0]
    assert observer.recursive is True

    observer.handler.on_any_event(FileCreatedEvent(str(tmp_path / "a.txt")))
    observer.handler.on_any_event(FileCreatedEvent(str(tmp_path / "a.txt")))

    assert wait_until(lambda: session.debouncer.get_stats()["total_events"] == 2)
    assert session.debouncer.pending_count() == 1


def test_quiet_suppresses_banner(session_factory, tmp_path):
    session = session_factory(tmp_path, quiet=True)

    session_factory.start(session)

    assert session.err_stream.getvalue() == ""


def test_stop_signal_releases_observer(session_factory, stop_signal, tmp_path):
    observers = ObserverFactory()
    session = session_factory(tmp_path, observers=observers)
    thread = session_factory.start(session)

    stop_signal.trip("done")
    thread.join(timeout=2.0)

    assert not thread.is_alive()
    assert thread.errors == []
    observer = observers.observers[0]
    assert observer.stopped and observer.joined
    assert session.is_watching is False


def test_native_errors_are_reported_and_watching_continues(session_factory, tmp_path):
    observers = ObserverFactory()
    session = session_factory(tmp_path, observers=observers)
    thread = session_factory.start(session)

    observers.observers[0].handler.report_error("event queue overflow")

    assert wait_until(lambda: "*** " in session.err_stream.getvalue())
    assert "event queue overflow" in session.err_stream.getvalue()
    assert thread.is_alive()
    assert session.is_watching


def test_lost_observer_is_reported_once(session_factory, tmp_path):
    observers = ObserverFactory()
    session = session_factory(tmp_path, observers=observers, quiet=True)
    session_factory.start(session)

    observers.observers[0].alive = False

    assert wait_until(lambda: "stopped unexpectedly" in session.err_stream.getvalue())
    assert session.err_stream.getvalue().count("***") == 1
    assert session.stats["errors_reported"] == 1


def test_observer_start_failure_is_a_path_error(session_factory, tmp_path):
    session = session_factory(tmp_path, observers=ObserverFactory(fail_on_start=True))

    with pytest.raises(WatchPathError, match="watch limit"):
        session.run()
