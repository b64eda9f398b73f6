# notifywait/watch/watcher.py

"""
Watch session: one native watch bound to one root path
"""
import os
import sys
import queue
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, Optional, TextIO, Union

from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from notifywait.utils.config import WatchConfig
from .debounce import Debouncer
from .events import RawEvent, event_tokens_to_kinds
from .handlers import ChangeEventHandler, ChannelItem, WatchError
from .stop_signal import StopSignal

logger = logging.getLogger(__name__)

CHANNEL_POLL_TIMEOUT = 0.05  # seconds between stop signal checks
OBSERVER_JOIN_TIMEOUT = 5.0
POLLING_OBSERVER_INTERVAL = 1.0
ERROR_PREFIX = "*** "


class WatchPathError(Exception):
    """A watch path is missing or cannot be watched"""


@dataclass
class WatchTarget:
    """Directory handed to the native watch plus optional file name filter"""
    directory: Path
    file_filter: Optional[str] = None

    @property
    def pattern(self) -> str:
        return self.file_filter or "*"


class WatchSession:
    """
    Owns one observer for one root path

    Raw events travel from the observer thread through a queue; the
    session thread drains it into the shared debouncer until the stop
    signal fires, then releases the observer.
    """

    def __init__(self, path: Union[str, Path], config: WatchConfig,
                 debouncer: Debouncer, stop_signal: StopSignal,
                 err_stream: Optional[TextIO] = None,
                 observer_factory: Optional[Callable[[], Any]] = None):
        """
        Initialize watch session

        Args:
            path: File or directory to watch
            config: Watch configuration
            debouncer: Shared debouncer
            stop_signal: Shared stop signal
            err_stream: Stream for the banner and native errors (stderr)
            observer_factory: Builds the watchdog observer
        """
        self.path = Path(path)
        self.config = config
        self.debouncer = debouncer
        self.stop_signal = stop_signal
        self.err_stream = err_stream or sys.stderr
        self.observer_factory = observer_factory

        self.channel: "queue.Queue[ChannelItem]" = queue.Queue()
        self.handler: Optional[ChangeEventHandler] = None
        self.started = threading.Event()
        self.is_watching = False

        self.stats = {
            'start_time': None,
            'events_recorded': 0,
            'errors_reported': 0,
        }

    def resolve_target(self) -> WatchTarget:
        """
        Work out what the native watch is bound to

        Raises:
            WatchPathError: if the path does not exist
        """
        path = Path(os.path.expanduser(str(self.path))).absolute()
        if path.is_file():
            return WatchTarget(directory=path.parent, file_filter=path.name)
        if path.is_dir():
            return WatchTarget(directory=path)
        raise WatchPathError(f"Path does not exist: {path}")

    def banner(self, target: WatchTarget) -> str:
        mode = "Monitoring" if self.config.monitor else "Watching"
        return f"===> {mode} {target.directory}{os.sep}{target.pattern} for {', '.join(self.config.events)}"

    def run(self):
        """
        Watch until the stop signal fires

        Raises:
            WatchPathError: if the path cannot be watched
        """
        target = self.resolve_target()
        self.handler = ChangeEventHandler(
            root=target.directory,
            channel=self.channel,
            subscribed=event_tokens_to_kinds(self.config.events),
            file_filter=target.file_filter,
        )

        with self._observe(target) as observer:
            self.is_watching = True
            self.stats['start_time'] = datetime.now()
            logger.info(f"Started watching {target.directory} (pattern: {target.pattern}, "
                        f"recursive: {self._recursive(target)})")

            if not self.config.quiet:
                self._write_err(self.banner(target))

            self.started.set()
            try:
                self._pump(observer)
            finally:
                self.is_watching = False

        logger.info(f"Stopped watching {target.directory}")

    def _recursive(self, target: WatchTarget) -> bool:
        return self.config.recursive and target.file_filter is None

    def _create_observer(self):
        if self.observer_factory is not None:
            return self.observer_factory()
        if self.config.use_polling:
            logger.debug(f"Using polling observer (interval: {POLLING_OBSERVER_INTERVAL}s)")
            return PollingObserver(timeout=POLLING_OBSERVER_INTERVAL)
        return Observer()

    @contextmanager
    def _observe(self, target: WatchTarget) -> Iterator[Any]:
        """Start an observer for the target and always release it"""
        observer = self._create_observer()
        try:
            observer.schedule(
                self.handler,
                str(target.directory),
                recursive=self._recursive(target)
            )
            observer.start()
        except OSError as e:
            raise WatchPathError(f"Cannot watch {target.directory}: {e}") from e

        try:
            yield observer
        finally:
            observer.stop()
            observer.join(timeout=OBSERVER_JOIN_TIMEOUT)

    def _pump(self, observer):
        """Drain the channel into the debouncer until stopped"""
        observer_lost = False

        while not self.stop_signal.is_set():
            try:
                item = self.channel.get(timeout=CHANNEL_POLL_TIMEOUT)
            except queue.Empty:
                if not observer_lost and not observer.is_alive():
                    observer_lost = True
                    self._report_error(WatchError(
                        message="native watch stopped unexpectedly",
                        root=self.handler.root,
                    ))
                continue

            self._dispatch(item)

    def _dispatch(self, item: ChannelItem):
        if isinstance(item, WatchError):
            self._report_error(item)
        elif isinstance(item, RawEvent):
            if self.debouncer.record(item):
                self.stats['events_recorded'] += 1

    def _report_error(self, error: WatchError):
        """Native errors are reported and watching continues"""
        self.stats['errors_reported'] += 1
        logger.warning(f"Watch error: {error}")
        self._write_err(f"{ERROR_PREFIX}{error}")

    def _write_err(self, line: str):
        try:
            self.err_stream.write(line + '\n')
            self.err_stream.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"Could not write to error stream: {e}")

    def get_status(self) -> Dict[str, Any]:
        """Get session status"""
        handler_stats = self.handler.get_stats() if self.handler else {}
        return {
            'path': str(self.path),
            'is_watching': self.is_watching,
            'recursive': self.config.recursive,
            'stats': {**self.stats, **handler_stats},
        }
