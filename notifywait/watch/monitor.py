# notifywait/watch/monitor.py

"""
Main file system monitor: runs one watch session per configured path
"""
import sys
import logging
import threading
from typing import Any, Callable, Dict, List, Optional, TextIO

from notifywait.utils.config import WatchConfig
from notifywait.utils.logger import log_exception
from notifywait.processing.reporter import EventReporter
from .debounce import Debouncer
from .stop_signal import StopSignal
from .watcher import ERROR_PREFIX, WatchPathError, WatchSession

logger = logging.getLogger(__name__)

STOP_WAIT_INTERVAL = 0.5  # seconds; keeps the main thread responsive to Ctrl+C

EXIT_OK = 0
EXIT_NO_WATCH = 1
EXIT_INTERRUPTED = 130


class WatchMonitor:
    """
    Fans out watch sessions and waits for the shared stop signal

    All sessions feed one debouncer. The stop signal fires after the first
    flush in one-shot mode, when standard input reaches end-of-stream, or
    when no path could be watched.
    """

    def __init__(self, config: WatchConfig,
                 out_stream: Optional[TextIO] = None,
                 err_stream: Optional[TextIO] = None,
                 stdin: Optional[TextIO] = None,
                 observer_factory: Optional[Callable[[], Any]] = None,
                 reporter: Optional[EventReporter] = None,
                 stop_signal: Optional[StopSignal] = None):
        """
        Initialize monitor

        Args:
            config: Validated watch configuration
            out_stream: Event output, stdout by default
            err_stream: Banner and error output, stderr by default
            stdin: Stream whose end-of-input requests shutdown
            observer_factory: Builds watchdog observers (tests)
            reporter: Ready event sink
            stop_signal: Shared stop signal
        """
        self.config = config
        self.err_stream = err_stream or sys.stderr
        self.stdin = stdin if stdin is not None else sys.stdin
        self.stop_signal = stop_signal or StopSignal()
        self.reporter = reporter or EventReporter(config, writer=out_stream)
        self.debouncer = Debouncer(config, self.reporter.report, self.stop_signal)

        self.sessions: List[WatchSession] = [
            WatchSession(
                path=path,
                config=config,
                debouncer=self.debouncer,
                stop_signal=self.stop_signal,
                err_stream=self.err_stream,
                observer_factory=observer_factory,
            )
            for path in config.paths
        ]

        self._threads: List[threading.Thread] = []
        self._failed_sessions = 0
        self._lock = threading.Lock()

        logger.info(f"WatchMonitor initialized with {len(self.sessions)} paths to watch")

    def run(self) -> int:
        """
        Watch until stopped

        Returns:
            Process exit status
        """
        if not self.sessions:
            logger.error("No paths to watch")
            return EXIT_NO_WATCH

        for index, session in enumerate(self.sessions):
            thread = threading.Thread(
                target=self._run_session,
                args=(session,),
                name=f"watch-{index}",
                daemon=True,
            )
            thread.start()
            self._threads.append(thread)

        if self.config.watch_stdin:
            listener = threading.Thread(target=self._listen_stdin, name="stdin-listener", daemon=True)
            listener.start()

        interrupted = False
        try:
            while not self.stop_signal.wait(timeout=STOP_WAIT_INTERVAL):
                pass
        except KeyboardInterrupt:
            interrupted = True
            self.stop_signal.trip("interrupted")

        self.shutdown()

        if interrupted:
            return EXIT_INTERRUPTED
        if self._failed_sessions == len(self.sessions):
            return EXIT_NO_WATCH
        return EXIT_OK

    def shutdown(self):
        """Join every session thread and release the debouncer"""
        for thread in self._threads:
            thread.join()
        self.debouncer.close()

        logger.info(f"WatchMonitor stopped ({self.stop_signal.reason})")

    def _run_session(self, session: WatchSession):
        try:
            session.run()
        except WatchPathError as e:
            logger.error(f"Cannot watch {session.path}: {e}")
            self._write_err(f"{ERROR_PREFIX}{e}")
            self._session_failed()
        except Exception as e:
            log_exception(logger, e, f"Watch session for {session.path} failed")
            self._write_err(f"{ERROR_PREFIX}{session.path}: {e}")
            self._session_failed()

    def _session_failed(self):
        with self._lock:
            self._failed_sessions += 1
            all_failed = self._failed_sessions == len(self.sessions)

        if all_failed:
            self.stop_signal.trip("no path could be watched")

    def _listen_stdin(self):
        """Read standard input to its end; content is discarded"""
        try:
            for _ in self.stdin:
                pass
        except (OSError, ValueError) as e:
            logger.debug(f"Standard input unavailable: {e}")

        self.stop_signal.trip("standard input closed")

    def _write_err(self, line: str):
        try:
            self.err_stream.write(line + '\n')
            self.err_stream.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"Could not write to error stream: {e}")

    def get_status(self) -> Dict[str, Any]:
        """Get monitor status"""
        return {
            'stopped': self.stop_signal.is_set(),
            'stop_reason': self.stop_signal.reason,
            'failed_sessions': self._failed_sessions,
            'sessions': [session.get_status() for session in self.sessions],
            'debouncer': self.debouncer.get_stats(),
            'reporter': dict(self.reporter.stats),
        }
