# notifywait/processing/reporter.py

"""
Reports ready events: one line per logical change, then the optional job
"""
import sys
import logging
import threading
from typing import Optional, TextIO

from notifywait.utils.config import WatchConfig
from notifywait.watch.events import RawEvent, logical_changes
from .formatter import EventFormatter, parse_format
from .executor import CommandExecutor

logger = logging.getLogger(__name__)


class EventReporter:
    """
    Sink for events the debouncer has decided to emit

    Rename lines are written adjacently under the output lock, so job
    output from another context never lands between MOVED_FROM and
    MOVED_TO.
    """

    def __init__(self, config: WatchConfig, writer: Optional[TextIO] = None,
                 formatter: Optional[EventFormatter] = None,
                 executor: Optional[CommandExecutor] = None):
        self.config = config
        self.writer = writer or sys.stdout
        self.tokens = parse_format(config.format)
        self.formatter = formatter or EventFormatter(timefmt=config.timefmt)
        self.write_lock = threading.Lock()

        if executor is None and config.execute:
            executor = CommandExecutor(
                command=config.execute,
                parameter=config.parameter,
                timeout=config.timeout,
                write_lock=self.write_lock,
            )
        self.executor = executor

        self.stats = {
            'events_reported': 0,
            'lines_written': 0,
            'jobs_run': 0,
            'jobs_failed': 0,
        }

    def report(self, event: RawEvent):
        """Write the logical changes of a ready event and run the job"""
        with self.write_lock:
            for kind, name in logical_changes(event):
                self.formatter.render(self.writer, self.tokens, event, kind, name)
                self.stats['lines_written'] += 1
            self.writer.flush()

        self.stats['events_reported'] += 1

        if self.executor:
            self.stats['jobs_run'] += 1
            if not self.executor.run(self.writer):
                self.stats['jobs_failed'] += 1
