# notifywait/watch/debounce.py

"""
Event debouncing for file system events

Raw notifications arrive in bursts; a single save can fire several of
them. Events are buffered per (path, change type) and released once the
key has been quiet for `quiet_period`, checked by a timer that ticks every
`poll_interval` while anything is pending.
"""
import time
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from notifywait.utils.config import WatchConfig
from notifywait.utils.logger import log_exception
from .events import PendingEvent, PendingKey, RawEvent
from .patterns import ExcludeFilter
from .stop_signal import StopSignal

logger = logging.getLogger(__name__)

NS_PER_SECOND = 1_000_000_000


class Debouncer:
    """
    Coalesces raw events and hands ready ones to a sink

    The pending map is guarded by a single lock shared by every watch
    session and the flush timer. The sink runs outside the lock so slow
    output or jobs never block ingestion.
    """

    def __init__(self, config: WatchConfig,
                 sink: Callable[[RawEvent], Any],
                 stop_signal: StopSignal,
                 clock: Callable[[], int] = time.monotonic_ns,
                 timer_factory: Callable[..., Any] = threading.Timer):
        """
        Initialize debouncer

        Args:
            config: Watch configuration (monitor flag, exclusion, timing)
            sink: Called with each ready raw event
            stop_signal: Shared stop signal, tripped by the first flush in one-shot mode
            clock: Monotonic clock in integer nanoseconds
            timer_factory: threading.Timer compatible factory
        """
        self.sink = sink
        self.stop_signal = stop_signal
        self.monitor = config.monitor
        self.poll_interval = config.poll_interval
        self.quiet_period = config.quiet_period
        self._quiet_period_ns = round(config.quiet_period * NS_PER_SECOND)
        self.exclude_filter = ExcludeFilter.from_config(config)
        self.clock = clock
        self.timer_factory = timer_factory

        self.pending: Dict[PendingKey, PendingEvent] = {}
        self.lock = threading.Lock()

        # Flush timer state, guarded by self.lock
        self._timer = None
        self._timer_generation = 0
        self._closed = False

        # Statistics
        self.stats = {
            'total_events': 0,
            'debounced_events': 0,
            'excluded_events': 0,
            'dropped_events': 0,
            'processed_events': 0,
            'flushes': 0,
        }

    def record(self, event: RawEvent) -> bool:
        """
        Add a raw event

        Args:
            event: Raw event from a watch session

        Returns:
            True if the event is pending, False if it was discarded
        """
        excluded = (self.exclude_filter is not None
                    and self.exclude_filter.matches(event.full_path))

        with self.lock:
            self.stats['total_events'] += 1

            # One-shot mode already reported its change
            if not self.monitor and self.stop_signal.is_set():
                self.stats['dropped_events'] += 1
                return False

            if excluded:
                self.stats['excluded_events'] += 1
                return False

            if self._closed:
                self.stats['dropped_events'] += 1
                return False

            key = event.key
            now = self.clock()
            pending_event = self.pending.get(key)
            if pending_event is not None:
                pending_event.update(event, now)
                self.stats['debounced_events'] += 1
                logger.debug(f"Debounced event {key} (count: {pending_event.count})")
            else:
                self.pending[key] = PendingEvent(key=key, last_seen=now, payload=event)

            self._arm_timer()
            return True

    def flush(self) -> List[RawEvent]:
        """
        Emit every pending event that has been quiet long enough

        Returns:
            Raw events handed to the sink, in emission order
        """
        with self.lock:
            if not self.monitor and self.stop_signal.is_set():
                if self.pending:
                    self.stats['dropped_events'] += len(self.pending)
                    self.pending.clear()
                self._disarm_timer()
                return []

            now = self.clock()
            ready_keys = [
                key for key, pending_event in self.pending.items()
                if pending_event.is_ready(now, self._quiet_period_ns)
            ]
            ready = [self.pending.pop(key).payload for key in ready_keys]

            if not self.pending:
                self._disarm_timer()

            self.stats['flushes'] += 1
            self.stats['processed_events'] += len(ready)

        for event in ready:
            try:
                self.sink(event)
            except Exception as e:
                logger.error(f"Error reporting event {event}: {e}")

        # One-shot mode runs exactly one flush cycle
        if not self.monitor:
            self.stop_signal.trip("first flush completed")

        return ready

    def close(self):
        """Disarm the timer and drop anything still pending"""
        with self.lock:
            self._closed = True
            self._disarm_timer()
            if self.pending:
                logger.debug(f"Discarding {len(self.pending)} pending events on close")
                self.pending.clear()

    def pending_count(self) -> int:
        with self.lock:
            return len(self.pending)

    @property
    def timer_armed(self) -> bool:
        with self.lock:
            return self._timer is not None

    def get_stats(self) -> Dict[str, Any]:
        """Get debouncer statistics"""
        with self.lock:
            return {
                **self.stats,
                'active_events': len(self.pending),
                'poll_interval': self.poll_interval,
                'quiet_period': self.quiet_period,
            }

    def _arm_timer(self):
        # Caller holds self.lock
        if self._timer is not None or self._closed:
            return
        self._timer_generation += 1
        self._schedule_tick(self._timer_generation)

    def _disarm_timer(self):
        # Caller holds self.lock
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _schedule_tick(self, generation: int):
        timer = self.timer_factory(self.poll_interval, self._on_tick, args=(generation,))
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _on_tick(self, generation: Optional[int] = None):
        try:
            self.flush()
        except Exception as e:
            log_exception(logger, e, "Error in flush tick")

        with self.lock:
            # Re-arm only if this tick's timer is still the armed one
            if (self._timer is not None and not self._closed
                    and generation == self._timer_generation):
                self._schedule_tick(generation)
