# notifywait/watch/stop_signal.py

"""
Process-wide single-fire stop signal
"""
import logging
import threading
from typing import Optional

logger = logging.getLogger(__name__)


class StopSignal:
    """
    Monotonic stop signal shared by every watch thread

    Once tripped it stays set; all sessions and the monitor observe it
    and unwind.
    """

    def __init__(self):
        self._event = threading.Event()
        self._lock = threading.Lock()
        self.reason: Optional[str] = None

    def trip(self, reason: str = "stop requested") -> bool:
        """
        Set the signal

        Args:
            reason: Human readable cause, logged once

        Returns:
            True for the caller that actually tripped it
        """
        with self._lock:
            if self._event.is_set():
                return False
            self.reason = reason
            self._event.set()

        logger.info(f"Stop signal tripped: {reason}")
        return True

    def is_set(self) -> bool:
        return self._event.is_set()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until tripped or timeout; returns whether it is set"""
        return self._event.wait(timeout)
