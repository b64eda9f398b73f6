# notifywait/watch/handlers.py

"""
Event handler translating watchdog notifications into raw events
"""
import os
import logging
import queue
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Set, Union

from watchdog.events import (
    FileSystemEventHandler,
    FileCreatedEvent,
    FileModifiedEvent,
    FileDeletedEvent,
    FileMovedEvent,
    DirCreatedEvent,
    DirModifiedEvent,
    DirDeletedEvent,
    DirMovedEvent
)

from .events import RawChangeType, RawEvent

logger = logging.getLogger(__name__)


@dataclass
class WatchError:
    """Native watch error travelling on the event channel"""
    message: str
    root: Path

    def __str__(self):
        return f"{self.root}: {self.message}"


ChannelItem = Union[RawEvent, WatchError]


class ChangeEventHandler(FileSystemEventHandler):
    """
    Puts raw events for one watch root on a channel

    Runs in the observer's thread; the owning watch session drains the
    channel into the debouncer.
    """

    def __init__(self, root: Path, channel: "queue.Queue[ChannelItem]",
                 subscribed: Set[RawChangeType],
                 file_filter: Optional[str] = None):
        """
        Initialize event handler

        Args:
            root: Watched directory
            channel: Queue receiving RawEvent and WatchError items
            subscribed: Raw change types to forward
            file_filter: Only forward events for this file name in root
        """
        self.root = root
        self.channel = channel
        self.subscribed = set(subscribed)
        self.file_filter = file_filter

        # Statistics
        self.stats = {
            'events_received': 0,
            'events_forwarded': 0,
            'events_ignored': 0,
            'errors': 0,
            'last_event': None,
        }

    def on_any_event(self, event):
        """Handle any file system event"""
        self.stats['events_received'] += 1
        self.stats['last_event'] = datetime.now()

        try:
            raw_event = self._convert_event(event)
        except Exception as e:
            self.stats['errors'] += 1
            logger.error(f"Error converting event {event!r}: {e}")
            self.report_error(str(e))
            return

        if raw_event is None:
            self.stats['events_ignored'] += 1
            return

        self.channel.put(raw_event)
        self.stats['events_forwarded'] += 1

    def report_error(self, message: str):
        """Forward a native watch error to the session"""
        self.channel.put(WatchError(message=message, root=self.root))

    def _convert_event(self, event) -> Optional[RawEvent]:
        """Convert watchdog event to a raw event, or None if it is not wanted"""
        if isinstance(event, (FileCreatedEvent, DirCreatedEvent)):
            change_type = RawChangeType.CREATED
        elif isinstance(event, (FileModifiedEvent, DirModifiedEvent)):
            change_type = RawChangeType.CHANGED
        elif isinstance(event, (FileDeletedEvent, DirDeletedEvent)):
            change_type = RawChangeType.DELETED
        elif isinstance(event, (FileMovedEvent, DirMovedEvent)):
            change_type = RawChangeType.RENAMED
        else:
            # Opened / closed and other access events
            return None

        if change_type not in self.subscribed:
            return None

        name = self._relative_name(event.src_path)
        old_name = None
        if change_type is RawChangeType.RENAMED:
            old_name = name
            name = self._relative_name(event.dest_path)

        # The watched directory itself is never reported
        if name == os.curdir and old_name in (None, os.curdir):
            return None

        if self.file_filter and not self._passes_file_filter(name, old_name):
            return None

        return RawEvent(
            change_type=change_type,
            root=self.root,
            name=name,
            old_name=old_name,
            is_directory=event.is_directory,
        )

    def _relative_name(self, path: Union[str, bytes]) -> str:
        return os.path.relpath(os.fsdecode(path), os.fspath(self.root))

    def _passes_file_filter(self, name: str, old_name: Optional[str]) -> bool:
        wanted = os.path.normcase(self.file_filter)
        return any(
            candidate is not None and os.path.normcase(candidate) == wanted
            for candidate in (name, old_name)
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get handler statistics"""
        return self.stats.copy()
