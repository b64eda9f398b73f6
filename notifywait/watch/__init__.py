# notifywait/watch/__init__.py

"""
notifywait Watch Module
Debouncing and watch sessions
"""
from .events import ChangeKind, RawChangeType, RawEvent, PendingKey, PendingEvent
from .stop_signal import StopSignal
from .patterns import ExcludeFilter
from .debounce import Debouncer
from .handlers import ChangeEventHandler, WatchError
from .watcher import WatchSession, WatchPathError

__all__ = [
    'ChangeKind',
    'RawChangeType',
    'RawEvent',
    'PendingKey',
    'PendingEvent',
    'StopSignal',
    'ExcludeFilter',
    'Debouncer',
    'ChangeEventHandler',
    'WatchError',
    'WatchSession',
    'WatchPathError',
]
