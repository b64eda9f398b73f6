# notifywait/watch/events.py

"""
Change event types shared by the watch sessions and the debouncer
"""
import os
from enum import Enum
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Set, Tuple


class ChangeKind(Enum):
    """Logical change reported to the user"""
    CREATE = "CREATE"
    MODIFY = "MODIFY"
    DELETE = "DELETE"
    MOVED_FROM = "MOVED_FROM"
    MOVED_TO = "MOVED_TO"


class RawChangeType(Enum):
    """Change type as delivered by the native watch"""
    CREATED = "created"
    CHANGED = "changed"
    DELETED = "deleted"
    RENAMED = "renamed"


# Configuration event tokens -> subscribed raw change types
EVENT_TOKENS = {
    'create': RawChangeType.CREATED,
    'modify': RawChangeType.CHANGED,
    'delete': RawChangeType.DELETED,
    'move': RawChangeType.RENAMED,
}

_CHANGE_KINDS = {
    RawChangeType.CREATED: ChangeKind.CREATE,
    RawChangeType.CHANGED: ChangeKind.MODIFY,
    RawChangeType.DELETED: ChangeKind.DELETE,
}


def change_kind_for(change_type: RawChangeType) -> ChangeKind:
    """
    Map a non-rename raw change type to its logical kind

    Renames have no single kind; use logical_changes() for them.
    """
    try:
        return _CHANGE_KINDS[change_type]
    except KeyError:
        raise ValueError(f"{change_type} has no single change kind") from None


def event_tokens_to_kinds(tokens: Iterable[str]) -> Set[RawChangeType]:
    """
    Translate configuration event tokens into raw change types

    Args:
        tokens: Event tokens such as 'create' or 'move'

    Returns:
        Set of raw change types to subscribe to
    """
    kinds = set()
    for token in tokens:
        token = token.strip().lower()
        if token not in EVENT_TOKENS:
            raise ValueError(f"Unknown event: {token}")
        kinds.add(EVENT_TOKENS[token])
    return kinds


class PendingKey(NamedTuple):
    """Coalescing identity: full path plus raw change type"""
    path: str
    change_type: RawChangeType


@dataclass
class RawEvent:
    """One raw notification from a native watch"""
    change_type: RawChangeType
    root: Path
    name: str
    old_name: Optional[str] = None
    is_directory: bool = False

    @property
    def full_path(self) -> Path:
        return self.root / self.name

    @property
    def old_full_path(self) -> Optional[Path]:
        if self.old_name is None:
            return None
        return self.root / self.old_name

    @property
    def key(self) -> PendingKey:
        return PendingKey(os.fspath(self.full_path), self.change_type)

    def __str__(self):
        if self.old_name is not None:
            return f"{self.change_type.value}: {self.old_full_path} -> {self.full_path}"
        return f"{self.change_type.value}: {self.full_path}"


@dataclass
class PendingEvent:
    """In-flight coalescing bucket owned by the debouncer"""
    key: PendingKey
    last_seen: int  # monotonic nanoseconds
    payload: RawEvent
    count: int = 1

    def update(self, payload: RawEvent, now: int):
        """Latest raw event wins"""
        self.payload = payload
        self.last_seen = now
        self.count += 1

    def age(self, now: int) -> int:
        """Nanoseconds since the last raw event for this key"""
        return now - self.last_seen

    def is_ready(self, now: int, quiet_period: int) -> bool:
        return self.age(now) >= quiet_period


def logical_changes(event: RawEvent) -> List[Tuple[ChangeKind, str]]:
    """
    Expand a raw event into the logical changes it reports

    A rename yields MOVED_FROM with the old name followed by MOVED_TO
    with the new name; every other raw event yields a single change.
    """
    if event.change_type is RawChangeType.RENAMED:
        old_name = event.old_name if event.old_name is not None else event.name
        return [
            (ChangeKind.MOVED_FROM, old_name),
            (ChangeKind.MOVED_TO, event.name),
        ]
    return [(change_kind_for(event.change_type), event.name)]
