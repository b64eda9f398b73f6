# notifywait/watch/patterns.py

"""
Exclude pattern matching for change events
"""
import os
import re
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Pattern, Union

from notifywait.utils.config import ConfigError

logger = logging.getLogger(__name__)


@dataclass
class ExcludeFilter:
    """
    Regular expression matched against the full event path

    Args:
        pattern: Regular expression
        case_sensitive: False for --excludei semantics
    """
    pattern: str
    case_sensitive: bool = True
    compiled_pattern: Pattern = field(init=False, repr=False)

    def __post_init__(self):
        flags = 0 if self.case_sensitive else re.IGNORECASE
        try:
            self.compiled_pattern = re.compile(self.pattern, flags)
        except re.error as e:
            raise ConfigError(f"Invalid exclude pattern '{self.pattern}': {e}") from e

    @classmethod
    def from_config(cls, config) -> Optional["ExcludeFilter"]:
        """Build the filter for a WatchConfig, or None when nothing is excluded"""
        if config.exclude is not None:
            return cls(config.exclude, case_sensitive=True)
        if config.excludei is not None:
            return cls(config.excludei, case_sensitive=False)
        return None

    def matches(self, path: Union[str, Path]) -> bool:
        """
        Check if path is excluded

        Args:
            path: Full event path

        Returns:
            True if the pattern matches anywhere in the path
        """
        return bool(self.compiled_pattern.search(os.fspath(path)))
