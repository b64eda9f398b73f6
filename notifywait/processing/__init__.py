"""
notifywait Processing Modules
Output formatting and command execution for reported events
"""
from .formatter import EventFormatter, parse_format
from .executor import CommandExecutor
from .reporter import EventReporter

__all__ = [
    'EventFormatter',
    'parse_format',
    'CommandExecutor',
    'EventReporter',
]
