# notifywait/processing/formatter.py

"""
Rendering of logical change events into output lines
"""
import os
import logging
from datetime import datetime
from typing import Callable, List, Optional, TextIO

from notifywait.utils.config import DEFAULT_TIMEFMT
from notifywait.watch.events import ChangeKind, RawEvent

logger = logging.getLogger(__name__)

DIRECTIVES = {'e', 'f', 'w', 'T'}
ISDIR_MARKER = ",ISDIR"


def parse_format(fmt: str) -> List[str]:
    """
    Split a format string into directive and literal tokens

    Directives keep their percent sign ('%e', '%f', '%w', '%T'). '%%'
    becomes a literal percent and unknown directives stay literal text.

    Args:
        fmt: Format string such as '%T %w%f %e'

    Returns:
        Ordered token list
    """
    tokens: List[str] = []
    literal: List[str] = []

    def flush_literal():
        if literal:
            tokens.append(''.join(literal))
            literal.clear()

    i = 0
    while i < len(fmt):
        char = fmt[i]
        if char == '%' and i + 1 < len(fmt):
            directive = fmt[i + 1]
            if directive in DIRECTIVES:
                flush_literal()
                tokens.append('%' + directive)
            elif directive == '%':
                literal.append('%')
            else:
                literal.append(fmt[i:i + 2])
            i += 2
            continue
        literal.append(char)
        i += 1

    flush_literal()
    return tokens


class EventFormatter:
    """
    Writes one line per logical change

    Args:
        timefmt: strftime format for timestamps
        clock: Returns the current datetime (injectable for tests)
    """

    def __init__(self, timefmt: str = DEFAULT_TIMEFMT,
                 clock: Optional[Callable[[], datetime]] = None):
        self.timefmt = timefmt
        self.clock = clock or datetime.now

    def timestamp(self) -> str:
        return self.clock().strftime(self.timefmt)

    def render(self, writer: TextIO, tokens: List[str], source: RawEvent,
               kind: ChangeKind, name: str):
        """
        Render a logical change

        Args:
            writer: Output stream
            tokens: Parsed format tokens
            source: Raw event the change came from
            kind: Logical change kind
            name: Name relative to the watch root (old name for MOVED_FROM)
        """
        path = source.root / name
        parts = [self.timestamp(), ' ']

        for token in tokens:
            if token == '%e':
                parts.append(kind.value)
                if source.is_directory or path.is_dir():
                    parts.append(ISDIR_MARKER)
            elif token == '%f':
                parts.append(path.name)
            elif token == '%w':
                parts.append(os.path.join(os.fspath(path.parent), ''))
            elif token == '%T':
                parts.append(self.timestamp())
            else:
                parts.append(token)

        writer.write(''.join(parts) + '\n')
