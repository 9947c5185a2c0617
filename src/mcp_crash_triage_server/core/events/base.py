"""Event and matcher interfaces."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Protocol

from ..models import EventKind


@dataclass(frozen=True, slots=True)
class LogEvent:
    """One classified fatal error log line.

    Subclasses set ``kind`` and ``pattern`` as plain class attributes. The
    pattern is full-matched against the line; ``from_match`` builds the event
    from that match, so an event can only be created from a line it matched.
    """

    log_entry: str

    kind: ClassVar[EventKind] = EventKind.UNKNOWN
    pattern: ClassVar[re.Pattern[str] | None] = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> LogEvent:
        """Build the event from a full match of ``cls.pattern``."""
        return cls(log_entry=match.string)


@dataclass(frozen=True, slots=True)
class UnknownEvent(LogEvent):
    """A line no matcher recognized."""


class EventMatcher(Protocol):
    """Matcher interface: return a LogEvent if the line matches, else None."""

    def matches(self, line: str) -> bool:
        """Return True if the line has this matcher's shape."""
        ...

    def parse(self, line: str) -> LogEvent | None:
        """Parse a line into an event if recognized."""
        ...


@dataclass(frozen=True, slots=True)
class RegexMatcher:
    """Full-match an event type's pattern and build the event from the match."""

    event_type: type[LogEvent]

    def matches(self, line: str) -> bool:
        return self.event_type.pattern.fullmatch(line) is not None

    def parse(self, line: str) -> LogEvent | None:
        m = self.event_type.pattern.fullmatch(line)
        if m is None:
            return None
        return self.event_type.from_match(m)
