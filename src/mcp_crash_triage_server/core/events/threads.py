"""Stack and thread lines."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import EventKind
from ..regex import ADDRESS
from .base import LogEvent

_FRAME = re.compile(r"[AjJvVC][ ]{1,2}.+")


@dataclass(frozen=True, slots=True)
class StackEvent(LogEvent):
    """Stack bounds header, frame headers and individual native/Java frames."""

    kind = EventKind.STACK
    pattern = re.compile(
        rf"(?:Stack: \[{ADDRESS},{ADDRESS}\](?:,  sp={ADDRESS},  free space=(?P<free_space>\d+)k)?"
        r"|[AjJvVC][ ]{1,2}.+|(?:Java|Native) frames:|JavaThread"
        r"|\[error occurred during error reporting \(printing (?:Java stack|native stack|stack bounds)\)"
        r"|\.\.\.<more frames>\.\.\.).*"
    )

    free_space: int | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> StackEvent:
        free_space = match.group("free_space")
        return cls(log_entry=match.string, free_space=int(free_space) if free_space else None)

    @property
    def is_header(self) -> bool:
        return self.log_entry.startswith("Stack:")

    @property
    def is_frame(self) -> bool:
        return _FRAME.fullmatch(self.log_entry) is not None

    @property
    def is_vm_frame(self) -> bool:
        return self.log_entry.startswith("V  ")

    @property
    def is_vm_generated_code_frame(self) -> bool:
        return self.log_entry.startswith("v  ")


@dataclass(frozen=True, slots=True)
class CurrentThreadEvent(LogEvent):
    kind = EventKind.CURRENT_THREAD
    pattern = re.compile(rf"Current thread(?: \({ADDRESS}\):)?[ ]{{1,2}}(?P<name>.+)")

    name: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> CurrentThreadEvent:
        return cls(log_entry=match.string, name=match.group("name").strip())


@dataclass(frozen=True, slots=True)
class ThreadEvent(LogEvent):
    """``Java Threads:`` / ``Other Threads:`` listings."""

    kind = EventKind.THREAD
    pattern = re.compile(
        r"(?:Java Threads: \( => current thread \)|Other Threads:"
        rf"|(?:  |=>){ADDRESS}(?: \(exited\))? (?:ConcurrentGCThread|GCTaskThread|JavaThread|Thread|VMThread"
        r"|WatcherThread)|\[error occurred during error reporting \(printing all threads\)).*"
    )

    @property
    def is_java_threads_header(self) -> bool:
        return self.log_entry.startswith("Java Threads:")

    @property
    def is_other_threads_header(self) -> bool:
        return self.log_entry.startswith("Other Threads:")
