"""Matcher composition and the priority-ordered line classifier."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from ..models import EventKind
from .base import EventMatcher, LogEvent, RegexMatcher, UnknownEvent
from .header import BlankLineEvent, EndEvent, HeaderEvent, HeadingEvent, NumberEvent
from .memory import (
    HeapAddressEvent,
    HeapEvent,
    HeapRegionsEvent,
    MeminfoEvent,
    MemoryEvent,
    MetaspaceEvent,
    NativeMemoryTrackingEvent,
)
from .system import (
    ContainerInfoEvent,
    CpuInfoEvent,
    DynamicLibraryEvent,
    HostEvent,
    InstructionsEvent,
    LoadAverageEvent,
    MaxMapCountEvent,
    OsEvent,
    OsUptimeEvent,
    PidMaxEvent,
    RegisterEvent,
    RlimitEvent,
    SigInfoEvent,
    ThreadsMaxEvent,
    TopOfStackEvent,
    TransparentHugepageEvent,
    UnameEvent,
)
from .threads import CurrentThreadEvent, StackEvent, ThreadEvent
from .vm import (
    BitsEvent,
    CardTableEvent,
    ClassesRedefinedEvent,
    CodeCacheEvent,
    CommandLineEvent,
    CompilationEvent,
    CurrentCompileTaskEvent,
    DeoptimizationEvent,
    ElapsedTimeEvent,
    EnvironmentVariablesEvent,
    ExceptionCountsEvent,
    ExceptionEvent,
    GlobalFlagsEvent,
    LoggingEvent,
    SignalHandlersEvent,
    TimeElapsedTimeEvent,
    TimeEvent,
    TimezoneEvent,
    VmArgumentsEvent,
    VmEvent,
    VmInfoEvent,
    VmMutexEvent,
    VmOperationEvent,
    VmStateEvent,
)

# Order matters: several line shapes are prefixes of others, and the first
# matching type wins.
EVENT_TYPES: tuple[type[LogEvent], ...] = (
    BitsEvent,
    BlankLineEvent,
    CardTableEvent,
    ClassesRedefinedEvent,
    CodeCacheEvent,
    CommandLineEvent,
    CompilationEvent,
    ContainerInfoEvent,
    CpuInfoEvent,
    CurrentCompileTaskEvent,
    CurrentThreadEvent,
    DeoptimizationEvent,
    DynamicLibraryEvent,
    ElapsedTimeEvent,
    EndEvent,
    EnvironmentVariablesEvent,
    ExceptionCountsEvent,
    ExceptionEvent,
    GlobalFlagsEvent,
    HeaderEvent,
    HeadingEvent,
    HeapEvent,
    HeapAddressEvent,
    HeapRegionsEvent,
    HostEvent,
    InstructionsEvent,
    LoadAverageEvent,
    LoggingEvent,
    MaxMapCountEvent,
    MeminfoEvent,
    MemoryEvent,
    MetaspaceEvent,
    NativeMemoryTrackingEvent,
    NumberEvent,
    OsEvent,
    OsUptimeEvent,
    PidMaxEvent,
    RegisterEvent,
    RlimitEvent,
    SigInfoEvent,
    SignalHandlersEvent,
    StackEvent,
    ThreadEvent,
    ThreadsMaxEvent,
    TimeEvent,
    TimeElapsedTimeEvent,
    TimezoneEvent,
    TopOfStackEvent,
    TransparentHugepageEvent,
    UnameEvent,
    VmArgumentsEvent,
    VmEvent,
    VmInfoEvent,
    VmMutexEvent,
    VmOperationEvent,
    VmStateEvent,
)


@dataclass(frozen=True, slots=True)
class CompositeMatcher:
    """Try matchers in order; the first match classifies the line."""

    matchers: Sequence[EventMatcher]

    def parse(self, line: str) -> LogEvent | None:
        """Return the first successful parse from the configured matchers."""
        for m in self.matchers:
            out = m.parse(line)
            if out is not None:
                return out
        return None

    def identify(self, line: str) -> LogEvent:
        """Parse a line, falling back to ``UnknownEvent``."""
        event = self.parse(line)
        if event is None:
            return UnknownEvent(log_entry=line)
        return event

    def classify(self, line: str) -> EventKind:
        return self.identify(line).kind


@lru_cache(maxsize=1)
def default_matcher() -> CompositeMatcher:
    """The matcher over every known event type, in priority order."""
    return CompositeMatcher(matchers=tuple(RegexMatcher(t) for t in EVENT_TYPES))


def identify(line: str) -> LogEvent:
    """Classify ``line`` and parse it into its typed event."""
    return default_matcher().identify(line)


def classify(line: str) -> EventKind:
    """Return the kind of ``line`` (``EventKind.UNKNOWN`` when nothing matches)."""
    return default_matcher().classify(line)
