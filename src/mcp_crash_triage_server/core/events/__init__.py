"""Fatal error log line events and matchers.

Each event type owns one full-match pattern. ``EVENT_TYPES`` is the
classification priority order: a line becomes the first type whose pattern
matches it, or ``UnknownEvent``.
"""

from __future__ import annotations

from .base import EventMatcher, LogEvent, RegexMatcher, UnknownEvent
from .composite import EVENT_TYPES, CompositeMatcher, classify, default_matcher, identify
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

__all__ = [
    "EVENT_TYPES",
    "BitsEvent",
    "BlankLineEvent",
    "CardTableEvent",
    "ClassesRedefinedEvent",
    "CodeCacheEvent",
    "CommandLineEvent",
    "CompilationEvent",
    "CompositeMatcher",
    "ContainerInfoEvent",
    "CpuInfoEvent",
    "CurrentCompileTaskEvent",
    "CurrentThreadEvent",
    "DeoptimizationEvent",
    "DynamicLibraryEvent",
    "ElapsedTimeEvent",
    "EndEvent",
    "EnvironmentVariablesEvent",
    "EventMatcher",
    "ExceptionCountsEvent",
    "ExceptionEvent",
    "GlobalFlagsEvent",
    "HeaderEvent",
    "HeadingEvent",
    "HeapAddressEvent",
    "HeapEvent",
    "HeapRegionsEvent",
    "HostEvent",
    "InstructionsEvent",
    "LoadAverageEvent",
    "LogEvent",
    "LoggingEvent",
    "MaxMapCountEvent",
    "MeminfoEvent",
    "MemoryEvent",
    "MetaspaceEvent",
    "NativeMemoryTrackingEvent",
    "NumberEvent",
    "OsEvent",
    "OsUptimeEvent",
    "PidMaxEvent",
    "RegexMatcher",
    "RegisterEvent",
    "RlimitEvent",
    "SigInfoEvent",
    "SignalHandlersEvent",
    "StackEvent",
    "ThreadEvent",
    "ThreadsMaxEvent",
    "TimeElapsedTimeEvent",
    "TimeEvent",
    "TimezoneEvent",
    "TopOfStackEvent",
    "TransparentHugepageEvent",
    "UnameEvent",
    "UnknownEvent",
    "VmArgumentsEvent",
    "VmEvent",
    "VmInfoEvent",
    "VmMutexEvent",
    "VmOperationEvent",
    "VmStateEvent",
    "classify",
    "default_matcher",
    "identify",
]
