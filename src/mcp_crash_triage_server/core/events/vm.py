"""JVM state, configuration and event history lines."""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime

from ..models import Arch, BuiltBy, EventKind, JavaSpecification, OsType
from ..regex import ADDRESS, BUILD_DATE_TIME, RELEASE_STRING, TIMESTAMP
from ..units import parse_build_date
from .base import LogEvent

_VM_INFO_ARCH = {
    "amd64": Arch.X86_64,
    "ppc64": Arch.PPC64,
    "ppc64le": Arch.PPC64LE,
    "sparc": Arch.SPARC,
    "x86": Arch.X86,
}

_VM_INFO_OS = {
    "linux": OsType.LINUX,
    "solaris": OsType.SOLARIS,
    "windows": OsType.WINDOWS,
}

_BUILT_BY = re.compile(r'by "(?P<built_by>[^"]*)"')


@dataclass(frozen=True, slots=True)
class VmInfoEvent(LogEvent):
    """The ``vm_info:`` line: JDK release, target platform, build date and builder."""

    kind = EventKind.VM_INFO
    pattern = re.compile(
        r"vm_info: (?:Java HotSpot\(TM\)|OpenJDK)(?: 64-Bit)? Server VM \(.+\) for "
        r"(?P<os>linux|windows|solaris)-(?P<arch>amd64|ppc64|ppc64le|sparc|x86) JRE "
        rf"(?:\(Zulu.+\) )?\((?P<release>{RELEASE_STRING})\).+ built on {BUILD_DATE_TIME}.+"
    )

    jdk_release_string: str = ""
    build_date: datetime | None = None
    built_by: BuiltBy = BuiltBy.UNKNOWN
    os_type: OsType = OsType.UNKNOWN
    arch: Arch = Arch.UNKNOWN

    @classmethod
    def from_match(cls, match: re.Match[str]) -> VmInfoEvent:
        built_by = BuiltBy.UNKNOWN
        by = _BUILT_BY.search(match.string)
        if by:
            try:
                built_by = BuiltBy(by.group("built_by"))
            except ValueError:
                built_by = BuiltBy.UNKNOWN
        return cls(
            log_entry=match.string,
            jdk_release_string=match.group("release"),
            build_date=parse_build_date(
                match.group("month"),
                match.group("day"),
                match.group("year"),
                match.group("hour"),
                match.group("minute"),
                match.group("second"),
            ),
            built_by=built_by,
            os_type=_VM_INFO_OS[match.group("os")],
            arch=_VM_INFO_ARCH[match.group("arch")],
        )

    @property
    def java_specification(self) -> JavaSpecification:
        return JavaSpecification.from_release(self.jdk_release_string)


@dataclass(frozen=True, slots=True)
class VmArgumentsEvent(LogEvent):
    """``VM Arguments:`` section lines (jvm_args, java_command, class path, launcher)."""

    kind = EventKind.VM_ARGUMENTS
    pattern = re.compile(
        r"(?P<key>VM Arguments:|jvm_args: |java_command: |java_class_path \(initial\): "
        r"|Launcher Type: )(?P<value>.*)"
    )

    key: str = ""
    value: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> VmArgumentsEvent:
        return cls(
            log_entry=match.string,
            key=match.group("key").strip().rstrip(":"),
            value=match.group("value").strip(),
        )

    @property
    def is_header(self) -> bool:
        return self.key == "VM Arguments"

    @property
    def is_jvm_args(self) -> bool:
        return self.key == "jvm_args"

    @property
    def is_java_command(self) -> bool:
        return self.key == "java_command"


@dataclass(frozen=True, slots=True)
class VmStateEvent(LogEvent):
    kind = EventKind.VM_STATE
    pattern = re.compile(r"VM state:(?P<state>.+)")

    state: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> VmStateEvent:
        return cls(log_entry=match.string, state=match.group("state").strip())


@dataclass(frozen=True, slots=True)
class VmOperationEvent(LogEvent):
    kind = EventKind.VM_OPERATION
    pattern = re.compile(
        rf"VM_Operation \({ADDRESS}\): (?P<operation>(?:BulkRevokeBias|CGC_Operation|G1CollectFull"
        r"|GetThreadListStackTraces|HeapDumper|ParallelGCFailedAllocation|PrintThreads).+)"
    )


@dataclass(frozen=True, slots=True)
class VmMutexEvent(LogEvent):
    kind = EventKind.VM_MUTEX
    pattern = re.compile(rf"(?:VM Mutex/Monitor currently owned by a thread:|\[{ADDRESS}\] ).*")


@dataclass(frozen=True, slots=True)
class VmEvent(LogEvent):
    kind = EventKind.VM_EVENT
    pattern = re.compile(
        rf"(?:Events \(\d+ events\):|Event: {TIMESTAMP} Executing(?: coalesced)? VM operation.+)"
    )


@dataclass(frozen=True, slots=True)
class CommandLineEvent(LogEvent):
    kind = EventKind.COMMAND_LINE
    pattern = re.compile(r"Command Line: .+")


@dataclass(frozen=True, slots=True)
class GlobalFlagsEvent(LogEvent):
    """``[Global flags]`` section: ``size_t MaxHeapSize = 4164943872 {product}``."""

    kind = EventKind.GLOBAL_FLAGS
    pattern = re.compile(
        r"(?:\[Global flags\]|[ ]*(?P<type>bool|ccstr|ccstrlist|double|intx|size_t|uint|uint64_t|uintx)"
        r"[ ]+(?P<name>\w+)[ ]+:?=[ ]*(?P<value>\S*).*)"
    )

    flag_type: str | None = None
    name: str | None = None
    value: str | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> GlobalFlagsEvent:
        return cls(
            log_entry=match.string,
            flag_type=match.group("type"),
            name=match.group("name"),
            value=match.group("value"),
        )


@dataclass(frozen=True, slots=True)
class CompilationEvent(LogEvent):
    kind = EventKind.COMPILATION
    pattern = re.compile(
        rf"(?:Compilation events \(\d+ events\):|Event: {TIMESTAMP} Thread {ADDRESS}[ ]+(?:nmethod|\d+).+"
        r"|No [Ee]vents)"
    )


@dataclass(frozen=True, slots=True)
class CurrentCompileTaskEvent(LogEvent):
    kind = EventKind.CURRENT_COMPILE_TASK
    pattern = re.compile(r"(?:Current CompileTask:|C[12]:).*")


@dataclass(frozen=True, slots=True)
class DeoptimizationEvent(LogEvent):
    kind = EventKind.DEOPTIMIZATION_EVENT
    pattern = re.compile(
        rf"(?:Deoptimization events \(\d+ events\):|Event: {TIMESTAMP} Thread {ADDRESS} "
        r"(?:DEOPT|Uncommon trap).+"
        r"|\[error occurred during error reporting \(printing ring buffers\), id 0x.+\]|No [Ee]vents)"
    )


@dataclass(frozen=True, slots=True)
class ExceptionEvent(LogEvent):
    kind = EventKind.EXCEPTION_EVENT
    pattern = re.compile(
        rf"(?:Internal exceptions \(\d+ events\):|Event: {TIMESTAMP} Thread {ADDRESS} Exception.+"
        r"|<meta name.+)"
    )


@dataclass(frozen=True, slots=True)
class ClassesRedefinedEvent(LogEvent):
    kind = EventKind.CLASSES_REDEFINED
    pattern = re.compile(
        rf"(?:Classes redefined \(\d+ events\):|Event: {TIMESTAMP} Thread {ADDRESS} redefined class.+"
        r"|No [Ee]vents)"
    )


@dataclass(frozen=True, slots=True)
class CodeCacheEvent(LogEvent):
    kind = EventKind.CODE_CACHE
    pattern = re.compile(
        r"(?:CodeCache:| bounds| compilation:|CodeHeap| full_count=|              stopped_count=| total_blobs).*"
    )


@dataclass(frozen=True, slots=True)
class LoggingEvent(LogEvent):
    kind = EventKind.LOGGING
    pattern = re.compile(r"(?:Logging:|Log output configuration:| #\d+: .+)")


@dataclass(frozen=True, slots=True)
class ExceptionCountsEvent(LogEvent):
    kind = EventKind.EXCEPTION_COUNTS
    pattern = re.compile(
        r"(?:OutOfMemory and StackOverflow Exception counts:|StackOverflowErrors|OutOfMemoryError).*"
    )

    @property
    def is_header(self) -> bool:
        return self.log_entry.startswith("OutOfMemory and StackOverflow Exception counts:")


_ELAPSED = r"\d{1,10}(?:\.\d{6})? seconds \((?P<elapsed>\d{1,4}d \d{1,2}h \d{1,2}m \d{1,2}s)\)"


@dataclass(frozen=True, slots=True)
class ElapsedTimeEvent(LogEvent):
    kind = EventKind.ELAPSED_TIME
    pattern = re.compile(rf"elapsed time: {_ELAPSED}")

    elapsed: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> ElapsedTimeEvent:
        return cls(log_entry=match.string, elapsed=match.group("elapsed"))


@dataclass(frozen=True, slots=True)
class TimeEvent(LogEvent):
    kind = EventKind.TIME
    pattern = re.compile(r"time: (?P<time>.+)")

    time: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> TimeEvent:
        return cls(log_entry=match.string, time=match.group("time").strip())


@dataclass(frozen=True, slots=True)
class TimeElapsedTimeEvent(LogEvent):
    """Older single-line form: ``Time: <date> elapsed time: N seconds (0d 1h 0m 5s)``."""

    kind = EventKind.TIME_ELAPSED_TIME
    pattern = re.compile(rf"Time: (?P<time>.+) elapsed time: {_ELAPSED}")

    time: str = ""
    elapsed: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> TimeElapsedTimeEvent:
        return cls(
            log_entry=match.string,
            time=match.group("time").strip(),
            elapsed=match.group("elapsed"),
        )


@dataclass(frozen=True, slots=True)
class TimezoneEvent(LogEvent):
    kind = EventKind.TIMEZONE
    pattern = re.compile(r"timezone: (?P<timezone>.+)")

    timezone: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> TimezoneEvent:
        return cls(log_entry=match.string, timezone=match.group("timezone").strip())


@dataclass(frozen=True, slots=True)
class BitsEvent(LogEvent):
    kind = EventKind.BITS
    pattern = re.compile(
        r"(?:(?:Marking Bits(?: \(Prev, Next\))?|Mod Union Table):|(?: (?:Begin|End|Next|Prev))? Bits:).*"
        r"|(?:Narrow klass (?:base|shift)|Compressed class space size).+"
    )


@dataclass(frozen=True, slots=True)
class CardTableEvent(LogEvent):
    kind = EventKind.CARD_TABLE
    pattern = re.compile(r"Card table byte_map: .+")


@dataclass(frozen=True, slots=True)
class SignalHandlersEvent(LogEvent):
    kind = EventKind.SIGNAL_HANDLERS
    pattern = re.compile(
        r"(?:Signal Handlers:|[ ]{0,5}(?:\*\*\* Expected: |\*\*\* Handler was modified!|SIG39|SIG40"
        r"|SIGSEGV|SIGBUS|SIGFPE|SIGPIPE|SIGXFSZ|SIGILL|SIGUSR1|SIGUSR2|SIGHUP|SIGINT|SIGTERM"
        r"|SIGTRAP|SIGQUIT)).*"
    )


@dataclass(frozen=True, slots=True)
class EnvironmentVariablesEvent(LogEvent):
    kind = EventKind.ENVIRONMENT_VARIABLES
    pattern = re.compile(
        r"(?:Environment Variables:|(?:ARCH|CLASSPATH|DISPLAY|DYLD_LIBRARY_PATH|_JAVA_OPTIONS"
        r"|(?:JAVA|JRE)_HOME|HOSTTYPE|LANG|LD_LIBRARY_PATH|LD_PRELOAD|MACHTYPE|OS=|OSTYPE|PATH"
        r"|PROCESSOR_IDENTIFIER|SHELL|TZ|USERNAME).*)"
    )
