"""Crash model assembled from the events of one fatal error log.

``FatalErrorLog.absorb`` is called once per line, in file order. Everything
else is derived on demand from the stored events. Sizes are reported in
megabytes unless a name says otherwise; ``None`` means "not in the log".
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime
from decimal import ROUND_HALF_EVEN, Decimal
from typing import TypeVar

from .events import (
    CommandLineEvent,
    CompilationEvent,
    ContainerInfoEvent,
    CpuInfoEvent,
    CurrentCompileTaskEvent,
    CurrentThreadEvent,
    DeoptimizationEvent,
    DynamicLibraryEvent,
    ElapsedTimeEvent,
    EnvironmentVariablesEvent,
    ExceptionCountsEvent,
    GlobalFlagsEvent,
    HeaderEvent,
    HeapAddressEvent,
    HeapEvent,
    LogEvent,
    MeminfoEvent,
    MemoryEvent,
    NativeMemoryTrackingEvent,
    OsEvent,
    RlimitEvent,
    SigInfoEvent,
    StackEvent,
    ThreadEvent,
    TimeElapsedTimeEvent,
    TimeEvent,
    TimezoneEvent,
    UnameEvent,
    UnknownEvent,
    VmArgumentsEvent,
    VmEvent,
    VmInfoEvent,
    VmStateEvent,
)
from .events.memory import G1, METASPACE, OLD_GEN, SHENANDOAH, YOUNG_GEN
from .jvm_options import JvmOptions
from .models import (
    LTS_SPECIFICATIONS,
    Application,
    Arch,
    BuiltBy,
    CpuArch,
    Device,
    GarbageCollector,
    JavaSpecification,
    JavaVendor,
    OsType,
    OsVendor,
    OsVersion,
    SignalCode,
    SignalNumber,
)
from .regex import (
    JBOSS_EAP6_JAR,
    JBOSS_EAP7_JAR,
    RH_RPM_OPENJDK8_LIBJVM_PATH,
    RH_RPM_OPENJDK11_LIBJVM_PATH,
    TOMCAT_JAR,
)
from .releases import ReleaseCatalog, default_catalog
from .units import convert_size, parse_size

LOGGER = logging.getLogger(__name__)

_E = TypeVar("_E", OsEvent, StackEvent, MemoryEvent)

UNIDENTIFIED_LOG_LINES_LIMIT = 1000

# Heap max at or above this disables compressed object pointers by default.
COMPRESSED_OOPS_HEAP_LIMIT_MB = 32 * 1024
COMPRESSED_CLASS_SPACE_DEFAULT_MB = 1024
RESERVED_CODE_CACHE_DEFAULT_MB = 420
THREAD_STACK_SIZE_DEFAULT_KB = 1024

_APPLICATION_JARS = (
    (re.compile(JBOSS_EAP6_JAR), Application.JBOSS_EAP6),
    (re.compile(JBOSS_EAP7_JAR), Application.JBOSS_EAP7),
    (re.compile(TOMCAT_JAR), Application.TOMCAT),
)
_RPM_LIBJVM_PATHS = (re.compile(RH_RPM_OPENJDK8_LIBJVM_PATH), re.compile(RH_RPM_OPENJDK11_LIBJVM_PATH))

_HEAP_HISTORY_HEADER = re.compile(r"GC Heap History \(\d+ events\):")
_THREAD_STACK_OPTION = re.compile(r"-X?(?P<flag>ss|X:ThreadStackSize=)(?P<value>\d+)(?P<units>[bBkKmMgG])?")
_FRAME_SECTION_HEADER = re.compile(r"(?:Stack|(?:Java|Native) frames):.+")
_TOP_FRAME = re.compile(r"[ACjJvV][ ]{1,2}.+")
_TOP_COMPILED_FRAME = re.compile(r"J[ ]{1,2}.+")
_TOP_JAVA_FRAME = re.compile(r"[jJ][ ]{1,2}.+")
_VM_FRAME_WITH_SYMBOL = re.compile(r"V  \[.+\].+")
_VM_FRAME_DO_PRIVILEGED = re.compile(r"V  \[.+\]  JVM_DoPrivileged.+")
_JNA_NATIVE_FRAME = re.compile(r"C[ ]{1,2}\[jna.+")
_JNA_JAVA_FRAME = re.compile(r"j[ ]{1,2}com\.sun\.jna\..+")
_CGROUP_MEMORY_LIMIT = re.compile(r"memory_limit_in_bytes: \d+")
_OOME_JAVA_HEAP = re.compile(r"OutOfMemoryError java_heap_errors=\d+")
_STACK_OVERFLOW = re.compile(r"StackOverflowErrors=\d+")
_POWER9 = re.compile(r".+POWER9.+")

_BUILT_BY_VENDOR = {
    BuiltBy.JAVA_RE: JavaVendor.ORACLE,
    BuiltBy.JENKINS: JavaVendor.ADOPTOPENJDK,
    BuiltBy.ZULU_RE: JavaVendor.AZUL,
}
_RED_HAT_BUILDERS = frozenset({BuiltBy.BUILD, BuiltBy.EMPTY, BuiltBy.MOCKBUILD})


def _mb(size_bytes: int) -> int:
    return convert_size(size_bytes, "b", "m")


@dataclass(slots=True)
class FatalErrorLog:
    """Mutable aggregate of one hs_err log; read-only once the last line is absorbed."""

    catalog: ReleaseCatalog | None = None

    # Single-valued sections; the first occurrence wins.
    command_line_event: CommandLineEvent | None = None
    current_thread_event: CurrentThreadEvent | None = None
    elapsed_time_event: ElapsedTimeEvent | None = None
    rlimit_event: RlimitEvent | None = None
    sig_info_event: SigInfoEvent | None = None
    time_event: TimeEvent | None = None
    time_elapsed_time_event: TimeElapsedTimeEvent | None = None
    timezone_event: TimezoneEvent | None = None
    uname_event: UnameEvent | None = None
    vm_info_event: VmInfoEvent | None = None
    vm_state_event: VmStateEvent | None = None
    jvm_options: JvmOptions | None = None

    compilation_events: list[CompilationEvent] = field(default_factory=list)
    container_info_events: list[ContainerInfoEvent] = field(default_factory=list)
    cpu_info_events: list[CpuInfoEvent] = field(default_factory=list)
    current_compile_task_events: list[CurrentCompileTaskEvent] = field(default_factory=list)
    deoptimization_events: list[DeoptimizationEvent] = field(default_factory=list)
    dynamic_library_events: list[DynamicLibraryEvent] = field(default_factory=list)
    environment_variables_events: list[EnvironmentVariablesEvent] = field(default_factory=list)
    exception_counts_events: list[ExceptionCountsEvent] = field(default_factory=list)
    global_flags_events: list[GlobalFlagsEvent] = field(default_factory=list)
    header_events: list[HeaderEvent] = field(default_factory=list)
    heap_address_events: list[HeapAddressEvent] = field(default_factory=list)
    heap_events: list[HeapEvent] = field(default_factory=list)
    meminfo_events: list[MeminfoEvent] = field(default_factory=list)
    memory_events: list[MemoryEvent] = field(default_factory=list)
    native_memory_tracking_events: list[NativeMemoryTrackingEvent] = field(default_factory=list)
    os_events: list[OsEvent] = field(default_factory=list)
    stack_events: list[StackEvent] = field(default_factory=list)
    thread_events: list[ThreadEvent] = field(default_factory=list)
    vm_arguments_events: list[VmArgumentsEvent] = field(default_factory=list)
    vm_events: list[VmEvent] = field(default_factory=list)
    unidentified_log_lines: list[str] = field(default_factory=list)

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    def absorb(self, event: LogEvent) -> None:
        """Fold one classified line into the model. Never raises on content."""
        match event:
            case CommandLineEvent():
                self._set_once("command_line_event", event)
            case CurrentThreadEvent():
                self._set_once("current_thread_event", event)
            case ElapsedTimeEvent():
                self._set_once("elapsed_time_event", event)
            case RlimitEvent():
                self._set_once("rlimit_event", event)
            case SigInfoEvent():
                self._set_once("sig_info_event", event)
            case TimeEvent():
                self._set_once("time_event", event)
            case TimeElapsedTimeEvent():
                self._set_once("time_elapsed_time_event", event)
            case TimezoneEvent():
                self._set_once("timezone_event", event)
            case UnameEvent():
                self._set_once("uname_event", event)
            case VmInfoEvent():
                self._set_once("vm_info_event", event)
            case VmStateEvent():
                self._set_once("vm_state_event", event)
            case VmArgumentsEvent():
                self.vm_arguments_events.append(event)
                if event.is_jvm_args and self.jvm_options is None:
                    self.jvm_options = JvmOptions.parse(event.value)
            case CompilationEvent():
                self.compilation_events.append(event)
            case ContainerInfoEvent():
                self.container_info_events.append(event)
            case CpuInfoEvent():
                self.cpu_info_events.append(event)
            case CurrentCompileTaskEvent():
                self.current_compile_task_events.append(event)
            case DeoptimizationEvent():
                self.deoptimization_events.append(event)
            case DynamicLibraryEvent():
                self.dynamic_library_events.append(event)
            case EnvironmentVariablesEvent():
                self.environment_variables_events.append(event)
            case ExceptionCountsEvent():
                self.exception_counts_events.append(event)
            case GlobalFlagsEvent():
                self.global_flags_events.append(event)
            case HeaderEvent():
                self.header_events.append(event)
            case HeapAddressEvent():
                self.heap_address_events.append(event)
            case HeapEvent():
                self.heap_events.append(event)
            case MeminfoEvent():
                self.meminfo_events.append(event)
            case MemoryEvent():
                self.memory_events.append(event)
            case NativeMemoryTrackingEvent():
                self.native_memory_tracking_events.append(event)
            case OsEvent():
                self.os_events.append(event)
            case StackEvent():
                self.stack_events.append(event)
            case ThreadEvent():
                self.thread_events.append(event)
            case VmEvent():
                self.vm_events.append(event)
            case UnknownEvent():
                self._add_unidentified(event.log_entry)
            case _:
                LOGGER.debug("No model field for %s line: %s", event.kind.value, event.log_entry)

    def _set_once(self, name: str, event: LogEvent) -> None:
        current = getattr(self, name)
        if current is None:
            setattr(self, name, event)
        elif current != event:
            LOGGER.warning("Ignoring duplicate %s line: %s", event.kind.value, event.log_entry)

    def _add_unidentified(self, line: str) -> None:
        if len(self.unidentified_log_lines) < UNIDENTIFIED_LOG_LINES_LIMIT:
            self.unidentified_log_lines.append(line)
            if len(self.unidentified_log_lines) == UNIDENTIFIED_LOG_LINES_LIMIT:
                LOGGER.debug("Unidentified line limit (%d) reached", UNIDENTIFIED_LOG_LINES_LIMIT)

    @property
    def release_catalog(self) -> ReleaseCatalog:
        return self.catalog if self.catalog is not None else default_catalog()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _global_flag(self, name: str) -> str | None:
        for event in self.global_flags_events:
            if event.name == name:
                return event.value
        return None

    def _global_flag_int(self, name: str) -> int | None:
        value = self._global_flag(name)
        if value is None or not value.isdigit():
            return None
        return int(value)

    def _option_mb(self, name: str) -> int | None:
        if self.jvm_options is None:
            return None
        size = self.jvm_options.size_bytes(name)
        return _mb(size) if size is not None else None

    def _heap_at_crash(self) -> Iterator[str]:
        """Heap lines printed for the crash itself, not the GC history that follows."""
        at_crash = False
        for event in self.heap_events:
            if event.is_header:
                at_crash = True
            elif _HEAP_HISTORY_HEADER.fullmatch(event.log_entry):
                at_crash = False
            elif at_crash:
                yield event.log_entry

    def _metaspace_at_crash(self) -> re.Match[str] | None:
        for entry in self._heap_at_crash():
            m = METASPACE.match(entry)
            if m:
                return m
        return None

    @staticmethod
    def _first_header(events: list[_E]) -> _E | None:
        return next((event for event in events if event.is_header), None)

    # ------------------------------------------------------------------
    # JVM and platform identity
    # ------------------------------------------------------------------

    @property
    def application(self) -> Application:
        for event in self.dynamic_library_events:
            for pattern, application in _APPLICATION_JARS:
                if pattern.fullmatch(event.log_entry):
                    return application
        tomcat = _APPLICATION_JARS[2][0]
        for event in self.vm_arguments_events:
            if event.is_java_command and tomcat.fullmatch(event.log_entry):
                return Application.TOMCAT
        return Application.UNKNOWN

    @property
    def arch(self) -> Arch:
        if self.uname_event is not None and self.uname_event.arch is not Arch.UNKNOWN:
            return self.uname_event.arch
        if self.vm_info_event is not None:
            return self.vm_info_event.arch
        for event in self.header_events:
            if event.is_java_vm and "solaris-sparc" in event.log_entry:
                return Arch.SPARC
        return Arch.UNKNOWN

    @property
    def is_64bit(self) -> bool:
        return self.arch is not Arch.X86

    @property
    def cpu_arch(self) -> CpuArch:
        if any(_POWER9.fullmatch(e.log_entry) for e in self.cpu_info_events):
            return CpuArch.POWER9
        return CpuArch.UNKNOWN

    @property
    def cpus(self) -> int | None:
        """Logical cpu count from the cpu header."""
        cpus = None
        for event in self.cpu_info_events:
            if event.is_header and event.cpus is not None:
                cpus = event.cpus
        return cpus

    @property
    def java_specification(self) -> JavaSpecification:
        if self.vm_info_event is None:
            return JavaSpecification.UNKNOWN
        return self.vm_info_event.java_specification

    @property
    def is_jdk_lts(self) -> bool:
        return self.java_specification in LTS_SPECIFICATIONS

    @property
    def jdk_build_date(self) -> datetime | None:
        return self.vm_info_event.build_date if self.vm_info_event else None

    @property
    def jdk_release_string(self) -> str:
        if self.vm_info_event is not None:
            return self.vm_info_event.jdk_release_string
        for event in self.header_events:
            if event.is_jre_version and event.jre_release_string:
                return event.jre_release_string
        return "UNKNOWN"

    @property
    def java_vendor(self) -> JavaVendor:
        if self.is_rh_build_openjdk:
            return JavaVendor.RED_HAT
        if self.vm_info_event is None:
            return JavaVendor.UNKNOWN
        return _BUILT_BY_VENDOR.get(self.vm_info_event.built_by, JavaVendor.UNKNOWN)

    @property
    def is_red_hat_build_string(self) -> bool:
        return self.vm_info_event is not None and self.vm_info_event.built_by in _RED_HAT_BUILDERS

    @property
    def is_adopt_openjdk_build_string(self) -> bool:
        return self.vm_info_event is not None and self.vm_info_event.built_by is BuiltBy.JENKINS

    @property
    def is_truncated(self) -> bool:
        """A log without vm_info was cut short before the system section."""
        return self.vm_info_event is None

    @property
    def jvm_args(self) -> str | None:
        for event in self.vm_arguments_events:
            if event.is_jvm_args:
                return event.value
        return None

    @property
    def java_command(self) -> str | None:
        for event in self.vm_arguments_events:
            if event.is_java_command:
                return event.value
        return None

    @property
    def os_string(self) -> str:
        header = self._first_header(self.os_events)
        if header is None or not header.os_string:
            return "UNKNOWN"
        return header.os_string

    @property
    def os_type(self) -> OsType:
        header = self._first_header(self.os_events)
        if header is not None and header.os_type is not OsType.UNKNOWN:
            return header.os_type
        if self.uname_event is not None and self.uname_event.os_type is not OsType.UNKNOWN:
            return self.uname_event.os_type
        if self.vm_info_event is not None:
            return self.vm_info_event.os_type
        return OsType.UNKNOWN

    @property
    def os_vendor(self) -> OsVendor:
        header = self._first_header(self.os_events)
        return header.os_vendor if header else OsVendor.UNKNOWN

    @property
    def os_version(self) -> OsVersion:
        if self.os_events:
            header = self._first_header(self.os_events)
            return header.os_version if header else OsVersion.UNKNOWN
        if self.uname_event is not None:
            return self.uname_event.os_version
        return OsVersion.UNKNOWN

    @property
    def is_rhel(self) -> bool:
        return self.os_string.startswith("Red Hat Enterprise Linux")

    @property
    def is_windows(self) -> bool:
        return self.os_string.startswith("Windows")

    @property
    def rpm_directory(self) -> str | None:
        """Red Hat rpm install directory taken from the libjvm path (Linux only)."""
        if self.os_type is not OsType.LINUX:
            return None
        for event in self.dynamic_library_events:
            if event.file_path is None:
                continue
            for pattern in _RPM_LIBJVM_PATHS:
                m = pattern.fullmatch(event.file_path)
                if m:
                    return m.group("rpm_dir")
        return None

    @property
    def storage_device(self) -> Device:
        if self.os_type is not OsType.LINUX:
            return Device.UNKNOWN
        for event in self.dynamic_library_events:
            if event.file_path is not None and event.file_path.endswith("libjvm.so"):
                return event.device
        return Device.UNKNOWN

    @property
    def is_container(self) -> bool:
        return bool(self.container_info_events) or self.jvm_swap == 0

    @property
    def have_cgroup_memory_limit(self) -> bool:
        return any(_CGROUP_MEMORY_LIMIT.fullmatch(e.log_entry) for e in self.container_info_events)

    # ------------------------------------------------------------------
    # Red Hat build provenance
    # ------------------------------------------------------------------

    def _rpm_catalog(self) -> str | None:
        return ReleaseCatalog.select_rpm_catalog(self.os_version, self.arch, self.java_specification)

    @property
    def is_rh_rpm_install(self) -> bool:
        """JDK installed from a known Red Hat rpm whose build date matches."""
        rpm_directory = self.rpm_directory
        if rpm_directory is None:
            return False
        release = self.release_catalog.lookup(self._rpm_catalog(), rpm_directory)
        return release is not None and release.build_date == self.jdk_build_date

    @property
    def is_rh_rpm(self) -> bool:
        """JDK matching a Red Hat rpm release, wherever it was installed from."""
        build_date = self.jdk_build_date
        release_string = self.jdk_release_string
        return any(
            release.version == release_string and release.build_date == build_date
            for release in self.release_catalog.releases(self._rpm_catalog()).values()
        )

    @property
    def is_rh_linux_zip_install(self) -> bool:
        if self.os_type is not OsType.LINUX or self.arch is not Arch.X86_64:
            return False
        name = ReleaseCatalog.select_zip_catalog(OsType.LINUX, self.java_specification)
        release = self.release_catalog.lookup(name, self.jdk_release_string)
        return release is not None and release.build_date == self.jdk_build_date

    @property
    def is_rh_windows_zip_install(self) -> bool:
        if not self.is_windows or self.arch is not Arch.X86_64:
            return False
        name = ReleaseCatalog.select_zip_catalog(OsType.WINDOWS, self.java_specification)
        return self.release_catalog.lookup(name, self.jdk_release_string) is not None

    @property
    def is_rh_build_openjdk(self) -> bool:
        return (
            self.is_rh_rpm_install
            or self.is_rh_linux_zip_install
            or self.is_rh_windows_zip_install
            or self.is_rh_rpm
        )

    # ------------------------------------------------------------------
    # Crash description
    # ------------------------------------------------------------------

    @property
    def crash_time(self) -> str:
        if self.time_event is not None:
            if self.timezone_event is not None:
                return f"{self.time_event.time} ({self.timezone_event.timezone})"
            return self.time_event.time
        if self.time_elapsed_time_event is not None:
            return self.time_elapsed_time_event.time
        return ""

    @property
    def elapsed_time(self) -> str | None:
        if self.elapsed_time_event is not None:
            return self.elapsed_time_event.elapsed
        if self.time_elapsed_time_event is not None:
            return self.time_elapsed_time_event.elapsed
        return None

    @property
    def current_thread(self) -> str | None:
        return self.current_thread_event.name if self.current_thread_event else None

    @property
    def vm_state(self) -> str | None:
        return self.vm_state_event.state if self.vm_state_event else None

    @property
    def error(self) -> str:
        """The header lines describing the crash, newline separated."""
        return "\n".join(e.log_entry for e in self.header_events if e.describes_error)

    def is_error(self, regex: str) -> bool:
        return re.search(regex, self.error) is not None

    @property
    def signal_number(self) -> SignalNumber:
        return self.sig_info_event.signal_number if self.sig_info_event else SignalNumber.UNKNOWN

    @property
    def signal_code(self) -> SignalCode:
        return self.sig_info_event.signal_code if self.sig_info_event else SignalCode.UNKNOWN

    @property
    def have_oome_java_heap(self) -> bool:
        return any(
            not e.is_header and _OOME_JAVA_HEAP.fullmatch(e.log_entry) for e in self.exception_counts_events
        )

    @property
    def have_stack_overflow_error(self) -> bool:
        return any(
            not e.is_header and _STACK_OVERFLOW.fullmatch(e.log_entry) for e in self.exception_counts_events
        )

    # ------------------------------------------------------------------
    # Stack
    # ------------------------------------------------------------------

    @property
    def stack_frames(self) -> list[str]:
        """Stack lines other than the bounds and frame-section headers."""
        return [e.log_entry for e in self.stack_events if not _FRAME_SECTION_HEADER.fullmatch(e.log_entry)]

    def stack_frame(self, i: int) -> str | None:
        """The i-th stack line (1-based), skipping section headers."""
        frames = self.stack_frames
        if 1 <= i <= len(frames):
            return frames[i - 1]
        return None

    def _first_stack_entry(self, pattern: re.Pattern[str]) -> str | None:
        for event in self.stack_events:
            if pattern.fullmatch(event.log_entry):
                return event.log_entry
        return None

    @property
    def stack_frame_top(self) -> str | None:
        return self._first_stack_entry(_TOP_FRAME)

    @property
    def stack_frame_top_compiled_java_code(self) -> str | None:
        return self._first_stack_entry(_TOP_COMPILED_FRAME)

    @property
    def stack_frame_top_java(self) -> str | None:
        return self._first_stack_entry(_TOP_JAVA_FRAME)

    @property
    def stack_free_space(self) -> int | None:
        """Free stack space at the crash, in kilobytes."""
        header = self._first_header(self.stack_events)
        return header.free_space if header else None

    def is_in_stack(self, regex: str) -> bool:
        pattern = re.compile(rf".+{regex}.+")
        return any(pattern.fullmatch(e.log_entry) for e in self.stack_events)

    @property
    def have_frames_in_stack(self) -> bool:
        return any(e.is_frame for e in self.stack_events)

    @property
    def have_vm_frame_in_header(self) -> bool:
        return any(e.is_vm_frame for e in self.header_events)

    @property
    def have_vm_frame_in_stack(self) -> bool:
        return any(e.is_vm_frame for e in self.stack_events)

    @property
    def have_vm_code_in_stack(self) -> bool:
        if len(self.stack_events) <= 2:
            return False
        return any(e.is_vm_frame or e.is_vm_generated_code_frame for e in self.stack_events)

    @property
    def have_jdk_debug_symbols(self) -> bool:
        problematic = next((e for e in self.header_events if e.is_problematic_frame), None)
        if problematic is not None and problematic.has_debug_symbols:
            return True
        return any(
            _VM_FRAME_WITH_SYMBOL.fullmatch(e.log_entry) and not _VM_FRAME_DO_PRIVILEGED.fullmatch(e.log_entry)
            for e in self.stack_events
            if e.is_vm_frame
        )

    @property
    def is_jna_crash(self) -> bool:
        first = self.stack_frame(1)
        second = self.stack_frame(2)
        return (
            first is not None
            and second is not None
            and _JNA_NATIVE_FRAME.fullmatch(first) is not None
            and _JNA_JAVA_FRAME.fullmatch(second) is not None
        )

    # ------------------------------------------------------------------
    # Threads
    # ------------------------------------------------------------------

    @property
    def java_thread_count(self) -> int:
        count = 0
        for event in self.thread_events:
            if event.is_other_threads_header:
                break
            if not event.is_java_threads_header:
                count += 1
        return count

    @property
    def thread_stack_size(self) -> int:
        """Thread stack size in kilobytes."""
        flag = self._global_flag_int("ThreadStackSize")
        if flag is not None:
            return flag
        option = self.jvm_options.get("thread_stack_size") if self.jvm_options else None
        m = _THREAD_STACK_OPTION.fullmatch(option) if option else None
        if m is None:
            return THREAD_STACK_SIZE_DEFAULT_KB
        units = m.group("units")
        if units is None:
            # -XX:ThreadStackSize is given in kilobytes, -Xss in bytes.
            units = "k" if m.group("flag") != "ss" else "b"
        return convert_size(int(m.group("value")), units, "k")

    @property
    def thread_stack_memory(self) -> int | None:
        count = self.java_thread_count
        if count <= 0:
            return None
        return convert_size(self.thread_stack_size * count, "k", "m")

    # ------------------------------------------------------------------
    # Java heap, metaspace and other JVM memory
    # ------------------------------------------------------------------

    @property
    def garbage_collectors(self) -> list[GarbageCollector]:
        collectors: list[GarbageCollector] = []

        def add(collector: GarbageCollector) -> None:
            if collector not in collectors:
                collectors.append(collector)

        for event in self.heap_events:
            entry = event.log_entry.lstrip(" ")
            if entry.startswith("Shenandoah"):
                add(GarbageCollector.SHENANDOAH)
                break
            if entry.startswith("garbage-first"):
                add(GarbageCollector.G1)
                break
            if entry.startswith("PSYoungGen"):
                add(GarbageCollector.PARALLEL_SCAVENGE)
            elif entry.startswith("ParOldGen"):
                add(GarbageCollector.PARALLEL_OLD)
            elif entry.startswith("par new"):
                add(GarbageCollector.PAR_NEW)
            elif entry.startswith("concurrent mark-sweep"):
                add(GarbageCollector.CMS)
            elif entry.startswith("def new"):
                add(GarbageCollector.SERIAL)
            elif entry.startswith(("PSOldGen", "tenured")):
                add(GarbageCollector.SERIAL_OLD)
        if not collectors and self.jvm_options is not None:
            collectors = self.jvm_options.garbage_collectors
        if not collectors:
            if self.java_specification is JavaSpecification.JDK11:
                collectors = [GarbageCollector.G1]
            elif self.java_specification is JavaSpecification.JDK8:
                collectors = [GarbageCollector.PARALLEL_SCAVENGE, GarbageCollector.PARALLEL_OLD]
        return collectors or [GarbageCollector.UNKNOWN]

    @property
    def heap_allocation(self) -> int | None:
        if not self.heap_events:
            return None
        allocation = 0
        for entry in self._heap_at_crash():
            m = YOUNG_GEN.match(entry) or OLD_GEN.match(entry) or G1.match(entry)
            if m:
                allocation += parse_size(m.group("total"), "m")
                continue
            m = SHENANDOAH.match(entry)
            if m:
                allocation += parse_size(m.group("committed"), "m")
        return allocation

    @property
    def heap_used(self) -> int | None:
        if not self.heap_events:
            return None
        used = 0
        for entry in self._heap_at_crash():
            m = YOUNG_GEN.match(entry) or OLD_GEN.match(entry) or G1.match(entry) or SHENANDOAH.match(entry)
            if m:
                used += parse_size(m.group("used"), "m")
        return used

    @property
    def heap_max(self) -> int | None:
        flag = self._global_flag_int("MaxHeapSize")
        if flag is not None:
            return _mb(flag)
        option = self._option_mb("max_heap_size")
        if option is not None:
            return option
        physical = self.system_physical_memory
        if physical is not None and physical > 0:
            # JVM default: a quarter of physical memory.
            quarter = (Decimal(physical) / 4).quantize(Decimal(1), rounding=ROUND_HALF_EVEN)
            return int(quarter)
        allocation = self.heap_allocation
        if allocation is not None and allocation > 0:
            return allocation
        return None

    @property
    def metaspace_allocation(self) -> int | None:
        m = self._metaspace_at_crash()
        return parse_size(m.group("committed"), "m") if m else None

    @property
    def metaspace_used(self) -> int | None:
        m = self._metaspace_at_crash()
        return parse_size(m.group("used"), "m") if m else None

    @property
    def metaspace_max(self) -> int | None:
        option = self._option_mb("max_metaspace_size")
        if option is not None:
            return option
        m = self._metaspace_at_crash()
        return parse_size(m.group("reserved"), "m") if m else None

    @property
    def compressed_class_space_size(self) -> int:
        heap_max = self.heap_max
        using_compressed_pointers = heap_max is None or heap_max < COMPRESSED_OOPS_HEAP_LIMIT_MB
        options = self.jvm_options
        if options is not None:
            using_compressed_pointers = not (
                options.is_disabled("use_compressed_oops") or options.is_disabled("use_compressed_class_pointers")
            )
        elif self.global_flags_events:
            using_compressed_pointers = not (
                self._global_flag("UseCompressedOops") == "false"
                or self._global_flag("UseCompressedClassPointers") == "false"
            )
        if not using_compressed_pointers:
            return 0
        flag = self._global_flag_int("CompressedClassSpaceSize")
        if flag is not None:
            return _mb(flag)
        option = self._option_mb("compressed_class_space_size")
        if option is not None:
            return option
        return COMPRESSED_CLASS_SPACE_DEFAULT_MB

    @property
    def reserved_code_cache_size(self) -> int:
        flag = self._global_flag_int("ReservedCodeCacheSize")
        if flag is not None:
            return _mb(flag)
        option = self._option_mb("reserved_code_cache_size")
        return option if option is not None else RESERVED_CODE_CACHE_DEFAULT_MB

    @property
    def direct_memory_max(self) -> int:
        flag = self._global_flag_int("MaxDirectMemorySize")
        if flag is not None:
            return _mb(flag)
        option = self._option_mb("max_direct_memory_size")
        return option if option is not None else 0

    @property
    def jvm_memory_max(self) -> int:
        """Upper bound of JVM memory: heap, metaspace, thread stacks, code cache and direct memory."""
        total = 0
        for size in (self.heap_max, self.metaspace_max, self.thread_stack_memory):
            if size is not None and size > 0:
                total += size
        return total + self.reserved_code_cache_size + self.direct_memory_max

    # ------------------------------------------------------------------
    # Physical memory
    # ------------------------------------------------------------------

    def _memory_header(self) -> MemoryEvent | None:
        return self._first_header(self.memory_events)

    def _jvm_memory(self, attr: str) -> int | None:
        header = self._memory_header()
        value = getattr(header, attr) if header else None
        return _mb(value) if value is not None else None

    @property
    def jvm_physical_memory(self) -> int | None:
        return self._jvm_memory("physical")

    @property
    def jvm_physical_memory_free(self) -> int | None:
        return self._jvm_memory("physical_free")

    @property
    def jvm_swap(self) -> int | None:
        return self._jvm_memory("swap")

    @property
    def jvm_swap_free(self) -> int | None:
        return self._jvm_memory("swap_free")

    def _system_memory(self, meminfo_key: str, attr: str) -> int | None:
        if self.meminfo_events:
            for event in self.meminfo_events:
                if event.key == meminfo_key and event.kb is not None:
                    return convert_size(event.kb, "k", "m")
            return None
        return self._jvm_memory(attr)

    @property
    def system_physical_memory(self) -> int | None:
        return self._system_memory("MemTotal", "physical")

    @property
    def system_physical_memory_free(self) -> int | None:
        return self._system_memory("MemFree", "physical_free")

    @property
    def system_swap(self) -> int | None:
        return self._system_memory("SwapTotal", "swap")

    @property
    def system_swap_free(self) -> int | None:
        return self._system_memory("SwapFree", "swap_free")
