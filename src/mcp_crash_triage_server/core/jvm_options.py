"""JVM command line options recorded in the ``jvm_args`` line.

Only the options the crash analysis reads are recognized; everything else is
kept in ``undefined`` so it can still be reported.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import GarbageCollector
from .regex import OPTION_SIZE_BYTES
from .units import option_size_bytes

# Options split on a space followed by a dash, never at the very start.
_SPLIT = re.compile(r"(?<!^)(?= -)")

_BYTE_VALUE = re.compile(rf"-[a-zA-Z:.]+=?(?P<size>{OPTION_SIZE_BYTES})")
_NUMBER_VALUE = re.compile(r".+=(?P<number>\d{1,10})")


def _flag(name: str) -> str:
    return rf"-XX:[\-+]{name}"


def _size(name: str) -> str:
    return rf"-XX:{name}={OPTION_SIZE_BYTES}"


# name -> pattern, checked in order. The first full match claims the option.
_SINGLE_OPTIONS: tuple[tuple[str, str], ...] = (
    ("jpda_socket_transport", r"-agentlib:jdwp=transport=dt_socket.+"),
    ("cms_incremental_mode", _flag("CMSIncrementalMode")),
    ("compressed_class_space_size", _size("CompressedClassSpaceSize")),
    ("disable_explicit_gc", _flag("DisableExplicitGC")),
    ("explicit_gc_invokes_concurrent", _flag("ExplicitGCInvokesConcurrent")),
    ("g1_summarize_rset_stats", _flag("G1SummarizeRSetStats")),
    ("g1_summarize_rset_stats_period", r"-XX:G1SummarizeRSetStatsPeriod=\d{1,10}"),
    ("heap_dump_on_out_of_memory_error", _flag("HeapDumpOnOutOfMemoryError")),
    ("heap_dump_path", r"-XX:HeapDumpPath=\S+"),
    ("initial_heap_size", rf"-X(?:ms|X:InitialHeapSize=){OPTION_SIZE_BYTES}"),
    ("large_page_size_in_bytes", _size("LargePageSizeInBytes")),
    ("log_gc", r"-Xloggc:.+"),
    ("management_server", _flag("ManagementServer")),
    ("max_direct_memory_size", _size("MaxDirectMemorySize")),
    ("max_heap_size", rf"-X(?:mx|X:MaxHeapSize=){OPTION_SIZE_BYTES}"),
    ("max_metaspace_size", _size("MaxMetaspaceSize")),
    ("max_perm_size", _size("MaxPermSize")),
    ("metaspace_size", _size("MetaspaceSize")),
    ("perf_disable_shared_mem", _flag("PerfDisableSharedMem")),
    ("print_gc_details", _flag("PrintGCDetails")),
    ("reserved_code_cache_size", _size("ReservedCodeCacheSize")),
    ("server", r"-server"),
    ("thread_stack_size", rf"-X?(?:ss|X:ThreadStackSize=){OPTION_SIZE_BYTES}"),
    ("use_biased_locking", _flag("UseBiasedLocking")),
    ("use_compressed_class_pointers", _flag("UseCompressedClassPointers")),
    ("use_compressed_oops", _flag("UseCompressedOops")),
    ("use_conc_mark_sweep_gc", _flag("UseConcMarkSweepGC")),
    ("use_g1_gc", _flag("UseG1GC")),
    ("use_gc_log_file_rotation", _flag("UseGCLogFileRotation")),
    ("use_par_new_gc", _flag("UseParNewGC")),
    ("use_parallel_gc", _flag("UseParallelGC")),
    ("use_parallel_old_gc", _flag("UseParallelOldGC")),
    ("use_perf_data", _flag("UsePerfData")),
    ("use_serial_gc", _flag("UseSerialGC")),
    ("use_shenandoah_gc", _flag("UseShenandoahGC")),
    ("verbose_class", r"-verbose:class"),
    ("verify", r"-Xverify(?::(?:all|none|remote))?"),
)

_MULTI_OPTIONS: tuple[tuple[str, str], ...] = (
    ("agentpath", r"-agentpath:.+"),
    ("javaagent", r"-javaagent:.+"),
    ("log", r"-Xlog:.+"),
    ("system_properties", r"-D.+"),
)

_SINGLE = tuple((name, re.compile(p)) for name, p in _SINGLE_OPTIONS)
_MULTI = tuple((name, re.compile(p)) for name, p in _MULTI_OPTIONS)

OPTION_NAMES = frozenset(name for name, _ in _SINGLE_OPTIONS)


def is_option_enabled(option: str | None) -> bool:
    """True for an explicitly enabled boolean option (``-XX:+Name``)."""
    return option is not None and option.startswith("-XX:+")


def is_option_disabled(option: str | None) -> bool:
    """True for an explicitly disabled boolean option (``-XX:-Name``)."""
    return option is not None and option.startswith("-XX:-")


def byte_option_value(option: str | None) -> str | None:
    """The size part of a byte option: ``-Xss128k`` -> ``128k``."""
    if option is None:
        return None
    m = _BYTE_VALUE.fullmatch(option)
    return m.group("size") if m else None


def byte_option_bytes(option: str | None) -> int | None:
    """A byte option's value in bytes, or None when absent or unparseable."""
    return option_size_bytes(byte_option_value(option))


def number_option_value(option: str | None) -> int | None:
    """The value of a numeric option: ``-XX:G1SummarizeRSetStatsPeriod=1`` -> 1."""
    if option is None:
        return None
    m = _NUMBER_VALUE.fullmatch(option)
    return int(m.group("number")) if m else None


def split_jvm_args(jvm_args: str) -> list[str]:
    return [option.strip() for option in _SPLIT.split(jvm_args) if option.strip()]


@dataclass(slots=True)
class JvmOptions:
    """Recognized options keyed by name; later occurrences override earlier ones."""

    options: dict[str, str] = field(default_factory=dict)
    agentpath: list[str] = field(default_factory=list)
    javaagent: list[str] = field(default_factory=list)
    log: list[str] = field(default_factory=list)
    system_properties: list[str] = field(default_factory=list)
    undefined: list[str] = field(default_factory=list)

    @classmethod
    def parse(cls, jvm_args: str) -> JvmOptions:
        parsed = cls()
        for option in split_jvm_args(jvm_args):
            parsed._add(option)
        return parsed

    def _add(self, option: str) -> None:
        for name, pattern in _SINGLE:
            if pattern.fullmatch(option):
                self.options[name] = option
                return
        for name, pattern in _MULTI:
            if pattern.fullmatch(option):
                getattr(self, name).append(option)
                return
        self.undefined.append(option)

    def get(self, name: str) -> str | None:
        """The option recorded under ``name`` (e.g. ``"max_heap_size"``), if present."""
        if name not in OPTION_NAMES:
            raise ValueError(f"Unknown JVM option name: {name}")
        return self.options.get(name)

    def is_enabled(self, name: str) -> bool:
        return is_option_enabled(self.get(name))

    def is_disabled(self, name: str) -> bool:
        return is_option_disabled(self.get(name))

    def size_bytes(self, name: str) -> int | None:
        return byte_option_bytes(self.get(name))

    def number(self, name: str) -> int | None:
        return number_option_value(self.get(name))

    @property
    def is_jmx_enabled(self) -> bool:
        return self.is_enabled("management_server") or "-Dcom.sun.management.jmxremote" in self.system_properties

    @property
    def garbage_collectors(self) -> list[GarbageCollector]:
        """Collectors selected by the ``-XX:+Use*GC`` options."""
        collectors: list[GarbageCollector] = []
        if self.is_enabled("use_serial_gc"):
            collectors += [GarbageCollector.SERIAL, GarbageCollector.SERIAL_OLD]
        if self.is_enabled("use_parallel_old_gc"):
            collectors += [GarbageCollector.PARALLEL_SCAVENGE, GarbageCollector.PARALLEL_OLD]
        elif self.is_enabled("use_parallel_gc"):
            collectors.append(GarbageCollector.PARALLEL_SCAVENGE)
            if self.is_disabled("use_parallel_old_gc"):
                collectors.append(GarbageCollector.SERIAL_OLD)
            else:
                collectors.append(GarbageCollector.PARALLEL_OLD)
        if self.is_enabled("use_conc_mark_sweep_gc"):
            collectors += [GarbageCollector.PAR_NEW, GarbageCollector.CMS]
        elif self.is_enabled("use_par_new_gc"):
            collectors += [GarbageCollector.PAR_NEW, GarbageCollector.SERIAL_OLD]
        if self.is_enabled("use_g1_gc"):
            collectors.append(GarbageCollector.G1)
        if self.is_enabled("use_shenandoah_gc"):
            collectors.append(GarbageCollector.SHENANDOAH)
        return collectors
