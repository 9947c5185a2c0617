"""Rule-based crash analysis.

``analyze`` evaluates a fixed sequence of rules against an assembled
``FatalErrorLog`` and returns the finding codes that fired, in rule order.
Wording lives outside the rules: a ``MessageResolver`` turns a code into text,
and the default one reads ``data/analysis_messages.json``.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol

from . import releases
from .fatal_error_log import FatalErrorLog
from .jvm_options import JvmOptions
from .models import (
    Application,
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
from .regex import JAVA_NIO_BYTEBUFFER, NULL_POINTER
from .releases import ReleaseCatalog
from .units import calc_percent, convert_size, day_diff

LOGGER = logging.getLogger(__name__)

MESSAGES_FILE_ENV = "CRASH_TRIAGE_MESSAGES_FILE"
DEFAULT_MESSAGES_FILE = Path(__file__).resolve().parent.parent / "data" / "analysis_messages.json"


class Severity(str, Enum):
    ERROR = "error"
    WARN = "warn"
    INFO = "info"


class Analysis(str, Enum):
    """Finding codes. The value is the message key; its first segment is the severity."""

    ERROR_BUFFERBLOB_FLUSH_ICACHE_STUB = "error.bufferblob.flush.icache.stub"
    ERROR_COMPILED_JAVA_CODE = "error.compiled.java.code"
    ERROR_COMPILER_THREAD = "error.compiler.thread"
    ERROR_DIRECT_BYTE_BUFFER_CONTENTION = "error.direct.byte.buffer.contention"
    ERROR_EXPLICIT_GC_DISABLED_EAP7 = "error.explicit.gc.disabled.eap7"
    ERROR_FREETYPE_FONT_SCALER_GET_GLYPH_IMAGE_NATIVE = "error.freetype.font.scaler.get.glyph.image.native"
    ERROR_HEAP_PLUS_METASPACE_GT_PHYSICAL_MEMORY = "error.heap.plus.metaspace.gt.physical.memory"
    ERROR_JDK8_RHEL7_POWER8_RPM_ON_POWER9 = "error.jdk8.rhel7.power8.rpm.on.power9"
    ERROR_JDK8_SHENANDOAH_MARK_LOOP_WORK = "error.jdk8.shenandoah.mark.loop.work"
    ERROR_JDK8_SHENANDOAH_ROOT_UPDATER = "error.jdk8.shenandoah.root.updater"
    ERROR_JDK8_ZIPFILE_CONTENTION = "error.jdk8.zipfile.contention"
    ERROR_JNA = "error.jna"
    ERROR_JNA_RH = "error.jna.rh"
    ERROR_JVM_DLL = "error.jvm.dll"
    ERROR_LIBAIO_CONTEXT_DONE = "error.libaio.context.done"
    ERROR_LIBJVM_SO = "error.libjvm.so"
    ERROR_NULL_POINTER = "error.null.pointer"
    ERROR_OOME = "error.oome"
    ERROR_OOME_COMPRESSED_OOPS = "error.oome.compressed.oops"
    ERROR_OOME_EXTERNAL = "error.oome.external"
    ERROR_OOME_JAVA_HEAP = "error.oome.java.heap"
    ERROR_OOME_JVM = "error.oome.jvm"
    ERROR_OOME_STARTUP_LIMIT = "error.oome.startup.limit"
    ERROR_OOME_STARTUP_MEMORY = "error.oome.startup.memory"
    ERROR_OPT_REMOTE_DEBUGGING_ENABLED = "error.opt.remote.debugging.enabled"
    ERROR_PTHREAD_GETCPUCLOCKID = "error.pthread.getcpuclockid"
    ERROR_STACK_FREESPACE_GT_STACK_SIZE = "error.stack.freespace.gt.stack.size"
    ERROR_STACKOVERFLOW = "error.stackoverflow"
    ERROR_STUBROUTINES = "error.stubroutines"

    INFO_ADOPTOPENJDK_POSSIBLE = "info.adoptopenjdk.possible"
    INFO_CGROUP = "info.cgroup"
    INFO_CGROUP_MEMORY_LIMIT = "info.cgroup.memory.limit"
    INFO_JDK_ANCIENT = "info.jdk.ancient"
    INFO_JFFI = "info.jffi"
    INFO_JVM_STARTUP_FAILS = "info.jvm.startup.fails"
    INFO_MEMORY_JVM_NE_SYSTEM = "info.memory.jvm.ne.system"
    INFO_OPT_COMP_CLASS_SIZE_COMP_CLASS_DISABLED = "info.opt.comp.class.size.comp.class.disabled"
    INFO_OPT_COMP_CLASS_SIZE_COMP_OOPS_DISABLED = "info.opt.comp.class.size.comp.oops.disabled"
    INFO_OPT_G1_SUMMARIZE_RSET_STATS_OUTPUT = "info.opt.g1.summarize.rset.stats.output"
    INFO_OPT_HEAP_DUMP_ON_OOME_MISSING = "info.opt.heap.dump.on.oome.missing"
    INFO_OPT_HEAP_DUMP_PATH_FILENAME = "info.opt.heap.dump.path.filename"
    INFO_OPT_HEAP_DUMP_PATH_MISSING = "info.opt.heap.dump.path.missing"
    INFO_OPT_HEAP_MIN_NOT_EQUAL_MAX = "info.opt.heap.min.not.equal.max"
    INFO_OPT_INSTRUMENTATION = "info.opt.instrumentation"
    INFO_OPT_JDK11_PRINT_GC_DETAILS_MISSING = "info.opt.jdk11.print.gc.details.missing"
    INFO_OPT_JDK8_GC_LOG_FILE_ROTATION_NOT_ENABLED = "info.opt.jdk8.gc.log.file.rotation.not.enabled"
    INFO_OPT_JDK8_PRINT_GC_DETAILS_MISSING = "info.opt.jdk8.print.gc.details.missing"
    INFO_OPT_JMX_ENABLED = "info.opt.jmx.enabled"
    INFO_OPT_LARGE_PAGE_SIZE_IN_BYTES_LINUX = "info.opt.large.page.size.in.bytes.linux"
    INFO_OPT_LARGE_PAGE_SIZE_IN_BYTES_WINDOWS = "info.opt.large.page.size.in.bytes.windows"
    INFO_OPT_MAX_PERM_SIZE = "info.opt.max.perm.size"
    INFO_OPT_METASPACE = "info.opt.metaspace"
    INFO_OPT_NATIVE = "info.opt.native"
    INFO_OPT_PERF_DATA_DISABLED = "info.opt.perf.data.disabled"
    INFO_OPT_SERVER_REDUNDANT = "info.opt.server.redundant"
    INFO_OPT_UNDEFINED = "info.opt.undefined"
    INFO_OPT_VERBOSE_CLASS = "info.opt.verbose.class"
    INFO_RH_BUILD_CENTOS = "info.rh.build.centos"
    INFO_RH_BUILD_LINUX_ZIP = "info.rh.build.linux.zip"
    INFO_RH_BUILD_NOT = "info.rh.build.not"
    INFO_RH_BUILD_POSSIBLE = "info.rh.build.possible"
    INFO_RH_BUILD_RPM_BASED = "info.rh.build.rpm.based"
    INFO_RH_BUILD_RPM_INSTALL = "info.rh.build.rpm.install"
    INFO_RH_BUILD_WINDOWS_ZIP = "info.rh.build.windows.zip"
    INFO_SIGCODE_BUS_ADRALN = "info.sigcode.bus.adraln"
    INFO_SIGCODE_BUS_ADRERR = "info.sigcode.bus.adrerr"
    INFO_SIGCODE_BUS_ADRERR_LINUX = "info.sigcode.bus.adrerr.linux"
    INFO_SIGCODE_BUS_OBJERR = "info.sigcode.bus.objerr"
    INFO_SIGCODE_ILL_ILLOPN = "info.sigcode.ill.illopn"
    INFO_SIGCODE_SEGV_ACCERR = "info.sigcode.segv.accerr"
    INFO_SIGCODE_SEGV_MAPERR = "info.sigcode.segv.maperr"
    INFO_SIGCODE_SI_KERNEL = "info.sigcode.si.kernel"
    INFO_SIGCODE_SI_USER = "info.sigcode.si.user"
    INFO_SIGNO_EXCEPTION_ACCESS_VIOLATION = "info.signo.exception.access.violation"
    INFO_SIGNO_SIGBUS = "info.signo.sigbus"
    INFO_SIGNO_SIGILL = "info.signo.sigill"
    INFO_SIGNO_SIGSEGV = "info.signo.sigsegv"
    INFO_STACK_NO_VM_CODE = "info.stack.no.vm.code"
    INFO_STORAGE_AWS = "info.storage.aws"
    INFO_STORAGE_NFS = "info.storage.nfs"
    INFO_STORAGE_UNKNOWN = "info.storage.unknown"
    INFO_SWAP_DISABLED = "info.swap.disabled"
    INFO_SWAPPING = "info.swapping"
    INFO_TRUNCATED = "info.truncated"

    WARN_CMS_INCREMENTAL_MODE = "warn.cms.incremental.mode"
    WARN_DEBUG_SYMBOLS = "warn.jdk.debug.symbols"
    WARN_JDK_NOT_LATEST = "warn.jdk.not.latest"
    WARN_JDK_NOT_LTS = "warn.jdk.not.lts"
    WARN_OPT_BIASED_LOCKING_DISABLED = "warn.opt.biased.locking.disabled"
    WARN_OPT_COMP_CLASS_DISABLED_HEAP_LT_32G = "warn.opt.comp.class.disabled.heap.lt.32g"
    WARN_OPT_COMP_CLASS_DISABLED_HEAP_UNK = "warn.opt.comp.class.disabled.heap.unk"
    WARN_OPT_COMP_CLASS_ENABLED_HEAP_GT_32G = "warn.opt.comp.class.enabled.heap.gt.32g"
    WARN_OPT_COMP_CLASS_SIZE_HEAP_GT_32G = "warn.opt.comp.class.size.heap.gt.32g"
    WARN_OPT_COMP_OOPS_DISABLED_HEAP_LT_32G = "warn.opt.comp.oops.disabled.heap.lt.32g"
    WARN_OPT_COMP_OOPS_DISABLED_HEAP_UNK = "warn.opt.comp.oops.disabled.heap.unk"
    WARN_OPT_COMP_OOPS_ENABLED_HEAP_GT_32G = "warn.opt.comp.oops.enabled.heap.gt.32g"
    WARN_OPT_CONTAINER_PERF_DATA_DISK = "warn.opt.container.perf.data.disk"
    WARN_OPT_EXPLICIT_GC_NOT_CONCURRENT = "warn.opt.explicit.gc.not.concurrent"
    WARN_OPT_HEAP_DUMP_ON_OOME_DISABLED = "warn.opt.heap.dump.on.oome.disabled"
    WARN_OPT_METASPACE_LT_COMP_CLASS = "warn.opt.metaspace.lt.comp.class"
    WARN_OPT_VERIFY_NONE = "warn.opt.verify.none"
    WARN_RHEL6 = "warn.rhel6"
    WARN_SWAPPING = "warn.swapping"
    WARN_THREAD_STACK_SIZE_SMALL = "warn.thread.stack.size.small"
    WARN_THREAD_STACK_SIZE_TINY = "warn.thread.stack.size.tiny"
    WARN_UNIDENTIFIED_LOG_LINE_REPORT = "warn.unidentified.log.line.report"

    @property
    def key(self) -> str:
        return self.value

    @property
    def severity(self) -> Severity:
        return Severity(self.value.split(".", 1)[0])


@dataclass(frozen=True, slots=True)
class Finding:
    """A rendered analysis result."""

    code: Analysis
    severity: Severity
    message: str


class MessageResolver(Protocol):
    """Turns a finding code (plus optional values) into display text."""

    def render(self, code: Analysis, **args: Any) -> str:
        ...


class _BlankMissing(dict):
    def __missing__(self, key: str) -> str:
        return ""


@dataclass(frozen=True, slots=True)
class JsonMessageResolver:
    """Message templates keyed by finding code, ``str.format`` style placeholders."""

    templates: Mapping[str, str]

    @classmethod
    def from_file(cls, path: Path) -> JsonMessageResolver:
        if not path.is_file():
            raise FileNotFoundError(f"Message templates not found: {path}")
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Message templates must be a JSON object: {path}")
        return cls(templates={str(k): str(v) for k, v in data.items()})

    def render(self, code: Analysis, **args: Any) -> str:
        template = self.templates.get(code.key)
        if template is None:
            return code.key
        return template.format_map(_BlankMissing(args))


@lru_cache(maxsize=1)
def default_resolver() -> JsonMessageResolver:
    raw = os.getenv(MESSAGES_FILE_ENV)
    path = Path(raw).expanduser().resolve() if raw else DEFAULT_MESSAGES_FILE
    return JsonMessageResolver.from_file(path)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------

_STARTUP_ELAPSED = "0d 0h 0m 0s"
_OOME_ERROR = "Out of Memory Error"

_ZIPFILE_GET_ENTRY = re.compile(r".+java\.util\.zip\.ZipFile\.getEntry.+")
_JBYTE_DISJOINT_ARRAYCOPY = re.compile(r"v  ~StubRoutines::jbyte_disjoint_arraycopy")
_SHENANDOAH_UPDATE_REFS = re.compile(r"V  \[(?:libjvm\.so|jvm\.dll).+\]  ShenandoahUpdateRefsClosure::do_oop.+")
_LIBJVM_SO_FRAME = re.compile(r"V  \[libjvm\.so.+\](?:.+)?")
_JVM_DLL_FRAME = re.compile(r"V  \[jvm\.dll.+\](?:.+)?")
_PTHREAD_GETCPUCLOCKID = re.compile(r"C  \[libpthread\.so.+\]  pthread_getcpuclockid.+")
_FLUSH_ICACHE_STUB = re.compile(r"v  ~BufferBlob::flush_icache_stub+")
_STUBROUTINES_FRAME = re.compile(r"v  ~BufferBlob::StubRoutines.*")
_SHENANDOAH_MARK_LOOP_WORK = re.compile(r".+ShenandoahConcurrentMark::mark_loop_work.+")
_LIBAIO_CONTEXT_DONE = re.compile(r".+ org.apache.activemq.artemis.nativo.jlibaio.LibaioContext.done().+")
_COMPILER_THREAD = re.compile(r".+CompilerThread\d+.+")
_COMPILED_JAVA_FRAME = re.compile(r"J \d+ C[12].+")
_JFFI_LIBRARY = re.compile(r".+(?:jffi|JFFI).+")
_FREETYPE_GET_GLYPH_IMAGE = re.compile(r".+sun\.font\.FreetypeFontScaler\.getGlyphImageNative.+")
_RHEL7_MINOR_789 = re.compile(r".+7\.[789].+")
_XLOG_GC_DETAILS = re.compile(r".+gc\*=(?!off).+")
_HEAP_DUMP_FILENAME = re.compile(r".+\.(?:hprof|bin)")
_NULL_POINTER = re.compile(NULL_POINTER)

_SIGNAL_NUMBERS = {
    SignalNumber.EXCEPTION_ACCESS_VIOLATION: Analysis.INFO_SIGNO_EXCEPTION_ACCESS_VIOLATION,
    SignalNumber.SIGBUS: Analysis.INFO_SIGNO_SIGBUS,
    SignalNumber.SIGILL: Analysis.INFO_SIGNO_SIGILL,
    SignalNumber.SIGSEGV: Analysis.INFO_SIGNO_SIGSEGV,
}

_SIGNAL_CODES = {
    SignalCode.BUS_ADRALN: Analysis.INFO_SIGCODE_BUS_ADRALN,
    SignalCode.BUS_OBJERR: Analysis.INFO_SIGCODE_BUS_OBJERR,
    SignalCode.ILL_ILLOPN: Analysis.INFO_SIGCODE_ILL_ILLOPN,
    SignalCode.SEGV_ACCERR: Analysis.INFO_SIGCODE_SEGV_ACCERR,
    SignalCode.SEGV_MAPERR: Analysis.INFO_SIGCODE_SEGV_MAPERR,
    SignalCode.SI_KERNEL: Analysis.INFO_SIGCODE_SI_KERNEL,
    SignalCode.SI_USER: Analysis.INFO_SIGCODE_SI_USER,
}

_STORAGE_DEVICES = {
    Device.AWS_BLOCK_STORAGE: Analysis.INFO_STORAGE_AWS,
    Device.NFS: Analysis.INFO_STORAGE_NFS,
    Device.UNKNOWN: Analysis.INFO_STORAGE_UNKNOWN,
}

# Compressed object pointers only address heaps below 32G.
_COMPRESSED_OOPS_LIMIT_BYTES = convert_size(32, "g", "b")
_COMPRESSED_CLASS_SPACE_DEFAULT_BYTES = convert_size(1, "g", "b")


def _positive(value: int | None) -> bool:
    return value is not None and value > 0


def _matches(pattern: re.Pattern[str], value: str | None) -> bool:
    return value is not None and pattern.fullmatch(value) is not None


def _remove(codes: list[Analysis], code: Analysis) -> None:
    if code in codes:
        codes.remove(code)


def analyze(log: FatalErrorLog, catalog: ReleaseCatalog | None = None) -> list[Analysis]:
    """Run every rule against ``log``; returns finding codes in report order."""
    if catalog is not None and log.catalog is not catalog:
        log = dataclasses.replace(log, catalog=catalog)
    codes: list[Analysis] = []
    if log.unidentified_log_lines:
        codes.insert(0, Analysis.WARN_UNIDENTIFIED_LOG_LINE_REPORT)
    _data_rules(log, codes)
    if log.jvm_options is not None:
        _option_rules(log.jvm_options, codes)
    LOGGER.debug("Analysis produced %d finding(s)", len(codes))
    return codes


def _data_rules(log: FatalErrorLog, codes: list[Analysis]) -> None:
    add = codes.append
    spec = log.java_specification
    top = log.stack_frame_top
    startup = log.elapsed_time == _STARTUP_ELAPSED
    out_of_memory = log.is_error(_OOME_ERROR)
    options = log.jvm_options

    if startup:
        add(Analysis.INFO_JVM_STARTUP_FAILS)
    if (log.have_vm_frame_in_stack or log.have_vm_frame_in_header) and not log.have_jdk_debug_symbols:
        add(Analysis.WARN_DEBUG_SYMBOLS)
    if not releases.is_latest_release(log):
        codes.insert(0, Analysis.WARN_JDK_NOT_LATEST)

    # Vendor and build provenance
    if log.is_rh_build_openjdk:
        if log.os_type is OsType.LINUX:
            if log.os_vendor is OsVendor.CENTOS:
                codes.insert(0, Analysis.INFO_RH_BUILD_CENTOS)
            elif log.rpm_directory is not None:
                codes.insert(0, Analysis.INFO_RH_BUILD_RPM_INSTALL)
                if (
                    log.cpu_arch is CpuArch.POWER9
                    and spec is JavaSpecification.JDK8
                    and _RHEL7_MINOR_789.fullmatch(log.os_string)
                ):
                    add(Analysis.ERROR_JDK8_RHEL7_POWER8_RPM_ON_POWER9)
            elif log.is_rh_rpm:
                codes.insert(0, Analysis.INFO_RH_BUILD_RPM_BASED)
            else:
                codes.insert(0, Analysis.INFO_RH_BUILD_LINUX_ZIP)
            if log.os_version is OsVersion.RHEL6:
                add(Analysis.WARN_RHEL6)
        elif log.is_windows:
            codes.insert(0, Analysis.INFO_RH_BUILD_WINDOWS_ZIP)
    elif log.is_red_hat_build_string:
        add(Analysis.INFO_RH_BUILD_POSSIBLE)
    elif log.is_adopt_openjdk_build_string:
        add(Analysis.INFO_ADOPTOPENJDK_POSSIBLE)
    elif log.vm_info_event is not None:
        codes.insert(0, Analysis.INFO_RH_BUILD_NOT)

    if log.have_frames_in_stack and not log.have_vm_code_in_stack:
        add(Analysis.INFO_STACK_NO_VM_CODE)
    if spec is not JavaSpecification.UNKNOWN and not log.is_jdk_lts:
        add(Analysis.WARN_JDK_NOT_LTS)
    if day_diff(releases.release_date(log), releases.latest_release_date(log)) > 365:
        add(Analysis.INFO_JDK_ANCIENT)

    if log.is_jna_crash:
        add(Analysis.ERROR_JNA_RH if log.java_vendor is JavaVendor.RED_HAT else Analysis.ERROR_JNA)
    if spec is JavaSpecification.JDK8 and _matches(_ZIPFILE_GET_ENTRY, log.stack_frame_top_compiled_java_code):
        add(Analysis.ERROR_JDK8_ZIPFILE_CONTENTION)
    if _matches(_JBYTE_DISJOINT_ARRAYCOPY, top):
        if log.is_in_stack(JAVA_NIO_BYTEBUFFER):
            add(Analysis.ERROR_DIRECT_BYTE_BUFFER_CONTENTION)
        else:
            add(Analysis.ERROR_STUBROUTINES)

    # Memory
    jvm_physical = log.jvm_physical_memory
    jvm_physical_free = log.jvm_physical_memory_free
    jvm_memory_max = log.jvm_memory_max
    if _positive(jvm_physical) and jvm_memory_max > jvm_physical:
        add(Analysis.ERROR_HEAP_PLUS_METASPACE_GT_PHYSICAL_MEMORY)
    if out_of_memory:
        if startup:
            if jvm_memory_max > (jvm_physical_free or 0) + (log.jvm_swap_free or 0):
                add(Analysis.ERROR_OOME_STARTUP_MEMORY)
            else:
                add(Analysis.ERROR_OOME_STARTUP_LIMIT)
            _remove(codes, Analysis.INFO_JVM_STARTUP_FAILS)
        elif _positive(jvm_physical_free) and calc_percent(jvm_physical_free, jvm_physical or 0) >= 5:
            # Plenty of physical memory; something else limits allocation.
            if log.is_error(r"Native memory allocation \(mmap\) failed to map") or log.is_error(
                "Out of swap space to map in thread stack"
            ):
                add(Analysis.ERROR_OOME_COMPRESSED_OOPS)
        elif jvm_memory_max > 0 and _positive(jvm_physical):
            if calc_percent(jvm_memory_max, jvm_physical) >= 95:
                add(Analysis.ERROR_OOME_JVM)
            else:
                add(Analysis.ERROR_OOME_EXTERNAL)
        else:
            add(Analysis.ERROR_OOME)
    elif _positive(log.jvm_swap):
        swap_used_percent = 100 - calc_percent(log.jvm_swap_free or 0, log.jvm_swap)
        if 5 < swap_used_percent < 20:
            add(Analysis.INFO_SWAPPING)
        elif swap_used_percent >= 20:
            add(Analysis.WARN_SWAPPING)
    if log.jvm_swap == 0:
        add(Analysis.INFO_SWAP_DISABLED)

    # Known crash sites
    update = releases.jdk8_update_number(log.jdk_release_string)
    if (
        spec is JavaSpecification.JDK8
        and update is not None
        and update < 282
        and _matches(_SHENANDOAH_UPDATE_REFS, top)
    ):
        add(Analysis.ERROR_JDK8_SHENANDOAH_ROOT_UPDATER)
    elif top is not None and not out_of_memory:
        if _LIBJVM_SO_FRAME.fullmatch(top):
            add(Analysis.ERROR_LIBJVM_SO)
        elif _JVM_DLL_FRAME.fullmatch(top):
            add(Analysis.ERROR_JVM_DLL)

    if log.signal_number in _SIGNAL_NUMBERS:
        add(_SIGNAL_NUMBERS[log.signal_number])
    if log.signal_code is SignalCode.BUS_ADRERR:
        if log.os_type is OsType.LINUX:
            add(Analysis.INFO_SIGCODE_BUS_ADRERR_LINUX)
        else:
            add(Analysis.INFO_SIGCODE_BUS_ADRERR)
    elif log.signal_code in _SIGNAL_CODES:
        add(_SIGNAL_CODES[log.signal_code])

    if _matches(_PTHREAD_GETCPUCLOCKID, top):
        add(Analysis.ERROR_PTHREAD_GETCPUCLOCKID)
    if _matches(_FLUSH_ICACHE_STUB, top):
        add(Analysis.ERROR_BUFFERBLOB_FLUSH_ICACHE_STUB)

    # Thread stacks
    thread_stack_size = log.thread_stack_size
    if log.have_stack_overflow_error:
        add(Analysis.ERROR_STACKOVERFLOW)
    elif log.stack_free_space is not None and log.stack_free_space > thread_stack_size:
        add(Analysis.ERROR_STACK_FREESPACE_GT_STACK_SIZE)
    if thread_stack_size < 1:
        add(Analysis.WARN_THREAD_STACK_SIZE_TINY)
    elif thread_stack_size < 128:
        add(Analysis.WARN_THREAD_STACK_SIZE_SMALL)

    if log.have_oome_java_heap:
        add(Analysis.ERROR_OOME_JAVA_HEAP)
    if _matches(_STUBROUTINES_FRAME, top) or log.is_error(r"v  ~BufferBlob::StubRoutines"):
        add(Analysis.ERROR_STUBROUTINES)
    if _matches(_SHENANDOAH_MARK_LOOP_WORK, top):
        add(Analysis.ERROR_JDK8_SHENANDOAH_MARK_LOOP_WORK)
    if _matches(_LIBAIO_CONTEXT_DONE, top):
        add(Analysis.ERROR_LIBAIO_CONTEXT_DONE)

    # Container and host
    if log.container_info_events:
        add(Analysis.INFO_CGROUP)
    system_physical = log.system_physical_memory
    if _positive(jvm_physical) and _positive(system_physical) and jvm_physical != system_physical:
        add(Analysis.INFO_MEMORY_JVM_NE_SYSTEM)
        if log.have_cgroup_memory_limit:
            add(Analysis.INFO_CGROUP_MEMORY_LIMIT)
    if log.is_truncated:
        add(Analysis.INFO_TRUNCATED)
    if log.os_type is OsType.LINUX and log.storage_device in _STORAGE_DEVICES:
        add(_STORAGE_DEVICES[log.storage_device])

    if _matches(_COMPILER_THREAD, log.current_thread):
        add(Analysis.ERROR_COMPILER_THREAD)
        # The compiler thread finding already covers a crash in the VM library.
        _remove(codes, Analysis.ERROR_LIBJVM_SO)
        _remove(codes, Analysis.ERROR_JVM_DLL)

    # Collectors and options that only make sense together with crash data
    collectors = log.garbage_collectors
    if (
        GarbageCollector.G1 in collectors
        and options is not None
        and options.is_enabled("g1_summarize_rset_stats")
        and (options.number("g1_summarize_rset_stats_period") or 0) > 0
    ):
        add(Analysis.INFO_OPT_G1_SUMMARIZE_RSET_STATS_OUTPUT)
    if (log.cpus or 0) > 2 and options is not None and options.is_enabled("cms_incremental_mode"):
        add(Analysis.WARN_CMS_INCREMENTAL_MODE)
    if (
        (GarbageCollector.CMS in collectors or GarbageCollector.G1 in collectors)
        and options is not None
        and not options.is_enabled("explicit_gc_invokes_concurrent")
        and not options.is_enabled("disable_explicit_gc")
    ):
        add(Analysis.WARN_OPT_EXPLICIT_GC_NOT_CONCURRENT)
    if log.application is Application.JBOSS_EAP7 and options is not None and options.is_enabled("disable_explicit_gc"):
        add(Analysis.ERROR_EXPLICIT_GC_DISABLED_EAP7)
    if log.is_64bit and options is not None and options.get("server") is not None:
        add(Analysis.INFO_OPT_SERVER_REDUNDANT)
    if log.sig_info_event is not None and _matches(_NULL_POINTER, log.sig_info_event.signal_address):
        add(Analysis.ERROR_NULL_POINTER)
    if (
        log.is_container
        and options is not None
        and not options.is_disabled("use_perf_data")
        and not options.is_enabled("perf_disable_shared_mem")
    ):
        add(Analysis.WARN_OPT_CONTAINER_PERF_DATA_DISK)
    if options is not None and options.is_disabled("use_perf_data"):
        add(Analysis.INFO_OPT_PERF_DATA_DISABLED)
    if spec is JavaSpecification.JDK8 and options is not None and options.get("use_gc_log_file_rotation") is None:
        add(Analysis.INFO_OPT_JDK8_GC_LOG_FILE_ROTATION_NOT_ENABLED)
    if spec is JavaSpecification.JDK8 and options is not None and options.get("print_gc_details") is None:
        add(Analysis.INFO_OPT_JDK8_PRINT_GC_DETAILS_MISSING)
    if (
        spec is JavaSpecification.JDK11
        and options is not None
        and options.log
        and not any(_XLOG_GC_DETAILS.fullmatch(x) for x in options.log)
    ):
        add(Analysis.INFO_OPT_JDK11_PRINT_GC_DETAILS_MISSING)
    if (
        not log.container_info_events
        and options is not None
        and options.get("initial_heap_size") is not None
        and options.get("max_heap_size") is not None
        and options.size_bytes("initial_heap_size") != options.size_bytes("max_heap_size")
    ):
        add(Analysis.INFO_OPT_HEAP_MIN_NOT_EQUAL_MAX)
    if options is not None and options.get("large_page_size_in_bytes") is not None:
        if log.os_type is OsType.LINUX:
            add(Analysis.INFO_OPT_LARGE_PAGE_SIZE_IN_BYTES_LINUX)
        elif log.os_type is OsType.WINDOWS:
            add(Analysis.INFO_OPT_LARGE_PAGE_SIZE_IN_BYTES_WINDOWS)

    if _matches(_COMPILED_JAVA_FRAME, top):
        add(Analysis.ERROR_COMPILED_JAVA_CODE)
    if any(_matches(_JFFI_LIBRARY, e.file_path) for e in log.dynamic_library_events):
        add(Analysis.INFO_JFFI)
    if _matches(_FREETYPE_GET_GLYPH_IMAGE, log.stack_frame_top_java):
        add(Analysis.ERROR_FREETYPE_FONT_SCALER_GET_GLYPH_IMAGE_NATIVE)


def _option_rules(options: JvmOptions, codes: list[Analysis]) -> None:
    add = codes.append

    if options.get("jpda_socket_transport") is not None:
        add(Analysis.ERROR_OPT_REMOTE_DEBUGGING_ENABLED)
    if options.undefined:
        add(Analysis.INFO_OPT_UNDEFINED)
    if options.javaagent:
        add(Analysis.INFO_OPT_INSTRUMENTATION)
    if options.agentpath:
        add(Analysis.INFO_OPT_NATIVE)
    if options.is_jmx_enabled:
        add(Analysis.INFO_OPT_JMX_ENABLED)

    if options.get("metaspace_size") is not None or options.get("max_metaspace_size") is not None:
        add(Analysis.INFO_OPT_METASPACE)
    max_metaspace = options.size_bytes("max_metaspace_size")
    if max_metaspace is not None:
        compressed_class_space = options.size_bytes("compressed_class_space_size")
        if compressed_class_space is None:
            compressed_class_space = _COMPRESSED_CLASS_SPACE_DEFAULT_BYTES
        if max_metaspace < compressed_class_space:
            add(Analysis.WARN_OPT_METASPACE_LT_COMP_CLASS)
    if options.get("max_perm_size") is not None:
        add(Analysis.INFO_OPT_MAX_PERM_SIZE)

    heap_dump = options.get("heap_dump_on_out_of_memory_error")
    if heap_dump is None:
        add(Analysis.INFO_OPT_HEAP_DUMP_ON_OOME_MISSING)
    elif options.is_disabled("heap_dump_on_out_of_memory_error"):
        add(Analysis.WARN_OPT_HEAP_DUMP_ON_OOME_DISABLED)
    else:
        heap_dump_path = options.get("heap_dump_path")
        if heap_dump_path is None:
            add(Analysis.INFO_OPT_HEAP_DUMP_PATH_MISSING)
        elif _HEAP_DUMP_FILENAME.fullmatch(heap_dump_path):
            add(Analysis.INFO_OPT_HEAP_DUMP_PATH_FILENAME)

    _compressed_pointer_rules(options, add)

    if options.get("verbose_class") is not None:
        add(Analysis.INFO_OPT_VERBOSE_CLASS)
    if options.is_disabled("use_biased_locking") and options.get("use_shenandoah_gc") is None:
        add(Analysis.WARN_OPT_BIASED_LOCKING_DISABLED)
    if options.get("verify") == "-Xverify:none":
        add(Analysis.WARN_OPT_VERIFY_NONE)


def _compressed_pointer_rules(options: JvmOptions, add: Callable[[Analysis], None]) -> None:
    max_heap = options.size_bytes("max_heap_size")
    class_space_set = options.get("compressed_class_space_size") is not None
    if max_heap is None or max_heap < _COMPRESSED_OOPS_LIMIT_BYTES:
        if options.is_disabled("use_compressed_oops"):
            if options.get("max_heap_size") is None:
                add(Analysis.WARN_OPT_COMP_OOPS_DISABLED_HEAP_UNK)
            else:
                add(Analysis.WARN_OPT_COMP_OOPS_DISABLED_HEAP_LT_32G)
            if class_space_set:
                add(Analysis.INFO_OPT_COMP_CLASS_SIZE_COMP_OOPS_DISABLED)
        if options.is_disabled("use_compressed_class_pointers"):
            if options.get("max_heap_size") is None:
                add(Analysis.WARN_OPT_COMP_CLASS_DISABLED_HEAP_UNK)
            else:
                add(Analysis.WARN_OPT_COMP_CLASS_DISABLED_HEAP_LT_32G)
            if class_space_set:
                add(Analysis.INFO_OPT_COMP_CLASS_SIZE_COMP_CLASS_DISABLED)
    else:
        if options.get("use_compressed_oops") is not None and not options.is_disabled("use_compressed_oops"):
            add(Analysis.WARN_OPT_COMP_OOPS_ENABLED_HEAP_GT_32G)
        if options.get("use_compressed_class_pointers") is not None and not options.is_disabled(
            "use_compressed_class_pointers"
        ):
            add(Analysis.WARN_OPT_COMP_CLASS_ENABLED_HEAP_GT_32G)
        if class_space_set:
            add(Analysis.WARN_OPT_COMP_CLASS_SIZE_HEAP_GT_32G)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" + ("s" if count > 1 else "")


def not_latest_suffix(log: FatalErrorLog) -> str:
    """`` (newer by N versions and D days)`` when both differences are positive, else ""."""
    days = day_diff(releases.release_date(log), releases.latest_release_date(log))
    versions = releases.latest_release_number(log) - releases.release_number(log)
    if days > 0 and versions > 0:
        return f" (newer by {_plural(versions, 'version')} and {_plural(days, 'day')})"
    return ""


def _message_args(log: FatalErrorLog, code: Analysis) -> dict[str, Any]:
    options = log.jvm_options
    if code is Analysis.WARN_JDK_NOT_LATEST:
        return {
            "latest_release": releases.latest_release_string(log) or "",
            "newer_by": not_latest_suffix(log),
        }
    if code is Analysis.INFO_OPT_UNDEFINED and options is not None:
        return {"options": " ".join(options.undefined)}
    if code is Analysis.INFO_OPT_INSTRUMENTATION and options is not None:
        return {"options": " ".join(options.javaagent)}
    if code is Analysis.INFO_OPT_NATIVE and options is not None:
        return {"options": " ".join(options.agentpath)}
    if code is Analysis.INFO_JDK_ANCIENT:
        return {"latest_release": releases.latest_release_string(log) or ""}
    return {}


def findings(
    log: FatalErrorLog,
    codes: Sequence[Analysis],
    resolver: MessageResolver | None = None,
) -> list[Finding]:
    """Render ``codes`` grouped error, warn, info; rule order is kept inside each group."""
    resolver = resolver or default_resolver()
    out: list[Finding] = []
    for severity in Severity:
        for code in codes:
            if code.severity is severity:
                out.append(Finding(code=code, severity=severity, message=resolver.render(code, **_message_args(log, code))))
    return out
