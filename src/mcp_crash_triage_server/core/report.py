"""Plain text crash report.

The layout is line oriented: each section opens with a ``=`` banner, its
title and a ``-`` banner. Sizes are megabytes (``M``) unless labelled.
"""

from __future__ import annotations

from collections.abc import Sequence

from .analysis import Analysis, Finding, Severity
from .fatal_error_log import FatalErrorLog
from .models import JavaSpecification
from .units import calc_percent

SECTION_BANNER = "=" * 40
SUBSECTION_BANNER = "-" * 40
STACK_FRAMES_LIMIT = 10
SIZE_SUFFIX = "M"


def _percent(part: int, whole: int | None) -> str:
    return f"{calc_percent(part, whole or 0)}%"


def _positive(value: int | None) -> bool:
    return value is not None and value > 0


class _Report:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def add(self, line: str) -> None:
        self.lines.append(line)

    def section(self, title: str) -> None:
        self.lines += [SECTION_BANNER, f"{title}:", SUBSECTION_BANNER]

    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


def render_report(
    log: FatalErrorLog,
    findings: Sequence[Finding],
    *,
    log_name: str,
    show_unidentified: bool = True,
) -> str:
    """Render the crash model and its findings as a text report."""
    out = _Report()
    out.add(log_name)

    spec = log.java_specification
    if spec in (JavaSpecification.JDK6, JavaSpecification.JDK7):
        out.section("ERROR")
        out.add(f"*It appears the fatal error log is from {spec.value}.")
        out.add("*Fatal error log analysis prior to JDK8 is not supported.")
        return out.text()

    codes = {f.code for f in findings}
    _os_section(out, log, codes)
    if Analysis.INFO_CGROUP in codes:
        _container_section(out, log)
    _jvm_section(out, log)
    _threads_section(out, log)
    _errors_section(out, log)
    _stack_section(out, log)
    out.add(SECTION_BANNER)
    _analysis_section(out, findings)
    if show_unidentified and log.unidentified_log_lines:
        out.add(f"{len(log.unidentified_log_lines)} UNIDENTIFIED LOG LINE(S):")
        out.add(SUBSECTION_BANNER)
        out.lines += log.unidentified_log_lines
        out.add(SECTION_BANNER)
    return out.text()


def _os_section(out: _Report, log: FatalErrorLog, codes: set[Analysis]) -> None:
    out.section("OS")
    out.add(f"Version: {log.os_string}")
    out.add(f"ARCH: {log.arch.value}")
    if log.cpus is not None:
        out.add(f"CPUs (cpu x cpu cores x hyperthreading): {log.cpus}")
    physical = log.system_physical_memory
    if _positive(physical):
        free = log.system_physical_memory_free or 0
        out.add(f"Memory: {physical}{SIZE_SUFFIX}")
        out.add(f"Memory Free: {free}{SIZE_SUFFIX} ({_percent(free, physical)})")
    swap = log.system_swap
    if swap is not None and swap >= 0:
        out.add(f"Swap: {swap}{SIZE_SUFFIX}")
        if swap > 0:
            swap_free = log.system_swap_free or 0
            out.add(f"Swap Free: {swap_free}{SIZE_SUFFIX} ({_percent(swap_free, swap)})")
    if Analysis.ERROR_OOME_STARTUP_LIMIT in codes and log.rlimit_event is not None:
        out.add(log.rlimit_event.log_entry)


def _container_section(out: _Report, log: FatalErrorLog) -> None:
    out.section("Container")
    physical = log.jvm_physical_memory
    if log.jvm_memory_max > 0 and _positive(physical):
        free = log.jvm_physical_memory_free or 0
        out.add(f"Memory: {physical}{SIZE_SUFFIX} ({_percent(physical, log.system_physical_memory)})")
        out.add(f"Memory Free: {free}{SIZE_SUFFIX} ({_percent(free, physical)})")
    system_swap = log.system_swap
    if _positive(system_swap):
        swap = log.jvm_swap or 0
        swap_free = log.system_swap_free or 0
        out.add(f"Swap: {swap}{SIZE_SUFFIX} ({_percent(swap, system_swap)})")
        out.add(f"Swap Free: {swap_free}{SIZE_SUFFIX} ({_percent(swap_free, system_swap)})")


def _jvm_section(out: _Report, log: FatalErrorLog) -> None:
    out.section("JVM")
    out.add(f"Version: {log.jdk_release_string}")
    out.add(f"Vendor: {log.java_vendor.value}")
    out.add(f"Application: {log.application.value}")
    if log.vm_state_event is not None:
        out.add(f"VM State: {log.vm_state}")
    if log.crash_time:
        out.add(f"Crash Date: {log.crash_time}")
    if log.elapsed_time is not None:
        out.add(f"Run Time: {log.elapsed_time}")
    collectors = log.garbage_collectors
    if collectors:
        out.add("Garbage Collector(s): " + ", ".join(c.value for c in collectors))

    heap_max = log.heap_max
    heap_allocation = log.heap_allocation
    if _positive(heap_max):
        out.add(f"Heap Max: {heap_max}{SIZE_SUFFIX}")
    if _positive(heap_allocation):
        out.add(f"Heap Allocation: {heap_allocation}{SIZE_SUFFIX} ({_percent(heap_allocation, heap_max)} Heap Max)")
    heap_used = log.heap_used
    if _positive(heap_used):
        out.add(f"Heap Used: {heap_used}{SIZE_SUFFIX} ({_percent(heap_used, heap_allocation)} Heap Allocation)")

    metaspace_max = log.metaspace_max
    metaspace_allocation = log.metaspace_allocation
    if _positive(metaspace_max):
        out.add(f"Metaspace Max: {metaspace_max}{SIZE_SUFFIX}")
    if _positive(metaspace_allocation):
        out.add(
            f"Metaspace Allocation: {metaspace_allocation}{SIZE_SUFFIX} "
            f"({_percent(metaspace_allocation, metaspace_max)} Metaspace Max)"
        )
    metaspace_used = log.metaspace_used
    if _positive(metaspace_used):
        out.add(
            f"Metaspace Used: {metaspace_used}{SIZE_SUFFIX} "
            f"({_percent(metaspace_used, metaspace_allocation)} Metaspace Allocation)"
        )

    if log.thread_stack_size > 0:
        out.add(f"Thread Stack Size: {log.thread_stack_size}K")
    if _positive(log.thread_stack_memory):
        out.add(f"Thread Stack Memory: {log.thread_stack_memory}{SIZE_SUFFIX}")
    if log.reserved_code_cache_size > 0:
        out.add(f"Code Cache Max: {log.reserved_code_cache_size}{SIZE_SUFFIX}")
    if log.direct_memory_max > 0:
        out.add(f"Direct Memory Max: {log.direct_memory_max}{SIZE_SUFFIX}")
    if log.jvm_memory_max > 0:
        out.add(
            f"JVM Memory Max: >{log.jvm_memory_max}{SIZE_SUFFIX} "
            f"({_percent(log.jvm_memory_max, log.jvm_physical_memory)} Available Memory)"
        )


def _threads_section(out: _Report, log: FatalErrorLog) -> None:
    out.section("Threads")
    out.add(f"Current thread: {log.current_thread}")
    out.add(f"# Java threads: {log.java_thread_count}")


def _errors_section(out: _Report, log: FatalErrorLog) -> None:
    error = log.error
    if not error:
        return
    out.section("Error(s)")
    out.lines += [e.log_entry for e in log.exception_counts_events if not e.is_header]
    out.add(error)


def _stack_section(out: _Report, log: FatalErrorLog) -> None:
    out.section("Stack")
    frames = log.stack_frames
    out.lines += frames[:STACK_FRAMES_LIMIT]
    if len(frames) > STACK_FRAMES_LIMIT:
        out.add("...")


def _analysis_section(out: _Report, findings: Sequence[Finding]) -> None:
    if not findings:
        return
    out.add("ANALYSIS:")
    for severity in Severity:
        group = [f for f in findings if f.severity is severity]
        if not group:
            continue
        out.lines += [SUBSECTION_BANNER, severity.value, SUBSECTION_BANNER]
        out.lines += [f"*{f.message}" for f in group]
    out.add(SECTION_BANNER)
