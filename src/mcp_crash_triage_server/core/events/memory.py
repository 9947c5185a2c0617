"""Physical memory, Java heap and native memory lines."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import EventKind
from ..regex import ADDRESS, SIZE, TIMESTAMP
from ..units import parse_size
from .base import LogEvent

_MEMINFO_VALUE = re.compile(r"(?P<key>[\w()]+):\s+(?P<kb>\d+)(?: kB)?")


@dataclass(frozen=True, slots=True)
class MeminfoEvent(LogEvent):
    """``/proc/meminfo`` dump: ``MemTotal:       16266068 kB``."""

    kind = EventKind.MEMINFO
    pattern = re.compile(
        r"(?:/proc/meminfo:|Active|Anon|Bounce|Buffers|Cached|Cma|Commit|Direct|Dirty|FileHugePages"
        r"|FilePmdMapped|Hardware|Huge|Inactive|Kernel|Mapped|MemAvailable|MemFree|MemTotal|Mlocked|NFS"
        r"|Page|Percpu|[KS]Reclaimable|Shmem|Slab|SUnreclaim|Swap|Unevictable|Vmalloc|Write).*"
    )

    key: str | None = None
    kb: int | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> MeminfoEvent:
        value = _MEMINFO_VALUE.fullmatch(match.string.strip())
        if value is None:
            return cls(log_entry=match.string)
        return cls(log_entry=match.string, key=value.group("key"), kb=int(value.group("kb")))


_MEMORY_HEADER = (
    r"Memory: (?:4|8|64)k page,(?: system-wide)? physical (?P<physical>" + SIZE + r")[ ]?"
    r"\((?P<physical_free>" + SIZE + r") free\)"
    r"(?:, swap (?P<swap>" + SIZE + r")\((?P<swap_free>" + SIZE + r") free\))?"
)


@dataclass(frozen=True, slots=True)
class MemoryEvent(LogEvent):
    """``Memory: 4k page, physical 16266068k(1394728k free), swap ...``; sizes in bytes."""

    kind = EventKind.MEMORY
    pattern = re.compile(rf"(?:{_MEMORY_HEADER}|current process (?:commit charge|WorkingSet).*|TotalPageFile.*)")

    physical: int | None = None
    physical_free: int | None = None
    swap: int | None = None
    swap_free: int | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> MemoryEvent:
        def size(name: str) -> int | None:
            value = match.group(name)
            return parse_size(value) if value else None

        return cls(
            log_entry=match.string,
            physical=size("physical"),
            physical_free=size("physical_free"),
            swap=size("swap"),
            swap_free=size("swap_free"),
        )

    @property
    def is_header(self) -> bool:
        return self.physical is not None


# Heap summary lines the crash model reads sizes from.
YOUNG_GEN = re.compile(
    rf" (?P<gen>(?:def|par) new generation|PSYoungGen)[ ]{{1,6}}total (?P<total>{SIZE}), used (?P<used>{SIZE}).+"
)
OLD_GEN = re.compile(
    r" (?P<gen>concurrent mark-sweep generation|PSOldGen|ParOldGen|tenured generation)[ ]{1,7}"
    rf"total (?P<total>{SIZE}), used (?P<used>{SIZE}).+"
)
SHENANDOAH = re.compile(rf" (?P<total>{SIZE}) total, (?P<committed>{SIZE}) committed, (?P<used>{SIZE}) used")
G1 = re.compile(rf" garbage-first heap[ ]+total (?P<total>{SIZE}), used (?P<used>{SIZE}).+")
METASPACE = re.compile(
    rf" Metaspace[ ]{{1,7}}used (?P<used>{SIZE}), capacity (?P<capacity>{SIZE}), "
    rf"committed (?P<committed>{SIZE}), reserved (?P<reserved>{SIZE})"
)


def _ungrouped(regex: re.Pattern[str]) -> str:
    return re.sub(r"\(\?P<\w+>", "(?:", regex.pattern)


@dataclass(frozen=True, slots=True)
class HeapEvent(LogEvent):
    """``Heap:`` section and GC heap history."""

    kind = EventKind.HEAP
    pattern = re.compile(
        r"(?:Heap:|GC Heap History \(\d+ events\):|Collection set:|Reserved region:|Shenandoah Heap"
        rf"|{_ungrouped(YOUNG_GEN)}|{_ungrouped(OLD_GEN)}|{_ungrouped(SHENANDOAH)}|{_ungrouped(G1)}"
        rf"|{_ungrouped(METASPACE)}"
        rf"|[ ]{{2,3}}(?:class space|eden|from|object space|region size|the|to)| \d{{1,5}} x {SIZE} regions"
        rf"| - (?:\[|map)|\{{?Heap (?:after|before) GC|Status:|Event: {TIMESTAMP} GC heap (?:after|before)).*"
    )

    @property
    def is_header(self) -> bool:
        return self.log_entry == "Heap:"


@dataclass(frozen=True, slots=True)
class HeapAddressEvent(LogEvent):
    kind = EventKind.HEAP_ADDRESS
    pattern = re.compile(rf"[hH]eap address: {ADDRESS}, size: (?P<size>\d+) MB.*")

    size_mb: int = 0

    @classmethod
    def from_match(cls, match: re.Match[str]) -> HeapAddressEvent:
        return cls(log_entry=match.string, size_mb=int(match.group("size")))


@dataclass(frozen=True, slots=True)
class HeapRegionsEvent(LogEvent):
    kind = EventKind.HEAP_REGIONS
    pattern = re.compile(
        r"(?:Heap Regions:|AC   |BTE=|CP=|              HC=|R=|Region state:|ShenandoahBarrierSet|SN=|EU="
        r"|S=|T=|UWM=|\|).*"
    )


@dataclass(frozen=True, slots=True)
class MetaspaceEvent(LogEvent):
    kind = EventKind.METASPACE
    pattern = re.compile(
        r"(?:Metaspace:|[ ]+Both:|CDS:|[ ]+Class(?: space)?:|Chunk freelists:|CompressedClassSpaceSize:"
        r"|(?:Current|Initial) GC threshold|MaxMetaspaceSize:|MetaspaceReclaimPolicy:|No class space"
        r"|[ ]+Non-[cC]lass(?: space)?:|Usage:|Virtual space:"
        r"| - (?:commit_granule_(?:bytes|words)|enlarge_chunks_in_place|handle_deallocations"
        r"|new_chunks_are_fully_committed|uncommit_free_chunks|use_allocation_guard"
        r"|virtual_space_node_default_size):).*"
    )


@dataclass(frozen=True, slots=True)
class NativeMemoryTrackingEvent(LogEvent):
    kind = EventKind.NATIVE_MEMORY_TRACKING
    pattern = re.compile(
        r"(?:Native Memory Tracking:|-?[ ]*(?:\(arena=|Arena Chunk|\(classes|Class|Code|Compiler|GC|Internal"
        r"|Java Heap|Native Memory Tracking|\(malloc|\(mmap:|\(stack|Symbol|\(thread|Thread \(|Total: reserved"
        r"|\(tracking|Unknown)).*"
    )
