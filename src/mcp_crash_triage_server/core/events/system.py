"""Host, operating system and process-level lines."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import Arch, Device, EventKind, OsType, OsVendor, OsVersion, SignalCode, SignalNumber
from ..regex import (
    ADDRESS,
    AREA,
    DEVICE_IDS,
    FILE_OFFSET,
    INODE,
    MEMORY_REGION,
    PERMISSION,
    REGISTER,
)
from .base import LogEvent

_RHEL = re.compile(
    r"Red Hat Enterprise Linux (?:(?:Server|Workstation) )?(?:release )?(?P<major>[678])(?:\D.*)?"
)
_CENTOS = re.compile(r"CentOS(?: Linux)? (?:release )?(?P<major>[678])(?:\D.*)?")


@dataclass(frozen=True, slots=True)
class OsEvent(LogEvent):
    """``OS:`` header and the os-release lines that follow it."""

    kind = EventKind.OS
    pattern = re.compile(
        r'(?:OS:(?:PRETTY_NAME=")?(?P<os>.+?)"?'
        r"|[ ]*(?:Assembled|Copyright|ID|NAME|(?:BUG_REPORT|HOME|SUPPORT)_URL|VERSION(?:_(?:ID|CODENAME))?"
        r"|\[error occurred during error reporting \(printing OS information\)).+)"
    )

    os_string: str | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> OsEvent:
        os_string = match.group("os")
        return cls(log_entry=match.string, os_string=os_string.strip() if os_string else None)

    @property
    def is_header(self) -> bool:
        return self.os_string is not None

    @property
    def os_type(self) -> OsType:
        if not self.os_string:
            return OsType.UNKNOWN
        if "Linux" in self.os_string:
            return OsType.LINUX
        if self.os_string.startswith("Windows"):
            return OsType.WINDOWS
        if "Solaris" in self.os_string:
            return OsType.SOLARIS
        return OsType.UNKNOWN

    @property
    def os_vendor(self) -> OsVendor:
        if not self.os_string:
            return OsVendor.UNKNOWN
        if self.os_string.startswith("Red Hat"):
            return OsVendor.REDHAT
        if self.os_string.startswith("Windows"):
            return OsVendor.MICROSOFT
        if self.os_string.startswith("CentOS"):
            return OsVendor.CENTOS
        if "Oracle" in self.os_string:
            return OsVendor.ORACLE
        return OsVendor.UNKNOWN

    @property
    def os_version(self) -> OsVersion:
        if not self.os_string:
            return OsVersion.UNKNOWN
        m = _RHEL.fullmatch(self.os_string)
        if m:
            return OsVersion(f"RHEL{m.group('major')}")
        m = _CENTOS.fullmatch(self.os_string)
        if m:
            return OsVersion(f"CENTOS{m.group('major')}")
        return OsVersion.UNKNOWN


_UNAME_ARCH = (
    ("x86_64", Arch.X86_64),
    ("ppc64le", Arch.PPC64LE),
    ("ppc64", Arch.PPC64),
    ("sun4v", Arch.SPARC),
    ("i86pc", Arch.X86),
)

_UNAME_OS_VERSION = (
    (re.compile(r".+\.el6[._].+"), OsVersion.RHEL6),
    (re.compile(r".+\.el7[._].+"), OsVersion.RHEL7),
    (re.compile(r".+\.el8(?:_\d+)?\..+"), OsVersion.RHEL8),
)


@dataclass(frozen=True, slots=True)
class UnameEvent(LogEvent):
    kind = EventKind.UNAME
    pattern = re.compile(r"uname:(?P<uname>(?:Linux|SunOS) .+(?:i86pc|sun4v|ppc64(?:le)?|x86_64).*)")

    uname: str = ""

    @classmethod
    def from_match(cls, match: re.Match[str]) -> UnameEvent:
        return cls(log_entry=match.string, uname=match.group("uname"))

    @property
    def arch(self) -> Arch:
        for token, arch in _UNAME_ARCH:
            if token in self.uname:
                return arch
        return Arch.UNKNOWN

    @property
    def os_type(self) -> OsType:
        if self.uname.startswith("Linux"):
            return OsType.LINUX
        if self.uname.startswith("SunOS"):
            return OsType.SOLARIS
        return OsType.UNKNOWN

    @property
    def os_version(self) -> OsVersion:
        for regex, version in _UNAME_OS_VERSION:
            if regex.fullmatch(self.uname):
                return version
        return OsVersion.UNKNOWN


_CPU_KEYWORDS = (
    r"<Not Available>|\d{1,3}-\d{1,3}|address sizes|apicid|Available cpu frequencies"
    r"|(?:Available|Current) governors?|BIOS frequency limitation|bogomips|bugs|cache_alignment"
    r"|cache coherency line size|cache level|cache size|cache type|clflush size|clock|core id"
    r"|Core performance/turbo boost|cpu|cpu cores|cpu family|CPU Model and flags from /proc/cpuinfo"
    r"|cpuid level|cpu MHz|(?:Current|Maximum|Minimum) cpu frequency|flags|fpu|fpu_exception"
    r"|Frequency switch latency \(ns\)|initial apicid|machine|microcode|model|model name|MMU"
    r"|(?:Off|On)line cpus|performance|physical id|platform|power management|/proc/cpuinfo|processor"
    r"|revision|siblings|stepping|timebase|TLB size|vendor_id|wp"
)


@dataclass(frozen=True, slots=True)
class CpuInfoEvent(LogEvent):
    """``CPU:total 8 ...`` header and the /proc/cpuinfo dump."""

    kind = EventKind.CPU_INFO
    pattern = re.compile(rf"(?:CPU:[ ]?total (?P<cpus>\d{{1,3}}).*|(?:{_CPU_KEYWORDS}).*)")

    cpus: int | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> CpuInfoEvent:
        cpus = match.group("cpus")
        return cls(log_entry=match.string, cpus=int(cpus) if cpus else None)

    @property
    def is_header(self) -> bool:
        return self.cpus is not None


@dataclass(frozen=True, slots=True)
class HostEvent(LogEvent):
    kind = EventKind.HOST
    pattern = re.compile(r"Host: .+")


@dataclass(frozen=True, slots=True)
class LoadAverageEvent(LogEvent):
    kind = EventKind.LOAD_AVERAGE
    pattern = re.compile(r"load average:.+")


@dataclass(frozen=True, slots=True)
class OsUptimeEvent(LogEvent):
    kind = EventKind.OS_UPTIME
    pattern = re.compile(r"OS uptime:.+")


_MEMORY_LIMIT = re.compile(r"memory_limit_in_bytes: (?P<limit>\d+)")


@dataclass(frozen=True, slots=True)
class ContainerInfoEvent(LogEvent):
    kind = EventKind.CONTAINER_INFO
    pattern = re.compile(
        r"(?:container \(cgroup\) information:|active_processor|container_type|cpu_|KVM|memory_"
        r"|Steal ticks|VMWare virtualization detected).*"
    )

    @property
    def memory_limit(self) -> int | None:
        """cgroup memory limit in bytes, when this line reports one."""
        m = _MEMORY_LIMIT.fullmatch(self.log_entry.strip())
        return int(m.group("limit")) if m else None


_NPROC = re.compile(r"NPROC (?P<nproc>\w+)")


@dataclass(frozen=True, slots=True)
class RlimitEvent(LogEvent):
    kind = EventKind.RLIMIT
    pattern = re.compile(r"rlimit.+")

    @property
    def nproc(self) -> str | None:
        m = _NPROC.search(self.log_entry)
        return m.group("nproc") if m else None


@dataclass(frozen=True, slots=True)
class PidMaxEvent(LogEvent):
    kind = EventKind.PID_MAX
    pattern = re.compile(
        r"/proc/sys/kernel/pid_max \(system-wide limit on number of process identifiers\):(?: \d{1,10})?"
    )


@dataclass(frozen=True, slots=True)
class ThreadsMaxEvent(LogEvent):
    kind = EventKind.THREADS_MAX
    pattern = re.compile(r"/proc/sys/kernel/threads-max \(system-wide limit on the number of threads\):")


@dataclass(frozen=True, slots=True)
class MaxMapCountEvent(LogEvent):
    kind = EventKind.MAX_MAP_COUNT
    pattern = re.compile(
        r"/proc/sys/vm/max_map_count \(maximum number of memory map areas a process may have\):(?: \d{1,10})?"
    )


@dataclass(frozen=True, slots=True)
class TransparentHugepageEvent(LogEvent):
    kind = EventKind.TRANSPARENT_HUGEPAGE
    pattern = re.compile(r"(?:/sys/kernel/mm/transparent_hugepage/|\[?always\]? ).+")


@dataclass(frozen=True, slots=True)
class DynamicLibraryEvent(LogEvent):
    """``Dynamic libraries:`` map entries: region, permissions, device, inode, file."""

    kind = EventKind.DYNAMIC_LIBRARY
    pattern = re.compile(
        r"(?:Dynamic libraries:"
        rf"|(?:{MEMORY_REGION}|{ADDRESS})"
        rf"(?: {PERMISSION} {FILE_OFFSET} (?P<device>{DEVICE_IDS}) {INODE})?"
        rf"(?:[ ]+(?P<path>{AREA}|.+))?"
        r"|(?:dbghelp|symbol engine):.+)"
    )

    device_ids: str | None = None
    file_path: str | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> DynamicLibraryEvent:
        path = match.group("path")
        return cls(
            log_entry=match.string,
            device_ids=match.group("device"),
            file_path=path.strip() if path else None,
        )

    @property
    def is_header(self) -> bool:
        return self.log_entry.startswith("Dynamic libraries:")

    @property
    def device(self) -> Device:
        if self.device_ids is None:
            return Device.UNKNOWN
        if self.device_ids.startswith("fd:"):
            return Device.FIXED_DISK
        if self.device_ids == "103:03":
            return Device.AWS_BLOCK_STORAGE
        if re.fullmatch(r"00:\d\d", self.device_ids):
            return Device.NFS
        return Device.UNKNOWN


_WINDOWS_ACCESS_VIOLATION = "0xc0000005"


@dataclass(frozen=True, slots=True)
class SigInfoEvent(LogEvent):
    """``siginfo:`` line: signal number and code plus the faulting address."""

    kind = EventKind.SIGINFO
    pattern = re.compile(
        r"siginfo: (?:si_signo: \d{1,2} \((?P<signal>SIGBUS|SIGILL|SIGSEGV)\), "
        r"si_code: \d{1,3} \((?P<code>BUS_ADRALN|BUS_ADRERR|BUS_OBJERR|ILL_ILLOPN|SEGV_ACCERR"
        r"|SEGV_MAPERR|SI_KERNEL|SI_USER)\), "
        rf"(?:si_addr: (?P<address>{ADDRESS})|sent from pid: \d+ \(uid: \d+\))"
        rf"|ExceptionCode=(?P<exception_code>{ADDRESS}), reading address (?P<reading_address>{ADDRESS}))"
    )

    signal_number: SignalNumber = SignalNumber.UNKNOWN
    signal_code: SignalCode = SignalCode.UNKNOWN
    signal_address: str | None = None

    @classmethod
    def from_match(cls, match: re.Match[str]) -> SigInfoEvent:
        if match.group("signal"):
            return cls(
                log_entry=match.string,
                signal_number=SignalNumber(match.group("signal")),
                signal_code=SignalCode(match.group("code")),
                signal_address=match.group("address"),
            )
        number = SignalNumber.UNKNOWN
        if match.group("exception_code") == _WINDOWS_ACCESS_VIOLATION:
            number = SignalNumber.EXCEPTION_ACCESS_VIOLATION
        return cls(
            log_entry=match.string,
            signal_number=number,
            signal_address=match.group("reading_address"),
        )


@dataclass(frozen=True, slots=True)
class RegisterEvent(LogEvent):
    kind = EventKind.REGISTER
    pattern = re.compile(
        rf"(?:Registers:|{REGISTER}[, ] {REGISTER}(?:[, ])?(?: {REGISTER})?(?:, {REGISTER})?"
        rf"|[ ]+TRAPNO={ADDRESS})[ ]*"
    )


_HEX_WORD = r"[0-9a-f]{2}[ ]?[0-9a-f]{2}[ ]?[0-9a-f]{2}[ ]?[0-9a-f]{2}"


@dataclass(frozen=True, slots=True)
class InstructionsEvent(LogEvent):
    kind = EventKind.INSTRUCTIONS
    pattern = re.compile(
        rf"(?:Instructions: \(pc={ADDRESS}\)|{ADDRESS}:(?:[ ]{{3}}{_HEX_WORD}(?: {_HEX_WORD}){{0,3}})?)[ ]*"
    )


@dataclass(frozen=True, slots=True)
class TopOfStackEvent(LogEvent):
    kind = EventKind.TOP_OF_STACK
    pattern = re.compile(rf"(?:Top of Stack: \(sp={ADDRESS}\)|{ADDRESS}:   {ADDRESS} {ADDRESS}[ ]?)")
