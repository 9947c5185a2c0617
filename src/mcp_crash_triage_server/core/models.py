"""Core enumerations and value types for fatal error log triage."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EventKind(str, Enum):
    """Kinds of fatal error log lines, in classification priority order."""

    BITS = "BITS"
    BLANK_LINE = "BLANK_LINE"
    CARD_TABLE = "CARD_TABLE"
    CLASSES_REDEFINED = "CLASSES_REDEFINED"
    CODE_CACHE = "CODE_CACHE"
    COMMAND_LINE = "COMMAND_LINE"
    COMPILATION = "COMPILATION"
    CONTAINER_INFO = "CONTAINER_INFO"
    CPU_INFO = "CPU_INFO"
    CURRENT_COMPILE_TASK = "CURRENT_COMPILE_TASK"
    CURRENT_THREAD = "CURRENT_THREAD"
    DEOPTIMIZATION_EVENT = "DEOPTIMIZATION_EVENT"
    DYNAMIC_LIBRARY = "DYNAMIC_LIBRARY"
    ELAPSED_TIME = "ELAPSED_TIME"
    END = "END"
    ENVIRONMENT_VARIABLES = "ENVIRONMENT_VARIABLES"
    EXCEPTION_COUNTS = "EXCEPTION_COUNTS"
    EXCEPTION_EVENT = "EXCEPTION_EVENT"
    GLOBAL_FLAGS = "GLOBAL_FLAGS"
    HEADER = "HEADER"
    HEADING = "HEADING"
    HEAP = "HEAP"
    HEAP_ADDRESS = "HEAP_ADDRESS"
    HEAP_REGIONS = "HEAP_REGIONS"
    HOST = "HOST"
    INSTRUCTIONS = "INSTRUCTIONS"
    LOAD_AVERAGE = "LOAD_AVERAGE"
    LOGGING = "LOGGING"
    MAX_MAP_COUNT = "MAX_MAP_COUNT"
    MEMINFO = "MEMINFO"
    MEMORY = "MEMORY"
    METASPACE = "METASPACE"
    NATIVE_MEMORY_TRACKING = "NATIVE_MEMORY_TRACKING"
    NUMBER = "NUMBER"
    OS = "OS"
    OS_UPTIME = "OS_UPTIME"
    PID_MAX = "PID_MAX"
    REGISTER = "REGISTER"
    RLIMIT = "RLIMIT"
    SIGINFO = "SIGINFO"
    SIGNAL_HANDLERS = "SIGNAL_HANDLERS"
    STACK = "STACK"
    THREAD = "THREAD"
    THREADS_MAX = "THREADS_MAX"
    TIME = "TIME"
    TIME_ELAPSED_TIME = "TIME_ELAPSED_TIME"
    TIMEZONE = "TIMEZONE"
    TOP_OF_STACK = "TOP_OF_STACK"
    TRANSPARENT_HUGEPAGE = "TRANSPARENT_HUGEPAGE"
    UNAME = "UNAME"
    VM_ARGUMENTS = "VM_ARGUMENTS"
    VM_EVENT = "VM_EVENT"
    VM_INFO = "VM_INFO"
    VM_MUTEX = "VM_MUTEX"
    VM_OPERATION = "VM_OPERATION"
    VM_STATE = "VM_STATE"
    UNKNOWN = "UNKNOWN"


class Arch(str, Enum):
    PPC64 = "PPC64"
    PPC64LE = "PPC64LE"
    SPARC = "SPARC"
    X86 = "X86"
    X86_64 = "X86_64"
    UNKNOWN = "UNKNOWN"


class CpuArch(str, Enum):
    POWER8 = "POWER8"
    POWER9 = "POWER9"
    UNKNOWN = "UNKNOWN"


class OsType(str, Enum):
    LINUX = "LINUX"
    SOLARIS = "SOLARIS"
    WINDOWS = "WINDOWS"
    UNKNOWN = "UNKNOWN"


class OsVendor(str, Enum):
    CENTOS = "CENTOS"
    MICROSOFT = "MICROSOFT"
    ORACLE = "ORACLE"
    REDHAT = "REDHAT"
    UNKNOWN = "UNKNOWN"


class OsVersion(str, Enum):
    CENTOS6 = "CENTOS6"
    CENTOS7 = "CENTOS7"
    CENTOS8 = "CENTOS8"
    RHEL6 = "RHEL6"
    RHEL7 = "RHEL7"
    RHEL8 = "RHEL8"
    UNKNOWN = "UNKNOWN"

    @property
    def major(self) -> int | None:
        """RHEL/CentOS major version (6, 7, 8), or None when unknown."""
        if self is OsVersion.UNKNOWN:
            return None
        return int(self.value[-1])


class JavaSpecification(str, Enum):
    JDK6 = "JDK6"
    JDK7 = "JDK7"
    JDK8 = "JDK8"
    JDK9 = "JDK9"
    JDK10 = "JDK10"
    JDK11 = "JDK11"
    JDK12 = "JDK12"
    JDK13 = "JDK13"
    JDK14 = "JDK14"
    JDK15 = "JDK15"
    JDK16 = "JDK16"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def from_release(cls, release: str | None) -> JavaSpecification:
        """Map a JDK release string ("1.8.0_275-b01", "11.0.10+9-LTS") to its specification."""
        if not release:
            return cls.UNKNOWN
        if release.startswith("1."):
            major = release.split(".")[1]
        else:
            major = release.split(".")[0].split("+")[0].split("-")[0]
        try:
            return cls(f"JDK{major}")
        except ValueError:
            return cls.UNKNOWN


LTS_SPECIFICATIONS = frozenset(
    {JavaSpecification.JDK6, JavaSpecification.JDK7, JavaSpecification.JDK8, JavaSpecification.JDK11}
)


class JavaVendor(str, Enum):
    ADOPTOPENJDK = "ADOPTOPENJDK"
    AZUL = "AZUL"
    ORACLE = "ORACLE"
    RED_HAT = "RED_HAT"
    UNKNOWN = "UNKNOWN"


class BuiltBy(str, Enum):
    """Account recorded in vm_info as the JDK builder."""

    BUILD = "build"
    EMPTY = ""
    JAVA_RE = "java_re"
    JENKINS = "jenkins"
    MACH5ONE = "mach5one"
    MOCKBUILD = "mockbuild"
    VSTS = "vsts"
    ZULU_RE = "zulu_re"
    UNKNOWN = "unknown"


class GarbageCollector(str, Enum):
    CMS = "CMS"
    G1 = "G1"
    PAR_NEW = "PAR_NEW"
    PARALLEL_OLD = "PARALLEL_OLD"
    PARALLEL_SCAVENGE = "PARALLEL_SCAVENGE"
    SERIAL = "SERIAL"
    SERIAL_OLD = "SERIAL_OLD"
    SHENANDOAH = "SHENANDOAH"
    UNKNOWN = "UNKNOWN"


class Device(str, Enum):
    AWS_BLOCK_STORAGE = "AWS_BLOCK_STORAGE"
    FIXED_DISK = "FIXED_DISK"
    NFS = "NFS"
    UNKNOWN = "UNKNOWN"


class SignalNumber(str, Enum):
    EXCEPTION_ACCESS_VIOLATION = "EXCEPTION_ACCESS_VIOLATION"
    SIGBUS = "SIGBUS"
    SIGILL = "SIGILL"
    SIGSEGV = "SIGSEGV"
    UNKNOWN = "UNKNOWN"


class SignalCode(str, Enum):
    BUS_ADRALN = "BUS_ADRALN"
    BUS_ADRERR = "BUS_ADRERR"
    BUS_OBJERR = "BUS_OBJERR"
    ILL_ILLOPN = "ILL_ILLOPN"
    SEGV_ACCERR = "SEGV_ACCERR"
    SEGV_MAPERR = "SEGV_MAPERR"
    SI_KERNEL = "SI_KERNEL"
    SI_USER = "SI_USER"
    UNKNOWN = "UNKNOWN"


class Application(str, Enum):
    JBOSS_EAP6 = "JBOSS_EAP6"
    JBOSS_EAP7 = "JBOSS_EAP7"
    TOMCAT = "TOMCAT"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True, slots=True)
class Release:
    """One JDK build in a release catalog."""

    build_date: datetime
    number: int  # ordinal within its catalog, increasing with newer builds
    version: str
