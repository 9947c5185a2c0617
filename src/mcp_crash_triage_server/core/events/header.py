"""Header, heading and structural lines."""

from __future__ import annotations

import re
from dataclasses import dataclass

from ..models import EventKind
from ..regex import RELEASE_STRING
from .base import LogEvent

_SIGNAL_NUMBER = re.compile(r"#  (?:SIGBUS|SIGILL|SIGSEGV|EXCEPTION_ACCESS_VIOLATION).+")
_PROBLEMATIC_FRAME = re.compile(r"# (?:C  |J |j  |v  |V  ).+")
_VM_FRAME = re.compile(r"# V  .+")
_DEBUG_SYMBOLS = re.compile(r"# V  \[.+\].+")
_INTERNAL_ERROR = re.compile(r"#  Internal Error.+")
_ERROR = re.compile(r"#  Error:.+")
_FAILED = re.compile(r"#.+failed.+")
_INSUFFICIENT = re.compile(r"#.+insufficient.+")
_OUT_OF = re.compile(r"#.+Out of.+")
_JAVA_VM = re.compile(r"# Java VM:.+")
_JRE_VERSION = re.compile(rf"# JRE version:.+\(build (?P<release>{RELEASE_STRING})\)")


@dataclass(frozen=True, slots=True)
class HeaderEvent(LogEvent):
    """A "#" line from the summary block at the top of the log."""

    kind = EventKind.HEADER
    pattern = re.compile(r"#.*")

    @property
    def is_signal_number(self) -> bool:
        return _SIGNAL_NUMBER.fullmatch(self.log_entry) is not None

    @property
    def is_problematic_frame(self) -> bool:
        return _PROBLEMATIC_FRAME.fullmatch(self.log_entry) is not None

    @property
    def is_vm_frame(self) -> bool:
        return _VM_FRAME.fullmatch(self.log_entry) is not None

    @property
    def has_debug_symbols(self) -> bool:
        """True when the VM frame carries a symbol after the library name."""
        return _DEBUG_SYMBOLS.fullmatch(self.log_entry) is not None

    @property
    def is_internal_error(self) -> bool:
        return _INTERNAL_ERROR.fullmatch(self.log_entry) is not None

    @property
    def is_error(self) -> bool:
        return _ERROR.fullmatch(self.log_entry) is not None

    @property
    def is_failed(self) -> bool:
        return _FAILED.fullmatch(self.log_entry) is not None

    @property
    def is_insufficient(self) -> bool:
        return _INSUFFICIENT.fullmatch(self.log_entry) is not None

    @property
    def is_out_of(self) -> bool:
        return _OUT_OF.fullmatch(self.log_entry) is not None

    @property
    def is_java_vm(self) -> bool:
        return _JAVA_VM.fullmatch(self.log_entry) is not None

    @property
    def is_jre_version(self) -> bool:
        return self.log_entry.startswith("# JRE version:")

    @property
    def jre_release_string(self) -> str | None:
        """Release string from "# JRE version: ... (build 1.8.0_275-b01)"."""
        m = _JRE_VERSION.fullmatch(self.log_entry)
        return m.group("release") if m else None

    @property
    def describes_error(self) -> bool:
        """True for header lines that make up the crash error summary."""
        return (
            self.is_signal_number
            or self.is_internal_error
            or self.is_error
            or self.is_failed
            or self.is_insufficient
            or self.is_out_of
            or self.is_problematic_frame
        )


@dataclass(frozen=True, slots=True)
class HeadingEvent(LogEvent):
    kind = EventKind.HEADING
    pattern = re.compile(
        r"(?:-{15}  (?:T H R E A D|P R O C E S S|S U M M A R Y|S Y S T E M)[ ]{1,2}-{12,15}"
        r"| -{19} |-{70}|-{80})"
    )


@dataclass(frozen=True, slots=True)
class BlankLineEvent(LogEvent):
    kind = EventKind.BLANK_LINE
    pattern = re.compile(r"\s*")


@dataclass(frozen=True, slots=True)
class NumberEvent(LogEvent):
    kind = EventKind.NUMBER
    pattern = re.compile(r"\d+")


@dataclass(frozen=True, slots=True)
class EndEvent(LogEvent):
    kind = EventKind.END
    pattern = re.compile(r"END\.")
