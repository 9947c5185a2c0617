"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

import asyncio
import gzip
import os
from pathlib import Path

from mcp.server.fastmcp import FastMCP

from mcp_crash_triage_server.core.analysis import Analysis, default_resolver
from mcp_crash_triage_server.core.releases import default_catalog

ALLOWED_FILE_SUFFIXES = {".log", ".txt"}
BASE_DIR_ENV = "CRASH_TRIAGE_BASE_DIR"
TEXT_ENCODING = "utf-8"
TEXT_ERRORS = "replace"

SAMPLE_LOG = """\
#
# A fatal error has been detected by the Java Runtime Environment:
#
#  SIGSEGV (0xb) at pc=0x00007f0b3c9a5d9c, pid=4242, tid=0x00007f0b1a0f6700
#
# JRE version: OpenJDK Runtime Environment (8.0_275-b01) (build 1.8.0_275-b01)
# Java VM: OpenJDK 64-Bit Server VM (25.275-b01 mixed mode linux-amd64 compressed oops)
# Problematic frame:
# V  [libjvm.so+0x9a5d9c]
#

---------------  T H R E A D  ---------------

Current thread (0x00007f0b3401e000):  JavaThread "main" [_thread_in_vm, id=4243, stack(0x00007f0b1a000000,0x00007f0b1a100000)]

siginfo: si_signo: 11 (SIGSEGV), si_code: 1 (SEGV_MAPERR), si_addr: 0x0000000000000000

Stack: [0x00007f0b1a000000,0x00007f0b1a100000],  sp=0x00007f0b1a0f4d30,  free space=979k
Native frames: (J=compiled Java code, j=interpreted, Vv=VM code, C=native code)
V  [libjvm.so+0x9a5d9c]
j  java.lang.Thread.run()V+11

---------------  P R O C E S S  ---------------

Java Threads: ( => current thread )
=>0x00007f0b3401e000 JavaThread "main" [_thread_in_vm, id=4243, stack(0x00007f0b1a000000,0x00007f0b1a100000)]

7f0b3c000000-7f0b3cd13000 r-xp 00000000 fd:00 1234567                    \
/usr/lib/jvm/java-1.8.0-openjdk-1.8.0.275.b01-0.el7_9.x86_64/jre/lib/amd64/server/libjvm.so

VM Arguments:
jvm_args: -Xms1024m -Xmx1024m
java_command: com.example.Main

---------------  S Y S T E M  ---------------

OS:Red Hat Enterprise Linux Server release 7.9 (Maipo)

uname:Linux 3.10.0-1160.el7.x86_64 #1 SMP Tue Aug 18 14:50:17 EDT 2020 x86_64

CPU:total 8 (initial active 8) (4 cores per cpu, 2 threads per core) family 6 model 85 stepping 4

Memory: 4k page, physical 16266068k(1394728k free), swap 8388604k(8388604k free)

vm_info: OpenJDK 64-Bit Server VM (25.275-b01) for linux-amd64 JRE (1.8.0_275-b01), \
built on Nov  6 2020 00:00:00 by "mockbuild" with gcc 4.8.5 20150623 (Red Hat 4.8.5-44)

time: Mon Jan 25 10:00:00 2021
timezone: UTC
elapsed time: 1234.567890 seconds (0d 0h 20m 34s)
"""


def _base_dir() -> Path:
    """Return the resolved base directory for file resources."""
    raw = os.getenv(BASE_DIR_ENV, os.getcwd())
    return Path(raw).resolve()


def _safe_resolve(path: str) -> Path:
    """Resolve a path under the configured base directory."""
    base = _base_dir()
    p = Path(path).expanduser()
    if not p.is_absolute():
        p = base / p
    p = p.resolve()
    if base not in p.parents and p != base:
        raise ValueError("Path escapes base dir")
    return p


def _allowed_suffix(path: Path) -> str:
    """Return the effective suffix for allowlist checks."""
    suffix = path.suffix.lower()
    if suffix == ".gz":
        suffix = path.with_suffix("").suffix.lower()
    return suffix


def _ensure_allowed_suffix(path: Path) -> None:
    suffix = _allowed_suffix(path)
    if suffix not in ALLOWED_FILE_SUFFIXES:
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        raise ValueError(f"File type not allowed. Allowed: {allowed}.")


def _resolve_resource_path(path: str) -> Path:
    """Resolve and validate a resource file path."""
    resolved = _safe_resolve(path)
    if not resolved.is_file():
        raise FileNotFoundError(f"File not found: {resolved}")
    _ensure_allowed_suffix(resolved)
    return resolved


def _open_text(path: Path) -> str:
    """Read text from a file, supporting optional gzip compression."""
    if path.suffix.lower() == ".gz":
        with gzip.open(path, mode="rt", encoding=TEXT_ENCODING, errors=TEXT_ERRORS) as f:
            return f.read()
    return path.read_text(encoding=TEXT_ENCODING, errors=TEXT_ERRORS)


def analysis_codes() -> dict[str, dict[str, str]]:
    """Every finding code with its severity and message template."""
    resolver = default_resolver()
    return {
        code.key: {"severity": code.severity.value, "template": resolver.templates.get(code.key, "")}
        for code in Analysis
    }


def release_catalogs() -> dict[str, dict[str, str]]:
    """Latest known release per catalog."""
    catalog = default_catalog()
    out: dict[str, dict[str, str]] = {}
    for name in catalog.names:
        latest = catalog.latest(name)
        if latest is None:
            continue
        out[name] = {
            "version": latest.version,
            "number": str(latest.number),
            "build_date": latest.build_date.isoformat(),
        }
    return out


def register_resources(mcp: FastMCP) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://crash-triage/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        allowed = ", ".join(sorted(ALLOWED_FILE_SUFFIXES))
        base = _base_dir()
        return (
            "Resources:\n"
            "- app://crash-triage/help\n"
            "- app://crash-triage/analysis-codes\n"
            "- app://crash-triage/releases\n"
            "- app://crash-triage/examples/sample-log\n"
            f"- file://{{path}} (restricted to {BASE_DIR_ENV}; allowed: {allowed}, .gz)\n"
            f"\nBase directory: {base}\n"
        )

    @mcp.resource("app://crash-triage/examples/sample-log")
    def sample_log() -> str:
        """Return a small fatal error log for demos and tests."""
        return SAMPLE_LOG

    @mcp.resource("app://crash-triage/analysis-codes")
    def analysis_codes_resource() -> dict[str, dict[str, str]]:
        """Return every finding code the analysis can report."""
        return analysis_codes()

    @mcp.resource("app://crash-triage/releases")
    def releases_resource() -> dict[str, dict[str, str]]:
        """Return the latest release known for each release catalog."""
        return release_catalogs()

    @mcp.resource("file://{path}")
    async def read_file(path: str) -> str:
        """Read a text file from within CRASH_TRIAGE_BASE_DIR."""
        p = _resolve_resource_path(path)
        return await asyncio.to_thread(_open_text, p)
