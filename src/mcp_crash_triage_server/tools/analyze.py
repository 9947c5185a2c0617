"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into core calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Literal

from pydantic import BaseModel, Field

from mcp_crash_triage_server.core.analysis import Finding, Severity
from mcp_crash_triage_server.core.crash_service import CrashAnalysis, analyze_crash_log
from mcp_crash_triage_server.core.fatal_error_log import FatalErrorLog

ALL_SEVERITIES = [s.value for s in Severity]
DEFAULT_STACK_FRAMES = 10
HARD_STACK_FRAMES = 200


class FindingModel(BaseModel):
    code: str = Field(description="Dotted finding key, e.g. warn.jdk.not.latest.")
    severity: Literal["error", "warn", "info"] = Field(description="Finding severity.")
    message: str = Field(description="Human readable explanation and recommendation.")


class CrashSummary(BaseModel):
    log_name: str = Field(description="File name of the analysed crash log.")
    jdk_release: str = Field(description="JDK release string, or UNKNOWN.")
    java_vendor: str = Field(description="JDK vendor inferred from the build.")
    java_specification: str = Field(description="Java major version, e.g. JDK8.")
    os: str = Field(description="Operating system description from the log header.")
    arch: str = Field(description="CPU architecture.")
    application: str = Field(description="Application server detected from loaded jars.")
    crash_time: str | None = Field(default=None, description="When the JVM crashed.")
    elapsed_time: str | None = Field(default=None, description="How long the JVM ran before crashing.")
    current_thread: str | None = Field(default=None, description="Thread running at the time of the crash.")
    error: str = Field(default="", description="Crash error lines from the log header.")
    stack: list[str] = Field(default_factory=list, description="Top stack frames of the crashing thread.")
    stack_truncated: bool = Field(default=False, description="True when more frames exist than returned.")
    findings: list[FindingModel] = Field(default_factory=list)
    unidentified_line_count: int = Field(default=0, description="Lines no event type recognized.")
    report: str | None = Field(default=None, description="Full text report when requested.")


def _parse_severities(severities: Sequence[str] | None) -> set[Severity]:
    """Parse user-supplied severity names into Severity enums."""
    if not severities:
        return set(Severity)
    out: set[Severity] = set()
    for s in severities:
        name = s.strip().lower()
        if not name:
            continue
        try:
            out.add(Severity(name))
        except ValueError as e:
            valid = ", ".join(ALL_SEVERITIES)
            raise ValueError(
                f"Unknown severity '{s}'. Valid values: {valid}. "
                "Tip: severities is case-insensitive (e.g., 'error', 'WARN')."
            ) from e
    return out or set(Severity)


def _finding_to_model(finding: Finding) -> FindingModel:
    return FindingModel(code=finding.code.value, severity=finding.severity.value, message=finding.message)


def summarize(
    result: CrashAnalysis,
    *,
    severities: set[Severity],
    max_stack_frames: int,
    include_report: bool,
) -> CrashSummary:
    """Build the JSON-facing summary of one analysed crash log."""
    log: FatalErrorLog = result.log
    frames = log.stack_frames
    return CrashSummary(
        log_name=result.log_name,
        jdk_release=log.jdk_release_string,
        java_vendor=log.java_vendor.value,
        java_specification=log.java_specification.value,
        os=log.os_string,
        arch=log.arch.value,
        application=log.application.value,
        crash_time=log.crash_time or None,
        elapsed_time=log.elapsed_time,
        current_thread=log.current_thread,
        error=log.error,
        stack=frames[:max_stack_frames],
        stack_truncated=len(frames) > max_stack_frames,
        findings=[_finding_to_model(f) for f in result.findings if f.severity in severities],
        unidentified_line_count=len(log.unidentified_log_lines),
        report=result.report if include_report else None,
    )


async def analyze_crash_log_impl(
    *,
    log_path: str,
    severities: Sequence[str] | None = None,
    max_stack_frames: int | None = None,
    include_report: bool = False,
) -> dict[str, Any]:
    """Implementation for the `analyze_crash_log` MCP tool.

    Notes
    -----
    - severities filters the returned findings only; analysis always runs every rule
    - max_stack_frames defaults to 10 and is hard-capped
    """
    sev = _parse_severities(severities)
    if max_stack_frames is None:
        max_stack_frames = DEFAULT_STACK_FRAMES
    if max_stack_frames < 0:
        raise ValueError("max_stack_frames must be >= 0")
    max_stack_frames = min(max_stack_frames, HARD_STACK_FRAMES)

    result = await analyze_crash_log(log_path)
    summary = summarize(result, severities=sev, max_stack_frames=max_stack_frames, include_report=include_report)
    return summary.model_dump()
