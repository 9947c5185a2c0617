"""MCP prompt registry.

Prompts are predefined conversation/workflow templates that the client can invoke explicitly.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP


def _format_severities(severities: Sequence[str] | str) -> str:
    """Return severities as a JSON array literal for prompt display."""
    if isinstance(severities, str):
        items = [s.strip().lower() for s in severities.split(",") if s.strip()]
    else:
        items = [str(s).strip().lower() for s in severities if str(s).strip()]
    if not items:
        return "[]"
    quoted = ", ".join(f'"{item}"' for item in items)
    return f"[{quoted}]"


def register_prompts(mcp: FastMCP) -> None:
    """Register prompt templates on the MCP server."""

    @mcp.prompt()
    def triage_crash_log(
        log_path: str,
        severities: Sequence[str] | str = ("error", "warn", "info"),
        max_stack_frames: int = 10,
    ) -> list[dict[str, Any]]:
        """Build a prompt for structured JVM crash triage."""
        severities_display = _format_severities(severities)
        call_block = "\n".join(
            [
                f"- log_path: {log_path}",
                f"- severities: {severities_display}",
                f"- max_stack_frames: {max_stack_frames}",
                "- include_report: true",
            ]
        )
        return [
            {
                "role": "system",
                "content": (
                    "You are a senior JVM support engineer. Explain fatal error logs "
                    "(hs_err_pid*.log) using only the evidence the tools return. "
                    "Do not invent details; if the evidence is insufficient, say so."
                ),
            },
            {
                "role": "user",
                "content": (
                    "Triage the crash using analyze_crash_log. Follow this workflow:\n"
                    "- Always call analyze_crash_log first with the parameters below.\n"
                    "- Severities must be a list of strings (JSON array), e.g. [\"error\", \"warn\"].\n"
                    "- Treat error findings as the likely cause; warn and info findings are context.\n"
                    "- Quote stack frames exactly as returned; do not fabricate frames.\n"
                    "- If the log is truncated or from a JDK before 8, state that clearly.\n\n"
                    "Call analyze_crash_log with:\n"
                    f"{call_block}\n\n"
                    "Return this structure:\n"
                    "1) Crash summary (JDK, OS, crashing thread, signal or error)\n"
                    "2) Evidence (top stack frames and the findings that support the diagnosis)\n"
                    "3) Likely cause (1-2 sentences; say 'Unknown' if unclear)\n"
                    "4) Next actions (2-4 bullets, e.g. upgrade, option changes, debug symbols)\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "Optional: if you need raw context, you can read the log via:",
                    },
                    {"type": "resource", "uri": f"file://{log_path}"},
                ],
            },
        ]

    @mcp.prompt()
    def create_bug_report(
        title: str,
        log_path: str,
        steps: str = "",
    ) -> list[dict[str, Any]]:
        """Build a prompt that produces a Markdown bug report for a JVM crash."""
        return [
            {
                "role": "system",
                "content": (
                    "Create a high-quality bug report in Markdown. Redact secrets, credentials, "
                    "or PII if present (for example in java_command or environment variables)."
                ),
            },
            {
                "role": "user",
                "content": (
                    f"Title: {title}\n\n"
                    "Please create a bug report with sections:\n"
                    "- Summary\n"
                    "- Environment (JDK release and vendor, OS, architecture; if missing, say 'unknown')\n"
                    "- Steps to Reproduce\n"
                    "- Expected vs Actual\n"
                    "- Crash Details (error, current thread, top stack frames)\n"
                    "- Analysis Findings\n"
                    "- Suggested Fix / Next Actions\n\n"
                    f"Steps provided:\n{steps}\n\n"
                    f"Use tool analyze_crash_log on {log_path} with include_report=true.\n"
                ),
            },
            {
                "role": "user",
                "content": [
                    {
                        "type": "text",
                        "text": "You may also cite lines from the log:",
                    },
                    {"type": "resource", "uri": f"file://{log_path}"},
                ],
            },
        ]
