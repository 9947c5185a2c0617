"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: callable actions (analyze a JVM fatal error log)
- Resources: addressable data blobs (finding codes, release catalogs, files)
- Prompts: reusable conversation templates that clients can invoke

Run locally (stdio):
    python -m mcp_crash_triage_server.server.log_server
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from mcp_crash_triage_server.prompts.registry import register_prompts
from mcp_crash_triage_server.resources.registry import register_resources
from mcp_crash_triage_server.tools.analyze import analyze_crash_log_impl

LOGGER = logging.getLogger(__name__)

LOG_LEVEL_ENV = "CRASH_TRIAGE_LOG_LEVEL"


def _configure_logging() -> None:
    """Configure a reasonable default logging setup.

    The MCP client typically captures stderr; keeping logs concise makes them easier to consume.
    """
    level_name = os.getenv(LOG_LEVEL_ENV, "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


mcp = FastMCP("crash-triage", json_response=True)

register_resources(mcp)
register_prompts(mcp)


@mcp.tool()
async def analyze_crash_log(
    log_path: str,
    severities: Sequence[str] | None = None,
    max_stack_frames: int | None = None,
    include_report: bool = False,
) -> dict[str, Any]:
    """Analyze a JVM fatal error log (hs_err_pid*.log) and return findings.

    Parameters
    ----------
    log_path:
        Path to a local fatal error log. Supports plain text and .gz.
    severities:
        Filter returned findings by severity (e.g., ["error", "warn"]). Case-insensitive.
        Default: all severities.
    max_stack_frames:
        Number of crashing-thread stack frames returned (default 10, hard-capped).
    include_report:
        Whether to include the full text report.

    Returns
    -------
    dict:
        Crash summary: JDK, OS, crash details, top stack frames and findings
        ({"code", "severity", "message"}).
    """
    return await analyze_crash_log_impl(
        log_path=log_path,
        severities=severities,
        max_stack_frames=max_stack_frames,
        include_report=include_report,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    _configure_logging()
    LOGGER.debug("Starting MCP server (transport=stdio)")
    _ = argv or sys.argv[1:]
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
