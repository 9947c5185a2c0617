"""Reading, parsing and analysing crash log files.

This module is the integration point between the file system and the crash
model: it streams a log line by line into a ``FatalErrorLog`` and runs the
analysis over the result.
"""

from __future__ import annotations

import gzip
import logging
from collections.abc import Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path

import aiofiles
from aiofiles.threadpool import wrap

from .analysis import Analysis, Finding, MessageResolver, analyze, findings
from .events import CompositeMatcher, default_matcher
from .fatal_error_log import FatalErrorLog
from .releases import ReleaseCatalog
from .report import render_report

LOGGER = logging.getLogger(__name__)


@asynccontextmanager
async def _open_text(path: Path, *, encoding: str, decode_errors: str):
    """Open a crash log for async text reading (plain or gzip)."""
    if path.suffix.lower() == ".gz":
        f = gzip.open(path, mode="rt", encoding=encoding, errors=decode_errors)
        af = wrap(f)
        try:
            yield af
        finally:
            await af.close()
    else:
        async with aiofiles.open(path, encoding=encoding, errors=decode_errors) as f:
            yield f


def _absorb_line(log: FatalErrorLog, matcher: CompositeMatcher, line: str) -> None:
    log.absorb(matcher.identify(line.rstrip("\r\n")))


def parse_lines(
    lines: Iterable[str],
    *,
    catalog: ReleaseCatalog | None = None,
    matcher: CompositeMatcher | None = None,
) -> FatalErrorLog:
    """Build a crash model from an iterable of already-read lines."""
    matcher = matcher or default_matcher()
    log = FatalErrorLog(catalog=catalog)
    for line in lines:
        _absorb_line(log, matcher, line)
    return log


async def parse_crash_log(
    path: str | Path,
    *,
    catalog: ReleaseCatalog | None = None,
    matcher: CompositeMatcher | None = None,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> FatalErrorLog:
    """Read ``path`` line by line into a ``FatalErrorLog``.

    Gzip compressed logs (``.gz``) are decompressed transparently. Lines go
    through the same classification as ``parse_lines``.
    """
    path = Path(path).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f"Log file not found: {path}")

    matcher = matcher or default_matcher()
    log = FatalErrorLog(catalog=catalog)
    line_count = 0
    async with _open_text(path, encoding=encoding, decode_errors=decode_errors) as f:
        async for line in f:
            _absorb_line(log, matcher, line)
            line_count += 1
    LOGGER.debug(
        "Parsed %d line(s) from %s (%d unidentified)", line_count, path, len(log.unidentified_log_lines)
    )
    return log


@dataclass(frozen=True, slots=True)
class CrashAnalysis:
    """Everything produced for one crash log."""

    log_name: str
    log: FatalErrorLog
    codes: list[Analysis] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)
    report: str = ""


async def analyze_crash_log(
    path: str | Path,
    *,
    catalog: ReleaseCatalog | None = None,
    resolver: MessageResolver | None = None,
    show_unidentified: bool = True,
    encoding: str = "utf-8",
    decode_errors: str = "replace",
) -> CrashAnalysis:
    """Parse, analyse and render the crash log at ``path``."""
    log = await parse_crash_log(path, catalog=catalog, encoding=encoding, decode_errors=decode_errors)
    codes = analyze(log)
    rendered = findings(log, codes, resolver)
    log_name = Path(path).name
    report = render_report(log, rendered, log_name=log_name, show_unidentified=show_unidentified)
    LOGGER.info("Analysed %s: %d finding(s)", log_name, len(codes))
    return CrashAnalysis(log_name=log_name, log=log, codes=codes, findings=rendered, report=report)
