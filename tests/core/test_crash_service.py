from __future__ import annotations

from pathlib import Path

import pytest

from mcp_crash_triage_server.core.analysis import Analysis, JsonMessageResolver
from mcp_crash_triage_server.core.crash_service import analyze_crash_log, parse_crash_log, parse_lines
from mcp_crash_triage_server.core.events import CompositeMatcher, EndEvent, RegexMatcher


@pytest.mark.asyncio
async def test_parse_plain_log(tmp_path: Path, write_crash_log) -> None:
    path = write_crash_log(tmp_path / "hs_err_pid4242.log", unidentified=2)

    log = await parse_crash_log(path)

    assert log.jdk_release_string == "1.8.0_275-b01"
    assert len(log.stack_frames) == 15
    assert log.unidentified_log_lines == ["zzz unrecognized line 1", "zzz unrecognized line 2"]


@pytest.mark.asyncio
async def test_parse_gzip_log(tmp_path: Path, write_gz_crash_log) -> None:
    path = write_gz_crash_log(tmp_path / "hs_err_pid4242.log.gz")

    log = await parse_crash_log(path)

    assert log.jdk_release_string == "1.8.0_275-b01"
    assert log.crash_time == "Mon Jan 25 10:00:00 2021 (UTC)"


@pytest.mark.asyncio
async def test_missing_log(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Log file not found"):
        await parse_crash_log(tmp_path / "nope.log")


@pytest.mark.asyncio
async def test_file_and_line_parsing_agree(tmp_path: Path, write_crash_log, crash_log_text) -> None:
    path = write_crash_log(tmp_path / "hs_err_pid4242.log", unidentified=1)

    from_file = await parse_crash_log(path)
    from_lines = parse_lines(crash_log_text(unidentified=1).splitlines())

    assert from_file.stack_frames == from_lines.stack_frames
    assert from_file.unidentified_log_lines == from_lines.unidentified_log_lines
    assert from_file.heap_max == from_lines.heap_max


@pytest.mark.asyncio
async def test_analyze_crash_log(tmp_path: Path, write_crash_log) -> None:
    path = write_crash_log(tmp_path / "hs_err_pid4242.log")

    result = await analyze_crash_log(path)

    assert result.log_name == "hs_err_pid4242.log"
    assert Analysis.WARN_JDK_NOT_LATEST in result.codes
    assert {f.code for f in result.findings} == set(result.codes)
    assert result.report.startswith("hs_err_pid4242.log\n")


@pytest.mark.asyncio
async def test_analyze_with_custom_resolver(tmp_path: Path, write_crash_log) -> None:
    path = write_crash_log(tmp_path / "hs_err_pid4242.log")
    resolver = JsonMessageResolver(templates={"warn.jdk.not.latest": "Upgrade to {latest_release}."})

    result = await analyze_crash_log(path, resolver=resolver)

    messages = {f.code: f.message for f in result.findings}
    assert messages[Analysis.WARN_JDK_NOT_LATEST] == "Upgrade to 1.8.0_282-b08."
    assert messages[Analysis.ERROR_LIBJVM_SO] == "error.libjvm.so"
    assert "*Upgrade to 1.8.0_282-b08." in result.report.splitlines()


@pytest.mark.asyncio
async def test_file_and_line_parsing_share_matcher(tmp_path: Path) -> None:
    lines = ["END.", "vm_info: not recognised by this matcher", "END."]
    path = tmp_path / "hs_err_pid1.log"
    path.write_bytes(("\r\n".join(lines) + "\r\n").encode("utf-8"))
    matcher = CompositeMatcher(matchers=(RegexMatcher(EndEvent),))

    from_file = await parse_crash_log(path, matcher=matcher)
    from_lines = parse_lines([line + "\r\n" for line in lines], matcher=matcher)

    assert from_file.unidentified_log_lines == ["vm_info: not recognised by this matcher"]
    assert from_lines.unidentified_log_lines == from_file.unidentified_log_lines
    assert from_file.vm_info_event is None
