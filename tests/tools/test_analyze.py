from __future__ import annotations

from pathlib import Path

import pytest

from mcp_crash_triage_server.tools.analyze import analyze_crash_log_impl


@pytest.mark.asyncio
async def test_analyze_crash_log_impl_summary(tmp_path: Path, write_crash_log) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log", unidentified=2)

    out = await analyze_crash_log_impl(log_path=str(log))

    assert out["log_name"] == "hs_err_pid4242.log"
    assert out["jdk_release"] == "1.8.0_275-b01"
    assert out["java_vendor"] == "RED_HAT"
    assert out["java_specification"] == "JDK8"
    assert out["crash_time"] == "Mon Jan 25 10:00:00 2021 (UTC)"
    assert out["elapsed_time"] == "0d 0h 20m 34s"
    assert out["stack"][0] == "V  [libjvm.so+0x9a5d9c]"
    assert len(out["stack"]) == 10
    assert out["stack_truncated"] is True
    assert out["unidentified_line_count"] == 2
    assert out["report"] is None
    codes = [f["code"] for f in out["findings"]]
    assert "warn.jdk.not.latest" in codes
    assert "warn.unidentified.log.line.report" in codes


@pytest.mark.asyncio
async def test_analyze_crash_log_impl_severity_filter(tmp_path: Path, write_crash_log) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")

    out = await analyze_crash_log_impl(log_path=str(log), severities=["ERROR", " "])

    assert out["findings"]
    assert {f["severity"] for f in out["findings"]} == {"error"}


@pytest.mark.asyncio
async def test_analyze_crash_log_impl_stack_frames(tmp_path: Path, write_crash_log) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log", frames=5)

    out = await analyze_crash_log_impl(log_path=str(log), max_stack_frames=3)
    assert len(out["stack"]) == 3
    assert out["stack_truncated"] is True

    out = await analyze_crash_log_impl(log_path=str(log), max_stack_frames=500)
    assert len(out["stack"]) == 5
    assert out["stack_truncated"] is False


@pytest.mark.asyncio
async def test_analyze_crash_log_impl_includes_report(tmp_path: Path, write_crash_log) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")

    out = await analyze_crash_log_impl(log_path=str(log), include_report=True)

    assert out["report"].startswith("hs_err_pid4242.log\n")
    assert "ANALYSIS:" in out["report"]


@pytest.mark.asyncio
async def test_analyze_crash_log_impl_rejects_bad_input(tmp_path: Path, write_crash_log) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")

    with pytest.raises(ValueError, match="Unknown severity 'fatal'"):
        await analyze_crash_log_impl(log_path=str(log), severities=["fatal"])
    with pytest.raises(ValueError, match="max_stack_frames"):
        await analyze_crash_log_impl(log_path=str(log), max_stack_frames=-1)
    with pytest.raises(FileNotFoundError):
        await analyze_crash_log_impl(log_path=str(tmp_path / "missing.log"))
