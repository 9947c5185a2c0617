from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_crash_triage_server.cli import main


def test_cli_prints_report(tmp_path: Path, write_crash_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log", unidentified=1)

    main([str(log)])

    out = capsys.readouterr().out
    assert out.startswith("hs_err_pid4242.log\n")
    assert "1 UNIDENTIFIED LOG LINE(S):" in out


def test_cli_hides_unidentified_lines(tmp_path: Path, write_crash_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log", unidentified=1)

    main([str(log), "--no-unidentified"])

    assert "UNIDENTIFIED" not in capsys.readouterr().out


def test_cli_writes_output_file(tmp_path: Path, write_crash_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")
    report = tmp_path / "report.txt"

    main([str(log), "-o", str(report)])

    assert report.read_text(encoding="utf-8").startswith("hs_err_pid4242.log\n")
    assert capsys.readouterr().out.startswith(f"Report written to {report} (")


def test_cli_custom_release_catalog(tmp_path: Path, write_crash_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")
    entry = {"build_date": "2020-11-06T00:00:00", "number": 27, "version": "1.8.0_275-b01"}
    releases = tmp_path / "releases.json"
    releases.write_text(
        json.dumps(
            {
                "rhel7_amd64_jdk8_rpm": {
                    "LATEST": entry,
                    "java-1.8.0-openjdk-1.8.0.275.b01-0.el7_9.x86_64": entry,
                }
            }
        ),
        encoding="utf-8",
    )

    main([str(log), "--releases", str(releases)])

    assert "not the latest release" not in capsys.readouterr().out


def test_cli_missing_file_exits_2(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main([str(tmp_path / "missing.log")])

    assert exc.value.code == 2
    assert "Log file not found" in capsys.readouterr().err


def test_cli_bad_catalog_exits_2(tmp_path: Path, write_crash_log, capsys: pytest.CaptureFixture[str]) -> None:
    log = write_crash_log(tmp_path / "hs_err_pid4242.log")
    releases = tmp_path / "releases.json"
    releases.write_text(json.dumps({"rhel7_amd64_jdk8_rpm": {}}), encoding="utf-8")

    with pytest.raises(SystemExit) as exc:
        main([str(log), "--releases", str(releases)])

    assert exc.value.code == 2
    assert capsys.readouterr().err.startswith("Error: Release catalog")
