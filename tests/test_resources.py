from __future__ import annotations

import gzip
from pathlib import Path

import pytest

from mcp_crash_triage_server.core.crash_service import parse_lines
from mcp_crash_triage_server.prompts.registry import _format_severities
from mcp_crash_triage_server.resources import registry


@pytest.fixture
def base_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv(registry.BASE_DIR_ENV, str(tmp_path))
    return tmp_path


def test_resource_path_must_stay_under_base_dir(base_dir: Path) -> None:
    with pytest.raises(ValueError, match="escapes base dir"):
        registry._safe_resolve("../outside.log")


def test_resource_path_suffix_allowlist(base_dir: Path) -> None:
    (base_dir / "hs_err_pid1.log").write_text("x\n", encoding="utf-8")
    (base_dir / "core.bin").write_bytes(b"\x00")

    assert registry._resolve_resource_path("hs_err_pid1.log") == (base_dir / "hs_err_pid1.log").resolve()
    with pytest.raises(ValueError, match="File type not allowed"):
        registry._resolve_resource_path("core.bin")
    with pytest.raises(FileNotFoundError, match="File not found"):
        registry._resolve_resource_path("missing.log")


def test_gzip_resource_is_decompressed(base_dir: Path) -> None:
    path = base_dir / "hs_err_pid1.log.gz"
    with gzip.open(path, "wt", encoding="utf-8") as f:
        f.write("END.\n")

    resolved = registry._resolve_resource_path("hs_err_pid1.log.gz")

    assert registry._open_text(resolved) == "END.\n"


def test_sample_log_parses() -> None:
    log = parse_lines(registry.SAMPLE_LOG.splitlines())

    assert log.jdk_release_string == "1.8.0_275-b01"
    assert not log.is_truncated
    assert log.stack_frames == ["V  [libjvm.so+0x9a5d9c]", "j  java.lang.Thread.run()V+11"]
    assert log.unidentified_log_lines == []


def test_analysis_codes_resource() -> None:
    codes = registry.analysis_codes()

    assert codes["warn.jdk.not.latest"]["severity"] == "warn"
    assert "{latest_release}" in codes["warn.jdk.not.latest"]["template"]


def test_release_catalogs_resource() -> None:
    catalogs = registry.release_catalogs()

    assert catalogs["rhel7_amd64_jdk8_rpm"]["version"] == "1.8.0_282-b08"
    assert catalogs["rhel7_amd64_jdk8_rpm"]["number"] == "28"


@pytest.mark.parametrize(
    ("severities", "expected"),
    [
        (("error", "warn"), '["error", "warn"]'),
        ("ERROR, info", '["error", "info"]'),
        ("", "[]"),
    ],
)
def test_format_severities(severities, expected: str) -> None:
    assert _format_severities(severities) == expected
