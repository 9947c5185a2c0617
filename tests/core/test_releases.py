from __future__ import annotations

import json
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path

import pytest

from mcp_crash_triage_server.core import releases
from mcp_crash_triage_server.core.crash_service import parse_lines
from mcp_crash_triage_server.core.models import Arch, JavaSpecification, OsType, OsVersion
from mcp_crash_triage_server.core.releases import ReleaseCatalog, default_catalog, jdk8_update_number


@pytest.fixture
def clear_catalog_cache() -> Iterator[None]:
    default_catalog.cache_clear()
    yield
    default_catalog.cache_clear()


def test_bundled_catalog_latest() -> None:
    catalog = default_catalog()
    assert "rhel7_amd64_jdk8_rpm" in catalog.names
    latest = catalog.latest("rhel7_amd64_jdk8_rpm")
    assert latest is not None
    assert latest.version == "1.8.0_282-b08"
    assert latest.number == 28
    assert latest.build_date == datetime(2021, 1, 18)


def test_lookup_unknown_catalog_is_empty() -> None:
    catalog = default_catalog()
    assert catalog.lookup("no_such_catalog", "LATEST") is None
    assert catalog.lookup(None, "LATEST") is None
    assert dict(catalog.releases("no_such_catalog")) == {}


def test_from_dict_requires_latest() -> None:
    with pytest.raises(ValueError, match="LATEST"):
        ReleaseCatalog.from_dict(
            {"rhel7_amd64_jdk8_rpm": {"x": {"build_date": "2021-01-18T00:00:00", "number": 1, "version": "v"}}}
        )


def test_from_dict_rejects_bad_entry() -> None:
    with pytest.raises(ValueError, match="Invalid release entry"):
        ReleaseCatalog.from_dict({"c": {"LATEST": {"build_date": "not a date", "number": 1, "version": "v"}}})


def test_from_file_missing(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Release catalog not found"):
        ReleaseCatalog.from_file(tmp_path / "missing.json")


def test_releases_file_env_override(tmp_path: Path, monkeypatch, clear_catalog_cache) -> None:
    path = tmp_path / "releases.json"
    path.write_text(
        json.dumps({"custom": {"LATEST": {"build_date": "2022-02-02T00:00:00", "number": 3, "version": "1.8.0_322-b06"}}}),
        encoding="utf-8",
    )
    monkeypatch.setenv("CRASH_TRIAGE_RELEASES_FILE", str(path))

    catalog = default_catalog()

    assert catalog.names == ["custom"]
    assert catalog.latest("custom").number == 3


def test_catalog_selection() -> None:
    assert (
        ReleaseCatalog.select_rpm_catalog(OsVersion.RHEL7, Arch.X86_64, JavaSpecification.JDK8)
        == "rhel7_amd64_jdk8_rpm"
    )
    assert (
        ReleaseCatalog.select_rpm_catalog(OsVersion.RHEL8, Arch.X86_64, JavaSpecification.JDK11)
        == "rhel8_amd64_jdk11_rpm"
    )
    assert ReleaseCatalog.select_rpm_catalog(OsVersion.UNKNOWN, Arch.X86_64, JavaSpecification.JDK8) is None
    assert ReleaseCatalog.select_zip_catalog(OsType.WINDOWS, JavaSpecification.JDK8) == "windows_jdk8"
    assert ReleaseCatalog.select_zip_catalog(OsType.SOLARIS, JavaSpecification.JDK8) is None


def test_rhel7_big_endian_power_catalog() -> None:
    name = ReleaseCatalog.select_rpm_catalog(OsVersion.RHEL7, Arch.PPC64, JavaSpecification.JDK8)
    assert name == "rhel7_ppc64_jdk8_rpm"

    catalog = default_catalog()
    latest = catalog.latest(name)
    assert latest is not None
    assert latest.version == "1.8.0_282-b08"
    release = catalog.lookup(name, "java-1.8.0-openjdk-1.8.0.275.b01-0.el7_9.ppc64")
    assert release is not None
    assert release.number == 27
    assert (
        ReleaseCatalog.select_rpm_catalog(OsVersion.RHEL7, Arch.PPC64LE, JavaSpecification.JDK8)
        == "rhel7_ppc64le_jdk8_rpm"
    )


def test_jdk8_update_number() -> None:
    assert jdk8_update_number("1.8.0_275-b01") == 275
    assert jdk8_update_number("11.0.10+9-LTS") is None
    assert jdk8_update_number(None) is None


def test_rpm_install_release_position(crash_log_text) -> None:
    log = parse_lines(crash_log_text().splitlines())

    assert releases.releases_for(log) == "rhel7_amd64_jdk8_rpm"
    assert releases.release_number(log) == 27
    assert releases.latest_release_number(log) == 28
    assert releases.release_date(log) == datetime(2020, 11, 6)
    assert releases.latest_release_string(log) == "1.8.0_282-b08"
    assert not releases.is_latest_release(log)


def test_linux_zip_install_is_latest(crash_log_text) -> None:
    text = crash_log_text(
        release="1.8.0_282-b08",
        vm_version="25.282-b08",
        built_on="Jan 18 2021 13:56:21",
        built_by="build",
        rpm_dir=None,
    )
    log = parse_lines(text.splitlines())

    assert log.is_rh_linux_zip_install
    assert releases.releases_for(log) == "rhel_jdk8_zip"
    assert releases.is_latest_release(log)


def test_non_red_hat_build_has_no_catalog(crash_log_text) -> None:
    text = crash_log_text(built_by="jenkins", built_on="Jan 21 2021 10:00:00", rpm_dir=None)
    log = parse_lines(text.splitlines())

    assert releases.releases_for(log) is None
    assert releases.latest_release(log) is None
    assert releases.is_latest_release(log)
    assert releases.release_number(log) == 0
