"""Red Hat OpenJDK release catalogs.

Each catalog maps a build key (an rpm directory name or a zip release string)
to a ``Release``. Every catalog carries a ``LATEST`` entry naming the newest
build it knows about. Catalogs are loaded once from ``data/releases.json``
(or the file named by ``CRASH_TRIAGE_RELEASES_FILE``) and never mutated.
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from .models import Arch, JavaSpecification, JavaVendor, OsType, OsVersion, Release

if TYPE_CHECKING:
    from .fatal_error_log import FatalErrorLog

LOGGER = logging.getLogger(__name__)

RELEASES_FILE_ENV = "CRASH_TRIAGE_RELEASES_FILE"
DEFAULT_RELEASES_FILE = Path(__file__).resolve().parent.parent / "data" / "releases.json"
LATEST = "LATEST"

_JDK8_UPDATE = re.compile(r"1\.8\.0_(?P<update>\d+).*")

# (OS major version, Java specification, arch) -> rpm catalog. Arch None matches any arch.
_RPM_CATALOGS: dict[tuple[int, JavaSpecification, Arch | None], str] = {
    (6, JavaSpecification.JDK8, None): "rhel6_amd64_jdk8_rpm",
    (7, JavaSpecification.JDK8, Arch.X86_64): "rhel7_amd64_jdk8_rpm",
    (7, JavaSpecification.JDK8, Arch.PPC64): "rhel7_ppc64_jdk8_rpm",
    (7, JavaSpecification.JDK8, Arch.PPC64LE): "rhel7_ppc64le_jdk8_rpm",
    (8, JavaSpecification.JDK8, Arch.X86_64): "rhel8_amd64_jdk8_rpm",
    (8, JavaSpecification.JDK8, Arch.PPC64LE): "rhel8_ppc64le_jdk8_rpm",
    (7, JavaSpecification.JDK11, None): "rhel7_amd64_jdk11_rpm",
    (8, JavaSpecification.JDK11, None): "rhel8_amd64_jdk11_rpm",
}

_ZIP_CATALOGS: dict[tuple[OsType, JavaSpecification], str] = {
    (OsType.LINUX, JavaSpecification.JDK8): "rhel_jdk8_zip",
    (OsType.LINUX, JavaSpecification.JDK11): "rhel_jdk11_zip",
    (OsType.WINDOWS, JavaSpecification.JDK8): "windows_jdk8",
    (OsType.WINDOWS, JavaSpecification.JDK11): "windows_jdk11",
}


def _parse_release(key: str, raw: Mapping[str, Any]) -> Release:
    try:
        return Release(
            build_date=datetime.fromisoformat(raw["build_date"]),
            number=int(raw["number"]),
            version=str(raw["version"]),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid release entry {key!r}: {e}") from e


@dataclass(frozen=True, slots=True)
class ReleaseCatalog:
    """Read-only collection of named release catalogs."""

    catalogs: Mapping[str, Mapping[str, Release]]

    @classmethod
    def from_dict(cls, data: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> ReleaseCatalog:
        catalogs: dict[str, Mapping[str, Release]] = {}
        for name, entries in data.items():
            releases = {key: _parse_release(key, raw) for key, raw in entries.items()}
            if LATEST not in releases:
                raise ValueError(f"Release catalog {name!r} has no {LATEST} entry")
            catalogs[name] = MappingProxyType(releases)
        return cls(catalogs=MappingProxyType(catalogs))

    @classmethod
    def from_file(cls, path: Path) -> ReleaseCatalog:
        if not path.is_file():
            raise FileNotFoundError(f"Release catalog not found: {path}")
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
        catalog = cls.from_dict(data)
        LOGGER.debug("Loaded %d release catalogs from %s", len(catalog.catalogs), path)
        return catalog

    @property
    def names(self) -> list[str]:
        return sorted(self.catalogs)

    def releases(self, name: str | None) -> Mapping[str, Release]:
        """All entries of catalog ``name``; empty when the catalog is unknown."""
        if name is None:
            return MappingProxyType({})
        return self.catalogs.get(name, MappingProxyType({}))

    def lookup(self, name: str | None, key: str | None) -> Release | None:
        if key is None:
            return None
        return self.releases(name).get(key)

    def latest(self, name: str | None) -> Release | None:
        return self.lookup(name, LATEST)

    @staticmethod
    def select_rpm_catalog(os_version: OsVersion, arch: Arch, spec: JavaSpecification) -> str | None:
        """Rpm catalog for a RHEL/CentOS major version, CPU architecture and Java version."""
        major = os_version.major
        if major is None:
            return None
        return _RPM_CATALOGS.get((major, spec, arch)) or _RPM_CATALOGS.get((major, spec, None))

    @staticmethod
    def select_zip_catalog(os_type: OsType, spec: JavaSpecification) -> str | None:
        """Zip catalog for a Linux or Windows zip install."""
        return _ZIP_CATALOGS.get((os_type, spec))


def _releases_file() -> Path:
    raw = os.getenv(RELEASES_FILE_ENV)
    if not raw:
        return DEFAULT_RELEASES_FILE
    return Path(raw).expanduser().resolve()


@lru_cache(maxsize=1)
def default_catalog() -> ReleaseCatalog:
    """The process-wide release catalog (loaded on first use)."""
    return ReleaseCatalog.from_file(_releases_file())


def releases_for(log: FatalErrorLog) -> str | None:
    """Name of the catalog that tracks the JDK in ``log``; None for non Red Hat builds."""
    if log.java_vendor is not JavaVendor.RED_HAT:
        return None
    spec = log.java_specification
    if log.is_rhel:
        if log.is_rh_rpm_install:
            return ReleaseCatalog.select_rpm_catalog(log.os_version, log.arch, spec)
        if log.is_rh_linux_zip_install:
            return ReleaseCatalog.select_zip_catalog(OsType.LINUX, spec)
        return None
    if log.is_rh_windows_zip_install:
        return ReleaseCatalog.select_zip_catalog(OsType.WINDOWS, spec)
    return None


def _installed_release(log: FatalErrorLog) -> Release | None:
    name = releases_for(log)
    if name is None:
        return None
    if log.is_rh_rpm_install:
        return log.release_catalog.lookup(name, log.rpm_directory)
    if log.is_rh_linux_zip_install or log.is_rh_windows_zip_install:
        return log.release_catalog.lookup(name, log.jdk_release_string)
    return None


def latest_release(log: FatalErrorLog) -> Release | None:
    return log.release_catalog.latest(releases_for(log))


def release_date(log: FatalErrorLog) -> datetime | None:
    """Catalog build date of the installed JDK."""
    release = _installed_release(log)
    return release.build_date if release else None


def release_number(log: FatalErrorLog) -> int:
    """Catalog ordinal of the installed JDK; 0 when unknown."""
    release = _installed_release(log)
    return release.number if release else 0


def latest_release_date(log: FatalErrorLog) -> datetime | None:
    latest = latest_release(log)
    return latest.build_date if latest else None


def latest_release_number(log: FatalErrorLog) -> int:
    latest = latest_release(log)
    return latest.number if latest else 0


def latest_release_string(log: FatalErrorLog) -> str | None:
    latest = latest_release(log)
    return latest.version if latest else None


def is_latest_release(log: FatalErrorLog) -> bool:
    """False only when a catalog applies and its LATEST version differs from the log's JDK."""
    latest = latest_release(log)
    if latest is None:
        return True
    return latest.version == log.jdk_release_string


def jdk8_update_number(release_string: str | None) -> int | None:
    """Update number of a JDK 8 release string: ``1.8.0_275-b01`` -> 275."""
    if not release_string:
        return None
    m = _JDK8_UPDATE.fullmatch(release_string)
    return int(m.group("update")) if m else None
