from __future__ import annotations

import json
from pathlib import Path

import pytest

from mcp_crash_triage_server.core.analysis import (
    Analysis,
    JsonMessageResolver,
    Severity,
    analyze,
    findings,
    not_latest_suffix,
)
from mcp_crash_triage_server.core.crash_service import parse_lines
from mcp_crash_triage_server.core.releases import ReleaseCatalog

RPM_DIR_201 = "java-1.8.0-openjdk-1.8.0.201.b09-2.el7_6.x86_64"


@pytest.fixture
def catalog_2019() -> ReleaseCatalog:
    latest = {"build_date": "2019-05-22T00:00:00", "number": 22, "version": "1.8.0_212-b04"}
    return ReleaseCatalog.from_dict(
        {
            "rhel7_amd64_jdk8_rpm": {
                "LATEST": latest,
                "java-1.8.0-openjdk-1.8.0.212.b04-0.el7_6.x86_64": latest,
                RPM_DIR_201: {"build_date": "2019-03-05T00:00:00", "number": 21, "version": "1.8.0_201-b09"},
            }
        }
    )


def _log_201(crash_log_text):
    return crash_log_text(
        release="1.8.0_201-b09",
        vm_version="25.201-b09",
        built_on="Mar  5 2019 00:00:00",
        rpm_dir=RPM_DIR_201,
    )


def test_severity_comes_from_code_prefix() -> None:
    assert Analysis.WARN_JDK_NOT_LATEST.severity is Severity.WARN
    assert Analysis.ERROR_LIBJVM_SO.severity is Severity.ERROR
    assert Analysis.INFO_TRUNCATED.severity is Severity.INFO
    assert Analysis.WARN_JDK_NOT_LATEST.key == "warn.jdk.not.latest"


def test_rpm_install_one_release_behind(crash_log_text) -> None:
    log = parse_lines(crash_log_text(unidentified=3).splitlines())

    codes = analyze(log)

    assert codes.count(Analysis.WARN_JDK_NOT_LATEST) == 1
    assert Analysis.INFO_RH_BUILD_RPM_INSTALL in codes
    assert Analysis.WARN_UNIDENTIFIED_LOG_LINE_REPORT in codes
    assert Analysis.WARN_DEBUG_SYMBOLS in codes
    assert Analysis.ERROR_LIBJVM_SO in codes
    assert Analysis.ERROR_NULL_POINTER in codes
    assert Analysis.INFO_SIGNO_SIGSEGV in codes
    assert Analysis.INFO_SIGCODE_SEGV_MAPERR in codes
    assert Analysis.INFO_TRUNCATED not in codes
    assert Analysis.INFO_JDK_ANCIENT not in codes
    assert not_latest_suffix(log) == " (newer by 1 version and 73 days)"


def test_not_latest_message(crash_log_text) -> None:
    log = parse_lines(crash_log_text().splitlines())

    rendered = findings(log, analyze(log))

    not_latest = [f for f in rendered if f.code is Analysis.WARN_JDK_NOT_LATEST]
    assert len(not_latest) == 1
    assert not_latest[0].message == (
        "The JDK is not the latest release. Latest release: 1.8.0_282-b08 (newer by 1 version and 73 days)."
    )


def test_findings_grouped_by_severity(crash_log_text) -> None:
    log = parse_lines(crash_log_text().splitlines())

    rendered = findings(log, analyze(log))

    order = {Severity.ERROR: 0, Severity.WARN: 1, Severity.INFO: 2}
    ranks = [order[f.severity] for f in rendered]
    assert ranks == sorted(ranks)
    assert all(f.severity is f.code.severity for f in rendered)


def test_custom_catalog_version_and_day_distance(crash_log_text, catalog_2019) -> None:
    log = parse_lines(_log_201(crash_log_text).splitlines(), catalog=catalog_2019)

    codes = analyze(log)

    assert log.is_rh_rpm_install
    assert Analysis.WARN_JDK_NOT_LATEST in codes
    assert not_latest_suffix(log) == " (newer by 1 version and 78 days)"


def test_analyze_accepts_catalog_override(crash_log_text, catalog_2019) -> None:
    log = parse_lines(_log_201(crash_log_text).splitlines(), catalog=ReleaseCatalog.from_dict({}))

    assert Analysis.WARN_JDK_NOT_LATEST not in analyze(log)
    assert Analysis.WARN_JDK_NOT_LATEST in analyze(log, catalog_2019)
    assert log.catalog is not catalog_2019


def test_latest_release_has_no_not_latest(crash_log_text, catalog_2019) -> None:
    text = crash_log_text(
        release="1.8.0_212-b04",
        vm_version="25.212-b04",
        built_on="May 22 2019 00:00:00",
        rpm_dir="java-1.8.0-openjdk-1.8.0.212.b04-0.el7_6.x86_64",
    )
    log = parse_lines(text.splitlines(), catalog=catalog_2019)

    codes = analyze(log)

    assert Analysis.INFO_RH_BUILD_RPM_INSTALL in codes
    assert Analysis.WARN_JDK_NOT_LATEST not in codes
    assert not_latest_suffix(log) == ""


def test_truncated_log(crash_log_text) -> None:
    log = parse_lines(crash_log_text(truncated=True).splitlines())

    codes = analyze(log)

    assert Analysis.INFO_TRUNCATED in codes
    assert Analysis.WARN_JDK_NOT_LATEST not in codes


def test_startup_failure(crash_log_text) -> None:
    log = parse_lines(crash_log_text(extra=["elapsed time: 0 seconds (0d 0h 0m 0s)"]).splitlines())

    assert log.elapsed_time == "0d 0h 0m 0s"
    assert Analysis.INFO_JVM_STARTUP_FAILS in analyze(log)


def test_compiler_thread_replaces_libjvm_finding(crash_log_text) -> None:
    text = crash_log_text(current_thread='JavaThread "C2 CompilerThread0" daemon [_thread_in_native, id=4250]')
    codes = analyze(parse_lines(text.splitlines()))

    assert Analysis.ERROR_COMPILER_THREAD in codes
    assert Analysis.ERROR_LIBJVM_SO not in codes


def test_non_null_address(crash_log_text) -> None:
    codes = analyze(parse_lines(crash_log_text(si_addr="0x00007f0b3c9a5d9c").splitlines()))
    assert Analysis.ERROR_NULL_POINTER not in codes


def test_adoptopenjdk_build(crash_log_text) -> None:
    text = crash_log_text(built_by="jenkins", built_on="Jan 21 2021 10:00:00", rpm_dir=None)
    codes = analyze(parse_lines(text.splitlines()))

    assert Analysis.INFO_ADOPTOPENJDK_POSSIBLE in codes
    assert Analysis.WARN_JDK_NOT_LATEST not in codes


def test_option_findings(crash_log_text) -> None:
    jvm_args = (
        "-agentlib:jdwp=transport=dt_socket,server=y,suspend=n,address=8787 -XX:-UseCompressedOops "
        "-Xmx2g -javaagent:/opt/agent.jar -Xverify:none -XX:+UnlockDiagnosticVMOptions"
    )
    log = parse_lines(crash_log_text(jvm_args=jvm_args).splitlines())

    codes = analyze(log)

    assert Analysis.ERROR_OPT_REMOTE_DEBUGGING_ENABLED in codes
    assert Analysis.WARN_OPT_COMP_OOPS_DISABLED_HEAP_LT_32G in codes
    assert Analysis.INFO_OPT_INSTRUMENTATION in codes
    assert Analysis.WARN_OPT_VERIFY_NONE in codes
    assert Analysis.INFO_OPT_HEAP_DUMP_ON_OOME_MISSING in codes

    messages = {f.code: f.message for f in findings(log, codes)}
    assert messages[Analysis.INFO_OPT_UNDEFINED] == "Undefined JVM option(s): -XX:+UnlockDiagnosticVMOptions"


def test_large_heap_with_compressed_oops(crash_log_text) -> None:
    codes = analyze(parse_lines(crash_log_text(jvm_args="-Xmx40g -XX:+UseCompressedOops").splitlines()))
    assert Analysis.WARN_OPT_COMP_OOPS_ENABLED_HEAP_GT_32G in codes


def test_no_jvm_args_skips_option_rules(crash_log_text) -> None:
    codes = analyze(parse_lines(crash_log_text(jvm_args=None).splitlines()))
    assert Analysis.INFO_OPT_HEAP_DUMP_ON_OOME_MISSING not in codes
    assert Analysis.INFO_OPT_JDK8_PRINT_GC_DETAILS_MISSING not in codes


def test_resolver_render_and_fallback() -> None:
    resolver = JsonMessageResolver(templates={"info.opt.undefined": "Undefined: {options}"})

    assert resolver.render(Analysis.INFO_OPT_UNDEFINED, options="-Xfoo") == "Undefined: -Xfoo"
    assert resolver.render(Analysis.INFO_OPT_UNDEFINED) == "Undefined: "
    assert resolver.render(Analysis.INFO_TRUNCATED) == "info.truncated"


def test_resolver_from_file(tmp_path: Path) -> None:
    path = tmp_path / "messages.json"
    path.write_text(json.dumps({"info.truncated": "Cut short."}), encoding="utf-8")
    assert JsonMessageResolver.from_file(path).render(Analysis.INFO_TRUNCATED) == "Cut short."

    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError, match="JSON object"):
        JsonMessageResolver.from_file(path)

    with pytest.raises(FileNotFoundError, match="Message templates not found"):
        JsonMessageResolver.from_file(tmp_path / "missing.json")


def test_bundled_templates_cover_every_code() -> None:
    from mcp_crash_triage_server.core.analysis import DEFAULT_MESSAGES_FILE

    templates = json.loads(DEFAULT_MESSAGES_FILE.read_text(encoding="utf-8"))
    assert set(templates) == {code.key for code in Analysis}
