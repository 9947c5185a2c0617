from __future__ import annotations

from mcp_crash_triage_server.core.analysis import Analysis, analyze, findings
from mcp_crash_triage_server.core.crash_service import parse_lines
from mcp_crash_triage_server.core.report import SECTION_BANNER, render_report


def _render(text: str, **kwargs) -> list[str]:
    log = parse_lines(text.splitlines())
    report = render_report(log, findings(log, analyze(log)), log_name="hs_err_pid4242.log", **kwargs)
    return report.splitlines()


def test_report_sections_in_order(crash_log_text) -> None:
    lines = _render(crash_log_text())

    assert lines[0] == "hs_err_pid4242.log"
    titles = [line for line in lines if line in ("OS:", "JVM:", "Threads:", "Error(s):", "Stack:", "ANALYSIS:")]
    assert titles == ["OS:", "JVM:", "Threads:", "Error(s):", "Stack:", "ANALYSIS:"]
    assert "Container:" not in lines
    assert "Version: 1.8.0_275-b01" in lines
    assert "Vendor: RED_HAT" in lines
    assert "Crash Date: Mon Jan 25 10:00:00 2021 (UTC)" in lines
    assert "Run Time: 0d 0h 20m 34s" in lines
    assert "Memory: 15885M" in lines
    assert "Heap Max: 1024M" in lines
    assert "# Java threads: 2" in lines


def test_stack_section_is_capped(crash_log_text) -> None:
    lines = _render(crash_log_text(frames=15))

    start = lines.index("Stack:") + 2
    assert lines[start] == "V  [libjvm.so+0x9a5d9c]"
    assert lines[start + 9] == "j  com.example.Worker.step9()V+9"
    assert lines[start + 10] == "..."


def test_short_stack_has_no_ellipsis(crash_log_text) -> None:
    lines = _render(crash_log_text(frames=3))
    assert "..." not in lines


def test_analysis_groups_by_severity(crash_log_text) -> None:
    lines = _render(crash_log_text())

    start = lines.index("ANALYSIS:")
    headings = [lines[i] for i in range(start, len(lines)) if lines[i] in ("error", "warn", "info")]
    assert headings == ["error", "warn", "info"]
    assert "*The JDK is not the latest release. Latest release: 1.8.0_282-b08 (newer by 1 version and 73 days)." in lines


def test_unidentified_lines_listed(crash_log_text) -> None:
    lines = _render(crash_log_text(unidentified=3))

    start = lines.index("3 UNIDENTIFIED LOG LINE(S):")
    assert lines[start + 2 : start + 5] == [
        "zzz unrecognized line 1",
        "zzz unrecognized line 2",
        "zzz unrecognized line 3",
    ]
    assert lines[-1] == SECTION_BANNER


def test_unidentified_lines_can_be_hidden(crash_log_text) -> None:
    lines = _render(crash_log_text(unidentified=3), show_unidentified=False)

    assert not any("UNIDENTIFIED LOG LINE(S)" in line for line in lines)
    assert "zzz unrecognized line 1" not in lines


def test_jdk7_log_is_not_analysed(crash_log_text) -> None:
    text = crash_log_text(release="1.7.0_80-b15", vm_version="24.80-b11", built_on="Apr 10 2015 19:53:14", rpm_dir=None)
    lines = _render(text)

    assert lines == [
        "hs_err_pid4242.log",
        SECTION_BANNER,
        "ERROR:",
        "-" * 40,
        "*It appears the fatal error log is from JDK7.",
        "*Fatal error log analysis prior to JDK8 is not supported.",
    ]


def test_rlimit_line_listed_under_os(crash_log_text) -> None:
    rlimit = "rlimit (soft/hard): STACK 8192k/infinity , CORE 0k/infinity , NPROC 4096/4096"
    log = parse_lines(crash_log_text(extra=[rlimit]).splitlines())
    report = render_report(
        log, findings(log, [Analysis.ERROR_OOME_STARTUP_LIMIT]), log_name="hs_err_pid4242.log"
    ).splitlines()

    assert report.index("OS:") < report.index(rlimit) < report.index("JVM:")


def test_rlimit_line_omitted_without_startup_limit_finding(crash_log_text) -> None:
    rlimit = "rlimit (soft/hard): STACK 8192k/infinity , CORE 0k/infinity , NPROC 4096/4096"
    log = parse_lines(crash_log_text(extra=[rlimit]).splitlines())
    report = render_report(log, findings(log, []), log_name="hs_err_pid4242.log").splitlines()

    assert rlimit not in report
