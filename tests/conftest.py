from __future__ import annotations

import gzip
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

RPM_DIR_275 = "java-1.8.0-openjdk-1.8.0.275.b01-0.el7_9.x86_64"


def _hs_err_log(
    *,
    release: str = "1.8.0_275-b01",
    vm_version: str = "25.275-b01",
    built_on: str = "Nov  6 2020 00:00:00",
    built_by: str = "mockbuild",
    rpm_dir: str | None = RPM_DIR_275,
    os_line: str = "OS:Red Hat Enterprise Linux Server release 7.9 (Maipo)",
    jvm_args: str | None = "-Xms1024m -Xmx1024m",
    frames: int = 15,
    unidentified: int = 0,
    current_thread: str = 'JavaThread "main" [_thread_in_vm, id=4243, stack(0x00007f0b1a000000,0x00007f0b1a100000)]',
    si_addr: str = "0x0000000000000000",
    extra: Sequence[str] = (),
    truncated: bool = False,
) -> str:
    lines = [
        "#",
        "# A fatal error has been detected by the Java Runtime Environment:",
        "#",
        "#  SIGSEGV (0xb) at pc=0x00007f0b3c9a5d9c, pid=4242, tid=0x00007f0b1a0f6700",
        "#",
        f"# JRE version: OpenJDK Runtime Environment (8.0_275-b01) (build {release})",
        "# Java VM: OpenJDK 64-Bit Server VM (25.275-b01 mixed mode linux-amd64 compressed oops)",
        "# Problematic frame:",
        "# V  [libjvm.so+0x9a5d9c]",
        "#",
        "",
        "---------------  T H R E A D  ---------------",
        "",
        f"Current thread (0x00007f0b3401e000):  {current_thread}",
        "",
        f"siginfo: si_signo: 11 (SIGSEGV), si_code: 1 (SEGV_MAPERR), si_addr: {si_addr}",
        "",
        "Stack: [0x00007f0b1a000000,0x00007f0b1a100000],  sp=0x00007f0b1a0f4d30,  free space=979k",
        "Native frames: (J=compiled Java code, j=interpreted, Vv=VM code, C=native code)",
    ]
    for i in range(frames):
        lines.append("V  [libjvm.so+0x9a5d9c]" if i == 0 else f"j  com.example.Worker.step{i}()V+{i}")
    lines += [
        "",
        "---------------  P R O C E S S  ---------------",
        "",
        "Java Threads: ( => current thread )",
        '  0x00007f0b340f0800 JavaThread "Service Thread" daemon [_thread_blocked, id=4260]',
        '=>0x00007f0b3401e000 JavaThread "main" [_thread_in_vm, id=4243]',
        "",
        "Other Threads:",
        '  0x00007f0b340a8000 VMThread "VM Thread" [id=4250]',
        "",
        "VM state:not at safepoint (normal execution)",
        "",
    ]
    lines += [f"zzz unrecognized line {i}" for i in range(1, unidentified + 1)]
    if truncated:
        return "\n".join(lines) + "\n"
    if rpm_dir is not None:
        lines += [
            "Dynamic libraries:",
            "7f0b3c000000-7f0b3cd13000 r-xp 00000000 fd:00 1234567                    "
            f"/usr/lib/jvm/{rpm_dir}/jre/lib/amd64/server/libjvm.so",
            "",
        ]
    lines.append("VM Arguments:")
    if jvm_args is not None:
        lines.append(f"jvm_args: {jvm_args}")
    lines += [
        "java_command: com.example.Main",
        "",
        "---------------  S Y S T E M  ---------------",
        "",
        os_line,
        "",
        "uname:Linux 3.10.0-1160.el7.x86_64 #1 SMP Tue Aug 18 14:50:17 EDT 2020 x86_64",
        "",
        "CPU:total 8 (initial active 8) (4 cores per cpu, 2 threads per core) family 6 model 85 stepping 4",
        "",
        "Memory: 4k page, physical 16266068k(1394728k free), swap 8388604k(8388604k free)",
        "",
        *extra,
        f"vm_info: OpenJDK 64-Bit Server VM ({vm_version}) for linux-amd64 JRE ({release}), "
        f'built on {built_on} by "{built_by}" with gcc 4.8.5 20150623 (Red Hat 4.8.5-44)',
        "",
        "time: Mon Jan 25 10:00:00 2021",
        "timezone: UTC",
        "elapsed time: 1234.567890 seconds (0d 0h 20m 34s)",
        "",
        "END.",
    ]
    return "\n".join(lines) + "\n"


@pytest.fixture
def crash_log_text() -> Callable[..., str]:
    return _hs_err_log


@pytest.fixture
def write_crash_log() -> Callable[..., Path]:
    def _write(path: Path, **kwargs) -> Path:
        path.write_text(_hs_err_log(**kwargs), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def write_gz_crash_log() -> Callable[..., Path]:
    def _write(path: Path, **kwargs) -> Path:
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(_hs_err_log(**kwargs))
        return path

    return _write
