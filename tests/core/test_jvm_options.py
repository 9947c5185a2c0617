from __future__ import annotations

import pytest

from mcp_crash_triage_server.core.jvm_options import (
    JvmOptions,
    byte_option_bytes,
    byte_option_value,
    is_option_disabled,
    is_option_enabled,
    split_jvm_args,
)
from mcp_crash_triage_server.core.models import GarbageCollector


def test_split_jvm_args_keeps_values_with_spaces() -> None:
    assert split_jvm_args("-Dpath=/opt/my app -Xmx1g") == ["-Dpath=/opt/my app", "-Xmx1g"]
    assert split_jvm_args("") == []


def test_parse_groups_options() -> None:
    options = JvmOptions.parse(
        "-Xms1g -Xmx2g -XX:+UseG1GC -XX:MaxMetaspaceSize=256m -javaagent:/opt/agent.jar "
        "-agentpath:/opt/libprofiler.so -Dfoo=bar -XX:+UnlockExperimentalVMOptions -Xss256k"
    )

    assert options.get("max_heap_size") == "-Xmx2g"
    assert options.size_bytes("max_heap_size") == 2 * 1024**3
    assert options.size_bytes("initial_heap_size") == 1024**3
    assert options.size_bytes("max_metaspace_size") == 256 * 1024**2
    assert options.get("thread_stack_size") == "-Xss256k"
    assert options.javaagent == ["-javaagent:/opt/agent.jar"]
    assert options.agentpath == ["-agentpath:/opt/libprofiler.so"]
    assert options.system_properties == ["-Dfoo=bar"]
    assert options.undefined == ["-XX:+UnlockExperimentalVMOptions"]
    assert options.garbage_collectors == [GarbageCollector.G1]


def test_later_option_wins() -> None:
    options = JvmOptions.parse("-Xmx1g -Xmx2g")
    assert options.get("max_heap_size") == "-Xmx2g"


def test_get_unknown_name_raises() -> None:
    with pytest.raises(ValueError, match="Unknown JVM option name"):
        JvmOptions().get("not_an_option")


def test_enabled_disabled_flags() -> None:
    options = JvmOptions.parse("-XX:-UseCompressedOops -XX:+HeapDumpOnOutOfMemoryError")
    assert options.is_disabled("use_compressed_oops")
    assert not options.is_enabled("use_compressed_oops")
    assert options.is_enabled("heap_dump_on_out_of_memory_error")
    assert not options.is_disabled("use_perf_data")

    assert is_option_enabled("-XX:+UseG1GC")
    assert is_option_disabled("-XX:-UseG1GC")
    assert not is_option_enabled(None)


def test_number_option() -> None:
    options = JvmOptions.parse("-XX:+G1SummarizeRSetStats -XX:G1SummarizeRSetStatsPeriod=1")
    assert options.number("g1_summarize_rset_stats_period") == 1
    assert options.number("max_heap_size") is None


def test_byte_option_helpers() -> None:
    assert byte_option_value("-Xss128k") == "128k"
    assert byte_option_value("-XX:MaxMetaspaceSize=256m") == "256m"
    assert byte_option_bytes("-XX:MaxDirectMemorySize=1048576") == 1048576
    assert byte_option_bytes(None) is None


def test_jmx_enabled_by_system_property() -> None:
    assert JvmOptions.parse("-Dcom.sun.management.jmxremote -Xmx1g").is_jmx_enabled
    assert JvmOptions.parse("-XX:+ManagementServer").is_jmx_enabled
    assert not JvmOptions.parse("-Xmx1g").is_jmx_enabled


@pytest.mark.parametrize(
    ("jvm_args", "collectors"),
    [
        ("-XX:+UseParallelGC", [GarbageCollector.PARALLEL_SCAVENGE, GarbageCollector.PARALLEL_OLD]),
        ("-XX:+UseParallelGC -XX:-UseParallelOldGC", [GarbageCollector.PARALLEL_SCAVENGE, GarbageCollector.SERIAL_OLD]),
        ("-XX:+UseConcMarkSweepGC", [GarbageCollector.PAR_NEW, GarbageCollector.CMS]),
        ("-XX:+UseSerialGC", [GarbageCollector.SERIAL, GarbageCollector.SERIAL_OLD]),
        ("-XX:+UseShenandoahGC", [GarbageCollector.SHENANDOAH]),
        ("-Xmx1g", []),
    ],
)
def test_garbage_collectors(jvm_args: str, collectors: list[GarbageCollector]) -> None:
    assert JvmOptions.parse(jvm_args).garbage_collectors == collectors
