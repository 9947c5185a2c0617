"""Shared regular-expression fragments for fatal error log lines.

Fragments are plain strings so they can be composed into larger patterns.
Groups inside fragments are non-capturing; callers add named groups where
they need to extract a value.
"""

from __future__ import annotations

ADDRESS32 = r"(?:0x)?[0-9a-f]{8}"
ADDRESS64 = r"(?:0x)?[0-9a-f]{16}"
ADDRESS = rf"(?:{ADDRESS64}|{ADDRESS32})"

# 7f0b3c000000-7f0b3cd13000
MEMORY_REGION = r"[0-9a-f]{8,16}-[0-9a-f]{8,16}"

PERMISSION = r"[rwxps\-]{4}"
FILE_OFFSET = r"[0-9a-f]{8}"
DEVICE_IDS = r"[0-9a-f]{2,3}:[0-9a-f]{2,4}"
INODE = r"[0-9]{1,10}"
AREA = r"\[(?:stack|vdso|vsyscall|heap)\]"

# 1048576K, 7.6G
SIZE = r"\d{1,10}(?:[.,]\d)?[bBkKmMgG]"
OPTION_SIZE_BYTES = r"(?P<value>\d+)(?P<units>[bBkKmMgGtT])?"

TIMESTAMP = r"\d{0,12}[.,]\d{3}"

RELEASE_STRING = r"(?:1\.6\.0|1\.7\.0|1\.8\.0|9|10|11|12|13|14|15|16).+"

# Jan 18 2021 00:04:32, Nov  6 2020 00:00:00
BUILD_DATE_TIME = (
    r"(?P<month>[a-zA-Z]{3})[ ]{1,2}(?P<day>\d{1,2}) (?P<year>\d{4}) "
    r"(?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
)

REGISTER = (
    r"(?:CR2|CSGSFS|ctr|EAX|EBP|EBX|ECX|EDI|EDX|EFLAGS|EIP|ERR|ESI|ESP|lr |pc |RAX|RBP|RBX|RCX|RDI|"
    rf"RDX|RIP|RSI|RSP|[Rr]\d{{1,2}}[ ]?)=(?:{ADDRESS})"
)

NULL_POINTER = r"0x(?:0{8}|0{16})"

RH_RPM_OPENJDK8_DIR = r"java-1\.8\.0-openjdk-1\.8\.0\..+\.el[678](?:_\d{1,2})?\.(?:ppc64(?:le)?|x86_64)"
RH_RPM_OPENJDK11_DIR = r"java-11-openjdk-11\.0\.\d{1,2}\.\d{1,2}(?:\.\d)?-\d\.el[78]_\d\.x86_64"

RH_RPM_OPENJDK8_LIBJVM_PATH = (
    rf"/usr/lib/jvm/(?P<rpm_dir>{RH_RPM_OPENJDK8_DIR})/jre/lib/(?:amd64|ppc64(?:le)?)/server/libjvm\.so"
)
RH_RPM_OPENJDK11_LIBJVM_PATH = rf"/usr/lib/jvm/(?P<rpm_dir>{RH_RPM_OPENJDK11_DIR})/lib/server/libjvm\.so"

JBOSS_EAP6_JAR = r".+jbossweb.+\.jar"
JBOSS_EAP7_JAR = r".+undertow-core.+\.jar"
TOMCAT_JAR = r".+catalina\.jar"

JAVA_NIO_BYTEBUFFER = r"java[./]nio[./]ByteBuffer"
