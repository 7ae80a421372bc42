"""
ZeekScope Hunting Checks
Per-record indicators over http.log, ssl.log, files.log and conn.log.

Checks:
    - Suspicious HTTP: scripted user agents, POSTs to bare IPs, large
      uploads, high ports, encoded or executable URIs
    - Certificate problems: failed validation and deprecated protocol versions
    - Executable downloads: file transfers with an executable MIME type
    - Long connections: sessions lasting at least a given duration
"""

import logging
import re
from typing import Any, Sequence

from zeekscope.filters import FilterDef
from zeekscope.query import QueryOptions, execute_query
from zeekscope.records import Record, is_number, to_text
from zeekscope.utils import format_timestamp

logger = logging.getLogger("zeekscope.analytics")

SUSPICIOUS_USER_AGENTS = (
    "curl", "wget", "python-requests", "python-urllib",
    "go-http-client", "powershell", "certutil",
)
RAW_IPV4_PATTERN = re.compile(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}")
URI_BASE64_PATTERN = re.compile(r"[A-Za-z0-9+/]{20,}={0,2}")
URI_EXECUTABLE_PATTERN = re.compile(r"\.(exe|dll|bat|ps1|vbs|scr|cmd)(\?|$)", re.IGNORECASE)
LARGE_BODY_BYTES = 1048576
HIGH_PORT_FLOOR = 8080
ALLOWED_HIGH_PORTS = frozenset({8443, 8888})
MAX_SUSPICIOUS_HTTP = 100

DEPRECATED_TLS_VERSIONS = ("SSLv3", "TLSv10")
MAX_FLAGGED_CERTS = 200

EXECUTABLE_MIME_TYPES = (
    "application/x-dosexec",
    "application/x-executable",
    "application/x-mach-binary",
    "application/x-elf",
    "application/x-sharedlib",
    "application/x-object",
    "application/x-pie-executable",
    "application/vnd.microsoft.portable-executable",
    "application/x-msdos-program",
    "application/x-msdownload",
    "application/x-shellscript",
    "application/x-bat",
    "application/x-powershell",
    "text/x-python",
    "text/x-perl",
    "text/x-shellscript",
    "application/java-archive",
    "application/x-java-applet",
)


def _endpoint(record: Record, side: str) -> str:
    return f"{record.get(f'id.{side}_h')}:{record.get(f'id.{side}_p')}"


def http_view(record: Record) -> dict[str, Any]:
    """Condensed http.log record."""
    return {
        "timestamp": format_timestamp(record.get("ts")),
        "uid": record.get("uid"),
        "src_ip": record.get("id.orig_h"),
        "method": record.get("method"),
        "host": record.get("host"),
        "uri": record.get("uri"),
        "status_code": record.get("status_code"),
        "user_agent": record.get("user_agent"),
        "request_body_len": record.get("request_body_len"),
        "response_body_len": record.get("response_body_len"),
        "mime_types": record.get("resp_mime_types"),
    }


def ssl_view(record: Record) -> dict[str, Any]:
    """Condensed ssl.log record."""
    return {
        "timestamp": format_timestamp(record.get("ts")),
        "uid": record.get("uid"),
        "src": _endpoint(record, "orig"),
        "dst": _endpoint(record, "resp"),
        "version": record.get("version"),
        "cipher": record.get("cipher"),
        "server_name": record.get("server_name"),
        "subject": record.get("subject"),
        "issuer": record.get("issuer"),
        "validation_status": record.get("validation_status"),
    }


def file_view(record: Record) -> dict[str, Any]:
    """Condensed files.log record."""
    return {
        "timestamp": format_timestamp(record.get("ts")),
        "fuid": record.get("fuid"),
        "source": record.get("source"),
        "mime_type": record.get("mime_type"),
        "filename": record.get("filename"),
        "total_bytes": record.get("total_bytes"),
        "seen_bytes": record.get("seen_bytes"),
        "md5": record.get("md5"),
        "sha1": record.get("sha1"),
        "sha256": record.get("sha256"),
        "tx_hosts": record.get("tx_hosts"),
        "rx_hosts": record.get("rx_hosts"),
        "conn_uids": record.get("conn_uids"),
    }


def connection_view(record: Record) -> dict[str, Any]:
    """Condensed conn.log record."""
    return {
        "timestamp": format_timestamp(record.get("ts")),
        "uid": record.get("uid"),
        "src": _endpoint(record, "orig"),
        "dst": _endpoint(record, "resp"),
        "proto": record.get("proto"),
        "service": record.get("service"),
        "duration": record.get("duration"),
        "orig_bytes": record.get("orig_bytes"),
        "resp_bytes": record.get("resp_bytes"),
        "conn_state": record.get("conn_state"),
        "history": record.get("history"),
    }


def http_reasons(record: Record) -> list[str]:
    """Every reason an HTTP request looks suspicious; empty when it does not."""
    reasons = []
    host = to_text(record.get("host"))
    uri = to_text(record.get("uri"))
    user_agent = to_text(record.get("user_agent")).lower()
    resp_port = record.get("id.resp_p")
    body_len = record.get("request_body_len")

    if RAW_IPV4_PATTERN.fullmatch(host) and to_text(record.get("method")) == "POST":
        reasons.append("POST to raw IP address (no domain)")

    # only the first matching agent is reported
    for agent in SUSPICIOUS_USER_AGENTS:
        if agent in user_agent:
            reasons.append(f"Suspicious user agent: {agent}")
            break

    if is_number(body_len) and body_len > LARGE_BODY_BYTES:
        reasons.append(
            f"Large POST body ({body_len / LARGE_BODY_BYTES:.1f} MB) - potential data exfiltration"
        )

    if is_number(resp_port) and resp_port > HIGH_PORT_FLOOR and resp_port not in ALLOWED_HIGH_PORTS:
        reasons.append(f"Request to high port: {to_text(resp_port)}")

    if URI_BASE64_PATTERN.search(uri):
        reasons.append("Possible base64 content in URL")

    if URI_EXECUTABLE_PATTERN.search(uri):
        reasons.append("Request for executable file")

    return reasons


def suspicious_http(records: Sequence[Record]) -> dict[str, Any]:
    """
    Flag HTTP requests with attacker-tooling or exfiltration traits.

    Args:
        records: http.log records

    Returns:
        Number analyzed, number flagged and up to 100 flagged requests with reasons
    """
    suspicious = []
    for record in records:
        reasons = http_reasons(record)
        if reasons:
            suspicious.append({"record": http_view(record), "reasons": reasons})

    logger.info(f"HTTP check: {len(suspicious)} of {len(records)} requests flagged")
    return {
        "total_analyzed": len(records),
        "suspicious_count": len(suspicious),
        "suspicious": suspicious[:MAX_SUSPICIOUS_HTTP],
    }


def certificate_issues(record: Record) -> list[str]:
    """Validation failures and deprecated protocol versions of one ssl.log record."""
    issues = []
    status = to_text(record.get("validation_status"))

    if status and status not in ("ok", "-"):
        if "self signed" in status:
            issues.append("Self-signed certificate")
        if "expired" in status:
            issues.append("Expired certificate")
        if "unable to get local issuer" in status:
            issues.append("Unknown certificate authority")
        if not issues:
            issues.append(f"Validation failure: {status}")

    version = to_text(record.get("version"))
    if version in DEPRECATED_TLS_VERSIONS:
        issues.append(f"Deprecated protocol version: {version}")

    return issues


def expired_certs(records: Sequence[Record]) -> dict[str, Any]:
    """Flag TLS sessions with expired, self-signed or untrusted certificates, or SSLv3/TLS 1.0."""
    flagged = []
    for record in records:
        issues = certificate_issues(record)
        if issues:
            flagged.append({"record": ssl_view(record), "issues": issues})

    logger.info(f"Certificate check: {len(flagged)} of {len(records)} sessions flagged")
    return {
        "total_analyzed": len(records),
        "flagged_count": len(flagged),
        "flagged": flagged[:MAX_FLAGGED_CERTS],
    }


def is_executable(record: Record) -> bool:
    mime_type = to_text(record.get("mime_type"))
    return any(t in mime_type for t in EXECUTABLE_MIME_TYPES)


def executable_downloads(records: Sequence[Record]) -> dict[str, Any]:
    """Transfers of PE, ELF and Mach-O binaries, scripts and Java archives."""
    executables = [file_view(r) for r in records if is_executable(r)]
    return {
        "total_files": len(records),
        "executable_count": len(executables),
        "executables": executables,
    }


def long_connections(
    records: Sequence[Record],
    min_duration: float,
    limit: int = 100,
    max_results: int = 1000,
) -> dict[str, Any]:
    """
    Find connections lasting at least min_duration seconds.

    Args:
        records: conn.log records
        min_duration: Duration floor in seconds
        limit: Number of connections to return
        max_results: Configured result ceiling

    Returns:
        The longest matching connections, longest first
    """
    options = QueryOptions(
        filters=[FilterDef("duration", "gte", min_duration)],
        sort_by="duration",
        sort_order="desc",
        limit=limit,
    )
    matched = execute_query(records, options, max_results)
    return {
        "count": len(matched),
        "min_duration_filter": min_duration,
        "connections": [connection_view(r) for r in matched],
    }
