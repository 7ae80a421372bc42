"""
ZeekScope Record Model
Normalized Zeek log records and the field-access rules every query operator shares.

A record is a flat mapping parsed from one log line. Zeek names many fields
with literal dots ("id.orig_h", "version.major"), so a dotted field name is
looked up as a literal key first and only then walked as a nested path.
"""

import math
from typing import Any, Mapping

Record = Mapping[str, Any]

# Field catalog for the common log types: (name, zeek type, description)
LOG_FIELDS: dict[str, list[tuple[str, str, str]]] = {
    "conn": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Unique connection ID"),
        ("id.orig_h", "addr", "Source IP address"),
        ("id.orig_p", "port", "Source port"),
        ("id.resp_h", "addr", "Destination IP address"),
        ("id.resp_p", "port", "Destination port"),
        ("proto", "enum", "Transport protocol (tcp/udp/icmp)"),
        ("service", "string", "Detected application protocol"),
        ("duration", "interval", "Connection duration in seconds"),
        ("orig_bytes", "count", "Bytes sent by originator"),
        ("resp_bytes", "count", "Bytes sent by responder"),
        ("conn_state", "string", "Connection state (S0, S1, SF, REJ, etc.)"),
    ],
    "dns": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("id.orig_h", "addr", "Source IP"),
        ("query", "string", "DNS query domain"),
        ("qtype_name", "string", "Query type (A, AAAA, MX, etc.)"),
        ("rcode_name", "string", "Response code (NOERROR, NXDOMAIN, etc.)"),
        ("answers", "vector", "DNS response answers"),
        ("TTLs", "vector", "Response TTL values"),
    ],
    "http": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("id.orig_h", "addr", "Source IP"),
        ("method", "string", "HTTP method"),
        ("host", "string", "HTTP Host header"),
        ("uri", "string", "Request URI"),
        ("status_code", "count", "HTTP response status code"),
        ("user_agent", "string", "User-Agent header"),
        ("resp_mime_types", "vector", "Response MIME types"),
    ],
    "ssl": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("id.orig_h", "addr", "Source IP"),
        ("id.resp_h", "addr", "Destination IP"),
        ("version", "string", "SSL/TLS version"),
        ("cipher", "string", "Cipher suite"),
        ("server_name", "string", "SNI hostname"),
        ("subject", "string", "Certificate subject"),
        ("issuer", "string", "Certificate issuer"),
        ("validation_status", "string", "Certificate validation result"),
    ],
    "files": [
        ("ts", "time", "Timestamp"),
        ("fuid", "string", "File unique ID"),
        ("source", "string", "Protocol source (HTTP, FTP, etc.)"),
        ("mime_type", "string", "MIME type"),
        ("filename", "string", "Filename if available"),
        ("md5", "string", "MD5 hash"),
        ("sha1", "string", "SHA1 hash"),
        ("sha256", "string", "SHA256 hash"),
        ("total_bytes", "count", "Total file size"),
    ],
    "notice": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("note", "string", "Notice type (e.g. Scan::Port_Scan)"),
        ("msg", "string", "Notice message"),
        ("src", "addr", "Source address"),
        ("dst", "addr", "Destination address"),
        ("p", "port", "Associated port"),
        ("actions", "set", "Actions taken"),
    ],
    "ssh": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("id.orig_h", "addr", "Source IP"),
        ("id.resp_h", "addr", "Destination IP"),
        ("auth_success", "bool", "Authentication result"),
        ("direction", "string", "Connection direction"),
        ("client", "string", "Client software string"),
        ("server", "string", "Server software string"),
    ],
    "software": [
        ("ts", "time", "Timestamp"),
        ("host", "addr", "Host IP"),
        ("software_type", "string", "Software type category"),
        ("name", "string", "Software name"),
        ("version.major", "count", "Major version"),
        ("version.minor", "count", "Minor version"),
    ],
    "weird": [
        ("ts", "time", "Timestamp"),
        ("uid", "string", "Connection UID"),
        ("name", "string", "Weird activity name"),
        ("addl", "string", "Additional info"),
        ("notice", "bool", "Whether a notice was generated"),
        ("peer", "string", "Peer that generated the weird"),
    ],
}


def is_number(value: Any) -> bool:
    """True for int/float values. Booleans are not numbers here."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def to_text(value: Any) -> str:
    """
    Coerce a field value to the string form used for loose equality and grouping.

    80 and 80.0 both render as "80", booleans as "true"/"false", lists
    as their comma-joined items, and None as the empty string.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join(to_text(item) for item in value)
    return str(value)


def resolve_field(record: Record, field_name: str) -> Any:
    """
    Resolve a field name against a record.

    Args:
        record: Record mapping
        field_name: Literal key ("id.orig_h") or dotted path ("tls.cert.subject")

    Returns:
        The value, or None when the field is absent
    """
    if field_name in record:
        return record[field_name]

    current: Any = record
    for part in field_name.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
        if current is None:
            return None
    return current
