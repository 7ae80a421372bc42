"""
ZeekScope Investigation Module
Summaries and cross-log pivots composed from the query and aggregation core.
"""

import logging
from collections import defaultdict
from typing import Any, Sequence

from zeekscope.aggregation import count_unique, group_by, sum_field, top_n
from zeekscope.filters import FilterDef
from zeekscope.hunting import file_view, is_executable
from zeekscope.query import QueryOptions, execute_query
from zeekscope.reader import LogReader
from zeekscope.records import Record, is_number, to_text
from zeekscope.utils import format_timestamp

logger = logging.getLogger("zeekscope.analytics")

CONNECTION_GROUPS = {
    "src": "id.orig_h",
    "dst": "id.resp_h",
    "service": "service",
    "port": "id.resp_p",
    "proto": "proto",
}

UID_LOG_TYPES = ("conn", "dns", "http", "ssl", "files", "notice", "weird", "ssh", "smtp")


def _tops(values) -> list[dict]:
    return [v.to_dict() for v in values]


def connection_summary(records: Sequence[Record], group: str = "src") -> dict[str, Any]:
    """
    Statistical summary of connection records.

    Args:
        records: conn.log records
        group: Primary grouping dimension (src, dst, service, port, proto)

    Returns:
        Totals, top talkers, and distributions
    """
    if group not in CONNECTION_GROUPS:
        raise ValueError(f"Unknown grouping {group!r}; choose from {', '.join(CONNECTION_GROUPS)}")

    return {
        "total_connections": len(records),
        "total_bytes": sum_field(records, "orig_bytes") + sum_field(records, "resp_bytes"),
        "unique_src_ips": count_unique(records, "id.orig_h"),
        "unique_dst_ips": count_unique(records, "id.resp_h"),
        "top_sources": _tops(top_n(records, "id.orig_h", 10)),
        "top_destinations": _tops(top_n(records, "id.resp_h", 10)),
        "top_services": _tops(top_n(records, "service", 10)),
        "top_ports": _tops(top_n(records, "id.resp_p", 10)),
        "protocol_distribution": group_by(records, "proto").to_dict(),
        "conn_state_distribution": group_by(records, "conn_state").to_dict(),
        "primary_grouping": group_by(records, CONNECTION_GROUPS[group]).to_dict(),
    }


def dns_summary(records: Sequence[Record]) -> dict[str, Any]:
    """Top domains and clients, query type and response code mix, NXDOMAIN hot spots."""
    nxdomain = [r for r in records if r.get("rcode_name") == "NXDOMAIN"]

    return {
        "total_queries": len(records),
        "unique_domains": count_unique(records, "query"),
        "unique_clients": count_unique(records, "id.orig_h"),
        "top_queried_domains": _tops(top_n(records, "query", 20)),
        "top_clients": _tops(top_n(records, "id.orig_h", 10)),
        "query_type_distribution": group_by(records, "qtype_name").to_dict(),
        "response_code_distribution": group_by(records, "rcode_name").to_dict(),
        "nxdomain_count": len(nxdomain),
        "top_nxdomain_domains": _tops(top_n(nxdomain, "query", 20)),
        "top_nxdomain_clients": _tops(top_n(nxdomain, "id.orig_h", 10)),
    }


def detect_ssh_bruteforce(records: Sequence[Record], threshold: int = 5) -> dict[str, Any]:
    """
    Find sources with repeated failed SSH authentication.

    Args:
        records: ssh.log records
        threshold: Minimum failed attempts for a source to be reported

    Returns:
        Failed-attempt totals and the offending sources, busiest first
    """
    failed = [r for r in records if r.get("auth_success") is False]
    sources: dict[str, dict[str, Any]] = defaultdict(
        lambda: {"count": 0, "targets": {}, "first_seen": None, "last_seen": None}
    )

    for record in failed:
        src = str(record.get("id.orig_h", ""))
        ts = record.get("ts")
        entry = sources[src]
        entry["count"] += 1
        entry["targets"][str(record.get("id.resp_h", ""))] = None
        if is_number(ts):
            entry["first_seen"] = ts if not is_number(entry["first_seen"]) else min(entry["first_seen"], ts)
            entry["last_seen"] = ts if not is_number(entry["last_seen"]) else max(entry["last_seen"], ts)

    flagged = sorted(
        ((src, data) for src, data in sources.items() if data["count"] >= threshold),
        key=lambda item: item[1]["count"],
        reverse=True,
    )

    return {
        "total_failed_auth": len(failed),
        "brute_force_source_count": len(flagged),
        "threshold": threshold,
        "sources": [
            {
                "source_ip": src,
                "failed_attempts": data["count"],
                "unique_targets": len(data["targets"]),
                "targets": list(data["targets"])[:20],
                "first_seen": format_timestamp(data["first_seen"]),
                "last_seen": format_timestamp(data["last_seen"]),
            }
            for src, data in flagged
        ],
    }


def _query(
    reader: LogReader,
    log_type: str,
    filters: list[FilterDef],
    max_results: int,
    time_from=None,
    time_to=None,
) -> list[Record]:
    records = reader.query_log(log_type, time_from, time_to)
    options = QueryOptions(filters=filters, limit=max_results)
    return execute_query(records, options, max_results)


def _names_host(value, ip: str) -> bool:
    if isinstance(value, (list, tuple)):
        return any(to_text(v) == ip for v in value)
    return to_text(value) == ip


def _host_files(reader: LogReader, ip: str, max_results: int, time_from=None, time_to=None) -> list[Record]:
    # tx_hosts/rx_hosts are sets, so exact membership rather than substring "contains"
    records = reader.query_log("files", time_from, time_to)
    matched = [
        r for r in records
        if _names_host(r.get("tx_hosts"), ip) or _names_host(r.get("rx_hosts"), ip)
    ]
    return execute_query(matched, QueryOptions(limit=max_results), max_results)


def investigate_host(
    reader: LogReader,
    ip: str,
    max_results: int,
    time_from: str | None = None,
    time_to: str | None = None,
) -> dict[str, Any]:
    """
    Gather all activity for one host across log types.

    Args:
        reader: Log reader for the Zeek log directories
        ip: Host address
        max_results: Per-log-type result ceiling
        time_from: Optional ISO 8601 start
        time_to: Optional ISO 8601 end

    Returns:
        Connection, DNS, HTTP, SSL, file transfer, SSH, notice and software sections
    """
    def by(field_name: str, log_type: str) -> list[Record]:
        return _query(reader, log_type, [FilterDef(field_name, "eq", ip)], max_results, time_from, time_to)

    conn_src = by("id.orig_h", "conn")
    conn_dst = by("id.resp_h", "conn")
    dns = by("id.orig_h", "dns")
    http = by("id.orig_h", "http")
    ssl = by("id.orig_h", "ssl")
    files = _host_files(reader, ip, max_results, time_from, time_to)
    ssh = by("id.orig_h", "ssh")
    notices = by("src", "notice")
    software = by("host", "software")

    bytes_sent = sum_field(conn_src, "orig_bytes")
    bytes_received = sum_field(conn_src, "resp_bytes")

    logger.info(f"Investigated host {ip}: {len(conn_src) + len(conn_dst)} connections")
    return {
        "host": ip,
        "connection_summary": {
            "as_source": len(conn_src),
            "as_destination": len(conn_dst),
            "total_bytes": bytes_sent + bytes_received,
            "bytes_sent": bytes_sent,
            "bytes_received": bytes_received,
            "top_destinations": _tops(top_n(conn_src, "id.resp_h", 10)),
            "top_sources": _tops(top_n(conn_dst, "id.orig_h", 10)),
            "top_services": _tops(top_n(conn_src + conn_dst, "service", 10)),
            "top_ports": _tops(top_n(conn_src, "id.resp_p", 10)),
            "unique_destinations": count_unique(conn_src, "id.resp_h"),
        },
        "dns": {
            "query_count": len(dns),
            "top_domains": _tops(top_n(dns, "query", 20)),
            "unique_domains": count_unique(dns, "query"),
        },
        "http": {
            "request_count": len(http),
            "top_hosts": _tops(top_n(http, "host", 10)),
            "top_uris": _tops(top_n(http, "uri", 10)),
            "top_user_agents": _tops(top_n(http, "user_agent", 5)),
        },
        "ssl": {
            "connection_count": len(ssl),
            "top_server_names": _tops(top_n(ssl, "server_name", 10)),
        },
        "files": {
            "transfer_count": len(files),
            "sent": sum(1 for r in files if _names_host(r.get("tx_hosts"), ip)),
            "received": sum(1 for r in files if _names_host(r.get("rx_hosts"), ip)),
            "top_mime_types": _tops(top_n(files, "mime_type", 10)),
            "executables": [file_view(r) for r in files if is_executable(r)][:20],
        },
        "ssh": {
            "connection_count": len(ssh),
            "connections": [
                {
                    "dst": f"{r.get('id.resp_h')}:{r.get('id.resp_p')}",
                    "auth_success": r.get("auth_success"),
                    "client": r.get("client"),
                }
                for r in ssh[:20]
            ],
        },
        "notices": {
            "count": len(notices),
            "notices": [
                {"note": r.get("note"), "msg": r.get("msg"), "timestamp": format_timestamp(r.get("ts"))}
                for r in notices[:20]
            ],
        },
        "software": [
            {
                "type": r.get("software_type"),
                "name": r.get("name"),
                "version": ".".join(
                    str(r[k]) for k in ("version.major", "version.minor", "version.minor2") if k in r
                ),
            }
            for r in software
        ],
    }


def trace_uid(reader: LogReader, uid: str, limit: int = 100) -> dict[str, Any]:
    """
    Follow one connection UID through every log type that references it.

    files.log links connections through its conn_uids list, so it is
    matched with "contains" rather than equality.
    """
    session: dict[str, Any] = {"uid": uid}

    for log_type in UID_LOG_TYPES:
        if log_type == "files":
            flt = FilterDef("conn_uids", "contains", uid)
        else:
            flt = FilterDef("uid", "eq", uid)

        records = _query(reader, log_type, [flt], limit)
        if records:
            session[log_type] = [
                {**r, "timestamp": format_timestamp(r.get("ts"))} for r in records
            ]

    return session
