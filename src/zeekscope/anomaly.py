"""
ZeekScope Anomaly Detector
Statistical outlier checks over connection records.

Detectors:
    - Port scans: many distinct ports tried without a response
    - Data exfiltration: outbound volume far above the IQR fence
    - Unusual ports: repeated traffic to uncommon ports with no identified service

Each detector runs independently; results are concatenated, not correlated.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence

from zeekscope.records import Record, is_number, to_text
from zeekscope.utils import format_bytes

logger = logging.getLogger("zeekscope.analytics")

# Connection states for attempts that got no answer or were refused
NO_RESPONSE_STATES = frozenset({"S0", "REJ"})

PORT_SCAN_MIN_PORTS = 50
PORT_SCAN_HIGH_PORTS = 200
PORT_SCAN_SAMPLE_SIZE = 20

EXFIL_MIN_SOURCES = 3
EXFIL_IQR_MULTIPLIER = 3
EXFIL_FLOOR_BYTES = 100 * 1024 * 1024        # 100 MiB
EXFIL_CRITICAL_BYTES = 1024 * 1024 * 1024    # 1 GiB

UNUSUAL_PORT_MIN_COUNT = 20
UNUSUAL_PORT_MAX_RESULTS = 10

COMMON_PORTS = frozenset({
    20, 21, 22, 25, 53, 67, 68, 80, 110, 123, 143, 161,
    162, 389, 443, 445, 465, 514, 587, 636, 993, 995,
    1433, 1521, 3306, 3389, 5432, 5900, 8080, 8443, 8888,
})


class AnomalyType(str, Enum):
    """Kinds of connection anomaly."""
    PORT_SCAN = "port_scan"
    DATA_EXFILTRATION = "data_exfiltration"
    UNUSUAL_PORT = "unusual_port"


class Severity(str, Enum):
    """Anomaly severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass(frozen=True)
class AnomalyResult:
    """A detected anomaly with its supporting numbers."""
    type: AnomalyType
    severity: Severity
    description: str
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "type": self.type.value,
            "severity": self.severity.value,
            "description": self.description,
            "details": self.details,
        }


def detect_connection_anomalies(records: Sequence[Record]) -> list[AnomalyResult]:
    """
    Run every connection anomaly detector.

    Args:
        records: Connection (conn.log) records

    Returns:
        Port scan, exfiltration and unusual-port findings, in that order
    """
    anomalies: list[AnomalyResult] = []
    anomalies.extend(detect_port_scans(records))
    anomalies.extend(detect_data_exfiltration(records))
    anomalies.extend(detect_unusual_ports(records))

    logger.info(f"Anomaly detection over {len(records)} connections found {len(anomalies)} anomalies")
    return anomalies


def detect_port_scans(records: Sequence[Record]) -> list[AnomalyResult]:
    """Flag sources that tried more than 50 distinct ports without a response."""
    src_ports: dict[str, dict[Any, None]] = defaultdict(dict)
    src_targets: dict[str, set[str]] = defaultdict(set)

    for record in records:
        if to_text(record.get("conn_state")) not in NO_RESPONSE_STATES:
            continue
        src = to_text(record.get("id.orig_h"))
        port = record.get("id.resp_p")
        if not src or port is None:
            continue

        # dict keeps first-seen order for the port sample
        src_ports[src][port] = None
        src_targets[src].add(to_text(record.get("id.resp_h")))

    anomalies = []
    for src, ports in src_ports.items():
        if len(ports) <= PORT_SCAN_MIN_PORTS:
            continue
        targets = src_targets[src]
        anomalies.append(AnomalyResult(
            type=AnomalyType.PORT_SCAN,
            severity=Severity.HIGH if len(ports) > PORT_SCAN_HIGH_PORTS else Severity.MEDIUM,
            description=f"{src} scanned {len(ports)} ports across {len(targets)} hosts",
            details={
                "source_ip": src,
                "ports_scanned": len(ports),
                "unique_targets": len(targets),
                "sample_ports": list(ports)[:PORT_SCAN_SAMPLE_SIZE],
            },
        ))
    return anomalies


def detect_data_exfiltration(records: Sequence[Record]) -> list[AnomalyResult]:
    """
    Flag sources whose outbound bytes are an IQR outlier and above 100 MiB.

    Quartiles are taken by index on the sorted per-source totals, without
    interpolation. Fewer than three sources gives no result.
    """
    src_bytes: dict[str, float] = defaultdict(int)

    for record in records:
        sent = record.get("orig_bytes")
        if not is_number(sent) or not sent > 0:
            continue
        src = to_text(record.get("id.orig_h"))
        if not src:
            continue
        src_bytes[src] += sent

    totals = sorted(src_bytes.values())
    if len(totals) < EXFIL_MIN_SOURCES:
        return []

    q1 = totals[int(len(totals) * 0.25)]
    q3 = totals[int(len(totals) * 0.75)]
    iqr = q3 - q1
    threshold = q3 + EXFIL_IQR_MULTIPLIER * iqr

    anomalies = []
    for src, sent in src_bytes.items():
        if sent > threshold and sent > EXFIL_FLOOR_BYTES:
            anomalies.append(AnomalyResult(
                type=AnomalyType.DATA_EXFILTRATION,
                severity=Severity.CRITICAL if sent > EXFIL_CRITICAL_BYTES else Severity.HIGH,
                description=f"{src} sent {format_bytes(sent, precision=1)} - statistical outlier",
                details={
                    "source_ip": src,
                    "bytes_sent": sent,
                    "threshold": threshold,
                    "iqr": iqr,
                },
            ))
    return anomalies


def detect_unusual_ports(records: Sequence[Record]) -> list[AnomalyResult]:
    """Flag uncommon destination ports seen more than 20 times with no identified service."""
    port_counts: dict[Any, int] = defaultdict(int)

    for record in records:
        port = record.get("id.resp_p")
        if not is_number(port) or not 0 < port < 65536 or port in COMMON_PORTS:
            continue
        if to_text(record.get("service")):
            continue
        port_counts[port] += 1

    busy = sorted(
        ((port, count) for port, count in port_counts.items() if count > UNUSUAL_PORT_MIN_COUNT),
        key=lambda item: item[1],
        reverse=True,
    )

    return [
        AnomalyResult(
            type=AnomalyType.UNUSUAL_PORT,
            severity=Severity.LOW,
            description=f"{count} connections to unusual port {port} without identified service",
            details={"port": port, "connection_count": count},
        )
        for port, count in busy[:UNUSUAL_PORT_MAX_RESULTS]
    ]
