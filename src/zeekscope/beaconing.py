"""
ZeekScope Beacon Detector
Finds connection pairs that recur at regular intervals.

C2 implants usually call home on a timer, so the gaps between their
connections have a low spread relative to their mean. Each
(source, destination, port) triple is scored on that regularity, with
connection volume as a capped secondary signal.
"""

import logging
import math
import statistics
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Sequence

from zeekscope.records import Record, is_number, to_text

logger = logging.getLogger("zeekscope.analytics")


@dataclass(frozen=True)
class BeaconCandidate:
    """A (source, destination, port) triple with regular connection timing."""
    src_ip: str
    dst_ip: str
    dst_port: Any
    connection_count: int
    avg_interval: float
    std_dev_interval: float
    jitter_percent: float
    avg_bytes: int
    score: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "src_ip": self.src_ip,
            "dst_ip": self.dst_ip,
            "dst_port": self.dst_port,
            "connection_count": self.connection_count,
            "avg_interval": self.avg_interval,
            "std_dev_interval": self.std_dev_interval,
            "jitter_percent": self.jitter_percent,
            "avg_bytes": self.avg_bytes,
            "score": self.score,
        }


def beacon_score(jitter_percent: float, connection_count: int) -> float:
    """Regularity weighted 0.7, volume weighted 0.3, each capped to 0-100."""
    regularity = max(0.0, 100 - jitter_percent)
    volume = min(100.0, connection_count / 2)
    return regularity * 0.7 + volume * 0.3


def detect_beaconing(
    records: Sequence[Record],
    min_connections: int = 10,
    max_jitter_percent: float = 30,
) -> list[BeaconCandidate]:
    """
    Detect potential beaconing by analyzing connection regularity.

    Args:
        records: Connection records
        min_connections: Minimum timestamps a triple needs to be considered
        max_jitter_percent: Maximum stddev/mean of intervals, in percent

    Returns:
        Candidates sorted by score (higher = more suspicious)
    """
    timestamps: dict[tuple, list[float]] = defaultdict(list)
    byte_totals: dict[tuple, list[float]] = defaultdict(lambda: [0.0, 0])

    for record in records:
        src = to_text(record.get("id.orig_h"))
        dst = to_text(record.get("id.resp_h"))
        if not src or not dst:
            continue

        key = (src, dst, record.get("id.resp_p"))

        # bytes are averaged over every record of the triple, timed or not
        totals = byte_totals[key]
        orig = record.get("orig_bytes")
        resp = record.get("resp_bytes")
        if is_number(orig):
            totals[0] += orig
            totals[1] += 1
        if is_number(resp):
            totals[0] += resp

        ts = record.get("ts")
        if is_number(ts) and math.isfinite(ts):
            timestamps[key].append(ts)

    candidates: list[BeaconCandidate] = []

    for key, times in timestamps.items():
        if len(times) < min_connections or len(times) < 2:
            continue

        times.sort()
        intervals = [b - a for a, b in zip(times, times[1:])]

        avg_interval = statistics.fmean(intervals)
        if avg_interval == 0:
            continue

        std_dev = statistics.pstdev(intervals)
        jitter = std_dev / avg_interval * 100
        if jitter > max_jitter_percent:
            continue

        total_bytes, byte_count = byte_totals[key]
        avg_bytes = total_bytes / byte_count if byte_count > 0 else 0

        src, dst, port = key
        candidates.append(BeaconCandidate(
            src_ip=src,
            dst_ip=dst,
            dst_port=port,
            connection_count=len(times),
            avg_interval=round(avg_interval, 2),
            std_dev_interval=round(std_dev, 2),
            jitter_percent=round(jitter, 2),
            avg_bytes=round(avg_bytes),
            score=round(beacon_score(jitter, len(times)), 2),
        ))

    candidates.sort(key=lambda c: c.score, reverse=True)
    logger.info(f"Beacon analysis: {len(timestamps)} pairs examined, {len(candidates)} candidates")
    return candidates
