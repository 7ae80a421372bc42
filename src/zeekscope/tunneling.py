"""
ZeekScope DNS Tunneling Check
Flags DNS queries whose subdomains look like they carry encoded data.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Sequence

from zeekscope.entropy import BASE64_PATTERN, HEX_PATTERN, shannon_entropy
from zeekscope.records import Record, to_text

logger = logging.getLogger("zeekscope.analytics")

LONG_SUBDOMAIN_CHARS = 40
ENCODED_SUBDOMAIN_CHARS = 20
TXT_QUERY_MIN_COUNT = 10
MAX_REPORTED = 100
TUNNEL_QTYPES = ("TXT", "NULL")


@dataclass(frozen=True)
class SuspiciousQuery:
    """One DNS query and why it looks like tunneling."""
    query: str
    src_ip: str
    entropy: float
    subdomain_length: int
    qtype: str
    reasons: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "query": self.query,
            "src_ip": self.src_ip,
            "entropy": round(self.entropy, 4),
            "subdomain_length": self.subdomain_length,
            "qtype": self.qtype,
            "reasons": self.reasons,
        }


@dataclass
class TunnelingReport:
    """Result of a DNS tunneling check."""
    total_queries: int
    entropy_threshold: float
    suspicious: list[SuspiciousQuery] = field(default_factory=list)
    high_txt_domains: list[tuple[str, int]] = field(default_factory=list)
    suspicious_count: int = 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "total_queries_analyzed": self.total_queries,
            "suspicious_queries": self.suspicious_count,
            "entropy_threshold": self.entropy_threshold,
            "suspicious": [s.to_dict() for s in self.suspicious],
            "high_txt_query_domains": [
                {"domain": domain, "txt_query_count": count}
                for domain, count in self.high_txt_domains
            ],
        }


def split_query(query: str) -> tuple[str, str]:
    """Split a DNS name into (subdomain, base domain)."""
    parts = query.split(".")
    if len(parts) > 2:
        return ".".join(parts[:-2]), ".".join(parts[-2:])
    return parts[0], query


def check_dns_tunneling(records: Sequence[Record], entropy_threshold: float = 3.5) -> TunnelingReport:
    """
    Look for DNS tunneling indicators in DNS log records.

    Args:
        records: dns.log records
        entropy_threshold: Subdomain entropy above which a query is flagged

    Returns:
        TunnelingReport with up to 100 suspicious queries and the base
        domains receiving more than 10 TXT/NULL queries
    """
    suspicious: list[SuspiciousQuery] = []
    txt_counts: dict[str, int] = defaultdict(int)

    for record in records:
        query = to_text(record.get("query"))
        if not query:
            continue
        src_ip = to_text(record.get("id.orig_h"))
        qtype = to_text(record.get("qtype_name"))

        subdomain, base_domain = split_query(query)
        entropy = shannon_entropy(subdomain)

        if qtype in TUNNEL_QTYPES:
            txt_counts[base_domain] += 1

        reasons = []
        if entropy > entropy_threshold:
            reasons.append(f"High entropy subdomain ({entropy:.2f})")
        if len(subdomain) > LONG_SUBDOMAIN_CHARS:
            reasons.append(f"Long subdomain ({len(subdomain)} chars)")
        if qtype in TUNNEL_QTYPES:
            reasons.append(f"Suspicious query type: {qtype}")
        if len(subdomain) > ENCODED_SUBDOMAIN_CHARS and BASE64_PATTERN.fullmatch(subdomain):
            reasons.append("Possible base64 encoded subdomain")
        if len(subdomain) > ENCODED_SUBDOMAIN_CHARS and HEX_PATTERN.fullmatch(subdomain):
            reasons.append("Possible hex encoded subdomain")

        if reasons:
            suspicious.append(SuspiciousQuery(
                query=query,
                src_ip=src_ip,
                entropy=entropy,
                subdomain_length=len(subdomain),
                qtype=qtype,
                reasons=reasons,
            ))

    high_txt = sorted(
        ((domain, count) for domain, count in txt_counts.items() if count > TXT_QUERY_MIN_COUNT),
        key=lambda item: item[1],
        reverse=True,
    )

    logger.info(f"DNS tunneling check: {len(suspicious)} of {len(records)} queries suspicious")
    return TunnelingReport(
        total_queries=len(records),
        entropy_threshold=entropy_threshold,
        suspicious=suspicious[:MAX_REPORTED],
        high_txt_domains=high_txt,
        suspicious_count=len(suspicious),
    )
