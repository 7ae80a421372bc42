"""
ZeekScope Test Configuration
Shared fixtures and configuration for pytest.
"""

import json
import sys
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from zeekscope.config import ZeekConfig  # noqa: E402

BASE_TS = 1700000000.0


def write_json_log(path: Path, records) -> Path:
    """Write records as a Zeek JSON-lines log."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n", encoding="utf-8")
    return path


def conn(src, dst, port, ts=BASE_TS, **extra):
    """Build a conn.log record."""
    record = {
        "ts": ts,
        "uid": extra.pop("uid") if "uid" in extra else f"C{int(ts)}{port}",
        "id.orig_h": src,
        "id.orig_p": 50000,
        "id.resp_h": dst,
        "id.resp_p": port,
        "proto": "tcp",
    }
    record.update(extra)
    return record


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def conn_records():
    """A small mixed set of connection records."""
    return [
        conn("10.0.0.1", "8.8.8.8", 53, BASE_TS, proto="udp", service="dns",
             orig_bytes=60, resp_bytes=120, duration=0.1, conn_state="SF", uid="CA1"),
        conn("10.0.0.1", "93.184.216.34", 443, BASE_TS + 10, service="ssl",
             orig_bytes=1500, resp_bytes=90000, duration=5.0, conn_state="SF", uid="CA2"),
        conn("10.0.0.2", "93.184.216.34", 80, BASE_TS + 20, service="http",
             orig_bytes=400, resp_bytes=3000, duration=1.0, conn_state="SF", uid="CA3"),
        conn("192.168.1.5", "10.0.0.1", 22, BASE_TS + 30, service="ssh",
             orig_bytes=2000, resp_bytes=2500, duration=30.0, conn_state="SF", uid="CA4"),
        conn("10.0.0.3", "172.16.0.9", 8081, BASE_TS + 40,
             orig_bytes=0, resp_bytes=0, conn_state="S0", uid="CA5"),
    ]


@pytest.fixture
def dns_records():
    """DNS records with one tunneling-looking query."""
    return [
        {"ts": BASE_TS, "uid": "CA1", "id.orig_h": "10.0.0.1", "query": "www.example.com",
         "qtype_name": "A", "rcode_name": "NOERROR", "answers": ["93.184.216.34"]},
        {"ts": BASE_TS + 1, "uid": "CD2", "id.orig_h": "10.0.0.2", "query": "example.com",
         "qtype_name": "AAAA", "rcode_name": "NOERROR"},
        {"ts": BASE_TS + 2, "uid": "CD3", "id.orig_h": "10.0.0.2", "query": "missing.example.org",
         "qtype_name": "A", "rcode_name": "NXDOMAIN"},
        {"ts": BASE_TS + 3, "uid": "CD4", "id.orig_h": "10.0.0.3",
         "query": "4a6f686e20536d6974682070617373776f7264.tunnel.evil.net",
         "qtype_name": "TXT", "rcode_name": "NOERROR"},
    ]


@pytest.fixture
def zeek_dirs(tmp_path):
    """Empty current and archive log directories."""
    current = tmp_path / "zeek" / "current"
    archive = tmp_path / "zeek"
    current.mkdir(parents=True)
    return ZeekConfig(log_dir=current, log_archive=archive)


@pytest.fixture
def populated_logs(zeek_dirs, conn_records, dns_records):
    """A current log directory holding conn.log and dns.log in JSON."""
    write_json_log(zeek_dirs.log_dir / "conn.log", conn_records)
    write_json_log(zeek_dirs.log_dir / "dns.log", dns_records)
    return zeek_dirs
