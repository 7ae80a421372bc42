"""
Tests for ZeekScope Investigation Module
"""

import pytest

from conftest import BASE_TS, write_json_log
from zeekscope.investigation import (
    connection_summary,
    detect_ssh_bruteforce,
    dns_summary,
    investigate_host,
    trace_uid,
)
from zeekscope.reader import LogReader


def ssh(src, dst, success, ts):
    return {"ts": ts, "id.orig_h": src, "id.resp_h": dst, "id.resp_p": 22, "auth_success": success}


@pytest.fixture
def full_logs(populated_logs):
    """Current directory with every log type a pivot touches."""
    log_dir = populated_logs.log_dir
    write_json_log(log_dir / "http.log", [
        {"ts": BASE_TS + 20, "uid": "CA3", "id.orig_h": "10.0.0.2", "host": "example.com",
         "uri": "/index.html", "user_agent": "curl/8.0"},
    ])
    write_json_log(log_dir / "ssl.log", [
        {"ts": BASE_TS + 10, "uid": "CA2", "id.orig_h": "10.0.0.1", "server_name": "example.com"},
    ])
    write_json_log(log_dir / "files.log", [
        {"ts": BASE_TS + 21, "fuid": "F1", "conn_uids": ["CA3"], "mime_type": "text/html",
         "tx_hosts": ["93.184.216.34"], "rx_hosts": ["10.0.0.2"]},
        {"ts": BASE_TS + 12, "fuid": "F2", "conn_uids": ["CA2"], "mime_type": "application/x-dosexec",
         "filename": "setup.exe", "tx_hosts": ["93.184.216.34"], "rx_hosts": ["10.0.0.1"]},
        {"ts": BASE_TS + 13, "fuid": "F3", "conn_uids": ["CX9"], "mime_type": "image/png",
         "tx_hosts": ["10.0.0.10"], "rx_hosts": ["10.0.0.2"]},
    ])
    write_json_log(log_dir / "notice.log", [
        {"ts": BASE_TS + 50, "src": "10.0.0.1", "note": "Scan::Port_Scan", "msg": "scanned"},
    ])
    write_json_log(log_dir / "software.log", [
        {"ts": BASE_TS, "host": "10.0.0.1", "software_type": "HTTP::BROWSER", "name": "curl",
         "version.major": 8, "version.minor": 0},
    ])
    write_json_log(log_dir / "ssh.log", [ssh("10.0.0.1", "10.0.0.9", True, BASE_TS + 5)])
    return populated_logs


class TestConnectionSummary:
    """Tests for connection_summary."""

    def test_totals(self, conn_records):
        """Test totals and unique counts."""
        result = connection_summary(conn_records)
        assert result["total_connections"] == 5
        assert result["total_bytes"] == 3960 + 95620
        assert result["unique_src_ips"] == 4
        assert result["top_sources"][0] == {"value": "10.0.0.1", "count": 2}

    def test_grouping(self, conn_records):
        """Test the primary grouping field."""
        result = connection_summary(conn_records, "service")
        assert result["primary_grouping"]["field"] == "service"

    def test_unknown_grouping(self, conn_records):
        """Test an unknown grouping is rejected."""
        with pytest.raises(ValueError):
            connection_summary(conn_records, "country")


class TestDnsSummary:
    """Tests for dns_summary."""

    def test_summary(self, dns_records):
        """Test query counts and NXDOMAIN tracking."""
        result = dns_summary(dns_records)
        assert result["total_queries"] == 4
        assert result["unique_clients"] == 3
        assert result["nxdomain_count"] == 1
        assert result["top_nxdomain_domains"] == [{"value": "missing.example.org", "count": 1}]


class TestSshBruteforce:
    """Tests for detect_ssh_bruteforce."""

    def test_flags_repeated_failures(self):
        """Test sources at or above the threshold are reported."""
        records = [ssh("203.0.113.9", f"10.0.0.{i % 2}", False, BASE_TS + i) for i in range(6)]
        records += [ssh("203.0.113.7", "10.0.0.1", False, BASE_TS) for _ in range(2)]
        records += [ssh("10.0.0.5", "10.0.0.1", True, BASE_TS)]

        result = detect_ssh_bruteforce(records, threshold=5)
        assert result["total_failed_auth"] == 8
        assert result["brute_force_source_count"] == 1
        source = result["sources"][0]
        assert source["source_ip"] == "203.0.113.9"
        assert source["failed_attempts"] == 6
        assert source["unique_targets"] == 2
        assert source["first_seen"] == "2023-11-14T22:13:20+00:00"
        assert source["last_seen"] == "2023-11-14T22:13:25+00:00"

    def test_unknown_auth_not_counted(self):
        """Test records without auth_success are not failures."""
        records = [{"id.orig_h": "203.0.113.9"} for _ in range(10)]
        assert detect_ssh_bruteforce(records)["total_failed_auth"] == 0


class TestInvestigateHost:
    """Tests for investigate_host."""

    def test_host_pivot(self, full_logs):
        """Test activity is gathered across log types."""
        result = investigate_host(LogReader(full_logs), "10.0.0.1", 1000)

        conn = result["connection_summary"]
        assert conn["as_source"] == 2
        assert conn["as_destination"] == 1
        assert conn["bytes_sent"] == 1560
        assert conn["bytes_received"] == 90120
        assert result["dns"]["query_count"] == 1
        assert result["ssl"]["top_server_names"] == [{"value": "example.com", "count": 1}]
        assert result["ssh"]["connections"][0]["dst"] == "10.0.0.9:22"
        assert result["notices"]["notices"][0]["note"] == "Scan::Port_Scan"
        assert result["software"] == [{"type": "HTTP::BROWSER", "name": "curl", "version": "8.0"}]

    def test_host_files(self, full_logs):
        """Test file transfers are matched on exact tx/rx host membership."""
        files = investigate_host(LogReader(full_logs), "10.0.0.1", 1000)["files"]
        assert files["transfer_count"] == 1
        assert files["received"] == 1
        assert files["sent"] == 0
        assert files["top_mime_types"] == [{"value": "application/x-dosexec", "count": 1}]
        assert [f["fuid"] for f in files["executables"]] == ["F2"]

    def test_respects_max_results(self, full_logs):
        """Test per-log results are capped."""
        result = investigate_host(LogReader(full_logs), "10.0.0.1", 1)
        assert result["connection_summary"]["as_source"] == 1

    def test_unknown_host(self, full_logs):
        """Test a host with no activity."""
        result = investigate_host(LogReader(full_logs), "198.51.100.1", 1000)
        assert result["connection_summary"]["as_source"] == 0
        assert result["files"]["transfer_count"] == 0
        assert result["software"] == []


class TestTraceUid:
    """Tests for trace_uid."""

    def test_trace(self, full_logs):
        """Test a UID is followed into http and files."""
        session = trace_uid(LogReader(full_logs), "CA3")
        assert set(session) == {"uid", "conn", "http", "files"}
        assert session["files"][0]["fuid"] == "F1"
        assert session["conn"][0]["timestamp"] == "2023-11-14T22:13:40+00:00"

    def test_unknown_uid(self, full_logs):
        """Test an unknown UID returns only the uid key."""
        assert trace_uid(LogReader(full_logs), "nope") == {"uid": "nope"}
