"""
Tests for ZeekScope Log Reader Module
"""

import gzip
from datetime import date, datetime, timezone

import pytest

from conftest import BASE_TS, conn, write_json_log
from zeekscope.reader import (
    LogReader,
    date_range,
    normalize_timestamp,
    parse_json_line,
    parse_json_lines,
    parse_time,
    parse_tsv_content,
    parse_tsv_header,
    read_log_file,
    resolve_log_paths,
)

TSV_LOG = "\n".join([
    "#separator \\x09",
    "#set_separator\t,",
    "#empty_field\t(empty)",
    "#unset_field\t-",
    "#path\tconn",
    "#open\t2023-11-14-22-13-20",
    "#fields\tts\tuid\tid.orig_h\tid.resp_p\tservice\tduration\tlocal_orig\ttunnel_parents",
    "#types\ttime\tstring\taddr\tport\tstring\tinterval\tbool\tset[string]",
    "1700000000.123456\tCx1\t10.0.0.1\t443\tssl\t1.5\tT\t(empty)",
    "1700000001.000000\tCx2\t10.0.0.2\t53\t-\t-\tF\tCa,Cb",
    "#close\t2023-11-14-23-00-00",
])


class TestTimestamps:
    """Tests for timestamp parsing."""

    def test_parse_time_iso(self):
        """Test ISO 8601 with a Z suffix."""
        assert parse_time("2023-11-14T22:13:20Z") == BASE_TS

    def test_parse_time_empty(self):
        """Test empty values mean no bound."""
        assert parse_time(None) is None
        assert parse_time("") is None

    def test_parse_time_invalid(self):
        """Test garbage raises ValueError."""
        with pytest.raises(ValueError):
            parse_time("yesterday")

    def test_normalize(self):
        """Test numeric strings, ISO strings and junk."""
        assert normalize_timestamp(12.5) == 12.5
        assert normalize_timestamp("1700000000.5") == 1700000000.5
        assert normalize_timestamp("2023-11-14T22:13:20+00:00") == BASE_TS
        assert normalize_timestamp("soon") == 0
        assert normalize_timestamp(None) == 0

    def test_normalize_non_finite(self):
        """Test NaN and infinite timestamps become 0."""
        assert normalize_timestamp("nan") == 0
        assert normalize_timestamp("-inf") == 0
        assert normalize_timestamp(float("inf")) == 0
        assert parse_json_line('{"ts": NaN, "uid": "C1"}')["ts"] == 0
        assert parse_json_line('{"ts": Infinity}')["ts"] == 0


class TestJsonParsing:
    """Tests for JSON log lines."""

    def test_object_line(self):
        """Test a normal JSON record."""
        record = parse_json_line('{"ts": 1700000000.5, "id.orig_h": "10.0.0.1"}')
        assert record == {"ts": 1700000000.5, "id.orig_h": "10.0.0.1"}

    def test_iso_ts_normalized(self):
        """Test ISO timestamps become epoch seconds."""
        record = parse_json_line('{"ts": "2023-11-14T22:13:20Z"}')
        assert record["ts"] == BASE_TS

    @pytest.mark.parametrize("line", ["", "   ", "// comment", "{broken", "[1, 2]", "42"])
    def test_skipped_lines(self, line):
        """Test lines that are not records."""
        assert parse_json_line(line) is None

    def test_lines(self):
        """Test parsing a document."""
        records = parse_json_lines('{"a": 1}\n\nnot json\n{"a": 2}\n')
        assert [r["a"] for r in records] == [1, 2]


class TestTsvParsing:
    """Tests for Zeek TSV logs."""

    def test_header(self):
        """Test header directives."""
        header = parse_tsv_header(TSV_LOG.split("\n"))
        assert header.separator == "\t"
        assert header.path == "conn"
        assert header.fields[2] == "id.orig_h"
        assert header.types[-1] == "set[string]"

    def test_header_missing_fields(self):
        """Test a header without #fields is rejected."""
        assert parse_tsv_header(["#separator \\x09", "#path\tconn"]) is None

    def test_records(self):
        """Test typed value conversion."""
        first, second = parse_tsv_content(TSV_LOG)
        assert first["ts"] == pytest.approx(1700000000.123456)
        assert first["id.resp_p"] == 443
        assert first["duration"] == 1.5
        assert first["local_orig"] is True
        assert first["tunnel_parents"] == []
        assert second["local_orig"] is False
        assert second["tunnel_parents"] == ["Ca", "Cb"]

    def test_unset_fields_omitted(self):
        """Test "-" values are left out."""
        _, second = parse_tsv_content(TSV_LOG)
        assert "service" not in second
        assert "duration" not in second

    def test_no_header(self):
        """Test content without a header yields nothing."""
        assert parse_tsv_content("a\tb\tc\n") == []


class TestFiles:
    """Tests for file reading and path resolution."""

    def test_read_json(self, tmp_path, conn_records):
        """Test reading a JSON log file."""
        path = write_json_log(tmp_path / "conn.log", conn_records)
        assert len(read_log_file(path)) == len(conn_records)

    def test_read_gzip_tsv(self, tmp_path):
        """Test transparent gzip decompression."""
        path = tmp_path / "conn.log.gz"
        with gzip.open(path, "wt", encoding="utf-8") as f:
            f.write(TSV_LOG)
        records = read_log_file(path, "tsv")
        assert [r["uid"] for r in records] == ["Cx1", "Cx2"]

    def test_current_paths(self, zeek_dirs):
        """Test plain and gzipped current logs are found."""
        (zeek_dirs.log_dir / "conn.log").write_text("")
        (zeek_dirs.log_dir / "conn.log.gz").write_bytes(gzip.compress(b""))
        names = [p.name for p in resolve_log_paths(zeek_dirs, "conn")]
        assert names == ["conn.log", "conn.log.gz"]

    def test_archive_rotated_paths(self, zeek_dirs):
        """Test rotated files in a dated archive directory."""
        day = zeek_dirs.log_archive / "2023-11-14"
        day.mkdir()
        (day / "conn.00:00:00-01:00:00.log.gz").write_bytes(gzip.compress(b""))
        (day / "dns.00:00:00-01:00:00.log.gz").write_bytes(gzip.compress(b""))
        names = [p.name for p in resolve_log_paths(zeek_dirs, "conn", "2023-11-14")]
        assert names == ["conn.00:00:00-01:00:00.log.gz"]

    def test_missing_directory(self, zeek_dirs):
        """Test a missing archive day resolves to nothing."""
        assert resolve_log_paths(zeek_dirs, "conn", "1999-01-01") == []


class TestDateRange:
    """Tests for date_range."""

    def test_no_bounds(self):
        """Test an open window touches no archive days."""
        assert date_range(None, None) == []

    def test_span(self):
        """Test inclusive day listing."""
        start = datetime(2024, 3, 1, 12, 0).timestamp()
        end = datetime(2024, 3, 3, 12, 0).timestamp()
        assert date_range(start, end) == ["2024-03-01", "2024-03-02", "2024-03-03"]

    def test_open_end_is_today(self):
        """Test a missing end defaults to today."""
        start = datetime.now().timestamp()
        assert date_range(start, None) == [date.today().isoformat()]


class TestLogReader:
    """Tests for LogReader.query_log."""

    def test_current_directory(self, populated_logs, conn_records):
        """Test reading without a time window."""
        reader = LogReader(populated_logs)
        assert len(reader.query_log("conn")) == len(conn_records)

    def test_missing_log_type(self, populated_logs):
        """Test an absent log type returns no records."""
        assert LogReader(populated_logs).query_log("smtp") == []

    def test_time_window(self, populated_logs):
        """Test records outside the window are dropped."""
        reader = LogReader(populated_logs)
        start = datetime.fromtimestamp(BASE_TS + 10, tz=timezone.utc).isoformat()
        end = datetime.fromtimestamp(BASE_TS + 30, tz=timezone.utc).isoformat()
        records = reader.query_log("conn", start, end)
        assert [r["uid"] for r in records] == ["CA2", "CA3", "CA4"]

    def test_window_drops_records_without_ts(self, zeek_dirs):
        """Test records lacking ts do not survive a window."""
        write_json_log(zeek_dirs.log_dir / "conn.log", [conn("10.0.0.1", "10.0.0.2", 80), {"uid": "x"}])
        start = datetime.fromtimestamp(BASE_TS - 1, tz=timezone.utc).isoformat()
        records = LogReader(zeek_dirs).query_log("conn", start, None)
        assert len(records) == 1

    def test_reads_archive_days(self, zeek_dirs):
        """Test archive directories inside the window are read."""
        day = date.fromtimestamp(BASE_TS).isoformat()
        write_json_log(zeek_dirs.log_archive / day / "conn.log", [conn("10.0.0.7", "10.0.0.8", 80)])
        start = datetime.fromtimestamp(BASE_TS - 1, tz=timezone.utc).isoformat()
        end = datetime.fromtimestamp(BASE_TS + 1, tz=timezone.utc).isoformat()
        records = LogReader(zeek_dirs).query_log("conn", start, end)
        assert [r["id.orig_h"] for r in records] == ["10.0.0.7"]

    def test_corrupt_gzip_skipped(self, zeek_dirs, caplog):
        """Test an unreadable file is logged and skipped."""
        (zeek_dirs.log_dir / "conn.log.gz").write_bytes(b"not gzip at all")
        write_json_log(zeek_dirs.log_dir / "conn.log", [conn("10.0.0.1", "10.0.0.2", 80)])
        records = LogReader(zeek_dirs).query_log("conn")
        assert len(records) == 1
        assert "Skipping unreadable log" in caplog.text

    def test_corrupt_deflate_body_skipped(self, zeek_dirs, caplog):
        """Test a gzip with a valid header but a broken deflate stream is skipped."""
        header = gzip.compress(b"")[:10]
        # BFINAL set with the reserved block type
        (zeek_dirs.log_dir / "conn.log.gz").write_bytes(header + b"\x07" + b"\x00" * 32)
        write_json_log(zeek_dirs.log_dir / "conn.log", [conn("10.0.0.1", "10.0.0.2", 80, uid="C1")])
        records = LogReader(zeek_dirs).query_log("conn")
        assert [r["uid"] for r in records] == ["C1"]
        assert "Skipping unreadable log" in caplog.text

    def test_invalid_window(self, populated_logs):
        """Test a malformed bound raises ValueError."""
        with pytest.raises(ValueError):
            LogReader(populated_logs).query_log("conn", "not-a-date")
