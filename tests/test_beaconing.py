"""
Tests for ZeekScope Beacon Detection
"""

import pytest

from conftest import BASE_TS, conn
from zeekscope.beaconing import beacon_score, detect_beaconing


def periodic(count, interval, src="10.0.0.5", dst="203.0.113.10", port=443, **extra):
    return [conn(src, dst, port, BASE_TS + i * interval, **extra) for i in range(count)]


class TestBeaconScore:
    """Tests for beacon_score."""

    def test_perfect_regularity(self):
        """Test zero jitter with 200 connections scores 100."""
        assert beacon_score(0, 200) == pytest.approx(100)

    def test_components_are_capped(self):
        """Test both components stay within 0-100."""
        assert beacon_score(150, 0) == 0
        assert beacon_score(0, 10000) == pytest.approx(100)
        assert beacon_score(10, 20) == pytest.approx(90 * 0.7 + 10 * 0.3)


class TestDetectBeaconing:
    """Tests for detect_beaconing."""

    def test_regular_interval(self):
        """Test 20 connections exactly 60s apart form one beacon."""
        candidates = detect_beaconing(periodic(20, 60))
        assert len(candidates) == 1
        beacon = candidates[0]
        assert beacon.avg_interval == pytest.approx(60)
        assert beacon.jitter_percent < 1
        assert beacon.connection_count == 20
        assert beacon.src_ip == "10.0.0.5"
        assert beacon.dst_port == 443

    @pytest.mark.parametrize("bad_ts", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_timestamp_ignored(self, bad_ts):
        """Test a NaN or infinite timestamp does not spoil the interval statistics."""
        records = periodic(20, 60) + [conn("10.0.0.5", "203.0.113.10", 443, bad_ts, uid="CBAD")]
        candidates = detect_beaconing(records)
        assert len(candidates) == 1
        assert candidates[0].avg_interval == pytest.approx(60)
        assert candidates[0].connection_count == 20

    def test_below_min_connections(self):
        """Test too few connections yields nothing."""
        assert detect_beaconing(periodic(5, 60), min_connections=10) == []

    def test_irregular_intervals(self):
        """Test high jitter is not reported."""
        times = [0, 1, 100, 102, 400, 401, 900, 1500, 1501, 3000, 3001]
        records = [conn("10.0.0.5", "203.0.113.10", 443, BASE_TS + t) for t in times]
        assert detect_beaconing(records) == []

    def test_zero_interval_skipped(self):
        """Test identical timestamps are not a beacon."""
        records = [conn("10.0.0.5", "203.0.113.10", 443, BASE_TS) for _ in range(15)]
        assert detect_beaconing(records) == []

    def test_unordered_input(self):
        """Test timestamps are sorted before intervals are taken."""
        records = list(reversed(periodic(12, 30)))
        candidates = detect_beaconing(records)
        assert len(candidates) == 1
        assert candidates[0].avg_interval == pytest.approx(30)

    def test_missing_timestamps_ignored(self):
        """Test records without numeric ts do not count as connections."""
        records = periodic(10, 60)
        records.append({"id.orig_h": "10.0.0.5", "id.resp_h": "203.0.113.10", "id.resp_p": 443})
        candidates = detect_beaconing(records, min_connections=10)
        assert candidates[0].connection_count == 10

    def test_average_bytes(self):
        """Test average bytes sums both directions per connection."""
        records = periodic(10, 60, orig_bytes=100, resp_bytes=300)
        assert detect_beaconing(records)[0].avg_bytes == 400

    def test_sorted_by_score(self):
        """Test candidates are ordered by score."""
        records = periodic(12, 60, dst="203.0.113.1") + periodic(150, 60, dst="203.0.113.2")
        candidates = detect_beaconing(records)
        assert [c.dst_ip for c in candidates] == ["203.0.113.2", "203.0.113.1"]

    def test_triples_kept_apart(self):
        """Test different ports are separate candidates."""
        records = periodic(10, 60, port=443) + periodic(10, 60, port=8443)
        assert len(detect_beaconing(records)) == 2

    def test_to_dict(self):
        """Test serialization."""
        data = detect_beaconing(periodic(20, 60))[0].to_dict()
        assert data["dst_ip"] == "203.0.113.10"
        assert data["score"] > 70
