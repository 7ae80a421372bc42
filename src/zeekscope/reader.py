"""
ZeekScope Log Reader Module
Reads Zeek logs from disk into flat record dictionaries.

Features:
    - JSON (one object per line) and Zeek TSV formats
    - Transparent gzip for rotated *.log.gz files
    - Current directory plus dated archive directories (YYYY-MM-DD)
    - Time-window filtering on the normalized ts field
"""

import gzip
import json
import logging
import math
import re
import zlib
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Any, Iterable, Iterator

from zeekscope.config import ZeekConfig
from zeekscope.records import is_number

logger = logging.getLogger("zeekscope.reader")

LOG_TYPES = (
    "conn", "dns", "http", "ssl", "files", "notice", "weird",
    "x509", "smtp", "ssh", "dpd", "software",
)

HEX_ESCAPE = re.compile(r"\\x([0-9a-fA-F]{2})")


def parse_time(value: str | datetime | None) -> float | None:
    """
    Convert an ISO 8601 string (or datetime) to epoch seconds.

    Naive values are interpreted in local time.

    Raises:
        ValueError: if the string is not a recognizable timestamp
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.timestamp()
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00")).timestamp()
    except ValueError:
        raise ValueError(f"Invalid timestamp: {value!r} (expected ISO 8601)") from None


def normalize_timestamp(value: Any) -> float:
    """Finite numbers pass through; numeric or ISO strings are converted; anything else becomes 0."""
    if is_number(value):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            pass
        else:
            return number if math.isfinite(number) else 0
        try:
            return parse_time(value) or 0
        except ValueError:
            return 0
    return 0


# ---------- JSON ----------

def parse_json_line(line: str) -> dict | None:
    """
    Parse one JSON log line.

    Returns None for blank lines, "//" comments, invalid JSON and
    anything that is not a JSON object.
    """
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("//"):
        return None

    try:
        record = json.loads(trimmed)
    except json.JSONDecodeError:
        return None
    if not isinstance(record, dict):
        return None

    if "ts" in record:
        record["ts"] = normalize_timestamp(record["ts"])
    return record


def parse_json_lines(content: str) -> list[dict]:
    """Parse every record in a JSON-lines document."""
    records = []
    for line in content.split("\n"):
        record = parse_json_line(line)
        if record is not None:
            records.append(record)
    return records


# ---------- TSV ----------

@dataclass
class TsvHeader:
    """Directives from the "#..." preamble of a Zeek TSV log."""
    fields: list[str]
    types: list[str]
    separator: str = "\t"
    set_separator: str = ","
    empty_field: str = "(empty)"
    unset_field: str = "-"
    path: str | None = None
    open: str | None = None


def _parse_separator(value: str) -> str:
    return HEX_ESCAPE.sub(lambda m: chr(int(m.group(1), 16)), value)


def parse_tsv_header(lines: Iterable[str]) -> TsvHeader | None:
    """
    Parse the leading "#" directive lines of a TSV log.

    Returns:
        TsvHeader, or None if #fields or #types is missing
    """
    directives: dict[str, Any] = {"separator": "\t"}

    for line in lines:
        if not line.startswith("#"):
            break
        line = line.rstrip("\r\n")

        if line.startswith("#separator"):
            directives["separator"] = _parse_separator(line[len("#separator"):].strip())
            continue

        sep = directives["separator"]
        directive, _, value = line[1:].partition(sep)
        directive = directive.strip()

        if directive == "set_separator":
            directives["set_separator"] = value
        elif directive == "empty_field":
            directives["empty_field"] = value
        elif directive == "unset_field":
            directives["unset_field"] = value
        elif directive == "path":
            directives["path"] = value
        elif directive == "open":
            directives["open"] = value
        elif directive in ("fields", "types"):
            directives[directive] = value.split(sep)

    if "fields" not in directives or "types" not in directives:
        return None
    return TsvHeader(**directives)


def _empty_value(zeek_type: str) -> Any:
    if zeek_type.startswith(("set[", "vector[")):
        return []
    if zeek_type in ("count", "int", "port", "double", "time", "interval"):
        return 0
    if zeek_type == "bool":
        return False
    return ""


def _convert_scalar(raw: str, zeek_type: str) -> Any:
    try:
        if zeek_type in ("time", "double", "interval"):
            return float(raw)
        if zeek_type in ("count", "int", "port"):
            return int(raw)
    except ValueError:
        return raw
    if zeek_type == "bool":
        return raw in ("T", "true")
    return raw


def _convert_value(raw: str, zeek_type: str, set_separator: str) -> Any:
    if zeek_type.startswith(("set[", "vector[")):
        if not raw:
            return []
        inner = zeek_type[zeek_type.index("[") + 1:].rstrip("]")
        return [_convert_scalar(item, inner) for item in raw.split(set_separator)]
    return _convert_scalar(raw, zeek_type)


def parse_tsv_record(line: str, header: TsvHeader) -> dict | None:
    """
    Parse one TSV data line against its header.

    Unset fields are left out of the record; empty fields get the
    zero value of their Zeek type.
    """
    line = line.rstrip("\r\n")
    if not line.strip() or line.startswith("#"):
        return None

    record: dict[str, Any] = {}
    for name, zeek_type, raw in zip(header.fields, header.types, line.split(header.separator)):
        if raw == header.unset_field:
            continue
        if raw == header.empty_field:
            record[name] = _empty_value(zeek_type)
            continue
        record[name] = _convert_value(raw, zeek_type, header.set_separator)

    if "ts" in record:
        record["ts"] = normalize_timestamp(record["ts"])
    return record


def parse_tsv_content(content: str) -> list[dict]:
    """Parse a complete TSV log document."""
    lines = content.split("\n")
    header = parse_tsv_header(lines)
    if header is None:
        return []

    records = []
    for line in lines:
        record = parse_tsv_record(line, header)
        if record is not None:
            records.append(record)
    return records


# ---------- Files ----------

def _open_log(path: Path):
    if path.name.endswith(".gz"):
        return gzip.open(path, "rt", encoding="utf-8", errors="replace")
    return open(path, "r", encoding="utf-8", errors="replace")


def _iter_records(lines: Iterable[str], log_format: str) -> Iterator[dict]:
    if log_format == "json":
        for line in lines:
            record = parse_json_line(line)
            if record is not None:
                yield record
        return

    header_lines: list[str] = []
    header: TsvHeader | None = None
    for line in lines:
        if line.startswith("#"):
            # Rotated files may repeat the preamble; "#close" ends a block
            header_lines.append(line)
            header = parse_tsv_header(header_lines)
            continue
        if header is None:
            continue
        header_lines = []
        record = parse_tsv_record(line, header)
        if record is not None:
            yield record


def read_log_file(path: Path | str, log_format: str = "json") -> list[dict]:
    """
    Read every record from a log file.

    Args:
        path: Log file; a ".gz" suffix is decompressed on the fly
        log_format: "json" or "tsv"

    Returns:
        Parsed records
    """
    path = Path(path)
    with _open_log(path) as f:
        records = list(_iter_records(f, log_format))
    logger.debug(f"Read {len(records)} records from {path}")
    return records


def resolve_log_paths(config: ZeekConfig, log_type: str, day: str | None = None) -> list[Path]:
    """
    Find the files holding one log type.

    Without a day, looks in the current log directory. With a day
    (YYYY-MM-DD), looks in the matching archive directory, including
    rotated files such as "conn.00:00:00-01:00:00.log.gz".
    """
    filename = f"{log_type}.log"
    paths: list[Path] = []

    base = Path(config.log_dir) if day is None else Path(config.log_archive) / day
    plain = base / filename
    gz = base / f"{filename}.gz"

    for candidate in (plain, gz):
        if candidate.exists():
            paths.append(candidate)

    if day is not None and base.is_dir():
        try:
            rotated = sorted(
                p for p in base.iterdir()
                if p.name.startswith(f"{log_type}.") and p.name not in (filename, gz.name)
            )
        except OSError as e:
            logger.warning(f"Cannot list archive directory {base}: {e}")
            rotated = []
        paths.extend(rotated)

    return paths


def date_range(time_from: float | None, time_to: float | None) -> list[str]:
    """
    Local calendar days (YYYY-MM-DD) covered by a time window.

    An open end defaults to today; no bounds at all means no archive days.
    """
    if time_from is None and time_to is None:
        return []

    start = date.fromtimestamp(time_from) if time_from is not None else date.today()
    end = date.fromtimestamp(time_to) if time_to is not None else date.today()

    days = []
    current = start
    while current <= end:
        days.append(current.isoformat())
        current += timedelta(days=1)
    return days


@dataclass
class LogReader:
    """Loads records of one log type for a time window."""
    config: ZeekConfig = field(default_factory=ZeekConfig)

    def read_paths(self, paths: Iterable[Path]) -> list[dict]:
        """Read several files, skipping any that cannot be read."""
        records: list[dict] = []
        for path in paths:
            try:
                records.extend(read_log_file(path, self.config.log_format))
            except (OSError, EOFError, zlib.error) as e:
                logger.warning(f"Skipping unreadable log {path}: {e}")
        return records

    def query_log(
        self,
        log_type: str,
        time_from: str | datetime | None = None,
        time_to: str | datetime | None = None,
    ) -> list[dict]:
        """
        Load records of a log type, restricted to a time window.

        Args:
            log_type: Zeek log name ("conn", "dns", ...)
            time_from: Inclusive ISO 8601 start
            time_to: Inclusive ISO 8601 end

        Returns:
            Records with time_from <= ts <= time_to
        """
        from_ts = parse_time(time_from)
        to_ts = parse_time(time_to)

        paths: list[Path] = []
        for day in date_range(from_ts, to_ts):
            paths.extend(resolve_log_paths(self.config, log_type, day))
        paths.extend(resolve_log_paths(self.config, log_type))

        records = self.read_paths(paths)
        if from_ts is None and to_ts is None:
            return records

        kept = []
        for record in records:
            ts = record.get("ts")
            if not is_number(ts) or not math.isfinite(ts):
                continue
            if from_ts is not None and ts < from_ts:
                continue
            if to_ts is not None and ts > to_ts:
                continue
            kept.append(record)

        logger.info(f"Loaded {len(kept)} of {len(records)} {log_type} records in time window")
        return kept
