"""
ZeekScope
Query, aggregate and hunt through Zeek network logs.

Modules:
    - records: record model and field resolution
    - filters: filter evaluation (CIDR, wildcard, comparisons)
    - query: filter/sort/limit execution
    - aggregation: group-by, top-N, sums and unique counts
    - entropy: Shannon entropy and encoding heuristics
    - beaconing: periodic C2 beacon detection
    - anomaly: port scan, exfiltration and unusual-port detection
    - reader: JSON/TSV Zeek log reading
    - tunneling: DNS tunneling check
    - investigation: summaries, host pivots, UID tracing
    - hunting: HTTP, certificate, executable-download and long-connection checks
"""

# Version is managed by setuptools_scm from git tags
# Auto-generated to _version.py on install
try:
    from zeekscope._version import __version__, __version_tuple__
except ImportError:
    # Fallback for development without install or outside git repo
    __version__ = "0.1.0.dev0"
    __version_tuple__ = (0, 1, 0, "dev0")

__author__ = "ZeekScope Team"

# Lazy imports keep CLI startup fast
_EXPORTS = {
    "Config": "zeekscope.config",
    "FilterDef": "zeekscope.filters",
    "matches": "zeekscope.filters",
    "QueryOptions": "zeekscope.query",
    "execute_query": "zeekscope.query",
    "group_by": "zeekscope.aggregation",
    "top_n": "zeekscope.aggregation",
    "detect_beaconing": "zeekscope.beaconing",
    "detect_connection_anomalies": "zeekscope.anomaly",
    "shannon_entropy": "zeekscope.entropy",
    "LogReader": "zeekscope.reader",
    "setup_logging": "zeekscope.utils",
}


def __getattr__(name):
    """Lazy import modules on first access."""
    if name in _EXPORTS:
        import importlib
        return getattr(importlib.import_module(_EXPORTS[name]), name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [*_EXPORTS, "__version__", "__version_tuple__"]
