"""
ZeekScope CLI Module
Main command-line interface using Click.
"""

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from zeekscope import __version__
from zeekscope.anomaly import Severity, detect_connection_anomalies
from zeekscope.beaconing import detect_beaconing
from zeekscope.config import Config
from zeekscope.entropy import detect_encoding, shannon_entropy
from zeekscope.filters import FilterDef
from zeekscope.hunting import executable_downloads, expired_certs, long_connections, suspicious_http
from zeekscope.investigation import (
    CONNECTION_GROUPS,
    connection_summary,
    detect_ssh_bruteforce,
    dns_summary,
    investigate_host,
    trace_uid,
)
from zeekscope.query import SORT_ORDERS, QueryOptions, execute_query
from zeekscope.reader import LOG_TYPES, LogReader
from zeekscope.records import LOG_FIELDS, resolve_field, to_text
from zeekscope.tunneling import check_dns_tunneling
from zeekscope.utils import format_bytes, format_timestamp, print_banner, setup_logging


console = Console()

MAX_TABLE_ROWS = 50


def get_version_info() -> str:
    """Get detailed version information."""
    import platform
    lines = [
        f"ZeekScope {__version__}",
        f"Python {platform.python_version()}",
    ]
    return "\n".join(lines)


def get_severity_color(severity: Severity) -> str:
    """Get color for severity display."""
    colors = {
        Severity.LOW: "yellow",
        Severity.MEDIUM: "orange1",
        Severity.HIGH: "red",
        Severity.CRITICAL: "bold red",
    }
    return colors.get(severity, "white")


def time_window(func):
    """Add --from/--to options to a command."""
    func = click.option(
        "--to", "time_to",
        type=str,
        help="End of time window (ISO 8601)",
    )(func)
    func = click.option(
        "--from", "time_from",
        type=str,
        help="Start of time window (ISO 8601)",
    )(func)
    return func


def emit_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def fail(message: str) -> None:
    console.print(f"[red]Error: {message}[/red]")
    raise SystemExit(1)


def load_records(ctx, log_type: str, time_from: str | None, time_to: str | None) -> list[dict]:
    """Read one log type for a time window from the configured directories."""
    reader = LogReader(ctx.obj["config"].zeek)
    return reader.query_log(log_type, time_from, time_to)


def top_table(title: str, values: list[dict], value_header: str = "Value") -> Table:
    """Render a list of {value, count} dicts."""
    table = Table(title=title, box=box.ROUNDED)
    table.add_column(value_header, style="cyan")
    table.add_column("Count", justify="right")
    for item in values:
        table.add_row(str(item["value"]), str(item["count"]))
    return table


def group_table(aggregation: dict) -> Table:
    """Render an AggregationResult dict."""
    table = Table(title=f"By {aggregation['field']}", box=box.ROUNDED)
    table.add_column("Key", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("%", justify="right")
    for group in aggregation["groups"]:
        table.add_row(group["key"], str(group["count"]), f"{group['percentage']:.2f}")
    return table


@click.group()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    help="Enable verbose output",
)
@click.option(
    "--quiet", "-q",
    is_flag=True,
    help="Suppress non-essential output",
)
@click.option(
    "--json-output", "-j",
    is_flag=True,
    help="Output results as JSON",
)
@click.version_option(
    version=__version__,
    prog_name="ZeekScope",
    message=get_version_info(),
)
@click.pass_context
def cli(ctx, config, verbose, quiet, json_output):
    """
    ZeekScope - Zeek log hunting

    Query Zeek logs and run network threat-hunting analytics.

    Examples:

        zeekscope query conn -f id.resp_p:eq:443 -f orig_bytes:gt:1000000

        zeekscope summary --log-type dns --from 2024-01-01T00:00:00

        zeekscope beacons --min-connections 20

        zeekscope anomalies

        zeekscope investigate --ip 10.0.0.5
    """
    ctx.ensure_object(dict)

    # Load configuration, then ZEEK_* environment overrides
    try:
        ctx.obj["config"] = Config.load_or_default(config).apply_env()
    except Exception as e:
        if not quiet:
            console.print(f"[yellow]Warning: Could not load config: {e}[/yellow]")
        ctx.obj["config"] = Config()

    # Set up logging
    log_level = getattr(logging, str(ctx.obj["config"].log_level).upper(), logging.INFO)
    if verbose:
        log_level = logging.DEBUG
    if quiet:
        log_level = logging.WARNING

    logger = setup_logging(
        log_file=ctx.obj["config"].log_file if not quiet else None,
        level=log_level,
        console=not quiet and not json_output,
    )
    ctx.obj["logger"] = logger
    ctx.obj["json_output"] = json_output
    ctx.obj["quiet"] = quiet

    # Print banner unless quiet
    if not quiet and not json_output:
        print_banner()


@cli.command("query")
@click.argument("log_type", type=click.Choice(LOG_TYPES))
@click.option(
    "--filter", "-f", "filters",
    multiple=True,
    help="Filter as field:op:value (repeatable, AND-ed)",
)
@click.option(
    "--sort-by",
    default="ts",
    show_default=True,
    help="Field to sort by",
)
@click.option(
    "--order",
    type=click.Choice(SORT_ORDERS),
    default="desc",
    show_default=True,
    help="Sort order",
)
@click.option(
    "--limit", "-n",
    type=click.IntRange(min=0),
    default=100,
    show_default=True,
    help="Maximum records to return",
)
@time_window
@click.pass_context
def query(ctx, log_type, filters, sort_by, order, limit, time_from, time_to):
    """
    Query a Zeek log with filters, sorting and a limit.

    Operators: eq, neq, gt, gte, lt, lte, contains, wildcard, cidr, in, exists.

    Examples:

        zeekscope query conn -f id.orig_h:cidr:10.0.0.0/8

        zeekscope query dns -f query:wildcard:*.example.com --order asc
    """
    logger = ctx.obj["logger"]
    config = ctx.obj["config"]

    try:
        options = QueryOptions(
            filters=[FilterDef.parse(expr) for expr in filters],
            sort_by=sort_by,
            sort_order=order,
            limit=limit,
        )
        records = load_records(ctx, log_type, time_from, time_to)
    except ValueError as e:
        fail(str(e))

    results = execute_query(records, options, config.zeek.max_results)
    logger.info(f"Query on {log_type} returned {len(results)} of {len(records)} records")

    if ctx.obj["json_output"]:
        emit_json({
            "log_type": log_type,
            "query": options.to_dict(),
            "total_scanned": len(records),
            "count": len(results),
            "records": results,
        })
        return

    if not results:
        console.print(f"[yellow]No {log_type} records matched.[/yellow]")
        return

    columns = [name for name, _, _ in LOG_FIELDS.get(log_type, [])]
    if not columns:
        columns = list(results[0].keys())

    table = Table(title=f"{log_type}.log ({len(results)} of {len(records)})", box=box.ROUNDED)
    for name in columns:
        table.add_column(name, overflow="fold")

    for record in results[:MAX_TABLE_ROWS]:
        row = []
        for name in columns:
            value = resolve_field(record, name)
            if name == "ts":
                value = format_timestamp(value) or value
            row.append(to_text(value))
        table.add_row(*row)

    console.print(table)
    if len(results) > MAX_TABLE_ROWS:
        console.print(f"[dim]... and {len(results) - MAX_TABLE_ROWS} more (use --json-output for all)[/dim]")


@cli.command("summary")
@click.option(
    "--log-type", "-l",
    type=click.Choice(["conn", "dns"]),
    default="conn",
    show_default=True,
    help="Log to summarize",
)
@click.option(
    "--group-by", "-g",
    type=click.Choice(list(CONNECTION_GROUPS)),
    default="src",
    show_default=True,
    help="Primary grouping for connection summaries",
)
@time_window
@click.pass_context
def summary(ctx, log_type, group_by, time_from, time_to):
    """
    Summarize connections or DNS activity.

    Shows totals, top talkers, services, ports and distributions.
    """
    try:
        records = load_records(ctx, log_type, time_from, time_to)
    except ValueError as e:
        fail(str(e))

    if log_type == "conn":
        result = connection_summary(records, group_by)
    else:
        result = dns_summary(records)

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if log_type == "conn":
        console.print(Panel(
            f"Connections: {result['total_connections']}\n"
            f"Bytes: {format_bytes(result['total_bytes'])}\n"
            f"Unique sources: {result['unique_src_ips']}\n"
            f"Unique destinations: {result['unique_dst_ips']}",
            title="Connection Summary",
            border_style="cyan",
        ))
        console.print(top_table("Top Sources", result["top_sources"], "Source"))
        console.print(top_table("Top Destinations", result["top_destinations"], "Destination"))
        console.print(top_table("Top Services", result["top_services"], "Service"))
        console.print(top_table("Top Ports", result["top_ports"], "Port"))
        console.print(group_table(result["conn_state_distribution"]))
        console.print(group_table(result["primary_grouping"]))
    else:
        console.print(Panel(
            f"Queries: {result['total_queries']}\n"
            f"Unique domains: {result['unique_domains']}\n"
            f"Unique clients: {result['unique_clients']}\n"
            f"NXDOMAIN responses: {result['nxdomain_count']}",
            title="DNS Summary",
            border_style="cyan",
        ))
        console.print(top_table("Top Domains", result["top_queried_domains"], "Domain"))
        console.print(top_table("Top Clients", result["top_clients"], "Client"))
        console.print(group_table(result["query_type_distribution"]))
        console.print(group_table(result["response_code_distribution"]))
        if result["top_nxdomain_domains"]:
            console.print(top_table("Top NXDOMAIN Domains", result["top_nxdomain_domains"], "Domain"))


@cli.command("beacons")
@click.option(
    "--min-connections", "-m",
    type=click.IntRange(min=2),
    help="Minimum connections per src/dst/port (default: from config)",
)
@click.option(
    "--max-jitter",
    type=click.FloatRange(min=0),
    help="Maximum interval jitter in percent (default: from config)",
)
@time_window
@click.pass_context
def beacons(ctx, min_connections, max_jitter, time_from, time_to):
    """
    Detect periodic C2-style beaconing in conn.log.

    Flags src/dst/port triples whose connections arrive at regular intervals.
    """
    analytics = ctx.obj["config"].analytics
    if min_connections is None:
        min_connections = analytics.beacon_min_connections
    if max_jitter is None:
        max_jitter = analytics.beacon_max_jitter_percent

    try:
        records = load_records(ctx, "conn", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    candidates = detect_beaconing(records, min_connections, max_jitter)

    if ctx.obj["json_output"]:
        emit_json({
            "connections_analyzed": len(records),
            "min_connections": min_connections,
            "max_jitter_percent": max_jitter,
            "candidates": [c.to_dict() for c in candidates],
        })
        return

    if not candidates:
        console.print("[green]No beaconing detected.[/green]")
        return

    table = Table(title=f"Beacon Candidates ({len(candidates)})", box=box.ROUNDED)
    table.add_column("Source", style="cyan")
    table.add_column("Destination", style="cyan")
    table.add_column("Port", justify="right")
    table.add_column("Conns", justify="right")
    table.add_column("Interval (s)", justify="right")
    table.add_column("Jitter %", justify="right")
    table.add_column("Avg Bytes", justify="right")
    table.add_column("Score", justify="right", style="bold")

    for c in candidates[:MAX_TABLE_ROWS]:
        score_style = "red" if c.score >= 80 else "yellow"
        table.add_row(
            c.src_ip,
            c.dst_ip,
            to_text(c.dst_port),
            str(c.connection_count),
            f"{c.avg_interval:.2f}",
            f"{c.jitter_percent:.2f}",
            str(c.avg_bytes),
            f"[{score_style}]{c.score:.2f}[/{score_style}]",
        )

    console.print(table)


@cli.command("anomalies")
@time_window
@click.pass_context
def anomalies(ctx, time_from, time_to):
    """
    Detect port scans, data exfiltration and unusual ports in conn.log.
    """
    try:
        records = load_records(ctx, "conn", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    results = detect_connection_anomalies(records)

    if ctx.obj["json_output"]:
        emit_json({
            "connections_analyzed": len(records),
            "anomalies": [a.to_dict() for a in results],
        })
        return

    if not results:
        console.print("[green]No connection anomalies detected.[/green]")
        return

    table = Table(title=f"Connection Anomalies ({len(results)})", box=box.ROUNDED)
    table.add_column("Type", style="cyan")
    table.add_column("Severity", width=10)
    table.add_column("Description")

    for anomaly in results:
        color = get_severity_color(anomaly.severity)
        table.add_row(
            anomaly.type.value,
            f"[{color}]{anomaly.severity.value.upper()}[/{color}]",
            anomaly.description,
        )

    console.print(table)


@cli.command("dns-tunneling")
@click.option(
    "--entropy-threshold", "-e",
    type=click.FloatRange(min=0),
    help="Subdomain entropy threshold (default: from config)",
)
@time_window
@click.pass_context
def dns_tunneling(ctx, entropy_threshold, time_from, time_to):
    """
    Look for DNS tunneling in dns.log.

    Checks subdomain entropy and length, TXT/NULL queries and encoded labels.
    """
    if entropy_threshold is None:
        entropy_threshold = ctx.obj["config"].analytics.entropy_threshold

    try:
        records = load_records(ctx, "dns", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    report = check_dns_tunneling(records, entropy_threshold)

    if ctx.obj["json_output"]:
        emit_json(report.to_dict())
        return

    console.print(
        f"Analyzed {report.total_queries} queries, "
        f"[yellow]{report.suspicious_count}[/yellow] suspicious "
        f"(entropy threshold {report.entropy_threshold})"
    )

    if report.suspicious:
        table = Table(title="Suspicious Queries", box=box.ROUNDED)
        table.add_column("Query", style="cyan", overflow="fold")
        table.add_column("Source")
        table.add_column("Entropy", justify="right")
        table.add_column("Reasons", style="dim")
        for s in report.suspicious[:MAX_TABLE_ROWS]:
            table.add_row(s.query, s.src_ip, f"{s.entropy:.2f}", "; ".join(s.reasons))
        console.print(table)

    if report.high_txt_domains:
        console.print(top_table(
            "Domains with many TXT/NULL queries",
            [{"value": d, "count": n} for d, n in report.high_txt_domains],
            "Domain",
        ))


@cli.command("ssh-bruteforce")
@click.option(
    "--threshold", "-t",
    type=click.IntRange(min=1),
    default=5,
    show_default=True,
    help="Minimum failed attempts per source",
)
@time_window
@click.pass_context
def ssh_bruteforce(ctx, threshold, time_from, time_to):
    """
    Find sources with repeated failed SSH logins in ssh.log.
    """
    try:
        records = load_records(ctx, "ssh", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    result = detect_ssh_bruteforce(records, threshold)

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if not result["sources"]:
        console.print(f"[green]No brute force sources ({result['total_failed_auth']} failed logins).[/green]")
        return

    table = Table(title="SSH Brute Force Sources", box=box.ROUNDED)
    table.add_column("Source", style="cyan")
    table.add_column("Failed", justify="right", style="red")
    table.add_column("Targets", justify="right")
    table.add_column("First Seen")
    table.add_column("Last Seen")
    for src in result["sources"]:
        table.add_row(
            src["source_ip"],
            str(src["failed_attempts"]),
            str(src["unique_targets"]),
            src["first_seen"] or "-",
            src["last_seen"] or "-",
        )
    console.print(table)


@cli.command("suspicious-http")
@time_window
@click.pass_context
def suspicious_http_cmd(ctx, time_from, time_to):
    """
    Flag HTTP requests with scripted user agents, raw-IP POSTs, large
    uploads, high ports, or encoded/executable URIs.
    """
    try:
        records = load_records(ctx, "http", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    result = suspicious_http(records[:ctx.obj["config"].zeek.max_results])

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if not result["suspicious"]:
        console.print(f"[green]No suspicious HTTP requests ({result['total_analyzed']} analyzed).[/green]")
        return

    table = Table(
        title=f"Suspicious HTTP ({result['suspicious_count']} of {result['total_analyzed']})",
        box=box.ROUNDED,
    )
    table.add_column("Time")
    table.add_column("Source", style="cyan")
    table.add_column("Request", max_width=60)
    table.add_column("Reasons", style="yellow")
    for item in result["suspicious"][:MAX_TABLE_ROWS]:
        http = item["record"]
        table.add_row(
            http["timestamp"] or "-",
            to_text(http["src_ip"]),
            f"{to_text(http['method'])} {to_text(http['host'])}{to_text(http['uri'])}",
            "\n".join(item["reasons"]),
        )
    console.print(table)


@cli.command("expired-certs")
@time_window
@click.pass_context
def expired_certs_cmd(ctx, time_from, time_to):
    """
    Find TLS sessions with expired, self-signed or untrusted certificates
    and deprecated protocol versions.
    """
    try:
        records = load_records(ctx, "ssl", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    result = expired_certs(records[:ctx.obj["config"].zeek.max_results])

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if not result["flagged"]:
        console.print(f"[green]No certificate problems ({result['total_analyzed']} sessions).[/green]")
        return

    table = Table(title="Certificate Problems", box=box.ROUNDED)
    table.add_column("Time")
    table.add_column("Server", style="cyan")
    table.add_column("Dst")
    table.add_column("Version")
    table.add_column("Issues", style="red")
    for item in result["flagged"][:MAX_TABLE_ROWS]:
        ssl = item["record"]
        table.add_row(
            ssl["timestamp"] or "-",
            to_text(ssl["server_name"]) or "-",
            ssl["dst"],
            to_text(ssl["version"]) or "-",
            "\n".join(item["issues"]),
        )
    console.print(table)


@cli.command("executable-downloads")
@time_window
@click.pass_context
def executable_downloads_cmd(ctx, time_from, time_to):
    """
    List executable and script transfers found in files.log.
    """
    try:
        records = load_records(ctx, "files", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    result = executable_downloads(records[:ctx.obj["config"].zeek.max_results])

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if not result["executables"]:
        console.print(f"[green]No executable transfers ({result['total_files']} files).[/green]")
        return

    table = Table(title=f"Executable Transfers ({result['executable_count']})", box=box.ROUNDED)
    table.add_column("Time")
    table.add_column("MIME Type", style="red")
    table.add_column("Filename")
    table.add_column("From", style="cyan")
    table.add_column("To")
    table.add_column("Size", justify="right")
    for f in result["executables"][:MAX_TABLE_ROWS]:
        size = f["total_bytes"] if f["total_bytes"] is not None else f["seen_bytes"]
        table.add_row(
            f["timestamp"] or "-",
            to_text(f["mime_type"]),
            to_text(f["filename"]) or "-",
            to_text(f["tx_hosts"]),
            to_text(f["rx_hosts"]),
            format_bytes(size) if isinstance(size, (int, float)) else "-",
        )
    console.print(table)


@cli.command("long-connections")
@click.option(
    "--min-duration", "-d",
    type=click.FloatRange(min=0),
    required=True,
    help="Minimum connection duration in seconds",
)
@click.option(
    "--limit", "-n",
    type=click.IntRange(1, 10000),
    default=100,
    show_default=True,
    help="Maximum connections to return",
)
@time_window
@click.pass_context
def long_connections_cmd(ctx, min_duration, limit, time_from, time_to):
    """
    Find long-lived connections (C2 sessions, tunnels, backdoors).

    Example:

        zeekscope long-connections --min-duration 3600
    """
    try:
        records = load_records(ctx, "conn", time_from, time_to)
    except ValueError as e:
        fail(str(e))

    result = long_connections(records, min_duration, limit, ctx.obj["config"].zeek.max_results)

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if not result["connections"]:
        console.print(f"[green]No connections lasting {min_duration:g}s or more.[/green]")
        return

    table = Table(title=f"Connections >= {min_duration:g}s", box=box.ROUNDED)
    table.add_column("Time")
    table.add_column("Src", style="cyan")
    table.add_column("Dst")
    table.add_column("Service")
    table.add_column("Duration", justify="right", style="yellow")
    table.add_column("Sent", justify="right")
    table.add_column("Recv", justify="right")
    for c in result["connections"][:MAX_TABLE_ROWS]:
        table.add_row(
            c["timestamp"] or "-",
            c["src"],
            c["dst"],
            to_text(c["service"]) or "-",
            f"{c['duration']:.1f}s",
            to_text(c["orig_bytes"]) or "-",
            to_text(c["resp_bytes"]) or "-",
        )
    console.print(table)


@cli.command("entropy")
@click.argument("texts", nargs=-1, required=True)
@click.pass_context
def entropy(ctx, texts):
    """
    Calculate Shannon entropy of one or more strings.

    Example:

        zeekscope entropy aGVsbG8gd29ybGQ 4a6f686e
    """
    results = [
        {
            "text": text,
            "entropy": round(shannon_entropy(text), 4),
            "length": len(text),
            "encoding": detect_encoding(text),
        }
        for text in texts
    ]

    if ctx.obj["json_output"]:
        emit_json(results)
        return

    table = Table(title="Shannon Entropy", box=box.ROUNDED)
    table.add_column("Text", style="cyan", overflow="fold")
    table.add_column("Entropy", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Encoding")
    for r in results:
        table.add_row(r["text"], f"{r['entropy']:.4f}", str(r["length"]), r["encoding"] or "-")
    console.print(table)


@cli.command("investigate")
@click.option(
    "--ip",
    type=str,
    help="Host address to investigate across all logs",
)
@click.option(
    "--uid",
    type=str,
    help="Connection UID to trace across all logs",
)
@time_window
@click.pass_context
def investigate(ctx, ip, uid, time_from, time_to):
    """
    Pivot on a host or a connection UID across log types.

    Examples:

        zeekscope investigate --ip 192.168.1.50

        zeekscope investigate --uid CHhAvVGS1DHFjwGM9
    """
    if not ip and not uid:
        fail("Specify --ip or --uid")

    config = ctx.obj["config"]
    reader = LogReader(config.zeek)

    try:
        if ip:
            result = investigate_host(reader, ip, config.zeek.max_results, time_from, time_to)
        else:
            result = trace_uid(reader, uid)
    except ValueError as e:
        fail(str(e))

    if ctx.obj["json_output"]:
        emit_json(result)
        return

    if uid and not ip:
        found = [t for t in result if t != "uid"]
        if not found:
            console.print(f"[yellow]UID {uid} not found in any log.[/yellow]")
            return
        console.print(Panel(f"UID {uid} seen in: {', '.join(found)}", border_style="cyan"))
        for log_type in found:
            console.print(f"\n[bold]{log_type}.log[/bold] ({len(result[log_type])} records)")
            for record in result[log_type][:5]:
                console.print(f"  {json.dumps(record, default=str)}")
        return

    conn = result["connection_summary"]
    console.print(Panel(
        f"As source: {conn['as_source']} connections\n"
        f"As destination: {conn['as_destination']} connections\n"
        f"Sent: {format_bytes(conn['bytes_sent'])} | Received: {format_bytes(conn['bytes_received'])}\n"
        f"DNS queries: {result['dns']['query_count']} | HTTP requests: {result['http']['request_count']}\n"
        f"SSL connections: {result['ssl']['connection_count']} | File transfers: {result['files']['transfer_count']}\n"
        f"Notices: {result['notices']['count']}",
        title=f"Host {ip}",
        border_style="cyan",
    ))
    if conn["top_destinations"]:
        console.print(top_table("Top Destinations", conn["top_destinations"], "Destination"))
    if conn["top_ports"]:
        console.print(top_table("Top Ports", conn["top_ports"], "Port"))
    if result["dns"]["top_domains"]:
        console.print(top_table("Top Domains", result["dns"]["top_domains"], "Domain"))
    for notice in result["notices"]["notices"]:
        console.print(f"[red]Notice:[/red] {notice['note']} - {notice['msg']}")


@cli.command("fields")
@click.argument("log_type", required=False, type=click.Choice(list(LOG_FIELDS)))
@click.pass_context
def fields(ctx, log_type):
    """
    List known fields for Zeek log types.
    """
    selected = [log_type] if log_type else list(LOG_FIELDS)

    if ctx.obj["json_output"]:
        emit_json({
            name: [{"name": f, "type": t, "description": d} for f, t, d in LOG_FIELDS[name]]
            for name in selected
        })
        return

    for name in selected:
        table = Table(title=f"{name}.log", box=box.ROUNDED)
        table.add_column("Field", style="cyan")
        table.add_column("Type", style="dim")
        table.add_column("Description")
        for f, t, d in LOG_FIELDS[name]:
            table.add_row(f, t, d)
        console.print(table)


def main():
    """Main entry point."""
    try:
        cli(obj={})
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
