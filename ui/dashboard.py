"""
Rich-based terminal dashboard for network health results.

All formatting helpers live in ``nethealth.stats`` -- this module only does
presentation via the ``rich`` library.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from nethealth.history import SnapshotHistory
from nethealth.manager import FullTestResult
from nethealth.outcome import Outcome
from nethealth.quality import NetworkQuality
from nethealth.requirements import HealthCheckResult
from nethealth.snapshot import NetworkSnapshot
from nethealth.stats import format_bytes, format_duration, format_latency, format_speed

console = Console()


# ---------------------------------------------------------------------------
# Colours
# ---------------------------------------------------------------------------

_QUALITY_COLORS = {
    NetworkQuality.OFFLINE: "grey50",
    NetworkQuality.POOR: "red",
    NetworkQuality.MODERATE: "dark_orange",
    NetworkQuality.GOOD: "blue",
    NetworkQuality.EXCELLENT: "green",
}


def quality_color(quality: NetworkQuality) -> str:
    return _QUALITY_COLORS[quality]


def quality_badge(quality: NetworkQuality) -> str:
    color = quality_color(quality)
    return f"[bold {color}]{quality.label}[/bold {color}]"


def _yes_no(value: bool) -> str:
    return "[green]Yes[/green]" if value else "[dim]No[/dim]"


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------

def print_header() -> None:
    console.print()
    console.print(
        Panel.fit(
            "[bold cyan]netcheck[/bold cyan]\n"
            "[dim]Network quality and speed testing[/dim]",
            border_style="cyan",
        )
    )
    console.print()


def print_snapshot(snapshot: NetworkSnapshot, title: str = "Network Snapshot") -> None:
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column(style="bold")
    table.add_row("Quality:", quality_badge(snapshot.quality))
    table.add_row("Connection:", snapshot.connection_type.label)
    if snapshot.interface_name:
        table.add_row("Interface:", snapshot.interface_name)
    table.add_row("Online:", _yes_no(snapshot.is_online))
    table.add_row("Good quality:", _yes_no(snapshot.is_good_quality))
    table.add_row("Expensive:", _yes_no(snapshot.is_expensive))
    table.add_row("Constrained:", _yes_no(snapshot.is_constrained))
    if snapshot.download_speed_mbps is not None:
        table.add_row("Download:", format_speed(snapshot.download_speed_mbps))
    if snapshot.upload_speed_mbps is not None:
        table.add_row("Upload:", format_speed(snapshot.upload_speed_mbps))
    if snapshot.latency_ms is not None:
        table.add_row("Latency:", format_latency(snapshot.latency_ms))
    table.add_row("Captured:", snapshot.timestamp.strftime("%Y-%m-%d %H:%M:%S %Z"))

    border = quality_color(snapshot.quality)
    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border))
    if not snapshot.has_measurement and snapshot.is_online:
        console.print(
            "[dim]Quality is estimated from the connection type; "
            "run with --detailed or --mock for a measurement.[/dim]"
        )


def print_check_result(result: HealthCheckResult) -> None:
    status = "[bold green]PASSED[/bold green]" if result.passed else "[bold red]FAILED[/bold red]"
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column(style="dim")
    table.add_column()
    table.add_row("Requirement:", result.requirement.name)
    table.add_row("Result:", status)
    table.add_row("Current:", quality_badge(result.current_quality))
    table.add_row("Required:", quality_badge(result.required_quality))
    console.print(
        Panel(
            table,
            title="[bold]Quality Check[/bold]",
            border_style="green" if result.passed else "red",
        )
    )
    style = "blue" if result.passed else "yellow"
    console.print(f"[{style}]{result.recommendation}[/{style}]")


def print_stream_event(snapshot: NetworkSnapshot, history: SnapshotHistory) -> None:
    """One line per observed change while watching."""
    average = history.average_quality()
    console.print(
        f"[dim]{snapshot.timestamp.strftime('%H:%M:%S')}[/dim]  "
        f"{quality_badge(snapshot.quality):<30} "
        f"{snapshot.connection_type.label:<9} "
        f"{snapshot.interface_name or '-':<10} "
        f"[dim]avg {average.label if average else '-'}, "
        f"{history.transitions()} change(s)[/dim]"
    )


def _phase_row(table: Table, name: str, outcome: Outcome[Any], value: str, details: str) -> None:
    if outcome.is_success:
        table.add_row(name, "[green]ok[/green]", value, details)
    else:
        table.add_row(name, "[red]failed[/red]", "-", f"[red]{outcome.error}[/red]")


def print_full_result(result: FullTestResult) -> None:
    """Print the per-phase table and the overall status line."""
    table = Table(title="Speed Test", box=box.ROUNDED)
    table.add_column("Phase", style="bold")
    table.add_column("Status")
    table.add_column("Value", justify="right")
    table.add_column("Details")

    ping = result.ping.value
    _phase_row(
        table, "Ping", result.ping,
        format_latency(ping.rtt_ms) if ping else "",
        (
            f"jitter {ping.jitter_ms:.2f} ms, {format_duration(ping.duration_ms)}"
            if ping and ping.jitter_ms is not None
            else (format_duration(ping.duration_ms) if ping else "")
        ),
    )
    for name, outcome in (("Download", result.download), ("Upload", result.upload)):
        metric = outcome.value
        _phase_row(
            table, name, outcome,
            format_speed(metric.speed_mbps) if metric else "",
            (
                f"{format_bytes(metric.bytes_transferred)} in {format_duration(metric.duration_ms)}"
                if metric else ""
            ),
        )
    console.print(table)

    if result.is_successful:
        console.print("[green]All measurements completed.[/green]", end="  ")
    else:
        console.print("[yellow]Some measurements failed.[/yellow]", end="  ")
    console.print(f"[dim]Total duration: {format_duration(result.total_duration_ms)}[/dim]")


def print_history(entries: List[Dict[str, Any]]) -> None:
    if not entries:
        console.print("[dim]No saved results yet.[/dim]")
        return

    table = Table(title="Speed Test History", box=box.ROUNDED)
    table.add_column("Time", style="dim")
    table.add_column("Ping", justify="right")
    table.add_column("Download", justify="right")
    table.add_column("Upload", justify="right")
    table.add_column("Status")

    for row in format_history_rows(entries):
        table.add_row(
            row["timestamp"],
            format_latency(row["ping"]) if row["ping"] is not None else "-",
            format_speed(row["download"]) if row["download"] is not None else "-",
            format_speed(row["upload"]) if row["upload"] is not None else "-",
            "[green]ok[/green]" if row["ok"] else "[yellow]partial[/yellow]",
        )
    console.print(table)


def format_history_rows(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten saved results into display rows."""
    from datetime import datetime

    def _phase_value(entry: Dict[str, Any], phase: str, key: str) -> Optional[float]:
        data = entry.get(phase)
        if not isinstance(data, dict) or not data.get("success"):
            return None
        return data.get("result", {}).get(key)

    rows = []
    for e in entries:
        ts_raw = e.get("timestamp", "")
        try:
            ts = datetime.fromisoformat(ts_raw).strftime("%Y-%m-%d %H:%M")
        except (ValueError, TypeError):
            ts = ts_raw[:16] if ts_raw else "?"
        rows.append({
            "timestamp": ts,
            "ping": _phase_value(e, "ping", "rtt_ms"),
            "download": _phase_value(e, "download", "speed_mbps"),
            "upload": _phase_value(e, "upload", "speed_mbps"),
            "ok": bool(e.get("is_successful")),
        })
    return rows
