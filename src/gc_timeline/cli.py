#!/usr/bin/env python3
"""gc-timeline command line interface.

Reads a G1 or ZGC log, builds its collection timeline and prints it as a
rich table or as camelCase JSON for chart/table consumers.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Annotated

import typer
from pydantic import BaseModel, Field
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from gc_timeline import __version__
from gc_timeline.parser import (
    GCEvent,
    ParseResult,
    detect_gc_type,
    format_memory_size,
    parse,
    split_lines,
)

# ============================================================
# CONFIGURATION
# ============================================================


class RenderOptions(BaseModel):
    """Options controlling which events the table shows."""

    max_rows: int | None = Field(default=None, ge=1)
    phases: list[str] = Field(default_factory=list)

    def select(self, events: list[GCEvent]) -> list[GCEvent]:
        selected = [event for event in events if not self.phases or event.phase in self.phases]
        if self.max_rows is not None:
            return selected[: self.max_rows]
        return selected


# ============================================================
# RICH OUTPUT
# ============================================================

GC_TIMELINE_THEME = Theme(
    {
        "critical": "bold red",
        "warning": "bold yellow",
        "success": "bold green",
        "info": "cyan",
        "metric": "white",
        "label": "dim white",
        "header": "bold magenta",
    }
)

console = Console(theme=GC_TIMELINE_THEME)
# Status and log records stay off stdout so --json output remains parseable.
err_console = Console(theme=GC_TIMELINE_THEME, stderr=True)


def configure_logging(verbose: bool) -> None:
    """Route library logging through the themed stderr console."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def create_key_value_table(title: str, rows: list[tuple[str, str]]) -> Table:
    """Create a simple two-column key/value table."""
    table = Table(title=title, show_header=False, box=None, padding=(0, 2))
    table.add_column("Metric", style="label")
    table.add_column("Value", style="metric")
    for label, value in rows:
        table.add_row(label, value)
    return table


def build_summary_rows(result: ParseResult) -> list[tuple[str, str]]:
    """Build timeline summary rows."""
    durations = [event.duration for event in result.events if event.duration is not None]
    rows = [
        ("Collector", result.collector_type),
        ("Start time", result.start_time or "Unknown"),
        ("Events", str(len(result.events))),
    ]
    if durations:
        rows.append(("Total GC time", format_millis(sum(durations))))
        rows.append(("Longest event", format_millis(max(durations))))
    return rows


def format_millis(millis: float | None) -> str:
    """Format milliseconds for human-readable output."""
    if millis is None:
        return ""
    if millis >= 1000:
        return f"{millis / 1000:.3f}s"
    return f"{millis:.3f}ms"


def build_event_rows(events: list[GCEvent]) -> list[dict[str, str]]:
    """Build event table rows."""
    rows: list[dict[str, str]] = []
    for event in events:
        rows.append(
            {
                "timestamp": event.timestamp
                or (f"{event.uptime_seconds:.3f}s" if event.uptime_seconds is not None else ""),
                "app_time": f"{event.app_time:.0f}" if event.app_time is not None else "",
                "phase": event.phase,
                "reason": event.reason or "",
                "before": format_memory_size(event.before_size)
                if event.before_size is not None
                else "",
                "after": format_memory_size(event.after_size)
                if event.after_size is not None
                else "",
                "duration": format_millis(event.duration),
            }
        )
    return rows


def create_events_table(events: list[GCEvent]) -> Table:
    """Create the GC events table."""
    table = Table(title="GC Events", header_style="header")
    table.add_column("Timestamp", style="label")
    table.add_column("App time (ms)", justify="right")
    table.add_column("Phase", style="info")
    table.add_column("Reason")
    table.add_column("Before", justify="right")
    table.add_column("After", justify="right")
    table.add_column("Duration", justify="right")
    for row in build_event_rows(events):
        table.add_row(*row.values())
    return table


def render_rich_output(result: ParseResult, options: RenderOptions) -> None:
    """Render the timeline summary and events table."""
    console.print(
        Panel(
            create_key_value_table("", build_summary_rows(result)),
            title="GC Timeline",
            border_style="info",
        )
    )
    if not result.events:
        console.print("[warning]No GC events found in log file[/warning]")
        return

    shown = options.select(result.events)
    console.print(create_events_table(shown))
    if len(shown) < len(result.events):
        console.print(f"[label]Showing {len(shown)} of {len(result.events)} events[/label]")


def read_log(log_file: Path, encoding: str) -> str:
    """Read a log file, replacing undecodable bytes."""
    return log_file.read_text(encoding=encoding, errors="replace")


# ============================================================
# CLI
# ============================================================

app = typer.Typer(
    name="gc-timeline",
    help="GC log timeline extractor for G1 GC and ZGC logs",
    add_completion=False,
    rich_markup_mode="rich",
)

LogFileArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to GC log file",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
]


@app.command("parse")
def parse_command(
    log_file: LogFileArgument,
    as_json: Annotated[
        bool,
        typer.Option("--json", help="Print the timeline as JSON instead of a table"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Export the timeline as JSON to a file (e.g., timeline.json)",
            file_okay=True,
            dir_okay=False,
        ),
    ] = None,
    phase: Annotated[
        list[str] | None,
        typer.Option("--phase", help="Only show events with this phase (repeatable)"),
    ] = None,
    limit: Annotated[
        int | None,
        typer.Option("--limit", help="Show at most this many events in the table", min=1),
    ] = None,
    encoding: Annotated[
        str,
        typer.Option("--encoding", help="Log file text encoding"),
    ] = "utf-8",
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose parsing output"),
    ] = False,
) -> None:
    """Extract the collection timeline from a G1 or ZGC log file.

    Exit codes: 0 = parsed (possibly no events), 1 = error.
    """
    configure_logging(verbose)

    try:
        content = read_log(log_file, encoding)

        if verbose:
            line_count = len(split_lines(content.rstrip("\r\n")))
            err_console.print(f"[info]Read {line_count} lines from {log_file}[/info]")

        result = parse(content)

        if verbose:
            err_console.print(
                f"[info]Parsed {len(result.events)} {result.collector_type} events[/info]"
            )

        if as_json:
            typer.echo(result.model_dump_json(by_alias=True, indent=2))
        else:
            render_rich_output(result, RenderOptions(max_rows=limit, phases=phase or []))

        if output:
            output.write_text(result.model_dump_json(by_alias=True, indent=2), encoding="utf-8")
            if not as_json:
                console.print(f"\n[success]Timeline exported to {output}[/success]")

    except (ValueError, OSError) as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        if verbose:
            console.print_exception()
        sys.exit(1)


@app.command()
def detect(log_file: LogFileArgument) -> None:
    """Print the collector type detected for a log file."""
    try:
        content = read_log(log_file, "utf-8")
    except OSError as e:
        console.print(f"[critical]ERROR: {e}[/critical]")
        sys.exit(1)
    console.print(detect_gc_type(content))


@app.command()
def version() -> None:
    """Display version."""
    console.print(f"gc-timeline {__version__}")


if __name__ == "__main__":
    app()
