"""
CLI commands: ``topicstack trace tail``.

Shows the most recent entries of the turn trace.
"""

from __future__ import annotations

import json

import click
from rich.console import Console
from rich.table import Table

from topicstack.core.trace import TurnTrace


@click.group("trace")
def trace_group() -> None:
    """Inspect the turn trace."""


@trace_group.command("tail")
@click.option("-n", "count", default=20, show_default=True, help="Number of entries.")
@click.option(
    "--path",
    "trace_path",
    default="",
    help="Path to trace JSONL file (default: from config).",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON lines")
@click.pass_obj
def trace_tail(config, count: int, trace_path: str, as_json: bool) -> None:
    """Print the last turns recorded in the trace."""
    from pathlib import Path

    console = Console()

    if trace_path:
        path = Path(trace_path)
    else:
        from topicstack.core.config import default_config

        path = (config or default_config()).trace_path

    if not path.exists():
        console.print(f"[yellow]Trace file not found:[/yellow] {path}")
        return

    entries = TurnTrace(path).tail(count)
    if as_json:
        for entry in entries:
            click.echo(json.dumps(entry, ensure_ascii=False))
        return

    if not entries:
        console.print("[dim]No turns recorded.[/dim]")
        return

    table = Table(title=f"Turn trace ({path.name})", show_lines=False)
    table.add_column("Time", style="dim")
    table.add_column("Conversation", style="cyan")
    table.add_column("Input")
    table.add_column("Topic")
    table.add_column("Condition")
    table.add_column("Depth", justify="right")
    for entry in entries:
        handled = entry.get("handled")
        table.add_row(
            str(entry.get("timestamp", ""))[:19],
            str(entry.get("conversation_id", "")),
            str(entry.get("input_excerpt", "")),
            str(entry.get("topic") or "-"),
            str(entry.get("condition") or "-") if handled else "[red]unhandled[/red]",
            f"{entry.get('depth_before', 0)} -> {entry.get('depth_after', 0)}",
        )
    console.print(table)
