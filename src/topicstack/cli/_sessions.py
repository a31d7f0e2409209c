"""topicstack sessions — inspect and clear stored conversations."""

from __future__ import annotations

import json
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from topicstack.core.exceptions import StoreError

console = Console()


def _open_db(ctx_obj: Any = None):
    """Open the configured SQLite store, or return None if there is none yet."""
    from topicstack.core.config import default_config
    from topicstack.core.store.sqlite import SQLiteStore

    config = ctx_obj or default_config()
    db_path = config.db_path
    if not db_path.exists():
        return None
    store = SQLiteStore(db_path)
    store.connect()
    return store


def _resolve_id(store: Any, conversation_id: str) -> str:
    """Accept a full conversation id or an unambiguous prefix of one."""
    if store.get(conversation_id) is not None:
        return conversation_id
    matches = [
        row["conversation_id"]
        for row in store.list_conversations(limit=1000)
        if row["conversation_id"].startswith(conversation_id)
    ]
    if not matches:
        raise click.ClickException(f"Conversation not found: {conversation_id}")
    if len(matches) > 1:
        raise click.ClickException(
            f"Ambiguous conversation id {conversation_id!r}: matches {', '.join(matches[:5])}"
        )
    return matches[0]


def cmd_sessions_list(
    as_json: bool,
    limit: int,
    console: Console,
    config: Any = None,
) -> None:
    store = _open_db(config)
    if store is None:
        if as_json:
            print("[]")
        else:
            console.print("[dim]No stored conversations.[/dim]")
        return

    try:
        rows = store.list_conversations(limit=limit)
    finally:
        store.close()

    if as_json:
        print(json.dumps(rows, indent=2, default=str))
        return

    if not rows:
        console.print("[dim]No stored conversations.[/dim]")
        return

    table = Table(title="Conversations", show_lines=False)
    table.add_column("Conversation", style="cyan")
    table.add_column("Depth", justify="right")
    table.add_column("Active topic")
    table.add_column("Updated", style="dim")
    for row in rows:
        table.add_row(
            row["conversation_id"],
            str(row["depth"]),
            row["active_topic"] or "-",
            str(row["updated_at"])[:19],
        )
    console.print(table)


def cmd_sessions_show(
    conversation_id: str,
    as_json: bool,
    console: Console,
    config: Any = None,
) -> None:
    store = _open_db(config)
    if store is None:
        console.print("[red]No database found. Run topicstack chat once to create it.[/red]")
        sys.exit(1)

    try:
        resolved = _resolve_id(store, conversation_id)
        state = store.get(resolved)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    finally:
        store.close()

    if state is None:
        raise click.ClickException(f"Conversation not found: {resolved}")
    if as_json:
        print(json.dumps({"conversation_id": resolved, **state.to_dict()}, indent=2))
        return

    console.print(f"Conversation: [cyan]{resolved}[/cyan]")
    console.print(f"Virgin:       {state.virgin}")
    console.print(f"Depth:        {len(state)}")
    if not state.items:
        console.print("[dim]Stack is empty.[/dim]")
        return

    table = Table(title="Stack (bottom to top)", show_lines=False)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Topic", style="cyan")
    table.add_column("Parent")
    table.add_column("Callback")
    table.add_column("Allowed global", style="dim")
    table.add_column("Disabled global", style="dim")
    table.add_column("Data")
    for i, frame in enumerate(state.items):
        table.add_row(
            str(i),
            frame.topic_name,
            frame.parent_topic_name or "-",
            frame.callback_name or "-",
            ", ".join(frame.active_condition_names) or "-",
            ", ".join(frame.disabled_condition_names) or "-",
            escape(json.dumps(frame.data, default=str)),
        )
    console.print(table)


@click.group("sessions", invoke_without_command=True)
@click.pass_context
def sessions_group(ctx: click.Context) -> None:
    """Inspect stored conversations."""
    if ctx.invoked_subcommand is None:
        ctx.invoke(sessions_list)


@sessions_group.command("list")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
@click.option("--limit", default=50, show_default=True, help="Maximum rows to show")
@click.pass_obj
def sessions_list(config: Any, as_json: bool = False, limit: int = 50) -> None:
    """List stored conversations, most recently updated first."""
    cmd_sessions_list(as_json=as_json, limit=limit, console=console, config=config)


@sessions_group.command("show")
@click.argument("conversation_id")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON")
@click.pass_obj
def sessions_show(config: Any, conversation_id: str, as_json: bool) -> None:
    """Show the topic stack stored for a conversation (full id or prefix)."""
    cmd_sessions_show(conversation_id, as_json=as_json, console=console, config=config)


@sessions_group.command("clear")
@click.argument("conversation_id")
@click.pass_obj
def sessions_clear(config: Any, conversation_id: str) -> None:
    """Delete a stored conversation; its next message starts over."""
    store = _open_db(config)
    if store is None:
        console.print("[red]No database found.[/red]")
        sys.exit(1)

    try:
        deleted = store.clear(conversation_id)
    finally:
        store.close()

    if deleted:
        console.print(f"[green]Cleared:[/green] {conversation_id}")
    else:
        console.print(f"[dim]Not found:[/dim] {conversation_id}")
