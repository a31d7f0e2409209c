"""topicstack chat — talk to a topic application from the terminal."""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from topicstack.core.config import TopicStackConfig, default_config
from topicstack.core.conversation import ConversationRunner
from topicstack.core.engine import TopicEngine
from topicstack.core.exceptions import TopicStackError
from topicstack.core.store import ConversationStore, MemoryStore, SQLiteStore
from topicstack.core.trace import TurnTrace
from topicstack.formatters import get_formatter

console = Console()

_QUIT = {"/quit", "/exit"}


def _build_store(config: TopicStackConfig, backend: str | None) -> ConversationStore:
    if (backend or config.store.backend) == "memory":
        return MemoryStore()
    return SQLiteStore(config.db_path)


def _render(item: Any) -> str:
    if isinstance(item, dict):
        text = str(item.get("text", ""))
        values = item.get("values") or []
        if values:
            text += "  " + " | ".join(f"[{v}]" for v in values)
        return text
    return str(item)


def _print_reply(output: list[Any]) -> None:
    if not output:
        console.print("[dim](no reply)[/dim]")
        return
    for item in output:
        console.print(f"[bold cyan]bot>[/bold cyan] {escape(_render(item))}", highlight=False)


def _print_state(store: ConversationStore, conversation_id: str) -> None:
    state = store.get(conversation_id)
    if state is None or not state.items:
        console.print("[dim]stack: (empty)[/dim]")
        return
    names = " > ".join(frame.topic_name for frame in state.items)
    console.print(f"[dim]stack: {names}[/dim]")


@click.command("chat")
@click.option("--conversation", "conversation_id", default="cli", help="Conversation id.")
@click.option(
    "--store",
    "backend",
    type=click.Choice(["memory", "sqlite"]),
    default=None,
    help="Conversation store (default: from config).",
)
@click.option("--app", "app_spec", default=None, help="Topic application as module:attribute.")
@click.option("--channel", default=None, help="Output formatter channel (default: web).")
@click.option(
    "-m",
    "--message",
    "messages",
    multiple=True,
    help="Send this message and exit instead of starting a prompt (repeatable).",
)
@click.pass_obj
def chat_cmd(
    config: TopicStackConfig | None,
    conversation_id: str,
    backend: str | None,
    app_spec: str | None,
    channel: str | None,
    messages: tuple[str, ...],
) -> None:
    """Chat with a topic application (the bundled demo bot by default).

    Type /state to show the topic stack, /reset to start over and /quit to leave.
    """
    from topicstack.cli._app import load_registry

    config = config or default_config()
    try:
        engine = TopicEngine(load_registry(app_spec or config.engine.app))
        formatter = get_formatter(channel or config.engine.channel)
    except (TopicStackError, ValueError, ImportError) as exc:
        console.print(f"[red]Cannot load application: {escape(str(exc))}[/red]")
        sys.exit(1)

    store = _build_store(config, backend)
    trace = TurnTrace(config.trace_path, config.trace.max_bytes) if config.trace.enabled else None
    runner = ConversationRunner(
        engine,
        store,
        formatter=formatter,
        turn_timeout=config.engine.turn_timeout_seconds,
        trace=trace,
    )

    def send(text: str) -> bool:
        try:
            _print_reply(asyncio.run(runner.process(conversation_id, text)))
        except TopicStackError as exc:
            console.print(f"[red]Error: {escape(str(exc))}[/red]")
            return False
        return True

    try:
        if messages:
            ok = True
            for text in messages:
                console.print(f"[bold]you>[/bold] {escape(text)}", highlight=False)
                ok = send(text) and ok
            if not ok:
                sys.exit(1)
            return

        console.print("[dim]topicstack chat. /state, /reset, /quit.[/dim]")
        while True:
            try:
                text = console.input("[bold]you>[/bold] ").strip()
            except (EOFError, KeyboardInterrupt):
                console.print()
                break
            if not text:
                continue
            if text in _QUIT:
                break
            if text == "/state":
                _print_state(store, conversation_id)
                continue
            if text == "/reset":
                runner.reset(conversation_id)
                console.print("[yellow]Conversation reset.[/yellow]")
                continue
            send(text)
    finally:
        if isinstance(store, SQLiteStore):
            store.close()
