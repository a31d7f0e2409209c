"""
topicstack CLI entry point.

Commands:
  topicstack chat              talk to a topic application (demo bot by default)
  topicstack topics            list the topics and conditions of an application
  topicstack sessions          list / show / clear stored conversations
  topicstack trace tail        show recent turns from the turn trace
"""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from topicstack import __version__
from topicstack.cli._chat import chat_cmd
from topicstack.cli._sessions import sessions_group
from topicstack.cli._trace_cmd import trace_group
from topicstack.core.config import default_config, load_config
from topicstack.core.exceptions import ConfigError, ConfigNotFoundError, RegistryError
from topicstack.core.log import configure_logging

console = Console()


@click.group()
@click.version_option(__version__, prog_name="topicstack")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $TOPICSTACK_HOME/config.toml).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path | None) -> None:
    """topicstack: stack-based dialog state for chat bots."""
    try:
        config = load_config(config_path)
    except ConfigNotFoundError:
        if config_path is not None:
            raise click.ClickException(f"Config file not found: {config_path}") from None
        config = default_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    configure_logging(config.logging.level, config.logging.format)
    ctx.obj = config


@cli.command("topics")
@click.option("--app", "app_spec", default=None, help="Topic application as module:attribute.")
@click.pass_obj
def topics_cmd(config, app_spec: str | None) -> None:
    """List the topics of an application with their conditions and callbacks."""
    from topicstack.cli._app import load_registry

    try:
        registry = load_registry(app_spec or config.engine.app)
        registry.validate()
    except (RegistryError, ValueError, ImportError) as exc:
        console.print(f"[red]Cannot load application: {exc}[/red]")
        sys.exit(1)

    table = Table(title="Topics", show_lines=False)
    table.add_column("Topic", style="cyan")
    table.add_column("Root", justify="center")
    table.add_column("Conditions")
    table.add_column("Callbacks", style="dim")
    for topic in registry:
        table.add_row(
            topic.name,
            "yes" if topic.is_root else "",
            ", ".join(topic.condition_names) or "-",
            ", ".join(topic.callbacks) or "-",
        )
    console.print(table)


cli.add_command(chat_cmd)
cli.add_command(sessions_group)
cli.add_command(trace_group)


if __name__ == "__main__":
    cli()
