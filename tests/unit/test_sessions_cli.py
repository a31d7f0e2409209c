"""
Tests for `topicstack sessions` CLI commands.

Covers:
  - sessions list (default invocation, --json, --limit, empty DB, no DB)
  - sessions show (full ID, prefix, ambiguous, not found, --json)
  - sessions clear
  - cmd_sessions_list unit tests via Rich Console
"""

from __future__ import annotations

import json
from io import StringIO
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from rich.console import Console

from topicstack.cli.main import cli
from topicstack.core.serialization import SerializableFrame, SerializableStack
from topicstack.core.store import SQLiteStore


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def db_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("TOPICSTACK_HOME", str(tmp_path / "home"))
    path = tmp_path / "state.db"
    monkeypatch.setenv("TOPICSTACK_DB_PATH", str(path))
    return path


def _make_console():
    buf = StringIO()
    return Console(file=buf, force_terminal=False, width=200), buf


_SIGNUP = SerializableStack(
    items=(
        SerializableFrame(topic_name="signup", data={"reason": "Yak", "name": None}),
        SerializableFrame(
            topic_name="validate",
            parent_topic_name="signup",
            callback_name="on_validate_name",
            active_condition_names=("help", "bye"),
        ),
    ),
    virgin=False,
)

_MAIN = SerializableStack(items=(SerializableFrame(topic_name="main"),), virgin=False)


def _seed(path: Path, **states: SerializableStack) -> None:
    with SQLiteStore(path) as store:
        for conversation_id, state in states.items():
            store.save(conversation_id, state)


def _patch_open_db(value):
    return patch("topicstack.cli._sessions._open_db", return_value=value)


# ---------------------------------------------------------------------------
# sessions --help
# ---------------------------------------------------------------------------


class TestSessionsHelp:
    def test_help_shows_subcommands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["sessions", "--help"])
        assert result.exit_code == 0
        assert "list" in result.output
        assert "show" in result.output
        assert "clear" in result.output


# ---------------------------------------------------------------------------
# sessions list (via CliRunner)
# ---------------------------------------------------------------------------


class TestSessionsList:
    def test_no_database(self, runner: CliRunner, db_path: Path) -> None:
        result = runner.invoke(cli, ["sessions", "list"])
        assert result.exit_code == 0
        assert "No stored conversations" in result.output

    def test_no_database_json(self, runner: CliRunner, db_path: Path) -> None:
        result = runner.invoke(cli, ["sessions", "list", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == []

    def test_empty_database(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path)
        result = runner.invoke(cli, ["sessions", "list"])
        assert result.exit_code == 0
        assert "No stored conversations" in result.output

    def test_table(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "list"])
        assert result.exit_code == 0
        assert "alice" in result.output
        assert "validate" in result.output

    def test_json_output(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP, bob=_MAIN)
        result = runner.invoke(cli, ["sessions", "list", "--json"])
        assert result.exit_code == 0
        rows = {r["conversation_id"]: r for r in json.loads(result.output)}
        assert rows["alice"]["depth"] == 2
        assert rows["bob"]["active_topic"] == "main"

    def test_limit_option(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, a=_MAIN, b=_MAIN, c=_MAIN)
        result = runner.invoke(cli, ["sessions", "list", "--json", "--limit", "2"])
        assert result.exit_code == 0
        assert len(json.loads(result.output)) == 2

    def test_default_invocation_runs_list(self, runner: CliRunner, db_path: Path) -> None:
        """Running `sessions` without a subcommand defaults to `list`."""
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions"])
        assert result.exit_code == 0
        assert "alice" in result.output


# ---------------------------------------------------------------------------
# sessions show (via CliRunner)
# ---------------------------------------------------------------------------


class TestSessionsShow:
    def test_no_database(self, runner: CliRunner, db_path: Path) -> None:
        result = runner.invoke(cli, ["sessions", "show", "alice"])
        assert result.exit_code != 0
        assert "No database" in result.output

    def test_full_id(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "show", "alice"])
        assert result.exit_code == 0
        assert "alice" in result.output
        assert "Depth:        2" in result.output
        assert "signup" in result.output

    def test_prefix_match(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP, bob=_MAIN)
        result = runner.invoke(cli, ["sessions", "show", "al", "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["conversation_id"] == "alice"

    def test_ambiguous_id(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, **{"user-1": _MAIN, "user-2": _MAIN})
        result = runner.invoke(cli, ["sessions", "show", "user"])
        assert result.exit_code != 0
        assert "Ambiguous" in result.output

    def test_not_found(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "show", "nobody"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_json_output(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "show", "alice", "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["virgin"] is False
        assert [f["topic_name"] for f in data["items"]] == ["signup", "validate"]
        assert data["items"][1]["callback_name"] == "on_validate_name"

    def test_empty_stack(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=SerializableStack(virgin=False))
        result = runner.invoke(cli, ["sessions", "show", "alice"])
        assert result.exit_code == 0
        assert "Stack is empty" in result.output

    def test_table_shows_allowed_global_conditions(self) -> None:
        from topicstack.cli._sessions import cmd_sessions_show

        store = MagicMock()
        store.get.return_value = _SIGNUP
        console, buf = _make_console()
        with _patch_open_db(store):
            cmd_sessions_show("alice", as_json=False, console=console)
        output = buf.getvalue()
        assert "Allowed global" in output
        assert "help, bye" in output

    def test_conversation_removed_while_reading(self) -> None:
        import click

        from topicstack.cli._sessions import cmd_sessions_show

        store = MagicMock()
        store.get.side_effect = [_MAIN, None]
        console, _ = _make_console()
        with _patch_open_db(store), pytest.raises(click.ClickException, match="not found"):
            cmd_sessions_show("alice", as_json=False, console=console)
        store.close.assert_called_once()


# ---------------------------------------------------------------------------
# sessions clear
# ---------------------------------------------------------------------------


class TestSessionsClear:
    def test_clear_existing(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "clear", "alice"])
        assert result.exit_code == 0
        assert "Cleared" in result.output
        with SQLiteStore(db_path) as store:
            assert store.get("alice") is None

    def test_clear_unknown(self, runner: CliRunner, db_path: Path) -> None:
        _seed(db_path, alice=_SIGNUP)
        result = runner.invoke(cli, ["sessions", "clear", "bob"])
        assert result.exit_code == 0
        assert "Not found" in result.output

    def test_clear_without_database(self, runner: CliRunner, db_path: Path) -> None:
        result = runner.invoke(cli, ["sessions", "clear", "alice"])
        assert result.exit_code != 0


# ---------------------------------------------------------------------------
# Direct unit tests for cmd_sessions_list (via Rich Console buffer)
# ---------------------------------------------------------------------------


class TestCmdSessionsListDirect:
    def test_no_db_shows_empty(self) -> None:
        from topicstack.cli._sessions import cmd_sessions_list

        console, buf = _make_console()
        with _patch_open_db(None):
            cmd_sessions_list(as_json=False, limit=50, console=console)
        assert "No stored conversations" in buf.getvalue()

    def test_one_conversation_table(self, tmp_path: Path) -> None:
        from topicstack.cli._sessions import cmd_sessions_list

        _seed(tmp_path / "s.db", alice=_SIGNUP)
        console, buf = _make_console()
        with _patch_open_db(SQLiteStore(tmp_path / "s.db")):
            cmd_sessions_list(as_json=False, limit=50, console=console)
        output = buf.getvalue()
        assert "alice" in output
        assert "validate" in output

    def test_json_output(self, capsys: pytest.CaptureFixture[str], tmp_path: Path) -> None:
        from topicstack.cli._sessions import cmd_sessions_list

        _seed(tmp_path / "s.db", alice=_SIGNUP)
        console, _ = _make_console()
        with _patch_open_db(SQLiteStore(tmp_path / "s.db")):
            cmd_sessions_list(as_json=True, limit=50, console=console)
        data = json.loads(capsys.readouterr().out)
        assert isinstance(data, list)
        assert data[0]["conversation_id"] == "alice"
