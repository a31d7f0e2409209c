"""
Turn trace — append-only JSONL log of every processed turn.

Each turn handled by a ``ConversationRunner`` with tracing enabled is
written to ``~/.topicstack/turns.jsonl`` (or the configured path).
Entries are never modified; when the file grows beyond ``max_bytes`` it
is rotated (up to ``MAX_ARCHIVES`` archives are kept).

Usage::

    trace = TurnTrace(path)
    trace.record(TurnRecord(...))

    for entry in trace.tail(n=20):
        print(entry)
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import structlog

logger = structlog.get_logger()

TRACE_FILENAME = "turns.jsonl"
_MAX_EXCERPT_CHARS = 40


def excerpt(text: str | None) -> str:
    """Shorten message text for the trace; full message bodies are never logged."""
    if not text:
        return ""
    text = " ".join(text.split())
    if len(text) <= _MAX_EXCERPT_CHARS:
        return text
    return text[: _MAX_EXCERPT_CHARS - 1] + "…"


@dataclass
class TurnRecord:
    conversation_id: str
    input_excerpt: str
    handled: bool
    topic: str | None
    condition: str | None
    depth_before: int
    depth_after: int
    output_count: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    def to_dict(self) -> dict[str, object]:
        return asdict(self)


class TurnTrace:
    """
    Append-only JSONL writer for turn records with size-based rotation.

    When the active file grows beyond ``max_bytes`` it is renamed to
    ``<name>.jsonl.1`` and a fresh file is started; older archives shift
    up and the oldest beyond ``MAX_ARCHIVES`` is dropped.

    Safe for single-process use only.
    """

    MAX_BYTES_DEFAULT: int = 5 * 1024 * 1024  # 5 MB
    MAX_ARCHIVES: int = 3

    def __init__(self, path: Path, max_bytes: int = MAX_BYTES_DEFAULT) -> None:
        self._path = path
        self._max_bytes = max_bytes
        self._path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    def _archive(self, i: int) -> Path:
        return self._path.with_suffix(f".jsonl.{i}")

    def _maybe_rotate(self) -> None:
        try:
            size = self._path.stat().st_size
        except OSError:
            return
        if size < self._max_bytes:
            return

        oldest = self._archive(self.MAX_ARCHIVES)
        if oldest.exists():
            oldest.unlink(missing_ok=True)
        for i in range(self.MAX_ARCHIVES - 1, 0, -1):
            old = self._archive(i)
            if old.exists():
                try:
                    old.rename(self._archive(i + 1))
                except OSError as exc:
                    logger.warning("trace_rotate_failed", path=str(old), error=str(exc))
        try:
            self._path.rename(self._archive(1))
        except OSError as exc:
            logger.warning("trace_archive_failed", path=str(self._path), error=str(exc))

    def record(self, entry: TurnRecord) -> None:
        """Append one record (rotating first if needed)."""
        self._maybe_rotate()
        try:
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(json.dumps(entry.to_dict(), ensure_ascii=False) + "\n")
        except OSError as exc:
            # A trace write failure must never fail the turn
            logger.error("trace_write_failed", path=str(self._path), error=str(exc))

    def tail(self, n: int = 50) -> list[dict[str, object]]:
        """Return the last ``n`` entries (oldest first)."""
        entries = list(self)
        return entries[-n:] if n > 0 else []

    def __iter__(self) -> Iterator[dict[str, object]]:
        if not self._path.exists():
            return
        try:
            with self._path.open("r", encoding="utf-8") as fh:
                for line in fh:
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        yield json.loads(line)
                    except json.JSONDecodeError:
                        continue
        except OSError as exc:
            logger.error("trace_read_failed", path=str(self._path), error=str(exc))
