from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import IO, Protocol

from parley.errors import SessionOpenError, SinkError
from parley.protocol import Turn

logger = logging.getLogger("parley.sinks")


class Sink(Protocol):
    """
    Observer of committed turns.

    `observe` returns normally on success and raises SinkError on failure.
    """

    name: str

    def observe(self, turn: Turn) -> None:
        ...


def _missing_final_newline(path: Path) -> bool:
    try:
        with path.open("rb") as f:
            f.seek(0, 2)
            if f.tell() == 0:
                return False
            f.seek(-1, 2)
            return f.read(1) != b"\n"
    except OSError:
        return False


def _open_append(path: Path) -> IO[str]:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        return path.open("a", encoding="utf-8")
    except OSError as e:
        raise SessionOpenError(path, e.strerror or str(e)) from e


class _FileSink:
    name = "sink"

    def __init__(self, path: Path, *, fsync: bool = False):
        self.path = Path(path)
        self.fsync = fsync
        self._fh = _open_append(self.path)

    def _write(self, text: str) -> None:
        if self._fh.closed:
            raise SinkError(self.name, f"{self.path} is closed")
        try:
            self._fh.write(text)
            self._fh.flush()
            if self.fsync:
                os.fsync(self._fh.fileno())
        except (OSError, ValueError) as e:
            logger.error("%s write to %s failed: %s", self.name, self.path, e)
            raise SinkError(self.name, str(e)) from e

    def close(self) -> None:
        if not self._fh.closed:
            self._fh.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class DurableLogSink(_FileSink):
    """
    Append-only JSONL session log: one turn per line, flushed before returning.
    This file is the replay source for the next run.
    """

    name = "session log"

    def __init__(self, path: Path, *, fsync: bool = False):
        super().__init__(path, fsync=fsync)
        # A last line without its terminator would swallow the next record.
        self._repair_newline = _missing_final_newline(self.path)

    def observe(self, turn: Turn) -> None:
        line = turn.to_json_line() + "\n"
        if self._repair_newline:
            line = "\n" + line
        self._write(line)
        self._repair_newline = False


class TranscriptSink(_FileSink):
    """Plain-text transcript: each turn's content followed by a blank line."""

    name = "transcript"

    def observe(self, turn: Turn) -> None:
        self._write(turn.content + "\n\n")
