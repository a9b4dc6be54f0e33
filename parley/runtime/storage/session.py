"""
JSONL session replay and ledger startup.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from parley.errors import SessionDecodeError, SessionOpenError
from parley.protocol import Turn
from parley.runtime.ledger import Ledger
from .sinks import DurableLogSink, TranscriptSink

logger = logging.getLogger("parley.session")


def _describe(e: ValidationError) -> str:
    errors = e.errors()
    if not errors:
        return str(e)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ())) or "line"
    return f"{loc}: {first.get('msg', 'invalid value')}"


def load_session(path: Path) -> List[Turn]:
    """
    Replay a session log into turns, oldest first.

    A missing file is an empty session. Blank lines are ignored. Any other line
    that does not decode to a turn (bad JSON, missing field, unknown role)
    aborts the load: the log is the only record of the conversation, so a
    partial replay is never returned.
    """
    path = Path(path)
    if not path.exists():
        return []

    turns: List[Turn] = []
    line_no = 0
    try:
        with path.open("r", encoding="utf-8") as f:
            for line_no, raw in enumerate(f, start=1):
                line = raw.strip()
                if not line:
                    continue
                try:
                    turns.append(Turn.from_json_line(line))
                except ValidationError as e:
                    raise SessionDecodeError(path, line_no, _describe(e)) from e
    except UnicodeDecodeError as e:
        raise SessionDecodeError(path, line_no + 1, "not valid UTF-8") from e
    except OSError as e:
        raise SessionOpenError(path, e.strerror or str(e)) from e

    logger.info("Replayed %d turns from %s", len(turns), path)
    return turns


def open_ledger(
    session_path: Optional[Path] = None,
    transcript_path: Optional[Path] = None,
    *,
    fsync: bool = False,
) -> Ledger:
    """
    Build the ledger for a run.

    The session log is read in full before it is reopened for appending, so
    replayed turns are never written twice. Without a session path the
    conversation is transient.
    """
    turns = load_session(session_path) if session_path else []
    ledger = Ledger(turns)
    try:
        if session_path:
            ledger.register(DurableLogSink(session_path, fsync=fsync))
        if transcript_path:
            ledger.register(TranscriptSink(transcript_path, fsync=fsync))
    except SessionOpenError:
        ledger.close()
        raise
    return ledger
