from __future__ import annotations

from contextlib import contextmanager
from typing import List, Optional, Sequence

import pytest

from parley.errors import CompletionError, SinkError
from parley.protocol import Turn


class FakePort:
    """Completion port returning scripted choice lists, recording every request."""

    def __init__(self, *responses: List[Turn]):
        self.responses = list(responses)
        self.calls: List[tuple] = []

    async def complete(self, *, model: str, turns: Sequence[Turn]) -> List[Turn]:
        self.calls.append((model, tuple(turns)))
        if not self.responses:
            raise CompletionError("no scripted response")
        resp = self.responses.pop(0)
        if isinstance(resp, Exception):
            raise resp
        return resp


class FakeReader:
    def __init__(self, *lines: str):
        self.lines = list(lines)

    async def read_line(self) -> Optional[str]:
        if not self.lines:
            return None
        return self.lines.pop(0)


class FakeRenderer:
    def __init__(self):
        self.events: List[tuple] = []

    @contextmanager
    def progress(self):
        self.events.append(("progress", "start"))
        yield
        self.events.append(("progress", "stop"))

    def reply(self, turn: Turn) -> None:
        self.events.append(("reply", turn.content))

    def recap(self, turns: Sequence[Turn]) -> None:
        self.events.append(("recap", [t.content for t in turns]))


class RecordingSink:
    def __init__(self, name: str = "recording", log: Optional[list] = None):
        self.name = name
        self.seen: List[Turn] = []
        self.log = log

    def observe(self, turn: Turn) -> None:
        self.seen.append(turn)
        if self.log is not None:
            self.log.append((self.name, turn.content))


class FailingSink:
    """Fails on the Nth observed turn (1-based)."""

    name = "failing"

    def __init__(self, fail_on: int = 1):
        self.fail_on = fail_on
        self.count = 0

    def observe(self, turn: Turn) -> None:
        self.count += 1
        if self.count == self.fail_on:
            raise SinkError(self.name, "disk full")


@pytest.fixture
def conversation():
    return [
        Turn.system("Be brief."),
        Turn.user("Hello"),
        Turn.assistant("Hi there"),
        Turn.user("Ünïcode ✓ and\nmultiple lines"),
    ]
