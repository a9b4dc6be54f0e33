"""
Conversation driver: sequences user input, completion calls and ledger commits.

Two modes share one ledger/completion contract:
  - InteractiveDriver: line-by-line loop on a terminal
  - BatchDriver: the whole input stream is one request, one reply
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, ContextManager, Optional, Protocol, Sequence, TextIO

from parley.errors import CompletionError, InputError
from parley.protocol import Turn
from parley.runtime.ledger import Ledger
from parley.runtime.llm.provider import CompletionPort

logger = logging.getLogger("parley.driver")

RECAP_TURNS = 4


class DriverState(str, Enum):
    WAITING_FOR_INPUT = "waiting_for_input"
    AWAITING_REPLY = "awaiting_reply"
    CLOSED = "closed"


class LineReader(Protocol):
    async def read_line(self) -> Optional[str]:
        """Next line of input, or None at end of input."""
        ...


class Renderer(Protocol):
    def progress(self) -> ContextManager[object]:
        ...

    def reply(self, turn: Turn) -> None:
        ...

    def recap(self, turns: Sequence[Turn]) -> None:
        ...


def select_reply(choices: Sequence[Turn]) -> Turn:
    """The last candidate is the reply."""
    if not choices:
        raise CompletionError("Chat completion returned no choices")
    return choices[-1]


def prime_system_prompt(ledger: Ledger, system_prompt: Optional[str]) -> bool:
    """Push a system turn when starting a fresh conversation. Returns True if pushed."""
    if not system_prompt or len(ledger):
        return False
    ledger.push(Turn.system(system_prompt))
    return True


class ConversationDriver(ABC):
    def __init__(self, ledger: Ledger, port: CompletionPort, *, model: str):
        self.ledger = ledger
        self.port = port
        self.model = model
        self.state = DriverState.WAITING_FOR_INPUT

    async def _request_reply(self) -> Turn:
        choices = await self.port.complete(model=self.model, turns=self.ledger.history())
        if len(choices) > 1:
            logger.debug("Completion returned %d choices; using the last", len(choices))
        return select_reply(choices)

    @abstractmethod
    async def run(self) -> None:
        ...


class InteractiveDriver(ConversationDriver):
    """REPL: WaitingForInput -> AwaitingReply -> WaitingForInput until end of input."""

    def __init__(
        self,
        ledger: Ledger,
        port: CompletionPort,
        *,
        model: str,
        reader: LineReader,
        renderer: Renderer,
    ):
        super().__init__(ledger, port, model=model)
        self.reader = reader
        self.renderer = renderer

    async def run(self) -> None:
        if len(self.ledger):
            self.renderer.recap(self.ledger.history()[-RECAP_TURNS:])

        while self.state is not DriverState.CLOSED:
            if self.state is DriverState.WAITING_FOR_INPUT:
                line = await self.reader.read_line()
                if line is None:
                    self.state = DriverState.CLOSED
                    continue
                if not line.strip():
                    continue
                self.ledger.push(Turn.user(line))
                self.state = DriverState.AWAITING_REPLY
            else:
                with self.renderer.progress():
                    reply = await self._request_reply()
                self.renderer.reply(reply)
                self.ledger.push(reply)
                self.state = DriverState.WAITING_FOR_INPUT

        logger.info("Interactive session closed with %d turns", len(self.ledger))


def _read_request(stream: TextIO) -> str:
    """Whole stream as one request, minus the single newline `echo` appends."""
    try:
        text = stream.read()
    except UnicodeDecodeError as e:
        raise InputError(f"Input is not valid {e.encoding}: {e.reason} at byte {e.start}") from e
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


class BatchDriver(ConversationDriver):
    """Single shot: read the input stream to the end, print one reply."""

    def __init__(
        self,
        ledger: Ledger,
        port: CompletionPort,
        *,
        model: str,
        stdin: TextIO,
        stdout: TextIO,
    ):
        super().__init__(ledger, port, model=model)
        self.stdin = stdin
        self.stdout = stdout

    async def run(self) -> None:
        text = _read_request(self.stdin)
        if not text.strip():
            logger.info("Empty input; nothing to send")
            self.state = DriverState.CLOSED
            return

        self.ledger.push(Turn.user(text))
        self.state = DriverState.AWAITING_REPLY
        reply = await self._request_reply()
        print(reply.content, file=self.stdout, flush=True)
        self.ledger.push(reply)
        self.state = DriverState.CLOSED


def is_interactive(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return bool(isatty and isatty())
    except ValueError:
        # closed stream
        return False


def select_driver(
    ledger: Ledger,
    port: CompletionPort,
    *,
    model: str,
    stdin: TextIO,
    stdout: TextIO,
    make_reader: Callable[[], LineReader],
    make_renderer: Callable[[], Renderer],
) -> ConversationDriver:
    """
    Pick the mode once, from whether stdin is a terminal.

    The reader and renderer are only built for interactive mode.
    """
    if is_interactive(stdin):
        logger.debug("stdin is a terminal; interactive mode")
        return InteractiveDriver(
            ledger, port, model=model, reader=make_reader(), renderer=make_renderer()
        )
    logger.debug("stdin is not a terminal; batch mode")
    return BatchDriver(ledger, port, model=model, stdin=stdin, stdout=stdout)
