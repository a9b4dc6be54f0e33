from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence, Tuple

from parley.protocol import Turn

if TYPE_CHECKING:
    from parley.runtime.storage.sinks import Sink

logger = logging.getLogger("parley.ledger")


class Ledger:
    """
    Ordered, append-only conversation history with registered sinks.

    A pushed turn is offered to every sink in registration order before it is
    appended. If a sink raises, later sinks are skipped and the history is
    left untouched; whatever earlier sinks already wrote stays written.
    """

    def __init__(self, turns: Optional[Iterable[Turn]] = None):
        # Seeding is for replayed history only; seeded turns are not re-broadcast.
        self._turns: List[Turn] = list(turns or [])
        self._sinks: List[Sink] = []

    def register(self, sink: Sink) -> None:
        self._sinks.append(sink)
        logger.debug("Registered sink %s (%d total)", getattr(sink, "name", sink), len(self._sinks))

    def push(self, turn: Turn) -> None:
        for sink in self._sinks:
            sink.observe(turn)
        self._turns.append(turn)
        logger.debug("Committed %s turn #%d", turn.role.value, len(self._turns))

    def history(self) -> Sequence[Turn]:
        """Read-only snapshot of every committed turn, oldest first."""
        return tuple(self._turns)

    @property
    def sinks(self) -> Tuple[Sink, ...]:
        return tuple(self._sinks)

    def __len__(self) -> int:
        return len(self._turns)

    def close(self) -> None:
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if callable(close):
                close()
