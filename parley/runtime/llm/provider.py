from __future__ import annotations

from typing import List, Protocol, Sequence

from parley.protocol import Turn


class CompletionPort(Protocol):
    """
    Remote chat completion: the full ordered history in, candidate replies out.

    Implementations raise CompletionError on any transport, authentication or
    decoding failure.
    """

    async def complete(self, *, model: str, turns: Sequence[Turn]) -> List[Turn]:
        ...
