from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from parley.errors import CompletionError
from parley.protocol import Role, Turn

logger = logging.getLogger("parley.llm")


def _choice_to_turn(index: int, choice: Any) -> Turn:
    message = getattr(choice, "message", None)
    content = getattr(message, "content", None)
    if not isinstance(content, str):
        raise CompletionError(f"Completion choice {index} has no text content")
    try:
        role = Role(getattr(message, "role", None))
    except ValueError as e:
        raise CompletionError(f"Completion choice {index} has unknown role {message.role!r}") from e
    return Turn(role=role, content=content)


class OpenAIChatCompletionsProvider:
    """
    Non-streaming chat provider using OpenAI's Chat Completions API.

    Every returned choice is mapped to a Turn, in the order the API returned them.
    """

    def __init__(self, api_key: str, *, base_url: Optional[str] = None, client: Any = None):
        if client is None:
            # Import lazily so ledger-only paths (tests, replay) don't require openai installed.
            from openai import AsyncOpenAI  # type: ignore

            client = AsyncOpenAI(api_key=api_key, base_url=base_url)
        self._client = client

    async def complete(self, *, model: str, turns: Sequence[Turn]) -> List[Turn]:
        from openai import OpenAIError  # type: ignore

        logger.debug("Requesting completion from %s with %d turns", model, len(turns))
        try:
            resp = await self._client.chat.completions.create(
                model=model,
                messages=[t.to_message() for t in turns],
            )
        except OpenAIError as e:
            raise CompletionError(f"Chat completion request failed: {e}", cause=e) from e

        choices = list(getattr(resp, "choices", None) or [])
        if not choices:
            raise CompletionError("Chat completion returned no choices")
        logger.debug("Received %d choice(s)", len(choices))
        return [_choice_to_turn(i, c) for i, c in enumerate(choices)]
