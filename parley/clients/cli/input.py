from __future__ import annotations

from pathlib import Path
from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import FileHistory, InMemoryHistory


class PromptLineReader:
    """Line editor with persistent history. Ctrl+D and Ctrl+C both end input."""

    def __init__(self, history_path: Optional[Path] = None, message: str = "> "):
        if history_path is not None:
            history_path.parent.mkdir(parents=True, exist_ok=True)
            history = FileHistory(str(history_path))
        else:
            history = InMemoryHistory()
        self.message = message
        self.prompt_session = PromptSession(
            history=history,
            multiline=False,
            enable_history_search=True,
        )

    async def read_line(self) -> Optional[str]:
        try:
            return await self.prompt_session.prompt_async(self.message)
        except (EOFError, KeyboardInterrupt):
            return None
