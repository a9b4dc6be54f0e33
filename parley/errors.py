from __future__ import annotations

from pathlib import Path
from typing import Optional


class ParleyError(Exception):
    """Base class for every failure surfaced to the process boundary."""


class ConfigError(ParleyError):
    pass


class SessionOpenError(ParleyError):
    """A session or transcript file could not be opened for appending."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Unable to open {path}: {reason}")
        self.path = path


class SessionDecodeError(ParleyError):
    """A line of the session log is not a valid turn."""

    def __init__(self, path: Path, line_no: int, reason: str):
        super().__init__(f"{path}:{line_no}: invalid turn: {reason}")
        self.path = path
        self.line_no = line_no


class SinkError(ParleyError):
    """A sink failed to observe a turn; the push was aborted."""

    def __init__(self, sink: str, reason: str):
        super().__init__(f"{sink} failed: {reason}")
        self.sink = sink


class CompletionError(ParleyError):
    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class InputError(ParleyError):
    """Standard input could not be read as text."""
