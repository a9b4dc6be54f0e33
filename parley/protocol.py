"""
Conversation turn types and their JSON line encoding using Pydantic.
"""
from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel


class Role(str, Enum):
    """Closed set of message roles."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class Turn(BaseModel):
    """One immutable message of the conversation."""
    role: Role
    content: str

    model_config = {"frozen": True}

    @classmethod
    def user(cls, content: str) -> "Turn":
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> "Turn":
        return cls(role=Role.ASSISTANT, content=content)

    @classmethod
    def system(cls, content: str) -> "Turn":
        return cls(role=Role.SYSTEM, content=content)

    def to_message(self) -> Dict[str, Any]:
        """Chat Completions message dict."""
        return {"role": self.role.value, "content": self.content}

    def to_json_line(self) -> str:
        return json.dumps(self.model_dump(mode="json"), ensure_ascii=False)

    @classmethod
    def from_json_line(cls, line: str) -> "Turn":
        # Raises pydantic.ValidationError on bad JSON, missing fields or an unknown role.
        return cls.model_validate_json(line)
