from .provider import CompletionPort
from .openai_provider import OpenAIChatCompletionsProvider

__all__ = ["CompletionPort", "OpenAIChatCompletionsProvider"]
