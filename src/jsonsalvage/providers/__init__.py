"""Chat provider adapters."""

from jsonsalvage.providers.base import (
    ChatProvider,
    ModelResponse,
    PromptMessage,
    TokenUsage,
)

__all__ = ["ChatProvider", "ModelResponse", "PromptMessage", "TokenUsage"]
