"""Chat provider interface and data classes.

Prompt templates dispatch through anything satisfying ``ChatProvider``.
Data classes are immutable where possible (frozen dataclasses with slots).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class TokenUsage:
    """Token counts from a single model call."""

    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens consumed (input + output)."""
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True, slots=True)
class PromptMessage:
    """A single message in a prompt sequence."""

    role: str  # "system", "user", "assistant"
    content: str
    name: str | None = None


@dataclass(slots=True)
class ModelResponse:
    """Complete response from a chat completion call."""

    content: str
    model_id: str
    usage: TokenUsage
    finish_reason: str  # "stop", "length", "content_filter"
    latency_ms: float  # Wall-clock time for the call
    raw_response: object = field(default=None, repr=False)


@runtime_checkable
class ChatProvider(Protocol):
    """Protocol that chat-completion adapters must satisfy.

    Implementations hold connection config but no conversation state.
    """

    @property
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""
        ...

    async def send(
        self,
        messages: list[PromptMessage],
        model_id: str,
        *,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        response_format: str | None = None,
    ) -> ModelResponse:
        """Send a prompt and wait for the complete response.

        Args:
            messages: Prompt messages.
            model_id: Model to use.
            max_tokens: Max output tokens.
            temperature: Sampling temperature.
            response_format: If ``"json"``, request JSON output mode.

        Raises ProviderError on failure.
        """
        ...
