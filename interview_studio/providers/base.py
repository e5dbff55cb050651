"""ContentProvider protocol: the injectable boundary to the AI text provider.

Services depend on this protocol only. Production wires ``AnthropicProvider``;
tests and local development use ``ProviderFake``.
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class CompletionRequest:
    system: str
    prompt: str
    model: str
    max_tokens: int
    temperature: float


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass(frozen=True)
class CompletionResponse:
    text: str
    usage: TokenUsage
    model: str


@runtime_checkable
class ContentProvider(Protocol):
    """Anything that can turn a CompletionRequest into generated text."""

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        """Run one completion.

        Raises:
            Any exception on transport/provider failure. Callers decide
            whether that is fatal (see ``FailurePolicy``).
        """
        ...
