"""AI provider boundary."""

from interview_studio.providers.base import CompletionRequest, CompletionResponse, ContentProvider, TokenUsage

__all__ = [
    "CompletionRequest",
    "CompletionResponse",
    "ContentProvider",
    "TokenUsage",
]
