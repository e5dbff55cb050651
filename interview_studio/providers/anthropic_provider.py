"""AnthropicProvider: ContentProvider backed by the Anthropic Messages API."""

import anthropic
import structlog
from anthropic._exceptions import APITimeoutError, OverloadedError, RateLimitError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from interview_studio.providers.base import CompletionRequest, CompletionResponse, TokenUsage

logger = structlog.get_logger(__name__)

_TRANSIENT_ERRORS = (OverloadedError, RateLimitError, APITimeoutError)


class AnthropicProvider:
    """Calls ``messages.create`` and maps the reply to a CompletionResponse.

    ``max_attempts`` > 1 enables exponential-backoff retries on transient
    errors (529 overload, 429 rate limit, API timeout). The default of 1
    makes a single attempt; the finalize path substitutes a fallback for
    retries.
    """

    def __init__(
        self,
        api_key: str,
        *,
        timeout_seconds: float = 60.0,
        max_attempts: int = 1,
        client: anthropic.AsyncAnthropic | None = None,
    ):
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)
        self.max_attempts = max(1, max_attempts)

    async def complete(self, request: CompletionRequest) -> CompletionResponse:
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(_TRANSIENT_ERRORS),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=2, min=2, max=30),
            reraise=True,
            before_sleep=lambda rs: logger.warning(
                "anthropic_transient_error_retrying",
                attempt=rs.attempt_number,
                sleep_seconds=rs.next_action.sleep,
            ),
        )
        async for attempt in retrying:
            with attempt:
                response = await self.client.messages.create(
                    model=request.model,
                    system=request.system,
                    messages=[{"role": "user", "content": request.prompt}],
                    max_tokens=request.max_tokens,
                    temperature=request.temperature,
                )

        text = "".join(block.text for block in response.content if getattr(block, "type", "text") == "text")
        usage = TokenUsage(
            prompt_tokens=response.usage.input_tokens,
            completion_tokens=response.usage.output_tokens,
        )
        return CompletionResponse(text=text, usage=usage, model=response.model or request.model)
