"""ContentSynthesizer: prompt rendering and provider calls for both pipelines.

The session summary and the derived-content jobs share one call path,
``run()``, parameterised by a ``FailurePolicy``:

- FALLBACK: provider errors, timeouts and blank replies are replaced by a
  deterministic local template. Used by session finalize, which must not
  fail just because the provider is down.
- RAISE: the same conditions raise ``GenerationError``. Used by derived
  content, where no draft beats a low-quality one.
"""

import asyncio
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum

import structlog

from interview_studio.core.config import Settings, get_settings
from interview_studio.core.exceptions import GenerationError
from interview_studio.domain.content_types import content_type_label
from interview_studio.providers.base import CompletionRequest, ContentProvider, TokenUsage
from interview_studio.services.prompts import SUMMARY_FOCUS, SUMMARY_SECTIONS, SUMMARY_SYSTEM_PROMPT

logger = structlog.get_logger(__name__)

FALLBACK_MODEL = "local-fallback-template"
FALLBACK_BANNER = "Generated content unavailable"


class FailurePolicy(str, Enum):
    FALLBACK = "fallback"
    RAISE = "raise"


class EmptyResponseError(Exception):
    """Provider returned no usable text."""


@dataclass(frozen=True)
class SynthesisResult:
    text: str
    model: str
    prompt: str
    usage: TokenUsage
    used_fallback: bool
    duration_ms: int
    error: str | None = None


def answered_pairs(answers: Mapping[str, str]) -> list[tuple[str, str]]:
    """Return (question_id, answer) pairs whose answer is non-blank, in map order."""
    return [(qid, answer) for qid, answer in answers.items() if isinstance(answer, str) and answer.strip()]


def render_fallback(pairs: list[tuple[str, str]], content_type: str, now: datetime | None = None) -> str:
    """Local template listing every answered question verbatim."""
    now = now or datetime.now(timezone.utc)
    label = content_type_label(content_type)
    body = "\n\n".join(f"**{qid}**\n{answer}" for qid, answer in pairs)
    return (
        f"# {label} overview\n"
        "\n"
        f"> {FALLBACK_BANNER}: the AI generation service could not be reached. "
        "The interview answers are reproduced verbatim below.\n"
        "\n"
        "## Interview answers\n"
        "\n"
        f"{body}\n"
        "\n"
        "---\n"
        f"*Generated at: {now.isoformat()}*\n"
    )


class ContentSynthesizer:
    """Renders prompts and calls the injected ContentProvider.

    Public API:
        build_prompt(answered_pairs, content_type) -> str
        synthesize(answers, content_type) -> SynthesisResult   (FALLBACK policy)
        run(request, policy=..., fallback=...) -> SynthesisResult
    """

    def __init__(self, provider: ContentProvider, settings: Settings | None = None):
        self.provider = provider
        self.settings = settings or get_settings()

    def build_prompt(self, pairs: list[tuple[str, str]], content_type: str) -> str:
        """Render answered pairs into the summary prompt. Deterministic."""
        label = content_type_label(content_type)
        answer_text = "\n\n".join(f"Question {qid}: {answer}" for qid, answer in pairs)
        focus = SUMMARY_FOCUS.get(content_type, "")
        sections = "\n".join(SUMMARY_SECTIONS)

        return (
            f"Using the interview answers below, write a structured description of this {label.lower()}.\n"
            f"{focus}\n"
            "\n"
            "Interview answers:\n"
            f"{answer_text}\n"
            "\n"
            "Output format:\n"
            f"{sections}\n"
            "\n"
            "Write in a professional, readable style."
        )

    async def synthesize(
        self,
        answers: Mapping[str, str],
        content_type: str,
        *,
        now: datetime | None = None,
    ) -> SynthesisResult:
        """Summarise answers; never raises on provider failure.

        Args:
            answers: question_id -> answer map (blank answers are ignored)
            content_type: Session content type
            now: Timestamp for the fallback template (for deterministic testing)
        """
        pairs = answered_pairs(answers)
        request = CompletionRequest(
            system=SUMMARY_SYSTEM_PROMPT,
            prompt=self.build_prompt(pairs, content_type),
            model=self.settings.synthesis_model,
            max_tokens=self.settings.synthesis_max_tokens,
            temperature=self.settings.synthesis_temperature,
        )
        return await self.run(
            request,
            policy=FailurePolicy.FALLBACK,
            fallback=lambda: render_fallback(pairs, content_type, now),
        )

    async def run(
        self,
        request: CompletionRequest,
        *,
        policy: FailurePolicy,
        fallback: Callable[[], str] | None = None,
    ) -> SynthesisResult:
        """Call the provider once under a timeout and apply ``policy`` on failure.

        Raises:
            GenerationError: policy is RAISE and the call failed or came back blank
            ValueError: policy is FALLBACK but no fallback renderer was given
        """
        if policy is FailurePolicy.FALLBACK and fallback is None:
            raise ValueError("FailurePolicy.FALLBACK requires a fallback renderer")

        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.provider.complete(request),
                timeout=self.settings.provider_timeout_seconds,
            )
            if not response.text or not response.text.strip():
                raise EmptyResponseError("AI provider returned empty content")
        except Exception as exc:
            duration_ms = int((time.monotonic() - started) * 1000)
            error = str(exc) or type(exc).__name__
            if policy is FailurePolicy.RAISE:
                logger.error(
                    "provider_generation_failed",
                    model=request.model,
                    duration_ms=duration_ms,
                    error=error,
                    error_type=type(exc).__name__,
                )
                raise GenerationError(f"AI generation failed: {error}") from exc

            logger.warning(
                "provider_fallback_used",
                model=request.model,
                duration_ms=duration_ms,
                error=error,
                error_type=type(exc).__name__,
            )
            return SynthesisResult(
                text=fallback(),
                model=FALLBACK_MODEL,
                prompt=request.prompt,
                usage=TokenUsage(),
                used_fallback=True,
                duration_ms=duration_ms,
                error=error,
            )

        return SynthesisResult(
            text=response.text,
            model=response.model,
            prompt=request.prompt,
            usage=response.usage,
            used_fallback=False,
            duration_ms=int((time.monotonic() - started) * 1000),
        )
