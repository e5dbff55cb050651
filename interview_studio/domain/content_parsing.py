"""Heuristic parsing of raw model output and ranking of content units.

Pure functions -- no DB access, no provider calls.
"""

import hashlib
import re
import unicodedata
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

SLUG_MAX_LENGTH = 100

# "# Heading" or "Title: ..." on its own line
_TITLE_RE = re.compile(r"(?:^|\n)(?:#\s+|title\s*[:：]\s*)(.*?)(?:\n|$)", re.IGNORECASE)
# "Summary: ..." up to the next blank line (or end of text)
_SUMMARY_RE = re.compile(r"(?:summary|overview)\s*[:：]\s*(.*?)(?:\n\n|\Z)", re.IGNORECASE | re.DOTALL)
_SLUG_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_SLUG_DASH_RE = re.compile(r"[\s_-]+")


@dataclass(frozen=True)
class ParsedContent:
    title: str
    content: str
    summary: str | None
    slug: str


def slugify(title: str, max_length: int = SLUG_MAX_LENGTH) -> str:
    """Derive a URL-safe slug (``[a-z0-9-]``) from a title.

    Titles with no ASCII-representable characters get a stable hash-based slug.
    """
    ascii_title = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = _SLUG_STRIP_RE.sub("", ascii_title.lower())
    slug = _SLUG_DASH_RE.sub("-", slug).strip("-")[:max_length].rstrip("-")
    if not slug:
        slug = "content-" + hashlib.sha1(title.encode("utf-8")).hexdigest()[:8]
    return slug


def parse_generated_content(raw_text: str, fallback_title: str) -> ParsedContent:
    """Split raw model output into title, summary and body.

    The first heading / ``Title:`` line becomes the title and the first
    ``Summary:`` block the summary; both are removed from the body.

    Args:
        raw_text: Generated text as returned by the provider
        fallback_title: Title used when the text carries none
    """
    content = raw_text

    title_match = _TITLE_RE.search(raw_text)
    title = title_match.group(1).strip() if title_match else ""
    if title_match:
        content = content.replace(title_match.group(0), "\n", 1)
    if not title:
        title = fallback_title

    summary_match = _SUMMARY_RE.search(content)
    summary = summary_match.group(1).strip() if summary_match else ""
    if summary:
        content = content.replace(summary_match.group(0), "\n\n", 1)

    return ParsedContent(
        title=title,
        content=content.strip(),
        summary=summary or None,
        slug=slugify(title),
    )


class _Scored(Protocol):
    visibility_score: float | None


T = TypeVar("T", bound=_Scored)


def rank_content_units(units: Sequence[T], limit: int) -> list[T]:
    """Return up to ``limit`` units, highest score first.

    Missing scores count as 0. Ties keep their input order (Python's sort is
    stable), so callers should pass units already ordered by ``order_no``.
    """
    ranked = sorted(units, key=lambda unit: -(unit.visibility_score or 0.0))
    return ranked[:limit]
