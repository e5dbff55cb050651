"""Tests for generated-content parsing, slugs and content-unit ranking."""

from dataclasses import dataclass

import pytest

from interview_studio.domain.content_parsing import (
    SLUG_MAX_LENGTH,
    parse_generated_content,
    rank_content_units,
    slugify,
)

pytestmark = pytest.mark.unit


@dataclass
class _Unit:
    name: str
    visibility_score: float | None


class TestParseGeneratedContent:
    def test_heading_and_summary_are_extracted(self) -> None:
        raw = "# Faster Onboarding\n\nSummary: Teams go live in a day.\n\nBody paragraph one.\n\nBody two."
        parsed = parse_generated_content(raw, fallback_title="AI-generated blog article")

        assert parsed.title == "Faster Onboarding"
        assert parsed.summary == "Teams go live in a day."
        assert parsed.content == "Body paragraph one.\n\nBody two."
        assert parsed.slug == "faster-onboarding"

    def test_title_line_prefix_is_recognised(self) -> None:
        parsed = parse_generated_content("Title: Pricing FAQ\nAnswers follow.", fallback_title="x")

        assert parsed.title == "Pricing FAQ"
        assert "Title:" not in parsed.content

    def test_fallback_title_when_none_present(self) -> None:
        parsed = parse_generated_content("Just a body with no heading.", fallback_title="AI-generated Q&A")

        assert parsed.title == "AI-generated Q&A"
        assert parsed.summary is None
        assert parsed.content == "Just a body with no heading."

    def test_summary_at_end_of_text(self) -> None:
        parsed = parse_generated_content("# T\n\nBody.\n\nOverview: closing remarks", fallback_title="x")

        assert parsed.summary == "closing remarks"
        assert parsed.content == "Body."


class TestSlugify:
    def test_lowercases_and_dashes(self) -> None:
        assert slugify("Hello,  World -- Again!") == "hello-world-again"

    def test_strips_accents(self) -> None:
        assert slugify("Café Déjà Vu") == "cafe-deja-vu"

    def test_non_ascii_title_gets_hash_slug(self) -> None:
        slug = slugify("顧客事例")
        assert slug.startswith("content-")
        assert len(slug) == len("content-") + 8
        assert slugify("顧客事例") == slug

    def test_length_is_capped(self) -> None:
        slug = slugify("word " * 60)
        assert len(slug) <= SLUG_MAX_LENGTH
        assert not slug.endswith("-")


class TestRankContentUnits:
    def test_highest_score_first_and_truncated(self) -> None:
        units = [_Unit("a", 0.4), _Unit("b", 0.9), _Unit("c", None), _Unit("d", 0.7)]

        ranked = rank_content_units(units, limit=2)

        assert [u.name for u in ranked] == ["b", "d"]

    def test_ties_keep_input_order(self) -> None:
        units = [_Unit("a", 0.5), _Unit("b", 0.5), _Unit("c", None), _Unit("d", 0.0)]

        ranked = rank_content_units(units, limit=5)

        assert [u.name for u in ranked] == ["a", "b", "c", "d"]

    def test_empty_input(self) -> None:
        assert rank_content_units([], limit=5) == []
