"""AnswerSanitizer: PII masking and policy validation for free-text answers.

Every answer passes through ``validate_and_mask`` before it is persisted.
PII is masked and reported but does not reject the answer; hard rules
(empty text, oversize text, credentials) do.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------


def _passes_luhn(candidate: str) -> bool:
    """Luhn checksum over the digits of ``candidate``."""
    digits = [int(ch) for ch in candidate if ch.isdigit()]
    total = 0
    for index, digit in enumerate(reversed(digits)):
        if index % 2:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


# (warning label, pattern, accept); applied in order so longer numeric shapes
# (cards) are masked before shorter ones (phone numbers) can split them.
# ``accept`` vetoes a match that only looks like PII. Phone and id shapes
# need a leading +, 0 or parentheses, or fixed hyphenated groups, so prices,
# ranges and plain counts are left alone.
_PII_PATTERNS: list[tuple[str, re.Pattern, Callable[[str], bool] | None]] = [
    ("email address", re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), None),
    ("credit card number", re.compile(r"\b\d(?:[ -]?\d){12,15}\b"), _passes_luhn),
    ("national identification number", re.compile(r"\b\d{3}-\d{2}-\d{4}\b|\b\d{4}-\d{4}-\d{4}\b"), None),
    ("phone number", re.compile(r"(?<![\w+])\+\d{1,3}[ -]?\d{1,4}(?:[ -]\d{2,4}){2,3}\b"), None),
    ("phone number", re.compile(r"(?<![\w-])0\d{1,4}-\d{1,4}-\d{4}\b"), None),
    ("phone number", re.compile(r"(?<!\w)\(\d{2,4}\)\s?\d{3,4}-\d{4}\b"), None),
    ("phone number", re.compile(r"(?<!\w)0\d{9,10}\b"), None),
    ("postal code", re.compile(r"〒\s?\d{3}-\d{4}"), None),
]

# Credential-shaped strings are refused outright rather than masked.
_POLICY_PATTERNS: list[tuple[str, re.Pattern]] = [
    (
        "answer contains an API key or access token",
        re.compile(r"\b(sk-(?:ant|proj|live|test)-[a-zA-Z0-9_-]{10,}|AKIA[A-Z0-9]{16}|ghp_[a-zA-Z0-9]{36}|xox[bp]-[a-zA-Z0-9-]+)\b"),
    ),
    (
        "answer contains a password",
        re.compile(r"(?i)\b(?:password|passwd|pwd)\s*[:=]\s*\S+"),
    ),
]


@dataclass
class SanitizedAnswer:
    is_valid: bool
    masked_text: str
    contains_pii: bool
    warnings: list[str] = field(default_factory=list)


class AnswerSanitizer:
    """Validates and masks a single answer.

    Public API:
        validate_and_mask(raw_text) -> SanitizedAnswer
    """

    def __init__(self, mask_token: str = "[MASKED]", max_length: int = 10_000):
        self.mask_token = mask_token
        self.max_length = max_length

    def validate_and_mask(self, raw_text: str) -> SanitizedAnswer:
        """Mask PII spans and apply the hard validation rules.

        Args:
            raw_text: Answer text exactly as submitted

        Returns:
            SanitizedAnswer. ``is_valid`` is False only for empty, oversize or
            policy-violating text; ``warnings`` lists every finding.
        """
        if not raw_text or not raw_text.strip():
            return SanitizedAnswer(
                is_valid=False,
                masked_text="",
                contains_pii=False,
                warnings=["answer is empty"],
            )

        warnings: list[str] = []
        is_valid = True

        if len(raw_text) > self.max_length:
            is_valid = False
            warnings.append(f"answer exceeds {self.max_length} characters")

        for message, pattern in _POLICY_PATTERNS:
            if pattern.search(raw_text):
                is_valid = False
                warnings.append(message)

        masked_text, pii_found = self._mask(raw_text)
        for label in pii_found:
            warnings.append(f"{label} detected and masked")

        return SanitizedAnswer(
            is_valid=is_valid,
            masked_text=masked_text,
            contains_pii=bool(pii_found),
            warnings=warnings,
        )

    def _mask(self, text: str) -> tuple[str, list[str]]:
        found: list[str] = []
        for label, pattern, accept in _PII_PATTERNS:
            hits = 0

            def _replace(match: re.Match) -> str:
                nonlocal hits
                if accept is not None and not accept(match.group(0)):
                    return match.group(0)
                hits += 1
                return self.mask_token

            text = pattern.sub(_replace, text)
            if hits and label not in found:
                found.append(label)
        return text, found
