"""Token estimation and provider cost accounting."""

import math

# Rough chars-per-token ratio used where no tokenizer is available
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate the token count of ``text`` as ``ceil(len / 4)``."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def calculate_cost(
    prompt_tokens: int,
    completion_tokens: int,
    prompt_cost_per_1k: float,
    completion_cost_per_1k: float,
) -> float:
    """Return cost in USD from per-1000-token rates, rounded to 6 decimals."""
    prompt_cost = (prompt_tokens / 1000) * prompt_cost_per_1k
    completion_cost = (completion_tokens / 1000) * completion_cost_per_1k
    return round(prompt_cost + completion_cost, 6)
