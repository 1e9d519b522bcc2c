# services/metrics.py
from __future__ import annotations

from models import UsageMetrics

CHARS_PER_TOKEN = 4

def estimate_usage(prompt: str, completion: str) -> UsageMetrics:
    """
    Rough token counts from character length (about 4 characters per token).

    These are estimates for display only; they will not match what the
    provider bills, which depends on its tokenizer.
    """
    return UsageMetrics(
        prompt_tokens=len(prompt) // CHARS_PER_TOKEN,
        completion_tokens=len(completion) // CHARS_PER_TOKEN,
        total_tokens=(len(prompt) + len(completion)) // CHARS_PER_TOKEN,
    )
