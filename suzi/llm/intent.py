"""
Maps a question to one of four intents.

Pure and deterministic: the same text (and type hint) always yields the
same intent, which keeps provider ordering stable and tests reproducible.

Rules, in priority order:
1. Normalized text shorter than 140 characters → quick_fact
2. Asks for recommendations/suggestions → recommendation
3. How-to / troubleshooting wording, or a TUTORIAL type hint → tutorial
4. Anything else → deep_answer

Patterns cover English and Brazilian Portuguese, the bot's two audiences.
"""

from __future__ import annotations

import re
from typing import Optional

from suzi.llm.types import Intent, QuestionType

QUICK_FACT_MAX_LENGTH = 140

_WHITESPACE = re.compile(r"\s+")

_RECOMMENDATION = re.compile(
    r"(recommend|suggest|recomenda|me indica|sugere)",
    re.IGNORECASE,
)

_TUTORIAL = re.compile(
    r"(how to|how do i|step by step|error|bug|configure|set up|setup"
    r"|como|passo a passo|erro|configurar)",
    re.IGNORECASE,
)


def normalize_question(text: str) -> str:
    """Trim, lower-case and collapse whitespace."""
    return _WHITESPACE.sub(" ", text.strip().lower())


def classify_intent(
    question: str,
    question_type: Optional[QuestionType] = None,
) -> Intent:
    """Classify a question; see module docstring for the rules."""
    normalized = normalize_question(question)
    if len(normalized) < QUICK_FACT_MAX_LENGTH:
        return Intent.QUICK_FACT
    if _RECOMMENDATION.search(normalized):
        return Intent.RECOMMENDATION
    if _TUTORIAL.search(normalized) or question_type == QuestionType.TUTORIAL:
        return Intent.TUTORIAL
    return Intent.DEEP_ANSWER
