"""Tests for the intent classifier."""

from __future__ import annotations

import pytest

from suzi.llm.intent import QUICK_FACT_MAX_LENGTH, classify_intent, normalize_question
from suzi.llm.types import Intent, QuestionType

_PADDING = " and I would really like a detailed and complete answer covering every angle" * 3


def _long(text: str) -> str:
    """Pad a question past the quick-fact threshold."""
    question = text + _PADDING
    assert len(normalize_question(question)) >= QUICK_FACT_MAX_LENGTH
    return question


class TestNormalize:

    def test_trims_lowercases_and_collapses(self):
        assert normalize_question("  Best   CLASS\n in\tElden Ring?  ") == "best class in elden ring?"


class TestClassifyIntent:

    def test_short_question_is_quick_fact(self):
        assert classify_intent("Who made Hollow Knight?") == Intent.QUICK_FACT

    def test_short_wins_over_patterns(self):
        assert classify_intent("recommend a game", QuestionType.TUTORIAL) == Intent.QUICK_FACT

    def test_length_measured_after_normalization(self):
        question = "a" + " " * 300 + "b"
        assert classify_intent(question) == Intent.QUICK_FACT

    @pytest.mark.parametrize("phrase", [
        "Can you recommend", "suggest something", "me indica um jogo", "o que voce recomenda",
    ])
    def test_recommendation(self, phrase):
        assert classify_intent(_long(phrase)) == Intent.RECOMMENDATION

    @pytest.mark.parametrize("phrase", [
        "How to fix stutter", "step by step guide", "I get an error", "como configurar o controle",
    ])
    def test_tutorial(self, phrase):
        assert classify_intent(_long(phrase)) == Intent.TUTORIAL

    def test_recommendation_beats_tutorial(self):
        assert classify_intent(_long("suggest how to start")) == Intent.RECOMMENDATION

    def test_tutorial_type_hint(self):
        question = _long("Tell me about the history of the franchise")
        assert classify_intent(question) == Intent.DEEP_ANSWER
        assert classify_intent(question, QuestionType.TUTORIAL) == Intent.TUTORIAL

    def test_deterministic(self):
        question = _long("Explain the lore of the Lands Between")
        assert {classify_intent(question) for _ in range(5)} == {Intent.DEEP_ANSWER}
