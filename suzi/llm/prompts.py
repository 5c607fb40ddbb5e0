"""
Prompt construction and canned texts.

The persona is fixed: a concise, friendly assistant for games, movies and
tutorials, answering in the configured language.
"""

from __future__ import annotations

from typing import Optional

from suzi.llm.types import AskInput, UserProfile

DEFAULT_ANSWER_LANGUAGE = "pt-BR"

ADMIN_UNAVAILABLE_TEXT = (
    "The administrative model is unavailable right now. "
    "Check POE_API_KEY and POE_ENABLED."
)
ADMIN_FAILURE_TEXT = (
    "Could not reach the administrative model right now. "
    "Please try again in a moment."
)


def build_system_prompt(answer_language: str = DEFAULT_ANSWER_LANGUAGE) -> str:
    return "\n".join([
        "You are Suzi, an assistant for games, movies and tutorials.",
        f"Answer in {answer_language}, objectively and in a friendly tone.",
        "Do not role-play or use fantasy or character voice.",
        "Address the user by first name only, without titles.",
        "If you are not sure, say so honestly and suggest where to look.",
        "Never invent patches, versions or numbers.",
    ])


def _profile_line(profile: Optional[UserProfile], display_name: Optional[str]) -> str:
    name = (display_name or "").strip()
    if not name and profile and profile.player_name:
        name = profile.player_name.strip()
    if not name:
        return "User name: not provided."
    return f"User name: {name}."


def build_user_prompt(ask_input: AskInput) -> str:
    """Question plus the context lines the caller supplied."""
    if ask_input.user_history:
        history = "Recent history:\n" + "\n".join(
            f"- {item}" for item in ask_input.user_history
        )
    else:
        history = "Recent history: none."

    if ask_input.question_type:
        type_line = f"Type: {ask_input.question_type.value}."
    else:
        type_line = "Type: not provided."

    lines = [
        f"Question: {ask_input.question}",
        type_line,
        f"Note: {ask_input.scope_hint}" if ask_input.scope_hint else "",
        _profile_line(ask_input.user_profile, ask_input.user_display_name),
        history,
        "Answer in 1 to 2 short paragraphs or bullet points.",
    ]
    return "\n".join(line for line in lines if line)


def build_fallback_text(question: str) -> str:
    """Generic answer used when no provider could be reached."""
    return (
        "I could not reach a language model right now. Here is a general tip:\n"
        "Focus on the basics, go step by step and adjust your strategy to the context.\n"
        f"Original question: {question}"
    )
