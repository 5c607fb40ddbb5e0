"""Groq client. Serves both the "fast" and the "smart" model."""

from __future__ import annotations

from suzi.llm.providers.openai_compat import ChatCompletionsProvider
from suzi.llm.types import ProviderId


class GroqProvider(ChatCompletionsProvider):
    provider_id = ProviderId.GROQ
    default_base_url = "https://api.groq.com/openai/v1"
    temperature = 0.7
