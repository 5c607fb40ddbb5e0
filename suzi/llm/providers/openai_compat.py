"""
OpenAI-compatible `chat/completions` client.

Groq and Poe both speak this dialect; they only differ in base URL,
sampling temperature and how they decide they are configured.
"""

from __future__ import annotations

from typing import Any, Optional

from suzi.llm.providers.base import Provider, build_usage
from suzi.llm.types import LLMRequest, Usage


class ChatCompletionsProvider(Provider):
    """Base for providers exposing `POST {base_url}/chat/completions`."""

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def _build_payload(self, request: LLMRequest, model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": m.role.value, "content": m.content}
                for m in request.messages
            ],
            "max_tokens": request.max_output_tokens,
            "temperature": self.temperature,
        }

    def _parse_response(self, payload: Any) -> tuple[Optional[str], Optional[Usage]]:
        if not isinstance(payload, dict):
            return None, None

        text = None
        choices = payload.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            message = choices[0].get("message")
            content = message.get("content") if isinstance(message, dict) else None
            if isinstance(content, str):
                text = content

        raw_usage = payload.get("usage")
        if not isinstance(raw_usage, dict):
            raw_usage = {}
        usage = build_usage(
            raw_usage.get("prompt_tokens"),
            raw_usage.get("completion_tokens"),
            raw_usage.get("total_tokens"),
        )
        return text, usage
