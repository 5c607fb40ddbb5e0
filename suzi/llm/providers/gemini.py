"""
Google Gemini client (`generateContent`).

System messages are folded into `systemInstruction`; the remaining turns
become `contents` with Gemini's `user` / `model` roles.
"""

from __future__ import annotations

from typing import Any, Optional

from suzi.llm.providers.base import Provider, build_usage
from suzi.llm.types import ErrorType, LLMRequest, MessageRole, ProviderId, Usage

# Real Gemini keys are 39 characters; anything much shorter is a placeholder.
MIN_API_KEY_LENGTH = 30


class GeminiProvider(Provider):
    provider_id = ProviderId.GEMINI
    default_base_url = "https://generativelanguage.googleapis.com/v1beta"
    temperature = 0.7

    @property
    def is_configured(self) -> bool:
        return len(self.api_key) >= MIN_API_KEY_LENGTH

    def _endpoint(self, model: str) -> str:
        return f"{self.base_url}/models/{model}:generateContent"

    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-goog-api-key": self.api_key,
        }

    def _build_payload(self, request: LLMRequest, model: str) -> dict[str, Any]:
        system_text = "\n\n".join(
            m.content for m in request.messages if m.role == MessageRole.SYSTEM
        )
        contents = [
            {
                "role": "model" if m.role == MessageRole.ASSISTANT else "user",
                "parts": [{"text": m.content}],
            }
            for m in request.messages
            if m.role != MessageRole.SYSTEM
        ]

        payload: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "maxOutputTokens": request.max_output_tokens,
                "temperature": self.temperature,
            },
        }
        if system_text:
            payload["systemInstruction"] = {"parts": [{"text": system_text}]}
        return payload

    def _parse_response(self, payload: Any) -> tuple[Optional[str], Optional[Usage]]:
        if not isinstance(payload, dict):
            return None, None

        text = None
        candidates = payload.get("candidates")
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            parts = content.get("parts") if isinstance(content, dict) else None
            if isinstance(parts, list):
                text = "".join(
                    p["text"] for p in parts
                    if isinstance(p, dict) and isinstance(p.get("text"), str)
                )

        meta = payload.get("usageMetadata")
        if not isinstance(meta, dict):
            meta = {}
        usage = build_usage(
            meta.get("promptTokenCount"),
            meta.get("candidatesTokenCount"),
            meta.get("totalTokenCount"),
        )
        return text, usage

    def _classify_status(self, status: int) -> ErrorType:
        # Unknown or retired model names come back as 404.
        if status == 404:
            return ErrorType.INVALID_REQUEST
        return super()._classify_status(status)
