"""
Wire-level tests for the provider clients.

Every test drives a real httpx.AsyncClient through httpx.MockTransport,
so request building, status classification and parsing are exercised
without network access.
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from suzi.llm.providers import ProviderRegistry, build_providers
from suzi.llm.providers.gemini import GeminiProvider
from suzi.llm.providers.groq import GroqProvider
from suzi.llm.providers.poe import PoeProvider
from suzi.config.settings import Settings
from suzi.llm.types import (
    ErrorType,
    LLMRequest,
    Message,
    ModelGoal,
    ProviderId,
)

GEMINI_KEY = "g" * 39


# ===========================================================================
# Helpers
# ===========================================================================

def _request(timeout_ms: int = 2000) -> LLMRequest:
    return LLMRequest(
        messages=(
            Message.system("You are Suzi."),
            Message.user("Best class?"),
            Message.assistant("Depends."),
            Message.user("For a beginner?"),
        ),
        max_output_tokens=300,
        timeout_ms=timeout_ms,
        purpose="quick_fact",
    )


class Recorder:
    """MockTransport handler that records requests and replies in order."""

    def __init__(self, *responses: httpx.Response):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def body(self, index: int = 0) -> dict:
        return json.loads(self.requests[index].content)


def _chat_ok(text: str = "Pick the Vagabond.") -> httpx.Response:
    return httpx.Response(200, json={
        "choices": [{"message": {"role": "assistant", "content": text}}],
        "usage": {"prompt_tokens": 40, "completion_tokens": 12, "total_tokens": 52},
    })


def _gemini_ok(text: str = "Pick the Vagabond.") -> httpx.Response:
    return httpx.Response(200, json={
        "candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}],
        "usageMetadata": {
            "promptTokenCount": 40, "candidatesTokenCount": 12, "totalTokenCount": 52,
        },
    })


# ===========================================================================
# Groq (OpenAI-compatible)
# ===========================================================================

class TestGroqProvider:

    @pytest.mark.asyncio
    async def test_success(self):
        rec = Recorder(_chat_ok("  Pick the Vagabond.  "))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        result = await provider.call(_request(), "llama-3.1-8b-instant")

        assert result.ok
        assert result.provider == ProviderId.GROQ
        assert result.model == "llama-3.1-8b-instant"
        assert result.text == "Pick the Vagabond."
        assert result.usage.total_tokens == 52
        assert result.latency_ms >= 0

    @pytest.mark.asyncio
    async def test_request_shape(self):
        rec = Recorder(_chat_ok())
        provider = GroqProvider("gsk_test", transport=rec.transport)

        await provider.call(_request(), "llama-3.1-8b-instant")

        sent = rec.requests[0]
        assert str(sent.url) == "https://api.groq.com/openai/v1/chat/completions"
        assert sent.headers["Authorization"] == "Bearer gsk_test"
        body = rec.body()
        assert body["model"] == "llama-3.1-8b-instant"
        assert body["max_tokens"] == 300
        assert body["temperature"] == 0.7
        assert [m["role"] for m in body["messages"]] == ["system", "user", "assistant", "user"]

    @pytest.mark.asyncio
    async def test_no_key_is_auth_without_network(self):
        rec = Recorder()
        provider = GroqProvider("", transport=rec.transport)

        result = await provider.call(_request(), "m")

        assert not result.ok
        assert result.error_type == ErrorType.AUTH
        assert rec.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,error_type", [
        (429, ErrorType.RATE_LIMIT),
        (401, ErrorType.AUTH),
        (403, ErrorType.AUTH),
        (500, ErrorType.SERVER),
        (503, ErrorType.SERVER),
        (400, ErrorType.UNKNOWN),
        (404, ErrorType.UNKNOWN),
    ])
    async def test_status_classification(self, status, error_type):
        rec = Recorder(httpx.Response(status, json={"error": {"message": "nope"}}))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        result = await provider.call(_request(), "m")

        assert not result.ok
        assert result.error_type == error_type
        assert result.status == status

    @pytest.mark.asyncio
    async def test_error_body_logged(self, caplog):
        rec = Recorder(httpx.Response(400, text="model_decommissioned"))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        with caplog.at_level("WARNING", logger="suzi.llm.providers.base"):
            await provider.call(_request(), "m")

        bodies = [r for r in caplog.records if r.getMessage() == "llm_provider_error_body"]
        assert len(bodies) == 1
        assert bodies[0].body == "model_decommissioned"
        assert bodies[0].status == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"choices": []},
        {"choices": [{"message": {"content": "   "}}]},
        {"choices": [{"message": {"content": None}}]},
        {"choices": [{"message": "oops"}]},
        {"choices": ["oops"]},
        {"choices": "oops"},
        ["not", "an", "object"],
    ])
    async def test_empty_payload_is_unknown(self, payload):
        rec = Recorder(httpx.Response(200, json=payload))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        result = await provider.call(_request(), "m")

        assert not result.ok
        assert result.error_type == ErrorType.UNKNOWN

    @pytest.mark.asyncio
    async def test_malformed_usage_ignored(self):
        rec = Recorder(httpx.Response(200, json={
            "choices": [{"message": {"content": "Still fine."}}],
            "usage": ["not", "a", "mapping"],
        }))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        result = await provider.call(_request(), "m")

        assert result.ok
        assert result.text == "Still fine."
        assert result.usage is None

    @pytest.mark.asyncio
    async def test_non_json_body_is_unknown(self):
        rec = Recorder(httpx.Response(200, text="<html>gateway</html>"))
        provider = GroqProvider("gsk_test", transport=rec.transport)

        result = await provider.call(_request(), "m")

        assert result.error_type == ErrorType.UNKNOWN

    @pytest.mark.asyncio
    async def test_connect_error_is_network(self):
        def handler(request):
            raise httpx.ConnectError("dns failure", request=request)

        provider = GroqProvider("gsk_test", transport=httpx.MockTransport(handler))
        result = await provider.call(_request(), "m")

        assert result.error_type == ErrorType.NETWORK
        assert result.status is None

    @pytest.mark.asyncio
    async def test_transport_timeout_is_timeout(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        provider = GroqProvider("gsk_test", transport=httpx.MockTransport(handler))
        result = await provider.call(_request(), "m")

        assert result.error_type == ErrorType.TIMEOUT

    @pytest.mark.asyncio
    async def test_deadline_cancels_slow_call(self):
        async def handler(request):
            await asyncio.sleep(5)
            return _chat_ok()

        provider = GroqProvider("gsk_test", transport=httpx.MockTransport(handler))
        result = await provider.call(_request(timeout_ms=50), "m")

        assert not result.ok
        assert result.error_type == ErrorType.TIMEOUT
        assert result.latency_ms < 5000

    @pytest.mark.asyncio
    async def test_one_log_event_per_attempt(self, caplog):
        rec = Recorder(_chat_ok())
        provider = GroqProvider("gsk_test", transport=rec.transport)

        with caplog.at_level("INFO", logger="suzi.llm.providers.base"):
            await provider.call(_request(), "m")

        events = [r for r in caplog.records if r.getMessage() == "llm_provider_call"]
        assert len(events) == 1
        assert events[0].outcome == "ok"
        assert events[0].purpose == "quick_fact"


# ===========================================================================
# Gemini
# ===========================================================================

class TestGeminiProvider:

    def test_short_key_not_configured(self):
        assert not GeminiProvider("too-short").is_configured
        assert GeminiProvider(GEMINI_KEY).is_configured

    @pytest.mark.asyncio
    async def test_short_key_is_auth_without_network(self):
        rec = Recorder()
        provider = GeminiProvider("x" * 29, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert result.error_type == ErrorType.AUTH
        assert rec.requests == []

    @pytest.mark.asyncio
    async def test_request_shape(self):
        rec = Recorder(_gemini_ok())
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        await provider.call(_request(), "gemini-2.5-flash")

        sent = rec.requests[0]
        assert sent.url.path == "/v1beta/models/gemini-2.5-flash:generateContent"
        assert sent.headers["x-goog-api-key"] == GEMINI_KEY
        body = rec.body()
        assert body["systemInstruction"] == {"parts": [{"text": "You are Suzi."}]}
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]
        assert body["contents"][0]["parts"][0]["text"] == "Best class?"
        assert body["generationConfig"]["maxOutputTokens"] == 300

    @pytest.mark.asyncio
    async def test_success_with_usage(self):
        rec = Recorder(_gemini_ok("Try the Astrologer."))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert result.ok
        assert result.text == "Try the Astrologer."
        assert result.usage.prompt_tokens == 40
        assert result.usage.completion_tokens == 12

    @pytest.mark.asyncio
    async def test_404_is_invalid_request(self):
        rec = Recorder(httpx.Response(404, json={"error": {"status": "NOT_FOUND"}}))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-0.1")

        assert result.error_type == ErrorType.INVALID_REQUEST
        assert result.status == 404

    @pytest.mark.asyncio
    async def test_500_is_server(self):
        rec = Recorder(httpx.Response(500))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert result.error_type == ErrorType.SERVER

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": [{"text": None}]}}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        {"candidates": ["oops"]},
        {"candidates": {"content": {}}},
        {"candidates": [], "usageMetadata": ["oops"]},
    ])
    async def test_malformed_payload_is_unknown(self, payload):
        rec = Recorder(httpx.Response(200, json=payload))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert not result.ok
        assert result.error_type == ErrorType.UNKNOWN

    @pytest.mark.asyncio
    async def test_malformed_usage_metadata_ignored(self):
        rec = Recorder(httpx.Response(200, json={
            "candidates": [{"content": {"parts": [{"text": "Hi."}, {"text": None}]}}],
            "usageMetadata": ["oops"],
        }))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert result.ok
        assert result.text == "Hi."
        assert result.usage is None

    @pytest.mark.asyncio
    async def test_parser_error_becomes_unknown(self):
        class BrokenParser(GeminiProvider):
            def _parse_response(self, payload):
                raise KeyError("candidates")

        rec = Recorder(_gemini_ok())
        provider = BrokenParser(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert not result.ok
        assert result.error_type == ErrorType.UNKNOWN

    @pytest.mark.asyncio
    async def test_no_candidates_is_unknown(self):
        rec = Recorder(httpx.Response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}))
        provider = GeminiProvider(GEMINI_KEY, transport=rec.transport)

        result = await provider.call(_request(), "gemini-2.5-flash")

        assert result.error_type == ErrorType.UNKNOWN


# ===========================================================================
# Poe
# ===========================================================================

def _models(*ids: str) -> httpx.Response:
    return httpx.Response(200, json={"object": "list", "data": [{"id": i} for i in ids]})


class ManualClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestPoeProvider:

    @pytest.mark.parametrize("key,enabled,expected", [
        ("poe_key", None, True),
        ("poe_key", True, True),
        ("poe_key", False, False),
        ("", True, False),
    ])
    def test_is_configured(self, key, enabled, expected):
        assert PoeProvider(key, enabled=enabled).is_configured is expected

    @pytest.mark.asyncio
    async def test_chat_temperature(self):
        rec = Recorder(_chat_ok("All systems nominal."))
        provider = PoeProvider("poe_key", transport=rec.transport)

        result = await provider.call(_request(), "Claude-Sonnet-4")

        assert result.ok
        assert result.provider == ProviderId.POE
        assert str(rec.requests[0].url) == "https://api.poe.com/v1/chat/completions"
        assert rec.body()["temperature"] == 0.4

    @pytest.mark.asyncio
    async def test_override_wins(self):
        rec = Recorder()
        provider = PoeProvider("poe_key", model="GPT-4o", transport=rec.transport)

        assert await provider.resolve_model(ModelGoal.FAST) == "GPT-4o"
        assert rec.requests == []

    @pytest.mark.asyncio
    async def test_goal_hints(self):
        rec = Recorder(_models("Claude-Opus-4", "GPT-4o-Mini", "Llama-3.1-70B"))
        provider = PoeProvider("poe_key", transport=rec.transport)

        assert await provider.resolve_model(ModelGoal.FAST) == "GPT-4o-Mini"
        assert await provider.resolve_model(ModelGoal.SMART) == "Claude-Opus-4"
        assert len(rec.requests) == 1
        assert rec.requests[0].url.path == "/v1/models"

    @pytest.mark.asyncio
    async def test_no_hint_match_uses_first(self):
        rec = Recorder(_models("Assistant", "Web-Search"))
        provider = PoeProvider("poe_key", transport=rec.transport)

        assert await provider.resolve_model(ModelGoal.FAST) == "Assistant"

    @pytest.mark.asyncio
    async def test_model_list_cached_for_an_hour(self):
        clock = ManualClock()
        rec = Recorder(_models("a-mini"), _models("b-flash"))
        provider = PoeProvider("poe_key", clock=clock, transport=rec.transport)

        assert await provider.list_models() == ["a-mini"]
        clock.now = 3599
        assert await provider.list_models() == ["a-mini"]
        clock.now = 3600
        assert await provider.list_models() == ["b-flash"]
        assert len(rec.requests) == 2

    @pytest.mark.asyncio
    async def test_list_failure_is_empty_and_not_cached(self):
        rec = Recorder(httpx.Response(503), _models("x-instant"))
        provider = PoeProvider("poe_key", transport=rec.transport)

        assert await provider.resolve_model(ModelGoal.FAST) is None
        assert await provider.resolve_model(ModelGoal.FAST) == "x-instant"

    @pytest.mark.asyncio
    async def test_disabled_resolves_nothing(self):
        rec = Recorder()
        provider = PoeProvider("poe_key", model="GPT-4o", enabled=False, transport=rec.transport)

        assert await provider.resolve_model(ModelGoal.SMART) is None


# ===========================================================================
# Registry
# ===========================================================================

class TestRegistry:

    def test_build_from_settings(self):
        settings = Settings.from_env({
            "GEMINI_API_KEY": GEMINI_KEY,
            "GROQ_API_KEY": "gsk_test",
            "POE_API_KEY": "poe_key",
            "POE_ENABLED": "false",
        })
        registry = build_providers(settings)

        assert len(registry) == 3
        assert registry.configured() == [ProviderId.GEMINI, ProviderId.GROQ]
        assert isinstance(registry.get(ProviderId.POE), PoeProvider)
        assert not registry.is_configured(ProviderId.POE)

    def test_missing_provider(self):
        registry = ProviderRegistry([GroqProvider("k")])
        assert registry.get(ProviderId.GEMINI) is None
        assert not registry.is_configured(ProviderId.GEMINI)
