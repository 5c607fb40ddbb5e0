"""
Question Router — intent-based provider routing with cooldown and cache.

Answers a question from the cheapest layer that can:
1. Local resolver (dice notation) → no provider, no cache
2. Response cache (per guild/user/type fingerprint, TTL)
3. Providers in intent order, skipping those in cooldown
4. Canned fallback text when every candidate failed or none is configured

Provider order by intent:
- quick_fact → Groq fast, then Gemini
- recommendation / tutorial / deep_answer → Gemini, then Groq smart
With LLM_PRIMARY=groq, a Gemini-first order becomes Groq smart, then Gemini.

If every configured candidate is cooling down, all of them are tried
anyway: degraded service beats none.

Administrative requests go to Poe only, bypass cache and classification,
and never touch the general pool.

Usage:
    from suzi.llm.router import build_router

    router = build_router(Settings.from_env())
    result = await router.ask(AskInput(question="Best early weapon in Elden Ring?"))
    print(result.text, result.provider, result.source)
"""

from __future__ import annotations

import logging
import uuid
from typing import Optional

import httpx

from suzi.config.settings import Settings
from suzi.llm.cache import ResponseCache
from suzi.llm.cooldown import CooldownTracker
from suzi.llm.intent import classify_intent
from suzi.llm.local_resolver import LocalResolver
from suzi.llm.prompts import (
    ADMIN_FAILURE_TEXT,
    ADMIN_UNAVAILABLE_TEXT,
    build_fallback_text,
    build_system_prompt,
    build_user_prompt,
)
from suzi.llm.providers import ProviderRegistry, build_providers
from suzi.llm.providers.poe import PoeProvider
from suzi.llm.types import (
    AdminAskInput,
    AdminUseCase,
    AskInput,
    AskResult,
    Candidate,
    Intent,
    LLMFailure,
    LLMRequest,
    Message,
    ModelGoal,
    ProviderId,
    ResponseSource,
    RouterStatus,
)
from suzi.llm.usage import UsageCounters
from suzi.observability.logging_config import (
    clear_request_id,
    get_request_id,
    set_request_id,
)

logger = logging.getLogger(__name__)


class QuestionRouter:
    """
    Routes questions to providers and hides their failures from callers.

    All mutable state (cache, cooldowns, usage counters) is owned by the
    instance and injected at construction, so each test can build a
    fresh router.
    """

    def __init__(
        self,
        settings: Settings,
        providers: ProviderRegistry,
        *,
        cache: Optional[ResponseCache] = None,
        cooldowns: Optional[CooldownTracker] = None,
        usage: Optional[UsageCounters] = None,
        local_resolver: Optional[LocalResolver] = None,
    ):
        self._settings = settings
        self._providers = providers
        self._cache = cache or ResponseCache(settings.cache_ttl_seconds)
        self._cooldowns = cooldowns or CooldownTracker(settings.cooldown_seconds)
        self._usage = usage or UsageCounters(settings.usage_day_tz)
        self._local = local_resolver or LocalResolver()
        self._system_prompt = build_system_prompt(settings.answer_language)

    @property
    def primary(self) -> ProviderId:
        return ProviderId(self._settings.llm_primary)

    @property
    def providers(self) -> ProviderRegistry:
        return self._providers

    @property
    def cache(self) -> ResponseCache:
        return self._cache

    @property
    def cooldowns(self) -> CooldownTracker:
        return self._cooldowns

    @property
    def usage(self) -> UsageCounters:
        return self._usage

    # --- Provider ordering ---

    def ordered_providers(self, intent: Intent) -> list[Candidate]:
        """Preferred (provider, model) order for an intent."""
        s = self._settings
        gemini = Candidate(ProviderId.GEMINI, s.gemini_model)
        groq_fast = Candidate(ProviderId.GROQ, s.groq_model_fast)
        groq_smart = Candidate(ProviderId.GROQ, s.groq_model_smart)

        if intent == Intent.QUICK_FACT:
            order = [groq_fast, gemini]
        else:
            order = [gemini, groq_smart]

        if self.primary == ProviderId.GROQ and order[0].provider == ProviderId.GEMINI:
            order = [groq_smart, gemini]
        return order

    def _max_tokens(self, intent: Intent) -> int:
        if intent == Intent.QUICK_FACT:
            return self._settings.max_output_tokens_short
        return self._settings.max_output_tokens_long

    # --- Main API ---

    async def ask(self, ask_input: AskInput) -> AskResult:
        """
        Answer a question. Never raises for provider trouble.

        Returns:
            AskResult whose `source` tells which layer answered.
        """
        owns_request_id = get_request_id() is None
        if owns_request_id:
            set_request_id(uuid.uuid4().hex[:12])
        try:
            return await self._ask(ask_input)
        finally:
            if owns_request_id:
                clear_request_id()

    async def _ask(self, ask_input: AskInput) -> AskResult:
        question = ask_input.question
        intent = ask_input.intent_override or classify_intent(
            question, ask_input.question_type
        )

        local = self._local.try_resolve(question)
        if local is not None:
            return AskResult(
                text=local.text,
                provider=self.primary,
                model="local",
                latency_ms=0.0,
                intent=intent,
                from_cache=False,
                source=ResponseSource.LOCAL,
            )

        key = ResponseCache.make_key(
            guild_id=ask_input.guild_id,
            user_id=ask_input.user_id,
            question_type=ask_input.question_type,
            question=question,
        )
        entry = self._cache.get(key)
        if entry is not None:
            return AskResult(
                text=entry.text,
                provider=entry.provider,
                model=entry.model,
                latency_ms=0.0,
                intent=entry.intent,
                from_cache=True,
                source=ResponseSource.CACHE,
            )

        candidates = [
            c for c in self.ordered_providers(intent)
            if self._providers.is_configured(c.provider)
        ]
        if not candidates:
            logger.warning(
                "llm_router_fallback",
                extra={"intent": intent.value, "reason": "no_configured_provider"},
            )
            return self._fallback(question, intent)

        available = [c for c in candidates if self._cooldowns.is_available(c.provider)]
        if available:
            candidates = available

        request = LLMRequest(
            messages=(
                Message.system(self._system_prompt),
                Message.user(build_user_prompt(ask_input)),
            ),
            max_output_tokens=self._max_tokens(intent),
            timeout_ms=self._settings.timeout_ms,
            purpose=intent.value,
        )

        last_failure: Optional[LLMFailure] = None
        for candidate in candidates:
            provider = self._providers.get(candidate.provider)
            if provider is None:
                continue

            logger.info(
                "llm_router_request",
                extra={
                    "provider": candidate.provider.value,
                    "model": candidate.model,
                    "intent": intent.value,
                    "question_length": len(question),
                },
            )
            result = await provider.call(request, candidate.model)

            if result.ok:
                self._cache.put(
                    key,
                    result.text,
                    provider=result.provider,
                    model=result.model,
                    intent=intent,
                )
                self._usage.bump(result.provider)
                return AskResult(
                    text=result.text,
                    provider=result.provider,
                    model=result.model,
                    latency_ms=result.latency_ms,
                    intent=intent,
                    from_cache=False,
                    source=ResponseSource.LLM,
                )

            self._cooldowns.record_failure(result)
            last_failure = result

        logger.warning(
            "llm_router_fallback",
            extra={
                "intent": intent.value,
                "reason": "all_candidates_failed",
                "attempts": len(candidates),
            },
        )
        return self._fallback(question, intent, last_failure)

    def _fallback(
        self,
        question: str,
        intent: Intent,
        last_failure: Optional[LLMFailure] = None,
    ) -> AskResult:
        if last_failure is None:
            provider, model, latency_ms = self.primary, "fallback", 0.0
        else:
            provider = last_failure.provider
            model = last_failure.model
            latency_ms = last_failure.latency_ms
        return AskResult(
            text=build_fallback_text(question),
            provider=provider,
            model=model,
            latency_ms=latency_ms,
            intent=intent,
            from_cache=False,
            source=ResponseSource.FALLBACK,
        )

    # --- Administrative path ---

    async def ask_admin(self, admin_input: AdminAskInput) -> AskResult:
        """
        Send an administrative conversation to Poe.

        MONITOR uses a fast model and the short budget, TEMPLATES a smart
        model and the long budget. Answers are never cached.
        """
        poe = self._providers.get(ProviderId.POE)
        monitor = admin_input.use_case == AdminUseCase.MONITOR
        goal = ModelGoal.FAST if monitor else ModelGoal.SMART

        model: Optional[str] = None
        if isinstance(poe, PoeProvider):
            model = await poe.resolve_model(goal)

        if poe is None or not poe.is_configured or not model:
            logger.warning(
                "llm_router_fallback",
                extra={
                    "provider": ProviderId.POE.value,
                    "purpose": admin_input.use_case.value,
                    "reason": "admin_provider_unavailable",
                },
            )
            return AskResult(
                text=ADMIN_UNAVAILABLE_TEXT,
                provider=ProviderId.POE,
                model=model or ProviderId.POE.value,
                latency_ms=0.0,
                intent=Intent.DEEP_ANSWER,
                from_cache=False,
                source=ResponseSource.FALLBACK,
            )

        request = LLMRequest(
            messages=tuple(admin_input.messages),
            max_output_tokens=(
                self._settings.max_output_tokens_short
                if monitor
                else self._settings.max_output_tokens_long
            ),
            timeout_ms=self._settings.timeout_ms,
            purpose=admin_input.use_case.value,
        )

        logger.info(
            "admin_request",
            extra={
                "provider": ProviderId.POE.value,
                "model": model,
                "purpose": admin_input.use_case.value,
                "content_length": sum(len(m.content) for m in admin_input.messages),
            },
        )
        result = await poe.call(request, model)

        if result.ok:
            self._usage.bump(ProviderId.POE)
            return AskResult(
                text=result.text,
                provider=ProviderId.POE,
                model=result.model,
                latency_ms=result.latency_ms,
                intent=Intent.DEEP_ANSWER,
                from_cache=False,
                source=ResponseSource.LLM,
            )

        self._cooldowns.record_failure(result)
        return AskResult(
            text=ADMIN_FAILURE_TEXT,
            provider=ProviderId.POE,
            model=result.model,
            latency_ms=result.latency_ms,
            intent=Intent.DEEP_ANSWER,
            from_cache=False,
            source=ResponseSource.FALLBACK,
        )

    # --- Status ---

    def get_status(self) -> RouterStatus:
        s = self._settings
        return RouterStatus(
            primary=self.primary,
            cache_hits=self._cache.hits,
            cache_misses=self._cache.misses,
            cache_size=self._cache.size,
            cooldowns={
                p.value: round(self._cooldowns.remaining_seconds(p), 1)
                for p in ProviderId
            },
            provider_counts=self._usage.snapshot(),
            models={
                "gemini": s.gemini_model,
                "groq_fast": s.groq_model_fast,
                "groq_smart": s.groq_model_smart,
                "poe": s.poe_model or "auto",
            },
        )


def build_router(
    settings: Settings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> QuestionRouter:
    """Wire one router instance from settings."""
    return QuestionRouter(settings, build_providers(settings, transport=transport))
