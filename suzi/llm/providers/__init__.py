"""
Provider clients and the lookup table the router dispatches through.

Modules:
- base: Provider contract, shared HTTP execution and status classification
- gemini: Google Gemini (`generateContent`)
- openai_compat: shared OpenAI-compatible `chat/completions` client
- groq: Groq (fast and smart models)
- poe: Poe (administrative requests, model discovery)

Usage:
    from suzi.llm.providers import build_providers

    registry = build_providers(settings)
    result = await registry.get(ProviderId.GROQ).call(request, "llama-3.1-8b-instant")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Optional

import httpx

from suzi.llm.providers.base import Provider
from suzi.llm.providers.gemini import GeminiProvider
from suzi.llm.providers.groq import GroqProvider
from suzi.llm.providers.poe import PoeProvider
from suzi.llm.types import ProviderId

if TYPE_CHECKING:
    from suzi.config.settings import Settings

logger = logging.getLogger(__name__)

__all__ = [
    "Provider",
    "GeminiProvider",
    "GroqProvider",
    "PoeProvider",
    "ProviderRegistry",
    "build_providers",
]


class ProviderRegistry:
    """Maps ProviderId to the client that serves it."""

    def __init__(self, providers: Optional[list[Provider]] = None):
        self._providers: dict[ProviderId, Provider] = {}
        for provider in providers or []:
            self.register(provider)

    def register(self, provider: Provider) -> None:
        if provider.provider_id in self._providers:
            logger.warning(
                "provider_registration_overwritten",
                extra={"provider": provider.provider_id.value},
            )
        self._providers[provider.provider_id] = provider

    def get(self, provider_id: ProviderId) -> Optional[Provider]:
        return self._providers.get(provider_id)

    def is_configured(self, provider_id: ProviderId) -> bool:
        provider = self.get(provider_id)
        return provider is not None and provider.is_configured

    def configured(self) -> list[ProviderId]:
        return [pid for pid, p in self._providers.items() if p.is_configured]

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)


def build_providers(
    settings: "Settings",
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> ProviderRegistry:
    """Create one client per provider from settings."""
    registry = ProviderRegistry([
        GeminiProvider(settings.gemini_api_key, transport=transport),
        GroqProvider(settings.groq_api_key, transport=transport),
        PoeProvider(
            settings.poe_api_key,
            model=settings.poe_model,
            enabled=settings.poe_enabled,
            transport=transport,
        ),
    ])
    logger.info(
        "providers_built",
        extra={"configured": [p.value for p in registry.configured()]},
    )
    return registry
