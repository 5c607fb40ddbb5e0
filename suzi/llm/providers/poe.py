"""
Poe client for administrative requests.

Poe hosts many third-party models, so the model is resolved per request
from a goal (`fast` or `smart`) unless an explicit model is configured:

    provider = PoeProvider(api_key, model="")
    model = await provider.resolve_model(ModelGoal.FAST)   # e.g. "Llama-3.1-8B-Instant"

The model list is fetched from `/models` and kept for an hour.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from suzi.llm.providers.openai_compat import ChatCompletionsProvider
from suzi.llm.types import ModelGoal, ProviderId

logger = logging.getLogger(__name__)

MODEL_LIST_TTL_SECONDS = 3600.0
MODEL_LIST_TIMEOUT_SECONDS = 10.0

FAST_HINTS = ("instant", "mini", "flash", "8b")
SMART_HINTS = ("70b", "pro", "sonnet", "opus", "gpt-5")


class PoeProvider(ChatCompletionsProvider):
    provider_id = ProviderId.POE
    default_base_url = "https://api.poe.com/v1"
    temperature = 0.4

    def __init__(
        self,
        api_key: str = "",
        *,
        model: str = "",
        enabled: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
        **kwargs: Any,
    ):
        super().__init__(api_key, **kwargs)
        self.model_override = (model or "").strip()
        self.enabled = enabled
        self._clock = clock
        self._models: list[str] = []
        self._models_fetched_at: Optional[float] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key) and self.enabled is not False

    async def list_models(self) -> list[str]:
        """
        Model ids available to this key.

        Cached for an hour. Any failure yields an empty list and is not
        cached, so the next admin request tries again.
        """
        now = self._clock()
        if (
            self._models_fetched_at is not None
            and now - self._models_fetched_at < MODEL_LIST_TTL_SECONDS
        ):
            return self._models

        try:
            async with self._client(MODEL_LIST_TIMEOUT_SECONDS) as client:
                response = await client.get(
                    f"{self.base_url}/models", headers=self._headers()
                )
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(
                "poe_model_list_failed",
                extra={"provider": self.provider_id.value, "error": str(e)[:200]},
            )
            return []

        data = payload.get("data") if isinstance(payload, dict) else None
        models = [
            item["id"]
            for item in (data or [])
            if isinstance(item, dict) and isinstance(item.get("id"), str)
        ]
        self._models = models
        self._models_fetched_at = now
        logger.debug(
            "poe_model_list_refreshed",
            extra={"provider": self.provider_id.value, "count": len(models)},
        )
        return models

    async def resolve_model(self, goal: ModelGoal) -> Optional[str]:
        """Pick a model for `goal`, or None when Poe is unusable."""
        if not self.is_configured:
            return None
        if self.model_override:
            return self.model_override

        models = await self.list_models()
        if not models:
            return None

        hints = FAST_HINTS if goal == ModelGoal.FAST else SMART_HINTS
        for model_id in models:
            lowered = model_id.lower()
            if any(hint in lowered for hint in hints):
                return model_id
        return models[0]
