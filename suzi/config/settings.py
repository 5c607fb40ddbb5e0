"""
Environment configuration for the Suzi question router.

Settings are read once at process start (after python-dotenv has loaded
`.env`) and passed by reference to the router and providers. A missing
provider credential is not an error: it only removes that provider from
the candidate lists.

Usage:
    from suzi.config.settings import Settings

    settings = Settings.from_env()
    settings.llm_primary        # "gemini" or "groq"
    settings.cooldown_seconds   # 600.0
"""

from __future__ import annotations

import logging
import os
from typing import Literal, Mapping, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from suzi.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


DEFAULT_GEMINI_MODEL = "gemini-2.5-flash"
DEFAULT_GROQ_MODEL_FAST = "llama-3.1-8b-instant"
DEFAULT_GROQ_MODEL_SMART = "llama-3.1-70b-versatile"


class Settings(BaseModel):
    """
    Router configuration.

    Durations are kept in milliseconds, as in the environment; the
    `*_seconds` properties convert them for the in-process clocks.
    """

    # ─── Provider credentials & models ──────────────────────────
    gemini_api_key: str = ""
    gemini_model: str = DEFAULT_GEMINI_MODEL
    groq_api_key: str = ""
    groq_model_fast: str = DEFAULT_GROQ_MODEL_FAST
    groq_model_smart: str = DEFAULT_GROQ_MODEL_SMART
    poe_api_key: str = ""
    poe_model: str = ""
    poe_enabled: Optional[bool] = Field(
        None,
        description="Explicit on/off switch for Poe; None means 'on if a key is set'",
    )

    # ─── Routing ────────────────────────────────────────────────
    llm_primary: Literal["gemini", "groq"] = "gemini"
    timeout_ms: int = 12_000
    cooldown_ms: int = 600_000
    cache_ttl_ms: int = 180_000
    max_output_tokens_short: int = 300
    max_output_tokens_long: int = 800

    # ─── Misc ───────────────────────────────────────────────────
    usage_day_tz: Optional[str] = None
    answer_language: str = "pt-BR"

    @field_validator(
        "timeout_ms",
        "cooldown_ms",
        "cache_ttl_ms",
        "max_output_tokens_short",
        "max_output_tokens_long",
    )
    @classmethod
    def _must_be_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("must be a positive integer")
        return value

    @field_validator("gemini_api_key", "groq_api_key", "poe_api_key", "poe_model")
    @classmethod
    def _strip(cls, value: str) -> str:
        return value.strip()

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @property
    def cooldown_seconds(self) -> float:
        return self.cooldown_ms / 1000

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_ms / 1000

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Unparseable integers fall back to their defaults (with a warning);
        values that parse but fail validation raise ConfigurationError.

        Raises:
            ConfigurationError: If a value is out of range.
        """
        env = os.environ if environ is None else environ

        raw = {
            "gemini_api_key": env.get("GEMINI_API_KEY", ""),
            "gemini_model": env.get("GEMINI_MODEL") or DEFAULT_GEMINI_MODEL,
            "groq_api_key": env.get("GROQ_API_KEY", ""),
            "groq_model_fast": env.get("GROQ_MODEL_FAST") or DEFAULT_GROQ_MODEL_FAST,
            "groq_model_smart": env.get("GROQ_MODEL_SMART") or DEFAULT_GROQ_MODEL_SMART,
            "poe_api_key": env.get("POE_API_KEY", ""),
            "poe_model": env.get("POE_MODEL", ""),
            "poe_enabled": _parse_optional_bool(env.get("POE_ENABLED")),
            "llm_primary": "groq" if env.get("LLM_PRIMARY", "").strip().lower() == "groq" else "gemini",
            "timeout_ms": _parse_int(env, "LLM_TIMEOUT_MS", 12_000),
            "cooldown_ms": _parse_int(env, "LLM_COOLDOWN_MS", 600_000),
            "cache_ttl_ms": _parse_int(env, "LLM_CACHE_TTL_MS", 180_000),
            "max_output_tokens_short": _parse_int(env, "LLM_MAX_OUTPUT_TOKENS_SHORT", 300),
            "max_output_tokens_long": _parse_int(env, "LLM_MAX_OUTPUT_TOKENS_LONG", 800),
            "usage_day_tz": (env.get("USAGE_DAY_TZ") or "").strip() or None,
            "answer_language": (env.get("ANSWER_LANGUAGE") or "").strip() or "pt-BR",
        }

        try:
            return cls(**raw)
        except ValidationError as e:
            first = e.errors()[0]
            setting = str(first["loc"][0]) if first.get("loc") else None
            raise ConfigurationError(
                f"Invalid router configuration:\n{e}",
                setting=setting,
            ) from e


def _parse_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(
            "config_invalid_integer",
            extra={"setting": name, "value": value[:50], "default": default},
        )
        return default


def _parse_optional_bool(value: Optional[str]) -> Optional[bool]:
    # Only the literal "true" turns Poe on; any other non-empty value turns it off.
    if value is None or not value.strip():
        return None
    return value.strip().lower() == "true"
