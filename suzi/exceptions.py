"""
Custom exception hierarchy for the Suzi question router.

Provider outcomes never cross the router boundary as exceptions; they
are returned as LLMFailure values. These exceptions cover the cases
that stay inside a component:
- Configuration errors (caught at startup)
- Provider HTTP errors (raised and converted inside a provider call)
- Dice expression errors (shown by the CLI, ignored by the router)

Usage:
    from suzi.exceptions import ProviderHTTPError

    if response.status_code >= 300:
        raise ProviderHTTPError(
            "Groq returned 429",
            provider="groq",
            status_code=429,
        )
"""

from __future__ import annotations

from typing import Optional


class SuziError(Exception):
    """
    Base exception for all Suzi errors.

    Catch `SuziError` to handle any router-specific error.
    """

    def __init__(self, message: str, *, details: Optional[dict] = None):
        super().__init__(message)
        self.details = details or {}


# ── Configuration Errors ──────────────────────────────────────────


class ConfigurationError(SuziError):
    """
    Raised when the environment configuration is invalid.

    Examples:
    - Non-positive timeout, cooldown or TTL
    - Non-positive output token budgets
    """

    def __init__(
        self,
        message: str,
        *,
        setting: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.setting = setting


# ── Provider Errors ───────────────────────────────────────────────


class ProviderHTTPError(SuziError):
    """
    Raised when a provider answers with a non-success HTTP status.

    Never escapes `Provider.call()`: the provider classifies it into an
    LLMFailure before returning.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
        body: str = "",
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.provider = provider
        self.status_code = status_code
        self.body = body


# ── Dice Errors ───────────────────────────────────────────────────


class DiceExpressionError(SuziError):
    """
    Raised when a dice expression is not valid `NdM` notation or falls
    outside the supported bounds.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        super().__init__(message, details=details)
        self.expression = expression
