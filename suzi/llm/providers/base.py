"""
Provider contract and shared HTTP execution.

Every provider client implements one operation:

    await provider.call(request, model) -> LLMSuccess | LLMFailure

`call()` never raises. It completes within `request.timeout_ms` (the
httpx request is wrapped in `asyncio.wait_for`, which cancels it on
expiry) and represents every failure mode as an LLMFailure:

- no credential              → auth (no network call)
- timeout / cancellation     → timeout
- DNS / connection / transport → network
- 429                        → rate_limit
- 401 / 403                  → auth
- >= 500                     → server
- other non-2xx              → unknown (subclasses may refine)
- 2xx without usable text    → unknown

Subclasses only describe their wire format: endpoint, headers, payload
and how to pull text/usage out of the response.
"""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx

from suzi.exceptions import ProviderHTTPError
from suzi.llm.types import (
    ErrorType,
    LLMFailure,
    LLMRequest,
    LLMResult,
    LLMSuccess,
    ProviderId,
    Usage,
)

logger = logging.getLogger(__name__)

_MAX_LOGGED_BODY = 500


class Provider(ABC):
    """
    Base class for all provider clients.

    Args:
        api_key: Provider credential; empty means "not configured".
        base_url: Override the provider's API root (tests, proxies).
        transport: Optional httpx transport (e.g. httpx.MockTransport).
    """

    provider_id: ProviderId
    default_base_url: str = ""
    temperature: float = 0.7

    def __init__(
        self,
        api_key: str = "",
        *,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = (api_key or "").strip()
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    # --- Wire format (subclasses) ---

    @abstractmethod
    def _endpoint(self, model: str) -> str:
        """Full URL for a completion request."""

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        """Request headers, including the credential."""

    @abstractmethod
    def _build_payload(self, request: LLMRequest, model: str) -> dict[str, Any]:
        """JSON body for a completion request."""

    @abstractmethod
    def _parse_response(self, payload: Any) -> tuple[Optional[str], Optional[Usage]]:
        """Extract (text, usage) from a decoded JSON response."""

    def _classify_status(self, status: int) -> ErrorType:
        if status == 429:
            return ErrorType.RATE_LIMIT
        if status in (401, 403):
            return ErrorType.AUTH
        if status >= 500:
            return ErrorType.SERVER
        return ErrorType.UNKNOWN

    # --- Main API ---

    async def call(self, request: LLMRequest, model: str) -> LLMResult:
        """Execute one completion request. Never raises."""
        start = time.monotonic()

        if not self.is_configured:
            result: LLMResult = self._failure(model, start, ErrorType.AUTH)
            self._log_attempt(request, result)
            return result

        try:
            payload = await asyncio.wait_for(
                self._post(request, model),
                timeout=request.timeout_seconds,
            )
            text, usage = self._parse_response(payload)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            result = self._failure(model, start, ErrorType.TIMEOUT)
        except ProviderHTTPError as e:
            status = e.status_code or 0
            result = self._failure(model, start, self._classify_status(status), status)
        except httpx.HTTPError as e:
            logger.debug(
                "llm_provider_transport_error",
                extra={"provider": self.provider_id.value, "error": str(e)[:200]},
            )
            result = self._failure(model, start, ErrorType.NETWORK)
        except ValueError:
            # Body was not JSON.
            result = self._failure(model, start, ErrorType.UNKNOWN)
        except (TypeError, AttributeError, KeyError, IndexError):
            logger.warning(
                "llm_provider_malformed_response",
                extra={"provider": self.provider_id.value, "model": model},
                exc_info=True,
            )
            result = self._failure(model, start, ErrorType.UNKNOWN)
        else:
            text = (text or "").strip()
            if text:
                result = LLMSuccess(
                    provider=self.provider_id,
                    model=model,
                    text=text,
                    latency_ms=_elapsed_ms(start),
                    usage=usage,
                )
            else:
                logger.warning(
                    "llm_provider_empty_response",
                    extra={"provider": self.provider_id.value, "model": model},
                )
                result = self._failure(model, start, ErrorType.UNKNOWN)

        self._log_attempt(request, result)
        return result

    # --- Internals ---

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=timeout, transport=self._transport)

    async def _post(self, request: LLMRequest, model: str) -> Any:
        async with self._client(request.timeout_seconds) as client:
            response = await client.post(
                self._endpoint(model),
                json=self._build_payload(request, model),
                headers=self._headers(),
            )

        if not response.is_success:
            body = response.text
            if response.status_code >= 400:
                logger.warning(
                    "llm_provider_error_body",
                    extra={
                        "provider": self.provider_id.value,
                        "model": model,
                        "status": response.status_code,
                        "body": body[:_MAX_LOGGED_BODY],
                    },
                )
            raise ProviderHTTPError(
                f"{self.provider_id.value} returned {response.status_code}",
                provider=self.provider_id.value,
                status_code=response.status_code,
                body=body[:_MAX_LOGGED_BODY],
            )

        return response.json()

    def _failure(
        self,
        model: str,
        start: float,
        error_type: ErrorType,
        status: Optional[int] = None,
    ) -> LLMFailure:
        return LLMFailure(
            provider=self.provider_id,
            model=model,
            latency_ms=_elapsed_ms(start),
            error_type=error_type,
            status=status,
        )

    def _log_attempt(self, request: LLMRequest, result: LLMResult) -> None:
        fields: dict[str, Any] = {
            "provider": self.provider_id.value,
            "model": result.model,
            "purpose": request.purpose,
            "latency_ms": round(result.latency_ms, 1),
        }
        if isinstance(result, LLMSuccess):
            fields["outcome"] = "ok"
            if result.usage and result.usage.total_tokens is not None:
                fields["total_tokens"] = result.usage.total_tokens
            logger.info("llm_provider_call", extra=fields)
        else:
            fields["outcome"] = "error"
            fields["error_type"] = result.error_type.value
            fields["status"] = result.status
            logger.warning("llm_provider_call", extra=fields)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"configured={self.is_configured}, "
            f"base_url='{self.base_url}'"
            f")"
        )


def _elapsed_ms(start: float) -> float:
    return (time.monotonic() - start) * 1000


def _optional_int(value: Any) -> Optional[int]:
    return value if isinstance(value, int) else None


def build_usage(
    prompt_tokens: Any,
    completion_tokens: Any,
    total_tokens: Any,
) -> Optional[Usage]:
    """Usage from raw counters; None when the provider sent none."""
    usage = Usage(
        prompt_tokens=_optional_int(prompt_tokens),
        completion_tokens=_optional_int(completion_tokens),
        total_tokens=_optional_int(total_tokens),
    )
    if usage == Usage():
        return None
    return usage
