"""
Shared types for the LLM routing layer.

Provider calls return a tagged union: `LLMSuccess` or `LLMFailure`, both
carrying `ok` so callers can branch without isinstance checks. Nothing
here is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class ProviderId(str, Enum):
    """External inference services."""

    GEMINI = "gemini"
    GROQ = "groq"
    POE = "poe"      # administrative only


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ErrorType(str, Enum):
    """Failure taxonomy shared by every provider client."""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    TIMEOUT = "timeout"
    SERVER = "server"
    NETWORK = "network"
    INVALID_REQUEST = "invalid_request"
    UNKNOWN = "unknown"


class Intent(str, Enum):
    """Coarse question classes that drive provider order and output budget."""

    QUICK_FACT = "quick_fact"
    RECOMMENDATION = "recommendation"
    TUTORIAL = "tutorial"
    DEEP_ANSWER = "deep_answer"


class QuestionType(str, Enum):
    """Caller-supplied topic of a question."""

    GAME = "GAME"
    MOVIE = "MOVIE"
    TUTORIAL = "TUTORIAL"


class AdminUseCase(str, Enum):
    MONITOR = "MONITOR"
    TEMPLATES = "TEMPLATES"


class ModelGoal(str, Enum):
    FAST = "fast"
    SMART = "smart"


class ResponseSource(str, Enum):
    """Which layer produced the final answer."""

    LLM = "llm"
    CACHE = "cache"
    LOCAL = "local"
    FALLBACK = "fallback"


# ---------------------------------------------------------------------------
# Provider request / response
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Message:
    role: MessageRole
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(MessageRole.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(MessageRole.USER, content)

    @classmethod
    def assistant(cls, content: str) -> "Message":
        return cls(MessageRole.ASSISTANT, content)


@dataclass(frozen=True)
class LLMRequest:
    """Normalized request handed to a provider client."""

    messages: tuple[Message, ...]
    max_output_tokens: int
    timeout_ms: int
    purpose: str = ""       # intent or admin use case, for diagnostics only

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass(frozen=True)
class Usage:
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


@dataclass(frozen=True)
class LLMSuccess:
    provider: ProviderId
    model: str
    text: str
    latency_ms: float
    usage: Optional[Usage] = None

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class LLMFailure:
    provider: ProviderId
    model: str
    latency_ms: float
    error_type: ErrorType
    status: Optional[int] = None

    @property
    def ok(self) -> bool:
        return False


LLMResult = Union[LLMSuccess, LLMFailure]


# ---------------------------------------------------------------------------
# Router input / output
# ---------------------------------------------------------------------------

@dataclass
class UserProfile:
    """The slice of a player profile the prompt builder reads."""

    player_name: Optional[str] = None


@dataclass
class AskInput:
    question: str
    question_type: Optional[QuestionType] = None
    user_profile: Optional[UserProfile] = None
    user_display_name: Optional[str] = None
    user_history: list[str] = field(default_factory=list)
    scope_hint: Optional[str] = None
    guild_id: Optional[str] = None
    user_id: Optional[str] = None
    intent_override: Optional[Intent] = None


@dataclass
class AdminAskInput:
    messages: list[Message]
    use_case: AdminUseCase
    guild_id: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class AskResult:
    text: str
    provider: ProviderId
    model: str
    latency_ms: float
    intent: Intent
    from_cache: bool
    source: ResponseSource


@dataclass
class Candidate:
    """A (provider, model) pair eligible for one dispatch attempt."""

    provider: ProviderId
    model: str


@dataclass
class RouterStatus:
    primary: ProviderId
    cache_hits: int
    cache_misses: int
    cache_size: int
    cooldowns: dict[str, float]           # provider -> remaining seconds
    provider_counts: dict[str, int]       # provider -> calls today
    models: dict[str, str]
