"""
Suzi — question router for a games/movies/tutorials chat assistant.

Dispatches free-text questions to interchangeable LLM providers
(Gemini, Groq, Poe) behind an in-process cache, a per-provider cooldown
and a local dice resolver.
"""

__version__ = "1.0.0"
