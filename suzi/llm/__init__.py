"""
LLM routing layer — provider clients, intent routing, cache and cooldown.

Modules:
- types: Messages, requests, success/failure results, router inputs/outputs
- intent: Deterministic intent classifier
- local_resolver: Dice questions answered without any provider
- cache: ResponseCache — TTL-based answer caching per fingerprint
- cooldown: CooldownTracker — per-provider circuit breaker
- usage: UsageCounters — per-provider daily call counters
- prompts: System/user prompts and canned fallback texts
- providers: Gemini, Groq and Poe clients behind one contract
- router: QuestionRouter — orchestration of all of the above
"""
