"""
Observability for the Suzi question router.

Structured logging only: every provider attempt and router decision is
a log event with its fields in the record's `extra` dict.
"""
