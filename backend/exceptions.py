# exceptions.py
"""
Exceptions shared across the backend.

- LLMError          : LLM call or response parsing failed
- JournalInputError : request payload failed validation
"""


class LLMError(RuntimeError):
    """LLM call, response format or parsing failure."""
    pass


class JournalInputError(ValueError):
    """Journal entry payload is missing or invalid."""
    pass
