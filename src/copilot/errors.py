"""
Error taxonomy for intent extraction.

  LLMTransportError     -- the chat-completion call itself failed
  IntentParsingError    -- the reply is not the required JSON shape
  IntentValidationError -- the reply parsed but broke a controlled vocabulary
"""
from __future__ import annotations


class IntentError(Exception):
    """Base class for every classified failure of the pipeline."""

    kind = "intent_error"


class LLMTransportError(IntentError, RuntimeError):
    kind = "transport_error"


class IntentParsingError(IntentError, ValueError):
    kind = "parsing_error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class IntentValidationError(IntentError, ValueError):
    kind = "validation_error"

    def __init__(self, errors: list[str]):
        self.errors = list(errors)
        super().__init__(f"Intent validation failed: {'; '.join(self.errors)}")
