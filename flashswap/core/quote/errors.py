"""
Quote Refresh Errors

Exceptions raised by the engine and its collaborators, and the names of the
field-level validation flags.
"""

# Validation flag names, shared with the presentation layer
FROM_AMOUNT = "fromAmount"
TO_ADDRESS = "toAddress"
PRICE = "price"
ACCOUNT = "account"
DEPOSIT_LIMIT = "depositLimit"


class QuoteEngineError(Exception):
    """Base class for quote refresh errors."""


class EngineStateError(QuoteEngineError):
    """Raised when an operation is not allowed in the engine's current state."""

    def __init__(self, operation: str, status: str):
        super().__init__(f"Cannot {operation} while engine is {status}")
        self.operation = operation
        self.status = status


class QuoteSourceError(QuoteEngineError):
    """Raised by a provider when the quote source answers with something unusable."""

    def __init__(self, message: str, provider: str = "", response_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.response_code = response_code
