"""
Exception hierarchy for credit log processing.
"""
from typing import Any, Dict, Optional


class CreditLogError(Exception):
    """Base exception for all credit log errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize exception.

        Args:
            message: Error message
            details: Additional error details
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class DecodeError(CreditLogError):
    """Raised when a message fragment cannot be turned into a record."""
    pass


class MalformedInput(DecodeError):
    """Raised when a document or fragment is not well-formed XML."""
    pass


class MissingSection(DecodeError):
    """Raised when a required block is absent from a message fragment."""

    def __init__(self, section: str, kind: str):
        super().__init__(
            f"Invalid {kind} XML structure: <{section}> element not found.",
            {"section": section, "kind": kind},
        )
        self.section = section
        self.kind = kind


class ConfigurationError(CreditLogError):
    """Raised when configuration or the rule table is invalid."""
    pass


class RateFetchError(CreditLogError):
    """Raised when the exchange rate provider cannot deliver a rate table."""
    pass
