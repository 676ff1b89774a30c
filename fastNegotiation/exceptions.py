"""
Exceptions for FastNegotiation.

Negotiation misses are normal outcomes and never raise; these cover
misconfiguration and unparsable header values.
"""


class NegotiationError(Exception):
    """Base class for all negotiation errors."""


class NegotiationConfigError(NegotiationError, ValueError):
    """Raised at construction time when a middleware is misconfigured."""


class InvalidHeaderError(NegotiationError, ValueError):
    """Raised when an Accept* header value cannot be parsed."""

    def __init__(self, header: str, reason: str) -> None:
        super().__init__(f"Invalid header value {header!r}: {reason}")
        self.header = header
        self.reason = reason
