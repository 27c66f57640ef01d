"""
Exceptions for Stockledger.

All errors are LedgerError with a structured code for programmatic handling.
"""

from decimal import Decimal
from typing import Any


class BaseError(Exception):
    """
    Exception carrying a machine-readable code and context data.

    Subclasses declare ``_default_messages`` keyed by code.
    """

    _default_messages: dict[str, str] = {}

    def __init__(self, code: str, message: str | None = None, **data: Any):
        self.code = code
        self.message = message or self._default_messages.get(code, code)
        self.data = data
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.code!r}, {self.data!r})"


class LedgerError(BaseError):
    """
    Structured exception for ledger operations.

    Usage:
        try:
            ledger.post(delivery)
        except LedgerError as e:
            if e.code == 'INSUFFICIENT_STOCK':
                print(f"Only {e.available} on hand")

    Attributes:
        code: Error code for programmatic handling
        message: Human-readable message
        data: Additional context data
    """

    _default_messages = {
        'INSUFFICIENT_STOCK': 'Insufficient stock for this movement',
        'ALREADY_POSTED': 'Document has already been posted',
        'NOT_AUTHENTICATED': 'No authenticated user to attribute the posting to',
        'MISSING_REFERENCE': 'Referenced product or warehouse not found',
        'INACTIVE_WAREHOUSE': 'Warehouse is not active',
        'TRANSPORT_ERROR': 'Database unavailable',
        'CONCURRENCY_CONFLICT': 'Concurrent modification detected',
        'INVALID_STATUS': 'Invalid status for this operation',
        'INVALID_QUANTITY': 'Invalid quantity',
        'INVALID_DOCUMENT': 'Invalid document',
        'EMPTY_DOCUMENT': 'Document has no lines',
    }

    # Errors the poster may retry on its own before surfacing them
    RETRYABLE_CODES = frozenset({'TRANSPORT_ERROR', 'CONCURRENCY_CONFLICT'})

    @property
    def retryable(self) -> bool:
        return self.code in self.RETRYABLE_CODES

    @property
    def available(self) -> Decimal:
        """Shortcut for data['available']."""
        return self.data.get('available', Decimal('0'))

    @property
    def requested(self) -> Decimal:
        """Shortcut for data['requested']."""
        return self.data.get('requested', Decimal('0'))

    def as_dict(self) -> dict[str, Any]:
        """Serialize to dict (useful for APIs)."""
        return {
            'code': self.code,
            'message': self.message,
            'data': {
                k: str(v) if isinstance(v, Decimal) else v
                for k, v in self.data.items()
            }
        }
