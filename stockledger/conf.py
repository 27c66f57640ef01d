"""
Stockledger configuration.

Usage in settings.py:
    STOCKLEDGER = {
        "IDENTITY_PROVIDER": "stockledger.adapters.identity.ContextIdentityProvider",
        "MAX_ATTEMPTS": 3,
        "RETRY_BACKOFF_SECONDS": 0.05,
        "POSTABLE_STATUSES": ["ready"],
    }
"""

from dataclasses import dataclass, field
from typing import Any

from django.conf import settings


def _default_prefixes() -> dict[str, str]:
    return {
        'receipt': 'REC',
        'delivery': 'DEL',
        'transfer': 'TR',
        'adjustment': 'ADJ',
    }


@dataclass
class StockledgerSettings:
    """Stockledger configuration settings."""

    # Identity provider backend (dotted path)
    IDENTITY_PROVIDER: str = "stockledger.adapters.identity.ContextIdentityProvider"

    # Posting attempts for retryable errors (transport, concurrency)
    MAX_ATTEMPTS: int = 3

    # Linear backoff base between attempts, in seconds
    RETRY_BACKOFF_SECONDS: float = 0.05

    # Statuses from which a document may be posted
    POSTABLE_STATUSES: list[str] = field(default_factory=lambda: ['ready'])

    # Document number prefixes per transaction type
    NUMBER_PREFIXES: dict[str, str] = field(default_factory=_default_prefixes)

    # Zero padding of the sequence part of document numbers
    NUMBER_PADDING: int = 5


def get_stockledger_settings() -> StockledgerSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "STOCKLEDGER", {})
    return StockledgerSettings(**{
        k: v for k, v in user_settings.items()
        if k in StockledgerSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_stockledger_settings(), name)


stockledger_settings = _LazySettings()
