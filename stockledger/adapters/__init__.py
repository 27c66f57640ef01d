"""
Stockledger Adapters.

Implementations of protocols for external systems.
"""

from stockledger.adapters.identity import (
    ContextIdentityProvider,
    acting_as,
    get_identity_provider,
    reset_identity_provider,
)

__all__ = [
    "ContextIdentityProvider",
    "acting_as",
    "get_identity_provider",
    "reset_identity_provider",
]
