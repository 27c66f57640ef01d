"""
Stockledger Protocols.

Defines interfaces for external system integration.
"""

from stockledger.protocols.identity import IdentityProvider

__all__ = [
    "IdentityProvider",
]
