"""
Identity Protocol — Interface for resolving the acting user.

Stockledger defines this protocol; the host project (auth backend, API
layer, background job runner) implements or configures it.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IdentityProvider(Protocol):
    """
    Protocol for identity resolution.

    Implementations return the authenticated user performing the current
    operation, or None when nobody is authenticated.
    """

    def get_current_user(self) -> Any | None:
        """
        Return the acting user.

        Returns:
            User instance, or None if no authenticated user is bound
        """
        ...
