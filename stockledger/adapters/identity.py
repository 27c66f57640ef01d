"""
Identity adapters — who is posting.

The configured provider is loaded from settings:

    STOCKLEDGER = {
        "IDENTITY_PROVIDER": "stockledger.adapters.identity.ContextIdentityProvider",
    }

Usage:
    from stockledger.adapters import acting_as, get_identity_provider

    with acting_as(request.user):
        ledger.post(receipt)

    get_identity_provider().get_current_user()
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from stockledger.conf import stockledger_settings
from stockledger.protocols.identity import IdentityProvider

logger = logging.getLogger(__name__)


_current_user: ContextVar[Any | None] = ContextVar("stockledger_current_user", default=None)


def is_authenticated(user) -> bool:
    """True for a real, authenticated user (AnonymousUser and None are not)."""
    if user is None:
        return False
    return bool(getattr(user, 'is_authenticated', True))


@contextmanager
def acting_as(user):
    """Bind ``user`` as the acting user for the enclosed block."""
    token = _current_user.set(user)
    try:
        yield user
    finally:
        _current_user.reset(token)


class ContextIdentityProvider:
    """
    Identity bound to the current execution context.

    Works across threads and asyncio tasks because the binding lives in a
    ContextVar. ``CurrentUserMiddleware`` binds ``request.user`` per request.
    """

    def get_current_user(self) -> Any | None:
        user = _current_user.get()
        if not is_authenticated(user):
            return None
        return user


# Cached provider instance
_lock = threading.Lock()
_identity_provider: IdentityProvider | None = None


def get_identity_provider() -> IdentityProvider:
    """
    Return the configured identity provider.

    Raises:
        ImproperlyConfigured: If IDENTITY_PROVIDER is empty or import fails
    """
    global _identity_provider

    if _identity_provider is None:
        with _lock:
            if _identity_provider is None:  # double-checked
                provider_path = stockledger_settings.IDENTITY_PROVIDER

                if not provider_path:
                    raise ImproperlyConfigured(
                        "STOCKLEDGER['IDENTITY_PROVIDER'] must be configured. "
                        "Example: 'stockledger.adapters.identity.ContextIdentityProvider'"
                    )

                try:
                    provider_class = import_string(provider_path)
                except ImportError as e:
                    raise ImproperlyConfigured(
                        f"Failed to import identity provider '{provider_path}': {e}"
                    ) from e

                _identity_provider = provider_class()
                logger.debug("Loaded identity provider: %s", provider_path)

    return _identity_provider


def resolve_user(user=None):
    """
    Acting user for an operation.

    An explicit ``user`` wins over the configured provider. Anonymous
    users resolve to None.
    """
    if user is not None:
        return user if is_authenticated(user) else None
    return get_identity_provider().get_current_user()


def reset_identity_provider() -> None:
    """Reset the cached provider. Useful for testing."""
    global _identity_provider
    _identity_provider = None
