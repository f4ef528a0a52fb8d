"""Firebase Authentication adapter.

Public API:
    - IdentityProvider: Sign-in/up/out plus a principal change stream
    - Subscription: Cancellation handle returned by ``IdentityProvider.subscribe``
    - create_identity_provider: Factory building the adapter from settings
"""
from wanderai.services.identity.client import (
    MIN_PASSWORD_LENGTH,
    IdentityProvider,
    Subscription,
    create_identity_provider,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "IdentityProvider",
    "Subscription",
    "create_identity_provider",
]
