"""Session identity and auth token storage."""
from .session import SessionIdentityProvider
from .tokens import AuthTokenStore

__all__ = [
    "SessionIdentityProvider",
    "AuthTokenStore",
]
