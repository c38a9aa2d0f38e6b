"""Shared-secret bearer token verification."""

import hmac
from functools import lru_cache

from common.config import settings


class TokenVerifier:
    """Compares presented bearer tokens against the configured shared secret.

    The secret is read once at construction and never changes afterwards.
    An empty secret matches nothing.
    """

    def __init__(self, api_key: str):
        self._expected = api_key.encode("utf-8")

    @property
    def configured(self) -> bool:
        return bool(self._expected)

    def verify(self, token: str) -> bool:
        """Return True if ``token`` equals the shared secret (constant time)."""
        if not self._expected:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._expected)


@lru_cache
def get_token_verifier() -> TokenVerifier:
    """Get the cached verifier built from settings."""
    return TokenVerifier(settings.api_key.get_secret_value())
