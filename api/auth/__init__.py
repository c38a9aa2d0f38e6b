"""Authentication module for static bearer-token checks."""

from api.auth.dependencies import require_api_key
from api.auth.token import TokenVerifier, get_token_verifier

__all__ = [
    "TokenVerifier",
    "get_token_verifier",
    "require_api_key",
]
