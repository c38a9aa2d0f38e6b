"""FastAPI dependencies for authentication."""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from api.auth.token import TokenVerifier, get_token_verifier
from common.logging import get_logger

logger = get_logger(__name__)

# HTTP Bearer token scheme for OpenAPI docs
bearer_scheme = HTTPBearer(auto_error=False)


async def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> None:
    """FastAPI dependency that admits only callers presenting the shared secret.

    Args:
        credentials: Bearer token from Authorization header
        verifier: Shared-secret verifier

    Raises:
        HTTPException: 401 if the token is missing or wrong
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not verifier.configured:
        logger.error("API_KEY is not configured; refusing all authenticated requests")

    if not verifier.verify(credentials.credentials):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication token",
            headers={"WWW-Authenticate": "Bearer"},
        )
