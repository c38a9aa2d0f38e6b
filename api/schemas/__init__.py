"""API schemas package."""

from api.schemas.execution import (
    ErrorResponse,
    ExecutionRequest,
    ExecutionResponse,
    LanguagesResponse,
)

__all__ = [
    "ErrorResponse",
    "ExecutionRequest",
    "ExecutionResponse",
    "LanguagesResponse",
]
