"""API services package."""

from api.services.executor_service import (
    ExecutorService,
    get_executor_service,
    reset_executor_service,
)

__all__ = [
    "ExecutorService",
    "get_executor_service",
    "reset_executor_service",
]
