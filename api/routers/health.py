"""Health check endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.services.executor_service import ExecutorService, get_executor_service

router = APIRouter()

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    active_executions: int
    max_executions: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    executor: ExecutorService = Depends(get_executor_service),
) -> HealthResponse:
    """
    Health check endpoint.

    Returns the service status, version and current sandbox load.
    Used by load balancers and monitoring systems.
    """
    return HealthResponse(
        status="healthy",
        version=VERSION,
        active_executions=executor.active_executions,
        max_executions=executor.max_executions,
    )
