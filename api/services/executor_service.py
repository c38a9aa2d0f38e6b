"""Execution service for running submitted code."""

from fastapi import status

from api.schemas.execution import ErrorResponse, ExecutionResponse
from common.config import Settings, settings
from sandbox import (
    Completed,
    ExecutionCoordinator,
    ExecutionOutcome,
    ExecutionResult,
    InternalError,
    Overloaded,
    Rejected,
    TimedOut,
)


def _to_response(result: ExecutionResult, timed_out: bool) -> ExecutionResponse:
    return ExecutionResponse(
        stdout=result.stdout,
        stderr=result.stderr,
        exit_code=result.exit_code,
        signal=result.signal_name,
        timed_out=timed_out,
        truncated=result.truncated,
        duration_ms=result.duration_ms,
    )


def render_outcome(outcome: ExecutionOutcome) -> tuple[int, ExecutionResponse | ErrorResponse]:
    """Map an outcome to an HTTP status code and response body.

    Timeouts are reported with 200: running out of time is a normal result
    of the submitted program, not a failure of this service.
    """
    if isinstance(outcome, Completed):
        return status.HTTP_200_OK, _to_response(outcome.result, timed_out=False)
    if isinstance(outcome, TimedOut):
        return status.HTTP_200_OK, _to_response(outcome.result, timed_out=True)
    if isinstance(outcome, Rejected):
        return status.HTTP_400_BAD_REQUEST, ErrorResponse(error=outcome.reason)
    if isinstance(outcome, Overloaded):
        return status.HTTP_429_TOO_MANY_REQUESTS, ErrorResponse(error=outcome.reason)
    if isinstance(outcome, InternalError):
        return status.HTTP_500_INTERNAL_SERVER_ERROR, ErrorResponse(error=outcome.reason)
    raise TypeError(f"Unknown execution outcome: {outcome!r}")


class ExecutorService:
    """Service for executing user-submitted code."""

    def __init__(self, config: Settings | None = None):
        """Initialize the executor service.

        Args:
            config: Settings to build the coordinator from. Defaults to the
                process-wide settings.
        """
        self.coordinator = ExecutionCoordinator(config or settings)

    async def execute(self, language: str, code: str) -> ExecutionOutcome:
        """Execute code in the sandbox.

        The deadline is always the server's configured timeout.

        Args:
            language: Requested language name.
            code: The source code to execute.

        Returns:
            The execution outcome.
        """
        return await self.coordinator.execute(language, code)

    @property
    def active_executions(self) -> int:
        return self.coordinator.active

    @property
    def max_executions(self) -> int:
        return self.coordinator.limiter.limit

    async def shutdown(self) -> None:
        """Wait for in-flight executions to finish."""
        await self.coordinator.drain()


# Singleton instance for dependency injection
_executor_service: ExecutorService | None = None


def get_executor_service() -> ExecutorService:
    """Get the executor service instance (dependency injection)."""
    global _executor_service
    if _executor_service is None:
        _executor_service = ExecutorService()
    return _executor_service


def reset_executor_service() -> None:
    """Drop the singleton so the next call builds a fresh one."""
    global _executor_service
    _executor_service = None
