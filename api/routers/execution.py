"""Code execution endpoint."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.auth import require_api_key
from api.schemas.execution import (
    ErrorResponse,
    ExecutionRequest,
    ExecutionResponse,
    LanguagesResponse,
)
from api.services.executor_service import (
    ExecutorService,
    get_executor_service,
    render_outcome,
)
from sandbox import supported_languages

router = APIRouter(dependencies=[Depends(require_api_key)])


@router.post(
    "/execute",
    response_model=ExecutionResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid language or code"},
        429: {"model": ErrorResponse, "description": "Too many concurrent executions"},
        500: {"model": ErrorResponse, "description": "Code could not be staged or launched"},
    },
)
async def execute_code(
    request: ExecutionRequest,
    executor: ExecutorService = Depends(get_executor_service),
) -> JSONResponse:
    """Execute code in a sandboxed child process.

    Requires the shared bearer token. The program runs in a private
    workspace under the server's fixed deadline; callers cannot extend it.

    Args:
        request: The execution request containing language and code.
        executor: The executor service (injected).

    Returns:
        Captured output and exit status, or an error body whose HTTP
        status tells rejection (400), overload (429) and internal
        failure (500) apart.

    Security:
        - No shell, scrubbed environment, own process group
        - CPU, memory, open-file and process ceilings where supported
        - Output capped per stream; `truncated` reports discarded output
        - Whole process group killed at the deadline
    """
    outcome = await executor.execute(language=request.language, code=request.code)
    status_code, body = render_outcome(outcome)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@router.get("/languages", response_model=LanguagesResponse)
async def list_languages() -> LanguagesResponse:
    """List the languages accepted by POST /execute."""
    return LanguagesResponse(languages=supported_languages())
