"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import execution, health
from api.routers.health import VERSION
from api.services.executor_service import get_executor_service
from common.config import settings
from common.logging import configure_logging, get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown."""
    # Startup
    configure_logging(settings.log_level)
    executor = get_executor_service()
    logger.info(
        "Sandbox ready: environment=%s interpreter=%s timeout=%ss max_concurrent=%d",
        settings.environment,
        settings.interpreter_path,
        settings.execution_timeout_seconds,
        settings.max_concurrent_executions,
    )
    yield
    # Shutdown - let running executions finish and release their workspaces
    await executor.shutdown()


app = FastAPI(
    title=f"{settings.app_name} API",
    description="Sandboxed execution of untrusted code",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400 with the same shape as other rejections."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": message})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(execution.router, tags=["Execution"])


def run() -> None:
    """Serve the API with uvicorn."""
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
