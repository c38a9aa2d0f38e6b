"""Orchestrates one execution request from validation to cleanup.

Every request passes through the same phases: validate the input, take a
concurrency slot, stage the source into a fresh workspace, run it under the
server's deadline, then turn whatever happened into exactly one
ExecutionOutcome. The workspace and the concurrency slot are released on
every path, including unexpected exceptions and caller cancellation.
"""

import asyncio

from common.config import Settings, settings
from common.logging import get_logger
from sandbox.errors import LaunchError, StagingError, ValidationError
from sandbox.languages import Language, get_language
from sandbox.limiter import ConcurrencyLimiter
from sandbox.models import (
    Completed,
    ExecutionOutcome,
    ExecutionResult,
    InternalError,
    Overloaded,
    RawExecution,
    Rejected,
    TimedOut,
)
from sandbox.process import ProcessSandbox
from sandbox.workspace import WorkspaceManager

logger = get_logger(__name__)


class ExecutionCoordinator:
    """Runs submissions through workspace staging and the process sandbox."""

    def __init__(
        self,
        config: Settings | None = None,
        workspaces: WorkspaceManager | None = None,
        sandbox: ProcessSandbox | None = None,
        limiter: ConcurrencyLimiter | None = None,
    ):
        self.config = config or settings
        self.workspaces = workspaces or WorkspaceManager(self.config.workspace_root)
        self.sandbox = sandbox or ProcessSandbox(self.config)
        self.limiter = limiter or ConcurrencyLimiter(self.config.max_concurrent_executions)
        self._tasks: set[asyncio.Task] = set()

    def validate(self, language: str, code: str) -> Language:
        """Check a request without touching the filesystem or spawning anything.

        Returns:
            The resolved language.

        Raises:
            ValidationError: If the language is unsupported, or the code is
                empty, not valid UTF-8 text, or larger than ``max_code_bytes``.
        """
        resolved = get_language(language)
        if not code or not code.strip():
            raise ValidationError("Code must not be empty")
        try:
            # Lone surrogates are valid JSON but cannot be written to a file
            size = len(code.encode("utf-8"))
        except UnicodeEncodeError:
            raise ValidationError("Code must be valid UTF-8 text") from None
        if size > self.config.max_code_bytes:
            raise ValidationError(
                f"Code exceeds maximum size of {self.config.max_code_bytes} bytes"
            )
        return resolved

    async def execute(self, language: str, code: str) -> ExecutionOutcome:
        """Execute a submission and return its outcome.

        The work runs in its own task. If the caller is cancelled (for example
        because the client disconnected) the task keeps running until the
        program finishes or hits its deadline and the workspace is released.
        """
        try:
            resolved = self.validate(language, code)
        except ValidationError as e:
            logger.debug("Rejected submission: %s", e)
            return Rejected(reason=str(e))

        if not self.limiter.try_acquire():
            logger.warning(
                "Rejecting submission: %d executions already running",
                self.limiter.active,
            )
            return Overloaded()

        task = asyncio.create_task(self._run_admitted(resolved, code))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return await asyncio.shield(task)

    async def _run_admitted(self, language: Language, code: str) -> ExecutionOutcome:
        """Stage, run and assemble; owns the concurrency slot taken by execute()."""
        try:
            return await self._stage_and_run(language, code)
        finally:
            self.limiter.release()

    async def _stage_and_run(self, language: Language, code: str) -> ExecutionOutcome:
        deadline = self.config.execution_timeout_seconds
        try:
            async with self.workspaces.workspace(code, language) as workspace:
                raw = await self.sandbox.run(workspace, deadline, language)
        except StagingError as e:
            logger.exception("Failed to stage submission")
            return InternalError(reason=str(e))
        except LaunchError as e:
            logger.exception("Failed to launch interpreter")
            return InternalError(reason=str(e))
        except Exception:
            logger.exception("Unexpected error while executing submission")
            return InternalError(reason="Unexpected error while executing code")

        outcome = self.assemble(raw)
        logger.info(
            "Execution finished: language=%s size=%d outcome=%s exit_code=%s signal=%s duration_ms=%.1f",
            language.name,
            len(code),
            type(outcome).__name__,
            outcome.result.exit_code,
            outcome.result.signal_name,
            outcome.result.duration_ms,
        )
        return outcome

    @staticmethod
    def assemble(raw: RawExecution) -> Completed | TimedOut:
        """Map a raw execution to its outcome.

        Non-zero exit codes, stderr output and deaths by signal (such as
        the host's out-of-memory killer) are all ``Completed``: they describe
        the submitted program, not a failure of the service.
        """
        result = ExecutionResult.from_raw(raw)
        if raw.timed_out:
            return TimedOut(result=result)
        return Completed(result=result)

    @property
    def active(self) -> int:
        """Number of executions currently holding a concurrency slot."""
        return self.limiter.active

    async def drain(self) -> None:
        """Wait for every in-flight execution to finish and clean up."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
