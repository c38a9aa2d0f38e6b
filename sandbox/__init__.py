"""Sandboxed execution of untrusted code.

This package runs submitted source code with:
- A private, randomly named workspace per execution, always removed
- A child process with a scrubbed environment in its own process group
- A wall-clock deadline enforced by killing the whole process group
- Resource ceilings (CPU, memory, open files, processes) where the host supports them
- Size-capped output capture
- A process-wide limit on simultaneous executions
"""

from sandbox.coordinator import ExecutionCoordinator
from sandbox.errors import LaunchError, SandboxError, StagingError, ValidationError
from sandbox.languages import LANGUAGES, Language, get_language, supported_languages
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
from sandbox.workspace import Workspace, WorkspaceManager

__all__ = [
    "ExecutionCoordinator",
    "WorkspaceManager",
    "Workspace",
    "ProcessSandbox",
    "ConcurrencyLimiter",
    "Language",
    "LANGUAGES",
    "get_language",
    "supported_languages",
    "ExecutionOutcome",
    "ExecutionResult",
    "RawExecution",
    "Completed",
    "TimedOut",
    "Rejected",
    "Overloaded",
    "InternalError",
    "SandboxError",
    "ValidationError",
    "StagingError",
    "LaunchError",
]
