"""Data model for one execution: raw process results and the outcomes built from them."""

import signal as _signal
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class RawExecution:
    """What the process sandbox observed while running one program."""

    stdout: bytes = b""
    stderr: bytes = b""
    returncode: int | None = None
    timed_out: bool = False
    truncated: bool = False
    duration_ms: float = 0.0


@dataclass(frozen=True)
class ExecutionResult:
    """Captured output and exit status of a finished (or killed) program.

    At most one of ``exit_code`` and ``signal`` is set. Both are ``None``
    only when the program was killed for exceeding its deadline.
    """

    stdout: str = ""
    stderr: str = ""
    exit_code: int | None = None
    signal: int | None = None
    truncated: bool = False
    duration_ms: float = 0.0

    @property
    def signal_name(self) -> str | None:
        if self.signal is None:
            return None
        try:
            return _signal.Signals(self.signal).name
        except ValueError:
            return f"SIG{self.signal}"

    @classmethod
    def from_raw(cls, raw: RawExecution) -> "ExecutionResult":
        """Decode captured bytes and split the return code into exit code or signal."""
        exit_code: int | None = None
        signum: int | None = None
        if not raw.timed_out and raw.returncode is not None:
            if raw.returncode < 0:
                signum = -raw.returncode
            else:
                exit_code = raw.returncode
        return cls(
            stdout=raw.stdout.decode("utf-8", errors="replace"),
            stderr=raw.stderr.decode("utf-8", errors="replace"),
            exit_code=exit_code,
            signal=signum,
            truncated=raw.truncated,
            duration_ms=raw.duration_ms,
        )


@dataclass(frozen=True)
class Completed:
    """The program ran to completion within its deadline (any exit code)."""

    result: ExecutionResult


@dataclass(frozen=True)
class TimedOut:
    """The program was killed at its deadline; ``result`` holds partial output."""

    result: ExecutionResult


@dataclass(frozen=True)
class Rejected:
    """The request was refused before any resource was allocated."""

    reason: str


@dataclass(frozen=True)
class Overloaded:
    """Too many executions are already running."""

    reason: str = "overloaded"


@dataclass(frozen=True)
class InternalError:
    """The service could not stage or launch the program."""

    reason: str


ExecutionOutcome = Union[Completed, TimedOut, Rejected, Overloaded, InternalError]
