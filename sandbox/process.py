"""Runs a staged program in a child process under a wall-clock deadline.

The child runs in its own session with a scrubbed environment and resource
ceilings. stdout and stderr are drained concurrently into capped buffers so
a program that writes without bound cannot exhaust host memory or stall on
a full pipe. When the deadline fires, or once the program exits, the whole
process group is killed, along with any descendant that moved to a session
of its own, so no descendant outlives the request.
"""

import asyncio
import os
import signal
import subprocess
import time

from common.config import Settings, settings
from common.logging import get_logger
from sandbox.errors import LaunchError
from sandbox.languages import PYTHON, Language
from sandbox.limits import ResourceLimits, network_isolation_prefix
from sandbox.models import RawExecution
from sandbox.workspace import Workspace

logger = get_logger(__name__)

READ_CHUNK_BYTES = 64 * 1024

# How long to keep draining pipes after the child has exited or been killed
DRAIN_GRACE_SECONDS = 1.0

EXIT_POLL_SECONDS = 0.02

# Bounded so a process that keeps forking cannot hold the sweep forever
SWEEP_PASSES = 5


class CappedBuffer:
    """Byte buffer that keeps the first ``limit`` bytes and counts the rest."""

    def __init__(self, limit: int):
        self.limit = limit
        self._chunks: list[bytes] = []
        self._size = 0
        self.discarded = 0

    def write(self, data: bytes) -> None:
        room = self.limit - self._size
        if room > 0:
            kept = data[:room]
            self._chunks.append(kept)
            self._size += len(kept)
        self.discarded += max(0, len(data) - max(room, 0))

    @property
    def truncated(self) -> bool:
        return self.discarded > 0

    def getvalue(self) -> bytes:
        return b"".join(self._chunks)


async def _drain(stream: asyncio.StreamReader, buffer: CappedBuffer) -> None:
    """Read ``stream`` to EOF into ``buffer``, discarding what exceeds its cap."""
    while True:
        chunk = await stream.read(READ_CHUNK_BYTES)
        if not chunk:
            return
        buffer.write(chunk)


def _kill_group(process: asyncio.subprocess.Process) -> None:
    """SIGKILL the child's process group (the child is its session leader)."""
    if os.name == "nt":
        if process.returncode is None:
            process.kill()
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass
    except PermissionError:
        # Group already reaped and pid reused by another user's process
        pass


async def _wait_for_exit(process: asyncio.subprocess.Process) -> int:
    """Wait for the child itself to exit.

    ``Process.wait()`` also waits for the stdout/stderr pipes to close, which
    never happens while a background descendant still holds them. The
    return code is set as soon as the child is reaped, so poll that instead.
    """
    while process.returncode is None:
        await asyncio.sleep(EXIT_POLL_SECONDS)
    return process.returncode


def _kill_stragglers(workspace: Workspace) -> int:
    """SIGKILL processes that left the child's process group.

    A descendant can call ``setsid()`` and escape :func:`_kill_group`, but it
    still carries the environment it was started with, and ``HOME`` in that
    environment is the workspace directory. Only Linux exposes other
    processes' environments; elsewhere nothing is swept.

    Returns:
        Number of processes killed.
    """
    if not os.path.isdir("/proc"):
        return 0
    marker = f"HOME={workspace.root}".encode()
    own_pid = os.getpid()
    killed = 0
    for _ in range(SWEEP_PASSES):
        found = 0
        for name in os.listdir("/proc"):
            if not name.isdigit() or int(name) == own_pid:
                continue
            try:
                with open(f"/proc/{name}/environ", "rb") as f:
                    environ = f.read().split(b"\0")
            except OSError:
                # Gone already, or owned by another user
                continue
            if marker not in environ:
                continue
            try:
                os.kill(int(name), signal.SIGKILL)
            except (ProcessLookupError, PermissionError):
                continue
            found += 1
        if not found:
            break
        killed += found
    return killed


class ProcessSandbox:
    """Launches one interpreter process per call to :meth:`run`."""

    def __init__(self, config: Settings | None = None):
        self.config = config or settings
        self.limits = ResourceLimits.from_settings(self.config)
        self.command_prefix = network_isolation_prefix(self.config.isolate_network)

    def build_env(self, workspace: Workspace, language: Language) -> dict[str, str]:
        """Child environment: allow-listed variables only, home and temp inside the workspace."""
        env = {
            name: os.environ[name]
            for name in self.config.env_allowlist
            if name in os.environ
        }
        env["HOME"] = str(workspace.root)
        env["TMPDIR"] = str(workspace.root)
        env.update(language.extra_env)
        return env

    async def run(
        self,
        workspace: Workspace,
        deadline: float,
        language: Language = PYTHON,
    ) -> RawExecution:
        """Run the staged program and wait for it, at most ``deadline`` seconds.

        Args:
            workspace: Workspace holding the staged source file.
            deadline: Wall-clock limit in seconds.
            language: Decides which interpreter is launched.

        Returns:
            RawExecution with captured output. ``timed_out`` is set when the
            deadline fired and the process group was killed.

        Raises:
            LaunchError: If the interpreter could not be started.
        """
        cmd = [*self.command_prefix, *language.command(self.config, str(workspace.source_path))]
        stdout_buf = CappedBuffer(self.config.max_output_bytes)
        stderr_buf = CappedBuffer(self.config.max_output_bytes)

        start = time.perf_counter()
        try:
            process = await asyncio.create_subprocess_exec(
                *cmd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(workspace.root),
                env=self.build_env(workspace, language),
                start_new_session=True,
                preexec_fn=self.limits.preexec_fn(),
                close_fds=True,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise LaunchError(f"Could not start interpreter '{cmd[0]}': {e}") from e

        drains = asyncio.gather(
            _drain(process.stdout, stdout_buf),
            _drain(process.stderr, stderr_buf),
        )
        timed_out = False
        try:
            try:
                await asyncio.wait_for(_wait_for_exit(process), timeout=deadline)
            except asyncio.TimeoutError:
                timed_out = True
                logger.info("Process %s exceeded %ss deadline, killing group", process.pid, deadline)
            # Kill stragglers left behind by the child as well as the child itself
            _kill_group(process)
            await _wait_for_exit(process)
            escaped = await asyncio.to_thread(_kill_stragglers, workspace)
            if escaped:
                logger.warning(
                    "Killed %d process(es) that left the process group of %s",
                    escaped,
                    process.pid,
                )
            try:
                await asyncio.wait_for(asyncio.shield(drains), timeout=DRAIN_GRACE_SECONDS)
            except asyncio.TimeoutError:
                # Something outside our reach still holds a pipe open
                logger.warning("Output pipes of process %s still open after exit", process.pid)
            else:
                await process.wait()
        finally:
            if process.returncode is None:
                _kill_group(process)
            drains.cancel()

        duration_ms = (time.perf_counter() - start) * 1000
        return RawExecution(
            stdout=stdout_buf.getvalue(),
            stderr=stderr_buf.getvalue(),
            returncode=None if timed_out else process.returncode,
            timed_out=timed_out,
            truncated=stdout_buf.truncated or stderr_buf.truncated,
            duration_ms=duration_ms,
        )
