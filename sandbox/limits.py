"""Resource ceilings applied to the child process before it execs.

On POSIX hosts limits are enforced via resource.setrlimit in the forked
child. Elsewhere they degrade gracefully and only the wall-clock deadline
applies.
"""

import os
import shutil
from collections.abc import Callable
from dataclasses import dataclass

from common.config import Settings
from common.logging import get_logger

if os.name != "nt":
    import resource

logger = get_logger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class ResourceLimits:
    """Per-child ceilings. A value of 0 leaves that limit untouched."""

    cpu_seconds: int = 0
    memory_bytes: int = 0
    open_files: int = 0
    processes: int = 0
    file_size_bytes: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResourceLimits":
        return cls(
            cpu_seconds=settings.resolved_cpu_time_limit,
            memory_bytes=settings.memory_limit_mb * MB,
            open_files=settings.max_open_files,
            processes=settings.max_processes,
            file_size_bytes=settings.max_file_size_mb * MB,
        )

    def preexec_fn(self) -> Callable[[], None] | None:
        """Return a function that applies the limits in the child, or None if unsupported."""
        if os.name == "nt":
            return None

        pairs = [
            (resource.RLIMIT_CPU, self.cpu_seconds),
            (resource.RLIMIT_AS, self.memory_bytes),
            (resource.RLIMIT_NOFILE, self.open_files),
            (resource.RLIMIT_NPROC, self.processes),
            (resource.RLIMIT_FSIZE, self.file_size_bytes),
            (resource.RLIMIT_CORE, 0),
        ]

        def apply_limits() -> None:
            for limit, value in pairs:
                if value == 0 and limit != resource.RLIMIT_CORE:
                    continue
                try:
                    resource.setrlimit(limit, (value, value))
                except (ValueError, OSError):
                    # Host refuses this ceiling (e.g. above the hard limit)
                    continue

        return apply_limits


def network_isolation_prefix(enabled: bool) -> list[str]:
    """Command prefix that runs the child without network access.

    Uses ``unshare`` to place the child in a new, empty network namespace.
    Returns an empty prefix when disabled or when ``unshare`` is unavailable.
    """
    if not enabled:
        return []
    unshare = shutil.which("unshare")
    if os.name == "nt" or unshare is None:
        logger.warning("Network isolation requested but unshare is unavailable; skipping")
        return []
    return [unshare, "--net", "--map-root-user", "--"]
