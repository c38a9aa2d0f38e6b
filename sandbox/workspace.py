"""Per-execution temporary workspaces.

Each execution gets a private directory (mode 0700, random name) holding the
staged source file. Workspaces are never reused and are removed on every
exit path via :meth:`WorkspaceManager.workspace`.
"""

import asyncio
import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from pathlib import Path

from common.logging import get_logger
from sandbox.errors import StagingError
from sandbox.languages import PYTHON, Language

logger = get_logger(__name__)

WORKSPACE_PREFIX = "run-"


@dataclass(frozen=True)
class Workspace:
    """A staged workspace: its directory and the source file inside it."""

    root: Path
    source_path: Path


class WorkspaceManager:
    """Creates and removes execution workspaces under a common root."""

    def __init__(self, base_dir: str | os.PathLike | None = None):
        """Initialize the manager.

        Args:
            base_dir: Directory workspaces are created in. Defaults to the
                system temporary directory.
        """
        self.base_dir = Path(base_dir) if base_dir else Path(tempfile.gettempdir())

    def stage(self, code: str, language: Language = PYTHON) -> Workspace:
        """Create a workspace and write ``code`` into it.

        Args:
            code: Source text, written verbatim after the language's normalization.
            language: Decides the file name and source normalization.

        Returns:
            The staged workspace.

        Raises:
            StagingError: If the directory or file cannot be created.
        """
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            # mkdtemp creates a randomly named directory with mode 0700
            root = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=self.base_dir))
        except OSError as e:
            raise StagingError(f"Could not create workspace: {e}") from e

        workspace = Workspace(root=root, source_path=root / language.filename)
        try:
            with open(workspace.source_path, "x", encoding="utf-8", newline="") as f:
                f.write(language.normalize(code))
        except (OSError, UnicodeEncodeError) as e:
            self.release(workspace)
            raise StagingError(f"Could not write source file: {e}") from e

        logger.debug("Staged workspace %s", root)
        return workspace

    def release(self, workspace: Workspace) -> None:
        """Remove a workspace and everything in it.

        Idempotent: releasing a workspace that is already gone does nothing.
        Failures are logged, never raised.
        """
        if not workspace.root.exists():
            return
        _make_tree_writable(workspace.root)
        try:
            shutil.rmtree(workspace.root)
        except FileNotFoundError:
            return
        except OSError as e:
            logger.error("Failed to remove workspace %s: %s", workspace.root, e)
            return
        logger.debug("Released workspace %s", workspace.root)

    @asynccontextmanager
    async def workspace(
        self,
        code: str,
        language: Language = PYTHON,
    ) -> AsyncIterator[Workspace]:
        """Stage ``code`` and release the workspace when the block exits.

        Filesystem work runs in a worker thread so it does not block the
        event loop. Release runs even if the block raises or is cancelled.
        """
        workspace = await asyncio.to_thread(self.stage, code, language)
        try:
            yield workspace
        finally:
            await asyncio.to_thread(self.release, workspace)


def _make_tree_writable(root: Path) -> None:
    """Restore owner permissions so a program that chmod'ed its files cannot block removal."""
    try:
        os.chmod(root, 0o700)
    except OSError:
        return
    for dirpath, dirnames, _ in os.walk(root):
        for name in dirnames:
            path = os.path.join(dirpath, name)
            # chmod follows links; never touch anything outside the workspace
            if os.path.islink(path):
                continue
            try:
                os.chmod(path, 0o700)
            except OSError:
                continue
