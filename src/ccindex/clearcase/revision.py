"""Retrieving historical file content via ``cleartool get``."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Callable, Optional

from ccindex.models import RepositoryHandle
from ccindex.utils.files import make_tempfile, remove_file
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)


def extended_path(path: str, revision: str) -> str:
    """Build the ``path@@revision`` token that addresses one version."""
    return f"{path}@@{revision}"


class RevisionBlob(io.BufferedReader):
    """Read-only stream over a temporary file that is removed on close.

    If the file cannot be removed right away it is queued for removal at
    interpreter exit.
    """

    def __init__(self, path: Path) -> None:
        raw = io.FileIO(path, "rb")
        self.path = Path(path)
        super().__init__(raw)

    def close(self) -> None:
        if self.closed:
            return
        try:
            super().close()
        finally:
            remove_file(self.path)


class RevisionFetcher:
    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.handle = handle
        self.executor_factory = executor_factory

    def build_command(self, target: Path, relpath: str, revision: str) -> list[str]:
        return self.handle.command.argv("get", "-to", str(target), extended_path(relpath, revision))

    def fetch_path(self, path: Path, revision: str) -> Optional[RevisionBlob]:
        path = Path(path)
        return self.fetch(path.parent, path.name, revision)

    def fetch(self, parent: Path, basename: str, revision: str) -> Optional[RevisionBlob]:
        """Return the content of ``parent/basename`` at ``revision``.

        Returns None when the client could not produce the version. The
        caller owns the returned stream and must close it.
        """
        tmp: Optional[Path] = None
        try:
            relpath = self.handle.relative_path(Path(parent) / basename)
            tmp = make_tempfile()
            # cleartool refuses to write over an existing file
            remove_file(tmp)

            executor = self.executor_factory(
                self.build_command(tmp, relpath, revision),
                self.handle.directory,
                verbose=self.handle.verbose,
            )
            # stdout must be consumed in full or the client may stall writing tmp
            outcome = executor.run(keep_output=False)
            if not outcome.ok:
                LOGGER.debug(
                    "cleartool get %s failed with status %s",
                    extended_path(relpath, revision),
                    outcome.returncode,
                )
                remove_file(tmp)
                return None

            return RevisionBlob(tmp)
        except OSError as exc:
            LOGGER.error("Failed to get history: %s: %s", type(exc).__name__, exc)
            if tmp is not None:
                remove_file(tmp)
            return None
