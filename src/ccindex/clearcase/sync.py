"""Keeping a snapshot view in step with the VOBs."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ccindex.models import RepositoryHandle
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)

SNAPSHOT_KEYWORD = "load"


class ViewSynchronizer:
    """Refreshes snapshot views; dynamic views need nothing."""

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.handle = handle
        self.executor_factory = executor_factory

    def _executor(self, *args: str) -> Executor:
        return self.executor_factory(
            self.handle.command.argv(*args), self.handle.directory, verbose=self.handle.verbose
        )

    def is_snapshot(self) -> Optional[bool]:
        """Whether the config spec has ``load`` rules; None if ``catcs`` failed."""
        executor = self._executor("catcs")
        snapshot = False
        with executor.stream_lines() as lines:
            for line in lines:
                if line.startswith(SNAPSHOT_KEYWORD):
                    snapshot = True
                    break
        if executor.returncode != 0:
            LOGGER.warning("catcs failed in %s with status %s", self.handle.directory, executor.returncode)
            return None
        return snapshot

    def update(self) -> bool:
        """Bring the view up to date.

        Best effort: returns False when the client reported a failure, and
        nothing is rolled back.
        """
        snapshot = self.is_snapshot()
        if snapshot is None:
            return False
        if not snapshot:
            LOGGER.debug("%s is a dynamic view, nothing to update", self.handle.directory)
            return True

        LOGGER.info("Updating snapshot view %s", self.handle.directory)
        outcome = self._executor("update", "-overwrite", "-f").run(keep_output=False)
        if not outcome.ok:
            LOGGER.warning(
                "cleartool update in %s returned status %s", self.handle.directory, outcome.returncode
            )
            return False
        return True
