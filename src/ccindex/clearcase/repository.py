"""Access to a ClearCase repository."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Sequence

from ccindex.clearcase.annotate import Annotator
from ccindex.clearcase.command import CommandResolver
from ccindex.clearcase.detector import RepositoryDetector
from ccindex.clearcase.history import DEFAULT_EVENTS, HistoryFetcher
from ccindex.clearcase.revision import RevisionBlob, RevisionFetcher
from ccindex.clearcase.sync import ViewSynchronizer
from ccindex.clearcase.vobs import VobRegistry, default_registry
from ccindex.errors import ClientUnavailableError
from ccindex.models import Annotation, History, RepositoryHandle
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)


class ClearCaseRepository:
    """One ClearCase view rooted at ``handle.directory``.

    Bundles detection, history, annotation, revision retrieval and view
    synchronization behind the interface the indexer expects.
    """

    type = "ClearCase"

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        registry: Optional[VobRegistry] = None,
        history_events: Sequence[str] = DEFAULT_EVENTS,
        annotate_malformed: str = "skip",
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.handle = handle
        self.registry = registry or default_registry(handle.command)
        self.detector = RepositoryDetector(handle.command, self.registry)
        self.history_fetcher = HistoryFetcher(
            handle, events=history_events, executor_factory=executor_factory
        )
        self.revision_fetcher = RevisionFetcher(handle, executor_factory=executor_factory)
        self.annotator = Annotator(
            handle, malformed=annotate_malformed, executor_factory=executor_factory
        )
        self.synchronizer = ViewSynchronizer(handle, executor_factory=executor_factory)

    @property
    def directory(self) -> Path:
        return self.handle.directory

    @property
    def verbose(self) -> bool:
        return self.handle.verbose

    @property
    def command(self) -> CommandResolver:
        return self.handle.command

    def is_working(self) -> bool:
        return self.handle.command.is_working()

    def is_repository_for(self, path: Path) -> bool:
        return self.detector.is_repository_for(path)

    def get_history(self, path: Path) -> History:
        return self.history_fetcher.get_history(path)

    def get_revision(self, path: Path, revision: str) -> Optional[RevisionBlob]:
        return self.revision_fetcher.fetch_path(path, revision)

    def annotate(self, file: Path, revision: Optional[str] = None) -> Annotation:
        return self.annotator.annotate(file, revision)

    def update(self) -> bool:
        try:
            return self.synchronizer.update()
        except OSError as exc:
            raise ClientUnavailableError(f"Could not run {self.command.resolve()}: {exc}") from exc

    def file_has_history(self, path: Path) -> bool:
        # No cheap check exists; lshistory prints nothing for unversioned files.
        return True

    def file_has_annotation(self, path: Path) -> bool:
        return True

    def has_history_for_directories(self) -> bool:
        return True

    def determine_parent(self) -> Optional[str]:
        return None

    def determine_branch(self) -> Optional[str]:
        return None
