"""Repository kinds and the dispatcher that picks one for a path."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Callable, Dict, Optional, Protocol, runtime_checkable

from ccindex.clearcase.command import CommandResolver
from ccindex.clearcase.detector import RepositoryDetector
from ccindex.clearcase.repository import ClearCaseRepository
from ccindex.clearcase.vobs import VobRegistry, default_registry
from ccindex.config import AppConfig
from ccindex.models import Annotation, History

LOGGER = logging.getLogger(__name__)


class RepositoryKind(str, Enum):
    CLEARCASE = "ClearCase"


@runtime_checkable
class Repository(Protocol):
    """Read/sync capabilities every repository kind provides."""

    type: str

    def is_repository_for(self, path: Path) -> bool:
        ...

    def get_history(self, path: Path) -> History:
        ...

    def annotate(self, file: Path, revision: Optional[str] = None) -> Annotation:
        ...

    def get_revision(self, path: Path, revision: str) -> Optional[BinaryIO]:
        ...

    def update(self) -> bool:
        ...


def _detect_clearcase(path: Path, resolver: CommandResolver, registry: VobRegistry) -> bool:
    return RepositoryDetector(resolver, registry).is_repository_for(path)


def _open_clearcase(
    directory: Path, config: AppConfig, resolver: CommandResolver, registry: VobRegistry
) -> Repository:
    return ClearCaseRepository(
        config.make_handle(directory, resolver),
        registry=registry,
        history_events=config.history_events,
        annotate_malformed=config.annotate_malformed,
    )


_DETECTORS: Dict[RepositoryKind, Callable[[Path, CommandResolver, VobRegistry], bool]] = {
    RepositoryKind.CLEARCASE: _detect_clearcase,
}
_OPENERS: Dict[RepositoryKind, Callable[..., Repository]] = {
    RepositoryKind.CLEARCASE: _open_clearcase,
}


def detect_kind(
    path: Path,
    config: AppConfig | None = None,
    *,
    registry: VobRegistry | None = None,
) -> Optional[RepositoryKind]:
    """Return the first repository kind that claims ``path``."""
    config = config or AppConfig()
    registry = registry or default_registry(config.make_resolver())
    resolver = registry.resolver
    for kind, detect in _DETECTORS.items():
        if detect(Path(path), resolver, registry):
            return kind
    return None


def open_repository(
    directory: Path,
    kind: RepositoryKind = RepositoryKind.CLEARCASE,
    config: AppConfig | None = None,
    *,
    registry: VobRegistry | None = None,
) -> Repository:
    config = config or AppConfig()
    registry = registry or default_registry(config.make_resolver())
    resolver = registry.resolver
    return _OPENERS[kind](Path(directory), config, resolver, registry)


def find_repository(
    path: Path,
    config: AppConfig | None = None,
    *,
    registry: VobRegistry | None = None,
) -> Optional[Repository]:
    """Open a repository rooted at ``path`` if some kind claims it."""
    path = Path(path)
    if not path.is_dir():
        return None
    kind = detect_kind(path, config, registry=registry)
    if kind is None:
        LOGGER.debug("No repository kind claims %s", path)
        return None
    LOGGER.info("Found %s repository at %s", kind.value, path)
    return open_repository(path, kind, config, registry=registry)
