"""Deciding whether a path sits inside a ClearCase view."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from ccindex.clearcase.command import CommandResolver
from ccindex.clearcase.vobs import VobRegistry

LOGGER = logging.getLogger(__name__)

VIEW_MARKER = "view.dat"
VOBS_DIRECTORY = "vobs"
# https://www.ibm.com/support/pages/node/95181
SPECDEV_MARKER = ".specdev"


def _is_same_file(first: Path, second: Path) -> bool:
    try:
        return os.path.samefile(first, second)
    except (OSError, ValueError):
        return False


class RepositoryDetector:
    """Applies the view/VOB heuristics, cheapest first."""

    def __init__(self, resolver: CommandResolver, registry: VobRegistry) -> None:
        self.resolver = resolver
        self.registry = registry

    def is_repository_for(self, path: Path) -> bool:
        path = Path(path)
        parent = path.parent if path.parent != path else None

        if parent is not None:
            marker = parent / VIEW_MARKER
            if _is_same_file(path, marker):
                return False
            try:
                if marker.exists():
                    return True
                if parent.is_dir() and parent.name.lower() == VOBS_DIRECTORY:
                    return True
            except OSError as exc:
                LOGGER.debug("Could not inspect %s: %s", parent, exc)

        if self.resolver.is_working() and self._is_vob_root(path):
            return True

        # Snapshot view storage keeps .specdev two levels above a VOB root.
        grandparent = parent.parent if parent is not None and parent.parent != parent else None
        if grandparent is not None:
            try:
                return (grandparent / SPECDEV_MARKER).exists()
            except OSError as exc:
                LOGGER.debug("Could not inspect %s: %s", grandparent, exc)
        return False

    def _is_vob_root(self, path: Path) -> bool:
        try:
            canonical = os.path.realpath(path)
        except (OSError, ValueError) as exc:
            LOGGER.warning("Could not get canonical path for \"%s\": %s", path, exc)
            return False
        canonical = canonical.casefold()
        return any(canonical == vob.casefold() for vob in self.registry.get_all_vobs())
