"""Registry of the VOB roots known to the local ClearCase client."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable, Dict, FrozenSet, Optional

from ccindex.clearcase.command import CommandResolver, shared_resolver
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)

VobSet = FrozenSet[str]


class VobRegistry:
    """Lazily enumerates VOBs with ``cleartool lsvob -s``.

    The enumeration runs at most once until :meth:`refresh` is called, even
    when many threads ask for it at the same time.
    """

    def __init__(
        self,
        resolver: CommandResolver,
        *,
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.resolver = resolver
        self.executor_factory = executor_factory
        self._vobs: Optional[VobSet] = None
        self._lock = threading.Lock()

    @property
    def cached(self) -> bool:
        return self._vobs is not None

    def get_all_vobs(self) -> VobSet:
        vobs = self._vobs
        if vobs is not None:
            return vobs
        with self._lock:
            if self._vobs is None:
                self._vobs = self._run_lsvob()
            return self._vobs

    def refresh(self) -> None:
        """Forget the cached set so the next lookup enumerates again."""
        with self._lock:
            self._vobs = None

    def _run_lsvob(self) -> VobSet:
        if not self.resolver.is_working():
            return frozenset()

        try:
            outcome = self.executor_factory(self.resolver.argv("lsvob", "-s")).run()
        except OSError as exc:
            LOGGER.error("\"cleartool lsvob -s\" could not be started: %s", exc)
            return frozenset()

        if not outcome.ok:
            LOGGER.error("\"cleartool lsvob -s\" returned non-zero status: %s", outcome.returncode)
            return frozenset()

        try:
            output = outcome.stdout.decode("utf-8")
        except UnicodeDecodeError as exc:
            LOGGER.error("\"cleartool lsvob -s\" output was unreadable: %s", exc)
            return frozenset()

        vobs = frozenset(vob for vob in output.split(os.linesep) if vob.strip())
        LOGGER.info("Found VOBs: %s", sorted(vobs))
        return vobs


_default_registries: Dict[str, VobRegistry] = {}
_default_lock = threading.Lock()


def default_registry(resolver: Optional[CommandResolver] = None) -> VobRegistry:
    """Process-wide registry for the executable ``resolver`` points at.

    Every caller resolving to the same executable shares one enumeration.
    """
    resolver = resolver or shared_resolver()
    command = resolver.resolve()
    with _default_lock:
        registry = _default_registries.get(command)
        if registry is None:
            registry = _default_registries[command] = VobRegistry(resolver)
        return registry
