"""Locating and probing the cleartool executable."""

from __future__ import annotations

import logging
import os
import shutil
import threading
from typing import Callable, Dict, Optional

from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)

CMD_ENV_VAR = "CCINDEX_CLEARTOOL"
CMD_FALLBACK = "cleartool"


class CommandResolver:
    """Resolves the client executable once and remembers whether it works."""

    def __init__(
        self,
        override: Optional[str] = None,
        *,
        fallback: str = CMD_FALLBACK,
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.override = override
        self.fallback = fallback
        self.executor_factory = executor_factory
        self._command: Optional[str] = None
        self._working: Optional[bool] = None
        self._lock = threading.Lock()

    def resolve(self) -> str:
        if self._command is None:
            command = self.override or os.environ.get(CMD_ENV_VAR)
            if not command:
                # Leave the bare name when it is not on PATH; spawning reports it.
                command = shutil.which(self.fallback) or self.fallback
            LOGGER.debug("Using ClearCase client %s", command)
            self._command = command
        return self._command

    def argv(self, *args: str) -> list[str]:
        return [self.resolve(), *args]

    def is_working(self) -> bool:
        """Run ``cleartool -version`` once and cache whether it succeeded."""
        working = self._working
        if working is not None:
            return working
        with self._lock:
            if self._working is None:
                self._working = self._probe()
            return self._working

    def _probe(self) -> bool:
        try:
            outcome = self.executor_factory(self.argv("-version")).run(keep_output=False)
        except OSError as exc:
            LOGGER.info("ClearCase client %s is not available: %s", self.resolve(), exc)
            return False
        return outcome.ok


_shared_resolvers: Dict[str, CommandResolver] = {}
_shared_lock = threading.Lock()


def shared_resolver(override: Optional[str] = None) -> CommandResolver:
    """Process-wide resolver for whichever executable ``override`` resolves to.

    Callers that land on the same executable share one liveness probe.
    """
    command = CommandResolver(override).resolve()
    with _shared_lock:
        resolver = _shared_resolvers.get(command)
        if resolver is None:
            resolver = _shared_resolvers[command] = CommandResolver(command)
        return resolver
