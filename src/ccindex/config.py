"""Application configuration defaults."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from ccindex.clearcase.annotate import MALFORMED_POLICIES
from ccindex.clearcase.command import CommandResolver, shared_resolver
from ccindex.clearcase.history import DEFAULT_EVENTS
from ccindex.models import RepositoryHandle

REPO_ENV_VAR = "CCINDEX_REPO"
DEFAULT_DATE_PATTERNS = ("%Y%m%d.%H%M%S",)


def _get_default_repo_path() -> Path:
    """Repository root from the environment, else the working directory."""
    env_repo = os.environ.get(REPO_ENV_VAR)
    if env_repo:
        return Path(env_repo)
    return Path.cwd()


@dataclass(slots=True)
class AppConfig:
    cleartool: str | None = None
    verbose: bool = False
    date_patterns: tuple[str, ...] = DEFAULT_DATE_PATTERNS
    history_events: tuple[str, ...] = DEFAULT_EVENTS
    annotate_malformed: str = "skip"

    def __post_init__(self) -> None:
        if self.annotate_malformed not in MALFORMED_POLICIES:
            raise ValueError(
                f"annotate_malformed must be one of {MALFORMED_POLICIES}, "
                f"got {self.annotate_malformed!r}"
            )
        if not self.date_patterns:
            raise ValueError("At least one date pattern is required")

    def make_resolver(self) -> CommandResolver:
        return shared_resolver(self.cleartool)

    def make_handle(self, directory: Path, resolver: CommandResolver | None = None) -> RepositoryHandle:
        return RepositoryHandle(
            directory=Path(directory),
            command=resolver or self.make_resolver(),
            verbose=self.verbose,
            date_patterns=self.date_patterns,
        )

    def resolve_repo_path(self, repo: Path | None = None) -> Path:
        if repo is None:
            return _get_default_repo_path()
        return Path(repo).expanduser()
