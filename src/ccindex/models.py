"""Core ccindex data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional

from ccindex.clearcase.command import CommandResolver


@dataclass(slots=True)
class RepositoryHandle:
    """Settings shared by every operation on one repository."""

    directory: Path
    command: CommandResolver
    verbose: bool = False
    date_patterns: tuple[str, ...] = ("%Y%m%d.%H%M%S",)

    def __post_init__(self) -> None:
        self.directory = Path(self.directory)
        if not self.directory.is_dir():
            raise ValueError(f"Repository root is not a directory: {self.directory}")

    @property
    def root(self) -> str:
        """Canonical repository root as a string."""
        return str(self.directory.resolve())

    def relative_path(self, path: Path) -> str:
        """Return ``path`` relative to the repository root ('' for the root).

        Raises ValueError when ``path`` lies outside the root.
        """
        try:
            relative = Path(path).resolve().relative_to(self.root)
        except ValueError as exc:
            raise ValueError(f"{path} is outside repository {self.directory}") from exc
        if relative == Path("."):
            return ""
        return str(relative)

    def parse_date(self, value: str) -> datetime:
        """Parse a client timestamp with the first matching date pattern."""
        for pattern in self.date_patterns:
            try:
                return datetime.strptime(value, pattern)
            except ValueError:
                continue
        raise ValueError(f"Unparseable date: {value!r}")


@dataclass(slots=True)
class HistoryRecord:
    """One version-creating event reported by ``lshistory``."""

    event: str
    date: datetime
    author: str
    revision: str
    message: str = ""


@dataclass(slots=True)
class History:
    entries: List[HistoryRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[HistoryRecord]:
        return iter(self.entries)

    def authors(self) -> list[str]:
        seen: dict[str, None] = {}
        for entry in self.entries:
            seen.setdefault(entry.author, None)
        return list(seen)


@dataclass(slots=True)
class AnnotationLine:
    revision: str
    author: str
    enabled: bool = True


@dataclass(slots=True)
class Annotation:
    """Per-line authorship of one file, aligned with the file's lines."""

    filename: str
    lines: List[AnnotationLine] = field(default_factory=list)

    def add_line(self, revision: str, author: str, enabled: bool) -> None:
        self.lines.append(AnnotationLine(revision=revision, author=author, enabled=enabled))

    def size(self) -> int:
        return len(self.lines)

    def _line(self, line_no: int) -> Optional[AnnotationLine]:
        if 1 <= line_no <= len(self.lines):
            return self.lines[line_no - 1]
        return None

    def get_revision(self, line_no: int) -> Optional[str]:
        """Revision of a 1-based line number, or None when out of range."""
        line = self._line(line_no)
        return line.revision if line else None

    def get_author(self, line_no: int) -> Optional[str]:
        line = self._line(line_no)
        return line.author if line else None

    def revisions(self) -> list[str]:
        seen: dict[str, None] = {}
        for line in self.lines:
            seen.setdefault(line.revision, None)
        return list(seen)
