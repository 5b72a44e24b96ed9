"""Per-line authorship via ``cleartool annotate``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from ccindex.errors import AnnotationError, ClientUnavailableError
from ccindex.models import Annotation, RepositoryHandle
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)

ANNOTATE_FORMAT = "%u|%Vn|"
FIELD_SEPARATOR = "|"
MALFORMED_POLICIES = ("skip", "fail")


class Annotator:
    """Runs ``annotate`` and maps every output line to one annotation line.

    ``malformed`` decides what happens to a line without a revision field:
    ``"skip"`` drops it with a warning, ``"fail"`` rejects the whole file.
    """

    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        malformed: str = "skip",
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        if malformed not in MALFORMED_POLICIES:
            raise ValueError(f"Unknown malformed-line policy: {malformed!r}")
        self.handle = handle
        self.malformed = malformed
        self.executor_factory = executor_factory

    def build_command(self, file: Path, revision: Optional[str] = None) -> list[str]:
        args = ["annotate", "-nheader", "-out", "-", "-f", "-fmt", ANNOTATE_FORMAT]
        if revision is not None:
            args.append(revision)
        args.append(Path(file).name)
        return self.handle.command.argv(*args)

    def annotate(self, file: Path, revision: Optional[str] = None) -> Annotation:
        file = Path(file)
        executor = self.executor_factory(
            self.build_command(file, revision), file.parent, verbose=self.handle.verbose
        )
        try:
            with executor.stream_lines() as lines:
                annotation = self.parse(file.name, lines)
        except OSError as exc:
            raise ClientUnavailableError(f"Could not run {executor.argv[0]}: {exc}") from exc

        if executor.returncode != 0:
            raise AnnotationError(
                f"annotate failed for {file} with status {executor.returncode}"
            )
        return annotation

    def parse(self, filename: str, lines: Iterable[str]) -> Annotation:
        annotation = Annotation(filename)
        for number, line in enumerate(lines, start=1):
            if not line:
                continue
            parts = line.split(FIELD_SEPARATOR)
            if len(parts) < 2 or not parts[1]:
                if self.malformed == "fail":
                    raise AnnotationError(f"Malformed annotate output at line {number}: {line!r}")
                LOGGER.warning("Skipping malformed annotate line %d of %s: %r", number, filename, line)
                continue
            author, revision = parts[0], parts[1]
            annotation.add_line(revision.replace("\\", "/"), author.lower(), True)
        return annotation
