"""History listing via ``cleartool lshistory``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Sequence

from ccindex.errors import ClientUnavailableError, HistoryError
from ccindex.models import History, HistoryRecord, RepositoryHandle
from ccindex.utils.process import Executor

LOGGER = logging.getLogger(__name__)

# event, date, user, version path, comment, then a lone "." ends the record
HISTORY_FORMAT = "%e\n%Nd\n%u\n%Vn\n%Nc\n.\n"
RECORD_END = "."
DEFAULT_EVENTS = ("create version", "create directory version")


class HistoryParser:
    """Turns ``lshistory`` output in :data:`HISTORY_FORMAT` into records."""

    def __init__(self, handle: RepositoryHandle, *, events: Sequence[str] = DEFAULT_EVENTS) -> None:
        self.handle = handle
        self.events = frozenset(events)

    def parse(self, output: str) -> History:
        return History(entries=list(self.iter_records(output.splitlines())))

    def iter_records(self, lines: Iterable[str]) -> Iterator[HistoryRecord]:
        stream = iter(lines)
        for event in stream:
            if event not in self.events:
                self._skip_record(stream)
                continue

            date_text = next(stream, None)
            author = next(stream, None)
            revision = next(stream, None)
            if date_text is None or author is None or revision is None:
                raise HistoryError(f"Truncated history record for event {event!r}")

            try:
                date = self.handle.parse_date(date_text)
            except ValueError as exc:
                raise HistoryError(f"Failed to parse history date {date_text!r}") from exc

            message: List[str] = []
            for line in stream:
                if line == RECORD_END:
                    break
                if line.strip():
                    message.append(line.strip())

            yield HistoryRecord(
                event=event,
                date=date,
                author=author,
                revision=revision.replace("\\", "/"),
                message="\n".join(message),
            )

    @staticmethod
    def _skip_record(stream: Iterator[str]) -> None:
        for line in stream:
            if line == RECORD_END:
                return


class HistoryFetcher:
    def __init__(
        self,
        handle: RepositoryHandle,
        *,
        events: Sequence[str] = DEFAULT_EVENTS,
        executor_factory: Callable[..., Executor] = Executor,
    ) -> None:
        self.handle = handle
        self.parser = HistoryParser(handle, events=events)
        self.executor_factory = executor_factory

    def build_command(self, path: Path) -> list[str]:
        path = Path(path)
        args = ["lshistory"]
        if path.is_dir():
            args.append("-dir")
        args += ["-fmt", HISTORY_FORMAT, self.handle.relative_path(path)]
        return self.handle.command.argv(*args)

    def get_history(self, path: Path) -> History:
        """List the history of a file or directory, in client order."""
        executor = self.executor_factory(
            self.build_command(path), self.handle.directory, verbose=self.handle.verbose
        )
        try:
            outcome = executor.run()
        except OSError as exc:
            raise ClientUnavailableError(f"Could not run {executor.argv[0]}: {exc}") from exc

        if not outcome.ok:
            raise HistoryError(
                f"lshistory failed for {path} with status {outcome.returncode}: "
                f"{outcome.stderr.decode('utf-8', errors='replace').strip()}"
            )

        history = self.parser.parse(outcome.output)
        LOGGER.debug("Found %d history entries for %s", len(history), path)
        return history
