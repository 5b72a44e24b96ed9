"""Helpers for running the external client without leaking processes.

Every helper here follows the same order: drain stdout to end-of-stream,
then wait for the exit status, then make sure the process is gone. Reading
the exit status first can deadlock against a client blocked on a full pipe.
"""

from __future__ import annotations

import io
import logging
import subprocess
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator, List, Optional, Sequence

LOGGER = logging.getLogger(__name__)

_CHUNK_SIZE = 1 << 16


@dataclass(slots=True)
class ProcessOutcome:
    """Exit status and fully drained output of one process."""

    returncode: int
    stdout: bytes
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")


def drain_stream(stream: IO[bytes], *, keep: bool = True) -> bytes:
    """Read ``stream`` until EOF and close it.

    With ``keep=False`` the data is discarded as it is read.
    """
    chunks: List[bytes] = []
    try:
        for chunk in iter(lambda: stream.read(_CHUNK_SIZE), b""):
            if keep:
                chunks.append(chunk)
    finally:
        stream.close()
    return b"".join(chunks)


def wait_for(process: subprocess.Popen) -> int:
    """Block until ``process`` exits, retrying interrupted waits.

    No timeout is applied.
    """
    while True:
        try:
            return process.wait()
        except InterruptedError:
            LOGGER.debug("Wait for pid %s interrupted, retrying", process.pid)


def reap(process: subprocess.Popen) -> None:
    """Kill ``process`` if it is still running so it never lingers."""
    if process.poll() is None:
        LOGGER.warning("Process %s still running, killing it", process.pid)
        process.kill()
        wait_for(process)


class Executor:
    """Runs one external command synchronously."""

    def __init__(
        self,
        argv: Sequence[str],
        cwd: Optional[Path] = None,
        *,
        verbose: bool = False,
    ) -> None:
        self.argv = [str(arg) for arg in argv]
        self.cwd = Path(cwd) if cwd is not None else None
        self.verbose = verbose
        self.returncode: Optional[int] = None
        self._stderr: List[bytes] = []
        self._collector: Optional[threading.Thread] = None

    def _spawn(self) -> subprocess.Popen:
        if self.verbose:
            LOGGER.info("Executing %s (cwd: %s)", " ".join(self.argv), self.cwd or ".")
        else:
            LOGGER.debug("Executing %s", " ".join(self.argv))
        process = subprocess.Popen(
            self.argv,
            cwd=self.cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
        # stderr drains on its own thread
        self._stderr = []
        self._collector = threading.Thread(
            target=lambda: self._stderr.append(drain_stream(process.stderr)),
            daemon=True,
        )
        self._collector.start()
        return process

    def _finish(self, process: subprocess.Popen) -> int:
        self.returncode = wait_for(process)
        if self._collector is not None:
            self._collector.join()
        if self.returncode != 0:
            LOGGER.debug(
                "%s exited with %s: %s",
                self.argv[0],
                self.returncode,
                self.stderr.decode("utf-8", errors="replace").strip(),
            )
        return self.returncode

    @property
    def stderr(self) -> bytes:
        return b"".join(self._stderr)

    def run(self, *, keep_output: bool = True) -> ProcessOutcome:
        """Run to completion, draining stdout before reading the exit status."""
        process = self._spawn()
        try:
            stdout = drain_stream(process.stdout, keep=keep_output)
            returncode = self._finish(process)
        finally:
            reap(process)
        return ProcessOutcome(returncode=returncode, stdout=stdout, stderr=self.stderr)

    @contextmanager
    def stream_lines(self) -> Iterator[Iterator[str]]:
        """Yield decoded stdout lines while the process runs.

        Lines the caller leaves unread are drained on exit, then the exit
        status is stored in :attr:`returncode`.
        """
        process = self._spawn()
        # Only "\n" ends a line; a lone "\r" is part of the line's text.
        reader = io.TextIOWrapper(
            process.stdout, encoding="utf-8", errors="replace", newline="\n"
        )
        try:
            yield (line.rstrip("\r\n") for line in reader)
            for _ in reader:
                pass
            reader.close()
            self._finish(process)
        finally:
            if not reader.closed:
                reader.close()
            reap(process)
