"""Shared fixtures: a scriptable stand-in for the cleartool executable."""

from __future__ import annotations

import stat
import sys
from pathlib import Path
from typing import Dict, List

import pytest

from ccindex.clearcase.command import CommandResolver
from ccindex.models import RepositoryHandle

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="fake cleartool is a shell script")


class FakeCleartool:
    """Writes a /bin/sh script answering cleartool subcommands.

    Every invocation appends its argv to a log so tests can assert on the
    exact commands that were run.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory
        self.path = directory / "cleartool"
        self.log = directory / "calls.log"
        self._branches: Dict[str, str] = {}
        self._data = 0
        self._write()

    def on(self, subcommand: str, *, stdout: str = "", rc: int = 0, script: str = "") -> "FakeCleartool":
        """Answer ``subcommand`` with ``stdout`` and exit code ``rc``.

        ``script`` is extra shell run before the output is printed; "$@" holds
        the arguments.
        """
        self._data += 1
        data_file = self.directory / f"out{self._data}.txt"
        data_file.write_bytes(stdout.encode("utf-8"))
        self._branches[subcommand] = f"{script}\n    cat '{data_file}'\n    exit {rc}"
        self._write()
        return self

    def _write(self) -> None:
        branches = "\n".join(
            f"  {name})\n    {body}\n    ;;" for name, body in self._branches.items()
        )
        self.path.write_text(
            "#!/bin/sh\n"
            "for a in \"$@\"; do printf '%s\\037' \"$a\"; done >> "
            f"'{self.log}'\n"
            f"printf '\\036' >> '{self.log}'\n"
            "case \"$1\" in\n"
            f"{branches}\n"
            "  *)\n    exit 1\n    ;;\n"
            "esac\n"
        )
        self.path.chmod(self.path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)

    def calls(self) -> List[List[str]]:
        if not self.log.exists():
            return []
        records = self.log.read_text().split("\x1e")
        return [record.split("\x1f")[:-1] for record in records if record]

    def calls_to(self, subcommand: str) -> List[List[str]]:
        return [call for call in self.calls() if call and call[0] == subcommand]


@pytest.fixture
def fake_cleartool(tmp_path: Path) -> FakeCleartool:
    tool_dir = tmp_path / "bin"
    tool_dir.mkdir()
    return FakeCleartool(tool_dir)


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    repo = tmp_path / "view" / "vob"
    repo.mkdir(parents=True)
    return repo


@pytest.fixture
def handle(repo_dir: Path, fake_cleartool: FakeCleartool) -> RepositoryHandle:
    return RepositoryHandle(directory=repo_dir, command=CommandResolver(str(fake_cleartool.path)))
