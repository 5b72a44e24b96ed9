"""Tests for core data models."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from ccindex.clearcase.command import CommandResolver
from ccindex.models import Annotation, AnnotationLine, History, HistoryRecord, RepositoryHandle


class TestRepositoryHandle:
    """Test RepositoryHandle dataclass."""

    def test_requires_directory(self, tmp_path: Path) -> None:
        """Should reject a root that is not a directory."""
        with pytest.raises(ValueError):
            RepositoryHandle(directory=tmp_path / "missing", command=CommandResolver("ct"))

    def test_rejects_file(self, tmp_path: Path) -> None:
        file = tmp_path / "file.txt"
        file.write_text("x")
        with pytest.raises(ValueError):
            RepositoryHandle(directory=file, command=CommandResolver("ct"))

    def test_relative_path(self, tmp_path: Path) -> None:
        """Should strip the repository root and its separator."""
        handle = RepositoryHandle(directory=tmp_path, command=CommandResolver("ct"))
        assert handle.relative_path(tmp_path / "a" / "b.c") == str(Path("a") / "b.c")

    def test_relative_path_of_root(self, tmp_path: Path) -> None:
        handle = RepositoryHandle(directory=tmp_path, command=CommandResolver("ct"))
        assert handle.relative_path(tmp_path) == ""

    def test_relative_path_outside_root(self, tmp_path: Path) -> None:
        """A sibling sharing the root's name prefix is still outside."""
        root = tmp_path / "vob"
        root.mkdir()
        handle = RepositoryHandle(directory=root, command=CommandResolver("ct"))

        with pytest.raises(ValueError):
            handle.relative_path(tmp_path / "vob2" / "main.c")
        with pytest.raises(ValueError):
            handle.relative_path(tmp_path / "main.c")

    def test_parse_date(self, tmp_path: Path) -> None:
        handle = RepositoryHandle(directory=tmp_path, command=CommandResolver("ct"))
        assert handle.parse_date("20210704.235959") == datetime(2021, 7, 4, 23, 59, 59)

    def test_parse_date_tries_each_pattern(self, tmp_path: Path) -> None:
        handle = RepositoryHandle(
            directory=tmp_path,
            command=CommandResolver("ct"),
            date_patterns=("%Y%m%d.%H%M%S", "%Y-%m-%d"),
        )
        assert handle.parse_date("2021-07-04") == datetime(2021, 7, 4)

    def test_parse_date_failure(self, tmp_path: Path) -> None:
        handle = RepositoryHandle(directory=tmp_path, command=CommandResolver("ct"))
        with pytest.raises(ValueError):
            handle.parse_date("July 4th")


class TestHistory:
    """Test History container."""

    def test_iteration_keeps_order(self) -> None:
        entries = [
            HistoryRecord("create version", datetime(2020, 1, 2), "bob", "/main/2"),
            HistoryRecord("create version", datetime(2020, 1, 1), "alice", "/main/1"),
        ]
        history = History(entries=entries)

        assert len(history) == 2
        assert [entry.revision for entry in history] == ["/main/2", "/main/1"]

    def test_authors_first_seen(self) -> None:
        history = History(
            entries=[
                HistoryRecord("create version", datetime(2020, 1, 3), "bob", "/main/3"),
                HistoryRecord("create version", datetime(2020, 1, 2), "alice", "/main/2"),
                HistoryRecord("create version", datetime(2020, 1, 1), "bob", "/main/1"),
            ]
        )
        assert history.authors() == ["bob", "alice"]


class TestAnnotation:
    """Test Annotation container."""

    def test_add_line(self) -> None:
        annotation = Annotation("main.c")
        annotation.add_line("/main/1", "alice", True)

        assert annotation.size() == 1
        assert annotation.lines[0] == AnnotationLine("/main/1", "alice", True)

    def test_lookup_is_one_based(self) -> None:
        annotation = Annotation("main.c")
        annotation.add_line("/main/1", "alice", True)
        annotation.add_line("/main/2", "bob", True)

        assert annotation.get_revision(1) == "/main/1"
        assert annotation.get_author(2) == "bob"
        assert annotation.get_revision(0) is None
        assert annotation.get_author(3) is None

    def test_revisions(self) -> None:
        annotation = Annotation("main.c")
        for revision in ["/main/1", "/main/2", "/main/1"]:
            annotation.add_line(revision, "alice", True)
        assert annotation.revisions() == ["/main/1", "/main/2"]
