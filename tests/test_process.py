"""Tests for the process helpers."""

from __future__ import annotations

import io
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ccindex.utils.process import Executor, ProcessOutcome, drain_stream, reap, wait_for

from conftest import posix_only


class TestProcessOutcome:
    """Tests for ProcessOutcome."""

    def test_ok_on_zero(self) -> None:
        assert ProcessOutcome(returncode=0, stdout=b"").ok

    def test_not_ok_on_nonzero(self) -> None:
        assert not ProcessOutcome(returncode=2, stdout=b"").ok

    def test_output_decodes_invalid_bytes(self) -> None:
        """Undecodable bytes are replaced rather than raising."""
        outcome = ProcessOutcome(returncode=0, stdout=b"abc\xff")
        assert outcome.output.startswith("abc")


class TestDrainStream:
    """Tests for drain_stream."""

    def test_returns_everything(self) -> None:
        stream = io.BytesIO(b"x" * 200_000)
        assert drain_stream(stream) == b"x" * 200_000
        assert stream.closed

    def test_discard(self) -> None:
        stream = io.BytesIO(b"data")
        assert drain_stream(stream, keep=False) == b""
        assert stream.closed


class TestWaitFor:
    """Tests for wait_for."""

    def test_retries_interrupted_wait(self) -> None:
        process = MagicMock()
        process.wait.side_effect = [InterruptedError(), InterruptedError(), 7]
        assert wait_for(process) == 7
        assert process.wait.call_count == 3


class TestReap:
    """Tests for reap."""

    def test_kills_running_process(self) -> None:
        process = MagicMock()
        process.poll.return_value = None
        process.wait.return_value = -9
        reap(process)
        process.kill.assert_called_once()
        process.wait.assert_called_once()

    def test_leaves_finished_process(self) -> None:
        process = MagicMock()
        process.poll.return_value = 0
        reap(process)
        process.kill.assert_not_called()


@posix_only
class TestExecutor:
    """Tests for Executor against real processes."""

    def test_run_captures_stdout(self) -> None:
        outcome = Executor(["sh", "-c", "printf 'hello\\nworld\\n'"]).run()
        assert outcome.ok
        assert outcome.output == "hello\nworld\n"

    def test_run_reports_exit_code_and_stderr(self) -> None:
        outcome = Executor(["sh", "-c", "echo oops >&2; exit 3"]).run()
        assert outcome.returncode == 3
        assert outcome.stderr.strip() == b"oops"

    def test_run_without_keeping_output(self) -> None:
        outcome = Executor(["sh", "-c", "echo ignored"]).run(keep_output=False)
        assert outcome.ok
        assert outcome.stdout == b""

    def test_large_output_does_not_deadlock(self) -> None:
        """Output far beyond a pipe buffer on both streams completes."""
        script = "head -c 2000000 /dev/zero; head -c 500000 /dev/zero >&2"
        outcome = Executor(["sh", "-c", script]).run()
        assert outcome.ok
        assert len(outcome.stdout) == 2_000_000
        assert len(outcome.stderr) == 500_000

    def test_runs_in_cwd(self, tmp_path: Path) -> None:
        outcome = Executor(["pwd"], tmp_path).run()
        assert Path(outcome.output.strip()).resolve() == tmp_path.resolve()

    def test_missing_executable_raises(self, tmp_path: Path) -> None:
        with pytest.raises(OSError):
            Executor([str(tmp_path / "does-not-exist")]).run()

    def test_stream_lines(self) -> None:
        executor = Executor(["sh", "-c", "printf 'a\\r\\nb\\nc\\n'"])
        with executor.stream_lines() as lines:
            collected = list(lines)
        assert collected == ["a", "b", "c"]
        assert executor.returncode == 0

    def test_stream_lines_keeps_lone_carriage_return(self) -> None:
        executor = Executor(["sh", "-c", "printf 'a\\rb\\nc\\n'"])
        with executor.stream_lines() as lines:
            collected = list(lines)
        assert collected == ["a\rb", "c"]

    def test_stream_lines_drains_unread_output(self) -> None:
        """Stopping early still lets the process finish normally."""
        executor = Executor(["sh", "-c", "echo first; head -c 1000000 /dev/zero; exit 4"])
        with executor.stream_lines() as lines:
            first = next(lines)
        assert first == "first"
        assert executor.returncode == 4

    def test_stream_lines_kills_process_on_error(self) -> None:
        executor = Executor(["sh", "-c", "echo line; exec sleep 30"])
        with patch("ccindex.utils.process.reap", wraps=reap) as reaper:
            with pytest.raises(RuntimeError):
                with executor.stream_lines() as lines:
                    next(lines)
                    raise RuntimeError("consumer failed")
        assert executor.returncode is None
        process = reaper.call_args[0][0]
        assert process.stdout.closed
        assert process.poll() is not None

    def test_verbose_logs_command(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level("INFO", logger="ccindex.utils.process"):
            Executor(["sh", "-c", "true"], verbose=True).run()
        assert "Executing sh -c true" in caplog.text
