"""Unit tests for the subprocess collaborator.

Mostly mocked; one test spawns a real shell to check stdin is detached.
"""

import subprocess
from unittest.mock import MagicMock, patch

from hubhook.engine.process import SPAWN_FAILED, ProcessResult, run_process


class TestRunProcess:
    @patch("hubhook.engine.process.subprocess.run")
    def test_successful_command(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"abc\n", stderr=b"")

        result = run_process(["git", "rev-parse", "@"], tmp_path)

        assert result.is_success is True
        assert result.stdout == b"abc\n"

    @patch("hubhook.engine.process.subprocess.run")
    def test_failed_command(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=128, stdout=b"", stderr=b"fatal: no upstream\n")

        result = run_process(["git", "rev-parse", "@{u}"], tmp_path)

        assert result.is_success is False
        assert result.returncode == 128
        assert result.stderr_text() == "fatal: no upstream"

    @patch("hubhook.engine.process.subprocess.run")
    def test_stdin_is_devnull_and_cwd_is_passed(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")

        run_process(["git", "pull"], tmp_path)

        call_kwargs = mock_run.call_args[1]
        assert call_kwargs["stdin"] is subprocess.DEVNULL
        assert call_kwargs["cwd"] == str(tmp_path)
        assert call_kwargs["shell"] is False
        assert "timeout" not in call_kwargs

    @patch("hubhook.engine.process.subprocess.run")
    def test_shell_mode(self, mock_run, tmp_path):
        mock_run.return_value = MagicMock(returncode=0, stdout=b"", stderr=b"")

        run_process("make deploy", tmp_path, shell=True)

        assert mock_run.call_args[0][0] == "make deploy"
        assert mock_run.call_args[1]["shell"] is True

    @patch("hubhook.engine.process.subprocess.run")
    def test_spawn_failure_is_reported_not_raised(self, mock_run, tmp_path):
        mock_run.side_effect = FileNotFoundError("No such file or directory: '/opt/git'")

        result = run_process(["/opt/git", "pull"], tmp_path)

        assert result.returncode == SPAWN_FAILED
        assert "No such file" in result.stderr_text()

    def test_command_reading_stdin_gets_eof(self, tmp_path):
        result = run_process("cat", tmp_path, shell=True)
        assert result.is_success
        assert result.stdout == b""


class TestProcessResult:
    def test_stderr_text_replaces_invalid_utf8(self):
        assert ProcessResult(returncode=1, stderr=b"bad \xff byte").stderr_text() == "bad � byte"
