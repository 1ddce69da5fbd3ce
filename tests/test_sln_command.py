"""Tests for the dotnet sln invocation."""

from __future__ import annotations

import subprocess

import pytest

from refswitch.dotnet.sln_command import DOTNET_ENV_VAR, build_sln_command, run_sln_command
from refswitch.errors import SolutionCommandError


class RecordingRunner:
    def __init__(self, result=None, error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls = []

    def __call__(self, args, **kwargs):
        self.calls.append((list(args), kwargs))
        if self.error is not None:
            raise self.error
        return self.result or subprocess.CompletedProcess(args, 0, stdout="added", stderr="")


class TestBuildCommand:
    def test_add_with_folder(self, monkeypatch):
        monkeypatch.delenv(DOTNET_ENV_VAR, raising=False)
        args = build_sln_command("All.sln", "add", ["a.csproj", "b.csproj"], "Libraries")
        assert args == ["dotnet", "sln", "All.sln", "add", "a.csproj", "b.csproj", "--solution-folder", "Libraries"]

    def test_remove_has_no_folder(self, monkeypatch):
        monkeypatch.delenv(DOTNET_ENV_VAR, raising=False)
        assert build_sln_command("All.sln", "remove", ["a.csproj"]) == ["dotnet", "sln", "All.sln", "remove", "a.csproj"]

    def test_executable_override(self, monkeypatch):
        monkeypatch.setenv(DOTNET_ENV_VAR, "/opt/dotnet/dotnet")
        assert build_sln_command("All.sln", "add", ["a.csproj"])[0] == "/opt/dotnet/dotnet"


class TestRunCommand:
    def test_success_returns_stdout(self):
        runner = RecordingRunner()
        assert run_sln_command("All.sln", "add", ["a.csproj"], runner=runner) == "added"
        _, kwargs = runner.calls[0]
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True

    def test_non_zero_exit_uses_stderr(self):
        runner = RecordingRunner(subprocess.CompletedProcess([], 1, stdout="", stderr="project not found\n"))
        with pytest.raises(SolutionCommandError) as exc_info:
            run_sln_command("All.sln", "add", ["a.csproj"], runner=runner)
        assert str(exc_info.value) == "Solution All.sln could not be updated. project not found"

    def test_non_zero_exit_without_output(self):
        runner = RecordingRunner(subprocess.CompletedProcess([], 3, stdout="", stderr=""))
        with pytest.raises(SolutionCommandError, match="dotnet exited with code 3"):
            run_sln_command("All.sln", "remove", ["a.csproj"], runner=runner)

    def test_missing_executable(self):
        runner = RecordingRunner(error=FileNotFoundError("No such file: 'dotnet'"))
        with pytest.raises(SolutionCommandError, match="No such file"):
            run_sln_command("All.sln", "add", ["a.csproj"], runner=runner)

    def test_timeout(self):
        runner = RecordingRunner(error=subprocess.TimeoutExpired(["dotnet"], 5))
        with pytest.raises(SolutionCommandError):
            run_sln_command("All.sln", "add", ["a.csproj"], runner=runner, timeout=5)
