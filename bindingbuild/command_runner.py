"""Utilities for executing external commands with optional dry-run support."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence
import shlex
import subprocess


@dataclass
class CommandResult:
    """Represents the outcome of an executed command.

    Only the error stream is collected; standard output is never inspected.
    """

    command: Sequence[str]
    returncode: int
    stderr: str
    streamed: bool = False

    @property
    def error(self) -> "CommandError | None":
        """Return ``None`` for a zero exit code, otherwise the matching error.

        An empty ``stderr`` on a failed command still yields an error.
        """
        if self.returncode == 0:
            return None
        return CommandError(self)


class CommandError(RuntimeError):
    """Describes a failed command; callers decide whether to raise it."""

    def __init__(self, result: CommandResult):
        message = f"Command failed with exit code {result.returncode}: {' '.join(map(shlex.quote, result.command))}"
        if result.streamed:
            message = f"{message}\noutput already streamed above."
        elif result.stderr:
            message = f"{message}\n{result.stderr.rstrip()}"
        super().__init__(message)
        self.result = result

    @property
    def stderr(self) -> str:
        return self.result.stderr


class CommandRunner:
    """Abstract command runner interface.

    Runners never raise on a nonzero exit code; inspect
    :attr:`CommandResult.error` instead.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return " ".join(shlex.quote(str(part)) for part in command)


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`.

    A missing executable surfaces as :class:`FileNotFoundError` from
    :func:`subprocess.run`; callers decide how to report it.
    """

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        argv = [str(part) for part in command]
        if not stream:
            process = subprocess.run(
                argv,
                cwd=str(cwd) if cwd else None,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                check=False,
            )
            return CommandResult(command=argv, returncode=process.returncode, stderr=process.stderr or "")

        # stdin, stdout and stderr are inherited so toolchain progress shows live.
        process = subprocess.run(argv, cwd=str(cwd) if cwd else None, check=False)
        return CommandResult(command=argv, returncode=process.returncode, stderr="", streamed=True)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    note: str | None
    stream: bool


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []

    def run(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        note: str | None = None,
        stream: bool = False,
    ) -> CommandResult:
        self.commands.append(
            RecordedCommand(
                command=[str(part) for part in command],
                cwd=str(cwd) if cwd else None,
                note=note,
                stream=stream,
            )
        )
        return CommandResult(command=list(command), returncode=0, stderr="", streamed=stream)

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            cmd = self.format_command(record.command)
            cwd = record.cwd or default_cwd
            parts: List[str] = ["[dry-run]"]
            if record.note:
                parts.append(record.note)
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(cmd)
            yield " ".join(parts)
