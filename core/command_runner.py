"""Toolchain process execution, with recording runners for dry runs and tests."""
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Deque, Iterable, Iterator, List, Sequence
import shlex
import subprocess


@dataclass
class CommandResult:
    """Exit status and captured output of one toolchain invocation."""

    command: Sequence[str]
    returncode: int
    stdout: str
    stderr: str
    streamed: bool = False


def format_command(command: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in command)


class CommandError(RuntimeError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, result: CommandResult):
        message = f"'{format_command(result.command)}' exited with status {result.returncode}"
        if not result.streamed and result.stderr.strip():
            message = f"{message}: {result.stderr.strip()}"
        super().__init__(message)
        self.result = result


class CommandRunner:
    """Runs an argv and fails with :class:`CommandError` on a non-zero exit.

    ``stream`` lets the child write to the terminal instead of capturing its
    output; ``note`` labels the command in dry-run listings.
    """

    def run(self, command: Sequence[str], *, stream: bool = False, note: str | None = None) -> CommandResult:
        result = self._execute(list(command), stream=stream, note=note)
        if result.returncode != 0:
            raise CommandError(result)
        return result

    def _execute(self, command: List[str], *, stream: bool, note: str | None) -> CommandResult:
        raise NotImplementedError

    def format_command(self, command: Sequence[str]) -> str:
        return format_command(command)


class SubprocessCommandRunner(CommandRunner):
    """Blocking :func:`subprocess.run`; a missing executable raises ``OSError``."""

    def _execute(self, command: List[str], *, stream: bool, note: str | None) -> CommandResult:
        if stream:
            process = subprocess.run(command, check=False)
            return CommandResult(command, process.returncode, "", "", streamed=True)
        process = subprocess.run(command, capture_output=True, text=True, check=False)
        return CommandResult(command, process.returncode, process.stdout, process.stderr)


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    note: str | None
    stream: bool


class RecordingCommandRunner(CommandRunner):
    """Keeps every command instead of running it; each one "succeeds" silently."""

    def __init__(self) -> None:
        self.commands: List[RecordedCommand] = []

    def _execute(self, command: List[str], *, stream: bool, note: str | None) -> CommandResult:
        self.commands.append(RecordedCommand(command=command, note=note, stream=stream))
        return self._reply(command, stream=stream)

    def _reply(self, command: List[str], *, stream: bool) -> CommandResult:
        return CommandResult(command, 0, "", "", streamed=stream)

    def iter_formatted(self) -> Iterator[str]:
        for record in self.commands:
            label = f" {record.note}" if record.note else ""
            yield f"[dry-run]{label} {self.format_command(record.command)}"


@dataclass
class ScriptedReply:
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""
    error: OSError | None = None


class ScriptedCommandRunner(RecordingCommandRunner):
    """Recording runner that answers with queued replies.

    Commands issued after the queue is drained succeed with empty output.
    """

    def __init__(self, replies: Iterable[ScriptedReply] = ()) -> None:
        super().__init__()
        self.replies: Deque[ScriptedReply] = deque(replies)

    def queue(self, returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.replies.append(ScriptedReply(returncode=returncode, stdout=stdout, stderr=stderr))

    def queue_error(self, error: OSError) -> None:
        self.replies.append(ScriptedReply(error=error))

    def _reply(self, command: List[str], *, stream: bool) -> CommandResult:
        reply = self.replies.popleft() if self.replies else ScriptedReply()
        if reply.error is not None:
            raise reply.error
        return CommandResult(command, reply.returncode, reply.stdout, reply.stderr, streamed=stream)


__all__ = [
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "RecordedCommand",
    "RecordingCommandRunner",
    "ScriptedCommandRunner",
    "ScriptedReply",
    "SubprocessCommandRunner",
    "format_command",
]
