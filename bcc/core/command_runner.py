"""Spawning and supervising external processes.

Concurrency comes only from child processes: callers spawn one process per
job, collect the handles in a :class:`ProcessSet` and block once in
:meth:`CommandRunner.wait_all`. Waiting has no timeout and spawned processes
are never cancelled.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple
import os
import signal
import subprocess

from .buffer import ByteBuffer, DynamicArray
from .console import Console
from .errors import CommandError, InvalidProcessHandle, ProcessSetError, SpawnError


class Command(DynamicArray[str]):
    """Argument list of one build step, program name first.

    A command becomes read-only once it has been spawned.
    """

    __slots__ = ("_spawned",)

    def __init__(self, *args: str) -> None:
        self._spawned = False
        super().__init__(args)

    @property
    def spawned(self) -> bool:
        return self._spawned

    def _check_mutable(self) -> None:
        if self._spawned:
            raise RuntimeError("Command cannot be modified after it has been spawned")

    def append(self, *args: str) -> None:  # type: ignore[override]
        self.extend(args)

    def extend(self, items: Iterable[str]) -> None:
        self._check_mutable()
        super().extend(str(item) for item in items)

    def clear(self) -> None:
        self._check_mutable()
        super().clear()

    def mark_spawned(self) -> None:
        self._spawned = True

    def render(self) -> str:
        return render_command(self)


def render_command(command: Iterable[str]) -> str:
    """Human readable rendering; arguments containing whitespace are single quoted."""

    render = ByteBuffer()
    for index, arg in enumerate(command):
        if index > 0:
            render.append_str(" ")
        if any(char.isspace() for char in arg):
            render.append_str(f"'{arg}'")
        else:
            render.append_str(arg)
    return render.decode()


@dataclass
class CommandResult:
    """Represents the outcome of a joined process."""

    command: Sequence[str]
    returncode: int
    signal_name: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@dataclass(eq=False)
class ProcessHandle:
    """Token for one in-flight process. It may be joined exactly once."""

    command: Tuple[str, ...]
    process: Any
    joined: bool = False

    @property
    def pid(self) -> int | None:
        return getattr(self.process, "pid", None)

    @property
    def valid(self) -> bool:
        return self.process is not None and not self.joined


class ProcessSet(DynamicArray[ProcessHandle]):
    """Handles awaiting a joint :meth:`CommandRunner.wait_all`."""

    __slots__ = ()

    def add(self, handle: ProcessHandle) -> None:
        self.append(handle)


def _signal_name(returncode: int) -> str | None:
    if returncode >= 0 or os.name == "nt":
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"signal {-returncode}"


class CommandRunner:
    """Process execution interface shared by every backend."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def format_command(self, command: Sequence[str]) -> str:
        return render_command(command)

    def _prepare(self, command: Sequence[str]) -> List[str]:
        args = [str(part) for part in command]
        if not args:
            self.console.error("Could not run empty command")
            raise SpawnError(args, "empty command")
        self.console.info(f"CMD: {self.format_command(args)}")
        return args

    def _launch(
        self,
        args: List[str],
        *,
        cwd: Path | None,
        env: Mapping[str, str] | None,
    ) -> Any:
        raise NotImplementedError

    def spawn(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ProcessHandle:
        """Start ``command`` asynchronously with inherited standard streams."""

        args = self._prepare(command)
        process = self._launch(args, cwd=cwd, env=env)
        if isinstance(command, Command):
            command.mark_spawned()
        return ProcessHandle(command=tuple(args), process=process)

    def wait(self, handle: ProcessHandle, *, check: bool = True) -> CommandResult:
        """Block until ``handle`` terminates.

        With ``check`` a nonzero exit status or a terminating signal raises
        :class:`CommandError`; otherwise the result is returned as is.
        """

        if handle is None or handle.process is None:
            raise InvalidProcessHandle("Cannot wait on an invalid process handle")
        if handle.joined:
            raise InvalidProcessHandle(f"Process {handle.pid} was already joined")

        handle.joined = True
        returncode = handle.process.wait()
        result = CommandResult(
            command=handle.command,
            returncode=returncode,
            signal_name=_signal_name(returncode),
        )
        if result.signal_name:
            self.console.error(f"command process was terminated by {result.signal_name}")
        elif not result.ok:
            self.console.error(f"command exited with exit code {result.returncode}")

        if check and not result.ok:
            raise CommandError(result)
        return result

    def run_sync(
        self,
        command: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        handle = self.spawn(command, cwd=cwd, env=env)
        return self.wait(handle, check=check)

    def wait_all(self, procs: ProcessSet, *, check: bool = True) -> List[CommandResult]:
        """Join every member of ``procs`` and drain it.

        All members are joined even after a failure. The set succeeds only if
        every member exited with status zero.
        """

        results: List[CommandResult] = []
        failures: List[CommandResult] = []
        invalid = 0
        total = len(procs)
        try:
            for handle in procs:
                try:
                    result = self.wait(handle, check=False)
                except InvalidProcessHandle as exc:
                    self.console.error(str(exc))
                    invalid += 1
                    continue
                results.append(result)
                if not result.ok:
                    failures.append(result)
        finally:
            procs.clear()

        if check and (failures or invalid):
            raise ProcessSetError(failures, total, invalid=invalid)
        return results


class SubprocessCommandRunner(CommandRunner):
    """Command runner that executes commands via :mod:`subprocess`."""

    @staticmethod
    def _merge_environment(env: Mapping[str, str] | None) -> Dict[str, str] | None:
        if env is None:
            return None
        merged = os.environ.copy()
        merged.update(env)
        return merged

    def _launch(
        self,
        args: List[str],
        *,
        cwd: Path | None,
        env: Mapping[str, str] | None,
    ) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                args,
                cwd=str(cwd) if cwd else None,
                env=self._merge_environment(env),
            )
        except OSError as exc:
            reason = exc.strerror or str(exc)
            self.console.error(f"Could not create child process {args[0]}: {reason}")
            raise SpawnError(args, reason, os_error=exc) from exc


@dataclass(slots=True)
class RecordedCommand:
    command: List[str]
    cwd: str | None
    env: Dict[str, str] = field(default_factory=dict)


class _RecordedProcess:
    pid = 0

    def wait(self) -> int:
        return 0


class RecordingCommandRunner(CommandRunner):
    """Command runner that records commands instead of executing them."""

    def __init__(self, console: Console | None = None) -> None:
        super().__init__(console)
        self.commands: List[RecordedCommand] = []

    def _launch(
        self,
        args: List[str],
        *,
        cwd: Path | None,
        env: Mapping[str, str] | None,
    ) -> _RecordedProcess:
        self.commands.append(
            RecordedCommand(
                command=list(args),
                cwd=str(cwd) if cwd else None,
                env=dict(env) if env else {},
            )
        )
        return _RecordedProcess()

    def iter_commands(self) -> Iterable[RecordedCommand]:
        return iter(self.commands)

    def iter_formatted(self, *, workspace: Path | None = None) -> Iterable[str]:
        default_cwd = str(workspace) if workspace else None
        for record in self.commands:
            cmd = self.format_command(record.command)
            cwd = record.cwd or default_cwd
            parts: List[str] = ["[dry-run]"]
            if cwd:
                parts.append(f"(cwd={cwd})")
            parts.append(cmd)
            yield " ".join(parts)


__all__ = [
    "Command",
    "CommandResult",
    "CommandRunner",
    "ProcessHandle",
    "ProcessSet",
    "RecordedCommand",
    "RecordingCommandRunner",
    "SubprocessCommandRunner",
    "render_command",
]
