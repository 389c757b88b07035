"""Self-rebuild bootstrap: recompile a stale program from its source and relaunch it.

The program being rebuilt is a native driver binary compiled from a C
source, for example ``build/bc`` from ``bc.c``. It is not the Python process
doing the checking. From the command line::

    bcc bootstrap bc.c -- dist

or from Python, with the driver's own argument vector::

    rebuild_urself(["build/bc", "dist"], "bc.c")

Every run compares the modification times of the binary and its source the
way ``make`` does. When the source is newer the binary is moved to
``<binary>.old``, recompiled in place and re-executed with the original
arguments, and the current process exits with the relaunched exit status.
In dry-run mode the rename is only reported.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence
import os

from .core.command_runner import Command, CommandRunner, SubprocessCommandRunner
from .core.console import Console
from .core.errors import BuildError, FileOperationError
from .core.fs import FileOperations
from .core.rebuild import RebuildVerdict, needs_rebuild
from .toolchains import ToolchainDefinition, host_toolchain

BACKUP_SUFFIX = ".old"


class BootstrapState(str, Enum):
    CHECK = "check"
    REBUILDING = "rebuilding"
    RELAUNCHING = "relaunching"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SelfRebuilder:
    binary_path: str
    source_path: str
    console: Console = field(default_factory=Console)
    runner: CommandRunner | None = None
    fs: FileOperations | None = None
    toolchain: ToolchainDefinition = field(default_factory=host_toolchain)
    state: BootstrapState = BootstrapState.CHECK

    def __post_init__(self) -> None:
        self.binary_path = os.fspath(self.binary_path)
        self.source_path = os.fspath(self.source_path)
        if self.runner is None:
            self.runner = SubprocessCommandRunner(self.console)
        if self.fs is None:
            self.fs = FileOperations(self.console)

    @property
    def backup_path(self) -> str:
        return self.binary_path + BACKUP_SUFFIX

    def run(self, argv: Sequence[str]) -> int | None:
        """Drive the state machine once.

        Returns ``None`` when the binary is fresh and control should continue
        in the caller, otherwise the exit status the process must terminate
        with: the relaunched binary's status, or nonzero on failure.
        """

        if self.state is not BootstrapState.CHECK:
            raise RuntimeError(f"Bootstrap already ran (state: {self.state.value})")
        assert self.runner is not None and self.fs is not None

        check = needs_rebuild(self.binary_path, [self.source_path], console=self.console)
        if check.verdict is RebuildVerdict.ERROR:
            return self._fail()
        if check.verdict is RebuildVerdict.FRESH:
            self.state = BootstrapState.DONE
            return None

        self.console.info(f"{check.reason}, rebuilding")
        backed_up = False
        try:
            if self.fs.file_exists(self.binary_path):
                if self.console.dry_run:
                    self.console.dry(f"Would rename {self.binary_path} -> {self.backup_path}")
                else:
                    self.fs.rename(self.binary_path, self.backup_path)
                    backed_up = True
        except FileOperationError:
            return self._fail()

        self.state = BootstrapState.REBUILDING
        try:
            self.runner.run_sync(self.toolchain.rebuild_command(self.binary_path, self.source_path))
        except BuildError:
            if backed_up:
                self._restore()
            return self._fail()

        self.state = BootstrapState.RELAUNCHING
        program = self.binary_path
        if not os.path.dirname(program):
            program = os.path.join(os.curdir, program)
        relaunch = Command(program, *list(argv)[1:])
        try:
            result = self.runner.run_sync(relaunch, check=False)
        except BuildError:
            return self._fail()

        self.state = BootstrapState.DONE
        return result.returncode if result.returncode >= 0 else 1

    def _restore(self) -> None:
        assert self.fs is not None
        try:
            self.fs.rename(self.backup_path, self.binary_path)
        except FileOperationError:
            self.console.warning(f"previous binary left at {self.backup_path}")

    def _fail(self) -> int:
        self.state = BootstrapState.FAILED
        return 1


def rebuild_urself(
    argv: Sequence[str],
    source_path: str,
    *,
    console: Console | None = None,
    toolchain: ToolchainDefinition | None = None,
) -> None:
    """Rebuild and relaunch ``argv[0]`` when ``source_path`` is newer; exit afterwards.

    Returns normally only when the binary is up to date.
    """

    if not argv:
        raise ValueError("argv must contain the program path")
    rebuilder = SelfRebuilder(
        binary_path=argv[0],
        source_path=source_path,
        console=console or Console(),
        toolchain=toolchain or host_toolchain(),
    )
    status = rebuilder.run(argv)
    if status is not None:
        raise SystemExit(status)


__all__ = ["BACKUP_SUFFIX", "BootstrapState", "SelfRebuilder", "rebuild_urself"]
