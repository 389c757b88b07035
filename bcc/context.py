"""Build context handed to recipes: the collaborator interface of the core."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Mapping, Sequence

from .config import BuildConfig
from .core.arena import Arena
from .core.command_runner import (
    CommandResult,
    CommandRunner,
    ProcessHandle,
    ProcessSet,
    RecordingCommandRunner,
    SubprocessCommandRunner,
)
from .core.console import Console
from .core.fs import FileOperations, PathLike
from .core.rebuild import RebuildCheck, needs_rebuild
from .toolchains import ToolchainDefinition, toolchain_for_target


@dataclass
class Context:
    config: BuildConfig
    console: Console
    runner: CommandRunner
    fs: FileOperations
    arena: Arena
    workspace: Path

    @classmethod
    def create(
        cls,
        config: BuildConfig,
        *,
        workspace: Path,
        console: Console | None = None,
        dry_run: bool = False,
    ) -> "Context":
        console = console or Console(config.log_level, dry_run=dry_run)
        arena = Arena()
        runner: CommandRunner
        runner = RecordingCommandRunner(console) if dry_run else SubprocessCommandRunner(console)
        return cls(
            config=config,
            console=console,
            runner=runner,
            fs=FileOperations(console, arena),
            arena=arena,
            workspace=workspace,
        )

    @property
    def toolchain(self) -> ToolchainDefinition:
        return self.config.toolchain or toolchain_for_target(self.config.target)

    @property
    def build_dir(self) -> Path:
        return self.workspace / self.config.build_dir

    def spawn(self, command: Sequence[str]) -> ProcessHandle:
        return self.runner.spawn(command, cwd=self.workspace, env=self._environment())

    def run_sync(self, command: Sequence[str]) -> CommandResult:
        return self.runner.run_sync(command, cwd=self.workspace, env=self._environment())

    def wait_all(self, procs: ProcessSet) -> List[CommandResult]:
        return self.runner.wait_all(procs)

    def needs_rebuild(self, output_path: PathLike, input_paths: Iterable[PathLike]) -> RebuildCheck:
        return needs_rebuild(output_path, input_paths, console=self.console)

    def mkdir_if_not_exists(self, path: PathLike) -> bool:
        return self.fs.mkdir_if_not_exists(path)

    def copy_tree(self, src_path: PathLike, dst_path: PathLike) -> None:
        self.fs.copy_tree(src_path, dst_path)

    def _environment(self) -> Mapping[str, str] | None:
        environment = self.toolchain.environment
        return environment or None


__all__ = ["Context"]
