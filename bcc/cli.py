"""Command line interface for the bcc build driver."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable, List
import sys

import yaml

from . import __version__
from .bootstrap import SelfRebuilder
from .config import CONFIG_FILENAME, BuildConfig, generate_default_config, load_build_config
from .context import Context
from .core.archive import FORMAT_SUFFIXES, DistArchiver
from .core.command_runner import CommandRunner, RecordingCommandRunner, SubprocessCommandRunner
from .core.console import Console
from .core.errors import BuildError
from .core.fs import FileOperations
from .recipe import CRecipe
from .toolchains import BuildTarget, host_toolchain


def _log_usage(console: Console, program: str = "bcc") -> None:
    console.info(f"Usage: {program} [options] [subcommand]")
    console.info("Subcommands:")
    console.info("    build (default)")
    console.info("    dist")
    console.info("    config")
    console.info("    bootstrap [-o OUTPUT] SOURCE [-- ARGS...]")
    console.info("    help")


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    parser = ArgumentParser(prog="bcc", description="Build C projects with nothing but a compiler")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "-c",
        "--config",
        dest="config_path",
        metavar="PATH",
        help=f"Configuration file (default: ./{CONFIG_FILENAME}, generated when missing)",
    )
    parser.add_argument("--log-level", choices=list(Console.LEVELS), help="Override the configured log level")
    parser.add_argument("-n", "--dry-run", action="store_true", help="Print commands without executing them")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("build", help="Build the configured library and program (default)")

    dist_parser = subparsers.add_parser("dist", help="Package the build directory into an archive")
    dist_parser.add_argument("--format", choices=sorted(FORMAT_SUFFIXES), help="Archive format")

    config_parser = subparsers.add_parser("config", help="Write the default configuration file")
    config_parser.add_argument("--target", choices=[target.value for target in BuildTarget], help="Target to select")
    config_parser.add_argument("--force", action="store_true", help="Overwrite an existing configuration file")

    bootstrap_parser = subparsers.add_parser(
        "bootstrap",
        help="Build a native driver from SOURCE, rebuilding it whenever SOURCE is newer, and run it",
    )
    bootstrap_parser.add_argument("source", help="C source of the driver")
    bootstrap_parser.add_argument("-o", "--output", help="Driver binary path (default: build/<source stem>)")
    bootstrap_parser.add_argument(
        "args",
        nargs="*",
        help="Arguments passed to the driver; put them after -- when they start with a dash",
    )

    subparsers.add_parser("help", help="Show available subcommands")

    args = parser.parse_args(list(argv))
    if args.command is None:
        args.command = "build"
    return args


def _config_path(args: Namespace, workspace: Path) -> Path:
    if args.config_path:
        path = Path(args.config_path)
        return path if path.is_absolute() else workspace / path
    return workspace / CONFIG_FILENAME


def _load_configuration(args: Namespace, workspace: Path, console: Console) -> BuildConfig:
    path = _config_path(args, workspace)
    if path.exists():
        console.info(f"Config file `{path}` exists")
    else:
        if path.suffix.lower() != ".toml":
            raise FileNotFoundError(f"Configuration file '{path}' does not exist")
        console.info(f"Generating config file {path}")
        FileOperations(console).write_entire_file(path, generate_default_config().encode("utf-8"))
    return load_build_config(path)


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    workspace = Path.cwd()
    console = Console(args.log_level or "info", dry_run=args.dry_run)

    if args.command == "help":
        _log_usage(console)
        return 0
    if args.command == "config":
        return _handle_config(args, workspace, console)
    if args.command == "bootstrap":
        return _handle_bootstrap(args, workspace, console)

    try:
        config = _load_configuration(args, workspace, console)
    except BuildError:
        return 1
    except (OSError, ValueError, TypeError, yaml.YAMLError) as exc:
        console.error(f"Invalid configuration: {exc}")
        return 2

    if args.log_level is None and config.log_level != console.level_name:
        console = Console(config.log_level, dry_run=args.dry_run)
    ctx = Context.create(config, workspace=workspace, console=console, dry_run=args.dry_run)

    try:
        if args.command == "build":
            CRecipe(ctx).build()
        elif args.command == "dist":
            _handle_dist(args, ctx)
        else:
            raise ValueError(f"Unknown command: {args.command}")
    except BuildError:
        console.error(f"{args.command} failed")
        return 1

    if isinstance(ctx.runner, RecordingCommandRunner):
        for line in ctx.runner.iter_formatted(workspace=workspace):
            print(line)
    return 0


def _handle_config(args: Namespace, workspace: Path, console: Console) -> int:
    path = _config_path(args, workspace)
    if path.exists() and not args.force:
        console.error(f"Config file `{path}` already exists (use --force to overwrite)")
        return 1
    target = BuildTarget(args.target) if args.target else None
    try:
        FileOperations(console).write_entire_file(path, generate_default_config(target).encode("utf-8"))
    except BuildError:
        return 1
    console.info(f"Wrote {path}")
    return 0


def _handle_bootstrap(args: Namespace, workspace: Path, console: Console) -> int:
    source = Path(args.source)
    if not source.is_absolute():
        source = workspace / source
    toolchain = host_toolchain()
    if args.output:
        binary = Path(args.output)
        if not binary.is_absolute():
            binary = workspace / binary
    else:
        suffix = ".exe" if sys.platform.startswith("win") else ""
        binary = workspace / "build" / (source.stem + suffix)

    runner: CommandRunner
    runner = RecordingCommandRunner(console) if args.dry_run else SubprocessCommandRunner(console)
    fs = FileOperations(console)
    if args.dry_run:
        console.dry(f"Would create directory {binary.parent}")
    else:
        try:
            fs.mkdir_if_not_exists(binary.parent)
        except BuildError:
            return 1

    rebuilder = SelfRebuilder(
        binary_path=str(binary),
        source_path=str(source),
        console=console,
        runner=runner,
        fs=fs,
        toolchain=toolchain,
    )
    argv: List[str] = [str(binary), *args.args]
    status = rebuilder.run(argv)
    if status is None:
        try:
            result = runner.run_sync(argv, check=False)
        except BuildError:
            return 1
        status = result.returncode if result.returncode >= 0 else 1

    if isinstance(runner, RecordingCommandRunner):
        for line in runner.iter_formatted(workspace=workspace):
            print(line)
    return status


def _handle_dist(args: Namespace, ctx: Context) -> None:
    config = ctx.config
    console = ctx.console
    name = config.program.name if config.program else ctx.workspace.name
    dist_dir = ctx.workspace / config.dist_dir
    staging = dist_dir / f"{name}-{config.target.value}"
    build_dir = ctx.build_dir

    if not build_dir.is_dir():
        console.error(f"Build directory {build_dir} does not exist, run `bcc build` first")
        raise BuildError(f"missing build directory {build_dir}")

    archive_format = args.format or config.dist_format
    target_path = dist_dir / f"{staging.name}{FORMAT_SUFFIXES[archive_format]}"
    if console.dry_run:
        console.dry(f"Would copy {build_dir} to {staging}")
    else:
        ctx.mkdir_if_not_exists(dist_dir)
        ctx.copy_tree(build_dir, staging)

    archive = DistArchiver(console).pack(
        build_dir if console.dry_run else staging,
        target_path,
        archive_format=archive_format,
    )
    console.info(f"Distribution archive: {archive}")


__all__ = ["main"]
