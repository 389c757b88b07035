"""Generated build configuration: defaults, loading and validation."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping

from .core.archive import normalize_format
from .core.config_loader import (
    load_layered_config,
    normalize_string_list,
    reject_unknown_keys,
)
from .core.console import Console
from .toolchains import BuildTarget, ToolchainDefinition, detect_host_target, toolchain_for_target

CONFIG_FILENAME = "bcc.toml"
LOCAL_CONFIG_FILENAME = "bcc.local.toml"


def _as_bool(value: Any, *, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    raise TypeError(f"{field_name} must be a boolean")


@dataclass(slots=True)
class LibrarySettings:
    """A static (or, with hot reload, shared) library compiled module by module."""

    name: str
    source_dir: str
    modules: List[str]
    include_dirs: List[str] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "LibrarySettings":
        reject_unknown_keys(data, {"name", "source_dir", "modules", "include_dirs", "cflags"}, section="library")
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("library.name is required")
        modules = normalize_string_list(data.get("modules"), field_name="library.modules")
        if not modules:
            raise ValueError("library.modules must list at least one module")
        return cls(
            name=name,
            source_dir=str(data.get("source_dir") or "."),
            modules=modules,
            include_dirs=normalize_string_list(data.get("include_dirs"), field_name="library.include_dirs"),
            cflags=normalize_string_list(data.get("cflags"), field_name="library.cflags"),
        )


@dataclass(slots=True)
class ProgramSettings:
    name: str
    sources: List[str]
    include_dirs: List[str] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)
    libs: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    run: bool = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ProgramSettings":
        reject_unknown_keys(
            data,
            {"name", "sources", "include_dirs", "cflags", "libs", "resources", "run"},
            section="program",
        )
        name = str(data.get("name") or "").strip()
        if not name:
            raise ValueError("program.name is required")
        sources = normalize_string_list(data.get("sources"), field_name="program.sources")
        if not sources:
            raise ValueError("program.sources must list at least one source file")
        return cls(
            name=name,
            sources=sources,
            include_dirs=normalize_string_list(data.get("include_dirs"), field_name="program.include_dirs"),
            cflags=normalize_string_list(data.get("cflags"), field_name="program.cflags"),
            libs=normalize_string_list(data.get("libs"), field_name="program.libs"),
            resources=normalize_string_list(data.get("resources"), field_name="program.resources"),
            run=_as_bool(data.get("run", False), field_name="program.run"),
        )


@dataclass(slots=True)
class BuildConfig:
    target: BuildTarget
    hotreload: bool = False
    build_dir: str = "build"
    dist_dir: str = "dist"
    dist_format: str = "zst"
    log_level: str = "info"
    toolchain: ToolchainDefinition | None = None
    library: LibrarySettings | None = None
    program: ProgramSettings | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BuildConfig":
        reject_unknown_keys(data, {"build", "toolchain", "library", "program"}, section="<root>")
        build_section = data.get("build", {})
        if not isinstance(build_section, Mapping):
            raise TypeError("[build] must be a table")
        reject_unknown_keys(
            build_section,
            {"target", "hotreload", "build_dir", "dist_dir", "dist_format", "log_level"},
            section="build",
        )

        raw_target = build_section.get("target")
        try:
            target = BuildTarget(str(raw_target)) if raw_target else detect_host_target()
        except ValueError:
            known = ", ".join(item.value for item in BuildTarget)
            raise ValueError(f"Unknown build target '{raw_target}'. Expected one of: {known}") from None

        log_level = str(build_section.get("log_level", "info"))
        if log_level not in Console.LEVELS:
            raise ValueError(f"Unknown log level '{log_level}'")

        toolchain = toolchain_for_target(target)
        toolchain_section = data.get("toolchain")
        if isinstance(toolchain_section, Mapping):
            toolchain = ToolchainDefinition.from_mapping(target.value, toolchain_section, base=toolchain)

        library_section = data.get("library")
        program_section = data.get("program")
        return cls(
            target=target,
            hotreload=_as_bool(build_section.get("hotreload", False), field_name="build.hotreload"),
            build_dir=str(build_section.get("build_dir", "build")),
            dist_dir=str(build_section.get("dist_dir", "dist")),
            dist_format=normalize_format(str(build_section.get("dist_format", "zst"))),
            log_level=log_level,
            toolchain=toolchain,
            library=LibrarySettings.from_mapping(library_section) if isinstance(library_section, Mapping) else None,
            program=ProgramSettings.from_mapping(program_section) if isinstance(program_section, Mapping) else None,
        )


def generate_default_config(target: BuildTarget | None = None) -> str:
    """Render the default configuration with ``target`` selected and the others commented out."""

    selected = target or detect_host_target()
    lines: List[str] = ["[build]", "# Build target."]
    for candidate in BuildTarget:
        prefix = "" if candidate is selected else "# "
        lines.append(f'{prefix}target = "{candidate.value}"')
    lines.extend(
        [
            "",
            "# Builds the library as a shared object so it can be reloaded. Linux only.",
            "hotreload = false",
            'build_dir = "build"',
            'dist_dir = "dist"',
            'dist_format = "zst"',
            'log_level = "info"',
            "",
            "# [toolchain]",
            '# cc = "cc"',
            '# ar = "ar"',
            "",
            "# [library]",
            '# name = "raylib"',
            '# source_dir = "raylib/src"',
            '# modules = ["rcore", "rshapes", "rtext"]',
            '# include_dirs = ["raylib/src/external/glfw/include"]',
            '# cflags = ["-ggdb", "-DPLATFORM_DESKTOP"]',
            "",
            "# [program]",
            '# name = "program"',
            '# sources = ["src/program.c"]',
            '# cflags = ["-Wall", "-Wextra", "-ggdb"]',
            "# run = true",
            "",
        ]
    )
    return "\n".join(lines)


def load_build_config(path: Path) -> BuildConfig:
    """Load ``path`` merged with an optional ``bcc.local.*`` overlay next to it."""

    overlay = path.with_name(LOCAL_CONFIG_FILENAME.replace(".toml", path.suffix))
    return BuildConfig.from_mapping(load_layered_config(path, [overlay]))


__all__ = [
    "BuildConfig",
    "CONFIG_FILENAME",
    "LibrarySettings",
    "ProgramSettings",
    "generate_default_config",
    "load_build_config",
]
