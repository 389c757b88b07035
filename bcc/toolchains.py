"""Toolchain definitions and host compiler detection."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import PurePath
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence
import shutil
import sys

from .core.command_runner import Command
from .core.config_loader import normalize_string_list, reject_unknown_keys
from .core.errors import BuildError

Which = Callable[[str], "str | None"]


class BuildTarget(str, Enum):
    LINUX = "linux"
    WIN64_MINGW = "win64_mingw"
    WIN64_MSVC = "win64_msvc"
    MACOS = "macos"

    @property
    def is_windows(self) -> bool:
        return self in (BuildTarget.WIN64_MINGW, BuildTarget.WIN64_MSVC)


@dataclass(slots=True)
class ToolchainDefinition:
    name: str
    cc: str
    ar: str = "ar"
    windres: str | None = None
    launcher: str | None = None
    cflags: List[str] = field(default_factory=list)
    ldflags: List[str] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, name: str, data: Mapping[str, Any], base: "ToolchainDefinition | None" = None) -> "ToolchainDefinition":
        if not isinstance(data, Mapping):
            raise TypeError(f"Toolchain '{name}' definition must be a mapping")
        reject_unknown_keys(
            data,
            {"cc", "ar", "windres", "launcher", "cflags", "ldflags", "environment"},
            section=f"toolchain.{name}",
        )

        def _text(key: str) -> str | None:
            value = data.get(key)
            if value is None:
                return None
            text = str(value).strip()
            return text or None

        environment: Dict[str, str] = {}
        env_section = data.get("environment")
        if isinstance(env_section, Mapping):
            environment = {str(key): str(value) for key, value in env_section.items()}

        overrides = cls(
            name=name,
            cc=_text("cc") or environment.get("CC") or "",
            ar=_text("ar") or environment.get("AR") or "",
            windres=_text("windres"),
            launcher=_text("launcher"),
            cflags=normalize_string_list(data.get("cflags"), field_name="toolchain.cflags"),
            ldflags=normalize_string_list(data.get("ldflags"), field_name="toolchain.ldflags"),
            environment=environment,
        )
        if base is None:
            if not overrides.cc:
                raise ValueError(f"Toolchain '{name}' requires a 'cc' entry")
            if not overrides.ar:
                overrides.ar = "ar"
            return overrides
        return base.merge(overrides)

    def merge(self, other: "ToolchainDefinition") -> "ToolchainDefinition":
        environment = dict(self.environment)
        environment.update(other.environment)
        return ToolchainDefinition(
            name=other.name or self.name,
            cc=other.cc or self.cc,
            ar=other.ar or self.ar,
            windres=other.windres or self.windres,
            launcher=other.launcher or self.launcher,
            cflags=[*self.cflags, *other.cflags],
            ldflags=[*self.ldflags, *other.ldflags],
            environment=environment,
        )

    @property
    def is_msvc(self) -> bool:
        stem = PurePath(self.cc.replace("\\", "/")).name.lower()
        return stem in ("cl", "cl.exe")

    def _compiler(self) -> List[str]:
        return [self.launcher, self.cc] if self.launcher else [self.cc]

    def rebuild_command(self, binary_path: str, source_path: str) -> Command:
        """``<compiler> -o <binary> <source>``, or the MSVC ``/Fe:`` spelling."""

        if self.is_msvc:
            return Command(*self._compiler(), f"/Fe:{binary_path}", source_path)
        return Command(*self._compiler(), "-o", binary_path, source_path)

    def compile_command(
        self,
        source_path: str,
        object_path: str,
        *,
        cflags: Sequence[str] = (),
        include_dirs: Iterable[str] = (),
        pic: bool = False,
    ) -> Command:
        cmd = Command(*self._compiler())
        if self.is_msvc:
            cmd.append("/nologo", *self.cflags, *cflags)
            cmd.extend(f"/I{path}" for path in include_dirs)
            cmd.append("/c", source_path, f"/Fo:{object_path}")
            return cmd
        cmd.append(*self.cflags, *cflags)
        if pic:
            cmd.append("-fPIC")
        cmd.extend(f"-I{path}" for path in include_dirs)
        cmd.append("-c", source_path, "-o", object_path)
        return cmd

    def archive_command(self, library_path: str, object_paths: Sequence[str]) -> Command:
        if self.is_msvc:
            return Command(self.ar, "/nologo", f"/OUT:{library_path}", *object_paths)
        return Command(self.ar, "-crs", library_path, *object_paths)

    def shared_library_command(self, library_path: str, object_paths: Sequence[str]) -> Command:
        if self.is_msvc:
            raise BuildError("Shared libraries are not supported for MSVC toolchains")
        return Command(*self._compiler(), "-shared", "-o", library_path, *object_paths, *self.ldflags)

    def resource_command(self, script_path: str, output_path: str) -> Command:
        if not self.windres:
            raise BuildError(f"Toolchain '{self.name}' has no resource compiler configured")
        return Command(self.windres, script_path, "-O", "coff", "-o", output_path)

    def link_command(
        self,
        output_path: str,
        inputs: Sequence[str],
        *,
        cflags: Sequence[str] = (),
        include_dirs: Iterable[str] = (),
        libs: Sequence[str] = (),
    ) -> Command:
        cmd = Command(*self._compiler())
        if self.is_msvc:
            cmd.append("/nologo", *self.cflags, *cflags)
            cmd.extend(f"/I{path}" for path in include_dirs)
            cmd.append(f"/Fe:{output_path}", *inputs, *libs, *self.ldflags)
            return cmd
        cmd.append(*self.cflags, *cflags)
        cmd.extend(f"-I{path}" for path in include_dirs)
        cmd.append("-o", output_path, *inputs, *libs, *self.ldflags)
        return cmd


def _is_windows(platform: str) -> bool:
    return platform.startswith("win") or platform == "cygwin"


def host_toolchain(platform: str | None = None, which: Which = shutil.which) -> ToolchainDefinition:
    """Compiler used to rebuild programs on the host.

    POSIX hosts use ``cc``. Windows hosts pick the first of ``gcc``, ``clang``
    and ``cl.exe`` found on ``PATH``, falling back to ``gcc``.
    """

    platform = platform or sys.platform
    if not _is_windows(platform):
        return ToolchainDefinition(name="host", cc="cc", ar="ar")
    for candidate, archiver in (("gcc", "ar"), ("clang", "llvm-ar"), ("cl.exe", "lib.exe")):
        if which(candidate):
            return ToolchainDefinition(name="host", cc=candidate, ar=archiver, windres="windres")
    return ToolchainDefinition(name="host", cc="gcc", ar="ar", windres="windres")


def detect_host_target(platform: str | None = None, which: Which = shutil.which) -> BuildTarget:
    platform = platform or sys.platform
    if _is_windows(platform):
        if host_toolchain(platform, which).is_msvc:
            return BuildTarget.WIN64_MSVC
        return BuildTarget.WIN64_MINGW
    if platform == "darwin":
        return BuildTarget.MACOS
    return BuildTarget.LINUX


def toolchain_for_target(target: BuildTarget, platform: str | None = None) -> ToolchainDefinition:
    """Default toolchain producing binaries for ``target`` from this host."""

    platform = platform or sys.platform
    if target is BuildTarget.WIN64_MSVC:
        return ToolchainDefinition(name=target.value, cc="cl.exe", ar="lib.exe")
    if target is BuildTarget.WIN64_MINGW:
        if _is_windows(platform):
            # MinGW on Windows ships windres without the target triple prefix.
            return ToolchainDefinition(name=target.value, cc="gcc", ar="ar", windres="windres", ldflags=["-lwinmm", "-lgdi32"])
        prefix = "x86_64-w64-mingw32-"
        return ToolchainDefinition(
            name=target.value,
            cc=f"{prefix}gcc",
            ar=f"{prefix}ar",
            windres=f"{prefix}windres",
            ldflags=["-lwinmm", "-lgdi32"],
        )
    if target is BuildTarget.MACOS:
        return ToolchainDefinition(name=target.value, cc="clang", ar="ar")
    return ToolchainDefinition(name=target.value, cc="cc", ar="ar", ldflags=["-lm"])


__all__ = [
    "BuildTarget",
    "ToolchainDefinition",
    "detect_host_target",
    "host_toolchain",
    "toolchain_for_target",
]
