"""C build recipe composed from the collaborator interface of :class:`Context`."""
from __future__ import annotations

from pathlib import Path
from typing import List

from .context import Context
from .core.command_runner import ProcessSet
from .core.errors import BuildError
from .toolchains import BuildTarget


class CRecipe:
    """Compile a library module by module in parallel, archive it, link a program."""

    def __init__(self, ctx: Context) -> None:
        self.ctx = ctx
        self._library_rebuilt = False

    def _path(self, relative: str) -> str:
        return str(self.ctx.workspace / relative)

    @property
    def _library_dir(self) -> Path:
        library = self.ctx.config.library
        assert library is not None
        return self.ctx.build_dir / library.name / self.ctx.config.target.value

    def build_library(self) -> Path | None:
        ctx = self.ctx
        library = ctx.config.library
        if library is None:
            return None
        if ctx.config.hotreload and ctx.config.target is not BuildTarget.LINUX:
            raise BuildError(f"Hot reloading is not supported for target {ctx.config.target.value}")

        ctx.mkdir_if_not_exists(ctx.build_dir)
        ctx.mkdir_if_not_exists(self._library_dir.parent)
        ctx.mkdir_if_not_exists(self._library_dir)
        build_path = str(self._library_dir)
        suffix = ".obj" if ctx.toolchain.is_msvc else ".o"

        object_files: List[str] = []
        procs = ProcessSet()
        with ctx.arena.checkpoint():
            try:
                for module in library.modules:
                    input_path = ctx.arena.sprintf("%s/%s.c", self._path(library.source_dir), module).decode()
                    output_path = ctx.arena.sprintf("%s/%s%s", build_path, module, suffix).decode()
                    object_files.append(output_path)
                    if ctx.needs_rebuild(output_path, [input_path]).require():
                        cmd = ctx.toolchain.compile_command(
                            input_path,
                            output_path,
                            cflags=library.cflags,
                            include_dirs=[self._path(path) for path in library.include_dirs],
                            pic=ctx.config.hotreload,
                        )
                        procs.add(ctx.spawn(cmd))
            except BuildError:
                ctx.runner.wait_all(procs, check=False)
                raise
            compiled = len(procs) > 0
            ctx.wait_all(procs)

        if ctx.config.hotreload:
            library_path = f"{build_path}/lib{library.name}.so"
            link = ctx.toolchain.shared_library_command(library_path, object_files)
        else:
            name = f"{library.name}.lib" if ctx.toolchain.is_msvc else f"lib{library.name}.a"
            library_path = f"{build_path}/{name}"
            link = ctx.toolchain.archive_command(library_path, object_files)

        # In a dry run the scheduled objects do not exist yet
        if compiled or ctx.needs_rebuild(library_path, object_files).require():
            ctx.run_sync(link)
            self._library_rebuilt = True
        else:
            ctx.console.info(f"{library_path} is up to date")
        return Path(library_path)

    def _program_path(self) -> str:
        program = self.ctx.config.program
        assert program is not None
        name = f"{program.name}.exe" if self.ctx.config.target.is_windows else program.name
        return str(self.ctx.build_dir / name)

    def build_program(self, library_path: Path | None = None) -> Path | None:
        ctx = self.ctx
        program = ctx.config.program
        if program is None:
            return None

        ctx.mkdir_if_not_exists(ctx.build_dir)
        inputs = [self._path(source) for source in program.sources]
        relink = self._library_rebuilt
        if program.resources and ctx.config.target is BuildTarget.WIN64_MINGW:
            for script in program.resources:
                resource_path = str(ctx.build_dir / (Path(script).stem + ".res"))
                if ctx.needs_rebuild(resource_path, [self._path(script)]).require():
                    ctx.run_sync(ctx.toolchain.resource_command(self._path(script), resource_path))
                    relink = True
                inputs.append(resource_path)

        dependencies = list(inputs)
        include_dirs = [self._path(path) for path in program.include_dirs]
        libs = list(program.libs)
        if library_path is not None:
            dependencies.append(str(library_path))
            include_dirs.append(self._path(ctx.config.library.source_dir))  # type: ignore[union-attr]
            libs.insert(0, str(library_path))

        output_path = self._program_path()
        if relink or ctx.needs_rebuild(output_path, dependencies).require():
            cmd = ctx.toolchain.link_command(
                output_path,
                inputs,
                cflags=program.cflags,
                include_dirs=include_dirs,
                libs=libs,
            )
            ctx.run_sync(cmd)
        else:
            ctx.console.info(f"{output_path} is up to date")
        return Path(output_path)

    def build(self) -> Path | None:
        """Run the whole chain and return the program path, if any."""

        ctx = self.ctx
        ctx.console.info(f"Build Target: {ctx.config.target.value}")
        ctx.console.info(f"Hotreload: {'ENABLED' if ctx.config.hotreload else 'DISABLED'}")
        library_path = self.build_library()
        program_path = self.build_program(library_path)
        program = ctx.config.program
        if program_path is not None and program is not None and program.run:
            ctx.run_sync([str(program_path)])
        return program_path


__all__ = ["CRecipe"]
