from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from bcc.config import BuildConfig
from bcc.context import Context
from bcc.core.command_runner import RecordingCommandRunner
from bcc.core.console import Console
from bcc.core.errors import BuildError, StaleInputMissing
from bcc.recipe import CRecipe


def _config(target: str = "linux", *, hotreload: bool = False, run: bool = False) -> BuildConfig:
    return BuildConfig.from_mapping(
        {
            "build": {"target": target, "hotreload": hotreload},
            "library": {
                "name": "raylib",
                "source_dir": "raylib/src",
                "modules": ["rcore", "rshapes"],
                "cflags": ["-DPLATFORM_DESKTOP"],
            },
            "program": {"name": "game", "sources": ["src/game.c"], "cflags": ["-Wall"], "run": run},
        }
    )


class CRecipeTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.workspace = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _context(self, config: BuildConfig) -> Context:
        return Context.create(config, workspace=self.workspace, console=Console("none"), dry_run=True)

    def _commands(self, ctx: Context) -> list[list[str]]:
        assert isinstance(ctx.runner, RecordingCommandRunner)
        return [record.command for record in ctx.runner.commands]

    def test_clean_build_compiles_archives_and_links(self) -> None:
        ctx = self._context(_config())
        program = CRecipe(ctx).build()

        ws = str(self.workspace)
        lib_dir = f"{ws}/build/raylib/linux"
        self.assertEqual(program, self.workspace / "build" / "game")
        self.assertEqual(
            self._commands(ctx),
            [
                ["cc", "-DPLATFORM_DESKTOP", "-c", f"{ws}/raylib/src/rcore.c", "-o", f"{lib_dir}/rcore.o"],
                ["cc", "-DPLATFORM_DESKTOP", "-c", f"{ws}/raylib/src/rshapes.c", "-o", f"{lib_dir}/rshapes.o"],
                ["ar", "-crs", f"{lib_dir}/libraylib.a", f"{lib_dir}/rcore.o", f"{lib_dir}/rshapes.o"],
                [
                    "cc",
                    "-Wall",
                    f"-I{ws}/raylib/src",
                    "-o",
                    f"{ws}/build/game",
                    f"{ws}/src/game.c",
                    f"{lib_dir}/libraylib.a",
                    "-lm",
                ],
            ],
        )
        self.assertTrue(Path(lib_dir).is_dir())
        self.assertEqual(ctx.arena.size, 0)

    def test_commands_run_in_workspace(self) -> None:
        ctx = self._context(_config())
        CRecipe(ctx).build()
        assert isinstance(ctx.runner, RecordingCommandRunner)
        self.assertTrue(all(record.cwd == str(self.workspace) for record in ctx.runner.commands))

    def test_up_to_date_outputs_are_skipped(self) -> None:
        lib_dir = self.workspace / "build" / "raylib" / "linux"
        lib_dir.mkdir(parents=True)
        (self.workspace / "raylib" / "src").mkdir(parents=True)
        (self.workspace / "src").mkdir()

        def touch(path: Path, seconds: int) -> None:
            path.write_text("")
            os.utime(path, ns=(seconds * 1_000_000_000, seconds * 1_000_000_000))

        for module in ("rcore", "rshapes"):
            touch(self.workspace / "raylib" / "src" / f"{module}.c", 1)
            touch(lib_dir / f"{module}.o", 2)
        touch(lib_dir / "libraylib.a", 3)
        touch(self.workspace / "src" / "game.c", 1)
        touch(self.workspace / "build" / "game", 4)

        ctx = self._context(_config())
        CRecipe(ctx).build()
        self.assertEqual(self._commands(ctx), [])

        # The touched module recompiles, then the archive and program are refreshed
        touch(self.workspace / "raylib" / "src" / "rshapes.c", 5)
        ctx = self._context(_config())
        CRecipe(ctx).build()
        commands = self._commands(ctx)
        self.assertEqual(len(commands), 3)
        self.assertIn(str(self.workspace / "raylib" / "src" / "rshapes.c"), commands[0])
        self.assertEqual(commands[1][:2], ["ar", "-crs"])
        self.assertIn(str(lib_dir / "libraylib.a"), commands[2])

    def test_new_module_without_object_file_is_archived(self) -> None:
        lib_dir = self.workspace / "build" / "raylib" / "linux"
        lib_dir.mkdir(parents=True)
        (self.workspace / "raylib" / "src").mkdir(parents=True)
        for path, seconds in (
            (self.workspace / "raylib" / "src" / "rcore.c", 1),
            (self.workspace / "raylib" / "src" / "rshapes.c", 1),
            (lib_dir / "rcore.o", 2),
            (lib_dir / "libraylib.a", 3),
        ):
            path.write_text("")
            os.utime(path, ns=(seconds * 1_000_000_000, seconds * 1_000_000_000))

        ctx = self._context(_config())
        library = CRecipe(ctx).build_library()

        commands = self._commands(ctx)
        self.assertEqual(library, lib_dir / "libraylib.a")
        self.assertEqual(len(commands), 2)
        self.assertIn(str(self.workspace / "raylib" / "src" / "rshapes.c"), commands[0])
        self.assertEqual(
            commands[1],
            ["ar", "-crs", f"{lib_dir}/libraylib.a", f"{lib_dir}/rcore.o", f"{lib_dir}/rshapes.o"],
        )
        self.assertFalse((lib_dir / "rshapes.o").exists())

    def test_missing_source_for_existing_object_fails(self) -> None:
        lib_dir = self.workspace / "build" / "raylib" / "linux"
        lib_dir.mkdir(parents=True)
        (lib_dir / "rshapes.o").write_text("")

        ctx = self._context(_config())
        with self.assertRaises(StaleInputMissing):
            CRecipe(ctx).build()
        # The module spawned before the failure was still joined
        self.assertEqual(len(self._commands(ctx)), 1)
        self.assertEqual(ctx.arena.size, 0)

    def test_hotreload_builds_shared_library(self) -> None:
        ctx = self._context(_config(hotreload=True))
        CRecipe(ctx).build_library()
        commands = self._commands(ctx)
        self.assertIn("-fPIC", commands[0])
        self.assertEqual(commands[-1][:3], ["cc", "-shared", "-o"])
        self.assertTrue(commands[-1][3].endswith("/libraylib.so"))

    def test_hotreload_rejected_outside_linux(self) -> None:
        ctx = self._context(_config("macos", hotreload=True))
        with self.assertRaises(BuildError):
            CRecipe(ctx).build()
        self.assertEqual(self._commands(ctx), [])

    def test_msvc_target_uses_msvc_artifacts(self) -> None:
        ctx = self._context(_config("win64_msvc"))
        program = CRecipe(ctx).build()
        commands = self._commands(ctx)
        self.assertTrue(commands[0][-1].endswith("/rcore.obj"))
        self.assertEqual(commands[2][0], "lib.exe")
        self.assertTrue(commands[2][2].endswith("/raylib.lib"))
        self.assertEqual(program.name, "game.exe")

    def test_mingw_resources_are_compiled(self) -> None:
        config = BuildConfig.from_mapping(
            {
                "build": {"target": "win64_mingw"},
                "program": {"name": "game", "sources": ["src/game.c"], "resources": ["src/game.rc"]},
            }
        )
        ctx = self._context(config)
        CRecipe(ctx).build()
        commands = self._commands(ctx)
        res_path = str(self.workspace / "build" / "game.res")
        self.assertEqual(commands[0][-1], res_path)
        self.assertIn(res_path, commands[1])
        self.assertEqual(commands[1][-2:], ["-lwinmm", "-lgdi32"])

    def test_run_option_launches_program(self) -> None:
        ctx = self._context(_config(run=True))
        CRecipe(ctx).build()
        self.assertEqual(self._commands(ctx)[-1], [str(self.workspace / "build" / "game")])


if __name__ == "__main__":
    unittest.main()
