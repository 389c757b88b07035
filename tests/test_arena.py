from __future__ import annotations

import unittest

from bcc.core.arena import Arena, DEFAULT_CAPACITY
from bcc.core.errors import AllocationExhausted
from bcc.core.string_view import StringView


class ArenaTests(unittest.TestCase):
    def test_default_capacity(self) -> None:
        arena = Arena()
        self.assertEqual(arena.capacity, DEFAULT_CAPACITY)
        self.assertEqual(arena.size, 0)

    def test_allocate_advances_cursor(self) -> None:
        arena = Arena(64)
        block = arena.allocate(10)
        self.assertEqual(len(block), 10)
        self.assertEqual(arena.size, 10)
        self.assertEqual(arena.available, 54)

    def test_allocate_beyond_capacity_raises(self) -> None:
        arena = Arena(16)
        arena.allocate(12)
        with self.assertRaises(AllocationExhausted) as ctx:
            arena.allocate(5)
        self.assertEqual(ctx.exception.requested, 5)
        self.assertEqual(ctx.exception.available, 4)
        # Failed allocations leave the cursor untouched
        self.assertEqual(arena.size, 12)
        arena.allocate(4)
        self.assertEqual(arena.available, 0)

    def test_rewind_reuses_offset(self) -> None:
        arena = Arena(256)
        arena.strdup("prefix")
        checkpoint = arena.save()
        first = arena.strdup("first")
        for _ in range(5):
            arena.allocate(7)
        arena.rewind(checkpoint)

        self.assertEqual(arena.save(), checkpoint)
        second = arena.strdup("again")
        self.assertEqual(second.offset, first.offset)
        # The earlier view now observes the bytes written after the rewind
        self.assertEqual(first.to_bytes(), b"again")

    def test_reset_returns_to_zero(self) -> None:
        arena = Arena(32)
        arena.allocate(20)
        arena.reset()
        self.assertEqual(arena.size, 0)

    def test_rewind_past_cursor_is_rejected(self) -> None:
        arena = Arena(32)
        arena.allocate(4)
        with self.assertRaises(ValueError):
            arena.rewind(10)

    def test_checkpoint_rewinds_on_exception(self) -> None:
        arena = Arena(64)
        arena.allocate(3)
        with self.assertRaises(RuntimeError):
            with arena.checkpoint() as mark:
                self.assertEqual(mark, 3)
                arena.allocate(30)
                raise RuntimeError("boom")
        self.assertEqual(arena.size, 3)

    def test_nested_checkpoints(self) -> None:
        arena = Arena(64)
        with arena.checkpoint():
            arena.allocate(8)
            with arena.checkpoint():
                arena.allocate(8)
                self.assertEqual(arena.size, 16)
            self.assertEqual(arena.size, 8)
        self.assertEqual(arena.size, 0)

    def test_strdup_is_nul_terminated(self) -> None:
        arena = Arena(32)
        view = arena.strdup("abc")
        self.assertEqual(view.decode(), "abc")
        self.assertEqual(arena.size, 4)
        self.assertEqual(view.data[view.offset + 3], 0)

    def test_sprintf_formats_into_arena(self) -> None:
        arena = Arena(128)
        view = arena.sprintf("%s/%s.o", "build", "rcore")
        self.assertEqual(view.decode(), "build/rcore.o")
        self.assertEqual(arena.size, len("build/rcore.o") + 1)

    def test_copy_view_materializes_slice(self) -> None:
        arena = Arena(64)
        source = StringView.from_str("  key = value  ")
        copied = arena.copy_view(source.trim())
        self.assertEqual(copied.decode(), "key = value")
        self.assertIsNot(copied.data, source.data)


if __name__ == "__main__":
    unittest.main()
