"""Scoped bump allocator for short-lived strings and paths."""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from .errors import AllocationExhausted
from .string_view import StringView

DEFAULT_CAPACITY = 8 * 1024 * 1024


class Arena:
    """Fixed-capacity byte region with a monotonic cursor.

    Memory is reclaimed only by rewinding to a checkpoint returned by
    :meth:`save` or by :meth:`reset`. Anything allocated after a checkpoint
    must not be used once the arena has been rewound past it. Not safe for
    concurrent use.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("Arena capacity must be positive")
        self._memory = bytearray(capacity)
        self._size = 0

    @property
    def capacity(self) -> int:
        return len(self._memory)

    @property
    def size(self) -> int:
        return self._size

    @property
    def available(self) -> int:
        return len(self._memory) - self._size

    def allocate(self, size: int) -> memoryview:
        if size < 0:
            raise ValueError("Allocation size cannot be negative")
        if self._size + size > len(self._memory):
            raise AllocationExhausted(size, self.available, self.capacity)
        start = self._size
        self._size += size
        return memoryview(self._memory)[start:self._size]

    def save(self) -> int:
        return self._size

    def rewind(self, checkpoint: int) -> None:
        if not 0 <= checkpoint <= self._size:
            raise ValueError(f"Invalid arena checkpoint {checkpoint} (cursor at {self._size})")
        self._size = checkpoint

    def reset(self) -> None:
        self._size = 0

    @contextmanager
    def checkpoint(self) -> Iterator[int]:
        """Rewind to the current cursor when the block exits, however it exits."""

        mark = self.save()
        try:
            yield mark
        finally:
            self.rewind(mark)

    def strdup(self, text: str | bytes, encoding: str = "utf-8") -> StringView:
        """Copy ``text`` into the arena, NUL-terminated; the view excludes the NUL."""

        data = text.encode(encoding) if isinstance(text, str) else text
        start = self._size
        block = self.allocate(len(data) + 1)
        block[: len(data)] = data
        block[len(data)] = 0
        return StringView(self._memory, start, len(data))

    def sprintf(self, template: str, *args: Any) -> StringView:
        return self.strdup(template % args if args else template)

    def copy_view(self, view: StringView) -> StringView:
        return self.strdup(view.to_bytes())


__all__ = ["Arena", "DEFAULT_CAPACITY"]
