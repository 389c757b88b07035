"""Growable buffers with amortized doubling growth."""
from __future__ import annotations

from typing import Generic, Iterable, Iterator, List, TypeVar, overload

INITIAL_CAPACITY = 256
"""Capacity reserved by the first growth of an empty buffer."""

T = TypeVar("T")


def _grown_capacity(capacity: int, required: int) -> int:
    new_capacity = capacity or INITIAL_CAPACITY
    while new_capacity < required:
        new_capacity *= 2
    return new_capacity


class DynamicArray(Generic[T]):
    """Owned growable sequence of items.

    Storage grows by doubling from :data:`INITIAL_CAPACITY` whenever an append
    would exceed the current capacity. Capacity never shrinks, ``clear`` only
    resets the item count.
    """

    __slots__ = ("_items", "_count")

    def __init__(self, items: Iterable[T] = ()) -> None:
        self._items: List[T | None] = []
        self._count = 0
        self.extend(items)

    @property
    def capacity(self) -> int:
        return len(self._items)

    def _reserve(self, required: int) -> None:
        capacity = len(self._items)
        if required <= capacity:
            return
        new_capacity = _grown_capacity(capacity, required)
        self._items.extend([None] * (new_capacity - capacity))

    def append(self, item: T) -> None:
        self._reserve(self._count + 1)
        self._items[self._count] = item
        self._count += 1

    def extend(self, items: Iterable[T]) -> None:
        """Append many items with a single bulk copy."""

        new_items = list(items)
        if not new_items:
            return
        end = self._count + len(new_items)
        self._reserve(end)
        self._items[self._count:end] = new_items
        self._count = end

    def clear(self) -> None:
        for index in range(self._count):
            self._items[index] = None
        self._count = 0

    def to_list(self) -> List[T]:
        return list(self)

    def __len__(self) -> int:
        return self._count

    def __iter__(self) -> Iterator[T]:
        for index in range(self._count):
            yield self._items[index]  # type: ignore[misc]

    @overload
    def __getitem__(self, index: int) -> T:
        ...

    @overload
    def __getitem__(self, index: slice) -> List[T]:
        ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self.to_list()[index]
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError("DynamicArray index out of range")
        return self._items[index]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.to_list()!r})"


class ByteBuffer:
    """Owned growable byte buffer, also used as a string builder."""

    __slots__ = ("_data", "_count")

    def __init__(self, data: bytes | bytearray = b"") -> None:
        self._data = bytearray()
        self._count = 0
        self.extend(data)

    @property
    def capacity(self) -> int:
        return len(self._data)

    @property
    def raw(self) -> bytearray:
        """Backing storage; only the first ``len(self)`` bytes are meaningful."""

        return self._data

    def _reserve(self, required: int) -> None:
        capacity = len(self._data)
        if required <= capacity:
            return
        self._data.extend(bytes(_grown_capacity(capacity, required) - capacity))

    def append(self, byte: int) -> None:
        self._reserve(self._count + 1)
        self._data[self._count] = byte
        self._count += 1

    def extend(self, data: bytes | bytearray | memoryview) -> None:
        size = len(data)
        if not size:
            return
        end = self._count + size
        self._reserve(end)
        self._data[self._count:end] = data
        self._count = end

    def append_str(self, text: str, encoding: str = "utf-8") -> None:
        self.extend(text.encode(encoding))

    def append_null(self) -> None:
        self.append(0)

    def clear(self) -> None:
        self._count = 0

    def to_bytes(self) -> bytes:
        return bytes(self._data[: self._count])

    def decode(self, encoding: str = "utf-8") -> str:
        return self._data[: self._count].decode(encoding)

    def __len__(self) -> int:
        return self._count

    def __bytes__(self) -> bytes:
        return self.to_bytes()

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ByteBuffer):
            return self.to_bytes() == other.to_bytes()
        if isinstance(other, (bytes, bytearray)):
            return self.to_bytes() == bytes(other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ByteBuffer({self.to_bytes()!r})"


__all__ = ["ByteBuffer", "DynamicArray", "INITIAL_CAPACITY"]
