"""Non-owning views into byte sequences."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .buffer import ByteBuffer

_WHITESPACE = frozenset(b" \t\n\r\x0b\x0c")


class StringView:
    """A ``(data, offset, count)`` window over bytes the view does not own.

    Only :meth:`chop_by_delimiter` changes the view itself; every other
    operation returns a new view over the same data.
    """

    __slots__ = ("data", "offset", "count")

    def __init__(self, data: bytes | bytearray | memoryview, offset: int = 0, count: int | None = None) -> None:
        if count is None:
            count = len(data) - offset
        if offset < 0 or count < 0 or offset + count > len(data):
            raise ValueError("String view exceeds the bounds of its data")
        self.data = data
        self.offset = offset
        self.count = count

    @classmethod
    def from_parts(cls, data: bytes | bytearray | memoryview, offset: int, count: int) -> "StringView":
        return cls(data, offset, count)

    @classmethod
    def from_str(cls, text: str, encoding: str = "utf-8") -> "StringView":
        return cls(text.encode(encoding))

    @classmethod
    def from_buffer(cls, buffer: "ByteBuffer") -> "StringView":
        return cls(buffer.raw, 0, len(buffer))

    def _byte(self, index: int) -> int:
        return self.data[self.offset + index]

    def chop_by_delimiter(self, delimiter: str | int) -> "StringView":
        """Consume and return the prefix before ``delimiter``.

        The view advances past the delimiter, or to its end when the
        delimiter does not occur.
        """

        delim = ord(delimiter) if isinstance(delimiter, str) else delimiter
        index = 0
        while index < self.count and self._byte(index) != delim:
            index += 1

        prefix = StringView(self.data, self.offset, index)
        consumed = index + 1 if index < self.count else index
        self.offset += consumed
        self.count -= consumed
        return prefix

    def trim_left(self) -> "StringView":
        index = 0
        while index < self.count and self._byte(index) in _WHITESPACE:
            index += 1
        return StringView(self.data, self.offset + index, self.count - index)

    def trim_right(self) -> "StringView":
        index = 0
        while index < self.count and self._byte(self.count - 1 - index) in _WHITESPACE:
            index += 1
        return StringView(self.data, self.offset, self.count - index)

    def trim(self) -> "StringView":
        return self.trim_left().trim_right()

    def to_bytes(self) -> bytes:
        return bytes(self.data[self.offset:self.offset + self.count])

    def decode(self, encoding: str = "utf-8") -> str:
        return self.to_bytes().decode(encoding)

    def __len__(self) -> int:
        return self.count

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StringView):
            return NotImplemented
        if self.count != other.count:
            return False
        with memoryview(self.data) as left, memoryview(other.data) as right:
            return left[self.offset:self.offset + self.count] == right[other.offset:other.offset + other.count]

    __hash__ = None  # type: ignore[assignment]

    def __str__(self) -> str:
        return self.to_bytes().decode("utf-8", errors="replace")

    def __repr__(self) -> str:
        return f"StringView({self.to_bytes()!r})"


__all__ = ["StringView"]
