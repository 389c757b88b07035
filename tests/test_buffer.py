from __future__ import annotations

import unittest

from bcc.core.buffer import INITIAL_CAPACITY, ByteBuffer, DynamicArray
from bcc.core.string_view import StringView


class DynamicArrayTests(unittest.TestCase):
    def test_starts_empty_without_capacity(self) -> None:
        items: DynamicArray[int] = DynamicArray()
        self.assertEqual(len(items), 0)
        self.assertEqual(items.capacity, 0)

    def test_growth_doubles_from_initial_capacity(self) -> None:
        items: DynamicArray[int] = DynamicArray()
        items.append(1)
        self.assertEqual(items.capacity, INITIAL_CAPACITY)
        for value in range(INITIAL_CAPACITY):
            items.append(value)
        self.assertEqual(items.capacity, INITIAL_CAPACITY * 2)

    def test_extend_reserves_enough_for_bulk_append(self) -> None:
        items: DynamicArray[str] = DynamicArray()
        items.extend(str(n) for n in range(INITIAL_CAPACITY * 3))
        self.assertEqual(len(items), INITIAL_CAPACITY * 3)
        self.assertEqual(items.capacity, INITIAL_CAPACITY * 4)
        self.assertEqual(items[0], "0")
        self.assertEqual(items[-1], str(INITIAL_CAPACITY * 3 - 1))

    def test_clear_keeps_capacity(self) -> None:
        items = DynamicArray(range(10))
        capacity = items.capacity
        items.clear()
        self.assertEqual(len(items), 0)
        self.assertEqual(items.capacity, capacity)
        self.assertEqual(items.to_list(), [])

    def test_index_out_of_range(self) -> None:
        items = DynamicArray([1, 2])
        with self.assertRaises(IndexError):
            items[2]
        self.assertEqual(items[0:1], [1])


class ByteBufferTests(unittest.TestCase):
    def test_string_builder_helpers(self) -> None:
        sb = ByteBuffer()
        sb.append_str("build")
        sb.append(ord("/"))
        sb.append_str("program")
        self.assertEqual(sb.decode(), "build/program")
        sb.append_null()
        self.assertEqual(sb.to_bytes(), b"build/program\x00")

    def test_capacity_never_shrinks(self) -> None:
        sb = ByteBuffer(b"x" * (INITIAL_CAPACITY + 1))
        self.assertEqual(sb.capacity, INITIAL_CAPACITY * 2)
        sb.clear()
        self.assertEqual(len(sb), 0)
        self.assertEqual(sb.capacity, INITIAL_CAPACITY * 2)

    def test_equality_is_bytewise(self) -> None:
        self.assertEqual(ByteBuffer(b"abc"), b"abc")
        self.assertNotEqual(ByteBuffer(b"abc"), ByteBuffer(b"abd"))


class StringViewTests(unittest.TestCase):
    def test_chop_by_delimiter_advances_past_delimiter(self) -> None:
        view = StringView.from_str("rcore,rshapes,rtext")
        self.assertEqual(view.chop_by_delimiter(",").decode(), "rcore")
        self.assertEqual(view.decode(), "rshapes,rtext")
        self.assertEqual(view.chop_by_delimiter(",").decode(), "rshapes")
        self.assertEqual(view.chop_by_delimiter(",").decode(), "rtext")
        self.assertEqual(len(view), 0)

    def test_chop_without_delimiter_consumes_everything(self) -> None:
        view = StringView.from_str("single")
        self.assertEqual(view.chop_by_delimiter("\n").decode(), "single")
        self.assertEqual(len(view), 0)
        self.assertEqual(view.chop_by_delimiter("\n").decode(), "")

    def test_chop_shares_underlying_data(self) -> None:
        data = b"a=b"
        view = StringView(data)
        key = view.chop_by_delimiter("=")
        self.assertIs(key.data, data)
        self.assertEqual((key.offset, key.count), (0, 1))
        self.assertEqual((view.offset, view.count), (2, 1))

    def test_trim_variants(self) -> None:
        view = StringView.from_str(" \t value \n")
        self.assertEqual(view.trim_left().decode(), "value \n")
        self.assertEqual(view.trim_right().decode(), " \t value")
        self.assertEqual(view.trim().decode(), "value")
        self.assertEqual(view.decode(), " \t value \n")
        self.assertEqual(StringView.from_str("   ").trim().decode(), "")

    def test_equality_compares_bytes_not_identity(self) -> None:
        left = StringView.from_parts(b"xxhelloyy", 2, 5)
        right = StringView.from_str("hello")
        self.assertEqual(left, right)
        self.assertNotEqual(left, StringView.from_str("hellO"))
        self.assertNotEqual(left, StringView.from_str("hell"))

    def test_from_buffer_views_current_contents(self) -> None:
        sb = ByteBuffer()
        sb.append_str("key: value")
        view = StringView.from_buffer(sb)
        self.assertEqual(view.chop_by_delimiter(":").decode(), "key")
        self.assertEqual(view.trim().decode(), "value")

    def test_out_of_bounds_view_is_rejected(self) -> None:
        with self.assertRaises(ValueError):
            StringView(b"abc", 2, 5)


if __name__ == "__main__":
    unittest.main()
