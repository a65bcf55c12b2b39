from __future__ import annotations

import gc
import unittest


class SharedBufferTests(unittest.TestCase):
    def test_modify_extends_in_place_then_slice_detaches(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([1, 2, 3])
        buf.modify(lambda items: items.append(4))
        self.assertEqual(list(buf), [1, 2, 3, 4])

        sub = buf.slice(1, 3)
        sub.modify(lambda items: items.append(5))
        self.assertEqual(list(buf), [1, 2, 3, 4])
        self.assertEqual(list(sub), [2, 3, 5])

    def test_as_mut_slice_writes_are_private_to_the_handle(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([1, 2, 3, 4])
        buf.as_mut_slice()[1] = 7
        self.assertEqual(list(buf), [1, 7, 3, 4])

        sub = buf.slice(1, 3)
        sub.as_mut_slice()[1] = 5
        self.assertEqual(list(buf), [1, 7, 3, 4])
        self.assertEqual(list(sub), [7, 5])

    def test_unique_full_extent_buffer_is_mutated_without_copy(self) -> None:
        from cowarray.buffer import SharedBuffer

        items = [1, 2, 3]
        buf = SharedBuffer.from_list(items)
        self.assertTrue(buf.is_unique())
        self.assertTrue(buf.is_full_extent())
        buf.extend([4, 5])
        self.assertEqual(items, [1, 2, 3, 4, 5])
        self.assertEqual(len(buf), 5)

    def test_clone_aliases_until_either_side_writes(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer(["a", "b"])
        other = buf.clone()
        self.assertTrue(other.is_copy_of(buf))
        self.assertFalse(buf.is_unique())

        other.modify(lambda items: items.reverse())
        self.assertEqual(list(buf), ["a", "b"])
        self.assertEqual(list(other), ["b", "a"])
        self.assertFalse(other.is_copy_of(buf))
        self.assertTrue(buf.is_unique())
        self.assertTrue(other.is_unique())

    def test_dropped_clone_restores_uniqueness(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([1])
        other = buf.clone()
        self.assertFalse(buf.is_unique())
        del other
        gc.collect()
        self.assertTrue(buf.is_unique())

    def test_truncate_shrinks_window_and_next_write_copies(self) -> None:
        from cowarray.buffer import SharedBuffer

        items = [1, 2, 3]
        buf = SharedBuffer.from_list(items)
        buf.truncate(2)
        self.assertEqual(list(buf), [1, 2])
        self.assertFalse(buf.is_full_extent())
        buf.extend([7])
        self.assertEqual(list(buf), [1, 2, 7])
        self.assertEqual(items, [1, 2, 3])

    def test_slice_bounds_are_checked_against_visible_window(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer(range(6)).slice(2, 5)
        self.assertEqual(list(buf.slice(1)), [3, 4])
        for start, stop in [(0, 4), (-1, 2), (3, 2)]:
            with self.subTest(start=start, stop=stop):
                with self.assertRaises(IndexError):
                    buf.slice(start, stop)

    def test_split_off_and_into_slices(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([1, 2, 3, 4])
        tail = buf.split_off(1)
        self.assertEqual(list(buf), [1])
        self.assertEqual(list(tail), [2, 3, 4])

        chunks = [list(chunk) for chunk in SharedBuffer(range(6)).into_slices(2)]
        self.assertEqual(chunks, [[0, 1], [2, 3], [4, 5]])
        with self.assertRaises(ValueError):
            list(SharedBuffer(range(5)).into_slices(2))

    def test_read_view_and_indexing(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([10, 20, 30, 40]).slice(1, 4)
        view = buf.as_slice()
        self.assertEqual(len(view), 3)
        self.assertEqual(view[-1], 40)
        self.assertEqual(list(view), [20, 30, 40])
        self.assertEqual(buf[0], 20)
        self.assertEqual(buf[1:], [30, 40])
        self.assertEqual(buf.to_list(), [20, 30, 40])
        with self.assertRaises(IndexError):
            buf[3]

    def test_read_view_keeps_contents_after_owner_writes(self) -> None:
        from cowarray.buffer import SharedBuffer

        buf = SharedBuffer([1, 2, 3])
        view = buf.as_slice()
        self.assertFalse(buf.is_unique())
        buf.modify(lambda items: items.__setitem__(0, 9))
        buf.as_mut_slice()[1] = 8
        self.assertEqual(list(view), [1, 2, 3])
        self.assertEqual(list(buf), [9, 8, 3])

    def test_repeat_and_with_capacity(self) -> None:
        from cowarray.buffer import SharedBuffer

        self.assertEqual(list(SharedBuffer.repeat(0, 3)), [0, 0, 0])
        self.assertEqual(list(SharedBuffer.repeat(0, -1)), [])
        self.assertEqual(len(SharedBuffer.with_capacity(16)), 0)
        with self.assertRaises(ValueError):
            SharedBuffer.with_capacity(-1)


if __name__ == "__main__":
    unittest.main()
