from __future__ import annotations

import unittest


class PickTests(unittest.TestCase):
    def test_pick_single_index_per_axis(self) -> None:
        from cowarray import pick, to_python

        grid = [[1, 2], [3, 4]]
        self.assertEqual(to_python(pick([1, 0], grid)), 3)
        self.assertEqual(to_python(pick([1], grid)), [3, 4])
        self.assertEqual(to_python(pick([-1, -1], grid)), 4)
        self.assertEqual(to_python(pick([], grid)), grid)

    def test_pick_rows_of_indices_stack_results(self) -> None:
        from cowarray import pick, to_python

        out = pick([[0], [1]], [10, 20, 30])
        self.assertEqual(out.shape, (2,))
        self.assertEqual(to_python(out), [10, 20])

        grid = [[1, 2], [3, 4]]
        self.assertEqual(to_python(pick([[0, 1], [1, 0]], grid)), [2, 3])
        rows = pick([[1], [0]], grid)
        self.assertEqual(rows.shape, (2, 2))
        self.assertEqual(to_python(rows), [[3, 4], [1, 2]])

    def test_pick_out_of_bounds_uses_fill_or_fails(self) -> None:
        from cowarray import ArrayBoundsError, ArrayShapeError, NumArray, byte, pick, to_python, with_fill

        with self.assertRaises(ArrayBoundsError) as ctx:
            pick([2], [1, 2])
        self.assertIn("Index 2 is out of bounds of length 2 (dimension 0)", str(ctx.exception))
        self.assertEqual(to_python(pick([2], [1, 2], fill=with_fill(0))), 0)
        self.assertEqual(to_python(pick([5], [[1, 2], [3, 4]], fill=with_fill(0))), [0, 0])
        promoted = pick([5], byte([1, 2]), fill=with_fill(0.5))
        self.assertIsInstance(promoted, NumArray)
        self.assertEqual(to_python(promoted), 0.5)
        with self.assertRaises(ArrayShapeError):
            pick([1, 2, 3], [1, 2])

    def test_unpick_inverts_pick(self) -> None:
        from cowarray import num, pick, unpick

        values = num([10, 20, 30])
        grid = num([[1, 2], [3, 4]])
        for index, source in [([[0], [2]], values), ([1, 1], grid), ([0], grid), ([[1, 0], [0, 1]], grid)]:
            with self.subTest(index=index):
                self.assertEqual(unpick(pick(index, source), index, source), source)

    def test_unpick_writes_edits_back(self) -> None:
        from cowarray import num, to_python, unpick

        values = num([10, 20, 30])
        grid = num([[1, 2], [3, 4]])
        self.assertEqual(to_python(unpick([1, 3], [[0], [2]], values)), [1, 20, 3])
        self.assertEqual(to_python(unpick(99, [1, 1], grid)), [[1, 2], [3, 99]])
        self.assertEqual(to_python(unpick([7, 8], [0], grid)), [[7, 8], [3, 4]])
        self.assertEqual(to_python(unpick(5, [-1], values)), [10, 20, 5])
        self.assertEqual(to_python(values), [10, 20, 30])

    def test_unpick_rejects_duplicates_shape_drift_and_bad_indices(self) -> None:
        from cowarray import ArrayBoundsError, ArrayInverseError, ArrayTypeError, chars, num, unpick

        values = num([10, 20, 30])
        for index in ([[0], [0]], [[0], [-3]]):
            with self.subTest(index=index):
                with self.assertRaises(ArrayInverseError):
                    unpick([1, 2], index, values)
        with self.assertRaises(ArrayInverseError):
            unpick([1, 2, 3], [0], num([[1, 2], [3, 4]]))
        with self.assertRaises(ArrayBoundsError):
            unpick(5, [9], values)
        with self.assertRaises(ArrayTypeError):
            unpick(chars("a"), [0], values)


class TakeDropTests(unittest.TestCase):
    def _grid(self):
        from cowarray import num

        return num([[1, 2, 3], [4, 5, 6], [7, 8, 9]])

    def test_take_front_and_back(self) -> None:
        from cowarray import take, to_python

        self.assertEqual(to_python(take([2], [1, 2, 3, 4])), [1, 2])
        self.assertEqual(to_python(take([-2], [1, 2, 3, 4])), [3, 4])
        self.assertEqual(to_python(take(2, [1, 2, 3, 4])), [1, 2])
        self.assertEqual(take([0], [1, 2]).shape, (0,))
        self.assertEqual(take(2, self._grid()).shape, (2, 3))

    def test_take_per_axis(self) -> None:
        from cowarray import take, to_python

        grid = self._grid()
        self.assertEqual(to_python(take([1, 2], grid)), [[1, 2]])
        self.assertEqual(to_python(take([-2, -1], grid)), [[6], [9]])
        self.assertEqual(to_python(take([2, 3], grid)), [[1, 2, 3], [4, 5, 6]])

    def test_take_past_the_end_needs_fill(self) -> None:
        from cowarray import ArrayBoundsError, NumArray, byte, take, to_python, with_fill

        zero = with_fill(0)
        with self.assertRaises(ArrayBoundsError):
            take([5], [1, 2, 3])
        self.assertEqual(to_python(take([5], [1, 2, 3], fill=zero)), [1, 2, 3, 0, 0])
        self.assertEqual(to_python(take([-5], [1, 2, 3], fill=zero)), [0, 0, 1, 2, 3])
        self.assertEqual(
            to_python(take([3, 2], [[1, 2, 3], [4, 5, 6]], fill=zero)),
            [[1, 2], [4, 5], [0, 0]],
        )
        promoted = take([3], byte([1]), fill=with_fill(0.5))
        self.assertIsInstance(promoted, NumArray)
        self.assertEqual(to_python(promoted), [1, 0.5, 0.5])

    def test_take_shape_errors(self) -> None:
        from cowarray import ArrayShapeError, take

        with self.assertRaises(ArrayShapeError):
            take([1], 5)
        with self.assertRaises(ArrayShapeError):
            take([1, 1, 1], self._grid())

    def test_drop_front_and_back(self) -> None:
        from cowarray import drop, to_python

        self.assertEqual(to_python(drop([1], [1, 2, 3])), [2, 3])
        self.assertEqual(to_python(drop([-1], [1, 2, 3])), [1, 2])
        self.assertEqual(drop([5], [1, 2, 3]).shape, (0,))
        self.assertEqual(drop([-5], [1, 2, 3]).shape, (0,))

    def test_drop_per_axis(self) -> None:
        from cowarray import ArrayShapeError, drop, to_python

        grid = self._grid()
        self.assertEqual(to_python(drop([1, 1], grid)), [[5, 6], [8, 9]])
        self.assertEqual(to_python(drop([0, -2], grid)), [[1], [4], [7]])
        self.assertEqual(drop([3, 1], grid).shape, (0, 2))
        with self.assertRaises(ArrayShapeError):
            drop([1], 5)

    def test_take_and_drop_partition_rows(self) -> None:
        from cowarray import drop, take

        grid = self._grid()
        for n in range(4):
            with self.subTest(n=n):
                self.assertEqual(take([n], grid).join(drop([n], grid)), grid)

    def test_untake_splices_edited_section(self) -> None:
        from cowarray import take, to_python, untake

        grid = self._grid()
        self.assertEqual(untake(take([2], grid), [2], grid), grid)
        self.assertEqual(
            to_python(untake([[0, 0, 0], [0, 0, 0]], [2], grid)),
            [[0, 0, 0], [0, 0, 0], [7, 8, 9]],
        )
        self.assertEqual(to_python(untake([[0, 0, 0]], [-1], grid)), [[1, 2, 3], [4, 5, 6], [0, 0, 0]])
        self.assertEqual(
            to_python(untake([[0, 0], [0, 0]], [2, 2], grid)),
            [[0, 0, 3], [0, 0, 6], [7, 8, 9]],
        )
        self.assertEqual(
            to_python(untake([[0], [0]], [-2, -1], grid)),
            [[1, 2, 3], [4, 5, 0], [7, 8, 0]],
        )
        self.assertEqual(to_python(untake([[0, 0, 0]] * 3, [], grid)), [[0, 0, 0]] * 3)

    def test_untake_rejects_shape_drift(self) -> None:
        from cowarray import ArrayInverseError, ArrayShapeError, untake

        grid = self._grid()
        with self.assertRaises(ArrayInverseError):
            untake([[1, 2]], [2], grid)
        with self.assertRaises(ArrayShapeError):
            untake([[[1]]], [1, 1, 1], grid)

    def test_undrop_splices_edited_remainder(self) -> None:
        from cowarray import drop, num, to_python, undrop

        grid = self._grid()
        self.assertEqual(undrop(drop([1], grid), [1], grid), grid)
        self.assertEqual(undrop(drop([-1, 2], grid), [-1, 2], grid), grid)
        self.assertEqual(
            to_python(undrop([[0, 0, 0], [0, 0, 0]], [1], grid)),
            [[1, 2, 3], [0, 0, 0], [0, 0, 0]],
        )
        self.assertEqual(
            to_python(undrop([[0, 0, 0]], [-2], grid)),
            [[0, 0, 0], [4, 5, 6], [7, 8, 9]],
        )
        self.assertEqual(
            to_python(undrop([[0, 0], [0, 0]], [1, 1], grid)),
            [[1, 2, 3], [4, 0, 0], [7, 0, 0]],
        )
        self.assertEqual(undrop(num([], (0, 3)), [5], grid), grid)


class SelectTests(unittest.TestCase):
    def test_select_gathers_rows(self) -> None:
        from cowarray import select, to_python

        values = [10, 20, 30]
        grid = [[1, 2], [3, 4]]
        self.assertEqual(to_python(select([2, 0, 2], values)), [30, 10, 30])
        self.assertEqual(to_python(select([-1], values)), [30])
        scalar_index = select(1, grid)
        self.assertEqual(scalar_index.shape, (2,))
        self.assertEqual(to_python(scalar_index), [3, 4])
        self.assertEqual(select([], values).shape, (0,))

    def test_select_with_index_array(self) -> None:
        from cowarray import num, select, to_python

        self.assertEqual(to_python(select([[0, 1], [1, 0]], [10, 20, 30])), [[10, 20], [20, 10]])
        nested = select([[0], [1]], [[1, 2], [3, 4]])
        self.assertEqual(nested.shape, (2, 1, 2))
        self.assertEqual(to_python(nested), [[[1, 2]], [[3, 4]]])
        self.assertEqual(select(num([], (2, 0)), [[1, 2], [3, 4]]).shape, (2, 0, 2))

    def test_select_out_of_bounds(self) -> None:
        from cowarray import ArrayBoundsError, select, to_python, with_fill

        with self.assertRaises(ArrayBoundsError) as ctx:
            select([0, 5], [1, 2])
        self.assertEqual((ctx.exception.axis, ctx.exception.shape), (0, (2,)))
        self.assertIn("Index 5 is out of bounds of length 2 (dimension 0) in shape [2]", str(ctx.exception))
        with self.assertRaises(ArrayBoundsError) as ctx:
            select([-3], [[1, 2], [3, 4]])
        self.assertIn("(dimension 0) in shape [2 × 2]", str(ctx.exception))
        self.assertEqual(to_python(select([0, 5], [1, 2], fill=with_fill(0))), [1, 0])
        self.assertEqual(to_python(select([5], [[1, 2]], fill=with_fill(0))), [[0, 0]])

    def test_unselect_inverts_select(self) -> None:
        from cowarray import num, select, unselect

        values = num([10, 20, 30])
        grid = num([[1, 2], [3, 4], [5, 6]])
        for indices, source in [([2, 0], values), ([-1], values), (1, grid), ([[0, 2]], grid), ([], values)]:
            with self.subTest(indices=indices):
                self.assertEqual(unselect(select(indices, source), indices, source), source)

    def test_unselect_writes_rows_back(self) -> None:
        from cowarray import num, to_python, unselect

        values = num([10, 20, 30])
        self.assertEqual(to_python(unselect([1, 3], [0, 2], values)), [1, 20, 3])
        self.assertEqual(to_python(unselect([9, 9], 1, [[1, 2], [3, 4]])), [[1, 2], [9, 9]])
        self.assertEqual(
            to_python(unselect([[1, 2], [3, 4]], [[0, 1], [2, 3]], num([0, 0, 0, 0, 0]))),
            [1, 2, 3, 4, 0],
        )
        self.assertEqual(to_python(values), [10, 20, 30])

    def test_unselect_rejects_duplicates_shape_drift_and_bad_indices(self) -> None:
        from cowarray import ArrayBoundsError, ArrayInverseError, num, unselect

        values = num([10, 20, 30])
        with self.assertRaises(ArrayInverseError):
            unselect([1, 2], [0, -3], values)
        with self.assertRaises(ArrayInverseError):
            unselect([1, 2, 3], [0, 1], values)
        with self.assertRaises(ArrayBoundsError):
            unselect([1], [5], values)


if __name__ == "__main__":
    unittest.main()
