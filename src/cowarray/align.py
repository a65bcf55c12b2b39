"""Leading-axis alignment of two arrays for row-pair operations."""

from __future__ import annotations

from typing import Callable

from .array import Array, shape_size
from .errors import ArrayShapeError, format_shape

RowPairFn = Callable[[tuple[int, ...], list, int, tuple[int, ...], list], None]


def _strip_unit_axes(arr: Array, depth: int) -> int:
    while arr.shape[:1] == (1,) and depth > 0:
        arr.shape = arr.shape[1:]
        depth -= 1
    return depth


def _spread_rows(arr: Array, depth: int, extra: tuple[int, ...]) -> None:
    """Repeat every frame cell of ``arr`` over the ``extra`` frame axes, in place."""
    repeat = shape_size(extra)
    row_len = shape_size(arr.shape[depth:])

    def spread(items: list) -> None:
        old = items[:]
        items.clear()
        for start in range(0, len(old), row_len or 1):
            row = old[start : start + row_len]
            for _ in range(repeat):
                items.extend(row)

    if row_len:
        arr.data.modify(spread)
    else:
        arr.data.clear()
    arr.shape = (*arr.shape[:depth], *extra, *arr.shape[depth:])
    arr.validate_shape()


def depth_slices(a: Array, b: Array, a_depth: int, b_depth: int, f: RowPairFn) -> None:
    """Call ``f`` on every aligned row pair of ``a`` (in place) and ``b``.

    The first ``a_depth`` axes of ``a`` and ``b_depth`` axes of ``b`` are the
    frames to align. When the frames disagree, leading length-1 axes are
    dropped from both. The shorter frame must then be a prefix of the longer
    one, and each of its cells is repeated over the remaining frame axes.
    ``f`` receives ``(a_row_shape, a_items, a_start, b_row_shape, b_row)`` and
    may write ``a_items[a_start : a_start + product(a_row_shape)]``. Unit axes
    stripped from ``a`` are restored unless its cells were spread.
    """
    a_shape = a.shape
    a_depth = min(a_depth, a.rank())
    b_depth = min(b_depth, b.rank())
    a_prefix = a.shape[:a_depth]
    b_prefix = b.shape[:b_depth]
    if any(x != y for x, y in zip(a_prefix, b_prefix)):
        a_depth = _strip_unit_axes(a, a_depth)
        if b.shape[:1] == (1,):
            b = b.clone()
            b_depth = _strip_unit_axes(b, b_depth)
        a_prefix = a.shape[:a_depth]
        b_prefix = b.shape[:b_depth]
        if any(x != y for x, y in zip(a_prefix, b_prefix)):
            raise ArrayShapeError(
                f"Cannot combine arrays with shapes {a.format_shape()} and {b.format_shape()} "
                f"because shape prefixes {format_shape(a_prefix)} and {format_shape(b_prefix)} "
                "are not compatible"
            )

    if a_depth < b_depth:
        _spread_rows(a, a_depth, b_prefix[a_depth:])
        a_depth = b_depth
    elif a_depth > b_depth:
        b = b.clone()
        _spread_rows(b, b_depth, a_prefix[b_depth:])
        b_depth = a_depth

    a_row_shape = a.shape[a_depth:]
    b_row_shape = b.shape[b_depth:]
    a_len = shape_size(a_row_shape)
    b_len = shape_size(b_row_shape)
    if a_len:
        a_items = a.data.as_mut_slice()
        b_items = b.data.to_list()
        for i in range(len(a_items) // a_len):
            f(a_row_shape, a_items, i * a_len, b_row_shape, b_items[i * b_len : (i + 1) * b_len])
    if a.element_count() == shape_size(a_shape):
        a.shape = a_shape
