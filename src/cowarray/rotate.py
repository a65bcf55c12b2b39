"""Cyclic rotation along leading axes, and fill-shift when a fill is present."""

from __future__ import annotations

from .align import depth_slices
from .array import Array, shape_size
from .errors import ArrayShapeError
from .fill import MISSING, NO_FILL, FillContext
from .values import Value, as_ints, as_shaped_indices, as_value, num, promote_bytes_for_fill


def _reverse(items: list, start: int, end: int) -> None:
    items[start:end] = items[start:end][::-1]


def rotate_cells(by: list[int], shape: tuple[int, ...], items: list, start: int = 0) -> None:
    """Rotate ``items[start : start + product(shape)]`` left by ``by``, one offset per leading axis."""
    if not by or not shape:
        return
    row_count = shape[0]
    if row_count == 0:
        return
    row_len = shape_size(shape[1:])
    end = start + row_count * row_len
    mid = start + (by[0] % row_count) * row_len
    _reverse(items, start, mid)
    _reverse(items, mid, end)
    _reverse(items, start, end)
    if len(by) == 1 or len(shape) == 1:
        return
    for row_start in range(start, end, row_len or 1):
        rotate_cells(by[1:], shape[1:], items, row_start)


def fill_shift(by: list[int], shape: tuple[int, ...], items: list, fill, start: int = 0) -> None:
    """Overwrite the cells that wrapped around during :func:`rotate_cells` with ``fill``."""
    if not by or not shape:
        return
    row_count = shape[0]
    if row_count == 0:
        return
    row_len = shape_size(shape[1:])
    end = start + row_count * row_len
    offset = by[0]
    if offset:
        span = min(abs(offset) * row_len, end - start)
        if offset > 0:
            items[end - span : end] = [fill] * span
        else:
            items[start : start + span] = [fill] * span
    if len(by) == 1 or len(shape) == 1:
        return
    for row_start in range(start, end, row_len or 1):
        fill_shift(by[1:], shape[1:], items, fill, row_start)


def _rotate(arr: Array, by: list[int], fill: FillContext) -> None:
    if len(by) > arr.rank():
        raise ArrayShapeError(f"Cannot rotate rank {arr.rank()} array with index of length {len(by)}")
    items = arr.data.as_mut_slice()
    rotate_cells(by, arr.shape, items)
    fill_elem = fill.fill_for(type(arr))
    if fill_elem is not MISSING:
        fill_shift(by, arr.shape, items, fill_elem)


def rotate(by, value, *, fill: FillContext = NO_FILL) -> Value:
    """Rotate ``value`` left by ``by`` along its leading axes.

    With a fill value the wrapped-around cells are replaced by the fill, so
    the rotation becomes a shift.
    """
    offsets = as_ints(by, where="Rotation amount must be a list of integers")
    out = promote_bytes_for_fill(as_value(value), fill).clone()
    _rotate(out, offsets, fill)
    return out


def rotate_depth(by, value, a_depth: int, b_depth: int, *, fill: FillContext = NO_FILL) -> Value:
    """Rotate each row of ``value`` at depth ``b_depth`` by the matching row of ``by`` at ``a_depth``."""
    by_shape, by_ints = as_shaped_indices(by, where="Rotation amount must be an array of integers")
    offsets = num(by_ints, by_shape)
    out = promote_bytes_for_fill(as_value(value), fill).clone()

    def rotate_row(row_shape, items, start, by_row_shape, by_row) -> None:
        if len(by_row_shape) > 1:
            raise ArrayShapeError(f"Cannot rotate by rank {len(by_row_shape)} array")
        rotate_cells([int(x) for x in by_row], row_shape, items, start)

    depth_slices(out, offsets, b_depth, a_depth, rotate_row)
    return out
