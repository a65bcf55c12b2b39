"""Structural indexing (pick, take, drop, select) and the inverses used by under-style edits."""

from __future__ import annotations

from .array import Array, shape_size
from .buffer import SharedBuffer
from .errors import ArrayBoundsError, ArrayInverseError, ArrayShapeError, format_shape
from .fill import MISSING, NO_FILL, FillContext
from .values import Value, as_ints, as_shaped_indices, as_value, coerce_pair, promote_bytes_for_fill

_INDEX_ARRAY = "Index must be an array of integers"
_INDEX_LIST = "Index must be a list of integers"


def _resolve(i: int, bound: int, *, axis: int | None = None, shape=None, note: str = "") -> int:
    if i >= bound or i < -bound:
        raise ArrayBoundsError(i, bound, axis=axis, shape=shape, note=note)
    return i if i >= 0 else bound + i


def _fill_or_raise(arr: Array, fill: FillContext, i: int, bound: int, *, axis=None, shape=None):
    fill_elem = fill.fill_for(type(arr))
    if fill_elem is MISSING:
        raise ArrayBoundsError(i, bound, axis=axis, shape=shape, note=fill.missing_note(type(arr)))
    return fill_elem


# -- pick ---------------------------------------------------------------------------


def pick_single(arr: Array, index: list[int], fill: FillContext = NO_FILL) -> Array:
    """Index one leading axis per component; an out-of-range component yields a fill row."""
    if len(index) > arr.rank():
        raise ArrayShapeError(f"Cannot pick from rank {arr.rank()} array with index of length {len(index)}")
    picked = arr.data.clone()
    for axis, (bound, i) in enumerate(zip(arr.shape, index)):
        row_len = shape_size(arr.shape[axis + 1 :])
        if i >= bound or i < -bound:
            fill_elem = _fill_or_raise(arr, fill, i, bound, axis=axis, shape=arr.shape)
            picked = SharedBuffer.repeat(fill_elem, row_len)
            continue
        i = i if i >= 0 else bound + i
        picked = picked.slice(i * row_len, (i + 1) * row_len)
    return type(arr)(arr.shape[len(index) :], picked)


def pick_multi(arr: Array, index_shape: tuple[int, ...], index: list[int], fill: FillContext = NO_FILL) -> Array:
    index_row_len = shape_size(index_shape[1:])
    data = SharedBuffer()
    if index_row_len == 0:
        row = _pick(arr, index_shape[1:], index, fill)
        for _ in range(index_shape[0]):
            data.extend_from_slice(row.data)
    else:
        for start in range(0, len(index), index_row_len):
            row = _pick(arr, index_shape[1:], index[start : start + index_row_len], fill)
            data.extend_from_slice(row.data)
    out = type(arr)((*index_shape[:-1], *arr.shape[index_shape[-1] :]), data)
    out.validate_shape()
    return out


def _pick(arr: Array, index_shape: tuple[int, ...], index: list[int], fill: FillContext) -> Array:
    if len(index_shape) <= 1:
        return pick_single(arr, index, fill)
    return pick_multi(arr, index_shape, index, fill)


def pick(index, value, *, fill: FillContext = NO_FILL) -> Value:
    """Pick the element or sub-array of ``value`` at ``index``; index rows pick in batch."""
    index_shape, index_data = as_shaped_indices(index, where=_INDEX_ARRAY)
    arr = promote_bytes_for_fill(as_value(value), fill)
    return _pick(arr, index_shape, index_data, fill)


def _unpick_single(picked: Array, index: list[int], into: Array) -> Array:
    if len(index) > into.rank():
        raise ArrayShapeError(f"Cannot pick from rank {into.rank()} array with index of length {len(index)}")
    expected = into.shape[len(index) :]
    if picked.shape != expected:
        raise ArrayInverseError(
            "Attempted to undo pick, but the shape of the selected array changed from "
            f"{format_shape(expected)} to {picked.format_shape()}"
        )
    start = 0
    for axis, (i, bound) in enumerate(zip(index, into.shape)):
        start += _resolve(i, bound, axis=axis, shape=into.shape) * shape_size(into.shape[axis + 1 :])
    out = into.clone()
    items = out.data.as_mut_slice()
    items[start : start + len(picked.data)] = picked.data.to_list()
    return out


def _unpick(picked: Array, index_shape: tuple[int, ...], index: list[int], into: Array) -> Array:
    if len(index_shape) <= 1:
        return _unpick_single(picked, index, into)
    expected = (*index_shape[:-1], *into.shape[index_shape[-1] :])
    if picked.shape != expected:
        raise ArrayInverseError(
            "Attempted to undo pick, but the shape of the selected array changed from "
            f"{format_shape(expected)} to {picked.format_shape()}"
        )
    index_row_len = shape_size(index_shape[1:])
    if index_row_len == 0:
        for row in picked.rows():
            into = _unpick(row, index_shape[1:], index, into)
        return into
    for k, row in enumerate(picked.rows()):
        into = _unpick(row, index_shape[1:], index[k * index_row_len : (k + 1) * index_row_len], into)
    return into


def _check_unique_picks(index_shape: tuple[int, ...], index: list[int], into: Array) -> None:
    if len(index_shape) <= 1:
        return
    last = index_shape[-1]
    if last == 0:
        if any(n > 1 for n in index_shape[:-1]):
            raise ArrayInverseError("Cannot undo pick with duplicate indices")
        return
    seen: set[tuple[int, ...]] = set()
    for start in range(0, len(index), last):
        point = index[start : start + last]
        if len(point) > into.rank():
            raise ArrayShapeError(f"Cannot pick from rank {into.rank()} array with index of length {len(point)}")
        resolved = tuple(
            _resolve(i, bound, axis=axis, shape=into.shape) for axis, (i, bound) in enumerate(zip(point, into.shape))
        )
        if resolved in seen:
            raise ArrayInverseError("Cannot undo pick with duplicate indices")
        seen.add(resolved)


def unpick(picked, index, into) -> Value:
    """Write ``picked`` back into ``into`` at the positions ``index`` picked it from."""
    index_shape, index_data = as_shaped_indices(index, where=_INDEX_ARRAY)
    picked, into = coerce_pair(
        as_value(picked), as_value(into), lambda a, b: f"Cannot unpick {a} array from {b} array"
    )
    _check_unique_picks(index_shape, index_data, into)
    return _unpick(picked, index_shape, index_data, into)


# -- take / drop --------------------------------------------------------------------


def _take_rows(arr: Array, n: int, fill: FillContext) -> Array:
    row_len = arr.row_len()
    row_count = arr.row_count()
    count = abs(n)
    shape = (count, *arr.shape[1:])
    if count <= row_count:
        if n >= 0:
            data = arr.data.slice(0, count * row_len)
        else:
            data = arr.data.slice((row_count - count) * row_len)
        return type(arr)(shape, data)
    fill_elem = _fill_or_raise(arr, fill, n, row_count, axis=0, shape=arr.shape)
    pad = [fill_elem] * ((count - row_count) * row_len)
    items = arr.data.to_list() + pad if n >= 0 else pad + arr.data.to_list()
    out = type(arr)(shape, SharedBuffer.from_list(items))
    out.validate_shape()
    return out


def _take(arr: Array, index: list[int], fill: FillContext) -> Array:
    if not index:
        return arr.clone()
    if len(index) > arr.rank():
        raise ArrayShapeError(f"Cannot take from rank {arr.rank()} array with index of length {len(index)}")
    n, sub_index = index[0], index[1:]
    if all(abs(i) == s for i, s in zip(sub_index, arr.shape[1:])):
        return _take_rows(arr, n, fill)

    count = abs(n)
    row_count = arr.row_count()
    if n >= 0:
        source_rows = [arr.row(i) for i in range(min(count, row_count))]
    else:
        source_rows = [arr.row(i) for i in range(max(row_count - count, 0), row_count)]
    row_shape = (*(abs(i) for i in sub_index), *arr.shape[1 + len(sub_index) :])
    out = type(arr).from_row_arrays((_take(row, sub_index, fill) for row in source_rows), row_shape=row_shape)
    if count > out.row_count():
        fill_elem = _fill_or_raise(arr, fill, n, row_count, axis=0, shape=arr.shape)
        pad = [fill_elem] * ((count - out.row_count()) * shape_size(row_shape))
        items = out.data.to_list() + pad if n >= 0 else pad + out.data.to_list()
        out = type(arr)((count, *row_shape), SharedBuffer.from_list(items))
    out.validate_shape()
    return out


def take(index, value, *, fill: FillContext = NO_FILL) -> Value:
    """Take ``index[k]`` rows from the front (or back, if negative) of axis ``k``."""
    value = as_value(value)
    if value.rank() == 0:
        raise ArrayShapeError("Cannot take from scalar")
    counts = as_ints(index, where=_INDEX_LIST)
    return _take(promote_bytes_for_fill(value, fill), counts, fill)


def _drop(arr: Array, index: list[int]) -> Array:
    if not index:
        return arr.clone()
    if len(index) > arr.rank():
        raise ArrayShapeError(f"Cannot drop from rank {arr.rank()} array with index of length {len(index)}")
    n, sub_index = index[0], index[1:]
    row_count = arr.row_count()
    kept = max(row_count - abs(n), 0)
    if not sub_index:
        row_len = arr.row_len()
        if n >= 0:
            data = arr.data.slice((row_count - kept) * row_len)
        else:
            data = arr.data.slice(0, kept * row_len)
        return type(arr)((kept, *arr.shape[1:]), data)
    rows = range(row_count - kept, row_count) if n >= 0 else range(kept)
    row_shape = (
        *(max(s - abs(i), 0) for i, s in zip(sub_index, arr.shape[1:])),
        *arr.shape[1 + len(sub_index) :],
    )
    return type(arr).from_row_arrays((_drop(arr.row(i), sub_index) for i in rows), row_shape=row_shape)


def drop(index, value) -> Value:
    """Drop ``index[k]`` rows from the front (or back, if negative) of axis ``k``."""
    value = as_value(value)
    if value.rank() == 0:
        raise ArrayShapeError("Cannot drop from scalar")
    return _drop(value, as_ints(index, where=_INDEX_LIST))


def _untake_impl(name: str, past: str, taken: Array, index: list[int], into: Array) -> Array:
    expected = (*(abs(i) for i in index), *into.shape[len(index) :])
    if taken.shape != expected:
        raise ArrayInverseError(
            f"Attempted to undo {name}, but the {past} section's shape was modified from "
            f"{format_shape(expected)} to {taken.format_shape()}"
        )
    if not index:
        return taken.clone()
    n, sub_index = index[0], index[1:]
    if not sub_index:
        rest = _drop(into, [n])
        return taken.join(rest) if n >= 0 else rest.join(taken)

    count = abs(n)
    into_rows = list(into.rows())
    if count > len(into_rows):
        raise ArrayInverseError(
            f"Attempted to undo {name}, but the {past} section has {count} rows "
            f"and the original array only has {len(into_rows)}"
        )
    taken_rows = list(taken.rows())
    if n >= 0:
        new_rows = [_untake_impl(name, past, t, sub_index, r) for t, r in zip(taken_rows, into_rows)]
        new_rows.extend(into_rows[count:])
    else:
        start = len(into_rows) - count
        new_rows = into_rows[:start]
        new_rows.extend(_untake_impl(name, past, t, sub_index, r) for t, r in zip(taken_rows, into_rows[start:]))
    return type(into).from_row_arrays(new_rows, row_shape=into.shape[1:])


def _check_undo_index(name: str, index: list[int], into: Array) -> None:
    if len(index) > into.rank():
        raise ArrayShapeError(
            f"Cannot undo {name} on rank {into.rank()} array with index of length {len(index)}"
        )


def untake(taken, index, into) -> Value:
    """Splice the (possibly edited) ``taken`` section back over the rows of ``into`` it came from."""
    counts = as_ints(index, where=_INDEX_LIST)
    taken, into = coerce_pair(as_value(taken), as_value(into), lambda a, b: f"Cannot untake {a} into {b}")
    _check_undo_index("take", counts, into)
    return _untake_impl("take", "taken", taken, counts, into)


def undrop(dropped, index, into) -> Value:
    """Splice the (possibly edited) remainder of a drop back under the rows that were dropped."""
    counts = as_ints(index, where=_INDEX_LIST)
    dropped, into = coerce_pair(as_value(dropped), as_value(into), lambda a, b: f"Cannot undrop {a} into {b}")
    _check_undo_index("drop", counts, into)
    remaining = [min(i - s, 0) if i >= 0 else max(i + s, 0) for i, s in zip(counts, into.shape)]
    return _untake_impl("drop", "dropped", dropped, remaining, into)


# -- select -------------------------------------------------------------------------


def _select_rows(arr: Array, indices: list[int], fill: FillContext) -> Array:
    row_len = arr.row_len()
    row_count = arr.row_count()
    data = SharedBuffer.with_capacity(row_len * len(indices))
    for i in indices:
        if i >= row_count or i < -row_count:
            fill_elem = _fill_or_raise(arr, fill, i, row_count, axis=0, shape=arr.shape)
            data.extend_from_slice([fill_elem] * row_len)
            continue
        i = i if i >= 0 else row_count + i
        data.extend_from_slice(arr.data.slice(i * row_len, (i + 1) * row_len))
    out = type(arr)((len(indices), *arr.shape[1:]), data)
    out.validate_shape()
    return out


def select_impl(arr: Array, indices_shape: tuple[int, ...], indices: list[int], fill: FillContext = NO_FILL) -> Array:
    if len(indices_shape) > 1:
        row_len = shape_size(indices_shape[1:])
        row_shape = (*indices_shape[1:], *arr.shape[1:])
        if row_len == 0:
            return type(arr)((*indices_shape, *arr.shape[1:]), SharedBuffer())
        rows = (
            select_impl(arr, indices_shape[1:], indices[start : start + row_len], fill)
            for start in range(0, len(indices), row_len)
        )
        return type(arr).from_row_arrays(rows, row_shape=row_shape)
    out = _select_rows(arr, indices, fill)
    if not indices_shape:
        out.shape = out.shape[1:]
    return out


def select(indices, value, *, fill: FillContext = NO_FILL) -> Value:
    """Gather rows of ``value``; the index array's shape replaces the leading axis."""
    indices_shape, index_data = as_shaped_indices(indices, where=_INDEX_ARRAY)
    arr = promote_bytes_for_fill(as_value(value), fill)
    return select_impl(arr, indices_shape, index_data, fill)


def unselect(selected, indices, into) -> Value:
    """Write each row of ``selected`` back to the row of ``into`` it was selected from."""
    indices_shape, index_data = as_shaped_indices(indices, where=_INDEX_ARRAY)
    selected, into = coerce_pair(
        as_value(selected), as_value(into), lambda a, b: f"Cannot unselect {a} array into {b} array"
    )
    row_count = into.row_count()
    resolved = [_resolve(i, row_count, axis=0, shape=into.shape) for i in index_data]
    if len(set(resolved)) != len(resolved):
        raise ArrayInverseError("Cannot undo selection with duplicate indices")
    expected = (*indices_shape, *into.shape[1:])
    if selected.shape != expected:
        raise ArrayInverseError(
            "Attempted to undo selection, but the shape of the selected array changed from "
            f"{format_shape(expected)} to {selected.format_shape()}"
        )
    row_len = into.row_len()
    out = into.clone()
    items = out.data.as_mut_slice()
    src = selected.data.to_list()
    for k, i in enumerate(resolved):
        items[i * row_len : (i + 1) * row_len] = src[k * row_len : (k + 1) * row_len]
    return out
