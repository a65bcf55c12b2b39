"""Keep (replicate/filter rows) and its inverse."""

from __future__ import annotations

from .array import Array, NumArray
from .buffer import SharedBuffer
from .errors import ArrayInverseError, ArrayShapeError, ArrayTypeError, format_shape
from .fill import MISSING, NO_FILL, FillContext
from .values import Value, as_nats, as_value, coerce_pair

_COUNTS_WHERE = "Keep amount must be a natural number or list of natural numbers"


def scalar_keep(arr: Array, count: int) -> Array:
    if arr.rank() == 0:
        item = arr.data[0]
        return type(arr)((count,), SharedBuffer.repeat(item, count))
    if count == 0:
        return type(arr)((0, *arr.shape[1:]), SharedBuffer())
    if count == 1:
        return arr.clone()
    out = arr.clone()
    old = arr.data
    out.data.modify(lambda data: data.extend(x for _ in range(1, count) for x in old))
    out.shape = (arr.shape[0] * count, *arr.shape[1:])
    out.validate_shape()
    return out


def _fill_counts(arr: Array, counts: list[int], fill: FillContext) -> list[int]:
    rows = arr.row_count()
    if len(counts) == rows:
        return counts
    num_fill = fill.fill_for(NumArray)
    if len(counts) < rows:
        if num_fill is MISSING:
            raise ArrayShapeError(
                f"Cannot keep array with shape {arr.format_shape()} with array of shape "
                f"{format_shape([len(counts)])}{fill.missing_note(NumArray)}"
            )
        if num_fill < 0 or not float(num_fill).is_integer():
            raise ArrayTypeError(f"Fill value for keep must be a non-negative integer, but it is {num_fill}")
        return counts + [int(num_fill)] * (rows - len(counts))
    if num_fill is not MISSING:
        raise ArrayShapeError(
            f"Cannot keep array with shape {arr.format_shape()} with array of shape "
            f"{format_shape([len(counts)])}. A fill value is available, but keep can only be filled "
            "if there are fewer counts than rows"
        )
    raise ArrayShapeError(
        f"Cannot keep array with shape {arr.format_shape()} with array of shape "
        f"{format_shape([len(counts)])}{fill.missing_note(NumArray)}"
    )


def list_keep(arr: Array, counts: list[int], fill: FillContext) -> Array:
    amount = _fill_counts(arr, counts, fill)
    cls = type(arr)
    if arr.rank() == 0:
        return cls((amount[0],), SharedBuffer.repeat(arr.data[0], amount[0]))

    row_len = arr.row_len()
    if all(n in (0, 1) for n in amount):
        kept = sum(amount)
        data = SharedBuffer.with_capacity(kept * row_len)
        if row_len > 0:
            for n, row in zip(amount, arr.row_slices()):
                if n:
                    data.extend_from_slice(row)
        out = cls((kept, *arr.shape[1:]), data)
    else:
        data = SharedBuffer()
        if row_len > 0:
            for n, row in zip(amount, arr.row_slices()):
                for _ in range(n):
                    data.extend_from_slice(row)
        out = cls((sum(amount), *arr.shape[1:]), data)
    out.validate_shape()
    return out


def keep(counts, value, *, fill: FillContext = NO_FILL) -> Value:
    """Replicate each row of ``value`` by the matching count."""
    counts_value = as_value(counts)
    value = as_value(value)
    amounts = as_nats(counts_value, where=_COUNTS_WHERE)
    if counts_value.rank() == 0:
        return scalar_keep(value, amounts[0])
    return list_keep(value, amounts, fill)


def _unkeep(kept: Array, counts: list[int], into: Array, fill: FillContext) -> Array:
    if any(n > 1 for n in counts):
        raise ArrayInverseError("Cannot invert keep with non-boolean counts")
    if into.rank() == 0:
        raise ArrayInverseError("Cannot invert keep into a scalar")
    counts = _fill_counts(into, counts, fill)
    transformed = kept.rows() if kept.rank() else iter(())
    new_rows: list[Array] = []
    for count, into_row in zip(counts, into.rows()):
        if count == 0:
            new_rows.append(into_row)
            continue
        new_row = next(transformed, None)
        if new_row is None:
            raise ArrayInverseError(
                "Kept array has fewer rows than it was created with, so the keep cannot be inverted"
            )
        if new_row.shape != into_row.shape:
            raise ArrayInverseError(
                f"Kept array's shape was changed from {into_row.format_shape()} to "
                f"{new_row.format_shape()}, so the keep cannot be inverted"
            )
        new_rows.append(new_row)
    if next(transformed, None) is not None:
        raise ArrayInverseError("Kept array has more rows than it was created with, so the keep cannot be inverted")
    return type(into).from_row_arrays(new_rows, row_shape=into.shape[1:])


def unkeep(kept, counts, into, *, fill: FillContext = NO_FILL) -> Value:
    """Write the (possibly edited) kept rows back over the rows of ``into`` they came from."""
    counts_value = as_value(counts)
    amounts = as_nats(counts_value, where=_COUNTS_WHERE)
    if counts_value.rank() == 0:
        raise ArrayInverseError("Cannot invert scalar keep")
    kept, into = coerce_pair(
        as_value(kept), as_value(into), lambda a, b: f"Cannot unkeep {a} array with {b} array"
    )
    return _unkeep(kept, amounts, into, fill)
