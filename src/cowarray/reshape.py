"""Reshape and rerank, with their undo forms."""

from __future__ import annotations

import math
from itertools import cycle, islice

from .array import Array, BoxArray, Boxed, shape_size
from .buffer import SharedBuffer
from .errors import ArrayInverseError, ArrayShapeError, format_shape
from .fill import MISSING, NO_FILL, FillContext
from .values import Value, as_int, as_ints, as_nats, as_value, promote_bytes_for_fill, try_nat


def reshape_scalar(arr: Array, count: int) -> None:
    """Replicate the whole array as ``count`` new leading rows, in place."""

    def repeat_rows(data: list) -> None:
        if count == 0:
            data.clear()
            return
        row = data[:]
        for _ in range(1, count):
            data.extend(row)

    arr.data.modify(repeat_rows)
    arr.shape = (count, *arr.shape)
    arr.validate_shape()


def derive_shape(shape: tuple[int, ...], dims: list[int], *, has_fill: bool) -> tuple[int, ...]:
    negatives = [i for i, d in enumerate(dims) if d < 0]
    if not negatives:
        return tuple(dims)
    if len(negatives) > 1:
        raise ArrayShapeError(f"Cannot reshape array with {len(negatives)} negative dimensions")

    pos = negatives[0]
    others = math.prod(d for i, d in enumerate(dims) if i != pos)
    if others == 0:
        if pos == 0:
            which = "non-leading"
        elif pos == len(dims) - 1:
            which = "non-trailing"
        else:
            which = "outer"
        raise ArrayShapeError(f"Cannot reshape array with any 0 {which} dimensions")
    total = shape_size(shape)
    derived = -(-total // others) if has_fill else total // others
    return (*dims[:pos], derived, *dims[pos + 1 :])


def _reshape(arr: Array, dims: list[int], fill: FillContext) -> None:
    fill_elem = fill.fill_for(type(arr))
    shape = derive_shape(arr.shape, dims, has_fill=fill_elem is not MISSING)
    target_len = shape_size(shape)
    current = len(arr.data)
    if current < target_len:
        if fill_elem is not MISSING:
            arr.data.extend([fill_elem] * (target_len - current))
        elif current == 0:
            if 0 not in shape:
                raise ArrayShapeError(
                    f"Cannot reshape empty array to {format_shape(shape)} without a fill value"
                    f"{fill.missing_note(type(arr))}"
                )
        elif arr.rank() == 0:
            arr.data = SharedBuffer.repeat(arr.data[0], target_len)
        else:
            arr.data.modify(lambda data: data.extend(islice(cycle(data[:current]), target_len - current)))
    else:
        arr.data.truncate(target_len)
    arr.shape = shape
    arr.validate_shape()


def reshape(shape, value, *, fill: FillContext = NO_FILL) -> Value:
    """Reshape ``value`` to ``shape``; a bare natural number replicates it as rows."""
    value = as_value(value)
    count = try_nat(shape)
    if count is not None:
        out = value.clone()
        reshape_scalar(out, count)
        return out
    dims = as_ints(shape, where="Shape should be a single natural number or a list of integers")
    out = promote_bytes_for_fill(value, fill).clone()
    _reshape(out, dims, fill)
    return out


def unreshape(value, old_shape) -> Value:
    value = as_value(value)
    if try_nat(old_shape) is not None:
        raise ArrayInverseError("Cannot undo scalar reshape")
    orig = as_nats(old_shape, where="Shape should be a list of natural numbers")
    if shape_size(orig) != value.element_count():
        raise ArrayInverseError(
            f"Cannot unreshape array because its old shape was {format_shape(orig)}, "
            f"but its new shape is {value.format_shape()}, which has a different number of elements"
        )
    out = value.clone()
    out.shape = tuple(orig)
    out.validate_shape()
    return out


def _rerank_shape(shape: tuple[int, ...], rank: int) -> tuple[int, ...]:
    if rank >= 0:
        if rank >= len(shape):
            return (1,) * (rank - len(shape) + 1) + shape
        mid = len(shape) - rank
        return (shape_size(shape[:mid]), *shape[mid:])
    magnitude = -rank
    if magnitude > len(shape):
        raise ArrayShapeError(
            f"Negative rerank has magnitude {magnitude}, which is greater than the array's rank {len(shape)}"
        )
    return (shape_size(shape[:magnitude]), *shape[magnitude:])


def rerank(rank, value) -> Value:
    """Merge leading axes so that ``rank`` axes remain below a single leading axis."""
    value = as_value(value)
    out = value.clone()
    out.shape = _rerank_shape(out.shape, as_int(rank, where="Rank must be an integer"))
    out.validate_shape()
    return out


def unrerank(value, rank, orig_shape) -> Value:
    value = as_value(value)
    irank = as_int(rank, where="Rank must be an integer")
    orig = tuple(as_nats(orig_shape, where="Shape must be a list of natural numbers"))
    if value.rank() == 0:
        if isinstance(value, BoxArray):
            return BoxArray.scalar(Boxed(unrerank(value.data[0].value, rank, orig_shape)))
        return value.clone()
    magnitude = abs(irank)
    if irank >= 0:
        kept = orig[: max(0, len(orig) - magnitude)]
        skip = max(magnitude + 1 - len(orig), 1)
        new_shape = (*kept, *value.shape[skip:])
    else:
        new_shape = (*orig[:magnitude], *value.shape[1:])
    if shape_size(new_shape) != value.element_count():
        raise ArrayInverseError(
            f"Cannot unrerank array of shape {value.format_shape()} to {format_shape(new_shape)} "
            "because the number of elements changed"
        )
    out = value.clone()
    out.shape = new_shape
    out.validate_shape()
    return out
