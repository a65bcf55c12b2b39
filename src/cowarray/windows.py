"""Sliding windows over the leading axes of an array."""

from __future__ import annotations

import jax.numpy as jnp

from .array import Array, row_major_strides, shape_size
from .buffer import SharedBuffer
from .errors import ArrayShapeError, format_shape
from .values import Value, as_ints, as_value


def window_indices(shape: tuple[int, ...], window: tuple[int, ...]) -> list[int]:
    """Row-major source offsets for every window of ``window`` over ``shape``.

    Corners vary slowest, offsets within a window fastest; both are
    enumerated in row-major order. ``window`` has the same rank as ``shape``.
    """
    rank = len(shape)
    corner_shape = tuple(d - w + 1 for d, w in zip(shape, window))
    if rank == 0:
        return [0]
    if any(d <= 0 for d in corner_shape) or any(w == 0 for w in window):
        return []

    start_axes = [jnp.arange(dim, dtype=jnp.int32) for dim in corner_shape]
    start_mesh = jnp.meshgrid(*start_axes, indexing="ij")
    starts = jnp.stack(start_mesh, axis=-1).reshape((-1, rank))

    offset_axes = [jnp.arange(dim, dtype=jnp.int32) for dim in window]
    offset_mesh = jnp.meshgrid(*offset_axes, indexing="ij")
    offsets = jnp.stack(offset_mesh, axis=-1).reshape((-1, rank))

    strides = jnp.asarray(row_major_strides(shape), dtype=jnp.int32)
    idx = starts[:, None, :] + offsets[None, :, :]
    flat = jnp.sum(idx * strides, axis=-1)
    return [int(i) for i in flat.reshape((-1,)).tolist()]


def resolve_window_sizes(shape: tuple[int, ...], sizes: list[int]) -> list[int]:
    if any(s == 0 for s in sizes):
        raise ArrayShapeError("Window size cannot be zero")
    if len(sizes) > len(shape):
        raise ArrayShapeError(f"Window size {sizes} has too many axes for shape {format_shape(shape)}")
    resolved = []
    for d, s in zip(shape, sizes):
        if abs(s) > d:
            raise ArrayShapeError(f"Window size {s} is too large for axis of length {d}")
        resolved.append(s if s >= 0 else max(d + 1 + s, 0))
    return resolved


def _windows(arr: Array, sizes: list[int]) -> Array:
    resolved = resolve_window_sizes(arr.shape, sizes)
    cls = type(arr)
    if not resolved:
        return arr.clone()
    new_shape = (
        *(max(d + 1 - s, 0) for d, s in zip(arr.shape, resolved)),
        *resolved,
        *arr.shape[len(resolved) :],
    )
    if any(s > d for s, d in zip(resolved, arr.shape)) or shape_size(new_shape) == 0:
        return cls(new_shape, SharedBuffer())

    true_size = (*resolved, *arr.shape[len(resolved) :])
    src = arr.data.as_slice()
    items = [src[i] for i in window_indices(arr.shape, true_size)]
    out = cls(new_shape, SharedBuffer.from_list(items))
    out.validate_shape()
    return out


def windows(sizes, value) -> Value:
    """Every contiguous window of ``sizes`` over the leading axes of ``value``."""
    return _windows(as_value(value), as_ints(sizes, where="Window size must be a list of integers"))
