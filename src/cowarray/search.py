"""Row search: find, member, index-of and progressive index-of."""

from __future__ import annotations

import logging
import os
from collections import defaultdict, deque
from typing import Final

import jax.numpy as jnp
from jax import lax

from .array import Array, ByteArray, NumArray, shape_size
from .buffer import SharedBuffer
from .fill import MISSING, NO_FILL, FillContext
from .values import Value, as_value, coerce_pair
from .windows import window_indices

logger = logging.getLogger(__name__)

_USE_JAX_FAST_PATHS: Final[bool] = os.environ.get("COWARRAY_DISABLE_JAX_FAST_PATHS", "0") != "1"
_JAX_MIN_ELEMENTS: Final[int] = max(0, int(os.environ.get("COWARRAY_JAX_MIN_ELEMENTS", "0")))


def _code_arrays(a: Array, b: Array) -> tuple[jnp.ndarray, jnp.ndarray] | None:
    """Exact int32 code vectors for both operands, or ``None`` to take the generic path."""
    if not _USE_JAX_FAST_PATHS:
        return None
    if a.element_count() + b.element_count() < _JAX_MIN_ELEMENTS:
        return None
    a_codes = type(a).integer_codes(a.data)
    if a_codes is None:
        return None
    b_codes = type(b).integer_codes(b.data)
    if b_codes is None:
        return None
    return jnp.asarray(a_codes, dtype=jnp.int32), jnp.asarray(b_codes, dtype=jnp.int32)


def _row_matrices(query: Array, principal: Array) -> tuple[jnp.ndarray, jnp.ndarray] | None:
    if query.row_count() == 0 or principal.row_count() == 0:
        return None
    codes = _code_arrays(query, principal)
    if codes is None:
        return None
    query_codes, principal_codes = codes
    row_len = query.row_len()
    logger.debug("vectorized row search over %d x %d rows", query.row_count(), principal.row_count())
    return (
        jnp.reshape(query_codes, (query.row_count(), row_len)),
        jnp.reshape(principal_codes, (principal.row_count(), row_len)),
    )


def _row_keys(arr: Array) -> list[tuple]:
    key = arr.element_key
    return [tuple(key(x) for x in row) for row in arr.row_slices()]


def _first_match_indices(match_matrix: jnp.ndarray, *, missing_index: int) -> jnp.ndarray:
    has = jnp.any(match_matrix, axis=1)
    first = jnp.argmax(match_matrix, axis=1)
    missing = jnp.asarray(missing_index, dtype=first.dtype)
    return jnp.where(has, first, missing)


def _equality_matrix(query_flat: jnp.ndarray, principal_flat: jnp.ndarray) -> jnp.ndarray:
    return jnp.all(query_flat[:, None, :] == principal_flat[None, :, :], axis=2)


def _matches_row(needle: Array, row: Array) -> bool:
    if needle.shape != row.shape:
        return False
    key = needle.element_key
    return all(key(x) == key(y) for x, y in zip(needle.data, row.data))


def _scalar_position(elem: Array, of: Array) -> int:
    """Position of the first element or row of ``of`` equal to ``elem`` (one rank lower)."""
    if elem.rank() == 0:
        target = elem.element_key(elem.data[0])
        for i, x in enumerate(of.data):
            if of.element_key(x) == target:
                return i
        return of.row_count()
    for i, row in enumerate(of.rows()):
        if _matches_row(elem, row):
            return i
    return of.row_count()


# -- find ---------------------------------------------------------------------------


def _find(needle: Array, haystack: Array, fill: FillContext) -> ByteArray:
    needs_extension = needle.rank() > haystack.rank() or any(
        n > h for n, h in zip(reversed(needle.shape), reversed(haystack.shape))
    )
    if needs_extension:
        fill_elem = fill.fill_for(type(haystack))
        if fill_elem is MISSING:
            return ByteArray(haystack.shape, SharedBuffer.repeat(0, haystack.element_count()))
        rank = max(needle.rank(), haystack.rank())
        hay_shape = (1,) * (rank - haystack.rank()) + haystack.shape
        needle_shape = (1,) * (rank - needle.rank()) + needle.shape
        haystack = haystack.clone()
        haystack.fill_to_shape(tuple(max(h, n) for h, n in zip(hay_shape, needle_shape)), fill_elem)

    window = (1,) * (haystack.rank() - needle.rank()) + needle.shape
    out_shape = tuple(h - w + 1 for h, w in zip(haystack.shape, window))
    count = shape_size(out_shape)
    if count == 0:
        return ByteArray(out_shape, SharedBuffer())
    window_size = needle.element_count()
    if window_size == 0:
        return ByteArray(out_shape, SharedBuffer.repeat(1, count))

    table = window_indices(haystack.shape, window)
    codes = _code_arrays(needle, haystack)
    if codes is not None:
        needle_codes, hay_codes = codes
        idx = jnp.reshape(jnp.asarray(table, dtype=jnp.int32), (count, window_size))
        windows_flat = hay_codes[idx]
        matches = jnp.all(windows_flat == needle_codes[None, :], axis=1)
        result = [int(x) for x in lax.convert_element_type(matches, jnp.int32).tolist()]
    else:
        key = haystack.element_key
        needle_keys = [key(x) for x in needle.data]
        src = haystack.data.as_slice()
        result = []
        for k in range(count):
            chunk = table[k * window_size : (k + 1) * window_size]
            result.append(int(all(key(src[i]) == nk for i, nk in zip(chunk, needle_keys))))
    return ByteArray(out_shape, SharedBuffer.from_list(result))


def find(needle, haystack, *, fill: FillContext = NO_FILL) -> Value:
    """Mark every position of ``haystack`` where a window equal to ``needle`` starts."""
    needle, haystack = coerce_pair(
        as_value(needle), as_value(haystack), lambda a, b: f"Cannot find {a} in {b} array"
    )
    return _find(needle, haystack, fill)


# -- member -------------------------------------------------------------------------


def _member(elems: Array, of: Array) -> ByteArray:
    if elems.rank() == of.rank():
        shape = elems.shape[:1]
        if elems.shape[1:] != of.shape[1:]:
            return ByteArray(shape, SharedBuffer.repeat(0, elems.row_count()))
        views = _row_matrices(elems, of)
        if views is not None:
            member = jnp.any(_equality_matrix(*views), axis=1)
            result = [int(x) for x in lax.convert_element_type(member, jnp.int32).tolist()]
        else:
            members = set(_row_keys(of))
            result = [int(k in members) for k in _row_keys(elems)]
        return ByteArray(shape, SharedBuffer.from_list(result))
    if elems.rank() > of.rank():
        row_shape = elems.shape[1 : elems.rank() - of.rank() + 1]
        return ByteArray.from_row_arrays((_member(row, of) for row in elems.rows()), row_shape=row_shape)
    diff = of.rank() - elems.rank()
    if diff == 1:
        return ByteArray.scalar(int(_scalar_position(elems, of) < of.row_count()))
    return ByteArray.from_row_arrays((_member(elems, row) for row in of.rows()), row_shape=of.shape[1 : diff - 1])


def member(elems, of) -> Value:
    """For each row of ``elems``, whether it is a row of ``of``."""
    elems, of = coerce_pair(
        as_value(elems), as_value(of), lambda a, b: f"Cannot look for members of {a} array in {b} array"
    )
    return _member(elems, of)


# -- index of -----------------------------------------------------------------------


def _index_of(elems: Array, of: Array) -> NumArray:
    missing = of.row_count()
    if elems.rank() == of.rank():
        shape = elems.shape[:1]
        if elems.shape[1:] != of.shape[1:]:
            return NumArray(shape, SharedBuffer.repeat(float(missing), elems.row_count()))
        views = _row_matrices(elems, of)
        if views is not None:
            first = _first_match_indices(_equality_matrix(*views), missing_index=missing)
            result = [float(x) for x in first.tolist()]
        else:
            positions: dict[tuple, int] = {}
            for i, k in enumerate(_row_keys(of)):
                positions.setdefault(k, i)
            result = [float(positions.get(k, missing)) for k in _row_keys(elems)]
        return NumArray(shape, SharedBuffer.from_list(result))
    if elems.rank() > of.rank():
        row_shape = elems.shape[1 : elems.rank() - of.rank() + 1]
        return NumArray.from_row_arrays((_index_of(row, of) for row in elems.rows()), row_shape=row_shape)
    diff = of.rank() - elems.rank()
    if diff == 1:
        return NumArray.scalar(_scalar_position(elems, of))
    return NumArray.from_row_arrays((_index_of(elems, row) for row in of.rows()), row_shape=of.shape[1 : diff - 1])


def index_of(elems, of) -> Value:
    """First position of each row of ``elems`` among the rows of ``of``; ``len(of)`` when absent."""
    elems, of = coerce_pair(
        as_value(elems), as_value(of), lambda a, b: f"Cannot look for indices of {a} array in {b} array"
    )
    return _index_of(elems, of)


def _progressive_scan(query_flat: jnp.ndarray, principal_flat: jnp.ndarray) -> jnp.ndarray:
    missing = int(principal_flat.shape[0])

    def _step(used: jnp.ndarray, query_vec: jnp.ndarray):
        matches = jnp.all(principal_flat == query_vec[None, :], axis=1)
        available = matches & (~used)
        has = jnp.any(available)
        first = jnp.argmax(available)
        out = jnp.where(has, first, jnp.asarray(missing, dtype=first.dtype))

        def _mark(u: jnp.ndarray) -> jnp.ndarray:
            return u.at[out].set(True)

        next_used = lax.cond(has, _mark, lambda u: u, used)
        return next_used, out

    init_used = jnp.zeros((missing,), dtype=jnp.bool_)
    _, out = lax.scan(_step, init_used, query_flat)
    return out


def _progressive_index_of(elems: Array, of: Array) -> NumArray:
    missing = of.row_count()
    if elems.rank() == of.rank():
        shape = elems.shape[:1]
        if elems.shape[1:] != of.shape[1:]:
            return NumArray(shape, SharedBuffer.repeat(float(missing), elems.row_count()))
        views = _row_matrices(elems, of)
        if views is not None:
            result = [float(x) for x in _progressive_scan(*views).tolist()]
        else:
            unused: defaultdict[tuple, deque[int]] = defaultdict(deque)
            for i, k in enumerate(_row_keys(of)):
                unused[k].append(i)
            result = []
            for k in _row_keys(elems):
                free = unused.get(k)
                result.append(float(free.popleft() if free else missing))
        return NumArray(shape, SharedBuffer.from_list(result))
    if elems.rank() > of.rank():
        row_shape = elems.shape[1 : elems.rank() - of.rank() + 1]
        return NumArray.from_row_arrays(
            (_progressive_index_of(row, of) for row in elems.rows()), row_shape=row_shape
        )
    diff = of.rank() - elems.rank()
    if diff == 1:
        return NumArray.scalar(_scalar_position(elems, of))
    return NumArray.from_row_arrays(
        (_progressive_index_of(elems, row) for row in of.rows()), row_shape=of.shape[1 : diff - 1]
    )


def progressive_index_of(elems, of) -> Value:
    """Like :func:`index_of`, but each row of ``of`` answers at most one query."""
    elems, of = coerce_pair(
        as_value(elems), as_value(of), lambda a, b: f"Cannot look for indices of {a} array in {b} array"
    )
    return _progressive_index_of(elems, of)
