"""Value model: the closed union of concrete arrays, constructors and coercions."""

from __future__ import annotations

import logging
import numbers
from typing import Callable, Final, Union

from .array import Array, BoxArray, Boxed, ByteArray, CharArray, ComplexArray, NumArray, shape_size
from .buffer import SharedBuffer
from .errors import ArrayShapeError, ArrayTypeError, format_shape
from .fill import FillContext

logger = logging.getLogger(__name__)

Value = Union[NumArray, ByteArray, ComplexArray, CharArray, BoxArray]

_NUMERIC_ORDER: Final[dict[type[Array], int]] = {ByteArray: 0, NumArray: 1, ComplexArray: 2}


def _flatten(obj) -> tuple[tuple[int, ...], list[object]]:
    if isinstance(obj, (list, tuple)) or (isinstance(obj, str) and len(obj) != 1):
        items = list(obj)
        if not items:
            return (0,), []
        parts = [_flatten(item) for item in items]
        inner = parts[0][0]
        leaves: list[object] = []
        for shape, part in parts:
            if shape != inner:
                raise ArrayShapeError("Cannot build an array from ragged nested data")
            leaves.extend(part)
        return (len(items), *inner), leaves
    return (), [obj]


def _infer_type(leaves: list[object]) -> type[Array]:
    if not leaves:
        return NumArray
    if all(isinstance(x, numbers.Real) for x in leaves):
        return NumArray
    if all(isinstance(x, numbers.Complex) for x in leaves):
        return ComplexArray
    if all(isinstance(x, str) for x in leaves):
        return CharArray
    return BoxArray


def _box_leaf(leaf) -> Boxed:
    if isinstance(leaf, Boxed):
        return leaf
    if isinstance(leaf, str) and len(leaf) == 1:
        return Boxed(CharArray.scalar(leaf))
    return Boxed(as_value(leaf))


def _build(array_type: type[Array], obj, shape=None) -> Array:
    inner_shape, leaves = _flatten(obj)
    if shape is None:
        shape = inner_shape
    elif shape_size(shape) != len(leaves):
        raise ArrayShapeError(f"Cannot shape {len(leaves)} elements as {format_shape(shape)}")
    if array_type is BoxArray:
        leaves = [_box_leaf(leaf) for leaf in leaves]
    return array_type(shape, leaves)


def as_value(obj) -> Value:
    """Convert nested Python data to the narrowest fitting array type."""
    if isinstance(obj, Array):
        return obj
    if isinstance(obj, Boxed):
        return BoxArray.scalar(obj)
    if isinstance(obj, str):
        return chars(obj)
    _, leaves = _flatten(obj)
    return _build(_infer_type(leaves), obj)


array = as_value


def num(obj, shape=None) -> NumArray:
    return _build(NumArray, obj, shape)


def byte(obj, shape=None) -> ByteArray:
    return _build(ByteArray, obj, shape)


def complex_array(obj, shape=None) -> ComplexArray:
    return _build(ComplexArray, obj, shape)


def chars(obj, shape=None) -> CharArray:
    if isinstance(obj, str) and shape is None:
        return CharArray((len(obj),), list(obj))
    return _build(CharArray, obj, shape)


def boxes(items) -> BoxArray:
    items = list(items)
    return BoxArray((len(items),), [_box_leaf(item) for item in items])


def scalar(item) -> Value:
    if isinstance(item, str) and len(item) == 1:
        return CharArray.scalar(item)
    value = as_value(item)
    if value.shape:
        return BoxArray.scalar(Boxed(value))
    return value


def _nest(items: list[object], shape: tuple[int, ...]) -> list[object]:
    if len(shape) == 1:
        return list(items)
    step = len(items) // shape[0] if shape[0] else 0
    return [_nest(items[i * step : (i + 1) * step], shape[1:]) for i in range(shape[0])]


def to_python(value):
    """Nested Python lists (boxes unwrapped recursively)."""
    if isinstance(value, Boxed):
        return to_python(value.value)
    items = [to_python(x) if isinstance(x, Boxed) else x for x in value.data]
    if not value.shape:
        return items[0]
    return _nest(items, value.shape)


# -- integer operands ----------------------------------------------------------


def _integers(value: Value, where: str) -> list[int]:
    if isinstance(value, ByteArray):
        return list(value.data)
    if isinstance(value, NumArray):
        out: list[int] = []
        for x in value.data:
            if not float(x).is_integer():
                raise ArrayTypeError(f"{where}, but {x} is not an integer")
            out.append(int(x))
        return out
    raise ArrayTypeError(f"{where}, not {value.type_name} array")


def as_ints(value, *, where: str) -> list[int]:
    value = as_value(value)
    if value.rank() > 1:
        raise ArrayShapeError(f"{where}, but it has rank {value.rank()}")
    return _integers(value, where)


def as_nats(value, *, where: str) -> list[int]:
    ints = as_ints(value, where=where)
    for n in ints:
        if n < 0:
            raise ArrayTypeError(f"{where}, but {n} is negative")
    return ints


def as_int(value, *, where: str) -> int:
    value = as_value(value)
    if value.rank() != 0:
        raise ArrayShapeError(f"{where}, but it has rank {value.rank()}")
    return _integers(value, where)[0]


def try_nat(value) -> int | None:
    """Non-negative integer scalar, or ``None`` for anything else."""
    value = as_value(value)
    if value.rank() != 0 or not isinstance(value, (NumArray, ByteArray)):
        return None
    x = value.data[0]
    if not float(x).is_integer() or x < 0:
        return None
    return int(x)


def as_shaped_indices(value, *, where: str) -> tuple[tuple[int, ...], list[int]]:
    value = as_value(value)
    return value.shape, _integers(value, where)


# -- coercion ------------------------------------------------------------------


def coerce_to_boxes(value: Value) -> BoxArray:
    if isinstance(value, BoxArray):
        return value
    cls = type(value)
    items = [Boxed(cls((), SharedBuffer.from_list([x]))) for x in value.data]
    return BoxArray(value.shape, SharedBuffer.from_list(items))


def coerce_pair(a: Value, b: Value, describe: Callable[[str, str], str]) -> tuple[Value, Value]:
    """Bring two operands to one array type, or fail naming both types."""
    if type(a) is type(b):
        return a, b
    if type(a) in _NUMERIC_ORDER and type(b) in _NUMERIC_ORDER:
        target = max(type(a), type(b), key=_NUMERIC_ORDER.__getitem__)
        logger.debug("promoting %s/%s operands to %s", a.type_name, b.type_name, target.type_name)
        return a.convert(target), b.convert(target)
    if isinstance(a, BoxArray) or isinstance(b, BoxArray):
        return coerce_to_boxes(a), coerce_to_boxes(b)
    raise ArrayTypeError(describe(a.type_name, b.type_name))


def promote_bytes_for_fill(value: Value, fill: FillContext) -> Value:
    """Byte arrays that can only be filled with a number become number arrays."""
    if isinstance(value, ByteArray) and not fill.has_fill(ByteArray) and fill.has_fill(NumArray):
        return value.convert(NumArray)
    return value
