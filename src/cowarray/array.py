"""Shaped arrays over copy-on-write buffers and their element types."""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from itertools import product
from typing import ClassVar, Final, Iterator

from .buffer import SharedBuffer
from .errors import ArrayShapeError, ArrayTypeError, format_shape
from .fill import MISSING

_NAN_KEY: Final = object()
_INT32_MIN: Final[int] = -(2**31)
_INT32_MAX: Final[int] = 2**31 - 1


def shape_size(shape) -> int:
    return math.prod(int(d) for d in shape)


def row_major_strides(shape) -> tuple[int, ...]:
    strides = [1] * len(shape)
    acc = 1
    for axis in range(len(shape) - 1, -1, -1):
        strides[axis] = acc
        acc *= int(shape[axis])
    return tuple(strides)


def _number_key(x: float):
    if x != x:
        return _NAN_KEY
    return x + 0.0


@dataclass(frozen=True, eq=False)
class Boxed:
    """A nested Value stored as a single element of a box array."""

    value: "Array"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Boxed):
            return NotImplemented
        return self.value.key() == other.value.key()

    def __hash__(self) -> int:
        return hash(self.value.key())

    def __repr__(self) -> str:
        return f"Boxed({self.value!r})"


class Array:
    """``shape`` plus a ``SharedBuffer`` of ``product(shape)`` elements in row-major order."""

    __slots__ = ("shape", "data")

    type_name: ClassVar[str] = "array"
    # Numeric arrays share one family so equal values compare equal across types.
    key_family: ClassVar[str] = "array"

    def __init__(self, shape=(), data=None) -> None:
        self.shape: tuple[int, ...] = tuple(int(d) for d in shape)
        if data is None:
            data = SharedBuffer()
        elif not isinstance(data, SharedBuffer):
            data = SharedBuffer.from_list([self.coerce_element(x) for x in data])
        self.data: SharedBuffer = data
        self.validate_shape()

    # -- element capability --------------------------------------------------

    @staticmethod
    def coerce_element(x):
        raise NotImplementedError

    @staticmethod
    def element_key(x):
        return x

    @staticmethod
    def integer_codes(items) -> list[int] | None:
        return None

    @classmethod
    def fill_element(cls, fill_value: "Array"):
        return MISSING

    # -- construction ----------------------------------------------------------

    @classmethod
    def scalar(cls, item) -> "Array":
        return cls((), SharedBuffer.from_list([cls.coerce_element(item)]))

    @classmethod
    def from_row_arrays(cls, rows, *, row_shape=None) -> "Array":
        rows = list(rows)
        if not rows:
            return cls((0, *(row_shape or ())), SharedBuffer())
        shape = rows[0].shape
        data = SharedBuffer.with_capacity(len(rows) * rows[0].element_count())
        for row in rows:
            if row.shape != shape:
                raise ArrayShapeError(
                    f"Cannot combine rows with shapes {format_shape(shape)} and {format_shape(row.shape)}"
                )
            data.extend_from_slice(row.data)
        return cls((len(rows), *shape), data)

    def clone(self) -> "Array":
        return type(self)(self.shape, self.data.clone())

    def convert(self, target: type["Array"]) -> "Array":
        if type(self) is target:
            return self.clone()
        items = [target.coerce_element(x) for x in self.data]
        return target(self.shape, SharedBuffer.from_list(items))

    # -- shape -----------------------------------------------------------------

    def rank(self) -> int:
        return len(self.shape)

    def row_count(self) -> int:
        return self.shape[0] if self.shape else 1

    def row_len(self) -> int:
        return shape_size(self.shape[1:])

    def element_count(self) -> int:
        return len(self.data)

    def format_shape(self) -> str:
        return format_shape(self.shape)

    def validate_shape(self) -> None:
        assert shape_size(self.shape) == len(self.data), (
            f"{type(self).__name__} shape {self.format_shape()} does not match {len(self.data)} elements"
        )

    def rows(self) -> Iterator["Array"]:
        if not self.shape:
            yield self.clone()
            return
        row_shape = self.shape[1:]
        for data in self.row_slices():
            yield type(self)(row_shape, data)

    def row(self, index: int) -> "Array":
        n = self.row_len()
        return type(self)(self.shape[1:], self.data.slice(index * n, (index + 1) * n))

    def row_slices(self) -> Iterator[SharedBuffer]:
        if not self.shape:
            yield self.data.clone()
            return
        n = self.row_len()
        for i in range(self.shape[0]):
            yield self.data.slice(i * n, (i + 1) * n)

    def fill_to_shape(self, shape, fill) -> None:
        """Resize every axis to ``shape`` in place, padding with ``fill``."""
        shape = tuple(int(d) for d in shape)
        current = self.shape
        if len(current) < len(shape):
            current = (1,) * (len(shape) - len(current)) + current
        if len(current) != len(shape):
            raise ArrayShapeError(f"Cannot fill array of shape {self.format_shape()} to shape {format_shape(shape)}")
        if current == shape:
            self.shape = current
            return
        strides = row_major_strides(current)
        src = self.data
        out = []
        for idx in product(*(range(d) for d in shape)):
            if all(i < d for i, d in zip(idx, current)):
                out.append(src[sum(i * s for i, s in zip(idx, strides))])
            else:
                out.append(fill)
        self.data = SharedBuffer.from_list(out)
        self.shape = shape
        self.validate_shape()

    def join(self, other: "Array") -> "Array":
        """Concatenate along the leading axis; a rank-lower side joins as one row."""
        a, b = self, other
        if a.rank() == b.rank():
            if a.rank() == 0:
                return type(a)((2,), SharedBuffer.from_list([*a.data, *b.data]))
            if a.shape[1:] != b.shape[1:]:
                raise ArrayShapeError(
                    f"Cannot join arrays of shapes {a.format_shape()} and {b.format_shape()}"
                )
            shape = (a.shape[0] + b.shape[0], *a.shape[1:])
        elif a.rank() + 1 == b.rank() and a.shape == b.shape[1:]:
            shape = (b.shape[0] + 1, *b.shape[1:])
        elif b.rank() + 1 == a.rank() and b.shape == a.shape[1:]:
            shape = (a.shape[0] + 1, *a.shape[1:])
        else:
            raise ArrayShapeError(f"Cannot join arrays of shapes {a.format_shape()} and {b.format_shape()}")
        data = a.data.clone()
        data.extend_from_slice(b.data)
        return type(a)(shape, data)

    # -- comparison ------------------------------------------------------------

    def key(self) -> tuple:
        return (self.key_family, self.shape, tuple(self.element_key(x) for x in self.data))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Array):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self) -> int:
        return hash(self.key())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape}, data={list(self.data)!r})"


class NumArray(Array):
    __slots__ = ()
    type_name: ClassVar[str] = "number"
    key_family: ClassVar[str] = "number"

    @staticmethod
    def coerce_element(x) -> float:
        if isinstance(x, numbers.Real):
            return float(x)
        raise ArrayTypeError(f"Cannot store {type(x).__name__} {x!r} in a number array")

    @staticmethod
    def element_key(x):
        return _number_key(x)

    @staticmethod
    def integer_codes(items) -> list[int] | None:
        out: list[int] = []
        for x in items:
            if not float(x).is_integer() or x < _INT32_MIN or x > _INT32_MAX:
                return None
            out.append(int(x))
        return out

    @classmethod
    def fill_element(cls, fill_value: Array):
        if fill_value.shape or not isinstance(fill_value, (NumArray, ByteArray)):
            return MISSING
        return float(fill_value.data[0])


class ByteArray(Array):
    __slots__ = ()
    type_name: ClassVar[str] = "byte"
    key_family: ClassVar[str] = "number"

    @staticmethod
    def coerce_element(x) -> int:
        if isinstance(x, numbers.Real) and float(x).is_integer() and 0 <= x <= 255:
            return int(x)
        raise ArrayTypeError(f"Cannot store {x!r} in a byte array")

    @staticmethod
    def element_key(x):
        return float(x)

    @staticmethod
    def integer_codes(items) -> list[int] | None:
        return list(items)

    @classmethod
    def fill_element(cls, fill_value: Array):
        if fill_value.shape:
            return MISSING
        if isinstance(fill_value, ByteArray):
            return fill_value.data[0]
        if isinstance(fill_value, NumArray):
            x = fill_value.data[0]
            if float(x).is_integer() and 0 <= x <= 255:
                return int(x)
        return MISSING


class ComplexArray(Array):
    __slots__ = ()
    type_name: ClassVar[str] = "complex"
    key_family: ClassVar[str] = "number"

    @staticmethod
    def coerce_element(x) -> complex:
        if isinstance(x, numbers.Complex):
            return complex(x)
        raise ArrayTypeError(f"Cannot store {type(x).__name__} {x!r} in a complex array")

    @staticmethod
    def element_key(x):
        # A zero imaginary part keys like the real number it promotes from.
        if x.imag == 0:
            return _number_key(x.real)
        return (_number_key(x.real), _number_key(x.imag))

    @classmethod
    def fill_element(cls, fill_value: Array):
        if fill_value.shape or not isinstance(fill_value, (ComplexArray, NumArray, ByteArray)):
            return MISSING
        return complex(fill_value.data[0])


class CharArray(Array):
    __slots__ = ()
    type_name: ClassVar[str] = "character"
    key_family: ClassVar[str] = "character"

    @staticmethod
    def coerce_element(x) -> str:
        if isinstance(x, str) and len(x) == 1:
            return x
        raise ArrayTypeError(f"Character arrays hold single codepoints, not {x!r}")

    @staticmethod
    def integer_codes(items) -> list[int] | None:
        return [ord(c) for c in items]

    @classmethod
    def fill_element(cls, fill_value: Array):
        if fill_value.shape or not isinstance(fill_value, CharArray):
            return MISSING
        return fill_value.data[0]


class BoxArray(Array):
    __slots__ = ()
    type_name: ClassVar[str] = "box"
    key_family: ClassVar[str] = "box"

    @staticmethod
    def coerce_element(x) -> Boxed:
        if isinstance(x, Boxed):
            return x
        if isinstance(x, Array):
            return Boxed(x)
        raise ArrayTypeError(f"Box arrays hold boxed values, not {type(x).__name__}")

    @staticmethod
    def element_key(x):
        return x.value.key()

    @classmethod
    def fill_element(cls, fill_value: Array):
        if isinstance(fill_value, BoxArray) and not fill_value.shape:
            return fill_value.data[0]
        return Boxed(fill_value)
