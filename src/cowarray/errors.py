"""Structured error types for array transformations."""

from __future__ import annotations

from dataclasses import dataclass


def format_shape(shape) -> str:
    return "[" + " × ".join(str(int(d)) for d in shape) + "]"


class ArrayError(Exception):
    """Base class for structured cowarray errors."""


class ArrayShapeError(ArrayError):
    """Shape/rank/axis compatibility failure."""


class ArrayTypeError(ArrayError):
    """Element-type pairing or operand-kind failure."""


class ArrayInverseError(ArrayError):
    """An undo was requested that cannot be performed unambiguously."""


@dataclass(eq=False)
class ArrayBoundsError(ArrayError):
    """Index outside ``[-bound, bound)`` with no fill value to fall back on."""

    index: int
    bound: int
    axis: int | None = None
    shape: tuple[int, ...] | None = None
    note: str = ""

    def __str__(self) -> str:
        where = ""
        if self.axis is not None:
            where = f" (dimension {self.axis})"
        in_shape = ""
        if self.shape is not None:
            in_shape = f" in shape {format_shape(self.shape)}"
        return f"Index {self.index} is out of bounds of length {self.bound}{where}{in_shape}{self.note}"
