"""Caller-supplied fill values.

Operations that must materialize missing elements ask the ``FillContext``
passed to them whether a fill exists for the array type they are working on.
The context is an explicit argument, never ambient global state.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from .array import Array

logger = logging.getLogger(__name__)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Final = _Missing()


@dataclass(frozen=True)
class FillContext:
    """Holds at most one fill value; each array type decides whether it can use it."""

    value: "Array | None" = None

    def fill_for(self, array_type: "type[Array]"):
        """Return the fill element for ``array_type`` or ``MISSING``."""
        if self.value is None:
            return MISSING
        element = array_type.fill_element(self.value)
        if element is not MISSING:
            logger.debug("using %s fill %r", array_type.type_name, element)
        return element

    def has_fill(self, array_type: "type[Array]") -> bool:
        return self.fill_for(array_type) is not MISSING

    def missing_note(self, array_type: "type[Array]") -> str:
        if self.value is None:
            return ". A fill value is not available"
        return f". The fill value is {self.value.type_name}, which cannot fill a {array_type.type_name} array"


NO_FILL: Final[FillContext] = FillContext()


def with_fill(value) -> FillContext:
    from .values import as_value

    return FillContext(as_value(value))
