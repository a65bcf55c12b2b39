"""Reference-counted copy-on-write element storage.

A ``SharedBuffer`` is a handle onto a window ``[start, end)`` of a backing
list. Handles are cheap to clone and to slice: both alias the backing list.
Every mutation goes through :meth:`SharedBuffer.modify` (or
:meth:`SharedBuffer.as_mut_slice`), which only touches the backing list in
place when this handle is its sole owner and its window spans the whole list.
Otherwise the visible window is copied into fresh storage first, so older
handles never observe a later writer.
"""

from __future__ import annotations

import logging
import weakref
from collections.abc import Iterable, Iterator, Sequence
from itertools import islice
from typing import Callable, Generic, TypeVar, overload

T = TypeVar("T")
R = TypeVar("R")

logger = logging.getLogger(__name__)


class _Storage(Generic[T]):
    __slots__ = ("items", "handles", "__weakref__")

    def __init__(self, items: list[T]) -> None:
        self.items = items
        self.handles: weakref.WeakSet[SharedBuffer[T]] = weakref.WeakSet()


class SharedBuffer(Sequence, Generic[T]):
    __slots__ = ("_storage", "_start", "_end", "__weakref__")

    def __init__(self, items: Iterable[T] = ()) -> None:
        data = list(items)
        self._attach(_Storage(data), 0, len(data))

    @classmethod
    def new(cls) -> "SharedBuffer[T]":
        return cls()

    @classmethod
    def with_capacity(cls, capacity: int) -> "SharedBuffer[T]":
        # Python lists grow amortized; the capacity is only a hint.
        if capacity < 0:
            raise ValueError("capacity must be non-negative")
        return cls()

    @classmethod
    def from_list(cls, items: list[T]) -> "SharedBuffer[T]":
        """Take ownership of ``items`` without copying."""
        out = object.__new__(cls)
        out._attach(_Storage(items), 0, len(items))
        return out

    @classmethod
    def repeat(cls, item: T, count: int) -> "SharedBuffer[T]":
        return cls.from_list([item] * max(0, count))

    def _attach(self, storage: _Storage[T], start: int, end: int) -> None:
        self._storage = storage
        self._start = start
        self._end = end
        storage.handles.add(self)

    def _replace(self, items: list[T]) -> None:
        self._storage.handles.discard(self)
        self._attach(_Storage(items), 0, len(items))

    # -- ownership ---------------------------------------------------------

    def is_unique(self) -> bool:
        return len(self._storage.handles) == 1

    def is_full_extent(self) -> bool:
        return self._start == 0 and self._end == len(self._storage.items)

    def is_copy_of(self, other: "SharedBuffer[T]") -> bool:
        return self._storage is other._storage and self._start == other._start and self._end == other._end

    def clone(self) -> "SharedBuffer[T]":
        out = object.__new__(type(self))
        out._attach(self._storage, self._start, self._end)
        return out

    __copy__ = clone

    # -- reading -----------------------------------------------------------

    def __len__(self) -> int:
        return self._end - self._start

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> list[T]: ...

    def __getitem__(self, index):
        if isinstance(index, slice):
            return self._storage.items[self._start : self._end][index]
        n = self._end - self._start
        if index < 0:
            index += n
        if index < 0 or index >= n:
            raise IndexError("buffer index out of range")
        return self._storage.items[self._start + index]

    def __iter__(self) -> Iterator[T]:
        return islice(self._storage.items, self._start, self._end)

    def __repr__(self) -> str:
        return f"SharedBuffer({list(self)!r})"

    def as_slice(self) -> Sequence[T]:
        """Read-only view; it holds a handle, so later writers detach instead of mutating it."""
        return self.clone()

    def to_list(self) -> list[T]:
        return self._storage.items[self._start : self._end]

    def slice(self, start: int = 0, stop: int | None = None) -> "SharedBuffer[T]":
        """O(1) view of ``[start, stop)`` relative to this handle's window."""
        begin = self._start + start
        end = self._end if stop is None else self._start + stop
        if start < 0 or begin > end or end > self._end:
            raise IndexError(f"slice [{start}, {stop}) is outside a buffer of length {len(self)}")
        out = object.__new__(type(self))
        out._attach(self._storage, begin, end)
        return out

    def into_slices(self, size: int) -> Iterator["SharedBuffer[T]"]:
        n = len(self)
        if size <= 0 or n % size != 0:
            raise ValueError(f"buffer of length {n} cannot be split into slices of {size}")
        for i in range(n // size):
            yield self.slice(i * size, (i + 1) * size)

    # -- writing -----------------------------------------------------------

    def modify(self, f: Callable[[list[T]], R]) -> R:
        """Run ``f`` against exclusively owned, full-extent storage."""
        if self.is_unique() and self.is_full_extent():
            items = self._storage.items
            res = f(items)
            self._end = len(items)
            return res
        items = self.to_list()
        logger.debug(
            "detaching %d elements (unique=%s, full_extent=%s)",
            len(items),
            self.is_unique(),
            self.is_full_extent(),
        )
        res = f(items)
        self._replace(items)
        return res

    def as_mut_slice(self) -> list[T]:
        """Exclusively owned backing list; writes through it are private to this handle."""
        if not (self.is_unique() and self.is_full_extent()):
            self._replace(self.to_list())
        return self._storage.items

    def extend_from_slice(self, other: Iterable[T]) -> None:
        self.modify(lambda items: items.extend(other))

    extend = extend_from_slice

    def truncate(self, length: int) -> None:
        self._end = min(self._start + max(0, length), self._end)

    def clear(self) -> None:
        self._end = self._start

    def split_off(self, at: int) -> "SharedBuffer[T]":
        if at < 0 or at > len(self):
            raise IndexError(f"split point {at} is outside a buffer of length {len(self)}")
        other = SharedBuffer(self._storage.items[self._start + at : self._end])
        self.truncate(at)
        return other
