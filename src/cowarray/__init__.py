"""cowarray public API."""

from .array import Array, BoxArray, Boxed, ByteArray, CharArray, ComplexArray, NumArray
from .buffer import SharedBuffer
from .errors import ArrayBoundsError, ArrayError, ArrayInverseError, ArrayShapeError, ArrayTypeError
from .fill import MISSING, NO_FILL, FillContext, with_fill
from .keep import keep, unkeep
from .reshape import rerank, reshape, unrerank, unreshape
from .rotate import rotate, rotate_depth
from .structure import drop, pick, select, take, undrop, unpick, unselect, untake
from .values import Value, array, boxes, byte, chars, complex_array, num, scalar, to_python

try:
    from .search import find, index_of, member, progressive_index_of
    from .windows import windows
except ModuleNotFoundError as exc:
    if exc.name and exc.name.startswith("jax"):
        _jax_import_error = exc

        def windows(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for windows(). Install runtime deps first."
            ) from _jax_import_error

        def find(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for find(). Install runtime deps first."
            ) from _jax_import_error

        def member(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for member(). Install runtime deps first."
            ) from _jax_import_error

        def index_of(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for index_of(). Install runtime deps first."
            ) from _jax_import_error

        def progressive_index_of(*_args, **_kwargs):
            raise ModuleNotFoundError(
                "jax is required for progressive_index_of(). Install runtime deps first."
            ) from _jax_import_error

    else:
        raise

__all__ = [
    "Array",
    "NumArray",
    "ByteArray",
    "ComplexArray",
    "CharArray",
    "BoxArray",
    "Boxed",
    "Value",
    "SharedBuffer",
    "FillContext",
    "NO_FILL",
    "MISSING",
    "with_fill",
    "array",
    "num",
    "byte",
    "complex_array",
    "chars",
    "boxes",
    "scalar",
    "to_python",
    "reshape",
    "unreshape",
    "rerank",
    "unrerank",
    "keep",
    "unkeep",
    "rotate",
    "rotate_depth",
    "windows",
    "find",
    "member",
    "index_of",
    "progressive_index_of",
    "pick",
    "unpick",
    "take",
    "untake",
    "drop",
    "undrop",
    "select",
    "unselect",
    "ArrayError",
    "ArrayShapeError",
    "ArrayTypeError",
    "ArrayBoundsError",
    "ArrayInverseError",
]
