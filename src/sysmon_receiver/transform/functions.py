"""Field transform functions applied to raw sysmon values.

Every function here is pure and works on a single value. All of them are
total except ``timestamp``, which rejects anything that is not a
(megaseconds, seconds, microseconds) triple.
"""

import pprint
from typing import Any

# Control characters an upstream producer may legitimately put in text
_TEXT_CONTROL_CHARS = frozenset("\t\n\r\v\f\b\x1b")

MODULE_NAME_LIMIT = 30
FUNCTION_NAME_LIMIT = 40
NO_DATA = "no data"
UNDEFINED = "undefined"


class TimestampShapeError(ValueError):
    """Raised when a timestamp value is not a 3-component integer triple."""


def nullable(value: Any) -> Any:
    """Transform an absent value into the storage NULL marker.

    Args:
        value: Raw field value, ``None`` when the producer sent ``undefined``

    Returns:
        Empty list for ``None``, the value unchanged otherwise
    """
    if value is None:
        return []
    return value


def timestamp(value: Any) -> tuple[int, int, int]:
    """Validate a (megaseconds, seconds, microseconds) timestamp.

    The value is passed through as a tuple; the sink accepts this form directly.

    Raises:
        TimestampShapeError: If value is not a triple of integers
    """
    if not isinstance(value, (tuple, list)) or len(value) != 3:
        raise TimestampShapeError(f"Expected a 3-component timestamp, got {value!r}")

    if not all(isinstance(part, int) and not isinstance(part, bool) for part in value):
        raise TimestampShapeError(f"Timestamp components must be integers, got {value!r}")

    return tuple(value)


def to_string(value: Any, limit: int) -> str:
    """Convert an arbitrary value to a string of at most ``limit`` characters.

    Printable text is kept as-is, including character lists such as the empty
    list. ``None`` (the ``undefined`` atom) is written as ``"undefined"``.
    Everything else is rendered as its structural representation. Never raises.
    """
    if value is None:
        return UNDEFINED[: max(limit, 0)]

    text = _as_printable_text(value)
    if text is None:
        text = _render(value)
    return text[: max(limit, 0)]


def format_function(value: Any) -> str:
    """Format a (module, function, arity) triple as ``module:function/arity``.

    Module and function names are capped at 30 and 40 characters. Any other
    shape yields ``"no data"``.
    """
    if not isinstance(value, (tuple, list)) or len(value) != 3:
        return NO_DATA

    module, function, arity = value
    if not isinstance(arity, int) or isinstance(arity, bool):
        return NO_DATA

    module_name = _name_text(module)
    function_name = _name_text(function)
    if module_name is None or function_name is None:
        return NO_DATA

    return f"{module_name[:MODULE_NAME_LIMIT]}:{function_name[:FUNCTION_NAME_LIMIT]}/{arity}"


def format_stacktrace(value: Any) -> str:
    """Render a stack trace (or anything else) as text."""
    return _render(value)


def is_printable_latin1(codes: Any) -> bool:
    """True if every element is the code of a printable latin-1 character."""
    return all(
        isinstance(code, int)
        and not isinstance(code, bool)
        and 0 <= code <= 255
        and (32 <= code <= 126 or code >= 160 or chr(code) in _TEXT_CONTROL_CHARS)
        for code in codes
    )


def _as_printable_text(value: Any) -> str | None:
    if isinstance(value, list):
        # Character list; the empty list is the empty string
        if is_printable_latin1(value):
            return "".join(chr(code) for code in value)
        return None

    if isinstance(value, (bytes, bytearray)):
        try:
            value = bytes(value).decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(value, str) and all(
        ch.isprintable() or ch in _TEXT_CONTROL_CHARS for ch in value
    ):
        return value

    return None


def _name_text(value: Any) -> str | None:
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return None


def _render(value: Any) -> str:
    try:
        return pprint.pformat(value, compact=True)
    except Exception:
        # Broken __repr__ on a foreign object
        return f"<{type(value).__name__} object at {id(value):#x}>"
