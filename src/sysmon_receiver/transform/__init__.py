"""Pure field transforms used by the record schemas."""

from .functions import (
    TimestampShapeError,
    format_function,
    format_stacktrace,
    is_printable_latin1,
    nullable,
    timestamp,
    to_string,
)

__all__ = [
    "TimestampShapeError",
    "format_function",
    "format_stacktrace",
    "is_printable_latin1",
    "nullable",
    "timestamp",
    "to_string",
]
