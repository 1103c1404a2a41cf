"""Inbound payload parsing.

System monitor messages arrive as records serialized in the Erlang external
term format: a tuple whose first element is the record tag and whose
remaining elements are the positional field values. Decoding is delegated to
``erlang_py``; the result is normalized into plain Python values so that
transforms and sinks never see library-specific wrapper types.
"""

from dataclasses import dataclass
from typing import Any, Callable

import erlang

from ..transform.functions import is_printable_latin1


class PayloadDecodeError(ValueError):
    """Raised when a payload cannot be parsed into a tagged record."""


@dataclass(frozen=True)
class RawRecord:
    """Record tag plus positional, untyped field values."""

    tag: str
    values: tuple[Any, ...]


PayloadParser = Callable[[bytes], RawRecord]


def parse_erlang_term(payload: bytes) -> RawRecord:
    """Parse an Erlang external term format payload into a RawRecord.

    Args:
        payload: Message value as consumed from the topic

    Returns:
        RawRecord with the tag and normalized field values

    Raises:
        PayloadDecodeError: If the payload is not a term, or the term is not a
            non-empty tuple tagged with an atom
    """
    if not isinstance(payload, (bytes, bytearray)):
        raise PayloadDecodeError(f"Expected bytes payload, got {type(payload).__name__}")

    try:
        term = erlang.binary_to_term(bytes(payload))
    except Exception as e:
        raise PayloadDecodeError(f"Invalid external term format: {e}") from e

    if not isinstance(term, tuple) or not term:
        raise PayloadDecodeError(f"Expected a tagged tuple, got {type(term).__name__}")

    tag = _atom_name(term[0])
    if tag is None:
        raise PayloadDecodeError(f"Record tag is not an atom: {term[0]!r}")

    return RawRecord(tag=tag, values=tuple(normalize_term(v) for v in term[1:]))


def normalize_term(term: Any) -> Any:
    """Convert a decoded Erlang term into plain Python values.

    Atoms become strings (``true``/``false`` become booleans and ``undefined``
    becomes None), binaries become bytes, printable latin-1 charlists become
    strings while other small-integer lists stay lists of ints, and containers
    are converted recursively. Pids become ``<node.id.serial>``.
    Other values are returned unchanged.
    """
    if term is None or isinstance(term, (bool, int, float, str)):
        return term

    if isinstance(term, erlang.OtpErlangAtom):
        name = _atom_name(term)
        if name == "true":
            return True
        if name == "false":
            return False
        if name == "undefined":
            return None
        return name

    if isinstance(term, erlang.OtpErlangBinary):
        return bytes(term.value)

    if isinstance(term, (bytes, bytearray)):
        # STRING_EXT: any list of byte-sized integers, text or not
        if is_printable_latin1(term):
            return bytes(term).decode("latin-1")
        return list(term)

    if isinstance(term, tuple):
        return tuple(normalize_term(item) for item in term)

    if isinstance(term, list):
        return [normalize_term(item) for item in term]

    if isinstance(term, dict):
        return {_hashable(normalize_term(k)): normalize_term(v) for k, v in term.items()}

    if isinstance(term, erlang.OtpErlangList):
        # Improper list: keep the elements including the tail
        return [normalize_term(item) for item in term.value]

    if isinstance(term, erlang.OtpErlangPid):
        return _format_pid(term)

    return term


def _atom_name(term: Any) -> str | None:
    if not isinstance(term, erlang.OtpErlangAtom):
        return None

    value = term.value
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, str):
        return value
    return None


def _hashable(value: Any) -> Any:
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, dict):
        return tuple(sorted(((_hashable(k), _hashable(v)) for k, v in value.items()), key=repr))
    return value


def _format_pid(pid: Any) -> str:
    node = normalize_term(getattr(pid, "node", None))
    number = _bytes_to_int(getattr(pid, "id", b""))
    serial = _bytes_to_int(getattr(pid, "serial", b""))
    return f"<{node}.{number}.{serial}>"


def _bytes_to_int(value: Any) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, (bytes, bytearray)):
        return int.from_bytes(value, "big")
    return 0
