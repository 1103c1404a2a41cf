"""Pytest configuration and fixtures for all tests."""

import struct
from types import SimpleNamespace
from typing import Callable

import pytest

from sysmon_receiver.pipeline.decoder import RecordDecoder
from sysmon_receiver.pipeline.payload import RawRecord
from sysmon_receiver.schema.registry import SchemaRegistry


# ============================================================================
# External term format builders
# ============================================================================

VERSION = b"\x83"


def atom(name: str) -> bytes:
    """ATOM_EXT."""
    encoded = name.encode("latin-1")
    return b"d" + struct.pack(">H", len(encoded)) + encoded


def integer(value: int) -> bytes:
    """SMALL_INTEGER_EXT or INTEGER_EXT."""
    if 0 <= value <= 255:
        return b"a" + bytes([value])
    return b"b" + struct.pack(">i", value)


def binary(data: bytes) -> bytes:
    """BINARY_EXT."""
    return b"m" + struct.pack(">I", len(data)) + data


def charlist(text: str) -> bytes:
    """STRING_EXT."""
    encoded = text.encode("latin-1")
    return b"k" + struct.pack(">H", len(encoded)) + encoded


def nil() -> bytes:
    """NIL_EXT, the empty list."""
    return b"j"


def tuple_of(*elements: bytes) -> bytes:
    """SMALL_TUPLE_EXT."""
    return b"h" + bytes([len(elements)]) + b"".join(elements)


def term(body: bytes) -> bytes:
    """Prefix an encoded term with the format version byte."""
    return VERSION + body


# ============================================================================
# Payload Fixtures
# ============================================================================

@pytest.fixture
def node_role_payload() -> bytes:
    """Well-formed node_role message."""
    return term(
        tuple_of(
            atom("node_role"),
            atom("nodeA"),
            tuple_of(integer(1), integer(2), integer(3)),
            atom("leader"),
        )
    )


@pytest.fixture
def op_stat_payload() -> bytes:
    """Well-formed op_stat message using the historical wire tag."""
    return term(
        tuple_of(
            atom("op_stat_kafka_msg1"),
            binary(b"db.query"),
            charlist("42"),
            binary(b"ms"),
            atom("undefined"),
            atom("node@host"),
            tuple_of(integer(1700), integer(0), integer(5)),
        )
    )


# ============================================================================
# Decoder Fixtures
# ============================================================================

def passthrough_parser(payload: RawRecord) -> RawRecord:
    """Parser for tests that feed RawRecord objects directly."""
    if not isinstance(payload, RawRecord):
        raise ValueError(f"Not a raw record: {payload!r}")
    return payload


@pytest.fixture
def registry() -> SchemaRegistry:
    """Registry with the built-in schemas."""
    return SchemaRegistry()


@pytest.fixture
def raw_decoder(registry: SchemaRegistry) -> RecordDecoder:
    """Decoder that accepts RawRecord objects instead of bytes."""
    return RecordDecoder(registry=registry, parser=passthrough_parser)


@pytest.fixture
def raw() -> Callable[..., RawRecord]:
    """Factory for RawRecord objects."""

    def _make(tag: str, *values) -> RawRecord:
        return RawRecord(tag=tag, values=tuple(values))

    return _make


@pytest.fixture
def etf():
    """External term format builders."""
    return SimpleNamespace(
        atom=atom,
        integer=integer,
        binary=binary,
        charlist=charlist,
        nil=nil,
        tuple_of=tuple_of,
        term=term,
    )
