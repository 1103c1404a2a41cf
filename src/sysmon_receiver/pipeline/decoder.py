"""Record decoder: payload -> validated, transformed record or a drop.

Decoding is all-or-nothing per record and never raises. Every dropped record
is reported exactly once as a WARNING log record whose ``diagnostic`` extra
holds the key-value context needed to reconstruct the failure.
"""

import logging
import traceback
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterable, Iterator, Mapping, Optional, Union

from ..schema.models import RecordType
from ..schema.registry import SchemaRegistry, get_registry
from .payload import PayloadParser, RawRecord, parse_erlang_term

logger = logging.getLogger(__name__)


class DropReason(str, Enum):
    """Why a payload did not produce a record."""

    DECODE_ERROR = "decode_error"
    UNKNOWN_TYPE = "unknown_type"
    ARITY_MISMATCH = "arity_mismatch"
    TRANSFORM_ERROR = "transform_error"


@dataclass(frozen=True)
class DecodedRecord:
    """Fully transformed record, fields in schema order."""

    record_type: RecordType
    fields: Mapping[str, Any]

    @property
    def field_names(self) -> list[str]:
        return list(self.fields.keys())

    def row(self) -> list[Any]:
        """Field values in schema (column) order."""
        return list(self.fields.values())


@dataclass(frozen=True)
class Dropped:
    """A payload that was discarded."""

    reason: DropReason
    detail: str
    tag: Optional[str] = None
    context: Mapping[str, Any] = field(default_factory=dict, compare=False)


DecodeResult = Union[DecodedRecord, Dropped]


class RecordDecoder:
    """Decode raw sysmon payloads using the schema registry.

    The decoder holds no mutable state; one instance can be shared by any
    number of concurrent callers.
    """

    def __init__(
        self,
        registry: Optional[SchemaRegistry] = None,
        parser: PayloadParser = parse_erlang_term,
    ):
        """Initialize record decoder.

        Args:
            registry: Schema registry (defaults to the global registry)
            parser: Callable turning payload bytes into a RawRecord
        """
        self.registry = registry or get_registry()
        self.parser = parser

    def decode(self, payload: bytes) -> DecodeResult:
        """Decode a single payload.

        Args:
            payload: Raw message value

        Returns:
            DecodedRecord on success, Dropped otherwise
        """
        try:
            raw = self.parser(payload)
        except Exception as e:
            # PayloadDecodeError, or anything a custom parser raises
            return self._drop_on_error(DropReason.DECODE_ERROR, payload, e)

        try:
            return self.decode_raw(raw)
        except Exception as e:
            return self._drop_on_error(DropReason.TRANSFORM_ERROR, payload, e, tag=raw.tag)

    def decode_raw(self, raw: RawRecord) -> DecodeResult:
        """Validate and transform an already parsed record.

        Transform failures are raised to the caller; ``decode`` turns them
        into a transform_error drop.
        """
        schema = self.registry.get_schema(raw.tag)
        if schema is None:
            return self._drop_unknown(
                DropReason.UNKNOWN_TYPE,
                raw,
                "Unknown record",
                f"Unknown record type {raw.tag!r}",
            )

        if len(raw.values) != schema.arity:
            return self._drop_unknown(
                DropReason.ARITY_MISMATCH,
                raw,
                "Record arity mismatch",
                f"{raw.tag!r} carries {len(raw.values)} values, schema expects {schema.arity}",
            )

        fields = {spec.name: spec.apply(value) for spec, value in zip(schema.fields, raw.values)}

        return DecodedRecord(record_type=schema.record_type, fields=MappingProxyType(fields))

    def decode_many(self, payloads: Iterable[bytes]) -> Iterator[DecodeResult]:
        """Decode payloads one by one; a bad payload never stops the stream."""
        for payload in payloads:
            yield self.decode(payload)

    def _drop_unknown(
        self, reason: DropReason, raw: RawRecord, what: str, detail: str
    ) -> Dropped:
        diagnostic = {
            "what": what,
            "record": raw.tag,
            "fields": list(raw.values),
        }
        logger.warning(f"{what}: {detail}", extra={"diagnostic": diagnostic})
        return Dropped(reason=reason, detail=detail, tag=raw.tag, context=diagnostic)

    def _drop_on_error(
        self,
        reason: DropReason,
        payload: Any,
        error: Exception,
        tag: Optional[str] = None,
    ) -> Dropped:
        diagnostic = {
            "what": "Badly formatted sysmon message",
            "message": payload,
            "error_class": type(error).__name__,
            "error": str(error),
            "stacktrace": traceback.format_exception(type(error), error, error.__traceback__),
        }
        logger.warning(
            f"Badly formatted sysmon message ({reason.value}): {type(error).__name__}: {error}",
            extra={"diagnostic": diagnostic},
        )
        return Dropped(reason=reason, detail=str(error), tag=tag, context=diagnostic)
