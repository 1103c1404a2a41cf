"""Decode, validate, transform and route sysmon records.

Data flow:
    payload bytes
        ↓ parse_erlang_term
    RawRecord(tag, values)
        ↓ RecordDecoder (SchemaRegistry + transforms)
    DecodedRecord | Dropped
        ↓ SinkRouter
    (SinkConfiguration, DecodedRecord) → sink
"""

from ..config import PartitioningConfig
from .decoder import DecodedRecord, DecodeResult, Dropped, DropReason, RecordDecoder
from .payload import PayloadDecodeError, RawRecord, normalize_term, parse_erlang_term
from .receiver import MemorySink, ReceiverResult, SysmonReceiver
from .router import SinkConfiguration, SinkRouter

__all__ = [
    "DecodeResult",
    "DecodedRecord",
    "DropReason",
    "Dropped",
    "MemorySink",
    "PartitioningConfig",
    "PayloadDecodeError",
    "RawRecord",
    "ReceiverResult",
    "RecordDecoder",
    "SinkConfiguration",
    "SinkRouter",
    "SysmonReceiver",
    "normalize_term",
    "parse_erlang_term",
]
