"""Record schemas: record types, field specifications and the registry."""

from .models import (
    BareField,
    FieldSpec,
    RecordType,
    SchemaEntry,
    TransformedField,
    TransformedFieldWithArg,
    TransformName,
    field_spec,
)
from .registry import SCHEMA_REGISTRY, WIRE_TAG_ALIASES, SchemaRegistry, get_registry

__all__ = [
    "BareField",
    "FieldSpec",
    "RecordType",
    "SCHEMA_REGISTRY",
    "SchemaEntry",
    "SchemaRegistry",
    "TransformName",
    "TransformedField",
    "TransformedFieldWithArg",
    "WIRE_TAG_ALIASES",
    "field_spec",
    "get_registry",
]
