"""Schema registry for sysmon record types.

The registry is the single place that ties the positional wire shape of a
record to the column layout of its sink table.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

import yaml

from .models import RecordType, SchemaEntry, TransformName, field_spec

logger = logging.getLogger(__name__)

T = TransformName


SCHEMA_REGISTRY: Mapping[RecordType, SchemaEntry] = MappingProxyType(
    {
        RecordType.OP_STAT: SchemaEntry(
            record_type=RecordType.OP_STAT,
            table="opstat",
            description="Operation statistics reported by instrumented code",
            fields=(
                field_spec("name", T.TO_STRING, 60),
                field_spec("data", T.TO_STRING, 50),
                field_spec("unit", T.TO_STRING, 10),
                field_spec("sess", T.NULLABLE),
                field_spec("node"),
                field_spec("ts", T.TIMESTAMP),
            ),
        ),
        RecordType.PROC_TOP: SchemaEntry(
            record_type=RecordType.PROC_TOP,
            table="prc",
            description="Top processes by reductions and memory",
            fields=(
                field_spec("node"),
                field_spec("ts", T.TIMESTAMP),
                field_spec("pid", T.TO_STRING, 34),
                field_spec("dreductions"),
                field_spec("dmemory"),
                field_spec("reductions"),
                field_spec("memory"),
                field_spec("message_queue_len"),
                field_spec("current_function", T.FORMAT_FUNCTION),
                field_spec("initial_call", T.FORMAT_FUNCTION),
                field_spec("registered_name", T.TO_STRING, 39),
                field_spec("stack_size"),
                field_spec("heap_size"),
                field_spec("total_heap_size"),
                field_spec("current_stacktrace", T.FORMAT_STACKTRACE),
                field_spec("group_leader"),
            ),
        ),
        RecordType.FUN_TOP: SchemaEntry(
            record_type=RecordType.FUN_TOP,
            table="fun_top",
            description="Functions most processes are currently executing",
            fields=(
                field_spec("node"),
                field_spec("ts", T.TIMESTAMP),
                field_spec("fun", T.FORMAT_FUNCTION),
                field_spec("fun_type"),
                field_spec("num_processes"),
            ),
        ),
        RecordType.APP_TOP: SchemaEntry(
            record_type=RecordType.APP_TOP,
            table="app_top",
            description="Per-application resource usage",
            fields=(
                field_spec("node"),
                field_spec("ts", T.TIMESTAMP),
                field_spec("application", T.TO_STRING, 60),
                field_spec("unit", T.TO_STRING, 60),
                field_spec("value"),
            ),
        ),
        RecordType.NODE_ROLE: SchemaEntry(
            record_type=RecordType.NODE_ROLE,
            table="node_role",
            description="Roles announced by cluster nodes",
            fields=(
                field_spec("node"),
                field_spec("ts", T.TIMESTAMP),
                field_spec("data"),
            ),
        ),
    }
)

# Historical tags still produced by the system monitor
WIRE_TAG_ALIASES: Mapping[str, RecordType] = MappingProxyType(
    {
        "op_stat_kafka_msg1": RecordType.OP_STAT,
        "erl_top": RecordType.PROC_TOP,
    }
)


class SchemaRegistry:
    """Read-only lookup from record type tag to schema entry."""

    def __init__(
        self,
        schemas: Optional[Mapping[RecordType, SchemaEntry]] = None,
        aliases: Optional[Mapping[str, RecordType]] = None,
    ):
        """Initialize schema registry.

        Args:
            schemas: Schema entries by record type. Defaults to SCHEMA_REGISTRY.
            aliases: Extra wire tags mapped to record types. Defaults to
                     WIRE_TAG_ALIASES.
        """
        schemas = SCHEMA_REGISTRY if schemas is None else schemas
        aliases = WIRE_TAG_ALIASES if aliases is None else aliases

        for record_type, entry in schemas.items():
            if entry.record_type != record_type:
                raise ValueError(
                    f"Schema for {record_type.value} is declared as {entry.record_type.value}"
                )

        self._schemas: Mapping[RecordType, SchemaEntry] = MappingProxyType(dict(schemas))
        self._aliases: Mapping[str, RecordType] = MappingProxyType(dict(aliases))

    @classmethod
    def from_yaml(cls, yaml_path: Path) -> "SchemaRegistry":
        """Load a registry from a YAML schema file.

        The file maps record type names to a table and a field list. Each field
        is either a bare name or a mapping with ``name``, ``transform`` and an
        optional ``argument``::

            node_role:
              table: node_role
              fields:
                - node
                - {name: ts, transform: timestamp}
                - data

        Args:
            yaml_path: Path to YAML schema file

        Returns:
            SchemaRegistry with the loaded entries and the default aliases

        Raises:
            FileNotFoundError: If the YAML file doesn't exist
            ValueError: If an entry is malformed
        """
        if not yaml_path.exists():
            raise FileNotFoundError(f"Schema file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"Schema file must contain a mapping: {yaml_path}")

        schemas = {}
        for type_name, entry in data.items():
            record_type = RecordType(type_name)
            schemas[record_type] = _entry_from_dict(record_type, entry)

        logger.info(f"Loaded {len(schemas)} record schemas from {yaml_path}")

        return cls(schemas=schemas)

    def resolve_record_type(self, tag: Union[str, RecordType]) -> Optional[RecordType]:
        """Map a wire tag to its record type.

        Args:
            tag: Record type tag as found on the wire (or a RecordType)

        Returns:
            RecordType if the tag is known to this registry, None otherwise
        """
        if isinstance(tag, RecordType):
            return tag if tag in self._schemas else None

        if tag in self._aliases:
            record_type = self._aliases[tag]
        else:
            try:
                record_type = RecordType(tag)
            except ValueError:
                return None

        return record_type if record_type in self._schemas else None

    def get_schema(self, tag: Union[str, RecordType]) -> Optional[SchemaEntry]:
        """Get schema entry by record type or wire tag.

        Returns:
            SchemaEntry if found, None for an unknown type
        """
        record_type = self.resolve_record_type(tag)
        if record_type is None:
            return None
        return self._schemas[record_type]

    def list_record_types(self) -> list[RecordType]:
        """List all registered record types."""
        return list(self._schemas.keys())

    def list_aliases(self) -> dict[str, RecordType]:
        """List wire tag aliases."""
        return dict(self._aliases)


def _entry_from_dict(record_type: RecordType, entry: Any) -> SchemaEntry:
    if not isinstance(entry, dict) or "table" not in entry or "fields" not in entry:
        raise ValueError(f"Schema for {record_type.value} needs 'table' and 'fields'")

    specs = []
    for item in entry["fields"] or []:
        if isinstance(item, str):
            specs.append(field_spec(item))
        elif isinstance(item, dict) and "name" in item:
            transform = item.get("transform")
            specs.append(
                field_spec(
                    item["name"],
                    TransformName(transform) if transform else None,
                    item.get("argument"),
                )
            )
        else:
            raise ValueError(f"Invalid field in {record_type.value} schema: {item!r}")

    return SchemaEntry(
        record_type=record_type,
        table=entry["table"],
        fields=tuple(specs),
        description=entry.get("description"),
    )


# Global schema registry instance
_registry: Optional[SchemaRegistry] = None


def get_registry() -> SchemaRegistry:
    """Get global schema registry instance (singleton)."""
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
    return _registry
