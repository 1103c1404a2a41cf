"""Sink routing: per record type table layout and partitioning.

The router performs no I/O. It derives the configuration a table-oriented
sink needs to store records of a given type.
"""

import logging
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from ..config import DatabaseConfig, PartitioningConfig, ReceiverConfig
from ..schema.models import RecordType
from ..schema.registry import SchemaRegistry, get_registry

logger = logging.getLogger(__name__)


class SinkConfiguration(BaseModel):
    """Table name, column order, partitioning and database for one record type."""

    model_config = ConfigDict(frozen=True)

    record_type: RecordType
    table: str
    fields: tuple[str, ...]
    partitioning: PartitioningConfig
    database: Optional[DatabaseConfig] = None


class SinkRouter:
    """Derive sink configuration for decoded records."""

    def __init__(
        self,
        partitioning: Optional[PartitioningConfig] = None,
        registry: Optional[SchemaRegistry] = None,
        database: Optional[DatabaseConfig] = None,
    ):
        """Initialize sink router.

        Args:
            partitioning: Pipeline-level partitioning (defaults: 1 day buckets,
                          30 days retention)
            registry: Schema registry (defaults to the global registry)
            database: Connection options handed to the sink with every route
        """
        self.partitioning = partitioning or PartitioningConfig()
        self.registry = registry or get_registry()
        self.database = database
        # The registry is static, so configurations can be computed once per type
        self._cache: dict[RecordType, SinkConfiguration] = {}

    @classmethod
    def from_config(
        cls, config: ReceiverConfig, registry: Optional[SchemaRegistry] = None
    ) -> "SinkRouter":
        """Create a router from receiver configuration."""
        return cls(config.partitioning(), registry=registry, database=config.database)

    def route(self, record_type: Union[RecordType, str]) -> SinkConfiguration:
        """Get sink configuration for a record type.

        Args:
            record_type: Record type (or wire tag)

        Returns:
            SinkConfiguration for the type

        Raises:
            KeyError: If the record type has no schema
        """
        schema = self.registry.get_schema(record_type)
        if schema is None:
            raise KeyError(f"No schema for record type {record_type!r}")

        config = self._cache.get(schema.record_type)
        if config is None:
            config = SinkConfiguration(
                record_type=schema.record_type,
                table=schema.table,
                fields=tuple(schema.field_names),
                partitioning=self.partitioning,
                database=self.database,
            )
            self._cache[schema.record_type] = config
            logger.debug(f"Routing {schema.record_type.value} records to table {schema.table}")

        return config
