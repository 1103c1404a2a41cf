"""Receiver configuration models using Pydantic."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PARTITION_DAYS = 1
DEFAULT_RETENTION_DAYS = 30
TIME_INDEX_FIELDS = ("ts",)


class DatabaseConfig(BaseModel):
    """Connection options forwarded to the storage sink with every route."""

    model_config = ConfigDict(frozen=True)

    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = "sysmon"
    user: str = "sysmon"
    password: str = "sysmon_password"


class PartitioningConfig(BaseModel):
    """Time-bucketed storage layout handed to the sink."""

    model_config = ConfigDict(frozen=True)

    bucket_days: int = Field(default=DEFAULT_PARTITION_DAYS, ge=0, description="Partition bucket size")
    retention_days: int = Field(default=DEFAULT_RETENTION_DAYS, ge=0, description="Days of data kept")
    index_fields: tuple[str, ...] = Field(default=TIME_INDEX_FIELDS)


class ReceiverConfig(BaseModel):
    """Complete receiver workflow configuration.

    ``database``, ``retention`` and ``partition_days`` feed the sink
    configuration built by the router. ``kafka_topic``, ``group_id``,
    ``auto_commit`` and ``flush_interval_ms`` are validated here but consumed
    by the message consumer runtime that supplies payloads.
    """

    kafka_topic: str = Field(..., min_length=1, description="Topic carrying sysmon messages")
    group_id: str = Field(..., min_length=1, description="Consumer group ID used by the workflow")
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    retention: int = Field(default=DEFAULT_RETENTION_DAYS, ge=0, description="Retention in days")
    partition_days: int = Field(
        default=DEFAULT_PARTITION_DAYS, ge=0, description="Partition bucket size in days"
    )

    # Consumer settings fixed by the workflow
    auto_commit: bool = False
    flush_interval_ms: int = Field(default=1000, ge=1)

    def partitioning(self) -> PartitioningConfig:
        """Build the partitioning parameters used by the sink router."""
        return PartitioningConfig(bucket_days=self.partition_days, retention_days=self.retention)


def load_receiver_config(path: str | Path) -> ReceiverConfig:
    """Load receiver configuration from YAML file.

    Args:
        path: Path to YAML configuration file

    Returns:
        Validated ReceiverConfig instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValueError: If config is invalid
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Receiver config not found: {config_path}")

    with open(config_path) as f:
        config_data = yaml.safe_load(f) or {}

    return ReceiverConfig(**config_data)
