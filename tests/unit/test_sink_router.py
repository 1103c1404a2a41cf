"""Unit tests for the sink router."""

import pytest
from pydantic import ValidationError

from sysmon_receiver.config import DatabaseConfig, PartitioningConfig, ReceiverConfig
from sysmon_receiver.pipeline.decoder import DecodedRecord
from sysmon_receiver.pipeline.router import SinkConfiguration, SinkRouter
from sysmon_receiver.schema.models import RecordType


class TestPartitioningConfig:
    """Test PartitioningConfig model."""

    def test_defaults(self):
        config = PartitioningConfig()

        assert config.bucket_days == 1
        assert config.retention_days == 30
        assert config.index_fields == ("ts",)

    def test_zero_bucket_days_allowed(self):
        assert PartitioningConfig(bucket_days=0).bucket_days == 0

    def test_bucket_days_not_negative(self):
        with pytest.raises(ValidationError):
            PartitioningConfig(bucket_days=-1)

    def test_retention_not_negative(self):
        with pytest.raises(ValidationError):
            PartitioningConfig(retention_days=-1)


class TestSinkRouter:
    """Test SinkRouter.route."""

    @pytest.fixture
    def router(self, registry):
        return SinkRouter(registry=registry)

    def test_node_role(self, router):
        config = router.route(RecordType.NODE_ROLE)

        assert isinstance(config, SinkConfiguration)
        assert config.table == "node_role"
        assert config.fields == ("node", "ts", "data")
        assert config.partitioning == PartitioningConfig()
        assert config.database is None

    def test_op_stat_strips_transform_metadata(self, router):
        config = router.route("op_stat")

        assert config.table == "opstat"
        assert config.fields == ("name", "data", "unit", "sess", "node", "ts")

    def test_wire_tag(self, router):
        assert router.route("erl_top").record_type == RecordType.PROC_TOP

    def test_custom_partitioning(self, registry):
        router = SinkRouter(PartitioningConfig(bucket_days=7, retention_days=90), registry=registry)

        partitioning = router.route(RecordType.APP_TOP).partitioning

        assert partitioning.bucket_days == 7
        assert partitioning.retention_days == 90
        assert partitioning.index_fields == ("ts",)

    def test_database_forwarded(self, registry):
        database = DatabaseConfig(host="db.internal", port=6432)
        router = SinkRouter(registry=registry, database=database)

        assert router.route(RecordType.NODE_ROLE).database == database
        assert router.route("op_stat").database == database

    def test_from_config(self, registry):
        config = ReceiverConfig(
            kafka_topic="system_monitor",
            group_id="sysmon-receiver",
            database={"host": "db.internal", "database": "metrics"},
            retention=14,
            partition_days=0,
        )

        route = SinkRouter.from_config(config, registry=registry).route("erl_top")

        assert route.table == "prc"
        assert route.database == config.database
        assert route.database.database == "metrics"
        assert route.partitioning == PartitioningConfig(bucket_days=0, retention_days=14)

    def test_memoized(self, router):
        assert router.route(RecordType.FUN_TOP) is router.route("fun_top")

    def test_unknown_type(self, router):
        with pytest.raises(KeyError):
            router.route("mystery")

    @pytest.mark.parametrize("record_type", list(RecordType))
    def test_field_order_matches_decoded_record(self, router, registry, record_type):
        schema = registry.get_schema(record_type)
        record = DecodedRecord(
            record_type=record_type,
            fields={name: None for name in schema.field_names},
        )

        assert list(router.route(record_type).fields) == record.field_names

    def test_decoded_record_round_trip(self, router, raw_decoder, raw):
        record = raw_decoder.decode(raw("app_top", "n", (1, 2, 3), "kernel", "memory", 1024))

        assert list(router.route(record.record_type).fields) == record.field_names
