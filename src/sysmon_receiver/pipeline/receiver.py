"""Receiver stage: decode payloads and hand records to a table sink.

Usage:
    >>> sink = MemorySink()
    >>> receiver = SysmonReceiver(sink)
    >>> result = receiver.handle_batch(payloads)
    >>> sink.rows["node_role"]
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Optional

from ..config import PartitioningConfig
from .decoder import DecodedRecord, Dropped, DropReason, RecordDecoder
from .router import SinkConfiguration, SinkRouter

logger = logging.getLogger(__name__)

# Outbound interface: sink(configuration, record)
RecordSink = Callable[[SinkConfiguration, DecodedRecord], Any]


@dataclass
class ReceiverResult:
    """Outcome of handling a batch of payloads."""

    received: int = 0
    decoded: int = 0
    dropped: dict[DropReason, int] = field(default_factory=dict)
    sink_errors: int = 0

    @property
    def dropped_total(self) -> int:
        return sum(self.dropped.values())


class MemorySink:
    """Sink that keeps rows in memory, keyed by table name."""

    def __init__(self):
        self.rows: dict[str, list[dict[str, Any]]] = defaultdict(list)
        self.configurations: dict[str, SinkConfiguration] = {}

    def __call__(self, config: SinkConfiguration, record: DecodedRecord) -> None:
        self.configurations[config.table] = config
        self.rows[config.table].append({name: record.fields[name] for name in config.fields})


class SysmonReceiver:
    """Decode sysmon payloads and route decoded records to a sink.

    Malformed or unrecognized payloads are dropped by the decoder; sink
    failures are logged and counted. Neither stops the stream.
    """

    def __init__(
        self,
        sink: RecordSink,
        partitioning: Optional[PartitioningConfig] = None,
        decoder: Optional[RecordDecoder] = None,
        router: Optional[SinkRouter] = None,
    ):
        """Initialize receiver.

        Args:
            sink: Callable receiving (SinkConfiguration, DecodedRecord)
            partitioning: Partitioning parameters, ignored if router is given
            decoder: Record decoder (default: global registry, Erlang terms)
            router: Sink router
        """
        self.sink = sink
        self.decoder = decoder or RecordDecoder()
        self.router = router or SinkRouter(partitioning, registry=self.decoder.registry)
        self.reset_stats()

    def handle(self, payload: bytes) -> bool:
        """Decode one payload and write it to the sink.

        Returns:
            True if a record reached the sink, False if it was dropped or the
            sink failed
        """
        result = self.decoder.decode(payload)

        if isinstance(result, Dropped):
            self.stats["dropped"][result.reason.value] += 1
            return False

        config = self.router.route(result.record_type)

        try:
            self.sink(config, result)
        except Exception as e:
            self.stats["sink_errors"] += 1
            logger.error(f"Failed to store {result.record_type.value} record in {config.table}: {e}")
            return False

        self.stats["decoded"] += 1
        self.stats["by_table"][config.table] += 1
        return True

    def handle_batch(self, payloads: Iterable[bytes]) -> ReceiverResult:
        """Handle a batch of payloads in order.

        Returns:
            ReceiverResult with counts for this batch only
        """
        before = self.get_stats()
        received = 0
        for payload in payloads:
            received += 1
            self.handle(payload)
        after = self.get_stats()

        dropped = {}
        for reason in DropReason:
            count = after["dropped"][reason.value] - before["dropped"][reason.value]
            if count:
                dropped[reason] = count

        result = ReceiverResult(
            received=received,
            decoded=after["decoded"] - before["decoded"],
            dropped=dropped,
            sink_errors=after["sink_errors"] - before["sink_errors"],
        )
        logger.info(
            f"Handled {result.received} payloads: {result.decoded} stored, "
            f"{result.dropped_total} dropped, {result.sink_errors} sink errors"
        )
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get receiver statistics.

        Returns:
            Dict with decoded/dropped/sink error counts and per-table counts
        """
        return {
            "decoded": self.stats["decoded"],
            "sink_errors": self.stats["sink_errors"],
            "dropped": dict(self.stats["dropped"]),
            "by_table": dict(self.stats["by_table"]),
        }

    def reset_stats(self) -> None:
        """Reset receiver statistics."""
        self.stats = {
            "decoded": 0,
            "sink_errors": 0,
            "dropped": {reason.value: 0 for reason in DropReason},
            "by_table": defaultdict(int),
        }
