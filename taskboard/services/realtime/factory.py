from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from taskboard.config.settings import Settings, get_settings
from taskboard.core.external_services import ClientFactory, RedisConnectionManager
from taskboard.services.realtime.event_log_store import EventLogStore
from taskboard.services.realtime.sequence_counter import SequenceCounter
from taskboard.services.realtime.snapshot_cache import SnapshotCache
from taskboard.services.realtime.update_publisher import FailureSink, UpdatePublisher


@dataclass
class RealtimeServices:
    """同一个连接管理器之上的实时组件集合"""

    connection: RedisConnectionManager
    counter: SequenceCounter
    event_log: EventLogStore
    snapshots: SnapshotCache
    publisher: UpdatePublisher

    def close(self) -> None:
        self.connection.close()


def build_realtime_services(
    settings: Optional[Settings] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
    failure_sink: Optional[FailureSink] = None,
) -> RealtimeServices:
    s = settings or get_settings()
    connection = RedisConnectionManager.from_settings(s, client_factory=client_factory)
    counter = SequenceCounter(connection, ttl_seconds=s.realtime_ttl_seconds)
    event_log = EventLogStore(
        connection,
        counter,
        max_events=s.realtime_max_events,
        ttl_seconds=s.realtime_ttl_seconds,
        retry_ms=s.realtime_retry_ms,
    )
    snapshots = SnapshotCache(connection, ttl_seconds=s.realtime_ttl_seconds)
    publisher = UpdatePublisher(event_log, snapshots, failure_sink=failure_sink)
    return RealtimeServices(
        connection=connection,
        counter=counter,
        event_log=event_log,
        snapshots=snapshots,
        publisher=publisher,
    )
