from fastapi import HTTPException, Request

from taskboard.services.realtime.event_log_store import EventLogStore
from taskboard.services.realtime.factory import RealtimeServices
from taskboard.services.realtime.sequence_counter import SequenceCounter
from taskboard.services.realtime.snapshot_cache import SnapshotCache
from taskboard.services.realtime.update_publisher import UpdatePublisher


def get_realtime_services(request: Request) -> RealtimeServices:
    """取出应用生命周期内创建的实时组件"""
    services = getattr(request.app.state, "realtime", None)
    if services is None:
        raise HTTPException(status_code=503, detail="实时更新组件尚未初始化")
    return services


def get_event_log(request: Request) -> EventLogStore:
    return get_realtime_services(request).event_log


def get_snapshot_cache(request: Request) -> SnapshotCache:
    return get_realtime_services(request).snapshots


def get_sequence_counter(request: Request) -> SequenceCounter:
    return get_realtime_services(request).counter


def get_update_publisher(request: Request) -> UpdatePublisher:
    """供领域层路由注入发布者"""
    return get_realtime_services(request).publisher
