from __future__ import annotations
from typing import Any, Dict, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from taskboard.core.logger import setup_logging
from taskboard.schemas.responses import Result
from taskboard.app.deps.realtime_deps import get_event_log, get_sequence_counter, get_snapshot_cache
from taskboard.services.realtime.event_log_store import EventLogStore
from taskboard.services.realtime.sequence_counter import SequenceCounter
from taskboard.services.realtime.snapshot_cache import SnapshotCache

logger = setup_logging()

router = APIRouter(prefix="/api", tags=["boards"])


def parse_since(since: Optional[str]) -> Optional[int]:
    """解析轮询游标；空值视为未提供，非负整数以外的值返回 400"""
    if since is None or since == "":
        return None
    if not (since.isascii() and since.isdigit()):
        raise HTTPException(status_code=400, detail="参数 since 必须是非负整数")
    return int(since)


@router.get("/boards/{board_id}/updates")
def get_board_updates(
    board_id: int,
    request: Request,
    since: Optional[str] = Query(None),
    event_log: EventLogStore = Depends(get_event_log),
) -> Dict[str, Any]:
    since_id = parse_since(since)
    batch = event_log.fetch(board_id, since_id)
    logger.debug(f"request {request.method} {request.url.path} since={since_id} events={len(batch.events)} latest={batch.latest_id}")
    return batch.to_wire()


@router.get("/boards/{board_id}/snapshot", response_model=Result)
def get_board_snapshot(board_id: int, snapshots: SnapshotCache = Depends(get_snapshot_cache)):
    snapshot = snapshots.get(board_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="快照不存在")
    return Result.ok(snapshot)


@router.get("/boards/{board_id}/cursor", response_model=Result)
def get_board_cursor(board_id: int, counter: SequenceCounter = Depends(get_sequence_counter)):
    """页面首次渲染时下发的初始游标"""
    return Result.ok({"boardId": board_id, "latestId": counter.current(board_id)})
