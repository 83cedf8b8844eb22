from __future__ import annotations

"""看板更新发布

领域层在提交写操作之后调用 `publish`。通知投递是尽力而为的：
任何失败都被规整为 `PublishOutcome` 交给失败回调（默认写日志），
调用方既看不到异常也看不到返回值。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from taskboard.core.logger import setup_logging
from taskboard.schemas.events import EventDraft
from taskboard.services.board_serializer import board_id_of, serialize_board
from taskboard.services.realtime.event_log_store import EventLogStore
from taskboard.services.realtime.snapshot_cache import SnapshotCache

logger = setup_logging()


class PublishStatus(str, Enum):
    RECORDED = "recorded"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class PublishOutcome:
    event: str
    status: PublishStatus
    board_id: Optional[int] = None
    sequence_id: Optional[int] = None
    error: Optional[BaseException] = None


FailureSink = Callable[[PublishOutcome], None]


def log_publish_failure(outcome: PublishOutcome) -> None:
    logger.error(
        f"看板更新发布失败 board_id={outcome.board_id} event={outcome.event} "
        f"id={outcome.sequence_id}: {outcome.error!r}"
    )


class UpdatePublisher:
    def __init__(
        self,
        event_log: EventLogStore,
        snapshot_cache: SnapshotCache,
        *,
        serializer: Callable[[Any], Dict[str, Any]] = serialize_board,
        failure_sink: Optional[FailureSink] = None,
    ):
        self._event_log = event_log
        self._snapshot_cache = snapshot_cache
        self._serializer = serializer
        self._failure_sink = failure_sink or log_publish_failure

    def publish(
        self,
        board: Any,
        event_name: str,
        context: Optional[Mapping[str, Any]] = None,
        *,
        include_snapshot: bool = True,
    ) -> None:
        """发布一次看板变更

        参数：
        - `board`: 看板引用（需要能取到 id，且可被序列化器处理）
        - `event_name`: 事件名，如 "card.created"
        - `context`: 事件相关数据，需可 JSON 化
        - `include_snapshot`: 是否附带完整快照（默认附带）
        """
        outcome = self._record(board, event_name, context, include_snapshot)
        if outcome.status is PublishStatus.FAILED:
            self._report(outcome)
        elif outcome.status is PublishStatus.SKIPPED:
            logger.debug(f"实时更新不可用，跳过发布 board_id={outcome.board_id} event={event_name}")

    def _record(
        self,
        board: Any,
        event_name: str,
        context: Optional[Mapping[str, Any]],
        include_snapshot: bool,
    ) -> PublishOutcome:
        board_id: Optional[int] = None
        sequence_id: Optional[int] = None
        try:
            board_id = board_id_of(board)
            snapshot = self._serializer(board) if include_snapshot else None
            draft = EventDraft(event=event_name, payload=dict(context or {}), snapshot=snapshot)
            envelope = self._event_log.append(board_id, draft)
            if envelope is None:
                return PublishOutcome(event=event_name, status=PublishStatus.SKIPPED, board_id=board_id)
            sequence_id = envelope.id
            if snapshot is not None:
                self._snapshot_cache.put(board_id, snapshot)
        except Exception as e:
            return PublishOutcome(
                event=event_name,
                status=PublishStatus.FAILED,
                board_id=board_id,
                sequence_id=sequence_id,
                error=e,
            )
        return PublishOutcome(
            event=event_name,
            status=PublishStatus.RECORDED,
            board_id=board_id,
            sequence_id=sequence_id,
        )

    def _report(self, outcome: PublishOutcome) -> None:
        try:
            self._failure_sink(outcome)
        except Exception as e:
            logger.error(f"发布失败回调执行出错: {e}")
