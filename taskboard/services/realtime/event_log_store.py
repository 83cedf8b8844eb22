from __future__ import annotations

"""看板事件日志（Redis 列表）

职责
- append：分配序号、编码信封、追加到列表尾部、裁剪到最近 N 条、刷新过期时间
- fetch：按游标返回增量事件（升序）与新游标

实现说明
- 追加的三个写操作通过非事务管道一次往返发送，不保证原子性；
  并发追加时列表可能短暂超过 N 条，下一次裁剪会自行修正
- Redis 列表只支持按位置取区间，"since" 过滤在取回整个（有界）列表后于本地完成
"""

from typing import List, Optional

import redis  # type: ignore

from taskboard.core.errors import MalformedStoredRecord, TransientOperationError
from taskboard.core.external_services import RedisConnectionManager
from taskboard.core.logger import setup_logging
from taskboard.schemas.events import EventDraft, EventEnvelope, UpdateBatch
from taskboard.services.realtime.codec import decode_envelope, encode_envelope
from taskboard.services.realtime.keys import events_key
from taskboard.services.realtime.sequence_counter import SequenceCounter

logger = setup_logging()

DEFAULT_MAX_EVENTS = 200
DEFAULT_TTL_SECONDS = 43200
DEFAULT_RETRY_MS = 3000


class EventLogStore:
    def __init__(
        self,
        connection: RedisConnectionManager,
        counter: SequenceCounter,
        *,
        max_events: int = DEFAULT_MAX_EVENTS,
        ttl_seconds: int = DEFAULT_TTL_SECONDS,
        retry_ms: int = DEFAULT_RETRY_MS,
    ):
        self._connection = connection
        self._counter = counter
        self._max_events = int(max_events)
        self._ttl = int(ttl_seconds)
        self._retry_ms = int(retry_ms)

    @property
    def retry_ms(self) -> int:
        return self._retry_ms

    def append(self, board_id: int, draft: EventDraft) -> Optional[EventEnvelope]:
        """追加一条事件并返回带序号的信封

        参数：
        - `board_id`: 看板 ID
        - `draft`: 未分配序号的事件

        返回：
        - 已写入的信封；连接已锁存失败时返回 None

        异常：
        - `SerializationError`: 信封无法编码（序号已消耗，不会复用）
        - `TransientOperationError`: Redis 调用失败
        """
        client = self._connection.get_client()
        if client is None:
            return None
        sequence_id = self._counter.next(board_id)
        if sequence_id is None:
            return None
        envelope = EventEnvelope.from_draft(draft, board_id=board_id, sequence_id=sequence_id)
        encoded = encode_envelope(envelope)
        key = events_key(board_id)
        try:
            pipe = client.pipeline(transaction=False)
            pipe.rpush(key, encoded)
            pipe.ltrim(key, -self._max_events, -1)
            pipe.expire(key, self._ttl)
            pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"事件写入失败 board_id={board_id} event={draft.event} id={sequence_id}: {e}")
            raise TransientOperationError(f"事件写入失败: {e}") from e
        return envelope

    def fetch(self, board_id: int, since_id: Optional[int] = None) -> UpdateBatch:
        """读取游标之后的事件

        - `since_id` 为 None：只返回最近一条（新客户端只需要最新位置）
        - 否则返回 id > since_id 的全部事件（升序）
        - 不抛出异常：连接不可用或调用失败时返回空事件与原游标
        """
        client = self._connection.get_client()
        if client is None:
            return self._degraded(since_id)
        key = events_key(board_id)
        try:
            if since_id is None:
                raw_items = client.lrange(key, -1, -1)
            else:
                raw_items = client.lrange(key, 0, -1)
        except redis.RedisError as e:
            logger.warning(f"事件读取失败 board_id={board_id} since={since_id}: {e}")
            return self._degraded(since_id)

        events: List[EventEnvelope] = []
        for raw in raw_items:
            try:
                envelope = decode_envelope(raw)
            except MalformedStoredRecord as e:
                logger.debug(f"跳过损坏的事件记录 board_id={board_id}: {e}")
                continue
            if since_id is not None and envelope.id <= since_id:
                continue
            events.append(envelope)
        events.sort(key=lambda e: e.id)

        latest_id = events[-1].id if events else self._counter.current(board_id)
        if since_id is not None:
            latest_id = since_id if latest_id is None else max(latest_id, since_id)
        return UpdateBatch(events=events, latest_id=latest_id, retry=self._retry_ms)

    def length(self, board_id: int) -> int:
        client = self._connection.get_client()
        if client is None:
            return 0
        try:
            return int(client.llen(events_key(board_id)))
        except redis.RedisError as e:
            logger.warning(f"读取事件列表长度失败 board_id={board_id}: {e}")
            return 0

    def _degraded(self, since_id: Optional[int]) -> UpdateBatch:
        return UpdateBatch(events=[], latest_id=since_id, retry=self._retry_ms)
