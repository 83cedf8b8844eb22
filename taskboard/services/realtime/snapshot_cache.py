from __future__ import annotations

from typing import Any, Dict, Optional

import redis  # type: ignore

from taskboard.core.errors import MalformedStoredRecord, TransientOperationError
from taskboard.core.external_services import RedisConnectionManager
from taskboard.core.logger import setup_logging
from taskboard.services.realtime.codec import decode_json_object, encode_json
from taskboard.services.realtime.keys import snapshot_key

logger = setup_logging()


class SnapshotCache:
    """每个看板仅保存最近一次携带快照的发布内容，与事件列表裁剪互不影响"""

    def __init__(self, connection: RedisConnectionManager, *, ttl_seconds: int = 43200):
        self._connection = connection
        self._ttl = int(ttl_seconds)

    def put(self, board_id: int, snapshot: Dict[str, Any]) -> bool:
        """覆盖看板快照并刷新过期时间；连接已锁存失败时返回 False

        异常：
        - `SerializationError`: 快照无法编码
        - `TransientOperationError`: 写入失败
        """
        client = self._connection.get_client()
        if client is None:
            return False
        encoded = encode_json(snapshot)
        try:
            client.set(snapshot_key(board_id), encoded, ex=self._ttl)
        except redis.RedisError as e:
            logger.warning(f"快照写入失败 board_id={board_id}: {e}")
            raise TransientOperationError(f"快照写入失败: {e}") from e
        return True

    def get(self, board_id: int) -> Optional[Dict[str, Any]]:
        client = self._connection.get_client()
        if client is None:
            return None
        try:
            raw = client.get(snapshot_key(board_id))
        except redis.RedisError as e:
            logger.warning(f"快照读取失败 board_id={board_id}: {e}")
            return None
        if raw is None:
            return None
        try:
            return decode_json_object(raw)
        except MalformedStoredRecord as e:
            logger.warning(f"快照内容损坏 board_id={board_id}: {e}")
            return None
