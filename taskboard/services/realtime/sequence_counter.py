from __future__ import annotations

from typing import Optional

import redis  # type: ignore

from taskboard.core.errors import TransientOperationError
from taskboard.core.external_services import RedisConnectionManager
from taskboard.core.logger import setup_logging
from taskboard.services.realtime.keys import sequence_key

logger = setup_logging()


class SequenceCounter:
    """按看板分配单调递增的事件序号（Redis INCR）

    键过期或不存在时从 1 重新开始；此前发出的游标无法感知这次重置。
    """

    def __init__(self, connection: RedisConnectionManager, *, ttl_seconds: int = 43200):
        self._connection = connection
        self._ttl = int(ttl_seconds)

    def next(self, board_id: int) -> Optional[int]:
        """分配下一个序号；连接已锁存失败时返回 None

        异常：
        - `TransientOperationError`: 握手成功后 INCR 调用失败
        """
        client = self._connection.get_client()
        if client is None:
            return None
        key = sequence_key(board_id)
        try:
            pipe = client.pipeline(transaction=True)
            pipe.incr(key)
            pipe.expire(key, self._ttl)
            value, _ = pipe.execute()
        except redis.RedisError as e:
            logger.warning(f"序号分配失败 board_id={board_id}: {e}")
            raise TransientOperationError(f"序号分配失败: {e}") from e
        return int(value)

    def current(self, board_id: int) -> Optional[int]:
        """读取当前最大序号；不存在、已禁用或读取失败时返回 None"""
        client = self._connection.get_client()
        if client is None:
            return None
        try:
            value = client.get(sequence_key(board_id))
        except redis.RedisError as e:
            logger.warning(f"读取序号失败 board_id={board_id}: {e}")
            return None
        if value is None:
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            logger.warning(f"序号键内容非法 board_id={board_id} value={value!r}")
            return None
