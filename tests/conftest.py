from __future__ import annotations

import threading
from typing import Any, Dict, List, Optional, Set

import pytest
import redis

from taskboard.config.settings import Settings
from taskboard.services.realtime.factory import RealtimeServices, build_realtime_services


class FakePipeline:
    def __init__(self, rc: "FakeRedis", transaction: bool = True):
        self.rc = rc
        self.transaction = transaction
        self.ops: List[tuple[str, tuple[Any, ...], Dict[str, Any]]] = []

    def __getattr__(self, name: str):
        def _queue(*args: Any, **kwargs: Any) -> "FakePipeline":
            self.ops.append((name, args, kwargs))
            return self
        return _queue

    def execute(self) -> List[Any]:
        ops, self.ops = self.ops, []
        with self.rc.lock:
            return [getattr(self.rc, name)(*args, **kwargs) for name, args, kwargs in ops]


class FakeRedis:
    """In-memory stand-in for the handful of redis commands the realtime stores use."""

    def __init__(self):
        self.kv: Dict[str, str] = {}
        self.lists: Dict[str, List[str]] = {}
        self.ttls: Dict[str, int] = {}
        self.failing: Set[str] = set()
        self.calls: List[str] = []
        self.closed = False
        self.lock = threading.RLock()

    def _check(self, name: str) -> None:
        self.calls.append(name)
        if name in self.failing:
            raise redis.exceptions.ConnectionError(f"simulated failure on {name}")

    def ping(self) -> bool:
        self._check("ping")
        return True

    def close(self) -> None:
        self.closed = True

    def pipeline(self, transaction: bool = True) -> FakePipeline:
        return FakePipeline(self, transaction=transaction)

    def incr(self, key: str) -> int:
        with self.lock:
            self._check("incr")
            value = int(self.kv.get(key, "0")) + 1
            self.kv[key] = str(value)
            return value

    def get(self, key: str) -> Optional[str]:
        with self.lock:
            self._check("get")
            return self.kv.get(key)

    def set(self, key: str, value: str, ex: Optional[int] = None) -> bool:
        with self.lock:
            self._check("set")
            self.kv[key] = str(value)
            if ex is not None:
                self.ttls[key] = int(ex)
            return True

    def expire(self, key: str, ttl: int) -> bool:
        with self.lock:
            self._check("expire")
            if key not in self.kv and key not in self.lists:
                return False
            self.ttls[key] = int(ttl)
            return True

    def rpush(self, key: str, *values: str) -> int:
        with self.lock:
            self._check("rpush")
            lst = self.lists.setdefault(key, [])
            lst.extend(str(v) for v in values)
            return len(lst)

    def llen(self, key: str) -> int:
        with self.lock:
            self._check("llen")
            return len(self.lists.get(key, []))

    def lrange(self, key: str, start: int, end: int) -> List[str]:
        with self.lock:
            self._check("lrange")
            data = self.lists.get(key, [])
            if start < 0:
                start = max(0, len(data) + start)
            if end < 0:
                end = len(data) + end
            end = min(len(data) - 1, end)
            if start > end or not data:
                return []
            return list(data[start : end + 1])

    def ltrim(self, key: str, start: int, end: int) -> bool:
        with self.lock:
            self._check("ltrim")
            data = self.lists.get(key, [])
            if not data:
                return True
            if start < 0:
                start = max(0, len(data) + start)
            if end < 0:
                end = len(data) + end
            end = min(len(data) - 1, end)
            self.lists[key] = [] if start > end else data[start : end + 1]
            return True

    def expire_board(self, board_id: int) -> None:
        """Drop every key of a board, as if its retention window had elapsed."""
        with self.lock:
            for suffix in ("events", "seq", "snapshot"):
                key = f"board:{board_id}:{suffix}"
                self.kv.pop(key, None)
                self.lists.pop(key, None)
                self.ttls.pop(key, None)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, redis_dsn="redis://localhost:6379/0")


@pytest.fixture
def services(fake_redis: FakeRedis, settings: Settings) -> RealtimeServices:
    return build_realtime_services(settings, client_factory=lambda config: fake_redis)


@pytest.fixture
def failed_services() -> RealtimeServices:
    """Services whose connection manager latches FAILED on first use (no DSN)."""
    s = Settings(_env_file=None, redis_dsn="")
    return build_realtime_services(s)
