from __future__ import annotations

"""Redis 连接管理（实时更新子系统共享）

状态机
- UNINITIALIZED -> CONNECTED：首次使用时创建客户端并 PING 成功
- UNINITIALIZED -> FAILED：未配置 DSN 或握手失败
- FAILED 在进程生命周期内为终态，不自动重连，后续调用直接返回 None

握手成功后的单次调用失败由各存储组件自行处理，不会触发锁存。
"""

import threading
from enum import Enum
from typing import Any, Callable, Dict, Optional
from urllib.parse import parse_qsl, urlencode

import redis  # type: ignore

from taskboard.config.settings import Settings, get_settings
from taskboard.core.errors import ConfigurationError, ConnectivityError, RealtimeError
from taskboard.core.logger import setup_logging

logger = setup_logging()

DEFAULT_REDIS_PORT = 6379
LEGACY_QUERY_OPTIONS = {"timeout": "socket_connect_timeout", "read_timeout": "socket_timeout"}

ClientFactory = Callable[[Dict[str, Any]], Any]


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    FAILED = "failed"


def anonymise_dsn(dsn: str) -> str:
    """隐藏 DSN 中的认证信息（密码中可能含有 `:`、`/`、`@`），用于日志输出"""
    scheme, sep, rest = dsn.partition("://")
    prefix = f"{scheme}{sep}" if sep else ""
    if not sep:
        rest = dsn
    if "@" not in rest:
        return dsn
    userinfo, _, hostinfo = rest.rpartition("@")
    user = userinfo.split(":", 1)[0] if ":" in userinfo else ""
    return f"{prefix}{user}:***@{hostinfo}"


def _rename_legacy_options(dsn: str) -> str:
    # 只改写查询串，unix:///path 形式的空 netloc 必须原样保留
    base, sep, query = dsn.partition("?")
    if not sep:
        return dsn
    pairs = [(LEGACY_QUERY_OPTIONS.get(k, k), v) for k, v in parse_qsl(query, keep_blank_values=True)]
    return f"{base}?{urlencode(pairs)}"


def normalise_dsn(dsn: str) -> Dict[str, Any]:
    """将 DSN 字符串转换为 redis.ConnectionPool 的构造参数

    支持的形式
    - `/var/run/redis.sock`：unix socket
    - `cache.local`：无 scheme，视为 TCP 主机，端口 6379
    - `redis://`、`rediss://`、`unix://` URL：交给 redis-py 的 `parse_url` 解析，
      保留其支持的全部查询参数（ssl_cert_reqs、socket_keepalive 等）；
      旧参数名 `timeout`、`read_timeout` 分别改写为 `socket_connect_timeout`、`socket_timeout`
    """
    dsn = dsn.strip()
    if dsn.startswith("/"):
        return {"path": dsn, "connection_class": redis.UnixDomainSocketConnection}
    if "://" not in dsn:
        return {"host": dsn, "port": DEFAULT_REDIS_PORT}
    return redis.connection.parse_url(_rename_legacy_options(dsn))


def _default_client_factory(config: Dict[str, Any]) -> redis.Redis:
    # 客户端独占连接池，close() 时一并断开
    return redis.Redis.from_pool(redis.ConnectionPool(decode_responses=True, **config))


class RedisConnectionManager:
    """惰性创建并共享 Redis 客户端，握手失败后单向锁存"""

    def __init__(
        self,
        dsn: Optional[str],
        *,
        socket_timeout: float = 2.0,
        connect_timeout: float = 2.0,
        client_factory: Optional[ClientFactory] = None,
    ):
        self._dsn = (dsn or "").strip()
        self._socket_timeout = socket_timeout
        self._connect_timeout = connect_timeout
        self._client_factory = client_factory or _default_client_factory
        self._client: Any = None
        self._state = ConnectionState.UNINITIALIZED
        self._error: Optional[RealtimeError] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, client_factory: Optional[ClientFactory] = None) -> "RedisConnectionManager":
        s = settings or get_settings()
        return cls(
            s.redis_dsn,
            socket_timeout=s.redis_socket_timeout,
            connect_timeout=s.redis_connect_timeout,
            client_factory=client_factory,
        )

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def error(self) -> Optional[RealtimeError]:
        return self._error

    @property
    def is_failed(self) -> bool:
        return self._state is ConnectionState.FAILED

    def get_client(self) -> Any:
        """返回已握手的客户端；FAILED 状态下返回 None 且不发起任何网络请求"""
        if self._state is ConnectionState.CONNECTED:
            return self._client
        if self._state is ConnectionState.FAILED:
            return None
        with self._lock:
            # 并发首次使用时只握手一次
            if self._state is ConnectionState.UNINITIALIZED:
                self._connect()
        return self._client if self._state is ConnectionState.CONNECTED else None

    def _connect(self) -> None:
        if not self._dsn:
            self._latch(ConfigurationError("REDIS_DSN 未配置，实时更新已禁用"))
            logger.warning("REDIS_DSN 未配置，实时更新已禁用")
            return
        try:
            config = normalise_dsn(self._dsn)
            config.setdefault("socket_timeout", self._socket_timeout)
            config.setdefault("socket_connect_timeout", self._connect_timeout)
            client = self._client_factory(config)
            client.ping()
        except (redis.RedisError, OSError, ValueError) as e:
            self._latch(ConnectivityError(f"无法连接 Redis: {e}"))
            logger.error(f"Redis客户端初始化失败 dsn={anonymise_dsn(self._dsn)}: {e}")
            return
        self._client = client
        self._state = ConnectionState.CONNECTED
        logger.info(f"Redis客户端初始化成功 dsn={anonymise_dsn(self._dsn)}")

    def _latch(self, error: RealtimeError) -> None:
        self._client = None
        self._error = error
        self._state = ConnectionState.FAILED

    def describe(self) -> Dict[str, Any]:
        """健康检查用的状态描述（不会触发重连）"""
        return {
            "state": self._state.value,
            "dsn": anonymise_dsn(self._dsn) if self._dsn else None,
            "error": str(self._error) if self._error else None,
        }

    def close(self) -> None:
        """释放客户端连接；状态保持不变，FAILED 仍为终态"""
        client = self._client
        if client is None:
            return
        try:
            client.close()
            logger.info("Redis连接已关闭")
        except redis.RedisError as e:
            logger.warning(f"关闭Redis连接时出错: {e}")
