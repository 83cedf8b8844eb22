from __future__ import annotations

"""实时更新子系统的异常分类

所有异常均不得越过 UpdatePublisher 边界；HTTP/CLI 读取路径只会看到降级结果。
"""


class RealtimeError(Exception):
    """实时更新异常基类"""


class ConfigurationError(RealtimeError):
    """未配置 Redis 地址，实时功能在本进程内永久禁用"""


class ConnectivityError(RealtimeError):
    """首次握手失败，连接管理器锁存为 FAILED"""


class TransientOperationError(RealtimeError):
    """握手成功后单次调用失败，仅影响本次操作"""


class SerializationError(RealtimeError):
    """负载无法编码为 JSON，事件被丢弃"""


class MalformedStoredRecord(RealtimeError):
    """读取到无法解码的存储记录，fetch 时跳过"""
