from typing import Any, Dict
from pydantic import BaseModel

class Result(BaseModel):
    """统一响应壳（轮询接口 /updates 除外，它直接返回浏览器约定的结构）"""
    success: bool = True
    code: int = 0
    message: str = "ok"
    data: Any = None

    @classmethod
    def ok(cls, data: Any = None, message: str = "ok", code: int = 0) -> "Result":
        return cls(success=True, code=code, message=message, data=data)

    @classmethod
    def error(cls, message: str = "error", code: int = 1, data: Any = None) -> "Result":
        return cls(success=False, code=code, message=message, data=data)

    @classmethod
    def unavailable(cls, message: str, data: Dict[str, Any] | None = None) -> "Result":
        return cls.error(message=message, code=503, data=data or {})
