from __future__ import annotations

"""看板快照序列化（领域对象 -> 可 JSON 化的字典）"""

from collections.abc import Mapping
from typing import Any, Dict

from pydantic import BaseModel

from taskboard.core.errors import SerializationError


def board_id_of(board: Any) -> int:
    """从看板引用中取出 ID（支持对象属性或映射键）"""
    raw = board.get("id") if isinstance(board, Mapping) else getattr(board, "id", None)
    if raw is None:
        raise SerializationError(f"无法确定看板ID: {type(board).__name__}")
    try:
        return int(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"看板ID不是整数: {raw!r}") from e


def serialize_board(board: Any) -> Dict[str, Any]:
    """生成看板完整快照

    支持 pydantic 模型（如 `taskboard.schemas.board.Board`）、映射，
    以及任何提供 `model_dump()` 的对象。
    """
    if isinstance(board, BaseModel):
        return board.model_dump(mode="json", by_alias=True)
    if isinstance(board, Mapping):
        return dict(board)
    dump = getattr(board, "model_dump", None)
    if callable(dump):
        data = dump()
        if isinstance(data, Mapping):
            return dict(data)
    raise SerializationError(f"不支持的看板类型: {type(board).__name__}")
