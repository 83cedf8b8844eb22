from __future__ import annotations

"""实时事件信封

线上格式（JSON 键）：id, event, boardId, payload, snapshot?, createdAt。
payload 为开放字典，核心不解析；只在序列化边界做校验。
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


class EventDraft(BaseModel):
    """尚未分配序号的事件（由发布者构造，交给事件日志追加）"""

    event: str
    payload: Dict[str, Any] = Field(default_factory=dict)
    snapshot: Optional[Dict[str, Any]] = None


class EventEnvelope(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: int
    event: str
    board_id: int = Field(alias="boardId")
    payload: Dict[str, Any] = Field(default_factory=dict)
    snapshot: Optional[Dict[str, Any]] = None
    created_at: str = Field(alias="createdAt")

    @classmethod
    def from_draft(cls, draft: EventDraft, *, board_id: int, sequence_id: int, created_at: Optional[str] = None) -> "EventEnvelope":
        return cls(
            id=sequence_id,
            event=draft.event,
            board_id=board_id,
            payload=draft.payload,
            snapshot=draft.snapshot,
            created_at=created_at or utc_now_iso(),
        )

    def to_wire(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "event": self.event,
            "boardId": self.board_id,
            "payload": self.payload,
        }
        if self.snapshot is not None:
            data["snapshot"] = self.snapshot
        data["createdAt"] = self.created_at
        return data


class UpdateBatch(BaseModel):
    """一次轮询的结果：增量事件、新游标与重试间隔提示"""

    model_config = ConfigDict(populate_by_name=True)

    events: List[EventEnvelope] = Field(default_factory=list)
    latest_id: Optional[int] = Field(default=None, alias="latestId")
    retry: int = 3000

    def to_wire(self) -> Dict[str, Any]:
        return {
            "events": [e.to_wire() for e in self.events],
            "latestId": self.latest_id,
            "retry": self.retry,
        }
