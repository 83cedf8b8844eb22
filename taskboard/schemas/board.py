from __future__ import annotations

"""看板快照结构

看板、列、卡片的增删改由领域层负责；这里只描述实时通道里传输的完整快照形状。
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class Assignee(_CamelModel):
    id: int
    display_name: str = Field(alias="displayName")


class Member(Assignee):
    role: str = "member"


class Card(_CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    position: int = 0
    due_at: Optional[str] = Field(default=None, alias="dueAt")
    labels: List[str] = Field(default_factory=list)
    assignees: List[Assignee] = Field(default_factory=list)
    comment_count: int = Field(default=0, alias="commentCount")
    estimated_minutes: Optional[int] = Field(default=None, alias="estimatedMinutes")
    tracked_minutes: int = Field(default=0, alias="trackedMinutes")
    archived: bool = False


class BoardColumn(_CamelModel):
    id: int
    title: str
    position: int = 0
    cards: List[Card] = Field(default_factory=list)


class Board(_CamelModel):
    id: int
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    updated_at: Optional[str] = Field(default=None, alias="updatedAt")
    columns: List[BoardColumn] = Field(default_factory=list)
    members: List[Member] = Field(default_factory=list)
