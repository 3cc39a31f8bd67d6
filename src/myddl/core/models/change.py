"""StoreChange -- DataStore 变更通知"""

from datetime import datetime

from pydantic import BaseModel, Field

from .base import now
from .enums import ChangeAction, EntityKind


class StoreChange(BaseModel):
    """一次成功变更的通知，订阅方据此刷新界面"""

    kind: EntityKind = Field(description="实体类型")
    action: ChangeAction = Field(description="变更动作")
    ids: list[str] = Field(default_factory=list, description="受影响的实体 ID")
    ts: datetime = Field(default_factory=now, description="变更时间")
