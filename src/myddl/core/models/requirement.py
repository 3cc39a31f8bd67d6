"""Requirement Domain Model

related_task_ids 只在创建时写入，之后不随任务关联变化同步，
仅作为参考信息；任务与需求的真实关联以 Task.requirement_id 为准。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .base import new_id, now
from .enums import RequirementPriority, RequirementStatus


class Requirement(BaseModel):
    """Requirement 数据模型"""

    id: str = Field(default_factory=new_id, description="唯一标识，ULID 格式")
    title: str = Field(description="需求标题")
    description: str = Field(default="", description="需求描述")
    status: RequirementStatus = Field(
        default=RequirementStatus.DEVELOPING,
        description="需求状态",
    )
    priority: RequirementPriority = Field(
        default=RequirementPriority.P2,
        description="需求优先级",
    )
    project_id: str | None = Field(default=None, description="所属项目 ID")
    related_task_ids: list[str] = Field(default_factory=list, description="关联任务 ID 列表")
    created_at: datetime = Field(default_factory=now, description="创建时间")
    updated_at: datetime = Field(default_factory=now, description="更新时间")
