"""Task Domain Model

任务的日期区间是闭区间，可以跨越多个日历天。
estimated_hours 对多日任务按天均摊。
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from .base import new_id, now
from .enums import TaskPriority, TaskStatus


class Task(BaseModel):
    """Task 数据模型"""

    id: str = Field(default_factory=new_id, description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    start_date: datetime = Field(description="开始时刻")
    end_date: datetime = Field(description="结束时刻（含）")
    estimated_hours: float = Field(default=8.0, ge=0, description="预估工时")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.NOT_STARTED, description="状态")
    project_id: str | None = Field(default=None, description="所属项目 ID")
    requirement_id: str | None = Field(default=None, description="关联需求 ID")
    notes: str = Field(default="", description="备注")
    created_at: datetime = Field(default_factory=now, description="创建时间")
    updated_at: datetime = Field(default_factory=now, description="更新时间")

    @property
    def is_multi_day(self) -> bool:
        return self.start_date.date() != self.end_date.date()

    @property
    def day_span(self) -> int:
        """覆盖的日历天数（含首尾），至少为 1"""
        return max(1, (self.end_date.date() - self.start_date.date()).days + 1)

    @property
    def hours_per_day(self) -> float:
        return self.estimated_hours / self.day_span

    def is_on_date(self, day: datetime | date) -> bool:
        target = day.date() if isinstance(day, datetime) else day
        return self.start_date.date() <= target <= self.end_date.date()

    def is_overdue(self, at: datetime | None = None) -> bool:
        """未完成且结束时刻早于当前时间"""
        if self.status == TaskStatus.COMPLETED:
            return False
        return self.end_date < (at or now())
