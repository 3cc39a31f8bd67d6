"""TaskStore SQLite 实现"""

from collections.abc import Sequence
from typing import Any

from ..models.enums import TaskPriority, TaskStatus
from ..models.task import Task
from .base import SqliteRecordStore, from_epoch, to_epoch


class SqliteTaskStore(SqliteRecordStore[Task]):
    """TaskStore 的 SQLite 实现"""

    table = "tasks"
    columns = (
        "id",
        "title",
        "startDate",
        "endDate",
        "status",
        "priority",
        "projectId",
        "requirementId",
        "notes",
        "estimatedHours",
        "createdAt",
        "updatedAt",
    )

    def to_row(self, entity: Task) -> tuple[Any, ...]:
        return (
            entity.id,
            entity.title,
            to_epoch(entity.start_date),
            to_epoch(entity.end_date),
            entity.status.value,
            entity.priority.value,
            entity.project_id,
            entity.requirement_id,
            entity.notes,
            entity.estimated_hours,
            to_epoch(entity.created_at),
            to_epoch(entity.updated_at),
        )

    def from_row(self, row: Sequence[Any]) -> Task:
        """将数据库行转换为 Task 模型，未知枚举值回退到默认值"""
        return Task(
            id=row[0],
            title=row[1],
            start_date=from_epoch(row[2]),
            end_date=from_epoch(row[3]),
            status=_parse_status(row[4]),
            priority=_parse_priority(row[5]),
            project_id=row[6],
            requirement_id=row[7],
            notes=row[8] or "",
            estimated_hours=row[9],
            created_at=from_epoch(row[10]),
            updated_at=from_epoch(row[11]),
        )


def _parse_status(raw: str) -> TaskStatus:
    try:
        return TaskStatus(raw)
    except ValueError:
        return TaskStatus.NOT_STARTED


def _parse_priority(raw: str) -> TaskPriority:
    try:
        return TaskPriority(raw)
    except ValueError:
        return TaskPriority.MEDIUM
