"""RequirementStore SQLite 实现

relatedTaskIds 列以 JSON 数组字符串存储。
"""

import json
from collections.abc import Sequence
from typing import Any

from ..models.enums import RequirementPriority, RequirementStatus
from ..models.requirement import Requirement
from .base import SqliteRecordStore, from_epoch, to_epoch


class SqliteRequirementStore(SqliteRecordStore[Requirement]):
    """RequirementStore 的 SQLite 实现"""

    table = "requirements"
    columns = (
        "id",
        "title",
        "description",
        "status",
        "priority",
        "projectId",
        "relatedTaskIds",
        "createdAt",
        "updatedAt",
    )

    def to_row(self, entity: Requirement) -> tuple[Any, ...]:
        return (
            entity.id,
            entity.title,
            entity.description,
            entity.status.value,
            entity.priority.value,
            entity.project_id,
            json.dumps(entity.related_task_ids),
            to_epoch(entity.created_at),
            to_epoch(entity.updated_at),
        )

    def from_row(self, row: Sequence[Any]) -> Requirement:
        return Requirement(
            id=row[0],
            title=row[1],
            description=row[2] or "",
            status=_parse_status(row[3]),
            priority=_parse_priority(row[4]),
            project_id=row[5],
            related_task_ids=_parse_task_ids(row[6]),
            created_at=from_epoch(row[7]),
            updated_at=from_epoch(row[8]),
        )


def _parse_status(raw: str) -> RequirementStatus:
    try:
        return RequirementStatus(raw)
    except ValueError:
        return RequirementStatus.DEVELOPING


def _parse_priority(raw: str) -> RequirementPriority:
    try:
        return RequirementPriority(raw)
    except ValueError:
        return RequirementPriority.P2


def _parse_task_ids(raw: str | None) -> list[str]:
    """解析 relatedTaskIds 列，内容非法时返回空列表"""
    if not raw:
        return []
    try:
        ids = json.loads(raw)
    except json.JSONDecodeError:
        return []
    if not isinstance(ids, list):
        return []
    return [str(task_id) for task_id in ids]
