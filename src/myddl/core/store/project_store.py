"""ProjectStore SQLite 实现"""

from collections.abc import Sequence
from typing import Any

from ..models.project import Project
from .base import SqliteRecordStore, from_epoch, to_epoch


class SqliteProjectStore(SqliteRecordStore[Project]):
    """ProjectStore 的 SQLite 实现"""

    table = "projects"
    columns = ("id", "name", "colorHex", "createdAt")

    def to_row(self, entity: Project) -> tuple[Any, ...]:
        return (
            entity.id,
            entity.name,
            entity.color_hex,
            to_epoch(entity.created_at),
        )

    def from_row(self, row: Sequence[Any]) -> Project:
        return Project(
            id=row[0],
            name=row[1],
            color_hex=row[2],
            created_at=from_epoch(row[3]),
        )
