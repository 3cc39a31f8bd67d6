"""NoteStore SQLite 实现

richContentBlob 原样存取；attachments 以 JSON 数组存储附件引用。
"""

import json
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from ..models.note import Note, NoteAttachment
from .base import SqliteRecordStore, from_epoch, to_epoch


class SqliteNoteStore(SqliteRecordStore[Note]):
    """NoteStore 的 SQLite 实现"""

    table = "notes"
    columns = (
        "id",
        "title",
        "content",
        "richContentBlob",
        "attachments",
        "isPinned",
        "createdAt",
        "updatedAt",
    )

    def to_row(self, entity: Note) -> tuple[Any, ...]:
        attachments_json = json.dumps(
            [a.model_dump() for a in entity.attachments],
            ensure_ascii=False,
        )
        return (
            entity.id,
            entity.title,
            entity.content,
            entity.rich_content,
            attachments_json,
            int(entity.is_pinned),
            to_epoch(entity.created_at),
            to_epoch(entity.updated_at),
        )

    def from_row(self, row: Sequence[Any]) -> Note:
        return Note(
            id=row[0],
            title=row[1] or "",
            content=row[2] or "",
            rich_content=bytes(row[3]) if row[3] is not None else None,
            attachments=_parse_attachments(row[4]),
            is_pinned=bool(row[5]),
            created_at=from_epoch(row[6]),
            updated_at=from_epoch(row[7]),
        )


def _parse_attachments(raw: str | None) -> list[NoteAttachment]:
    """解析 attachments 列，内容非法时返回空列表"""
    if not raw:
        return []
    try:
        data = json.loads(raw)
        return [NoteAttachment(**item) for item in data]
    except (json.JSONDecodeError, TypeError, ValidationError):
        return []
