"""MyDDL Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .base import new_id, now
from .change import StoreChange
from .enums import (
    ChangeAction,
    EntityKind,
    RequirementPriority,
    RequirementStatus,
    TaskPriority,
    TaskStatus,
)
from .note import UNTITLED_NOTE, Note, NoteAttachment
from .project import DEFAULT_COLOR, DEFAULT_COLORS, DEFAULT_PROJECT_NAME, Project
from .requirement import Requirement
from .task import Task

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "RequirementStatus",
    "RequirementPriority",
    "EntityKind",
    "ChangeAction",
    # 工具
    "new_id",
    "now",
    # 实体
    "Task",
    "Project",
    "DEFAULT_PROJECT_NAME",
    "DEFAULT_COLOR",
    "DEFAULT_COLORS",
    "Requirement",
    "Note",
    "NoteAttachment",
    "UNTITLED_NOTE",
    # 变更通知
    "StoreChange",
]
