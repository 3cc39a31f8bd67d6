"""枚举定义

包含任务状态/优先级、需求状态/优先级以及变更通知用的实体类型与动作枚举。
需求状态不设流转表：界面可以把需求直接设为任意状态。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态"""

    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def display_name(self) -> str:
        return _TASK_STATUS_NAMES[self]


class TaskPriority(StrEnum):
    """任务优先级，sort_order 越小越靠前"""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def display_name(self) -> str:
        return _TASK_PRIORITY_NAMES[self]

    @property
    def sort_order(self) -> int:
        return _TASK_PRIORITY_ORDER[self]

    def to_requirement_priority(self) -> "RequirementPriority":
        """任务自动生成需求时的优先级映射：高->P1，中->P2，低->P3"""
        return _TASK_TO_REQUIREMENT_PRIORITY[self]


class RequirementStatus(StrEnum):
    """需求状态（开发中 -> 测试中 -> 已上线 -> 已废弃）"""

    DEVELOPING = "developing"
    TESTING = "testing"
    RELEASED = "released"
    DEPRECATED = "deprecated"

    @property
    def display_name(self) -> str:
        return _REQUIREMENT_STATUS_NAMES[self]


class RequirementPriority(StrEnum):
    """需求优先级"""

    P0 = "P0"
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"

    @property
    def display_name(self) -> str:
        return self.value

    @classmethod
    def infer_from_title(cls, title: str) -> "RequirementPriority":
        """根据标题文本推断导入需求的优先级

        "P0" -> P0；"BUG"/"bug"/"fix" -> P1；"优化" 及其他 -> P2
        """
        if "P0" in title:
            return cls.P0
        if "BUG" in title or "bug" in title or "fix" in title:
            return cls.P1
        return cls.P2


class EntityKind(StrEnum):
    """变更通知中的实体类型"""

    TASK = "task"
    PROJECT = "project"
    REQUIREMENT = "requirement"
    NOTE = "note"


class ChangeAction(StrEnum):
    """变更通知中的动作"""

    ADDED = "added"
    UPDATED = "updated"
    DELETED = "deleted"
    RELOADED = "reloaded"


_TASK_STATUS_NAMES: dict[TaskStatus, str] = {
    TaskStatus.NOT_STARTED: "未开始",
    TaskStatus.IN_PROGRESS: "进行中",
    TaskStatus.COMPLETED: "已完成",
}

_TASK_PRIORITY_NAMES: dict[TaskPriority, str] = {
    TaskPriority.HIGH: "高",
    TaskPriority.MEDIUM: "中",
    TaskPriority.LOW: "低",
}

_TASK_PRIORITY_ORDER: dict[TaskPriority, int] = {
    TaskPriority.HIGH: 0,
    TaskPriority.MEDIUM: 1,
    TaskPriority.LOW: 2,
}

_TASK_TO_REQUIREMENT_PRIORITY: dict[TaskPriority, RequirementPriority] = {
    TaskPriority.HIGH: RequirementPriority.P1,
    TaskPriority.MEDIUM: RequirementPriority.P2,
    TaskPriority.LOW: RequirementPriority.P3,
}

_REQUIREMENT_STATUS_NAMES: dict[RequirementStatus, str] = {
    RequirementStatus.DEVELOPING: "开发中",
    RequirementStatus.TESTING: "测试中",
    RequirementStatus.RELEASED: "已上线",
    RequirementStatus.DEPRECATED: "已废弃",
}
