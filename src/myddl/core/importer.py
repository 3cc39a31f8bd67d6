"""需求批量导入

导入文档格式::

    {
        "released":   [{"title": "...", "description": "..."}, ...],
        "deprecated": [{"title": "...", "description": "..."}, ...]
    }

两个数组都可省略。每条需求的优先级由标题推断，
created_at 取 base + 序号秒，倒序展示时保持文档中的先后关系。
"""

from datetime import datetime, timedelta

from pydantic import BaseModel, Field, ValidationError

from .exceptions import RequirementImportError
from .models import Requirement, RequirementPriority, RequirementStatus


class ImportedItem(BaseModel):
    """导入文档中的单条需求"""

    title: str = Field(description="需求标题")
    description: str = Field(default="", description="需求描述")


class RequirementImport(BaseModel):
    """导入文档"""

    released: list[ImportedItem] = Field(default_factory=list, description="已上线需求")
    deprecated: list[ImportedItem] = Field(default_factory=list, description="已废弃需求")


def parse_requirement_import(text: str | bytes) -> RequirementImport:
    """解析导入文档

    Raises:
        RequirementImportError: JSON 非法或结构不符
    """
    try:
        return RequirementImport.model_validate_json(text)
    except ValidationError as exc:
        raise RequirementImportError(str(exc), exc) from exc


def build_requirements(document: RequirementImport, base: datetime) -> list[Requirement]:
    """把导入文档转换为需求列表（已上线在前，已废弃在后）"""
    requirements: list[Requirement] = []
    sections = (
        (RequirementStatus.RELEASED, document.released),
        (RequirementStatus.DEPRECATED, document.deprecated),
    )
    for status, items in sections:
        for index, item in enumerate(items):
            created_at = base + timedelta(seconds=index)
            requirements.append(
                Requirement(
                    title=item.title,
                    description=item.description,
                    status=status,
                    priority=RequirementPriority.infer_from_title(item.title),
                    project_id=None,
                    related_task_ids=[],
                    created_at=created_at,
                    updated_at=created_at,
                )
            )
    return requirements
