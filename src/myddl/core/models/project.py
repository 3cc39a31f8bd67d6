"""Project Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field

from .base import new_id, now

DEFAULT_PROJECT_NAME = "默认项目"
DEFAULT_COLOR = "#5B8DEF"

# 新建项目时可选的预设颜色
DEFAULT_COLORS: tuple[str, ...] = (
    "#5B8DEF",  # 蓝色
    "#7C5BEF",  # 紫色
    "#EF5B5B",  # 红色
    "#EF8F5B",  # 橙色
    "#5BEF8F",  # 绿色
    "#5BCEEF",  # 青色
    "#EF5BB8",  # 粉色
    "#8F8F8F",  # 灰色
)


class Project(BaseModel):
    """Project 数据模型"""

    id: str = Field(default_factory=new_id, description="唯一标识，ULID 格式")
    name: str = Field(description="项目名称")
    color_hex: str = Field(
        default=DEFAULT_COLOR,
        pattern=r"^#[0-9A-Fa-f]{6}$",
        description="项目颜色（#RRGGBB）",
    )
    created_at: datetime = Field(default_factory=now, description="创建时间")
