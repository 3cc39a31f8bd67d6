"""AppSettings -- 应用偏好设置

界面偏好（语言、周首日、日历字号、工作日/休息日底色）以 JSON 文件持久化。
文件缺失或损坏时回退到默认值，不阻塞启动。
"""

from enum import StrEnum
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError

log = structlog.get_logger()


class AppLanguage(StrEnum):
    CHINESE = "zh"
    ENGLISH = "en"


class WeekStartDay(StrEnum):
    MONDAY = "monday"
    SUNDAY = "sunday"


class CalendarFontSize(StrEnum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class PresetColor(StrEnum):
    GRAY = "gray"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    MINT = "mint"
    TEAL = "teal"


class AppSettings(BaseModel):
    """应用偏好设置"""

    language: AppLanguage = Field(default=AppLanguage.CHINESE, description="界面语言")
    week_start_day: WeekStartDay = Field(default=WeekStartDay.MONDAY, description="周首日")
    calendar_font_size: CalendarFontSize = Field(
        default=CalendarFontSize.MEDIUM,
        description="日历字号",
    )
    workday_color: PresetColor = Field(default=PresetColor.GRAY, description="工作日底色")
    restday_color: PresetColor = Field(default=PresetColor.GREEN, description="休息日底色")


def load_settings(path: Path) -> AppSettings:
    """从 JSON 文件加载设置

    Args:
        path: 设置文件路径

    Returns:
        AppSettings 实例；文件不存在或内容非法时返回默认值
    """
    if not path.exists():
        return AppSettings()
    try:
        return AppSettings.model_validate_json(path.read_text(encoding="utf-8"))
    except (OSError, ValidationError) as exc:
        log.warning("settings_load_failed", path=str(path), error=str(exc))
        return AppSettings()


def save_settings(settings: AppSettings, path: Path) -> bool:
    """写入设置文件，失败时记录日志并返回 False"""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    except OSError as exc:
        log.warning("settings_save_failed", path=str(path), error=str(exc))
        return False
    return True
