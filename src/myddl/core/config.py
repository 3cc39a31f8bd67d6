"""配置常量模块 -- 可通过环境变量覆盖

包含数据库路径、图片目录、设置文件路径以及笔记预览长度等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取应用 data 基础目录"""
    return Path(os.environ.get("MYDDL_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "MYDDL_DB_PATH",
        str(_get_base_dir() / "sqlite" / "myddl.sqlite"),
    )


def get_images_dir() -> Path:
    """获取笔记图片附件存储目录"""
    return Path(
        os.environ.get(
            "MYDDL_IMAGES_DIR",
            str(_get_base_dir() / "images"),
        )
    )


def get_settings_path() -> Path:
    """获取应用设置文件路径"""
    return Path(
        os.environ.get(
            "MYDDL_SETTINGS_PATH",
            str(_get_base_dir() / "settings.json"),
        )
    )


# 笔记列表预览文本长度
NOTE_PREVIEW_LENGTH: int = int(os.environ.get("MYDDL_NOTE_PREVIEW_LENGTH", "100"))

# 无标题笔记取首行作为标题时的截断长度
NOTE_TITLE_PREVIEW_LENGTH: int = 30

# 图片附件文件后缀
IMAGE_SUFFIX: str = ".png"
