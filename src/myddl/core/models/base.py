"""模型公共工具：标识生成与时间戳"""

from datetime import datetime

from ulid import ULID


def new_id() -> str:
    """生成新的实体标识（ULID 字符串）"""
    return str(ULID())


def now() -> datetime:
    """当前本地时间（naive），实体时间戳统一使用本地时间"""
    return datetime.now()
