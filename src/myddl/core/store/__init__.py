"""MyDDL Core Store -- SQLite 持久化实现

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite
import structlog

from ..exceptions import StorageError
from .base import SqliteRecordStore
from .image_store import ImageStore
from .note_store import SqliteNoteStore
from .project_store import SqliteProjectStore
from .requirement_store import SqliteRequirementStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore

log = structlog.get_logger()

_MEMORY_DB = ":memory:"


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接，所有写入经由这一个连接串行执行"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        images_dir: Path,
        degraded: bool = False,
    ) -> None:
        self.conn = conn
        # 数据库文件不可用、已退回内存数据库时为 True，本次会话的修改不会落盘
        self.degraded = degraded
        self.task_store = SqliteTaskStore(conn)
        self.project_store = SqliteProjectStore(conn)
        self.requirement_store = SqliteRequirementStore(conn)
        self.note_store = SqliteNoteStore(conn)
        self.image_store = ImageStore(images_dir)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(
    db_path: str,
    images_dir: str | Path,
) -> StoreGroup:
    """创建 Store 实例组

    数据库文件无法打开或初始化（路径不可用、文件损坏）时记录错误，
    退回到内存数据库：读取得到空集合，写入只在本次会话内有效。

    Args:
        db_path: SQLite 数据库文件路径
        images_dir: 笔记图片存储目录

    Returns:
        StoreGroup 实例（degraded 标记是否已退回内存数据库）

    Raises:
        StorageError: 连内存数据库也无法初始化
    """
    images_path = Path(images_dir)
    images_path.mkdir(parents=True, exist_ok=True)

    degraded = False
    try:
        # 确保数据库目录存在
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        conn = await _connect(db_path)
    except (aiosqlite.Error, OSError) as exc:
        log.error("db_unavailable", db_path=db_path, error=str(exc), fallback=_MEMORY_DB)
        try:
            conn = await _connect(_MEMORY_DB)
        except aiosqlite.Error as fallback_exc:
            raise StorageError(db_path, fallback_exc) from fallback_exc
        degraded = True

    log.info(
        "store_group_created",
        db_path=db_path,
        images_dir=str(images_path),
        degraded=degraded,
    )
    return StoreGroup(conn=conn, images_dir=images_path, degraded=degraded)


async def _connect(db_path: str) -> aiosqlite.Connection:
    """打开连接并初始化表结构，初始化失败时关闭连接后重新抛出"""
    conn = await aiosqlite.connect(db_path)
    try:
        await init_db(conn)
    except aiosqlite.Error:
        await conn.close()
        raise
    return conn


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteRecordStore",
    "SqliteTaskStore",
    "SqliteProjectStore",
    "SqliteRequirementStore",
    "SqliteNoteStore",
    "ImageStore",
    "init_db",
]
