"""Store Protocol 接口定义

定义持久化网关和图片存储的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing），
DataStore 测试可以用内存实现替换 SQLite 实现。
"""

from collections.abc import Iterable
from typing import Protocol, TypeVar

T = TypeVar("T")


class RecordStore(Protocol[T]):
    """单实体类型的持久化接口"""

    async def fetch_all(self) -> list[T]:
        """读取全部记录（失败时返回空列表）"""
        ...

    async def save(self, entity: T) -> bool:
        """按 id upsert 单条记录"""
        ...

    async def save_many(self, entities: Iterable[T]) -> bool:
        """在同一事务内 upsert 多条记录"""
        ...

    async def delete(self, entity_id: str) -> bool:
        """按 id 删除记录"""
        ...

    async def delete_many(self, entity_ids: Iterable[str]) -> bool:
        """按 id 批量删除记录"""
        ...


class AttachmentStore(Protocol):
    """笔记附件存储接口"""

    def save(self, data: bytes) -> str | None:
        """写入附件，返回文件名（失败返回 None）"""
        ...

    def load(self, filename: str) -> bytes | None:
        """读取附件内容"""
        ...

    def delete(self, filenames: Iterable[str]) -> None:
        """尽力删除附件"""
        ...

    def clean_orphans(self, referenced_filenames: set[str]) -> list[str]:
        """删除未被引用的附件"""
        ...
