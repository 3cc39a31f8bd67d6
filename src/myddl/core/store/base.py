"""SQLite 记录存储基类

每个实体表一个子类，子类声明表名、列名以及实体与数据库行之间的转换。
基类负责按主键 upsert、批量写入、删除和全量读取。

读写失败时记录日志并降级：读取返回空列表，写入回滚后当作 no-op，
调用方（DataStore）以内存集合为准继续运行。
"""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing import Any, ClassVar, Generic, TypeVar

import aiosqlite
import structlog
from pydantic import BaseModel, ValidationError

log = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)


def to_epoch(value: datetime) -> float:
    return value.timestamp()


def from_epoch(value: float) -> datetime:
    return datetime.fromtimestamp(value)


class SqliteRecordStore(Generic[T]):
    """按 id 主键 upsert 的 SQLite 记录存储"""

    table: ClassVar[str]
    columns: ClassVar[tuple[str, ...]]

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    def to_row(self, entity: T) -> tuple[Any, ...]:
        """将实体转换为与 columns 同序的参数元组"""
        raise NotImplementedError

    def from_row(self, row: Sequence[Any]) -> T:
        """将与 columns 同序的数据库行转换为实体"""
        raise NotImplementedError

    @property
    def _select_sql(self) -> str:
        return f"SELECT {', '.join(self.columns)} FROM {self.table}"

    @property
    def _upsert_sql(self) -> str:
        placeholders = ", ".join("?" for _ in self.columns)
        updates = ", ".join(f"{c} = excluded.{c}" for c in self.columns if c != "id")
        return (
            f"INSERT INTO {self.table} ({', '.join(self.columns)}) "
            f"VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )

    async def fetch_all(self) -> list[T]:
        """读取表中全部记录，无法解析的行跳过"""
        try:
            cursor = await self._conn.execute(self._select_sql)
            rows = await cursor.fetchall()
        except aiosqlite.Error as exc:
            log.warning("db_fetch_failed", table=self.table, error=str(exc))
            return []

        records: list[T] = []
        for row in rows:
            try:
                records.append(self.from_row(row))
            except (ValueError, TypeError, OverflowError, OSError, ValidationError) as exc:
                log.warning(
                    "db_row_skipped",
                    table=self.table,
                    row_id=row[0],
                    error=str(exc),
                )
        return records

    async def save(self, entity: T) -> bool:
        """按 id upsert 单条记录"""
        return await self.save_many([entity])

    async def save_many(self, entities: Iterable[T]) -> bool:
        """在同一事务内 upsert 多条记录

        Returns:
            True 如果写入成功（空列表视为成功）
        """
        params = [self.to_row(entity) for entity in entities]
        if not params:
            return True
        try:
            await self._conn.executemany(self._upsert_sql, params)
            await self._conn.commit()
        except aiosqlite.Error as exc:
            await self._rollback_quietly()
            log.warning(
                "db_save_failed",
                table=self.table,
                count=len(params),
                error=str(exc),
            )
            return False
        return True

    async def delete(self, entity_id: str) -> bool:
        return await self.delete_many([entity_id])

    async def delete_many(self, entity_ids: Iterable[str]) -> bool:
        """在同一事务内按 id 删除多条记录，不存在的 id 忽略"""
        params = [(entity_id,) for entity_id in entity_ids]
        if not params:
            return True
        try:
            await self._conn.executemany(
                f"DELETE FROM {self.table} WHERE id = ?",
                params,
            )
            await self._conn.commit()
        except aiosqlite.Error as exc:
            await self._rollback_quietly()
            log.warning(
                "db_delete_failed",
                table=self.table,
                count=len(params),
                error=str(exc),
            )
            return False
        return True

    async def _rollback_quietly(self) -> None:
        try:
            await self._conn.rollback()
        except aiosqlite.Error as exc:
            log.warning("db_rollback_failed", table=self.table, error=str(exc))
