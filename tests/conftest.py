"""测试配置 -- 临时 SQLite 数据库与图片目录 fixture"""

import asyncio
from collections.abc import AsyncGenerator
from datetime import datetime
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from myddl.core.data_store import DataStore
from myddl.core.hub import ChangeHub
from myddl.core.store import StoreGroup, create_store_group
from myddl.core.store.image_store import ImageStore
from pydantic import BaseModel


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """临时数据库路径"""
    return tmp_path / "sqlite" / "myddl.sqlite"


@pytest.fixture
def images_dir(tmp_path: Path) -> Path:
    """临时图片目录"""
    path = tmp_path / "images"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest_asyncio.fixture
async def db(db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """已初始化的数据库连接"""
    from myddl.core.store.sqlite_init import init_db

    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(str(db_path))
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(db_path: Path, images_dir: Path) -> AsyncGenerator[StoreGroup, None]:
    """共享连接的 Store 实例组"""
    group = await create_store_group(str(db_path), images_dir)
    yield group
    await group.close()


@pytest.fixture
def hub() -> ChangeHub:
    return ChangeHub()


@pytest_asyncio.fixture
async def data_store(store_group: StoreGroup, hub: ChangeHub) -> DataStore:
    """已加载的 DataStore（含自动创建的默认项目）"""
    store = DataStore.from_store_group(store_group, hub=hub)
    await store.load()
    return store


def day(d: int, hour: int = 0, minute: int = 0, second: int = 0) -> datetime:
    """2025 年 3 月的某一天，便于构造多日任务"""
    return datetime(2025, 3, d, hour, minute, second)


def full_day_range(first: int, last: int) -> tuple[datetime, datetime]:
    """覆盖 first..last 整天的起止时刻"""
    return day(first), day(last, 23, 59, 59)


class MemoryRecordStore:
    """内存版 RecordStore，可选在写入前等待 gate 或模拟写入失败"""

    def __init__(self, gate: asyncio.Event | None = None, fail: bool = False) -> None:
        self.records: dict[str, BaseModel] = {}
        self._gate = gate
        self._fail = fail

    async def fetch_all(self) -> list:
        return list(self.records.values())

    async def save(self, entity) -> bool:
        return await self.save_many([entity])

    async def save_many(self, entities) -> bool:
        entities = list(entities)
        if self._gate is not None:
            await self._gate.wait()
        if self._fail:
            return False
        for entity in entities:
            self.records[entity.id] = entity
        return True

    async def delete(self, entity_id: str) -> bool:
        return await self.delete_many([entity_id])

    async def delete_many(self, entity_ids) -> bool:
        if self._fail:
            return False
        for entity_id in entity_ids:
            self.records.pop(entity_id, None)
        return True


class GatedDataStore:
    """任务表写入被 release 阻塞的 DataStore"""

    def __init__(self, images_dir: Path) -> None:
        self.release = asyncio.Event()
        self.task_store = MemoryRecordStore(gate=self.release)
        self.store = DataStore(
            task_store=self.task_store,
            project_store=MemoryRecordStore(),
            requirement_store=MemoryRecordStore(),
            note_store=MemoryRecordStore(),
            image_store=ImageStore(images_dir),
        )

    @property
    def saved_ids(self) -> list[str]:
        return list(self.task_store.records)


@pytest_asyncio.fixture
async def gated_store(images_dir: Path) -> GatedDataStore:
    gated = GatedDataStore(images_dir)
    await gated.store.load()
    return gated


@pytest_asyncio.fixture
async def failing_store(images_dir: Path) -> DataStore:
    """所有写入都失败的 DataStore"""
    store = DataStore(
        task_store=MemoryRecordStore(fail=True),
        project_store=MemoryRecordStore(fail=True),
        requirement_store=MemoryRecordStore(fail=True),
        note_store=MemoryRecordStore(fail=True),
        image_store=ImageStore(images_dir),
    )
    await store.load()
    return store
