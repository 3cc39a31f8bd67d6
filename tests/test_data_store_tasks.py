"""DataStore 任务操作测试

测试内容：
1. add_task 自动创建需求并建立关联
2. 任务 <-> 需求 双向同步
3. 删除级联
4. move/resize 与结束时刻收敛
5. 目标不存在时静默忽略
6. 变更持久化与广播
"""

import asyncio

from conftest import GatedDataStore, day, full_day_range
from myddl.core.data_store import DataStore
from myddl.core.hub import ChangeHub
from myddl.core.models import (
    ChangeAction,
    EntityKind,
    RequirementPriority,
    RequirementStatus,
    Task,
    TaskPriority,
)
from myddl.core.store import StoreGroup


def _task(first: int = 3, last: int = 3, **kwargs) -> Task:
    start, end = full_day_range(first, last)
    return Task(title=kwargs.pop("title", "写周报"), start_date=start, end_date=end, **kwargs)


async def _reloaded(store_group: StoreGroup) -> DataStore:
    fresh = DataStore.from_store_group(store_group)
    await fresh.load()
    return fresh


class TestAddTask:
    """添加任务测试"""

    async def test_creates_linked_requirement(self, data_store: DataStore):
        project_id = data_store.projects[0].id
        stored = await data_store.add_task(
            _task(priority=TaskPriority.HIGH, notes="细节", project_id=project_id)
        )

        assert len(data_store.requirements) == 1
        req = data_store.requirements[0]
        assert stored.requirement_id == req.id
        assert req.title == "写周报"
        assert req.description == "细节"
        assert req.project_id == project_id
        assert req.priority == RequirementPriority.P1
        assert req.status == RequirementStatus.DEVELOPING
        assert req.related_task_ids == [stored.id]
        assert data_store.requirement_for_task(stored) == req
        assert data_store.tasks_for_requirement(req) == [stored]

    async def test_priority_mapping(self, data_store: DataStore):
        low = await data_store.add_task(_task(priority=TaskPriority.LOW))
        medium = await data_store.add_task(_task(priority=TaskPriority.MEDIUM))
        assert data_store.requirement_for_task(low).priority == RequirementPriority.P3
        assert data_store.requirement_for_task(medium).priority == RequirementPriority.P2

    async def test_visible_before_persistence(self, gated_store: GatedDataStore):
        """持久化完成前，内存集合已经包含新任务"""
        task = _task()
        pending = asyncio.create_task(gated_store.store.add_task(task))
        await asyncio.sleep(0)

        assert gated_store.store.task(task.id) is not None
        assert not pending.done()

        gated_store.release.set()
        await pending
        assert gated_store.saved_ids == [task.id]

    async def test_persisted(self, data_store: DataStore, store_group: StoreGroup):
        stored = await data_store.add_task(_task())
        fresh = await _reloaded(store_group)
        assert fresh.task(stored.id).requirement_id == stored.requirement_id
        assert fresh.requirement(stored.requirement_id) is not None

    async def test_duplicate_id_returns_existing(self, data_store: DataStore):
        task = _task()
        first = await data_store.add_task(task)
        second = await data_store.add_task(task.model_copy(update={"title": "另一个"}))
        assert second == first
        assert len(data_store.tasks) == 1
        assert len(data_store.requirements) == 1

    async def test_end_before_start_clamped(self, data_store: DataStore):
        task = Task(title="倒置", start_date=day(5, 9), end_date=day(3))
        stored = await data_store.add_task(task)
        assert stored.end_date == stored.start_date == day(5, 9)

    async def test_without_requirement(self, data_store: DataStore):
        stored = await data_store.add_task_without_requirement(_task())
        assert stored.requirement_id is None
        assert data_store.requirements == []

    async def test_broadcast(self, data_store: DataStore, hub: ChangeHub):
        queue = hub.subscribe(EntityKind.TASK)
        stored = await data_store.add_task(_task())
        change = queue.get_nowait()
        assert change.kind == EntityKind.TASK
        assert change.action == ChangeAction.ADDED
        assert change.ids == [stored.id]


class TestUpdateTask:
    """更新任务与同步测试"""

    async def test_syncs_to_requirement(self, data_store: DataStore):
        project = data_store.projects[0]
        stored = await data_store.add_task(_task())
        updated = await data_store.update_task(
            stored.model_copy(update={"title": "新标题", "notes": "新备注", "project_id": project.id})
        )

        req = data_store.requirement(stored.requirement_id)
        assert req.title == "新标题"
        assert req.description == "新备注"
        assert req.project_id == project.id
        assert req.updated_at == updated.updated_at

    async def test_sync_is_idempotent(self, data_store: DataStore):
        stored = await data_store.add_task(_task())
        changed = stored.model_copy(update={"title": "新标题"})
        await data_store.update_task(changed)
        await data_store.update_task(changed)

        assert len(data_store.requirements) == 1
        assert data_store.requirement(stored.requirement_id).title == "新标题"

    async def test_requirement_update_syncs_back(self, data_store: DataStore):
        stored = await data_store.add_task(_task())
        req = data_store.requirement(stored.requirement_id)
        await data_store.update_requirement(
            req.model_copy(update={"title": "需求改名", "description": "需求描述"})
        )

        task = data_store.task(stored.id)
        assert task.title == "需求改名"
        assert task.notes == "需求描述"

    async def test_update_missing_is_noop(self, data_store: DataStore):
        assert await data_store.update_task(_task()) is None
        assert data_store.tasks == []

    async def test_end_before_start_clamped(self, data_store: DataStore):
        stored = await data_store.add_task(_task())
        updated = await data_store.update_task(stored.model_copy(update={"end_date": day(1)}))
        assert updated.end_date == updated.start_date

    async def test_persisted(self, data_store: DataStore, store_group: StoreGroup):
        stored = await data_store.add_task(_task())
        await data_store.update_task(stored.model_copy(update={"title": "持久化"}))

        fresh = await _reloaded(store_group)
        assert fresh.task(stored.id).title == "持久化"
        assert fresh.requirement(stored.requirement_id).title == "持久化"


class TestDeleteTask:
    """删除任务测试"""

    async def test_cascades_to_requirement(self, data_store: DataStore, store_group: StoreGroup):
        stored = await data_store.add_task(_task())
        assert await data_store.delete_task(stored.id)
        assert data_store.tasks == []
        assert data_store.requirements == []

        fresh = await _reloaded(store_group)
        assert fresh.tasks == []
        assert fresh.requirements == []

    async def test_delete_requirement_cascades_to_task(self, data_store: DataStore):
        stored = await data_store.add_task(_task())
        assert await data_store.delete_requirement(stored.requirement_id)
        assert data_store.task(stored.id) is None
        assert data_store.requirements == []

    async def test_unlinked_task_delete(self, data_store: DataStore):
        stored = await data_store.add_task_without_requirement(_task())
        assert await data_store.delete_task(stored)
        assert data_store.tasks == []

    async def test_delete_missing(self, data_store: DataStore):
        assert await data_store.delete_task("missing") is False


class TestMoveResize:
    """平移与调整结束时刻测试"""

    async def test_move_keeps_duration(self, data_store: DataStore):
        stored = await data_store.add_task(_task(3, 4))
        moved = await data_store.move_task(stored.id, day(10))
        assert moved.start_date == day(10)
        assert moved.end_date == day(11, 23, 59, 59)
        assert moved.requirement_id == stored.requirement_id

    async def test_resize(self, data_store: DataStore):
        stored = await data_store.add_task(_task(3, 3))
        resized = await data_store.resize_task(stored, day(6, 23, 59, 59))
        assert resized.day_span == 4

    async def test_resize_clamped(self, data_store: DataStore):
        stored = await data_store.add_task(_task(3, 3))
        resized = await data_store.resize_task(stored, day(1))
        assert resized.end_date == resized.start_date

    async def test_missing_ids_ignored(self, data_store: DataStore):
        assert await data_store.move_task("missing", day(10)) is None
        assert await data_store.resize_task("missing", day(10)) is None


class TestPersistenceFailure:
    """写库失败时以内存为准继续运行"""

    async def test_add_survives_failed_write(self, failing_store: DataStore):
        stored = await failing_store.add_task(_task())
        assert failing_store.task(stored.id) is not None
        assert failing_store.requirement(stored.requirement_id) is not None

    async def test_delete_survives_failed_write(self, failing_store: DataStore):
        stored = await failing_store.add_task(_task())
        assert await failing_store.delete_task(stored.id)
        assert failing_store.tasks == []
