"""DataStore 需求操作与导入测试"""

import json
from datetime import datetime

import pytest
from conftest import day, full_day_range
from myddl.core.data_store import DataStore
from myddl.core.exceptions import RequirementImportError
from myddl.core.models import (
    Requirement,
    RequirementPriority,
    RequirementStatus,
    Task,
)
from myddl.core.store import StoreGroup


def _import_doc(released=(), deprecated=()) -> str:
    return json.dumps(
        {
            "released": [{"title": t, "description": ""} for t in released],
            "deprecated": [{"title": t, "description": ""} for t in deprecated],
        },
        ensure_ascii=False,
    )


class TestRequirementMutations:
    """需求增删改测试"""

    async def test_standalone_requirement(self, data_store: DataStore):
        req = await data_store.add_requirement(Requirement(title="独立需求"))
        assert data_store.requirement(req.id) == req
        assert data_store.tasks == []

    async def test_update_standalone(self, data_store: DataStore):
        req = await data_store.add_requirement(Requirement(title="独立需求"))
        updated = await data_store.update_requirement(
            req.model_copy(update={"status": RequirementStatus.TESTING})
        )
        assert updated.status == RequirementStatus.TESTING
        assert updated.updated_at >= req.updated_at

    async def test_update_missing(self, data_store: DataStore):
        assert await data_store.update_requirement(Requirement(title="x")) is None

    async def test_delete_standalone(self, data_store: DataStore):
        req = await data_store.add_requirement(Requirement(title="独立需求"))
        assert await data_store.delete_requirement(req)
        assert data_store.requirements == []
        assert await data_store.delete_requirement(req) is False


class TestRequirementQueries:
    """需求查询测试"""

    async def test_for_status_newest_first(self, data_store: DataStore):
        older = await data_store.add_requirement(
            Requirement(title="旧", status=RequirementStatus.TESTING, created_at=day(1))
        )
        newer = await data_store.add_requirement(
            Requirement(title="新", status=RequirementStatus.TESTING, created_at=day(5))
        )
        await data_store.add_requirement(Requirement(title="开发中", created_at=day(3)))

        assert data_store.requirements_for_status(RequirementStatus.TESTING) == [newer, older]
        assert data_store.requirements_count(RequirementStatus.TESTING) == 2
        assert data_store.requirements_count(RequirementStatus.DEVELOPING) == 1
        assert data_store.requirements_count(RequirementStatus.RELEASED) == 0


class TestImportRequirements:
    """需求导入测试"""

    async def test_import_priority_and_status(self, data_store: DataStore):
        count = await data_store.import_requirements(
            _import_doc(
                released=["【BUG】时长 补点BUG", "【需求】janus主动缓存 P0"],
                deprecated=["【优化】阶段报告缓存问题"],
            )
        )
        assert count == 3

        released = data_store.requirements_for_status(RequirementStatus.RELEASED)
        deprecated = data_store.requirements_for_status(RequirementStatus.DEPRECATED)
        by_title = {r.title: r for r in released + deprecated}
        assert by_title["【BUG】时长 补点BUG"].priority == RequirementPriority.P1
        assert by_title["【需求】janus主动缓存 P0"].priority == RequirementPriority.P0
        assert by_title["【优化】阶段报告缓存问题"].priority == RequirementPriority.P2
        assert all(r.project_id is None for r in by_title.values())

    async def test_document_order_preserved(self, data_store: DataStore):
        await data_store.import_requirements(_import_doc(released=["a", "b", "c"]))
        released = data_store.requirements_for_status(RequirementStatus.RELEASED)
        # 倒序展示时文档中越靠后的越靠前
        assert [r.title for r in released] == ["c", "b", "a"]

    async def test_replaces_previous_import(self, data_store: DataStore):
        developing = await data_store.add_requirement(Requirement(title="开发中"))
        await data_store.import_requirements(_import_doc(released=["old"]))
        await data_store.import_requirements(_import_doc(deprecated=["new"]))

        titles = {r.title for r in data_store.requirements}
        assert titles == {"开发中", "new"}
        assert data_store.requirement(developing.id) is not None

    async def test_linked_tasks_unlinked(self, data_store: DataStore):
        start, end = full_day_range(3, 3)
        task = await data_store.add_task(Task(title="已上线任务", start_date=start, end_date=end))
        req = data_store.requirement_for_task(task)
        await data_store.update_requirement(
            req.model_copy(update={"status": RequirementStatus.RELEASED})
        )

        await data_store.import_requirements(_import_doc(released=["x"]))
        survivor = data_store.task(task.id)
        assert survivor is not None
        assert survivor.requirement_id is None
        assert data_store.requirement(req.id) is None

    async def test_malformed_json_changes_nothing(self, data_store: DataStore):
        await data_store.import_requirements(_import_doc(released=["keep"]))
        before = list(data_store.requirements)

        with pytest.raises(RequirementImportError):
            await data_store.import_requirements("{not json")
        with pytest.raises(RequirementImportError):
            await data_store.import_requirements('{"released": [{"description": "no title"}]}')

        assert data_store.requirements == before

    async def test_empty_document(self, data_store: DataStore):
        assert await data_store.import_requirements("{}") == 0

    async def test_import_persisted(self, data_store: DataStore, store_group: StoreGroup):
        await data_store.import_requirements(_import_doc(released=["a"], deprecated=["b"]))
        fresh = DataStore.from_store_group(store_group)
        await fresh.load()
        assert {r.title for r in fresh.requirements} == {"a", "b"}
        assert all(isinstance(r.created_at, datetime) for r in fresh.requirements)
