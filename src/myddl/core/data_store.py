"""DataStore -- 任务/项目/需求/笔记的内存数据源

启动时从数据库读取一次全部集合，之后所有查询只读内存。
每个变更方法先更新内存集合（在任何 await 之前完成，调用方立即可见），
再经由持久化网关写库，最后通过 ChangeHub 广播变更。

跨实体规则：
- add_task 自动创建一条需求并建立 task.requirement_id 关联
- 任务与需求双向同步标题/描述/项目
- 删除任务连带删除其关联需求；删除需求连带删除关联任务
- 删除项目连带删除其下任务（同项目的需求保留）
- 目标 id 不存在的变更静默忽略（界面可能持有已删除实体的旧引用）
"""

from collections.abc import Iterable
from datetime import datetime

import structlog

from . import importer
from .dates import iter_days
from .hub import ChangeHub
from .models import (
    DEFAULT_COLOR,
    DEFAULT_PROJECT_NAME,
    ChangeAction,
    EntityKind,
    Note,
    NoteAttachment,
    Project,
    Requirement,
    RequirementStatus,
    StoreChange,
    Task,
    TaskStatus,
    now,
)
from .store import StoreGroup
from .store.protocols import AttachmentStore, RecordStore

log = structlog.get_logger()

TaskRef = Task | str
ProjectRef = Project | str
RequirementRef = Requirement | str
NoteRef = Note | str


def _ref_id(ref: Task | Project | Requirement | Note | str) -> str:
    return ref if isinstance(ref, str) else ref.id


def _index_of(items: list, entity_id: str) -> int | None:
    for index, item in enumerate(items):
        if item.id == entity_id:
            return index
    return None


def normalized_task(task: Task) -> Task:
    """返回任务副本，结束时刻早于开始时刻时收敛到开始时刻"""
    if task.end_date < task.start_date:
        log.debug("task_end_clamped", task_id=task.id)
        return task.model_copy(update={"end_date": task.start_date})
    return task.model_copy()


class DataStore:
    """领域数据源"""

    def __init__(
        self,
        task_store: RecordStore[Task],
        project_store: RecordStore[Project],
        requirement_store: RecordStore[Requirement],
        note_store: RecordStore[Note],
        image_store: AttachmentStore,
        hub: ChangeHub | None = None,
    ) -> None:
        self._task_store = task_store
        self._project_store = project_store
        self._requirement_store = requirement_store
        self._note_store = note_store
        self._image_store = image_store
        self._hub = hub

        self.tasks: list[Task] = []
        self.projects: list[Project] = []
        self.requirements: list[Requirement] = []
        self.notes: list[Note] = []

        # note_id -> 上一次 sorted_notes 返回时的位置
        self._note_positions: dict[str, int] = {}

    @classmethod
    def from_store_group(cls, stores: StoreGroup, hub: ChangeHub | None = None) -> "DataStore":
        return cls(
            task_store=stores.task_store,
            project_store=stores.project_store,
            requirement_store=stores.requirement_store,
            note_store=stores.note_store,
            image_store=stores.image_store,
            hub=hub,
        )

    async def load(self) -> None:
        """从数据库读取全部集合；项目为空时创建默认项目"""
        self.tasks = await self._task_store.fetch_all()
        self.projects = await self._project_store.fetch_all()
        self.requirements = await self._requirement_store.fetch_all()
        self.notes = await self._note_store.fetch_all()
        self._note_positions.clear()

        if not self.projects:
            default_project = Project(name=DEFAULT_PROJECT_NAME, color_hex=DEFAULT_COLOR)
            self.projects.append(default_project)
            await self._project_store.save(default_project)
            log.info("default_project_created", project_id=default_project.id)

        log.info(
            "data_store_loaded",
            task_count=len(self.tasks),
            project_count=len(self.projects),
            requirement_count=len(self.requirements),
            note_count=len(self.notes),
        )
        for kind in EntityKind:
            self._notify(kind, ChangeAction.RELOADED, [])

    # ------------------------------------------------------------------
    # 查找
    # ------------------------------------------------------------------

    def task(self, task_id: str) -> Task | None:
        index = _index_of(self.tasks, task_id)
        return None if index is None else self.tasks[index]

    def project(self, project_id: str) -> Project | None:
        index = _index_of(self.projects, project_id)
        return None if index is None else self.projects[index]

    def requirement(self, requirement_id: str) -> Requirement | None:
        index = _index_of(self.requirements, requirement_id)
        return None if index is None else self.requirements[index]

    def note(self, note_id: str) -> Note | None:
        index = _index_of(self.notes, note_id)
        return None if index is None else self.notes[index]

    # ------------------------------------------------------------------
    # Task
    # ------------------------------------------------------------------

    async def add_task(self, task: Task) -> Task:
        """添加任务并自动创建关联需求

        需求取任务的标题/备注/项目，优先级按 高->P1、中->P2、低->P3 映射，
        状态固定为开发中。

        Returns:
            已写入的任务（requirement_id 指向新需求）
        """
        existing = self.task(task.id)
        if existing is not None:
            log.warning("task_already_exists", task_id=task.id)
            return existing

        requirement = Requirement(
            title=task.title,
            description=task.notes,
            status=RequirementStatus.DEVELOPING,
            priority=task.priority.to_requirement_priority(),
            project_id=task.project_id,
            related_task_ids=[task.id],
        )
        stored = normalized_task(task).model_copy(update={"requirement_id": requirement.id})
        self.requirements.append(requirement)
        self.tasks.append(stored)

        await self._requirement_store.save(requirement)
        await self._task_store.save(stored)

        log.debug("task_added", task_id=stored.id, requirement_id=requirement.id)
        self._notify(EntityKind.REQUIREMENT, ChangeAction.ADDED, [requirement.id])
        self._notify(EntityKind.TASK, ChangeAction.ADDED, [stored.id])
        return stored

    async def add_task_without_requirement(self, task: Task) -> Task:
        """添加任务但不创建需求（拆分任务产生的片段走这里）"""
        existing = self.task(task.id)
        if existing is not None:
            log.warning("task_already_exists", task_id=task.id)
            return existing

        stored = normalized_task(task)
        self.tasks.append(stored)
        await self._task_store.save(stored)

        log.debug("task_added", task_id=stored.id, requirement_id=stored.requirement_id)
        self._notify(EntityKind.TASK, ChangeAction.ADDED, [stored.id])
        return stored

    async def update_task(self, task: Task) -> Task | None:
        """按 id 替换任务，并把标题/备注/项目同步到关联需求

        Returns:
            更新后的任务；id 不存在时返回 None 且不做任何修改
        """
        index = _index_of(self.tasks, task.id)
        if index is None:
            log.debug("task_not_found", task_id=task.id)
            return None

        stamp = now()
        updated = normalized_task(task).model_copy(update={"updated_at": stamp})
        self.tasks[index] = updated

        synced: Requirement | None = None
        if updated.requirement_id is not None:
            req_index = _index_of(self.requirements, updated.requirement_id)
            if req_index is not None:
                synced = self.requirements[req_index].model_copy(
                    update={
                        "title": updated.title,
                        "description": updated.notes,
                        "project_id": updated.project_id,
                        "updated_at": stamp,
                    }
                )
                self.requirements[req_index] = synced

        await self._task_store.save(updated)
        if synced is not None:
            await self._requirement_store.save(synced)
            self._notify(EntityKind.REQUIREMENT, ChangeAction.UPDATED, [synced.id])
        self._notify(EntityKind.TASK, ChangeAction.UPDATED, [updated.id])
        return updated

    async def delete_task(self, task: TaskRef) -> bool:
        """删除任务及其关联需求

        Returns:
            True 如果任务存在并已删除
        """
        index = _index_of(self.tasks, _ref_id(task))
        if index is None:
            log.debug("task_not_found", task_id=_ref_id(task))
            return False

        removed = self.tasks.pop(index)
        removed_requirement: Requirement | None = None
        if removed.requirement_id is not None:
            req_index = _index_of(self.requirements, removed.requirement_id)
            if req_index is not None:
                removed_requirement = self.requirements.pop(req_index)

        if removed_requirement is not None:
            await self._requirement_store.delete(removed_requirement.id)
        await self._task_store.delete(removed.id)

        log.debug(
            "task_deleted",
            task_id=removed.id,
            requirement_id=removed_requirement.id if removed_requirement else None,
        )
        if removed_requirement is not None:
            self._notify(EntityKind.REQUIREMENT, ChangeAction.DELETED, [removed_requirement.id])
        self._notify(EntityKind.TASK, ChangeAction.DELETED, [removed.id])
        return True

    async def move_task(self, task: TaskRef, new_start_date: datetime) -> Task | None:
        """保持时长不变，把任务整体平移到 new_start_date"""
        index = _index_of(self.tasks, _ref_id(task))
        if index is None:
            log.debug("task_not_found", task_id=_ref_id(task))
            return None

        current = self.tasks[index]
        duration = current.end_date - current.start_date
        moved = current.model_copy(
            update={
                "start_date": new_start_date,
                "end_date": new_start_date + duration,
                "updated_at": now(),
            }
        )
        self.tasks[index] = moved
        await self._task_store.save(moved)
        self._notify(EntityKind.TASK, ChangeAction.UPDATED, [moved.id])
        return moved

    async def resize_task(self, task: TaskRef, new_end_date: datetime) -> Task | None:
        """调整结束时刻，结果不早于开始时刻"""
        index = _index_of(self.tasks, _ref_id(task))
        if index is None:
            log.debug("task_not_found", task_id=_ref_id(task))
            return None

        current = self.tasks[index]
        resized = current.model_copy(
            update={
                "end_date": max(new_end_date, current.start_date),
                "updated_at": now(),
            }
        )
        self.tasks[index] = resized
        await self._task_store.save(resized)
        self._notify(EntityKind.TASK, ChangeAction.UPDATED, [resized.id])
        return resized

    # ------------------------------------------------------------------
    # Project
    # ------------------------------------------------------------------

    async def add_project(self, project: Project) -> Project:
        existing = self.project(project.id)
        if existing is not None:
            log.warning("project_already_exists", project_id=project.id)
            return existing

        stored = project.model_copy()
        self.projects.append(stored)
        await self._project_store.save(stored)
        self._notify(EntityKind.PROJECT, ChangeAction.ADDED, [stored.id])
        return stored

    async def update_project(self, project: Project) -> Project | None:
        index = _index_of(self.projects, project.id)
        if index is None:
            log.debug("project_not_found", project_id=project.id)
            return None

        stored = project.model_copy()
        self.projects[index] = stored
        await self._project_store.save(stored)
        self._notify(EntityKind.PROJECT, ChangeAction.UPDATED, [stored.id])
        return stored

    async def delete_project(self, project: ProjectRef) -> bool:
        """删除项目及其下全部任务；同项目的需求保留"""
        project_id = _ref_id(project)
        index = _index_of(self.projects, project_id)
        if index is None:
            log.debug("project_not_found", project_id=project_id)
            return False

        removed_task_ids = [t.id for t in self.tasks if t.project_id == project_id]
        self.tasks = [t for t in self.tasks if t.project_id != project_id]
        self.projects.pop(index)

        await self._task_store.delete_many(removed_task_ids)
        await self._project_store.delete(project_id)

        log.info(
            "project_deleted",
            project_id=project_id,
            cascaded_task_count=len(removed_task_ids),
        )
        if removed_task_ids:
            self._notify(EntityKind.TASK, ChangeAction.DELETED, removed_task_ids)
        self._notify(EntityKind.PROJECT, ChangeAction.DELETED, [project_id])
        return True

    # ------------------------------------------------------------------
    # Requirement
    # ------------------------------------------------------------------

    async def add_requirement(self, requirement: Requirement) -> Requirement:
        existing = self.requirement(requirement.id)
        if existing is not None:
            log.warning("requirement_already_exists", requirement_id=requirement.id)
            return existing

        stored = requirement.model_copy()
        self.requirements.append(stored)
        await self._requirement_store.save(stored)
        self._notify(EntityKind.REQUIREMENT, ChangeAction.ADDED, [stored.id])
        return stored

    async def update_requirement(self, requirement: Requirement) -> Requirement | None:
        """按 id 替换需求，并把标题/描述/项目同步回关联任务"""
        index = _index_of(self.requirements, requirement.id)
        if index is None:
            log.debug("requirement_not_found", requirement_id=requirement.id)
            return None

        stamp = now()
        updated = requirement.model_copy(update={"updated_at": stamp})
        self.requirements[index] = updated

        synced: Task | None = None
        task_index = self._linked_task_index(updated.id)
        if task_index is not None:
            synced = self.tasks[task_index].model_copy(
                update={
                    "title": updated.title,
                    "notes": updated.description,
                    "project_id": updated.project_id,
                    "updated_at": stamp,
                }
            )
            self.tasks[task_index] = synced

        await self._requirement_store.save(updated)
        if synced is not None:
            await self._task_store.save(synced)
            self._notify(EntityKind.TASK, ChangeAction.UPDATED, [synced.id])
        self._notify(EntityKind.REQUIREMENT, ChangeAction.UPDATED, [updated.id])
        return updated

    async def delete_requirement(self, requirement: RequirementRef) -> bool:
        """删除需求及 requirement_id 指向它的任务"""
        requirement_id = _ref_id(requirement)
        index = _index_of(self.requirements, requirement_id)
        if index is None:
            log.debug("requirement_not_found", requirement_id=requirement_id)
            return False

        removed_task: Task | None = None
        task_index = self._linked_task_index(requirement_id)
        if task_index is not None:
            removed_task = self.tasks.pop(task_index)
        self.requirements.pop(index)

        if removed_task is not None:
            await self._task_store.delete(removed_task.id)
        await self._requirement_store.delete(requirement_id)

        log.debug(
            "requirement_deleted",
            requirement_id=requirement_id,
            task_id=removed_task.id if removed_task else None,
        )
        if removed_task is not None:
            self._notify(EntityKind.TASK, ChangeAction.DELETED, [removed_task.id])
        self._notify(EntityKind.REQUIREMENT, ChangeAction.DELETED, [requirement_id])
        return True

    async def import_requirements(self, text: str) -> int:
        """导入已上线/已废弃需求 JSON 文档

        文档解析失败时抛出 RequirementImportError，现有数据不受影响。
        解析成功后先移除全部已上线/已废弃需求（关联任务解除关联），
        再按文档顺序加入新需求。

        Returns:
            导入的需求数量
        """
        document = importer.parse_requirement_import(text)
        imported = importer.build_requirements(document, base=now())

        replaced_statuses = {RequirementStatus.RELEASED, RequirementStatus.DEPRECATED}
        replaced_ids = {r.id for r in self.requirements if r.status in replaced_statuses}
        self.requirements = [r for r in self.requirements if r.id not in replaced_ids]

        stamp = now()
        unlinked: list[Task] = []
        for index, task in enumerate(self.tasks):
            if task.requirement_id in replaced_ids:
                self.tasks[index] = task.model_copy(
                    update={"requirement_id": None, "updated_at": stamp}
                )
                unlinked.append(self.tasks[index])

        self.requirements.extend(imported)

        await self._requirement_store.delete_many(replaced_ids)
        await self._task_store.save_many(unlinked)
        await self._requirement_store.save_many(imported)

        log.info(
            "requirements_imported",
            imported_count=len(imported),
            replaced_count=len(replaced_ids),
            unlinked_task_count=len(unlinked),
        )
        if replaced_ids:
            self._notify(EntityKind.REQUIREMENT, ChangeAction.DELETED, sorted(replaced_ids))
        if unlinked:
            self._notify(EntityKind.TASK, ChangeAction.UPDATED, [t.id for t in unlinked])
        self._notify(EntityKind.REQUIREMENT, ChangeAction.ADDED, [r.id for r in imported])
        return len(imported)

    # ------------------------------------------------------------------
    # Note
    # ------------------------------------------------------------------

    async def add_note(self, note: Note) -> Note:
        existing = self.note(note.id)
        if existing is not None:
            log.warning("note_already_exists", note_id=note.id)
            return existing

        stored = note.model_copy()
        self.notes.append(stored)
        await self._note_store.save(stored)
        self._notify(EntityKind.NOTE, ChangeAction.ADDED, [stored.id])
        return stored

    async def update_note(self, note: Note) -> Note | None:
        """按 id 替换笔记

        只有标题、正文或置顶状态确实变化时才刷新 updated_at，
        否则沿用已存记录的 updated_at。
        """
        index = _index_of(self.notes, note.id)
        if index is None:
            log.debug("note_not_found", note_id=note.id)
            return None

        existing = self.notes[index]
        updated_at = now() if note.content_differs(existing) else existing.updated_at
        updated = note.model_copy(update={"updated_at": updated_at})
        self.notes[index] = updated

        await self._note_store.save(updated)
        self._notify(EntityKind.NOTE, ChangeAction.UPDATED, [updated.id])
        return updated

    async def delete_note(self, note: NoteRef) -> bool:
        """删除笔记，先删除其引用的图片文件"""
        note_id = _ref_id(note)
        index = _index_of(self.notes, note_id)
        if index is None:
            log.debug("note_not_found", note_id=note_id)
            return False

        removed = self.notes.pop(index)
        self._note_positions.pop(note_id, None)
        self._image_store.delete(removed.image_filenames)
        await self._note_store.delete(note_id)

        self._notify(EntityKind.NOTE, ChangeAction.DELETED, [note_id])
        return True

    async def toggle_note_pin(self, note: NoteRef) -> Note | None:
        """切换置顶，不刷新 updated_at（非置顶邻居间的相对位置保持不变）"""
        index = _index_of(self.notes, _ref_id(note))
        if index is None:
            log.debug("note_not_found", note_id=_ref_id(note))
            return None

        current = self.notes[index]
        toggled = current.model_copy(update={"is_pinned": not current.is_pinned})
        self.notes[index] = toggled
        await self._note_store.save(toggled)
        self._notify(EntityKind.NOTE, ChangeAction.UPDATED, [toggled.id])
        return toggled

    def store_image(self, data: bytes, mime: str = "image/png") -> NoteAttachment | None:
        """保存图片文件，返回可放入 Note.attachments 的引用（失败返回 None）"""
        filename = self._image_store.save(data)
        if filename is None:
            return None
        return NoteAttachment(filename=filename, mime=mime, size=len(data))

    def clean_orphan_images(self) -> list[str]:
        """删除未被任何笔记引用的图片文件"""
        referenced = {name for note in self.notes for name in note.image_filenames}
        return self._image_store.clean_orphans(referenced)

    def sorted_notes(self, editing_note_id: str | None = None) -> list[Note]:
        """笔记列表排序：置顶优先，其次按 updated_at 倒序

        正在编辑的笔记如果因为排序变化会换位置，保持在上一次返回时的位置，
        避免用户输入时列表在光标下跳动；编辑结束后恢复自然顺序。
        """
        by_recent = sorted(self.notes, key=lambda n: n.updated_at, reverse=True)
        result = sorted(by_recent, key=lambda n: not n.is_pinned)

        if editing_note_id is not None and editing_note_id in self._note_positions:
            stable_index = self._note_positions[editing_note_id]
            current_index = _index_of(result, editing_note_id)
            if current_index is not None and current_index != stable_index:
                editing = result.pop(current_index)
                result.insert(min(stable_index, len(result)), editing)

        self._note_positions = {n.id: i for i, n in enumerate(result)}
        return result

    # ------------------------------------------------------------------
    # Task 查询与统计
    # ------------------------------------------------------------------

    def tasks_for_date(self, day: datetime) -> list[Task]:
        """覆盖 day 的任务，按优先级高 -> 低排序"""
        return sorted(
            (t for t in self.tasks if t.is_on_date(day)),
            key=lambda t: t.priority.sort_order,
        )

    def tasks_for_project(self, project: ProjectRef) -> list[Task]:
        project_id = _ref_id(project)
        return [t for t in self.tasks if t.project_id == project_id]

    def tasks_in_range(self, start: datetime, end: datetime) -> list[Task]:
        """与 [start, end] 有交集的任务"""
        return [t for t in self.tasks if t.start_date <= end and t.end_date >= start]

    def project_for_task(self, task: Task) -> Project | None:
        if task.project_id is None:
            return None
        return self.project(task.project_id)

    def total_hours_for_date(self, day: datetime) -> float:
        """当天工时合计，多日任务按覆盖天数均摊"""
        return sum(t.hours_per_day for t in self.tasks_for_date(day))

    def total_hours_for_range(self, start: datetime, end: datetime) -> float:
        return sum(self.total_hours_for_date(day) for day in iter_days(start, end))

    def completed_tasks_count_for_date(self, day: datetime) -> int:
        return sum(1 for t in self.tasks_for_date(day) if t.status == TaskStatus.COMPLETED)

    def overdue_tasks_count(self, at: datetime | None = None) -> int:
        at = at or now()
        return sum(1 for t in self.tasks if t.is_overdue(at))

    def completed_tasks_count(self) -> int:
        return sum(1 for t in self.tasks if t.status == TaskStatus.COMPLETED)

    def completion_rate(self) -> float:
        """已完成任务占比，没有任务时为 0"""
        if not self.tasks:
            return 0.0
        return self.completed_tasks_count() / len(self.tasks)

    # ------------------------------------------------------------------
    # Requirement 查询
    # ------------------------------------------------------------------

    def requirements_for_status(self, status: RequirementStatus) -> list[Requirement]:
        """指定状态的需求，按创建时间倒序（最新在前）"""
        return sorted(
            (r for r in self.requirements if r.status == status),
            key=lambda r: r.created_at,
            reverse=True,
        )

    def requirements_for_project(self, project: ProjectRef) -> list[Requirement]:
        project_id = _ref_id(project)
        return [r for r in self.requirements if r.project_id == project_id]

    def requirements_count(self, status: RequirementStatus) -> int:
        return sum(1 for r in self.requirements if r.status == status)

    def project_for_requirement(self, requirement: Requirement) -> Project | None:
        if requirement.project_id is None:
            return None
        return self.project(requirement.project_id)

    def requirement_for_task(self, task: Task) -> Requirement | None:
        if task.requirement_id is None:
            return None
        return self.requirement(task.requirement_id)

    def tasks_for_requirement(self, requirement: RequirementRef) -> list[Task]:
        requirement_id = _ref_id(requirement)
        return [t for t in self.tasks if t.requirement_id == requirement_id]

    # ------------------------------------------------------------------
    # 内部工具
    # ------------------------------------------------------------------

    def _linked_task_index(self, requirement_id: str) -> int | None:
        for index, task in enumerate(self.tasks):
            if task.requirement_id == requirement_id:
                return index
        return None

    def _notify(self, kind: EntityKind, action: ChangeAction, ids: Iterable[str]) -> None:
        if self._hub is None:
            return
        self._hub.broadcast(StoreChange(kind=kind, action=action, ids=list(ids)))
