"""日历拖拽改期 -- 任务移动/拆分/收缩

把任务拖到日历上的某一天时：
- 单日任务：整体移到目标日（当天 00:00:00 - 23:59:59）
- 多日任务拖出首日：原任务开始日后移一天，目标日新建单日任务
- 多日任务拖出末日：原任务结束日前移一天，目标日新建单日任务
- 多日任务拖出中间某天：原任务截成前段（保留 id 与需求关联），
  后段作为新任务，被拖出的那天成为目标日上的新单日任务

新建的片段一律不继承 requirement_id，经由 add_task_without_requirement 写入。
工时按天均摊：片段工时 = 原任务每日工时 x 片段覆盖天数。

plan_drop 只计算结果，apply_drop 通过 DataStore 执行。
"""

from datetime import datetime

import structlog
from pydantic import BaseModel, Field

from .dates import add_days, days_between, end_of_day, is_same_day, start_of_day
from .models import Task, now

log = structlog.get_logger()


class DropPlan(BaseModel):
    """一次拖拽的执行计划"""

    updated: Task | None = Field(default=None, description="原任务的新版本（保留 id）")
    delete_original: bool = Field(default=False, description="是否删除原任务")
    created: list[Task] = Field(default_factory=list, description="新建的任务片段")

    @property
    def is_noop(self) -> bool:
        return self.updated is None and not self.delete_original and not self.created


def _span_days(start: datetime, end: datetime) -> int:
    return max(1, days_between(start, end) + 1)


def _fragment(
    task: Task,
    start: datetime,
    end: datetime,
    hours_per_day: float,
    stamp: datetime,
) -> Task:
    """从原任务克隆出一个新片段：新 id，无需求关联，工时按天数折算"""
    return Task(
        title=task.title,
        start_date=start,
        end_date=end,
        estimated_hours=hours_per_day * _span_days(start, end),
        priority=task.priority,
        status=task.status,
        project_id=task.project_id,
        requirement_id=None,
        notes=task.notes,
        created_at=stamp,
        updated_at=stamp,
    )


def plan_drop(
    task: Task,
    target_day: datetime,
    source_day: datetime | None = None,
    at: datetime | None = None,
) -> DropPlan:
    """计算把任务（或多日任务中的 source_day 那一天）拖到 target_day 的结果

    Args:
        task: 被拖拽的任务
        target_day: 放下的日期
        source_day: 多日任务中被拖出的那一天；单日任务忽略
        at: 时间戳基准，默认当前时间

    Returns:
        DropPlan；source_day 不在任务区间内时返回空计划
    """
    stamp = at or now()
    target_start = start_of_day(target_day)
    target_end = end_of_day(target_day)

    if not task.is_multi_day or source_day is None:
        moved = task.model_copy(
            update={
                "start_date": target_start,
                "end_date": target_end,
                "updated_at": stamp,
            }
        )
        return DropPlan(updated=moved)

    source = start_of_day(source_day)
    first_day = start_of_day(task.start_date)
    last_day = start_of_day(task.end_date)
    if not first_day <= source <= last_day:
        log.debug("drop_source_outside_task", task_id=task.id, source_day=source.isoformat())
        return DropPlan()

    per_day = task.hours_per_day
    relocated = _fragment(task, target_start, target_end, per_day, stamp)

    if source == first_day:
        new_start = add_days(task.start_date, 1)
        if new_start > task.end_date and not is_same_day(new_start, task.end_date):
            return DropPlan(delete_original=True, created=[relocated])
        shrunk = task.model_copy(
            update={
                "start_date": min(new_start, task.end_date),
                "updated_at": stamp,
            }
        )
        return DropPlan(updated=shrunk, created=[relocated])

    if source == last_day:
        new_end = add_days(task.end_date, -1)
        if is_same_day(new_end, task.start_date):
            # 只剩首日
            shrunk = task.model_copy(
                update={"end_date": end_of_day(task.start_date), "updated_at": stamp}
            )
            return DropPlan(updated=shrunk, created=[relocated])
        if new_end < task.start_date:
            return DropPlan(delete_original=True, created=[relocated])
        shrunk = task.model_copy(update={"end_date": new_end, "updated_at": stamp})
        return DropPlan(updated=shrunk, created=[relocated])

    # 中间某天：前段保留原任务身份与需求关联
    first_part_end = end_of_day(add_days(source, -1))
    first_part = task.model_copy(
        update={
            "end_date": first_part_end,
            "estimated_hours": per_day * _span_days(task.start_date, first_part_end),
            "updated_at": stamp,
        }
    )
    second_part = _fragment(task, add_days(source, 1), task.end_date, per_day, stamp)
    return DropPlan(updated=first_part, created=[relocated, second_part])


async def apply_drop(
    store,
    task: Task | str,
    target_day: datetime,
    source_day: datetime | None = None,
) -> DropPlan | None:
    """对 DataStore 中的任务执行拖拽改期

    Args:
        store: DataStore 实例
        task: 被拖拽的任务或其 id
        target_day: 放下的日期
        source_day: 多日任务中被拖出的那一天

    Returns:
        执行的 DropPlan；任务已不存在时返回 None
    """
    task_id = task if isinstance(task, str) else task.id
    current = store.task(task_id)
    if current is None:
        log.debug("task_not_found", task_id=task_id)
        return None

    plan = plan_drop(current, target_day, source_day)
    for fragment in plan.created:
        await store.add_task_without_requirement(fragment)

    if plan.delete_original:
        await store.delete_task(current.id)
    elif plan.updated is not None:
        await store.update_task(plan.updated)

    log.info(
        "task_dropped",
        task_id=current.id,
        target_day=start_of_day(target_day).date().isoformat(),
        created_count=len(plan.created),
        deleted=plan.delete_original,
    )
    return plan
