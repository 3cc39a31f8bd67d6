"""CLI 入口模块 -- python -m myddl.core <command>

支持的命令：
  import-requirements <file>  导入已上线/已废弃需求 JSON 文档
  clean-images                清理未被笔记引用的图片文件
  summary                     打印数据概况
"""

import asyncio
import sys
from pathlib import Path

from .config import get_db_path, get_images_dir, get_settings_path
from .exceptions import RequirementImportError
from .logging_config import setup_logging

_USAGE = """用法: python -m myddl.core <command>
命令:
  import-requirements <file>  导入已上线/已废弃需求 JSON 文档
  clean-images                清理未被笔记引用的图片文件
  summary                     打印数据概况"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    setup_logging()
    command = sys.argv[1]

    if command == "import-requirements":
        if len(sys.argv) < 3:
            print("用法: python -m myddl.core import-requirements <file>")
            sys.exit(1)
        sys.exit(asyncio.run(import_requirements(Path(sys.argv[2]))))
    elif command == "clean-images":
        asyncio.run(clean_images())
    elif command == "summary":
        asyncio.run(summary())
    else:
        print(f"未知命令: {command}")
        print("可用命令: import-requirements, clean-images, summary")
        sys.exit(1)


async def _open_data_store():
    from .data_store import DataStore
    from .store import create_store_group

    store_group = await create_store_group(get_db_path(), get_images_dir())
    data_store = DataStore.from_store_group(store_group)
    await data_store.load()
    return store_group, data_store


async def import_requirements(path: Path) -> int:
    """执行需求导入，返回进程退出码"""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        print(f"无法读取文件: {path} -- {exc}")
        return 1

    store_group, data_store = await _open_data_store()
    try:
        count = await data_store.import_requirements(text)
    except RequirementImportError as exc:
        print(str(exc))
        return 1
    finally:
        await store_group.close()

    print(f"导入完成，共 {count} 条需求")
    return 0


async def clean_images() -> None:
    """执行孤立图片清理"""
    store_group, data_store = await _open_data_store()
    try:
        removed = data_store.clean_orphan_images()
    finally:
        await store_group.close()
    print(f"清理完成，删除 {len(removed)} 个图片文件")


async def summary() -> None:
    """打印数据概况"""
    from .dates import end_of_week, start_of_week
    from .models import RequirementStatus, now
    from .settings import load_settings

    store_group, data_store = await _open_data_store()
    try:
        print(f"数据库路径: {get_db_path()}")
        if store_group.degraded:
            print("数据库文件不可用，本次使用内存数据库，修改不会保存")
        print(f"项目: {len(data_store.projects)}")
        print(
            f"任务: {len(data_store.tasks)} "
            f"(已完成 {data_store.completed_tasks_count()}，"
            f"逾期 {data_store.overdue_tasks_count()})"
        )
        for status in RequirementStatus:
            print(f"需求[{status.display_name}]: {data_store.requirements_count(status)}")
        print(f"笔记: {len(data_store.notes)}")

        settings = load_settings(get_settings_path())
        today = now()
        week_hours = data_store.total_hours_for_range(
            start_of_week(today, settings.week_start_day),
            end_of_week(today, settings.week_start_day),
        )
        print(f"本周预估工时: {week_hours:.1f}h，今日: {data_store.total_hours_for_date(today):.1f}h")
    finally:
        await store_group.close()


if __name__ == "__main__":
    main()
