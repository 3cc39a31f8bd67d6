"""日历与日期规则

任务区间、日历网格和休息日判断都以本地日历天为单位。
所有函数接收并返回 naive 本地时间的 datetime。
"""

import calendar
from collections.abc import Iterator
from datetime import date, datetime, timedelta

from .settings import WeekStartDay

# 单日任务的结束时刻相对当天 0 点的偏移（23:59:59）
DAY_END_OFFSET = timedelta(hours=23, minutes=59, seconds=59)


def start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def end_of_day(value: datetime) -> datetime:
    return start_of_day(value) + DAY_END_OFFSET


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)


def add_months(value: datetime, months: int) -> datetime:
    """按月偏移，目标月份天数不足时落在月末"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def is_same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def days_between(start: datetime, end: datetime) -> int:
    """两个时刻之间相差的日历天数（end 所在日 - start 所在日）"""
    return (end.date() - start.date()).days


def iter_days(start: datetime, end: datetime) -> Iterator[datetime]:
    """逐日遍历 [start, end]，每个元素为当天 0 点"""
    current = start_of_day(start)
    last = start_of_day(end)
    while current <= last:
        yield current
        current = add_days(current, 1)


def start_of_week(value: datetime, week_start: WeekStartDay = WeekStartDay.MONDAY) -> datetime:
    # weekday(): 周一=0 ... 周日=6
    if week_start == WeekStartDay.MONDAY:
        offset = value.weekday()
    else:
        offset = (value.weekday() + 1) % 7
    return start_of_day(add_days(value, -offset))


def end_of_week(value: datetime, week_start: WeekStartDay = WeekStartDay.MONDAY) -> datetime:
    return add_days(start_of_week(value, week_start), 6)


def start_of_month(value: datetime) -> datetime:
    return start_of_day(value.replace(day=1))


def end_of_month(value: datetime) -> datetime:
    last_day = calendar.monthrange(value.year, value.month)[1]
    return start_of_day(value.replace(day=last_day))


def days_in_month(value: datetime) -> list[datetime]:
    first = start_of_month(value)
    count = calendar.monthrange(value.year, value.month)[1]
    return [add_days(first, i) for i in range(count)]


def days_in_week(
    value: datetime,
    week_start: WeekStartDay = WeekStartDay.MONDAY,
) -> list[datetime]:
    first = start_of_week(value, week_start)
    return [add_days(first, i) for i in range(7)]


def calendar_grid_days(
    value: datetime,
    week_start: WeekStartDay = WeekStartDay.MONDAY,
) -> list[datetime | None]:
    """月视图网格：月初前按周首日补 None，月末后补 None 到 7 的整数倍"""
    month_days = days_in_month(value)
    first = month_days[0]
    if week_start == WeekStartDay.MONDAY:
        offset = first.weekday()
    else:
        offset = (first.weekday() + 1) % 7

    grid: list[datetime | None] = [None] * offset
    grid.extend(month_days)
    while len(grid) % 7 != 0:
        grid.append(None)
    return grid


def is_weekend(value: datetime | date) -> bool:
    return value.weekday() >= 5


class ChineseHolidays:
    """中国法定节假日与调休上班日

    2026 年部分为预估数据。
    """

    HOLIDAYS: frozenset[str] = frozenset(
        {
            # 2025 元旦
            "2025-01-01",
            # 2025 春节
            "2025-01-28", "2025-01-29", "2025-01-30", "2025-01-31",
            "2025-02-01", "2025-02-02", "2025-02-03", "2025-02-04",
            # 2025 清明节
            "2025-04-04", "2025-04-05", "2025-04-06",
            # 2025 劳动节
            "2025-05-01", "2025-05-02", "2025-05-03", "2025-05-04", "2025-05-05",
            # 2025 端午节
            "2025-05-31", "2025-06-01", "2025-06-02",
            # 2025 中秋节 + 国庆节
            "2025-10-01", "2025-10-02", "2025-10-03", "2025-10-04",
            "2025-10-05", "2025-10-06", "2025-10-07", "2025-10-08",
            # 2026 元旦
            "2026-01-01", "2026-01-02", "2026-01-03",
            # 2026 春节
            "2026-02-14", "2026-02-15", "2026-02-16", "2026-02-17",
            "2026-02-18", "2026-02-19", "2026-02-20",
            # 2026 清明节
            "2026-04-04", "2026-04-05", "2026-04-06",
            # 2026 劳动节
            "2026-05-01", "2026-05-02", "2026-05-03",
            # 2026 端午节
            "2026-06-19", "2026-06-20", "2026-06-21",
            # 2026 中秋节
            "2026-09-25", "2026-09-26", "2026-09-27",
            # 2026 国庆节
            "2026-10-01", "2026-10-02", "2026-10-03", "2026-10-04",
            "2026-10-05", "2026-10-06", "2026-10-07",
        }
    )

    # 调休日：周末但需要上班
    WORKDAYS: frozenset[str] = frozenset(
        {
            "2025-01-26", "2025-02-08", "2025-04-27", "2025-09-28", "2025-10-11",
            "2026-01-04", "2026-02-07", "2026-02-21",
        }
    )

    @classmethod
    def is_holiday(cls, value: datetime | date) -> bool:
        return value.strftime("%Y-%m-%d") in cls.HOLIDAYS

    @classmethod
    def is_workday_override(cls, value: datetime | date) -> bool:
        return value.strftime("%Y-%m-%d") in cls.WORKDAYS


def is_rest_day(value: datetime | date) -> bool:
    """休息日：法定节假日或周末，调休上班日除外"""
    if ChineseHolidays.is_workday_override(value):
        return False
    return ChineseHolidays.is_holiday(value) or is_weekend(value)
