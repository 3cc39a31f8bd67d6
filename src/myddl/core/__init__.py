"""MyDDL Core -- 任务、日历、需求与笔记的本地数据层"""

__version__ = "0.1.0"
