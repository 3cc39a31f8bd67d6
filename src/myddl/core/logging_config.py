"""structlog 配置模块

dev 模式：终端彩色输出
json 模式：每行一条 JSON，适合写入日志文件后检索

桌面端没有控制台时可通过 MYDDL_LOG_FILE 把日志写到文件。
"""

import logging
import os
from pathlib import Path

import structlog

# 这些第三方 logger 在 DEBUG 下每条 SQL 都会输出，单独压到 WARNING
_NOISY_LOGGERS = ("aiosqlite",)


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=log_format == "dev")


def _handler(log_file: str | None) -> logging.Handler:
    if not log_file:
        return logging.StreamHandler()
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8")


def setup_logging(
    log_format: str | None = None,
    log_level: str | None = None,
    log_file: str | None = None,
) -> None:
    """初始化 structlog 与标准库 logging

    参数为 None 时读取对应环境变量：
    - MYDDL_LOG_FORMAT: "dev"（默认）/ "plain"（无颜色）/ "json"
    - MYDDL_LOG_LEVEL: 默认 INFO
    - MYDDL_LOG_FILE: 设置后写入该文件而不是 stderr
    """
    log_format = log_format or os.environ.get("MYDDL_LOG_FORMAT", "dev")
    log_level = log_level or os.environ.get("MYDDL_LOG_LEVEL", "INFO")
    log_file = log_file or os.environ.get("MYDDL_LOG_FILE")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = _handler(log_file)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_renderer(log_format),
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
