"""SQLite 数据库初始化

PRAGMA 配置 + 四张表 DDL + 索引创建 + 增量列迁移。
迁移只做加列：先查 PRAGMA table_info，列不存在时才 ALTER TABLE，
旧版本创建的数据库文件可以原地升级。
"""

import aiosqlite
import structlog

log = structlog.get_logger()

# tasks 表 DDL（时间字段为 epoch 秒）
_TASKS_DDL = """
CREATE TABLE IF NOT EXISTS tasks (
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    startDate       REAL NOT NULL,
    endDate         REAL NOT NULL,
    status          TEXT NOT NULL,
    priority        TEXT NOT NULL,
    projectId       TEXT,
    requirementId   TEXT,
    notes           TEXT NOT NULL DEFAULT '',
    estimatedHours  REAL NOT NULL DEFAULT 1.0,
    createdAt       REAL NOT NULL,
    updatedAt       REAL NOT NULL
);
"""

_PROJECTS_DDL = """
CREATE TABLE IF NOT EXISTS projects (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    colorHex    TEXT NOT NULL,
    createdAt   REAL NOT NULL
);
"""

_REQUIREMENTS_DDL = """
CREATE TABLE IF NOT EXISTS requirements (
    id              TEXT PRIMARY KEY,
    title           TEXT NOT NULL,
    description     TEXT NOT NULL DEFAULT '',
    status          TEXT NOT NULL,
    priority        TEXT NOT NULL,
    projectId       TEXT,
    relatedTaskIds  TEXT NOT NULL DEFAULT '[]',
    createdAt       REAL NOT NULL,
    updatedAt       REAL NOT NULL
);
"""

# notes 表的 richContentBlob / isPinned / attachments 由迁移补齐，
# 这里保留最早版本的列集合，新旧数据库走同一条迁移路径
_NOTES_DDL = """
CREATE TABLE IF NOT EXISTS notes (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL DEFAULT '',
    content     TEXT NOT NULL DEFAULT '',
    createdAt   REAL NOT NULL,
    updatedAt   REAL NOT NULL
);
"""

_INDEXES = [
    "CREATE INDEX IF NOT EXISTS idx_tasks_project_id ON tasks(projectId);",
    "CREATE INDEX IF NOT EXISTS idx_tasks_requirement_id ON tasks(requirementId);",
    "CREATE INDEX IF NOT EXISTS idx_requirements_status ON requirements(status);",
]

# (表名, 列名, 列定义)
_ADDITIVE_COLUMNS: list[tuple[str, str, str]] = [
    ("tasks", "estimatedHours", "REAL NOT NULL DEFAULT 1.0"),
    ("tasks", "requirementId", "TEXT"),
    ("requirements", "relatedTaskIds", "TEXT NOT NULL DEFAULT '[]'"),
    ("notes", "richContentBlob", "BLOB"),
    ("notes", "isPinned", "INTEGER NOT NULL DEFAULT 0"),
    ("notes", "attachments", "TEXT NOT NULL DEFAULT '[]'"),
]


async def table_columns(conn: aiosqlite.Connection, table: str) -> set[str]:
    """查询表的现有列名"""
    cursor = await conn.execute(f"PRAGMA table_info({table});")
    rows = await cursor.fetchall()
    # table_info 行结构: (cid, name, type, notnull, dflt_value, pk)
    return {row[1] for row in rows}


async def migrate(conn: aiosqlite.Connection) -> list[str]:
    """补齐缺失的列

    Returns:
        本次新增的 "表.列" 列表
    """
    added: list[str] = []
    for table, column, definition in _ADDITIVE_COLUMNS:
        existing = await table_columns(conn, table)
        if column in existing:
            continue
        await conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {definition};")
        added.append(f"{table}.{column}")

    if added:
        log.info("db_migrated", added_columns=added)
    return added


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 迁移 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    await conn.execute(_TASKS_DDL)
    await conn.execute(_PROJECTS_DDL)
    await conn.execute(_REQUIREMENTS_DDL)
    await conn.execute(_NOTES_DDL)

    await migrate(conn)

    for idx_sql in _INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效"""
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
