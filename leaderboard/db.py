from __future__ import annotations

# leaderboard/db.py
import sqlite3
from contextlib import contextmanager
from typing import Iterator
import os
import yaml

# DB 路径解析：
# 1) 显式传入的 data_path（测试 / 脚本）
# 2) 环境变量 DB_DATA_PATH（必填，没有默认值）
# 数据目录下固定使用 leaderboard.db 文件
_PKG_DIR = os.path.dirname(__file__)
_SCHEMA_PATH = os.path.join(_PKG_DIR, "schema.sql")
DB_FILENAME = "leaderboard.db"


class ConfigError(ValueError):
    """Missing or invalid configuration; fatal, never retried."""


def config_yaml_path() -> str:
    return os.environ.get("LEADERBOARD_CONFIG") or "config.yaml"


def read_config_yaml() -> dict:
    cfg_path = config_yaml_path()
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid config file {cfg_path}: {e}") from e
    if not isinstance(cfg, dict):
        raise ConfigError(f"config file {cfg_path} must contain a mapping")
    return cfg


def get_db_path(data_path: str | None = None) -> str:
    path = data_path or os.environ.get("DB_DATA_PATH")
    if not path:
        raise ConfigError(
            "'DB_DATA_PATH' environment needs to be set with a path to the database data."
        )
    # 确保目录存在
    os.makedirs(path, exist_ok=True)
    return os.path.join(path, DB_FILENAME)


@contextmanager
def get_conn(data_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """
    获取 SQLite 连接。优先使用显式传入的 data_path，否则走 DB_DATA_PATH。
    打开 foreign_keys，设置 row_factory 为 Row；退出时总是关闭连接。
    """
    path = get_db_path(data_path)
    conn = sqlite3.connect(path, isolation_level=None)
    try:
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """
    get_conn 是自动提交模式；多条语句需要整体成功或整体回滚时用这个包起来。
    """
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def ensure_schema(data_path: str | None = None, schema_path: str | None = None) -> None:
    with open(schema_path or _SCHEMA_PATH, "r", encoding="utf-8") as f:
        ddl = f.read()
    with get_conn(data_path) as conn:
        conn.executescript(ddl)
        conn.commit()
