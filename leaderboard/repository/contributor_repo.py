from __future__ import annotations

from sqlite3 import Connection
from typing import Any, Sequence

from ..db import transaction
from ..models import Contributor
from ..services.utils import batch_list, build_insert_sql, flatten_rows

TABLE = "contributor"
CONFLICT_KEY = "username"
# 列顺序同时决定 SQL 占位符和参数展开顺序，两处必须一致
COLUMNS = (
    "username",
    "name",
    "role",
    "title",
    "avatar_url",
    "bio",
    "social_profiles",
    "joining_date",
    "meta",
)


def to_values(c: Contributor) -> tuple[Any, ...]:
    return (
        c.username,
        c.name,
        c.role,
        c.title,
        c.avatar_url,
        c.bio,
        c.social_profiles,
        c.joining_date,
        c.meta,
    )


def upsert_many(conn: Connection, contributors: Sequence[Contributor], batch_size: int = 500) -> int:
    if not contributors:
        return 0
    n = 0
    # 分批只是为了绑定参数上限；整批导入仍然全部成功或全部回滚
    with transaction(conn):
        for batch in batch_list(contributors, batch_size):
            sql = build_insert_sql(TABLE, COLUMNS, len(batch), CONFLICT_KEY)
            cur = conn.execute(sql, flatten_rows([to_values(c) for c in batch], len(COLUMNS)))
            n += cur.rowcount
    return n


def get_one(conn: Connection, username: str):
    return conn.execute(
        f"SELECT {', '.join(COLUMNS)} FROM contributor WHERE username=?",
        (username,),
    ).fetchone()


def list_all(conn: Connection, role: str | None = None):
    sql = f"SELECT {', '.join(COLUMNS)} FROM contributor"
    params: list = []
    if role:
        sql += " WHERE role = ?"
        params.append(role)
    sql += " ORDER BY username"
    return conn.execute(sql, params).fetchall()


def count_all(conn: Connection) -> int:
    return int(conn.execute("SELECT COUNT(1) AS c FROM contributor").fetchone()["c"])
