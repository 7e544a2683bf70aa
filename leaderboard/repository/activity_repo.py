from __future__ import annotations

from sqlite3 import Connection
from typing import Any, Sequence

from ..db import transaction
from ..models import Activity
from ..services.utils import batch_list, build_insert_sql, flatten_rows

TABLE = "activity"
CONFLICT_KEY = "slug"
COLUMNS = (
    "slug",
    "contributor",
    "activity_definition",
    "title",
    "occured_at",
    "link",
    "text",
    "points",
    "meta",
)


def to_values(a: Activity) -> tuple[Any, ...]:
    return (
        a.slug,
        a.contributor,
        a.activity_definition,
        a.title,
        a.occured_at,
        a.link,
        a.text,
        a.points,
        a.meta,
    )


def upsert_many(conn: Connection, activities: Sequence[Activity], batch_size: int = 500) -> int:
    """Last write wins: every non-key column is overwritten on slug conflict."""
    if not activities:
        return 0
    n = 0
    # 分批只是为了绑定参数上限；整批导入仍然全部成功或全部回滚
    with transaction(conn):
        for batch in batch_list(activities, batch_size):
            sql = build_insert_sql(TABLE, COLUMNS, len(batch), CONFLICT_KEY)
            cur = conn.execute(sql, flatten_rows([to_values(a) for a in batch], len(COLUMNS)))
            n += cur.rowcount
    return n


def get_one(conn: Connection, slug: str):
    return conn.execute(
        f"SELECT {', '.join(COLUMNS)} FROM activity WHERE slug=?",
        (slug,),
    ).fetchone()


def list_for_contributor(conn: Connection, username: str, limit: int | None = None):
    sql = (
        f"SELECT {', '.join(COLUMNS)} FROM activity "
        "WHERE contributor = ? ORDER BY occured_at DESC, slug"
    )
    params: list = [username]
    if limit:
        sql += " LIMIT ?"
        params.append(int(limit))
    return conn.execute(sql, params).fetchall()


def points_by_contributor(conn: Connection) -> dict[str, float]:
    rows = conn.execute(
        "SELECT contributor, COALESCE(SUM(points), 0) AS total FROM activity GROUP BY contributor"
    ).fetchall()
    return {r["contributor"]: float(r["total"]) for r in rows}


def count_all(conn: Connection) -> int:
    return int(conn.execute("SELECT COUNT(1) AS c FROM activity").fetchone()["c"])
