from __future__ import annotations

import logging
from dataclasses import dataclass
from sqlite3 import Connection
from typing import Any, Sequence

from ..models import SlackEodMessage
from ..services.utils import batch_list, build_insert_sql, flatten_rows

logger = logging.getLogger(__name__)

TABLE = "slack_eod_update"
COLUMNS = ("id", "user_id", "timestamp", "text")
DEFAULT_BATCH_SIZE = 1000


@dataclass(frozen=True)
class BatchResult:
    submitted: int
    affected: int


def to_values(m: SlackEodMessage) -> tuple[Any, ...]:
    return (m.id, m.user_id, m.timestamp, m.text)


def insert_many(
    conn: Connection,
    messages: Sequence[SlackEodMessage],
    batch_size: int = DEFAULT_BATCH_SIZE,
) -> list[BatchResult]:
    """
    分批插入，重复 id 直接忽略（ON CONFLICT DO NOTHING）。
    每批执行后立即提交；某一批失败时，之前的批次保留，之后的批次不再执行。
    """
    results: list[BatchResult] = []
    for batch in batch_list(messages, batch_size):
        sql = build_insert_sql(TABLE, COLUMNS, len(batch))
        cur = conn.execute(sql, flatten_rows([to_values(m) for m in batch], len(COLUMNS)))
        conn.commit()
        res = BatchResult(submitted=len(batch), affected=cur.rowcount)
        logger.info(f"Added {res.affected}/{res.submitted} Slack EOD messages")
        results.append(res)
    return results


def count_all(conn: Connection, user_id: str | None = None) -> int:
    if user_id:
        row = conn.execute(
            "SELECT COUNT(1) AS c FROM slack_eod_update WHERE user_id=?", (user_id,)
        ).fetchone()
    else:
        row = conn.execute("SELECT COUNT(1) AS c FROM slack_eod_update").fetchone()
    return int(row["c"])


def list_for_user(conn: Connection, user_id: str, limit: int = 100):
    return conn.execute(
        "SELECT id, user_id, timestamp, text FROM slack_eod_update "
        "WHERE user_id=? ORDER BY timestamp DESC LIMIT ?",
        (user_id, limit),
    ).fetchall()
