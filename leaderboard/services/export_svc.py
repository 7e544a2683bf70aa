# leaderboard/services/export_svc.py
"""Render records as a standalone SQL script (escaped literals, no bound parameters)."""
from typing import Sequence

from pydantic import BaseModel

from ..repository import activity_repo, contributor_repo, eod_repo
from .utils import batch_list, render_insert_sql

# table -> (repository module, conflict key); None 表示 ON CONFLICT DO NOTHING
TABLES = {
    contributor_repo.TABLE: (contributor_repo, contributor_repo.CONFLICT_KEY),
    activity_repo.TABLE: (activity_repo, activity_repo.CONFLICT_KEY),
    eod_repo.TABLE: (eod_repo, None),
}


def render_upsert_sql(table: str, records: Sequence[BaseModel], batch_size: int = 500) -> str:
    if table not in TABLES:
        raise ValueError(f"unknown table: {table}")
    if not records:
        return ""
    repo, conflict_key = TABLES[table]
    parts = []
    for batch in batch_list(records, batch_size):
        parts.append(render_insert_sql(table, repo.COLUMNS, [repo.to_values(r) for r in batch], conflict_key))
    return "\n".join(parts)


def write_sql_script(path: str, table: str, records: Sequence[BaseModel], batch_size: int = 500) -> int:
    sql = render_upsert_sql(table, records, batch_size)
    with open(path, "w", encoding="utf-8") as f:
        f.write("BEGIN;\n")
        f.write(sql)
        f.write("COMMIT;\n")
    return len(records)
