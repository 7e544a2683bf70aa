# leaderboard/services/contributor_svc.py
from typing import Optional, Sequence

from ..db import get_conn
from ..logs import LogContext
from ..models import Contributor
from ..repository import contributor_repo
from .config_svc import get_config


def upsert_contributors(contributors: Sequence[Contributor], log: Optional[LogContext] = None,
                        data_path: Optional[str] = None) -> int:
    """插入或覆盖贡献者（按 username），返回写入行数。"""
    cfg = get_config()
    with get_conn(data_path) as conn:
        n = contributor_repo.upsert_many(conn, contributors, batch_size=cfg["upsert_batch_size"])
        conn.commit()
    if log:
        log.set_entity("CONTRIBUTOR", contributors[0].username if len(contributors) == 1 else None)
        log.set_result({"submitted": len(contributors), "written": n})
    return n


def get_contributor(username: str, data_path: Optional[str] = None) -> Optional[dict]:
    with get_conn(data_path) as conn:
        row = contributor_repo.get_one(conn, username)
        return dict(row) if row else None


def list_contributors(role: Optional[str] = None, data_path: Optional[str] = None) -> list[dict]:
    with get_conn(data_path) as conn:
        return [dict(r) for r in contributor_repo.list_all(conn, role)]
