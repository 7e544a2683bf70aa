# leaderboard/services/activity_svc.py
from typing import Optional, Sequence

from ..db import get_conn
from ..logs import LogContext
from ..models import Activity
from ..repository import activity_repo
from .config_svc import get_config


def upsert_activities(activities: Sequence[Activity], log: Optional[LogContext] = None,
                      data_path: Optional[str] = None) -> int:
    cfg = get_config()
    with get_conn(data_path) as conn:
        n = activity_repo.upsert_many(conn, activities, batch_size=cfg["upsert_batch_size"])
        conn.commit()
    if log:
        log.set_entity("ACTIVITY", activities[0].slug if len(activities) == 1 else None)
        log.set_result({"submitted": len(activities), "written": n})
    return n


def get_activity(slug: str, data_path: Optional[str] = None) -> Optional[dict]:
    with get_conn(data_path) as conn:
        row = activity_repo.get_one(conn, slug)
        return dict(row) if row else None


def list_activities_for(username: str, limit: Optional[int] = None, data_path: Optional[str] = None) -> list[dict]:
    with get_conn(data_path) as conn:
        return [dict(r) for r in activity_repo.list_for_contributor(conn, username, limit)]
