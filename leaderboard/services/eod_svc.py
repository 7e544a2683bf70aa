# leaderboard/services/eod_svc.py
from typing import Optional, Sequence

from ..db import get_conn
from ..logs import LogContext
from ..models import SlackEodMessage
from ..repository import eod_repo
from ..repository.eod_repo import BatchResult
from .config_svc import get_config


def add_slack_eod_messages(messages: Sequence[SlackEodMessage], log: Optional[LogContext] = None,
                           batch_size: Optional[int] = None, data_path: Optional[str] = None) -> list[BatchResult]:
    """
    按批写入 Slack EOD 消息；重复 id 不报错，只体现在 affected 里。
    batch_size 为空时使用配置 eod_batch_size（默认 1000）。
    """
    size = get_config()["eod_batch_size"] if batch_size is None else batch_size
    with get_conn(data_path) as conn:
        results = eod_repo.insert_many(conn, messages, batch_size=size)
    if log:
        log.set_entity("SLACK_EOD_UPDATE")
        log.set_result({
            "submitted": len(messages),
            "affected": sum(r.affected for r in results),
            "batches": [[r.affected, r.submitted] for r in results],
        })
    return results


def count_slack_eod_messages(user_id: Optional[str] = None, data_path: Optional[str] = None) -> int:
    with get_conn(data_path) as conn:
        return eod_repo.count_all(conn, user_id)
