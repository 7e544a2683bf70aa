import json, time, uuid, datetime as dt
from typing import Optional
from .db import get_conn


class LogContext:
    """One operation_log row per migration command; written by the caller via write()."""

    def __init__(self, action: str, user: str = "migrate", data_path: Optional[str] = None, enabled: bool = True):
        self.action = action
        self.user = user
        self.data_path = data_path
        self.enabled = enabled
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.payload = None
        self.result_obj = None
        self.entity_type = None
        self.entity_id = None

    def set_entity(self, etype: str, eid: Optional[str] = None):
        self.entity_type = etype
        self.entity_id = eid

    def set_payload(self, obj): self.payload = obj
    def set_result(self, obj): self.result_obj = obj

    def write(self, result: str = "OK", err: Optional[str] = None):
        if not self.enabled:
            return
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "payload_json": json.dumps(self.payload, ensure_ascii=False) if self.payload is not None else None,
            "result_json": json.dumps(self.result_obj, ensure_ascii=False) if self.result_obj is not None else None,
            "result": result,
            "err_msg": err,
            "latency_ms": elapsed_ms,
        }
        with get_conn(self.data_path) as conn:
            conn.execute(
                """INSERT INTO operation_log
                (ts,user,action,entity_type,entity_id,request_id,payload_json,result_json,result,err_msg,latency_ms)
                VALUES(:ts,:user,:action,:entity_type,:entity_id,:request_id,:payload_json,:result_json,:result,:err_msg,:latency_ms)""",
                rec
            )
            conn.commit()


def search_logs(q: str|None, action: str|None, ts_from: str|None, ts_to: str|None, page: int, size: int,
                data_path: Optional[str] = None):
    where = []
    params = {}
    if q:
        where.append("(payload_json LIKE :q OR result_json LIKE :q OR err_msg LIKE :q)")
        params["q"] = f"%{q}%"
    if action:
        where.append("action = :action")
        params["action"] = action
    if ts_from:
        where.append("ts >= :from")
        params["from"] = ts_from
    if ts_to:
        where.append("ts <= :to")
        params["to"] = ts_to
    wh = " WHERE " + " AND ".join(where) if where else ""
    sql = f"SELECT * FROM operation_log{wh} ORDER BY ts DESC, id DESC LIMIT :limit OFFSET :offset"
    count_sql = f"SELECT COUNT(1) AS cnt FROM operation_log{wh}"
    with get_conn(data_path) as conn:
        total = conn.execute(count_sql, params).fetchone()["cnt"]
        rows = conn.execute(sql, {**params, "limit": size, "offset": (page-1)*size}).fetchall()
        return total, [dict(r) for r in rows]
