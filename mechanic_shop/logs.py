import json, time, uuid, datetime as dt
import logging
from typing import Optional

from .db import StoreClient
from .errors import StoreError

logger = logging.getLogger(__name__)

LOG_COLUMNS = (
    "id", "ts", "user", "action", "entity_type", "entity_id", "request_id",
    "before_json", "after_json", "payload_json", "result", "err_msg", "latency_ms",
)


class LogContext:
    """One operation_log row per workflow run (who, what, outcome, timing)."""

    def __init__(self, action: str, store: StoreClient | None = None, user: str = "staff"):
        self.action = action
        self.store = store
        self.user = user
        self.request_id = str(uuid.uuid4())
        self.start = time.perf_counter()
        self.before = None
        self.after = None
        self.payload = None
        self.entity_type = None
        self.entity_id = None

    def set_entity(self, etype: str, eid):
        self.entity_type = etype
        self.entity_id = str(eid)

    def set_before(self, obj): self.before = obj
    def set_after(self, obj): self.after = obj
    def set_payload(self, obj): self.payload = obj

    def write(self, result: str = "OK", err: Optional[str] = None) -> bool:
        """Persist the record. Returns False (and logs a warning) when the store refuses it."""
        if self.store is None:
            return False
        elapsed_ms = int((time.perf_counter() - self.start) * 1000)
        rec = {
            "ts": dt.datetime.now(dt.timezone.utc).isoformat(),
            "user": self.user,
            "action": self.action,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "request_id": self.request_id,
            "before_json": json.dumps(self.before, ensure_ascii=False, default=str) if self.before is not None else None,
            "after_json": json.dumps(self.after, ensure_ascii=False, default=str) if self.after is not None else None,
            "payload_json": json.dumps(self.payload, ensure_ascii=False, default=str) if self.payload is not None else None,
            "result": result,
            "err_msg": err,
            "latency_ms": elapsed_ms,
        }
        try:
            self.store.execute_mutation(
                """INSERT INTO operation_log
                (ts,user,action,entity_type,entity_id,request_id,before_json,after_json,payload_json,result,err_msg,latency_ms)
                VALUES(:ts,:user,:action,:entity_type,:entity_id,:request_id,:before_json,:after_json,:payload_json,:result,:err_msg,:latency_ms)""",
                rec,
            )
        except StoreError as e:
            logger.warning("operation_log write failed for %s (%s): %s", self.action, self.request_id, e)
            return False
        return True


def search_logs(store: StoreClient, q: str | None, action: str | None, ts_from: str | None, ts_to: str | None,
                page: int = 1, size: int = 20):
    where = []
    params = {}
    if q:
        where.append("(payload_json LIKE :q OR before_json LIKE :q OR after_json LIKE :q)")
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
    sql = f"SELECT {', '.join(LOG_COLUMNS)} FROM operation_log{wh} ORDER BY id DESC LIMIT :limit OFFSET :offset"
    count_sql = f"SELECT COUNT(1) FROM operation_log{wh}"
    total = int(store.execute_query(count_sql, params)[0][0])
    rows = store.execute_query(sql, {**params, "limit": size, "offset": (page - 1) * size})
    return total, [dict(zip(LOG_COLUMNS, r)) for r in rows]
