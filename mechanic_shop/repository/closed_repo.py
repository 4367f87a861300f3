from __future__ import annotations

from typing import Optional

from ..db import StoreClient
from . import records
from .records import CLOSED_REQUEST


def get(store: StoreClient, rid: int) -> Optional[tuple]:
    return records.get(store, CLOSED_REQUEST, rid)


def is_closed(store: StoreClient, rid: int) -> bool:
    return records.exists(store, CLOSED_REQUEST, {"rid": rid})


def insert_closed(store: StoreClient, rid: int, mechanic_id: int, date_iso: str, comment: str, bill: float) -> int:
    return int(records.insert(store, CLOSED_REQUEST, {
        "wid": rid,
        "rid": rid,
        "mid": mechanic_id,
        "date": date_iso,
        "comment": comment,
        "bill": bill,
    }))
