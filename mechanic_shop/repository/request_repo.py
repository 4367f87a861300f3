from __future__ import annotations

from typing import Optional

from ..db import StoreClient
from . import records
from .records import SERVICE_REQUEST


def get(store: StoreClient, rid: int) -> Optional[tuple]:
    return records.get(store, SERVICE_REQUEST, rid)


def opening_date(store: StoreClient, rid: int) -> Optional[str]:
    row = get(store, rid)
    return row[3] if row else None


def insert_request(
    store: StoreClient, customer_id: int, vin: str, date_iso: str, odometer: int, complain: str
) -> int:
    return int(records.insert(store, SERVICE_REQUEST, {
        "customer_id": customer_id,
        "car_vin": vin,
        "date": date_iso,
        "odometer": odometer,
        "complain": complain,
    }))
