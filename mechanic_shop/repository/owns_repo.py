from __future__ import annotations

from ..db import StoreClient
from . import records
from .records import CAR, OWNS


def cars_for_customer(store: StoreClient, customer_id: int) -> list[tuple]:
    """Full car records (vin, make, model, year) linked to the customer, in ownership order."""
    sql = (
        "SELECT c.vin, c.make, c.model, c.year FROM owns o "
        "JOIN car c ON c.vin = o.car_vin "
        "WHERE o.customer_id = ? ORDER BY o.ownership_id"
    )
    with records.wrap_store_errors(CAR, "find"):
        return store.execute_query(sql, (customer_id,))


def owns_car(store: StoreClient, customer_id: int, vin: str) -> bool:
    return records.exists(store, OWNS, {"customer_id": customer_id, "car_vin": vin})


def insert_owns(store: StoreClient, customer_id: int, vin: str) -> int:
    return int(records.insert(store, OWNS, {"customer_id": customer_id, "car_vin": vin}))
