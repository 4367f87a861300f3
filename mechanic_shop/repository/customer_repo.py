from __future__ import annotations

from typing import Optional

from ..db import StoreClient
from . import records
from .records import CUSTOMER


def find_by_last_name(store: StoreClient, lname: str) -> list[tuple]:
    return records.find(store, CUSTOMER, {"lname": lname}, order_by=["id"])


def get(store: StoreClient, customer_id: int) -> Optional[tuple]:
    return records.get(store, CUSTOMER, customer_id)


def has_last_name(store: StoreClient, customer_id: int, lname: str) -> bool:
    return records.exists(store, CUSTOMER, {"id": customer_id, "lname": lname})


def is_duplicate(store: StoreClient, fname: str, lname: str, phone: str, address: str) -> bool:
    return records.exists(
        store, CUSTOMER, {"fname": fname, "lname": lname, "phone": phone, "address": address}
    )


def count_all(store: StoreClient) -> int:
    return records.count(store, CUSTOMER)


def insert_customer(store: StoreClient, fname: str, lname: str, phone: str, address: str) -> int:
    return int(records.insert(
        store, CUSTOMER, {"fname": fname, "lname": lname, "phone": phone, "address": address}
    ))
