from __future__ import annotations

from typing import Optional

from ..db import StoreClient
from . import records
from .records import MECHANIC


def get(store: StoreClient, mechanic_id: int) -> Optional[tuple]:
    return records.get(store, MECHANIC, mechanic_id)


def exists(store: StoreClient, mechanic_id: int) -> bool:
    return records.exists(store, MECHANIC, {"id": mechanic_id})


def is_duplicate(store: StoreClient, fname: str, lname: str, experience: int) -> bool:
    return records.exists(store, MECHANIC, {"fname": fname, "lname": lname, "experience": experience})


def insert_mechanic(store: StoreClient, fname: str, lname: str, experience: int) -> int:
    return int(records.insert(store, MECHANIC, {"fname": fname, "lname": lname, "experience": experience}))
