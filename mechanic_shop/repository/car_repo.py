from __future__ import annotations

from typing import Optional

from ..db import StoreClient
from . import records
from .records import CAR


def get(store: StoreClient, vin: str) -> Optional[tuple]:
    return records.get(store, CAR, vin)


def exists(store: StoreClient, vin: str) -> bool:
    return records.exists(store, CAR, {"vin": vin})


def insert_car(store: StoreClient, vin: str, make: str, model: str, year: int) -> str:
    return records.insert(store, CAR, {"vin": vin, "make": make, "model": model, "year": year})
