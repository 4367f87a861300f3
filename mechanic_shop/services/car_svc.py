# mechanic_shop/services/car_svc.py
from __future__ import annotations

from ..db import StoreClient
from ..domain.rules import require_int, require_text
from ..errors import ValidationError
from ..logs import LogContext
from ..repository import car_repo
from ..repository.records import CAR
from .workflow import WorkflowResult, run_workflow


def check_new_car(store: StoreClient, vin, make, model, year) -> dict:
    """Normalise the fields and make sure the VIN is unused; no write."""
    data = {
        "vin": require_text(vin, "vin"),
        "make": require_text(make, "make"),
        "model": require_text(model, "model"),
        "year": require_int(year, "year"),
    }
    if car_repo.exists(store, data["vin"]):
        raise ValidationError("car vin already exists")
    return data


def add_car(store: StoreClient, vin, make, model, year, log: LogContext | None = None) -> list[tuple]:
    with store.transaction():
        data = check_new_car(store, vin, make, model, year)
        car_repo.insert_car(store, data["vin"], data["make"], data["model"], data["year"])
    if log is not None:
        log.set_entity("CAR", data["vin"])
        log.set_after(data)
    return [car_repo.get(store, data["vin"])]


def run_add_car(store: StoreClient, vin, make, model, year) -> WorkflowResult:
    return run_workflow(
        "ADD_CAR", store,
        lambda log: add_car(store, vin, make, model, year, log),
        columns=CAR.columns,
    )
