# mechanic_shop/services/customer_svc.py
from __future__ import annotations

from ..db import StoreClient
from ..domain.rules import require_text
from ..errors import ValidationError
from ..logs import LogContext
from ..repository import customer_repo
from ..repository.records import CUSTOMER
from .workflow import WorkflowResult, run_workflow


def check_new_customer(store: StoreClient, fname, lname, address, phone) -> dict:
    """Normalise the fields and apply the duplicate rule; no write."""
    data = {
        "fname": require_text(fname, "first name"),
        "lname": require_text(lname, "last name"),
        "address": str(address or "").strip(),
        "phone": str(phone or "").strip(),
    }
    if customer_repo.is_duplicate(store, data["fname"], data["lname"], data["phone"], data["address"]):
        raise ValidationError("customer already exists")
    return data


def add_customer(store: StoreClient, fname, lname, address, phone, log: LogContext | None = None) -> list[tuple]:
    """Insert a customer (id = current customer count) and return the stored row."""
    with store.transaction():
        data = check_new_customer(store, fname, lname, address, phone)
        cid = customer_repo.insert_customer(store, data["fname"], data["lname"], data["phone"], data["address"])
    if log is not None:
        log.set_entity("CUSTOMER", cid)
        log.set_after(data | {"id": cid})
    return [customer_repo.get(store, cid)]


def run_add_customer(store: StoreClient, fname, lname, address, phone) -> WorkflowResult:
    return run_workflow(
        "ADD_CUSTOMER", store,
        lambda log: add_customer(store, fname, lname, address, phone, log),
        columns=CUSTOMER.columns,
    )
