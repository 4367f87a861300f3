# mechanic_shop/services/mechanic_svc.py
from __future__ import annotations

from ..db import StoreClient
from ..domain.rules import require_non_negative_int, require_text
from ..errors import ValidationError
from ..logs import LogContext
from ..repository import mechanic_repo
from ..repository.records import MECHANIC
from .workflow import WorkflowResult, run_workflow


def add_mechanic(store: StoreClient, fname, lname, experience, log: LogContext | None = None) -> list[tuple]:
    fname = require_text(fname, "first name")
    lname = require_text(lname, "last name")
    years = require_non_negative_int(experience, "experience")
    with store.transaction():
        if mechanic_repo.is_duplicate(store, fname, lname, years):
            raise ValidationError("mechanic already exists")
        mid = mechanic_repo.insert_mechanic(store, fname, lname, years)
    if log is not None:
        log.set_entity("MECHANIC", mid)
        log.set_after({"id": mid, "fname": fname, "lname": lname, "experience": years})
    return [mechanic_repo.get(store, mid)]


def run_add_mechanic(store: StoreClient, fname, lname, experience) -> WorkflowResult:
    return run_workflow(
        "ADD_MECHANIC", store,
        lambda log: add_mechanic(store, fname, lname, experience, log),
        columns=MECHANIC.columns,
    )
