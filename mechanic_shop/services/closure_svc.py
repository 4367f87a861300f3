"""
Closure: record a service request as completed.

Gates, in order, each raising ValidationError:
  1. the service request exists
  2. it is not closed yet
  3. the mechanic exists
  4. the closing date is a later calendar day than the opening date
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from ..db import StoreClient
from ..domain.rules import closes_after, parse_bill, require_int, to_iso
from ..errors import ValidationError
from ..logs import LogContext
from ..repository import closed_repo, mechanic_repo, request_repo
from ..repository.records import CLOSED_REQUEST
from .workflow import WorkflowResult, run_workflow

logger = logging.getLogger(__name__)


def check_open(store: StoreClient, rid) -> tuple[int, str]:
    """Gates 1-2. Returns (rid, opening date)."""
    try:
        rid = require_int(rid, "service request id")
    except ValidationError:
        raise ValidationError("no such service request")
    opening = request_repo.opening_date(store, rid)
    if opening is None:
        raise ValidationError("no such service request")
    if closed_repo.is_closed(store, rid):
        raise ValidationError("already closed")
    return rid, opening


def check_mechanic(store: StoreClient, mechanic_id) -> int:
    try:
        mid = require_int(mechanic_id, "mechanic id")
    except ValidationError:
        raise ValidationError("no such mechanic")
    if not mechanic_repo.exists(store, mid):
        raise ValidationError("no such mechanic")
    return mid


def check_closing_date(opening: str, closing) -> str:
    closing_iso = to_iso(closing)
    if not closes_after(opening, closing_iso):
        raise ValidationError("closing date not after open date")
    return closing_iso


def _write(store: StoreClient, rid: int, mid: int, closing_iso: str, comment, bill, log: LogContext | None) -> list[tuple]:
    amount = parse_bill(bill)
    comment = str(comment or "").strip()
    with store.transaction():
        # re-check inside the write lock so two closures cannot both pass gate 2
        if closed_repo.is_closed(store, rid):
            raise ValidationError("already closed")
        closed_repo.insert_closed(store, rid, mid, closing_iso, comment, amount)
    logger.info("service request %s closed by mechanic %s", rid, mid)
    if log is not None:
        log.set_entity("CLOSED_REQUEST", rid)
        log.set_after({"rid": rid, "mid": mid, "date": closing_iso, "comment": comment, "bill": amount})
    return [closed_repo.get(store, rid)]


def close_request(store: StoreClient, rid, mechanic_id, closing_date, comment, bill,
                  log: LogContext | None = None) -> list[tuple]:
    """Run every gate with all values known up front, then insert the closed request."""
    rid, opening = check_open(store, rid)
    mid = check_mechanic(store, mechanic_id)
    closing_iso = check_closing_date(opening, closing_date)
    return _write(store, rid, mid, closing_iso, comment, bill, log)


@dataclass
class ClosureDetails:
    comment: str
    bill: object


class ClosurePrompts:
    """Operator input, asked only once the preceding gate has passed."""

    def mechanic_id(self) -> int:
        raise NotImplementedError

    def closing_date(self):
        raise NotImplementedError

    def details(self) -> ClosureDetails:
        raise NotImplementedError


def close_interactive(store: StoreClient, rid, prompts: ClosurePrompts, log: LogContext | None = None) -> list[tuple]:
    rid, opening = check_open(store, rid)
    mid = check_mechanic(store, prompts.mechanic_id())
    closing_iso = check_closing_date(opening, prompts.closing_date())
    d = prompts.details()
    return _write(store, rid, mid, closing_iso, d.comment, d.bill, log)


def run_closure(store: StoreClient, rid, prompts: ClosurePrompts) -> WorkflowResult:
    return run_workflow(
        "CLOSE_REQUEST", store,
        lambda log: close_interactive(store, rid, prompts, log),
        columns=CLOSED_REQUEST.columns,
    )


def run_close_request(store: StoreClient, rid, mechanic_id, closing_date, comment, bill) -> WorkflowResult:
    return run_workflow(
        "CLOSE_REQUEST", store,
        lambda log: close_request(store, rid, mechanic_id, closing_date, comment, bill, log),
        columns=CLOSED_REQUEST.columns,
    )
