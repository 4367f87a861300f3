"""
Intake: open a service request for a customer's car.

The workflow is a small state machine. Operator decisions come from an
IntakePrompts object supplied by the presentation layer. Reads happen as the
states are walked; every write (new customer, new car, ownership link, the
request itself) is deferred to VERIFY_OWNERSHIP / CREATE_REQUEST and runs in
one store transaction, so an intake either lands completely or not at all.
"""
from __future__ import annotations

import logging
from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from ..db import StoreClient
from ..domain.rules import require_int, require_non_negative_int, require_text, to_iso
from ..errors import ValidationError, WorkflowAborted
from ..logs import LogContext
from ..repository import car_repo, customer_repo, owns_repo, request_repo
from ..repository.records import SERVICE_REQUEST
from .car_svc import check_new_car
from .customer_svc import check_new_customer
from .workflow import WorkflowResult, run_workflow

logger = logging.getLogger(__name__)


class IntakeState(str, Enum):
    START = "START"
    RESOLVE_CUSTOMER = "RESOLVE_CUSTOMER"
    CREATE_CUSTOMER = "CREATE_CUSTOMER"
    CONFIRM_CUSTOMER = "CONFIRM_CUSTOMER"
    RESOLVE_CAR = "RESOLVE_CAR"
    CREATE_CAR = "CREATE_CAR"
    SELECT_EXISTING_CAR = "SELECT_EXISTING_CAR"
    VERIFY_OWNERSHIP = "VERIFY_OWNERSHIP"
    CREATE_REQUEST = "CREATE_REQUEST"
    DONE = "DONE"
    ABORT = "ABORT"


@dataclass
class CustomerDetails:
    fname: str
    address: str
    phone: str


@dataclass
class CarDetails:
    vin: str
    make: str
    model: str
    year: int


@dataclass
class RequestDetails:
    date: object  # date, or text in MM/DD/YYYY / YYYY-MM-DD
    odometer: int
    complaint: str


class IntakePrompts:
    """Operator decisions needed by the intake. The console implements these with input()."""

    def offer_new_customer(self, last_name: str) -> bool:
        raise NotImplementedError

    def new_customer(self, last_name: str) -> CustomerDetails:
        raise NotImplementedError

    def choose_customer(self, customers: list[tuple]) -> int:
        """customers: (id, fname, lname, phone, address) rows sharing the searched last name."""
        raise NotImplementedError

    def offer_new_car(self) -> bool:
        raise NotImplementedError

    def car_is_listed(self, cars: list[tuple]) -> bool:
        """cars: (vin, make, model, year) rows the customer owns."""
        raise NotImplementedError

    def new_car(self) -> CarDetails:
        raise NotImplementedError

    def choose_vin(self, cars: list[tuple]) -> str:
        raise NotImplementedError

    def request_details(self) -> RequestDetails:
        raise NotImplementedError


@dataclass
class IntakePlan:
    last_name: str
    customer_id: Optional[int] = None
    new_customer: Optional[dict] = None
    vin: Optional[str] = None
    new_car: Optional[dict] = None
    link_car: bool = False
    rid: Optional[int] = None
    written: list = field(default_factory=list)


class IntakeWorkflow:
    def __init__(self, store: StoreClient, last_name: str, prompts: IntakePrompts, log: LogContext | None = None):
        self.store = store
        self.prompts = prompts
        self.log = log
        self.plan = IntakePlan(last_name=last_name)
        self.state = IntakeState.START
        self.trail: list[IntakeState] = []
        self.customers: list[tuple] = []
        self.cars: list[tuple] = []
        self._stack: ExitStack | None = None
        self._handlers = {
            IntakeState.START: self._start,
            IntakeState.RESOLVE_CUSTOMER: self._resolve_customer,
            IntakeState.CREATE_CUSTOMER: self._create_customer,
            IntakeState.CONFIRM_CUSTOMER: self._confirm_customer,
            IntakeState.RESOLVE_CAR: self._resolve_car,
            IntakeState.CREATE_CAR: self._create_car,
            IntakeState.SELECT_EXISTING_CAR: self._select_existing_car,
            IntakeState.VERIFY_OWNERSHIP: self._verify_ownership,
            IntakeState.CREATE_REQUEST: self._create_request,
        }

    def _move(self, state: IntakeState) -> None:
        self.state = state
        self.trail.append(state)

    def run(self) -> list[tuple]:
        """Walk the states to DONE and return the inserted service request row."""
        self._move(IntakeState.START)
        try:
            with ExitStack() as stack:
                self._stack = stack
                while self.state is not IntakeState.DONE:
                    self._move(self._handlers[self.state]())
        except Exception:
            self._move(IntakeState.ABORT)
            raise
        finally:
            self._stack = None
        logger.info("intake for %s wrote %s", self.plan.last_name, ", ".join(self.plan.written))
        if self.log is not None:
            self.log.set_entity("SERVICE_REQUEST", self.plan.rid)
            self.log.set_payload({
                "last_name": self.plan.last_name,
                "customer_id": self.plan.customer_id,
                "vin": self.plan.vin,
                "written": self.plan.written,
            })
        return [request_repo.get(self.store, self.plan.rid)]

    # ---- states ----
    def _start(self) -> IntakeState:
        self.plan.last_name = require_text(self.plan.last_name, "last name")
        return IntakeState.RESOLVE_CUSTOMER

    def _resolve_customer(self) -> IntakeState:
        self.customers = customer_repo.find_by_last_name(self.store, self.plan.last_name)
        if self.customers:
            return IntakeState.CONFIRM_CUSTOMER
        if self.prompts.offer_new_customer(self.plan.last_name):
            return IntakeState.CREATE_CUSTOMER
        raise WorkflowAborted(f"no customer with last name {self.plan.last_name}")

    def _create_customer(self) -> IntakeState:
        d = self.prompts.new_customer(self.plan.last_name)
        self.plan.new_customer = check_new_customer(self.store, d.fname, self.plan.last_name, d.address, d.phone)
        return IntakeState.RESOLVE_CAR

    def _confirm_customer(self) -> IntakeState:
        try:
            cid = require_int(self.prompts.choose_customer(self.customers), "customer id")
        except ValidationError:
            raise ValidationError("unknown customer id")
        if not customer_repo.has_last_name(self.store, cid, self.plan.last_name):
            raise ValidationError("unknown customer id")
        self.plan.customer_id = cid
        return IntakeState.RESOLVE_CAR

    def _resolve_car(self) -> IntakeState:
        if self.plan.customer_id is not None:
            self.cars = owns_repo.cars_for_customer(self.store, self.plan.customer_id)
        if not self.cars:
            if self.prompts.offer_new_car():
                return IntakeState.CREATE_CAR
            raise WorkflowAborted("customer has no car to service")
        if self.prompts.car_is_listed(self.cars):
            return IntakeState.SELECT_EXISTING_CAR
        return IntakeState.CREATE_CAR

    def _create_car(self) -> IntakeState:
        d = self.prompts.new_car()
        self.plan.new_car = check_new_car(self.store, d.vin, d.make, d.model, d.year)
        self.plan.vin = self.plan.new_car["vin"]
        self.plan.link_car = True
        return IntakeState.VERIFY_OWNERSHIP

    def _select_existing_car(self) -> IntakeState:
        self.plan.vin = require_text(self.prompts.choose_vin(self.cars), "vin")
        return IntakeState.VERIFY_OWNERSHIP

    def _verify_ownership(self) -> IntakeState:
        self._stack.enter_context(self.store.transaction())
        self._flush_pending()
        if not owns_repo.owns_car(self.store, self.plan.customer_id, self.plan.vin):
            raise ValidationError("customer does not own this car")
        return IntakeState.CREATE_REQUEST

    def _flush_pending(self) -> None:
        plan = self.plan
        if plan.new_customer is not None:
            c = check_new_customer(
                self.store, plan.new_customer["fname"], plan.new_customer["lname"],
                plan.new_customer["address"], plan.new_customer["phone"],
            )
            plan.customer_id = customer_repo.insert_customer(self.store, c["fname"], c["lname"], c["phone"], c["address"])
            plan.written.append(f"customer {plan.customer_id}")
        if plan.new_car is not None:
            c = check_new_car(self.store, plan.new_car["vin"], plan.new_car["make"], plan.new_car["model"], plan.new_car["year"])
            car_repo.insert_car(self.store, c["vin"], c["make"], c["model"], c["year"])
            plan.written.append(f"car {c['vin']}")
        if plan.link_car:
            oid = owns_repo.insert_owns(self.store, plan.customer_id, plan.vin)
            plan.written.append(f"owns {oid}")

    def _create_request(self) -> IntakeState:
        d = self.prompts.request_details()
        date_iso = to_iso(d.date)
        odometer = require_non_negative_int(d.odometer, "odometer")
        complaint = str(d.complaint or "").strip()
        self.plan.rid = request_repo.insert_request(
            self.store, self.plan.customer_id, self.plan.vin, date_iso, odometer, complaint
        )
        self.plan.written.append(f"service_request {self.plan.rid}")
        return IntakeState.DONE


def intake_request(store: StoreClient, last_name: str, prompts: IntakePrompts, log: LogContext | None = None) -> list[tuple]:
    return IntakeWorkflow(store, last_name, prompts, log).run()


def run_intake(store: StoreClient, last_name: str, prompts: IntakePrompts) -> WorkflowResult:
    return run_workflow(
        "INTAKE", store,
        lambda log: intake_request(store, last_name, prompts, log),
        columns=SERVICE_REQUEST.columns,
    )
