#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mechanic shop console (SQLite)

Commands:
  init                Create the store file and apply schema.sql, seed report thresholds
  menu                Interactive main menu (default)
  report NAME         Print one report; optionally export it as CSV
  logs                Show the most recent operation_log entries
  config              Show report thresholds; change them with --set KEY=VALUE

Notes:
- Every menu entry runs one workflow; a failed workflow prints one message and
  returns to the menu.
- Malformed input (a word where a number is needed, a bad date) re-asks the prompt.
"""
from __future__ import annotations

import argparse
import logging
import sys

import pandas as pd

from .db import StoreClient, get_db_path
from .domain.rules import parse_bill, parse_service_date
from .errors import RepositoryError, StoreError, ValidationError
from .logs import search_logs
from .services import car_svc, customer_svc, mechanic_svc, report_svc
from .services.closure_svc import ClosureDetails, ClosurePrompts, run_closure
from .services.config_svc import ensure_default_config, get_config, run_update_config
from .services.intake_svc import CarDetails, CustomerDetails, IntakePrompts, RequestDetails, run_intake
from .services.workflow import WorkflowResult

MENU = [
    "AddCustomer",
    "AddMechanic",
    "AddCar",
    "InsertServiceRequest",
    "CloseServiceRequest",
    "ListCustomersWithBillLessThan100",
    "ListCustomersWithMoreThan20Cars",
    "ListCarsBefore1995With50000Milles",
    "ListKCarsWithTheMostServices",
    "ListCustomersInDescendingOrderOfTheirTotalBill",
    "< EXIT",
]

YES = {"0", "y", "yes"}
NO = {"1", "n", "no"}


# ---------------- prompt helpers ----------------

def read_line(prompt: str) -> str:
    return input(f"\t{prompt}: ").strip()


def read_int(prompt: str, minimum: int | None = None) -> int:
    while True:
        raw = read_line(prompt)
        try:
            value = int(raw)
        except ValueError:
            print("Your input is invalid!")
            continue
        if minimum is not None and value < minimum:
            print(f"Please enter a number >= {minimum}.")
            continue
        return value


def read_yes_no(prompt: str) -> bool:
    while True:
        raw = read_line(f"{prompt} (0 = yes/1 = no)").lower()
        if raw in YES:
            return True
        if raw in NO:
            return False
        print("Your input is invalid!")


def read_date(prompt: str):
    while True:
        raw = read_line(f"{prompt} (MM/DD/YYYY)")
        try:
            return parse_service_date(raw)
        except ValidationError as e:
            print(e)


def read_bill(prompt: str) -> float:
    while True:
        raw = read_line(prompt)
        try:
            return parse_bill(raw)
        except ValidationError as e:
            print(e)


def print_rows(columns, rows) -> None:
    pd.set_option("display.max_rows", 200)
    pd.set_option("display.width", 160)
    if rows:
        print(pd.DataFrame(list(rows), columns=list(columns)).to_string(index=False))
    else:
        print("(empty)")
    print(f"total row(s): {len(rows)}\n")


def show(result: WorkflowResult) -> None:
    if result.ok:
        print_rows(result.columns, result.rows)
    else:
        print(f"[{result.kind}] {result.reason}", file=sys.stderr)


# ---------------- console prompts ----------------

class ConsoleIntakePrompts(IntakePrompts):
    def offer_new_customer(self, last_name):
        return read_yes_no(f"No customer named {last_name}. Would you like to add a new customer?")

    def new_customer(self, last_name):
        print(f"\tLast Name: {last_name}")
        return CustomerDetails(
            fname=read_line("Enter First Name"),
            address=read_line("Enter Address"),
            phone=read_line("Enter Phone Number"),
        )

    def choose_customer(self, customers):
        print_rows(("id", "fname", "lname", "phone", "address"), customers)
        return read_int("Enter Customer ID, from above, of desired customer")

    def offer_new_car(self):
        return read_yes_no("No cars found. Would you like to add a car?")

    def car_is_listed(self, cars):
        print_rows(("vin", "make", "model", "year"), cars)
        return read_yes_no("Is the car you wish to service shown above?")

    def new_car(self):
        return CarDetails(
            vin=read_line("Enter vin"),
            make=read_line("Enter make"),
            model=read_line("Enter model"),
            year=read_int("Enter year"),
        )

    def choose_vin(self, cars):
        return read_line("Enter the VIN of the car needing service")

    def request_details(self):
        return RequestDetails(
            date=read_date("Enter Date"),
            odometer=read_int("Enter odometer value", minimum=0),
            complaint=read_line("Enter complaint/issue with car"),
        )


class ConsoleClosurePrompts(ClosurePrompts):
    def mechanic_id(self):
        return read_int("Enter employee id")

    def closing_date(self):
        return read_date("Enter closing date")

    def details(self):
        return ClosureDetails(comment=read_line("Enter comment"), bill=read_bill("Enter bill amount"))


# ---------------- menu actions ----------------

def do_add_customer(store):
    show(customer_svc.run_add_customer(
        store,
        read_line("Enter First Name"),
        read_line("Enter Last Name"),
        read_line("Enter Address"),
        read_line("Enter Phone Number"),
    ))


def do_add_mechanic(store):
    show(mechanic_svc.run_add_mechanic(
        store,
        read_line("Enter First Name"),
        read_line("Enter Last Name"),
        read_int("Enter Experience(Years)", minimum=0),
    ))


def do_add_car(store):
    show(car_svc.run_add_car(
        store,
        read_line("Enter vin"),
        read_line("Enter make"),
        read_line("Enter model"),
        read_int("Enter year"),
    ))


def do_intake(store):
    show(run_intake(store, read_line("Enter last name"), ConsoleIntakePrompts()))


def do_closure(store):
    show(run_closure(store, read_int("Enter service request number"), ConsoleClosurePrompts()))


def run_report(store, name: str, k: int | None = None, export: str | None = None) -> int:
    fn = report_svc.REPORTS[name]
    try:
        report = fn(store, k) if name == "most-services" else fn(store)
    except (ValidationError, RepositoryError, StoreError) as e:
        print(e, file=sys.stderr)
        return 1
    print(f"\n=== {report.title} ===")
    print_rows(report.columns, report.rows)
    if export:
        print("CSV exported to", report_svc.export_csv(report, export))
    return 0


def menu_loop(store) -> None:
    actions = {
        1: do_add_customer,
        2: do_add_mechanic,
        3: do_add_car,
        4: do_intake,
        5: do_closure,
        6: lambda s: run_report(s, "bill-under"),
        7: lambda s: run_report(s, "many-cars"),
        8: lambda s: run_report(s, "old-cars"),
        9: lambda s: run_report(s, "most-services", read_int("Enter a positive non-zero number")),
        10: lambda s: run_report(s, "total-bill"),
    }
    while True:
        print("MAIN MENU")
        print("---------")
        for i, label in enumerate(MENU, start=1):
            print(f"{i}. {label}")
        choice = read_int("Please make your choice")
        if choice == len(MENU):
            return
        action = actions.get(choice)
        if action is None:
            print("Your input is invalid!")
            continue
        action(store)


# ---------------- commands ----------------

def _open_store(args) -> StoreClient:
    return StoreClient(args.db or get_db_path(args.config)).open()


def cmd_init(args):
    path = args.db or get_db_path(args.config)
    with StoreClient(path, create=True) as store:
        store.apply_schema()
        ensure_default_config(store)
    print("Store initialised at", path)
    return 0


def cmd_menu(args):
    store = _open_store(args)
    try:
        # CREATE ... IF NOT EXISTS only
        store.apply_schema()
        ensure_default_config(store)
        menu_loop(store)
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        print("Disconnecting from database...", end="")
        store.close()
        print("Done\n\nBye !")
    return 0


def cmd_report(args):
    store = _open_store(args)
    try:
        return run_report(store, args.name, args.k, args.export)
    finally:
        store.close()


def _parse_assignments(pairs) -> dict:
    upd = {}
    for pair in pairs or ():
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ValidationError(f"expected KEY=VALUE, got {pair!r}")
        upd[key.strip()] = value.strip()
    return upd


def cmd_config(args):
    store = _open_store(args)
    try:
        ensure_default_config(store)
        try:
            upd = _parse_assignments(args.set)
        except ValidationError as e:
            print(e, file=sys.stderr)
            return 1
        if upd:
            result = run_update_config(store, upd)
            show(result)
            return 0 if result.ok else 1
        cfg = get_config(store)
        print_rows(("key", "value"), [(k, str(v)) for k, v in sorted(cfg.items())])
        return 0
    finally:
        store.close()


def cmd_logs(args):
    store = _open_store(args)
    try:
        total, items = search_logs(store, args.q, args.action, None, None, 1, args.size)
    finally:
        store.close()
    cols = ["id", "ts", "action", "entity_type", "entity_id", "result", "err_msg"]
    print_rows(cols, [tuple(it[c] for c in cols) for it in items])
    print(f"{total} entries in total")
    return 0


# ---------------- Entry ----------------

def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Mechanic shop console (SQLite)")
    parser.add_argument("--config", default=None, help="path to config.yaml")
    parser.add_argument("--db", default=None, help="store path (overrides config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command")

    p_init = sub.add_parser("init", help="create the store and apply schema.sql")
    p_init.set_defaults(func=cmd_init)

    p_menu = sub.add_parser("menu", help="interactive main menu")
    p_menu.set_defaults(func=cmd_menu)

    p_rep = sub.add_parser("report", help="print one report")
    p_rep.add_argument("name", choices=sorted(report_svc.REPORTS))
    p_rep.add_argument("--k", type=int, default=None, help="number of cars for most-services")
    p_rep.add_argument("--export", default=None, help="directory for a CSV copy")
    p_rep.set_defaults(func=cmd_report)

    p_logs = sub.add_parser("logs", help="recent operation log entries")
    p_logs.add_argument("--action", default=None)
    p_logs.add_argument("--q", default=None)
    p_logs.add_argument("--size", type=int, default=20)
    p_logs.set_defaults(func=cmd_logs)

    p_cfg = sub.add_parser("config", help="show or change report thresholds")
    p_cfg.add_argument("--set", action="append", metavar="KEY=VALUE", help="may be repeated")
    p_cfg.set_defaults(func=cmd_config)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "report" and args.name == "most-services" and args.k is None:
        parser.error("report most-services needs --k")
    func = getattr(args, "func", cmd_menu)
    try:
        return func(args)
    except StoreError as e:
        # a store that cannot be opened is fatal
        print(f"Error - Unable to Connect to Database: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
