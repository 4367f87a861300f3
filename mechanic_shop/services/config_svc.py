# mechanic_shop/services/config_svc.py
from ..db import StoreClient
from ..domain.rules import parse_bill, require_non_negative_int
from ..errors import ValidationError
from ..logs import LogContext
from .workflow import WorkflowResult, run_workflow

DEFAULTS = {
    # report 1: closed requests billed under this amount
    "bill_threshold": "100",
    # report 2: customers owning more than this many cars
    "min_car_count": "20",
    # report 3: cars built before this year, serviced under this odometer reading
    "car_year_before": "1995",
    "odometer_below": "50000",
}


def ensure_default_config(store: StoreClient):
    """Seed missing keys without overwriting existing values."""
    with store.transaction():
        for k, v in DEFAULTS.items():
            store.execute_mutation(
                "INSERT INTO config(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO NOTHING",
                (k, v),
            )


def _typed(raw: dict) -> dict:
    def num(k, cast):
        try:
            return cast(float(raw.get(k, DEFAULTS[k])))
        except (TypeError, ValueError):
            return cast(float(DEFAULTS[k]))

    return {
        "bill_threshold": num("bill_threshold", float),
        "min_car_count": num("min_car_count", int),
        "car_year_before": num("car_year_before", int),
        "odometer_below": num("odometer_below", int),
    }


def get_config(store: StoreClient) -> dict:
    rows = store.execute_query("SELECT key, value FROM config")
    return _typed({k: v for k, v in rows})


def _check_value(key: str, value) -> str:
    if key == "bill_threshold":
        return str(parse_bill(value))
    return str(require_non_negative_int(value, key))


def update_config(store: StoreClient, upd: dict, log: LogContext) -> list[str]:
    unknown = [k for k in upd if k not in DEFAULTS]
    if unknown:
        raise ValidationError(f"unknown config key(s): {', '.join(unknown)}")
    values = {k: _check_value(k, v) for k, v in upd.items()}
    updated = []
    before = {k: v for k, v in store.execute_query("SELECT key, value FROM config")}
    with store.transaction():
        for k, v in values.items():
            store.execute_mutation(
                "INSERT INTO config(key,value) VALUES(?,?) "
                "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
                (k, v),
            )
            updated.append(k)
    after = {k: v for k, v in store.execute_query("SELECT key, value FROM config")}
    log.set_before(before); log.set_after(after)
    log.set_entity("CONFIG", ",".join(updated))
    return updated


def run_update_config(store: StoreClient, upd: dict) -> WorkflowResult:
    """Audited threshold change; rows are the (key, value) pairs after the update."""
    def _apply(log: LogContext):
        log.set_payload(upd)
        update_config(store, upd, log)
        return sorted(store.execute_query("SELECT key, value FROM config"))

    return run_workflow("UPDATE_CONFIG", store, _apply, columns=("key", "value"))
