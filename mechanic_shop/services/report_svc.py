# mechanic_shop/services/report_svc.py
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from ..db import StoreClient
from ..domain.rules import require_int
from ..errors import ValidationError
from ..repository import reporting_repo
from .config_svc import get_config


@dataclass
class Report:
    name: str
    title: str
    columns: list[str] = field(default_factory=list)
    rows: list[tuple] = field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns)


def customers_with_bill_under(store: StoreClient, threshold: Optional[float] = None) -> Report:
    if threshold is None:
        threshold = get_config(store)["bill_threshold"]
    cols, rows = reporting_repo.customers_with_bill_under(store, threshold)
    return Report("bill-under", f"Customers with a bill under {threshold:g}", cols, rows)


def customers_with_many_cars(store: StoreClient, min_cars: Optional[int] = None) -> Report:
    if min_cars is None:
        min_cars = get_config(store)["min_car_count"]
    cols, rows = reporting_repo.customers_with_more_cars_than(store, min_cars)
    return Report("many-cars", f"Customers with more than {min_cars} cars", cols, rows)


def old_cars_low_mileage(store: StoreClient, year: Optional[int] = None, odometer: Optional[int] = None) -> Report:
    cfg = get_config(store)
    year = cfg["car_year_before"] if year is None else year
    odometer = cfg["odometer_below"] if odometer is None else odometer
    cols, rows = reporting_repo.cars_before_year_under_odometer(store, year, odometer)
    return Report("old-cars", f"Cars before {year} serviced under {odometer} miles", cols, rows)


def cars_with_most_services(store: StoreClient, k) -> Report:
    """The k most serviced cars; 0 < k <= number of distinct serviced cars."""
    try:
        k = require_int(k, "k")
    except ValidationError:
        raise ValidationError("k must be a positive whole number")
    if k <= 0:
        raise ValidationError("k must be greater than 0")
    available = reporting_repo.count_serviced_cars(store)
    if k > available:
        raise ValidationError(f"k must not exceed {available}, the number of serviced cars")
    cols, rows = reporting_repo.cars_with_most_services(store, k)
    return Report("most-services", f"Top {k} cars by number of service requests", cols, rows)


def customers_by_total_bill(store: StoreClient) -> Report:
    cols, rows = reporting_repo.customers_by_total_bill(store)
    return Report("total-bill", "Customers by total bill (descending)", cols, rows)


REPORTS = {
    "bill-under": customers_with_bill_under,
    "many-cars": customers_with_many_cars,
    "old-cars": old_cars_low_mileage,
    "most-services": cars_with_most_services,
    "total-bill": customers_by_total_bill,
}


def export_csv(report: Report, out_dir: str) -> str:
    os.makedirs(out_dir, exist_ok=True)
    path = os.path.join(out_dir, f"{report.name}.csv")
    report.to_frame().to_csv(path, index=False, encoding="utf-8-sig")
    return path
