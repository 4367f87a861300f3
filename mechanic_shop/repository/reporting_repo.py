from __future__ import annotations

from ..db import StoreClient
from ..errors import RepositoryError, StoreError


def _run(store: StoreClient, name: str, sql: str, params) -> tuple[list[str], list[tuple]]:
    try:
        return store.execute_query_with_columns(sql, params)
    except StoreError as e:
        raise RepositoryError("report", name, e) from e


def customers_with_bill_under(store: StoreClient, threshold: float):
    """One row per closed request whose bill is below the threshold."""
    return _run(
        store,
        "bill_under",
        """
        SELECT cu.fname, cu.lname, cr.date, cr.comment, cr.bill
        FROM closed_request cr
        JOIN service_request sr ON sr.rid = cr.rid
        JOIN customer cu ON cu.id = sr.customer_id
        WHERE cr.bill < ?
        ORDER BY cr.rid
        """,
        (threshold,),
    )


def customers_with_more_cars_than(store: StoreClient, min_cars: int):
    return _run(
        store,
        "more_cars_than",
        """
        SELECT cu.fname, cu.lname, COUNT(*) AS cars
        FROM customer cu
        JOIN owns o ON o.customer_id = cu.id
        GROUP BY cu.id, cu.fname, cu.lname
        HAVING COUNT(*) > ?
        ORDER BY cu.id
        """,
        (min_cars,),
    )


def cars_before_year_under_odometer(store: StoreClient, year: int, odometer: int):
    return _run(
        store,
        "old_low_mileage",
        """
        SELECT DISTINCT c.make, c.model, c.year
        FROM car c
        JOIN service_request sr ON sr.car_vin = c.vin
        WHERE c.year < ? AND sr.odometer < ?
        ORDER BY c.year, c.make, c.model
        """,
        (year, odometer),
    )


def count_serviced_cars(store: StoreClient) -> int:
    _, rows = _run(store, "serviced_cars", "SELECT COUNT(DISTINCT car_vin) FROM service_request", ())
    return int(rows[0][0])


def cars_with_most_services(store: StoreClient, k: int):
    return _run(
        store,
        "most_services",
        """
        SELECT c.make, c.model, COUNT(*) AS services
        FROM service_request sr
        JOIN car c ON c.vin = sr.car_vin
        GROUP BY sr.car_vin, c.make, c.model
        ORDER BY services DESC, sr.car_vin
        LIMIT ?
        """,
        (k,),
    )


def customers_by_total_bill(store: StoreClient):
    return _run(
        store,
        "total_bill",
        """
        SELECT cu.fname, cu.lname, SUM(cr.bill) AS total_bill
        FROM service_request sr
        JOIN closed_request cr ON cr.rid = sr.rid
        JOIN customer cu ON cu.id = sr.customer_id
        GROUP BY cu.id, cu.fname, cu.lname
        ORDER BY total_bill DESC, cu.id
        """,
        (),
    )
