from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping, Optional, Sequence

from ..db import StoreClient
from ..errors import RepositoryError, StoreError


@dataclass(frozen=True)
class Entity:
    """Table descriptor: ordered columns, key column, and whether the key is count-assigned."""
    table: str
    columns: tuple[str, ...]
    key: str
    sequenced: bool = True

    def check_columns(self, names) -> None:
        unknown = [n for n in names if n not in self.columns]
        if unknown:
            raise ValueError(f"unknown column(s) for {self.table}: {', '.join(unknown)}")


CUSTOMER = Entity("customer", ("id", "fname", "lname", "phone", "address"), "id")
MECHANIC = Entity("mechanic", ("id", "fname", "lname", "experience"), "id")
CAR = Entity("car", ("vin", "make", "model", "year"), "vin", sequenced=False)
OWNS = Entity("owns", ("ownership_id", "customer_id", "car_vin"), "ownership_id")
SERVICE_REQUEST = Entity("service_request", ("rid", "customer_id", "car_vin", "date", "odometer", "complain"), "rid")
# wid is supplied by the caller and always equals rid
CLOSED_REQUEST = Entity("closed_request", ("wid", "rid", "mid", "date", "comment", "bill"), "wid", sequenced=False)


@contextmanager
def wrap_store_errors(entity: Entity, operation: str) -> Iterator[None]:
    try:
        yield
    except StoreError as e:
        raise RepositoryError(entity.table, operation, e) from e


def _where(entity: Entity, filters: Optional[Mapping[str, Any]]) -> tuple[str, list]:
    if not filters:
        return "", []
    entity.check_columns(filters.keys())
    clauses = [f"{col} = ?" for col in filters]
    return " WHERE " + " AND ".join(clauses), list(filters.values())


def count(store: StoreClient, entity: Entity, filters: Optional[Mapping[str, Any]] = None) -> int:
    wh, params = _where(entity, filters)
    with wrap_store_errors(entity, "count"):
        rows = store.execute_query(f"SELECT COUNT(*) FROM {entity.table}{wh}", params)
    return int(rows[0][0])


def exists(store: StoreClient, entity: Entity, filters: Mapping[str, Any]) -> bool:
    return count(store, entity, filters) > 0


def find(
    store: StoreClient,
    entity: Entity,
    filters: Optional[Mapping[str, Any]] = None,
    order_by: Optional[Sequence[str]] = None,
) -> list[tuple]:
    """Full rows (in ``entity.columns`` order) matching every filter."""
    wh, params = _where(entity, filters)
    sql = f"SELECT {', '.join(entity.columns)} FROM {entity.table}{wh}"
    if order_by:
        entity.check_columns(order_by)
        sql += " ORDER BY " + ", ".join(order_by)
    with wrap_store_errors(entity, "find"):
        return store.execute_query(sql, params)


def get(store: StoreClient, entity: Entity, key: Any) -> Optional[tuple]:
    rows = find(store, entity, {entity.key: key})
    return rows[0] if rows else None


def insert(store: StoreClient, entity: Entity, values: Mapping[str, Any]):
    """
    Insert one row and return its identifier.

    Sequenced entities get ``COUNT(*)`` of the table as their key, computed in
    the INSERT statement itself so the count and the write cannot interleave
    with another writer. Other entities must carry their key in ``values``.
    """
    entity.check_columns(values.keys())
    if entity.sequenced:
        if entity.key in values:
            raise ValueError(f"{entity.table}.{entity.key} is assigned by the store")
        cols = list(values.keys())
        placeholders = ", ".join(["?"] * len(cols))
        sql = (
            f"INSERT INTO {entity.table} ({', '.join([entity.key] + cols)}) "
            f"SELECT COUNT(*), {placeholders} FROM {entity.table}"
        )
        with wrap_store_errors(entity, "insert"):
            store.execute_mutation(sql, list(values.values()))
            return store.last_insert_id()

    if entity.key not in values:
        raise ValueError(f"{entity.table}.{entity.key} is required")
    cols = list(values.keys())
    sql = f"INSERT INTO {entity.table} ({', '.join(cols)}) VALUES ({', '.join(['?'] * len(cols))})"
    with wrap_store_errors(entity, "insert"):
        store.execute_mutation(sql, list(values.values()))
    return values[entity.key]
