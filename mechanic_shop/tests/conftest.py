import os
import sys
import sqlite3
import pytest
from pathlib import Path

# Ensure project root on sys.path
_THIS_DIR = Path(__file__).resolve().parent
_PROJECT_ROOT = _THIS_DIR.parent.parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

TABLES = [
    # children first so foreign keys never block the wipe
    "closed_request",
    "service_request",
    "owns",
    "car",
    "mechanic",
    "customer",
    "config",
    "operation_log",
]


@pytest.fixture(scope="session")
def tmp_db_path(tmp_path_factory):
    path = tmp_path_factory.mktemp("db") / "shop_test.db"
    # Point the store layer at this temp DB
    os.environ["SHOP_DB_PATH"] = str(path)
    schema = Path(_PROJECT_ROOT / "schema.sql").read_text(encoding="utf-8")
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(schema)
        conn.commit()
    finally:
        conn.close()
    return str(path)


@pytest.fixture(autouse=True)
def _clean_db(tmp_db_path):
    # Safety: ensure we only ever wipe the temp DB, never a real one
    assert os.environ.get("SHOP_DB_PATH") == tmp_db_path, "Refusing to clean non-temp DB"
    conn = sqlite3.connect(tmp_db_path)
    try:
        for t in TABLES:
            conn.execute(f"DELETE FROM {t}")
        conn.commit()
    finally:
        conn.close()
    yield


@pytest.fixture()
def store(tmp_db_path):
    from mechanic_shop.db import StoreClient
    from mechanic_shop.services.config_svc import ensure_default_config
    client = StoreClient(tmp_db_path).open()
    ensure_default_config(client)
    try:
        yield client
    finally:
        client.close()


@pytest.fixture()
def seed(store):
    """Helpers that write fixture rows straight through the store, bypassing the services."""
    class Seed:
        def customer(self, cid, fname="Jane", lname="Doe", phone="555-1212", address="1 Elm St"):
            store.execute_mutation(
                "INSERT INTO customer(id, fname, lname, phone, address) VALUES(?,?,?,?,?)",
                (cid, fname, lname, phone, address),
            )

        def mechanic(self, mid, fname="Bob", lname="Wrench", experience=5):
            store.execute_mutation(
                "INSERT INTO mechanic(id, fname, lname, experience) VALUES(?,?,?,?)",
                (mid, fname, lname, experience),
            )

        def car(self, vin, make="Ford", model="Focus", year=2010):
            store.execute_mutation(
                "INSERT INTO car(vin, make, model, year) VALUES(?,?,?,?)", (vin, make, model, year)
            )

        def owns(self, oid, customer_id, vin):
            store.execute_mutation(
                "INSERT INTO owns(ownership_id, customer_id, car_vin) VALUES(?,?,?)", (oid, customer_id, vin)
            )

        def request(self, rid, customer_id, vin, date="2024-01-10", odometer=42000, complain="noise"):
            store.execute_mutation(
                "INSERT INTO service_request(rid, customer_id, car_vin, date, odometer, complain) VALUES(?,?,?,?,?,?)",
                (rid, customer_id, vin, date, odometer, complain),
            )

        def closed(self, rid, mid, date="2024-02-01", comment="done", bill=80.0):
            store.execute_mutation(
                "INSERT INTO closed_request(wid, rid, mid, date, comment, bill) VALUES(?,?,?,?,?,?)",
                (rid, rid, mid, date, comment, bill),
            )

        def count(self, table):
            return int(store.execute_query(f"SELECT COUNT(*) FROM {table}")[0][0])

    return Seed()
