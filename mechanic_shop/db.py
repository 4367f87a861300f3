from __future__ import annotations

# mechanic_shop/db.py
import sqlite3
from contextlib import contextmanager
from typing import Any, Iterator, Sequence
import os
import yaml

from .errors import StoreError

# Store path resolution order:
# 1) env SHOP_DB_PATH (highest)
# 2) config.yaml test_db_path (when running under tests)
# 3) config.yaml db_path
# 4) fallback: mechanic_shop.db at the project root
_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_ROOT_DB = os.path.join(_PROJECT_ROOT, "mechanic_shop.db")
SCHEMA_PATH = os.path.join(_PROJECT_ROOT, "schema.sql")

Row = tuple  # values rendered as text, NULL as None


def _read_config_yaml(cfg_path: str | None = None) -> dict:
    cfg_path = cfg_path or os.path.join(_PROJECT_ROOT, "config.yaml")
    if not os.path.exists(cfg_path):
        return {}
    try:
        with open(cfg_path, "r", encoding="utf-8") as f:
            cfg = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}
    out = {}
    for k in ("db_path", "test_db_path"):
        v = cfg.get(k) if isinstance(cfg, dict) else None
        if isinstance(v, str) and v.strip():
            out[k] = v.strip()
    return out


def get_db_path(config_path: str | None = None) -> str:
    env_path = os.environ.get("SHOP_DB_PATH")
    cfg = _read_config_yaml(config_path)
    cfg_db = cfg.get("db_path")
    cfg_test = cfg.get("test_db_path")
    is_test = (os.environ.get("APP_ENV") == "test") or (os.environ.get("PYTEST_CURRENT_TEST") is not None)

    if env_path:
        return env_path
    if is_test and cfg_test:
        return cfg_test
    if cfg_db:
        # relative paths in config.yaml are relative to the project root
        return cfg_db if os.path.isabs(cfg_db) else os.path.join(_PROJECT_ROOT, cfg_db)
    return _ROOT_DB


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


class StoreClient:
    """
    Handle on the shop's SQLite store.

    One instance per process, opened at start-up and closed at shutdown.
    Statements outside ``transaction()`` are committed on their own.
    Not safe for concurrent use by several workflows.
    """

    def __init__(self, db_path: str | None = None, create: bool = False):
        self.path = db_path or get_db_path()
        self.create = create
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

    # ---- lifecycle ----
    def open(self) -> "StoreClient":
        if self._conn is not None:
            return self
        if self.create:
            dirn = os.path.dirname(self.path) or "."
            os.makedirs(dirn, exist_ok=True)
            target, uri = self.path, False
        else:
            # mode=rw: a missing store is a connection failure, not an empty new file
            target, uri = f"file:{self.path}?mode=rw", True
        try:
            conn = sqlite3.connect(target, uri=uri, isolation_level=None, check_same_thread=False)
            conn.execute("PRAGMA foreign_keys = ON;")
            conn.execute("SELECT COUNT(1) FROM sqlite_master").fetchone()
        except sqlite3.Error as e:
            raise StoreError(f"unable to connect to store {self.path}: {e}") from e
        self._conn = conn
        return self

    def close(self) -> None:
        if self._conn is None:
            return
        try:
            self._conn.close()
        finally:
            self._conn = None
            self._tx_depth = 0

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    def __enter__(self) -> "StoreClient":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StoreError("store is not open")
        return self._conn

    # ---- statements ----
    def execute_mutation(self, statement: str, params: Sequence[Any] | dict = ()) -> int:
        """Run one INSERT/UPDATE/DELETE and return the affected row count."""
        conn = self._connection()
        try:
            cur = conn.execute(statement, params)
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(str(e)) from e
        return cur.rowcount

    def execute_query(self, statement: str, params: Sequence[Any] | dict = ()) -> list[Row]:
        """Run one SELECT; every value comes back as text (NULL stays None)."""
        _, rows = self.execute_query_with_columns(statement, params)
        return rows

    def execute_query_with_columns(
        self, statement: str, params: Sequence[Any] | dict = ()
    ) -> tuple[list[str], list[Row]]:
        conn = self._connection()
        try:
            cur = conn.execute(statement, params)
            raw = cur.fetchall()
        except (sqlite3.Error, OverflowError) as e:
            raise StoreError(str(e)) from e
        columns = [d[0] for d in (cur.description or ())]
        return columns, [tuple(_as_text(v) for v in r) for r in raw]

    def last_insert_id(self) -> int:
        row = self.execute_query("SELECT last_insert_rowid()")
        return int(row[0][0])

    def scalar_sequence_value(self, name: str) -> int:
        """Current value of the AUTOINCREMENT sequence of table ``name``."""
        try:
            rows = self.execute_query("SELECT seq FROM sqlite_sequence WHERE name=?", (name,))
        except StoreError as e:
            # sqlite_sequence only exists once an AUTOINCREMENT table has been created
            raise StoreError(f"sequence {name!r} does not exist: {e}") from e
        if not rows or rows[0][0] is None:
            raise StoreError(f"sequence {name!r} does not exist or has no value yet")
        return int(rows[0][0])

    @contextmanager
    def transaction(self) -> Iterator["StoreClient"]:
        """
        Group several statements into one atomic unit.
        Nested blocks join the outermost one; only the outermost commits or rolls back.
        """
        conn = self._connection()
        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield self
            finally:
                self._tx_depth -= 1
            return
        try:
            conn.execute("BEGIN IMMEDIATE")
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e
        self._tx_depth = 1
        try:
            yield self
        except BaseException:
            self._tx_depth = 0
            try:
                conn.execute("ROLLBACK")
            except sqlite3.Error:
                pass  # re-raise the original error below
            raise
        self._tx_depth = 0
        try:
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            # a failed COMMIT leaves the transaction open
            if conn.in_transaction:
                try:
                    conn.execute("ROLLBACK")
                except sqlite3.Error:
                    pass  # re-raise the COMMIT error below
            raise StoreError(str(e)) from e

    @property
    def in_transaction(self) -> bool:
        return self._tx_depth > 0

    # ---- bootstrap ----
    def apply_schema(self, schema_path: str | None = None) -> None:
        """Apply schema.sql (CREATE ... IF NOT EXISTS only)."""
        path = schema_path or SCHEMA_PATH
        with open(path, "r", encoding="utf-8") as f:
            script = f.read()
        try:
            self._connection().executescript(script)
        except sqlite3.Error as e:
            raise StoreError(str(e)) from e


@contextmanager
def get_store(db_path: str | None = None, create: bool = False) -> Iterator[StoreClient]:
    """
    Open a StoreClient for the duration of the block. Prefer the explicit
    db_path, otherwise get_db_path().
    """
    store = StoreClient(db_path, create=create).open()
    try:
        yield store
    finally:
        store.close()
