from __future__ import annotations

import pytest

from mechanic_shop import cli
from mechanic_shop.db import get_store


@pytest.fixture()
def feed(monkeypatch):
    """Replace input() with a scripted sequence of answers."""
    def _feed(*answers):
        it = iter(answers)
        monkeypatch.setattr("builtins.input", lambda prompt="": next(it))
    return _feed


def test_read_int_reasks_on_malformed_input(feed, capsys):
    feed("abc", "", "12")
    assert cli.read_int("Enter year") == 12
    assert capsys.readouterr().out.count("Your input is invalid!") == 2


def test_read_yes_no_accepts_menu_convention(feed):
    feed("maybe", "0")
    assert cli.read_yes_no("Continue?") is True
    feed("no")
    assert cli.read_yes_no("Continue?") is False


def test_read_date_reasks(feed):
    feed("31/31/2024", "01/02/2025")
    assert cli.read_date("Enter Date").isoformat() == "2025-01-02"


def test_menu_add_customer_then_exit(store, feed, capsys):
    feed("1", "Jane", "Doe", "1 Elm St", "555-1212", "11")
    cli.menu_loop(store)
    out = capsys.readouterr().out
    assert "Jane" in out
    assert "total row(s): 1" in out


def test_menu_intake_happy_path(store, seed, feed, capsys):
    seed.customer(0)
    seed.car("VIN1")
    seed.owns(0, 0, "VIN1")
    feed("4", "Doe", "0", "0", "VIN1", "x/y/z", "03/15/2024", "-4", "61000", "brakes", "11")
    cli.menu_loop(store)
    assert seed.count("service_request") == 1


def test_report_command_rejects_bad_k(store, seed, capsys):
    assert cli.run_report(store, "most-services", 3) == 1
    assert "k must not exceed 0" in capsys.readouterr().err


def test_main_with_missing_store_is_fatal(tmp_path, capsys):
    assert cli.main(["--db", str(tmp_path / "missing.db"), "report", "total-bill"]) == 1
    assert "Unable to Connect" in capsys.readouterr().err


def test_main_init_then_report(tmp_path, capsys):
    path = str(tmp_path / "shop.db")
    assert cli.main(["--db", path, "init"]) == 0
    assert cli.main(["--db", path, "report", "total-bill"]) == 0
    assert "(empty)" in capsys.readouterr().out


def test_read_bill_reasks_on_huge_amount(feed, capsys):
    feed("1e400", "abc", "10")
    assert cli.read_bill("Enter bill amount") == 10.0
    assert capsys.readouterr().out.count("bill must be a number") == 2


def test_menu_survives_oversized_request_number(store, feed, capsys):
    feed("5", "99999999999999999999", "11")
    cli.menu_loop(store)
    assert "no such service request" in capsys.readouterr().err


def test_menu_restores_missing_log_table(tmp_path, feed):
    path = str(tmp_path / "shop.db")
    assert cli.main(["--db", path, "init"]) == 0
    with get_store(path) as s:
        s.execute_mutation("DROP TABLE operation_log")
    feed("2", "Bob", "Wrench", "4", "11")
    assert cli.main(["--db", path, "menu"]) == 0
    with get_store(path) as s:
        assert s.execute_query("SELECT action, result FROM operation_log") == [("ADD_MECHANIC", "OK")]


def test_config_command_shows_and_updates_thresholds(tmp_path, capsys):
    path = str(tmp_path / "shop.db")
    assert cli.main(["--db", path, "init"]) == 0
    assert cli.main(["--db", path, "config", "--set", "min_car_count=3", "--set", "bill_threshold=250"]) == 0
    capsys.readouterr()
    assert cli.main(["--db", path, "config"]) == 0
    out = capsys.readouterr().out
    assert "min_car_count" in out and "250.0" in out
    with get_store(path) as s:
        assert s.execute_query("SELECT value FROM config WHERE key = 'min_car_count'") == [("3",)]
        assert s.execute_query("SELECT action, result FROM operation_log") == [("UPDATE_CONFIG", "OK")]


@pytest.mark.parametrize("arg", ["nope=1", "min_car_count", "odometer_below=-1"])
def test_config_command_rejects_bad_assignments(tmp_path, capsys, arg):
    path = str(tmp_path / "shop.db")
    assert cli.main(["--db", path, "init"]) == 0
    assert cli.main(["--db", path, "config", "--set", arg]) == 1
    with get_store(path) as s:
        assert s.execute_query("SELECT value FROM config WHERE key = 'odometer_below'") == [("50000",)]
