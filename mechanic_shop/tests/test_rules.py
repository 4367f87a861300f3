import datetime as dt

import pytest

from mechanic_shop.domain.rules import (
    closes_after,
    parse_bill,
    parse_service_date,
    require_int,
    require_non_negative_int,
    to_iso,
)
from mechanic_shop.errors import ValidationError


def test_parse_both_date_formats():
    assert parse_service_date("03/05/2024") == dt.date(2024, 3, 5)
    assert parse_service_date("2024-03-05") == dt.date(2024, 3, 5)
    assert to_iso(dt.datetime(2024, 3, 5, 10, 30)) == "2024-03-05"


def test_closes_after_is_chronological():
    assert closes_after("12/30/2024", "01/02/2025")
    assert not closes_after("2024-12-30", "12/30/2024")
    assert not closes_after("2025-01-02", "2024-12-30")


@pytest.mark.parametrize("bad", ["", "2024-02-30", "yesterday", None])
def test_invalid_dates(bad):
    with pytest.raises(ValidationError):
        parse_service_date(bad)


def test_bill_rounding_and_validation():
    assert parse_bill("10.005") == 10.01
    assert parse_bill(0) == 0.0
    assert parse_bill("1e12") == 1e12
    for bad in ("-1", "abc", "nan", "1e30", "1e400", "1000000000000.01"):
        with pytest.raises(ValidationError):
            parse_bill(bad)


def test_non_negative_int():
    assert require_non_negative_int("42", "odometer") == 42
    for bad in ("-1", "4.5", True):
        with pytest.raises(ValidationError):
            require_non_negative_int(bad, "odometer")


def test_int_must_fit_a_store_integer():
    assert require_int(str(2 ** 63 - 1), "id") == 2 ** 63 - 1
    assert require_int(-(2 ** 63), "id") == -(2 ** 63)
    for bad in (2 ** 63, "99999999999999999999", -(2 ** 63) - 1):
        with pytest.raises(ValidationError, match="out of range"):
            require_int(bad, "id")
