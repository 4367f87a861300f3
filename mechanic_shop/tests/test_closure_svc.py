from __future__ import annotations

import datetime as dt

import pytest

from mechanic_shop.errors import ValidationError
from mechanic_shop.services.closure_svc import (
    ClosureDetails,
    ClosurePrompts,
    close_request,
    run_close_request,
    run_closure,
)


@pytest.fixture()
def open_request(seed):
    seed.customer(0)
    seed.car("VIN1")
    seed.mechanic(0)
    seed.request(7, 0, "VIN1", date="2024-12-30")
    return 7


def test_close_request_writes_row_with_rid_as_id(store, open_request):
    rows = close_request(store, open_request, 0, "01/02/2025", "replaced pads", "149.999")
    assert rows == [("7", "7", "0", "2025-01-02", "replaced pads", "150.0")]


def test_closing_across_year_boundary_uses_calendar_order(store, open_request):
    # "01/02/2025" < "12/30/2024" as text, but it is the later day
    close_request(store, open_request, 0, dt.date(2025, 1, 2), "", 10)


def test_closing_on_opening_day_is_rejected(store, seed, open_request):
    with pytest.raises(ValidationError, match="closing date not after open date"):
        close_request(store, open_request, 0, "12/30/2024", "same day", 50)
    assert seed.count("closed_request") == 0


def test_closing_before_opening_is_rejected(store, seed, open_request):
    with pytest.raises(ValidationError, match="closing date not after open date"):
        close_request(store, open_request, 0, "2024-12-01", "", 50)
    assert seed.count("closed_request") == 0


def test_unknown_request(store, open_request):
    with pytest.raises(ValidationError, match="no such service request"):
        close_request(store, 99, 0, "2025-01-02", "", 1)
    with pytest.raises(ValidationError, match="no such service request"):
        close_request(store, "seven", 0, "2025-01-02", "", 1)


def test_second_closure_is_rejected(store, seed, open_request):
    close_request(store, open_request, 0, "2025-01-02", "", 1)
    with pytest.raises(ValidationError, match="already closed"):
        close_request(store, open_request, 0, "2025-01-03", "", 1)
    assert seed.count("closed_request") == 1


def test_unknown_mechanic(store, seed, open_request):
    with pytest.raises(ValidationError, match="no such mechanic"):
        close_request(store, open_request, 5, "2025-01-02", "", 1)
    assert seed.count("closed_request") == 0


def test_negative_bill_is_rejected(store, seed, open_request):
    with pytest.raises(ValidationError, match="bill"):
        close_request(store, open_request, 0, "2025-01-02", "", -3)
    assert seed.count("closed_request") == 0


class ScriptedClosure(ClosurePrompts):
    def __init__(self, mechanic=0, date="2025-01-02", details=ClosureDetails("ok", 20)):
        self._mechanic = mechanic
        self._date = date
        self._details = details
        self.asked = []

    def mechanic_id(self):
        self.asked.append("mechanic")
        return self._mechanic

    def closing_date(self):
        self.asked.append("date")
        return self._date

    def details(self):
        self.asked.append("details")
        return self._details


def test_gates_run_before_later_prompts(store, open_request):
    prompts = ScriptedClosure()
    res = run_closure(store, 99, prompts)
    assert res.reason == "no such service request"
    assert prompts.asked == []

    prompts = ScriptedClosure(mechanic=4)
    res = run_closure(store, open_request, prompts)
    assert res.reason == "no such mechanic"
    assert prompts.asked == ["mechanic"]

    prompts = ScriptedClosure(date="2024-12-30")
    res = run_closure(store, open_request, prompts)
    assert res.reason == "closing date not after open date"
    assert prompts.asked == ["mechanic", "date"]


def test_run_closure_success(store, open_request):
    prompts = ScriptedClosure()
    res = run_closure(store, open_request, prompts)
    assert res.ok
    assert res.columns == ("wid", "rid", "mid", "date", "comment", "bill")
    assert res.rows == [("7", "7", "0", "2025-01-02", "ok", "20.0")]
    assert prompts.asked == ["mechanic", "date", "details"]


def test_run_close_request_tags_validation(store, open_request):
    res = run_close_request(store, open_request, 0, "2024-12-30", "", 1)
    assert not res.ok
    assert res.kind == "validation"
    assert res.rows == []


def test_oversized_ids_fail_their_own_gates(store, seed, open_request):
    res = run_close_request(store, 10 ** 20, 0, "2025-01-02", "", 1)
    assert (res.kind, res.reason) == ("validation", "no such service request")
    res = run_close_request(store, open_request, 10 ** 20, "2025-01-02", "", 1)
    assert (res.kind, res.reason) == ("validation", "no such mechanic")
    assert seed.count("closed_request") == 0


@pytest.mark.parametrize("bill", ["1e30", "1e400", "1e13"])
def test_huge_bill_is_rejected(store, seed, open_request, bill):
    res = run_close_request(store, open_request, 0, "2025-01-02", "", bill)
    assert (res.kind, res.reason) == ("validation", "bill must be a number")
    assert seed.count("closed_request") == 0
