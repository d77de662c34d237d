from decimal import Decimal

import pytest
from fastapi import HTTPException

from src.utils.numbering import increment_document_number
from src.utils.pagination import SortEnum
from src.utils.sorting import toggle_sort
from src.utils.totals import compute_totals, line_total, to_money


@pytest.mark.parametrize("last_number, expected", [
    (None, "DC-001"),
    ("DC-001", "DC-002"),
    ("DC-099", "DC-100"),
    ("DC-999", "DC-1000"),
    ("DC-LEGACY", "DC-001"),
])
def test_increment_document_number(last_number, expected):
    assert increment_document_number(last_number, "DC") == expected


@pytest.mark.parametrize("clicked, expected", [
    (None, ("sales", SortEnum.DESCENDING)),
    ("sales", ("sales", SortEnum.ASCENDING)),
    ("margin", ("margin", SortEnum.DESCENDING)),
])
def test_toggle_sort(clicked, expected):
    assert toggle_sort("sales", SortEnum.DESCENDING, clicked) == expected


def test_toggle_sort_flips_ascending_back():
    assert toggle_sort("name", SortEnum.ASCENDING, "name") == ("name", SortEnum.DESCENDING)


def test_money_rounding():
    assert to_money("10.005") == Decimal("10.01")
    assert to_money(None) == Decimal("0.00")
    assert line_total(3, "33.333") == Decimal("99.99")


def test_compute_totals():
    totals = compute_totals([Decimal("25000"), Decimal("25000")], discount="5000", tax="4500", settled="20000")

    assert totals.sub_total == Decimal("50000.00")
    assert totals.total_amount == Decimal("49500.00")
    assert totals.balance_amount == Decimal("29500.00")


@pytest.mark.parametrize("discount, settled", [("1001", "0"), ("0", "1000.01")])
def test_compute_totals_rejects_overflow(discount, settled):
    with pytest.raises(HTTPException) as exc:
        compute_totals([Decimal("1000")], discount=discount, settled=settled)

    assert exc.value.status_code == 400
