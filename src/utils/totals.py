"""Money arithmetic shared by quotations, orders, invoices and returns."""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable
from fastapi import HTTPException, status

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price) -> Decimal:
    return to_money(Decimal(str(quantity)) * to_money(unit_price))


@dataclass
class DocumentTotals:
    sub_total: Decimal
    total_amount: Decimal
    balance_amount: Decimal


def compute_totals(line_totals: Iterable[Decimal], discount=0, tax=0, settled=0) -> DocumentTotals:
    """Compute document totals.

    total_amount = sub_total - discount + tax
    balance_amount = total_amount - settled

    ``settled`` is the advance on an order or the amount paid on an invoice.

    Raises:
        HTTPException: 400 when the discount pushes the total below zero or
            more than the total has been settled.
    """
    sub_total = to_money(sum(line_totals, Decimal("0")))
    total_amount = sub_total - to_money(discount) + to_money(tax)

    if total_amount < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Discount cannot exceed the document value"
        )

    settled_amount = to_money(settled)
    if settled_amount > total_amount:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Settled amount cannot exceed the total amount"
        )

    return DocumentTotals(
        sub_total=sub_total,
        total_amount=total_amount,
        balance_amount=total_amount - settled_amount,
    )
