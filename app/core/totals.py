"""
Line-item aggregation for invoices and credit notes.

subtotal = sum(quantity * rate), tax_amount = round(subtotal * tax_rate / 100, 2),
total = subtotal + tax_amount. Decimal arithmetic throughout; totals are always
derived here and never accepted from callers.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple, Union

CENT = Decimal("0.01")
HUNDRED = Decimal("100")

Number = Union[Decimal, int, str]


def _to_decimal(val: Number) -> Decimal:
    return val if isinstance(val, Decimal) else Decimal(str(val))


def quantize_money(val: Decimal) -> Decimal:
    return val.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def line_amount(quantity: Number, rate: Number) -> Decimal:
    """quantity * rate, rounded to cents. Negative inputs are rejected, not clamped."""
    q = _to_decimal(quantity)
    r = _to_decimal(rate)
    if q < 0:
        raise ValueError("Quantity cannot be negative")
    if r < 0:
        raise ValueError("Rate cannot be negative")
    return quantize_money(q * r)


def compute_totals(items: Iterable[Tuple[Number, Number]], tax_rate: Number) -> DocumentTotals:
    """
    Aggregate (quantity, rate) pairs into document totals.

    Examples:
        [(2, "50.00"), (1, "25.50")] at 15%  -> 125.50 / 18.83 / 144.33
        []                                   -> 0.00 / 0.00 / 0.00
    """
    rate = _to_decimal(tax_rate)
    if rate < 0:
        raise ValueError("Tax rate cannot be negative")
    subtotal = sum((line_amount(q, r) for q, r in items), Decimal("0"))
    subtotal = quantize_money(subtotal)
    tax_amount = quantize_money(subtotal * rate / HUNDRED)
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=subtotal + tax_amount)


def apply_totals(document, tax_rate: Number = None) -> DocumentTotals:
    """
    Recompute item amounts and document totals on an ORM document (Invoice or
    CreditNote) whose `items` collection is loaded. Call inside the transaction
    that mutated the items so totals are persisted with them.
    """
    for item in document.items:
        item.amount = line_amount(item.quantity, item.rate)
    totals = compute_totals(
        ((item.quantity, item.rate) for item in document.items),
        document.tax_rate if tax_rate is None else tax_rate,
    )
    document.subtotal = totals.subtotal
    document.tax_amount = totals.tax_amount
    document.total = totals.total
    return totals
