from datetime import date
from decimal import Decimal
from types import SimpleNamespace

from app.core.ledger import LedgerEntry, build_ledger, ledger_from_invoices


def _invoice(number, inv_date, total, status="sent", paid_on=None):
    return SimpleNamespace(number=number, date=inv_date, total=Decimal(total), status=status, paid_on=paid_on)


def test_same_day_invoice_comes_before_payment() -> None:
    entries = [
        LedgerEntry(date=date(2024, 1, 5), type="payment", reference="INV-2024-001", description="p", credit=Decimal("100")),
        LedgerEntry(date=date(2024, 1, 5), type="invoice", reference="INV-2024-001", description="i", debit=Decimal("100")),
    ]
    ordered = build_ledger(entries)
    assert [e.type for e in ordered] == ["invoice", "payment"]
    assert [e.running_balance for e in ordered] == [Decimal("100"), Decimal("0")]


def test_running_balance_is_cumulative() -> None:
    invoices = [
        _invoice("INV-2024-001", date(2024, 1, 1), "100.00", status="paid", paid_on=date(2024, 1, 10)),
        _invoice("INV-2024-002", date(2024, 1, 5), "50.00"),
        _invoice("INV-2024-003", date(2024, 1, 20), "25.00", status="overdue"),
    ]
    ledger = ledger_from_invoices(invoices, date(2024, 1, 1), date(2024, 1, 31))

    assert [(e.date, e.type) for e in ledger.entries] == [
        (date(2024, 1, 1), "invoice"),
        (date(2024, 1, 5), "invoice"),
        (date(2024, 1, 10), "payment"),
        (date(2024, 1, 20), "invoice"),
    ]
    assert [e.running_balance for e in ledger.entries] == [
        Decimal("100.00"),
        Decimal("150.00"),
        Decimal("50.00"),
        Decimal("75.00"),
    ]
    assert ledger.closing_balance == Decimal("75.00")


def test_summary_agrees_with_entries() -> None:
    invoices = [
        _invoice("INV-2024-001", date(2024, 1, 1), "100.00", status="paid", paid_on=date(2024, 1, 10)),
        _invoice("INV-2024-002", date(2024, 1, 5), "50.00"),
        _invoice("INV-2024-003", date(2024, 1, 20), "25.00", status="overdue"),
        _invoice("INV-2024-004", date(2024, 1, 21), "10.00", status="draft"),
    ]
    ledger = ledger_from_invoices(invoices, date(2024, 1, 1), date(2024, 1, 31))
    s = ledger.summary
    assert s.total_invoices == 4
    assert s.total_paid == Decimal("100.00")
    assert s.total_outstanding == Decimal("75.00")
    assert s.first_invoice_date == date(2024, 1, 1)
    assert s.last_invoice_date == date(2024, 1, 21)
    assert s.total_paid == sum(e.credit for e in ledger.entries)


def test_range_excludes_outside_entries() -> None:
    invoices = [
        # issued before the range, paid inside it
        _invoice("INV-2023-010", date(2023, 12, 20), "80.00", status="paid", paid_on=date(2024, 1, 3)),
        _invoice("INV-2024-005", date(2024, 2, 1), "40.00"),
    ]
    ledger = ledger_from_invoices(invoices, date(2024, 1, 1), date(2024, 1, 31))
    assert [(e.type, e.credit) for e in ledger.entries] == [("payment", Decimal("80.00"))]
    assert ledger.summary.total_invoices == 0
    assert ledger.opening_balance == Decimal("80.00")
    assert ledger.entries[0].running_balance == Decimal("0.00")
    assert ledger.closing_balance == Decimal("0.00")


def test_empty_range() -> None:
    ledger = ledger_from_invoices([], date(2024, 1, 1), date(2024, 1, 31))
    assert ledger.entries == []
    assert ledger.closing_balance == Decimal("0")
    assert ledger.summary.first_invoice_date is None


def test_opening_balance_carries_earlier_activity() -> None:
    invoices = [
        _invoice("INV-2023-001", date(2023, 11, 1), "60.00", status="paid", paid_on=date(2023, 11, 20)),
        _invoice("INV-2023-002", date(2023, 12, 1), "30.00"),
        _invoice("INV-2024-001", date(2024, 1, 15), "10.00"),
    ]
    ledger = ledger_from_invoices(invoices, date(2024, 1, 1), date(2024, 1, 31))
    assert ledger.opening_balance == Decimal("30.00")
    assert [e.running_balance for e in ledger.entries] == [Decimal("40.00")]
    assert ledger.closing_balance == Decimal("40.00")


def test_no_activity_in_range_closes_at_opening_balance() -> None:
    invoices = [_invoice("INV-2023-002", date(2023, 12, 1), "30.00")]
    ledger = ledger_from_invoices(invoices, date(2024, 1, 1), date(2024, 1, 31))
    assert ledger.entries == []
    assert ledger.closing_balance == Decimal("30.00")


def test_zero_amounts_are_in_cents() -> None:
    entry = LedgerEntry(date=date(2024, 1, 1), type="invoice", reference="INV-2024-001", description="i")
    assert str(entry.debit) == "0.00"
    assert str(entry.credit) == "0.00"
