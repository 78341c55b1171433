"""Client statement ledger: chronological debit/credit entries with running balance."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from app.core.enums import InvoiceStatus, StatementEntryType

ZERO = Decimal("0.00")

# Same-day ordering: the invoice is shown before its payment so the balance rises before it falls
_TYPE_ORDER = {StatementEntryType.invoice.value: 0, StatementEntryType.payment.value: 1}


@dataclass
class LedgerEntry:
    date: date
    type: str
    reference: str
    description: str
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    running_balance: Decimal = ZERO


@dataclass
class LedgerSummary:
    total_invoices: int = 0
    total_paid: Decimal = ZERO
    total_outstanding: Decimal = ZERO
    first_invoice_date: Optional[date] = None
    last_invoice_date: Optional[date] = None


@dataclass
class Ledger:
    entries: List[LedgerEntry] = field(default_factory=list)
    summary: LedgerSummary = field(default_factory=LedgerSummary)
    opening_balance: Decimal = ZERO

    @property
    def closing_balance(self) -> Decimal:
        return self.entries[-1].running_balance if self.entries else self.opening_balance


def build_ledger(entries: Iterable[LedgerEntry], opening_balance: Decimal = ZERO) -> List[LedgerEntry]:
    """Sort by (date, invoice-before-payment, reference) and fill running_balance from opening_balance."""
    ordered = sorted(entries, key=lambda e: (e.date, _TYPE_ORDER[e.type], e.reference))
    balance = opening_balance
    for entry in ordered:
        balance += entry.debit - entry.credit
        entry.running_balance = balance
    return ordered


def ledger_from_invoices(invoices, start: date, end: date) -> Ledger:
    """
    Build entries and summary in a single pass over the same invoice rows.

    Invoices dated inside [start, end] produce a debit; paid invoices produce a
    credit dated paid_on (or the invoice date when unknown) if that date falls
    inside the range. Debits and credits dated before start are folded into
    the opening balance, so a payment in range for an earlier invoice nets
    against it instead of going negative.
    """
    entries: List[LedgerEntry] = []
    summary = LedgerSummary()
    opening = ZERO
    for inv in invoices:
        total = inv.total if inv.total is not None else ZERO
        if inv.date < start:
            opening += total
        elif inv.date <= end:
            entries.append(
                LedgerEntry(
                    date=inv.date,
                    type=StatementEntryType.invoice.value,
                    reference=inv.number,
                    description=f"Invoice #{inv.number}",
                    debit=total,
                )
            )
            summary.total_invoices += 1
            if summary.first_invoice_date is None or inv.date < summary.first_invoice_date:
                summary.first_invoice_date = inv.date
            if summary.last_invoice_date is None or inv.date > summary.last_invoice_date:
                summary.last_invoice_date = inv.date
            if inv.status in (InvoiceStatus.sent.value, InvoiceStatus.overdue.value):
                summary.total_outstanding += total
        if inv.status == InvoiceStatus.paid.value:
            paid_on = inv.paid_on or inv.date
            if paid_on < start:
                opening -= total
            elif paid_on <= end:
                entries.append(
                    LedgerEntry(
                        date=paid_on,
                        type=StatementEntryType.payment.value,
                        reference=inv.number,
                        description=f"Payment for Invoice #{inv.number}",
                        credit=total,
                    )
                )
                summary.total_paid += total
    return Ledger(entries=build_ledger(entries, opening), summary=summary, opening_balance=opening)
