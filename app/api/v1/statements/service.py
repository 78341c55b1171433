"""Client statements: ledger over the client's invoices and payments in a date range."""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.clients.service import get_owned_client
from app.core.config import BillingProfile
from app.core.exceptions import ValidationFailed
from app.core.ledger import ledger_from_invoices
from app.core.models import Invoice

from .schemas import ClientStatementResponse, StatementEntryResponse, StatementSummaryResponse


async def get_client_statement(
    db: AsyncSession,
    owner_id: UUID,
    client_id: UUID,
    start: date,
    end: date,
    profile: BillingProfile,
) -> ClientStatementResponse:
    if end < start:
        raise ValidationFailed("End date cannot be before start date")
    client = await get_owned_client(db, owner_id, client_id)

    # Everything up to end_date: earlier rows make up the opening balance
    result = await db.execute(
        select(Invoice)
        .where(
            Invoice.owner_id == owner_id,
            Invoice.client_id == client_id,
            Invoice.date <= end,
        )
        .order_by(Invoice.date, Invoice.number)
    )
    ledger = ledger_from_invoices(result.scalars().all(), start, end)

    return ClientStatementResponse(
        client_id=client.id,
        client_name=client.name,
        currency_code=client.currency_code or profile.currency_code,
        start_date=start,
        end_date=end,
        entries=[
            StatementEntryResponse(
                date=e.date,
                type=e.type,
                reference=e.reference,
                description=e.description,
                debit=e.debit,
                credit=e.credit,
                balance=e.running_balance,
            )
            for e in ledger.entries
        ],
        summary=StatementSummaryResponse(
            total_invoices=ledger.summary.total_invoices,
            total_paid=ledger.summary.total_paid,
            total_outstanding=ledger.summary.total_outstanding,
            first_invoice_date=ledger.summary.first_invoice_date,
            last_invoice_date=ledger.summary.last_invoice_date,
        ),
        opening_balance=ledger.opening_balance,
        closing_balance=ledger.closing_balance,
    )
