"""Recurring invoice template: spawns one draft invoice per period while active."""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)

from app.core.enums import RecurringStatus
from app.db.session import Base, utcnow


class RecurringInvoice(Base):
    """
    Schedule is anchored on instance dates: the n-th invoice is dated
    start_date + n periods. last_generated records when the job last ran for
    this template and never drives the schedule.
    """

    __tablename__ = "recurring_invoices"
    __table_args__ = (
        CheckConstraint(
            "frequency IN ('weekly','monthly','quarterly','yearly')",
            name="chk_recurring_invoice_frequency",
        ),
        CheckConstraint("status IN ('active','paused','completed')", name="chk_recurring_invoice_status"),
        CheckConstraint("amount > 0", name="chk_recurring_invoice_amount"),
        CheckConstraint("tax_rate >= 0", name="chk_recurring_invoice_tax_rate"),
        CheckConstraint("end_date IS NULL OR end_date > start_date", name="chk_recurring_invoice_end_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    frequency = Column(String(20), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    currency_code = Column(String(3), nullable=False)
    status = Column(String(20), nullable=False, default=RecurringStatus.active.value)
    last_generated = Column(DateTime(timezone=True), nullable=True)
    last_invoice_date = Column(Date, nullable=True)
    occurrences_generated = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
