"""Credit notes and their line items. Totals follow the same derivation rules as invoices."""

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
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import relationship

from app.core.enums import CreditNoteStatus
from app.db.session import Base, utcnow


class CreditNote(Base):
    __tablename__ = "credit_notes"
    __table_args__ = (
        UniqueConstraint("owner_id", "number", name="uq_credit_note_owner_number"),
        CheckConstraint("status IN ('draft','issued')", name="chk_credit_note_status"),
        CheckConstraint("tax_rate >= 0", name="chk_credit_note_tax_rate"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    client_id = Column(Uuid, ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False, index=True)
    invoice_id = Column(Uuid, ForeignKey("invoices.id", ondelete="SET NULL"), nullable=True)
    number = Column(String(30), nullable=False)  # CN-YYYY-NNN
    date = Column(Date, nullable=False)
    reason = Column(Text, nullable=False)
    currency_code = Column(String(3), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False, default=0)
    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(12, 2), nullable=False, default=0)
    total = Column(Numeric(12, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default=CreditNoteStatus.draft.value)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    items = relationship(
        "CreditNoteItem",
        back_populates="credit_note",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="CreditNoteItem.position",
    )


class CreditNoteItem(Base):
    __tablename__ = "credit_note_items"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_credit_note_item_quantity"),
        CheckConstraint("rate >= 0", name="chk_credit_note_item_rate"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    credit_note_id = Column(Uuid, ForeignKey("credit_notes.id", ondelete="CASCADE"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(12, 2), nullable=False)
    rate = Column(Numeric(12, 2), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    credit_note = relationship("CreditNote", back_populates="items")
