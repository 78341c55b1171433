"""Per-owner, per-year counters behind invoice, credit note and student numbers."""

import uuid

from sqlalchemy import Column, ForeignKey, Integer, String, UniqueConstraint, Uuid

from app.db.session import Base


class DocumentSequence(Base):
    """
    Last value issued for (owner, kind, year). Advanced only by an atomic
    UPDATE ... RETURNING inside the transaction that inserts the document.
    """

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("owner_id", "kind", "year", name="uq_document_sequence_owner_kind_year"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    kind = Column(String(20), nullable=False)  # invoice, credit_note, student
    year = Column(Integer, nullable=False)
    last_value = Column(Integer, nullable=False, default=0)
