import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text, Uuid

from app.db.session import Base, utcnow


class Client(Base):
    """Billing counterparty, owner-scoped."""

    __tablename__ = "clients"
    __table_args__ = (
        CheckConstraint("payment_terms IS NULL OR payment_terms >= 0", name="chk_client_payment_terms"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    currency_code = Column(String(3), nullable=True)
    payment_terms = Column(Integer, nullable=True)  # days
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
