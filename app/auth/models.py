import uuid

from sqlalchemy import Column, DateTime, String, Text, Uuid

from app.db.session import Base, utcnow


class User(Base):
    """Owner account. Every client, document, student and report card is scoped to one user."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True)
    password_hash = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="ACTIVE")
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
