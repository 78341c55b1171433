import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)

from app.db.session import Base, utcnow


class Student(Base):
    """Learner record, owner-scoped. student_number (YYYY-NNNN) is allocated on insert."""

    __tablename__ = "students"
    __table_args__ = (
        UniqueConstraint("owner_id", "student_number", name="uq_student_owner_number"),
        CheckConstraint("grade BETWEEN 1 AND 12", name="chk_student_grade"),
        CheckConstraint("language IN ('english','afrikaans')", name="chk_student_language"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_number = Column(String(20), nullable=False)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    date_of_birth = Column(Date, nullable=False)
    grade = Column(Integer, nullable=False)
    language = Column(String(20), nullable=False)
    parent_name = Column(String(255), nullable=False)
    parent_email = Column(String(255), nullable=False)
    parent_phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
