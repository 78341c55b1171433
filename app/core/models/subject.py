"""Global subject catalogue (shared by all owners, read-only through the API)."""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Uuid

from app.db.session import Base, utcnow


class Subject(Base):
    __tablename__ = "subjects"
    __table_args__ = (
        CheckConstraint("grade BETWEEN 1 AND 12", name="chk_subject_grade"),
        CheckConstraint("category IN ('core','elective','additional')", name="chk_subject_category"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    code = Column(String(20), nullable=False, unique=True)  # e.g. MATH07, ACC10
    name_en = Column(String(255), nullable=False)
    name_af = Column(String(255), nullable=False)
    grade = Column(Integer, nullable=False)
    category = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
