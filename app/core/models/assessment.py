import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.db.session import Base, utcnow


class Assessment(Base):
    """Weighted assessment result. Owned through its student."""

    __tablename__ = "assessments"
    __table_args__ = (
        CheckConstraint("term BETWEEN 1 AND 4", name="chk_assessment_term"),
        CheckConstraint(
            "assessment_type IN ('exam','assignment','practical','project','test')",
            name="chk_assessment_type",
        ),
        CheckConstraint("weight BETWEEN 0 AND 100", name="chk_assessment_weight"),
        CheckConstraint("score BETWEEN 0 AND 100", name="chk_assessment_score"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    term = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    assessment_type = Column(String(20), nullable=False)
    weight = Column(Numeric(5, 2), nullable=False)
    score = Column(Numeric(5, 2), nullable=False)
    comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    student = relationship("Student")
    subject = relationship("Subject", lazy="selectin")
