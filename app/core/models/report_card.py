"""Report card per (student, term, year) with per-subject marks."""

import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
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

from app.core.enums import ReportCardStatus
from app.db.session import Base, utcnow


class ReportCard(Base):
    __tablename__ = "report_cards"
    __table_args__ = (
        # One report card per student per term; a second create must fail, never overwrite
        UniqueConstraint("student_id", "term", "year", name="uq_report_card_student_term_year"),
        CheckConstraint("term BETWEEN 1 AND 4", name="chk_report_card_term"),
        CheckConstraint("status IN ('draft','published','archived')", name="chk_report_card_status"),
        CheckConstraint("attendance_days >= 0 AND absent_days >= 0", name="chk_report_card_attendance"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Uuid, ForeignKey("students.id", ondelete="CASCADE"), nullable=False)
    term = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default=ReportCardStatus.draft.value)
    teacher_comment = Column(Text, nullable=True)
    principal_comment = Column(Text, nullable=True)
    attendance_days = Column(Integer, nullable=False, default=0)
    absent_days = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    student = relationship("Student", lazy="selectin")
    subjects = relationship(
        "ReportCardSubject",
        back_populates="report_card",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class ReportCardSubject(Base):
    __tablename__ = "report_card_subjects"
    __table_args__ = (
        CheckConstraint("term_mark BETWEEN 0 AND 100", name="chk_report_card_subject_term_mark"),
        CheckConstraint("year_to_date BETWEEN 0 AND 100", name="chk_report_card_subject_ytd"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    report_card_id = Column(Uuid, ForeignKey("report_cards.id", ondelete="CASCADE"), nullable=False, index=True)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="RESTRICT"), nullable=False)
    term_mark = Column(Numeric(5, 2), nullable=False)
    year_to_date = Column(Numeric(5, 2), nullable=False)
    subject_comment = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    report_card = relationship("ReportCard", back_populates="subjects")
    subject = relationship("Subject", lazy="selectin")
