import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid

from app.db.session import Base, utcnow


class CommentLibraryEntry(Base):
    """Pre-written teacher comment, picked by subject, language and performance level."""

    __tablename__ = "comments_library"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    category = Column(String(30), nullable=False)  # positive, constructive, general, subject_specific
    language = Column(String(20), nullable=False)
    comment_text = Column(Text, nullable=False)
    subject_id = Column(Uuid, ForeignKey("subjects.id", ondelete="CASCADE"), nullable=True)
    performance_level = Column(String(30), nullable=True)  # excellent, good, average, needs_improvement
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
