from enum import Enum


class InvoiceStatus(str, Enum):
    draft = "draft"
    sent = "sent"
    paid = "paid"
    overdue = "overdue"


class CreditNoteStatus(str, Enum):
    draft = "draft"
    issued = "issued"


class RecurringFrequency(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    quarterly = "quarterly"
    yearly = "yearly"


class RecurringStatus(str, Enum):
    active = "active"
    paused = "paused"
    completed = "completed"


class SequenceKind(str, Enum):
    invoice = "invoice"
    credit_note = "credit_note"
    student = "student"


class StatementEntryType(str, Enum):
    invoice = "invoice"
    payment = "payment"


class Language(str, Enum):
    english = "english"
    afrikaans = "afrikaans"


class SubjectCategory(str, Enum):
    core = "core"
    elective = "elective"
    additional = "additional"


class AssessmentType(str, Enum):
    exam = "exam"
    assignment = "assignment"
    practical = "practical"
    project = "project"
    test = "test"


class ReportCardStatus(str, Enum):
    draft = "draft"
    published = "published"
    archived = "archived"


class CommentCategory(str, Enum):
    positive = "positive"
    constructive = "constructive"
    general = "general"
    subject_specific = "subject_specific"


class PerformanceLevel(str, Enum):
    excellent = "excellent"
    good = "good"
    average = "average"
    needs_improvement = "needs_improvement"
