from app.core.models.document_sequence import DocumentSequence
from app.core.models.client import Client
from app.core.models.invoice import Invoice, InvoiceItem
from app.core.models.credit_note import CreditNote, CreditNoteItem
from app.core.models.recurring_invoice import RecurringInvoice
from app.core.models.student import Student
from app.core.models.subject import Subject
from app.core.models.comment_library import CommentLibraryEntry
from app.core.models.assessment import Assessment
from app.core.models.report_card import ReportCard, ReportCardSubject

__all__ = [
    "DocumentSequence",
    "Client",
    "Invoice",
    "InvoiceItem",
    "CreditNote",
    "CreditNoteItem",
    "RecurringInvoice",
    "Student",
    "Subject",
    "CommentLibraryEntry",
    "Assessment",
    "ReportCard",
    "ReportCardSubject",
]
