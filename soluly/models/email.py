"""Email inbox model."""

import enum
import uuid
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import JSON, DateTime, Enum, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from soluly.models.base import Base, TenantMixin


class EmailStatus(str, enum.Enum):
    """Processing state of the categorization function."""
    PENDING = "pending"
    PROCESSED = "processed"
    FAILED = "failed"


class EmailCategory(str, enum.Enum):
    TICKET = "ticket"
    FEATURE_REQUEST = "feature_request"
    CUSTOMER_QUOTE = "customer_quote"
    FEEDBACK = "feedback"
    OTHER = "other"


class ReviewStatus(str, enum.Enum):
    """Human review state of an inbox item."""
    PENDING = "pending"
    APPROVED = "approved"
    DISMISSED = "dismissed"


class Email(TenantMixin, Base):
    """An inbound email awaiting triage."""
    
    __tablename__ = "emails"
    
    sender_email: Mapped[str] = mapped_column(String(200))
    sender_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    subject: Mapped[str] = mapped_column(String(500))
    body: Mapped[str] = mapped_column(Text)
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    
    status: Mapped[EmailStatus] = mapped_column(
        Enum(EmailStatus),
        default=EmailStatus.PENDING,
    )
    category: Mapped[Optional[EmailCategory]] = mapped_column(
        Enum(EmailCategory),
        nullable=True,
    )
    confidence_score: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ai_suggested_title: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    extracted_data: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    review_status: Mapped[ReviewStatus] = mapped_column(
        Enum(ReviewStatus),
        default=ReviewStatus.PENDING,
    )
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    # Record created from (or attached to) this email
    linked_ticket_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("tickets.id", ondelete="SET NULL"),
        nullable=True,
    )
    linked_feature_request_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("feature_requests.id", ondelete="SET NULL"),
        nullable=True,
    )
    linked_quote_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("quotes.id", ondelete="SET NULL"),
        nullable=True,
    )
    linked_feedback_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("feedback.id", ondelete="SET NULL"),
        nullable=True,
    )
    linked_project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    
    def __repr__(self) -> str:
        return f"<Email {self.sender_email} '{self.subject[:30]}'>"
