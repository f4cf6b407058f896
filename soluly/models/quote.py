"""Quote (sales pipeline) models."""

import enum
import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soluly.models.base import Base, DisplayIdMixin, TenantMixin
from soluly.models.project import Priority

if TYPE_CHECKING:
    from soluly.models.crm import Client


class QuoteStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    NEGOTIATING = "negotiating"
    ACCEPTED = "accepted"    # Won
    REJECTED = "rejected"    # Lost


# Pipeline stage (progress percentage) implied by each status
STAGE_BY_STATUS = {
    QuoteStatus.DRAFT: 25,
    QuoteStatus.SENT: 50,
    QuoteStatus.NEGOTIATING: 75,
    QuoteStatus.ACCEPTED: 100,
    QuoteStatus.REJECTED: 0,
}

OPEN_QUOTE_STATUSES = (QuoteStatus.DRAFT, QuoteStatus.SENT, QuoteStatus.NEGOTIATING)


class ActivityType(str, enum.Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    NOTE = "note"


class Quote(TenantMixin, DisplayIdMixin, Base):
    """A quote moving through the sales pipeline."""
    
    __tablename__ = "quotes"
    DISPLAY_PREFIX = "QTE"
    
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    company_name: Mapped[str] = mapped_column(String(200))
    contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    value: Mapped[float] = mapped_column(Float, default=0)
    status: Mapped[QuoteStatus] = mapped_column(
        Enum(QuoteStatus),
        default=QuoteStatus.DRAFT,
    )
    stage: Mapped[int] = mapped_column(Integer, default=STAGE_BY_STATUS[QuoteStatus.DRAFT])
    valid_until: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    last_activity: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("crm_clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    client: Mapped[Optional["Client"]] = relationship("Client", lazy="selectin")
    
    activities: Mapped[List["QuoteActivity"]] = relationship(
        "QuoteActivity",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteActivity.activity_date.desc()",
    )
    tasks: Mapped[List["QuoteTask"]] = relationship(
        "QuoteTask",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteTask.due_date",
    )
    
    @property
    def client_name(self) -> Optional[str]:
        return self.client.name if self.client else None
    
    def set_status(self, status: QuoteStatus) -> None:
        """Move the quote to a new status and the matching pipeline stage."""
        self.status = status
        self.stage = STAGE_BY_STATUS[status]
    
    def __repr__(self) -> str:
        return f"<Quote {self.display_id} {self.status.value} ({self.stage}%)>"


class QuoteActivity(TenantMixin, DisplayIdMixin, Base):
    """A logged call, email, meeting or note against a quote."""
    
    __tablename__ = "quote_activities"
    DISPLAY_PREFIX = "ACT"
    
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"),
        index=True,
    )
    type: Mapped[ActivityType] = mapped_column(Enum(ActivityType))
    description: Mapped[str] = mapped_column(Text)
    duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    activity_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    
    quote: Mapped["Quote"] = relationship("Quote", back_populates="activities")


class QuoteTask(TenantMixin, DisplayIdMixin, Base):
    """A follow-up task attached to a quote."""
    
    __tablename__ = "quote_tasks"
    DISPLAY_PREFIX = "TSK"
    
    quote_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("quotes.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300))
    due_date: Mapped[date] = mapped_column(Date)
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.MEDIUM)
    completed: Mapped[bool] = mapped_column(default=False)
    
    quote: Mapped["Quote"] = relationship("Quote", back_populates="tasks")
