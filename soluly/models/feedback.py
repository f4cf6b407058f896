"""Feedback model for customer feedback records."""

import enum
import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soluly.models.base import Base, DisplayIdMixin, TenantMixin

if TYPE_CHECKING:
    from soluly.models.project import Project


class FeedbackCategory(str, enum.Enum):
    PERFORMANCE = "performance"
    UI_UX = "ui-ux"
    FEATURE = "feature"
    MOBILE = "mobile"
    BUG = "bug"
    GENERAL = "general"


class Sentiment(str, enum.Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class FeedbackSource(str, enum.Enum):
    EMAIL = "email"
    CALL = "call"
    SUPPORT = "support"


class FeedbackStatus(str, enum.Enum):
    ACKNOWLEDGED = "acknowledged"
    UNDER_REVIEW = "under-review"
    INVESTIGATING = "investigating"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


class Feedback(TenantMixin, DisplayIdMixin, Base):
    """Customer feedback logged from a call, email or support channel."""
    
    __tablename__ = "feedback"
    DISPLAY_PREFIX = "FBK"
    
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[FeedbackCategory] = mapped_column(
        Enum(FeedbackCategory),
        default=FeedbackCategory.GENERAL,
    )
    sentiment: Mapped[Sentiment] = mapped_column(Enum(Sentiment), default=Sentiment.NEUTRAL)
    source: Mapped[FeedbackSource] = mapped_column(
        Enum(FeedbackSource),
        default=FeedbackSource.EMAIL,
    )
    status: Mapped[FeedbackStatus] = mapped_column(
        Enum(FeedbackStatus),
        default=FeedbackStatus.ACKNOWLEDGED,
    )
    from_contact: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    project: Mapped[Optional["Project"]] = relationship("Project", lazy="selectin")
    
    @property
    def project_name(self) -> Optional[str]:
        return self.project.name if self.project else None
    
    def __repr__(self) -> str:
        return f"<Feedback {self.display_id} ({self.sentiment.value})>"
