"""Ticket model: the generic inbox record shared by several pages."""

import enum
import uuid
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Enum, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soluly.models.base import Base, DisplayIdMixin, TenantMixin
from soluly.models.project import Priority

if TYPE_CHECKING:
    from soluly.models.project import Project
    from soluly.models.team import TeamMember


class TicketCategory(str, enum.Enum):
    """Which domain page a ticket also shows up on."""
    FEATURE = "feature"
    QUOTE = "quote"
    FEEDBACK = "feedback"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    PENDING = "pending"
    CLOSED = "closed"


class Ticket(TenantMixin, DisplayIdMixin, Base):
    """A generic inbox item tagged with a category."""
    
    __tablename__ = "tickets"
    DISPLAY_PREFIX = "TKT"
    
    title: Mapped[str] = mapped_column(String(300))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[TicketCategory] = mapped_column(Enum(TicketCategory), index=True)
    status: Mapped[TicketStatus] = mapped_column(
        Enum(TicketStatus),
        default=TicketStatus.OPEN,
    )
    priority: Mapped[Priority] = mapped_column(Enum(Priority), default=Priority.MEDIUM)
    
    project_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("projects.id", ondelete="SET NULL"),
        nullable=True,
    )
    assignee_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    
    # Many-to-one lookups are always eager so responses can read the names
    project: Mapped[Optional["Project"]] = relationship("Project", lazy="selectin")
    assignee: Mapped[Optional["TeamMember"]] = relationship("TeamMember", lazy="selectin")
    
    @property
    def project_name(self) -> Optional[str]:
        return self.project.name if self.project else None
    
    @property
    def assignee_name(self) -> Optional[str]:
        return self.assignee.name if self.assignee else None
    
    def __repr__(self) -> str:
        return f"<Ticket {self.display_id} [{self.category.value}] {self.status.value}>"
