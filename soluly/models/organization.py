"""Organization (tenant) and invitation models."""

import enum
import secrets
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Enum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from soluly.models.base import Base, TenantMixin


class Organization(Base):
    """A tenant. Every business record belongs to exactly one organization."""
    
    __tablename__ = "organizations"
    
    name: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    icon: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    
    def __repr__(self) -> str:
        return f"<Organization {self.slug}>"


class InvitationStatus(str, enum.Enum):
    """Invitation lifecycle."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"


def generate_invite_token() -> str:
    """Generate an unguessable invitation token."""
    return secrets.token_urlsafe(32)


class Invitation(TenantMixin, Base):
    """An emailed invitation to join an organization."""
    
    __tablename__ = "invitations"
    
    email: Mapped[str] = mapped_column(String(200))
    role: Mapped[str] = mapped_column(String(50), default="member")
    token: Mapped[str] = mapped_column(
        String(64),
        unique=True,
        default=generate_invite_token,
    )
    status: Mapped[InvitationStatus] = mapped_column(
        Enum(InvitationStatus),
        default=InvitationStatus.PENDING,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    invited_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("team_members.id", ondelete="SET NULL"),
        nullable=True,
    )
    
    def __repr__(self) -> str:
        return f"<Invitation {self.email} ({self.status.value})>"
