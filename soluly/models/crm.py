"""CRM models: clients, leads, contacts and tags."""

import enum
import uuid
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    Date, DateTime, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from soluly.models.base import Base, DisplayIdMixin, TenantMixin


class ClientStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class LeadStatus(str, enum.Enum):
    COLD = "cold"
    WARM = "warm"
    HOT = "hot"


class Client(TenantMixin, DisplayIdMixin, Base):
    """A client company."""
    
    __tablename__ = "crm_clients"
    DISPLAY_PREFIX = "CLT"
    
    name: Mapped[str] = mapped_column(String(200))
    industry: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[str] = mapped_column(String(200))
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[ClientStatus] = mapped_column(
        Enum(ClientStatus),
        default=ClientStatus.ACTIVE,
    )
    total_revenue: Mapped[float] = mapped_column(Float, default=0)
    
    contact_links: Mapped[List["ClientContact"]] = relationship(
        "ClientContact",
        back_populates="client",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    
    def __repr__(self) -> str:
        return f"<Client {self.display_id} {self.name}>"


class Lead(TenantMixin, DisplayIdMixin, Base):
    """A prospective client."""
    
    __tablename__ = "crm_leads"
    DISPLAY_PREFIX = "LEAD"
    
    name: Mapped[str] = mapped_column(String(200))
    industry: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    contact_name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    contact_email: Mapped[str] = mapped_column(String(200))
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    status: Mapped[LeadStatus] = mapped_column(Enum(LeadStatus), default=LeadStatus.COLD)
    
    def __repr__(self) -> str:
        return f"<Lead {self.display_id} {self.name} ({self.status.value})>"


class Tag(TenantMixin, Base):
    """A label that can be attached to contacts."""
    
    __tablename__ = "crm_tags"
    
    name: Mapped[str] = mapped_column(String(100))
    color: Mapped[str] = mapped_column(String(20), default="#6366f1")


class Contact(TenantMixin, DisplayIdMixin, Base):
    """A person, optionally working at a client company."""
    
    __tablename__ = "crm_contacts"
    DISPLAY_PREFIX = "CON"
    
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    job_title: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    
    company_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("crm_clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    company: Mapped[Optional["Client"]] = relationship("Client", lazy="selectin")
    
    tag_links: Mapped[List["ContactTag"]] = relationship(
        "ContactTag",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    
    @property
    def company_name(self) -> Optional[str]:
        return self.company.name if self.company else None
    
    @property
    def tags(self) -> List["Tag"]:
        return [link.tag for link in self.tag_links if link.tag]
    
    def __repr__(self) -> str:
        return f"<Contact {self.display_id} {self.name}>"


class ContactTag(Base):
    """Association between a contact and a tag."""
    
    __tablename__ = "crm_contact_tags"
    __table_args__ = (UniqueConstraint("contact_id", "tag_id"),)
    
    contact_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crm_contacts.id", ondelete="CASCADE"),
        index=True,
    )
    tag_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crm_tags.id", ondelete="CASCADE"),
        index=True,
    )
    
    tag: Mapped["Tag"] = relationship("Tag", lazy="selectin")


class ClientContact(Base):
    """A contact linked to a client company."""
    
    __tablename__ = "crm_client_contacts"
    __table_args__ = (UniqueConstraint("client_id", "contact_id"),)
    
    client_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crm_clients.id", ondelete="CASCADE"),
        index=True,
    )
    contact_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crm_contacts.id", ondelete="CASCADE"),
        index=True,
    )
    is_primary: Mapped[bool] = mapped_column(default=False)
    
    client: Mapped["Client"] = relationship("Client", back_populates="contact_links")
    contact: Mapped["Contact"] = relationship("Contact", lazy="selectin")


class ContactActivityType(str, enum.Enum):
    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    NOTE = "note"
    TASK = "task"


class ContactActivity(TenantMixin, Base):
    """A call, email, meeting, note or task logged against a contact."""
    
    __tablename__ = "crm_contact_activities"
    
    contact_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("crm_contacts.id", ondelete="CASCADE"),
        index=True,
    )
    activity_type: Mapped[ContactActivityType] = mapped_column(Enum(ContactActivityType))
    title: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    activity_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    
    # Type-specific details; only the fields matching activity_type are set
    call_duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # minutes
    call_outcome: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    email_subject: Mapped[Optional[str]] = mapped_column(String(300), nullable=True)
    email_direction: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    meeting_location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    task_due_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    task_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    
    contact: Mapped["Contact"] = relationship("Contact", lazy="selectin")
    
    @property
    def contact_name(self) -> Optional[str]:
        return self.contact.name if self.contact else None
