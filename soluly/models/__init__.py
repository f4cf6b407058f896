"""Soluly database models."""

from soluly.models.base import Base, format_display_id, utcnow
from soluly.models.organization import Organization, Invitation, InvitationStatus
from soluly.models.team import TeamMember, MemberStatus, ContractType
from soluly.models.project import Project, ProjectStatus, Priority, MaintenanceFrequency
from soluly.models.ticket import Ticket, TicketCategory, TicketStatus
from soluly.models.feature_request import FeatureRequest, FeatureRequestProject, FeatureStatus
from soluly.models.feedback import (
    Feedback, FeedbackCategory, FeedbackSource, FeedbackStatus, Sentiment,
)
from soluly.models.quote import (
    Quote, QuoteActivity, QuoteTask, QuoteStatus, ActivityType,
    STAGE_BY_STATUS, OPEN_QUOTE_STATUSES,
)
from soluly.models.crm import (
    Client, ClientStatus, Lead, LeadStatus,
    Contact, Tag, ContactTag, ClientContact,
    ContactActivity, ContactActivityType,
)
from soluly.models.email import Email, EmailCategory, EmailStatus, ReviewStatus
from soluly.models.finance import QuarterlyGoal, BusinessCost

__all__ = [
    "Base",
    "format_display_id",
    "utcnow",
    "Organization",
    "Invitation",
    "InvitationStatus",
    "TeamMember",
    "MemberStatus",
    "ContractType",
    "Project",
    "ProjectStatus",
    "Priority",
    "MaintenanceFrequency",
    "Ticket",
    "TicketCategory",
    "TicketStatus",
    "FeatureRequest",
    "FeatureRequestProject",
    "FeatureStatus",
    "Feedback",
    "FeedbackCategory",
    "FeedbackSource",
    "FeedbackStatus",
    "Sentiment",
    "Quote",
    "QuoteActivity",
    "QuoteTask",
    "QuoteStatus",
    "ActivityType",
    "STAGE_BY_STATUS",
    "OPEN_QUOTE_STATUSES",
    "Client",
    "ClientStatus",
    "Lead",
    "LeadStatus",
    "Contact",
    "Tag",
    "ContactTag",
    "ClientContact",
    "ContactActivity",
    "ContactActivityType",
    "Email",
    "EmailCategory",
    "EmailStatus",
    "ReviewStatus",
    "QuarterlyGoal",
    "BusinessCost",
]
