"""Email inbox endpoints: triage, categorization and record creation."""

import logging
import uuid
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from pydantic import BaseModel, Field
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import get_or_404, list_for_organization
from soluly.api.feature_requests import CreateFeatureRequestRequest, create_feature_record
from soluly.api.feedback import CreateFeedbackRequest, create_feedback_record
from soluly.api.quotes import CreateQuoteRequest, create_quote_record
from soluly.api.realtime import broadcast_emails_changed
from soluly.api.tickets import CreateTicketRequest, create_ticket_record
from soluly.integrations.functions import FunctionCallError, functions
from soluly.models import (
    Email, EmailCategory, EmailStatus, Organization, Priority, Project, ReviewStatus,
    Sentiment, TicketCategory, utcnow,
)
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.emails")

RECORD_CATEGORIES = (
    EmailCategory.TICKET,
    EmailCategory.FEATURE_REQUEST,
    EmailCategory.CUSTOMER_QUOTE,
    EmailCategory.FEEDBACK,
)


# --- Request/Response Schemas ---

class ReceiveEmailRequest(BaseModel):
    """An inbound email handed over by the mail integration."""
    sender_email: str = Field(min_length=1, max_length=200)
    sender_name: Optional[str] = Field(default=None, max_length=200)
    subject: str = Field(default="", max_length=500)
    body: str = ""
    received_at: Optional[datetime] = None


class UpdateCategoryRequest(BaseModel):
    category: EmailCategory


class LinkProjectRequest(BaseModel):
    project_id: Optional[uuid.UUID] = None


class CreateRecordRequest(BaseModel):
    """Turn an email into a ticket, feature request, quote or feedback."""
    category: EmailCategory
    title: str = Field(min_length=1, max_length=300)
    priority: Priority = Priority.MEDIUM
    project_id: Optional[uuid.UUID] = None
    ticket_category: TicketCategory = TicketCategory.FEEDBACK


class EmailResponse(BaseModel):
    id: uuid.UUID
    sender_email: str
    sender_name: Optional[str]
    subject: str
    body: str
    received_at: datetime
    status: EmailStatus
    category: Optional[EmailCategory]
    confidence_score: Optional[float]
    ai_summary: Optional[str]
    ai_suggested_title: Optional[str]
    extracted_data: Optional[Dict[str, Any]]
    processed_at: Optional[datetime]
    review_status: ReviewStatus
    reviewed_at: Optional[datetime]
    linked_ticket_id: Optional[uuid.UUID]
    linked_feature_request_id: Optional[uuid.UUID]
    linked_quote_id: Optional[uuid.UUID]
    linked_feedback_id: Optional[uuid.UUID]
    linked_project_id: Optional[uuid.UUID]
    created_at: datetime

    class Config:
        from_attributes = True


class EmailStatsResponse(BaseModel):
    total: int
    pending: int
    processed: int
    needs_review: int
    approved: int
    dismissed: int
    by_category: Dict[str, int]


class CreatedRecordResponse(BaseModel):
    email: EmailResponse
    record_type: EmailCategory
    record_id: uuid.UUID
    display_id: str


# --- Helper Functions ---

def day_start(value: date) -> datetime:
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def day_end(value: date) -> datetime:
    return datetime.combine(value, time.max, tzinfo=timezone.utc)


def email_stats(emails: List[Email]) -> EmailStatsResponse:
    """Inbox counters. ``needs_review`` means processed but not yet reviewed."""
    return EmailStatsResponse(
        total=len(emails),
        pending=sum(1 for e in emails if e.status == EmailStatus.PENDING),
        processed=sum(1 for e in emails if e.status == EmailStatus.PROCESSED),
        needs_review=sum(
            1 for e in emails
            if e.review_status == ReviewStatus.PENDING and e.status == EmailStatus.PROCESSED
        ),
        approved=sum(1 for e in emails if e.review_status == ReviewStatus.APPROVED),
        dismissed=sum(1 for e in emails if e.review_status == ReviewStatus.DISMISSED),
        by_category={
            category.value: sum(1 for e in emails if e.category == category)
            for category in EmailCategory
        },
    )


def quoted_body(email: Email) -> str:
    return f"**From Email:** {email.sender_name or email.sender_email}\n**Subject:** {email.subject}\n\n{email.body}"


def parse_category(value: Any) -> EmailCategory:
    try:
        return EmailCategory(value)
    except ValueError:
        return EmailCategory.OTHER


async def create_record_from_email(
    session: AsyncSession,
    organization: Organization,
    email: Email,
    data: CreateRecordRequest,
):
    """Create the record for ``data.category`` and point the email's link column at it."""
    description = quoted_body(email)

    if data.category == EmailCategory.TICKET:
        record = await create_ticket_record(session, organization, CreateTicketRequest(
            title=data.title,
            description=description,
            category=data.ticket_category,
            priority=data.priority,
            project_id=data.project_id,
        ))
        email.linked_ticket_id = record.id
    elif data.category == EmailCategory.FEATURE_REQUEST:
        record = await create_feature_record(session, organization, CreateFeatureRequestRequest(
            title=data.title,
            description=description,
            priority=data.priority,
            requested_by=email.sender_name or email.sender_email,
            project_ids=[data.project_id] if data.project_id else [],
        ))
        email.linked_feature_request_id = record.id
    elif data.category == EmailCategory.CUSTOMER_QUOTE:
        record = await create_quote_record(session, organization, CreateQuoteRequest(
            title=data.title,
            description=description,
            company_name=email.sender_name or email.sender_email,
            contact_name=email.sender_name,
            contact_email=email.sender_email,
        ))
        email.linked_quote_id = record.id
    else:
        sentiment = (email.extracted_data or {}).get("sentiment")
        record = await create_feedback_record(session, organization, CreateFeedbackRequest(
            title=data.title,
            description=description,
            sentiment=sentiment if sentiment in {s.value for s in Sentiment} else Sentiment.NEUTRAL,
            from_contact=email.sender_name or email.sender_email,
            project_id=data.project_id,
        ))
        email.linked_feedback_id = record.id

    return record


# --- Controller ---

class EmailsController(Controller):
    """API endpoints for the email inbox. Every mutation notifies inbox sockets."""

    path = "/api/emails"
    tags = ["emails"]

    @get("/")
    async def list_emails(
        self,
        organization: Organization,
        session: AsyncSession,
        category: Optional[EmailCategory] = None,
        status: Optional[EmailStatus] = None,
        review_status: Optional[ReviewStatus] = None,
        project_id: Optional[uuid.UUID] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        search: Optional[str] = None,
    ) -> List[EmailResponse]:
        """Emails, most recently received first."""
        criteria = []
        if category:
            criteria.append(Email.category == category)
        if status:
            criteria.append(Email.status == status)
        if review_status:
            criteria.append(Email.review_status == review_status)
        if project_id:
            criteria.append(Email.linked_project_id == project_id)
        if date_from:
            criteria.append(Email.received_at >= day_start(date_from))
        if date_to:
            criteria.append(Email.received_at <= day_end(date_to))
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(
                Email.subject.ilike(pattern),
                Email.sender_email.ilike(pattern),
                Email.sender_name.ilike(pattern),
            ))
        emails = await list_for_organization(
            session, Email, organization, *criteria,
            order_by=Email.received_at.desc(),
        )
        return [EmailResponse.model_validate(e) for e in emails]

    @get("/stats")
    async def get_stats(self, organization: Organization, session: AsyncSession) -> EmailStatsResponse:
        stmt = select(Email).where(Email.organization_id == organization.id)
        emails = list((await session.execute(stmt)).scalars().all())
        return email_stats(emails)

    @get("/{email_id:uuid}")
    async def get_email(
        self,
        email_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        email = await get_or_404(session, Email, email_id, organization)
        return EmailResponse.model_validate(email)

    @post("/")
    async def receive_email(
        self,
        data: ReceiveEmailRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        """Store an inbound email as pending."""
        email = Email(
            organization_id=organization.id,
            sender_email=data.sender_email.strip().lower(),
            sender_name=data.sender_name,
            subject=data.subject,
            body=data.body,
            received_at=data.received_at or utcnow(),
        )
        session.add(email)
        await session.commit()
        await session.refresh(email)
        logger.info(f"Email received from {email.sender_email}")
        await broadcast_emails_changed(str(organization.id))
        return EmailResponse.model_validate(email)

    @patch("/{email_id:uuid}/category")
    async def update_category(
        self,
        email_id: uuid.UUID,
        data: UpdateCategoryRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        email = await get_or_404(session, Email, email_id, organization)
        email.category = data.category
        await session.commit()
        await session.refresh(email)
        await broadcast_emails_changed(str(organization.id))
        return EmailResponse.model_validate(email)

    @patch("/{email_id:uuid}/project")
    async def link_project(
        self,
        email_id: uuid.UUID,
        data: LinkProjectRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        """Attach the email to a project, or detach it with ``project_id: null``."""
        email = await get_or_404(session, Email, email_id, organization)
        if data.project_id is not None:
            await get_or_404(session, Project, data.project_id, organization)
        email.linked_project_id = data.project_id
        await session.commit()
        await session.refresh(email)
        await broadcast_emails_changed(str(organization.id))
        return EmailResponse.model_validate(email)

    @post("/{email_id:uuid}/dismiss")
    async def dismiss_email(
        self,
        email_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        email = await get_or_404(session, Email, email_id, organization)
        email.review_status = ReviewStatus.DISMISSED
        email.reviewed_at = utcnow()
        await session.commit()
        await session.refresh(email)
        await broadcast_emails_changed(str(organization.id))
        return EmailResponse.model_validate(email)

    @post("/{email_id:uuid}/create-record")
    async def create_record(
        self,
        email_id: uuid.UUID,
        data: CreateRecordRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> CreatedRecordResponse:
        """Create a ticket, feature request, quote or feedback from the email and approve it."""
        if data.category not in RECORD_CATEGORIES:
            raise ValidationException(f"Cannot create a record of category '{data.category.value}'")

        email = await get_or_404(session, Email, email_id, organization)
        if data.project_id is not None:
            await get_or_404(session, Project, data.project_id, organization)

        try:
            record = await create_record_from_email(session, organization, email, data)
            if data.project_id is not None:
                email.linked_project_id = data.project_id
            email.category = data.category
            email.review_status = ReviewStatus.APPROVED
            email.reviewed_at = utcnow()
            await session.commit()
            await session.refresh(email)
        except Exception as e:
            error_log(
                "Failed to create record from email",
                exc=e,
                organization=organization, email=str(email_id), category=data.category.value,
            )
            raise

        logger.info(f"Created {record.display_id} from email {email_id}")
        await broadcast_emails_changed(str(organization.id))
        return CreatedRecordResponse(
            email=EmailResponse.model_validate(email),
            record_type=data.category,
            record_id=record.id,
            display_id=record.display_id,
        )

    @post("/{email_id:uuid}/categorize")
    async def categorize_email(
        self,
        email_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> EmailResponse:
        """
        Run the categorization function on one email.

        A function that answers ``success: false`` marks the email failed
        and the request ends with 502.
        """
        email = await get_or_404(session, Email, email_id, organization)
        result = await functions.process_email(str(email.id))

        if not result.get("success"):
            email.status = EmailStatus.FAILED
            email.processed_at = utcnow()
            await session.commit()
            await broadcast_emails_changed(str(organization.id))
            raise FunctionCallError("process-email", result.get("error") or "Processing failed")

        email.category = parse_category(result.get("category"))
        email.confidence_score = result.get("confidence")
        email.ai_summary = result.get("summary")
        email.ai_suggested_title = result.get("suggested_title") or result.get("suggestedTitle")
        if result.get("extracted_data") is not None:
            email.extracted_data = result["extracted_data"]
        email.status = EmailStatus.PROCESSED
        email.processed_at = utcnow()
        await session.commit()
        await session.refresh(email)

        logger.info(f"Email {email_id} categorized as {email.category.value} ({email.confidence_score})")
        await broadcast_emails_changed(str(organization.id))
        return EmailResponse.model_validate(email)

    @delete("/{email_id:uuid}")
    async def delete_email(
        self,
        email_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        email = await get_or_404(session, Email, email_id, organization)
        await session.delete(email)
        await session.commit()
        await broadcast_emails_changed(str(organization.id))
