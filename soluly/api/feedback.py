"""Customer feedback endpoints and the unified feedback view."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import (
    Feedback, FeedbackCategory, FeedbackSource, FeedbackStatus, Organization, Project,
    Sentiment, Ticket, TicketCategory,
)
from soluly.unified import UnifiedListing, UnifiedView, feedback_row, ticket_row, unified_listing
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.feedback")


# --- Request/Response Schemas ---

class CreateFeedbackRequest(BaseModel):
    """Request to log customer feedback."""
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    category: FeedbackCategory = FeedbackCategory.GENERAL
    sentiment: Sentiment = Sentiment.NEUTRAL
    source: FeedbackSource = FeedbackSource.EMAIL
    status: FeedbackStatus = FeedbackStatus.ACKNOWLEDGED
    from_contact: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    project_id: Optional[uuid.UUID] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateFeedbackRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    category: Optional[FeedbackCategory] = None
    sentiment: Optional[Sentiment] = None
    source: Optional[FeedbackSource] = None
    status: Optional[FeedbackStatus] = None
    from_contact: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    project_id: Optional[uuid.UUID] = None


class FeedbackResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    title: str
    description: Optional[str]
    category: FeedbackCategory
    sentiment: Sentiment
    source: FeedbackSource
    status: FeedbackStatus
    from_contact: Optional[str]
    notes: Optional[str]
    project_id: Optional[uuid.UUID]
    project_name: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


async def create_feedback_record(
    session: AsyncSession,
    organization: Organization,
    data: CreateFeedbackRequest,
) -> Feedback:
    """Add a feedback record to the session (not committed)."""
    if data.project_id is not None:
        await get_or_404(session, Project, data.project_id, organization)
    feedback = Feedback(
        organization_id=organization.id,
        **data.model_dump(exclude={"display_id"}),
        display_id=data.display_id or await next_display_id(session, Feedback, organization.id),
    )
    session.add(feedback)
    await session.flush()
    return feedback


# --- Controller ---

class FeedbackController(Controller):
    """API endpoints for customer feedback."""

    path = "/api/feedback"
    tags = ["feedback"]

    @get("/")
    async def list_feedback(
        self,
        organization: Organization,
        session: AsyncSession,
        sentiment: Optional[Sentiment] = None,
    ) -> List[FeedbackResponse]:
        criteria = [Feedback.sentiment == sentiment] if sentiment else []
        records = await list_for_organization(session, Feedback, organization, *criteria)
        return [FeedbackResponse.model_validate(f) for f in records]

    @get("/unified")
    async def unified_feedback(
        self,
        organization: Organization,
        session: AsyncSession,
        tab: Optional[str] = None,
        search: Optional[str] = None,
    ) -> UnifiedListing:
        """Feedback merged with feedback-category tickets; tickets get a derived sentiment."""
        records = await list_for_organization(session, Feedback, organization)
        tickets = await list_for_organization(
            session, Ticket, organization, Ticket.category == TicketCategory.FEEDBACK,
        )
        try:
            return unified_listing(
                UnifiedView.FEEDBACK,
                [feedback_row(f) for f in records],
                [ticket_row(t, with_sentiment=True) for t in tickets],
                tab=tab,
                search=search,
            )
        except ValueError as e:
            raise ValidationException(str(e))

    @get("/{feedback_id:uuid}")
    async def get_feedback(
        self,
        feedback_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> FeedbackResponse:
        feedback = await get_or_404(session, Feedback, feedback_id, organization)
        return FeedbackResponse.model_validate(feedback)

    @get("/by-display-id/{display_id:str}")
    async def get_feedback_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> FeedbackResponse:
        feedback = await get_by_display_id_or_404(session, Feedback, display_id, organization)
        return FeedbackResponse.model_validate(feedback)

    @post("/")
    async def create_feedback(
        self,
        data: CreateFeedbackRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> FeedbackResponse:
        logger.info(f"Feedback logged from {data.from_contact or 'unknown contact'}")
        try:
            feedback = await create_feedback_record(session, organization, data)
            await session.commit()
            await session.refresh(feedback)
            return FeedbackResponse.model_validate(feedback)
        except Exception as e:
            error_log(
                "Failed to create feedback",
                exc=e,
                organization=organization, title=data.title,
            )
            raise

    @patch("/{feedback_id:uuid}")
    async def update_feedback(
        self,
        feedback_id: uuid.UUID,
        data: UpdateFeedbackRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> FeedbackResponse:
        feedback = await get_or_404(session, Feedback, feedback_id, organization)
        if data.project_id is not None:
            await get_or_404(session, Project, data.project_id, organization)
        apply_changes(feedback, data)
        await session.commit()
        await session.refresh(feedback)
        return FeedbackResponse.model_validate(feedback)

    @delete("/{feedback_id:uuid}")
    async def delete_feedback(
        self,
        feedback_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        feedback = await get_or_404(session, Feedback, feedback_id, organization)
        await session.delete(feedback)
        await session.commit()
        logger.info(f"Feedback deleted: {feedback_id}")
