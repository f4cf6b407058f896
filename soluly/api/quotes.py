"""Quote pipeline endpoints: quotes, their activities and follow-up tasks."""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import (
    ActivityType, Client, Organization, Priority, Quote, QuoteActivity, QuoteStatus, QuoteTask,
    STAGE_BY_STATUS, Ticket, TicketCategory, utcnow,
)
from soluly.unified import UnifiedListing, UnifiedView, quote_row, ticket_row, unified_listing
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.quotes")


# --- Request/Response Schemas ---

class CreateQuoteRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    company_name: str = Field(min_length=1, max_length=200)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[str] = Field(default=None, max_length=200)
    value: float = Field(default=0, ge=0)
    status: QuoteStatus = QuoteStatus.DRAFT
    stage: Optional[int] = Field(default=None, ge=0, le=100)
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    client_id: Optional[uuid.UUID] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateQuoteRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    company_name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    contact_name: Optional[str] = Field(default=None, max_length=200)
    contact_email: Optional[str] = Field(default=None, max_length=200)
    value: Optional[float] = Field(default=None, ge=0)
    status: Optional[QuoteStatus] = None
    stage: Optional[int] = Field(default=None, ge=0, le=100)
    valid_until: Optional[date] = None
    notes: Optional[str] = None
    client_id: Optional[uuid.UUID] = None


class QuoteResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    title: str
    description: Optional[str]
    company_name: str
    contact_name: Optional[str]
    contact_email: Optional[str]
    value: float
    status: QuoteStatus
    stage: int
    valid_until: Optional[date]
    last_activity: Optional[datetime]
    notes: Optional[str]
    client_id: Optional[uuid.UUID]
    client_name: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CreateActivityRequest(BaseModel):
    type: ActivityType
    description: str = Field(min_length=1)
    duration: Optional[str] = Field(default=None, max_length=50)
    activity_date: Optional[datetime] = None


class ActivityResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    quote_id: uuid.UUID
    type: ActivityType
    description: str
    duration: Optional[str]
    activity_date: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class CreateTaskRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    due_date: date
    priority: Priority = Priority.MEDIUM


class UpdateTaskRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    due_date: Optional[date] = None
    priority: Optional[Priority] = None
    completed: Optional[bool] = None


class TaskResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    quote_id: uuid.UUID
    title: str
    due_date: date
    priority: Priority
    completed: bool
    created_at: datetime

    class Config:
        from_attributes = True


# --- Helper Functions ---

async def create_quote_record(
    session: AsyncSession,
    organization: Organization,
    data: CreateQuoteRequest,
) -> Quote:
    """Add a quote to the session (not committed). Stage follows status unless given."""
    if data.client_id is not None:
        await get_or_404(session, Client, data.client_id, organization)
    quote = Quote(
        organization_id=organization.id,
        **data.model_dump(exclude={"display_id", "stage"}),
        stage=data.stage if data.stage is not None else STAGE_BY_STATUS[data.status],
        display_id=data.display_id or await next_display_id(session, Quote, organization.id),
    )
    session.add(quote)
    await session.flush()
    return quote


async def decide_quote(
    session: AsyncSession,
    organization: Organization,
    quote_id: uuid.UUID,
    status: QuoteStatus,
) -> Quote:
    """Accept or reject. Concurrent decisions are not reconciled: the last write wins."""
    quote = await get_or_404(session, Quote, quote_id, organization)
    previous = quote.status
    quote.set_status(status)
    quote.last_activity = utcnow()
    await session.commit()
    await session.refresh(quote)
    logger.info(f"Quote {quote.display_id}: {previous.value} -> {status.value}")
    return quote


# --- Controller ---

class QuotesController(Controller):
    """API endpoints for quotes."""

    path = "/api/quotes"
    tags = ["quotes"]

    @get("/")
    async def list_quotes(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[QuoteStatus] = None,
        client_id: Optional[uuid.UUID] = None,
    ) -> List[QuoteResponse]:
        criteria = []
        if status:
            criteria.append(Quote.status == status)
        if client_id:
            criteria.append(Quote.client_id == client_id)
        quotes = await list_for_organization(session, Quote, organization, *criteria)
        return [QuoteResponse.model_validate(q) for q in quotes]

    @get("/unified")
    async def unified_quotes(
        self,
        organization: Organization,
        session: AsyncSession,
        tab: Optional[str] = None,
        search: Optional[str] = None,
    ) -> UnifiedListing:
        """Quotes merged with quote-category tickets, split into active/won/lost."""
        quotes = await list_for_organization(session, Quote, organization)
        tickets = await list_for_organization(
            session, Ticket, organization, Ticket.category == TicketCategory.QUOTE,
        )
        try:
            return unified_listing(
                UnifiedView.QUOTES,
                [quote_row(q) for q in quotes],
                [ticket_row(t) for t in tickets],
                tab=tab,
                search=search,
            )
        except ValueError as e:
            raise ValidationException(str(e))

    @get("/{quote_id:uuid}")
    async def get_quote(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        quote = await get_or_404(session, Quote, quote_id, organization)
        return QuoteResponse.model_validate(quote)

    @get("/by-display-id/{display_id:str}")
    async def get_quote_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        quote = await get_by_display_id_or_404(session, Quote, display_id, organization)
        return QuoteResponse.model_validate(quote)

    @post("/")
    async def create_quote(
        self,
        data: CreateQuoteRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        logger.info(f"Creating quote '{data.title}' for {data.company_name}")
        try:
            quote = await create_quote_record(session, organization, data)
            await session.commit()
            await session.refresh(quote)
            return QuoteResponse.model_validate(quote)
        except Exception as e:
            error_log(
                "Failed to create quote",
                exc=e,
                organization=organization, company=data.company_name,
            )
            raise

    @patch("/{quote_id:uuid}")
    async def update_quote(
        self,
        quote_id: uuid.UUID,
        data: UpdateQuoteRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        """Partial update. A status change moves the stage too unless a stage is sent."""
        quote = await get_or_404(session, Quote, quote_id, organization)
        if data.client_id is not None:
            await get_or_404(session, Client, data.client_id, organization)
        apply_changes(quote, data, exclude={"status", "stage"})
        if data.status is not None:
            quote.set_status(data.status)
        if data.stage is not None:
            quote.stage = data.stage
        await session.commit()
        await session.refresh(quote)
        return QuoteResponse.model_validate(quote)

    @post("/{quote_id:uuid}/accept")
    async def accept_quote(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        quote = await decide_quote(session, organization, quote_id, QuoteStatus.ACCEPTED)
        return QuoteResponse.model_validate(quote)

    @post("/{quote_id:uuid}/reject")
    async def reject_quote(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> QuoteResponse:
        quote = await decide_quote(session, organization, quote_id, QuoteStatus.REJECTED)
        return QuoteResponse.model_validate(quote)

    @delete("/{quote_id:uuid}")
    async def delete_quote(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        quote = await get_or_404(session, Quote, quote_id, organization)
        await session.delete(quote)
        await session.commit()
        logger.info(f"Quote deleted: {quote_id}")

    # --- Activities ---

    @get("/{quote_id:uuid}/activities")
    async def list_activities(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> List[ActivityResponse]:
        await get_or_404(session, Quote, quote_id, organization)
        stmt = (
            select(QuoteActivity)
            .where(QuoteActivity.quote_id == quote_id)
            .order_by(QuoteActivity.activity_date.desc())
        )
        activities = (await session.execute(stmt)).scalars().all()
        return [ActivityResponse.model_validate(a) for a in activities]

    @post("/{quote_id:uuid}/activities")
    async def log_activity(
        self,
        quote_id: uuid.UUID,
        data: CreateActivityRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ActivityResponse:
        """Log a call, email, meeting or note and bump the quote's last activity."""
        quote = await get_or_404(session, Quote, quote_id, organization)
        now = utcnow()
        activity = QuoteActivity(
            organization_id=organization.id,
            display_id=await next_display_id(session, QuoteActivity, organization.id),
            quote_id=quote.id,
            type=data.type,
            description=data.description,
            duration=data.duration,
            activity_date=data.activity_date or now,
        )
        session.add(activity)
        quote.last_activity = now
        await session.commit()
        await session.refresh(activity)
        return ActivityResponse.model_validate(activity)

    # --- Tasks ---

    @get("/{quote_id:uuid}/tasks")
    async def list_tasks(
        self,
        quote_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> List[TaskResponse]:
        await get_or_404(session, Quote, quote_id, organization)
        stmt = select(QuoteTask).where(QuoteTask.quote_id == quote_id).order_by(QuoteTask.due_date)
        tasks = (await session.execute(stmt)).scalars().all()
        return [TaskResponse.model_validate(t) for t in tasks]

    @post("/{quote_id:uuid}/tasks")
    async def create_task(
        self,
        quote_id: uuid.UUID,
        data: CreateTaskRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TaskResponse:
        quote = await get_or_404(session, Quote, quote_id, organization)
        task = QuoteTask(
            organization_id=organization.id,
            display_id=await next_display_id(session, QuoteTask, organization.id),
            quote_id=quote.id,
            title=data.title,
            due_date=data.due_date,
            priority=data.priority,
        )
        session.add(task)
        await session.commit()
        await session.refresh(task)
        return TaskResponse.model_validate(task)

    @patch("/tasks/{task_id:uuid}")
    async def update_task(
        self,
        task_id: uuid.UUID,
        data: UpdateTaskRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TaskResponse:
        task = await get_or_404(session, QuoteTask, task_id, organization)
        apply_changes(task, data)
        await session.commit()
        await session.refresh(task)
        return TaskResponse.model_validate(task)

    @delete("/tasks/{task_id:uuid}")
    async def delete_task(
        self,
        task_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        task = await get_or_404(session, QuoteTask, task_id, organization)
        await session.delete(task)
        await session.commit()
