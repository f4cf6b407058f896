"""Ticket endpoints."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from pydantic import BaseModel, Field
from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import (
    Organization, Priority, Project, TeamMember, Ticket, TicketCategory, TicketStatus,
)
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.tickets")


class CreateTicketRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    category: TicketCategory
    status: TicketStatus = TicketStatus.OPEN
    priority: Priority = Priority.MEDIUM
    project_id: Optional[uuid.UUID] = None
    assignee_id: Optional[uuid.UUID] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateTicketRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    category: Optional[TicketCategory] = None
    status: Optional[TicketStatus] = None
    priority: Optional[Priority] = None
    project_id: Optional[uuid.UUID] = None
    assignee_id: Optional[uuid.UUID] = None


class TicketResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    title: str
    description: Optional[str]
    category: TicketCategory
    status: TicketStatus
    priority: Priority
    project_id: Optional[uuid.UUID]
    project_name: Optional[str]
    assignee_id: Optional[uuid.UUID]
    assignee_name: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


async def check_references(
    session: AsyncSession,
    organization: Organization,
    project_id: Optional[uuid.UUID],
    assignee_id: Optional[uuid.UUID],
) -> None:
    """Referenced project and assignee must belong to the same organization."""
    if project_id is not None:
        await get_or_404(session, Project, project_id, organization)
    if assignee_id is not None:
        await get_or_404(session, TeamMember, assignee_id, organization)


async def create_ticket_record(
    session: AsyncSession,
    organization: Organization,
    data: CreateTicketRequest,
) -> Ticket:
    """Add a ticket to the session (not committed). Shared with the email inbox."""
    ticket = Ticket(
        organization_id=organization.id,
        **data.model_dump(exclude={"display_id"}),
        display_id=data.display_id or await next_display_id(session, Ticket, organization.id),
    )
    session.add(ticket)
    await session.flush()
    return ticket


class TicketsController(Controller):
    """API endpoints for tickets."""

    path = "/api/tickets"
    tags = ["tickets"]

    @get("/")
    async def list_tickets(
        self,
        organization: Organization,
        session: AsyncSession,
        category: Optional[TicketCategory] = None,
        status: Optional[TicketStatus] = None,
        project_id: Optional[uuid.UUID] = None,
        search: Optional[str] = None,
    ) -> List[TicketResponse]:
        """Tickets, newest first, optionally filtered."""
        criteria = []
        if category:
            criteria.append(Ticket.category == category)
        if status:
            criteria.append(Ticket.status == status)
        if project_id:
            criteria.append(Ticket.project_id == project_id)
        if search:
            pattern = f"%{search.strip()}%"
            criteria.append(or_(
                Ticket.title.ilike(pattern),
                Ticket.description.ilike(pattern),
                Ticket.display_id.ilike(pattern),
            ))
        tickets = await list_for_organization(session, Ticket, organization, *criteria)
        return [TicketResponse.model_validate(t) for t in tickets]

    @get("/{ticket_id:uuid}")
    async def get_ticket(
        self,
        ticket_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> TicketResponse:
        ticket = await get_or_404(session, Ticket, ticket_id, organization)
        return TicketResponse.model_validate(ticket)

    @get("/by-display-id/{display_id:str}")
    async def get_ticket_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> TicketResponse:
        ticket = await get_by_display_id_or_404(session, Ticket, display_id, organization)
        return TicketResponse.model_validate(ticket)

    @post("/")
    async def create_ticket(
        self,
        data: CreateTicketRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TicketResponse:
        await check_references(session, organization, data.project_id, data.assignee_id)
        try:
            ticket = await create_ticket_record(session, organization, data)
            await session.commit()
            await session.refresh(ticket)
            logger.info(f"Ticket created: {ticket.display_id} [{ticket.category.value}]")
            return TicketResponse.model_validate(ticket)
        except Exception as e:
            error_log(
                "Failed to create ticket",
                exc=e,
                organization=organization, title=data.title,
            )
            raise

    @patch("/{ticket_id:uuid}")
    async def update_ticket(
        self,
        ticket_id: uuid.UUID,
        data: UpdateTicketRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TicketResponse:
        ticket = await get_or_404(session, Ticket, ticket_id, organization)
        if "category" in data.model_fields_set and data.category is None:
            raise ValidationException("Ticket category cannot be cleared")
        await check_references(session, organization, data.project_id, data.assignee_id)
        apply_changes(ticket, data)
        await session.commit()
        await session.refresh(ticket)
        return TicketResponse.model_validate(ticket)

    @delete("/{ticket_id:uuid}")
    async def delete_ticket(
        self,
        ticket_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        ticket = await get_or_404(session, Ticket, ticket_id, organization)
        await session.delete(ticket)
        await session.commit()
        logger.info(f"Ticket deleted: {ticket_id}")
