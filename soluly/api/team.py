"""Team member endpoints."""

import logging
import uuid
from datetime import datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import ValidationException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import ContractType, MemberStatus, Organization, TeamMember
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.team")


class CreateTeamMemberRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    role: str = Field(default="member", max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    status: MemberStatus = MemberStatus.ACTIVE
    contract_type: ContractType = ContractType.FULL_TIME
    hourly_rate: float = Field(default=0, ge=0)
    salary: float = Field(default=0, ge=0)
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateTeamMemberRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    role: Optional[str] = Field(default=None, max_length=100)
    department: Optional[str] = Field(default=None, max_length=100)
    status: Optional[MemberStatus] = None
    contract_type: Optional[ContractType] = None
    hourly_rate: Optional[float] = Field(default=None, ge=0)
    salary: Optional[float] = Field(default=None, ge=0)
    total_hours: Optional[float] = Field(default=None, ge=0)


class TeamMemberResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    name: str
    email: str
    phone: Optional[str]
    role: str
    department: Optional[str]
    status: MemberStatus
    contract_type: ContractType
    hourly_rate: float
    salary: float
    total_hours: float
    is_owner: bool
    created_at: datetime

    class Config:
        from_attributes = True


class TeamController(Controller):
    """API endpoints for team members."""

    path = "/api/team"
    tags = ["team"]

    @get("/")
    async def list_members(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[MemberStatus] = None,
    ) -> List[TeamMemberResponse]:
        criteria = [TeamMember.status == status] if status else []
        members = await list_for_organization(
            session, TeamMember, organization, *criteria,
            order_by=TeamMember.name.asc(),
        )
        return [TeamMemberResponse.model_validate(m) for m in members]

    @get("/{member_id:uuid}")
    async def get_member(
        self,
        member_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> TeamMemberResponse:
        member = await get_or_404(session, TeamMember, member_id, organization)
        return TeamMemberResponse.model_validate(member)

    @get("/by-display-id/{display_id:str}")
    async def get_member_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> TeamMemberResponse:
        member = await get_by_display_id_or_404(session, TeamMember, display_id, organization)
        return TeamMemberResponse.model_validate(member)

    @post("/")
    async def create_member(
        self,
        data: CreateTeamMemberRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TeamMemberResponse:
        try:
            member = TeamMember(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id", "email"}),
                email=str(data.email).lower(),
                display_id=data.display_id or await next_display_id(session, TeamMember, organization.id),
            )
            session.add(member)
            await session.commit()
            await session.refresh(member)
            logger.info(f"Team member created: {member.display_id}")
            return TeamMemberResponse.model_validate(member)
        except Exception as e:
            error_log(
                "Failed to create team member",
                exc=e,
                organization=organization, name=data.name,
            )
            raise

    @patch("/{member_id:uuid}")
    async def update_member(
        self,
        member_id: uuid.UUID,
        data: UpdateTeamMemberRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> TeamMemberResponse:
        member = await get_or_404(session, TeamMember, member_id, organization)
        changes = apply_changes(member, data)
        if "email" in changes and member.email:
            member.email = str(member.email).lower()
        await session.commit()
        await session.refresh(member)
        return TeamMemberResponse.model_validate(member)

    @delete("/{member_id:uuid}")
    async def delete_member(
        self,
        member_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        member = await get_or_404(session, TeamMember, member_id, organization)
        if member.is_owner:
            raise ValidationException("The organization owner cannot be removed")
        await session.delete(member)
        await session.commit()
        logger.info(f"Team member deleted: {member_id}")
