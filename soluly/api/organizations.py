"""Organization settings and team invitation endpoints."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from os import getenv
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from litestar.exceptions import NotFoundException, ValidationException
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import get_or_404, next_display_id, reject_cleared_fields
from soluly.integrations.functions import functions
from soluly.models import Invitation, InvitationStatus, Organization, TeamMember, utcnow
from soluly.models.organization import generate_invite_token
from soluly.utils.logging import error_log
from soluly.utils.validation import validate_email, validate_slug

logger = logging.getLogger("Soluly.settings")

INVITE_EXPIRY_DAYS = int(getenv("INVITE_EXPIRY_DAYS", "7"))


# --- Request/Response Schemas ---

class CreateOrganizationRequest(BaseModel):
    """Request to create a new organization with its owner."""
    name: str = Field(min_length=1, max_length=200)
    slug: str = Field(max_length=50)
    icon: Optional[str] = Field(default=None, max_length=50)
    owner_name: Optional[str] = Field(default=None, max_length=200)
    owner_email: Optional[EmailStr] = None


class UpdateOrganizationRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    slug: Optional[str] = Field(default=None, max_length=50)
    icon: Optional[str] = Field(default=None, max_length=50)
    logo_url: Optional[str] = Field(default=None, max_length=500)


class OrganizationResponse(BaseModel):
    id: uuid.UUID
    name: str
    slug: str
    icon: Optional[str]
    logo_url: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class CreateInvitationRequest(BaseModel):
    email: str = Field(min_length=1, max_length=200)
    role: str = Field(default="member", max_length=50)
    invited_by_id: Optional[uuid.UUID] = None


class AcceptInvitationRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=50)


class InvitationResponse(BaseModel):
    id: uuid.UUID
    email: str
    role: str
    status: InvitationStatus
    expires_at: datetime
    created_at: datetime

    class Config:
        from_attributes = True


class InvitationDetailsResponse(BaseModel):
    """Public view of an invitation, looked up by token."""
    email: str
    role: str
    status: InvitationStatus
    expires_at: datetime
    organization_name: str
    is_expired: bool


class AcceptInvitationResponse(BaseModel):
    organization_id: uuid.UUID
    team_member_id: uuid.UUID
    display_id: str


# --- Helper Functions ---

def as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def invitation_expiry() -> datetime:
    return utcnow() + timedelta(days=INVITE_EXPIRY_DAYS)


async def ensure_slug_available(
    session: AsyncSession,
    slug: str,
    exclude_id: Optional[uuid.UUID] = None,
) -> None:
    """Validate slug format and uniqueness, raising ValidationException."""
    problem = validate_slug(slug)
    if problem:
        raise ValidationException(problem)

    stmt = select(Organization.id).where(Organization.slug == slug)
    if exclude_id is not None:
        stmt = stmt.where(Organization.id != exclude_id)
    if (await session.execute(stmt)).first():
        raise ValidationException("This URL is already taken")


async def send_invitation(organization: Organization, invitation: Invitation) -> None:
    await functions.send_invite_email(
        email=invitation.email,
        organization_name=organization.name,
        token=invitation.token,
        role=invitation.role,
        expires_at=as_utc(invitation.expires_at).isoformat(),
    )
    logger.info(f"Invitation email sent to {invitation.email}")


async def get_invitation_by_token(session: AsyncSession, token: str) -> Invitation:
    stmt = select(Invitation).where(Invitation.token == token)
    invitation = (await session.execute(stmt)).scalar_one_or_none()
    if not invitation:
        raise NotFoundException("Invitation not found")
    return invitation


# --- Controllers ---

class OrganizationsController(Controller):
    """Organization bootstrap. Needs no tenant header."""

    path = "/api/organizations"
    tags = ["settings"]

    @post("/")
    async def create_organization(
        self,
        data: CreateOrganizationRequest,
        session: AsyncSession,
    ) -> OrganizationResponse:
        """Create an organization and, when given, its owner team member."""
        slug = data.slug.strip().lower()
        await ensure_slug_available(session, slug)

        try:
            organization = Organization(name=data.name, slug=slug, icon=data.icon)
            session.add(organization)
            await session.flush()

            if data.owner_name and data.owner_email:
                owner = TeamMember(
                    organization_id=organization.id,
                    display_id=await next_display_id(session, TeamMember, organization.id),
                    name=data.owner_name,
                    email=data.owner_email.lower(),
                    role="owner",
                    is_owner=True,
                )
                session.add(owner)

            await session.commit()
            await session.refresh(organization)
            logger.info(f"Organization created: {organization.slug}")
            return OrganizationResponse.model_validate(organization)
        except Exception as e:
            error_log(
                "Failed to create organization",
                exc=e,
                slug=slug,
            )
            raise


class SettingsController(Controller):
    """Current organization settings and invitations."""

    path = "/api/settings"
    tags = ["settings"]

    @get("/organization")
    async def get_organization(self, organization: Organization) -> OrganizationResponse:
        return OrganizationResponse.model_validate(organization)

    @patch("/organization")
    async def update_organization(
        self,
        data: UpdateOrganizationRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> OrganizationResponse:
        """Update name, slug, icon or logo. The slug stays unique."""
        changes = data.model_dump(exclude_unset=True)
        reject_cleared_fields(Organization, changes)
        if "slug" in changes:
            changes["slug"] = (changes["slug"] or "").strip().lower()
            if changes["slug"] != organization.slug:
                await ensure_slug_available(session, changes["slug"], exclude_id=organization.id)

        for field, value in changes.items():
            setattr(organization, field, value)

        await session.commit()
        await session.refresh(organization)
        logger.info(f"Organization {organization.id} updated: {sorted(changes)}")
        return OrganizationResponse.model_validate(organization)

    @get("/invitations")
    async def list_invitations(
        self,
        organization: Organization,
        session: AsyncSession,
    ) -> List[InvitationResponse]:
        """Pending invitations, newest first."""
        stmt = (
            select(Invitation)
            .where(
                Invitation.organization_id == organization.id,
                Invitation.status == InvitationStatus.PENDING,
            )
            .order_by(Invitation.created_at.desc())
        )
        invitations = (await session.execute(stmt)).scalars().all()
        return [InvitationResponse.model_validate(i) for i in invitations]

    @post("/invitations")
    async def create_invitation(
        self,
        data: CreateInvitationRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> InvitationResponse:
        """
        Invite someone by email.

        The invitation is committed before the email is sent; if sending
        fails the invitation stays and can be resent.
        """
        email = data.email.strip().lower()
        if not validate_email(email):
            raise ValidationException("Please enter a valid email address")

        member_stmt = select(TeamMember.id).where(
            TeamMember.organization_id == organization.id,
            func.lower(TeamMember.email) == email,
        )
        if (await session.execute(member_stmt)).first():
            raise ValidationException("This email is already a member of your organization")

        pending_stmt = select(Invitation.id).where(
            Invitation.organization_id == organization.id,
            Invitation.email == email,
            Invitation.status == InvitationStatus.PENDING,
        )
        if (await session.execute(pending_stmt)).first():
            raise ValidationException("An invitation has already been sent to this email")

        try:
            invitation = Invitation(
                organization_id=organization.id,
                email=email,
                role=data.role,
                invited_by_id=data.invited_by_id,
                expires_at=invitation_expiry(),
            )
            session.add(invitation)
            await session.commit()
            await session.refresh(invitation)
        except Exception as e:
            error_log(
                "Failed to create invitation",
                exc=e,
                organization=organization, email=email,
            )
            raise

        await send_invitation(organization, invitation)
        return InvitationResponse.model_validate(invitation)

    @post("/invitations/{invitation_id:uuid}/resend")
    async def resend_invitation(
        self,
        invitation_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> InvitationResponse:
        """Issue a fresh token and expiry, then email it again."""
        invitation = await get_or_404(session, Invitation, invitation_id, organization)
        if invitation.status == InvitationStatus.ACCEPTED:
            raise ValidationException("This invitation has already been accepted")

        invitation.token = generate_invite_token()
        invitation.expires_at = invitation_expiry()
        invitation.status = InvitationStatus.PENDING
        await session.commit()
        await session.refresh(invitation)

        await send_invitation(organization, invitation)
        return InvitationResponse.model_validate(invitation)

    @delete("/invitations/{invitation_id:uuid}")
    async def delete_invitation(
        self,
        invitation_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        invitation = await get_or_404(session, Invitation, invitation_id, organization)
        await session.delete(invitation)
        await session.commit()
        logger.info(f"Invitation {invitation_id} deleted")


class InvitationsController(Controller):
    """Token-addressed invitation lookup and acceptance."""

    path = "/api/invitations"
    tags = ["settings"]

    @get("/{token:str}")
    async def get_invitation(self, token: str, session: AsyncSession) -> InvitationDetailsResponse:
        invitation = await get_invitation_by_token(session, token)
        organization = await session.get(Organization, invitation.organization_id)
        return InvitationDetailsResponse(
            email=invitation.email,
            role=invitation.role,
            status=invitation.status,
            expires_at=invitation.expires_at,
            organization_name=organization.name if organization else "",
            is_expired=as_utc(invitation.expires_at) < utcnow(),
        )

    @post("/{token:str}/accept")
    async def accept_invitation(
        self,
        token: str,
        data: AcceptInvitationRequest,
        session: AsyncSession,
    ) -> AcceptInvitationResponse:
        """Join the organization as a team member with the invited role."""
        invitation = await get_invitation_by_token(session, token)

        if invitation.status == InvitationStatus.ACCEPTED:
            raise ValidationException("This invitation has already been accepted")
        if invitation.status == InvitationStatus.EXPIRED or as_utc(invitation.expires_at) < utcnow():
            invitation.status = InvitationStatus.EXPIRED
            await session.commit()
            raise ValidationException("This invitation has expired")

        organization_id = invitation.organization_id
        member = TeamMember(
            organization_id=organization_id,
            display_id=await next_display_id(session, TeamMember, organization_id),
            name=data.name,
            email=invitation.email,
            phone=data.phone,
            role=invitation.role,
        )
        session.add(member)
        invitation.status = InvitationStatus.ACCEPTED
        await session.commit()

        logger.info(f"Invitation for {invitation.email} accepted")
        return AcceptInvitationResponse(
            organization_id=organization_id,
            team_member_id=member.id,
            display_id=member.display_id,
        )
