"""Feature request endpoints and the unified features view."""

import logging
import uuid
from datetime import datetime
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
    FeatureRequest, FeatureRequestProject, FeatureStatus, Organization, Priority, Project,
    Ticket, TicketCategory,
)
from soluly.unified import UnifiedListing, UnifiedView, feature_row, ticket_row, unified_listing
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.features")


class CreateFeatureRequestRequest(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: Optional[str] = None
    status: FeatureStatus = FeatureStatus.BACKLOG
    priority: Priority = Priority.MEDIUM
    requested_by: Optional[str] = Field(default=None, max_length=200)
    client_name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    added_to_roadmap: bool = False
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    project_ids: List[uuid.UUID] = []
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateFeatureRequestRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=300)
    description: Optional[str] = None
    status: Optional[FeatureStatus] = None
    priority: Optional[Priority] = None
    requested_by: Optional[str] = Field(default=None, max_length=200)
    client_name: Optional[str] = Field(default=None, max_length=200)
    notes: Optional[str] = None
    added_to_roadmap: Optional[bool] = None
    estimated_hours: Optional[float] = Field(default=None, ge=0)
    estimated_cost: Optional[float] = Field(default=None, ge=0)
    project_ids: Optional[List[uuid.UUID]] = None


class FeatureRequestResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    title: str
    description: Optional[str]
    status: FeatureStatus
    priority: Priority
    requested_by: Optional[str]
    client_name: Optional[str]
    notes: Optional[str]
    added_to_roadmap: bool
    estimated_hours: Optional[float]
    estimated_cost: Optional[float]
    project_ids: List[uuid.UUID]
    project_names: List[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


async def replace_projects(
    session: AsyncSession,
    organization: Organization,
    feature: FeatureRequest,
    project_ids: List[uuid.UUID],
) -> None:
    """Make ``project_ids`` the feature request's exact set of projects."""
    wanted = list(dict.fromkeys(project_ids))
    found = {}
    if wanted:
        stmt = select(Project).where(
            Project.organization_id == organization.id,
            Project.id.in_(wanted),
        )
        found = {p.id: p for p in (await session.execute(stmt)).scalars().all()}
        missing = [str(p) for p in wanted if p not in found]
        if missing:
            raise ValidationException(f"Unknown project(s): {', '.join(missing)}")

    keep = [link for link in feature.project_links if link.project_id in found]
    present = {link.project_id for link in keep}
    feature.project_links = keep + [
        FeatureRequestProject(project=found[p]) for p in wanted if p not in present
    ]


async def create_feature_record(
    session: AsyncSession,
    organization: Organization,
    data: CreateFeatureRequestRequest,
) -> FeatureRequest:
    """Add a feature request to the session (not committed)."""
    feature = FeatureRequest(
        organization_id=organization.id,
        **data.model_dump(exclude={"display_id", "project_ids"}),
        display_id=data.display_id or await next_display_id(session, FeatureRequest, organization.id),
    )
    feature.project_links = []
    await replace_projects(session, organization, feature, data.project_ids)
    session.add(feature)
    await session.flush()
    return feature


class FeatureRequestsController(Controller):
    """API endpoints for feature requests."""

    path = "/api/feature-requests"
    tags = ["feature-requests"]

    @get("/")
    async def list_feature_requests(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[FeatureStatus] = None,
    ) -> List[FeatureRequestResponse]:
        criteria = [FeatureRequest.status == status] if status else []
        features = await list_for_organization(session, FeatureRequest, organization, *criteria)
        return [FeatureRequestResponse.model_validate(f) for f in features]

    @get("/unified")
    async def unified_features(
        self,
        organization: Organization,
        session: AsyncSession,
        tab: Optional[str] = None,
        search: Optional[str] = None,
    ) -> UnifiedListing:
        """Feature requests merged with feature-category tickets."""
        features = await list_for_organization(session, FeatureRequest, organization)
        tickets = await list_for_organization(
            session, Ticket, organization, Ticket.category == TicketCategory.FEATURE,
        )
        try:
            return unified_listing(
                UnifiedView.FEATURES,
                [feature_row(f) for f in features],
                [ticket_row(t) for t in tickets],
                tab=tab,
                search=search,
            )
        except ValueError as e:
            raise ValidationException(str(e))

    @get("/{feature_id:uuid}")
    async def get_feature_request(
        self,
        feature_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> FeatureRequestResponse:
        feature = await get_or_404(session, FeatureRequest, feature_id, organization)
        return FeatureRequestResponse.model_validate(feature)

    @get("/by-display-id/{display_id:str}")
    async def get_feature_request_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> FeatureRequestResponse:
        feature = await get_by_display_id_or_404(session, FeatureRequest, display_id, organization)
        return FeatureRequestResponse.model_validate(feature)

    @post("/")
    async def create_feature_request(
        self,
        data: CreateFeatureRequestRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> FeatureRequestResponse:
        try:
            feature = await create_feature_record(session, organization, data)
            await session.commit()
            await session.refresh(feature)
            logger.info(f"Feature request created: {feature.display_id}")
            return FeatureRequestResponse.model_validate(feature)
        except ValidationException:
            raise
        except Exception as e:
            error_log(
                "Failed to create feature request",
                exc=e,
                organization=organization, title=data.title,
            )
            raise

    @patch("/{feature_id:uuid}")
    async def update_feature_request(
        self,
        feature_id: uuid.UUID,
        data: UpdateFeatureRequestRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> FeatureRequestResponse:
        feature = await get_or_404(session, FeatureRequest, feature_id, organization)
        apply_changes(feature, data, exclude={"project_ids"})
        if data.project_ids is not None:
            await replace_projects(session, organization, feature, data.project_ids)
        await session.commit()
        await session.refresh(feature)
        return FeatureRequestResponse.model_validate(feature)

    @delete("/{feature_id:uuid}")
    async def delete_feature_request(
        self,
        feature_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        feature = await get_or_404(session, FeatureRequest, feature_id, organization)
        await session.delete(feature)
        await session.commit()
        logger.info(f"Feature request deleted: {feature_id}")
