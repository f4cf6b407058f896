"""Project endpoints, including maintenance contracts."""

import logging
import uuid
from datetime import date, datetime
from typing import List, Optional

from litestar import Controller, delete, get, patch, post
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import (
    apply_changes, get_by_display_id_or_404, get_or_404, list_for_organization, next_display_id,
)
from soluly.models import MaintenanceFrequency, Organization, Priority, Project, ProjectStatus
from soluly.utils.logging import error_log

logger = logging.getLogger("Soluly.projects")


# --- Request/Response Schemas ---

class CreateProjectRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = Field(default=None, max_length=200)
    client_email: Optional[str] = Field(default=None, max_length=200)
    status: ProjectStatus = ProjectStatus.PENDING
    priority: Priority = Priority.MEDIUM
    progress: int = Field(default=0, ge=0, le=100)
    value: float = Field(default=0, ge=0)
    budget: float = Field(default=0, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateProjectRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    client_name: Optional[str] = Field(default=None, max_length=200)
    client_email: Optional[str] = Field(default=None, max_length=200)
    status: Optional[ProjectStatus] = None
    priority: Optional[Priority] = None
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    value: Optional[float] = Field(default=None, ge=0)
    budget: Optional[float] = Field(default=None, ge=0)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class UpdateMaintenanceRequest(BaseModel):
    """Maintenance contract settings of a project."""
    has_maintenance: bool
    maintenance_amount: float = Field(default=0, ge=0)
    maintenance_frequency: MaintenanceFrequency = MaintenanceFrequency.MONTHLY
    maintenance_start_date: Optional[date] = None
    maintenance_notes: Optional[str] = None


class ProjectResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    name: str
    description: Optional[str]
    client_name: Optional[str]
    client_email: Optional[str]
    status: ProjectStatus
    priority: Priority
    progress: int
    value: float
    budget: float
    start_date: Optional[date]
    end_date: Optional[date]
    has_maintenance: bool
    maintenance_amount: float
    maintenance_frequency: MaintenanceFrequency
    maintenance_start_date: Optional[date]
    maintenance_notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Controller ---

class ProjectsController(Controller):
    """API endpoints for projects."""

    path = "/api/projects"
    tags = ["projects"]

    @get("/")
    async def list_projects(
        self,
        organization: Organization,
        session: AsyncSession,
        status: Optional[ProjectStatus] = None,
    ) -> List[ProjectResponse]:
        criteria = [Project.status == status] if status else []
        projects = await list_for_organization(session, Project, organization, *criteria)
        return [ProjectResponse.model_validate(p) for p in projects]

    @get("/{project_id:uuid}")
    async def get_project(
        self,
        project_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> ProjectResponse:
        project = await get_or_404(session, Project, project_id, organization)
        return ProjectResponse.model_validate(project)

    @get("/by-display-id/{display_id:str}")
    async def get_project_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> ProjectResponse:
        project = await get_by_display_id_or_404(session, Project, display_id, organization)
        return ProjectResponse.model_validate(project)

    @post("/")
    async def create_project(
        self,
        data: CreateProjectRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ProjectResponse:
        logger.info(f"Creating project '{data.name}' for organization {organization.id}")
        try:
            project = Project(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id"}),
                display_id=data.display_id or await next_display_id(session, Project, organization.id),
            )
            session.add(project)
            await session.commit()
            await session.refresh(project)
            return ProjectResponse.model_validate(project)
        except Exception as e:
            error_log(
                "Failed to create project",
                exc=e,
                organization=organization, name=data.name,
            )
            raise

    @patch("/{project_id:uuid}")
    async def update_project(
        self,
        project_id: uuid.UUID,
        data: UpdateProjectRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ProjectResponse:
        project = await get_or_404(session, Project, project_id, organization)
        apply_changes(project, data)
        await session.commit()
        await session.refresh(project)
        return ProjectResponse.model_validate(project)

    @patch("/{project_id:uuid}/maintenance")
    async def update_maintenance(
        self,
        project_id: uuid.UUID,
        data: UpdateMaintenanceRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> ProjectResponse:
        """Turn a maintenance contract on or off and set its terms."""
        project = await get_or_404(session, Project, project_id, organization)
        apply_changes(project, data)
        if not data.has_maintenance:
            project.maintenance_amount = 0
        await session.commit()
        await session.refresh(project)
        logger.info(
            f"Maintenance for {project.display_id}: "
            f"{'on' if project.has_maintenance else 'off'} ({project.maintenance_frequency.value})"
        )
        return ProjectResponse.model_validate(project)

    @delete("/{project_id:uuid}")
    async def delete_project(
        self,
        project_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        project = await get_or_404(session, Project, project_id, organization)
        await session.delete(project)
        await session.commit()
        logger.info(f"Project deleted: {project_id}")
