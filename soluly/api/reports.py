"""Report endpoints: template catalogue, JSON views and CSV/PDF downloads."""

import logging
from datetime import date, timedelta
from typing import List, Optional

from litestar import Controller, Response, get
from litestar.exceptions import NotFoundException, ValidationException
from sqlalchemy.ext.asyncio import AsyncSession

from soluly.api.deps import list_for_organization
from soluly.models import (
    Client, Contact, ContactActivity, Lead, Organization, Project, Quote, TeamMember, Ticket,
)
from soluly.reports import (
    REPORT_TEMPLATES, TEMPLATES_BY_ID, DateRange, ProjectReportOptions, ReportCollections,
    ReportTemplate, ReportView, build_report, export_csv, export_pdf,
)

logger = logging.getLogger("Soluly.reports")

DEFAULT_RANGE_DAYS = 30


def resolve_range(date_from: Optional[date], date_to: Optional[date]) -> DateRange:
    """Inclusive range; defaults to the last 30 days."""
    end = date_to or date.today()
    start = date_from or end - timedelta(days=DEFAULT_RANGE_DAYS)
    if start > end:
        raise ValidationException("date_from must not be after date_to")
    return DateRange(start=start, end=end)


async def load_collections(session: AsyncSession, organization: Organization) -> ReportCollections:
    """Everything any template may read, for one organization."""
    return ReportCollections(
        projects=await list_for_organization(session, Project, organization),
        tickets=await list_for_organization(session, Ticket, organization),
        contacts=await list_for_organization(session, Contact, organization),
        leads=await list_for_organization(session, Lead, organization),
        clients=await list_for_organization(session, Client, organization),
        quotes=await list_for_organization(session, Quote, organization),
        activities=await list_for_organization(
            session, ContactActivity, organization,
            order_by=ContactActivity.activity_date.desc(),
        ),
        team_members=await list_for_organization(session, TeamMember, organization),
    )


class ReportsController(Controller):
    """API endpoints for reports."""

    path = "/api/reports"
    tags = ["reports"]

    async def _view(
        self,
        template_id: str,
        organization: Organization,
        session: AsyncSession,
        date_range: DateRange,
        project_id: Optional[str],
        options: ProjectReportOptions,
    ) -> ReportView:
        if template_id not in TEMPLATES_BY_ID:
            raise NotFoundException(f"Report template '{template_id}' not found")

        collections = await load_collections(session, organization)
        view = build_report(template_id, collections, date_range, project_id=project_id, options=options)
        if view is None:
            raise NotFoundException(f"Project {project_id} not found")
        logger.debug(f"Built report {template_id} ({view.type}, {len(view.data or [])} rows)")
        return view

    @get("/templates")
    async def list_templates(self, category: Optional[str] = None) -> List[ReportTemplate]:
        if category:
            return [t for t in REPORT_TEMPLATES if t.category == category]
        return list(REPORT_TEMPLATES)

    @get("/{template_id:str}")
    async def get_report(
        self,
        template_id: str,
        organization: Organization,
        session: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        project_id: Optional[str] = None,
        include_overview: bool = True,
        include_timeline: bool = True,
        include_budget: bool = True,
        include_tickets: bool = True,
    ) -> ReportView:
        return await self._view(
            template_id, organization, session,
            resolve_range(date_from, date_to),
            project_id,
            ProjectReportOptions(
                include_overview=include_overview,
                include_timeline=include_timeline,
                include_budget=include_budget,
                include_tickets=include_tickets,
            ),
        )

    @get("/{template_id:str}/csv")
    async def download_csv(
        self,
        template_id: str,
        organization: Organization,
        session: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        project_id: Optional[str] = None,
    ) -> Response[str]:
        view = await self._view(
            template_id, organization, session,
            resolve_range(date_from, date_to),
            project_id,
            ProjectReportOptions(),
        )
        filename = f"{template_id}-{date.today().isoformat()}.csv"
        return Response(
            content=export_csv(view),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    @get("/{template_id:str}/pdf", media_type="application/pdf")
    async def download_pdf(
        self,
        template_id: str,
        organization: Organization,
        session: AsyncSession,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        project_id: Optional[str] = None,
        include_overview: bool = True,
        include_timeline: bool = True,
        include_budget: bool = True,
        include_tickets: bool = True,
    ) -> Response[bytes]:
        date_range = resolve_range(date_from, date_to)
        view = await self._view(
            template_id, organization, session, date_range, project_id,
            ProjectReportOptions(
                include_overview=include_overview,
                include_timeline=include_timeline,
                include_budget=include_budget,
                include_tickets=include_tickets,
            ),
        )
        pdf = export_pdf(view, TEMPLATES_BY_ID[template_id].name, organization.name, date_range)
        filename = f"{template_id}-{date.today().isoformat()}.pdf"
        logger.info(f"PDF report {template_id} generated for organization {organization.id}")
        return Response(
            content=pdf,
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
