"""Projection endpoints: quarterly goals, business costs and calculators."""

import datetime
import logging
import uuid
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
    BusinessCost, Client, Organization, Project, ProjectStatus, QuarterlyGoal, Quote, TeamMember,
)
from soluly.projections import (
    Breakeven, MaintenanceRevenue, ProjectionScenario, QuarterlyProgress, ServiceKPIs,
    calculate_breakeven, calculate_maintenance_revenue, calculate_projection_scenario,
    calculate_quarterly_progress, calculate_service_kpis, maintenance_projection, quarter_bounds,
)
from soluly.utils.logging import error_log
from soluly.utils.validation import parse_integer, parse_number

logger = logging.getLogger("Soluly.projections")


# --- Request/Response Schemas ---

class GoalRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    quarter: int = Field(ge=1, le=4)
    revenue_target: float = Field(default=0, ge=0)
    projects_target: int = Field(default=0, ge=0)
    new_clients_target: int = Field(default=0, ge=0)
    profit_margin_target: float = Field(default=0, ge=0, le=100)
    notes: Optional[str] = None


class UpdateGoalRequest(BaseModel):
    revenue_target: Optional[float] = Field(default=None, ge=0)
    projects_target: Optional[int] = Field(default=None, ge=0)
    new_clients_target: Optional[int] = Field(default=None, ge=0)
    profit_margin_target: Optional[float] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None


class GoalResponse(BaseModel):
    id: uuid.UUID
    year: int
    quarter: int
    revenue_target: float
    projects_target: int
    new_clients_target: int
    profit_margin_target: float
    notes: Optional[str]
    created_at: datetime.datetime

    class Config:
        from_attributes = True


class GoalProgressResponse(BaseModel):
    goal: GoalResponse
    start: datetime.date
    end: datetime.date
    progress: QuarterlyProgress


class CostRequest(BaseModel):
    description: str = Field(min_length=1, max_length=300)
    category: str = Field(min_length=1, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    amount: float = Field(ge=0)
    date: datetime.date
    vendor: Optional[str] = Field(default=None, max_length=200)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    recurring: bool = False
    recurring_frequency: Optional[str] = Field(default=None, max_length=20)
    tax_deductible: bool = False
    notes: Optional[str] = None
    display_id: Optional[str] = Field(default=None, max_length=20)


class UpdateCostRequest(BaseModel):
    description: Optional[str] = Field(default=None, min_length=1, max_length=300)
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    subcategory: Optional[str] = Field(default=None, max_length=100)
    amount: Optional[float] = Field(default=None, ge=0)
    date: Optional[datetime.date] = None
    vendor: Optional[str] = Field(default=None, max_length=200)
    payment_method: Optional[str] = Field(default=None, max_length=50)
    recurring: Optional[bool] = None
    recurring_frequency: Optional[str] = Field(default=None, max_length=20)
    tax_deductible: Optional[bool] = None
    notes: Optional[str] = None


class CostResponse(BaseModel):
    id: uuid.UUID
    display_id: str
    description: str
    category: str
    subcategory: Optional[str]
    amount: float
    date: datetime.date
    vendor: Optional[str]
    payment_method: Optional[str]
    recurring: bool
    recurring_frequency: Optional[str]
    tax_deductible: bool
    notes: Optional[str]
    created_at: datetime.datetime

    class Config:
        from_attributes = True


# --- Helper Functions ---

def _day(value: object) -> Optional[datetime.date]:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return None


def _in_period(value: object, start: datetime.date, end: datetime.date) -> bool:
    day = _day(value)
    return day is not None and start <= day <= end


async def quarter_actuals(
    session: AsyncSession,
    organization: Organization,
    start: datetime.date,
    end: datetime.date,
) -> tuple:
    """Revenue, completed projects, new clients and profit margin for a period.

    A completed project counts in the period of its end date, or of its
    creation when it has none.
    """
    projects = await list_for_organization(
        session, Project, organization, Project.status == ProjectStatus.COMPLETED,
    )
    completed = [p for p in projects if _in_period(p.end_date or p.created_at, start, end)]
    clients = await list_for_organization(session, Client, organization)
    costs = await list_for_organization(session, BusinessCost, organization)

    revenue = sum(p.value or 0 for p in completed)
    spent = sum(p.budget or 0 for p in completed) + sum(
        c.amount or 0 for c in costs if _in_period(c.date, start, end)
    )
    margin = ((revenue - spent) / revenue) * 100 if revenue > 0 else 0.0
    new_clients = sum(1 for c in clients if _in_period(c.created_at, start, end))
    return revenue, len(completed), new_clients, margin


# --- Controller ---

class ProjectionsController(Controller):
    """API endpoints for financial projections."""

    path = "/api/projections"
    tags = ["projections"]

    # --- Goals ---

    @get("/goals")
    async def list_goals(
        self,
        organization: Organization,
        session: AsyncSession,
        year: Optional[int] = None,
    ) -> List[GoalResponse]:
        criteria = [QuarterlyGoal.year == year] if year else []
        goals = await list_for_organization(
            session, QuarterlyGoal, organization, *criteria,
            order_by=(QuarterlyGoal.year * 10 + QuarterlyGoal.quarter).asc(),
        )
        return [GoalResponse.model_validate(g) for g in goals]

    @post("/goals")
    async def create_goal(
        self,
        data: GoalRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> GoalResponse:
        stmt = select(QuarterlyGoal.id).where(
            QuarterlyGoal.organization_id == organization.id,
            QuarterlyGoal.year == data.year,
            QuarterlyGoal.quarter == data.quarter,
        )
        if (await session.execute(stmt)).first():
            raise ValidationException(f"A goal for Q{data.quarter} {data.year} already exists")

        goal = QuarterlyGoal(organization_id=organization.id, **data.model_dump())
        session.add(goal)
        await session.commit()
        await session.refresh(goal)
        logger.info(f"Goal set for Q{goal.quarter} {goal.year}")
        return GoalResponse.model_validate(goal)

    @get("/goals/{goal_id:uuid}")
    async def get_goal(
        self,
        goal_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> GoalResponse:
        goal = await get_or_404(session, QuarterlyGoal, goal_id, organization)
        return GoalResponse.model_validate(goal)

    @patch("/goals/{goal_id:uuid}")
    async def update_goal(
        self,
        goal_id: uuid.UUID,
        data: UpdateGoalRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> GoalResponse:
        goal = await get_or_404(session, QuarterlyGoal, goal_id, organization)
        apply_changes(goal, data)
        await session.commit()
        await session.refresh(goal)
        return GoalResponse.model_validate(goal)

    @delete("/goals/{goal_id:uuid}")
    async def delete_goal(
        self,
        goal_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        goal = await get_or_404(session, QuarterlyGoal, goal_id, organization)
        await session.delete(goal)
        await session.commit()

    @get("/goals/{goal_id:uuid}/progress")
    async def goal_progress(
        self,
        goal_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> GoalProgressResponse:
        """Targets against what the quarter actually delivered."""
        goal = await get_or_404(session, QuarterlyGoal, goal_id, organization)
        start, end = quarter_bounds(goal.year, goal.quarter)
        revenue, projects, new_clients, margin = await quarter_actuals(session, organization, start, end)
        return GoalProgressResponse(
            goal=GoalResponse.model_validate(goal),
            start=start,
            end=end,
            progress=calculate_quarterly_progress(goal, revenue, projects, new_clients, margin),
        )

    # --- Business costs ---

    @get("/costs")
    async def list_costs(
        self,
        organization: Organization,
        session: AsyncSession,
        category: Optional[str] = None,
        date_from: Optional[datetime.date] = None,
        date_to: Optional[datetime.date] = None,
    ) -> List[CostResponse]:
        """Costs, most recent date first."""
        criteria = []
        if category:
            criteria.append(BusinessCost.category == category)
        if date_from:
            criteria.append(BusinessCost.date >= date_from)
        if date_to:
            criteria.append(BusinessCost.date <= date_to)
        costs = await list_for_organization(
            session, BusinessCost, organization, *criteria,
            order_by=BusinessCost.date.desc(),
        )
        return [CostResponse.model_validate(c) for c in costs]

    @post("/costs")
    async def create_cost(
        self,
        data: CostRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> CostResponse:
        try:
            cost = BusinessCost(
                organization_id=organization.id,
                **data.model_dump(exclude={"display_id"}),
                display_id=data.display_id or await next_display_id(session, BusinessCost, organization.id),
            )
            session.add(cost)
            await session.commit()
            await session.refresh(cost)
            return CostResponse.model_validate(cost)
        except Exception as e:
            error_log(
                "Failed to create business cost",
                exc=e,
                organization=organization, category=data.category,
            )
            raise

    @get("/costs/{cost_id:uuid}")
    async def get_cost(
        self,
        cost_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> CostResponse:
        cost = await get_or_404(session, BusinessCost, cost_id, organization)
        return CostResponse.model_validate(cost)

    @get("/costs/by-display-id/{display_id:str}")
    async def get_cost_by_display_id(
        self,
        display_id: str,
        organization: Organization,
        session: AsyncSession,
    ) -> CostResponse:
        cost = await get_by_display_id_or_404(session, BusinessCost, display_id, organization)
        return CostResponse.model_validate(cost)

    @patch("/costs/{cost_id:uuid}")
    async def update_cost(
        self,
        cost_id: uuid.UUID,
        data: UpdateCostRequest,
        organization: Organization,
        session: AsyncSession,
    ) -> CostResponse:
        cost = await get_or_404(session, BusinessCost, cost_id, organization)
        apply_changes(cost, data)
        await session.commit()
        await session.refresh(cost)
        return CostResponse.model_validate(cost)

    @delete("/costs/{cost_id:uuid}")
    async def delete_cost(
        self,
        cost_id: uuid.UUID,
        organization: Organization,
        session: AsyncSession,
    ) -> None:
        cost = await get_or_404(session, BusinessCost, cost_id, organization)
        await session.delete(cost)
        await session.commit()

    # --- Calculators ---

    @get("/kpis")
    async def get_kpis(
        self,
        organization: Organization,
        session: AsyncSession,
        period_months: Optional[str] = None,
    ) -> ServiceKPIs:
        """Services KPIs over the trailing period (default 12 months)."""
        return calculate_service_kpis(
            projects=await list_for_organization(session, Project, organization),
            clients=await list_for_organization(session, Client, organization),
            quotes=await list_for_organization(session, Quote, organization),
            team_members=await list_for_organization(session, TeamMember, organization),
            costs=await list_for_organization(session, BusinessCost, organization),
            period_months=parse_integer(period_months, minimum=1, maximum=120, default=12),
        )

    @get("/breakeven")
    async def get_breakeven(
        self,
        fixed_costs: Optional[str] = None,
        avg_project_value: Optional[str] = None,
        variable_cost_percent: Optional[str] = None,
    ) -> Breakeven:
        return calculate_breakeven(
            parse_number(fixed_costs, minimum=0),
            parse_number(avg_project_value, minimum=0),
            parse_number(variable_cost_percent, minimum=0, maximum=100),
        )

    @get("/scenario")
    async def get_scenario(
        self,
        target_revenue: Optional[str] = None,
        avg_project_value: Optional[str] = None,
        profit_margin: Optional[str] = None,
    ) -> ProjectionScenario:
        return calculate_projection_scenario(
            parse_number(target_revenue, minimum=0),
            parse_number(avg_project_value, minimum=0),
            parse_number(profit_margin, minimum=0, maximum=100),
        )

    @get("/maintenance")
    async def get_maintenance(
        self,
        organization: Organization,
        session: AsyncSession,
    ) -> MaintenanceRevenue:
        """Recurring revenue from projects with an active maintenance contract."""
        projects = await list_for_organization(
            session, Project, organization, Project.has_maintenance.is_(True),
        )
        return calculate_maintenance_revenue([maintenance_projection(p) for p in projects])
