"""Financial projection formulas and the services KPI summary.

Everything here is pure arithmetic over already-loaded records; the
projections controller does the querying.
"""

import enum
import math
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, List, Optional

from pydantic import BaseModel

# Runway reported when the business is not burning cash
PROFITABLE_RUNWAY = 999.0

# Cost categories counted as overhead / as sales & marketing spend
OVERHEAD_CATEGORIES = ("overhead", "rent", "utilities", "software", "insurance", "admin")
SALES_CATEGORIES = ("marketing", "sales", "advertising")


def _value(field: Any) -> Any:
    if isinstance(field, enum.Enum):
        return field.value
    return field


def _ratio(part: float, whole: float) -> float:
    """``part / whole * 100``, or 0 when ``whole`` is not positive."""
    return (part / whole) * 100 if whole > 0 else 0.0


# --- Scenario / breakeven ---

class ProjectionScenario(BaseModel):
    target_revenue: float
    avg_project_value: float
    profit_margin: float
    projects_needed: int
    gross_profit: float
    monthly_revenue: float
    monthly_projects: float


def calculate_projection_scenario(
    target_revenue: float,
    avg_project_value: float,
    profit_margin_percent: float,
) -> ProjectionScenario:
    """How many projects of the average size reach a yearly revenue target."""
    projects_needed = math.ceil(target_revenue / avg_project_value) if avg_project_value > 0 else 0
    return ProjectionScenario(
        target_revenue=target_revenue,
        avg_project_value=avg_project_value,
        profit_margin=profit_margin_percent,
        projects_needed=projects_needed,
        gross_profit=target_revenue * (profit_margin_percent / 100),
        monthly_revenue=target_revenue / 12,
        monthly_projects=projects_needed / 12,
    )


class Breakeven(BaseModel):
    breakeven_projects: int
    breakeven_revenue: float


def calculate_breakeven(
    fixed_costs: float,
    avg_project_value: float,
    variable_cost_percent: float,
) -> Breakeven:
    """Projects needed to cover fixed costs; 0 when each project loses money."""
    contribution_margin = avg_project_value * (1 - variable_cost_percent / 100)
    projects = math.ceil(fixed_costs / contribution_margin) if contribution_margin > 0 else 0
    return Breakeven(
        breakeven_projects=projects,
        breakeven_revenue=projects * avg_project_value,
    )


# --- Maintenance ---

def monthly_maintenance_amount(amount: Optional[float], frequency: Any) -> float:
    amount = amount or 0
    frequency = _value(frequency)
    if frequency == "monthly":
        return amount
    if frequency == "quarterly":
        return amount / 3
    return amount / 12


def yearly_maintenance_amount(amount: Optional[float], frequency: Any) -> float:
    amount = amount or 0
    frequency = _value(frequency)
    if frequency == "monthly":
        return amount * 12
    if frequency == "quarterly":
        return amount * 4
    return amount


class MaintenanceProjection(BaseModel):
    project_id: Any
    display_id: str
    name: str
    client_name: Optional[str] = None
    amount: float
    frequency: str
    start_date: Optional[date] = None
    monthly_amount: float
    yearly_amount: float


def maintenance_projection(project: Any) -> MaintenanceProjection:
    amount = project.maintenance_amount or 0
    return MaintenanceProjection(
        project_id=project.id,
        display_id=project.display_id,
        name=project.name,
        client_name=project.client_name,
        amount=amount,
        frequency=_value(project.maintenance_frequency),
        start_date=project.maintenance_start_date,
        monthly_amount=monthly_maintenance_amount(amount, project.maintenance_frequency),
        yearly_amount=yearly_maintenance_amount(amount, project.maintenance_frequency),
    )


class MaintenanceRevenue(BaseModel):
    monthly_total: float
    yearly_total: float
    projects: List[MaintenanceProjection] = []


def calculate_maintenance_revenue(projections: List[MaintenanceProjection]) -> MaintenanceRevenue:
    return MaintenanceRevenue(
        monthly_total=sum(p.monthly_amount for p in projections),
        yearly_total=sum(p.yearly_amount for p in projections),
        projects=projections,
    )


# --- Quarterly goals ---

class GoalProgress(BaseModel):
    target: float
    actual: float
    percentage: float


class QuarterlyProgress(BaseModel):
    revenue: GoalProgress
    projects: GoalProgress
    new_clients: GoalProgress
    profit_margin: GoalProgress


def _progress(target: Optional[float], actual: float) -> GoalProgress:
    target = target or 0
    return GoalProgress(target=target, actual=actual, percentage=_ratio(actual, target))


def calculate_quarterly_progress(
    goal: Any,
    actual_revenue: float,
    actual_projects: float,
    actual_new_clients: float,
    actual_profit_margin: float,
) -> QuarterlyProgress:
    return QuarterlyProgress(
        revenue=_progress(goal.revenue_target, actual_revenue),
        projects=_progress(goal.projects_target, actual_projects),
        new_clients=_progress(goal.new_clients_target, actual_new_clients),
        profit_margin=_progress(goal.profit_margin_target, actual_profit_margin),
    )


def quarter_bounds(year: int, quarter: int) -> tuple:
    """First and last day of a calendar quarter."""
    start = date(year, 3 * (quarter - 1) + 1, 1)
    if quarter == 4:
        end = date(year, 12, 31)
    else:
        end = date(year, 3 * quarter + 1, 1) - timedelta(days=1)
    return start, end


# --- Services KPIs ---

class ServiceKPIs(BaseModel):
    """Headline figures for a services business over a trailing period."""
    period_months: int

    # Revenue & profitability
    total_revenue: float
    gross_profit: float
    gross_margin: float
    operating_costs: float
    net_profit: float
    net_margin: float
    avg_project_value: float
    revenue_per_employee: float

    # Customers
    total_clients: int
    new_clients_this_period: int
    customer_lifetime_value: float
    customer_acquisition_cost: float
    client_concentration: float

    # Projects
    total_projects: int
    completed_projects: int
    active_projects: int
    backlog_value: float

    # Sales
    win_rate: float
    avg_deal_size: float
    quote_conversion_rate: float
    pipeline_value: float
    pipeline_velocity: float

    # Team
    total_employees: int
    monthly_payroll: float
    cost_per_employee: float

    # Financial health
    overhead_ratio: float
    monthly_overhead: float
    monthly_operating_expenses: float
    gross_burn_rate: float
    net_burn_rate: float
    cash_reserves: float
    runway_months: float
    monthly_recurring: float
    recurring_revenue: float
    recurring_revenue_ratio: float


def _as_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    return None


def _since(records: Iterable[Any], attr: str, start: datetime) -> List[Any]:
    kept = []
    for record in records:
        moment = _as_datetime(getattr(record, attr, None))
        if moment is not None and moment >= start:
            kept.append(record)
    return kept


def period_start(period_months: int, now: Optional[datetime] = None) -> datetime:
    """Approximate start of a trailing period of ``period_months`` months."""
    now = now or datetime.now(timezone.utc)
    return now - timedelta(days=round(30.44 * period_months))


def calculate_service_kpis(
    projects: List[Any],
    clients: List[Any],
    quotes: List[Any],
    team_members: List[Any],
    costs: List[Any],
    period_months: int = 12,
    paid_revenue: float = 0,
    now: Optional[datetime] = None,
) -> ServiceKPIs:
    """
    Summarize the trailing ``period_months`` of activity.

    Revenue is the value of completed projects created in the period.
    Win rate counts only decided quotes; pipeline value counts every
    undecided quote regardless of age. A runway of 999 means the business
    is not burning cash.
    """
    period_months = max(period_months, 1)
    start = period_start(period_months, now)

    period_quotes = _since(quotes, "created_at", start)
    period_clients = _since(clients, "created_at", start)
    period_costs = _since(costs, "date", start)

    completed = [p for p in projects if _value(p.status) == "completed"]
    period_completed = _since(completed, "created_at", start)
    active = [p for p in projects if _value(p.status) == "active"]
    pending = [p for p in projects if _value(p.status) == "pending"]

    total_revenue = sum(p.value or 0 for p in period_completed)
    total_costs = sum(p.budget or 0 for p in period_completed)
    gross_profit = total_revenue - total_costs
    operating_costs = sum(c.amount or 0 for c in period_costs)
    net_profit = gross_profit - operating_costs
    avg_project_value = total_revenue / len(period_completed) if period_completed else 0.0

    active_members = [t for t in team_members if _value(t.status) == "active"]
    total_employees = len(active_members)
    employee_costs = sum(t.salary or 0 for t in active_members)
    monthly_payroll = employee_costs / 12

    client_revenues = sorted((c.total_revenue or 0 for c in clients), reverse=True)
    total_client_revenue = sum(client_revenues)
    top_client_revenue = client_revenues[0] if client_revenues else 0
    customer_lifetime_value = (
        total_client_revenue / len(clients) if clients else avg_project_value
    )
    sales_costs = sum(
        c.amount or 0 for c in period_costs
        if (c.category or "").lower() in SALES_CATEGORIES
    )
    customer_acquisition_cost = sales_costs / (len(period_clients) or 1)

    won = [q for q in period_quotes if _value(q.status) == "accepted"]
    lost = [q for q in period_quotes if _value(q.status) == "rejected"]
    win_rate = _ratio(len(won), len(won) + len(lost))
    avg_deal_size = (
        sum(q.value or 0 for q in won) / len(won) if won else avg_project_value
    )
    pipeline_value = sum(
        q.value or 0 for q in quotes
        if _value(q.status) not in ("accepted", "rejected")
    )

    overhead_costs = sum(
        c.amount or 0 for c in period_costs
        if (c.category or "").lower() in OVERHEAD_CATEGORIES
    )
    monthly_operating = operating_costs / period_months
    gross_burn = monthly_payroll + monthly_operating
    net_burn = gross_burn - total_revenue / period_months

    monthly_recurring = sum(
        monthly_maintenance_amount(p.maintenance_amount, p.maintenance_frequency)
        for p in projects if p.has_maintenance
    )
    recurring_revenue = monthly_recurring * 12
    cash_reserves = monthly_recurring * 6
    available_cash = cash_reserves + paid_revenue * 0.3
    runway = available_cash / net_burn if net_burn > 0 else PROFITABLE_RUNWAY

    return ServiceKPIs(
        period_months=period_months,
        total_revenue=total_revenue,
        gross_profit=gross_profit,
        gross_margin=_ratio(gross_profit, total_revenue),
        operating_costs=operating_costs,
        net_profit=net_profit,
        net_margin=_ratio(net_profit, total_revenue),
        avg_project_value=avg_project_value,
        revenue_per_employee=total_revenue / total_employees if total_employees else 0.0,
        total_clients=len(clients),
        new_clients_this_period=len(period_clients),
        customer_lifetime_value=customer_lifetime_value,
        customer_acquisition_cost=customer_acquisition_cost,
        client_concentration=_ratio(top_client_revenue, total_client_revenue),
        total_projects=len(projects),
        completed_projects=len(completed),
        active_projects=len(active),
        backlog_value=sum(p.value or 0 for p in pending),
        win_rate=win_rate,
        avg_deal_size=avg_deal_size,
        quote_conversion_rate=_ratio(len(won), len(period_quotes)),
        pipeline_value=pipeline_value,
        pipeline_velocity=pipeline_value / period_months,
        total_employees=total_employees,
        monthly_payroll=monthly_payroll,
        cost_per_employee=employee_costs / total_employees if total_employees else 0.0,
        overhead_ratio=_ratio(overhead_costs, total_revenue),
        monthly_overhead=overhead_costs / period_months,
        monthly_operating_expenses=monthly_operating,
        gross_burn_rate=gross_burn,
        net_burn_rate=net_burn,
        cash_reserves=cash_reserves,
        runway_months=runway,
        monthly_recurring=monthly_recurring,
        recurring_revenue=recurring_revenue,
        recurring_revenue_ratio=_ratio(recurring_revenue, total_revenue + recurring_revenue),
    )
