"""Report templates and the view-model builder.

``build_report`` maps a template id plus already-loaded collections to a
``ReportView``: a table (rows + columns) or chart data (``name``/``value``
pairs), with headline stats. It issues no queries; the reports controller
loads the collections first.
"""

import enum
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel

CHART_LIMIT = 10

ReportType = str  # table | bar | pie | line | select-project | project-detail


class ReportTemplate(BaseModel):
    id: str
    name: str
    description: str
    category: str


REPORT_TEMPLATES: List[ReportTemplate] = [
    ReportTemplate(id=t[0], name=t[1], description=t[2], category=t[3])
    for t in [
        # Projects
        ("projects-all", "All Projects", "Complete list of all projects", "projects"),
        ("projects-status", "Projects by Status", "Projects grouped by status", "projects"),
        ("projects-progress", "Project Progress", "Completion progress of projects", "projects"),
        ("projects-timeline", "Project Timeline", "Projects with start and end dates", "projects"),
        ("projects-budget", "Budget Overview", "Project budgets and spend", "projects"),
        ("project-detail", "Project Detail Report", "Comprehensive report for a single project", "projects"),
        # Contacts
        ("contacts-all", "All Contacts", "Complete list of all contacts", "contacts"),
        ("contacts-by-tag", "Contacts by Tag", "Contacts grouped by tags", "contacts"),
        ("contacts-by-company", "Contacts by Company", "Contacts organized by company", "contacts"),
        ("contacts-recent", "Recent Contacts", "Contacts added in the date range", "contacts"),
        ("contacts-growth", "Contact Growth", "Contact growth over time", "contacts"),
        # Leads
        ("leads-pipeline", "Lead Pipeline", "Overview of leads by status", "leads"),
        ("leads-by-status", "Leads by Status", "Lead breakdown by status", "leads"),
        ("leads-source", "Leads by Source", "Where your leads come from", "leads"),
        ("leads-recent", "Recent Leads", "Leads added in the date range", "leads"),
        # Clients
        ("clients-all", "All Clients", "Complete client list", "clients"),
        ("clients-by-industry", "Clients by Industry", "Client breakdown by industry", "clients"),
        ("clients-by-status", "Clients by Status", "Active vs inactive clients", "clients"),
        ("clients-revenue", "Client Revenue", "Revenue by client", "clients"),
        # Sales
        ("sales-pipeline", "Sales Pipeline", "Total pipeline value by stage", "sales"),
        ("sales-won-lost", "Won/Lost Analysis", "Win rate and deal analysis", "sales"),
        ("sales-quotes", "Quote Analysis", "Quote conversion and value", "sales"),
        # Activities
        ("activities-summary", "Activity Summary", "Overview of all activities", "activities"),
        ("activities-calls", "Call Report", "Call activities and outcomes", "activities"),
        ("activities-emails", "Email Report", "Email activity tracking", "activities"),
        ("activities-tasks", "Task Report", "Task completion and status", "activities"),
        # Team
        ("team-overview", "Team Overview", "Team member summary", "team"),
        ("team-by-department", "Team by Department", "Members grouped by department", "team"),
        ("team-by-role", "Team by Role", "Members grouped by role", "team"),
    ]
]

TEMPLATES_BY_ID: Dict[str, ReportTemplate] = {t.id: t for t in REPORT_TEMPLATES}


class Stat(BaseModel):
    label: str
    value: Union[int, float, str]


class ReportView(BaseModel):
    type: ReportType
    data: Optional[List[Dict[str, Any]]] = None
    columns: Optional[List[str]] = None
    stats: List[Stat] = []
    section_title: Optional[str] = None
    # Only set for project-detail
    project: Optional[Dict[str, Any]] = None

    @property
    def is_chart(self) -> bool:
        return self.type in ("bar", "pie", "line")


@dataclass
class ReportCollections:
    """Everything a report may read, loaded up front by the caller."""
    projects: List[Any] = field(default_factory=list)
    tickets: List[Any] = field(default_factory=list)
    contacts: List[Any] = field(default_factory=list)
    leads: List[Any] = field(default_factory=list)
    clients: List[Any] = field(default_factory=list)
    quotes: List[Any] = field(default_factory=list)
    activities: List[Any] = field(default_factory=list)
    team_members: List[Any] = field(default_factory=list)


class DateRange(BaseModel):
    """Calendar-day range, inclusive on both ends."""
    start: date
    end: date

    def contains(self, value: Any) -> bool:
        day = to_date(value)
        if day is None:
            return False
        return self.start <= day <= self.end


class ProjectReportOptions(BaseModel):
    """Sections included in the project detail report."""
    include_overview: bool = True
    include_timeline: bool = True
    include_budget: bool = True
    include_tickets: bool = True


def to_date(value: Any) -> Optional[date]:
    """Coerce a date, datetime or ISO string to a date; None when unparsable."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


# --- Formatting helpers ---

def _plain(value: Any) -> Any:
    if isinstance(value, enum.Enum):
        return value.value
    return value


def js_round(value: float) -> int:
    """Round half up, matching the dashboard's percentages."""
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def format_money(value: Optional[float]) -> str:
    value = value or 0
    if float(value).is_integer():
        return f"${int(value):,}"
    return f"${value:,.2f}"


def truncate(name: str, length: int) -> str:
    return name[:length] + "..." if len(name) > length else name


def group_counts(values: Iterable[Any]) -> List[Dict[str, Any]]:
    """Count occurrences, keeping first-seen order."""
    counts: Dict[Any, int] = OrderedDict()
    for value in values:
        counts[value] = counts.get(value, 0) + 1
    return [{"name": name, "value": count} for name, count in counts.items()]


def top_bars(items: Iterable[Dict[str, Any]], length: int) -> List[Dict[str, Any]]:
    """Truncate names, sort by value descending and keep the top ten."""
    bars = [{"name": truncate(str(i["name"]), length), "value": i["value"] or 0} for i in items]
    bars.sort(key=lambda b: b["value"], reverse=True)
    return bars[:CHART_LIMIT]


def _row(record: Any, columns: List[str]) -> Dict[str, Any]:
    return {col: _plain(getattr(record, col, None)) for col in columns}


def _named(obj: Any) -> Optional[Dict[str, Any]]:
    if obj is None:
        return None
    return {"id": str(obj.id), "name": obj.name}


def _count_status(records: Iterable[Any], status: str) -> int:
    return sum(1 for r in records if _plain(r.status) == status)


# --- Project reports ---

PROJECT_COLUMNS = ["display_id", "name", "status", "priority", "start_date", "end_date"]


def _projects_all(c: ReportCollections, **_) -> ReportView:
    projects = c.projects
    return ReportView(
        type="table",
        data=[_row(p, PROJECT_COLUMNS) for p in projects],
        columns=PROJECT_COLUMNS,
        stats=[
            Stat(label="Total Projects", value=len(projects)),
            Stat(label="Active", value=_count_status(projects, "active")),
            Stat(label="Completed", value=_count_status(projects, "completed")),
        ],
        section_title="Projects List",
    )


def _projects_status(c: ReportCollections, **_) -> ReportView:
    return ReportView(
        type="pie",
        data=group_counts(_plain(p.status) or "unknown" for p in c.projects),
        stats=[Stat(label="Total Projects", value=len(c.projects))],
    )


def _projects_progress(c: ReportCollections, **_) -> ReportView:
    projects = c.projects
    average = sum(p.progress or 0 for p in projects) / (len(projects) or 1)
    return ReportView(
        type="bar",
        data=top_bars(({"name": p.name, "value": p.progress or 0} for p in projects), 20),
        stats=[Stat(label="Avg Progress", value=f"{js_round(average)}%")],
    )


def _projects_timeline(c: ReportCollections, **_) -> ReportView:
    columns = ["display_id", "name", "status", "start_date", "end_date"]
    rows = [_row(p, columns) for p in c.projects if p.start_date or p.end_date]
    return ReportView(type="table", data=rows, columns=columns, section_title="Project Timeline")


def _projects_budget(c: ReportCollections, **_) -> ReportView:
    budgeted = [p for p in c.projects if p.budget and p.budget > 0]
    bars = top_bars(({"name": p.name, "value": p.budget} for p in budgeted), 25)
    total = sum(p.budget or 0 for p in c.projects)
    return ReportView(
        type="bar",
        data=bars,
        stats=[
            Stat(label="Total Budget", value=format_money(total)),
            Stat(label="Projects with Budget", value=len(bars)),
        ],
    )


def _project_detail(
    c: ReportCollections,
    project_id: Optional[str] = None,
    options: Optional[ProjectReportOptions] = None,
    **_,
) -> Optional[ReportView]:
    if not project_id:
        choices = [
            {"id": str(p.id), "display_id": p.display_id, "name": p.name}
            for p in c.projects
        ]
        return ReportView(type="select-project", data=choices)

    project = next((p for p in c.projects if str(p.id) == str(project_id)), None)
    if project is None:
        return None

    options = options or ProjectReportOptions()
    tickets = [t for t in c.tickets if str(t.project_id) == str(project.id)]
    ticket_columns = ["display_id", "title", "status", "priority"]

    summary: Dict[str, Any] = {
        "id": str(project.id),
        "display_id": project.display_id,
        "name": project.name,
        "status": _plain(project.status),
        "progress": project.progress or 0,
    }
    if options.include_overview:
        summary["description"] = project.description
        summary["client_name"] = project.client_name
    if options.include_timeline:
        summary["start_date"] = project.start_date
        summary["end_date"] = project.end_date
    if options.include_budget:
        summary["budget"] = project.budget
        summary["value"] = project.value

    budget = format_money(project.budget) if project.budget else "Not set"
    return ReportView(
        type="project-detail",
        data=[_row(t, ticket_columns) for t in tickets] if options.include_tickets else [],
        columns=ticket_columns,
        stats=[
            Stat(label="Status", value=_plain(project.status)),
            Stat(label="Progress", value=f"{project.progress or 0}%"),
            Stat(label="Budget", value=budget),
            Stat(label="Tickets", value=len(tickets)),
        ],
        section_title=project.name,
        project=summary,
    )


# --- Contact reports ---

def _contact_row(contact: Any, columns: List[str]) -> Dict[str, Any]:
    row = _row(contact, [col for col in columns if col != "company"])
    if "company" in columns:
        row["company"] = _named(contact.company)
    return row


def _contacts_all(c: ReportCollections, **_) -> ReportView:
    columns = ["display_id", "name", "email", "phone", "job_title", "company", "created_at"]
    return ReportView(
        type="table",
        data=[_contact_row(x, columns) for x in c.contacts],
        columns=columns,
        stats=[Stat(label="Total Contacts", value=len(c.contacts))],
        section_title="Contacts List",
    )


def _contacts_by_tag(c: ReportCollections, **_) -> ReportView:
    names = []
    for contact in c.contacts:
        tags = contact.tags
        if tags:
            names.extend(tag.name or "Unknown" for tag in tags)
        else:
            names.append("No Tags")
    return ReportView(type="pie", data=group_counts(names))


def _contacts_by_company(c: ReportCollections, **_) -> ReportView:
    counts = group_counts(
        contact.company.name if contact.company else "No Company" for contact in c.contacts
    )
    return ReportView(type="bar", data=top_bars(counts, 20))


def _contacts_recent(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    columns = ["display_id", "name", "email", "phone", "created_at"]
    recent = [x for x in c.contacts if date_range.contains(x.created_at)]
    return ReportView(
        type="table",
        data=[_row(x, columns) for x in recent],
        columns=columns,
        stats=[Stat(label="New Contacts", value=len(recent))],
        section_title="Recent Contacts",
    )


def _contacts_growth(c: ReportCollections, **_) -> ReportView:
    by_month: Dict[tuple, int] = {}
    for contact in c.contacts:
        day = to_date(contact.created_at)
        if day is None:
            continue
        key = (day.year, day.month)
        by_month[key] = by_month.get(key, 0) + 1
    data = [
        {"name": date(year, month, 1).strftime("%b %Y"), "value": count}
        for (year, month), count in sorted(by_month.items())
    ]
    return ReportView(type="line", data=data)


# --- Lead reports ---

def _leads_by_status(c: ReportCollections, **_) -> ReportView:
    return ReportView(
        type="pie",
        data=group_counts(_plain(lead.status) for lead in c.leads),
        stats=[Stat(label="Total Leads", value=len(c.leads))],
    )


def _leads_source(c: ReportCollections, **_) -> ReportView:
    return ReportView(type="bar", data=group_counts(lead.source or "Unknown" for lead in c.leads))


def _leads_recent(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    columns = ["display_id", "name", "contact_name", "contact_email", "status", "source", "created_at"]
    recent = [lead for lead in c.leads if date_range.contains(lead.created_at)]
    return ReportView(
        type="table",
        data=[_row(lead, columns) for lead in recent],
        columns=columns,
        stats=[Stat(label="New Leads", value=len(recent))],
        section_title="Recent Leads",
    )


# --- Client reports ---

def _total_revenue(clients: List[Any]) -> str:
    return format_money(sum(x.total_revenue or 0 for x in clients))


def _clients_all(c: ReportCollections, **_) -> ReportView:
    columns = ["display_id", "name", "contact_name", "industry", "status", "total_revenue"]
    return ReportView(
        type="table",
        data=[_row(x, columns) for x in c.clients],
        columns=columns,
        stats=[
            Stat(label="Total Clients", value=len(c.clients)),
            Stat(label="Total Revenue", value=_total_revenue(c.clients)),
        ],
        section_title="Clients List",
    )


def _clients_by_industry(c: ReportCollections, **_) -> ReportView:
    return ReportView(type="pie", data=group_counts(x.industry or "Unknown" for x in c.clients))


def _clients_by_status(c: ReportCollections, **_) -> ReportView:
    return ReportView(type="pie", data=group_counts(_plain(x.status) for x in c.clients))


def _clients_revenue(c: ReportCollections, **_) -> ReportView:
    earning = [x for x in c.clients if x.total_revenue and x.total_revenue > 0]
    return ReportView(
        type="bar",
        data=top_bars(({"name": x.name, "value": x.total_revenue} for x in earning), 20),
        stats=[Stat(label="Total Revenue", value=_total_revenue(c.clients))],
    )


# --- Sales reports ---

QUOTE_STAGES = ("draft", "sent", "negotiating", "accepted", "rejected")


def _sales_pipeline(c: ReportCollections, **_) -> ReportView:
    by_stage: Dict[str, float] = {stage: 0 for stage in QUOTE_STAGES}
    for quote in c.quotes:
        status = _plain(quote.status)
        by_stage[status] = by_stage.get(status, 0) + (quote.value or 0)
    total = sum(q.value or 0 for q in c.quotes)
    return ReportView(
        type="bar",
        data=[{"name": name, "value": value} for name, value in by_stage.items()],
        stats=[
            Stat(label="Total Pipeline", value=format_money(total)),
            Stat(label="Total Quotes", value=len(c.quotes)),
        ],
    )


def _sales_won_lost(c: ReportCollections, **_) -> ReportView:
    quotes = c.quotes
    won = [q for q in quotes if _plain(q.status) == "accepted"]
    lost = [q for q in quotes if _plain(q.status) == "rejected"]
    # Share of all quotes, pending ones included
    win_rate = js_round(len(won) / len(quotes) * 100) if quotes else 0
    return ReportView(
        type="pie",
        data=[
            {"name": "Won", "value": len(won)},
            {"name": "Lost", "value": len(lost)},
            {"name": "Pending", "value": len(quotes) - len(won) - len(lost)},
        ],
        stats=[
            Stat(label="Win Rate", value=f"{win_rate}%"),
            Stat(label="Won Value", value=format_money(sum(q.value or 0 for q in won))),
            Stat(label="Lost Value", value=format_money(sum(q.value or 0 for q in lost))),
        ],
    )


def _sales_quotes(c: ReportCollections, **_) -> ReportView:
    columns = ["display_id", "title", "client", "status", "value", "created_at"]
    rows = []
    for quote in c.quotes:
        row = _row(quote, [col for col in columns if col != "client"])
        row["client"] = _named(quote.client)
        rows.append(row)
    return ReportView(
        type="table",
        data=rows,
        columns=columns,
        stats=[
            Stat(label="Total Quotes", value=len(c.quotes)),
            Stat(label="Total Value", value=format_money(sum(q.value or 0 for q in c.quotes))),
        ],
        section_title="Quotes List",
    )


# --- Activity reports ---

def _of_type(activities: Iterable[Any], kind: str) -> List[Any]:
    return [a for a in activities if _plain(a.activity_type) == kind]


def _activities_summary(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    activities = [a for a in c.activities if date_range.contains(a.activity_date)]
    return ReportView(
        type="pie",
        data=group_counts(_plain(a.activity_type) for a in activities),
        stats=[Stat(label="Total Activities", value=len(activities))],
    )


def _activities_calls(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    calls = _of_type((a for a in c.activities if date_range.contains(a.activity_date)), "call")
    return ReportView(
        type="pie",
        data=group_counts((a.call_outcome or "unknown").replace("_", " ") for a in calls),
        stats=[Stat(label="Total Calls", value=len(calls))],
    )


def _activities_emails(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    emails = _of_type((a for a in c.activities if date_range.contains(a.activity_date)), "email")
    directions = {"sent": 0, "received": 0}
    for email in emails:
        direction = email.email_direction or "sent"
        directions[direction] = directions.get(direction, 0) + 1
    return ReportView(
        type="pie",
        data=[{"name": name, "value": count} for name, count in directions.items()],
        stats=[Stat(label="Total Emails", value=len(emails))],
    )


def _activities_tasks(c: ReportCollections, date_range: DateRange, **_) -> ReportView:
    tasks = _of_type((a for a in c.activities if date_range.contains(a.activity_date)), "task")
    statuses = [a.task_status or "pending" for a in tasks]
    return ReportView(
        type="pie",
        data=group_counts(s.replace("_", " ") for s in statuses),
        stats=[
            Stat(label="Total Tasks", value=len(tasks)),
            Stat(label="Completed", value=statuses.count("completed")),
        ],
    )


# --- Team reports ---

def _team_overview(c: ReportCollections, **_) -> ReportView:
    columns = ["name", "email", "department", "status"]
    return ReportView(
        type="table",
        data=[_row(m, columns) for m in c.team_members],
        columns=columns,
        stats=[
            Stat(label="Total Members", value=len(c.team_members)),
            Stat(label="Active", value=_count_status(c.team_members, "active")),
        ],
        section_title="Team Members",
    )


def _team_by_department(c: ReportCollections, **_) -> ReportView:
    return ReportView(
        type="pie",
        data=group_counts(m.department or "Unassigned" for m in c.team_members),
    )


def _team_by_role(c: ReportCollections, **_) -> ReportView:
    return ReportView(
        type="bar",
        data=group_counts(m.role or "Unassigned" for m in c.team_members),
    )


BUILDERS: Dict[str, Callable[..., Optional[ReportView]]] = {
    "projects-all": _projects_all,
    "projects-status": _projects_status,
    "projects-progress": _projects_progress,
    "projects-timeline": _projects_timeline,
    "projects-budget": _projects_budget,
    "project-detail": _project_detail,
    "contacts-all": _contacts_all,
    "contacts-by-tag": _contacts_by_tag,
    "contacts-by-company": _contacts_by_company,
    "contacts-recent": _contacts_recent,
    "contacts-growth": _contacts_growth,
    "leads-pipeline": _leads_by_status,
    "leads-by-status": _leads_by_status,
    "leads-source": _leads_source,
    "leads-recent": _leads_recent,
    "clients-all": _clients_all,
    "clients-by-industry": _clients_by_industry,
    "clients-by-status": _clients_by_status,
    "clients-revenue": _clients_revenue,
    "sales-pipeline": _sales_pipeline,
    "sales-won-lost": _sales_won_lost,
    "sales-quotes": _sales_quotes,
    "activities-summary": _activities_summary,
    "activities-calls": _activities_calls,
    "activities-emails": _activities_emails,
    "activities-tasks": _activities_tasks,
    "team-overview": _team_overview,
    "team-by-department": _team_by_department,
    "team-by-role": _team_by_role,
}


def build_report(
    template_id: str,
    collections: ReportCollections,
    date_range: DateRange,
    project_id: Optional[str] = None,
    options: Optional[ProjectReportOptions] = None,
) -> Optional[ReportView]:
    """Build the view for ``template_id``; None for an unknown template or project."""
    builder = BUILDERS.get(template_id)
    if builder is None:
        return None
    return builder(collections, date_range=date_range, project_id=project_id, options=options)
