"""Unified views: domain records and category-tagged tickets as one list.

The feature request, feedback and quote pages each show their own table
together with the tickets filed under the matching category. Rows are
built by pure mapping functions into a tagged union discriminated by
``source``; merging, tab filtering and searching never touch the database.
"""

import enum
import uuid
from datetime import date, datetime, timezone
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


def _value(field: Any) -> Any:
    """Unwrap enum members to their plain value."""
    if isinstance(field, enum.Enum):
        return field.value
    return field


class BaseRow(BaseModel):
    """Fields shared by every unified row."""
    id: uuid.UUID
    display_id: str
    title: str
    description: Optional[str] = None
    status: str
    created_at: datetime
    priority: Optional[str] = None

    def search_fields(self) -> Tuple[Optional[str], ...]:
        return (self.title, self.description, self.display_id)


class FeatureRow(BaseRow):
    source: Literal["feature_request"] = "feature_request"
    estimated_hours: Optional[float] = None
    estimated_cost: Optional[float] = None
    added_to_roadmap: bool = False
    requested_by: Optional[str] = None
    client_name: Optional[str] = None
    project_names: List[str] = []

    def search_fields(self) -> Tuple[Optional[str], ...]:
        return super().search_fields() + (self.requested_by, self.client_name)


class FeedbackRow(BaseRow):
    source: Literal["feedback"] = "feedback"
    sentiment: str
    category: Optional[str] = None
    channel: Optional[str] = None  # email / call / support
    from_contact: Optional[str] = None
    project_name: Optional[str] = None

    def search_fields(self) -> Tuple[Optional[str], ...]:
        return super().search_fields() + (self.from_contact, self.project_name)


class QuoteRow(BaseRow):
    source: Literal["quote"] = "quote"
    company_name: Optional[str] = None
    contact_name: Optional[str] = None
    value: float = 0
    stage: int = 0
    valid_until: Optional[date] = None

    def search_fields(self) -> Tuple[Optional[str], ...]:
        return super().search_fields() + (self.company_name, self.contact_name)


class TicketRow(BaseRow):
    source: Literal["ticket"] = "ticket"
    category: str
    project_name: Optional[str] = None
    assignee_name: Optional[str] = None
    sentiment: Optional[str] = None  # derived in feedback views only

    def search_fields(self) -> Tuple[Optional[str], ...]:
        return super().search_fields() + (self.project_name, self.assignee_name)


UnifiedRow = Annotated[
    Union[FeatureRow, FeedbackRow, QuoteRow, TicketRow],
    Field(discriminator="source"),
]


# --- Mapping ---

def sentiment_from_priority(priority: Any) -> str:
    """Display-only sentiment for feedback tickets, which carry none of their own."""
    value = _value(priority)
    if value == "high":
        return "negative"
    if value == "low":
        return "positive"
    return "neutral"


def feature_row(record: Any) -> FeatureRow:
    return FeatureRow(
        id=record.id,
        display_id=record.display_id,
        title=record.title,
        description=record.description,
        status=_value(record.status),
        created_at=record.created_at,
        priority=_value(record.priority),
        estimated_hours=record.estimated_hours,
        estimated_cost=record.estimated_cost,
        added_to_roadmap=bool(record.added_to_roadmap),
        requested_by=record.requested_by,
        client_name=record.client_name,
        project_names=list(getattr(record, "project_names", None) or []),
    )


def feedback_row(record: Any) -> FeedbackRow:
    return FeedbackRow(
        id=record.id,
        display_id=record.display_id,
        title=record.title,
        description=record.description,
        status=_value(record.status),
        created_at=record.created_at,
        sentiment=_value(record.sentiment),
        category=_value(record.category),
        channel=_value(record.source),
        from_contact=record.from_contact,
        project_name=getattr(record, "project_name", None),
    )


def quote_row(record: Any) -> QuoteRow:
    return QuoteRow(
        id=record.id,
        display_id=record.display_id,
        title=record.title,
        description=record.description,
        status=_value(record.status),
        created_at=record.created_at,
        company_name=record.company_name,
        contact_name=record.contact_name,
        value=record.value or 0,
        stage=record.stage or 0,
        valid_until=record.valid_until,
    )


def ticket_row(record: Any, with_sentiment: bool = False) -> TicketRow:
    return TicketRow(
        id=record.id,
        display_id=record.display_id,
        title=record.title,
        description=record.description,
        status=_value(record.status),
        created_at=record.created_at,
        priority=_value(record.priority),
        category=_value(record.category),
        project_name=getattr(record, "project_name", None),
        assignee_name=getattr(record, "assignee_name", None),
        sentiment=sentiment_from_priority(record.priority) if with_sentiment else None,
    )


# --- Merge / filter / search ---

def _sort_key(row: BaseRow) -> datetime:
    # SQLite hands back naive datetimes; treat them as UTC
    if row.created_at.tzinfo is None:
        return row.created_at.replace(tzinfo=timezone.utc)
    return row.created_at


def merge_rows(domain_rows: Iterable[BaseRow], ticket_rows: Iterable[BaseRow]) -> List[BaseRow]:
    """Concatenate both row sets, newest first."""
    return sorted([*domain_rows, *ticket_rows], key=_sort_key, reverse=True)


class UnifiedView(str, enum.Enum):
    FEATURES = "features"
    FEEDBACK = "feedback"
    QUOTES = "quotes"


VIEW_TABS: Dict[UnifiedView, Tuple[str, ...]] = {
    UnifiedView.FEATURES: ("all", "feature_requests", "tickets"),
    UnifiedView.FEEDBACK: ("all", "feedback", "tickets"),
    UnifiedView.QUOTES: ("active", "won", "lost"),
}

DEFAULT_TAB = {
    UnifiedView.FEATURES: "all",
    UnifiedView.FEEDBACK: "all",
    UnifiedView.QUOTES: "active",
}

# Domain tab name -> row source
DOMAIN_TAB_SOURCES = {
    "feature_requests": "feature_request",
    "feedback": "feedback",
    "quotes": "quote",
}

OPEN_QUOTE_VALUES = ("draft", "sent", "negotiating")


def _in_tab(row: BaseRow, tab: str) -> bool:
    source = row.source
    if tab == "all":
        return True
    if tab == "tickets":
        return source == "ticket"
    if tab in DOMAIN_TAB_SOURCES:
        return source == DOMAIN_TAB_SOURCES[tab]
    if tab == "active":
        if source == "ticket":
            return row.status != "closed"
        return source == "quote" and row.status in OPEN_QUOTE_VALUES
    if tab == "won":
        return source == "quote" and row.status == "accepted"
    if tab == "lost":
        return source == "quote" and row.status == "rejected"
    raise ValueError(f"Unknown tab '{tab}'")


def filter_by_tab(rows: Iterable[BaseRow], tab: str) -> List[BaseRow]:
    """Keep the rows shown under ``tab``. Raises ValueError for unknown tabs."""
    return [row for row in rows if _in_tab(row, tab)]


def search_rows(rows: Iterable[BaseRow], text: Optional[str]) -> List[BaseRow]:
    """Case-insensitive substring search over each row's identifying fields."""
    needle = (text or "").strip().lower()
    if not needle:
        return list(rows)
    return [
        row for row in rows
        if any(needle in field.lower() for field in row.search_fields() if field)
    ]


def view_counts(view: UnifiedView, rows: List[BaseRow]) -> Dict[str, float]:
    """Per-tab counts plus the summary figures each page shows above its list."""
    counts: Dict[str, float] = {tab: len(filter_by_tab(rows, tab)) for tab in VIEW_TABS[view]}

    if view == UnifiedView.FEEDBACK:
        for sentiment in ("positive", "neutral", "negative"):
            counts[sentiment] = sum(1 for row in rows if getattr(row, "sentiment", None) == sentiment)
    elif view == UnifiedView.QUOTES:
        quotes = [row for row in rows if row.source == "quote"]
        counts["pipeline_value"] = sum(
            row.value for row in quotes if row.status in OPEN_QUOTE_VALUES
        )
        counts["won_value"] = sum(row.value for row in quotes if row.status == "accepted")

    return counts


class UnifiedListing(BaseModel):
    """One page of a unified view: the visible rows plus the tab counts."""
    view: UnifiedView
    tab: str
    search: Optional[str] = None
    rows: List[UnifiedRow]
    counts: Dict[str, float]


def unified_listing(
    view: UnifiedView,
    domain_rows: Iterable[BaseRow],
    ticket_rows: Iterable[BaseRow],
    tab: Optional[str] = None,
    search: Optional[str] = None,
) -> UnifiedListing:
    """Merge, search, then filter by tab. Counts cover every tab of the searched rows."""
    tab = tab or DEFAULT_TAB[view]
    if tab not in VIEW_TABS[view]:
        raise ValueError(f"Unknown tab '{tab}' for {view.value}")

    rows = search_rows(merge_rows(domain_rows, ticket_rows), search)
    return UnifiedListing(
        view=view,
        tab=tab,
        search=search,
        rows=filter_by_tab(rows, tab),
        counts=view_counts(view, rows),
    )
