import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from soluly.unified import (
    UnifiedView,
    feature_row,
    merge_rows,
    quote_row,
    search_rows,
    sentiment_from_priority,
    ticket_row,
    unified_listing,
)

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_ticket(title, category="feature", status="open", priority="medium", minutes_ago=0):
    return SimpleNamespace(
        id=uuid.uuid4(),
        display_id="TKT-001",
        title=title,
        description=None,
        status=status,
        created_at=NOW - timedelta(minutes=minutes_ago),
        priority=priority,
        category=category,
        project_name="Website",
        assignee_name=None,
    )


def make_feature(title, minutes_ago=0):
    return SimpleNamespace(
        id=uuid.uuid4(),
        display_id="FR-001",
        title=title,
        description="Requested by the client",
        status="backlog",
        created_at=NOW - timedelta(minutes=minutes_ago),
        priority="high",
        estimated_hours=4.0,
        estimated_cost=None,
        added_to_roadmap=False,
        requested_by="Dana",
        client_name="Globex",
        project_names=["Website"],
    )


def make_quote(title, status, value, minutes_ago=0):
    return SimpleNamespace(
        id=uuid.uuid4(),
        display_id="QTE-001",
        title=title,
        description=None,
        status=status,
        created_at=NOW - timedelta(minutes=minutes_ago),
        company_name="Initech",
        contact_name="Bill",
        value=value,
        stage=0,
        valid_until=None,
    )


def test_merge_rows_newest_first():
    older = feature_row(make_feature("Older", minutes_ago=10))
    newer = ticket_row(make_ticket("Newer", minutes_ago=1))
    merged = merge_rows([older], [newer])
    assert [r.title for r in merged] == ["Newer", "Older"]


def test_merge_rows_accepts_naive_datetimes():
    naive = make_ticket("Naive")
    naive.created_at = datetime(2024, 6, 2)
    merged = merge_rows([feature_row(make_feature("Aware"))], [ticket_row(naive)])
    assert merged[0].title == "Naive"


def test_features_tabs_and_counts():
    listing = unified_listing(
        UnifiedView.FEATURES,
        [feature_row(make_feature("Dark mode"))],
        [ticket_row(make_ticket("Export button"))],
    )
    assert listing.tab == "all"
    assert len(listing.rows) == 2
    assert listing.counts == {"all": 2, "feature_requests": 1, "tickets": 1}

    only_requests = unified_listing(
        UnifiedView.FEATURES,
        [feature_row(make_feature("Dark mode"))],
        [ticket_row(make_ticket("Export button"))],
        tab="feature_requests",
    )
    assert [r.source for r in only_requests.rows] == ["feature_request"]


def test_search_applies_before_counts():
    listing = unified_listing(
        UnifiedView.FEATURES,
        [feature_row(make_feature("Dark mode"))],
        [ticket_row(make_ticket("Export button"))],
        search="DARK",
    )
    assert [r.title for r in listing.rows] == ["Dark mode"]
    assert listing.counts["all"] == 1
    assert listing.counts["tickets"] == 0


def test_search_matches_ticket_project_name():
    rows = search_rows([ticket_row(make_ticket("Crash"))], "website")
    assert len(rows) == 1


def test_unknown_tab_raises():
    with pytest.raises(ValueError, match="Unknown tab"):
        unified_listing(UnifiedView.FEEDBACK, [], [], tab="won")


def test_feedback_tickets_get_derived_sentiment():
    row = ticket_row(make_ticket("Slow", category="feedback", priority="high"), with_sentiment=True)
    assert row.sentiment == "negative"
    assert sentiment_from_priority("low") == "positive"
    assert sentiment_from_priority(None) == "neutral"

    listing = unified_listing(UnifiedView.FEEDBACK, [], [row])
    assert listing.counts["negative"] == 1
    assert listing.counts["tickets"] == 1


def test_quote_tabs_place_decided_quotes_once():
    quotes = [
        quote_row(make_quote("Open", "sent", 1000)),
        quote_row(make_quote("Won", "accepted", 5000)),
        quote_row(make_quote("Lost", "rejected", 200)),
    ]
    active = unified_listing(UnifiedView.QUOTES, quotes, [])
    assert active.tab == "active"
    assert [r.title for r in active.rows] == ["Open"]
    assert active.counts["won"] == 1
    assert active.counts["lost"] == 1
    assert active.counts["pipeline_value"] == 1000
    assert active.counts["won_value"] == 5000

    won = unified_listing(UnifiedView.QUOTES, quotes, [], tab="won")
    assert [r.title for r in won.rows] == ["Won"]


def test_quote_view_shows_open_tickets_as_active():
    tickets = [
        ticket_row(make_ticket("Need a quote", category="quote")),
        ticket_row(make_ticket("Closed quote ask", category="quote", status="closed")),
    ]
    listing = unified_listing(UnifiedView.QUOTES, [], tickets)
    assert [r.title for r in listing.rows] == ["Need a quote"]


def mixed_feature_rows():
    features = [feature_row(make_feature(f"Request {i}", minutes_ago=i * 7)) for i in range(4)]
    tickets = [
        ticket_row(make_ticket(f"Ticket {i}", minutes_ago=i * 5, status="closed" if i % 2 else "open"))
        for i in range(3)
    ]
    return features, tickets


def test_merge_keeps_every_row_and_its_source():
    features, tickets = mixed_feature_rows()
    merged = merge_rows(features, tickets)

    assert len(merged) == len(features) + len(tickets)
    assert sum(1 for r in merged if r.source == "feature_request") == 4
    assert sum(1 for r in merged if r.source == "ticket") == 3
    assert {r.id for r in merged} == {r.id for r in features + tickets}
    stamps = [r.created_at for r in merged]
    assert stamps == sorted(stamps, reverse=True)


def test_search_is_idempotent():
    features, tickets = mixed_feature_rows()
    merged = merge_rows(features, tickets)

    once = search_rows(merged, "request")
    assert [r.id for r in search_rows(once, "request")] == [r.id for r in once]
    assert len(once) == 4
    assert search_rows(merged, "  ") == merged


@pytest.mark.parametrize("search", [None, "ticket", "website", "nothing matches"])
def test_every_tab_is_a_subset_of_all(search):
    features, tickets = mixed_feature_rows()
    everything = unified_listing(UnifiedView.FEATURES, features, tickets, search=search)
    all_ids = {r.id for r in everything.rows}

    for tab in ("feature_requests", "tickets"):
        listing = unified_listing(UnifiedView.FEATURES, features, tickets, tab=tab, search=search)
        assert {r.id for r in listing.rows} <= all_ids
        assert listing.counts[tab] == len(listing.rows)
    assert everything.counts["all"] == len(everything.rows)
    assert everything.counts["feature_requests"] + everything.counts["tickets"] == everything.counts["all"]
