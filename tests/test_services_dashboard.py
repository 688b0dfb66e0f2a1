"""
test_services_dashboard.py — Tests for pipeline metrics and chart series

Called by: pytest
Depends on: bidtracker/services/dashboard_service.py, routers/charts.py
"""

from datetime import date, datetime

import pytest

from bidtracker.errors import ValidationError
from bidtracker.services import dashboard_service
from bidtracker.services.access_policy import STANDARD_POLICY

POLICY = STANDARD_POLICY


# ── Metrics ──────────────────────────────────────────────────────────


class TestMetrics:
    def test_counts(self, db_session, test_company, manager_user, bid_factory):
        bid_factory(
            test_company,
            manager_user,
            scopes=(("A", 100, "Won"), ("B", 40, "Lost"), ("C", 25, "Pending")),
        )
        bid_factory(
            test_company,
            manager_user,
            bid_status="Archived",
            scopes=(("D", 500, "Won"), ("E", 10, "Pending")),
        )
        m = dashboard_service.get_metrics(db_session, manager_user, POLICY)
        assert m["activePipelineValue"] == 35
        assert m["pendingCount"] == 2
        assert m["totalValueWonActiveBids"] == 100
        assert m["activeWonCount"] == 1
        assert m["activeLostCount"] == 1
        assert m["activeWinLossRatio"] == 0.5

    def test_no_resolved_scopes_ratio_zero(self, db_session, test_company, manager_user, bid_factory):
        bid_factory(test_company, manager_user, scopes=(("A", 10, "Pending"),))
        assert dashboard_service.get_metrics(db_session, manager_user, POLICY)["activeWinLossRatio"] == 0

    def test_user_sees_own_bids_only(self, db_session, test_bid, test_company, other_user, bid_factory):
        bid_factory(test_company, other_user, scopes=(("X", 1000, "Pending"),))
        m = dashboard_service.get_metrics(db_session, test_bid.owner, POLICY)
        assert m["activePipelineValue"] == 50


# ── Range ────────────────────────────────────────────────────────────


class TestResolveRange:
    def test_defaults_to_last_twelve_months(self):
        assert dashboard_service.resolve_range(None, None, today=date(2025, 3, 15)) == (
            date(2024, 4, 1),
            date(2025, 3, 15),
        )

    def test_single_bound(self):
        start, end = dashboard_service.resolve_range(date(2025, 1, 1), None, today=date(2025, 3, 15))
        assert (start, end) == (date(2025, 1, 1), date(2025, 3, 15))

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            dashboard_service.resolve_range(date(2025, 5, 1), date(2025, 4, 1))


# ── Series ───────────────────────────────────────────────────────────


@pytest.fixture()
def spread_bids(test_company, manager_user, bid_factory):
    bid_factory(
        test_company,
        manager_user,
        proposal_date=date(2025, 1, 20),
        scopes=(("Concrete", 300, "Won"), ("Steel", 100, "Lost")),
    )
    bid_factory(
        test_company,
        manager_user,
        proposal_date=date(2025, 3, 2),
        scopes=(("Concrete", 50, "Won"), ("Glass", 400, "Won")),
    )
    # No proposal date: dated by creation
    bid_factory(
        test_company,
        manager_user,
        created_at=datetime(2025, 1, 5, 10, 0),
        scopes=(("Steel", 20, "Won"),),
    )
    # Outside the range
    bid_factory(test_company, manager_user, proposal_date=date(2024, 12, 31), scopes=(("Glass", 999, "Won"),))


class TestSeries:
    def test_bids_over_time_zero_fills(self, db_session, manager_user, spread_bids):
        rows = dashboard_service.bids_over_time(
            db_session, manager_user, POLICY, date(2025, 1, 1), date(2025, 3, 31)
        )
        assert rows == [
            {"month": "2025-01", "count": 2},
            {"month": "2025-02", "count": 0},
            {"month": "2025-03", "count": 1},
        ]

    def test_value_over_time(self, db_session, manager_user, spread_bids):
        rows = dashboard_service.value_over_time(
            db_session, manager_user, POLICY, date(2025, 1, 1), date(2025, 3, 31)
        )
        assert [r["total"] for r in rows] == [420, 0, 450]

    def test_scope_totals_won_only_largest_first(self, db_session, manager_user, spread_bids):
        rows = dashboard_service.scope_totals(
            db_session, manager_user, POLICY, date(2025, 1, 1), date(2025, 3, 31)
        )
        assert rows == [
            {"scope": "Glass", "total": 400},
            {"scope": "Concrete", "total": 350},
            {"scope": "Steel", "total": 20},
        ]


# ── Router ───────────────────────────────────────────────────────────


class TestChartsRouter:
    def test_metrics(self, client, test_bid):
        resp = client.get("/api/charts/metrics")
        assert resp.status_code == 200
        assert resp.json()["activePipelineValue"] == 50

    def test_bids_over_with_range(self, client, test_bid):
        resp = client.get("/api/charts/bids-over", params={"start": "2025-06-01", "end": "07/31/2025"})
        assert resp.json() == [{"month": "2025-06", "count": 1}, {"month": "2025-07", "count": 0}]

    def test_bad_date_400(self, client):
        assert client.get("/api/charts/value-over", params={"start": "31-31-2025"}).status_code == 400

    def test_inverted_range_400(self, client):
        resp = client.get("/api/charts/scope-totals", params={"start": "2025-05-01", "end": "2025-04-01"})
        assert resp.status_code == 400
