"""
Tests for analytics API endpoints.
"""

from datetime import datetime
from decimal import Decimal

from money_flow.models import Order, OrderStatus


def add_order(db_session, at):
    db_session.add(Order(
        total_amount=Decimal("75.00"),
        status=OrderStatus.PENDING,
        created_at=at,
    ))
    db_session.commit()


class TestCompare:

    def test_revenue_comparison(self, client):
        client.post("/money-flow", json={
            "type": "IN", "amount": "100.00", "description": "Sale",
            "occurred_at": "2025-03-02T10:00:00",
        })
        client.post("/money-flow", json={
            "type": "IN", "amount": "150.00", "description": "Sale",
            "occurred_at": "2025-03-03T10:00:00",
        })

        response = client.get("/analytics/compare", params={
            "metric": "revenue",
            "start": "2025-03-03T00:00:00",
            "end": "2025-03-04T00:00:00",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["metric"] == "revenue"
        assert Decimal(str(data["current"])) == Decimal("150")
        assert Decimal(str(data["previous"])) == Decimal("100")
        assert data["percent_delta"] == 50.0
        assert data["previous_start"] == "2025-03-02T00:00:00"

    def test_orders_comparison(self, client, db_session):
        add_order(db_session, datetime(2025, 3, 2, 9, 0))
        add_order(db_session, datetime(2025, 3, 2, 9, 30))
        add_order(db_session, datetime(2025, 3, 3, 9, 0))

        response = client.get("/analytics/compare", params={
            "metric": "orders",
            "start": "2025-03-03T00:00:00",
            "end": "2025-03-04T00:00:00",
        })

        data = response.json()
        assert data["current"] == 1
        assert data["previous"] == 2
        assert data["percent_delta"] == -50.0

    def test_unknown_metric_returns_400(self, client):
        response = client.get("/analytics/compare", params={
            "metric": "profit",
            "start": "2025-03-03T00:00:00",
            "end": "2025-03-04T00:00:00",
        })
        assert response.status_code == 400

    def test_inverted_range_returns_400(self, client):
        response = client.get("/analytics/compare", params={
            "metric": "orders",
            "start": "2025-03-04T00:00:00",
            "end": "2025-03-03T00:00:00",
        })
        assert response.status_code == 400


class TestAnalyticsSummary:

    def test_summary_for_date_range(self, client, db_session):
        add_order(db_session, datetime(2025, 3, 11, 14, 0))

        response = client.post("/analytics", json={
            "start_date": "2025-03-10",
            "end_date": "2025-03-11",
        })

        assert response.status_code == 200
        data = response.json()
        assert data["start"] == "2025-03-10T00:00:00"
        assert data["end"] == "2025-03-12T00:00:00"
        assert data["total_orders"] == 1
        assert data["total_orders_vs_percent"] == 100.0
        assert data["new_customers"] == 0
        assert data["new_customers_vs_percent"] == 0.0
        assert data["active_products"] == 0
        assert data["top_products"] == []
        assert data["category_performance"] == []

    def test_default_window(self, client):
        response = client.post("/analytics", json={})
        assert response.status_code == 200

    def test_start_after_end_returns_400(self, client):
        response = client.post("/analytics", json={
            "start_date": "2025-03-12",
            "end_date": "2025-03-10",
        })
        assert response.status_code == 400
