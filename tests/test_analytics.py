"""
Analytics tests: the scoring formulas and the analytics endpoints.
"""

import pytest
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from httpx import AsyncClient
from fastapi import status

from marketplace.models.user import User
from marketplace.models.property import PropertyStatus
from marketplace.schemas.analytics import AnalyticsPeriod
from marketplace.services.analytics import (
    ANALYTICS_EPOCH,
    LOW_VIEWS_TIP,
    LOW_FAVORITES_TIP,
    calculate_date_range,
    bucket_key,
    demand_score,
    supply_score,
    supply_gap,
    price_change_percentage,
    engagement_score,
    conversion_likelihood,
    performance_score,
    market_position,
    market_opportunity,
    predict_price
)
from tests.conftest import PropertyFactory, InquiryFactory, auth_headers

API = "/api/v1"


class TestScoringFormulas:
    """Pure scoring helpers."""

    def test_date_ranges(self):
        now = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)

        assert calculate_date_range(AnalyticsPeriod.WEEK, now) == (now - timedelta(days=7), now)
        assert calculate_date_range(AnalyticsPeriod.YEAR, now) == (now - timedelta(days=365), now)
        assert calculate_date_range(AnalyticsPeriod.ALL, now) == (ANALYTICS_EPOCH, now)

    def test_bucket_keys(self):
        created = datetime(2026, 3, 5, 8, 30)

        assert bucket_key(created, AnalyticsPeriod.MONTH) == "2026-03-05"
        assert bucket_key(created, AnalyticsPeriod.QUARTER) == "2026-03"

    def test_demand_score(self):
        assert demand_score([], [], []) == 0
        assert demand_score([100], [20], [10]) == pytest.approx(1.0)
        assert demand_score([50], [10], [5]) == pytest.approx(0.5)
        # Each component is capped
        assert demand_score([10000], [0], [0]) == pytest.approx(0.4)

    def test_supply_score(self):
        assert supply_score(0, 0) == pytest.approx(0.2)
        assert supply_score(50, 2_000_000) == pytest.approx(1.0)
        assert supply_score(25, 500_000) == pytest.approx(0.5)

    def test_supply_gap_and_opportunity(self):
        assert supply_gap(10, 0.5) == pytest.approx(0.4)
        assert supply_gap(200, 0.5) == 0

        assert market_opportunity(0.8, 0.4) == "high"
        assert market_opportunity(0.2, 0.5) == "low"
        assert market_opportunity(0.5, 0.05) == "low"
        assert market_opportunity(0.5, 0.2) == "medium"

    def test_price_change(self):
        assert price_change_percentage([100, 120, 150]) == pytest.approx(50.0)
        assert price_change_percentage([100]) == 0
        assert price_change_percentage([0, 100]) == 0

    def test_engagement_score_is_capped(self):
        assert engagement_score(1, 1, 1) == pytest.approx(25.5)
        assert engagement_score(10, 10, 100) == 100

    def test_conversion_likelihood(self):
        assert conversion_likelihood(0, 10, 10) == pytest.approx(0.1)
        assert conversion_likelihood(1, 5, 5) == pytest.approx(0.7)
        assert conversion_likelihood(2, 3, 2) == pytest.approx(0.6)
        assert conversion_likelihood(2, 2, 1) == pytest.approx(0.5)
        assert conversion_likelihood(4, 1, 1) == pytest.approx(0.3)

    def test_performance_score_and_position(self):
        assert performance_score(1, 1, 1) == 17
        assert performance_score(100, 100, 100) == 100

        assert market_position(70) == "high"
        assert market_position(30) == "low"
        assert market_position(50) == "medium"

    def test_predict_price_rising_market(self):
        result = predict_price(100000, 5.0, 0.8, 150, 20)

        assert result["predicted_price"] == round(100000 * 1.05 * 1.03 * 1.02)
        assert result["confidence_score"] == pytest.approx(0.95)
        assert result["trend_direction"] == "up"
        assert result["factors"] == ["Positive market trend", "High demand area", "High property engagement"]

    def test_predict_price_falling_market(self):
        result = predict_price(100000, -3.0, 0.1, 0, 0)

        assert result["predicted_price"] == 95000
        assert result["confidence_score"] == pytest.approx(0.6)
        assert result["trend_direction"] == "down"

    def test_predict_price_flat_market(self):
        result = predict_price(100000, 0.0, 0.5, 10, 1)

        assert result["predicted_price"] == 100000
        assert result["confidence_score"] == pytest.approx(0.7)
        assert result["factors"] == []
        assert result["trend_direction"] == "stable"


class TestAdvancedAnalyticsEndpoint:
    """GET /analytics/advanced"""

    @pytest.mark.asyncio
    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.get(f"{API}/analytics/advanced", params={"type": "market_trends"})
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_unknown_type_rejected(self, client: AsyncClient, buyer: User):
        response = await client.get(
            f"{API}/analytics/advanced", params={"type": "horoscope"}, headers=auth_headers(buyer)
        )
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_market_trends_include_sold_listings(
        self, client: AsyncClient, db_session, seller: User, buyer: User
    ):
        await PropertyFactory.create_property(db_session, seller.id, price=Decimal("200000"))
        await PropertyFactory.create_property(db_session, seller.id, price=Decimal("300000"))
        await PropertyFactory.create_property(
            db_session, seller.id, price=Decimal("400000"), status=PropertyStatus.SOLD
        )
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING)

        response = await client.get(
            f"{API}/analytics/advanced", params={"type": "market_trends"}, headers=auth_headers(buyer)
        )

        assert response.status_code == status.HTTP_200_OK
        result = response.json()
        assert result["type"] == "market_trends"
        assert result["period"] == "30d"
        assert len(result["data"]) == 1
        point = result["data"][0]
        assert point["average_price"] == 300000
        assert point["properties_sold"] == 1
        assert point["supply_score"] == pytest.approx(supply_score(3, 300000))

    @pytest.mark.asyncio
    async def test_price_prediction(self, client: AsyncClient, db_session, active_property, buyer: User):
        response = await client.get(
            f"{API}/analytics/advanced", params={"type": "price_prediction"}, headers=auth_headers(buyer)
        )

        result = response.json()
        assert result["type"] == "price_prediction"
        prediction = result["data"][0]
        assert prediction["property_id"] == str(active_property.id)
        assert prediction["current_price"] == 250000
        assert 0.3 <= prediction["confidence_score"] <= 0.95

    @pytest.mark.asyncio
    async def test_user_behavior_reflects_activity(
        self, client: AsyncClient, active_property, buyer: User
    ):
        headers = auth_headers(buyer)
        await client.get(f"{API}/properties", params={"city": "Accra"}, headers=headers)
        await client.get(f"{API}/properties/{active_property.id}", headers=headers)
        await client.post(f"{API}/properties/{active_property.id}/favorite", headers=headers)

        response = await client.get(
            f"{API}/analytics/advanced", params={"type": "user_behavior"}, headers=headers
        )

        data = response.json()["data"]
        assert data["user_id"] == str(buyer.id)
        assert len(data["search_patterns"]) == 1
        assert data["search_patterns"][0]["search_criteria"]["city"] == "Accra"
        assert data["view_history"][0]["property_id"] == str(active_property.id)
        assert data["favorite_properties"] == [str(active_property.id)]
        assert data["engagement_score"] == pytest.approx(25.5)
        assert data["conversion_likelihood"] == pytest.approx(0.5)

    @pytest.mark.asyncio
    async def test_property_performance_recommendations(
        self, client: AsyncClient, db_session, seller: User, buyer: User
    ):
        popular = await PropertyFactory.create_property(db_session, seller.id, views_count=60)

        response = await client.get(
            f"{API}/analytics/advanced", params={"type": "property_performance"}, headers=auth_headers(buyer)
        )

        entry = response.json()["data"][0]
        assert entry["property_id"] == str(popular.id)
        assert entry["performance_score"] == 30
        assert entry["market_position"] == "low"
        assert LOW_VIEWS_TIP not in entry["recommendations"]
        assert LOW_FAVORITES_TIP in entry["recommendations"]

    @pytest.mark.asyncio
    async def test_demand_analysis_location_filter(
        self, client: AsyncClient, db_session, seller: User, buyer: User
    ):
        await PropertyFactory.create_property(db_session, seller.id, city="Accra")
        await PropertyFactory.create_property(db_session, seller.id, city="Kumasi")

        response = await client.get(
            f"{API}/analytics/advanced",
            params={"type": "demand_analysis", "location": "kumasi", "period": "all"},
            headers=auth_headers(buyer)
        )

        data = response.json()["data"]
        assert [entry["location"] for entry in data] == ["Kumasi"]
        assert data[0]["property_type"] == "house"
        assert data[0]["market_opportunity"] == "low"


class TestSellerAnalytics:
    """GET /seller/analytics"""

    @pytest.mark.asyncio
    async def test_overview(self, client: AsyncClient, db_session, seller: User, other_seller: User):
        listing = await PropertyFactory.create_property(db_session, seller.id, views_count=5)
        await PropertyFactory.create_property(db_session, seller.id, status=PropertyStatus.PENDING, views_count=3)
        await PropertyFactory.create_property(db_session, other_seller.id, views_count=40)
        answered = await InquiryFactory.create_inquiry(db_session, listing.id)
        await InquiryFactory.create_inquiry(db_session, listing.id)
        headers = auth_headers(seller)

        await client.post(f"{API}/seller/inquiries", json={
            "inquiry_id": str(answered.id), "response_message": "Happy to arrange a viewing.",
        }, headers=headers)

        response = await client.get(f"{API}/seller/analytics", params={"period": "7d"}, headers=headers)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["period"] == "7d"
        assert data["overview"] == {
            "total_properties": 2,
            "active_properties": 1,
            "total_views": 8,
            "total_inquiries": 2,
            "response_rate": 50.0,
        }
        assert data["trends"] == {"views_change_percent": 0.0, "inquiries_change_percent": 0.0}

    @pytest.mark.asyncio
    async def test_buyer_forbidden(self, client: AsyncClient, buyer: User):
        response = await client.get(f"{API}/seller/analytics", headers=auth_headers(buyer))
        assert response.status_code == status.HTTP_403_FORBIDDEN
