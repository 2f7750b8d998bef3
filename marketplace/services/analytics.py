"""
Advisory analytics over listings, favorites, inquiries and recorded events.

The scoring functions are plain arithmetic over rows that were already
loaded; nothing computed here gates access or changes stored data.
"""

from typing import Optional, List, Dict, Any, Sequence, Tuple
from datetime import datetime, timedelta, timezone
from collections import defaultdict
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from marketplace.repositories.property import PropertyRepository
from marketplace.repositories.inquiry import InquiryRepository
from marketplace.repositories.activity import AnalyticsEventRepository, FavoriteRepository
from marketplace.models.property import Property, PropertyType, PropertyStatus
from marketplace.models.activity import AnalyticsEventType
from marketplace.models.user import User
from marketplace.schemas.analytics import (
    AnalyticsType,
    AnalyticsPeriod,
    MarketTrendPoint,
    MarketTrendsResult,
    PricePrediction,
    PricePredictionResult,
    UserBehavior,
    UserBehaviorResult,
    PropertyPerformance,
    PropertyPerformanceResult,
    DemandAnalysis,
    DemandAnalysisResult,
)
from marketplace.services.audit import AuditLogger
from marketplace.utils.exceptions import UpstreamError
import math
import logging

logger = logging.getLogger(__name__)

# Start of the "all" window
ANALYTICS_EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)

PERIOD_DAYS = {
    AnalyticsPeriod.WEEK: 7,
    AnalyticsPeriod.MONTH: 30,
    AnalyticsPeriod.QUARTER: 90,
    AnalyticsPeriod.YEAR: 365,
}

DAILY_PERIODS = (AnalyticsPeriod.WEEK, AnalyticsPeriod.MONTH)

LOW_VIEWS_TIP = "Increase property visibility through better photos and descriptions"
LOW_FAVORITES_TIP = "Consider price adjustments or property improvements"
LOW_INQUIRIES_TIP = "Enhance property listing with virtual tours or detailed floor plans"


def calculate_date_range(period: AnalyticsPeriod, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    end = now or datetime.now(timezone.utc)
    if period == AnalyticsPeriod.ALL:
        return ANALYTICS_EPOCH, end
    return end - timedelta(days=PERIOD_DAYS[period]), end


def bucket_key(created_at: datetime, period: AnalyticsPeriod) -> str:
    if period in DAILY_PERIODS:
        return created_at.strftime("%Y-%m-%d")
    return created_at.strftime("%Y-%m")


def days_between(start: datetime, end: datetime) -> int:
    """Whole days, rounded up."""
    return max(0, math.ceil((end - start).total_seconds() / 86400))


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def demand_score(views: Sequence[int], favorites: Sequence[int], inquiries: Sequence[int]) -> float:
    """Weighted demand in [0, 1] from average views, favorites and inquiries."""
    view_score = min(_mean(views) / 100, 1)
    favorite_score = min(_mean(favorites) / 20, 1)
    inquiry_score = min(_mean(inquiries) / 10, 1)
    return view_score * 0.4 + favorite_score * 0.4 + inquiry_score * 0.2


def supply_score(property_count: int, average_price: float) -> float:
    count_score = min(property_count / 50, 1)
    price_score = min(average_price / 1_000_000, 1) if average_price > 0 else 0.5
    return count_score * 0.6 + price_score * 0.4


def supply_gap(property_count: int, demand: float) -> float:
    return max(0.0, demand - min(property_count / 100, 1))


def price_change_percentage(prices: Sequence[float]) -> float:
    """Change from the first to the last price, in chronological order."""
    if len(prices) < 2 or prices[0] == 0:
        return 0.0
    return (prices[-1] - prices[0]) / prices[0] * 100


def engagement_score(searches: int, favorites: int, views: int) -> float:
    search_points = min(searches * 10, 40)
    favorite_points = min(favorites * 15, 30)
    view_points = min(views * 0.5, 30)
    return min(100, search_points + favorite_points + view_points)


def conversion_likelihood(searches: int, favorites: int, views: int) -> float:
    if searches == 0:
        return 0.1

    engagement_rate = (favorites + views) / searches
    base = 0.3

    if engagement_rate > 5:
        return min(0.9, base + 0.4)
    if engagement_rate > 2:
        return min(0.7, base + 0.3)
    if engagement_rate > 1:
        return min(0.5, base + 0.2)
    return base


def performance_score(views: int, favorites: int, inquiries: int) -> float:
    return min(views * 2, 30) + min(favorites * 5, 30) + min(inquiries * 10, 40)


def market_position(score: float) -> str:
    if score >= 70:
        return "high"
    if score <= 30:
        return "low"
    return "medium"


def market_opportunity(demand: float, gap: float) -> str:
    if demand > 0.7 and gap > 0.3:
        return "high"
    if demand < 0.3 or gap < 0.1:
        return "low"
    return "medium"


def predict_price(
    current_price: float,
    market_trend: float,
    area_demand: float,
    views: int,
    favorites: int
) -> Dict[str, Any]:
    """
    Heuristic price prediction.

    Args:
        current_price: Listing price
        market_trend: Price change percentage of comparable listings
        area_demand: Demand score of comparable listings
        views: Views of the listing
        favorites: Favorites of the listing

    Returns:
        Dictionary with predicted_price, confidence_score, factors and trend_direction
    """
    predicted = current_price
    confidence = 0.7
    factors: List[str] = []

    if market_trend > 0:
        predicted *= 1.05
        factors.append("Positive market trend")
        confidence += 0.1
    elif market_trend < 0:
        predicted *= 0.95
        factors.append("Negative market trend")
        confidence -= 0.1

    if area_demand > 0.7:
        predicted *= 1.03
        factors.append("High demand area")
        confidence += 0.1

    if views > 100 and favorites > 10:
        predicted *= 1.02
        factors.append("High property engagement")
        confidence += 0.05

    if predicted > current_price * 1.02:
        direction = "up"
    elif predicted < current_price * 0.98:
        direction = "down"
    else:
        direction = "stable"

    return {
        "predicted_price": round(predicted),
        "confidence_score": min(0.95, max(0.3, confidence)),
        "factors": factors,
        "trend_direction": direction,
    }


def _price(property_obj: Property) -> float:
    return float(property_obj.price) if isinstance(property_obj.price, Decimal) else property_obj.price


class AnalyticsService:
    """Builds the typed analytics results and the seller dashboard overview."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.property_repo = PropertyRepository(db_session)
        self.inquiry_repo = InquiryRepository(db_session)
        self.event_repo = AnalyticsEventRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)
        self.audit = AuditLogger(db_session)

    async def generate(
        self,
        analytics_type: AnalyticsType,
        period: AnalyticsPeriod,
        current_user: User,
        location: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        limit: int = 100
    ):
        """
        Compute one analytics result.

        Raises:
            UpstreamError: If the underlying data cannot be loaded
        """
        start, end = calculate_date_range(period)
        timestamp = datetime.now(timezone.utc)

        try:
            if analytics_type == AnalyticsType.MARKET_TRENDS:
                data = await self._market_trends(start, period, location, property_type)
                return MarketTrendsResult(period=period, timestamp=timestamp, data=data)

            if analytics_type == AnalyticsType.PRICE_PREDICTION:
                data = await self._price_predictions(start, location, property_type, limit)
                return PricePredictionResult(period=period, timestamp=timestamp, data=data)

            if analytics_type == AnalyticsType.USER_BEHAVIOR:
                data = await self._user_behavior(current_user, start)
                return UserBehaviorResult(period=period, timestamp=timestamp, data=data)

            if analytics_type == AnalyticsType.PROPERTY_PERFORMANCE:
                data = await self._property_performance(start, location, property_type, limit)
                return PropertyPerformanceResult(period=period, timestamp=timestamp, data=data)

            data = await self._demand_analysis(start, location, property_type)
            return DemandAnalysisResult(period=period, timestamp=timestamp, data=data)
        except Exception as e:
            logger.error(f"Failed to generate {analytics_type.value} analytics for {period.value}: {e}")
            raise UpstreamError("Failed to generate analytics")

    async def seller_overview(self, current_user: User, period: AnalyticsPeriod) -> Dict[str, Any]:
        """
        Totals for the caller's listings and inquiries in the window, with the
        change against the preceding window of the same length.
        """
        start, end = calculate_date_range(period)
        previous_start = start - (end - start)
        seller_id = current_user.id

        try:
            total, active, views = await self.property_repo.count_for_seller(seller_id, start, end)
            inquiries, responded = await self.inquiry_repo.count_for_seller(seller_id, start, end)
            _, _, previous_views = await self.property_repo.count_for_seller(seller_id, previous_start, start)
            previous_inquiries, _ = await self.inquiry_repo.count_for_seller(seller_id, previous_start, start)
        except Exception as e:
            logger.error(f"Failed to load seller analytics for {seller_id}: {e}")
            raise UpstreamError("Failed to generate analytics")

        response_rate = responded / inquiries * 100 if inquiries else 0.0
        views_change = (views - previous_views) / previous_views * 100 if previous_views else 0.0
        inquiries_change = (
            (inquiries - previous_inquiries) / previous_inquiries * 100 if previous_inquiries else 0.0
        )

        await self.audit.log(seller_id, "view_analytics", "analytics", None, {"period": period.value})

        return {
            "period": period.value,
            "start_date": start,
            "end_date": end,
            "overview": {
                "total_properties": total,
                "active_properties": active,
                "total_views": views,
                "total_inquiries": inquiries,
                "response_rate": round(response_rate, 2),
            },
            "trends": {
                "views_change_percent": round(views_change, 2),
                "inquiries_change_percent": round(inquiries_change, 2),
            },
        }

    # Data loading

    async def _load(
        self,
        start: datetime,
        statuses: Sequence[PropertyStatus],
        location: Optional[str],
        property_type: Optional[PropertyType],
        limit: Optional[int] = None
    ) -> Tuple[List[Property], Dict, Dict]:
        properties = await self.property_repo.list_for_analytics(
            start, statuses, location=location, property_type=property_type, limit=limit
        )
        ids = [p.id for p in properties]
        favorites = await self.favorite_repo.count_by_property(ids)
        inquiries = await self.inquiry_repo.count_by_property(ids)
        return properties, favorites, inquiries

    # Result builders

    async def _market_trends(
        self,
        start: datetime,
        period: AnalyticsPeriod,
        location: Optional[str],
        property_type: Optional[PropertyType]
    ) -> List[MarketTrendPoint]:
        # Sold listings are included so that sales and days on market are counted
        properties, favorites, inquiries = await self._load(
            start, [PropertyStatus.ACTIVE, PropertyStatus.SOLD], location, property_type
        )

        buckets: Dict[str, List[Property]] = defaultdict(list)
        for property_obj in properties:
            buckets[bucket_key(property_obj.created_at, period)].append(property_obj)

        points = []
        for key in sorted(buckets):
            group = buckets[key]
            prices = [_price(p) for p in group]
            average_price = _mean(prices)
            sold = [p for p in group if p.status == PropertyStatus.SOLD]

            days_on_market = 0
            if sold:
                total_days = sum(days_between(p.created_at, p.updated_at) for p in sold)
                days_on_market = round(total_days / len(sold))

            points.append(MarketTrendPoint(
                period=key,
                average_price=round(average_price),
                price_change_percentage=price_change_percentage(prices),
                properties_sold=len(sold),
                days_on_market=days_on_market,
                demand_score=demand_score(
                    [p.views_count for p in group],
                    [favorites.get(p.id, 0) for p in group],
                    [inquiries.get(p.id, 0) for p in group],
                ),
                supply_score=supply_score(len(group), average_price),
            ))

        return points

    async def _price_predictions(
        self,
        start: datetime,
        location: Optional[str],
        property_type: Optional[PropertyType],
        limit: int
    ) -> List[PricePrediction]:
        properties, favorites, inquiries = await self._load(
            start, [PropertyStatus.ACTIVE], location, property_type
        )

        # Comparable listings share city and property type
        groups: Dict[Tuple[str, str], List[Property]] = defaultdict(list)
        for property_obj in properties:
            groups[(property_obj.city, property_obj.property_type.value)].append(property_obj)

        market: Dict[Tuple[str, str], Tuple[float, float]] = {}
        for key, group in groups.items():
            market[key] = (
                price_change_percentage([_price(p) for p in group]),
                demand_score(
                    [p.views_count for p in group],
                    [favorites.get(p.id, 0) for p in group],
                    [inquiries.get(p.id, 0) for p in group],
                ),
            )

        predictions = []
        for property_obj in properties[:limit]:
            trend, area_demand = market[(property_obj.city, property_obj.property_type.value)]
            current_price = _price(property_obj)
            predictions.append(PricePrediction(
                property_id=str(property_obj.id),
                current_price=current_price,
                **predict_price(
                    current_price,
                    trend,
                    area_demand,
                    property_obj.views_count,
                    favorites.get(property_obj.id, 0),
                )
            ))

        return predictions

    async def _user_behavior(self, current_user: User, start: datetime) -> UserBehavior:
        events = await self.event_repo.list_for_user(current_user.id, since=start)
        favorites = await self.favorite_repo.list_for_user(current_user.id, since=start)

        searches = [e for e in events if e.event_type == AnalyticsEventType.SEARCH_PERFORMED.value]
        views = [e for e in events if e.event_type == AnalyticsEventType.PROPERTY_VIEWED.value]

        return UserBehavior(
            user_id=str(current_user.id),
            search_patterns=[
                {"search_criteria": e.details, "created_at": e.created_at.isoformat()} for e in searches
            ],
            favorite_properties=[str(f.property_id) for f in favorites],
            view_history=[
                {"property_id": str(e.property_id), "created_at": e.created_at.isoformat()} for e in views
            ],
            engagement_score=engagement_score(len(searches), len(favorites), len(views)),
            conversion_likelihood=conversion_likelihood(len(searches), len(favorites), len(views)),
        )

    async def _property_performance(
        self,
        start: datetime,
        location: Optional[str],
        property_type: Optional[PropertyType],
        limit: int
    ) -> List[PropertyPerformance]:
        properties, favorites, inquiries = await self._load(
            start, [PropertyStatus.ACTIVE], location, property_type, limit=limit
        )

        results = []
        for property_obj in properties:
            views = property_obj.views_count
            favorite_count = favorites.get(property_obj.id, 0)
            inquiry_count = inquiries.get(property_obj.id, 0)
            score = performance_score(views, favorite_count, inquiry_count)

            recommendations = []
            if views < 50:
                recommendations.append(LOW_VIEWS_TIP)
            if favorite_count < 5:
                recommendations.append(LOW_FAVORITES_TIP)
            if inquiry_count < 2:
                recommendations.append(LOW_INQUIRIES_TIP)

            results.append(PropertyPerformance(
                property_id=str(property_obj.id),
                views_count=views,
                favorites_count=favorite_count,
                inquiries_count=inquiry_count,
                performance_score=score,
                market_position=market_position(score),
                recommendations=recommendations,
            ))

        return results

    async def _demand_analysis(
        self,
        start: datetime,
        location: Optional[str],
        property_type: Optional[PropertyType]
    ) -> List[DemandAnalysis]:
        properties, favorites, inquiries = await self._load(
            start, [PropertyStatus.ACTIVE], location, property_type
        )

        groups: Dict[Tuple[str, str], List[Property]] = defaultdict(list)
        for property_obj in properties:
            groups[(property_obj.city, property_obj.property_type.value)].append(property_obj)

        results = []
        for (city, type_value), group in groups.items():
            # Group totals, not per-listing averages
            demand = demand_score(
                [sum(p.views_count for p in group)],
                [sum(favorites.get(p.id, 0) for p in group)],
                [sum(inquiries.get(p.id, 0) for p in group)],
            )
            gap = supply_gap(len(group), demand)

            results.append(DemandAnalysis(
                location=city,
                property_type=type_value,
                demand_score=demand,
                supply_gap=gap,
                price_trend=price_change_percentage([_price(p) for p in group]),
                market_opportunity=market_opportunity(demand, gap),
            ))

        return results
