"""
Pydantic schemas for advisory analytics.
Each analytics type has its own result model; the `type` field selects it.
"""

from pydantic import BaseModel, Field
from typing import Annotated, Any, Dict, List, Literal, Union
from datetime import datetime
import enum


class AnalyticsType(str, enum.Enum):
    MARKET_TRENDS = "market_trends"
    PRICE_PREDICTION = "price_prediction"
    USER_BEHAVIOR = "user_behavior"
    PROPERTY_PERFORMANCE = "property_performance"
    DEMAND_ANALYSIS = "demand_analysis"


class AnalyticsPeriod(str, enum.Enum):
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"
    YEAR = "1y"
    ALL = "all"


Opportunity = Literal["high", "medium", "low"]


class MarketTrendPoint(BaseModel):
    """Aggregates for one time bucket."""

    period: str = Field(..., description="Bucket key: YYYY-MM-DD for 7d/30d, YYYY-MM otherwise")
    average_price: float
    price_change_percentage: float
    properties_sold: int
    days_on_market: int
    demand_score: float
    supply_score: float


class PricePrediction(BaseModel):
    property_id: str
    current_price: float
    predicted_price: float
    confidence_score: float = Field(..., ge=0.3, le=0.95)
    factors: List[str]
    trend_direction: Literal["up", "down", "stable"]


class UserBehavior(BaseModel):
    user_id: str
    search_patterns: List[Dict[str, Any]]
    favorite_properties: List[str]
    view_history: List[Dict[str, Any]]
    engagement_score: float = Field(..., ge=0, le=100)
    conversion_likelihood: float = Field(..., ge=0, le=1)


class PropertyPerformance(BaseModel):
    property_id: str
    views_count: int
    favorites_count: int
    inquiries_count: int
    performance_score: float = Field(..., ge=0, le=100)
    market_position: Opportunity
    recommendations: List[str]


class DemandAnalysis(BaseModel):
    location: str
    property_type: str
    demand_score: float
    supply_gap: float
    price_trend: float
    market_opportunity: Opportunity


class _AnalyticsResultBase(BaseModel):
    period: AnalyticsPeriod
    timestamp: datetime
    generated_by: str = "advanced_analytics_engine"


class MarketTrendsResult(_AnalyticsResultBase):
    type: Literal["market_trends"] = "market_trends"
    data: List[MarketTrendPoint]


class PricePredictionResult(_AnalyticsResultBase):
    type: Literal["price_prediction"] = "price_prediction"
    data: List[PricePrediction]


class UserBehaviorResult(_AnalyticsResultBase):
    type: Literal["user_behavior"] = "user_behavior"
    data: UserBehavior


class PropertyPerformanceResult(_AnalyticsResultBase):
    type: Literal["property_performance"] = "property_performance"
    data: List[PropertyPerformance]


class DemandAnalysisResult(_AnalyticsResultBase):
    type: Literal["demand_analysis"] = "demand_analysis"
    data: List[DemandAnalysis]


AnalyticsResult = Annotated[
    Union[
        MarketTrendsResult,
        PricePredictionResult,
        UserBehaviorResult,
        PropertyPerformanceResult,
        DemandAnalysisResult,
    ],
    Field(discriminator="type"),
]


class SellerAnalyticsOverview(BaseModel):
    total_properties: int
    active_properties: int
    total_views: int
    total_inquiries: int
    response_rate: float = Field(..., description="Percentage of inquiries with a response")


class SellerAnalyticsTrends(BaseModel):
    views_change_percent: float
    inquiries_change_percent: float


class SellerAnalyticsResponse(BaseModel):
    """Seller dashboard totals compared with the preceding window of equal length."""

    period: str
    start_date: datetime
    end_date: datetime
    overview: SellerAnalyticsOverview
    trends: SellerAnalyticsTrends
