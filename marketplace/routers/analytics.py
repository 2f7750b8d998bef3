"""
Advisory analytics endpoint.
"""

from fastapi import APIRouter, Depends, status, Query
from typing import Optional

from marketplace.models.user import User
from marketplace.models.property import PropertyType
from marketplace.services.analytics import AnalyticsService
from marketplace.schemas.analytics import AnalyticsType, AnalyticsPeriod, AnalyticsResult
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import get_current_user, get_analytics_service


router = APIRouter(prefix="/analytics", tags=["Analytics"])


@router.get(
    "/advanced",
    response_model=AnalyticsResult,
    status_code=status.HTTP_200_OK,
    summary="Advanced analytics",
    description=(
        "Market trends, price predictions, user behavior, property performance "
        "or demand analysis. The `type` field of the result tells which."
    ),
    responses=get_error_responses(400, 401, 500)
)
async def get_advanced_analytics(
    analytics_type: AnalyticsType = Query(..., alias="type"),
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH),
    location: Optional[str] = Query(None, max_length=255, description="City filter"),
    property_type: Optional[PropertyType] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
):
    """
    Compute one analytics result for the requested window.

    Results are advisory only and nothing is stored.
    """
    return await analytics_service.generate(
        analytics_type,
        period,
        current_user,
        location=location,
        property_type=property_type,
        limit=limit
    )
