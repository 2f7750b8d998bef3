"""
Seller dashboard overview.
"""

from fastapi import APIRouter, Depends, status, Query

from marketplace.models.user import User
from marketplace.services.analytics import AnalyticsService
from marketplace.schemas.analytics import AnalyticsPeriod, SellerAnalyticsResponse
from marketplace.schemas.error import get_error_responses
from marketplace.utils.dependencies import require_seller, get_analytics_service
from marketplace.utils.permissions import READ_OWN_ANALYTICS


router = APIRouter(prefix="/seller/analytics", tags=["Seller Portal"])


@router.get(
    "",
    response_model=SellerAnalyticsResponse,
    status_code=status.HTTP_200_OK,
    summary="My analytics overview",
    description="Listing, view and inquiry totals with the change against the previous window",
    responses=get_error_responses(401, 403, 500)
)
async def get_seller_analytics(
    period: AnalyticsPeriod = Query(AnalyticsPeriod.MONTH),
    current_user: User = Depends(require_seller(READ_OWN_ANALYTICS)),
    analytics_service: AnalyticsService = Depends(get_analytics_service)
) -> SellerAnalyticsResponse:
    result = await analytics_service.seller_overview(current_user, period)
    return SellerAnalyticsResponse.model_validate(result)
