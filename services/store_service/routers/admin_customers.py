"""Admin customers and dashboard router."""

from fastapi import APIRouter, Depends
from libs.db.session import get_async_db
from services.store_service.dependencies import require_admin
from services.store_service.models import Profile
from services.store_service.schemas import (
    CustomerResponse,
    DashboardResponse,
    OrderSummary,
    ProductSummary,
    ProfileResponse,
)
from services.store_service.services.order_admin import OrderAdminService
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["admin-store"])


@router.get("/customers", response_model=list[CustomerResponse])
async def list_customers(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Non-admin profiles with their order count and paid total."""
    summaries = await OrderAdminService(db).list_customers()
    return [
        CustomerResponse(
            profile=ProfileResponse.model_validate(summary.profile),
            order_count=summary.order_count,
            total_spent=summary.total_spent,
        )
        for summary in summaries
    ]


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    admin: Profile = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    stats = await OrderAdminService(db).dashboard()
    return DashboardResponse(
        total_orders=stats.total_orders,
        total_revenue=stats.total_revenue,
        pending_orders=stats.pending_orders,
        total_customers=stats.total_customers,
        total_products=stats.total_products,
        recent_orders=[OrderSummary.model_validate(o) for o in stats.recent_orders],
        low_stock_products=[
            ProductSummary.model_validate(p) for p in stats.low_stock_products
        ],
    )
