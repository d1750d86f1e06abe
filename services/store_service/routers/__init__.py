"""Store service routers package."""

from services.store_service.routers.account import router as account_router
from services.store_service.routers.admin_catalog import router as admin_catalog_router
from services.store_service.routers.admin_coupons import router as admin_coupons_router
from services.store_service.routers.admin_customers import (
    router as admin_customers_router,
)
from services.store_service.routers.admin_orders import router as admin_orders_router
from services.store_service.routers.auth import router as auth_router
from services.store_service.routers.cart import router as cart_router
from services.store_service.routers.catalog import router as catalog_router
from services.store_service.routers.checkout import router as checkout_router

__all__ = [
    "account_router",
    "admin_catalog_router",
    "admin_coupons_router",
    "admin_customers_router",
    "admin_orders_router",
    "auth_router",
    "cart_router",
    "catalog_router",
    "checkout_router",
]
