"""FastAPI application for the Store Service."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.middleware import add_observability_middleware
from services.store_service.routers import (
    account_router,
    admin_catalog_router,
    admin_coupons_router,
    admin_customers_router,
    admin_orders_router,
    auth_router,
    cart_router,
    catalog_router,
    checkout_router,
)


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title=f"{settings.BRAND_NAME} Store Service",
        version="0.1.0",
        description="Storefront API - catalog, cart, checkout, orders, admin.",
    )

    # The guest cart cookie needs credentialed requests from the storefront
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    # Public store routes (catalog, cart, checkout, guest order lookup)
    app.include_router(catalog_router, prefix="/store")
    app.include_router(cart_router, prefix="/store")
    app.include_router(checkout_router, prefix="/store")

    # Auth and signed-in account routes
    app.include_router(auth_router, prefix="/auth")
    app.include_router(account_router, prefix="/account")

    # Admin routes (catalog, orders, coupons, customers, dashboard)
    app.include_router(admin_catalog_router, prefix="/admin/store")
    app.include_router(admin_orders_router, prefix="/admin/store")
    app.include_router(admin_coupons_router, prefix="/admin/store")
    app.include_router(admin_customers_router, prefix="/admin/store")

    return app


app = create_app()
