"""FastAPI application for the Communications Service."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.middleware import add_observability_middleware
from services.communications_service.routers import email_router


def create_app() -> FastAPI:
    """Create and configure the Communications Service FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title=f"{settings.BRAND_NAME} Communications Service",
        version="0.1.0",
        description="Order notification emails (the send-email function).",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
    )

    add_observability_middleware(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "communications"}

    app.include_router(email_router)

    return app


app = create_app()
