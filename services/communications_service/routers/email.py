"""
The ``send-email`` function.

Renders one of the order notification templates and delivers it through
Resend. Every invocation, including rejected ones, is written to
``email_logs``.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import JSONResponse
from libs.common.config import get_settings
from libs.common.emails.core import EmailDeliveryError, send_email
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.communications_service.models import (
    EmailLog,
    EmailStatus,
    OrderEmailType,
)
from services.communications_service.templates.store import render_order_email
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(prefix="/functions/v1", tags=["email"])


async def require_function_key(
    authorization: Optional[str] = Header(None),
    apikey: Optional[str] = Header(None),
) -> None:
    """Callers present the anon or service-role key as bearer or ``apikey``."""
    settings = get_settings()
    allowed = {settings.SUPABASE_ANON_KEY, settings.SUPABASE_SERVICE_ROLE_KEY}
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization[7:].strip()
    if token not in allowed and apikey not in allowed:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid function key",
        )


async def _log(
    db: AsyncSession,
    status_: EmailStatus,
    email_type: Any = None,
    order: Optional[dict[str, Any]] = None,
    subject: Optional[str] = None,
    provider_id: Optional[str] = None,
    error: Optional[str] = None,
) -> None:
    order = order or {}
    db.add(
        EmailLog(
            email_type=_text(email_type, 50),
            recipient=_text(order.get("customer_email"), 255),
            order_id=str(order["id"]) if order.get("id") else None,
            order_number=_text(order.get("order_number"), 30),
            subject=subject,
            status=status_,
            provider_id=provider_id,
            error=error,
        )
    )
    await db.commit()


def _text(value: Any, limit: int) -> Optional[str]:
    """Payload values as they fit the log columns."""
    if value is None or value == "":
        return None
    return str(value)[:limit]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"success": False, "error": message}
    )


@router.post("/send-email")
async def send_order_email(
    request: Request,
    _: None = Depends(require_function_key),
    db: AsyncSession = Depends(get_async_db),
):
    """
    Send an order notification.

    Body: ``{"type": <order email type>, "order": {...}}``. The order must
    carry ``customer_email`` and ``order_number``.
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    if not isinstance(payload, dict):
        await _log(db, EmailStatus.REJECTED, error="Invalid JSON body")
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid JSON body")

    email_type = payload.get("type")
    order = payload.get("order")
    if not email_type or not isinstance(order, dict) or not order:
        message = "Missing required fields: type and order"
        await _log(db, EmailStatus.REJECTED, email_type=email_type, error=message)
        return _error(status.HTTP_400_BAD_REQUEST, message)

    try:
        if not isinstance(email_type, str):
            raise ValueError(email_type)
        order_email_type = OrderEmailType(email_type)
    except ValueError:
        await _log(
            db,
            EmailStatus.REJECTED,
            email_type=email_type,
            order=order,
            error="Invalid email type",
        )
        return _error(status.HTTP_400_BAD_REQUEST, "Invalid email type")

    recipient = order.get("customer_email")
    if not recipient:
        message = "Order is missing customer_email"
        await _log(db, EmailStatus.REJECTED, email_type, order, error=message)
        return _error(status.HTTP_400_BAD_REQUEST, message)

    subject, html = render_order_email(order_email_type, order)
    try:
        data = await send_email(recipient, subject, html)
    except EmailDeliveryError as e:
        logger.error(f"Error sending {email_type} email to {recipient}: {e}")
        await _log(
            db, EmailStatus.FAILED, email_type, order, subject=subject, error=str(e)
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))

    await _log(
        db,
        EmailStatus.SENT,
        email_type,
        order,
        subject=subject,
        provider_id=data.get("id") if isinstance(data, dict) else None,
    )
    return {"success": True, "data": data}
