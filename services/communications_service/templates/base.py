"""
Shared branded email layout for SXO6LUXE.

Every order email is wrapped with `wrap_html()` so all messages share the
black wordmark header, the grey content panel and the footer. Helpers
render the common blocks (order detail box, item table, totals, CTA).

Usage:
    from services.communications_service.templates.base import wrap_html, detail_box, cta_button

    html = wrap_html(
        heading="Thank You for Your Order!",
        body_html="<p>Hi Ada,</p>" + detail_box({...}) + cta_button(...),
    )
"""

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from libs.common.config import get_settings
from libs.common.currency import format_usd, to_decimal

BRAND_BLACK = "#000"
DISCOUNT_GREEN = "#28a745"


def wrap_html(heading: str, body_html: str, preheader: str = "") -> str:
    """Wrap inner content in the branded SXO6LUXE layout.

    Args:
        heading: Title shown at the top of the content panel.
        body_html: The main email content (already-formatted HTML).
        preheader: Hidden preview text shown in inbox list view.
    """
    brand = get_settings().BRAND_NAME
    preheader_html = (
        '<span style="display:none;font-size:1px;line-height:1px;max-height:0;'
        f'max-width:0;opacity:0;overflow:hidden;">{preheader}</span>'
        if preheader
        else ""
    )
    year = datetime.now().year

    return f"""\
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{heading}</title>
</head>
<body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
    {preheader_html}
    <div style="background: {BRAND_BLACK}; color: #fff; padding: 30px; text-align: center;">
        <h1 style="margin: 0; font-size: 32px; letter-spacing: 2px;">{brand}</h1>
    </div>

    <div style="background: #f9f9f9; padding: 30px; border: 1px solid #eee;">
        <h2 style="color: {BRAND_BLACK}; margin-top: 0;">{heading}</h2>
        {body_html}
    </div>

    <div style="text-align: center; padding: 20px; color: #999; font-size: 12px;">
        <p>&copy; {year} {brand}. All rights reserved.</p>
    </div>
</body>
</html>"""


# ─── Value helpers ────────────────────────────────────────────────────


def amount(value: Any) -> Decimal:
    """Money fields arrive as JSON strings or numbers; missing or bad means 0."""
    if value is None or value == "":
        return Decimal("0")
    try:
        return to_decimal(value)
    except (InvalidOperation, TypeError):
        return Decimal("0")


def money(value: Any) -> str:
    return format_usd(amount(value))


# ─── Block helpers ────────────────────────────────────────────────────


def detail_box(items: dict[str, str]) -> str:
    """Render a white box of ``Label: value`` rows, skipping empty values."""
    rows = "".join(
        f"<p><strong>{label}:</strong> {value}</p>"
        for label, value in items.items()
        if value
    )
    return (
        '<div style="background: #fff; padding: 20px; margin: 20px 0; '
        f'border: 1px solid #eee;">{rows}</div>'
    )


def cta_button(label: str, url: str) -> str:
    """Render a centered black call-to-action button."""
    return (
        '<p style="text-align: center; margin-top: 30px;">'
        f'<a href="{url}" style="background: {BRAND_BLACK}; color: #fff; '
        "padding: 15px 30px; text-decoration: none; display: inline-block; "
        f'border-radius: 5px;">{label}</a></p>'
    )


def frontend_url(path: str) -> str:
    return f"{get_settings().FRONTEND_URL.rstrip('/')}{path}"
