"""HTML hand-off pages returned to the browser after a gateway callback.

The gateway POSTs the callback from the customer's browser, so a plain 302
would not reach the frontend reliably; we answer with a page that redirects.
"""

import json
from html import escape
from typing import Optional
from urllib.parse import quote

from fastapi.responses import HTMLResponse
from libs.common.config import get_settings
from services.payments_service.models import CallbackOutcome, PaymentStatus

# outcome -> (frontend path, title, message)
_PAGES = {
    CallbackOutcome.SUCCESS: ("success", "Payment Success", "Payment successful!"),
    CallbackOutcome.FAIL: ("fail", "Payment Failed", "Payment failed!"),
    CallbackOutcome.CANCEL: ("unsuccessfull", "Payment Cancelled", "Payment cancelled!"),
}


def page_outcome(status: PaymentStatus, requested: CallbackOutcome) -> CallbackOutcome:
    """Result page to show once a callback has been applied (or ignored)."""
    if status == PaymentStatus.COMPLETED:
        return CallbackOutcome.SUCCESS
    if status in (PaymentStatus.FAILED, PaymentStatus.CANCELLED) and requested == CallbackOutcome.SUCCESS:
        return CallbackOutcome.FAIL
    return CallbackOutcome(requested)


def frontend_result_url(outcome: CallbackOutcome, transaction_id: Optional[str] = None) -> str:
    path, _, _ = _PAGES[CallbackOutcome(outcome)]
    url = f"{get_settings().FRONTEND_URL.rstrip('/')}/payment/{path}"
    if transaction_id:
        url += f"?tran_id={quote(transaction_id, safe='')}"
    return url


def redirect_page(
    outcome: CallbackOutcome,
    transaction_id: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render a page that sends the browser to the frontend result page."""
    _, title, message = _PAGES[CallbackOutcome(outcome)]
    url = frontend_result_url(outcome, transaction_id)
    html_url = escape(url, quote=True)
    js_url = json.dumps(url).replace("</", "<\\/")

    content = f"""<!DOCTYPE html>
<html>
  <head>
    <title>{title}</title>
    <meta http-equiv="refresh" content="0;url={html_url}">
    <script>window.location.href = {js_url};</script>
  </head>
  <body>
    <p>{message} Redirecting...</p>
    <p>If you are not redirected, <a href="{html_url}">click here</a>.</p>
  </body>
</html>
"""
    return HTMLResponse(content=content, status_code=status_code)
