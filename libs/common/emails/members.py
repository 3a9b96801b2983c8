"""
Member application status notifications.
"""
from html import escape
from typing import Literal, Optional

from libs.common.config import get_settings
from libs.common.emails.core import send_email

STATUS_LABELS = {
    # Application statuses
    "pending_approval": "Pending Approval",
    "approved": "Approved",
    "rejected": "Rejected",
    # Payment statuses
    "pending": "Pending",
    "completed": "Completed",
    "pending_verification": "Pending Verification",
    "failed": "Failed",
    "cancelled": "Cancelled",
}

GREEN = "#4CAF50"
AMBER = "#FF9800"
RED = "#f44336"

# status -> (colour, headline, follow-up)
APPLICATION_MESSAGES = {
    "approved": (
        GREEN,
        "Congratulations! Your membership application has been approved.",
        "We are delighted to welcome you as a member.",
    ),
    "rejected": (
        RED,
        "Your membership application has been rejected.",
        "If you have any questions or concerns, please contact our support team.",
    ),
    "pending_approval": (
        AMBER,
        "Your application is currently under review.",
        "We will notify you once the review process is complete.",
    ),
}

PAYMENT_MESSAGES = {
    "completed": (
        GREEN,
        "Your payment has been successfully processed.",
        "Thank you for your payment. Your application is now being reviewed.",
    ),
    "pending_verification": (
        AMBER,
        "Your payment is pending verification.",
        "We are reviewing your payment documents. You will be notified once verified.",
    ),
    "failed": (
        RED,
        "Your payment could not be processed.",
        "Please contact our support team for assistance or try again.",
    ),
    "cancelled": (
        RED,
        "Your payment has been cancelled.",
        "If this was unintentional, please contact our support team.",
    ),
    "pending": (
        AMBER,
        "Your payment is pending.",
        "Please complete your payment to proceed with the application.",
    ),
}


def _details_lines(member_type: Optional[str], amount: Optional[float], transaction_id: Optional[str]) -> list[str]:
    lines = []
    if member_type:
        lines.append(
            "Member Type: " + ("Lifetime Member" if member_type == "lifetime" else "Donor")
        )
    if amount:
        lines.append(f"Amount: ৳{amount:,.0f}")
    if transaction_id:
        lines.append(f"Transaction ID: {transaction_id}")
    return lines


async def send_member_status_email(
    to_email: str,
    applicant_name: str,
    status_type: Literal["application", "payment"],
    status: str,
    member_type: Optional[str] = None,
    amount: Optional[float] = None,
    transaction_id: Optional[str] = None,
) -> bool:
    """
    Notify an applicant that their application or payment status changed.
    """
    org = get_settings().ORG_NAME
    label = STATUS_LABELS.get(status, status)
    is_application = status_type == "application"
    messages = APPLICATION_MESSAGES if is_application else PAYMENT_MESSAGES
    colour, headline, follow_up = messages.get(status, (GREEN, "", ""))

    kind = "Application" if is_application else "Payment"
    subject = f"{org} - {kind} Status Update: {label}"
    details = _details_lines(member_type, amount, transaction_id)

    details_text = ""
    if details:
        details_text = "Application Details:\n" + "\n".join(details) + "\n\n"

    body = f"""{org} - {kind} Status Update

Dear {applicant_name},

{headline}

Status: {label}

{follow_up}

{details_text}If you have any questions or need assistance, please don't hesitate to contact our support team.

Best regards,
{org} Team

---
This is an automated email. Please do not reply to this message.
"""

    details_html = ""
    if details:
        items = "".join(f"<p>{escape(line)}</p>" for line in details)
        details_html = (
            '<div class="details-box"><h3 style="margin-top: 0;">Application Details:</h3>'
            f"{items}</div>"
        )

    html_body = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; margin: 0; padding: 0; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: #4CAF50; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; background-color: #f9f9f9; }}
        .status-box {{ background-color: #fff; border-left: 4px solid {colour}; padding: 15px; margin: 20px 0; }}
        .status-label {{ color: {colour}; font-size: 18px; font-weight: bold; margin-bottom: 10px; }}
        .details-box {{ background-color: #fff; border: 1px solid #ddd; padding: 15px; margin: 20px 0; border-radius: 4px; }}
        .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>{escape(org)}</h1></div>
        <div class="content">
            <p>Dear {escape(applicant_name)},</p>
            <p>{headline}</p>
            <div class="status-box">
                <div class="status-label">Status: {label}</div>
                <p>{follow_up}</p>
            </div>
            {details_html}
            <p>If you have any questions or need assistance, please don't hesitate to contact our support team.</p>
            <p>Best regards,<br>{escape(org)} Team</p>
        </div>
        <div class="footer"><p>This is an automated email. Please do not reply to this message.</p></div>
    </div>
</body>
</html>
"""

    return await send_email(to_email, subject, body, html_body)
