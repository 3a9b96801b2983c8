"""
Donation-related email templates.
"""
from html import escape

from libs.common.config import get_settings
from libs.common.emails.core import send_email


async def send_password_email(
    to_email: str,
    password: str,
    full_name: str | None = None,
) -> bool:
    """
    Send login credentials to a donor whose account was created on payment.
    """
    org = get_settings().ORG_NAME
    display_name = full_name or "User"

    subject = f"Welcome to {org} - Your Account Credentials"

    body = f"""Welcome to {org}

Dear {display_name},

Thank you for your donation! An account has been created for you.

Your login credentials are:
Email: {to_email}
Password: {password}

Please change your password after logging in for security.
You can now log in to your account to track your donations and manage your profile.

Best regards,
{org} Team

---
This is an automated email. Please do not reply to this message.
"""

    html_body = f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: #4CAF50; color: white; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; background-color: #f9f9f9; }}
        .password-box {{ background-color: #fff; border: 2px solid #4CAF50; padding: 15px; margin: 20px 0; text-align: center; font-size: 18px; font-weight: bold; }}
        .footer {{ text-align: center; padding: 20px; color: #666; font-size: 12px; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h1>Welcome to {escape(org)}</h1></div>
        <div class="content">
            <p>Dear {escape(display_name)},</p>
            <p>Thank you for your donation! An account has been created for you.</p>
            <p>Your login credentials are:</p>
            <div class="password-box">
                Email: {escape(to_email)}<br>
                Password: {escape(password)}
            </div>
            <p><strong>Please change your password after logging in for security.</strong></p>
            <p>You can now log in to your account to track your donations and manage your profile.</p>
            <p>Best regards,<br>{escape(org)} Team</p>
        </div>
        <div class="footer"><p>This is an automated email. Please do not reply to this message.</p></div>
    </div>
</body>
</html>
"""

    return await send_email(to_email, subject, body, html_body)
