"""
Email package.

Modules:
- core: SMTP ``send_email``
- donations: credentials email for auto-provisioned donor accounts
- members: member application / payment status notifications
"""
