"""
Notifications Module

Outbound email for assignment changes.
"""

from .email_provider import (
    DeliveryStatus,
    EmailMessage,
    DeliveryResult,
    EmailProvider,
    NullEmailProvider,
    SMTPProvider,
    get_email_provider,
    set_email_provider,
    send_email,
)
from .assignment_notifier import AssignmentNotifier

__all__ = [
    "DeliveryStatus",
    "EmailMessage",
    "DeliveryResult",
    "EmailProvider",
    "NullEmailProvider",
    "SMTPProvider",
    "get_email_provider",
    "set_email_provider",
    "send_email",
    "AssignmentNotifier",
]
