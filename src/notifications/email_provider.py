"""
Email Provider Abstraction

Unified interface for outbound email. Two providers ship with the engine:
- SMTP (SMTP_HOST set)
- Null (development and tests; logs instead of sending)
"""

import logging
import os
import smtplib
import ssl
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class DeliveryStatus(str, Enum):
    """Email delivery status."""
    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class EmailMessage:
    """Email message to be sent."""
    to: str
    subject: str
    body_html: Optional[str] = None
    body_text: Optional[str] = None
    from_email: Optional[str] = None
    from_name: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> bool:
        """Validate message has required fields."""
        if not self.to:
            raise ValueError("Recipient email (to) is required")
        if not self.subject:
            raise ValueError("Subject is required")
        if not self.body_html and not self.body_text:
            raise ValueError("Either body_html or body_text is required")
        return True


@dataclass
class DeliveryResult:
    """Result of email delivery attempt."""
    success: bool
    status: DeliveryStatus
    message_id: Optional[str] = None
    provider: Optional[str] = None
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "success": self.success,
            "status": self.status.value,
            "message_id": self.message_id,
            "provider": self.provider,
            "error_message": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }


class EmailProvider(ABC):
    """Abstract base class for email providers."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return provider name for logging."""
        pass

    @abstractmethod
    def send(self, message: EmailMessage) -> DeliveryResult:
        """
        Send an email message.

        Args:
            message: Email message to send

        Returns:
            DeliveryResult with success/failure status
        """
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Check if provider is properly configured."""
        pass


class NullEmailProvider(EmailProvider):
    """
    Null provider for testing/development.

    Logs emails but doesn't send them. Sent messages are kept in `outbox`.
    """

    def __init__(self):
        self.outbox: List[EmailMessage] = []

    @property
    def provider_name(self) -> str:
        return "null"

    def send(self, message: EmailMessage) -> DeliveryResult:
        """Log email without sending."""
        message.validate()
        self.outbox.append(message)
        logger.info(
            f"[NULL PROVIDER] Would send email to {message.to}: {message.subject}"
        )
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=f"null-{uuid.uuid4().hex[:12]}",
            provider=self.provider_name,
        )

    def is_configured(self) -> bool:
        """Always configured (it's a null provider)."""
        return True


class SMTPProvider(EmailProvider):
    """
    SMTP email provider.

    Configuration:
        SMTP_HOST, SMTP_PORT (587), SMTP_USERNAME, SMTP_PASSWORD,
        SMTP_USE_TLS (true), SMTP_FROM_EMAIL, SMTP_FROM_NAME
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
    ):
        self.host = host or os.environ.get("SMTP_HOST")
        self.port = port or int(os.environ.get("SMTP_PORT", "587"))
        self.username = username or os.environ.get("SMTP_USERNAME")
        self.password = password or os.environ.get("SMTP_PASSWORD")
        if use_tls is None:
            use_tls = os.environ.get("SMTP_USE_TLS", "true").lower() == "true"
        self.use_tls = use_tls
        self.from_email = from_email or os.environ.get("SMTP_FROM_EMAIL", "noreply@example.com")
        self.from_name = from_name or os.environ.get("SMTP_FROM_NAME", "Practice Portal")

    @property
    def provider_name(self) -> str:
        return "smtp"

    def is_configured(self) -> bool:
        return bool(self.host)

    def send(self, message: EmailMessage) -> DeliveryResult:
        if not self.is_configured():
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message="SMTP not configured (missing SMTP_HOST)",
            )

        message.validate()

        msg = MIMEMultipart("alternative")
        from_email = message.from_email or self.from_email
        msg["From"] = formataddr((message.from_name or self.from_name, from_email))
        msg["To"] = message.to
        msg["Subject"] = message.subject
        if message.body_text:
            msg.attach(MIMEText(message.body_text, "plain", "utf-8"))
        if message.body_html:
            msg.attach(MIMEText(message.body_html, "html", "utf-8"))

        try:
            with smtplib.SMTP(self.host, self.port) as server:
                if self.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(from_email, [message.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP send to {message.to} failed: {e}")
            return DeliveryResult(
                success=False,
                status=DeliveryStatus.FAILED,
                provider=self.provider_name,
                error_message=str(e),
            )

        logger.info(f"SMTP: Email sent to {message.to}")
        return DeliveryResult(
            success=True,
            status=DeliveryStatus.SENT,
            message_id=f"smtp-{uuid.uuid4()}",
            provider=self.provider_name,
        )


# Global provider instance
_email_provider: Optional[EmailProvider] = None


def get_email_provider() -> EmailProvider:
    """
    Get the configured email provider.

    Provider selection order:
    1. SMTP_HOST -> SMTP
    2. None      -> Null provider (logging only)
    """
    global _email_provider

    if _email_provider is not None:
        return _email_provider

    if os.environ.get("SMTP_HOST"):
        _email_provider = SMTPProvider()
        logger.info("Email provider: SMTP")
        return _email_provider

    logger.warning(
        "No email provider configured. Emails will be logged but not sent. "
        "Set SMTP_HOST to enable email delivery."
    )
    _email_provider = NullEmailProvider()
    return _email_provider


def set_email_provider(provider: Optional[EmailProvider]):
    """
    Set a custom email provider (for testing). None resets selection.

    Args:
        provider: EmailProvider instance to use
    """
    global _email_provider
    _email_provider = provider
    if provider is not None:
        logger.info(f"Email provider set to: {provider.provider_name}")


def send_email(
    to: str,
    subject: str,
    body_html: Optional[str] = None,
    body_text: Optional[str] = None,
    tags: Optional[List[str]] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> DeliveryResult:
    """
    Convenience function to send an email.

    Returns:
        DeliveryResult with status
    """
    message = EmailMessage(
        to=to,
        subject=subject,
        body_html=body_html,
        body_text=body_text,
        tags=tags or [],
        metadata=metadata or {},
    )

    provider = get_email_provider()
    return provider.send(message)
