"""
Real Notification Service

Production implementation using SendGrid for email, including file
attachments for invoice mails.
"""

import asyncio
import base64
import logging
from typing import Optional, Sequence

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import (
    Attachment,
    Cc,
    Disposition,
    FileContent,
    FileName,
    FileType,
    Mail,
)

from restaurantos.services.notifications.base import (
    BaseNotificationService,
    EmailAttachment,
    NotificationResult,
)
from restaurantos.core.config import get_settings

logger = logging.getLogger(__name__)


class RealNotificationService(BaseNotificationService):
    """Production notification service using SendGrid."""

    def __init__(self):
        settings = get_settings()
        if settings.sendgrid_api_key:
            self.sendgrid_client = SendGridAPIClient(settings.sendgrid_api_key)
        else:
            self.sendgrid_client = None
            logger.warning("SendGrid credentials not configured")
        self.sendgrid_from_email = settings.sendgrid_from_email

        logger.info("RealNotificationService initialized")

    @property
    def provider_name(self) -> str:
        return "sendgrid"

    def _build_message(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str],
        cc_email: Optional[str],
        attachments: Sequence[EmailAttachment],
    ) -> Mail:
        message = Mail(
            from_email=self.sendgrid_from_email,
            to_emails=to_email,
            subject=subject,
            html_content=body_html,
            plain_text_content=body_text,
        )
        if cc_email:
            message.add_cc(Cc(cc_email))
        for item in attachments:
            message.add_attachment(Attachment(
                FileContent(base64.b64encode(item.content).decode("ascii")),
                FileName(item.filename),
                FileType(item.mime_type),
                Disposition("attachment"),
            ))
        return message

    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
        cc_email: Optional[str] = None,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> NotificationResult:
        """Send email via SendGrid."""
        if not self.sendgrid_client:
            return NotificationResult(
                success=False,
                error_message="SendGrid not configured",
                provider="sendgrid"
            )

        message = self._build_message(
            to_email, subject, body_html, body_text, cc_email, attachments or []
        )

        try:
            # The SendGrid client is synchronous
            response = await asyncio.to_thread(self.sendgrid_client.send, message)
        except Exception as e:
            logger.error(f"SendGrid error: {e}")
            return NotificationResult(
                success=False,
                error_message=str(e),
                provider="sendgrid"
            )

        logger.info(f"Email sent to {to_email}: {subject} ({response.status_code})")

        return NotificationResult(
            success=response.status_code in [200, 201, 202],
            message_id=response.headers.get("X-Message-Id"),
            provider="sendgrid"
        )

    async def health_check(self) -> bool:
        return self.sendgrid_client is not None
