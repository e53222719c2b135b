"""
Notification Service Abstract Base Class

Defines the interface for sending email: password reset links and invoices
for the tax accountant. Supports both Mock (development) and Real
(production) implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

_templates = Environment(
    loader=PackageLoader("restaurantos", "templates"),
    autoescape=select_autoescape(["html"]),
)


@dataclass
class NotificationResult:
    """Result from sending a notification."""
    success: bool
    message_id: Optional[str] = None
    error_message: Optional[str] = None
    provider: str = "unknown"


@dataclass
class EmailAttachment:
    """A file attached to an outgoing email."""
    filename: str
    content: bytes
    mime_type: str = "application/octet-stream"


class BaseNotificationService(ABC):
    """Abstract base class for notification services."""

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @abstractmethod
    async def send_email(
        self,
        to_email: str,
        subject: str,
        body_html: str,
        body_text: Optional[str] = None,
        cc_email: Optional[str] = None,
        attachments: Optional[Sequence[EmailAttachment]] = None,
    ) -> NotificationResult:
        """Send an email."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check service connectivity."""
        pass

    async def send_password_reset(
        self,
        to_email: str,
        name: str,
        reset_url: str,
    ) -> NotificationResult:
        """Send a password reset link."""
        body_text = (
            f"Hello {name},\n\n"
            f"Use the following link to choose a new password:\n{reset_url}\n\n"
            "If you did not request a reset you can ignore this email."
        )
        body_html = _templates.get_template("password_reset.html").render(name=name, reset_url=reset_url)
        return await self.send_email(
            to_email=to_email,
            subject="Reset your RestaurantOS password",
            body_html=body_html,
            body_text=body_text,
        )
