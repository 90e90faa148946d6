"""Notification services: in-app notifications and best-effort email."""

from __future__ import annotations

import logging

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.db.models import Q  # type: ignore
from django.utils.html import strip_tags  # type: ignore

from apps.core.models import SiteSetting
from apps.users.models import CustomUser

logger = logging.getLogger(__name__)

SENDER_EMAIL_KEY = "sender_email"
SENDER_NAME_KEY = "sender_name"
ADMIN_EMAILS_KEY = "admin_notification_emails"


# ============================================================================
# SENDER / RECIPIENT SETTINGS
# ============================================================================

def get_sender() -> tuple[str, str]:
    """Sender (email, name) from site settings, falling back to Django settings."""
    email = SiteSetting.get_value(SENDER_EMAIL_KEY) or settings.DEFAULT_FROM_EMAIL or "noreply@mishatravel.com"
    name = SiteSetting.get_value(SENDER_NAME_KEY) or getattr(settings, "DEFAULT_FROM_NAME", "") or "MishaTravel"
    return str(email), str(name)


def get_admin_notification_emails() -> list[str]:
    """Admin recipients; the setting holds a comma-separated list."""
    raw = SiteSetting.get_value(ADMIN_EMAILS_KEY) or getattr(settings, "ADMIN_NOTIFICATION_EMAILS", "")
    if isinstance(raw, (list, tuple)):
        candidates = [str(item) for item in raw]
    else:
        candidates = str(raw).split(",")
    emails = [email.strip() for email in candidates if email.strip()]
    return emails or ["info@mishatravel.com"]


# ============================================================================
# EMAIL NOTIFICATIONS
# ============================================================================

def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send an email through the configured backend (Brevo in production).

    Never raises: failures are logged and reported as False.

    Args:
        recipient_email: Recipient address
        subject: Subject line
        html_message: HTML body

    Returns:
        bool: True if the email was sent
    """
    if not recipient_email:
        logger.warning(f"Email '{subject}' skipped: no recipient")
        return False
    try:
        sender_email, sender_name = get_sender()
        sent = send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=f"{sender_name} <{sender_email}>",
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        if not sent:
            logger.warning(f"Email to {recipient_email} was not sent: {subject}")
            return False

        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_template_email(recipient_email: str, template: tuple[str, str]) -> bool:
    """Send a ``(subject, html)`` pair built by ``email_templates``."""
    subject, html_message = template
    return send_email_notification(recipient_email, subject, html_message)


def send_admin_notification(template: tuple[str, str]) -> bool:
    """Send one email per admin recipient. True if at least one went out."""
    results = [send_template_email(email, template) for email in get_admin_notification_emails()]
    return any(results)


# ============================================================================
# IN-APP NOTIFICATIONS
# ============================================================================

def create_in_app_notification(user: CustomUser, title: str, message: str, link: str = "") -> bool:
    """
    Create an in-app notification row.

    Args:
        user: Recipient user
        title: Notification title
        message: Notification text
        link: Relative URL of the related page

    Returns:
        bool: True if the notification was created
    """
    try:
        from .models import Notification

        Notification.objects.create(
            user=user,
            title=title,
            message=message,
            link=link,
        )

        logger.info(f"In-app notification created for {user.email}: {title}")
        return True

    except Exception as e:
        logger.error(f"Failed to create in-app notification for {user.email}: {e}", exc_info=True)
        return False


def notify_super_admins(title: str, message: str, link: str = "") -> int:
    """Create the same in-app notification for every super admin."""
    recipients = CustomUser.objects.filter(
        Q(role=CustomUser.RoleChoices.SUPER_ADMIN) | Q(is_superuser=True),
        is_active=True,
    )
    return sum(1 for user in recipients if create_in_app_notification(user, title, message, link))
