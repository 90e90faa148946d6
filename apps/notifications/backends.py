"""Django email backend for the Brevo transactional email API."""

from __future__ import annotations

import logging
from email.utils import parseaddr

import requests
from django.conf import settings  # type: ignore
from django.core.mail.backends.base import BaseEmailBackend  # type: ignore

logger = logging.getLogger(__name__)


class BrevoEmailBackend(BaseEmailBackend):
    """
    Sends each EmailMessage as one POST to Brevo's `/v3/smtp/email`.

    Without an API key the send is skipped with a warning. Non-2xx answers
    are logged and the message is not counted as sent.
    """

    def __init__(self, fail_silently: bool = False, api_key: str | None = None, **kwargs):  # type: ignore
        super().__init__(fail_silently=fail_silently, **kwargs)
        self.api_key = api_key if api_key is not None else getattr(settings, "BREVO_API_KEY", "")
        self.api_url = getattr(settings, "BREVO_API_URL", "https://api.brevo.com/v3/smtp/email")
        self.timeout = getattr(settings, "BREVO_TIMEOUT", 10)

    def _payload(self, message) -> dict:  # type: ignore
        sender_name, sender_email = parseaddr(message.from_email or settings.DEFAULT_FROM_EMAIL)
        html_content = None
        for content, mimetype in getattr(message, "alternatives", []) or []:
            if mimetype == "text/html":
                html_content = content
                break
        if html_content is None:
            html_content = message.body
        return {
            "sender": {
                "email": sender_email,
                "name": sender_name or getattr(settings, "DEFAULT_FROM_NAME", ""),
            },
            "to": [{"email": parseaddr(address)[1]} for address in message.to],
            "subject": message.subject,
            "htmlContent": html_content,
        }

    def send_messages(self, email_messages) -> int:  # type: ignore
        if not email_messages:
            return 0
        if not self.api_key:
            logger.warning("BREVO_API_KEY is not configured, skipping email send")
            return 0

        sent = 0
        for message in email_messages:
            if not message.recipients():
                continue
            try:
                response = requests.post(
                    self.api_url,
                    json=self._payload(message),
                    headers={
                        "accept": "application/json",
                        "content-type": "application/json",
                        "api-key": self.api_key,
                    },
                    timeout=self.timeout,
                )
            except requests.RequestException as e:
                logger.error(f"Brevo request failed for {message.to}: {e}", exc_info=True)
                if not self.fail_silently:
                    raise
                continue

            if not response.ok:
                logger.error(f"Brevo API error {response.status_code} for {message.to}: {response.text}")
                continue
            sent += 1
        return sent
