"""Tests for email delivery, the Brevo backend and in-app notifications."""

from __future__ import annotations

from unittest import mock

import pytest
import requests
from django.core import mail
from django.core.mail import EmailMultiAlternatives
from django.test import override_settings
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.core.models import SiteSetting
from apps.notifications import email_templates
from apps.notifications.backends import BrevoEmailBackend
from apps.notifications.models import Notification
from apps.notifications.services import (
    get_admin_notification_emails,
    notify_super_admins,
    send_admin_notification,
    send_template_email,
)
from apps.users.models import User


@pytest.mark.django_db
def test_template_email_uses_sender_setting() -> None:
    SiteSetting.set_value("sender_email", "preventivi@mishatravel.com")
    assert send_template_email("agenzia@example.com", email_templates.agency_approved_email("Viaggi Srl"))
    assert len(mail.outbox) == 1
    message = mail.outbox[0]
    assert message.from_email == "MishaTravel <preventivi@mishatravel.com>"
    assert message.to == ["agenzia@example.com"]
    assert "Viaggi Srl" in message.alternatives[0][0]


@pytest.mark.django_db
def test_email_without_recipient_is_skipped() -> None:
    assert not send_template_email("", email_templates.agency_approved_email("Viaggi Srl"))
    assert mail.outbox == []


@pytest.mark.django_db
def test_admin_recipients_from_comma_separated_setting() -> None:
    SiteSetting.set_value("admin_notification_emails", "a@mishatravel.com, b@mishatravel.com,")
    assert get_admin_notification_emails() == ["a@mishatravel.com", "b@mishatravel.com"]
    assert send_admin_notification(email_templates.admin_new_agency_email("Viaggi Srl", None, "x@y.it", None))
    assert len(mail.outbox) == 2


def test_templates_escape_user_values() -> None:
    subject, html = email_templates.quote_rejected_email("<b>Agenzia</b>", "Tour", "prezzo <script>")
    assert "<script>" not in html
    assert "&lt;b&gt;Agenzia&lt;/b&gt;" in html
    assert subject


@pytest.mark.django_db
def test_notify_super_admins() -> None:
    User.objects.create_user(email="super@mishatravel.com", role=User.RoleChoices.SUPER_ADMIN)
    User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)
    User.objects.create_user(email="off@mishatravel.com", role=User.RoleChoices.SUPER_ADMIN, is_active=False)

    assert notify_super_admins("Nuova agenzia", "Viaggi Srl si è registrata", "/admin/agenzie") == 1
    assert Notification.objects.get().user.email == "super@mishatravel.com"


class BrevoBackendTests(APITestCase):
    def _message(self) -> EmailMultiAlternatives:
        message = EmailMultiAlternatives("Oggetto", "testo", "MishaTravel <noreply@mishatravel.com>", ["a@b.it"])
        message.attach_alternative("<p>testo</p>", "text/html")
        return message

    def test_posts_html_payload(self) -> None:
        backend = BrevoEmailBackend(api_key="key")
        with mock.patch("apps.notifications.backends.requests.post") as post:
            post.return_value.ok = True
            self.assertEqual(backend.send_messages([self._message()]), 1)

        payload = post.call_args.kwargs["json"]
        self.assertEqual(payload["sender"], {"email": "noreply@mishatravel.com", "name": "MishaTravel"})
        self.assertEqual(payload["to"], [{"email": "a@b.it"}])
        self.assertEqual(payload["htmlContent"], "<p>testo</p>")
        self.assertEqual(post.call_args.kwargs["headers"]["api-key"], "key")

    def test_error_response_is_not_counted(self) -> None:
        backend = BrevoEmailBackend(api_key="key")
        with mock.patch("apps.notifications.backends.requests.post") as post:
            post.return_value.ok = False
            post.return_value.status_code = 401
            self.assertEqual(backend.send_messages([self._message()]), 0)

    def test_missing_api_key_skips_send(self) -> None:
        backend = BrevoEmailBackend(api_key="")
        with mock.patch("apps.notifications.backends.requests.post") as post:
            self.assertEqual(backend.send_messages([self._message()]), 0)
        post.assert_not_called()

    @override_settings(EMAIL_BACKEND="apps.notifications.backends.BrevoEmailBackend", BREVO_API_KEY="key")
    def test_network_error_is_reported_as_failed_send(self) -> None:
        with mock.patch(
            "apps.notifications.backends.requests.post",
            side_effect=requests.ConnectionError("down"),
        ):
            self.assertFalse(send_template_email("a@b.it", email_templates.agency_approved_email("X")))


class NotificationAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(email="agenzia@example.com")
        self.other = User.objects.create_user(email="altra@example.com")
        Notification.objects.create(user=self.user, title="Uno", message="m")
        Notification.objects.create(user=self.user, title="Due", message="m")
        Notification.objects.create(user=self.other, title="Altro", message="m")
        self.client.force_authenticate(self.user)

    def test_lists_only_own_notifications(self) -> None:
        response = self.client.get(reverse("notification-list"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 2)

    def test_mark_all_read(self) -> None:
        response = self.client.post(reverse("notification-mark-all-read"))
        self.assertEqual(response.data, {"updated": 2})
        response = self.client.get(reverse("notification-unread-count"))
        self.assertEqual(response.data, {"count": 0})
