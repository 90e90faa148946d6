"""Tests for account statements: back-office management and agency portal."""

from __future__ import annotations

import datetime
from unittest import mock

from django.core import mail
from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.agencies.models import Agency
from apps.core.models import ActivityLog
from apps.notifications.models import Notification
from apps.statements.models import AccountStatement
from apps.users.models import OperatorPermission, User


def make_agency(email: str, status: str = Agency.Status.ACTIVE) -> Agency:
    user = User.objects.create_user(email=email, password="Password123")
    return Agency.objects.create(user=user, business_name=email.split("@")[0].title(), email=email, status=status)


class AdminStatementAPITests(APITestCase):
    def setUp(self) -> None:
        self.operator = User.objects.create_user(email="op@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=self.operator, section="account_statements")
        self.client.force_authenticate(self.operator)
        self.agency = make_agency("rossi@example.com")

    def _statement(self, **fields) -> AccountStatement:
        fields.setdefault("agency", self.agency)
        fields.setdefault("title", "Estratto marzo")
        fields.setdefault("data", datetime.date(2026, 3, 31))
        fields.setdefault("file_url", "https://cdn.example.com/documents/marzo.pdf")
        return AccountStatement.objects.create(**fields)

    def test_create_with_upload(self) -> None:
        stored = {"url": "https://cdn.example.com/documents/1-aprile.pdf", "file_name": "aprile.pdf", "key": "k"}
        upload = SimpleUploadedFile("aprile.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.statements.views.upload_document", return_value=stored):
            response = self.client.post(
                reverse("account-statement-list"),
                {"agency": self.agency.pk, "title": "Estratto aprile", "data": "2026-04-30", "file": upload},
                format="multipart",
            )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["file_url"], stored["url"])
        self.assertEqual(response.data["stato"], "Bozza")
        self.assertEqual(response.data["agency_name"], "Rossi")
        self.assertEqual(ActivityLog.objects.get(entity_type="account_statement").action, "create")

    def test_update_logs_changes(self) -> None:
        statement = self._statement()
        response = self.client.patch(
            reverse("account-statement-detail", args=[statement.pk]), {"title": "Estratto Q1"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        log = ActivityLog.objects.get(action="update")
        self.assertEqual(log.details["changes"][0]["old"], "Estratto marzo")

    def test_send_email_marks_statement_sent(self) -> None:
        statement = self._statement()
        response = self.client.post(reverse("account-statement-send-email", args=[statement.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["stato"], "Inviato via Mail")
        self.assertEqual(mail.outbox[0].to, ["rossi@example.com"])
        self.assertTrue(Notification.objects.filter(user=self.agency.user, title="Nuovo estratto conto").exists())

    def test_failed_email_keeps_draft(self) -> None:
        statement = self._statement()
        with mock.patch("apps.statements.services.send_template_email", return_value=False):
            response = self.client.post(reverse("account-statement-send-email", args=[statement.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        statement.refresh_from_db()
        self.assertEqual(statement.stato, AccountStatement.Stato.BOZZA)

    def test_send_without_file(self) -> None:
        statement = self._statement(file_url="")
        response = self.client.post(reverse("account-statement-send-email", args=[statement.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(mail.outbox, [])

    def test_filters_and_stats(self) -> None:
        other = make_agency("bianchi@example.com")
        self._statement()
        self._statement(agency=other, data=datetime.date(2026, 1, 31), stato=AccountStatement.Stato.INVIATO)

        response = self.client.get(reverse("account-statement-list"), {"agency": other.pk})
        self.assertEqual(response.data["count"], 1)
        response = self.client.get(reverse("account-statement-list"), {"date_from": "2026-03-01"})
        self.assertEqual(response.data["count"], 1)
        response = self.client.get(reverse("account-statement-list"), {"stato": "Bozza"})
        self.assertEqual(response.data["results"][0]["title"], "Estratto marzo")

        stats = self.client.get(reverse("account-statement-stats")).data
        self.assertEqual(stats, {"total": 2, "bozze": 1, "inviati": 1, "thisMonth": 2})

    def test_active_agencies_only(self) -> None:
        make_agency("attesa@example.com", status=Agency.Status.PENDING)
        response = self.client.get(reverse("account-statement-active-agencies"))
        self.assertEqual(response.data, [{"id": self.agency.pk, "business_name": "Rossi"}])

    def test_section_is_required(self) -> None:
        OperatorPermission.objects.filter(user=self.operator).delete()
        response = self.client.get(reverse("account-statement-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AgencyStatementAPITests(APITestCase):
    def setUp(self) -> None:
        self.agency = make_agency("rossi@example.com")
        other = make_agency("bianchi@example.com")
        for agency, day in ((self.agency, 31), (self.agency, 28), (other, 30)):
            AccountStatement.objects.create(
                agency=agency,
                title=f"Estratto {day}",
                data=datetime.date(2026, 1, 1) + datetime.timedelta(days=day),
                file_url="https://cdn.example.com/documents/e.pdf",
            )
        self.client.force_authenticate(self.agency.user)

    def test_lists_own_statements_newest_first(self) -> None:
        response = self.client.get(reverse("agency-statements"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["title"] for row in response.data], ["Estratto 31", "Estratto 28"])

    def test_date_range(self) -> None:
        response = self.client.get(reverse("agency-statements"), {"date_to": "2026-01-30"})
        self.assertEqual([row["title"] for row in response.data], ["Estratto 28"])
