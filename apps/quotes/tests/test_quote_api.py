"""API tests for the back-office quote workflow and the agency portal."""

from __future__ import annotations

import datetime
from decimal import Decimal
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.agencies.models import Agency
from apps.catalog.models import Departure, Tour
from apps.media.storage import StorageError
from apps.quotes.models import QuoteDocument, QuoteRequest, QuoteTimeline
from apps.quotes.workflow import QuoteStatus
from apps.users.models import OperatorPermission, User


class QuoteAPITestCase(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)
        self.agency = self._agency("agenzia@example.com")
        self.other_agency = self._agency("altra@example.com")
        self.tour = Tour.objects.create(title="Giappone Classico", slug="giappone-classico")
        self.departure = Departure.objects.create(tour=self.tour, departure_date=datetime.date(2026, 4, 10))

    def _agency(self, email: str) -> Agency:
        user = User.objects.create_user(email=email, password="Password123")
        return Agency.objects.create(user=user, business_name=email.split("@")[0], email=email, status="active")

    def _quote(self, agency: Agency, status: str = QuoteStatus.SENT) -> QuoteRequest:
        return QuoteRequest.objects.create(
            agency=agency,
            request_type="tour",
            tour=self.tour,
            departure=self.departure,
            participants_adults=2,
            status=status,
        )


class AdminQuoteAPITests(QuoteAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client.force_authenticate(self.admin)

    def test_list_filters_and_status_hint(self) -> None:
        self._quote(self.agency, QuoteStatus.ACCEPTED)
        self._quote(self.other_agency)
        response = self.client.get(reverse("admin-quote-list"), {"status": "accepted"})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
        row = response.data["results"][0]
        self.assertEqual(row["product_name"], "Giappone Classico")
        self.assertEqual(row["agency_name"], "agenzia")
        self.assertTrue(row["status_action"]["action_required"])

        response = self.client.get(reverse("admin-quote-list"), {"agency": self.other_agency.pk})
        self.assertEqual(response.data["count"], 1)

    def test_date_filter_includes_whole_day(self) -> None:
        self._quote(self.agency)
        today = timezone.localdate().isoformat()
        response = self.client.get(reverse("admin-quote-list"), {"date_from": today, "date_to": today})
        self.assertEqual(response.data["count"], 1)

    def test_detail_lists_timeline_newest_first(self) -> None:
        quote = self._quote(self.agency)
        QuoteTimeline.objects.create(request=quote, action="Primo")
        QuoteTimeline.objects.create(request=quote, action="Secondo")
        response = self.client.get(reverse("admin-quote-detail", args=[quote.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([e["action"] for e in response.data["timeline"]], ["Secondo", "Primo"])
        self.assertEqual(response.data["agency_detail"]["email"], "agenzia@example.com")

    def test_offer_then_wrong_transition(self) -> None:
        quote = self._quote(self.agency)
        response = self.client.post(
            reverse("admin-quote-offers", args=[quote.pk]),
            {"total_price": "1999.90", "send_now": True},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(QuoteRequest.objects.get(pk=quote.pk).status, QuoteStatus.OFFER_SENT)

        response = self.client.post(reverse("admin-quote-confirm-payment", args=[quote.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Lo stato della richiesta non permette questa azione.")

    def test_contract_upload(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.ACCEPTED)
        offer = quote.offers.create(total_price=Decimal("1500"))
        stored = {"url": "https://cdn.example.com/documents/1-contratto.pdf", "file_name": "contratto.pdf", "key": "k"}
        upload = SimpleUploadedFile("contratto.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.quotes.views.upload_document", return_value=stored):
            response = self.client.post(
                reverse("admin-quote-contract", args=[quote.pk]),
                {"offer_id": offer.pk, "contract_file": upload, "iban": "IT60X0542811101000000123456"},
                format="multipart",
            )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["contract_file_url"], stored["url"])
        self.assertEqual(QuoteRequest.objects.get(pk=quote.pk).status, QuoteStatus.CONTRACT_SENT)

    def test_contract_refused_before_upload(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.CONFIRMED)
        offer = quote.offers.create(total_price=Decimal("1500"))
        upload = SimpleUploadedFile("contratto.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.quotes.views.upload_document") as upload_document:
            response = self.client.post(
                reverse("admin-quote-contract", args=[quote.pk]),
                {"offer_id": offer.pk, "contract_file": upload, "iban": "IT60X0542811101000000123456"},
                format="multipart",
            )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        upload_document.assert_not_called()

    def test_contract_requires_file(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.ACCEPTED)
        response = self.client.post(
            reverse("admin-quote-contract", args=[quote.pk]), {"offer_id": 1, "iban": "IT60"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_storage_failure_is_bad_gateway(self) -> None:
        quote = self._quote(self.agency)
        upload = SimpleUploadedFile("a.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.quotes.views.upload_document", side_effect=StorageError("Upload non riuscito")):
            response = self.client.post(
                reverse("admin-quote-documents", args=[quote.pk]), {"file": upload}, format="multipart"
            )
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertFalse(QuoteDocument.objects.exists())

    def test_add_and_delete_document(self) -> None:
        quote = self._quote(self.agency)
        response = self.client.post(
            reverse("admin-quote-documents", args=[quote.pk]),
            {"file_url": "https://cdn.example.com/documents/programma.pdf"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["file_name"], "programma.pdf")

        url = reverse("admin-quote-delete-document", args=[quote.pk, response.data["id"]])
        self.assertEqual(self.client.delete(url).status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(
            list(quote.timeline.order_by("pk").values_list("action", flat=True)),
            ["Documento caricato", "Documento eliminato"],
        )

    def test_stats_refresh_after_transition(self) -> None:
        quote = self._quote(self.agency)
        self.assertEqual(self.client.get(reverse("admin-quote-stats")).data["sent"], 1)
        self.client.post(reverse("admin-quote-reject", args=[quote.pk]), {"motivation": "No"}, format="json")
        stats = self.client.get(reverse("admin-quote-stats")).data
        self.assertEqual((stats["sent"], stats["rejected"]), (0, 1))

    def test_operator_needs_quotes_section(self) -> None:
        operator = User.objects.create_user(email="op@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=operator, section="media")
        self.client.force_authenticate(operator)
        self.assertEqual(self.client.get(reverse("admin-quote-list")).status_code, status.HTTP_403_FORBIDDEN)


class AgencyQuoteAPITests(QuoteAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        self.client.force_authenticate(self.agency.user)

    def test_create_request(self) -> None:
        payload = {
            "request_type": "tour",
            "tour": self.tour.pk,
            "departure": self.departure.pk,
            "participants_adults": 2,
            "notes": "Camera doppia",
        }
        response = self.client.post(reverse("agency-quote-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "sent")
        self.assertEqual(len(response.data["timeline"]), 1)

    def test_pending_agency_cannot_request(self) -> None:
        Agency.objects.filter(pk=self.agency.pk).update(status="pending")
        payload = {"request_type": "tour", "tour": self.tour.pk, "departure": self.departure.pk, "participants_adults": 1}
        response = self.client.post(reverse("agency-quote-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_and_detail_are_scoped(self) -> None:
        own = self._quote(self.agency)
        foreign = self._quote(self.other_agency)
        response = self.client.get(reverse("agency-quote-list"))
        self.assertEqual([row["id"] for row in response.data["results"]], [own.pk])
        response = self.client.get(reverse("agency-quote-detail", args=[foreign.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_accept_foreign_request_is_forbidden(self) -> None:
        foreign = self._quote(self.other_agency, QuoteStatus.OFFER_SENT)
        response = self.client.post(
            reverse("agency-quote-accept", args=[foreign.pk]),
            {"participants": [{"full_name": "Mario Rossi"}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(QuoteRequest.objects.get(pk=foreign.pk).status, QuoteStatus.OFFER_SENT)

    def test_upload_to_closed_request_stores_nothing(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.REJECTED)
        upload = SimpleUploadedFile("passaporto.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.quotes.views.upload_document") as upload_document:
            response = self.client.post(
                reverse("agency-quote-documents", args=[quote.pk]), {"file": upload}, format="multipart"
            )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        upload_document.assert_not_called()
        self.assertFalse(QuoteDocument.objects.exists())

    def test_upload_to_foreign_request_stores_nothing(self) -> None:
        foreign = self._quote(self.other_agency)
        upload = SimpleUploadedFile("passaporto.pdf", b"%PDF-1.4", content_type="application/pdf")
        with mock.patch("apps.quotes.views.upload_document") as upload_document:
            response = self.client.post(
                reverse("agency-quote-documents", args=[foreign.pk]), {"file": upload}, format="multipart"
            )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        upload_document.assert_not_called()

    def test_accept_and_offers_feed(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.OFFER_SENT)
        quote.offers.create(total_price=Decimal("800"))
        offers = self.client.get(reverse("agency-quote-offers")).data
        self.assertEqual(offers[0]["offer"]["total_price"], "800.00")
        self.assertTrue(offers[0]["request"]["status_action"]["action_required"])

        response = self.client.post(
            reverse("agency-quote-accept", args=[quote.pk]),
            {"participants": [{"full_name": "Mario Rossi", "age": 40}]},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "accepted")
        self.assertEqual(self.client.get(reverse("agency-quote-offers")).data, [])

    def test_decline_twice(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.OFFERED)
        url = reverse("agency-quote-decline", args=[quote.pk])
        self.assertEqual(self.client.post(url, {}, format="json").status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.post(url, {}, format="json").status_code, status.HTTP_400_BAD_REQUEST)

    def test_pdf_download(self) -> None:
        quote = self._quote(self.agency, QuoteStatus.ACCEPTED)
        quote.offers.create(total_price=Decimal("800"), payment_terms="30% all'accettazione")
        quote.participants.create(full_name="Mario <Rossi>", age=40)
        QuoteTimeline.objects.create(request=quote, action="Offerta accettata con partecipanti")

        response = self.client.get(reverse("agency-quote-pdf", args=[quote.pk]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))

        foreign = self._quote(self.other_agency)
        response = self.client.get(reverse("agency-quote-pdf", args=[foreign.pk]))
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
