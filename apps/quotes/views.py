"""API views for quote requests: back-office workflow and agency portal."""

from __future__ import annotations

from django.http import HttpResponse  # type: ignore
from django.shortcuts import get_object_or_404  # type: ignore
from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import mixins, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.agencies.services import OwnershipError
from apps.media.storage import StorageError, upload_document
from apps.users.permissions import HasSection, IsAgencyUser

from . import services
from .filters import AgencyQuoteFilterSet, QuoteRequestFilterSet
from .models import QuoteDocument, QuoteRequest
from .pdf import build_quote_pdf
from .serializers import (
    AcceptOfferSerializer,
    AgencyQuoteDetailSerializer,
    AgencyQuoteListSerializer,
    ContractSerializer,
    DeclineOfferSerializer,
    OfferCreateSerializer,
    PaymentDetailsSerializer,
    QuoteDocumentSerializer,
    QuoteDocumentUploadSerializer,
    QuoteOfferSerializer,
    QuotePaymentSerializer,
    QuoteRequestCreateSerializer,
    QuoteRequestDetailSerializer,
    QuoteRequestListSerializer,
    RejectSerializer,
    ReminderSerializer,
    StatusUpdateSerializer,
)


def _error(exc: Exception) -> Response:
    if isinstance(exc, OwnershipError):
        return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
    if isinstance(exc, StorageError):
        return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _resolve_file(data) -> tuple[str, str]:  # type: ignore
    """Upload ``file`` when present, otherwise use ``file_url``."""
    if data.get("file"):
        stored = upload_document(data["file"])
        return stored["url"], data.get("file_name") or stored["file_name"]
    file_url = data["file_url"]
    return file_url, data.get("file_name") or file_url.rsplit("/", 1)[-1]


class AdminQuoteViewSet(mixins.ListModelMixin, mixins.RetrieveModelMixin, viewsets.GenericViewSet):
    """Back-office quote workflow (section `quotes`)."""

    permission_classes = [HasSection]
    required_section = "quotes"
    filter_backends = [DjangoFilterBackend]
    filterset_class = QuoteRequestFilterSet
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get_queryset(self):  # type: ignore
        qs = QuoteRequest.objects.select_related("agency", "agency__user", "tour", "cruise", "departure")
        if self.action == "retrieve":
            qs = qs.prefetch_related("extras__extra", "participants")
        return qs.order_by("-created_at")

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return QuoteRequestDetailSerializer
        return QuoteRequestListSerializer

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(services.quote_stats())

    @action(detail=False, methods=["get"])
    def agencies(self, request):  # type: ignore
        return Response(services.agencies_for_filter())

    @action(detail=False, methods=["get"], url_path="banking-presets")
    def banking_presets(self, request):  # type: ignore
        return Response(services.banking_presets())

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = StatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            services.update_status(quote, data["status"], data.get("details"), actor=request.user)
        except services.QuoteError as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"])
    def offers(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = OfferCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            offer = services.create_offer(quote, actor=request.user, **serializer.validated_data)
        except services.QuoteError as exc:
            return _error(exc)
        return Response(QuoteOfferSerializer(offer).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"], url_path="revoke-offer")
    def revoke_offer(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        try:
            services.revoke_offer(quote, actor=request.user)
        except services.QuoteError as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"], url_path="payment-details")
    def payment_details(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = PaymentDetailsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            payment = services.send_payment_details(quote, actor=request.user, **serializer.validated_data)
        except services.QuoteError as exc:
            return _error(exc)
        return Response(QuotePaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def contract(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = ContractSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        contract_file = data.pop("contract_file", None)
        try:
            if contract_file:
                services.ensure_can_send_contract(quote, data["offer_id"])
                data["contract_file_url"] = upload_document(contract_file)["url"]
            offer = services.confirm_with_contract(quote, actor=request.user, **data)
        except (services.QuoteError, StorageError) as exc:
            return _error(exc)
        return Response(QuoteOfferSerializer(offer).data)

    @action(detail=True, methods=["post"], url_path="confirm-payment")
    def confirm_payment(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        try:
            services.confirm_payment(quote, actor=request.user)
        except services.QuoteError as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.reject_quote(quote, serializer.validated_data["motivation"], actor=request.user)
        except services.QuoteError as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"])
    def reminder(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = ReminderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            sent = services.send_reminder(quote, serializer.validated_data.get("message"), actor=request.user)
        except services.QuoteError as exc:
            return _error(exc)
        return Response({"id": quote.pk, "email_sent": sent})

    @action(detail=True, methods=["post"])
    def documents(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        serializer = QuoteDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            file_url, file_name = _resolve_file(serializer.validated_data)
            document = services.add_document(
                quote,
                file_url=file_url,
                file_name=file_name,
                document_type=serializer.validated_data.get("document_type"),
                uploaded_by=QuoteDocument.UploadedBy.ADMIN,
                user=request.user,
            )
        except (services.QuoteError, StorageError) as exc:
            return _error(exc)
        return Response(QuoteDocumentSerializer(document).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["delete"], url_path=r"documents/(?P<document_id>\d+)")
    def delete_document(self, request, pk=None, document_id=None):  # type: ignore
        quote = self.get_object()
        document = get_object_or_404(QuoteDocument, pk=document_id, request=quote)
        services.delete_document(document, actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================================================
# AGENCY PORTAL
# ============================================================================

class AgencyQuoteViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    viewsets.GenericViewSet,
):
    """Quote requests of the logged-in agency."""

    permission_classes = [IsAgencyUser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = AgencyQuoteFilterSet
    parser_classes = [JSONParser, MultiPartParser, FormParser]

    def get_queryset(self):  # type: ignore
        qs = QuoteRequest.objects.filter(agency=self.request.user.agency).select_related(
            "agency", "tour", "cruise", "departure"
        )
        if self.action == "retrieve":
            qs = qs.prefetch_related("extras__extra", "participants")
        return qs.order_by("-created_at")

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return QuoteRequestCreateSerializer
        if self.action == "retrieve":
            return AgencyQuoteDetailSerializer
        return AgencyQuoteListSerializer

    def _action_quote(self, pk) -> QuoteRequest:  # type: ignore
        # Foreign requests are refused by the services with 403
        return get_object_or_404(QuoteRequest.objects.select_related("agency", "agency__user"), pk=pk)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = QuoteRequestCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        extras = data.pop("extras", [])
        try:
            quote = services.create_quote_request(request.user, data, extras)
        except services.QuoteError as exc:
            return _error(exc)
        return Response(AgencyQuoteDetailSerializer(quote).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["get"])
    def offers(self, request):  # type: ignore
        rows = services.agency_offers(request.user.agency)
        return Response(
            [
                {
                    "request": AgencyQuoteListSerializer(row["request"]).data,
                    "offer": QuoteOfferSerializer(row["offer"]).data if row["offer"] else None,
                }
                for row in rows
            ]
        )

    @action(detail=True, methods=["post"])
    def accept(self, request, pk=None):  # type: ignore
        quote = self._action_quote(pk)
        serializer = AcceptOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.accept_offer(quote, request.user, serializer.validated_data["participants"])
        except (services.QuoteError, OwnershipError) as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"])
    def decline(self, request, pk=None):  # type: ignore
        quote = self._action_quote(pk)
        serializer = DeclineOfferSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.decline_offer(quote, request.user, serializer.validated_data.get("motivation"))
        except (services.QuoteError, OwnershipError) as exc:
            return _error(exc)
        return Response({"id": quote.pk, "status": quote.status})

    @action(detail=True, methods=["post"])
    def documents(self, request, pk=None):  # type: ignore
        quote = self._action_quote(pk)
        serializer = QuoteDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.ensure_can_add_agency_document(quote, request.user)
            file_url, file_name = _resolve_file(serializer.validated_data)
            document = services.add_document(
                quote,
                file_url=file_url,
                file_name=file_name,
                document_type=serializer.validated_data.get("document_type"),
                uploaded_by=QuoteDocument.UploadedBy.AGENCY,
                user=request.user,
            )
        except (services.QuoteError, OwnershipError, StorageError) as exc:
            return _error(exc)
        return Response(QuoteDocumentSerializer(document).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=["get"])
    def pdf(self, request, pk=None):  # type: ignore
        quote = self.get_object()
        response = HttpResponse(build_quote_pdf(quote), content_type="application/pdf")
        response["Content-Disposition"] = f'attachment; filename="preventivo-{quote.pk}.pdf"'
        return response
