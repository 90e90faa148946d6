"""API views for agencies: back-office management and the agency portal."""

from __future__ import annotations

from django.db.models import Count, Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.media.storage import StorageError, upload_document
from apps.users.auth_views import tokens_for_user
from apps.users.permissions import HasSection, IsAgencyUser
from apps.users.serializers import UserSerializer

from .models import Agency
from .serializers import (
    AgencyDetailSerializer,
    AgencyDocumentSerializer,
    AgencyDocumentUploadSerializer,
    AgencyProfileSerializer,
    AgencyRegisterSerializer,
    AgencySerializer,
    AgencyStatusSerializer,
)
from .services import (
    AgencyError,
    OwnershipError,
    agency_stats,
    approve_agency,
    delete_agency,
    register_agency,
    save_agency_document,
    update_agency_profile,
    update_agency_status,
)


class AdminAgencyViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Back-office agency management (section `agencies`)."""

    permission_classes = [HasSection]
    required_section = "agencies"

    def get_queryset(self):  # type: ignore
        qs = Agency.objects.select_related("user").annotate(quotes_count=Count("quote_requests"))
        status_filter = self.request.query_params.get("status")
        if status_filter:
            qs = qs.filter(status=status_filter)
        search = self.request.query_params.get("search")
        if search:
            qs = qs.filter(
                Q(business_name__icontains=search) | Q(email__icontains=search) | Q(city__icontains=search)
            )
        if self.action == "retrieve":
            qs = qs.prefetch_related("documents")
        return qs.order_by("-created_at")

    def get_serializer_class(self):  # type: ignore
        if self.action == "retrieve":
            return AgencyDetailSerializer
        return AgencySerializer

    def destroy(self, request, *args, **kwargs):  # type: ignore
        delete_agency(self.get_object(), actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(agency_stats())

    @action(detail=False, methods=["get"])
    def pending(self, request):  # type: ignore
        qs = self.get_queryset().filter(status=Agency.Status.PENDING)
        return Response(AgencySerializer(qs, many=True).data)

    @action(detail=True, methods=["post"], url_path="status")
    def update_status(self, request, pk=None):  # type: ignore
        agency = self.get_object()
        serializer = AgencyStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data["status"]
        if new_status == Agency.Status.ACTIVE and agency.status != Agency.Status.ACTIVE:
            approve_agency(agency, actor=request.user)
        else:
            try:
                update_agency_status(agency, new_status, actor=request.user)
            except AgencyError as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"id": agency.pk, "status": agency.status})

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        agency = self.get_object()
        if agency.status == Agency.Status.ACTIVE:
            return Response({"detail": "L'agenzia è già attiva."}, status=status.HTTP_400_BAD_REQUEST)
        approve_agency(agency, actor=request.user)
        return Response({"id": agency.pk, "status": agency.status})

    @action(detail=True, methods=["get"])
    def quotes(self, request, pk=None):  # type: ignore
        from apps.quotes.serializers import QuoteRequestListSerializer

        agency = self.get_object()
        qs = agency.quote_requests.select_related("tour", "cruise", "departure").order_by("-created_at")
        return Response(QuoteRequestListSerializer(qs, many=True).data)


# ============================================================================
# AGENCY PORTAL
# ============================================================================

class AgencyRegisterView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def post(self, request):  # type: ignore
        serializer = AgencyRegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        data.pop("password_confirm")
        try:
            agency = register_agency(**data)
        except AgencyError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        payload = {
            "user": UserSerializer(agency.user).data,
            "agency": AgencyProfileSerializer(agency).data,
            "tokens": tokens_for_user(agency.user),
        }
        return Response(payload, status=status.HTTP_201_CREATED)


class AgencyProfileView(APIView):
    """Own agency profile: read and partial update."""

    permission_classes = [IsAgencyUser]

    def get(self, request):  # type: ignore
        return Response(AgencyProfileSerializer(request.user.agency).data)

    def patch(self, request):  # type: ignore
        agency = request.user.agency
        serializer = AgencyProfileSerializer(agency, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        try:
            update_agency_profile(agency, request.user, serializer.validated_data)
        except OwnershipError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(AgencyProfileSerializer(agency).data)


class AgencyDocumentView(APIView):
    """Documents of the own agency (business registry, licence, ...)."""

    permission_classes = [IsAgencyUser]

    def get(self, request):  # type: ignore
        documents = request.user.agency.documents.all()
        return Response(AgencyDocumentSerializer(documents, many=True).data)

    def post(self, request):  # type: ignore
        serializer = AgencyDocumentUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        file_url = data.get("file_url")
        file_name = data.get("file_name") or ""
        if data.get("file"):
            try:
                stored = upload_document(data["file"])
            except StorageError as exc:
                return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
            file_url, file_name = stored["url"], stored["file_name"]

        try:
            document = save_agency_document(
                request.user.agency,
                request.user,
                document_type=data["document_type"],
                file_url=file_url,
                file_name=file_name or file_url.rsplit("/", 1)[-1],
            )
        except OwnershipError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_403_FORBIDDEN)
        return Response(AgencyDocumentSerializer(document).data, status=status.HTTP_201_CREATED)
