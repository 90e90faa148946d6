"""Back-office and agency-portal views for account statements."""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend  # type: ignore
from rest_framework import generics, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.media.storage import StorageError, upload_document
from apps.users.permissions import HasSection, IsAgencyUser

from .filters import AccountStatementFilterSet, AgencyStatementFilterSet
from .models import AccountStatement
from .serializers import AccountStatementSerializer, AgencyStatementSerializer
from .services import (
    StatementError,
    active_agencies,
    create_statement,
    delete_statement,
    send_statement_email,
    statement_stats,
    update_statement,
)

logger = logging.getLogger(__name__)


def _with_uploaded_file(data: dict) -> dict:
    """Replace an uploaded ``file`` with the hosted ``file_url``."""
    upload = data.pop("file", None)
    if upload is not None:
        data["file_url"] = upload_document(upload)["url"]
    return data


class AccountStatementViewSet(viewsets.ModelViewSet):
    """Back-office statements (section `account_statements`)."""

    serializer_class = AccountStatementSerializer
    permission_classes = [HasSection]
    required_section = "account_statements"
    filter_backends = [DjangoFilterBackend]
    filterset_class = AccountStatementFilterSet

    def get_queryset(self):  # type: ignore
        return AccountStatement.objects.select_related("agency").order_by("-data", "-created_at")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            data = _with_uploaded_file(dict(serializer.validated_data))
        except StorageError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        statement = create_statement(data, actor=request.user)
        return Response(self.get_serializer(statement).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            data = _with_uploaded_file(dict(serializer.validated_data))
        except StorageError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_502_BAD_GATEWAY)
        statement = update_statement(instance, data, actor=request.user)
        return Response(self.get_serializer(statement).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        delete_statement(self.get_object(), actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="send-email")
    def send_email(self, request, pk=None):  # type: ignore
        try:
            statement = send_statement_email(self.get_object(), actor=request.user)
        except StatementError as exc:
            logger.warning(f"Statement {pk} not sent: {exc}")
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(statement).data)

    @action(detail=False, methods=["get"])
    def stats(self, request):  # type: ignore
        return Response(statement_stats())

    @action(detail=False, methods=["get"], url_path="active-agencies")
    def active_agencies(self, request):  # type: ignore
        return Response(active_agencies())


class AgencyStatementListView(generics.ListAPIView):
    """The signed-in agency's own statements, newest first."""

    serializer_class = AgencyStatementSerializer
    permission_classes = [IsAgencyUser]
    filter_backends = [DjangoFilterBackend]
    filterset_class = AgencyStatementFilterSet
    pagination_class = None

    def get_queryset(self):  # type: ignore
        return AccountStatement.objects.filter(agency=self.request.user.agency).order_by("-data", "-created_at")
