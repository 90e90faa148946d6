"""API views for destinations and macro areas."""

from __future__ import annotations

from django.db.models import Count, Q  # type: ignore
from rest_framework import permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from apps.users.permissions import HasSection, IsSuperAdminOrAdmin

from .models import Destination, MacroArea
from .serializers import BulkIdsSerializer, DestinationSerializer, MacroAreaSerializer, MegaMenuModeSerializer
from .services import (
    CatalogError,
    bulk_delete_destinations,
    bulk_delete_macro_areas,
    delete_destination,
    delete_macro_area,
    get_mega_menu_mode,
    public_destinations,
    public_mega_menu,
    save_destination,
    save_macro_area,
    set_mega_menu_mode,
    toggle_macro_area_status,
)


class DestinationViewSet(viewsets.ModelViewSet):
    """Back-office destinations (section `destinations`)."""

    serializer_class = DestinationSerializer
    permission_classes = [HasSection]
    required_section = "destinations"

    def get_queryset(self):  # type: ignore
        qs = Destination.objects.select_related("macro_area_ref")
        params = self.request.query_params
        if params.get("status"):
            qs = qs.filter(status=params["status"])
        if params.get("macro_area"):
            qs = qs.filter(Q(macro_area=params["macro_area"]) | Q(macro_area_ref__slug=params["macro_area"]))
        search = params.get("search")
        if search:
            qs = qs.filter(Q(name__icontains=search) | Q(slug__icontains=search))
        return qs

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            destination = save_destination(dict(serializer.validated_data), actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(destination).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            destination = save_destination(dict(serializer.validated_data), instance=instance, actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(destination).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        delete_destination(self.get_object(), actor=request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request):  # type: ignore
        serializer = BulkIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deleted = bulk_delete_destinations(serializer.validated_data["ids"], actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"deleted": deleted})


class MacroAreaViewSet(viewsets.ModelViewSet):
    """Back-office macro areas (section `destinations`)."""

    serializer_class = MacroAreaSerializer
    permission_classes = [HasSection]
    required_section = "destinations"

    def get_queryset(self):  # type: ignore
        qs = MacroArea.objects.annotate(destinations_count=Count("destinations"))
        if self.request.query_params.get("status"):
            qs = qs.filter(status=self.request.query_params["status"])
        return qs.order_by("sort_order", "name")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            area = save_macro_area(dict(serializer.validated_data), actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(area).data, status=status.HTTP_201_CREATED)

    def update(self, request, *args, **kwargs):  # type: ignore
        partial = kwargs.pop("partial", False)
        instance = self.get_object()
        serializer = self.get_serializer(instance, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        try:
            area = save_macro_area(dict(serializer.validated_data), instance=instance, actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(self.get_serializer(area).data)

    def destroy(self, request, *args, **kwargs):  # type: ignore
        try:
            delete_macro_area(self.get_object(), actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], url_path="toggle-status")
    def toggle_status(self, request, pk=None):  # type: ignore
        area = toggle_macro_area_status(self.get_object(), actor=request.user)
        return Response({"id": area.pk, "status": area.status})

    @action(detail=False, methods=["post"], url_path="bulk-delete")
    def bulk_delete(self, request):  # type: ignore
        serializer = BulkIdsSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            deleted = bulk_delete_macro_areas(serializer.validated_data["ids"], actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"deleted": deleted})


class MegaMenuModeView(APIView):
    """Read or switch the storefront mega menu mode."""

    def get_permissions(self):  # type: ignore
        if self.request.method == "GET":
            return [HasSection()]
        return [IsSuperAdminOrAdmin()]

    required_section = "destinations"

    def get(self, request):  # type: ignore
        return Response({"mode": get_mega_menu_mode()})

    def put(self, request):  # type: ignore
        serializer = MegaMenuModeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            mode = set_mega_menu_mode(serializer.validated_data["mode"], actor=request.user)
        except CatalogError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        return Response({"mode": mode})


# ============================================================================
# PUBLIC FEEDS
# ============================================================================

class PublicDestinationsView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        return Response(public_destinations())


class PublicMegaMenuView(APIView):
    permission_classes = [permissions.AllowAny]
    authentication_classes: list = []

    def get(self, request):  # type: ignore
        return Response(public_mega_menu())
