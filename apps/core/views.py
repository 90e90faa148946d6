"""Health check and activity log views."""

from __future__ import annotations

import structlog
from django.db import connection
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_http_methods
from rest_framework import viewsets  # type: ignore

from apps.users.permissions import IsSuperAdminOrAdmin

from .models import ActivityLog
from .serializers import ActivityLogSerializer

logger = structlog.get_logger(__name__)


@csrf_exempt
@require_http_methods(["GET"])
def healthz(request):
    """Health check endpoint for Docker containers"""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
        logger.info("healthz.ok", database="connected")
        return JsonResponse({"status": "healthy", "database": "connected"}, status=200)
    except Exception as exc:
        logger.error("healthz.fail", error=str(exc))
        return JsonResponse({"status": "unhealthy", "error": str(exc)}, status=503)


class ActivityLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Back-office activity log, newest first."""

    serializer_class = ActivityLogSerializer
    permission_classes = [IsSuperAdminOrAdmin]
    filterset_fields = ["entity_type", "user", "action"]

    def get_queryset(self):  # type: ignore
        return ActivityLog.objects.select_related("user").all()
