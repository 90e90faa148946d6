"""URL routing for back-office agency management."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminAgencyViewSet

router = DefaultRouter()
router.register(r"", AdminAgencyViewSet, basename="admin-agency")

urlpatterns = [
    path("", include(router.urls)),
]
