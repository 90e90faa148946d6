"""URL routing for the back-office quote workflow."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AdminQuoteViewSet

router = DefaultRouter()
router.register(r"", AdminQuoteViewSet, basename="admin-quote")

urlpatterns = [
    path("", include(router.urls)),
]
