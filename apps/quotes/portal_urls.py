"""URL routing for quote requests in the agency portal."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AgencyQuoteViewSet

router = DefaultRouter()
router.register(r"", AgencyQuoteViewSet, basename="agency-quote")

urlpatterns = [
    path("", include(router.urls)),
]
