"""URL routing for back-office account statements."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import AccountStatementViewSet

router = DefaultRouter()
router.register(r"", AccountStatementViewSet, basename="account-statement")

urlpatterns = [
    path("", include(router.urls)),
]
