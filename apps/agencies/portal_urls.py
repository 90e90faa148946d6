"""URL routing for the agency portal (registration, profile, documents)."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import AgencyDocumentView, AgencyProfileView, AgencyRegisterView

urlpatterns = [
    path("register/", AgencyRegisterView.as_view(), name="agency-register"),
    path("profile/", AgencyProfileView.as_view(), name="agency-profile"),
    path("documents/", AgencyDocumentView.as_view(), name="agency-documents"),
]
