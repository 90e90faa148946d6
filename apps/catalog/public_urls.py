"""Public read-only catalog feeds."""

from __future__ import annotations

from django.urls import path  # type: ignore

from .views import PublicDestinationsView, PublicMegaMenuView

urlpatterns = [
    path("destinations/", PublicDestinationsView.as_view(), name="public-destinations"),
    path("mega-menu/", PublicMegaMenuView.as_view(), name="public-mega-menu"),
]
