"""URL routing for back-office catalog management."""

from __future__ import annotations

from django.urls import include, path  # type: ignore
from rest_framework.routers import DefaultRouter  # type: ignore

from .views import DestinationViewSet, MacroAreaViewSet, MegaMenuModeView

router = DefaultRouter()
router.register(r"destinations", DestinationViewSet, basename="destination")
router.register(r"macro-areas", MacroAreaViewSet, basename="macro-area")

urlpatterns = [
    path("mega-menu-mode/", MegaMenuModeView.as_view(), name="mega-menu-mode"),
    path("", include(router.urls)),
]
