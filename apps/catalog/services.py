"""Domain services for destinations and macro areas."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.db import IntegrityError, transaction  # type: ignore

from apps.core.cache import get_cached_page, invalidate_paths
from apps.core.models import ActivityLog, SiteSetting
from apps.core.services import build_changes, log_activity

from .models import Destination, MacroArea, PublishStatus

logger = logging.getLogger(__name__)

MEGA_MENU_MODE_KEY = "mega_menu_mode"
MEGA_MENU_MODES = ("dynamic", "manual")

PUBLIC_PATHS = ("/destinazioni", "/mega-menu")

DESTINATION_FIELDS = ("name", "slug", "macro_area", "description", "coordinate", "cover_image_url", "sort_order", "status")
DESTINATION_LABELS = {
    "name": "Nome",
    "slug": "Slug",
    "macro_area": "Macro area",
    "description": "Descrizione",
    "coordinate": "Coordinate",
    "cover_image_url": "Immagine",
    "sort_order": "Ordine",
    "status": "Stato",
}
MACRO_AREA_FIELDS = ("name", "slug", "description", "cover_image_url", "sort_order", "status")
MACRO_AREA_LABELS = {
    "name": "Nome",
    "slug": "Slug",
    "description": "Descrizione",
    "cover_image_url": "Immagine",
    "sort_order": "Ordine",
    "status": "Stato",
}
NULLABLE_TEXT = ("macro_area", "description", "coordinate", "cover_image_url")


class CatalogError(Exception):
    """Raised when a catalog operation cannot be completed."""


class DuplicateSlugError(CatalogError):
    """Raised when a slug is already taken."""


class MacroAreaInUseError(CatalogError):
    """Raised when destinations still reference a macro area being deleted."""


def _clean(data: dict[str, Any]) -> dict[str, Any]:
    """Empty strings become None for optional text columns."""
    cleaned = dict(data)
    for field in NULLABLE_TEXT:
        if field in cleaned and cleaned[field] in ("", None):
            cleaned[field] = None
    return cleaned


def _snapshot(instance, fields: Iterable[str]) -> dict[str, Any]:  # type: ignore
    return {field: getattr(instance, field) for field in fields}


def invalidate_public_pages() -> None:
    invalidate_paths(*PUBLIC_PATHS)


# ============================================================================
# DESTINATIONS
# ============================================================================

def save_destination(data: dict[str, Any], *, instance: Destination | None = None, actor=None) -> Destination:  # type: ignore
    """Create or update a destination."""
    data = _clean(data)
    relink = "macro_area_ref" in data
    area = data.pop("macro_area_ref", None)
    if area is not None:
        data["macro_area"] = area.name

    creating = instance is None
    destination = instance or Destination()
    before = _snapshot(destination, DESTINATION_FIELDS)
    for field, value in data.items():
        setattr(destination, field, value)
    if relink:
        destination.macro_area_ref = area

    try:
        with transaction.atomic():
            destination.save()
    except IntegrityError:
        raise DuplicateSlugError("Esiste già una destinazione con questo slug.")

    if creating:
        log_activity(actor, ActivityLog.Action.CREATE, "destination", destination.pk, destination.name)
    else:
        changes = build_changes(before, _snapshot(destination, DESTINATION_FIELDS), DESTINATION_FIELDS, DESTINATION_LABELS)
        log_activity(
            actor, ActivityLog.Action.UPDATE, "destination", destination.pk, destination.name, {"changes": changes}
        )
    invalidate_public_pages()
    return destination


def delete_destination(destination: Destination, *, actor=None) -> None:  # type: ignore
    destination_id, name = destination.pk, destination.name
    destination.delete()
    log_activity(actor, ActivityLog.Action.DELETE, "destination", destination_id, name)
    invalidate_public_pages()


@transaction.atomic
def bulk_delete_destinations(ids: list[int], *, actor=None) -> int:  # type: ignore
    if not ids:
        raise CatalogError("Nessuna destinazione selezionata.")
    deleted, _ = Destination.objects.filter(pk__in=ids).delete()
    log_activity(actor, ActivityLog.Action.DELETE, "destination", ",".join(map(str, ids)), f"{deleted} destinazioni")
    invalidate_public_pages()
    return deleted


# ============================================================================
# MACRO AREAS
# ============================================================================

def save_macro_area(data: dict[str, Any], *, instance: MacroArea | None = None, actor=None) -> MacroArea:  # type: ignore
    """Create or update a macro area; a rename is propagated to its destinations."""
    data = _clean(data)
    creating = instance is None
    area = instance or MacroArea()
    before = _snapshot(area, MACRO_AREA_FIELDS)
    for field, value in data.items():
        setattr(area, field, value)

    try:
        with transaction.atomic():
            area.save()
            if not creating and before["name"] != area.name:
                Destination.objects.filter(macro_area_ref=area).update(macro_area=area.name)
    except IntegrityError:
        raise DuplicateSlugError("Esiste già una macro area con questo slug.")

    if creating:
        changes = build_changes({}, _snapshot(area, MACRO_AREA_FIELDS), MACRO_AREA_FIELDS, MACRO_AREA_LABELS)
        log_activity(actor, ActivityLog.Action.CREATE, "macro_area", area.pk, area.name, {"changes": changes})
    else:
        changes = build_changes(before, _snapshot(area, MACRO_AREA_FIELDS), MACRO_AREA_FIELDS, MACRO_AREA_LABELS)
        log_activity(actor, ActivityLog.Action.UPDATE, "macro_area", area.pk, area.name, {"changes": changes})
    invalidate_public_pages()
    return area


def toggle_macro_area_status(area: MacroArea, *, actor=None) -> MacroArea:  # type: ignore
    old_status = area.status
    area.status = PublishStatus.DRAFT if area.status == PublishStatus.PUBLISHED else PublishStatus.PUBLISHED
    area.save(update_fields=["status", "updated_at"])
    log_activity(
        actor,
        ActivityLog.Action.STATUS_CHANGE,
        "macro_area",
        area.pk,
        area.name,
        {"changes": [{"field": "status", "label": "Stato", "old": old_status, "new": area.status}]},
    )
    invalidate_public_pages()
    return area


def delete_macro_area(area: MacroArea, *, actor=None) -> None:  # type: ignore
    linked = Destination.objects.filter(macro_area_ref=area).count()
    if linked:
        raise MacroAreaInUseError(
            f"Impossibile eliminare: {linked} destinazioni sono collegate a questa macro area. Riassegnale prima."
        )
    before = _snapshot(area, MACRO_AREA_FIELDS)
    area_id, name = area.pk, area.name
    area.delete()
    changes = build_changes(before, {}, MACRO_AREA_FIELDS, MACRO_AREA_LABELS)
    log_activity(actor, ActivityLog.Action.DELETE, "macro_area", area_id, name, {"changes": changes})
    invalidate_public_pages()


@transaction.atomic
def bulk_delete_macro_areas(ids: list[int], *, actor=None) -> int:  # type: ignore
    if not ids:
        raise CatalogError("Nessuna macro area selezionata")
    linked = Destination.objects.filter(macro_area_ref_id__in=ids).count()
    if linked:
        raise MacroAreaInUseError(
            f"Impossibile eliminare: {linked} destinazioni sono collegate a queste macro aree."
        )
    deleted, _ = MacroArea.objects.filter(pk__in=ids).delete()
    log_activity(actor, ActivityLog.Action.DELETE, "macro_area", ",".join(map(str, ids)), f"{deleted} macro aree")
    invalidate_public_pages()
    return deleted


def get_mega_menu_mode() -> str:
    mode = SiteSetting.get_value(MEGA_MENU_MODE_KEY, "dynamic")
    return mode if mode in MEGA_MENU_MODES else "dynamic"


def set_mega_menu_mode(mode: str, *, actor=None) -> str:  # type: ignore
    if mode not in MEGA_MENU_MODES:
        raise CatalogError("Modalità mega menu non valida.")
    SiteSetting.set_value(MEGA_MENU_MODE_KEY, mode)
    log_activity(actor, ActivityLog.Action.SETTINGS, "site_setting", MEGA_MENU_MODE_KEY, "Mega menu", {"value": mode})
    invalidate_public_pages()
    return mode


# ============================================================================
# PUBLIC PAGES
# ============================================================================

def _published_destinations() -> list[dict[str, Any]]:
    return list(
        Destination.objects.filter(status=PublishStatus.PUBLISHED).values(
            "id", "name", "slug", "macro_area", "coordinate", "cover_image_url"
        )
    )


def _mega_menu() -> dict[str, Any]:
    areas = MacroArea.objects.filter(status=PublishStatus.PUBLISHED).prefetch_related("destinations")
    return {
        "mode": get_mega_menu_mode(),
        "areas": [
            {
                "id": area.pk,
                "name": area.name,
                "slug": area.slug,
                "destinations": [
                    {"id": dest.pk, "name": dest.name, "slug": dest.slug}
                    for dest in area.destinations.all()
                    if dest.status == PublishStatus.PUBLISHED
                ],
            }
            for area in areas
        ],
    }


def public_destinations() -> list[dict[str, Any]]:
    return get_cached_page("/destinazioni", _published_destinations)


def public_mega_menu() -> dict[str, Any]:
    return get_cached_page("/mega-menu", _mega_menu)
