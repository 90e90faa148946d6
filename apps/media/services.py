"""Domain services for the media library."""

from __future__ import annotations

import logging
from typing import Any, Iterable

from django.core.paginator import Paginator
from django.db import IntegrityError, transaction
from django.db.models import Count, Q

from apps.core.cache import invalidate_paths
from apps.core.models import ActivityLog
from apps.core.services import log_activity

from .models import MediaFolder, MediaItem
from .storage import StorageError, get_storage, store_upload

logger = logging.getLogger(__name__)

PAGE_SIZE = 50
ADMIN_MEDIA_PATH = "/admin/media"
ROOT_FOLDER = "root"


class MediaError(Exception):
    """Raised when a media library operation cannot be completed."""


class FolderNameTakenError(MediaError):
    """Raised when a sibling folder already uses the name."""


def _folder_or_none(folder_id) -> MediaFolder | None:  # type: ignore
    if folder_id in (None, "", ROOT_FOLDER):
        return None
    try:
        return MediaFolder.objects.get(pk=folder_id)
    except (MediaFolder.DoesNotExist, ValueError):
        raise MediaError("Cartella non trovata.")


# ============================================================================
# ITEMS
# ============================================================================

def upload_files(files: Iterable[Any], *, folder_id=None, actor=None) -> list[MediaItem]:  # type: ignore
    """Upload one or more files into ``folder_id`` (root when empty)."""
    folder = _folder_or_none(folder_id)
    items = []
    for file_obj in files:
        stored = store_upload(file_obj)
        items.append(
            MediaItem.objects.create(
                filename=stored["file_name"],
                url=stored["url"],
                storage_key=stored["key"],
                bucket=stored["bucket"],
                file_size=stored["file_size"],
                mime_type=stored["mime_type"],
                width=stored["width"],
                height=stored["height"],
                folder=folder,
            )
        )
    if items:
        log_activity(actor, ActivityLog.Action.CREATE, "media", items[0].pk, f"{len(items)} file caricati")
        invalidate_paths(ADMIN_MEDIA_PATH)
    return items


def register_media(*, url: str, filename: str = "", folder_id=None, actor=None, **meta: Any) -> MediaItem:  # type: ignore
    """Register an already-hosted file (external URL) in the library."""
    folder = _folder_or_none(folder_id)
    item = MediaItem.objects.create(
        url=url,
        filename=filename or url.rsplit("/", 1)[-1] or "file",
        folder=folder,
        storage_key=meta.get("storage_key") or "",
        bucket=meta.get("bucket") or "",
        file_size=meta.get("file_size"),
        mime_type=meta.get("mime_type") or "",
        width=meta.get("width"),
        height=meta.get("height"),
        alt_text=meta.get("alt_text") or "",
    )
    log_activity(actor, ActivityLog.Action.CREATE, "media", item.pk, item.filename)
    invalidate_paths(ADMIN_MEDIA_PATH)
    return item


def filter_items(*, folder=None, search: str | None = None, mime: str | None = None):  # type: ignore
    qs = MediaItem.objects.select_related("folder")
    if folder == ROOT_FOLDER:
        qs = qs.filter(folder__isnull=True)
    elif folder:
        qs = qs.filter(folder_id=folder)
    if search:
        qs = qs.filter(Q(filename__icontains=search) | Q(alt_text__icontains=search))
    if mime:
        qs = qs.filter(mime_type__startswith=mime)
    return qs.order_by("-created_at", "-pk")


def list_items(*, page: int = 1, **filters: Any) -> dict[str, Any]:
    """One page of items (50 per page, newest first)."""
    paginator = Paginator(filter_items(**filters), PAGE_SIZE)
    page_obj = paginator.get_page(page)
    return {
        "items": list(page_obj.object_list),
        "total": paginator.count,
        "page": page_obj.number,
        "pages": paginator.num_pages,
        "page_size": PAGE_SIZE,
    }


def update_item(item: MediaItem, *, actor=None, **fields: Any) -> MediaItem:  # type: ignore
    changed = [name for name in ("alt_text", "filename") if name in fields]
    for name in changed:
        setattr(item, name, fields[name] or "")
    if "filename" in changed and not item.filename:
        raise MediaError("Il nome del file è obbligatorio.")
    if changed:
        item.save(update_fields=changed)
        log_activity(actor, ActivityLog.Action.UPDATE, "media", item.pk, item.filename)
        invalidate_paths(ADMIN_MEDIA_PATH)
    return item


def move_items(ids: list[int], folder_id=None, *, actor=None) -> int:  # type: ignore
    if not ids:
        raise MediaError("Nessun file selezionato.")
    folder = _folder_or_none(folder_id)
    moved = MediaItem.objects.filter(pk__in=ids).update(folder=folder)
    log_activity(
        actor,
        ActivityLog.Action.UPDATE,
        "media",
        ",".join(map(str, ids)),
        f"{moved} file spostati in {folder.name if folder else 'radice'}",
    )
    invalidate_paths(ADMIN_MEDIA_PATH)
    return moved


def _remove_object(item: MediaItem) -> None:
    if not item.storage_key:
        return
    try:
        get_storage(item.bucket or None).delete(item.storage_key)
    except StorageError as e:
        logger.error(f"Storage cleanup failed for media {item.pk} ({item.storage_key}): {e}")


def delete_item(item: MediaItem, *, actor=None) -> None:  # type: ignore
    """Delete the stored object, then the row; the row goes even if storage fails."""
    _remove_object(item)
    item_id, filename = item.pk, item.filename
    item.delete()
    log_activity(actor, ActivityLog.Action.DELETE, "media", item_id, filename)
    invalidate_paths(ADMIN_MEDIA_PATH)


def bulk_delete_items(ids: list[int], *, actor=None) -> int:  # type: ignore
    if not ids:
        raise MediaError("Nessun file selezionato.")
    items = list(MediaItem.objects.filter(pk__in=ids))
    for item in items:
        _remove_object(item)
    with transaction.atomic():
        deleted, _ = MediaItem.objects.filter(pk__in=[item.pk for item in items]).delete()
    log_activity(actor, ActivityLog.Action.DELETE, "media", ",".join(map(str, ids)), f"{deleted} file")
    invalidate_paths(ADMIN_MEDIA_PATH)
    return deleted


# ============================================================================
# FOLDERS
# ============================================================================

def _check_sibling_name(name: str, parent: MediaFolder | None, exclude_pk=None) -> None:  # type: ignore
    siblings = MediaFolder.objects.filter(parent=parent, name__iexact=name)
    if exclude_pk is not None:
        siblings = siblings.exclude(pk=exclude_pk)
    if siblings.exists():
        raise FolderNameTakenError("Esiste già una cartella con questo nome.")


def create_folder(name: str, parent_id=None, *, actor=None) -> MediaFolder:  # type: ignore
    name = (name or "").strip()
    if not name:
        raise MediaError("Il nome della cartella è obbligatorio.")
    parent = _folder_or_none(parent_id)
    _check_sibling_name(name, parent)
    try:
        with transaction.atomic():
            folder = MediaFolder.objects.create(name=name, parent=parent)
    except IntegrityError:
        raise FolderNameTakenError("Esiste già una cartella con questo nome.")
    log_activity(actor, ActivityLog.Action.CREATE, "media_folder", folder.pk, folder.name)
    invalidate_paths(ADMIN_MEDIA_PATH)
    return folder


def rename_folder(folder: MediaFolder, name: str, *, actor=None) -> MediaFolder:  # type: ignore
    name = (name or "").strip()
    if not name:
        raise MediaError("Il nome della cartella è obbligatorio.")
    _check_sibling_name(name, folder.parent, exclude_pk=folder.pk)
    old_name = folder.name
    folder.name = name
    try:
        with transaction.atomic():
            folder.save()
    except IntegrityError:
        raise FolderNameTakenError("Esiste già una cartella con questo nome.")
    log_activity(
        actor,
        ActivityLog.Action.UPDATE,
        "media_folder",
        folder.pk,
        folder.name,
        {"changes": [{"field": "name", "label": "Nome", "old": old_name, "new": name}]},
    )
    invalidate_paths(ADMIN_MEDIA_PATH)
    return folder


@transaction.atomic
def delete_folder(folder: MediaFolder, *, actor=None) -> int:  # type: ignore
    """Delete a folder with its subfolders; their items move to the root.

    Returns the number of items moved.
    """
    subtree = folder.get_descendants(include_self=True)
    moved = MediaItem.objects.filter(folder__in=subtree).update(folder=None)
    folder_id, name = folder.pk, folder.name
    folder.delete()
    log_activity(actor, ActivityLog.Action.DELETE, "media_folder", folder_id, name, {"moved_items": moved})
    invalidate_paths(ADMIN_MEDIA_PATH)
    return moved


def folder_tree() -> dict[str, Any]:
    """Folders (tree order) with their item counts, plus total and root counts."""
    folders = MediaFolder.objects.annotate(item_count=Count("items")).order_by("tree_id", "lft")
    return {
        "folders": [
            {
                "id": folder.pk,
                "name": folder.name,
                "parent_id": folder.parent_id,
                "level": folder.level,
                "item_count": folder.item_count,
            }
            for folder in folders
        ],
        "total": MediaItem.objects.count(),
        "root": MediaItem.objects.filter(folder__isnull=True).count(),
    }
