"""Activity logging helpers used by the back-office services."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from .models import ActivityLog

logger = logging.getLogger(__name__)


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    return str(value)


def build_changes(
    old: Mapping[str, Any],
    new: Mapping[str, Any],
    fields: Iterable[str],
    labels: Mapping[str, str] | None = None,
) -> list[dict[str, Any]]:
    """Return one entry per field whose value differs between ``old`` and ``new``.

    Empty strings and ``None`` are treated as the same value so that blank
    form fields do not show up as changes.
    """
    labels = labels or {}
    changes: list[dict[str, Any]] = []
    for field in fields:
        before = old.get(field)
        after = new.get(field)
        if (before in ("", None)) and (after in ("", None)):
            continue
        if _plain(before) == _plain(after):
            continue
        changes.append(
            {
                "field": field,
                "label": labels.get(field, field),
                "old": _plain(before),
                "new": _plain(after),
            }
        )
    return changes


def log_activity(
    user,
    action: str,
    entity_type: str,
    entity_id: Any = "",
    entity_title: str = "",
    details: dict[str, Any] | None = None,
) -> bool:
    """
    Append an activity row for a back-office action.

    Args:
        user: Author of the action (may be None for system jobs)
        action: One of ActivityLog.Action
        entity_type: Kind of object touched (destination, macro_area, ...)
        entity_id: Primary key of the object
        entity_title: Human readable name at the time of the action
        details: Extra payload, e.g. {"changes": build_changes(...)}

    Returns:
        bool: True if the row was written
    """
    try:
        ActivityLog.objects.create(
            user=user if getattr(user, "is_authenticated", False) else None,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id or ""),
            entity_title=(entity_title or "")[:255],
            details=details or {},
        )
        return True
    except Exception as e:
        logger.error(f"Failed to log activity {action} on {entity_type}:{entity_id}: {e}", exc_info=True)
        return False
