"""Celery tasks for the agency domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore

from .services import expire_pending_agencies as _expire_pending_agencies

logger = logging.getLogger(__name__)


@shared_task(name="agencies.expire_pending_agencies")
def expire_pending_agencies() -> dict[str, int]:
    """
    Remove pending agencies that never uploaded the business registry
    document within the grace period.

    Runs hourly via Celery Beat.

    Returns:
        dict: {"expired": number of agencies deleted}
    """
    expired = _expire_pending_agencies()
    if expired > 0:
        logger.info(f"Expired {expired} pending agencies")
    return {"expired": expired}
