"""Domain services for account statements."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from django.db.models import Count, Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.agencies.models import Agency
from apps.core.cache import get_cached_page, invalidate_paths
from apps.core.models import ActivityLog
from apps.core.services import build_changes, log_activity
from apps.notifications import email_templates
from apps.notifications.services import create_in_app_notification, send_template_email

from .models import AccountStatement

logger = logging.getLogger(__name__)

ADMIN_STATEMENTS_PATH = "/admin/estratti-conto"
AGENCY_STATEMENTS_PATH = "/agenzia/estratto-conto"

FIELDS = ("agency", "title", "file_url", "data", "stato")
LABELS = {
    "agency": "Agenzia",
    "title": "Titolo",
    "file_url": "File",
    "data": "Data",
    "stato": "Stato",
}


class StatementError(Exception):
    """Raised when a statement operation cannot be completed."""


def _invalidate() -> None:
    invalidate_paths(ADMIN_STATEMENTS_PATH, AGENCY_STATEMENTS_PATH)


def _snapshot(statement: AccountStatement) -> dict[str, Any]:
    return {
        "agency": statement.agency_id,
        "title": statement.title,
        "file_url": statement.file_url,
        "data": statement.data,
        "stato": statement.stato,
    }


def create_statement(data: Mapping[str, Any], *, actor=None) -> AccountStatement:  # type: ignore
    statement = AccountStatement.objects.create(**data)
    log_activity(actor, ActivityLog.Action.CREATE, "account_statement", statement.pk, statement.title)
    _invalidate()
    return statement


def update_statement(statement: AccountStatement, data: Mapping[str, Any], *, actor=None) -> AccountStatement:  # type: ignore
    before = _snapshot(statement)
    for field, value in data.items():
        setattr(statement, field, value)
    statement.save()
    changes = build_changes(before, _snapshot(statement), FIELDS, LABELS)
    log_activity(
        actor, ActivityLog.Action.UPDATE, "account_statement", statement.pk, statement.title, {"changes": changes}
    )
    _invalidate()
    return statement


def delete_statement(statement: AccountStatement, *, actor=None) -> None:  # type: ignore
    statement_id, title = statement.pk, statement.title
    statement.delete()
    log_activity(actor, ActivityLog.Action.DELETE, "account_statement", statement_id, title)
    _invalidate()


def send_statement_email(statement: AccountStatement, *, actor=None) -> AccountStatement:  # type: ignore
    """
    Email the statement link to its agency.

    Unlike the other notifications the email is the whole point here: a
    failed send leaves the statement untouched and raises StatementError.
    """
    if not statement.file_url:
        raise StatementError("L'estratto conto non ha un file allegato.")
    agency = statement.agency
    recipient = agency.email or agency.user.email
    sent = send_template_email(
        recipient,
        email_templates.account_statement_email(agency.business_name, statement.title, statement.file_url),
    )
    if not sent:
        raise StatementError("Invio dell'email non riuscito. Riprova più tardi.")

    previous = statement.stato
    statement.stato = AccountStatement.Stato.INVIATO
    statement.save(update_fields=["stato", "updated_at"])
    create_in_app_notification(
        agency.user,
        title="Nuovo estratto conto",
        message=f"È disponibile l'estratto conto: {statement.title}.",
        link="/agenzia/estratto-conto",
    )
    log_activity(
        actor,
        ActivityLog.Action.STATUS_CHANGE,
        "account_statement",
        statement.pk,
        statement.title,
        {"changes": [{"field": "stato", "label": "Stato", "old": previous, "new": statement.stato}]},
    )
    logger.info(f"Account statement {statement.pk} sent to {recipient}")
    _invalidate()
    return statement


def _compute_stats() -> dict[str, int]:
    now = timezone.localtime()
    first_of_month = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    return AccountStatement.objects.aggregate(
        total=Count("id"),
        bozze=Count("id", filter=Q(stato=AccountStatement.Stato.BOZZA)),
        inviati=Count("id", filter=Q(stato=AccountStatement.Stato.INVIATO)),
        thisMonth=Count("id", filter=Q(created_at__gte=first_of_month)),
    )


def statement_stats() -> dict[str, int]:
    return get_cached_page(f"{ADMIN_STATEMENTS_PATH}/stats", _compute_stats)


def active_agencies() -> list[dict[str, Any]]:
    return list(
        Agency.objects.filter(status=Agency.Status.ACTIVE).order_by("business_name").values("id", "business_name")
    )
