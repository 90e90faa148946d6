"""Domain services for the agency lifecycle."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.db.models import Count, Q  # type: ignore
from django.utils import timezone  # type: ignore

from apps.core.cache import get_cached_page, invalidate_paths
from apps.core.models import ActivityLog
from apps.core.services import log_activity
from apps.notifications import email_templates
from apps.notifications.services import (
    create_in_app_notification,
    notify_super_admins,
    send_admin_notification,
    send_template_email,
)
from apps.users.models import CustomUser

from .models import Agency, AgencyDocument

logger = logging.getLogger(__name__)

ADMIN_AGENCIES_PATH = "/admin/agenzie"
ADMIN_QUOTES_PATH = "/admin/preventivi"
ADMIN_STATEMENTS_PATH = "/admin/estratti-conto"
AGENCY_PORTAL_PATH = "/agenzia"

PROFILE_FIELDS = (
    "business_name",
    "vat_number",
    "fiscal_code",
    "license_number",
    "address",
    "city",
    "zip_code",
    "province",
    "region",
    "contact_name",
    "phone",
    "email",
    "website",
    "latitude",
    "longitude",
)


class AgencyError(Exception):
    """Raised when an agency operation cannot be completed."""


class OwnershipError(AgencyError):
    """Raised when a user acts on an agency that is not theirs."""


def _agency_email(agency: Agency) -> str:
    return agency.email or agency.user.email


# ============================================================================
# REGISTRATION
# ============================================================================

def register_agency(*, email: str, password: str, business_name: str, **profile: Any) -> Agency:
    """
    Public sign-up: creates the portal user and a pending agency.

    Notifies super admins in-app and by email and welcomes the agency.
    """
    email = email.strip().lower()
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise AgencyError("Questa email è già registrata.")

    with transaction.atomic():
        user = CustomUser.objects.create_user(
            email=email,
            password=password,
            username=profile.get("contact_name") or business_name,
            role=CustomUser.RoleChoices.AGENCY,
        )
        fields = {key: value for key, value in profile.items() if key in PROFILE_FIELDS and value is not None}
        fields.setdefault("email", email)
        agency = Agency.objects.create(user=user, business_name=business_name, **fields)

    logger.info(f"Agency {agency.business_name} registered ({email}), waiting for approval")

    notify_super_admins(
        title="Nuova agenzia registrata",
        message=f"{agency.business_name} ({agency.city or 'città n/d'}) ha richiesto l'accesso.",
        link=f"/admin/agenzie/{agency.pk}",
    )
    send_template_email(_agency_email(agency), email_templates.welcome_agency_email(agency.business_name))
    send_admin_notification(
        email_templates.admin_new_agency_email(
            agency.business_name,
            agency.contact_name or None,
            _agency_email(agency),
            agency.city or None,
        )
    )
    invalidate_paths(ADMIN_AGENCIES_PATH)
    return agency


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================

def update_agency_status(agency: Agency, status: str, *, actor=None) -> Agency:  # type: ignore
    if status not in Agency.Status.values:
        raise AgencyError("Stato non valido.")
    previous = agency.status
    agency.set_status(status)
    log_activity(
        actor,
        ActivityLog.Action.STATUS_CHANGE,
        "agency",
        agency.pk,
        agency.business_name,
        {"changes": [{"field": "status", "label": "Stato", "old": previous, "new": status}]},
    )
    invalidate_paths(ADMIN_AGENCIES_PATH)
    return agency


def approve_agency(agency: Agency, *, actor=None) -> Agency:  # type: ignore
    """Activate the agency, notify its user in-app and by email."""
    update_agency_status(agency, Agency.Status.ACTIVE, actor=actor)
    create_in_app_notification(
        agency.user,
        title="Account approvato",
        message="Il tuo account è stato approvato. Ora puoi richiedere preventivi.",
        link="/agenzia/dashboard",
    )
    send_template_email(_agency_email(agency), email_templates.agency_approved_email(agency.business_name))
    return agency


@transaction.atomic
def delete_agency(agency: Agency, *, actor=None) -> None:  # type: ignore
    """Delete the agency with its user; quote requests and documents cascade."""
    agency_id, name = agency.pk, agency.business_name
    user = agency.user
    agency.delete()
    user.delete()
    log_activity(actor, ActivityLog.Action.DELETE, "agency", agency_id, name)
    # quote requests and account statements go with the agency
    invalidate_paths(ADMIN_AGENCIES_PATH, ADMIN_QUOTES_PATH, ADMIN_STATEMENTS_PATH, AGENCY_PORTAL_PATH)
    logger.info(f"Agency {name} ({agency_id}) deleted")


def _compute_stats() -> dict[str, int]:
    from apps.quotes.models import QuoteRequest

    counts = Agency.objects.aggregate(
        total=Count("id"),
        active=Count("id", filter=Q(status=Agency.Status.ACTIVE)),
        pending=Count("id", filter=Q(status=Agency.Status.PENDING)),
        blocked=Count("id", filter=Q(status=Agency.Status.BLOCKED)),
    )
    counts["totalQuotes"] = QuoteRequest.objects.count()
    return counts


def agency_stats() -> dict[str, int]:
    return get_cached_page(f"{ADMIN_AGENCIES_PATH}/stats", _compute_stats)


# ============================================================================
# AGENCY SELF-SERVICE
# ============================================================================

def ensure_owner(agency: Agency, user) -> None:  # type: ignore
    if agency.user_id != getattr(user, "pk", None):
        raise OwnershipError("Non autorizzato.")


def update_agency_profile(agency: Agency, user, data: dict[str, Any]) -> Agency:  # type: ignore
    ensure_owner(agency, user)
    changed = []
    for field in PROFILE_FIELDS:
        if field in data:
            setattr(agency, field, data[field])
            changed.append(field)
    if changed:
        agency.save(update_fields=[*changed, "updated_at"])
    return agency


def save_agency_document(agency: Agency, user, *, document_type: str, file_url: str, file_name: str) -> AgencyDocument:  # type: ignore
    """Store an uploaded document and tell the back-office about it."""
    ensure_owner(agency, user)
    document = AgencyDocument.objects.create(
        agency=agency,
        document_type=document_type,
        file_url=file_url,
        file_name=file_name,
    )
    label = document.get_document_type_display()
    notify_super_admins(
        title="Nuovo documento caricato",
        message=f"{agency.business_name} ha caricato: {label}.",
        link=f"/admin/agenzie/{agency.pk}",
    )
    send_admin_notification(
        email_templates.admin_document_uploaded_email(agency.business_name, str(label), file_url, agency.pk)
    )
    return document


# ============================================================================
# EXPIRY
# ============================================================================

def expire_pending_agencies(now: datetime | None = None) -> int:
    """
    Remove pending agencies older than the grace period that never uploaded
    the business registry document. Each agency is emailed before deletion.

    Returns the number of agencies deleted.
    """
    now = now or timezone.now()
    cutoff = now - timedelta(days=getattr(settings, "AGENCY_PENDING_EXPIRY_DAYS", 7))
    stale = (
        Agency.objects.filter(status=Agency.Status.PENDING, created_at__lt=cutoff)
        .exclude(documents__document_type=AgencyDocument.DocumentType.VISURA_CAMERALE)
        .select_related("user")
        .distinct()
    )

    deleted = 0
    for agency in stale:
        send_template_email(_agency_email(agency), email_templates.account_expired_email(agency.business_name))
        delete_agency(agency)
        deleted += 1
        logger.info(f"Pending agency {agency.business_name} expired without business registry document")
    return deleted
