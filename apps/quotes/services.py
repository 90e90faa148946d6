"""Domain services for the quote workflow.

Every mutation follows the same steps: check the allowed prior statuses,
write the rows, append a timeline entry, send a best-effort email and drop
the cached back-office and portal pages.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from django.db import DatabaseError, transaction  # type: ignore
from django.db.models import Count  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore

from apps.agencies.models import Agency
from apps.agencies.services import OwnershipError
from apps.core.cache import get_cached_page, invalidate_paths
from apps.core.models import ActivityLog, SiteSetting
from apps.core.services import log_activity
from apps.notifications import email_templates
from apps.notifications.services import (
    create_in_app_notification,
    notify_super_admins,
    send_admin_notification,
    send_template_email,
)

from . import workflow
from .models import (
    QuoteDocument,
    QuoteOffer,
    QuoteParticipant,
    QuotePayment,
    QuoteRequest,
    QuoteRequestExtra,
    QuoteTimeline,
)
from .workflow import QuoteStatus

logger = logging.getLogger(__name__)

ADMIN_QUOTES_PATH = "/admin/preventivi"
ADMIN_AGENCIES_PATH = "/admin/agenzie"
AGENCY_PORTAL_PATH = "/agenzia"
BANKING_PRESETS_KEY = "banking_presets"

STATUS_NOT_ALLOWED = "Lo stato della richiesta non permette questa azione."
REQUEST_CLOSED = "La richiesta è chiusa e non può essere modificata."


class QuoteError(Exception):
    """Raised when a quote operation cannot be completed."""


class QuoteTransitionError(QuoteError):
    """Raised when the current status does not allow the action."""


class AgencyNotActiveError(QuoteError):
    """Raised when a pending or blocked agency tries to request a quote."""


# ============================================================================
# HELPERS
# ============================================================================

def _lock_queryset_if_possible(queryset):  # type: ignore
    """Apply select_for_update when inside transaction.atomic()."""
    if not transaction.get_connection().in_atomic_block:
        return queryset
    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _reload_locked(quote: QuoteRequest) -> QuoteRequest:
    locked = _lock_queryset_if_possible(QuoteRequest.objects.filter(pk=quote.pk)).get()
    quote.status = locked.status
    return quote


def _guard(quote: QuoteRequest, allowed: Iterable[str]) -> None:
    if quote.status not in allowed:
        raise QuoteTransitionError(STATUS_NOT_ALLOWED)


def _guard_open(quote: QuoteRequest) -> None:
    if workflow.is_terminal(quote.status):
        raise QuoteTransitionError(REQUEST_CLOSED)


def ensure_can_add_agency_document(quote: QuoteRequest, user) -> None:  # type: ignore
    """Checked before the file reaches storage, so refused uploads leave nothing behind."""
    ensure_agency_owner(quote, user)
    _guard_open(quote)


def ensure_can_send_contract(quote: QuoteRequest, offer_id: int) -> None:
    """Same checks as ``confirm_with_contract``, run before the contract upload."""
    _guard(quote, workflow.CONTRACT_FROM)
    if not quote.offers.filter(pk=offer_id).exists():
        raise QuoteError("Offerta non trovata per questa richiesta.")


def _set_status(quote: QuoteRequest, status: str) -> None:
    quote.status = status
    quote.save(update_fields=["status", "updated_at"])


def _timeline(
    quote: QuoteRequest,
    action: str,
    details: str | None = None,
    actor: str = QuoteTimeline.Actor.ADMIN,
) -> QuoteTimeline:
    return QuoteTimeline.objects.create(request=quote, action=action, details=details or None, actor=actor)


def _invalidate(*extra: str) -> None:
    invalidate_paths(ADMIN_QUOTES_PATH, AGENCY_PORTAL_PATH, *extra)


def _agency_email(quote: QuoteRequest) -> str:
    agency = quote.agency
    return agency.email or agency.user.email


def _euro(amount: Decimal | float) -> str:
    return f"EUR {Decimal(amount):.2f}"


def ensure_agency_owner(quote: QuoteRequest, user) -> None:  # type: ignore
    agency = getattr(user, "agency", None)
    if agency is None or quote.agency_id != agency.pk:
        raise OwnershipError("Non autorizzato.")


def _notify_agency(quote: QuoteRequest, title: str, message: str) -> None:
    create_in_app_notification(quote.agency.user, title, message, link=f"/agenzia/preventivi/{quote.pk}")


# ============================================================================
# AGENCY OPERATIONS
# ============================================================================

def _validate_product(data: Mapping[str, Any]) -> None:
    request_type = data.get("request_type")
    departure = data.get("departure")
    if request_type == QuoteRequest.RequestType.TOUR:
        if not data.get("tour"):
            raise QuoteError("Seleziona un tour.")
        if departure is None or departure.tour_id != data["tour"].pk:
            raise QuoteError("Seleziona una partenza valida per il tour.")
    elif request_type == QuoteRequest.RequestType.CRUISE:
        if not data.get("cruise"):
            raise QuoteError("Seleziona una crociera.")
        if departure is None or departure.cruise_id != data["cruise"].pk:
            raise QuoteError("Seleziona una partenza valida per la crociera.")
        if not data.get("cabin_type"):
            raise QuoteError("Il tipo di cabina è obbligatorio.")
        if (data.get("num_cabins") or 0) < 1:
            raise QuoteError("Indica almeno una cabina.")
    else:
        raise QuoteError("Tipo di richiesta non valido.")
    if (data.get("participants_adults") or 0) < 1:
        raise QuoteError("Indica almeno un adulto.")
    if (data.get("participants_children") or 0) < 0:
        raise QuoteError("Il numero di bambini non può essere negativo.")


def create_quote_request(user, data: Mapping[str, Any], extras: Iterable[Any] = ()) -> QuoteRequest:  # type: ignore
    """Open a quote request for the user's (active) agency."""
    agency = getattr(user, "agency", None)
    if agency is None or not agency.is_active_agency():
        raise AgencyNotActiveError("Il tuo account agenzia non è ancora attivo.")
    _validate_product(data)

    is_cruise = data["request_type"] == QuoteRequest.RequestType.CRUISE
    with transaction.atomic():
        quote = QuoteRequest.objects.create(
            agency=agency,
            request_type=data["request_type"],
            tour=None if is_cruise else data.get("tour"),
            cruise=data.get("cruise") if is_cruise else None,
            departure=data["departure"],
            participants_adults=data["participants_adults"],
            participants_children=data.get("participants_children") or 0,
            cabin_type=(data.get("cabin_type") or "") if is_cruise else "",
            num_cabins=data.get("num_cabins") if is_cruise else None,
            notes=data.get("notes") or "",
            status=QuoteStatus.SENT,
        )
        for extra in extras:
            try:
                with transaction.atomic():
                    QuoteRequestExtra.objects.create(request=quote, extra=extra, quantity=1)
            except DatabaseError as e:
                logger.error(f"Could not attach extra {extra.pk} to quote request {quote.pk}: {e}")
        _timeline(
            quote,
            "Richiesta preventivo inviata",
            f"{quote.participants_adults} adulti, {quote.participants_children} bambini",
            actor=QuoteTimeline.Actor.AGENCY,
        )

    logger.info(f"Quote request {quote.pk} opened by agency {agency.pk}")

    product_name = quote.product_name
    send_template_email(
        _agency_email(quote),
        email_templates.quote_request_submitted_email(agency.business_name, product_name, quote.request_type, quote.pk),
    )
    send_admin_notification(
        email_templates.admin_new_quote_request_email(
            agency.business_name,
            product_name,
            quote.request_type,
            quote.pk,
            quote.participants_adults,
            quote.participants_children,
        )
    )
    notify_super_admins(
        title="Nuova richiesta preventivo",
        message=f"{agency.business_name} ha richiesto un preventivo per {product_name}.",
        link=f"/admin/preventivi/{quote.pk}",
    )
    _invalidate(ADMIN_AGENCIES_PATH)
    return quote


def accept_offer(quote: QuoteRequest, user, participants: list[Mapping[str, Any]]) -> QuoteRequest:  # type: ignore
    """Accept the current offer and register the travellers, in the given order."""
    ensure_agency_owner(quote, user)
    if not participants:
        raise QuoteError("Inserisci almeno un partecipante.")

    rows = []
    for index, participant in enumerate(participants):
        full_name = (participant.get("full_name") or "").strip()
        if not full_name:
            raise QuoteError(f"Partecipante {index + 1}: Nome completo obbligatorio")
        age = participant.get("age")
        if age is not None and not 0 <= int(age) <= 120:
            raise QuoteError(f"Partecipante {index + 1}: età non valida")
        rows.append(
            QuoteParticipant(
                request=quote,
                full_name=full_name,
                age=age,
                is_child=age is not None and int(age) < 18,
                document_type=(participant.get("document_type") or "").strip() or None,
                document_number=(participant.get("document_number") or "").strip() or None,
                sort_order=index,
            )
        )

    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.ACCEPT_FROM)
        QuoteParticipant.objects.bulk_create(rows)
        _set_status(quote, QuoteStatus.ACCEPTED)
        children = sum(1 for row in rows if row.is_child)
        adults = len(rows) - children
        _timeline(
            quote,
            "Offerta accettata con partecipanti",
            f"L'agenzia ha accettato l'offerta. {len(rows)} partecipanti registrati "
            f"({adults} adulti, {children} bambini).",
            actor=QuoteTimeline.Actor.AGENCY,
        )

    agency_name = quote.agency.business_name
    send_template_email(
        _agency_email(quote),
        email_templates.offer_accepted_confirmation_email(agency_name, quote.product_name),
    )
    send_admin_notification(
        email_templates.admin_offer_accepted_email(agency_name, quote.product_name, quote.pk, len(rows))
    )
    notify_super_admins(
        title="Offerta accettata",
        message=f"{agency_name} ha accettato l'offerta per {quote.product_name}.",
        link=f"/admin/preventivi/{quote.pk}",
    )
    _invalidate()
    return quote


def decline_offer(quote: QuoteRequest, user, motivation: str | None = None) -> QuoteRequest:  # type: ignore
    ensure_agency_owner(quote, user)
    motivation = (motivation or "").strip() or None
    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.DECLINE_FROM)
        _set_status(quote, QuoteStatus.DECLINED)
        _timeline(quote, "Offerta rifiutata", motivation, actor=QuoteTimeline.Actor.AGENCY)

    agency_name = quote.agency.business_name
    send_admin_notification(
        email_templates.admin_offer_declined_email(agency_name, quote.product_name, quote.pk, motivation)
    )
    notify_super_admins(
        title="Offerta rifiutata",
        message=f"{agency_name} ha rifiutato l'offerta per {quote.product_name}.",
        link=f"/admin/preventivi/{quote.pk}",
    )
    _invalidate()
    return quote


def add_document(
    quote: QuoteRequest,
    *,
    file_url: str,
    file_name: str,
    document_type: str = "altro",
    uploaded_by: str,
    user=None,  # type: ignore
) -> QuoteDocument:
    """Attach a document; agencies may only add to their own open requests."""
    is_agency = uploaded_by == QuoteDocument.UploadedBy.AGENCY
    if is_agency:
        ensure_agency_owner(quote, user)
        _guard_open(quote)

    with transaction.atomic():
        document = QuoteDocument.objects.create(
            request=quote,
            file_url=file_url,
            file_name=file_name,
            document_type=document_type or "altro",
            uploaded_by=uploaded_by,
        )
        _timeline(
            quote,
            "Documento caricato",
            file_name,
            actor=QuoteTimeline.Actor.AGENCY if is_agency else QuoteTimeline.Actor.ADMIN,
        )

    if is_agency:
        notify_super_admins(
            title="Nuovo documento su preventivo",
            message=f"{quote.agency.business_name} ha caricato {file_name}.",
            link=f"/admin/preventivi/{quote.pk}",
        )
    else:
        _notify_agency(quote, "Nuovo documento disponibile", f"È disponibile il documento {file_name}.")
    _invalidate()
    return document


def delete_document(document: QuoteDocument, *, actor=None) -> None:  # type: ignore
    quote = document.request
    file_name = document.file_name
    with transaction.atomic():
        document.delete()
        _timeline(quote, "Documento eliminato", file_name)
    log_activity(actor, ActivityLog.Action.DELETE, "quote_document", quote.pk, file_name)
    _invalidate()


def agency_offers(agency: Agency) -> list[dict[str, Any]]:
    """Requests waiting for an answer from the agency, with their latest offer."""
    quotes = (
        agency.quote_requests.filter(status__in=workflow.OFFER_STATUSES)
        .select_related("tour", "cruise", "departure")
        .prefetch_related("offers")
        .order_by("-updated_at")
    )
    return [{"request": quote, "offer": quote.latest_offer()} for quote in quotes]


# ============================================================================
# ADMIN OPERATIONS
# ============================================================================

def update_status(quote: QuoteRequest, status: str, details: str | None = None, *, actor=None) -> QuoteRequest:  # type: ignore
    if status not in workflow.ADMIN_SETTABLE_STATUSES:
        raise QuoteTransitionError("Stato non valido.")
    with transaction.atomic():
        _reload_locked(quote)
        _guard_open(quote)
        previous = quote.status
        _set_status(quote, status)
        _timeline(quote, f'Stato aggiornato a "{status}"', details)
    log_activity(
        actor,
        ActivityLog.Action.STATUS_CHANGE,
        "quote_request",
        quote.pk,
        quote.product_name,
        {"changes": [{"field": "status", "label": "Stato", "old": previous, "new": status}]},
    )
    _invalidate()
    return quote


def create_offer(
    quote: QuoteRequest,
    *,
    total_price: Decimal,
    conditions: str | None = None,
    payment_terms: str | None = None,
    offer_expiry: date | None = None,
    package_details: dict | None = None,
    send_now: bool = False,
    actor=None,  # type: ignore
) -> QuoteOffer:
    """Create an offer and optionally send it to the agency straight away."""
    if Decimal(total_price) < 0:
        raise QuoteError("Il prezzo deve essere positivo")

    with transaction.atomic():
        _reload_locked(quote)
        _guard_open(quote)
        offer = QuoteOffer.objects.create(
            request=quote,
            total_price=total_price,
            conditions=(conditions or "").strip() or None,
            payment_terms=(payment_terms or "").strip() or None,
            offer_expiry=offer_expiry,
            package_details=package_details,
        )
        expiry = offer_expiry.strftime("%Y-%m-%d") if offer_expiry else "n/d"
        _timeline(quote, "Offerta creata", f"Prezzo totale: {_euro(total_price)} - Scadenza: {expiry}")
        if send_now:
            _set_status(quote, QuoteStatus.OFFER_SENT)
            _timeline(quote, "Offerta inviata all'agenzia")

    log_activity(actor, ActivityLog.Action.CREATE, "quote_offer", quote.pk, quote.product_name)
    if send_now:
        send_template_email(
            _agency_email(quote),
            email_templates.new_offer_received_email(
                quote.agency.business_name, quote.product_name, offer.total_price, offer.offer_expiry
            ),
        )
        _notify_agency(quote, "Nuova offerta ricevuta", f"Hai ricevuto un'offerta per {quote.product_name}.")
    _invalidate()
    return offer


def revoke_offer(quote: QuoteRequest, *, actor=None) -> QuoteRequest:  # type: ignore
    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.REVOKE_FROM)
        _set_status(quote, QuoteStatus.IN_REVIEW)
        _timeline(quote, "Offerta revocata")
    log_activity(actor, ActivityLog.Action.STATUS_CHANGE, "quote_request", quote.pk, quote.product_name)
    _invalidate()
    return quote


def send_payment_details(
    quote: QuoteRequest,
    *,
    bank_details: str,
    amount: Decimal,
    reference: str,
    actor=None,  # type: ignore
) -> QuotePayment:
    bank_details = (bank_details or "").strip()
    reference = (reference or "").strip()
    if not bank_details:
        raise QuoteError("IBAN obbligatorio")
    if Decimal(amount) < Decimal("0.01"):
        raise QuoteError("Importo obbligatorio")
    if not reference:
        raise QuoteError("Causale obbligatoria")

    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.PAYMENT_DETAILS_FROM)
        payment = QuotePayment.objects.create(
            request=quote,
            bank_details=bank_details,
            amount=amount,
            reference=reference,
            status=QuotePayment.Status.PENDING,
        )
        _set_status(quote, QuoteStatus.PAYMENT_SENT)
        _timeline(quote, "Estremi di pagamento inviati", f"Importo: {_euro(amount)} - Causale: {reference}")

    send_template_email(
        _agency_email(quote),
        email_templates.payment_details_sent_email(
            quote.agency.business_name, quote.product_name, bank_details, payment.amount, reference
        ),
    )
    _invalidate()
    return payment


def confirm_with_contract(
    quote: QuoteRequest,
    *,
    offer_id: int,
    contract_file_url: str,
    iban: str,
    destinatario: str | None = None,
    causale: str | None = None,
    banca: str | None = None,
    notes: str | None = None,
    send_email: bool = True,
    actor=None,  # type: ignore
) -> QuoteOffer:
    """Attach the contract and bank coordinates to the accepted offer."""
    iban = (iban or "").strip()
    if not contract_file_url:
        raise QuoteError("Il contratto è obbligatorio.")
    if not iban:
        raise QuoteError("IBAN obbligatorio")

    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.CONTRACT_FROM)
        offer = quote.offers.filter(pk=offer_id).first()
        if offer is None:
            raise QuoteError("Offerta non trovata per questa richiesta.")
        offer.contract_file_url = contract_file_url
        offer.iban = iban
        offer.save(update_fields=["contract_file_url", "iban"])

        bank_lines = [f"IBAN: {iban}"]
        if destinatario:
            bank_lines.append(f"Intestatario: {destinatario}")
        if banca:
            bank_lines.append(f"Banca: {banca}")
        QuotePayment.objects.create(
            request=quote,
            bank_details="\n".join(bank_lines),
            amount=offer.total_price,
            reference=(causale or "").strip() or f"Preventivo {quote.pk}",
            status=QuotePayment.Status.PENDING,
        )
        _set_status(quote, QuoteStatus.CONTRACT_SENT)
        _timeline(quote, "Contratto inviato", (notes or "").strip() or f"Importo: {_euro(offer.total_price)}")

    log_activity(actor, ActivityLog.Action.STATUS_CHANGE, "quote_request", quote.pk, quote.product_name)
    if send_email:
        send_template_email(
            _agency_email(quote),
            email_templates.contract_sent_email(
                quote.agency.business_name,
                quote.product_name,
                contract_file_url,
                iban,
                offer.total_price,
                destinatario=destinatario,
                causale=causale,
                banca=banca,
            ),
        )
    _notify_agency(quote, "Contratto disponibile", f"Il contratto per {quote.product_name} è pronto.")
    _invalidate()
    return offer


def confirm_payment(quote: QuoteRequest, *, actor=None) -> QuoteRequest:  # type: ignore
    with transaction.atomic():
        _reload_locked(quote)
        _guard(quote, workflow.CONFIRM_PAYMENT_FROM)
        quote.payments.filter(
            status__in=[QuotePayment.Status.PENDING, QuotePayment.Status.RECEIVED]
        ).update(status=QuotePayment.Status.CONFIRMED)
        _set_status(quote, QuoteStatus.CONFIRMED)
        _timeline(quote, "Pagamento confermato", "Prenotazione confermata")

    log_activity(actor, ActivityLog.Action.STATUS_CHANGE, "quote_request", quote.pk, quote.product_name)
    send_template_email(
        _agency_email(quote),
        email_templates.booking_confirmed_email(quote.agency.business_name, quote.product_name),
    )
    _notify_agency(quote, "Prenotazione confermata", f"La prenotazione per {quote.product_name} è confermata.")
    _invalidate()
    return quote


def reject_quote(quote: QuoteRequest, motivation: str, *, actor=None) -> QuoteRequest:  # type: ignore
    motivation = (motivation or "").strip()
    if not motivation:
        raise QuoteError("La motivazione è obbligatoria")
    with transaction.atomic():
        _reload_locked(quote)
        _guard_open(quote)
        _set_status(quote, QuoteStatus.REJECTED)
        _timeline(quote, "Richiesta rifiutata", motivation)

    log_activity(actor, ActivityLog.Action.STATUS_CHANGE, "quote_request", quote.pk, quote.product_name)
    send_template_email(
        _agency_email(quote),
        email_templates.quote_rejected_email(quote.agency.business_name, quote.product_name, motivation),
    )
    _invalidate()
    return quote


def send_reminder(quote: QuoteRequest, message: str | None = None, *, actor=None) -> bool:  # type: ignore
    """Remind the agency about a pending request. Returns whether the email went out."""
    _guard_open(quote)
    message = (message or "").strip() or None
    sent = send_template_email(
        _agency_email(quote),
        email_templates.offer_reminder_email(quote.agency.business_name, quote.product_name, message),
    )
    _timeline(quote, "Promemoria inviato", message)
    _invalidate()
    return sent


def banking_presets() -> list[dict[str, Any]]:
    presets = SiteSetting.get_value(BANKING_PRESETS_KEY, [])
    return presets if isinstance(presets, list) else []


def _compute_stats() -> dict[str, int]:
    counts = {status: 0 for status in QuoteStatus.values}
    for row in QuoteRequest.objects.values("status").annotate(count=Count("id")):
        counts[row["status"]] = row["count"]
    counts["total"] = sum(counts.values())
    return counts


def quote_stats() -> dict[str, int]:
    return get_cached_page(f"{ADMIN_QUOTES_PATH}/stats", _compute_stats)


def agencies_for_filter() -> list[dict[str, Any]]:
    return list(Agency.objects.order_by("business_name").values("id", "business_name"))
