"""Quote request workflow: statuses, who acts next, allowed transitions.

Both the back-office and the agency portal read the same table so the
"who needs to act" hint is identical on both sides.
"""

from __future__ import annotations

from typing import NamedTuple

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class QuoteStatus(models.TextChoices):
    SENT = "sent", _("Inviata")
    REQUESTED = "requested", _("Richiesta")
    IN_REVIEW = "in_review", _("In revisione")
    OFFER_SENT = "offer_sent", _("Offerta inviata")
    OFFERED = "offered", _("Offerta inviata")
    ACCEPTED = "accepted", _("Accettata")
    CONTRACT_SENT = "contract_sent", _("Contratto inviato")
    PAYMENT_SENT = "payment_sent", _("Pagamento inviato")
    CONFIRMED = "confirmed", _("Confermata")
    DECLINED = "declined", _("Rifiutata dall'agenzia")
    REJECTED = "rejected", _("Rifiutata")
    ARCHIVED = "archived", _("Archiviata")


class StatusAction(NamedTuple):
    admin_message: str
    admin_action_required: bool
    agency_message: str
    agency_action_required: bool


_REVIEW = StatusAction(
    "Azione richiesta: valuta la richiesta e prepara un'offerta",
    True,
    "In attesa di revisione da parte dell'operatore",
    False,
)
_OFFER = StatusAction(
    "In attesa di risposta dall'agenzia",
    False,
    "Azione richiesta: valuta l'offerta ricevuta e rispondi",
    True,
)

STATUS_ACTIONS: dict[str, StatusAction] = {
    QuoteStatus.SENT: _REVIEW,
    QuoteStatus.REQUESTED: _REVIEW,
    QuoteStatus.IN_REVIEW: StatusAction(
        "Azione richiesta: completa la revisione e invia un'offerta",
        True,
        "L'operatore sta valutando la tua richiesta",
        False,
    ),
    QuoteStatus.OFFER_SENT: _OFFER,
    QuoteStatus.OFFERED: _OFFER,
    QuoteStatus.ACCEPTED: StatusAction(
        "Azione richiesta: invia il contratto e i dati bancari",
        True,
        "In attesa dell'invio del contratto da parte dell'operatore",
        False,
    ),
    QuoteStatus.PAYMENT_SENT: StatusAction(
        "Azione richiesta: verifica e conferma il pagamento ricevuto",
        True,
        "In attesa della conferma del pagamento da parte dell'operatore",
        False,
    ),
    QuoteStatus.CONTRACT_SENT: StatusAction(
        "In attesa della controfirma e del pagamento dall'agenzia",
        False,
        "Azione richiesta: invia il contratto controfirmato, la ricevuta di pagamento e conferma il pagamento",
        True,
    ),
    QuoteStatus.CONFIRMED: StatusAction("Prenotazione confermata", False, "Prenotazione confermata", False),
    QuoteStatus.DECLINED: StatusAction("L'agenzia ha rifiutato l'offerta", False, "Hai rifiutato l'offerta", False),
    QuoteStatus.REJECTED: StatusAction(
        "Richiesta rifiutata dall'operatore", False, "L'operatore ha rifiutato la richiesta", False
    ),
    QuoteStatus.ARCHIVED: StatusAction("Archiviato", False, "Archiviato", False),
}

TERMINAL_STATUSES = frozenset(
    {QuoteStatus.CONFIRMED, QuoteStatus.DECLINED, QuoteStatus.REJECTED, QuoteStatus.ARCHIVED}
)

ADMIN_SETTABLE_STATUSES = (
    QuoteStatus.SENT,
    QuoteStatus.IN_REVIEW,
    QuoteStatus.OFFER_SENT,
    QuoteStatus.ACCEPTED,
    QuoteStatus.DECLINED,
    QuoteStatus.PAYMENT_SENT,
    QuoteStatus.CONFIRMED,
    QuoteStatus.REJECTED,
)

OFFER_STATUSES = (QuoteStatus.OFFER_SENT, QuoteStatus.OFFERED)

# Allowed prior statuses for each guarded action
REVOKE_FROM = OFFER_STATUSES
ACCEPT_FROM = OFFER_STATUSES
DECLINE_FROM = OFFER_STATUSES
PAYMENT_DETAILS_FROM = (QuoteStatus.ACCEPTED, QuoteStatus.CONTRACT_SENT)
CONTRACT_FROM = (QuoteStatus.ACCEPTED,)
CONFIRM_PAYMENT_FROM = (QuoteStatus.PAYMENT_SENT, QuoteStatus.CONTRACT_SENT)


def is_terminal(status: str) -> bool:
    return status in TERMINAL_STATUSES


def admin_status_action(status: str) -> dict[str, object]:
    info = STATUS_ACTIONS.get(status)
    if info is None:
        return {"message": status, "action_required": False}
    return {"message": info.admin_message, "action_required": info.admin_action_required}


def agency_status_action(status: str) -> dict[str, object]:
    info = STATUS_ACTIONS.get(status)
    if info is None:
        return {"message": status, "action_required": False}
    return {"message": info.agency_message, "action_required": info.agency_action_required}
