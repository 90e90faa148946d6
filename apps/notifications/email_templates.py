"""HTML bodies for the transactional emails.

Every builder returns ``(subject, html)``. The body is wrapped in the
branded layout (navy header, contacts footer). Values coming from users are
escaped before being interpolated.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.utils.html import escape  # type: ignore

PRIMARY = "#C41E2F"
NAVY = "#1B2D4F"


def _site_url(path: str = "") -> str:
    return f"{settings.SITE_URL}{path}"


def base_template(body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="it">
<head><meta charset="utf-8" /><title>MishaTravel</title></head>
<body style="margin:0;padding:0;background-color:#f4f4f5;font-family:'Segoe UI',Tahoma,sans-serif;">
  <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="background-color:#f4f4f5;">
    <tr><td align="center" style="padding:24px 16px;">
      <table role="presentation" width="600" cellpadding="0" cellspacing="0" style="background-color:#ffffff;border-radius:8px;max-width:600px;width:100%;">
        <tr><td style="background-color:{NAVY};padding:24px 32px;text-align:center;">
          <h1 style="margin:0;font-size:28px;color:#ffffff;">MishaTravel</h1>
          <p style="margin:4px 0 0;font-size:13px;color:#94a3b8;">Tour Operator</p>
        </td></tr>
        <tr><td style="padding:32px;">{body}</td></tr>
        <tr><td style="background-color:#f8fafc;padding:24px 32px;border-top:1px solid #e2e8f0;font-size:12px;color:#64748b;">
          <strong style="color:{NAVY};">MishaTravel S.r.l.</strong><br/>
          Email: info@mishatravel.com | www.mishatravel.com<br/>
          <span style="font-size:11px;color:#94a3b8;">Questa email &egrave; stata inviata automaticamente.</span>
        </td></tr>
      </table>
    </td></tr>
  </table>
</body>
</html>"""


def _title(text: str, color: str = NAVY) -> str:
    return f'<h2 style="margin:0 0 16px;color:{color};font-size:22px;">{text}</h2>'


def _p(text: str) -> str:
    return f'<p style="color:#334155;font-size:15px;line-height:1.7;">{text}</p>'


def _greeting(name: str) -> str:
    return _p(f"Gentile <strong>{escape(name)}</strong>,")


def _cta(label: str, url: str) -> str:
    return (
        '<p style="margin:24px 0;text-align:center;">'
        f'<a href="{url}" style="background-color:{PRIMARY};color:#ffffff;padding:12px 28px;'
        f'border-radius:6px;text-decoration:none;font-weight:600;">{label}</a></p>'
    )


def _details(rows: list[tuple[str, str]]) -> str:
    cells = "".join(
        f'<tr><td style="padding:10px 16px;border-bottom:1px solid #e2e8f0;font-size:13px;color:#64748b;width:140px;">{label}</td>'
        f'<td style="padding:10px 16px;border-bottom:1px solid #e2e8f0;font-size:14px;color:{NAVY};font-weight:600;">{value}</td></tr>'
        for label, value in rows
    )
    return (
        '<table role="presentation" cellpadding="0" cellspacing="0" '
        f'style="margin:16px 0;width:100%;border:1px solid #e2e8f0;border-radius:6px;">{cells}</table>'
    )


def _box(label: str, text: str, color: str = "#f1f5f9") -> str:
    return (
        f'<div style="margin:16px 0;background-color:{color};border-radius:6px;padding:16px;">'
        f'<p style="margin:0;font-size:13px;color:#64748b;">{label}</p>'
        f'<p style="margin:8px 0 0;font-size:14px;color:#334155;line-height:1.6;">{text}</p></div>'
    )


def _euro(amount: Decimal | float) -> str:
    return f"&euro; {Decimal(amount):.2f}"


def _short_id(value) -> str:  # type: ignore
    return str(value).replace("-", "")[:8].upper()


def _type_label(request_type: str) -> str:
    return "tour" if request_type == "tour" else "crociera"


# ---------------------------------------------------------------------------
# Agency account
# ---------------------------------------------------------------------------

def welcome_agency_email(agency_name: str) -> tuple[str, str]:
    body = (
        _title("Benvenuto su MishaTravel!")
        + _greeting(agency_name)
        + _p("grazie per esserti registrato. La tua richiesta di accesso &egrave; in fase di verifica.")
        + _p("Carica la visura camerale dalla tua area riservata: riceverai una email non appena il tuo account sar&agrave; approvato.")
        + _cta("Vai alla tua area", _site_url("/agenzia/dashboard"))
    )
    return "Benvenuto su MishaTravel - Registrazione ricevuta", base_template(body)


def agency_approved_email(agency_name: str) -> tuple[str, str]:
    body = (
        _title("Account approvato!")
        + _greeting(agency_name)
        + _p('il tuo account su MishaTravel &egrave; stato <strong style="color:#16a34a;">approvato</strong>.')
        + _p("Puoi ora accedere all&rsquo;area riservata e richiedere preventivi per i tuoi clienti.")
        + _cta("Accedi alla tua area", _site_url("/login"))
    )
    return "Il tuo account MishaTravel è stato approvato", base_template(body)


def account_expired_email(agency_name: str) -> tuple[str, str]:
    body = (
        _title("Registrazione scaduta", PRIMARY)
        + _greeting(agency_name)
        + _p("non avendo ricevuto la visura camerale entro 7 giorni dalla registrazione, il tuo account &egrave; stato rimosso.")
        + _p("Puoi registrarti nuovamente in qualsiasi momento.")
        + _cta("Registrati di nuovo", _site_url("/registrazione"))
    )
    return "Registrazione MishaTravel scaduta", base_template(body)


# ---------------------------------------------------------------------------
# Quote flow (to the agency)
# ---------------------------------------------------------------------------

def quote_request_submitted_email(agency_name: str, product_name: str, request_type: str, quote_id) -> tuple[str, str]:  # type: ignore
    body = (
        _title("Richiesta preventivo inviata")
        + _greeting(agency_name)
        + _p(
            f"la tua richiesta di preventivo per il {_type_label(request_type)} "
            f"<strong>&ldquo;{escape(product_name)}&rdquo;</strong> &egrave; stata ricevuta con successo."
        )
        + _box("Numero richiesta", _short_id(quote_id))
        + _p("Il nostro team esaminer&agrave; la richiesta e ti invieremo un&rsquo;offerta il prima possibile.")
        + _cta("Vedi le tue richieste", _site_url("/agenzia/richieste"))
    )
    return f"Richiesta preventivo ricevuta - {product_name}", base_template(body)


def new_offer_received_email(
    agency_name: str,
    product_name: str,
    total_price: Decimal,
    offer_expiry: date | None,
) -> tuple[str, str]:
    expiry = _p(f"L&rsquo;offerta &egrave; valida fino al <strong>{offer_expiry:%d/%m/%Y}</strong>.") if offer_expiry else ""
    body = (
        _title("Nuova offerta ricevuta")
        + _greeting(agency_name)
        + _p(f"abbiamo preparato un&rsquo;offerta per la tua richiesta relativa a <strong>&ldquo;{escape(product_name)}&rdquo;</strong>.")
        + _box("Prezzo totale", _euro(total_price), "#f0fdf4")
        + expiry
        + _p("Accedi alla tua area riservata per visualizzare i dettagli e accettare o rifiutare l&rsquo;offerta.")
        + _cta("Vedi l'offerta", _site_url("/agenzia/offerte"))
    )
    return f"Nuova offerta per {product_name}", base_template(body)


def offer_accepted_confirmation_email(agency_name: str, product_name: str) -> tuple[str, str]:
    body = (
        _title("Offerta accettata")
        + _greeting(agency_name)
        + _p(f"la tua accettazione dell&rsquo;offerta per <strong>&ldquo;{escape(product_name)}&rdquo;</strong> &egrave; stata registrata.")
        + _p("A breve riceverai il contratto e gli estremi per effettuare il pagamento.")
        + _cta("Vedi le tue richieste", _site_url("/agenzia/richieste"))
    )
    return f"Offerta accettata - {product_name}", base_template(body)


def payment_details_sent_email(
    agency_name: str,
    product_name: str,
    bank_details: str,
    amount: Decimal,
    reference: str,
) -> tuple[str, str]:
    body = (
        _title("Estremi di pagamento")
        + _greeting(agency_name)
        + _p(f"di seguito trovi gli estremi per il pagamento relativo a <strong>&ldquo;{escape(product_name)}&rdquo;</strong>:")
        + _details([("IBAN", escape(bank_details)), ("Importo", _euro(amount)), ("Causale", escape(reference))])
        + _p("Una volta effettuato il pagamento, il nostro team provveder&agrave; a confermare la prenotazione.")
        + _cta("Vedi dettagli", _site_url("/agenzia/richieste"))
    )
    return f"Estremi di pagamento - {product_name}", base_template(body)


def contract_sent_email(
    agency_name: str,
    product_name: str,
    contract_url: str,
    iban: str,
    amount: Decimal,
    destinatario: str | None = None,
    causale: str | None = None,
    banca: str | None = None,
) -> tuple[str, str]:
    rows = [("IBAN", escape(iban)), ("Importo", _euro(amount))]
    if destinatario:
        rows.append(("Beneficiario", escape(destinatario)))
    if banca:
        rows.append(("Banca", escape(banca)))
    if causale:
        rows.append(("Causale", escape(causale)))
    body = (
        _title("Contratto e dati di pagamento")
        + _greeting(agency_name)
        + _p(f"in allegato trovi il contratto per <strong>&ldquo;{escape(product_name)}&rdquo;</strong>. "
             "Ti chiediamo di restituirlo controfirmato insieme alla ricevuta del bonifico.")
        + _details(rows)
        + _cta("Scarica il contratto", escape(contract_url))
    )
    return f"Contratto - {product_name}", base_template(body)


def booking_confirmed_email(agency_name: str, product_name: str) -> tuple[str, str]:
    body = (
        _title("Prenotazione confermata", "#16a34a")
        + _greeting(agency_name)
        + _p(f"abbiamo ricevuto il pagamento: la prenotazione per <strong>&ldquo;{escape(product_name)}&rdquo;</strong> &egrave; confermata.")
        + _cta("Vedi la prenotazione", _site_url("/agenzia/richieste"))
    )
    return f"Prenotazione confermata - {product_name}", base_template(body)


def quote_rejected_email(agency_name: str, product_name: str, motivation: str) -> tuple[str, str]:
    body = (
        _title("Richiesta non confermata", PRIMARY)
        + _greeting(agency_name)
        + _p(f"purtroppo la tua richiesta per <strong>&ldquo;{escape(product_name)}&rdquo;</strong> non &egrave; stata confermata.")
        + _box("Motivazione", escape(motivation), "#fef2f2")
        + _p("Per ulteriori informazioni o per esplorare altre opzioni, non esitare a contattarci.")
        + _cta("Esplora i nostri viaggi", _site_url())
    )
    return f"Richiesta non confermata - {product_name}", base_template(body)


def offer_reminder_email(agency_name: str, product_name: str, message: str | None) -> tuple[str, str]:
    extra = _box("Messaggio dell'operatore", escape(message)) if message else ""
    body = (
        _title("Promemoria")
        + _greeting(agency_name)
        + _p(f"ti ricordiamo che la pratica <strong>&ldquo;{escape(product_name)}&rdquo;</strong> attende una tua azione.")
        + extra
        + _cta("Vai alla richiesta", _site_url("/agenzia/richieste"))
    )
    return f"Promemoria - {product_name}", base_template(body)


def account_statement_email(agency_name: str, title: str, file_url: str) -> tuple[str, str]:
    body = (
        _title("Nuovo estratto conto")
        + _greeting(agency_name)
        + _p(f"&egrave; disponibile il tuo estratto conto <strong>{escape(title)}</strong>.")
        + _cta("Scarica l'estratto conto", escape(file_url))
    )
    return f"Estratto conto - {title}", base_template(body)


# ---------------------------------------------------------------------------
# Admin notifications
# ---------------------------------------------------------------------------

def admin_new_agency_email(agency_name: str, contact_name: str | None, email: str, city: str | None) -> tuple[str, str]:
    rows = [("Ragione Sociale", escape(agency_name))]
    if contact_name:
        rows.append(("Referente", escape(contact_name)))
    rows.append(("Email", escape(email)))
    if city:
        rows.append(("Città", escape(city)))
    body = (
        _title("Nuova agenzia registrata")
        + _p("Una nuova agenzia si &egrave; registrata sulla piattaforma e richiede l&rsquo;approvazione.")
        + _details(rows)
        + _cta("Gestisci agenzie", _site_url("/admin/agenzie"))
    )
    return f"Nuova agenzia registrata: {agency_name}", base_template(body)


def admin_new_quote_request_email(
    agency_name: str,
    product_name: str,
    request_type: str,
    quote_id,  # type: ignore
    adults: int,
    children: int,
) -> tuple[str, str]:
    body = (
        _title("Nuova richiesta preventivo")
        + _p(f"L&rsquo;agenzia <strong>{escape(agency_name)}</strong> ha inviato una nuova richiesta di preventivo.")
        + _details(
            [
                ("Tipo", "Tour" if request_type == "tour" else "Crociera"),
                ("Prodotto", escape(product_name)),
                ("Partecipanti", f"{adults} adulti, {children} bambini"),
                ("ID Richiesta", _short_id(quote_id)),
            ]
        )
        + _cta("Gestisci preventivo", _site_url(f"/admin/preventivi/{quote_id}"))
    )
    return f"Nuova richiesta preventivo da {agency_name}", base_template(body)


def admin_offer_accepted_email(agency_name: str, product_name: str, quote_id, participants: int) -> tuple[str, str]:  # type: ignore
    body = (
        _title("Offerta accettata", "#16a34a")
        + _p(f"L&rsquo;agenzia <strong>{escape(agency_name)}</strong> ha accettato l&rsquo;offerta per "
             f"<strong>&ldquo;{escape(product_name)}&rdquo;</strong> con {participants} partecipanti.")
        + _p("Invia il contratto e i dati bancari per procedere.")
        + _cta("Gestisci preventivo", _site_url(f"/admin/preventivi/{quote_id}"))
    )
    return f"Offerta accettata da {agency_name}", base_template(body)


def admin_offer_declined_email(agency_name: str, product_name: str, quote_id, motivation: str | None) -> tuple[str, str]:  # type: ignore
    reason = _box("Motivazione", escape(motivation), "#fef2f2") if motivation else ""
    body = (
        _title("Offerta rifiutata", PRIMARY)
        + _p(f"L&rsquo;agenzia <strong>{escape(agency_name)}</strong> ha rifiutato l&rsquo;offerta per "
             f"<strong>&ldquo;{escape(product_name)}&rdquo;</strong>.")
        + reason
        + _cta("Vedi preventivo", _site_url(f"/admin/preventivi/{quote_id}"))
    )
    return f"Offerta rifiutata da {agency_name}", base_template(body)


def admin_document_uploaded_email(agency_name: str, document_label: str, file_url: str, agency_id) -> tuple[str, str]:  # type: ignore
    body = (
        _title("Nuovo documento caricato")
        + _p(f"L&rsquo;agenzia <strong>{escape(agency_name)}</strong> ha caricato un documento: {escape(document_label)}.")
        + _details([("Documento", escape(document_label)), ("File", f'<a href="{escape(file_url)}">Apri</a>')])
        + _cta("Vedi agenzia", _site_url(f"/admin/agenzie/{agency_id}"))
    )
    return f"Documento caricato da {agency_name}", base_template(body)
