"""PDF summary of a quote request, built with reportlab platypus."""

from __future__ import annotations

from io import BytesIO

from django.utils import timezone  # type: ignore
from django.utils.html import escape  # type: ignore
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from .models import QuoteRequest
from .workflow import QuoteStatus

NAVY = colors.HexColor("#1B2D4F")


def _table(rows: list[list[str]], widths: list[float]) -> Table:
    table = Table(rows, colWidths=widths)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), NAVY),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
            ]
        )
    )
    return table


def _money(value) -> str:  # type: ignore
    return f"EUR {value:.2f}" if value is not None else "-"


def build_quote_pdf(quote: QuoteRequest) -> bytes:
    """Render product, participants, latest offer, payments and timeline."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=f"Preventivo {quote.pk}",
        leftMargin=18 * mm,
        rightMargin=18 * mm,
    )
    styles = getSampleStyleSheet()
    story = []

    story.append(Paragraph(f"<b>MishaTravel - Preventivo #{quote.pk}</b>", styles["Title"]))
    story.append(
        Paragraph(
            f"Generato il {timezone.localtime():%d/%m/%Y %H:%M}",
            styles["Normal"],
        )
    )
    story.append(Spacer(1, 12))

    agency = quote.agency
    departure = quote.departure
    data = [
        ["Voce", "Dettaglio"],
        ["Agenzia", agency.business_name],
        ["Prodotto", quote.product_name],
        ["Tipo", str(quote.get_request_type_display())],
        ["Partenza", f"{departure.departure_date:%d/%m/%Y}" if departure else "-"],
        ["Adulti / Bambini", f"{quote.participants_adults} / {quote.participants_children}"],
        ["Stato", str(QuoteStatus(quote.status).label) if quote.status in QuoteStatus.values else quote.status],
        ["Richiesta del", f"{timezone.localtime(quote.created_at):%d/%m/%Y}"],
    ]
    if quote.request_type == QuoteRequest.RequestType.CRUISE:
        data.append(["Cabina", f"{quote.cabin_type} x {quote.num_cabins or 1}"])
    story.append(_table(data, [50 * mm, 120 * mm]))
    if quote.notes:
        story.append(Spacer(1, 6))
        story.append(Paragraph(f"<i>Note:</i> {escape(quote.notes)}", styles["Normal"]))
    story.append(Spacer(1, 16))

    participants = list(quote.participants.all())
    if participants:
        story.append(Paragraph("<b>Partecipanti</b>", styles["Heading2"]))
        rows = [["#", "Nome", "Età", "Documento"]]
        for index, participant in enumerate(participants, start=1):
            document = " ".join(filter(None, [participant.document_type, participant.document_number]))
            rows.append(
                [
                    str(index),
                    participant.full_name,
                    "-" if participant.age is None else str(participant.age),
                    document or "-",
                ]
            )
        story.append(_table(rows, [10 * mm, 80 * mm, 20 * mm, 60 * mm]))
        story.append(Spacer(1, 16))

    offer = quote.latest_offer()
    if offer:
        story.append(Paragraph("<b>Offerta</b>", styles["Heading2"]))
        rows = [
            ["Voce", "Dettaglio"],
            ["Prezzo totale", _money(offer.total_price)],
            ["Scadenza", f"{offer.offer_expiry:%d/%m/%Y}" if offer.offer_expiry else "n/d"],
        ]
        if offer.payment_terms:
            rows.append(["Termini di pagamento", Paragraph(escape(offer.payment_terms), styles["Normal"])])
        if offer.conditions:
            rows.append(["Condizioni", Paragraph(escape(offer.conditions), styles["Normal"])])
        story.append(_table(rows, [50 * mm, 120 * mm]))
        story.append(Spacer(1, 16))

    payments = list(quote.payments.all())
    if payments:
        story.append(Paragraph("<b>Pagamenti</b>", styles["Heading2"]))
        rows = [["Data", "Importo", "Causale", "Stato"]]
        for payment in payments:
            rows.append(
                [
                    f"{timezone.localtime(payment.created_at):%d/%m/%Y}",
                    _money(payment.amount),
                    payment.reference,
                    str(payment.get_status_display()),
                ]
            )
        story.append(_table(rows, [30 * mm, 35 * mm, 70 * mm, 35 * mm]))
        story.append(Spacer(1, 16))

    events = list(quote.timeline.all())
    if events:
        story.append(Paragraph("<b>Cronologia</b>", styles["Heading2"]))
        rows = [["Data", "Azione", "Dettagli"]]
        for event in events:
            rows.append(
                [
                    f"{timezone.localtime(event.created_at):%d/%m/%Y %H:%M}",
                    Paragraph(escape(event.action), styles["Normal"]),
                    Paragraph(escape(event.details or ""), styles["Normal"]),
                ]
            )
        story.append(_table(rows, [32 * mm, 55 * mm, 83 * mm]))

    doc.build(story)
    return buffer.getvalue()
