"""Quote request models: requests, offers, participants, payments, documents
and the append-only timeline."""

from __future__ import annotations

from decimal import Decimal

from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from .workflow import QuoteStatus


class QuoteRequest(models.Model):
    """Quote request an agency opens for a tour or a cruise departure."""

    class RequestType(models.TextChoices):
        TOUR = "tour", _("Tour")
        CRUISE = "cruise", _("Crociera")

    agency = models.ForeignKey(
        "agencies.Agency",
        on_delete=models.CASCADE,
        related_name="quote_requests",
    )
    request_type = models.CharField(max_length=10, choices=RequestType.choices)
    tour = models.ForeignKey(
        "catalog.Tour", on_delete=models.SET_NULL, null=True, blank=True, related_name="quote_requests"
    )
    cruise = models.ForeignKey(
        "catalog.Cruise", on_delete=models.SET_NULL, null=True, blank=True, related_name="quote_requests"
    )
    departure = models.ForeignKey(
        "catalog.Departure", on_delete=models.SET_NULL, null=True, blank=True, related_name="quote_requests"
    )
    participants_adults = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    participants_children = models.PositiveIntegerField(default=0)
    cabin_type = models.CharField(max_length=100, blank=True)
    num_cabins = models.PositiveIntegerField(null=True, blank=True)
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20,
        choices=QuoteStatus.choices,
        default=QuoteStatus.SENT,
        db_index=True,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Richiesta preventivo")
        verbose_name_plural = _("Richieste preventivo")
        ordering = ["-created_at"]
        indexes = [models.Index(fields=["agency", "status"])]

    def __str__(self) -> str:
        return f"#{self.pk} {self.product_name} ({self.status})"

    @property
    def product_name(self) -> str:
        if self.request_type == self.RequestType.TOUR:
            return self.tour.title if self.tour else "Tour"
        return self.cruise.title if self.cruise else "Crociera"

    def latest_offer(self) -> "QuoteOffer | None":
        return self.offers.order_by("-created_at", "-pk").first()


class QuoteRequestExtra(models.Model):
    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="extras")
    extra = models.ForeignKey("catalog.Extra", on_delete=models.CASCADE, related_name="+")
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["request", "extra"], name="unique_quote_request_extra"),
        ]


class QuoteOffer(models.Model):
    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="offers")
    total_price = models.DecimalField(
        max_digits=12, decimal_places=2, validators=[MinValueValidator(Decimal("0"))]
    )
    conditions = models.TextField(null=True, blank=True)
    payment_terms = models.TextField(null=True, blank=True)
    offer_expiry = models.DateField(null=True, blank=True)
    package_details = models.JSONField(null=True, blank=True)
    contract_file_url = models.URLField(max_length=500, null=True, blank=True)
    iban = models.CharField(max_length=64, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Offerta")
        verbose_name_plural = _("Offerte")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Offerta {self.pk} - EUR {self.total_price}"


class QuoteParticipant(models.Model):
    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="participants")
    full_name = models.CharField(max_length=255)
    age = models.PositiveSmallIntegerField(null=True, blank=True, validators=[MaxValueValidator(120)])
    is_child = models.BooleanField(default=False)
    document_type = models.CharField(max_length=50, null=True, blank=True)
    document_number = models.CharField(max_length=100, null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)

    class Meta:
        ordering = ["sort_order", "pk"]

    def __str__(self) -> str:
        return self.full_name


class QuotePayment(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", _("In attesa")
        RECEIVED = "received", _("Ricevuto")
        CONFIRMED = "confirmed", _("Confermato")

    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="payments")
    bank_details = models.TextField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    reference = models.CharField(max_length=255)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.reference} - EUR {self.amount} ({self.status})"


class QuoteDocument(models.Model):
    class UploadedBy(models.TextChoices):
        ADMIN = "admin", _("Operatore")
        AGENCY = "agency", _("Agenzia")

    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="documents")
    file_url = models.URLField(max_length=500)
    file_name = models.CharField(max_length=255)
    document_type = models.CharField(max_length=50, default="altro")
    uploaded_by = models.CharField(max_length=10, choices=UploadedBy.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return self.file_name


class AppendOnlyError(Exception):
    """Raised when code tries to rewrite quote history."""


class QuoteTimelineQuerySet(models.QuerySet):
    """Bulk writes are refused as well; cascades from the request still go through."""

    def update(self, **kwargs):  # type: ignore
        raise AppendOnlyError("Gli eventi della timeline non possono essere modificati.")

    def delete(self):  # type: ignore
        raise AppendOnlyError("Gli eventi della timeline non possono essere eliminati.")


class QuoteTimeline(models.Model):
    """One event in the history of a quote request. Rows are never changed."""

    class Actor(models.TextChoices):
        ADMIN = "admin", _("Operatore")
        AGENCY = "agency", _("Agenzia")
        SYSTEM = "system", _("Sistema")

    request = models.ForeignKey(QuoteRequest, on_delete=models.CASCADE, related_name="timeline")
    action = models.CharField(max_length=255)
    details = models.TextField(null=True, blank=True)
    actor = models.CharField(max_length=10, choices=Actor.choices, default=Actor.ADMIN)
    created_at = models.DateTimeField(auto_now_add=True)

    objects = QuoteTimelineQuerySet.as_manager()

    class Meta:
        verbose_name = _("Evento timeline")
        verbose_name_plural = _("Timeline")
        ordering = ["-created_at", "-pk"]

    def __str__(self) -> str:
        return f"{self.request_id}: {self.action}"

    def save(self, *args, **kwargs):  # type: ignore
        if self.pk is not None:
            raise AppendOnlyError("Gli eventi della timeline non possono essere modificati.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise AppendOnlyError("Gli eventi della timeline non possono essere eliminati.")
