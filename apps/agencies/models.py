"""Agency domain models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class Agency(models.Model):
    """Travel agency linked one-to-one with its portal user."""

    class Status(models.TextChoices):
        PENDING = "pending", _("In attesa")
        ACTIVE = "active", _("Attiva")
        BLOCKED = "blocked", _("Bloccata")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="agency",
    )
    business_name = models.CharField(_("Ragione sociale"), max_length=255)
    vat_number = models.CharField(_("Partita IVA"), max_length=20, blank=True)
    fiscal_code = models.CharField(_("Codice fiscale"), max_length=20, blank=True)
    license_number = models.CharField(_("Numero licenza"), max_length=50, blank=True)
    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    zip_code = models.CharField(max_length=10, blank=True)
    province = models.CharField(max_length=50, blank=True)
    region = models.CharField(max_length=50, blank=True)
    contact_name = models.CharField(_("Referente"), max_length=150, blank=True)
    phone = models.CharField(max_length=30, blank=True)
    email = models.EmailField()
    website = models.URLField(blank=True)
    latitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    longitude = models.DecimalField(max_digits=9, decimal_places=6, null=True, blank=True)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Agenzia")
        verbose_name_plural = _("Agenzie")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"]),
        ]

    def __str__(self) -> str:
        return self.business_name

    def is_active_agency(self) -> bool:
        return self.status == self.Status.ACTIVE

    def has_business_registry(self) -> bool:
        return self.documents.filter(document_type=AgencyDocument.DocumentType.VISURA_CAMERALE).exists()

    def set_status(self, status: str) -> None:
        self.status = status
        self.save(update_fields=["status", "updated_at"])


class AgencyDocument(models.Model):
    """File uploaded by an agency from its dashboard."""

    class DocumentType(models.TextChoices):
        VISURA_CAMERALE = "visura_camerale", _("Visura camerale")
        LICENZA = "licenza", _("Licenza")
        ALTRO = "altro", _("Altro")

    agency = models.ForeignKey(Agency, on_delete=models.CASCADE, related_name="documents")
    document_type = models.CharField(
        max_length=30,
        choices=DocumentType.choices,
        default=DocumentType.VISURA_CAMERALE,
    )
    file_url = models.URLField(max_length=500)
    file_name = models.CharField(max_length=255)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Documento agenzia")
        verbose_name_plural = _("Documenti agenzia")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.get_document_type_display()} - {self.agency_id}"
