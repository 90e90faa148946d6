"""Account statement model."""

from __future__ import annotations

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AccountStatement(models.Model):
    """Statement document for one agency; ``stato`` tracks whether it was emailed."""

    class Stato(models.TextChoices):
        BOZZA = "Bozza", _("Bozza")
        INVIATO = "Inviato via Mail", _("Inviato via Mail")

    agency = models.ForeignKey(
        "agencies.Agency",
        on_delete=models.CASCADE,
        related_name="account_statements",
    )
    title = models.CharField(max_length=255)
    file_url = models.URLField(max_length=500, blank=True)
    data = models.DateField(_("Data"))
    stato = models.CharField(max_length=30, choices=Stato.choices, default=Stato.BOZZA)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Estratto conto")
        verbose_name_plural = _("Estratti conto")
        ordering = ["-data", "-created_at"]
        indexes = [models.Index(fields=["agency", "data"])]

    def __str__(self) -> str:
        return f"{self.title} ({self.data:%d/%m/%Y})"
