"""Shared models: runtime site settings and the user activity log."""

from __future__ import annotations

from typing import Any

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class SiteSetting(models.Model):
    """Key/value setting editable from the back-office at runtime."""

    key = models.CharField(max_length=100, unique=True)
    value = models.JSONField(null=True, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Impostazione sito")
        verbose_name_plural = _("Impostazioni sito")
        ordering = ["key"]

    def __str__(self) -> str:
        return self.key

    @classmethod
    def get_value(cls, key: str, default: Any = None) -> Any:
        row = cls.objects.filter(key=key).only("value").first()
        if row is None or row.value in (None, ""):
            return default
        return row.value

    @classmethod
    def set_value(cls, key: str, value: Any) -> "SiteSetting":
        row, _created = cls.objects.update_or_create(key=key, defaults={"value": value})
        return row


class ActivityLog(models.Model):
    """Append-only record of back-office actions (who changed what)."""

    class Action(models.TextChoices):
        CREATE = "create", _("Creazione")
        UPDATE = "update", _("Modifica")
        DELETE = "delete", _("Eliminazione")
        STATUS_CHANGE = "status_change", _("Cambio stato")
        SETTINGS = "settings", _("Impostazioni")

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="activity_logs",
    )
    action = models.CharField(max_length=20, choices=Action.choices)
    entity_type = models.CharField(max_length=50)
    entity_id = models.CharField(max_length=64, blank=True)
    entity_title = models.CharField(max_length=255, blank=True)
    details = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Attività utente")
        verbose_name_plural = _("Attività utenti")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.entity_type}:{self.entity_id}"
