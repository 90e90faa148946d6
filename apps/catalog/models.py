"""Catalog models: macro areas, destinations and bookable products."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class PublishStatus(models.TextChoices):
    DRAFT = "draft", _("Bozza")
    PUBLISHED = "published", _("Pubblicato")


class MacroArea(models.Model):
    """Top-level grouping of destinations (e.g. "Asia", "Medio Oriente")."""

    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=160, unique=True)
    description = models.TextField(null=True, blank=True)
    cover_image_url = models.URLField(max_length=500, null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=PublishStatus.choices, default=PublishStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Macro area")
        verbose_name_plural = _("Macro aree")
        ordering = ["sort_order", "name"]

    def __str__(self) -> str:
        return self.name


class Destination(models.Model):
    """Destination page; ``macro_area`` keeps the area name as shown in menus."""

    name = models.CharField(max_length=150)
    slug = models.SlugField(max_length=160, unique=True)
    macro_area = models.CharField(max_length=150, null=True, blank=True)
    macro_area_ref = models.ForeignKey(
        MacroArea,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="destinations",
    )
    description = models.TextField(null=True, blank=True)
    coordinate = models.CharField(
        max_length=60,
        null=True,
        blank=True,
        help_text=_('"lat,lng"'),
    )
    cover_image_url = models.URLField(max_length=500, null=True, blank=True)
    sort_order = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=PublishStatus.choices, default=PublishStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Destinazione")
        verbose_name_plural = _("Destinazioni")
        ordering = ["sort_order", "name"]
        indexes = [models.Index(fields=["status"])]

    def __str__(self) -> str:
        return self.name


class Tour(models.Model):
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    destination = models.ForeignKey(
        Destination, on_delete=models.SET_NULL, null=True, blank=True, related_name="tours"
    )
    status = models.CharField(max_length=20, choices=PublishStatus.choices, default=PublishStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["title"]

    def __str__(self) -> str:
        return self.title


class Cruise(models.Model):
    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, unique=True)
    ship_name = models.CharField(max_length=150, blank=True)
    status = models.CharField(max_length=20, choices=PublishStatus.choices, default=PublishStatus.DRAFT)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["title"]

    def __str__(self) -> str:
        return self.title


class Departure(models.Model):
    """Dated departure of a tour or a cruise."""

    tour = models.ForeignKey(Tour, on_delete=models.CASCADE, null=True, blank=True, related_name="departures")
    cruise = models.ForeignKey(Cruise, on_delete=models.CASCADE, null=True, blank=True, related_name="departures")
    departure_date = models.DateField()
    price_from = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["departure_date"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(tour__isnull=False, cruise__isnull=True)
                    | models.Q(tour__isnull=True, cruise__isnull=False)
                ),
                name="departure_single_product",
            ),
        ]

    def __str__(self) -> str:
        product = self.tour or self.cruise
        return f"{product} - {self.departure_date:%d/%m/%Y}"


class Extra(models.Model):
    """Optional add-on a quote request can ask for (transfer, insurance, ...)."""

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
