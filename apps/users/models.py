"""User domain models for the MishaTravel back-office.

The platform differentiates four roles: the super admin and the admins run
the whole back-office, operators only see the sections they were granted,
and agency users work in the agency portal on behalf of their travel
agency. Users log in with their email address.
"""

from __future__ import annotations

from typing import Any

from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class CustomUserManager(BaseUserManager):
    """User manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("L'email è obbligatoria per creare un utente.")
        email = self.normalize_email(email).lower()

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.AGENCY)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.SUPER_ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Il superutente deve avere is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Il superutente deve avere is_superuser=True.")

        return self._create_user(email, password, **extra_fields)


class OperatorSection(models.TextChoices):
    """Back-office sections an operator can be granted."""

    TOURS = "tours", _("Tour")
    CRUISES = "cruises", _("Crociere")
    FLEET = "fleet", _("Flotta")
    DEPARTURES = "departures", _("Partenze")
    DESTINATIONS = "destinations", _("Destinazioni")
    AGENCIES = "agencies", _("Agenzie")
    QUOTES = "quotes", _("Preventivi")
    BLOG = "blog", _("Blog")
    CATALOGS = "catalogs", _("Cataloghi")
    MEDIA = "media", _("Media")
    USERS_READONLY = "users_readonly", _("Utenti (sola lettura)")
    ACCOUNT_STATEMENTS = "account_statements", _("Estratti Conto")


class CustomUser(AbstractUser):
    """Platform user with a back-office or agency role."""

    class RoleChoices(models.TextChoices):
        SUPER_ADMIN = "super_admin", _("Super Admin")
        ADMIN = "admin", _("Amministratore")
        OPERATOR = "operator", _("Operatore")
        AGENCY = "agency", _("Agenzia")

    username = models.CharField(
        _("Nome visualizzato"),
        max_length=150,
        blank=True,
        help_text=_("Opzionale, usato nelle interfacce e nelle notifiche."),
    )
    email = models.EmailField(_("Email"), unique=True)
    role = models.CharField(
        _("Ruolo"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.AGENCY,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    class Meta:
        verbose_name = _("Utente")
        verbose_name_plural = _("Utenti")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    @property
    def display_name(self) -> str:
        return self.username or self.email

    # --- Domain helpers ------------------------------------------------------
    def is_super_admin(self) -> bool:
        return self.role == self.RoleChoices.SUPER_ADMIN or self.is_superuser

    def is_admin(self) -> bool:
        return self.role == self.RoleChoices.ADMIN

    def is_operator(self) -> bool:
        return self.role == self.RoleChoices.OPERATOR

    def is_agency(self) -> bool:
        return self.role == self.RoleChoices.AGENCY and not self.is_superuser

    def is_backoffice(self) -> bool:
        return self.is_super_admin() or self.is_admin() or self.is_operator()

    def sections(self) -> list[str]:
        if self.is_super_admin() or self.is_admin():
            return list(OperatorSection.values)
        if self.is_operator():
            return list(self.operator_permissions.values_list("section", flat=True))
        return []

    def has_section(self, section: str) -> bool:
        if self.is_super_admin() or self.is_admin():
            return True
        if self.is_operator():
            return self.operator_permissions.filter(section=section).exists()
        return False


class OperatorPermission(models.Model):
    """Section granted to an operator."""

    user = models.ForeignKey(
        CustomUser,
        on_delete=models.CASCADE,
        related_name="operator_permissions",
    )
    section = models.CharField(max_length=30, choices=OperatorSection.choices)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Permesso operatore")
        verbose_name_plural = _("Permessi operatore")
        constraints = [
            models.UniqueConstraint(fields=["user", "section"], name="unique_operator_section"),
        ]

    def __str__(self) -> str:
        return f"{self.user_id}: {self.section}"


# Short alias used across services and tests
User = CustomUser
