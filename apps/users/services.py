"""Account management services for back-office users."""

from __future__ import annotations

import logging
from typing import Iterable

from django.db import transaction  # type: ignore

from .models import CustomUser, OperatorPermission, OperatorSection

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


class UserManagementError(Exception):
    """Raised when an account operation cannot be completed."""


def _valid_sections(sections: Iterable[str] | None) -> list[str]:
    allowed = set(OperatorSection.values)
    seen: list[str] = []
    for section in sections or []:
        if section in allowed and section not in seen:
            seen.append(section)
    return seen


def _replace_sections(user: CustomUser, sections: Iterable[str] | None) -> None:
    OperatorPermission.objects.filter(user=user).delete()
    if user.role != CustomUser.RoleChoices.OPERATOR:
        return
    OperatorPermission.objects.bulk_create(
        [OperatorPermission(user=user, section=section) for section in _valid_sections(sections)]
    )


@transaction.atomic
def create_admin_user(
    *,
    email: str,
    password: str,
    display_name: str,
    role: str,
    sections: Iterable[str] | None = None,
) -> CustomUser:
    """Create an admin or operator account with its section grants."""

    if role not in (CustomUser.RoleChoices.ADMIN, CustomUser.RoleChoices.OPERATOR):
        raise UserManagementError("Ruolo non valido.")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise UserManagementError("La password deve avere almeno 8 caratteri.")
    if CustomUser.objects.filter(email__iexact=email).exists():
        raise UserManagementError("Questa email è già registrata.")

    user = CustomUser.objects.create_user(
        email=email,
        password=password,
        username=display_name,
        role=role,
    )
    _replace_sections(user, sections)
    logger.info(f"Back-office user {user.email} created with role {role}")
    return user


@transaction.atomic
def update_user_role(user: CustomUser, role: str, sections: Iterable[str] | None = None) -> CustomUser:
    """Change the role and replace the operator sections."""

    if role not in CustomUser.RoleChoices.values:
        raise UserManagementError("Ruolo non valido.")
    user.role = role
    user.save(update_fields=["role", "updated_at"])
    _replace_sections(user, sections)
    return user


def update_display_name(user: CustomUser, display_name: str) -> CustomUser:
    user.username = display_name.strip()
    user.save(update_fields=["username", "updated_at"])
    return user


def reset_user_password(user: CustomUser, new_password: str) -> None:
    if len(new_password or "") < MIN_PASSWORD_LENGTH:
        raise UserManagementError("La password deve avere almeno 8 caratteri.")
    user.set_password(new_password)
    user.save(update_fields=["password", "updated_at"])


def set_user_active(user: CustomUser, active: bool) -> CustomUser:
    user.is_active = active
    user.save(update_fields=["is_active", "updated_at"])
    logger.info(f"User {user.email} {'reactivated' if active else 'deactivated'}")
    return user


@transaction.atomic
def delete_user(user: CustomUser) -> None:
    OperatorPermission.objects.filter(user=user).delete()
    email = user.email
    user.delete()
    logger.info(f"User {email} deleted")


def change_own_password(user: CustomUser, current_password: str, new_password: str) -> None:
    """Password change from the profile page; the current password must match."""

    if not user.check_password(current_password):
        raise UserManagementError("La password attuale non è corretta.")
    reset_user_password(user, new_password)
