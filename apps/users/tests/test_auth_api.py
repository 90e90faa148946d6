"""API tests for authentication and back-office user management."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.users.models import OperatorPermission, OperatorSection, User


class AuthAPITests(APITestCase):
    def setUp(self) -> None:
        self.user = User.objects.create_user(
            email="operatore@mishatravel.com",
            password="CorrectPassword1",
            role=User.RoleChoices.OPERATOR,
        )

    def test_login_returns_tokens(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"email": "OPERATORE@mishatravel.com", "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertIn("access", response.data["tokens"])
        self.assertEqual(response.data["user"]["role"], "operator")
        self.user.refresh_from_db()
        self.assertIsNotNone(self.user.last_login)

    def test_login_rejects_wrong_password(self) -> None:
        response = self.client.post(
            reverse("auth:login"),
            {"email": self.user.email, "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_login_rejects_inactive_user(self) -> None:
        self.user.is_active = False
        self.user.save(update_fields=["is_active"])
        response = self.client.post(
            reverse("auth:login"),
            {"email": self.user.email, "password": "CorrectPassword1"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_me_lists_granted_sections(self) -> None:
        OperatorPermission.objects.create(user=self.user, section=OperatorSection.QUOTES)
        self.client.force_authenticate(self.user)
        response = self.client.get(reverse("auth:me"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["sections"], ["quotes"])

    def test_change_password_requires_current_password(self) -> None:
        self.client.force_authenticate(self.user)
        url = reverse("auth:change-password")
        payload = {
            "current_password": "nope",
            "new_password": "NewPassword1",
            "new_password_confirm": "NewPassword1",
        }
        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payload["current_password"] = "CorrectPassword1"
        response = self.client.post(url, payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password("NewPassword1"))


class UserManagementAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(
            email="admin@mishatravel.com",
            password="AdminPassword1",
            role=User.RoleChoices.ADMIN,
        )
        self.client.force_authenticate(self.admin)

    def test_create_operator_with_sections(self) -> None:
        payload = {
            "email": "nuovo@mishatravel.com",
            "password": "Password123",
            "display_name": "Nuovo Operatore",
            "role": "operator",
            "permissions": ["quotes", "media", "not-a-section", "quotes"],
        }
        response = self.client.post(reverse("user-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        user = User.objects.get(email="nuovo@mishatravel.com")
        self.assertEqual(sorted(user.sections()), ["media", "quotes"])

    def test_create_rejects_short_password_and_duplicate_email(self) -> None:
        payload = {
            "email": "admin@mishatravel.com",
            "password": "Password123",
            "display_name": "Doppio",
            "role": "admin",
        }
        response = self.client.post(reverse("user-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        payload.update(email="altro@mishatravel.com", password="short")
        response = self.client.post(reverse("user-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_role_change_to_admin_clears_sections(self) -> None:
        operator = User.objects.create_user(email="op@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=operator, section=OperatorSection.MEDIA)

        response = self.client.post(reverse("user-role", args=[operator.pk]), {"role": "admin"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(OperatorPermission.objects.filter(user=operator).exists())

    def test_cannot_delete_or_deactivate_self(self) -> None:
        response = self.client.delete(reverse("user-detail", args=[self.admin.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        response = self.client.post(reverse("user-deactivate", args=[self.admin.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_readonly_operator_can_list_but_not_create(self) -> None:
        operator = User.objects.create_user(email="ro@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=operator, section=OperatorSection.USERS_READONLY)
        self.client.force_authenticate(operator)

        self.assertEqual(self.client.get(reverse("user-list")).status_code, status.HTTP_200_OK)
        response = self.client.post(
            reverse("user-list"),
            {"email": "x@mishatravel.com", "password": "Password123", "display_name": "X", "role": "admin"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_sections_catalogue(self) -> None:
        response = self.client.get(reverse("user-sections"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn({"value": "account_statements", "label": "Estratti Conto"}, response.data)
