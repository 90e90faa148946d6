"""Tests for destinations, macro areas and the public catalog feeds."""

from __future__ import annotations

from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.models import Destination, MacroArea, PublishStatus
from apps.catalog.services import public_mega_menu
from apps.core.models import ActivityLog, SiteSetting
from apps.users.models import OperatorPermission, User


class DestinationAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)
        self.client.force_authenticate(self.admin)
        self.asia = MacroArea.objects.create(name="Asia", slug="asia", status=PublishStatus.PUBLISHED)

    def test_create_links_macro_area_and_blanks_become_null(self) -> None:
        payload = {
            "name": "Giappone",
            "slug": "giappone",
            "macro_area_id": self.asia.pk,
            "description": "",
            "coordinate": "35.68,139.69",
        }
        response = self.client.post(reverse("destination-list"), payload, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        destination = Destination.objects.get(slug="giappone")
        self.assertEqual(destination.macro_area, "Asia")
        self.assertEqual(destination.macro_area_ref, self.asia)
        self.assertIsNone(destination.description)
        self.assertEqual(ActivityLog.objects.get(entity_type="destination").action, "create")

    def test_duplicate_slug_is_reported(self) -> None:
        Destination.objects.create(name="Giappone", slug="giappone")
        response = self.client.post(
            reverse("destination-list"), {"name": "Altro", "slug": "giappone"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Esiste già una destinazione con questo slug.")

    def test_update_logs_field_changes(self) -> None:
        destination = Destination.objects.create(name="Giappone", slug="giappone")
        response = self.client.patch(
            reverse("destination-detail", args=[destination.pk]), {"name": "Giappone Classico"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        log = ActivityLog.objects.get(entity_type="destination", action="update")
        self.assertEqual(
            log.details["changes"],
            [{"field": "name", "label": "Nome", "old": "Giappone", "new": "Giappone Classico"}],
        )

    def test_partial_update_keeps_macro_area_link(self) -> None:
        destination = Destination.objects.create(
            name="Cina", slug="cina", macro_area="Asia", macro_area_ref=self.asia
        )
        self.client.patch(reverse("destination-detail", args=[destination.pk]), {"sort_order": 3}, format="json")
        destination.refresh_from_db()
        self.assertEqual(destination.macro_area_ref, self.asia)

    def test_bulk_delete(self) -> None:
        ids = [Destination.objects.create(name=f"D{i}", slug=f"d{i}").pk for i in range(3)]
        response = self.client.post(reverse("destination-bulk-delete"), {"ids": ids[:2]}, format="json")
        self.assertEqual(response.data, {"deleted": 2})
        self.assertEqual(Destination.objects.count(), 1)

        response = self.client.post(reverse("destination-bulk-delete"), {"ids": []}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_filter_by_status_and_search(self) -> None:
        Destination.objects.create(name="Giappone", slug="giappone", status=PublishStatus.PUBLISHED)
        Destination.objects.create(name="Giordania", slug="giordania")
        response = self.client.get(reverse("destination-list"), {"search": "gi", "status": "published"})
        self.assertEqual(response.data["count"], 1)

    def test_operator_without_section_is_forbidden(self) -> None:
        operator = User.objects.create_user(email="op@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=operator, section="quotes")
        self.client.force_authenticate(operator)
        response = self.client.get(reverse("destination-list"))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class MacroAreaAPITests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)
        self.client.force_authenticate(self.admin)
        self.area = MacroArea.objects.create(name="Asia", slug="asia")

    def test_rename_propagates_to_destinations(self) -> None:
        Destination.objects.create(name="Cina", slug="cina", macro_area="Asia", macro_area_ref=self.area)
        response = self.client.patch(
            reverse("macro-area-detail", args=[self.area.pk]), {"name": "Asia Orientale"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(Destination.objects.get(slug="cina").macro_area, "Asia Orientale")

    def test_delete_blocked_while_destinations_linked(self) -> None:
        Destination.objects.create(name="Cina", slug="cina", macro_area_ref=self.area)
        response = self.client.delete(reverse("macro-area-detail", args=[self.area.pk]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("1 destinazioni", response.data["detail"])

        response = self.client.post(reverse("macro-area-bulk-delete"), {"ids": [self.area.pk]}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertTrue(MacroArea.objects.filter(pk=self.area.pk).exists())

    def test_bulk_delete_keeps_whole_batch_when_one_area_is_used(self) -> None:
        Destination.objects.create(name="Cina", slug="cina", macro_area_ref=self.area)
        unused = MacroArea.objects.create(name="Africa", slug="africa")

        response = self.client.post(
            reverse("macro-area-bulk-delete"), {"ids": [self.area.pk, unused.pk]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(MacroArea.objects.filter(pk__in=[self.area.pk, unused.pk]).count(), 2)
        self.assertFalse(ActivityLog.objects.filter(entity_type="macro_area").exists())

    def test_bulk_delete_unused_areas(self) -> None:
        unused = MacroArea.objects.create(name="Africa", slug="africa")
        response = self.client.post(
            reverse("macro-area-bulk-delete"), {"ids": [self.area.pk, unused.pk]}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertFalse(MacroArea.objects.exists())

    def test_delete_unused_area(self) -> None:
        response = self.client.delete(reverse("macro-area-detail", args=[self.area.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(ActivityLog.objects.get(entity_type="macro_area").action, "delete")

    def test_toggle_status(self) -> None:
        url = reverse("macro-area-toggle-status", args=[self.area.pk])
        self.assertEqual(self.client.post(url).data["status"], "published")
        self.assertEqual(self.client.post(url).data["status"], "draft")

    def test_list_counts_destinations(self) -> None:
        Destination.objects.create(name="Cina", slug="cina", macro_area_ref=self.area)
        response = self.client.get(reverse("macro-area-list"))
        self.assertEqual(response.data["results"][0]["destinations_count"], 1)

    def test_duplicate_slug(self) -> None:
        response = self.client.post(reverse("macro-area-list"), {"name": "Asia 2", "slug": "asia"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Esiste già una macro area con questo slug.")


class MegaMenuTests(APITestCase):
    def setUp(self) -> None:
        self.admin = User.objects.create_user(email="admin@mishatravel.com", role=User.RoleChoices.ADMIN)

    def test_mode_defaults_to_dynamic_and_admin_can_switch(self) -> None:
        self.client.force_authenticate(self.admin)
        self.assertEqual(self.client.get(reverse("mega-menu-mode")).data, {"mode": "dynamic"})
        response = self.client.put(reverse("mega-menu-mode"), {"mode": "manual"}, format="json")
        self.assertEqual(response.data, {"mode": "manual"})
        self.assertEqual(SiteSetting.get_value("mega_menu_mode"), "manual")

    def test_operator_cannot_switch_mode(self) -> None:
        operator = User.objects.create_user(email="op@mishatravel.com", role=User.RoleChoices.OPERATOR)
        OperatorPermission.objects.create(user=operator, section="destinations")
        self.client.force_authenticate(operator)
        self.assertEqual(self.client.get(reverse("mega-menu-mode")).status_code, status.HTTP_200_OK)
        response = self.client.put(reverse("mega-menu-mode"), {"mode": "manual"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_public_feeds_show_published_only_and_refresh_after_writes(self) -> None:
        area = MacroArea.objects.create(name="Asia", slug="asia", status=PublishStatus.PUBLISHED)
        Destination.objects.create(name="Cina", slug="cina", macro_area_ref=area, status=PublishStatus.PUBLISHED)
        Destination.objects.create(name="Laos", slug="laos", macro_area_ref=area)

        response = self.client.get(reverse("public-mega-menu"))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([d["slug"] for d in response.data["areas"][0]["destinations"]], ["cina"])

        # Written behind the service layer: the cached menu is still served.
        Destination.objects.filter(slug="laos").update(status=PublishStatus.PUBLISHED)
        self.assertEqual(len(public_mega_menu()["areas"][0]["destinations"]), 1)

        self.client.force_authenticate(self.admin)
        self.client.post(reverse("macro-area-toggle-status", args=[area.pk]))
        self.client.force_authenticate(None)
        self.assertEqual(self.client.get(reverse("public-mega-menu")).data["areas"], [])
        slugs = [d["slug"] for d in self.client.get(reverse("public-destinations")).data]
        self.assertEqual(sorted(slugs), ["cina", "laos"])
