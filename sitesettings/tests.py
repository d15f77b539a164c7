from django.test import TestCase
from rest_framework.test import APIClient

from account.models import User
from sitesettings.models import SiteSettings


class SiteSettingsApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.admin = User.objects.create_user(email="admin@example.com", password="Pass123!", role="admin")
        self.user = User.objects.create_user(email="client@example.com", password="Pass123!")
        self.client.force_authenticate(self.admin)

    def test_get_before_first_save_is_404(self):
        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, 404)

    def test_patch_coerces_numbers(self):
        response = self.client.patch(
            "/api/settings/",
            {
                "delivery_prices": {"distance": "1.5", "weight": "abc", "vehicle_type": "moto"},
                "promotion": {"code": " WELCOME ", "discount": "15", "active": True},
            },
            format="json",
        )
        self.assertEqual(response.status_code, 200, response.data)
        row = SiteSettings.load()
        self.assertEqual(row.delivery_prices, {"distance": 1.5, "weight": 0.0, "vehicle_type": "moto"})
        self.assertEqual(row.promotion, {"code": "WELCOME", "discount": 15, "active": True})

    def test_patch_merges_sections(self):
        self.client.patch("/api/settings/", {"coverage_zones": ["Cotonou", "Porto-Novo"]}, format="json")
        self.client.patch("/api/settings/", {"vehicle_types": "camion"}, format="json")
        self.client.patch("/api/settings/", {"company_info": {"name": "Dynamism Express"}}, format="json")

        response = self.client.get("/api/settings/")
        self.assertEqual(response.status_code, 200)
        data = response.data["data"]
        self.assertEqual(data["coverage_zones"], ["Cotonou", "Porto-Novo"])
        self.assertEqual(data["vehicle_types"], ["camion"])
        self.assertEqual(data["company_info"], {"name": "Dynamism Express", "email": "", "address": ""})
        self.assertEqual(data["promotion"], {"code": "", "discount": 0, "active": False})
        self.assertEqual([admin["email"] for admin in response.data["admins"]], ["admin@example.com"])

    def test_patch_without_known_section(self):
        response = self.client.patch("/api/settings/", {"theme": "dark"}, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertFalse(SiteSettings.objects.exists())

    def test_settings_are_admin_only(self):
        self.client.force_authenticate(self.user)
        self.assertEqual(self.client.get("/api/settings/").status_code, 403)
        self.assertEqual(self.client.patch("/api/settings/", {"coverage_zones": []}, format="json").status_code, 403)
