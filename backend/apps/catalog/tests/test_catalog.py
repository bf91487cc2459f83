from datetime import timedelta
from decimal import Decimal
from unittest.mock import patch

from django.contrib.auth import get_user_model
from django.db import OperationalError
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.catalog.container import build_product_service
from apps.catalog.models import Category, Product
from apps.catalog.repositories import ProductRepository
from apps.catalog.views import ProductListView

User = get_user_model()


class TestCatalogListing(APITestCase):
    def setUp(self):
        now = timezone.now()
        self.perifericos = Category.objects.create(name="Periféricos")
        self.gamer = Product.objects.create(
            name="Mouse Gamer", price=Decimal("149.90"), stock=5,
            category=self.perifericos, created_at=now - timedelta(days=2),
        )
        self.simples = Product.objects.create(
            name="Mouse Simples", price=Decimal("59.90"), stock=5,
            created_at=now - timedelta(days=1),
        )
        self.teclado = Product.objects.create(
            name="Teclado", price=Decimal("299.90"), stock=1,
            description="Teclado para jogos", created_at=now,
        )
        self.url = "/api/products/"

    def _names(self, res):
        return [item["name"] for item in res.data["items"]]

    def test_search_with_price_sort(self):
        res = self.client.get(
            self.url, {"search": "mouse", "sort": "price_asc", "page": 1, "perPage": 2}
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total"], 2)
        self.assertEqual(res.data["page"], 1)
        self.assertEqual(res.data["perPage"], 2)
        self.assertEqual(
            [(i["name"], i["price"]) for i in res.data["items"]],
            [("Mouse Simples", "59.90"), ("Mouse Gamer", "149.90")],
        )

    def test_default_listing_is_newest_first(self):
        res = self.client.get(self.url)
        self.assertEqual(self._names(res), ["Teclado", "Mouse Simples", "Mouse Gamer"])

    def test_category_term_matches_description(self):
        res = self.client.get(self.url, {"category": "jogos"})
        self.assertEqual(self._names(res), ["Teclado"])

    def test_name_sort_is_locale_aware(self):
        Product.objects.create(name="ábaco", price=Decimal("1.00"))
        Product.objects.create(name="Zíper", price=Decimal("1.00"))
        asc = self._names(self.client.get(self.url, {"sort": "name_asc"}))
        self.assertEqual(
            asc, ["ábaco", "Mouse Gamer", "Mouse Simples", "Teclado", "Zíper"]
        )
        desc = self._names(self.client.get(self.url, {"sort": "name_desc"}))
        self.assertEqual(desc, list(reversed(asc)))

    def test_name_sort_paginates_after_sorting(self):
        res = self.client.get(self.url, {"sort": "name_asc", "page": 2, "perPage": 2})
        self.assertEqual(res.data["total"], 3)
        self.assertEqual(self._names(res), ["Teclado"])

    def test_per_page_is_clamped(self):
        res = self.client.get(self.url, {"perPage": 1000, "page": "x"})
        self.assertEqual(res.data["perPage"], 50)
        self.assertEqual(res.data["page"], 1)

    def test_huge_page_is_empty_on_both_paths(self):
        for sort in ("price_asc", "name_asc"):
            res = self.client.get(self.url, {"page": "1e20", "sort": sort})
            self.assertEqual(res.status_code, status.HTTP_200_OK)
            self.assertEqual(res.data["total"], 3)
            self.assertEqual(res.data["items"], [])

    def test_storage_failure_returns_empty_page(self):
        service = build_product_service(concurrent=False)
        with patch.object(ProductListView, "service", service), patch.object(
            ProductRepository, "count_matching", side_effect=OperationalError("down")
        ):
            res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertEqual(res.data["items"], [])
        self.assertEqual(res.data["error"]["code"], "SERVICE_UNAVAILABLE")

    def test_product_detail_and_slug(self):
        res = self.client.get(f"{self.url}{self.gamer.id}/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["slug"], "mouse-gamer")
        self.assertEqual(res.data["category"]["name"], "Periféricos")
        res = self.client.get(f"{self.url}slug/teclado/")
        self.assertEqual(res.data["id"], str(self.teclado.id))

    def test_unknown_product_is_404(self):
        res = self.client.get(f"{self.url}00000000-0000-0000-0000-000000000000/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "NOT_FOUND")

    def test_categories_listing(self):
        Category.objects.create(name="Acessórios")
        res = self.client.get("/api/categories/")
        self.assertEqual([c["name"] for c in res.data], ["Acessórios", "Periféricos"])


class TestCatalogAdmin(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="admin", password="TestPass123", is_staff=True
        )
        self.customer = User.objects.create_user(username="ana", password="TestPass123")
        self.url = "/api/products/"

    def test_create_update_delete_cycle(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.post(
            self.url,
            {"name": "Cadeira Ergonômica", "price": "899.00", "stock": 2,
             "category": "Escritório", "tag": "PROMOCAO"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["slug"], "cadeira-ergonomica")
        self.assertEqual(res.data["category"]["slug"], "escritorio")
        product_id = res.data["id"]

        res = self.client.patch(
            f"{self.url}{product_id}/", {"name": "Cadeira Gamer"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["slug"], "cadeira-gamer")
        self.assertEqual(Category.objects.count(), 1)

        res = self.client.delete(f"{self.url}{product_id}/")
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)
        res = self.client.delete(f"{self.url}{product_id}/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    def test_patch_with_null_clears_optional_fields(self):
        product = Product.objects.create(
            name="Monitor", price=Decimal("999.00"), stock=3,
            description="24 polegadas", image_url="http://x/img.png", tag="NOVO",
        )
        self.client.force_authenticate(user=self.admin)
        res = self.client.patch(
            f"{self.url}{product.id}/", {"imageUrl": None, "tag": None}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIsNone(res.data["imageUrl"])
        product.refresh_from_db()
        self.assertIsNone(product.image_url)
        self.assertIsNone(product.tag)
        self.assertEqual(product.description, "24 polegadas")
        self.assertEqual(product.stock, 3)

    def test_category_is_reused_case_insensitively(self):
        self.client.force_authenticate(user=self.admin)
        self.client.post(self.url, {"name": "A", "price": "1", "category": "Casa"}, format="json")
        self.client.post(self.url, {"name": "B", "price": "1", "category": "CASA"}, format="json")
        self.assertEqual(Category.objects.count(), 1)

    def test_duplicate_name_conflicts(self):
        self.client.force_authenticate(user=self.admin)
        first = self.client.post(self.url, {"name": "Mesa", "price": "1"}, format="json")
        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        res = self.client.post(self.url, {"name": "mesa", "price": "2"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["error"]["code"], "CONFLICT")
        self.assertEqual(Product.objects.count(), 1)

    def test_customer_cannot_write(self):
        self.client.force_authenticate(user=self.customer)
        res = self.client.post(self.url, {"name": "Mesa", "price": "1"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
