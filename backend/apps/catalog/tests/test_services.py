import unittest
from unittest.mock import Mock

from apps.api.exceptions import ConflictError, InvalidInputError, NotFoundError
from apps.catalog.commands import ProductListCommand
from apps.catalog.pagination import CatalogPager
from apps.catalog.services import CategoryService, ProductService
from .fakes import FakeCategoryRepository, FakeProductRepository, make_product


class ProductServiceTests(unittest.TestCase):
    def setUp(self):
        self.products = FakeProductRepository(
            [
                make_product("Mouse Gamer", "149.90", description="RGB"),
                make_product("Mouse Simples", "59.90"),
                make_product("Teclado", "299.90", description="Mecânico para jogos"),
            ]
        )
        self.categories = FakeCategoryRepository()
        self.service = ProductService(
            self.products,
            self.categories,
            pager=CatalogPager(self.products, concurrent=False),
        )

    def test_list_products_search_and_price_sort(self):
        page = self.service.list_products(
            {"search": "mouse", "sort": "price_asc", "page": "1", "perPage": "2"}
        )
        self.assertEqual(page.total, 2)
        self.assertEqual(page.per_page, 2)
        self.assertEqual(
            [(p.name, p.price) for p in page.items],
            [("Mouse Simples", "59.90"), ("Mouse Gamer", "149.90")],
        )

    def test_list_products_category_term_matches_description(self):
        page = self.service.list_products(ProductListCommand(category="JOGOS"))
        self.assertEqual([p.name for p in page.items], ["Teclado"])

    def test_get_product_and_missing(self):
        target = self.products.all()[0]
        dto = self.service.get_product(target.id)
        self.assertEqual(dto.id, str(target.id))
        self.assertIsNone(self.service.get_product("missing"))

    def test_get_product_by_slug(self):
        self.assertEqual(self.service.get_product_by_slug("teclado").name, "Teclado")
        self.assertIsNone(self.service.get_product_by_slug("nope"))

    def test_create_product_derives_slug_and_creates_category(self):
        dto = self.service.create_product(
            {"name": "Cadeira Ergonômica", "price": "899.00", "category": "Escritório"}
        )
        self.assertEqual(dto.slug, "cadeira-ergonomica")
        self.assertEqual(dto.category.name, "Escritório")
        self.assertEqual(dto.category.slug, "escritorio")
        # Second product reuses the category by slug
        again = self.service.create_product(
            {"name": "Mesa", "price": "10", "category": "escritorio"}
        )
        self.assertEqual(again.category.id, dto.category.id)
        self.assertEqual(len(self.categories.list_ordered()), 1)

    def test_create_duplicate_slug_raises_conflict(self):
        with self.assertRaises(ConflictError) as ctx:
            self.service.create_product({"name": "TECLADO", "price": "1.00"})
        self.assertEqual(ctx.exception.details, {"slug": "teclado"})

    def test_create_without_slug_characters_is_invalid(self):
        with self.assertRaises(InvalidInputError):
            self.service.create_product({"name": "!!!", "price": "1.00"})

    def test_update_name_regenerates_slug(self):
        target = self.products.get(slug="mouse-simples")
        dto = self.service.update_product(target.id, {"name": "Mouse Sem Fio"})
        self.assertEqual(dto.slug, "mouse-sem-fio")
        self.assertEqual(dto.price, "59.90")

    def test_update_with_null_clears_description(self):
        target = self.products.get(slug="mouse-gamer")
        dto = self.service.update_product(target.id, {"description": None})
        self.assertIsNone(dto.description)
        self.assertEqual(dto.name, "Mouse Gamer")
        self.assertEqual(dto.price, "149.90")

    def test_update_to_existing_name_conflicts(self):
        target = self.products.get(slug="mouse-simples")
        with self.assertRaises(ConflictError):
            self.service.update_product(target.id, {"name": "Teclado"})

    def test_update_missing_product(self):
        with self.assertRaises(NotFoundError):
            self.service.update_product("missing", {"stock": 2})

    def test_delete_product(self):
        target = self.products.get(slug="teclado")
        self.service.delete_product(target.id)
        self.assertIsNone(self.products.get(slug="teclado"))
        with self.assertRaises(NotFoundError):
            self.service.delete_product(target.id)

    def test_list_uses_injected_pager(self):
        pager = Mock()
        pager.paginate.return_value = Mock(page=1, per_page=10, total=0, items=[])
        service = ProductService(self.products, self.categories, pager=pager)
        page = service.list_products({})
        self.assertEqual(page.total, 0)
        query = pager.paginate.call_args[0][0]
        self.assertEqual(query.ordering.key, "relevance")


class CategoryServiceTests(unittest.TestCase):
    def test_list_categories_sorted_by_name(self):
        repo = FakeCategoryRepository()
        repo.create(name="Jogos", slug="jogos")
        repo.create(name="Acessórios", slug="acessorios")
        names = [c.name for c in CategoryService(repo).list_categories()]
        self.assertEqual(names, ["Acessórios", "Jogos"])
