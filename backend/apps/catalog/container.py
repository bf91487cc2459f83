from __future__ import annotations

from typing import Optional

from .pagination import CatalogPager
from .query import CatalogQueryBuilder, CategoryMatcher
from .repositories import CategoryRepository, ProductRepository
from .services import CategoryService, ProductService


def build_product_service(
    *,
    concurrent: Optional[bool] = None,
    category_matcher: Optional[CategoryMatcher] = None,
) -> ProductService:
    products = ProductRepository()
    return ProductService(
        products=products,
        categories=CategoryRepository(),
        query_builder=CatalogQueryBuilder(category_matcher),
        pager=CatalogPager(products, concurrent=concurrent),
    )


def build_category_service() -> CategoryService:
    return CategoryService(categories=CategoryRepository())
