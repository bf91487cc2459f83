from __future__ import annotations

from typing import Iterable, List, Optional, Protocol

from .models import Category, Product
from .query import OrderingStrategy, ProductFilter


class CategoryRepositoryProtocol(Protocol):
    def list_ordered(self) -> Iterable[Category]:
        ...

    def find_by_term(self, term: str) -> Optional[Category]:
        ...

    def create(self, **data) -> Category:
        ...


class ProductRepositoryProtocol(Protocol):
    def get(self, **filters) -> Optional[Product]:
        ...

    def create(self, **data) -> Product:
        ...

    def update_fields(self, obj: Product, **fields) -> Product:
        ...

    def delete(self, obj: Product) -> None:
        ...

    def count_matching(self, product_filter: ProductFilter) -> int:
        ...

    def fetch_window(
        self,
        product_filter: ProductFilter,
        ordering: OrderingStrategy,
        offset: int,
        limit: int,
    ) -> List[Product]:
        ...

    def fetch_matching(self, product_filter: ProductFilter) -> List[Product]:
        ...
