from typing import Iterable, List, Optional

from django.db import transaction

from apps.common.repository import GenericRepository
from .models import Category, Product, make_slug
from .query import OrderingStrategy, ProductFilter


class CategoryRepository(GenericRepository[Category]):
    def __init__(self):
        super().__init__(Category)

    def create(self, **data) -> Category:
        # Savepoint so a slug collision leaves the outer transaction usable.
        with transaction.atomic():
            return super().create(**data)

    def list_ordered(self) -> Iterable[Category]:
        return self.model.objects.order_by("name", "id")

    def find_by_term(self, term: str) -> Optional[Category]:
        """Case-insensitive name match first, derived slug second."""
        found = self.model.objects.filter(name__iexact=term).order_by("id").first()
        if found is not None:
            return found
        slug = make_slug(term)
        if not slug:
            return None
        return self.model.objects.filter(slug=slug).first()


class ProductRepository(GenericRepository[Product]):
    def __init__(self):
        super().__init__(Product)

    def _matching(self, product_filter: ProductFilter):
        return self.model.objects.filter(product_filter.as_q()).select_related(
            "category"
        )

    def get(self, **filters) -> Optional[Product]:  # type: ignore[override]
        return self.model.objects.filter(**filters).select_related("category").first()

    def create(self, **data) -> Product:
        with transaction.atomic():
            return super().create(**data)

    def update_fields(self, obj: Product, **fields) -> Product:
        with transaction.atomic():
            return super().update_fields(obj, **fields)

    def count_matching(self, product_filter: ProductFilter) -> int:
        return self.model.objects.filter(product_filter.as_q()).count()

    def fetch_window(
        self,
        product_filter: ProductFilter,
        ordering: OrderingStrategy,
        offset: int,
        limit: int,
    ) -> List[Product]:
        qs = self._matching(product_filter).order_by(*ordering.order_by())
        # Evaluate here: the caller may be on another thread.
        return list(qs[offset : offset + limit])

    def fetch_matching(self, product_filter: ProductFilter) -> List[Product]:
        return list(self._matching(product_filter))
