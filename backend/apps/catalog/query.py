from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Protocol, Tuple
from uuid import UUID

from django.db.models import Q

from apps.common import get_logger
from .collation import name_sort_key

logger = get_logger(__name__).bind(component="catalog", layer="query")

SORT_RELEVANCE = "relevance"
SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_NAME_ASC = "name_asc"
SORT_NAME_DESC = "name_desc"


def _contains(haystack: Optional[str], needle: str) -> bool:
    return needle.casefold() in (haystack or "").casefold()


class CategoryMatcher(Protocol):
    """Turns a free-text category term into a product constraint."""

    def as_q(self, term: str) -> Q:
        ...

    def matches(self, product: Any, term: str) -> bool:
        ...


class FreeTextCategoryMatcher:
    """Substring match of the term on product name or description.

    Not a join on the category relation. Swap in another matcher to filter by
    the real category once clients send category ids.
    """

    def as_q(self, term: str) -> Q:
        return Q(name__icontains=term) | Q(description__icontains=term)

    def matches(self, product: Any, term: str) -> bool:
        return _contains(getattr(product, "name", None), term) or _contains(
            getattr(product, "description", None), term
        )


@dataclass(frozen=True)
class ProductFilter:
    search: Optional[str] = None
    category_term: Optional[str] = None
    category_matcher: CategoryMatcher = field(
        default_factory=FreeTextCategoryMatcher, compare=False
    )

    @property
    def is_empty(self) -> bool:
        return not self.search and not self.category_term

    def as_q(self) -> Q:
        q = Q()
        if self.search:
            q &= Q(name__icontains=self.search)
        if self.category_term:
            q &= self.category_matcher.as_q(self.category_term)
        return q

    def matches(self, product: Any) -> bool:
        if self.search and not _contains(getattr(product, "name", None), self.search):
            return False
        if self.category_term and not self.category_matcher.matches(
            product, self.category_term
        ):
            return False
        return True


class OrderingStrategy(Protocol):
    key: str
    in_store: bool

    def order_by(self) -> Tuple[str, ...]:
        ...

    def sort(self, products: Iterable[Any]) -> List[Any]:
        ...


@dataclass(frozen=True)
class StoreOrdering:
    """Ordering the database applies itself; pagination happens in SQL."""

    key: str
    fields: Tuple[str, ...]
    in_store: bool = True

    def order_by(self) -> Tuple[str, ...]:
        return self.fields

    def sort(self, products: Iterable[Any]) -> List[Any]:
        items = list(products)
        # Stable sorts applied from the last field to the first.
        for name in reversed(self.fields):
            descending = name.startswith("-")
            attr = name.lstrip("-")
            items.sort(key=lambda p, a=attr: _comparable(getattr(p, a)), reverse=descending)
        return items


def _comparable(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


@dataclass(frozen=True)
class CollatedNameOrdering:
    """pt-BR name order computed in Python.

    Every matching row is loaded and sorted here, because database collations
    differ between engines on accented names.
    """

    key: str
    descending: bool = False
    in_store: bool = False

    def order_by(self) -> Tuple[str, ...]:
        return ()

    def sort(self, products: Iterable[Any]) -> List[Any]:
        return sorted(
            products,
            key=lambda p: name_sort_key(p.name, str(p.id)),
            reverse=self.descending,
        )


ORDERINGS: Dict[str, OrderingStrategy] = {
    SORT_RELEVANCE: StoreOrdering(SORT_RELEVANCE, ("-created_at", "-id")),
    SORT_PRICE_ASC: StoreOrdering(SORT_PRICE_ASC, ("price", "id")),
    SORT_PRICE_DESC: StoreOrdering(SORT_PRICE_DESC, ("-price", "id")),
    SORT_NAME_ASC: CollatedNameOrdering(SORT_NAME_ASC),
    SORT_NAME_DESC: CollatedNameOrdering(SORT_NAME_DESC, descending=True),
}

SORT_KEYS = tuple(ORDERINGS)


def get_ordering(sort: Optional[str]) -> OrderingStrategy:
    return ORDERINGS.get(sort or SORT_RELEVANCE, ORDERINGS[SORT_RELEVANCE])


@dataclass(frozen=True)
class CatalogQuery:
    filter: ProductFilter
    ordering: OrderingStrategy
    page: int
    per_page: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


class CatalogQueryBuilder:
    def __init__(self, category_matcher: Optional[CategoryMatcher] = None):
        self.category_matcher = category_matcher or FreeTextCategoryMatcher()

    def build(self, command) -> CatalogQuery:
        query = CatalogQuery(
            filter=ProductFilter(
                search=command.search or None,
                category_term=command.category or None,
                category_matcher=self.category_matcher,
            ),
            ordering=get_ordering(command.sort),
            page=command.page,
            per_page=command.per_page,
        )
        logger.debug(
            "Built catalog query",
            search=command.search,
            category=command.category,
            sort=query.ordering.key,
            page=query.page,
            per_page=query.per_page,
        )
        return query
