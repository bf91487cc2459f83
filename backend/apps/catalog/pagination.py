import asyncio
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple

from asgiref.sync import async_to_sync, sync_to_async
from django.conf import settings
from django.db import DatabaseError

from apps.api.exceptions import RetrievalFailure
from apps.common import get_logger
from .protocols import ProductRepositoryProtocol
from .query import CatalogQuery

logger = get_logger(__name__).bind(component="catalog", layer="pagination")

# Largest OFFSET the backing stores accept (signed 64-bit)
MAX_STORE_OFFSET = 2**63 - 1


@dataclass
class CatalogPage:
    page: int
    per_page: int
    total: int
    items: List[Any] = field(default_factory=list)


class CatalogPager:
    """Runs a :class:`CatalogQuery` and returns one page plus the match count.

    Store-ordered queries are paginated by the database with a count and a
    bounded fetch. Application-ordered queries load every match, sort it with
    the query's strategy and slice the page out in Python.
    """

    def __init__(
        self,
        products: ProductRepositoryProtocol,
        concurrent: Optional[bool] = None,
    ):
        self.products = products
        self.concurrent = (
            getattr(settings, "CATALOG_CONCURRENT_COUNT", True)
            if concurrent is None
            else concurrent
        )
        self.logger = logger.bind(pager="CatalogPager")

    def paginate(self, query: CatalogQuery) -> CatalogPage:
        try:
            if query.ordering.in_store:
                total, items = self._store_window(query)
            else:
                total, items = self._application_window(query)
        except DatabaseError as exc:
            self.logger.exception(
                "Catalog retrieval failed",
                sort=query.ordering.key,
                page=query.page,
            )
            raise RetrievalFailure(
                "Products could not be loaded", details={"reason": type(exc).__name__}
            ) from exc
        self.logger.debug(
            "Catalog page resolved",
            sort=query.ordering.key,
            page=query.page,
            per_page=query.per_page,
            total=total,
            returned=len(items),
        )
        return CatalogPage(
            page=query.page, per_page=query.per_page, total=total, items=items
        )

    def _store_window(self, query: CatalogQuery) -> Tuple[int, List[Any]]:
        if query.offset > MAX_STORE_OFFSET:
            # Past every possible row; only the count is meaningful.
            return self.products.count_matching(query.filter), []
        if not self.concurrent:
            total = self.products.count_matching(query.filter)
            items = self._fetch_window(query)
            return total, items
        return async_to_sync(self._gather_window)(query)

    async def _gather_window(self, query: CatalogQuery) -> Tuple[int, List[Any]]:
        # Both calls share the request's connection, so they stay thread-sensitive.
        count = sync_to_async(self.products.count_matching, thread_sensitive=True)
        fetch = sync_to_async(self._fetch_window, thread_sensitive=True)
        total, items = await asyncio.gather(count(query.filter), fetch(query))
        return total, items

    def _fetch_window(self, query: CatalogQuery) -> List[Any]:
        return list(
            self.products.fetch_window(
                query.filter, query.ordering, query.offset, query.per_page
            )
        )

    def _application_window(self, query: CatalogQuery) -> Tuple[int, List[Any]]:
        rows = query.ordering.sort(self.products.fetch_matching(query.filter))
        start = query.offset
        return len(rows), rows[start : start + query.per_page]
