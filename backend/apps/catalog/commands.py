import math
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Mapping, Optional

from django.conf import settings

from .query import SORT_KEYS, SORT_RELEVANCE


def _positive_int(raw: Any, default: int) -> int:
    """Truncated positive integer from ``raw`` or ``default``.

    Absent, non-numeric, non-finite and non-positive inputs all fall back.
    """
    if raw is None or isinstance(raw, bool):
        return default
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    value = int(number)
    return value if value > 0 else default


def _trimmed(raw: Any) -> str:
    return str(raw).strip() if raw is not None else ""


# Listing Command
@dataclass
class ProductListCommand:
    search: str = ""
    category: str = ""
    sort: str = SORT_RELEVANCE
    page: int = 1
    per_page: int = 10

    @staticmethod
    def from_raw(params: Optional[Mapping[str, Any]]):
        data = params or {}
        default_size = getattr(settings, "CATALOG_DEFAULT_PAGE_SIZE", 10)
        max_size = getattr(settings, "CATALOG_MAX_PAGE_SIZE", 50)
        # ?limit= kept for older clients
        raw_per_page = data.get("perPage")
        if raw_per_page is None:
            raw_per_page = data.get("limit")
        sort = _trimmed(data.get("sort")).lower()
        return ProductListCommand(
            search=_trimmed(data.get("search")),
            category=_trimmed(data.get("category")),
            sort=sort if sort in SORT_KEYS else SORT_RELEVANCE,
            page=_positive_int(data.get("page"), 1),
            per_page=min(_positive_int(raw_per_page, default_size), max_size),
        )


# Product Commands
@dataclass
class ProductCreateCommand:
    name: str
    price: str
    description: Optional[str] = None
    stock: int = 0
    image_url: Optional[str] = None
    tag: Optional[str] = None
    category: Optional[str] = None

    @staticmethod
    def from_raw(payload: Dict[str, Any]):
        data = dict(payload or {})
        # ignore id if present
        data.pop("id", None)
        category = _trimmed(data.get("category")) or None
        return ProductCreateCommand(
            name=_trimmed(data.get("name")),
            price=str(data.get("price", "0")).strip(),
            description=data.get("description"),
            stock=int(data.get("stock") or 0),
            image_url=data.get("image_url") or None,
            tag=data.get("tag") or None,
            category=category,
        )


# Columns a PATCH may set back to null
NULLABLE_FIELDS = frozenset({"description", "image_url", "tag"})


@dataclass
class ProductUpdateCommand:
    product_id: Any
    name: Optional[str] = None
    price: Optional[str] = None
    description: Optional[str] = None
    stock: Optional[int] = None
    image_url: Optional[str] = None
    tag: Optional[str] = None
    category: Optional[str] = None
    # Nullable fields the payload carried, so an explicit null clears the column
    present: FrozenSet[str] = frozenset()

    @staticmethod
    def from_raw(product_id: Any, payload: Dict[str, Any]):
        data = dict(payload or {})
        data.pop("id", None)
        return ProductUpdateCommand(
            product_id=product_id,
            name=_trimmed(data["name"]) if "name" in data else None,
            price=str(data["price"]) if data.get("price") is not None else None,
            description=data.get("description"),
            stock=int(data["stock"]) if data.get("stock") is not None else None,
            image_url=data.get("image_url") or None,
            tag=data.get("tag") or None,
            category=_trimmed(data.get("category")) or None,
            present=NULLABLE_FIELDS.intersection(data),
        )

    def changes(self) -> Dict[str, Any]:
        """Column values to write: every set field plus the nullable ones sent."""
        values = {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "stock": self.stock,
            "image_url": self.image_url,
            "tag": self.tag,
        }
        return {
            key: value
            for key, value in values.items()
            if value is not None or key in self.present
        }
