from __future__ import annotations

import uuid
from typing import Any, Optional, Tuple

from django.conf import settings

from apps.api.exceptions import InvalidInputError, NotFoundError, PreconditionViolation
from apps.common import get_logger
from .dtos import CartDTO, CartItemDTO
from .mappers import CartItemMapper, CartMapper
from .protocols import (
    CartItemRepositoryProtocol,
    CartMapperProtocol,
    CartRepositoryProtocol,
    ProductRepositoryProtocol,
)

logger = get_logger(__name__).bind(component="carts", layer="service")

INSUFFICIENT_STOCK = "INSUFFICIENT_STOCK"


def _parse_id(value: Any, field_name: str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        raise InvalidInputError(
            f"{field_name} must be a valid identifier",
            details={field_name: [f"Invalid value: {value!r}"]},
        ) from None


def _validate_quantity(value: Any, minimum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        qualifier = "positive" if minimum > 0 else "non-negative"
        raise InvalidInputError(
            f"quantity must be a {qualifier} integer",
            details={"quantity": [f"Invalid value: {value!r}"]},
        )
    return value


class CartService:
    """Per-user cart with at most one line per product and positive quantities."""

    def __init__(
        self,
        carts: CartRepositoryProtocol,
        items: CartItemRepositoryProtocol,
        products: ProductRepositoryProtocol,
        cart_mapper: Optional[CartMapperProtocol] = None,
        *,
        enforce_stock: Optional[bool] = None,
    ):
        self.carts = carts
        self.items = items
        self.products = products
        self.cart_mapper = cart_mapper or CartMapper()
        # None follows settings.CART_ENFORCE_STOCK at call time
        self._enforce_stock = enforce_stock
        self.logger = logger.bind(service="CartService")

    @property
    def enforce_stock(self) -> bool:
        if self._enforce_stock is not None:
            return self._enforce_stock
        return getattr(settings, "CART_ENFORCE_STOCK", True)

    def _require_user(self, user_id, operation: str) -> None:
        if user_id is None:
            self.logger.error("Cart operation without identity", operation=operation)
            raise PreconditionViolation(
                f"{operation} requires an authenticated user id"
            )

    def get_cart(self, user_id) -> CartDTO:
        self._require_user(user_id, "get_cart")
        cart, created = self.carts.get_or_create_for_user(user_id)
        if created:
            self.logger.info("Cart created on first access", user_id=user_id)
        items = self.items.list_for_cart(cart.id)
        return self.cart_mapper.to_dto(cart, items)

    def add_item(self, user_id, product_id, quantity) -> Tuple[CartItemDTO, bool]:
        """Increment the product's line or create it. Returns ``(item, created)``."""
        self._require_user(user_id, "add_item")
        quantity = _validate_quantity(quantity, 1)
        product_id = _parse_id(product_id, "productId")
        product = self.products.get(id=product_id)
        if not product:
            self.logger.info("Add to cart for unknown product", product_id=product_id)
            raise NotFoundError(
                "Product not found", details={"productId": str(product_id)}
            )
        cart, _ = self.carts.get_or_create_for_user(user_id)
        max_quantity = product.stock if self.enforce_stock else None
        item, created = self.items.upsert_quantity(
            cart.id, product.id, quantity, max_quantity=max_quantity
        )
        if item is None:
            self.logger.info(
                "Add to cart rejected by stock",
                user_id=user_id,
                product_id=product_id,
                quantity=quantity,
                stock=product.stock,
            )
            raise self._insufficient_stock(product)
        self.logger.info(
            "Cart item added",
            user_id=user_id,
            product_id=product_id,
            quantity=item.quantity,
            created=created,
        )
        return CartItemMapper.to_dto(item), created

    def update_item_quantity(self, user_id, item_id, quantity) -> Optional[CartItemDTO]:
        """Overwrite the quantity; ``0`` removes the line and returns ``None``."""
        self._require_user(user_id, "update_item_quantity")
        quantity = _validate_quantity(quantity, 0)
        item = self._owned_item(user_id, item_id)
        if quantity == 0:
            self.items.delete(item)
            self.logger.info(
                "Cart item removed by zero quantity", user_id=user_id, item_id=item_id
            )
            return None
        if self.enforce_stock and quantity > item.product.stock:
            raise self._insufficient_stock(item.product)
        self.items.update_fields(item, quantity=quantity)
        self.logger.info(
            "Cart item quantity set", user_id=user_id, item_id=item_id, quantity=quantity
        )
        return CartItemMapper.to_dto(item)

    def remove_item(self, user_id, item_id) -> None:
        self._require_user(user_id, "remove_item")
        item = self._owned_item(user_id, item_id)
        self.items.delete(item)
        self.logger.info("Cart item removed", user_id=user_id, item_id=item_id)

    def clear_cart(self, user_id) -> int:
        self._require_user(user_id, "clear_cart")
        removed = self.items.clear_for_user(user_id)
        self.logger.info("Cart cleared", user_id=user_id, removed=removed)
        return removed

    def _owned_item(self, user_id, item_id):
        # Missing and foreign items are indistinguishable to the caller.
        item = None
        try:
            parsed = _parse_id(item_id, "itemId")
        except InvalidInputError:
            parsed = None
        if parsed is not None:
            item = self.items.get_owned(parsed, user_id)
        if item is None:
            self.logger.info("Cart item not found", user_id=user_id, item_id=item_id)
            raise NotFoundError("Cart item not found", details={"itemId": str(item_id)})
        return item

    @staticmethod
    def _insufficient_stock(product) -> InvalidInputError:
        return InvalidInputError(
            "Requested quantity exceeds available stock",
            details={
                "code": INSUFFICIENT_STOCK,
                "productId": str(product.id),
                "stock": product.stock,
            },
        )
