from __future__ import annotations

from typing import Iterable, Optional, Protocol, Tuple, TYPE_CHECKING

from .models import Cart, CartItem

if TYPE_CHECKING:
    from apps.carts.dtos import CartDTO
    from apps.catalog.models import Product


class CartRepositoryProtocol(Protocol):
    def get_or_create_for_user(self, user_id) -> Tuple[Cart, bool]:
        ...


class CartItemRepositoryProtocol(Protocol):
    def list_for_cart(self, cart_id) -> Iterable[CartItem]:
        ...

    def get_owned(self, item_id, user_id) -> Optional[CartItem]:
        ...

    def upsert_quantity(
        self,
        cart_id,
        product_id,
        quantity: int,
        max_quantity: Optional[int] = None,
    ) -> Tuple[Optional[CartItem], bool]:
        ...

    def update_fields(self, obj: CartItem, **fields) -> CartItem:
        ...

    def delete(self, obj: CartItem) -> None:
        ...

    def clear_for_user(self, user_id) -> int:
        ...


class ProductRepositoryProtocol(Protocol):
    def get(self, **filters) -> Optional["Product"]:
        ...


class CartMapperProtocol(Protocol):
    def to_dto(self, cart: Cart, items: Iterable[CartItem]) -> "CartDTO":
        ...
