from __future__ import annotations

from typing import Optional

from apps.catalog.repositories import ProductRepository

from .mappers import CartItemMapper, CartMapper
from .merge import GuestCartMerger
from .repositories import CartItemRepository, CartRepository
from .services import CartService


def build_cart_service(*, enforce_stock: Optional[bool] = None) -> CartService:
    return CartService(
        carts=CartRepository(),
        items=CartItemRepository(),
        products=ProductRepository(),
        cart_mapper=CartMapper(CartItemMapper()),
        enforce_stock=enforce_stock,
    )


def build_guest_cart_merger(*, enforce_stock: Optional[bool] = None) -> GuestCartMerger:
    return GuestCartMerger(build_cart_service(enforce_stock=enforce_stock))
