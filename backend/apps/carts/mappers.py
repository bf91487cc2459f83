from decimal import Decimal
from typing import Iterable, List, Optional

from .dtos import CartDTO, CartItemDTO, CartProductDTO
from .models import Cart, CartItem


class CartItemMapper:
    @staticmethod
    def to_dto(item: CartItem) -> CartItemDTO:
        product = item.product
        return CartItemDTO(
            id=str(item.id),
            product=CartProductDTO(
                id=str(product.id),
                name=product.name,
                price="{:.2f}".format(Decimal(str(product.price))),
            ),
            quantity=int(item.quantity),
        )

    @staticmethod
    def many_to_dto(items: Iterable[CartItem]) -> List[CartItemDTO]:
        return [CartItemMapper.to_dto(i) for i in items]


class CartMapper:
    def __init__(self, item_mapper: Optional[CartItemMapper] = None) -> None:
        self.item_mapper = item_mapper or CartItemMapper()

    def to_dto(self, cart: Cart, items: Iterable[CartItem]) -> CartDTO:
        created_at = getattr(cart, "created_at", None)
        return CartDTO(
            id=str(cart.id),
            user_id=cart.user_id,
            created_at=created_at.isoformat() if created_at else "",
            items=self.item_mapper.many_to_dto(items),
        )
