from typing import Iterable, Optional, Tuple

from django.db import IntegrityError, transaction
from django.db.models import F

from apps.common.repository import GenericRepository
from .models import Cart, CartItem


class CartRepository(GenericRepository[Cart]):
    def __init__(self):
        super().__init__(Cart)

    def get_or_create_for_user(self, user_id) -> Tuple[Cart, bool]:
        # The one-to-one on user makes concurrent first access safe.
        return self.model.objects.get_or_create(user_id=user_id)


class CartItemRepository(GenericRepository[CartItem]):
    upsert_attempts = 3

    def __init__(self):
        super().__init__(CartItem)

    def list_for_cart(self, cart_id) -> Iterable[CartItem]:
        return (
            self.model.objects.filter(cart_id=cart_id)
            .select_related("product")
            .order_by("product__name", "id")
        )

    def get_owned(self, item_id, user_id) -> Optional[CartItem]:
        """Item by id, but only when it sits in ``user_id``'s cart."""
        return (
            self.model.objects.filter(id=item_id, cart__user_id=user_id)
            .select_related("product")
            .first()
        )

    def get_for_cart_product(self, cart_id, product_id) -> Optional[CartItem]:
        return (
            self.model.objects.filter(cart_id=cart_id, product_id=product_id)
            .select_related("product")
            .first()
        )

    def upsert_quantity(
        self,
        cart_id,
        product_id,
        quantity: int,
        max_quantity: Optional[int] = None,
    ) -> Tuple[Optional[CartItem], bool]:
        """Add ``quantity`` to the (cart, product) line, creating it if missing.

        The increment is one conditional ``UPDATE``; the insert is guarded by
        the (cart, product) unique constraint and falls back to the increment
        when another request inserted first. Returns ``(item, created)``, or
        ``(None, False)`` when the result would exceed ``max_quantity``.
        """
        last_error: Optional[IntegrityError] = None
        for _ in range(self.upsert_attempts):
            if self._increment(cart_id, product_id, quantity, max_quantity):
                item = self.get_for_cart_product(cart_id, product_id)
                if item is not None:
                    return item, False
                # Removed right after the increment; start over.
                continue
            if self.exists(cart_id=cart_id, product_id=product_id):
                return None, False
            if max_quantity is not None and quantity > max_quantity:
                return None, False
            try:
                with transaction.atomic():
                    item = self.model.objects.create(
                        cart_id=cart_id, product_id=product_id, quantity=quantity
                    )
            except IntegrityError as exc:
                last_error = exc
                continue
            return self.get_for_cart_product(cart_id, item.product_id), True
        raise last_error or IntegrityError("cart item upsert did not settle")

    def _increment(self, cart_id, product_id, quantity, max_quantity) -> int:
        qs = self.model.objects.filter(cart_id=cart_id, product_id=product_id)
        if max_quantity is not None:
            qs = qs.filter(quantity__lte=max_quantity - quantity)
        return qs.update(quantity=F("quantity") + quantity)

    def clear_for_user(self, user_id) -> int:
        return self.delete_where(cart__user_id=user_id)
