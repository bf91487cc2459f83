from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Union

from apps.api.exceptions import ApplicationError, PreconditionViolation
from apps.common import get_logger
from .commands import GuestCart, GuestCartEntry
from .dtos import CartItemDTO
from .services import CartService

logger = get_logger(__name__).bind(component="carts", layer="merge")


@dataclass
class GuestMergeFailure:
    position: int
    entry: GuestCartEntry
    code: str
    message: str
    details: Optional[Any] = None


@dataclass
class GuestMergeReport:
    applied: List[CartItemDTO] = field(default_factory=list)
    failed: Optional[GuestMergeFailure] = None
    # What the client should keep as its guest cart; empty once everything merged
    remaining: GuestCart = field(default_factory=GuestCart)

    @property
    def complete(self) -> bool:
        return self.failed is None


class GuestCartMerger:
    """Replays a pre-login cart into the user's cart, entry by entry.

    Entries go through :meth:`CartService.add_item` in order. The first
    failing entry stops the merge; what was applied stays applied and the
    report's ``remaining`` cart starts at the failed entry, so the client can
    retry with it without double counting.
    """

    def __init__(self, carts: CartService):
        self.carts = carts
        self.logger = logger.bind(service="GuestCartMerger")

    def merge(
        self, user_id, guest_cart: Union[GuestCart, Iterable[Any]]
    ) -> GuestMergeReport:
        if user_id is None:
            raise PreconditionViolation("merge requires an authenticated user id")
        cart = (
            guest_cart
            if isinstance(guest_cart, GuestCart)
            else GuestCart.from_raw(guest_cart)
        )
        self.logger.info("Merging guest cart", user_id=user_id, entries=len(cart))
        report = GuestMergeReport()
        for position, entry in enumerate(cart.entries):
            try:
                item, _created = self.carts.add_item(
                    user_id, entry.product_id, entry.quantity
                )
            except PreconditionViolation:
                raise
            except ApplicationError as exc:
                report.failed = GuestMergeFailure(
                    position=position,
                    entry=entry,
                    code=exc.code,
                    message=exc.message,
                    details=exc.details,
                )
                report.remaining = GuestCart(cart.entries[position:])
                self.logger.warning(
                    "Guest cart merge halted",
                    user_id=user_id,
                    position=position,
                    code=exc.code,
                    applied=len(report.applied),
                )
                return report
            report.applied.append(item)
        self.logger.info(
            "Guest cart merged", user_id=user_id, applied=len(report.applied)
        )
        return report
