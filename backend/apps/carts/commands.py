from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Tuple


@dataclass(frozen=True)
class GuestCartEntry:
    """One product/quantity pair collected before login.

    Values are kept as sent; the cart service validates them on replay so a
    malformed entry fails at its own position.
    """

    product_id: Any
    quantity: Any

    @staticmethod
    def from_raw(raw: Any) -> "GuestCartEntry":
        if not isinstance(raw, Mapping):
            return GuestCartEntry(product_id=None, quantity=None)
        pid = raw.get("productId")
        if pid is None:
            pid = raw.get("product_id")
        qty = raw.get("quantity")
        # JSON clients may send 2.0 for 2
        if isinstance(qty, float) and qty.is_integer():
            qty = int(qty)
        return GuestCartEntry(product_id=pid, quantity=qty)

    def to_raw(self) -> Dict[str, Any]:
        return {"productId": self.product_id, "quantity": self.quantity}


@dataclass(frozen=True)
class GuestCart:
    entries: Tuple[GuestCartEntry, ...] = field(default_factory=tuple)

    @staticmethod
    def from_raw(raw: Iterable[Any]) -> "GuestCart":
        return GuestCart(tuple(GuestCartEntry.from_raw(r) for r in raw or []))

    @property
    def is_empty(self) -> bool:
        return not self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[GuestCartEntry]:
        return iter(self.entries)

    def to_raw(self) -> List[Dict[str, Any]]:
        return [e.to_raw() for e in self.entries]
