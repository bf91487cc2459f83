from dataclasses import dataclass, field
from typing import List


@dataclass
class CartProductDTO:
    id: str
    name: str
    price: str


@dataclass
class CartItemDTO:
    id: str
    product: CartProductDTO
    quantity: int


@dataclass
class CartDTO:
    id: str
    user_id: int
    created_at: str
    items: List[CartItemDTO] = field(default_factory=list)
