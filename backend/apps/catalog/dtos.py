from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CategoryDTO:
    id: str
    name: str
    slug: str


@dataclass
class ProductDTO:
    id: str
    name: str
    slug: str
    description: Optional[str]
    price: str
    stock: int
    image_url: Optional[str]
    tag: Optional[str]
    category: Optional[CategoryDTO]
    created_at: str
    updated_at: str


@dataclass
class ProductPageDTO:
    page: int
    per_page: int
    total: int
    items: List[ProductDTO] = field(default_factory=list)
