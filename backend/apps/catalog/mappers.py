from decimal import Decimal
from typing import Iterable, List, Optional

from .dtos import CategoryDTO, ProductDTO, ProductPageDTO
from .models import Category, Product


def _iso(value) -> str:
    return value.isoformat() if value is not None else ""


class CategoryMapper:
    @staticmethod
    def to_dto(cat: Category) -> CategoryDTO:
        return CategoryDTO(id=str(cat.id), name=cat.name, slug=cat.slug)

    @staticmethod
    def many_to_dto(categories: Iterable[Category]) -> List[CategoryDTO]:
        return [CategoryMapper.to_dto(c) for c in categories]


class ProductMapper:
    @staticmethod
    def to_dto(product: Product) -> ProductDTO:
        category: Optional[Category] = getattr(product, "category", None)
        return ProductDTO(
            id=str(product.id),
            name=product.name,
            slug=product.slug,
            description=product.description,
            price="{:.2f}".format(Decimal(str(product.price))),
            stock=int(product.stock),
            image_url=product.image_url or None,
            tag=product.tag or None,
            category=CategoryMapper.to_dto(category) if category is not None else None,
            created_at=_iso(product.created_at),
            updated_at=_iso(getattr(product, "updated_at", None)),
        )

    @staticmethod
    def many_to_dto(products: Iterable[Product]) -> List[ProductDTO]:
        return [ProductMapper.to_dto(p) for p in products]

    @staticmethod
    def page_to_dto(page) -> ProductPageDTO:
        return ProductPageDTO(
            page=page.page,
            per_page=page.per_page,
            total=page.total,
            items=ProductMapper.many_to_dto(page.items),
        )
