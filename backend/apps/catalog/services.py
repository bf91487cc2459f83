from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from django.db import IntegrityError

from apps.api.exceptions import ConflictError, InvalidInputError, NotFoundError
from apps.common import get_logger
from .commands import ProductCreateCommand, ProductListCommand, ProductUpdateCommand
from .dtos import CategoryDTO, ProductDTO, ProductPageDTO
from .mappers import CategoryMapper, ProductMapper
from .models import Category, Product, make_slug
from .pagination import CatalogPager
from .protocols import CategoryRepositoryProtocol, ProductRepositoryProtocol
from .query import CatalogQueryBuilder

logger = get_logger(__name__).bind(component="catalog", layer="service")


class ProductService:
    def __init__(
        self,
        products: ProductRepositoryProtocol,
        categories: CategoryRepositoryProtocol,
        *,
        query_builder: Optional[CatalogQueryBuilder] = None,
        pager: Optional[CatalogPager] = None,
    ):
        self.products = products
        self.categories = categories
        self.query_builder = query_builder or CatalogQueryBuilder()
        self.pager = pager or CatalogPager(products)
        self.logger = logger.bind(service="ProductService")

    def list_products(
        self, params: Union[Dict[str, Any], ProductListCommand, None] = None
    ) -> ProductPageDTO:
        cmd = (
            params
            if isinstance(params, ProductListCommand)
            else ProductListCommand.from_raw(params)
        )
        self.logger.debug(
            "Listing products",
            search=cmd.search,
            category=cmd.category,
            sort=cmd.sort,
            page=cmd.page,
            per_page=cmd.per_page,
        )
        query = self.query_builder.build(cmd)
        page = self.pager.paginate(query)
        return ProductMapper.page_to_dto(page)

    def get_product(self, product_id) -> Optional[ProductDTO]:
        self.logger.debug("Fetching product", product_id=product_id)
        p = self.products.get(id=product_id)
        if not p:
            self.logger.info("Product not found", product_id=product_id)
        return ProductMapper.to_dto(p) if p else None

    def get_product_by_slug(self, slug: str) -> Optional[ProductDTO]:
        self.logger.debug("Fetching product by slug", slug=slug)
        p = self.products.get(slug=slug)
        if not p:
            self.logger.info("Product not found", slug=slug)
        return ProductMapper.to_dto(p) if p else None

    def create_product(
        self, data: Union[Dict[str, Any], ProductCreateCommand]
    ) -> ProductDTO:
        cmd = (
            data
            if isinstance(data, ProductCreateCommand)
            else ProductCreateCommand.from_raw(data)
        )
        slug = self._slug_for(cmd.name)
        self.logger.info("Creating product", name=cmd.name, slug=slug)
        category = self._resolve_category(cmd.category) if cmd.category else None
        try:
            product: Product = self.products.create(
                name=cmd.name,
                slug=slug,
                price=cmd.price,
                description=cmd.description,
                stock=cmd.stock,
                image_url=cmd.image_url,
                tag=cmd.tag,
                category=category,
            )
        except IntegrityError as exc:
            self.logger.warning("Product creation conflict", slug=slug)
            raise ConflictError(
                "A product with this name already exists", details={"slug": slug}
            ) from exc
        self.logger.info("Product created", product_id=product.id)
        return ProductMapper.to_dto(product)

    def update_product(
        self, product_id, data: Union[Dict[str, Any], ProductUpdateCommand]
    ) -> ProductDTO:
        cmd = (
            data
            if isinstance(data, ProductUpdateCommand)
            else ProductUpdateCommand.from_raw(product_id, data)
        )
        self.logger.info("Updating product", product_id=product_id)
        product: Optional[Product] = self.products.get(id=product_id)
        if not product:
            self.logger.warning(
                "Product update failed: not found", product_id=product_id
            )
            raise NotFoundError("Product not found", details={"id": str(product_id)})
        slug = None
        if cmd.name is not None and cmd.name != product.name:
            slug = self._slug_for(cmd.name)
        changes = cmd.changes()
        if slug:
            changes["slug"] = slug
        if cmd.category:
            changes["category"] = self._resolve_category(cmd.category)
        try:
            self.products.update_fields(product, **changes)
        except IntegrityError as exc:
            self.logger.warning(
                "Product update conflict", product_id=product_id, slug=slug
            )
            raise ConflictError(
                "A product with this name already exists", details={"slug": slug}
            ) from exc
        self.logger.info("Product updated", product_id=product_id)
        return ProductMapper.to_dto(product)

    def delete_product(self, product_id) -> None:
        self.logger.info("Deleting product", product_id=product_id)
        product = self.products.get(id=product_id)
        if not product:
            self.logger.warning(
                "Product deletion failed: not found", product_id=product_id
            )
            raise NotFoundError("Product not found", details={"id": str(product_id)})
        self.products.delete(product)
        self.logger.info("Product deleted", product_id=product_id)

    def _slug_for(self, name: str) -> str:
        slug = make_slug(name)
        if not slug:
            raise InvalidInputError(
                "Product name must contain letters or digits",
                details={"name": name},
            )
        return slug

    def _resolve_category(self, term: str) -> Category:
        """Existing category by name or slug, created on first reference."""
        found = self.categories.find_by_term(term)
        if found is not None:
            return found
        slug = make_slug(term)
        if not slug:
            raise InvalidInputError(
                "Category must contain letters or digits", details={"category": term}
            )
        try:
            created = self.categories.create(name=term, slug=slug)
        except IntegrityError:
            # Created concurrently by another request.
            found = self.categories.find_by_term(term)
            if found is None:
                raise
            return found
        self.logger.info("Category created from product", category=term, slug=slug)
        return created


class CategoryService:
    def __init__(self, categories: CategoryRepositoryProtocol):
        self.categories = categories
        self.logger = logger.bind(service="CategoryService")

    def list_categories(self) -> List[CategoryDTO]:
        self.logger.debug("Listing categories")
        return CategoryMapper.many_to_dto(self.categories.list_ordered())
