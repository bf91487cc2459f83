from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse

from apps.api.exceptions import RetrievalFailure
from apps.api.identity import IsCatalogAdminOrReadOnly
from apps.api.schemas import ErrorResponseSerializer, page_response
from apps.api.utils import error_response
from apps.common import get_logger
from .commands import ProductListCommand
from .container import build_product_service, build_category_service
from .serializers import (
    CategorySerializer,
    ProductListQuerySerializer,
    ProductPageSerializer,
    ProductReadSerializer,
    ProductWriteSerializer,
)

logger = get_logger(__name__).bind(component="catalog", layer="view")


@extend_schema(tags=["Catalog"])
class ProductListView(APIView):
    permission_classes = [IsCatalogAdminOrReadOnly]
    service = build_product_service()
    log = logger.bind(view="ProductListView")

    @extend_schema(
        operation_id="products_list",
        summary="List products",
        description=(
            "Filter by ?search (name) and ?category (free text), order with ?sort "
            "and paginate with ?page and ?perPage (alias ?limit, at most 50)."
        ),
        parameters=[ProductListQuerySerializer],
        responses={
            200: page_response(ProductReadSerializer),
            503: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        cmd = ProductListCommand.from_raw(request.query_params)
        self.log.debug(
            "Handling product list request",
            search=cmd.search,
            category=cmd.category,
            sort=cmd.sort,
        )
        try:
            page = self.service.list_products(cmd)
        except RetrievalFailure as exc:
            self.log.warning("Product list unavailable", page=cmd.page)
            # Same keys as a normal page so listing clients can still render.
            return exc.to_response(
                body={"page": cmd.page, "perPage": cmd.per_page, "total": 0, "items": []}
            )
        return Response(ProductPageSerializer(page).data)

    @extend_schema(
        summary="Create product",
        request=ProductWriteSerializer,
        responses={
            201: ProductReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            403: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = ProductWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        self.log.info(
            "Creating product via API", name=serializer.validated_data.get("name")
        )
        dto = self.service.create_product(serializer.validated_data)
        self.log.info("Product created via API", product_id=dto.id)
        return Response(ProductReadSerializer(dto).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=["Catalog"])
class ProductDetailView(APIView):
    permission_classes = [IsCatalogAdminOrReadOnly]
    service = build_product_service()
    log = logger.bind(view="ProductDetailView")

    @extend_schema(
        operation_id="products_retrieve",
        summary="Get product",
        parameters=[OpenApiParameter("product_id", str, OpenApiParameter.PATH)],
        responses={
            200: ProductReadSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, product_id):
        self.log.debug("Fetching product detail", product_id=product_id)
        dto = self.service.get_product(product_id)
        if not dto:
            return error_response(
                "NOT_FOUND", "Product not found", {"id": str(product_id)}
            )
        return Response(ProductReadSerializer(dto).data)

    @extend_schema(
        summary="Update product",
        request=ProductWriteSerializer,
        responses={
            200: ProductReadSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
            409: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def patch(self, request, product_id):
        self.log.info("Patching product", product_id=product_id)
        serializer = ProductWriteSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        dto = self.service.update_product(product_id, serializer.validated_data)
        return Response(ProductReadSerializer(dto).data)

    @extend_schema(
        summary="Delete product",
        responses={204: None, 404: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def delete(self, request, product_id):
        self.log.info("Deleting product", product_id=product_id)
        self.service.delete_product(product_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Catalog"])
class ProductBySlugView(APIView):
    permission_classes = [IsCatalogAdminOrReadOnly]
    service = build_product_service()
    log = logger.bind(view="ProductBySlugView")

    @extend_schema(
        operation_id="products_retrieve_by_slug",
        summary="Get product by slug",
        responses={
            200: ProductReadSerializer,
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request, slug: str):
        dto = self.service.get_product_by_slug(slug)
        if not dto:
            return error_response("NOT_FOUND", "Product not found", {"slug": slug})
        return Response(ProductReadSerializer(dto).data)


@extend_schema(tags=["Catalog"])
class CategoryListView(APIView):
    permission_classes = [IsCatalogAdminOrReadOnly]
    service = build_category_service()
    log = logger.bind(view="CategoryListView")

    @extend_schema(
        summary="List categories", responses={200: CategorySerializer(many=True)}
    )
    def get(self, request):
        self.log.debug("Listing categories")
        data = self.service.list_categories()
        return Response(CategorySerializer(data, many=True).data)
