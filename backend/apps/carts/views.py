from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from drf_spectacular.utils import extend_schema, OpenApiParameter, OpenApiResponse

from apps.api.identity import HasCustomerIdentity, resolve_actor
from apps.api.schemas import ErrorResponseSerializer
from apps.common import get_logger
from .container import build_cart_service, build_guest_cart_merger
from .serializers import (
    CartItemAddSerializer,
    CartItemQuantitySerializer,
    CartItemSerializer,
    CartReadSerializer,
    GuestMergeReportSerializer,
    GuestMergeRequestSerializer,
)

logger = get_logger(__name__).bind(component="carts", layer="view")


def _user_id(request):
    actor = resolve_actor(request)
    return actor.user_id if actor else None


@extend_schema(tags=["Cart"])
class CartView(APIView):
    permission_classes = [IsAuthenticated, HasCustomerIdentity]
    service = build_cart_service()
    log = logger.bind(view="CartView")

    @extend_schema(
        operation_id="cart_retrieve",
        summary="Get the caller's cart",
        description="Creates an empty cart on first access.",
        responses={
            200: CartReadSerializer,
            401: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def get(self, request):
        user_id = _user_id(request)
        self.log.debug("Fetching cart", user_id=user_id)
        dto = self.service.get_cart(user_id)
        return Response(CartReadSerializer(dto).data)

    @extend_schema(
        operation_id="cart_clear",
        summary="Remove every item from the caller's cart",
        responses={204: None, 401: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def delete(self, request):
        user_id = _user_id(request)
        removed = self.service.clear_cart(user_id)
        self.log.info("Cart cleared via API", user_id=user_id, removed=removed)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Cart"])
class CartItemListView(APIView):
    permission_classes = [IsAuthenticated, HasCustomerIdentity]
    service = build_cart_service()
    log = logger.bind(view="CartItemListView")

    @extend_schema(
        operation_id="cart_items_add",
        summary="Add a product to the cart",
        description=(
            "Increments the existing line for the product or creates it. "
            "Returns 201 when a line was created and 200 when it was incremented."
        ),
        request=CartItemAddSerializer,
        responses={
            200: CartItemSerializer,
            201: CartItemSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = CartItemAddSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = _user_id(request)
        dto, created = self.service.add_item(
            user_id,
            serializer.validated_data["productId"],
            serializer.validated_data["quantity"],
        )
        self.log.info(
            "Cart item added via API", user_id=user_id, item_id=dto.id, created=created
        )
        response_status = status.HTTP_201_CREATED if created else status.HTTP_200_OK
        return Response(CartItemSerializer(dto).data, status=response_status)


@extend_schema(tags=["Cart"])
class CartItemDetailView(APIView):
    permission_classes = [IsAuthenticated, HasCustomerIdentity]
    service = build_cart_service()
    log = logger.bind(view="CartItemDetailView")

    @extend_schema(
        operation_id="cart_items_update",
        summary="Set an item's quantity",
        description="A quantity of 0 removes the item and returns 204.",
        parameters=[OpenApiParameter("item_id", str, OpenApiParameter.PATH)],
        request=CartItemQuantitySerializer,
        responses={
            200: CartItemSerializer,
            204: None,
            400: OpenApiResponse(response=ErrorResponseSerializer),
            404: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def patch(self, request, item_id):
        serializer = CartItemQuantitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = _user_id(request)
        dto = self.service.update_item_quantity(
            user_id, item_id, serializer.validated_data["quantity"]
        )
        if dto is None:
            return Response(status=status.HTTP_204_NO_CONTENT)
        return Response(CartItemSerializer(dto).data)

    @extend_schema(
        operation_id="cart_items_remove",
        summary="Remove an item",
        parameters=[OpenApiParameter("item_id", str, OpenApiParameter.PATH)],
        responses={204: None, 404: OpenApiResponse(response=ErrorResponseSerializer)},
    )
    def delete(self, request, item_id):
        user_id = _user_id(request)
        self.service.remove_item(user_id, item_id)
        return Response(status=status.HTTP_204_NO_CONTENT)


@extend_schema(tags=["Cart"])
class GuestCartMergeView(APIView):
    permission_classes = [IsAuthenticated, HasCustomerIdentity]
    merger = build_guest_cart_merger()
    log = logger.bind(view="GuestCartMergeView")

    @extend_schema(
        operation_id="cart_merge_guest",
        summary="Merge a guest cart after login",
        description=(
            "Replays the guest entries in order. The first failing entry stops the "
            "merge; `remaining` is what the client should keep as its guest cart."
        ),
        request=GuestMergeRequestSerializer,
        responses={
            200: GuestMergeReportSerializer,
            400: OpenApiResponse(response=ErrorResponseSerializer),
        },
    )
    def post(self, request):
        serializer = GuestMergeRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_id = _user_id(request)
        report = self.merger.merge(user_id, serializer.validated_data["items"])
        self.log.info(
            "Guest cart merge finished",
            user_id=user_id,
            applied=len(report.applied),
            complete=report.complete,
        )
        return Response(GuestMergeReportSerializer(report).data)
