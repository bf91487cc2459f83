from django.urls import path
from .views import CartView, CartItemListView, CartItemDetailView, GuestCartMergeView

urlpatterns = [
    path("", CartView.as_view(), name="api-cart"),
    path("items/", CartItemListView.as_view(), name="api-cart-items"),
    path(
        "items/<uuid:item_id>/",
        CartItemDetailView.as_view(),
        name="api-cart-items-detail",
    ),
    path("merge/", GuestCartMergeView.as_view(), name="api-cart-merge"),
]
