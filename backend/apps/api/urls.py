from django.urls import path, include
from apps.catalog.views import (
    ProductListView,
    ProductDetailView,
    ProductBySlugView,
    CategoryListView,
)

urlpatterns = [
    path("products/", ProductListView.as_view(), name="api-products-list"),
    path(
        "products/<uuid:product_id>/",
        ProductDetailView.as_view(),
        name="api-products-detail",
    ),
    path(
        "products/slug/<slug:slug>/",
        ProductBySlugView.as_view(),
        name="api-products-by-slug",
    ),
    path("categories/", CategoryListView.as_view(), name="api-categories-list"),
    path("cart/", include("apps.carts.urls")),
]
