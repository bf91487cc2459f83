import types
import unittest
from unittest.mock import Mock, patch
from rest_framework.test import APIRequestFactory, force_authenticate
from apps.api.exceptions import NotFoundError, PreconditionViolation
from apps.carts.commands import GuestCart, GuestCartEntry
from apps.carts.dtos import CartDTO, CartItemDTO, CartProductDTO
from apps.carts.merge import GuestMergeFailure, GuestMergeReport
from apps.carts.views import (
    CartView,
    CartItemListView,
    CartItemDetailView,
    GuestCartMergeView,
)

PRODUCT_ID = "5a1f0d7e-3c33-4b7a-8a53-0f4a4e2f9b10"
ITEM_ID = "9e3d1c2b-7f6a-4e5d-8c9b-0a1b2c3d4e5f"


def customer(user_id=5):
    return types.SimpleNamespace(
        id=user_id, is_authenticated=True, is_staff=False, is_superuser=False
    )


def make_item_dto(quantity=1):
    return CartItemDTO(
        id=ITEM_ID,
        product=CartProductDTO(id=PRODUCT_ID, name="Mouse", price="59.90"),
        quantity=quantity,
    )


class CartViewsUnitTests(unittest.TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def test_get_cart(self):
        service_mock = Mock()
        service_mock.get_cart.return_value = CartDTO(
            id="c1", user_id=5, created_at="2024-01-01T00:00:00+00:00",
            items=[make_item_dto(2)],
        )
        with patch.object(CartView, "service", service_mock):
            request = self.factory.get("/api/cart/")
            force_authenticate(request, user=customer())
            response = CartView.as_view()(request)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["userId"], 5)
        self.assertEqual(response.data["items"][0]["product"]["name"], "Mouse")
        service_mock.get_cart.assert_called_once_with(5)

    def test_cart_requires_authentication(self):
        service_mock = Mock()
        with patch.object(CartView, "service", service_mock):
            request = self.factory.get("/api/cart/")
            response = CartView.as_view()(request)
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["error"]["code"], "UNAUTHORIZED")
        service_mock.get_cart.assert_not_called()

    def test_clear_cart(self):
        service_mock = Mock()
        service_mock.clear_cart.return_value = 0
        with patch.object(CartView, "service", service_mock):
            request = self.factory.delete("/api/cart/")
            force_authenticate(request, user=customer())
            response = CartView.as_view()(request)
        self.assertEqual(response.status_code, 204)

    def test_add_item_created_and_incremented(self):
        for created, expected in ((True, 201), (False, 200)):
            service_mock = Mock()
            service_mock.add_item.return_value = (make_item_dto(), created)
            with patch.object(CartItemListView, "service", service_mock):
                request = self.factory.post(
                    "/api/cart/items/",
                    {"productId": PRODUCT_ID, "quantity": 1},
                    format="json",
                )
                force_authenticate(request, user=customer())
                response = CartItemListView.as_view()(request)
            self.assertEqual(response.status_code, expected)
            args = service_mock.add_item.call_args[0]
            self.assertEqual(args[0], 5)
            self.assertEqual(str(args[1]), PRODUCT_ID)
            self.assertEqual(args[2], 1)

    def test_add_item_validates_payload(self):
        service_mock = Mock()
        with patch.object(CartItemListView, "service", service_mock):
            request = self.factory.post(
                "/api/cart/items/", {"productId": "x", "quantity": 0}, format="json"
            )
            force_authenticate(request, user=customer())
            response = CartItemListView.as_view()(request)
        self.assertEqual(response.status_code, 400)
        self.assertIn("productId", response.data["error"]["details"])
        self.assertIn("quantity", response.data["error"]["details"])
        service_mock.add_item.assert_not_called()

    def test_update_to_zero_returns_no_content(self):
        service_mock = Mock()
        service_mock.update_item_quantity.return_value = None
        with patch.object(CartItemDetailView, "service", service_mock):
            request = self.factory.patch(
                f"/api/cart/items/{ITEM_ID}/", {"quantity": 0}, format="json"
            )
            force_authenticate(request, user=customer())
            response = CartItemDetailView.as_view()(request, item_id=ITEM_ID)
        self.assertEqual(response.status_code, 204)

    def test_update_returns_item(self):
        service_mock = Mock()
        service_mock.update_item_quantity.return_value = make_item_dto(4)
        with patch.object(CartItemDetailView, "service", service_mock):
            request = self.factory.patch(
                f"/api/cart/items/{ITEM_ID}/", {"quantity": 4}, format="json"
            )
            force_authenticate(request, user=customer())
            response = CartItemDetailView.as_view()(request, item_id=ITEM_ID)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["quantity"], 4)

    def test_remove_foreign_item_is_404(self):
        service_mock = Mock()
        service_mock.remove_item.side_effect = NotFoundError("Cart item not found")
        with patch.object(CartItemDetailView, "service", service_mock):
            request = self.factory.delete(f"/api/cart/items/{ITEM_ID}/")
            force_authenticate(request, user=customer())
            response = CartItemDetailView.as_view()(request, item_id=ITEM_ID)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data["error"]["message"], "Cart item not found")

    def test_precondition_violation_is_generic_500(self):
        service_mock = Mock()
        service_mock.get_cart.side_effect = PreconditionViolation()
        with patch.object(CartView, "service", service_mock):
            request = self.factory.get("/api/cart/")
            force_authenticate(request, user=customer())
            response = CartView.as_view()(request)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.data["error"]["message"], "Something went wrong")

    def test_merge_reports_partial_failure(self):
        failed_entry = GuestCartEntry("missing", 1)
        merger_mock = Mock()
        merger_mock.merge.return_value = GuestMergeReport(
            applied=[make_item_dto(2)],
            failed=GuestMergeFailure(
                position=1, entry=failed_entry, code="NOT_FOUND", message="Product not found"
            ),
            remaining=GuestCart((failed_entry,)),
        )
        payload = {
            "items": [
                {"productId": PRODUCT_ID, "quantity": 2},
                {"productId": "missing", "quantity": 1},
            ]
        }
        with patch.object(GuestCartMergeView, "merger", merger_mock):
            request = self.factory.post("/api/cart/merge/", payload, format="json")
            force_authenticate(request, user=customer())
            response = GuestCartMergeView.as_view()(request)
        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data["complete"])
        self.assertEqual(response.data["failed"]["position"], 1)
        self.assertEqual(response.data["failed"]["entry"]["productId"], "missing")
        self.assertEqual(response.data["remaining"], [{"productId": "missing", "quantity": 1}])
        user_id, items = merger_mock.merge.call_args[0]
        self.assertEqual(user_id, 5)
        self.assertEqual(len(items), 2)
