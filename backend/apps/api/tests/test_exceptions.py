from django.db import OperationalError
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated, ValidationError
from rest_framework.test import APIRequestFactory

from apps.api.exceptions import (
    ApplicationError,
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PreconditionViolation,
    RetrievalFailure,
    global_exception_handler,
)

factory = APIRequestFactory()


class DummyView:
    pass


def _context(request):
    return {"request": request, "view": DummyView()}


def test_application_error_returns_structured_response():
    request = factory.get("/api/cart/")
    exc = ApplicationError(
        "CONFLICT",
        "Product already exists",
        status_code=status.HTTP_409_CONFLICT,
        details={"slug": "mouse-gamer"},
    )
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_409_CONFLICT
    assert payload["code"] == "CONFLICT"
    assert payload["message"] == "Product already exists"
    assert payload["details"] == {"slug": "mouse-gamer"}


def test_domain_errors_map_to_their_status_codes():
    request = factory.get("/api/cart/")
    cases = [
        (InvalidInputError("quantity must be a positive integer"), 400, "VALIDATION_ERROR"),
        (NotFoundError("Cart item not found"), 404, "NOT_FOUND"),
        (ConflictError("Product already exists"), 409, "CONFLICT"),
        (RetrievalFailure(), 503, "SERVICE_UNAVAILABLE"),
    ]
    for exc, expected_status, expected_code in cases:
        response = global_exception_handler(exc, _context(request))
        assert response.status_code == expected_status
        assert response.data["error"]["code"] == expected_code


def test_retrieval_failure_carries_retry_hint():
    response = global_exception_handler(RetrievalFailure(), _context(factory.get("/")))
    assert response.data["error"]["hint"] == "Try again in a few moments."


def test_database_error_is_reported_as_retrieval_failure():
    request = factory.get("/api/products/")
    response = global_exception_handler(OperationalError("server closed"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
    assert payload["code"] == "SERVICE_UNAVAILABLE"
    assert "server closed" not in payload["message"]


def test_precondition_violation_hides_internal_message():
    request = factory.get("/api/cart/")
    response = global_exception_handler(
        PreconditionViolation("user_id missing in CartService.get_cart"), _context(request)
    )
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["message"] == "Something went wrong"


def test_validation_error_preserves_details():
    request = factory.post("/api/cart/items/", data={})
    exc = ValidationError({"quantity": ["This field is required."]})
    response = global_exception_handler(exc, _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert payload["code"] == "VALIDATION_ERROR"
    assert payload["message"] == "Validation failed"
    assert payload["details"] == {"quantity": ["This field is required."]}


def test_not_authenticated_maps_to_unauthorized():
    request = factory.get("/api/cart/")
    response = global_exception_handler(NotAuthenticated(), _context(request))
    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
    assert response.data["error"]["code"] == "UNAUTHORIZED"


def test_unhandled_exception_returns_generic_message():
    request = factory.get("/api/cart/")
    response = global_exception_handler(RuntimeError("boom"), _context(request))
    payload = response.data["error"]
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert payload["code"] == "SERVER_ERROR"
    assert payload["message"] == "Something went wrong"
    assert "details" not in payload
