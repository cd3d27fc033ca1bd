"""
Tests for error formatting, request body parsing and the validation middleware.
"""

import json

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError
from starlette.requests import Request

from app.middleware.validation import ValidationMiddleware
from app.schemas.property import PropertyUpdate
from app.services.error_handler import ERROR_RESPONSES, ErrorHandlerService, error_responses
from app.utils.exceptions import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    PropertyNotFoundError,
    ValidationError
)
from app.utils.request_parsing import form_to_dict, uploaded_files, validate_payload
from tests.conftest import make_upload


def make_request(path: str = "/api/v1/properties", method: str = "POST", headers=None) -> Request:
    raw_headers = [(key.lower().encode(), value.encode()) for key, value in (headers or {}).items()]
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "headers": raw_headers,
        "query_string": b"",
    })


def body_of(response) -> dict:
    return json.loads(response.body)


class TestErrorFormatting:
    """Error envelope construction."""

    def test_format_error_response(self):
        response = ErrorHandlerService.format_error_response("NOT_FOUND", "Missing", request_id="abc12345")

        assert response["success"] is False
        assert response["message"] == "Missing"
        assert response["error"]["code"] == "NOT_FOUND"
        assert response["error"]["request_id"] == "abc12345"
        assert response["error"]["timestamp"].endswith("Z")
        assert "details" not in response["error"]

    def test_api_exception(self):
        response = ErrorHandlerService.handle_api_exception(PropertyNotFoundError("42"), make_request())
        body = body_of(response)

        assert response.status_code == 404
        assert body["error"]["code"] == "NOT_FOUND"
        assert "42" in body["message"]
        assert len(body["error"]["request_id"]) == 8

    def test_request_id_from_state(self):
        request = make_request()
        request.state.request_id = "feedbeef"

        body = body_of(ErrorHandlerService.handle_api_exception(ConflictError("taken"), request))

        assert body["error"]["request_id"] == "feedbeef"

    def test_validation_exception_details(self):
        exception = ValidationError(
            "Request validation failed",
            field_errors=[{"field": "price", "message": "must be positive", "type": "value_error"}]
        )

        body = body_of(ErrorHandlerService.handle_api_exception(exception))

        assert body["error"]["code"] == "VALIDATION_ERROR"
        assert body["error"]["details"][0]["field"] == "price"

    def test_validation_error_list(self):
        errors = [{"loc": ("body", "title"), "msg": "Field required", "type": "missing"}]

        response = ErrorHandlerService.handle_validation_error(errors, make_request())
        body = body_of(response)

        assert response.status_code == 400
        assert body["error"]["details"] == [{"field": "body -> title", "message": "Field required", "type": "missing"}]

    def test_stale_data_is_conflict(self):
        response = ErrorHandlerService.handle_database_error(StaleDataError("version mismatch"))

        assert response.status_code == 409
        assert body_of(response)["error"]["code"] == "CONFLICT"

    def test_integrity_error(self):
        exception = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email"))

        response = ErrorHandlerService.handle_database_error(exception)
        body = body_of(response)

        assert response.status_code == 409
        assert body["message"] == "Constraint violation: Duplicate value for unique field"

    def test_other_database_error(self):
        exception = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        response = ErrorHandlerService.handle_database_error(exception)

        assert response.status_code == 500
        assert "server closed" not in body_of(response)["message"]

    def test_unexpected_error_hides_details(self):
        response = ErrorHandlerService.handle_unexpected_error(RuntimeError("secret stack detail"))
        body = body_of(response)

        assert response.status_code == 500
        assert body["error"]["code"] == "INTERNAL_SERVER_ERROR"
        assert "secret" not in body["message"]

    def test_not_found_custom_detail(self):
        assert NotFoundError("Testimonial", detail="gone").detail == "gone"

    def test_route_documentation_subset(self):
        responses = error_responses(401, 404)

        assert set(responses) == {401, 404}
        assert responses[404] is ERROR_RESPONSES[404]


class TestFormParsing:
    """Multipart field folding."""

    def test_nested_keys(self):
        data = form_to_dict([
            ("title", " Flat "),
            ("location[city]", "Cairo"),
            ("location[address]", "Road 9"),
            ("contact_info[email]", "a@example.com"),
        ])

        assert data == {
            "title": "Flat",
            "location": {"city": "Cairo", "address": "Road 9"},
            "contact_info": {"email": "a@example.com"},
        }

    def test_list_keys(self):
        data = form_to_dict([
            ("images_to_delete[]", "a.png"),
            ("images_to_delete[]", "b.png"),
            ("images_to_delete", "c.png"),
        ])

        assert data == {"images_to_delete": ["a.png", "b.png", "c.png"]}

    def test_json_fields(self):
        data = form_to_dict([
            ("images", '[{"external_id": "a.png", "is_main": true}]'),
            ("images_to_delete", '["b.png"]'),
        ])

        assert data["images"] == [{"external_id": "a.png", "is_main": True}]
        assert data["images_to_delete"] == ["b.png"]

    def test_invalid_json_field(self):
        with pytest.raises(BadRequestError, match="valid JSON"):
            form_to_dict([("images", "[not json")])

    def test_empty_values_are_dropped(self):
        assert form_to_dict([("description", "  "), ("area", "")]) == {}

    def test_uploaded_files_only_named_image_parts(self):
        upload = make_upload("a.png")
        other = make_upload("b.png")

        files = uploaded_files([("images", upload), ("avatar", other), ("images", "text value")])

        assert files == [upload]

    def test_validate_payload_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_payload(PropertyUpdate, {"price": "-5"})

        assert exc_info.value.field_errors[0]["field"] == "price"

    def test_validate_payload(self):
        update = validate_payload(PropertyUpdate, {"images_to_delete": ["a.png"], "bedrooms": "2"})

        assert update.bedrooms == 2
        assert update.images is None


class TestValidationMiddleware:
    """Request preprocessing."""

    def test_request_size_limit(self):
        middleware = ValidationMiddleware(app=None, max_request_size=100)

        with pytest.raises(BadRequestError, match="exceeds maximum"):
            middleware._validate_request_size(make_request(headers={"content-length": "101"}))

        middleware._validate_request_size(make_request(headers={"content-length": "100"}))

    def test_invalid_content_length(self):
        middleware = ValidationMiddleware(app=None)

        with pytest.raises(BadRequestError):
            middleware._validate_request_size(make_request(headers={"content-length": "lots"}))

    def test_content_type_checked_for_api_bodies(self):
        middleware = ValidationMiddleware(app=None)

        with pytest.raises(BadRequestError, match="Unsupported content type"):
            middleware._validate_content_type(make_request(headers={"content-type": "text/xml"}))

        middleware._validate_content_type(make_request(headers={"content-type": "multipart/form-data; boundary=x"}))
        middleware._validate_content_type(make_request(method="GET", headers={"content-type": "text/xml"}))

    @pytest.mark.asyncio
    async def test_error_carries_request_id(self, async_client):
        response = await async_client.post(
            "/api/v1/chat", content="hello", headers={"content-type": "text/plain"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_unknown_route_uses_error_envelope(self, async_client):
        response = await async_client.get("/api/v1/nowhere")

        assert response.status_code == 404
        assert response.json()["success"] is False
        assert response.json()["error"]["code"] == "HTTP_404"
