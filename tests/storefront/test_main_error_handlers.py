"""Tests asserting ``storefront.main`` exception handlers delegate to helpers."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from starlette.datastructures import Headers

import storefront.main as storefront_main
from storefront.exceptions import InvalidProductError
from storefront.schemas.error import ErrorType, ValidationErrorResponse
from storefront.utils.request_context import (
    clear_request_id,
    get_request_id,
    request_id_scope,
    set_request_id,
)


def _build_request(path: str = "/resource") -> Request:
    """Create a minimal ``Request`` suitable for invoking handlers."""

    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "headers": Headers().raw,
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_validation_exception_handler_uses_builder(monkeypatch):
    """Ensure request validation handler delegates to the helper utility."""

    token = set_request_id("req-1")
    request = _build_request("/favorites/toggle")
    exc = RequestValidationError(
        [
            {
                "loc": ["body", "id"],
                "msg": "Field required",
                "input": {"nome": "Sem id"},
            }
        ]
    )

    called: dict[str, object] = {}

    def fake_builder(**kwargs):
        called["kwargs"] = kwargs
        return ValidationErrorResponse(
            error_type=ErrorType.VALIDATION_ERROR,
            message="Request validation failed",
            detail="1 validation error(s)",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            timestamp=datetime(2024, 1, 1, tzinfo=UTC),
            request_id="req-1",
            path="/favorites/toggle",
            errors=kwargs["errors"],
        )

    monkeypatch.setattr(storefront_main, "build_validation_error_response", fake_builder)

    try:
        response = await storefront_main.validation_exception_handler(request, exc)
    finally:
        clear_request_id(token)

    assert called["kwargs"]["path"] == "/favorites/toggle"
    assert called["kwargs"]["errors"][0].field == "body.id"
    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    json_content = json.loads(response.body.decode())
    assert json_content["message"] == "Request validation failed"
    assert json_content["request_id"] == "req-1"


@pytest.mark.asyncio
async def test_invalid_product_exception_handler_reports_id_field():
    token = set_request_id("req-2")
    try:
        response = await storefront_main.invalid_product_exception_handler(
            _build_request("/favorites/toggle"),
            InvalidProductError("Product 'id' must not be blank"),
        )
    finally:
        clear_request_id(token)

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    body = json.loads(response.body.decode())
    assert body["error_type"] == "validation_error"
    assert body["request_id"] == "req-2"
    assert body["errors"][0]["field"] == "id"


@pytest.mark.asyncio
async def test_generic_exception_handler_hides_exception_message():
    with request_id_scope("req-3"):
        response = await storefront_main.generic_exception_handler(
            _build_request("/favorites"), RuntimeError("secret detail")
        )

    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.headers["X-Request-ID"] == "req-3"
    body = json.loads(response.body.decode())
    assert body["request_id"] == "req-3"
    assert body["error_type"] == "internal_error"
    assert body["detail"] == "An unexpected error occurred: RuntimeError"
    assert "secret detail" not in response.body.decode()


def test_request_id_scope_generates_and_restores_ids():
    outer = set_request_id("outer")
    try:
        with request_id_scope() as generated:
            assert generated
            assert generated != "outer"
            assert get_request_id() == generated
        assert get_request_id() == "outer"
    finally:
        clear_request_id(outer)
