"""Pydantic schemas for catalog documents and API responses."""

from storefront.schemas.error import (  # noqa: F401
    ErrorResponse,
    ErrorType,
    ValidationErrorDetail,
    ValidationErrorResponse,
)
from storefront.schemas.product import Product  # noqa: F401
