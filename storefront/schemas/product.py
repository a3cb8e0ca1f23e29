"""Pydantic schemas describing catalog documents consumed by the storefront."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Product(BaseModel):
    """Product document as delivered by the catalog.

    Only ``id`` is required. Every other field is optional display data and
    unknown keys are preserved verbatim so a favorited snapshot renders the
    same way it did when the user tapped the heart.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(..., description="Stable unique identifier of the product")
    nome: str | None = Field(None, description="Display name")
    preco: float | None = Field(None, ge=0, description="Current price")
    preco_original: float | None = Field(
        None,
        ge=0,
        alias="precoOriginal",
        description="Price before the promotion, used to compute the discount.",
    )
    categoria: str | None = Field(None, description="Category key used by filters")
    imagem: str | None = Field(None, description="Primary image URL")
    imagens: list[str] | None = Field(None, description="Gallery image URLs")
    em_promocao: bool | None = Field(None, alias="emPromocao")
    created_at: datetime | None = Field(None, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _normalize_id(cls, value: Any) -> str:
        """Accept numeric identifiers and reject blank ones."""

        if isinstance(value, bool) or value is None:
            raise ValueError("Product id must be a non-empty string")
        cleaned = str(value).strip()
        if not cleaned:
            raise ValueError("Product id must be a non-empty string")
        return cleaned

    def snapshot(self) -> dict[str, Any]:
        """Return the JSON-ready payload stored in the favorites snapshot."""

        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


__all__ = ["Product"]
