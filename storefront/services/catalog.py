"""Category filtering and display fields for product listings."""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from storefront.schemas.product import Product
from storefront.settings import DEFAULT_NOVELTY_WINDOW_DAYS, AppSettings


class CategorySelection:
    """Category currently selected in the filter bar, or ``None`` for all.

    Tapping the active category clears the filter; tapping another one
    replaces it.
    """

    def __init__(self, selected: str | None = None) -> None:
        self._selected = selected

    @property
    def selected(self) -> str | None:
        return self._selected

    def is_active(self, category: str) -> bool:
        return self._selected == category

    def select(self, category: str | None) -> str | None:
        if category is None or self._selected == category:
            self._selected = None
        else:
            self._selected = category
        return self._selected

    def apply(self, products: Iterable[Product]) -> list[Product]:
        return filter_by_category(products, self._selected)


def filter_by_category(
    products: Iterable[Product], category: str | None
) -> list[Product]:
    """Products in ``category`` (all of them when ``category`` is ``None``), order kept."""

    if category is None:
        return list(products)
    return [product for product in products if product.categoria == category]


def is_new(
    created_at: datetime | None,
    *,
    now: datetime | None = None,
    window_days: int = DEFAULT_NOVELTY_WINDOW_DAYS,
) -> bool:
    """Whether a product created at ``created_at`` is still within the novelty window."""

    if created_at is None:
        return False
    reference = now or datetime.now(UTC)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=UTC)
    return reference - created_at <= timedelta(days=window_days)


def discount_percentage(product: Product) -> int:
    """Rounded promotion discount.

    ``0`` unless the product is on sale with both prices set; a zero price
    counts as unset.
    """

    if not product.em_promocao or not product.preco or not product.preco_original:
        return 0
    discount = (product.preco_original - product.preco) / product.preco_original * 100
    # Halves round up.
    return math.floor(discount + 0.5)


def present_product(
    product: Product,
    *,
    now: datetime | None = None,
    window_days: int = DEFAULT_NOVELTY_WINDOW_DAYS,
) -> dict[str, Any]:
    """Product snapshot enriched with ``is_new`` and ``discount_percentage``."""

    payload = product.snapshot()
    payload["is_new"] = is_new(product.created_at, now=now, window_days=window_days)
    payload["discount_percentage"] = discount_percentage(product)
    return payload


class ProductPresenter:
    """Applies :func:`present_product` with a configured novelty window."""

    def __init__(self, *, window_days: int = DEFAULT_NOVELTY_WINDOW_DAYS) -> None:
        if window_days < 0:
            raise ValueError("window_days must not be negative")
        self.window_days = window_days

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ProductPresenter":
        return cls(window_days=settings.novelty_window_days)

    def present(
        self, product: Product, *, now: datetime | None = None
    ) -> dict[str, Any]:
        return present_product(product, now=now, window_days=self.window_days)

    def present_all(
        self, products: Iterable[Product], *, now: datetime | None = None
    ) -> list[dict[str, Any]]:
        return [self.present(product, now=now) for product in products]


def similar_products(product: Product, candidates: Iterable[Product]) -> list[Product]:
    """Other products from the same category as ``product``."""

    if product.categoria is None:
        return []
    return [
        candidate
        for candidate in candidates
        if candidate.categoria == product.categoria and candidate.id != product.id
    ]


__all__ = [
    "CategorySelection",
    "ProductPresenter",
    "discount_percentage",
    "filter_by_category",
    "is_new",
    "present_product",
    "similar_products",
]
