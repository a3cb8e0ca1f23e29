"""Per-image loading state shared by product cards, galleries and banners.

Every image URL moves through ``idle -> loading -> loaded`` on the happy path.
A failed load lands in ``error`` and records an :class:`ImageLoadError`; the
UI may retry from there until ``max_attempts`` loads have been started, after
which :meth:`ImageLoadTracker.source_for` substitutes the placeholder.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from storefront.exceptions import InvalidImageTransition
from storefront.settings import DEFAULT_IMAGE_MAX_ATTEMPTS, AppSettings

logger = logging.getLogger(__name__)

UNKNOWN_ERROR = "unknown error"


class ImageStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class ImageLoadRecord:
    """Current state of a single image URL."""

    url: str
    status: ImageStatus = ImageStatus.IDLE
    attempts: int = 0
    last_error: str | None = None
    cached: bool = False


@dataclass(frozen=True)
class ImageLoadError:
    """Entry in the tracker's error log."""

    url: str
    error: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))


class ImageLoadTracker:
    """Tracks load attempts, outcomes and retries for a set of image URLs."""

    def __init__(self, *, max_attempts: int = DEFAULT_IMAGE_MAX_ATTEMPTS) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._max_attempts = max_attempts
        self._records: dict[str, ImageLoadRecord] = {}
        self._errors: list[ImageLoadError] = []

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "ImageLoadTracker":
        """Tracker capped at ``IMAGE_MAX_ATTEMPTS`` loads per URL."""

        return cls(max_attempts=settings.image_max_attempts)

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def errors(self) -> list[ImageLoadError]:
        return list(self._errors)

    def record(self, url: str) -> ImageLoadRecord:
        """Return the record for ``url``, creating an idle one on first sight."""

        record = self._records.get(url)
        if record is None:
            record = ImageLoadRecord(url=url)
            self._records[url] = record
        return record

    def status(self, url: str) -> ImageStatus:
        record = self._records.get(url)
        return record.status if record is not None else ImageStatus.IDLE

    def is_loading(self, url: str) -> bool:
        return self.status(url) is ImageStatus.LOADING

    def start(self, url: str) -> ImageLoadRecord:
        """Begin a load attempt for ``url``."""

        record = self.record(url)
        if record.status is ImageStatus.LOADING:
            return record
        if record.status is ImageStatus.LOADED:
            raise InvalidImageTransition(f"Image already loaded: {url}")
        if record.attempts >= self._max_attempts:
            raise InvalidImageTransition(
                f"Image exhausted {self._max_attempts} attempt(s): {url}"
            )
        record.status = ImageStatus.LOADING
        record.attempts += 1
        return record

    def succeed(self, url: str) -> ImageLoadRecord:
        record = self._require_loading(url)
        record.status = ImageStatus.LOADED
        record.cached = True
        record.last_error = None
        return record

    def fail(self, url: str, error: BaseException | str | None = None) -> ImageLoadRecord:
        record = self._require_loading(url)
        message = _error_message(error)
        record.status = ImageStatus.ERROR
        record.cached = False
        record.last_error = message
        self._errors.append(ImageLoadError(url=url, error=message))
        logger.warning(
            "Image load failed (%d/%d) for %s: %s",
            record.attempts,
            self._max_attempts,
            url,
            message,
        )
        return record

    def can_retry(self, url: str) -> bool:
        record = self._records.get(url)
        return (
            record is not None
            and record.status is ImageStatus.ERROR
            and record.attempts < self._max_attempts
        )

    def retry(self, url: str) -> bool:
        """Start another attempt after an error. Returns ``False`` when exhausted."""

        if not self.can_retry(url):
            return False
        record = self._records[url]
        record.cached = False
        self.start(url)
        return True

    def exhausted(self, url: str) -> bool:
        record = self._records.get(url)
        return (
            record is not None
            and record.status is ImageStatus.ERROR
            and record.attempts >= self._max_attempts
        )

    def source_for(self, url: str | None, placeholder: str) -> str:
        """Return the URL to render, falling back to ``placeholder``."""

        if not url or self.exhausted(url):
            return placeholder
        return url

    def reset(self, url: str | None = None) -> None:
        """Forget one URL's state, or every URL when ``url`` is ``None``."""

        if url is None:
            self._records.clear()
            self._errors.clear()
            return
        self._records.pop(url, None)

    def _require_loading(self, url: str) -> ImageLoadRecord:
        record = self._records.get(url)
        if record is None or record.status is not ImageStatus.LOADING:
            raise InvalidImageTransition(f"Image is not loading: {url}")
        return record


def _error_message(error: BaseException | str | None) -> str:
    if error is None:
        return UNKNOWN_ERROR
    if isinstance(error, BaseException):
        return str(error) or type(error).__name__
    return error.strip() or UNKNOWN_ERROR


def gallery(product: Mapping[str, Any]) -> list[str]:
    """Ordered image URLs for a product: its gallery, else its primary image."""

    images: Iterable[Any] = product.get("imagens") or []
    urls = [str(url) for url in images if url]
    if urls:
        return urls
    primary = product.get("imagem")
    return [str(primary)] if primary else []


__all__ = [
    "ImageLoadError",
    "ImageLoadRecord",
    "ImageLoadTracker",
    "ImageStatus",
    "gallery",
]
