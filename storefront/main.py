import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from storefront.api import favorites
from storefront.exceptions import InvalidProductError
from storefront.schemas.error import ErrorType, ValidationErrorDetail
from storefront.services.favorites.store import FavoritesStore
from storefront.settings import AppSettings, get_settings
from storefront.storage import StorageAdapter, build_storage
from storefront.utils.error_responses import (
    build_error_response,
    build_validation_error_response,
    error_json_response,
)
from storefront.utils.request_context import (
    REQUEST_ID_HEADER,
    get_request_id,
    request_id_scope,
)

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level_numeric,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _validate_environment(*, active_settings: AppSettings | None = None) -> None:
    """Log warnings for optional configuration left unset."""

    candidate = active_settings or get_settings()
    warnings = candidate.optional_config_warnings()
    if warnings:
        logger.warning("=" * 60)
        logger.warning("Environment Configuration Warnings:")
        for warning in warnings:
            logger.warning(f"  • {warning}")
        logger.warning("=" * 60)


def _default_origins() -> list[str]:
    ports = list(range(3000, 3011)) + [5173, 8081, 19006]
    origins = []
    for host in ("localhost", "127.0.0.1"):
        origins.extend([f"http://{host}:{port}" for port in ports])
    origins.append("http://localhost")
    origins.append("http://127.0.0.1")
    return origins


def _combine_origins(*origin_groups: list[str]) -> list[str]:
    """Merge origins preserving order and removing duplicates."""
    seen: set[str] = set()
    combined: list[str] = []
    for group in origin_groups:
        for origin in group:
            normalized = origin.rstrip("/")
            if normalized and normalized not in seen:
                seen.add(normalized)
                combined.append(normalized)
    return combined


def create_app(
    *,
    app_settings: AppSettings | None = None,
    storage: StorageAdapter | None = None,
) -> FastAPI:
    """Build the FastAPI application around a single favorites store.

    ``storage`` overrides the backend picked from configuration, which is how
    tests run the whole app against :class:`~storefront.storage.MemoryStorage`.
    """

    active_settings = app_settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Create, load and finally flush the favorites store."""
        _validate_environment(active_settings=active_settings)

        adapter = storage or build_storage(active_settings)
        store = FavoritesStore.from_settings(active_settings, adapter)
        app.state.favorites_store = store

        logger.info("=" * 60)
        logger.info("Storefront API - Favorites Store")
        logger.info("=" * 60)
        logger.info(f"Storage backend: {type(adapter).__name__}")
        logger.info(f"Storage key: {active_settings.favorites_storage_key}")
        logger.info(f"Write mode: {active_settings.favorites_write_mode}")
        logger.info("=" * 60)

        await store.load()

        yield

        # Shutdown: let background writes finish before releasing the adapter.
        logger.info("Shutting down Storefront API")
        await store.drain()
        await adapter.close()

    app = FastAPI(
        title="Storefront API",
        version="0.1.0",
        description="Favorites store for the mobile storefront.",
        lifespan=lifespan,
        redirect_slashes=False,
    )

    allow_origins = _combine_origins(
        _default_origins(), active_settings.cors_allow_origins
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id(request: Request, call_next):
        """Tag every response, including unhandled failures, with a request ID."""
        with request_id_scope() as request_id:
            try:
                response = await call_next(request)
            except Exception as exc:  # noqa: BLE001
                # call_next re-raises unhandled route errors.
                response = await generic_exception_handler(request, exc)
            response.headers[REQUEST_ID_HEADER] = request_id
            return response

    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(InvalidProductError, invalid_product_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    @app.get("/health", tags=["system"])
    async def healthcheck() -> dict[str, str]:
        """Simple health endpoint for readiness checks."""
        return {"status": "ok"}

    app.include_router(favorites.router, prefix="/favorites", tags=["favorites"])
    return app


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle FastAPI request validation errors."""
    errors = [
        ValidationErrorDetail(
            field=".".join(str(loc) for loc in error["loc"]),
            message=error["msg"],
            value=error.get("input"),
        )
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error for request %s to %s: %s errors",
        get_request_id(),
        request.url.path,
        len(errors),
    )

    error_response = build_validation_error_response(
        message="Request validation failed",
        detail=f"{len(errors)} validation error(s)",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=errors,
    )

    return error_json_response(error_response)


async def invalid_product_exception_handler(request: Request, exc: InvalidProductError):
    """Handle products the favorites store cannot key."""
    logger.warning(
        "Invalid product for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        exc,
    )

    error_response = build_validation_error_response(
        message="Invalid product",
        detail=str(exc),
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        path=str(request.url.path),
        errors=[ValidationErrorDetail(field="id", message=str(exc))],
    )

    return error_json_response(error_response)


async def generic_exception_handler(request: Request, exc: Exception):
    """Handle all other unhandled exceptions."""
    logger.error(
        "Unhandled exception for request %s to %s: %s",
        get_request_id(),
        request.url.path,
        type(exc).__name__,
        exc_info=exc,
    )

    error_response = build_error_response(
        error_type=ErrorType.INTERNAL_ERROR,
        message="Internal server error",
        detail=f"An unexpected error occurred: {type(exc).__name__}",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        path=str(request.url.path),
    )

    return error_json_response(error_response)


app = create_app(app_settings=settings)
