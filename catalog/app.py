"""
FastAPI application entry point for the catalog service.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from catalog.config import Settings, get_settings
from catalog.dependencies import Repositories, build_repositories
from catalog.repository import DuplicateEntityError
from catalog.routes import EntityRoutes, map_routes
from catalog.schemas import CategoryIn, CategoryOut, ProductIn, ProductOut

logger = logging.getLogger(__name__)

PRODUCTS = EntityRoutes("Product", ProductIn, ProductOut)
CATEGORIES = EntityRoutes("Category", CategoryIn, CategoryOut)


def _add_request_logging(app: FastAPI) -> None:
    request_logger = logging.getLogger("catalog.requests")

    @app.middleware("http")
    async def log_request(request: Request, call_next):
        request_logger.info(
            "Path: %s, QueryString: %s", request.url.path, request.url.query
        )
        try:
            return await call_next(request)
        except Exception:
            request_logger.exception("Unhandled error for %s", request.url.path)
            raise


def create_app(
    settings: Optional[Settings] = None,
    repositories: Optional[Repositories] = None,
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    repositories = repositories or build_repositories(settings)

    docs = settings.docs_enabled
    app = FastAPI(
        title="Catalog API",
        version="0.1.0",
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
    )
    app.state.repositories = repositories

    if settings.log_requests:
        _add_request_logging(app)

    @app.exception_handler(DuplicateEntityError)
    async def duplicate_entity_handler(request: Request, exc: DuplicateEntityError):
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    map_routes(app, "Products", PRODUCTS, lambda: repositories.products)
    map_routes(app, "Categories", CATEGORIES, lambda: repositories.categories)

    @app.get("/error", include_in_schema=False)
    def error():
        # Diagnostic endpoint for exercising the server's fault handling.
        return 1 / 0

    return app
