# orderpipe/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from orderpipe.api.routers import carts, orders, owner_orders, health
from orderpipe.domain.errors import PipelineError, CatalogUnavailable
from orderpipe.utils.logging import get_logger

logger = get_logger(__name__)


async def pipeline_error_handler(request: Request, exc: PipelineError):
    logger.info(f"{request.method} {request.url.path} -> {exc.kind}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind, "message": exc.message},
    )


async def catalog_error_handler(request: Request, exc: CatalogUnavailable):
    logger.error(f"{request.method} {request.url.path} -> catalog unavailable: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "CatalogUnavailable", "message": "Catalog service is unavailable"},
    )


async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    logger.exception(f"{request.method} {request.url.path} -> storage failure", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"error": "InternalError", "message": "Internal server error"},
    )


def create_app() -> FastAPI:
    app = FastAPI(
        title="Order Pipeline",
        version="1.0.0",
    )

    app.add_exception_handler(PipelineError, pipeline_error_handler)
    app.add_exception_handler(CatalogUnavailable, catalog_error_handler)
    app.add_exception_handler(SQLAlchemyError, storage_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(orders.router)
    app.include_router(owner_orders.router)

    return app
