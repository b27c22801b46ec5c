"""
FastAPI application entry point.

Sets up the application with:
- Lifespan management (startup/shutdown)
- Route registration
- Error handling
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Union

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse, RedirectResponse

from api.dependencies import set_image_storage, set_receipt_repository
from api.routes import health_router, receipts_router
from api.templating import templates
from core.config import settings
from core.logging import configure_logging, get_logger
from core.storage import StorageError, create_receipt_repository
from tools.image_storage import ImageStorageError, create_image_storage


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Startup: build the configured receipt repository and image storage,
    initialize the repository, register both for dependency injection.
    Shutdown: close both and clear the registrations.
    """
    configure_logging()

    logger.info(
        "Starting receipts service...",
        data_backend=settings.data_backend,
        image_storage_backend=settings.image_storage_backend,
    )

    repository = create_receipt_repository(settings)
    await repository.setup()
    set_receipt_repository(repository)

    image_storage = create_image_storage(settings)
    set_image_storage(image_storage)

    logger.info(
        "Receipts service started",
        host=settings.server_host,
        port=settings.server_port,
        data_backend=settings.data_backend,
    )

    yield

    logger.info("Shutting down receipts service...")

    set_receipt_repository(None)
    set_image_storage(None)
    await image_storage.close()
    await repository.close()

    logger.info("Receipts service stopped")


async def receipt_error_handler(
    request: Request,
    exc: Union[StorageError, ImageStorageError],
):
    """
    Shared handler for errors raised while serving receipt pages.

    The exception message is sent back as the response text.
    """
    log = logger.warning if exc.status_code < 500 else logger.error
    log(
        "Receipt request failed",
        path=request.url.path,
        method=request.method,
        status_code=exc.status_code,
        error=str(exc),
    )
    return templates.TemplateResponse(
        request,
        "error.html",
        {"status_code": exc.status_code, "message": str(exc)},
        status_code=exc.status_code,
    )


def create_app() -> FastAPI:
    """
    Application factory.

    Creates and configures the FastAPI application.
    """
    app = FastAPI(
        title="Receipts",
        description="Keep track of receipts and their scanned images.",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.include_router(health_router)
    app.include_router(receipts_router)

    @app.get("/", include_in_schema=False)
    async def index() -> RedirectResponse:
        return RedirectResponse(
            str(app.url_path_for("list_receipts")),
            status_code=status.HTTP_303_SEE_OTHER,
        )

    app.add_exception_handler(StorageError, receipt_error_handler)
    app.add_exception_handler(ImageStorageError, receipt_error_handler)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception",
            path=request.url.path,
            method=request.method,
            error=str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error",
                "message": str(exc) if settings.debug else "An error occurred",
            },
        )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.server:app",
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.debug,
    )
