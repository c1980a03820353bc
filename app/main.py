from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import Settings, get_settings
from app.dependencies.services import build_storage
from app.health import router as health_router
from app.routers.clients import router as clients_router
from app.routers.invoices import line_items_router, router as invoices_router
from app.routers.stats import router as stats_router
from app.services.storage import InvoiceStorage, seed_sample_clients
from app.store_view import router as store_view_router


def configure_logging(level: str = "INFO") -> None:
    """Ensure application logs go somewhere at the configured level."""
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        root_logger.setLevel(level)


logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manages application startup and shutdown events.
    """
    settings: Settings = app.state.settings
    logger.info("Application settings on startup: %s", settings.model_dump())

    if settings.seed_sample_data:
        await seed_sample_clients(app.state.storage)
        logger.info("Seeded sample clients")

    logger.info("Application startup complete.")
    try:
        yield
    finally:
        logger.info("Application shutdown complete.")


def create_app(
    settings: Settings | None = None,
    storage: InvoiceStorage | None = None,
) -> FastAPI:
    """Build the API around an explicitly constructed storage object."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title=settings.app_name,
        lifespan=lifespan,
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.state.storage = storage if storage is not None else build_storage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(clients_router, prefix="/api/clients")
    app.include_router(invoices_router, prefix="/api/invoices")
    app.include_router(line_items_router, prefix="/api/line-items")
    app.include_router(stats_router, prefix="/api")
    app.include_router(health_router)
    app.include_router(store_view_router)
    return app


app = create_app()
