"""Main FastAPI application."""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from .config import settings, get_store_path
from .routers import services_router, status_router
from .services.checker import create_checker_service
from .services.registry import RegistryError, ServiceRegistry
from .services.scheduler import SchedulerService
from .services.store import ServiceStore

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def create_registry() -> ServiceRegistry:
    """Build the registry from settings and populate it from the store."""
    store = ServiceStore(get_store_path())
    registry = ServiceRegistry(
        store,
        capacity=settings.max_services,
        min_check_interval=settings.min_check_interval,
    )
    registry.load(store.load())
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown."""
    logger.info("Starting uptime monitor")

    if getattr(app.state, "registry", None) is None:
        app.state.registry = create_registry()
    logger.info(f"Registry ready with {len(app.state.registry)} services")

    if getattr(app.state, "scheduler", None) is None:
        app.state.scheduler = SchedulerService(
            app.state.registry,
            create_checker_service(),
            tick_seconds=settings.check_tick_seconds,
            max_concurrent_checks=settings.max_concurrent_checks,
        )
    app.state.scheduler.start()

    yield

    # Shutdown
    app.state.scheduler.stop()
    logger.info("Shutdown complete")


async def registry_error_handler(request: Request, exc: RegistryError) -> JSONResponse:
    """Map rejected registry operations to 4xx responses."""
    logger.info(f"{request.method} {request.url.path} rejected: {exc.code} ({exc.message})")
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "message": exc.message},
    )


def create_app(
    registry: Optional[ServiceRegistry] = None,
    scheduler: Optional[SchedulerService] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A registry and scheduler may be supplied; otherwise they are built from
    settings when the application starts.
    """
    app = FastAPI(
        title="Uptime Monitor",
        description="Monitor home hubs, media servers, HTTP endpoints and hosts",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.state.scheduler = scheduler

    # CORS middleware for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RegistryError, registry_error_handler)

    app.include_router(services_router)
    app.include_router(status_router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        scheduler_service = app.state.scheduler
        return {
            "status": "healthy",
            "scheduler_running": bool(scheduler_service and scheduler_service.running),
        }

    # Serve the dashboard page
    static_dir = os.path.join(os.path.dirname(__file__), "static")
    index_path = os.path.join(static_dir, "index.html")
    if os.path.exists(index_path):
        @app.get("/", include_in_schema=False)
        async def serve_dashboard():
            return FileResponse(index_path)

    return app


# Create the application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.web_port)
