"""FastAPI application creation and configuration."""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.config import get_settings
from .core.errors import ItemNotFound, ProfileSchemaError
from .core.logging import configure_logging
from .services.collaborators import InMemoryPlanRepository
from .services.planning import PlanningService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Load the knowledge base once and share the planning service."""
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    if getattr(app.state, "planner", None) is None:
        app.state.planner = PlanningService.from_settings(
            settings, plan_repository=InMemoryPlanRepository()
        )
    planner = app.state.planner
    logger.info("Knowledge base ready: %d items, %d quarantined",
                len(planner.knowledge_base), len(planner.knowledge_base.quarantine))
    yield


def create_app(planner: Optional[PlanningService] = None) -> FastAPI:
    """Create and configure FastAPI application.

    Passing `planner` skips loading the knowledge base from settings.
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        debug=settings.DEBUG,
        lifespan=lifespan
    )
    app.state.planner = planner

    @app.exception_handler(ItemNotFound)
    async def item_not_found_handler(request: Request, exc: ItemNotFound):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ProfileSchemaError)
    async def profile_error_handler(request: Request, exc: ProfileSchemaError):
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.get("/")
    def root():
        return {"status": "ok", "message": f"{settings.APP_NAME} API running"}

    # Include routers
    from .routes import analysis, items, plans, recommendations
    app.include_router(items.router, prefix="/api", tags=["items"])
    app.include_router(recommendations.router, prefix="/api/recommendations", tags=["recommendations"])
    app.include_router(plans.router, prefix="/api/plans", tags=["plans"])
    app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])

    return app
