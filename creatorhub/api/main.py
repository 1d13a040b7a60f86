from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from creatorhub import __version__
from creatorhub.common.logger import configure_logging
from creatorhub.core.config import Settings, get_settings
from creatorhub.core.rbac import PolicyEngine, RoleAssignmentGuard, build_engine
from creatorhub.api.routers import authz


def create_app(
    engine: Optional[PolicyEngine] = None,
    settings: Optional[Settings] = None,
) -> FastAPI:
    """
    Build the API application.

    The policy engine is constructed once here (or passed in) and shared
    by every request through app.state. An engine built here is shut down
    with the application; a passed-in engine stays owned by the caller.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    owns_engine = engine is None
    engine = engine or build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_engine:
            engine.shutdown()

    app = FastAPI(
        title=settings.app_name,
        description="Authorization decisions for the creator marketplace",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.state.engine = engine
    app.state.assignment_guard = RoleAssignmentGuard(engine)

    app.include_router(authz.router, prefix="/api")

    @app.get("/health")
    async def health_check():
        cache = app.state.engine.cache
        return {
            "status": "healthy",
            "version": __version__,
            "roles": len(app.state.engine.catalog),
            "cached_decisions": len(cache) if cache is not None else 0,
        }

    return app
