"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from planning_gateway.api.errors import register_exception_handlers
from planning_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from planning_gateway.api.v1 import debts, invoke, plans, reminders
from planning_gateway.infrastructure.database.models import Base
from planning_gateway.infrastructure.database.session import engine
from planning_gateway.infrastructure.observability.logging import setup_logging
from planning_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Desktop deployments run without migrations; create missing tables on boot
    Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Planning Gateway",
        description="Debt schedules, payment confirmation and monthly plan-vs-actual service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(invoke.router, prefix="/v1", tags=["rpc"])
    app.include_router(debts.router, prefix="/v1", tags=["debts"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])
    app.include_router(plans.router, prefix="/v1", tags=["plans"])

    return app


app = create_app()
