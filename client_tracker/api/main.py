"""FastAPI application factory"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from client_tracker.api.errors import register_exception_handlers
from client_tracker.api.middleware import RequestContextMiddleware
from client_tracker.api.v1 import clients, history, orders, payments
from client_tracker.infrastructure.database.session import init_db
from client_tracker.infrastructure.observability.logging import setup_logging
from client_tracker.config import settings

# Setup structured logging
setup_logging(settings.log_level, service_name=settings.service_name)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        init_db()
    yield


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Client Tracker",
        description="Installment payment lifecycle and client scoring service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(RequestContextMiddleware)

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
    app.include_router(payments.router, prefix="/v1", tags=["payments"])
    app.include_router(history.router, prefix="/v1", tags=["history"])
    app.include_router(clients.router, prefix="/v1", tags=["clients"])
    app.include_router(orders.router, prefix="/v1", tags=["orders"])

    return app


app = create_app()
