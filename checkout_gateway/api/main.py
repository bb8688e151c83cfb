"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from checkout_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from checkout_gateway.api.v1 import checkout, pricing, queue_status
from checkout_gateway.infrastructure.database.models import Base
from checkout_gateway.infrastructure.database.session import engine
from checkout_gateway.infrastructure.observability.logging import setup_logging
from checkout_gateway.infrastructure.queue import PaymentRequestQueue
from checkout_gateway.services.checkout import CheckoutSessionRegistry
from checkout_gateway.services.fallback import ManualFallback
from checkout_gateway.services.gateway import GatewayClient
from checkout_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Own the payment queue for the lifetime of the process"""
    Base.metadata.create_all(bind=engine)

    gateway = GatewayClient()
    queue = PaymentRequestQueue.create(gateway.request_signature)
    app.state.gateway = gateway
    app.state.queue = queue
    app.state.registry = CheckoutSessionRegistry(queue, gateway)
    app.state.fallback = ManualFallback()
    try:
        yield
    finally:
        app.state.registry.close()
        await queue.shutdown()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Checkout Gateway",
        description="Subscription pricing, payment initiation queue and manual fallback",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(pricing.router, prefix="/v1", tags=["pricing"])
    app.include_router(checkout.router, prefix="/v1", tags=["checkout"])
    app.include_router(queue_status.router, prefix="/v1", tags=["queue"])

    return app


app = create_app()
