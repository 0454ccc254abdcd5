"""WooManager relay entrypoint.

Hosts the store-connection handshake, inbound store webhooks with push
fan-out, and the cached store-data reads for the operator client.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from woomanager.common.config import settings
from woomanager.common.http import register_http
from woomanager.common.logging import configure_logging, logger
from woomanager.common.metrics import metrics_response
from woomanager.common.startup import log_startup_config
from woomanager.common.tracing import instrument_app, setup_tracing
from woomanager.container import ServiceContainer, build_container
from woomanager.services.auth.routes import router as auth_router
from woomanager.services.credentials.routes import router as credentials_router
from woomanager.services.notifications.routes import router as push_router
from woomanager.services.sso.routes import router as sso_router
from woomanager.services.store_data.routes import router as store_data_router
from woomanager.services.webhooks.routes import router as webhooks_router

configure_logging()
if settings.tracing_enabled:
    setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "PUBLIC_BASE_URL",
        "CLIENT_APP_URL",
        "RECORD_STORE_BACKEND",
        "BASEROW_API_URL",
        "BASEROW_TOKEN",
        "CACHE_BACKEND",
        "REDIS_URL",
        "RAZORPAY_ENC_KEY",
        "VAPID_PUBLIC_KEY",
        "VAPID_PRIVATE_KEY",
        "JWT_SECRET",
    ],
)


def create_app(container: ServiceContainer | None = None) -> FastAPI:
    """Build the app; tests pass a container wired around fakes."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.container = container or build_container()
        await app.state.container.dispatcher.start()
        try:
            yield
        finally:
            await app.state.container.dispatcher.stop()
            await app.state.container.records.close()
            logger.info("relay shut down")

    app = FastAPI(title="WooManager Relay", lifespan=lifespan)
    register_http(app)
    for router in (
        auth_router,
        sso_router,
        webhooks_router,
        push_router,
        credentials_router,
        store_data_router,
    ):
        app.include_router(router)

    @app.get("/metrics")
    def metrics():
        """Prometheus scrape endpoint."""

        return metrics_response()

    @app.get("/health")
    def health():
        """Container health probe endpoint."""

        return {"ok": True}

    if settings.tracing_enabled:
        instrument_app(app)
    return app


app = create_app()
