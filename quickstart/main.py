"""
FastAPI application for the Plaid Quickstart.

Endpoints under /api forward to the Plaid API using the identifiers kept in
the application's QuickstartSession.

Run with `python -m quickstart` or `uvicorn quickstart.main:create_app --factory`.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse
from plaid.api import plaid_api

from .constants import ApiEndpoints, ApiTags, HttpMessages, HttpMethods
from .middleware import (
    add_cors_middleware,
    add_exception_handlers,
    add_logging_middleware,
)
from .routers import plaid_router
from .services.plaid_service import create_plaid_client
from .session import QuickstartSession
from .settings import Settings, get_settings
from .utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings: Settings = app.state.settings
    logger.info(
        f"Starting {settings.project_name} at {datetime.now(timezone.utc).isoformat()} "
        f"(environment={settings.plaid_env}, products={','.join(settings.products_list)})"
    )

    yield

    logger.info(f"Shutting down {settings.project_name}...")
    app.state.session.clear()


def create_app(
    settings: Optional[Settings] = None,
    plaid_client: Optional[plaid_api.PlaidApi] = None,
) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description="Relays Plaid Link, Auth, Transactions, Assets, Investments, Payment Initiation and Transfer calls.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session = QuickstartSession()
    app.state.plaid_client = plaid_client or create_plaid_client(settings)

    # Add middleware
    add_cors_middleware(app, settings)
    add_logging_middleware(app)
    add_exception_handlers(app)

    # Add routers
    app.include_router(plaid_router, prefix=settings.api_prefix)

    @app.api_route(ApiEndpoints.HEALTHZ, methods=HttpMethods.ALL, tags=[ApiTags.HEALTH])
    async def healthz():
        """Liveness probe."""
        return PlainTextResponse(HttpMessages.OK)

    return app
