from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings
from .container import ApplicationContainer
from .logging import configure_logging
from ..infrastructure.persistence.sqlite import SQLitePersistence
from ..presentation.api.routers import debug as debug_router
from ..presentation.api.routers import payfast as payfast_router
from ..presentation.api.routers import user_router
from ..presentation.api.routers import user_subscription_router
from ..services.auth_service import AuthService
from ..services.entitlement_service import EntitlementService
from ..services.notification_service import NotificationService
from ..services.payfast_validator import PayFastValidator
from ..services.subscription_service import SubscriptionService

logger = logging.getLogger(__name__)


def create_application(
    settings: Optional[Settings] = None,
    http_client: Optional[httpx.Client] = None,
) -> FastAPI:
    settings = settings or Settings()

    app = FastAPI(title="PayGate Subscriptions", lifespan=_create_lifespan(settings, http_client))

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(payfast_router.router)
    app.include_router(user_router.router)
    app.include_router(user_subscription_router.router)
    if settings.debug_endpoints:
        app.include_router(debug_router.router)

    @app.get("/health")
    async def health() -> Dict[str, Any]:
        return {"ok": True, "mode": settings.payfast.mode}

    return app


def _create_lifespan(settings: Settings, http_client: Optional[httpx.Client]):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        configure_logging()
        persistence = SQLitePersistence(settings.database_path)
        auth_service = AuthService(
            jwt_secret=settings.jwt_secret,
            jwt_algorithm=settings.jwt_algorithm,
        )
        validator = PayFastValidator(settings.payfast, client=http_client)
        entitlement_service = EntitlementService(persistence)
        subscription_service = SubscriptionService(persistence, settings.payfast)
        notification_service = NotificationService(
            subscription_repository=persistence,
            entitlement_service=entitlement_service,
            validator=validator,
            settings=settings.payfast,
        )

        container = ApplicationContainer(
            settings=settings,
            persistence=persistence,
            auth_service=auth_service,
            payfast_validator=validator,
            entitlement_service=entitlement_service,
            subscription_service=subscription_service,
            notification_service=notification_service,
        )

        app.state.container = container  # type: ignore[attr-defined]

        missing = settings.payfast.missing_fields()
        if missing:
            logger.warning("PayFast is not fully configured; missing %s", ", ".join(missing))
        logger.info("PayFast running in %s mode", settings.payfast.mode)

        try:
            yield
        finally:
            validator.close()
            persistence.close()

    return lifespan
