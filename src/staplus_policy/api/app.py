"""
staplus_policy.api.app

FastAPI app factory for the STAplus policy service.

Responsibilities:
- Build the application, register routers, middleware and the policy error handler.
- Build the policy engine once from settings.
- Own the DB engine lifecycle and startup seeding (lifespan).
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from staplus_policy import __version__
from staplus_policy.api.routers.conformance import router as conformance_router
from staplus_policy.api.routers.dev_auth import router as dev_auth_router
from staplus_policy.api.routers.entities import router as entities_router
from staplus_policy.api.routers.health import router as health_router
from staplus_policy.db.init_db import init_db, seed_reserved_licenses
from staplus_policy.db.session import create_engine, create_sessionmaker
from staplus_policy.observability.logging import configure_logging, get_logger
from staplus_policy.observability.middleware import RequestContextMiddleware
from staplus_policy.policy.engine import build_engine
from staplus_policy.policy.errors import PolicyError
from staplus_policy.settings import Settings, get_settings

log = get_logger(__name__)


async def _policy_error_handler(_: Request, exc: PolicyError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def create_app(*, settings: Settings) -> FastAPI:
    configure_logging(
        service_name=settings.service_name,
        env=settings.env,
        level=settings.log_level,
        json_logs=settings.log_json,
    )
    policy = settings.policy_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info(
            "startup",
            env=settings.env,
            enforce_ownership=policy.enforce_ownership,
            enforce_licensing=policy.enforce_licensing,
            enforce_group_licensing=policy.enforce_group_licensing,
            transfer_ownership_enabled=policy.transfer_ownership_enabled,
        )
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        if settings.env in ("dev", "test"):
            # Prod schemas come from Alembic migrations.
            await init_db(engine)
        if policy.enforce_licensing:
            await seed_reserved_licenses(
                app.state.sessionmaker, license_domain=policy.license_domain
            )
        try:
            yield
        finally:
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="STAplus Ownership & Licensing Policy Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.policy_engine = build_engine(policy)
    # Every `Depends(get_settings)` sees the settings this app was built with.
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(PolicyError, _policy_error_handler)  # type: ignore[arg-type]
    app.include_router(health_router, tags=["health"])
    app.include_router(dev_auth_router)
    app.include_router(conformance_router)
    app.include_router(entities_router)

    return app


# --- Module Notes -----------------------------------------------------------
# Composition root only: authorization lives in the policy engine, transactions in
# `services.catalog_service`.
