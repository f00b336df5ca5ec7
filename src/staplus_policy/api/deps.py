"""
staplus_policy.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide DB sessions and the policy engine from app state.
- Build the request-scoped `CatalogService`.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from staplus_policy.policy.engine import PolicyEngine
from staplus_policy.services.catalog_service import CatalogService


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # Created by the app lifespan in `staplus_policy.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped; commit/rollback is owned by the service layer.
    async with session_factory() as session:
        yield session


def policy_engine(request: Request) -> PolicyEngine:
    return request.app.state.policy_engine  # type: ignore[attr-defined]


def catalog_service(
    session: AsyncSession = Depends(db_session),
    engine: PolicyEngine = Depends(policy_engine),
) -> CatalogService:
    return CatalogService(session=session, engine=engine)
