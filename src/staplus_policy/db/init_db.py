"""
staplus_policy.db.init_db

DB bootstrap helpers.

Responsibilities:
- Create tables for local development and tests (production runs Alembic).
- Seed the reserved Creative Commons Licenses when licensing is enforced.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from staplus_policy.db import models  # noqa: F401  # registers tables on Base.metadata
from staplus_policy.db.base import Base
from staplus_policy.db.repositories.catalog import CatalogRepo
from staplus_policy.observability.logging import get_logger
from staplus_policy.policy.licenses import reserved_licenses

log = get_logger(__name__)


async def init_db(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_reserved_licenses(
    session_factory: async_sessionmaker[AsyncSession], *, license_domain: str
) -> int:
    """
    Insert the reserved Licenses that are missing. Existing rows are left untouched.
    Returns the number of rows inserted.
    """

    async with session_factory() as session:
        inserted = await CatalogRepo(session).ensure_licenses(reserved_licenses(license_domain))
        await session.commit()
    if inserted:
        log.info("licenses.seeded", count=inserted, license_domain=license_domain)
    return inserted
