"""
staplus_policy.db.repositories.audit

Repository for `AuditEvent` entities.

Responsibilities:
- Append audit events for catalog mutations and policy denials.
- Query the audit trail of one entity.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from staplus_policy.db.models import AuditEvent
from staplus_policy.policy.model import EntityKind


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        actor: str,
        entity_kind: EntityKind,
        entity_id: str | None,
        event_type: str,
        details: dict[str, Any] | None = None,
    ) -> AuditEvent:
        # Append-only: there is no update/delete path for audit rows.
        ev = AuditEvent(
            actor=actor,
            entity_kind=entity_kind.value,
            entity_id=entity_id,
            event_type=event_type,
            details=details or {},
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_for_entity(
        self, entity_kind: EntityKind, entity_id: str, *, limit: int = 200
    ) -> list[AuditEvent]:
        stmt = (
            select(AuditEvent)
            .where(AuditEvent.entity_kind == entity_kind.value)
            .where(AuditEvent.entity_id == entity_id)
            .order_by(desc(AuditEvent.created_at))
            .limit(limit)
        )
        return list((await self._session.execute(stmt)).scalars().all())


# --- Module Notes -----------------------------------------------------------
# Newest first; `ix_audit_entity_created` covers the query.
