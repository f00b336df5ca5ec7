"""
staplus_policy.services.catalog_service

Catalog mutation service (transaction owner).

Responsibilities:
- Evaluate the policy engine inside the write transaction (`AsyncSession.run_sync`).
- Persist the amended payload and append an audit event.
- Record policy denials in the audit trail, then re-raise them.
- Keep Party creation idempotent for non-admin callers.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from staplus_policy.auth.models import Principal
from staplus_policy.db.loader import SqlEntityLoader, row_to_entity
from staplus_policy.db.models import CatalogRow
from staplus_policy.db.repositories.audit import AuditRepo
from staplus_policy.db.repositories.catalog import CatalogRepo
from staplus_policy.observability.logging import get_logger
from staplus_policy.policy.engine import PolicyEngine
from staplus_policy.policy.errors import PolicyError
from staplus_policy.policy.loader import EntityLoader
from staplus_policy.policy.model import Entity, EntityKind

log = get_logger(__name__)

ANONYMOUS = "anonymous"

PolicyStep = Callable[..., Entity]


def _actor(principal: Principal | None) -> str:
    return principal.identity if principal is not None else ANONYMOUS


class CatalogService:
    def __init__(self, *, session: AsyncSession, engine: PolicyEngine) -> None:
        self._session = session
        self._engine = engine
        self._catalog = CatalogRepo(session)
        self._audit = AuditRepo(session)

    async def get(self, kind: EntityKind, id: str) -> Entity | None:
        row = await self._catalog.get(kind, id)
        return await self._to_entity(kind, row) if row is not None else None

    async def create(self, payload: Entity, *, principal: Principal | None) -> Entity:
        entity = await self._evaluate(self._engine.create, payload, principal, lock=False)

        if entity.kind is EntityKind.party and entity.id is not None:
            existing = await self._catalog.get(EntityKind.party, entity.id)
            if existing is not None:
                if principal is None or not principal.is_admin:
                    # Re-registering yourself returns your existing Party.
                    return await self._to_entity(EntityKind.party, existing)
                row = await self._catalog.update(entity)
                return await self._done("ENTITY_UPDATED", row, entity, principal)

        row = await self._catalog.create(entity)
        return await self._done("ENTITY_CREATED", row, entity, principal)

    async def update(self, payload: Entity, *, principal: Principal | None) -> Entity:
        entity = await self._evaluate(self._engine.update, payload, principal, lock=True)
        row = await self._catalog.update(entity)
        return await self._done("ENTITY_UPDATED", row, entity, principal)

    async def delete(self, kind: EntityKind, id: str, *, principal: Principal | None) -> None:
        entity = await self._evaluate(
            self._engine.delete, Entity(kind=kind, id=id), principal, lock=True
        )
        await self._catalog.delete(kind, id)
        await self._audit.add(
            actor=_actor(principal),
            entity_kind=kind,
            entity_id=entity.id,
            event_type="ENTITY_DELETED",
        )
        await self._session.commit()

    async def audit_trail(self, kind: EntityKind, id: str) -> list[dict[str, object]]:
        events = await self._audit.list_for_entity(kind, id)
        return [
            {
                "id": str(e.id),
                "event_type": e.event_type,
                "actor": e.actor,
                "details": e.details,
                "created_at": e.created_at.isoformat(),
            }
            for e in events
        ]

    async def _to_entity(self, kind: EntityKind, row: CatalogRow) -> Entity:
        # Collections a new row never touched are loaded on access, which needs the sync facade.
        return await self._session.run_sync(lambda _: row_to_entity(kind, row))

    async def _evaluate(
        self,
        step: PolicyStep,
        payload: Entity,
        principal: Principal | None,
        *,
        lock: bool,
    ) -> Entity:
        def _run(sync_session: Session) -> Entity:
            loader: EntityLoader = SqlEntityLoader(sync_session, lock=lock)
            return step(payload, principal=principal, loader=loader)

        try:
            return await self._session.run_sync(_run)
        except PolicyError as e:
            # Nothing was written yet; the denial gets its own transaction.
            await self._session.rollback()
            await self._audit.add(
                actor=_actor(principal),
                entity_kind=payload.kind,
                entity_id=payload.id,
                event_type="POLICY_DENIED",
                details={"kind": e.kind.value, "detail": e.message},
            )
            await self._session.commit()
            raise

    async def _done(
        self,
        event_type: str,
        row: CatalogRow,
        entity: Entity,
        principal: Principal | None,
    ) -> Entity:
        result = await self._to_entity(entity.kind, row)
        await self._audit.add(
            actor=_actor(principal),
            entity_kind=entity.kind,
            entity_id=result.id,
            event_type=event_type,
        )
        await self._session.commit()
        log.info(
            "catalog.mutated", event_type=event_type, kind=entity.kind.value, entity_id=result.id
        )
        return result


# --- Module Notes -----------------------------------------------------------
# Guards are synchronous; `run_sync` hands them the session's synchronous facade so
# their reads share the transaction (and row locks) of the write that follows.
