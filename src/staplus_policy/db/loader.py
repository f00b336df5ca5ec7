"""
staplus_policy.db.loader

SQL-backed `EntityLoader`.

Responsibilities:
- Convert catalog rows to the immutable payloads the policy engine reads.
- Load persisted state inside the caller's (synchronous) session, optionally
  taking a row lock for update/delete decisions.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from staplus_policy.db.models import MODELS, CatalogRow, Observation
from staplus_policy.policy.model import Entity, EntityKind, LicenseRef, PartyRef, ref


def _refs(kind: EntityKind, rows: list[CatalogRow] | None) -> tuple[Entity, ...]:
    return tuple(ref(kind, row.id) for row in rows or ())


def _ref_or_none(kind: EntityKind, id: str | None) -> Entity | None:
    return ref(kind, id) if id is not None else None


def row_to_entity(kind: EntityKind, row: CatalogRow) -> Entity:
    """
    Persisted state as a payload: links are by-reference, collections hold ids only.
    Attributes a table does not have come back unset.
    """

    party_id = getattr(row, "party_id", None)
    license_id = getattr(row, "license_id", None)
    return Entity(
        kind=kind,
        id=row.id,
        properties=dict(row.properties or {}),
        auth_id=getattr(row, "auth_id", None),
        party=PartyRef(id=party_id) if party_id is not None else None,
        license=LicenseRef(id=license_id) if license_id is not None else None,
        datastream=_ref_or_none(EntityKind.datastream, getattr(row, "datastream_id", None)),
        multi_datastream=_ref_or_none(
            EntityKind.multi_datastream, getattr(row, "multi_datastream_id", None)
        ),
        groups=_refs(EntityKind.observation_group, getattr(row, "groups", None)),
        observations=_refs(EntityKind.observation, getattr(row, "observations", None)),
        campaigns=_refs(EntityKind.campaign, getattr(row, "campaigns", None)),
        datastreams=_refs(EntityKind.datastream, getattr(row, "datastreams", None)),
        multi_datastreams=_refs(
            EntityKind.multi_datastream, getattr(row, "multi_datastreams", None)
        ),
        subject=_ref_or_none(EntityKind.observation, getattr(row, "subject_id", None)),
        object=_ref_or_none(EntityKind.observation, getattr(row, "object_id", None)),
        external_object=getattr(row, "external_object", None),
    )


class SqlEntityLoader:
    def __init__(self, session: Session, *, lock: bool = False) -> None:
        self._session = session
        self._lock = lock

    def get(self, kind: EntityKind, id: str) -> Entity | None:
        row = self._session.get(MODELS[kind], id, with_for_update=self._lock)
        if row is None:
            return None
        return row_to_entity(kind, row)

    def observations_of(
        self, kind: EntityKind, id: str, *, limit: int | None = None
    ) -> tuple[Entity, ...]:
        column = {
            EntityKind.datastream: Observation.datastream_id,
            EntityKind.multi_datastream: Observation.multi_datastream_id,
        }[kind]
        stmt = select(Observation).where(column == id).order_by(Observation.id).limit(limit)
        rows = self._session.scalars(stmt).all()
        return tuple(row_to_entity(EntityKind.observation, row) for row in rows)


# --- Module Notes -----------------------------------------------------------
# `with_for_update` is a no-op on SQLite; on PostgreSQL it serializes concurrent
# owner checks against the same row.
