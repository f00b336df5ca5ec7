"""
staplus_policy.db.repositories.catalog

Repository for catalog entities.

Responsibilities:
- Persist create/update/delete of policy payloads (`Entity`) for all nine kinds.
- Resolve by-reference links, failing on references to missing rows.
- Upsert inline Party and License sub-entities.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from staplus_policy.db.models import MODELS, CatalogRow, License, Party
from staplus_policy.policy.errors import InvalidArgument
from staplus_policy.policy.identity import canonical_party_id
from staplus_policy.policy.model import Entity, EntityKind, LicenseRef, PartyRef


def party_properties(party: PartyRef) -> dict[str, Any]:
    values = {
        "displayName": party.display_name,
        "role": party.role.value if party.role is not None else None,
        "description": party.description,
    }
    return {k: v for k, v in values.items() if v is not None}


def license_properties(license: LicenseRef) -> dict[str, Any]:
    values = {
        "name": license.name,
        "definition": license.definition,
        "description": license.description,
        "attributionText": license.attribution_text,
        "logo": license.logo,
    }
    return {k: v for k, v in values.items() if v is not None}


class CatalogRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, kind: EntityKind, id: str) -> CatalogRow | None:
        return await self._session.get(MODELS[kind], id)

    async def create(self, entity: Entity) -> CatalogRow:
        row = MODELS[entity.kind](properties=dict(entity.properties))
        if entity.id is not None:
            if await self.get(entity.kind, entity.id) is not None:
                raise InvalidArgument(f"{entity.label} with id '{entity.id}' already exists")
            row.id = entity.id
        elif entity.kind is EntityKind.party:
            row.id = entity.auth_id or str(uuid.uuid4())
        await self._apply_links(row, entity)
        self._session.add(row)
        await self._session.flush()
        return row

    async def update(self, entity: Entity) -> CatalogRow:
        row = await self._require(entity.kind, entity.id)
        if entity.properties:
            row.properties = {**(row.properties or {}), **entity.properties}
        await self._apply_links(row, entity)
        await self._session.flush()
        return row

    async def delete(self, kind: EntityKind, id: str) -> bool:
        row = await self.get(kind, id)
        if row is None:
            return False
        await self._session.delete(row)
        await self._session.flush()
        return True

    async def ensure_licenses(self, licenses: Iterable[LicenseRef]) -> int:
        inserted = 0
        for license in licenses:
            if await self._session.get(License, license.id) is not None:
                continue
            self._session.add(License(id=license.id, properties=license_properties(license)))
            inserted += 1
        await self._session.flush()
        return inserted

    async def _require(self, kind: EntityKind, id: str | None) -> CatalogRow:
        row = await self.get(kind, id) if id is not None else None
        if row is None:
            raise InvalidArgument(f"{kind.value} does not exist")
        return row

    async def _apply_links(self, row: CatalogRow, entity: Entity) -> None:
        if entity.auth_id is not None:
            _assign(row, entity, "auth_id", entity.auth_id)
        if entity.party is not None:
            _assign(row, entity, "party_id", await self._resolve_party(entity.party))
        if entity.license is not None:
            _assign(row, entity, "license_id", await self._resolve_license(entity.license))

        if entity.datastream is not None:
            target = await self._require(EntityKind.datastream, entity.datastream.id)
            _assign(row, entity, "datastream_id", target.id)
        if entity.multi_datastream is not None:
            target = await self._require(EntityKind.multi_datastream, entity.multi_datastream.id)
            _assign(row, entity, "multi_datastream_id", target.id)

        if entity.subject is not None:
            target = await self._require(EntityKind.observation, entity.subject.id)
            _assign(row, entity, "subject_id", target.id)
        if entity.object is not None:
            target = await self._require(EntityKind.observation, entity.object.id)
            _assign(row, entity, "object_id", target.id)
        if entity.external_object is not None:
            _assign(row, entity, "external_object", entity.external_object)

        # Non-empty collections replace the persisted ones.
        collections = (
            ("groups", EntityKind.observation_group, entity.groups),
            ("observations", EntityKind.observation, entity.observations),
            ("campaigns", EntityKind.campaign, entity.campaigns),
            ("datastreams", EntityKind.datastream, entity.datastreams),
            ("multi_datastreams", EntityKind.multi_datastream, entity.multi_datastreams),
        )
        for attr, kind, links in collections:
            if links:
                _assign(row, entity, attr, [await self._require(kind, link.id) for link in links])

    async def _resolve_party(self, party: PartyRef) -> str:
        party_id = party.id
        if party_id is None and party.auth_id is not None:
            party_id = str(canonical_party_id(party.auth_id))

        if party_id is not None:
            existing = await self._session.get(Party, party_id)
            if existing is not None:
                return existing.id
        if not party.inline:
            raise InvalidArgument("Party does not exist")

        party_id = party_id or str(uuid.uuid4())
        self._session.add(
            Party(
                id=party_id,
                auth_id=party_id if party.auth_id is not None else None,
                properties=party_properties(party),
            )
        )
        await self._session.flush()
        return party_id

    async def _resolve_license(self, license: LicenseRef) -> str:
        if license.id is not None:
            existing = await self._session.get(License, license.id)
            if existing is not None:
                return existing.id
        if not license.inline:
            raise InvalidArgument("License does not exist")

        license_id = license.id or str(uuid.uuid4())
        self._session.add(License(id=license_id, properties=license_properties(license)))
        await self._session.flush()
        return license_id


def _assign(row: CatalogRow, entity: Entity, attr: str, value: Any) -> None:
    if not hasattr(type(row), attr):
        raise InvalidArgument(f"{entity.label} has no '{attr}'")
    setattr(row, attr, value)


# --- Module Notes -----------------------------------------------------------
# Inline Parties/Licenses that already exist are linked, never modified; changing
# them goes through their own collection (and their own guards).
