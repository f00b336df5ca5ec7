"""
staplus_policy.api.schemas

Request/response models for the catalog endpoints.

Responsibilities:
- Validate STAplus-style JSON bodies (navigation links by `id`, inline Party/License).
- Convert bodies to policy payloads (`Entity`) and payloads back to JSON.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from staplus_policy.policy.model import Entity, EntityKind, LicenseRef, PartyRef, PartyRole

COLLECTIONS: dict[str, EntityKind] = {
    "Parties": EntityKind.party,
    "Things": EntityKind.thing,
    "Datastreams": EntityKind.datastream,
    "MultiDatastreams": EntityKind.multi_datastream,
    "ObservationGroups": EntityKind.observation_group,
    "Relations": EntityKind.relation,
    "Campaigns": EntityKind.campaign,
    "Licenses": EntityKind.license,
    "Observations": EntityKind.observation,
}


class Link(BaseModel):
    model_config = ConfigDict(extra="forbid")

    id: str = Field(min_length=1, max_length=64)


class PartyLink(BaseModel):
    """
    `{"id": ...}` or `{"authId": ...}` references an existing Party; any descriptive
    field (or no identifier at all) makes it an inline Party.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str | None = Field(default=None, max_length=64)
    auth_id: str | None = Field(default=None, alias="authId", max_length=256)
    display_name: str | None = Field(default=None, alias="displayName")
    role: PartyRole | None = None
    description: str | None = None

    def to_ref(self) -> PartyRef:
        described = any(v is not None for v in (self.display_name, self.role, self.description))
        return PartyRef(
            id=self.id,
            auth_id=self.auth_id,
            inline=described or (self.id is None and self.auth_id is None),
            role=self.role,
            display_name=self.display_name,
            description=self.description,
        )


class LicenseLink(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    id: str | None = Field(default=None, max_length=64)
    name: str | None = None
    definition: str | None = None
    description: str | None = None
    attribution_text: str | None = Field(default=None, alias="attributionText")
    logo: str | None = None

    def to_ref(self) -> LicenseRef:
        fields = (self.name, self.definition, self.description, self.attribution_text, self.logo)
        return LicenseRef(
            id=self.id,
            inline=any(v is not None for v in fields) or self.id is None,
            name=self.name,
            definition=self.definition,
            description=self.description,
            attribution_text=self.attribution_text,
            logo=self.logo,
        )


class EntityBody(BaseModel):
    """
    Body shared by every collection. Navigation links use STAplus names; any other
    member (name, description, result, ...) is kept verbatim in `properties`.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str | None = Field(default=None, min_length=1, max_length=64)
    auth_id: str | None = Field(default=None, alias="authId", max_length=256)

    party: PartyLink | None = Field(default=None, alias="Party")
    license: LicenseLink | None = Field(default=None, alias="License")
    datastream: Link | None = Field(default=None, alias="Datastream")
    multi_datastream: Link | None = Field(default=None, alias="MultiDatastream")

    groups: list[Link] = Field(default_factory=list, alias="ObservationGroups")
    observations: list[Link] = Field(default_factory=list, alias="Observations")
    campaigns: list[Link] = Field(default_factory=list, alias="Campaigns")
    datastreams: list[Link] = Field(default_factory=list, alias="Datastreams")
    multi_datastreams: list[Link] = Field(default_factory=list, alias="MultiDatastreams")

    subject: Link | None = Field(default=None, alias="Subject")
    object: Link | None = Field(default=None, alias="Object")
    external_object: str | None = Field(default=None, alias="externalObject")

    def to_entity(self, kind: EntityKind, *, id: str | None = None) -> Entity:
        return Entity(
            kind=kind,
            id=id if id is not None else self.id,
            properties=dict(self.model_extra or {}),
            auth_id=self.auth_id,
            party=self.party.to_ref() if self.party is not None else None,
            license=self.license.to_ref() if self.license is not None else None,
            datastream=_entity(EntityKind.datastream, self.datastream),
            multi_datastream=_entity(EntityKind.multi_datastream, self.multi_datastream),
            groups=_entities(EntityKind.observation_group, self.groups),
            observations=_entities(EntityKind.observation, self.observations),
            campaigns=_entities(EntityKind.campaign, self.campaigns),
            datastreams=_entities(EntityKind.datastream, self.datastreams),
            multi_datastreams=_entities(EntityKind.multi_datastream, self.multi_datastreams),
            subject=_entity(EntityKind.observation, self.subject),
            object=_entity(EntityKind.observation, self.object),
            external_object=self.external_object,
        )


def _entity(kind: EntityKind, link: Link | None) -> Entity | None:
    return Entity(kind=kind, id=link.id) if link is not None else None


def _entities(kind: EntityKind, links: list[Link]) -> tuple[Entity, ...]:
    return tuple(Entity(kind=kind, id=link.id) for link in links)


def entity_to_json(entity: Entity) -> dict[str, Any]:
    body: dict[str, Any] = {"id": entity.id, **entity.properties}
    if entity.auth_id is not None:
        body["authId"] = entity.auth_id
    if entity.party is not None:
        body["Party"] = {"id": entity.party.id}
    if entity.license is not None:
        body["License"] = {"id": entity.license.id}

    links = (
        ("Datastream", entity.datastream),
        ("MultiDatastream", entity.multi_datastream),
        ("Subject", entity.subject),
        ("Object", entity.object),
    )
    for name, link in links:
        if link is not None:
            body[name] = {"id": link.id}
    if entity.external_object is not None:
        body["externalObject"] = entity.external_object

    collections = (
        ("ObservationGroups", entity.groups),
        ("Observations", entity.observations),
        ("Campaigns", entity.campaigns),
        ("Datastreams", entity.datastreams),
        ("MultiDatastreams", entity.multi_datastreams),
    )
    for name, items in collections:
        if items:
            body[name] = [{"id": item.id} for item in items]
    return body
