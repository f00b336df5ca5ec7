"""
staplus_policy.policy.model

Entity payload types seen by the policy engine.

Responsibilities:
- Name the entity kinds and lifecycle points guards are registered for.
- Describe a proposed (or persisted) entity as an immutable payload.
- Describe references to Parties and Licenses (inline or by id).
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class EntityKind(enum.StrEnum):
    # Values are the entity type names used in messages and audit events.
    party = "Party"
    thing = "Thing"
    datastream = "Datastream"
    multi_datastream = "MultiDatastream"
    observation_group = "ObservationGroup"
    relation = "Relation"
    campaign = "Campaign"
    license = "License"
    observation = "Observation"


class LifecyclePoint(enum.StrEnum):
    before_create = "BEFORE_CREATE"
    create_validated = "CREATE_VALIDATED"
    before_update = "BEFORE_UPDATE"
    before_delete = "BEFORE_DELETE"


class PartyRole(enum.StrEnum):
    individual = "individual"
    institutional = "institutional"


@dataclass(frozen=True, slots=True)
class PartyRef:
    """
    Owner reference carried by an owned entity.

    `inline=True` means the payload carries a full Party to be created alongside the
    entity; otherwise the Party is referenced by `id` or `auth_id`.
    """

    id: str | None = None
    auth_id: str | None = None
    inline: bool = False
    role: PartyRole | None = None
    display_name: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class LicenseRef:
    id: str | None = None
    inline: bool = False
    name: str | None = None
    definition: str | None = None
    description: str | None = None
    attribution_text: str | None = None
    logo: str | None = None


@dataclass(frozen=True, slots=True)
class Entity:
    """
    A proposed mutation payload or a loaded snapshot of persisted state.

    Unset links are `None` / empty tuples; guards treat them as "not part of the request".
    """

    kind: EntityKind
    id: str | None = None
    properties: Mapping[str, Any] = field(default_factory=dict)

    # Party only
    auth_id: str | None = None

    # Ownership / licensing links
    party: PartyRef | None = None
    license: LicenseRef | None = None

    # Observation -> Datastream / MultiDatastream
    datastream: Entity | None = None
    multi_datastream: Entity | None = None

    # Group / Campaign associations
    groups: tuple[Entity, ...] = ()
    observations: tuple[Entity, ...] = ()
    campaigns: tuple[Entity, ...] = ()
    datastreams: tuple[Entity, ...] = ()
    multi_datastreams: tuple[Entity, ...] = ()

    # Relation only
    subject: Entity | None = None
    object: Entity | None = None
    external_object: str | None = None

    @property
    def label(self) -> str:
        return self.kind.value


def ref(kind: EntityKind, id: str) -> Entity:
    """Shorthand for a by-reference link (`{"id": ...}`)."""
    return Entity(kind=kind, id=id)


# --- Module Notes -----------------------------------------------------------
# Payloads are frozen; guards amend them with `dataclasses.replace` and hand the
# new value back to the caller.
