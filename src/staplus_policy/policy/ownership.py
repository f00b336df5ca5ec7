"""
staplus_policy.policy.ownership

Single-owner state machine shared by every owned entity kind.

Responsibilities:
- Classify a persisted entity as Unlinked / LinkedSelf / LinkedOther for the caller.
- Derive or validate the owner of a new entity.
- Gate updates, ownership transfer and deletes on the persisted owner.
- Apply the same rules transitively (Observation / Relation via the Datastream owner).
"""

from __future__ import annotations

import enum
import uuid
from dataclasses import dataclass, replace

from staplus_policy.observability.logging import get_logger
from staplus_policy.policy.context import GuardContext
from staplus_policy.policy.errors import Forbidden, InvalidArgument
from staplus_policy.policy.identity import party_ref_identity
from staplus_policy.policy.loader import load_existing
from staplus_policy.policy.model import Entity, EntityKind, PartyRef

log = get_logger(__name__)


class OwnershipState(enum.StrEnum):
    unlinked = "UNLINKED"
    linked_self = "LINKED_SELF"
    linked_other = "LINKED_OTHER"


@dataclass(frozen=True, slots=True)
class OwnedKind:
    kind: EntityKind
    owner_required: bool = False

    @property
    def label(self) -> str:
        return self.kind.value


OWNED_KINDS: dict[EntityKind, OwnedKind] = {
    EntityKind.thing: OwnedKind(EntityKind.thing),
    EntityKind.datastream: OwnedKind(EntityKind.datastream),
    EntityKind.multi_datastream: OwnedKind(EntityKind.multi_datastream),
    EntityKind.observation_group: OwnedKind(EntityKind.observation_group, owner_required=True),
    EntityKind.campaign: OwnedKind(EntityKind.campaign, owner_required=True),
}


def owner_of(entity: Entity) -> uuid.UUID | None:
    if entity.party is None:
        return None
    return party_ref_identity(entity.party)


def classify(owner: uuid.UUID | None, caller: uuid.UUID) -> OwnershipState:
    if owner is None:
        return OwnershipState.unlinked
    if owner == caller:
        return OwnershipState.linked_self
    return OwnershipState.linked_other


def assert_linked_self(label: str, owner: uuid.UUID | None, caller: uuid.UUID) -> None:
    state = classify(owner, caller)
    if state is OwnershipState.unlinked:
        raise Forbidden(f"{label} not linked to a Party")
    if state is OwnershipState.linked_other:
        raise Forbidden(f"{label} not linked to acting Party")


def as_owner(party: PartyRef | None, owner: uuid.UUID) -> PartyRef:
    """
    Canonical owner reference for `owner`, keeping any inline Party fields.
    A derived owner is inline: its Party is created alongside the entity if missing.
    """

    if party is None:
        return PartyRef(id=str(owner), auth_id=str(owner), inline=True)
    auth_id = str(owner) if (party.inline or party.auth_id) else None
    return replace(party, id=str(owner), auth_id=auth_id)


class OwnershipGuard:
    """
    Ownership rules for one owned kind (Thing, Datastream, MultiDatastream,
    ObservationGroup, Campaign).

    Admins bypass the ownership dimension entirely; only the syntax of an owner
    reference they supply is checked.
    """

    def __init__(self, owned: OwnedKind) -> None:
        self.owned = owned

    def before_create(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership:
            return entity
        caller = ctx.caller_party_id()
        if ctx.is_admin:
            owner_of(entity)
            return entity

        if entity.party is None:
            if self.owned.owner_required:
                raise InvalidArgument(f"{self.owned.label} must have a Party")
            return self._link(entity, caller)

        declared = owner_of(entity)
        if declared is not None and declared != caller:
            raise InvalidArgument(
                f"{self.owned.label} Party must represent the acting caller or be omitted"
            )
        return self._link(entity, caller)

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership:
            return entity
        if ctx.is_admin:
            owner_of(entity)
            return entity
        caller = ctx.caller_party_id()

        current = load_existing(ctx.loader, self.owned.kind, entity.id)
        state = classify(owner_of(current), caller)
        requested = owner_of(entity)

        if state is OwnershipState.unlinked:
            if entity.party is None:
                raise Forbidden(f"{self.owned.label} not linked to a Party")
            if requested is not None and requested != caller:
                raise InvalidArgument(
                    f"{self.owned.label} Party must represent the acting caller or be omitted"
                )
            return self._link(entity, caller)

        if state is OwnershipState.linked_other:
            raise Forbidden(f"{self.owned.label} not linked to acting Party")

        if entity.party is None:
            return entity
        if requested is None or requested == caller:
            return replace(entity, party=as_owner(entity.party, caller))

        if not ctx.config.transfer_ownership_enabled:
            raise Forbidden(f"Transfer of ownership of {self.owned.label} is not allowed")
        log.info(
            "policy.ownership_transfer",
            kind=self.owned.label,
            entity_id=entity.id,
            from_party=str(caller),
            to_party=str(requested),
        )
        return replace(entity, party=as_owner(entity.party, requested))

    def before_delete(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        current = load_existing(ctx.loader, self.owned.kind, entity.id)
        assert_linked_self(self.owned.label, owner_of(current), caller)
        return entity

    def _link(self, entity: Entity, caller: uuid.UUID) -> Entity:
        if entity.party is None:
            log.info("policy.owner_derived", kind=self.owned.label, party_id=str(caller))
        return replace(entity, party=as_owner(entity.party, caller))


def stream_of(observation: Entity) -> tuple[EntityKind, Entity] | None:
    if observation.datastream is not None:
        return EntityKind.datastream, observation.datastream
    if observation.multi_datastream is not None:
        return EntityKind.multi_datastream, observation.multi_datastream
    return None


def _assert_stream_owned(
    ctx: GuardContext, kind: EntityKind, stream: Entity, caller: uuid.UUID
) -> None:
    if stream.id is not None:
        stream = load_existing(ctx.loader, kind, stream.id)
        owner = owner_of(stream)
    else:
        # Inline stream created with the request; its own create guard links it to the caller.
        owner = owner_of(stream) or caller
    assert_linked_self(kind.value, owner, caller)


def assert_observation_owned(
    ctx: GuardContext,
    caller: uuid.UUID,
    persisted: Entity | None,
    requested: Entity | None = None,
) -> None:
    """
    The persisted Datastream/MultiDatastream of the Observation, and any newly
    referenced one, must be owned by the caller.
    """

    links = [stream_of(obs) for obs in (persisted, requested) if obs is not None]
    links = [link for link in links if link is not None]
    if not links:
        raise Forbidden("Observation not linked to a Datastream or MultiDatastream")
    for kind, stream in links:
        _assert_stream_owned(ctx, kind, stream, caller)


class ObservationOwnershipGuard:
    """
    Observations carry no owner; updates and deletes are gated on the owner of
    their Datastream/MultiDatastream. Creation is governed by the stream's own guard.
    """

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        persisted = load_existing(ctx.loader, EntityKind.observation, entity.id)
        assert_observation_owned(ctx, caller, persisted, entity)
        return entity

    def before_delete(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        persisted = load_existing(ctx.loader, EntityKind.observation, entity.id)
        assert_observation_owned(ctx, caller, persisted)
        return entity


# --- Module Notes -----------------------------------------------------------
# The guard runs inside the host's write transaction; "load then decide" is only
# race-free because the host loader takes row locks for update/delete.
