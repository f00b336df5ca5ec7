"""
staplus_policy.policy.relations

Relation guards.

Responsibilities:
- Validate the Subject / Object / externalObject shape of a new Relation.
- Gate Relation mutations on the owner of the Subject Observation's Datastream.
- Require ObservationGroups linked at create time to be owned by the caller.
"""

from __future__ import annotations

import uuid

from staplus_policy.policy.context import GuardContext
from staplus_policy.policy.errors import InvalidArgument
from staplus_policy.policy.loader import load_existing
from staplus_policy.policy.model import Entity, EntityKind
from staplus_policy.policy.ownership import assert_linked_self, assert_observation_owned, owner_of


def check_relation_shape(ctx: GuardContext, entity: Entity) -> Entity:
    # Structural rules apply whether or not ownership is enforced.
    if entity.subject is None:
        raise InvalidArgument("A Relation must have a Subject")
    if entity.object is None and entity.external_object is None:
        raise InvalidArgument("A Relation must either have an Object or externalObject")
    if entity.object is not None and entity.external_object is not None:
        raise InvalidArgument("A Relation must not have an Object and externalObject")
    return entity


def _assert_subject_owned(ctx: GuardContext, subject: Entity, caller: uuid.UUID) -> None:
    persisted = None
    if subject.id is not None:
        persisted = load_existing(ctx.loader, EntityKind.observation, subject.id)
    assert_observation_owned(ctx, caller, persisted, subject)


def _assert_group_owned(ctx: GuardContext, group: Entity, caller: uuid.UUID) -> None:
    if group.id is not None:
        group = load_existing(ctx.loader, EntityKind.observation_group, group.id)
    assert_linked_self(EntityKind.observation_group.value, owner_of(group), caller)


class RelationOwnershipGuard:
    def before_create(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        if entity.subject is not None:
            _assert_subject_owned(ctx, entity.subject, caller)
        for group in entity.groups:
            _assert_group_owned(ctx, group, caller)
        return entity

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        persisted = load_existing(ctx.loader, EntityKind.relation, entity.id)
        if persisted.subject is not None:
            _assert_subject_owned(ctx, persisted.subject, caller)
        if entity.subject is not None:
            _assert_subject_owned(ctx, entity.subject, caller)
        return entity

    def before_delete(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        caller = ctx.caller_party_id()
        persisted = load_existing(ctx.loader, EntityKind.relation, entity.id)
        if persisted.subject is None:
            raise InvalidArgument("The Relation has no Subject")
        _assert_subject_owned(ctx, persisted.subject, caller)
        return entity


# --- Module Notes -----------------------------------------------------------
# Groups added to an existing Relation are not re-checked on update; only the
# Subject decides who may change a Relation.
