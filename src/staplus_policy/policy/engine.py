"""
staplus_policy.policy.engine

Guard registry and evaluation.

Responsibilities:
- Map (entity kind, lifecycle point) to an ordered tuple of guards.
- Run guards in order, threading the (possibly amended) payload through them.
- Log denials with enough context to audit them.
"""

from __future__ import annotations

from staplus_policy.auth.models import Principal
from staplus_policy.observability.logging import get_logger
from staplus_policy.policy.context import GuardContext, GuardFunction, PolicyConfig
from staplus_policy.policy.errors import PolicyError
from staplus_policy.policy.licensing import (
    LicensingGuard,
    PopulatedEntityGuard,
    ReservedLicenseIdGuard,
)
from staplus_policy.policy.loader import EntityLoader
from staplus_policy.policy.model import Entity, EntityKind, LifecyclePoint
from staplus_policy.policy.ownership import (
    OWNED_KINDS,
    ObservationOwnershipGuard,
    OwnershipGuard,
)
from staplus_policy.policy.party import PartyGuard
from staplus_policy.policy.relations import RelationOwnershipGuard, check_relation_shape

log = get_logger(__name__)


class PolicyEngine:
    """
    Evaluates the guards registered for a kind at a lifecycle point.

    The first failing guard aborts the chain; its error is re-raised unchanged.
    A kind/point with no guards accepts the payload as-is.
    """

    def __init__(self, config: PolicyConfig) -> None:
        self.config = config
        self._guards: dict[tuple[EntityKind, LifecyclePoint], tuple[GuardFunction, ...]] = {}

    def register(self, kind: EntityKind, point: LifecyclePoint, *guards: GuardFunction) -> None:
        key = (kind, point)
        self._guards[key] = self._guards.get(key, ()) + guards

    def guards_for(self, kind: EntityKind, point: LifecyclePoint) -> tuple[GuardFunction, ...]:
        return self._guards.get((kind, point), ())

    def evaluate(
        self,
        kind: EntityKind,
        point: LifecyclePoint,
        *,
        principal: Principal | None,
        payload: Entity,
        loader: EntityLoader,
    ) -> Entity:
        ctx = GuardContext(principal=principal, loader=loader, config=self.config)
        entity = payload
        try:
            for guard in self.guards_for(kind, point):
                entity = guard(ctx, entity)
        except PolicyError as e:
            log.info(
                "policy.denied",
                kind=kind.value,
                point=point.value,
                entity_id=payload.id,
                principal=principal.identity if principal is not None else None,
                error_kind=e.kind.value,
                reason=e.message,
            )
            raise
        return entity

    def create(
        self, payload: Entity, *, principal: Principal | None, loader: EntityLoader
    ) -> Entity:
        """
        Both create points in order: identity/ownership first, then licensing on the
        amended payload.
        """

        entity = self.evaluate(
            payload.kind,
            LifecyclePoint.before_create,
            principal=principal,
            payload=payload,
            loader=loader,
        )
        return self.evaluate(
            payload.kind,
            LifecyclePoint.create_validated,
            principal=principal,
            payload=entity,
            loader=loader,
        )

    def update(
        self, payload: Entity, *, principal: Principal | None, loader: EntityLoader
    ) -> Entity:
        return self.evaluate(
            payload.kind,
            LifecyclePoint.before_update,
            principal=principal,
            payload=payload,
            loader=loader,
        )

    def delete(
        self, payload: Entity, *, principal: Principal | None, loader: EntityLoader
    ) -> Entity:
        return self.evaluate(
            payload.kind,
            LifecyclePoint.before_delete,
            principal=principal,
            payload=payload,
            loader=loader,
        )


def build_engine(config: PolicyConfig) -> PolicyEngine:
    """
    Engine with every guard registered. The switches are read by the guards at
    evaluation time, so registration does not depend on them.
    """

    engine = PolicyEngine(config)
    create, validated = LifecyclePoint.before_create, LifecyclePoint.create_validated
    update, delete = LifecyclePoint.before_update, LifecyclePoint.before_delete

    for kind, owned in OWNED_KINDS.items():
        guard = OwnershipGuard(owned)
        engine.register(kind, create, guard.before_create)
        engine.register(kind, update, guard.before_update)
        engine.register(kind, delete, guard.before_delete)

    party = PartyGuard()
    engine.register(EntityKind.party, create, party.before_create)
    engine.register(EntityKind.party, update, party.before_update)
    engine.register(EntityKind.party, delete, party.before_delete)

    reserved = ReservedLicenseIdGuard()
    engine.register(EntityKind.license, create, reserved.before_create)
    engine.register(EntityKind.license, update, reserved.before_update)
    engine.register(EntityKind.license, delete, reserved.before_delete)

    observation = ObservationOwnershipGuard()
    engine.register(EntityKind.observation, update, observation.before_update)
    engine.register(EntityKind.observation, delete, observation.before_delete)

    relation = RelationOwnershipGuard()
    engine.register(EntityKind.relation, create, check_relation_shape, relation.before_create)
    engine.register(EntityKind.relation, update, relation.before_update)
    engine.register(EntityKind.relation, delete, relation.before_delete)

    populated = PopulatedEntityGuard()
    for kind in (
        EntityKind.datastream,
        EntityKind.multi_datastream,
        EntityKind.observation_group,
        EntityKind.campaign,
    ):
        engine.register(kind, update, populated.before_update)

    licensing = LicensingGuard()
    for point in (validated, update):
        engine.register(EntityKind.observation, point, licensing.observation)
        engine.register(EntityKind.observation_group, point, licensing.observation_group)
        engine.register(EntityKind.datastream, point, licensing.stream(EntityKind.datastream))
        engine.register(
            EntityKind.multi_datastream, point, licensing.stream(EntityKind.multi_datastream)
        )
        engine.register(EntityKind.campaign, point, licensing.campaign)

    return engine


# --- Module Notes -----------------------------------------------------------
# Ownership guards are registered before licensing guards on update, so an
# unauthorized caller learns nothing about license compatibility.
