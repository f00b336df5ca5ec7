"""
staplus_policy.policy.licensing

License guards.

Responsibilities:
- Check Datastream/MultiDatastream licenses against the ObservationGroup or
  Campaign they are associated with (`LicensingGuard`).
- Freeze populated Datastreams, MultiDatastreams, ObservationGroups and Campaigns
  against non-admin updates (`PopulatedEntityGuard`).
- Protect the reserved License ids (`ReservedLicenseIdGuard`).
"""

from __future__ import annotations

from staplus_policy.policy.context import GuardContext
from staplus_policy.policy.errors import Forbidden, InvalidArgument
from staplus_policy.policy.licenses import compatible, is_reserved
from staplus_policy.policy.loader import load_existing
from staplus_policy.policy.model import Entity, EntityKind
from staplus_policy.policy.ownership import stream_of


def license_id_of(ctx: GuardContext, kind: EntityKind, entity: Entity) -> str | None:
    """
    License id declared in the payload, else the persisted one. A missing license
    (or a new inline License without id) yields None.
    """

    if entity.license is not None:
        return entity.license.id
    if entity.id is None:
        return None
    persisted = load_existing(ctx.loader, kind, entity.id)
    return persisted.license.id if persisted.license is not None else None


def observation_stream_license(
    ctx: GuardContext, observation: Entity
) -> tuple[EntityKind, str | None]:
    linked = stream_of(observation)
    if linked is None and observation.id is not None:
        persisted = ctx.loader.get(EntityKind.observation, observation.id)
        linked = stream_of(persisted) if persisted is not None else None
    if linked is None:
        return EntityKind.datastream, None
    kind, stream = linked
    return kind, license_id_of(ctx, kind, stream)


def assert_compatible(
    stream_kind: EntityKind,
    stream_license: str | None,
    group_kind: EntityKind,
    group_license: str | None,
) -> None:
    if not compatible(stream_license, group_license):
        raise InvalidArgument(
            f"License '{stream_license}' of {stream_kind.value} is not compatible with "
            f"License '{group_license}' of {group_kind.value}"
        )


def persisted_of(ctx: GuardContext, kind: EntityKind, entity: Entity) -> Entity | None:
    # None for a payload that is not (yet) stored.
    if entity.id is None:
        return None
    return ctx.loader.get(kind, entity.id)


class LicensingGuard:
    """
    Runs only while both licensing switches are on. Admins are not exempt:
    license compatibility is input validity, not ownership.

    Links in the payload are checked against the payload's (or persisted) license.
    A payload that changes a license, or re-points an Observation to another
    stream, is also checked against the links already stored.
    """

    def observation(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.group_licensing_active:
            return entity
        groups = entity.groups
        if not groups and stream_of(entity) is not None:
            persisted = persisted_of(ctx, EntityKind.observation, entity)
            groups = persisted.groups if persisted is not None else ()
        if not groups:
            return entity
        stream_kind, stream_license = observation_stream_license(ctx, entity)
        for group in groups:
            group_license = license_id_of(ctx, EntityKind.observation_group, group)
            assert_compatible(
                stream_kind, stream_license, EntityKind.observation_group, group_license
            )
        return entity

    def observation_group(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.group_licensing_active:
            return entity
        observations = entity.observations
        if not observations and entity.license is not None:
            persisted = persisted_of(ctx, EntityKind.observation_group, entity)
            observations = persisted.observations if persisted is not None else ()
        if not observations:
            return entity
        group_license = license_id_of(ctx, EntityKind.observation_group, entity)
        for observation in observations:
            stream_kind, stream_license = observation_stream_license(ctx, observation)
            assert_compatible(
                stream_kind, stream_license, EntityKind.observation_group, group_license
            )
        return entity

    def stream(self, kind: EntityKind):
        def _guard(ctx: GuardContext, entity: Entity) -> Entity:
            if not ctx.config.group_licensing_active:
                return entity
            campaigns = entity.campaigns
            observations: tuple[Entity, ...] = ()
            if entity.license is not None:
                persisted = persisted_of(ctx, kind, entity)
                if persisted is not None:
                    campaigns = campaigns or persisted.campaigns
                    observations = ctx.loader.observations_of(kind, entity.id)
            if not campaigns and not observations:
                return entity

            stream_license = license_id_of(ctx, kind, entity)
            for campaign in campaigns:
                campaign_license = license_id_of(ctx, EntityKind.campaign, campaign)
                assert_compatible(kind, stream_license, EntityKind.campaign, campaign_license)
            for observation in observations:
                for group in observation.groups:
                    group_license = license_id_of(ctx, EntityKind.observation_group, group)
                    assert_compatible(
                        kind, stream_license, EntityKind.observation_group, group_license
                    )
            return entity

        return _guard

    def campaign(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.group_licensing_active:
            return entity
        datastreams, multi_datastreams = entity.datastreams, entity.multi_datastreams
        if not datastreams and not multi_datastreams and entity.license is not None:
            persisted = persisted_of(ctx, EntityKind.campaign, entity)
            if persisted is not None:
                datastreams = persisted.datastreams
                multi_datastreams = persisted.multi_datastreams
        members = [(EntityKind.datastream, ds) for ds in datastreams]
        members += [(EntityKind.multi_datastream, mds) for mds in multi_datastreams]
        if not members:
            return entity
        campaign_license = license_id_of(ctx, EntityKind.campaign, entity)
        for kind, stream in members:
            stream_license = license_id_of(ctx, kind, stream)
            assert_compatible(kind, stream_license, EntityKind.campaign, campaign_license)
        return entity


class PopulatedEntityGuard:
    """
    While licensing is enforced, non-admins may not update a Datastream,
    MultiDatastream or ObservationGroup that already contains Observations, nor a
    Campaign that already contains Datastreams or MultiDatastreams.
    """

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_licensing or ctx.is_admin:
            return entity
        persisted = load_existing(ctx.loader, entity.kind, entity.id)

        if entity.kind in (EntityKind.datastream, EntityKind.multi_datastream):
            if ctx.loader.observations_of(entity.kind, persisted.id, limit=1):
                raise InvalidArgument(f"{entity.label} already contains Observations")
        elif entity.kind is EntityKind.observation_group:
            if persisted.observations:
                raise InvalidArgument(f"{entity.label} already contains Observations")
        elif entity.kind is EntityKind.campaign:
            if persisted.datastreams:
                raise InvalidArgument("Campaign already contains Datastreams")
            if persisted.multi_datastreams:
                raise InvalidArgument("Campaign already contains MultiDatastreams")
        return entity


class ReservedLicenseIdGuard:
    """
    The seven Creative Commons Licenses are seed data: nobody may create, update or
    delete them while licensing is enforced. Other Licenses may only be deleted by admins.
    """

    def before_create(self, ctx: GuardContext, entity: Entity) -> Entity:
        if ctx.config.enforce_licensing and is_reserved(entity.id):
            raise Forbidden("License with this id cannot be created")
        return entity

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if ctx.config.enforce_licensing and is_reserved(entity.id):
            raise Forbidden("License with this id cannot be updated")
        return entity

    def before_delete(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_licensing:
            return entity
        if is_reserved(entity.id):
            raise Forbidden("License with this id cannot be deleted")
        if not ctx.is_admin:
            ctx.caller_party_id()
            raise Forbidden("License cannot be deleted")
        return entity
