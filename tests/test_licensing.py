"""
tests.test_licensing

License compatibility between Datastreams/MultiDatastreams and the
ObservationGroups/Campaigns they join.
"""

from __future__ import annotations

import pytest

from staplus_policy.policy.errors import InvalidArgument
from staplus_policy.policy.licenses import CC_BY, CC_BY_NC, CC_BY_ND, CC_BY_SA, CC_PD
from staplus_policy.policy.model import Entity, EntityKind, LicenseRef, ref


def _licensed(kind: EntityKind, id: str, license_id: str | None) -> Entity:
    license = LicenseRef(id=license_id) if license_id is not None else None
    return Entity(kind=kind, id=id, license=license)


@pytest.fixture
def catalog(loader):
    loader.put(_licensed(EntityKind.datastream, "ds-nd", CC_BY_ND))
    loader.put(_licensed(EntityKind.datastream, "ds-pd", CC_PD))
    loader.put(_licensed(EntityKind.datastream, "ds-by", CC_BY))
    loader.put(_licensed(EntityKind.multi_datastream, "mds-nd", CC_BY_ND))
    loader.put(_licensed(EntityKind.observation_group, "g-by", CC_BY))
    loader.put(_licensed(EntityKind.observation_group, "g-none", None))
    loader.put(_licensed(EntityKind.campaign, "c-pd", CC_PD))
    loader.put(_licensed(EntityKind.campaign, "c-by", CC_BY))
    return loader


def _observation(stream: Entity, *groups: str) -> Entity:
    linked = {"datastream": stream}
    if stream.kind is EntityKind.multi_datastream:
        linked = {"multi_datastream": stream}
    return Entity(
        kind=EntityKind.observation,
        groups=tuple(ref(EntityKind.observation_group, g) for g in groups),
        **linked,
    )


def _persisted_observation(id: str, datastream_id: str) -> Entity:
    return Entity(
        kind=EntityKind.observation, id=id, datastream=ref(EntityKind.datastream, datastream_id)
    )


def test_observation_in_incompatible_group(licensing_engine, catalog) -> None:
    payload = _observation(ref(EntityKind.datastream, "ds-nd"), "g-by")
    with pytest.raises(InvalidArgument) as exc:
        licensing_engine.create(payload, principal=None, loader=catalog)
    assert exc.value.message == (
        "License 'CC_BY_ND' of Datastream is not compatible with "
        "License 'CC_BY' of ObservationGroup"
    )


def test_public_domain_observation_joins_the_same_group(licensing_engine, catalog) -> None:
    payload = _observation(ref(EntityKind.datastream, "ds-pd"), "g-by")
    assert licensing_engine.create(payload, principal=None, loader=catalog) == payload


def test_multi_datastream_is_named_in_the_error(licensing_engine, catalog) -> None:
    payload = _observation(ref(EntityKind.multi_datastream, "mds-nd"), "g-by")
    with pytest.raises(InvalidArgument, match="of MultiDatastream is not compatible"):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_group_without_license_accepts_anything(licensing_engine, catalog) -> None:
    payload = _observation(ref(EntityKind.datastream, "ds-nd"), "g-none")
    licensing_engine.create(payload, principal=None, loader=catalog)


def test_inline_group_license_is_checked(licensing_engine, catalog) -> None:
    group = Entity(kind=EntityKind.observation_group, license=LicenseRef(id=CC_BY, inline=True))
    payload = Entity(
        kind=EntityKind.observation, datastream=ref(EntityKind.datastream, "ds-nd"), groups=(group,)
    )
    with pytest.raises(InvalidArgument):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_license_ids_are_case_insensitive(licensing_engine, catalog) -> None:
    catalog.put(_licensed(EntityKind.datastream, "ds-lower", "cc_by_nd"))
    payload = _observation(ref(EntityKind.datastream, "ds-lower"), "g-by")
    with pytest.raises(InvalidArgument):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_missing_group_is_invalid(licensing_engine, catalog) -> None:
    payload = _observation(ref(EntityKind.datastream, "ds-pd"), "g-missing")
    with pytest.raises(InvalidArgument, match="ObservationGroup does not exist"):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_admins_are_not_exempt(licensing_engine, catalog, admin) -> None:
    payload = _observation(ref(EntityKind.datastream, "ds-nd"), "g-by")
    with pytest.raises(InvalidArgument):
        licensing_engine.create(payload, principal=admin, loader=catalog)


@pytest.mark.parametrize(
    "switches",
    [
        {},
        {"enforce_licensing": True},
        {"enforce_group_licensing": True},
    ],
)
def test_both_switches_are_needed(make_engine, catalog, switches) -> None:
    engine = make_engine(**switches)
    payload = _observation(ref(EntityKind.datastream, "ds-nd"), "g-by")
    assert engine.create(payload, principal=None, loader=catalog) == payload


def test_observation_update_uses_persisted_stream(licensing_engine, catalog) -> None:
    catalog.put(_persisted_observation("obs-1", "ds-nd"))
    payload = Entity(
        kind=EntityKind.observation,
        id="obs-1",
        groups=(ref(EntityKind.observation_group, "g-by"),),
    )
    with pytest.raises(InvalidArgument):
        licensing_engine.update(payload, principal=None, loader=catalog)


def test_group_created_with_incompatible_observations(licensing_engine, catalog) -> None:
    catalog.put(_licensed(EntityKind.datastream, "ds-nc", CC_BY_NC))
    catalog.put(_persisted_observation("obs-nc", "ds-nc"))
    payload = Entity(
        kind=EntityKind.observation_group,
        license=LicenseRef(id=CC_BY_SA),
        observations=(ref(EntityKind.observation, "obs-nc"),),
    )
    with pytest.raises(InvalidArgument, match="'CC_BY_NC' of Datastream"):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_group_license_change_is_checked_against_members(licensing_engine, catalog) -> None:
    catalog.put(_persisted_observation("obs-by", "ds-by"))
    payload = Entity(
        kind=EntityKind.observation_group,
        id="g-by",
        license=LicenseRef(id=CC_PD),
        observations=(ref(EntityKind.observation, "obs-by"),),
    )
    with pytest.raises(InvalidArgument):
        licensing_engine.update(payload, principal=None, loader=catalog)


def test_campaign_created_with_incompatible_datastream(licensing_engine, catalog) -> None:
    catalog.put(_licensed(EntityKind.datastream, "ds-sa", CC_BY_SA))
    payload = Entity(
        kind=EntityKind.campaign,
        license=LicenseRef(id=CC_BY_NC),
        datastreams=(ref(EntityKind.datastream, "ds-sa"),),
    )
    with pytest.raises(InvalidArgument, match="of Campaign"):
        licensing_engine.create(payload, principal=None, loader=catalog)


def test_campaign_with_compatible_members(licensing_engine, catalog) -> None:
    payload = Entity(
        kind=EntityKind.campaign,
        license=LicenseRef(id=CC_BY),
        datastreams=(ref(EntityKind.datastream, "ds-pd"), ref(EntityKind.datastream, "ds-by")),
    )
    licensing_engine.create(payload, principal=None, loader=catalog)


def test_datastream_joining_campaign(licensing_engine, catalog) -> None:
    joins_pd = Entity(
        kind=EntityKind.datastream, id="ds-by", campaigns=(ref(EntityKind.campaign, "c-pd"),)
    )
    with pytest.raises(InvalidArgument, match="'CC_BY' of Datastream"):
        licensing_engine.update(joins_pd, principal=None, loader=catalog)

    joins_by = Entity(
        kind=EntityKind.datastream, id="ds-by", campaigns=(ref(EntityKind.campaign, "c-by"),)
    )
    licensing_engine.update(joins_by, principal=None, loader=catalog)


def test_new_multi_datastream_uses_payload_license(licensing_engine, catalog) -> None:
    payload = Entity(
        kind=EntityKind.multi_datastream,
        license=LicenseRef(id=CC_BY_ND),
        campaigns=(ref(EntityKind.campaign, "c-by"),),
    )
    with pytest.raises(InvalidArgument, match="of MultiDatastream"):
        licensing_engine.create(payload, principal=None, loader=catalog)


# --- License changes against stored links ----------------------------------


def test_datastream_license_change_is_checked_against_its_campaigns(
    licensing_engine, catalog, admin
) -> None:
    catalog.put(
        Entity(
            kind=EntityKind.datastream,
            id="ds-in-campaign",
            license=LicenseRef(id=CC_BY),
            campaigns=(ref(EntityKind.campaign, "c-by"),),
        )
    )
    payload = Entity(
        kind=EntityKind.datastream, id="ds-in-campaign", license=LicenseRef(id=CC_BY_ND)
    )
    with pytest.raises(InvalidArgument, match="'CC_BY_ND' of Datastream .* 'CC_BY' of Campaign"):
        licensing_engine.update(payload, principal=admin, loader=catalog)

    relaxed = Entity(kind=EntityKind.datastream, id="ds-in-campaign", license=LicenseRef(id=CC_PD))
    assert licensing_engine.update(relaxed, principal=admin, loader=catalog) == relaxed


def test_datastream_license_change_is_checked_against_grouped_observations(
    licensing_engine, catalog, admin
) -> None:
    catalog.put(
        Entity(
            kind=EntityKind.observation,
            id="obs-grouped",
            datastream=ref(EntityKind.datastream, "ds-by"),
            groups=(ref(EntityKind.observation_group, "g-by"),),
        )
    )
    payload = Entity(kind=EntityKind.datastream, id="ds-by", license=LicenseRef(id=CC_BY_ND))
    with pytest.raises(InvalidArgument, match="of ObservationGroup"):
        licensing_engine.update(payload, principal=admin, loader=catalog)


def test_moving_grouped_observation_to_incompatible_stream(
    licensing_engine, catalog, admin
) -> None:
    catalog.put(
        Entity(
            kind=EntityKind.observation,
            id="obs-1",
            datastream=ref(EntityKind.datastream, "ds-pd"),
            groups=(ref(EntityKind.observation_group, "g-by"),),
        )
    )
    moved = Entity(
        kind=EntityKind.observation, id="obs-1", datastream=ref(EntityKind.datastream, "ds-nd")
    )
    with pytest.raises(InvalidArgument, match="'CC_BY_ND' of Datastream"):
        licensing_engine.update(moved, principal=admin, loader=catalog)

    renamed = Entity(kind=EntityKind.observation, id="obs-1", properties={"result": 3})
    assert licensing_engine.update(renamed, principal=admin, loader=catalog) == renamed


def test_group_license_change_is_checked_against_stored_members(
    licensing_engine, catalog, admin
) -> None:
    catalog.put(_persisted_observation("obs-by", "ds-by"))
    catalog.put(
        Entity(
            kind=EntityKind.observation_group,
            id="g-populated",
            license=LicenseRef(id=CC_BY),
            observations=(ref(EntityKind.observation, "obs-by"),),
        )
    )
    payload = Entity(
        kind=EntityKind.observation_group, id="g-populated", license=LicenseRef(id=CC_PD)
    )
    expected = "'CC_BY' of Datastream .* 'CC_PD' of ObservationGroup"
    with pytest.raises(InvalidArgument, match=expected):
        licensing_engine.update(payload, principal=admin, loader=catalog)


def test_campaign_license_change_is_checked_against_stored_members(
    licensing_engine, catalog, admin
) -> None:
    catalog.put(
        Entity(
            kind=EntityKind.campaign,
            id="c-populated",
            license=LicenseRef(id=CC_BY),
            datastreams=(ref(EntityKind.datastream, "ds-by"),),
            multi_datastreams=(ref(EntityKind.multi_datastream, "mds-nd"),),
        )
    )
    payload = Entity(kind=EntityKind.campaign, id="c-populated", license=LicenseRef(id=CC_BY_SA))
    with pytest.raises(InvalidArgument, match="of MultiDatastream"):
        licensing_engine.update(payload, principal=admin, loader=catalog)


# --- Populated entities -------------------------------------------------------


@pytest.fixture
def populated(catalog):
    catalog.put(_persisted_observation("obs-pd", "ds-pd"))
    catalog.put(
        Entity(
            kind=EntityKind.observation,
            id="obs-mds",
            multi_datastream=ref(EntityKind.multi_datastream, "mds-nd"),
        )
    )
    catalog.put(
        Entity(
            kind=EntityKind.observation_group,
            id="g-full",
            observations=(ref(EntityKind.observation, "obs-pd"),),
        )
    )
    catalog.put(
        Entity(
            kind=EntityKind.campaign,
            id="c-full",
            datastreams=(ref(EntityKind.datastream, "ds-pd"),),
        )
    )
    catalog.put(
        Entity(
            kind=EntityKind.campaign,
            id="c-mds",
            multi_datastreams=(ref(EntityKind.multi_datastream, "mds-nd"),),
        )
    )
    return catalog


@pytest.mark.parametrize(
    ("kind", "id", "message"),
    [
        (EntityKind.datastream, "ds-pd", "Datastream already contains Observations"),
        (EntityKind.multi_datastream, "mds-nd", "MultiDatastream already contains Observations"),
        (EntityKind.observation_group, "g-full", "ObservationGroup already contains Observations"),
        (EntityKind.campaign, "c-full", "Campaign already contains Datastreams"),
        (EntityKind.campaign, "c-mds", "Campaign already contains MultiDatastreams"),
    ],
)
def test_populated_entities_are_frozen_for_users(
    licensing_engine, populated, alice, admin, kind, id, message
) -> None:
    payload = Entity(kind=kind, id=id, properties={"name": "renamed"})
    with pytest.raises(InvalidArgument) as exc:
        licensing_engine.update(payload, principal=alice, loader=populated)
    assert exc.value.message == message

    assert licensing_engine.update(payload, principal=admin, loader=populated) == payload


def test_empty_entities_stay_editable(licensing_engine, populated, alice) -> None:
    payload = Entity(kind=EntityKind.datastream, id="ds-by", properties={"name": "renamed"})
    assert licensing_engine.update(payload, principal=alice, loader=populated) == payload


def test_populated_entities_are_editable_without_licensing(make_engine, populated, alice) -> None:
    payload = Entity(kind=EntityKind.datastream, id="ds-pd", properties={"name": "renamed"})
    engine = make_engine(enforce_group_licensing=True)
    assert engine.update(payload, principal=alice, loader=populated) == payload
