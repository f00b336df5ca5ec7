"""
tests.test_licenses

License compatibility relation and reserved License seed data.
"""

from __future__ import annotations

import pytest

from staplus_policy.policy.licenses import (
    CC_BY,
    CC_BY_NC,
    CC_BY_NC_ND,
    CC_BY_NC_SA,
    CC_BY_ND,
    CC_BY_SA,
    CC_PD,
    RESERVED_LICENSE_IDS,
    compatible,
    is_reserved,
    reserved_licenses,
)

COLUMNS = (CC_PD, CC_BY, CC_BY_SA, CC_BY_NC, CC_BY_ND, CC_BY_NC_SA, CC_BY_NC_ND)

# Datastream license -> one flag per Group/Campaign license in COLUMNS order.
TABLE = {
    CC_PD: (1, 1, 1, 1, 1, 1, 1),
    CC_BY: (0, 1, 1, 1, 0, 1, 0),
    CC_BY_SA: (0, 1, 1, 0, 0, 0, 0),
    CC_BY_NC: (0, 1, 0, 1, 0, 1, 0),
    CC_BY_ND: (0, 0, 0, 0, 0, 0, 0),
    CC_BY_NC_SA: (0, 1, 0, 1, 0, 1, 0),
    CC_BY_NC_ND: (0, 0, 0, 0, 0, 0, 0),
}


@pytest.mark.parametrize(
    ("datastream", "group", "expected"),
    [
        (row, column, bool(flag))
        for row, flags in TABLE.items()
        for column, flag in zip(COLUMNS, flags, strict=True)
    ],
)
def test_compatibility_table(datastream: str, group: str, expected: bool) -> None:
    assert compatible(datastream, group) is expected


def test_public_domain_joins_everything() -> None:
    assert all(compatible(CC_PD, x) for x in RESERVED_LICENSE_IDS)


def test_no_derivatives_joins_nothing() -> None:
    assert not any(compatible(CC_BY_ND, x) for x in RESERVED_LICENSE_IDS)


def test_relation_is_not_symmetric() -> None:
    assert compatible(CC_PD, CC_BY)
    assert not compatible(CC_BY, CC_PD)


@pytest.mark.parametrize(
    ("datastream", "group"),
    [("MY_LICENSE", CC_BY_ND), (CC_BY_ND, "MY_LICENSE"), (None, CC_BY), (CC_BY_ND, None)],
)
def test_custom_or_missing_license_is_compatible(datastream: str | None, group: str | None) -> None:
    assert compatible(datastream, group)


def test_ids_compare_case_insensitively() -> None:
    assert not compatible("cc_by_nd", "cc_by")
    assert is_reserved("cc_by")
    assert not is_reserved(None)


def test_seed_covers_reserved_ids_under_license_domain() -> None:
    seeded = reserved_licenses("https://licenses.example.org/")
    assert {lic.id for lic in seeded} == RESERVED_LICENSE_IDS
    by_id = {lic.id: lic for lic in seeded}
    assert by_id[CC_BY].definition == "https://licenses.example.org/licenses/by/3.0"
    assert all(lic.inline and lic.name and lic.logo for lic in seeded)
