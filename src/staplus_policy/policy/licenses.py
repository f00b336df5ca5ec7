"""
staplus_policy.policy.licenses

Reserved Creative Commons licenses and their compatibility relation.

Responsibilities:
- Name the reserved License ids.
- Answer `compatible(datastream_license, group_license)` from a fixed table.
- Provide the seed definitions for the reserved Licenses.
"""

from __future__ import annotations

from staplus_policy.policy.model import LicenseRef

CC_PD = "CC_PD"
CC_BY = "CC_BY"
CC_BY_SA = "CC_BY_SA"
CC_BY_NC = "CC_BY_NC"
CC_BY_ND = "CC_BY_ND"
CC_BY_NC_SA = "CC_BY_NC_SA"
CC_BY_NC_ND = "CC_BY_NC_ND"

RESERVED_LICENSE_IDS: frozenset[str] = frozenset(
    {CC_PD, CC_BY, CC_BY_SA, CC_BY_NC, CC_BY_ND, CC_BY_NC_SA, CC_BY_NC_ND}
)

# Row: Datastream/MultiDatastream license. Value: Group/Campaign licenses it may join.
# Taken as observed; no symmetry or transitivity is implied.
COMPATIBLE_GROUP_LICENSES: dict[str, frozenset[str]] = {
    CC_PD: RESERVED_LICENSE_IDS,
    CC_BY: frozenset({CC_BY, CC_BY_SA, CC_BY_NC, CC_BY_NC_SA}),
    CC_BY_SA: frozenset({CC_BY, CC_BY_SA}),
    CC_BY_NC: frozenset({CC_BY, CC_BY_NC, CC_BY_NC_SA}),
    CC_BY_ND: frozenset(),
    CC_BY_NC_SA: frozenset({CC_BY, CC_BY_NC, CC_BY_NC_SA}),
    CC_BY_NC_ND: frozenset(),
}


def normalize_license_id(license_id: str) -> str:
    return license_id.strip().upper()


def is_reserved(license_id: str | None) -> bool:
    return license_id is not None and normalize_license_id(license_id) in RESERVED_LICENSE_IDS


def compatible(datastream_license_id: str | None, group_license_id: str | None) -> bool:
    """
    Missing or custom license ids on either side never conflict.
    """

    if not datastream_license_id or not group_license_id:
        return True
    source = normalize_license_id(datastream_license_id)
    target = normalize_license_id(group_license_id)
    if source not in RESERVED_LICENSE_IDS or target not in RESERVED_LICENSE_IDS:
        return True
    return target in COMPATIBLE_GROUP_LICENSES[source]


_SEED: tuple[tuple[str, str, str, str, str], ...] = (
    # id, name, definition path, description, logo file
    (
        CC_PD,
        "CC_PD",
        "/publicdomain/zero/1.0/",
        "CC0 1.0 Universal (CC0 1.0) Public Domain Dedication",
        "cc-zero.png",
    ),
    (
        CC_BY,
        "CC BY 3.0",
        "/licenses/by/3.0",
        "The Creative Commons Attribution license",
        "by.png",
    ),
    (
        CC_BY_SA,
        "CC BY-SA 3.0",
        "/licenses/by-sa/3.0",
        "The Creative Commons Attribution & Share-alike license",
        "by-sa.png",
    ),
    (
        CC_BY_NC,
        "CC BY-NC 3.0",
        "/licenses/by-nc/3.0",
        "The Creative Commons Attribution & non-commercial license",
        "by-nc.png",
    ),
    (
        CC_BY_ND,
        "CC BY-ND 3.0",
        "/licenses/by-nd/3.0",
        "The Creative Commons Attribution & no-derivs license",
        "by-nd.png",
    ),
    (
        CC_BY_NC_SA,
        "CC BY-NC-SA 3.0",
        "/licenses/by-nc-sa/3.0/",
        "The Creative Commons Attribution & Share-alike non-commercial license",
        "by-nc-sa.png",
    ),
    (
        CC_BY_NC_ND,
        "CC BY-NC-ND 3.0",
        "/licenses/by-nc-nd/3.0/",
        "The Creative Commons Attribution & Share-alike non-commercial no-derivs license",
        "by-nc-nd.png",
    ),
)

_LOGO_BASE = "https://mirrors.creativecommons.org/presskit/buttons/88x31/png/"


def reserved_licenses(license_domain: str) -> list[LicenseRef]:
    domain = license_domain.rstrip("/")
    return [
        LicenseRef(
            id=license_id,
            inline=True,
            name=name,
            definition=f"{domain}{path}",
            description=description,
            logo=_LOGO_BASE + logo,
        )
        for license_id, name, path, description, logo in _SEED
    ]


# --- Module Notes -----------------------------------------------------------
# Every reserved id needs a row in COMPATIBLE_GROUP_LICENSES.
