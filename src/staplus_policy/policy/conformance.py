"""
staplus_policy.policy.conformance

Conformance classes advertised by the service.
"""

from __future__ import annotations

from staplus_policy.policy.context import PolicyConfig

CORE_CLASSES: tuple[str, ...] = (
    "http://www.opengis.net/spec/sensorthings-staplus/1.0/conf/core",
    "http://www.opengis.net/spec/sensorthings-staplus/1.0/conf/create",
    "http://www.opengis.net/spec/sensorthings-staplus/1.0/conf/update",
    "http://www.opengis.net/spec/sensorthings-staplus/1.0/conf/delete",
    "https://github.com/securedimensions/FROST-Server-PLUS/BUSINESS-LOGIC.md",
)

ENFORCE_OWNERSHIP = "https://github.com/securedimensions/FROST-Server-PLUS#EnforceOwnership"
ENFORCE_LICENSING = "https://github.com/securedimensions/FROST-Server-PLUS#EnforceLicensing"
ENFORCE_GROUP_LICENSING = (
    "https://github.com/securedimensions/FROST-Server-PLUS#EnforceGroupLicensing"
)


def conformance_classes(config: PolicyConfig) -> list[str]:
    classes = list(CORE_CLASSES)
    if config.enforce_ownership:
        classes.append(ENFORCE_OWNERSHIP)
    if config.enforce_licensing:
        classes.append(ENFORCE_LICENSING)
    if config.enforce_group_licensing:
        classes.append(ENFORCE_GROUP_LICENSING)
    return classes
