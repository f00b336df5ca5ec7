"""
staplus_policy.policy.identity

Caller identity → canonical Party id.

Responsibilities:
- Derive a stable Party id (UUID) from an external principal identity.
- Detect the admin capability.
- Resolve the identity a `PartyRef` points at.
"""

from __future__ import annotations

import hashlib
import uuid

from staplus_policy.auth.models import Principal
from staplus_policy.policy.errors import InvalidArgument, Unauthenticated
from staplus_policy.policy.model import PartyRef


def canonical_party_id(identity: str) -> uuid.UUID:
    """
    Identities in canonical UUID form (8-4-4-4-12 hex, any case) are used as-is;
    anything else, undashed or braced hex included, maps to a name-based
    (version 3) UUID over the UTF-8 bytes, without a namespace prefix.
    """

    try:
        parsed = uuid.UUID(identity)
    except ValueError:
        parsed = None
    if parsed is not None and str(parsed) == identity.lower():
        return parsed
    digest = hashlib.md5(identity.encode("utf-8")).digest()
    return uuid.UUID(bytes=digest, version=3)


def parse_party_id(value: str) -> uuid.UUID:
    # Party ids are UUIDs by invariant; no derivation here.
    try:
        return uuid.UUID(value)
    except ValueError as e:
        raise InvalidArgument(f"Party id '{value}' is not a valid UUID") from e


def is_admin(principal: Principal | None) -> bool:
    return principal is not None and principal.is_admin


def require_principal(principal: Principal | None) -> Principal:
    if principal is None:
        raise Unauthenticated("Authentication required")
    return principal


def resolve(principal: Principal | None) -> uuid.UUID:
    return canonical_party_id(require_principal(principal).identity)


def party_ref_identity(party: PartyRef) -> uuid.UUID | None:
    """
    Identity of the Party a reference designates.

    Returns None for an inline Party that carries neither `auth_id` nor `id`.
    """

    by_auth = canonical_party_id(party.auth_id) if party.auth_id else None
    by_id = parse_party_id(party.id) if party.id else None
    if by_auth is not None and by_id is not None and by_auth != by_id:
        raise InvalidArgument("Party 'id' and 'authId' must designate the same Party")
    return by_auth or by_id


# --- Module Notes -----------------------------------------------------------
# Changing the derivation re-keys every Party created from a non-UUID username.
