"""
staplus_policy.policy

Ownership & licensing policy engine.

Responsibilities:
- Resolve caller identities to canonical Party ids.
- Evaluate per-entity-kind guards at create/update/delete time.
- Enforce the license compatibility relation and reserved License ids.
"""

from staplus_policy.policy.engine import PolicyEngine, build_engine
from staplus_policy.policy.errors import Forbidden, InvalidArgument, PolicyError, Unauthenticated
from staplus_policy.policy.model import Entity, EntityKind, LicenseRef, LifecyclePoint, PartyRef

__all__ = [
    "Entity",
    "EntityKind",
    "Forbidden",
    "InvalidArgument",
    "LicenseRef",
    "LifecyclePoint",
    "PartyRef",
    "PolicyEngine",
    "PolicyError",
    "Unauthenticated",
    "build_engine",
]


# --- Module Notes -----------------------------------------------------------
# The engine has no dependency on FastAPI or SQLAlchemy; hosts plug in through
# `EntityLoader` and `PolicyConfig`.
