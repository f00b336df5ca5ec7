"""
staplus_policy.policy.context

Explicit per-call inputs for guard evaluation.

Responsibilities:
- Hold the policy switches read once at startup (`PolicyConfig`).
- Thread the caller and the storage loader through every guard (`GuardContext`).
"""

from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass

from staplus_policy.auth.models import Principal
from staplus_policy.policy import identity
from staplus_policy.policy.loader import EntityLoader
from staplus_policy.policy.model import Entity


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    enforce_ownership: bool = False
    enforce_licensing: bool = False
    enforce_group_licensing: bool = False
    transfer_ownership_enabled: bool = False
    license_domain: str = "https://creativecommons.org"

    @property
    def group_licensing_active(self) -> bool:
        # Group/Campaign compatibility needs both switches on.
        return self.enforce_licensing and self.enforce_group_licensing


@dataclass(frozen=True, slots=True)
class GuardContext:
    principal: Principal | None
    loader: EntityLoader
    config: PolicyConfig

    @property
    def is_admin(self) -> bool:
        return identity.is_admin(self.principal)

    def caller_party_id(self) -> uuid.UUID:
        # Raises Unauthenticated for anonymous callers.
        return identity.resolve(self.principal)


GuardFunction = Callable[[GuardContext, Entity], Entity]
