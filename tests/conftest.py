"""
tests.conftest

Shared fixtures.

Responsibilities:
- Callers (anonymous / alice / bob / admin) and their Party ids.
- Engine factory over `PolicyConfig` switches.
- In-memory loader for pure guard tests.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from staplus_policy.auth.models import Principal
from staplus_policy.policy.context import PolicyConfig
from staplus_policy.policy.engine import PolicyEngine, build_engine
from staplus_policy.policy.identity import canonical_party_id
from staplus_policy.policy.loader import InMemoryEntityLoader


@pytest.fixture
def alice() -> Principal:
    return Principal(identity="alice")


@pytest.fixture
def bob() -> Principal:
    return Principal(identity="bob")


@pytest.fixture
def admin() -> Principal:
    return Principal(identity="root", is_admin=True)


@pytest.fixture
def alice_id(alice: Principal) -> str:
    return str(canonical_party_id(alice.identity))


@pytest.fixture
def bob_id(bob: Principal) -> str:
    return str(canonical_party_id(bob.identity))


@pytest.fixture
def loader() -> InMemoryEntityLoader:
    return InMemoryEntityLoader()


@pytest.fixture
def make_engine() -> Callable[..., PolicyEngine]:
    def _make(**switches: bool) -> PolicyEngine:
        return build_engine(PolicyConfig(**switches))

    return _make


@pytest.fixture
def ownership_engine(make_engine: Callable[..., PolicyEngine]) -> PolicyEngine:
    return make_engine(enforce_ownership=True)


@pytest.fixture
def licensing_engine(make_engine: Callable[..., PolicyEngine]) -> PolicyEngine:
    return make_engine(enforce_licensing=True, enforce_group_licensing=True)
