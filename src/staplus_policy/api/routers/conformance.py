"""
staplus_policy.api.routers.conformance

Conformance classes of the running configuration.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from staplus_policy.api.deps import policy_engine
from staplus_policy.policy.conformance import conformance_classes
from staplus_policy.policy.engine import PolicyEngine

router = APIRouter(prefix="/v1", tags=["conformance"])


@router.get("/conformance")
async def get_conformance(engine: PolicyEngine = Depends(policy_engine)) -> dict[str, list[str]]:
    return {"conformance": conformance_classes(engine.config)}
