"""
staplus_policy.api.routers.dev_auth

Dev-only token minting (404 in prod). The response also names the Party id the
subject resolves to, so a client can reference its own Party without deriving it.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator
from starlette.status import HTTP_404_NOT_FOUND

from staplus_policy.auth.deps import ADMIN_ROLE
from staplus_policy.auth.jwt import JwtConfig, issue_token
from staplus_policy.policy.identity import canonical_party_id
from staplus_policy.settings import Settings, get_settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    admin: bool = False
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)

    @field_validator("subject")
    @classmethod
    def _no_blank_subject(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("subject must not be blank")
        return v


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    party_id: str
    is_admin: bool


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(get_settings),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        roles=[ADMIN_ROLE] if body.admin else [],
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(
        access_token=token,
        party_id=str(canonical_party_id(body.subject)),
        is_admin=body.admin,
    )
