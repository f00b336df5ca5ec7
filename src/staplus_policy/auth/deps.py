"""
staplus_policy.auth.deps

FastAPI dependency turning an optional bearer token into a `Principal`.

Responsibilities:
- Map "no token" to an anonymous caller (`None`); guards decide whether that is allowed.
- Reject malformed or expired tokens with 401.
- Derive the admin capability from the `roles` claim.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from starlette.status import HTTP_401_UNAUTHORIZED

from staplus_policy.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate, roles_of
from staplus_policy.auth.models import Principal
from staplus_policy.settings import Settings, get_settings

ADMIN_ROLE = "admin"

_bearer = HTTPBearer(auto_error=False)


async def get_optional_principal(
    creds: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> Principal | None:
    if creds is None or not creds.credentials:
        return None

    try:
        cfg = JwtConfig.from_settings(settings)
        claims = decode_and_validate(cfg=cfg, token=creds.credentials)
        roles = roles_of(claims)
    except JwtValidationError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail=f"Invalid token: {e}") from e

    principal = Principal(identity=str(claims["sub"]), is_admin=ADMIN_ROLE in roles)
    structlog.contextvars.bind_contextvars(principal=principal.identity)
    return principal


# --- Module Notes -----------------------------------------------------------
# There is no role-based gate here: every authorization decision belongs to the
# policy engine.
