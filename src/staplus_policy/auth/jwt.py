"""
staplus_policy.auth.jwt

Bearer token helpers.

Responsibilities:
- Mint short-lived tokens carrying a subject and a set of roles (dev endpoint, tests).
- Validate tokens against issuer/audience/expiry and read the roles claim.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import InvalidTokenError

from staplus_policy.settings import Settings

REQUIRED_CLAIMS = ("exp", "iat", "iss", "aud", "sub")


@dataclass(frozen=True, slots=True)
class JwtConfig:
    alg: str
    issuer: str
    audience: str
    secret: str

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            alg=settings.jwt_alg,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            secret=settings.jwt_secret,
        )


class JwtValidationError(Exception):
    pass


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    roles: Iterable[str] = (),
    ttl: timedelta = timedelta(hours=1),
) -> str:
    issued = datetime.now(tz=UTC)
    claims: dict[str, Any] = {
        "iss": cfg.issuer,
        "aud": cfg.audience,
        "sub": subject,
        "roles": sorted(set(roles)),
        "iat": int(issued.timestamp()),
        "exp": int((issued + ttl).timestamp()),
    }
    return jwt.encode(claims, cfg.secret, algorithm=cfg.alg)


def decode_and_validate(*, cfg: JwtConfig, token: str) -> dict[str, Any]:
    try:
        claims = jwt.decode(
            token,
            cfg.secret,
            algorithms=[cfg.alg],
            issuer=cfg.issuer,
            audience=cfg.audience,
            options={"require": list(REQUIRED_CLAIMS)},
        )
    except InvalidTokenError as e:
        raise JwtValidationError(str(e)) from e

    if not str(claims.get("sub") or "").strip():
        raise JwtValidationError("Empty subject")
    return claims


def roles_of(claims: dict[str, Any]) -> frozenset[str]:
    raw = claims.get("roles", [])
    if not isinstance(raw, list):
        raise JwtValidationError("Claim 'roles' must be a list")
    return frozenset(str(r) for r in raw)


# --- Module Notes -----------------------------------------------------------
# `sub` becomes `Principal.identity`; the Party id is derived from it by the policy
# layer, never stored in the token.
