from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from staplus_policy.auth.jwt import (
    JwtConfig,
    JwtValidationError,
    decode_and_validate,
    issue_token,
    roles_of,
)
from staplus_policy.settings import Settings

CFG = JwtConfig(alg="HS256", issuer="staplus-policy", audience="staplus-api", secret="s3cret")


def test_config_follows_settings() -> None:
    cfg = JwtConfig.from_settings(Settings(jwt_secret="other", jwt_audience="aud"))
    assert cfg.secret == "other"
    assert cfg.audience == "aud"
    assert cfg.alg == "HS256"


def test_issued_token_carries_subject_and_sorted_roles() -> None:
    token = issue_token(cfg=CFG, subject="alice", roles=["admin", "admin", "editor"])
    claims = decode_and_validate(cfg=CFG, token=token)

    assert claims["sub"] == "alice"
    assert claims["roles"] == ["admin", "editor"]
    assert roles_of(claims) == frozenset({"admin", "editor"})


@pytest.mark.parametrize(
    "cfg",
    [
        JwtConfig(alg="HS256", issuer="staplus-policy", audience="other", secret="s3cret"),
        JwtConfig(alg="HS256", issuer="someone-else", audience="staplus-api", secret="s3cret"),
        JwtConfig(alg="HS256", issuer="staplus-policy", audience="staplus-api", secret="wrong"),
    ],
)
def test_foreign_tokens_are_rejected(cfg: JwtConfig) -> None:
    token = issue_token(cfg=CFG, subject="alice")
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=cfg, token=token)


def test_expired_token_is_rejected() -> None:
    token = issue_token(cfg=CFG, subject="alice", ttl=timedelta(seconds=-10))
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=CFG, token=token)


def test_blank_subject_and_malformed_roles_are_rejected() -> None:
    with pytest.raises(JwtValidationError):
        decode_and_validate(cfg=CFG, token=issue_token(cfg=CFG, subject="  "))

    claims = {"sub": "alice", "roles": "admin"}
    with pytest.raises(JwtValidationError):
        roles_of(claims)


def test_missing_roles_claim_means_no_roles() -> None:
    token = jwt.encode(
        {"iss": CFG.issuer, "aud": CFG.audience, "sub": "bob", "iat": 0, "exp": 2**31},
        CFG.secret,
        algorithm=CFG.alg,
    )
    assert roles_of(decode_and_validate(cfg=CFG, token=token)) == frozenset()
