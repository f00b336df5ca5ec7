"""
staplus_policy.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for the API, persistence and policy layers.
- Hide secrets from repr/logging (JWT secret).
- Snapshot the policy switches into a `PolicyConfig` for the engine.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from staplus_policy.policy.context import PolicyConfig


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="STAPLUS_", case_sensitive=False)

    # `dev`/`test` create tables on startup and expose the dev token endpoint.
    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "staplus-policy"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Auth
    jwt_alg: str = "HS256"
    jwt_issuer: str = "staplus-policy"
    jwt_audience: str = "staplus-api"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./staplus.db"

    # Policy switches; all off means the catalog behaves like plain STAplus.
    enforce_ownership: bool = False
    enforce_licensing: bool = False
    enforce_group_licensing: bool = False
    transfer_ownership_enabled: bool = False
    license_domain: AnyHttpUrl = "https://creativecommons.org"  # type: ignore[assignment]

    def policy_config(self) -> PolicyConfig:
        return PolicyConfig(
            enforce_ownership=self.enforce_ownership,
            enforce_licensing=self.enforce_licensing,
            enforce_group_licensing=self.enforce_group_licensing,
            transfer_ownership_enabled=self.transfer_ownership_enabled,
            license_domain=str(self.license_domain).rstrip("/"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Switches are read once: changing them requires a restart, and the engine never
# sees a half-applied configuration.
