"""
staplus_policy.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`Principal`) passed to every guard.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated caller identity.

    `identity` is opaque (UUID or username, depending on the identity provider).
    `is_admin` is set by the authentication layer only.
    """

    identity: str
    is_admin: bool = False


# --- Module Notes -----------------------------------------------------------
# An anonymous caller is represented by `None`, never by an empty Principal.
