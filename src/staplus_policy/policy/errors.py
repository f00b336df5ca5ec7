"""
staplus_policy.policy.errors

Typed guard failures.

Responsibilities:
- Define the error kinds a guard may raise.
- Carry the transport status code each kind maps to.
"""

from __future__ import annotations

import enum


class PolicyErrorKind(enum.StrEnum):
    unauthenticated = "UNAUTHENTICATED"
    forbidden = "FORBIDDEN"
    invalid_argument = "INVALID_ARGUMENT"


class PolicyError(Exception):
    """
    Base class for every guard failure.
    A failure is terminal for the mutation attempt; the host surfaces it verbatim.
    """

    kind: PolicyErrorKind
    status_code: int

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"detail": self.message, "kind": self.kind.value}


class Unauthenticated(PolicyError):
    kind = PolicyErrorKind.unauthenticated
    status_code = 401


class Forbidden(PolicyError):
    kind = PolicyErrorKind.forbidden
    status_code = 403


class InvalidArgument(PolicyError):
    kind = PolicyErrorKind.invalid_argument
    status_code = 400


# --- Module Notes -----------------------------------------------------------
# Status codes live on the exception types so the API layer needs a single handler.
