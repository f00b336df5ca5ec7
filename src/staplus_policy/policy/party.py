"""
staplus_policy.policy.party

Party guard.

Responsibilities:
- Derive the Party id from `authId` (`id == authId`, UUID form).
- Tie non-admin Party creation and updates to the acting caller.
- Refuse Party deletion to everyone but admins.
"""

from __future__ import annotations

from dataclasses import replace

from staplus_policy.policy.context import GuardContext
from staplus_policy.policy.errors import Forbidden, InvalidArgument
from staplus_policy.policy.identity import canonical_party_id, parse_party_id
from staplus_policy.policy.model import Entity


def _with_canonical_auth_id(entity: Entity) -> Entity:
    if entity.auth_id is None:
        return entity
    party_id = str(canonical_party_id(entity.auth_id))
    if entity.id is not None and entity.id.lower() != party_id:
        raise InvalidArgument("Party 'id' and 'authId' must designate the same Party")
    return replace(entity, auth_id=party_id, id=party_id)


class PartyGuard:
    def before_create(self, ctx: GuardContext, entity: Entity) -> Entity:
        entity = _with_canonical_auth_id(entity)

        if not ctx.config.enforce_ownership:
            return entity
        caller = ctx.caller_party_id()

        if ctx.is_admin:
            # Admins may register any Party, but it still needs a resolvable id.
            if entity.auth_id is None and entity.id is None:
                raise InvalidArgument("Party must have an 'authId'")
            if entity.auth_id is None:
                party_id = str(parse_party_id(entity.id))
                return replace(entity, id=party_id, auth_id=party_id)
            return entity

        if entity.auth_id is not None and entity.auth_id != str(caller):
            raise InvalidArgument(
                "Party property 'authId' must represent the acting user or be omitted"
            )
        if entity.id is not None and parse_party_id(entity.id) != caller:
            raise InvalidArgument("Party 'id' must represent the acting user or be omitted")
        return replace(entity, id=str(caller), auth_id=str(caller))

    def before_update(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership:
            return entity
        if ctx.is_admin:
            # An admin can override the authId of any Party, as long as it is a UUID.
            if entity.auth_id is not None:
                parse_party_id(entity.auth_id)
            return entity
        caller = ctx.caller_party_id()

        if entity.id is None or parse_party_id(entity.id) != caller:
            raise Forbidden("Cannot update existing Party of another user")
        if entity.auth_id is not None and canonical_party_id(entity.auth_id) != caller:
            raise Forbidden("Party property 'authId' cannot be changed")
        return replace(entity, auth_id=str(caller))

    def before_delete(self, ctx: GuardContext, entity: Entity) -> Entity:
        if not ctx.config.enforce_ownership or ctx.is_admin:
            return entity
        ctx.caller_party_id()
        raise Forbidden("Deleting Party is not allowed")


# --- Module Notes -----------------------------------------------------------
# Idempotent creation (return the existing Party instead of failing) is the host's
# job: the guard only fixes the id the Party must have.
