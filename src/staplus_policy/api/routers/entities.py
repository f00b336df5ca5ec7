"""
staplus_policy.api.routers.entities

Catalog endpoints for the nine governed collections.

Responsibilities:
- Map `/v1/{collection}` requests to `CatalogService` calls.
- Answer 404 for unknown collections and unknown ids before any guard runs.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Response
from starlette.status import HTTP_201_CREATED, HTTP_204_NO_CONTENT, HTTP_404_NOT_FOUND

from staplus_policy.api.deps import catalog_service
from staplus_policy.api.schemas import COLLECTIONS, EntityBody, entity_to_json
from staplus_policy.auth.deps import get_optional_principal
from staplus_policy.auth.models import Principal
from staplus_policy.policy.errors import Forbidden, Unauthenticated
from staplus_policy.policy.model import EntityKind
from staplus_policy.services.catalog_service import CatalogService

router = APIRouter(prefix="/v1", tags=["catalog"])


def _kind(collection: str) -> EntityKind:
    kind = COLLECTIONS.get(collection)
    if kind is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Unknown collection")
    return kind


async def _require_existing(svc: CatalogService, kind: EntityKind, entity_id: str) -> None:
    if await svc.get(kind, entity_id) is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"{kind.value} not found")


@router.post("/{collection}", status_code=HTTP_201_CREATED)
async def create_entity(
    collection: str,
    body: EntityBody,
    principal: Principal | None = Depends(get_optional_principal),
    svc: CatalogService = Depends(catalog_service),
) -> dict[str, Any]:
    kind = _kind(collection)
    entity = await svc.create(body.to_entity(kind), principal=principal)
    return entity_to_json(entity)


@router.get("/{collection}/{entity_id}")
async def get_entity(
    collection: str,
    entity_id: str,
    svc: CatalogService = Depends(catalog_service),
) -> dict[str, Any]:
    kind = _kind(collection)
    entity = await svc.get(kind, entity_id)
    if entity is None:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail=f"{kind.value} not found")
    return entity_to_json(entity)


@router.patch("/{collection}/{entity_id}")
async def update_entity(
    collection: str,
    entity_id: str,
    body: EntityBody,
    principal: Principal | None = Depends(get_optional_principal),
    svc: CatalogService = Depends(catalog_service),
) -> dict[str, Any]:
    kind = _kind(collection)
    await _require_existing(svc, kind, entity_id)
    # The path id wins over any id in the body.
    entity = await svc.update(body.to_entity(kind, id=entity_id), principal=principal)
    return entity_to_json(entity)


@router.delete("/{collection}/{entity_id}", status_code=HTTP_204_NO_CONTENT)
async def delete_entity(
    collection: str,
    entity_id: str,
    principal: Principal | None = Depends(get_optional_principal),
    svc: CatalogService = Depends(catalog_service),
) -> Response:
    kind = _kind(collection)
    await _require_existing(svc, kind, entity_id)
    await svc.delete(kind, entity_id, principal=principal)
    return Response(status_code=HTTP_204_NO_CONTENT)


@router.get("/{collection}/{entity_id}/audit")
async def list_audit_events(
    collection: str,
    entity_id: str,
    principal: Principal | None = Depends(get_optional_principal),
    svc: CatalogService = Depends(catalog_service),
) -> list[dict[str, Any]]:
    kind = _kind(collection)
    if principal is None:
        raise Unauthenticated("Authentication required")
    if not principal.is_admin:
        raise Forbidden("Audit trail is restricted to admins")
    return await svc.audit_trail(kind, entity_id)
