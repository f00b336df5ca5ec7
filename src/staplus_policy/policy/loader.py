"""
staplus_policy.policy.loader

Storage collaborator boundary.

Responsibilities:
- Define the `EntityLoader` protocol guards use to fetch persisted state.
- Provide a dict-backed loader for embedding and tests.
"""

from __future__ import annotations

from typing import Protocol

from staplus_policy.policy.errors import InvalidArgument
from staplus_policy.policy.model import Entity, EntityKind


class EntityLoader(Protocol):
    def get(self, kind: EntityKind, id: str) -> Entity | None:
        """Current persisted state of one entity, or None if it does not exist."""
        ...

    def observations_of(
        self, kind: EntityKind, id: str, *, limit: int | None = None
    ) -> tuple[Entity, ...]:
        """Persisted Observations of a Datastream or MultiDatastream, at most `limit`."""
        ...


class InMemoryEntityLoader:
    def __init__(self, *entities: Entity) -> None:
        self._entities: dict[tuple[EntityKind, str], Entity] = {}
        for entity in entities:
            self.put(entity)

    def put(self, entity: Entity) -> Entity:
        if entity.id is None:
            raise ValueError("persisted entities need an id")
        self._entities[(entity.kind, entity.id)] = entity
        return entity

    def remove(self, kind: EntityKind, id: str) -> None:
        self._entities.pop((kind, id), None)

    def get(self, kind: EntityKind, id: str) -> Entity | None:
        return self._entities.get((kind, id))

    def observations_of(
        self, kind: EntityKind, id: str, *, limit: int | None = None
    ) -> tuple[Entity, ...]:
        found = []
        for (stored_kind, _), entity in self._entities.items():
            if stored_kind is not EntityKind.observation:
                continue
            stream = (
                entity.datastream if kind is EntityKind.datastream else entity.multi_datastream
            )
            if stream is not None and stream.id == id:
                found.append(entity)
        return tuple(found[:limit])


def load_existing(loader: EntityLoader, kind: EntityKind, id: str | None) -> Entity:
    # A missing row behind a reference is a bad request, not a 404.
    if id is None:
        raise InvalidArgument(f"{kind.value} does not exist")
    entity = loader.get(kind, id)
    if entity is None:
        raise InvalidArgument(f"{kind.value} does not exist")
    return entity


# --- Module Notes -----------------------------------------------------------
# The SQLAlchemy-backed implementation lives in `staplus_policy.db.loader`.
