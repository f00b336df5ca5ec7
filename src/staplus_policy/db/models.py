"""
staplus_policy.db.models

Catalog persistence schema.

Responsibilities:
- One table per STAplus entity kind the policy engine governs.
- Association tables for the many-to-many links the licensing rules inspect:
  ObservationGroup-Observation, Campaign-Datastream, Campaign-MultiDatastream,
  Relation-ObservationGroup.
- Append-only `audit_events`.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, Column, ForeignKey, Index, String, Table, Text
from sqlalchemy import Uuid as SAUuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from staplus_policy.db.base import Base
from staplus_policy.policy.model import EntityKind


def _utcnow() -> datetime:
    # Naive UTC timestamps.
    return datetime.now(tz=UTC).replace(tzinfo=None)


def _new_id() -> str:
    return str(uuid.uuid4())


observation_group_observations = Table(
    "observation_group_observations",
    Base.metadata,
    Column("group_id", ForeignKey("observation_groups.id"), primary_key=True),
    Column("observation_id", ForeignKey("observations.id"), primary_key=True),
)

campaign_datastreams = Table(
    "campaign_datastreams",
    Base.metadata,
    Column("campaign_id", ForeignKey("campaigns.id"), primary_key=True),
    Column("datastream_id", ForeignKey("datastreams.id"), primary_key=True),
)

campaign_multi_datastreams = Table(
    "campaign_multi_datastreams",
    Base.metadata,
    Column("campaign_id", ForeignKey("campaigns.id"), primary_key=True),
    Column("multi_datastream_id", ForeignKey("multi_datastreams.id"), primary_key=True),
)

relation_observation_groups = Table(
    "relation_observation_groups",
    Base.metadata,
    Column("relation_id", ForeignKey("relations.id"), primary_key=True),
    Column("group_id", ForeignKey("observation_groups.id"), primary_key=True),
)


class CatalogRow:
    """
    Columns shared by every catalog table. Descriptive attributes (name, description,
    result, ...) live in `properties` under their STAplus names.
    """

    id: Mapped[str] = mapped_column(String(64), primary_key=True, default=_new_id)
    properties: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


class Party(CatalogRow, Base):
    __tablename__ = "parties"

    # Party ids are UUID strings and equal `auth_id` once ownership is enforced.
    auth_id: Mapped[str | None] = mapped_column(String(64), nullable=True, unique=True)


class License(CatalogRow, Base):
    __tablename__ = "licenses"


class Thing(CatalogRow, Base):
    __tablename__ = "things"

    party_id: Mapped[str | None] = mapped_column(
        ForeignKey("parties.id"), nullable=True, index=True
    )


class Datastream(CatalogRow, Base):
    __tablename__ = "datastreams"

    party_id: Mapped[str | None] = mapped_column(
        ForeignKey("parties.id"), nullable=True, index=True
    )
    license_id: Mapped[str | None] = mapped_column(ForeignKey("licenses.id"), nullable=True)

    campaigns: Mapped[list[Campaign]] = relationship(
        secondary=campaign_datastreams, back_populates="datastreams", lazy="selectin"
    )


class MultiDatastream(CatalogRow, Base):
    __tablename__ = "multi_datastreams"

    party_id: Mapped[str | None] = mapped_column(
        ForeignKey("parties.id"), nullable=True, index=True
    )
    license_id: Mapped[str | None] = mapped_column(ForeignKey("licenses.id"), nullable=True)

    campaigns: Mapped[list[Campaign]] = relationship(
        secondary=campaign_multi_datastreams, back_populates="multi_datastreams", lazy="selectin"
    )


class ObservationGroup(CatalogRow, Base):
    __tablename__ = "observation_groups"

    party_id: Mapped[str | None] = mapped_column(
        ForeignKey("parties.id"), nullable=True, index=True
    )
    license_id: Mapped[str | None] = mapped_column(ForeignKey("licenses.id"), nullable=True)

    observations: Mapped[list[Observation]] = relationship(
        secondary=observation_group_observations, back_populates="groups", lazy="selectin"
    )
    relations: Mapped[list[Relation]] = relationship(
        secondary=relation_observation_groups, back_populates="groups", lazy="selectin"
    )


class Campaign(CatalogRow, Base):
    __tablename__ = "campaigns"

    party_id: Mapped[str | None] = mapped_column(
        ForeignKey("parties.id"), nullable=True, index=True
    )
    license_id: Mapped[str | None] = mapped_column(ForeignKey("licenses.id"), nullable=True)

    datastreams: Mapped[list[Datastream]] = relationship(
        secondary=campaign_datastreams, back_populates="campaigns", lazy="selectin"
    )
    multi_datastreams: Mapped[list[MultiDatastream]] = relationship(
        secondary=campaign_multi_datastreams, back_populates="campaigns", lazy="selectin"
    )


class Observation(CatalogRow, Base):
    __tablename__ = "observations"

    datastream_id: Mapped[str | None] = mapped_column(
        ForeignKey("datastreams.id"), nullable=True, index=True
    )
    multi_datastream_id: Mapped[str | None] = mapped_column(
        ForeignKey("multi_datastreams.id"), nullable=True, index=True
    )

    groups: Mapped[list[ObservationGroup]] = relationship(
        secondary=observation_group_observations, back_populates="observations", lazy="selectin"
    )


class Relation(CatalogRow, Base):
    __tablename__ = "relations"

    subject_id: Mapped[str | None] = mapped_column(
        ForeignKey("observations.id"), nullable=True, index=True
    )
    object_id: Mapped[str | None] = mapped_column(ForeignKey("observations.id"), nullable=True)
    external_object: Mapped[str | None] = mapped_column(Text, nullable=True)

    groups: Mapped[list[ObservationGroup]] = relationship(
        secondary=relation_observation_groups, back_populates="relations", lazy="selectin"
    )


MODELS: dict[EntityKind, type[CatalogRow]] = {
    EntityKind.party: Party,
    EntityKind.thing: Thing,
    EntityKind.datastream: Datastream,
    EntityKind.multi_datastream: MultiDatastream,
    EntityKind.observation_group: ObservationGroup,
    EntityKind.relation: Relation,
    EntityKind.campaign: Campaign,
    EntityKind.license: License,
    EntityKind.observation: Observation,
}


class AuditEvent(Base):
    __tablename__ = "audit_events"

    id: Mapped[uuid.UUID] = mapped_column(
        SAUuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    actor: Mapped[str] = mapped_column(String(256), nullable=False)
    entity_kind: Mapped[str] = mapped_column(String(32), nullable=False)
    entity_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    event_type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, index=True)

    __table_args__ = (Index("ix_audit_entity_created", "entity_kind", "entity_id", "created_at"),)


# --- Module Notes -----------------------------------------------------------
# Every collection side is `selectin`-loaded: rows are converted to policy payloads
# both inside `run_sync` and from async code, where lazy loads are not allowed.
