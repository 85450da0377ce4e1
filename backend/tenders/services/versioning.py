"""Append-only version log shared by tenders and bids.

Every entity keeps its current row plus one immutable snapshot per version
number ever reached. Version numbers are assigned inside the caller's unit
of work: the row UPDATE is guarded by the version that was read (SQLAlchemy
``version_id_col``) and snapshots are keyed by ``(id, version)``, so two
writers can never claim the same number.
"""

from __future__ import annotations

import logging
from typing import Callable, Generic, TypeVar
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from ..domain_errors import DomainError, NoBid, NoTender, NoVersion, VersionConflict
from ..models import Bid, BidVersion, Tender, TenderVersion, utcnow

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT", Tender, Bid)


class VersionedStore(Generic[EntityT]):
    """Current-row + version-log persistence for one entity type."""

    def __init__(
        self,
        *,
        model: type[EntityT],
        snapshot_model: type,
        mutable_fields: tuple[str, ...],
        not_found: Callable[[], DomainError],
    ) -> None:
        self.model = model
        self.snapshot_model = snapshot_model
        self.mutable_fields = mutable_fields
        self._not_found = not_found
        self._snapshot_fields = tuple(column.key for column in snapshot_model.__table__.columns)

    @property
    def entity_name(self) -> str:
        return self.model.__tablename__

    def _snapshot(self, entity: EntityT):
        return self.snapshot_model(**{name: getattr(entity, name) for name in self._snapshot_fields})

    def _flush(self, db: Session, entity: EntityT) -> None:
        # A failed flush leaves the session unusable, so attributes must be read before it.
        entity_id, version = entity.id, entity.version
        try:
            db.flush()
        except (StaleDataError, IntegrityError) as exc:
            logger.warning("%s.version_conflict id=%s version=%s", self.entity_name, entity_id, version)
            raise VersionConflict(details={"id": str(entity_id), "version": version}) from exc

    def create(self, db: Session, entity: EntityT) -> EntityT:
        """Insert the entity at version 1 together with its first snapshot."""
        now = utcnow()
        entity.version = 1
        entity.created_at = now
        entity.updated_at = now
        db.add(entity)
        db.flush()
        db.add(self._snapshot(entity))
        db.flush()
        return entity

    def get_current(self, db: Session, entity_id: UUID, *, for_update: bool = False) -> EntityT:
        query = db.query(self.model).filter(self.model.id == entity_id)
        if for_update:
            query = query.with_for_update()
        entity = query.first()
        if not entity:
            raise self._not_found()
        return entity

    def update(self, db: Session, entity: EntityT, *, bump_version: bool) -> EntityT:
        """Persist the entity; a bumped version also appends its snapshot.

        Without ``bump_version`` the row is written in place and the log is
        left untouched (system-triggered status cascades).
        """
        previous_version = entity.version
        if bump_version:
            entity.version = previous_version + 1
        entity.updated_at = utcnow()
        self._flush(db, entity)
        if bump_version:
            db.add(self._snapshot(entity))
            self._flush(db, entity)
        logger.debug(
            "%s.update id=%s version=%s->%s",
            self.entity_name,
            entity.id,
            previous_version,
            entity.version,
        )
        return entity

    def list_versions(self, db: Session, entity_id: UUID, version: int | None = None) -> list:
        """Snapshots of the entity, newest-updated first; version <= 0 means all."""
        query = db.query(self.snapshot_model).filter(self.snapshot_model.id == entity_id)
        if version is not None and version > 0:
            query = query.filter(self.snapshot_model.version == version)
        return query.order_by(
            self.snapshot_model.updated_at.desc(),
            self.snapshot_model.version.desc(),
        ).all()

    def check_rollback_target(self, entity: EntityT, target_version: int) -> bool:
        """Validate the target; True means it is the current version (nothing to do)."""
        if target_version < 1 or target_version > entity.version:
            raise NoVersion(details={"version": target_version, "current": entity.version})
        return target_version == entity.version

    def rollback(self, db: Session, entity: EntityT, target_version: int) -> EntityT:
        """Replay the content of an old snapshot as a brand-new version."""
        snapshots = self.list_versions(db, entity.id, target_version)
        if not snapshots:
            raise NoVersion(details={"version": target_version, "current": entity.version})
        snapshot = snapshots[0]
        for name in self.mutable_fields:
            setattr(entity, name, getattr(snapshot, name))
        return self.update(db, entity, bump_version=True)


tender_store: VersionedStore[Tender] = VersionedStore(
    model=Tender,
    snapshot_model=TenderVersion,
    mutable_fields=("status", "service_type", "name", "description"),
    not_found=NoTender,
)

bid_store: VersionedStore[Bid] = VersionedStore(
    model=Bid,
    snapshot_model=BidVersion,
    mutable_fields=("status", "name", "description"),
    not_found=NoBid,
)
